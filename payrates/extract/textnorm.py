import re

# U+2010 hyphen, U+2011 non-breaking hyphen, U+2012 figure dash, U+2013 en dash,
# U+2014 em dash, U+2015 horizontal bar, U+2212 minus sign
DASHES = "‐‑‒–—―−"

_RE_DASHES = re.compile(f"[{DASHES}]")
_RE_WHITESPACE = re.compile(r"\s+", flags=re.UNICODE)


def normalize_dashes(text: str) -> str:
    if not text:
        return ""
    return _RE_DASHES.sub("-", text)


def clean(text) -> str:
    """
    Canonical cell/heading text: every dash variant becomes "-", any whitespace
    run (NBSP included) becomes one space, ends trimmed. Never raises.
    """
    if text is None:
        return ""
    s = normalize_dashes(str(text))
    s = _RE_WHITESPACE.sub(" ", s)
    return s.strip()
