from __future__ import annotations

import logging
import time
from typing import Optional

import requests

from payrates.config import Settings, get_settings

logger = logging.getLogger(__name__)

_SUSPICIOUS_MARKERS = ("An error occurred", "Page not found")
_MIN_PAGE_CHARS = 1000


class FetchError(RuntimeError):
    def __init__(self, url: str, reason: str):
        super().__init__(f"failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


def _headers(user_agent: str) -> dict:
    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
    }


def fetch_page(
    url: str,
    *,
    settings: Optional[Settings] = None,
    session: Optional[requests.Session] = None,
) -> str:
    """
    GET one page and return its HTML, then sleep `polite_delay_ms`.
    Non-2xx answers and transport errors raise FetchError.
    """
    cfg = settings or get_settings()
    http = session or requests
    logger.debug("fetching %s", url)
    try:
        r = http.get(url, headers=_headers(cfg.user_agent), timeout=cfg.request_timeout_s)
    except requests.RequestException as e:
        raise FetchError(url, str(e)) from e

    if not r.ok:
        logger.debug("HTTP %s body: %s", r.status_code, r.text[:200])
        raise FetchError(url, f"HTTP {r.status_code}")

    html = r.text
    if len(html) < _MIN_PAGE_CHARS or any(m in html for m in _SUSPICIOUS_MARKERS):
        logger.warning("%s returned suspicious content (length %d)", url, len(html))

    if cfg.polite_delay_ms:
        time.sleep(cfg.polite_delay_ms / 1000)
    return html
