from __future__ import annotations

from typing import Dict

from payrates.ingest.dom import parse_html
from payrates.parse.appendix import parse_appendix_document
from payrates.parse.unrepresented import parse_unrepresented_page
from payrates.scrape.sources import is_unrepresented_url


def parse_page(html: str, url: str) -> Dict[str, dict]:
    """Pick the parser from the URL alone."""
    soup = parse_html(html)
    if is_unrepresented_url(url):
        return parse_unrepresented_page(soup, url)
    return parse_appendix_document(soup, url)
