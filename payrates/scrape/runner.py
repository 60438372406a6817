from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from rich import print
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
)

from payrates.config import Settings, get_settings
from payrates.dataset.merge import finalize_dataset, merge_page
from payrates.fallback.ai_parser import AITableParser, UsageTracker, hybrid_parse
from payrates.parse.page import parse_page
from payrates.scrape.fetch import fetch_page

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], str]


@dataclass
class ScrapeReport:
    dataset: Dict[str, dict] = field(default_factory=dict)
    ok: int = 0
    failed: List[str] = field(default_factory=list)


def scrape_page(
    url: str,
    html: str,
    *,
    settings: Settings,
    ai_parser: Optional[AITableParser] = None,
    tracker: Optional[UsageTracker] = None,
) -> Dict[str, dict]:
    if ai_parser is None or not settings.ai_enabled_for(url):
        return parse_page(html, url)

    result = hybrid_parse(html, url, parse_page, ai_parser, threshold=settings.ai_confidence_threshold)
    if tracker is not None:
        tracker.track_call(result)
    logger.info("%s parsed via %s (confidence %.2f, cost $%.3f)", url, result.method, result.confidence, result.cost)
    return result.records


def scrape_all(
    urls: List[str],
    *,
    fetcher: Optional[Fetcher] = None,
    settings: Optional[Settings] = None,
    ai_parser: Optional[AITableParser] = None,
    tracker: Optional[UsageTracker] = None,
    show_progress: bool = True,
) -> ScrapeReport:
    """
    Fetch and parse pages one at a time, in catalogue order, merging as we go.
    A page that raises or yields no classifications is recorded in `failed`.
    """
    cfg = settings or get_settings()
    fetch = fetcher or (lambda u: fetch_page(u, settings=cfg))
    report = ScrapeReport()

    def process(url: str) -> None:
        try:
            html = fetch(url)
            page = scrape_page(url, html, settings=cfg, ai_parser=ai_parser, tracker=tracker)
        except Exception:
            logger.exception("failed to scrape %s", url)
            report.failed.append(url)
            print(f"[red]✗[/red] {url}")
            return

        if not page:
            logger.warning("%s: no classifications found", url)
            report.failed.append(url)
            print(f"[yellow]skip[/yellow] no classifications: {url}")
            return

        merge_page(report.dataset, page, url)
        report.ok += 1
        print(f"[green]✓[/green] {url} → {len(page)} classifications")

    if show_progress:
        with Progress(
            TextColumn("[bold]Scrape[/bold]"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            transient=False,
        ) as progress:
            task = progress.add_task("pages", total=len(urls))
            for url in urls:
                process(url)
                progress.update(task, advance=1)
    else:
        for url in urls:
            process(url)

    report.dataset = finalize_dataset(report.dataset)
    return report
