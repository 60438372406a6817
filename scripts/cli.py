from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich import print
from rich.logging import RichHandler

from payrates.config import get_settings
from payrates.dataset.audit import base_code_artifacts, is_unrepresented, prune_base_codes, salary_issues
from payrates.dataset.store import load_dataset, save_dataset, union_datasets
from payrates.extract.schema import Dataset
from payrates.fallback.ai_parser import AITableParser, UsageTracker
from payrates.ingest.dom import parse_html
from payrates.llm.llm_text_client_factory import create_llm_text_client
from payrates.parse.appendix import parse_appendix_document
from payrates.parse.page import parse_page
from payrates.scrape.runner import scrape_all
from payrates.scrape.sources import is_unrepresented_url, load_urls

app = typer.Typer(add_completion=False, help="Federal public service pay-rate scraper")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbose)],
    )


def _dataset_path(path: Optional[Path]) -> Path:
    target = path or get_settings().output_file
    if not target.exists():
        typer.secho(f"Dataset not found: {target}", fg="red")
        raise typer.Exit(1)
    return target


@app.command()
def scrape(
    urls: Path = typer.Option(None, "--urls", help="URL catalogue (YAML); defaults to the bundled urls.yaml"),
    out: Path = typer.Option(None, "--out", help="Output JSON; defaults to PAYRATES_OUTPUT_FILE"),
    use_ai: Optional[bool] = typer.Option(None, "--use-ai/--no-ai", help="AI fallback for known problem pages"),
    force_ai: bool = typer.Option(False, "--force-ai", help="AI fallback on every page"),
    no_merge: bool = typer.Option(False, "--no-merge", help="Overwrite instead of merging with the previous file"),
):
    """
    Scrape every catalogue URL, merge with the previous dataset and save it.
    Precedence: CLI options > env (PAYRATES_*) > defaults.
    """
    cfg = get_settings()
    if use_ai is not None:
        cfg.use_ai = use_ai
    if force_ai:
        cfg.force_ai = True
    urls_file = urls or cfg.urls_file
    out_path = out or cfg.output_file

    if not urls_file.exists():
        typer.secho(f"URL catalogue not found: {urls_file}", fg="red")
        raise typer.Exit(1)
    url_list = load_urls(urls_file)
    if not url_list:
        typer.secho(f"No URLs in {urls_file}", fg="red")
        raise typer.Exit(1)

    ai_parser = None
    tracker = UsageTracker()
    if cfg.use_ai or cfg.force_ai:
        ai_parser = AITableParser(create_llm_text_client(cfg.llm_provider, model=cfg.llm_model))

    report = scrape_all(url_list, settings=cfg, ai_parser=ai_parser, tracker=tracker)

    dataset = report.dataset
    if not no_merge:
        dataset = union_datasets(load_dataset(out_path), dataset)
    save_dataset(dataset, out_path)

    print(f"\n[bold]Successful:[/bold] {report.ok}/{len(url_list)} pages")
    print(f"[bold]Classifications:[/bold] {len(report.dataset)} scraped, {len(dataset)} saved to {out_path}")
    if report.failed:
        print(f"[yellow]Failed URLs ({len(report.failed)}):[/yellow]")
        for u in report.failed:
            print(f"  - {u}")

    stats = tracker.stats()
    if stats["total_calls"]:
        print(
            f"[bold]AI usage:[/bold] {stats['total_calls']} calls, "
            f"{stats['success_rate']:.0%} successful, ${stats['total_cost']:.3f} total "
            f"(${stats['average_cost']:.4f}/call)"
        )


@app.command("parse-file")
def parse_file(
    html_path: Path = typer.Argument(..., help="Saved HTML page"),
    url: Optional[str] = typer.Option(None, "--url", help="Source URL; picks the parser and fills _source"),
    raw: bool = typer.Option(False, "--raw", help="Skip renumbering and dedupe (keeps group/level)"),
):
    """Parse a local HTML file and print the resulting JSON."""
    if not html_path.exists():
        typer.secho(f"File not found: {html_path}", fg="red")
        raise typer.Exit(1)
    html = html_path.read_text(encoding="utf-8")
    source = url or html_path.resolve().as_uri()

    if raw and not is_unrepresented_url(source):
        result = parse_appendix_document(parse_html(html), source, post_process=False)
    else:
        result = parse_page(html, source)
    typer.echo(json.dumps(result, indent=2, ensure_ascii=False))


@app.command("validate")
def validate_file(json_path: Path = typer.Argument(None, help="Dataset JSON; defaults to PAYRATES_OUTPUT_FILE")):
    """Validate a dataset file against the schema."""
    path = _dataset_path(json_path)
    data = json.loads(path.read_text(encoding="utf-8"))
    Dataset.model_validate(data)
    print(f"[green]OK[/green] {path.name}: {len(data)} classifications")


@app.command()
def audit(json_path: Path = typer.Argument(None, help="Dataset JSON; defaults to PAYRATES_OUTPUT_FILE")):
    """Report base-code artifacts and suspicious salaries."""
    dataset = load_dataset(_dataset_path(json_path))

    artifacts = base_code_artifacts(dataset)
    print(f"[bold]Base codes with leveled siblings:[/bold] {len(artifacts)}")
    for code, siblings in artifacts.items():
        print(f"  [yellow]{code}[/yellow] → {', '.join(siblings)}")

    issues = salary_issues(dataset)
    print(f"[bold]Salary issues:[/bold] {len(issues)}")
    for i in issues:
        tag = " (unrepresented)" if is_unrepresented(dataset[i.code]) else ""
        if i.kind == "non_numeric_step":
            print(f"  [red]{i.kind}[/red] {i.code}{tag}: {i.steps} steps, {i.effective_date}")
        else:
            print(f"  [red]{i.kind}[/red] {i.code}{tag}: ${i.min:,} to ${i.max:,} ({i.steps} steps), {i.effective_date}")

    if not artifacts and not issues:
        print("[green]✓[/green] no issues found")


@app.command("prune-base-codes")
def prune(json_path: Path = typer.Argument(None, help="Dataset JSON; defaults to PAYRATES_OUTPUT_FILE")):
    """Remove bare codes that also exist with levels (writes a .bak first)."""
    path = _dataset_path(json_path)
    dataset = load_dataset(path)
    pruned = prune_base_codes(dataset)
    removed = sorted(set(dataset) - set(pruned))
    if not removed:
        print("[green]✓[/green] nothing to prune")
        return
    save_dataset(pruned, path)
    for code in removed:
        print(f"[green]✓[/green] removed {code}")
    print(f"{len(dataset)} → {len(pruned)} classifications")


if __name__ == "__main__":
    app()
