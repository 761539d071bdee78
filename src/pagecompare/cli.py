"""CLI entry point for pagecompare."""

import asyncio
import sys
from pathlib import Path
from typing import NoReturn

import click
from pydantic import ValidationError

from .browser import PageCapturer
from .config import settings
from .errors import UsageError
from .logging import logger, set_verbose
from .models import ViolationComparison
from .reports import (
    ReportConfig,
    render_accessibility_report,
    render_accessibility_summary,
    render_visual_report,
    save_report,
)
from .runner import run_accessibility_comparison, run_visual_comparison
from .viewports import resolve_viewports
from .violations import compare_scans, load_scan


def _missing(**arguments: object) -> UsageError:
    names = [name.upper() for name, value in arguments.items() if not value]
    return UsageError(f"Missing argument(s): {', '.join(names)}")


def _usage_failure(ctx: click.Context, error: Exception) -> NoReturn:
    logger.error(str(error))
    click.echo(ctx.get_usage(), err=True)
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Compare before/after versions of a web page."""
    set_verbose(verbose)


@cli.command()
@click.argument("before_url", required=False)
@click.argument("after_url", required=False)
@click.argument("output_path", required=False, type=click.Path(path_type=Path))
@click.option(
    "--viewport",
    "-V",
    "viewport_names",
    multiple=True,
    help="Viewport to capture (repeatable; default: all)",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for screenshots and diff images",
)
@click.option(
    "--sensitivity",
    type=click.FloatRange(0, 1),
    default=None,
    help="Per-pixel colour distance threshold (0-1)",
)
@click.option(
    "--threshold",
    type=click.FloatRange(min=0),
    default=None,
    help="Percent of differing pixels above which a change is significant",
)
@click.pass_context
def visual(
    ctx: click.Context,
    before_url: str | None,
    after_url: str | None,
    output_path: Path | None,
    viewport_names: tuple[str, ...],
    output_dir: Path | None,
    sensitivity: float | None,
    threshold: float | None,
) -> None:
    """Screenshot BEFORE_URL and AFTER_URL at each viewport and diff them."""
    if not before_url or not after_url:
        _usage_failure(ctx, _missing(before_url=before_url, after_url=after_url))
    try:
        viewports = resolve_viewports(viewport_names)
    except ValueError as e:
        _usage_failure(ctx, e)

    try:
        outcomes = asyncio.run(
            run_visual_comparison(
                before_url,
                after_url,
                viewports=viewports,
                output_dir=output_dir,
                capturer=PageCapturer(),
                sensitivity=sensitivity,
            )
        )
    except Exception:
        logger.exception("Visual comparison failed")
        sys.exit(1)

    config = ReportConfig.from_settings()
    if threshold is not None:
        config.diff_threshold = threshold
    report = render_visual_report(outcomes, before_url, after_url, config)
    path = save_report(report, output_path or settings.visual_report_path)

    click.echo("Visual comparison complete!")
    click.echo(f"Report saved to: {path}")
    sys.exit(report.exit_code)


def _finish_accessibility(
    comparison: ViolationComparison,
    before_label: str,
    after_label: str,
    output_path: Path | None,
    report_format: str,
) -> None:
    summary = render_accessibility_summary(comparison)
    click.echo(summary.text)

    if report_format == "text":
        report = summary
    else:
        report = render_accessibility_report(comparison, before_label, after_label)
    path = save_report(report, output_path or settings.accessibility_report_path)
    click.echo(f"Report written to {path}")
    sys.exit(report.exit_code)


@cli.command()
@click.argument("before_url", required=False)
@click.argument("after_url", required=False)
@click.argument("output_path", required=False, type=click.Path(path_type=Path))
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for the raw scan results (default: current directory)",
)
@click.option("--tag", "tags", multiple=True, help="axe rule tag to run (repeatable)")
@click.option(
    "--format",
    "report_format",
    type=click.Choice(["markdown", "text"]),
    default="markdown",
    show_default=True,
    help="Format of the report written to OUTPUT_PATH",
)
@click.pass_context
def accessibility(
    ctx: click.Context,
    before_url: str | None,
    after_url: str | None,
    output_path: Path | None,
    output_dir: Path | None,
    tags: tuple[str, ...],
    report_format: str,
) -> None:
    """Scan BEFORE_URL and AFTER_URL with axe-core and compare violations.

    Exits with status 1 when the after page violates rules the before page
    did not.
    """
    if not before_url or not after_url:
        _usage_failure(ctx, _missing(before_url=before_url, after_url=after_url))

    try:
        comparison = asyncio.run(
            run_accessibility_comparison(
                before_url,
                after_url,
                output_dir=output_dir,
                capturer=PageCapturer(),
                tags=list(tags) or None,
            )
        )
    except Exception:
        logger.exception("Accessibility comparison failed")
        sys.exit(1)

    _finish_accessibility(comparison, before_url, after_url, output_path, report_format)


@cli.command("scan-diff")
@click.argument("before_json", required=False, type=click.Path(path_type=Path))
@click.argument("after_json", required=False, type=click.Path(path_type=Path))
@click.argument("output_path", required=False, type=click.Path(path_type=Path))
@click.option(
    "--format",
    "report_format",
    type=click.Choice(["markdown", "text"]),
    default="markdown",
    show_default=True,
    help="Format of the report written to OUTPUT_PATH",
)
@click.pass_context
def scan_diff(
    ctx: click.Context,
    before_json: Path | None,
    after_json: Path | None,
    output_path: Path | None,
    report_format: str,
) -> None:
    """Compare two saved axe-core result files without launching a browser."""
    if before_json is None or after_json is None:
        _usage_failure(ctx, _missing(before_json=before_json, after_json=after_json))
    try:
        before = load_scan(before_json)
        after = load_scan(after_json)
    except OSError as e:
        _usage_failure(ctx, e)
    except (ValidationError, UnicodeDecodeError):
        logger.exception("Scan results could not be parsed")
        sys.exit(1)

    comparison = compare_scans(before, after)
    before_label = before.url or str(before_json)
    after_label = after.url or str(after_json)
    _finish_accessibility(comparison, before_label, after_label, output_path, report_format)


if __name__ == "__main__":
    cli()
