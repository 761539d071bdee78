"""Orchestration of before/after capture and comparison runs.

Captures happen strictly one after another. In visual mode a failure on one
viewport is recorded in that viewport's outcome and the run moves on.
"""

import logging
from pathlib import Path

from .browser import PageCapturer
from .config import settings
from .diff import ViewportOutcome, compare_images
from .errors import CaptureError
from .logging import log_extra, logger
from .models import ViolationComparison
from .viewports import ViewportProfile, resolve_viewports
from .violations import compare_scans


def artifact_paths(output_dir: Path, key: str) -> tuple[Path, Path, Path]:
    """Return the (before, after, diff) screenshot paths for a viewport key."""
    return (
        output_dir / f"before-{key}.png",
        output_dir / f"after-{key}.png",
        output_dir / f"diff-{key}.png",
    )


async def run_visual_comparison(
    before_url: str,
    after_url: str,
    viewports: list[ViewportProfile] | None = None,
    output_dir: Path | None = None,
    capturer: PageCapturer | None = None,
    sensitivity: float | None = None,
    include_aa: bool | None = None,
) -> dict[str, ViewportOutcome]:
    """Screenshot both URLs at each viewport and diff the pairs.

    Args:
        before_url: URL of the "before" page
        after_url: URL of the "after" page
        viewports: Viewports to capture (all known viewports if None)
        output_dir: Directory for screenshots and diff masks
        capturer: Capturer to use (a default PageCapturer if None)
        sensitivity: pixelmatch colour threshold (settings.pixel_sensitivity if None)
        include_aa: Count antialiased pixels (settings.include_antialiased if None)

    Returns:
        Outcomes keyed by viewport key, in capture order
    """
    profiles = viewports or resolve_viewports()
    out_dir = output_dir or settings.output_dir
    out_dir.mkdir(parents=True, exist_ok=True)
    capturer = capturer or PageCapturer()
    sensitivity = settings.pixel_sensitivity if sensitivity is None else sensitivity
    include_aa = settings.include_antialiased if include_aa is None else include_aa

    outcomes: dict[str, ViewportOutcome] = {}
    for viewport in profiles:
        log_extra(f"Processing {viewport.name} ({viewport.dimensions})", viewport=viewport.key)
        before_path, after_path, diff_path = artifact_paths(out_dir, viewport.key)

        try:
            await capturer.capture_screenshot(before_url, viewport, before_path)
            await capturer.capture_screenshot(after_url, viewport, after_path)
            result = compare_images(
                before_path,
                after_path,
                diff_path,
                sensitivity=sensitivity,
                include_aa=include_aa,
            )
        except CaptureError as e:
            log_extra(
                f"Failed to process {viewport.name}",
                logging.ERROR,
                viewport=viewport.key,
                url=e.url,
                kind=e.kind.value,
                error=str(e.cause),
            )
            outcomes[viewport.key] = ViewportOutcome(
                viewport=viewport,
                error=str(e),
                error_kind=e.kind,
            )
            continue
        except Exception as e:
            logger.exception(f"Unexpected error processing {viewport.name}")
            outcomes[viewport.key] = ViewportOutcome(
                viewport=viewport,
                error=f"{type(e).__name__}: {e}",
            )
            continue

        outcomes[viewport.key] = ViewportOutcome(viewport=viewport, result=result)
        if result.size_mismatch:
            log_extra("Size mismatch, pixel comparison skipped", viewport=viewport.key)
        else:
            log_extra(f"Difference: {result.formatted_percentage}%", viewport=viewport.key)

    return outcomes


async def run_accessibility_comparison(
    before_url: str,
    after_url: str,
    output_dir: Path | None = None,
    capturer: PageCapturer | None = None,
    tags: list[str] | None = None,
) -> ViolationComparison:
    """Scan both URLs with axe-core and compare the violations.

    Raw results are saved as ``before-results.json`` and ``after-results.json``
    in ``output_dir`` (the working directory if None).

    Raises:
        CaptureError: If either scan fails
    """
    out_dir = output_dir or Path(".")
    capturer = capturer or PageCapturer()

    log_extra("Running accessibility scan on BEFORE version", url=before_url)
    _, before = await capturer.run_accessibility_scan(
        before_url, out_dir / "before-results.json", tags
    )

    log_extra("Running accessibility scan on AFTER version", url=after_url)
    _, after = await capturer.run_accessibility_scan(
        after_url, out_dir / "after-results.json", tags
    )

    return compare_scans(before, after)
