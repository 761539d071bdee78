"""Visual diff detection for comparing before/after screenshots.

Pixels are compared with the pixelmatch algorithm (perceptual YIQ colour
distance with antialiasing detection). Screenshots of different sizes are
not aligned or resized: the mismatch itself is the result.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from PIL import Image
from pixelmatch.contrib.PIL import pixelmatch

from .errors import CaptureError, CaptureFailure
from .logging import log_extra, timed
from .viewports import ViewportProfile

# Reported in place of counts when a comparison could not be made
SENTINEL = -1


@dataclass(frozen=True)
class ImageDiffResult:
    """Result of comparing two screenshots."""

    diff_pixels: int
    total_pixels: int
    diff_percentage: float  # differing / total * 100, rounded to 3 places
    size_mismatch: bool
    before_size: tuple[int, int]
    after_size: tuple[int, int]
    diff_image_path: Path | None = None

    @property
    def formatted_percentage(self) -> str:
        """Percentage with exactly three decimals, e.g. ``0.000``."""
        return f"{self.diff_percentage:.3f}"


class ViewportStatus(str, Enum):
    """Classification of one viewport's comparison."""

    IDENTICAL = "identical"
    MINOR = "minor"
    SIGNIFICANT = "significant"
    SIZE_MISMATCH = "size-mismatch"
    FAILED = "failed"


@dataclass(frozen=True)
class ViewportOutcome:
    """Per-viewport slot: either a diff result or the error that prevented it."""

    viewport: ViewportProfile
    result: ImageDiffResult | None = None
    error: str | None = None
    error_kind: CaptureFailure | None = None

    def __post_init__(self) -> None:
        if (self.result is None) == (self.error is None):
            raise ValueError("ViewportOutcome needs exactly one of result or error")

    @property
    def diff_percentage(self) -> float:
        if self.result is None:
            return SENTINEL
        return self.result.diff_percentage


def classify(outcome: ViewportOutcome, threshold: float = 0.1) -> ViewportStatus:
    """Classify a viewport outcome against the reporting threshold (percent)."""
    if outcome.result is None:
        return ViewportStatus.FAILED
    result = outcome.result
    if result.size_mismatch:
        return ViewportStatus.SIZE_MISMATCH
    if result.diff_percentage > threshold:
        return ViewportStatus.SIGNIFICANT
    if result.diff_percentage > 0:
        return ViewportStatus.MINOR
    return ViewportStatus.IDENTICAL


@timed
def compare_image_data(
    before: Image.Image,
    after: Image.Image,
    diff_path: Path | None = None,
    sensitivity: float = 0.1,
    include_aa: bool = False,
) -> ImageDiffResult:
    """Compare two decoded images.

    Args:
        before: The "before" image
        after: The "after" image
        diff_path: Where to write the diff mask (skipped when None)
        sensitivity: pixelmatch colour distance threshold (0-1). Lower = stricter
        include_aa: Count antialiased pixels as differences

    Returns:
        ImageDiffResult; on a size mismatch the counts are SENTINEL and no
        diff mask is written.
    """
    if before.size != after.size:
        log_extra(
            "Image size mismatch",
            logging.WARNING,
            before_size=f"{before.width}x{before.height}",
            after_size=f"{after.width}x{after.height}",
        )
        return ImageDiffResult(
            diff_pixels=SENTINEL,
            total_pixels=SENTINEL,
            diff_percentage=SENTINEL,
            size_mismatch=True,
            before_size=before.size,
            after_size=after.size,
        )

    width, height = before.size
    mask = Image.new("RGBA", (width, height))
    diff_pixels = pixelmatch(
        before.convert("RGBA"),
        after.convert("RGBA"),
        mask,
        threshold=sensitivity,
        includeAA=include_aa,
    )

    if diff_path is not None:
        try:
            diff_path.parent.mkdir(parents=True, exist_ok=True)
            mask.save(diff_path)
        except OSError as e:
            log_extra(
                "Could not write diff image",
                logging.WARNING,
                path=str(diff_path),
                error=str(e),
            )
            diff_path = None

    total_pixels = width * height
    diff_percentage = round(diff_pixels / total_pixels * 100, 3) if total_pixels else 0.0

    return ImageDiffResult(
        diff_pixels=diff_pixels,
        total_pixels=total_pixels,
        diff_percentage=diff_percentage,
        size_mismatch=False,
        before_size=before.size,
        after_size=after.size,
        diff_image_path=diff_path,
    )


def compare_images(
    before_path: Path,
    after_path: Path,
    diff_path: Path | None = None,
    sensitivity: float = 0.1,
    include_aa: bool = False,
) -> ImageDiffResult:
    """Load two screenshots from disk and compare them.

    Raises:
        CaptureError: If either file cannot be decoded as an image
    """
    before = _load_image(before_path)
    after = _load_image(after_path)
    return compare_image_data(
        before,
        after,
        diff_path=diff_path,
        sensitivity=sensitivity,
        include_aa=include_aa,
    )


def _load_image(path: Path) -> Image.Image:
    try:
        return Image.open(path).convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise CaptureError(str(path), e, CaptureFailure.DECODE) from e
