"""Tests for visual diff detection in pagecompare.diff."""

from pathlib import Path

import pytest
from PIL import Image

from pagecompare.diff import (
    SENTINEL,
    ImageDiffResult,
    ViewportOutcome,
    ViewportStatus,
    classify,
    compare_image_data,
    compare_images,
)
from pagecompare.errors import CaptureError, CaptureFailure
from pagecompare.viewports import VIEWPORTS


def _save(img: Image.Image, path: Path) -> Path:
    img.save(path)
    return path


@pytest.fixture
def identical_images(tmp_path: Path) -> tuple[Path, Path]:
    """Create two identical 100x100 test images."""
    img = Image.new("RGB", (100, 100), color="red")
    return _save(img, tmp_path / "before.png"), _save(img, tmp_path / "after.png")


@pytest.fixture
def different_images(tmp_path: Path) -> tuple[Path, Path]:
    """Create two completely different test images."""
    before = Image.new("RGB", (100, 100), color="red")
    after = Image.new("RGB", (100, 100), color="blue")
    return _save(before, tmp_path / "before.png"), _save(after, tmp_path / "after.png")


@pytest.fixture
def partially_different_images(tmp_path: Path) -> tuple[Path, Path]:
    """Create images where a 20x20 square differs."""
    before = Image.new("RGB", (100, 100), color="white")
    after = Image.new("RGB", (100, 100), color="white")
    for x in range(20, 40):
        for y in range(20, 40):
            after.putpixel((x, y), (255, 0, 0))
    return _save(before, tmp_path / "before.png"), _save(after, tmp_path / "after.png")


@pytest.fixture
def mismatched_images(tmp_path: Path) -> tuple[Path, Path]:
    """Create a 100x100 and a 120x100 image."""
    before = Image.new("RGB", (100, 100), color="white")
    after = Image.new("RGB", (120, 100), color="white")
    return _save(before, tmp_path / "before.png"), _save(after, tmp_path / "after.png")


def _result(pixels: int, percentage: float, mismatch: bool = False) -> ImageDiffResult:
    return ImageDiffResult(
        diff_pixels=pixels,
        total_pixels=10000,
        diff_percentage=percentage,
        size_mismatch=mismatch,
        before_size=(100, 100),
        after_size=(100, 100),
    )


class TestCompareImages:
    """Tests for compare_images function."""

    def test_identical_images(self, identical_images: tuple[Path, Path], tmp_path: Path) -> None:
        """Test comparing identical images."""
        before, after = identical_images
        result = compare_images(before, after, tmp_path / "diff.png")
        assert result.diff_pixels == 0
        assert result.total_pixels == 10000
        assert result.formatted_percentage == "0.000"
        assert result.size_mismatch is False

    def test_completely_different_images(self, different_images: tuple[Path, Path]) -> None:
        """Test comparing completely different images."""
        before, after = different_images
        result = compare_images(before, after)
        assert result.diff_pixels == 10000
        assert result.diff_percentage == 100.0
        assert result.formatted_percentage == "100.000"

    def test_partial_differences(self, partially_different_images: tuple[Path, Path]) -> None:
        """Test comparing partially different images."""
        before, after = partially_different_images
        result = compare_images(before, after)
        assert 0 < result.diff_pixels <= 400
        assert result.diff_percentage <= 4.0

    def test_diff_image_written(self, different_images: tuple[Path, Path], tmp_path: Path) -> None:
        """Test that the diff mask is saved at the requested path."""
        before, after = different_images
        diff_path = tmp_path / "out" / "diff-mobile.png"
        result = compare_images(before, after, diff_path)
        assert result.diff_image_path == diff_path
        assert diff_path.exists()
        with Image.open(diff_path) as mask:
            assert mask.size == (100, 100)

    def test_size_mismatch(self, mismatched_images: tuple[Path, Path], tmp_path: Path) -> None:
        """Test that differently sized images are not compared."""
        before, after = mismatched_images
        diff_path = tmp_path / "diff.png"
        result = compare_images(before, after, diff_path)
        assert result.size_mismatch is True
        assert result.diff_pixels == SENTINEL
        assert result.total_pixels == SENTINEL
        assert result.before_size == (100, 100)
        assert result.after_size == (120, 100)
        assert result.diff_image_path is None
        assert not diff_path.exists()

    def test_undecodable_image(self, identical_images: tuple[Path, Path], tmp_path: Path) -> None:
        """Test that a corrupt screenshot raises a decode CaptureError."""
        before, _ = identical_images
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"not a png")
        with pytest.raises(CaptureError) as exc_info:
            compare_images(before, broken)
        assert exc_info.value.kind == CaptureFailure.DECODE

    def test_oversized_image_is_decode_error(
        self, identical_images: tuple[Path, Path], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that Pillow's decompression bomb guard becomes a decode CaptureError."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 4000)
        before, after = identical_images
        with pytest.raises(CaptureError) as exc_info:
            compare_images(before, after)
        assert exc_info.value.kind == CaptureFailure.DECODE

    def test_unwritable_diff_path(self, different_images: tuple[Path, Path], tmp_path: Path) -> None:
        """Test that failing to save the diff mask still returns the counts."""
        before, after = different_images
        diff_path = tmp_path / "diff.png"
        diff_path.mkdir()
        result = compare_images(before, after, diff_path)
        assert result.diff_pixels == 10000
        assert result.diff_image_path is None

    def test_single_pixel_rounds_to_identical(self) -> None:
        """Test that one changed pixel in a million reports as 0.000% and identical."""
        before = Image.new("RGB", (1000, 1000), color="white")
        after = before.copy()
        after.putpixel((500, 500), (0, 0, 0))
        result = compare_image_data(before, after)
        outcome = ViewportOutcome(viewport=VIEWPORTS["desktop"], result=result)

        assert result.diff_pixels == 1
        assert result.formatted_percentage == "0.000"
        assert classify(outcome) == ViewportStatus.IDENTICAL

    def test_sensitivity_changes_result(self) -> None:
        """Test that a near-identical colour only counts at strict sensitivity."""
        before = Image.new("RGB", (10, 10), color=(200, 200, 200))
        after = Image.new("RGB", (10, 10), color=(196, 196, 196))
        assert compare_image_data(before, after, sensitivity=0.1).diff_pixels == 0
        assert compare_image_data(before, after, sensitivity=0.0).diff_pixels == 100


class TestViewportOutcome:
    """Tests for ViewportOutcome slots."""

    def test_requires_result_or_error(self) -> None:
        with pytest.raises(ValueError):
            ViewportOutcome(viewport=VIEWPORTS["mobile"])

    def test_rejects_both(self) -> None:
        with pytest.raises(ValueError):
            ViewportOutcome(viewport=VIEWPORTS["mobile"], result=_result(0, 0.0), error="boom")

    def test_error_slot_reports_sentinel(self) -> None:
        outcome = ViewportOutcome(viewport=VIEWPORTS["mobile"], error="timeout")
        assert outcome.result is None
        assert outcome.diff_percentage == SENTINEL


class TestClassify:
    """Tests for classify function."""

    @pytest.mark.parametrize(
        ("pixels", "percentage", "expected"),
        [
            (0, 0.0, ViewportStatus.IDENTICAL),
            (1, 0.0, ViewportStatus.IDENTICAL),
            (1, 0.001, ViewportStatus.MINOR),
            (5, 0.05, ViewportStatus.MINOR),
            (10, 0.1, ViewportStatus.MINOR),
            (11, 0.11, ViewportStatus.SIGNIFICANT),
        ],
    )
    def test_thresholds(self, pixels: int, percentage: float, expected: ViewportStatus) -> None:
        outcome = ViewportOutcome(viewport=VIEWPORTS["laptop"], result=_result(pixels, percentage))
        assert classify(outcome, threshold=0.1) == expected

    def test_size_mismatch_overrides(self) -> None:
        outcome = ViewportOutcome(
            viewport=VIEWPORTS["laptop"],
            result=_result(SENTINEL, SENTINEL, mismatch=True),
        )
        assert classify(outcome) == ViewportStatus.SIZE_MISMATCH

    def test_failed_capture(self) -> None:
        outcome = ViewportOutcome(viewport=VIEWPORTS["laptop"], error="navigation failed")
        assert classify(outcome) == ViewportStatus.FAILED

    def test_custom_threshold(self) -> None:
        outcome = ViewportOutcome(viewport=VIEWPORTS["laptop"], result=_result(50, 0.5))
        assert classify(outcome, threshold=1.0) == ViewportStatus.MINOR
