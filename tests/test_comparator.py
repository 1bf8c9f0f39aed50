"""Tests for screenshot pixel comparison."""

from pathlib import Path

import pytest
from PIL import Image

from shotdiff.runner.comparator import ANTIALIAS_TOLERANCE, compare_images, diff_filename_for

from conftest import create_png


class TestDiffFilenameFor:

    def test_appends_suffix(self):
        assert diff_filename_for("/out/reference/about.png") == Path("/out/reference/about-diff.png")

    def test_homepage(self):
        assert diff_filename_for("ref/_homepage.png").name == "_homepage-diff.png"


class TestCompareImages:

    def test_identical_images(self, tmp_path):
        a = create_png(tmp_path / "a.png")
        b = create_png(tmp_path / "reference" / "a.png")

        result = compare_images(a, b, threshold=0)

        assert result.mismatch_percentage == 0
        assert result.is_same_dimensions
        assert result.diff_bounds is None
        assert result.passed
        assert Path(result.diff_filename) == tmp_path / "reference" / "a-diff.png"
        assert Path(result.diff_filename).exists()

    def test_completely_different(self, tmp_path):
        a = create_png(tmp_path / "a.png", color=(255, 255, 255))
        b = create_png(tmp_path / "b.png", color=(0, 0, 0))

        result = compare_images(a, b, tmp_path / "diff.png", threshold=5)

        assert result.mismatch_percentage == 100
        assert not result.passed
        assert result.diff_bounds.model_dump() == {"left": 0, "top": 0, "right": 20, "bottom": 10}

    def test_partial_difference_and_bounds(self, tmp_path):
        a = create_png(tmp_path / "a.png", size=(10, 10))
        img = Image.new("RGB", (10, 10), (255, 255, 255))
        for x in range(2, 4):
            for y in range(5, 10):
                img.putpixel((x, y), (255, 0, 0))
        b = tmp_path / "b.png"
        img.save(b)

        result = compare_images(a, b, tmp_path / "diff.png", threshold=5)

        assert result.mismatch_percentage == 10.0
        assert not result.passed
        assert result.diff_bounds.left == 2
        assert result.diff_bounds.top == 5
        assert result.diff_bounds.right == 4
        assert result.diff_bounds.bottom == 10

    def test_small_deltas_ignored(self, tmp_path):
        a = create_png(tmp_path / "a.png", color=(100, 100, 100))
        shade = 100 + ANTIALIAS_TOLERANCE - 1
        b = create_png(tmp_path / "b.png", color=(shade, shade, shade))

        result = compare_images(a, b, tmp_path / "diff.png")

        assert result.mismatch_percentage == 0

    def test_different_sizes_are_scaled(self, tmp_path):
        a = create_png(tmp_path / "a.png", size=(20, 10))
        b = create_png(tmp_path / "b.png", size=(40, 30))

        result = compare_images(a, b, tmp_path / "diff.png")

        assert not result.is_same_dimensions
        assert result.dimension_difference.width == -20
        assert result.dimension_difference.height == -20
        assert result.mismatch_percentage == 0
        with Image.open(result.diff_filename) as diff:
            assert diff.size == (20, 10)

    def test_diff_image_highlights_changes(self, tmp_path):
        a = create_png(tmp_path / "a.png", size=(4, 4), color=(255, 255, 255))
        b = create_png(tmp_path / "b.png", size=(4, 4), color=(0, 0, 0))

        result = compare_images(a, b, tmp_path / "diff.png")

        with Image.open(result.diff_filename) as diff:
            assert diff.convert("RGB").getpixel((0, 0)) == (255, 0, 255)

    def test_rgba_input(self, tmp_path):
        a = tmp_path / "a.png"
        Image.new("RGBA", (5, 5), (10, 20, 30, 255)).save(a)
        b = create_png(tmp_path / "b.png", size=(5, 5), color=(10, 20, 30))

        assert compare_images(a, b, tmp_path / "diff.png").mismatch_percentage == 0

    def test_missing_file_raises(self, tmp_path):
        a = create_png(tmp_path / "a.png")
        with pytest.raises(OSError):
            compare_images(a, tmp_path / "missing.png", tmp_path / "diff.png")
