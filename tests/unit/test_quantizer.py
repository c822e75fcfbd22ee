"""
Unit Tests for Grid Quantizer
=============================

Tests for downsampling rasters onto the canvas grid and palette.
"""

import io

import pytest
from PIL import Image, ImageDraw

from canvas_art.core.imaging.acquisition import InvalidImageError
from canvas_art.core.imaging.quantizer import (
    DarkBackgroundPolicy,
    LightBackgroundPolicy,
    get_background_policy,
    image_to_grid,
    quantize_image,
)
from canvas_art.core.palette import PALETTE

from tests.utils.helpers import solid_png

GREEN = PALETTE[1].rgb
BLUE = PALETTE[5].rgb


def raster_with_block(size, background, color, box) -> Image.Image:
    image = Image.new("RGB", size, background)
    ImageDraw.Draw(image).rectangle(box, fill=color)
    return image


class TestBackgroundPolicies:
    """Test pixel background classification."""

    def test_dark_policy_threshold(self):
        policy = DarkBackgroundPolicy()
        assert policy.is_background((0, 0, 0))
        assert policy.is_background((29, 29, 29))
        assert not policy.is_background((30, 30, 30))

    def test_dark_policy_never_returns_background_for_bright_pixels(self):
        policy = DarkBackgroundPolicy()
        # Dim gray above the threshold still snaps to a paint color
        assert policy.classify((40, 40, 40)) != 0

    def test_light_policy_threshold(self):
        policy = LightBackgroundPolicy()
        assert policy.is_background((255, 255, 255))
        assert policy.is_background((241, 241, 241))
        assert not policy.is_background((240, 255, 255))

    def test_light_policy_snaps_dark_pixels_to_background(self):
        assert LightBackgroundPolicy().classify((10, 10, 10)) == 0

    def test_registry(self):
        assert isinstance(get_background_policy("dark"), DarkBackgroundPolicy)
        assert isinstance(get_background_policy("light"), LightBackgroundPolicy)

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match="Unknown background policy"):
            get_background_policy("sepia")


class TestQuantizeImage:
    """Test raster to grid conversion."""

    def test_all_black_image_is_blank(self, black_png):
        grid = image_to_grid(black_png)
        assert (grid.rows, grid.cols) == (32, 48)
        assert grid.is_blank()
        assert grid.color_counts() == {}

    def test_dimensions_follow_arguments(self, black_png):
        grid = image_to_grid(black_png, rows=8, cols=12)
        assert (grid.rows, grid.cols) == (8, 12)

    def test_grid_sized_raster_maps_cell_for_cell(self):
        image = raster_with_block((48, 32), (0, 0, 0), GREEN, (5, 10, 14, 19))
        grid = quantize_image(image, 32, 48, DarkBackgroundPolicy())

        for y in range(32):
            for x in range(48):
                expected = 1 if 5 <= x <= 14 and 10 <= y <= 19 else 0
                assert grid.cell(y, x) == expected, (y, x)
        assert grid.color_counts() == {1: 100}

    def test_scaled_raster_interior_cells(self):
        # 10x scale; block covers cells x 5..14, y 10..19
        image = raster_with_block((480, 320), (0, 0, 0), BLUE, (50, 100, 149, 199))
        grid = image_to_grid(image)

        for y in range(12, 18):
            for x in range(7, 13):
                assert grid.cell(y, x) == 5
        assert grid.cell(0, 0) == 0
        assert grid.cell(31, 47) == 0
        assert grid.cell(15, 30) == 0

    def test_light_policy_on_white_background(self):
        image = raster_with_block((48, 32), (255, 255, 255), GREEN, (0, 0, 3, 3))
        grid = quantize_image(image, 32, 48, LightBackgroundPolicy())

        assert grid.cell(0, 0) == 1
        assert grid.cell(3, 3) == 1
        assert grid.cell(10, 10) == 0
        assert grid.color_counts() == {1: 16}

    def test_policy_from_settings(self, test_settings):
        test_settings.background_policy = "light"
        grid = image_to_grid(solid_png((48, 32), (255, 255, 255)))
        assert grid.is_blank()

    def test_deterministic(self):
        image = raster_with_block((300, 200), (0, 0, 0), GREEN, (40, 40, 220, 150))
        assert image_to_grid(image) == image_to_grid(image)

    def test_accepts_encoded_bytes_and_rgba(self):
        image = Image.new("RGBA", (48, 32), (0, 0, 0, 255))
        output = io.BytesIO()
        image.save(output, format="PNG")
        assert image_to_grid(output.getvalue()).is_blank()

    def test_undecodable_bytes(self):
        with pytest.raises(InvalidImageError):
            image_to_grid(b"<html>rendering, try again</html>")
