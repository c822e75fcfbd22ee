"""
Unit Tests for SVG Preview
==========================

Tests for rendering quantized grids as SVG markup.
"""

import xml.etree.ElementTree as ET

import pytest

from canvas_art.core.palette import PALETTE
from canvas_art.core.rendering.svg_preview import SVGPreviewError, SVGPreviewRenderer, grid_to_svg
from canvas_art.models.schemas import Grid

SVG_NS = "{http://www.w3.org/2000/svg}"


def parse(svg: str) -> ET.Element:
    return ET.fromstring(svg)


def cell_rects(root: ET.Element):
    return [rect for rect in root.iter(f"{SVG_NS}rect") if rect.get("id") != "backdrop"]


class TestSVGPreviewRenderer:
    """Test SVG preview rendering."""

    def test_document_dimensions(self, small_grid):
        root = parse(SVGPreviewRenderer(cell_size=10).render(small_grid))
        assert root.tag == f"{SVG_NS}svg"
        assert root.get("width") == "30"
        assert root.get("height") == "20"
        assert root.get("viewBox") == "0 0 30 20"

    def test_backdrop_style_skips_background_cells(self, small_grid):
        root = parse(SVGPreviewRenderer(cell_size=10, style="backdrop").render(small_grid))

        backdrop = root.find(f"{SVG_NS}rect[@id='backdrop']")
        assert backdrop is not None
        assert backdrop.get("fill") == "#000000"

        rects = cell_rects(root)
        assert len(rects) == 4
        positions = {(r.get("x"), r.get("y")): r.get("fill") for r in rects}
        assert positions == {
            ("10", "0"): PALETTE[1].hex,
            ("20", "0"): PALETTE[2].hex,
            ("0", "10"): PALETTE[1].hex,
            ("20", "10"): PALETTE[1].hex,
        }

    def test_explicit_style_draws_every_cell(self, small_grid):
        root = parse(SVGPreviewRenderer(cell_size=4, style="explicit").render(small_grid))

        assert root.find(f"{SVG_NS}rect[@id='backdrop']") is None
        rects = cell_rects(root)
        assert len(rects) == 6
        first = rects[0]
        assert (first.get("x"), first.get("y"), first.get("fill")) == ("0", "0", "#000000")
        assert all(r.get("width") == "4" and r.get("height") == "4" for r in rects)

    def test_row_major_placement(self, sample_grid):
        root = parse(SVGPreviewRenderer(cell_size=10).render(sample_grid))
        positions = {(r.get("x"), r.get("y")): r.get("fill") for r in cell_rects(root)}

        assert positions[("0", "0")] == PALETTE[11].hex
        assert positions[("470", "310")] == PALETTE[5].hex
        assert positions[("50", "100")] == PALETTE[1].hex
        assert len(positions) == 102

    def test_blank_grid_has_only_backdrop(self):
        root = parse(SVGPreviewRenderer().render(Grid.blank(32, 48)))
        assert cell_rects(root) == []

    def test_unknown_style(self):
        with pytest.raises(SVGPreviewError, match="Unknown preview style"):
            SVGPreviewRenderer(style="dithered")

    def test_grid_larger_than_palette(self):
        grid = Grid.from_rows([[0, 1]], palette_size=20)
        with pytest.raises(SVGPreviewError):
            SVGPreviewRenderer().render(grid)


class TestGridToSvg:
    """Test the settings-driven helper."""

    def test_uses_configured_cell_size(self, small_grid, test_settings):
        test_settings.preview_cell_size = 7
        root = parse(grid_to_svg(small_grid))
        assert root.get("width") == "21"

    def test_arguments_override_settings(self, small_grid):
        root = parse(grid_to_svg(small_grid, cell_size=2, style="explicit"))
        assert root.get("height") == "4"
        assert len(cell_rects(root)) == 6
