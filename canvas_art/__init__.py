"""
Canvas Art Publisher
====================

Turns a text prompt into pixel art on a fixed color palette and publishes it
on a collaborative pixel-canvas website through browser automation.

This package provides:
- Image acquisition from prompt-to-image generators
- Grid quantization onto the canvas palette
- SVG previews of quantized grids
- Canvas replay and publishing with Playwright
- FastAPI REST endpoints with background publishing and status polling
"""

__version__ = "1.0.0"
__author__ = "Canvas Art Team"
