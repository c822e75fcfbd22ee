"""
Rendering
=========

SVG preview rendering for quantized grids.
"""
