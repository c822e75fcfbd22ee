"""
Core Business Logic
===================

Core functionality for turning prompts into published canvas art.

Components:
- palette: Canvas colors and nearest-color classification
- imaging: Image acquisition and grid quantization
- rendering: SVG previews
- replay: Browser automation against the canvas site
- jobs: Generation job lifecycle and storage
"""
