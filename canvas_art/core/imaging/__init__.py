"""
Imaging
=======

Prompt-to-image acquisition and grid quantization.
"""
