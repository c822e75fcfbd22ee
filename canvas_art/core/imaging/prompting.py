"""
Prompt Builder
==============

Wraps a user prompt in pixel-art instructions restricted to the palette.
"""

from canvas_art.core.palette import PALETTE, Palette

_COLOR_NAMES = {
    "sfGFP": "Bright green",
    "mRFP1": "Dark red/maroon",
    "mKO2": "Golden orange",
    "Venus": "Lime/yellow-green",
    "Azurite": "Blue",
    "mClover3": "Forest green",
    "mJuniper": "Teal",
    "mTurquoise2": "Cyan",
    "Electra2": "Royal blue",
    "mWasabi": "Emerald",
    "mScarlet_I": "Coral red",
}


def build_color_guide(palette: Palette = PALETTE) -> str:
    lines = ["ONLY use these exact colors (fluorescent bacteria palette):"]
    for index in palette.paint_indices():
        entry = palette[index]
        label = _COLOR_NAMES.get(entry.name, entry.name)
        lines.append(f"- {label} ({entry.hex}) - {entry.name}")
    lines.append("")
    lines.append("NO white, NO gray, NO pink, NO purple. Only the colors listed above.")
    return "\n".join(lines)


def build_short_prompt(prompt: str) -> str:
    """Condensed prompt for URL-addressed generators."""
    return (
        f"pixel art sprite of {prompt}, pure black background, no border, "
        "flat saturated green red orange blue teal colors, 8-bit style"
    )


def build_art_prompt(prompt: str, palette: Palette = PALETTE) -> str:
    """Prompt sent to the image generator for ``prompt``."""
    background = palette.background.hex
    return (
        f"Pixel art sprite of: {prompt}\n\n"
        "CRITICAL REQUIREMENTS:\n"
        f"- Pure BLACK background ({background}) - this is essential\n"
        "- NO frame, NO border, NO outline around the edges\n"
        "- Subject only, floating on black void\n"
        "- Use ONLY the fluorescent colors listed below - no other colors\n"
        "- Simple iconic design, like a 16x16 game sprite\n"
        "- Flat colors, no gradients, no shading, no anti-aliasing\n\n"
        f"{build_color_guide(palette)}\n\n"
        "Style: Retro 8-bit pixel art, chunky pixels, minimal detail, "
        "bold saturated colors on pure black"
    )
