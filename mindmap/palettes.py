from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from mindmap.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Palette:
    key: str
    name: str
    colors: Tuple[str, ...]


@dataclass(frozen=True)
class Theme:
    name: str
    background: str
    root_color: str
    text: str
    pin: str = "#EF4444"


COLOR_PALETTES: Dict[str, Palette] = {
    "default": Palette(
        "default",
        "Default",
        (
            "#FF7F50",
            "#4ECDC4",
            "#FF6B6B",
            "#FFE66D",
            "#1A535C",
            "#F7FFF7",
            "#A8DADC",
            "#457B9D",
            "#E63946",
            "#2A9D8F",
        ),
    ),
    "ocean": Palette(
        "ocean",
        "Ocean Breeze",
        ("#00B4D8", "#90E0EF", "#0077B6", "#03045E", "#48CAE4", "#ADE8F4", "#023E8A", "#CAF0F8"),
    ),
    "forest": Palette(
        "forest",
        "Forest Walk",
        ("#606C38", "#283618", "#FEFAE0", "#DDA15E", "#BC6C25", "#2A9D8F", "#E9C46A"),
    ),
    "sunset": Palette(
        "sunset",
        "Sunset Blvd",
        ("#F72585", "#7209B7", "#3A0CA3", "#4361EE", "#4CC9F0", "#F72585"),
    ),
    "monochrome": Palette(
        "monochrome",
        "Slate Mono",
        ("#64748B", "#94A3B8", "#475569", "#CBD5E1", "#334155"),
    ),
}

DEFAULT_PALETTE = COLOR_PALETTES["default"]

THEMES: Dict[str, Theme] = {
    "light": Theme(
        name="light",
        background="#E0E5EC",
        root_color="#4A5568",
        text="#475569",
    ),
    "dark": Theme(
        name="dark",
        background="#292929",
        root_color="#E0E0E0",
        text="#E0E0E0",
    ),
}


def get_palette(key: str) -> Palette:
    palette = COLOR_PALETTES.get(key)
    if palette is None:
        logger.warning("Unknown palette %r, using %r", key, DEFAULT_PALETTE.key)
        return DEFAULT_PALETTE
    return palette


def get_theme(name: str) -> Theme:
    return THEMES.get(name, THEMES["dark"])
