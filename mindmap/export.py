"""Raster export of the current frame."""

from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from mindmap.config import EXPORT_PADDING
from mindmap.geometry import label_anchor, link_points, link_width, node_radius, wrap_label
from mindmap.layout import Frame
from mindmap.logging import get_logger
from mindmap.palettes import Theme
from mindmap.view_state import PinBoard

logger = get_logger(__name__)

Bounds = Tuple[float, float, float, float]

# rough glyph metrics for sizing the label area without a font backend
_CHAR_WIDTH = 7.0
_LINE_HEIGHT = 15.0


def default_export_name(today: Optional[dt.date] = None) -> str:
    today = today or dt.date.today()
    return f"mindmap-{today.strftime('%Y%m%d')}.png"


def scene_bounds(frame: Optional[Frame]) -> Optional[Bounds]:
    """World-space box around visible nodes and labels, or None if empty."""
    if frame is None:
        return None
    nodes = frame.visible_nodes()
    if not nodes:
        return None
    x0 = y0 = float("inf")
    x1 = y1 = float("-inf")
    for node in nodes:
        r = node_radius(node.depth)
        lines = wrap_label(node.name)
        text_w = max(len(line) for line in lines) * _CHAR_WIDTH
        text_h = len(lines) * _LINE_HEIGHT
        offset, anchor = label_anchor(node.has_children)
        if anchor == "e":
            left, right = node.x + offset - text_w, node.x + r
        else:
            left, right = node.x - r, node.x + offset + text_w
        x0 = min(x0, left)
        x1 = max(x1, right)
        y0 = min(y0, node.y - max(r, text_h / 2))
        y1 = max(y1, node.y + max(r, text_h / 2))
    if x1 - x0 <= 0 or y1 - y0 <= 0:
        return None
    return x0, y0, x1, y1


def _load_font(size: int):
    for candidate in ("Inter", "Helvetica", "Arial", "DejaVuSans"):
        try:
            return ImageFont.truetype(candidate, size=size)
        except OSError:
            continue
    return ImageFont.load_default()


def render_image(frame: Frame, theme: Theme, pins: Optional[PinBoard] = None, padding: int = EXPORT_PADDING):
    """Draw `frame` onto a new Pillow image; None when there is nothing to draw."""
    bounds = scene_bounds(frame)
    if bounds is None:
        return None
    bx0, by0, bx1, by1 = bounds
    width = int(round(bx1 - bx0 + padding * 2))
    height = int(round(by1 - by0 + padding * 2))
    ox = padding - bx0
    oy = padding - by0

    image = Image.new("RGB", (width, height), ImageColor.getrgb(theme.background))
    draw = ImageDraw.Draw(image)

    for link in frame.links():
        source = frame.nodes[link.source_id]
        target = frame.nodes[link.target_id]
        points = [(x + ox, y + oy) for x, y in link_points(source.position, target.position)]
        draw.line(points, fill=target.color, width=max(1, int(round(link_width(target.depth)))))

    fonts = {0: _load_font(16), 1: _load_font(14), 2: _load_font(12)}
    for node in frame.visible_nodes():
        cx, cy = node.x + ox, node.y + oy
        r = node_radius(node.depth)
        box = [cx - r, cy - r, cx + r, cy + r]
        if node.is_collapsed:
            draw.ellipse(box, fill=theme.background, outline=node.color, width=3)
        else:
            draw.ellipse(box, fill=node.color, outline=theme.background, width=2)
        if pins is not None and pins.has_pin(node.id):
            draw.polygon([(cx - 5, cy - r - 14), (cx + 5, cy - r - 14), (cx, cy - r - 4)], fill=theme.pin)

        font = fonts[min(node.depth, 2)]
        offset, anchor = label_anchor(node.has_children)
        lines = wrap_label(node.name)
        top = cy - len(lines) * _LINE_HEIGHT / 2
        for i, line in enumerate(lines):
            tx = cx + offset
            if anchor == "e":
                tx -= draw.textlength(line, font=font)
            draw.text((tx, top + i * _LINE_HEIGHT), line, fill=theme.text, font=font)
    return image


def export_png(
    frame: Optional[Frame],
    theme: Theme,
    path: Path,
    pins: Optional[PinBoard] = None,
    padding: int = EXPORT_PADDING,
) -> Optional[Path]:
    """Write the frame as PNG. Returns the path, or None if nothing was written."""
    image = render_image(frame, theme, pins, padding) if frame is not None else None
    if image is None:
        logger.warning("Map is empty, nothing to export")
        return None
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        image.save(path, format="PNG")
    except OSError as exc:
        logger.error("Export to %s failed: %s", path, exc)
        return None
    logger.info("Exported %dx%d image to %s", image.width, image.height, path)
    return path
