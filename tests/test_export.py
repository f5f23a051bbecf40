"""Tests for PNG export."""

from __future__ import annotations

import datetime as dt
from pathlib import Path

from PIL import Image, ImageColor

from mindmap.config import EXPORT_PADDING
from mindmap.diagram import Diagram
from mindmap.export import default_export_name, export_png, scene_bounds
from mindmap.layout import Frame
from mindmap.palettes import THEMES


def test_export_writes_png(diagram: Diagram, tmp_path: Path) -> None:
    """The exported image covers the scene plus padding on the theme background."""

    diagram.set_text("# Root\n## A\n### A1\n## B")
    diagram.add_pin("root-a", "A")
    target = tmp_path / "out" / "map.png"

    written = export_png(diagram.frame, THEMES["light"], target, diagram.pins)

    assert written == target
    with Image.open(target) as image:
        assert image.format == "PNG"
        assert image.width > 2 * 260 + 2 * EXPORT_PADDING
        assert image.height > 2 * EXPORT_PADDING
        assert image.getpixel((0, 0)) == ImageColor.getrgb(THEMES["light"].background)


def test_export_empty_scene_is_reported_not_raised(tmp_path: Path, caplog) -> None:
    """No frame or no visible nodes means nothing is written."""

    target = tmp_path / "empty.png"

    assert export_png(None, THEMES["dark"], target) is None
    assert export_png(Frame(root_id="x"), THEMES["dark"], target) is None
    assert not target.exists()
    assert "nothing to export" in caplog.text


def test_export_write_failure_returns_none(diagram: Diagram, tmp_path: Path) -> None:
    """An unwritable target is logged and reported as None."""

    diagram.set_text("# Root")
    blocker = tmp_path / "file.txt"
    blocker.write_text("x", encoding="utf-8")

    assert export_png(diagram.frame, THEMES["dark"], blocker / "map.png") is None


def test_scene_bounds_include_labels(diagram: Diagram) -> None:
    """Leaf labels extend the box to the right of the node."""

    diagram.set_text("# Root\n## A long leaf label")
    x0, y0, x1, y1 = scene_bounds(diagram.frame)

    assert x0 < 0.0 < 260.0 < x1
    assert y0 < 0.0 < y1
    assert x1 > 260.0 + 18.0 + 7.0 * len("A long leaf label") - 1


def test_default_export_name() -> None:
    """Export files are named after the date."""

    assert default_export_name(dt.date(2024, 1, 2)) == "mindmap-20240102.png"
