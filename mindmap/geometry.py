"""Shapes shared by the canvas renderer and the image exporter."""

from __future__ import annotations

import textwrap
from typing import List, Tuple

from mindmap.config import BRANCH_RADIUS, LABEL_OFFSET, LABEL_WRAP_CHARS, LEAF_RADIUS, ROOT_RADIUS

Point = Tuple[float, float]


def node_radius(depth: int) -> float:
    if depth == 0:
        return ROOT_RADIUS
    if depth == 1:
        return BRANCH_RADIUS
    return LEAF_RADIUS


def link_width(depth: int) -> float:
    return max(1.5, 3.5 - depth)


def diagonal_controls(source: Point, target: Point) -> Tuple[Point, Point]:
    """Control points of the horizontal S-curve joining two nodes."""
    mid = (source[0] + target[0]) / 2
    return (mid, source[1]), (mid, target[1])


def sample_cubic(start: Point, cp1: Point, cp2: Point, end: Point, steps: int = 24) -> List[Point]:
    if steps < 2:
        steps = 2
    points: List[Point] = []
    for i in range(steps + 1):
        t = i / steps
        mt = 1.0 - t
        x = (mt ** 3) * start[0] + 3 * (mt ** 2) * t * cp1[0] + 3 * mt * (t ** 2) * cp2[0] + (t ** 3) * end[0]
        y = (mt ** 3) * start[1] + 3 * (mt ** 2) * t * cp1[1] + 3 * mt * (t ** 2) * cp2[1] + (t ** 3) * end[1]
        points.append((x, y))
    return points


def link_points(source: Point, target: Point, steps: int = 24) -> List[Point]:
    cp1, cp2 = diagonal_controls(source, target)
    return sample_cubic(source, cp1, cp2, target, steps)


def wrap_label(text: str) -> List[str]:
    """Short labels stay on one line; longer ones wrap at word boundaries."""
    words = text.split()
    if not words:
        return [text]
    if len(text) < 20 and len(words) < 4:
        return [text]
    return textwrap.wrap(text, width=LABEL_WRAP_CHARS) or [text]


def label_anchor(has_children: bool) -> Tuple[float, str]:
    """Horizontal offset from the node centre and the text anchor side."""
    if has_children:
        return -LABEL_OFFSET, "e"
    return LABEL_OFFSET, "w"
