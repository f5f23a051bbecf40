"""Session state that outlives any single parse.

Everything here is keyed by derived node id and is never owned by a tree.
Ids that disappear after an edit leave their entries inert until the id
reappears; nothing is purged automatically.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Set, Tuple

from mindmap.config import ZOOM_MAX, ZOOM_MIN

Point = Tuple[float, float]


@dataclass(frozen=True)
class Camera:
    translate_x: float = 0.0
    translate_y: float = 0.0
    scale: float = 1.0

    def to_screen(self, x: float, y: float) -> Point:
        return self.translate_x + x * self.scale, self.translate_y + y * self.scale

    def to_world(self, x: float, y: float) -> Point:
        if self.scale == 0:
            return x, y
        return (x - self.translate_x) / self.scale, (y - self.translate_y) / self.scale

    def as_tuple(self) -> Tuple[float, float, float]:
        return self.translate_x, self.translate_y, self.scale

    def zoomed(self, factor: float, origin: Point) -> "Camera":
        """Scale by `factor` (clamped) keeping screen point `origin` fixed."""
        new_scale = max(ZOOM_MIN, min(ZOOM_MAX, self.scale * factor))
        ratio = new_scale / self.scale if self.scale else 1.0
        ox, oy = origin
        return Camera(
            ox - ratio * (ox - self.translate_x),
            oy - ratio * (oy - self.translate_y),
            new_scale,
        )


def default_camera(width: float, height: float) -> Camera:
    """Root a quarter of the way across the viewport, vertically centred."""
    return Camera(width / 4, height / 2, 1.0)


def focus_camera(x: float, y: float, width: float, height: float, scale: float) -> Camera:
    """Camera that puts world point (x, y) at the centre of the viewport."""
    return Camera(width / 2 - x * scale, height / 2 - y * scale, scale)


@dataclass
class ViewState:
    position_overrides: Dict[str, Point] = field(default_factory=dict)
    collapsed_ids: Set[str] = field(default_factory=set)
    camera: Camera = field(default_factory=Camera)

    def is_collapsed(self, node_id: str) -> bool:
        return node_id in self.collapsed_ids

    def toggle_collapsed(self, node_id: str) -> bool:
        """Flip the collapse flag of `node_id`; returns the new state."""
        if node_id in self.collapsed_ids:
            self.collapsed_ids.discard(node_id)
            return False
        self.collapsed_ids.add(node_id)
        return True

    def set_override(self, node_id: str, x: float, y: float) -> None:
        self.position_overrides[node_id] = (x, y)

    def clear_overrides(self) -> None:
        self.position_overrides.clear()

    def copy(self) -> "ViewState":
        return replace(
            self,
            position_overrides=dict(self.position_overrides),
            collapsed_ids=set(self.collapsed_ids),
        )


@dataclass(frozen=True)
class Pin:
    id: str
    node_id: str
    label: str


class PinBoard:
    """Ordered navigation pins. A pin's node id may dangle after an edit."""

    def __init__(self) -> None:
        self._pins: List[Pin] = []

    def add(self, node_id: str, label: str) -> Pin:
        pin = Pin(str(uuid.uuid4()), node_id, label)
        self._pins.append(pin)
        return pin

    def remove(self, node_id: str) -> int:
        """Drop every pin on `node_id`; returns how many were removed."""
        before = len(self._pins)
        self._pins = [pin for pin in self._pins if pin.node_id != node_id]
        return before - len(self._pins)

    def list(self) -> List[Pin]:
        return list(self._pins)

    def for_node(self, node_id: str) -> Optional[Pin]:
        return next((pin for pin in self._pins if pin.node_id == node_id), None)

    def has_pin(self, node_id: str) -> bool:
        return self.for_node(node_id) is not None

    def __len__(self) -> int:
        return len(self._pins)
