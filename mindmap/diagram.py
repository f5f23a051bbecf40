"""The live diagram session.

`Diagram` is the single owner of everything that survives a re-parse: the
view state (drag overrides, collapsed ids, camera), the pins, and the last
rendered frame. Each text change is parsed, reconciled against that state,
and the resulting patch is scheduled on the animator. All camera moves go
through `set_camera`, so the last request wins.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from mindmap.animation import Animator, Easing, ease_cubic_in_out, ease_cubic_out
from mindmap.config import (
    HIT_RADIUS,
    PIN_FOCUS_MS,
    PIN_FOCUS_SCALE,
    RESET_CAMERA_MS,
    TRANSITION_MS,
    ZOOM_MS,
)
from mindmap.layout import Frame, LayoutNode
from mindmap.logging import get_logger
from mindmap.palettes import DEFAULT_PALETTE, THEMES, Theme
from mindmap.parser import OutlineNode, parse_outline
from mindmap.reconcile import ScenePatch, reconcile
from mindmap.view_state import Camera, Pin, PinBoard, Point, ViewState, default_camera, focus_camera

logger = get_logger(__name__)

CAMERA_KEY = "camera"


def node_key(node_id: str) -> Tuple[str, str]:
    return ("node", node_id)


def link_key(node_id: str) -> Tuple[str, str]:
    return ("link", node_id)


class Diagram:
    def __init__(
        self,
        palette: Sequence[str] = DEFAULT_PALETTE.colors,
        theme: Theme = THEMES["dark"],
        viewport: Tuple[float, float] = (1280.0, 800.0),
        animator: Optional[Animator] = None,
        transition_ms: int = TRANSITION_MS,
    ) -> None:
        self.palette: List[str] = list(palette)
        self.theme = theme
        self.viewport = viewport
        self.animator = animator or Animator()
        self.transition_ms = transition_ms
        self.view_state = ViewState(camera=default_camera(*viewport))
        self.pins = PinBoard()
        self.text = ""
        self.tree: OutlineNode = parse_outline("")
        self.frame: Optional[Frame] = None
        self._retired: List[Tuple[str, str]] = []
        self._listeners: List[Callable[[Optional[ScenePatch]], None]] = []

    def add_listener(self, callback: Callable[[Optional[ScenePatch]], None]) -> None:
        """Call `callback` with each new patch, or None when only the camera or pins changed."""
        self._listeners.append(callback)

    def _notify(self, patch: Optional[ScenePatch] = None) -> None:
        for callback in self._listeners:
            callback(patch)

    # ---------- Rebuilds ----------
    def set_text(self, text: str) -> ScenePatch:
        self.text = text
        self.tree = parse_outline(text)
        return self.refresh()

    def refresh(self, reset: bool = False) -> ScenePatch:
        result = reconcile(
            self.frame,
            self.tree,
            self.view_state,
            self.palette,
            self.theme.root_color,
            reset=reset,
        )
        self.frame = result.frame
        self.view_state = result.view_state
        self._schedule(result.patch)
        self._notify(result.patch)
        return result.patch

    def reset_layout(self) -> ScenePatch:
        patch = self.refresh(reset=True)
        self.set_camera(default_camera(*self.viewport), RESET_CAMERA_MS)
        return patch

    def set_palette(self, colors: Sequence[str]) -> ScenePatch:
        self.palette = list(colors)
        return self.refresh()

    def set_theme(self, theme: Theme) -> ScenePatch:
        self.theme = theme
        return self.refresh()

    def resize(self, width: float, height: float) -> None:
        self.viewport = (width, height)

    def _schedule(self, patch: ScenePatch) -> None:
        duration = self.transition_ms
        for motion in patch.nodes.enter + patch.nodes.update:
            self.animator.start(node_key(motion.id), motion.start, motion.end, duration)
        for motion in patch.links.enter + patch.links.update:
            self.animator.start(link_key(motion.id), _flat(motion.start), _flat(motion.end), duration)
        for motion in patch.nodes.exit:
            key = node_key(motion.id)
            self.animator.start(key, motion.start, motion.end, duration, on_done=self._retire_callback(key))
        for motion in patch.links.exit:
            key = link_key(motion.id)
            self.animator.start(key, _flat(motion.start), _flat(motion.end), duration, on_done=self._retire_callback(key))

    def _retire_callback(self, key: Tuple[str, str]):
        def retire() -> None:
            self._retired.append(key)

        return retire

    def drain_retired(self) -> List[Tuple[str, str]]:
        """Keys whose exit animation finished since the last call."""
        retired, self._retired = self._retired, []
        return retired

    # ---------- Collapse ----------
    def toggle_collapse(self, node_id: str) -> bool:
        node = self.frame.get(node_id) if self.frame is not None else None
        if node is None or not node.has_children:
            return False
        collapsed = self.view_state.toggle_collapsed(node_id)
        self.refresh()
        logger.debug("%s %s", "Collapsed" if collapsed else "Expanded", node_id)
        return True

    # ---------- Drag ----------
    def move_subtree(self, node_id: str, dx: float, dy: float) -> List[str]:
        """Shift `node_id` and its descendants, recording overrides.

        Descendants hidden under a collapsed node move too, so expanding it
        later keeps them where they were relative to it. Returns the moved
        visible ids; callers redraw just those nodes and the links touching
        them instead of re-running the layout.
        """
        if self.frame is None or not self.frame.is_visible(node_id):
            return []
        moved: List[str] = []
        for nid in self.frame.subtree(node_id, visible_only=False):
            node = self.frame.nodes[nid]
            if not node.placed:
                continue
            if node.visible:
                self.animator.cancel(node_key(nid))
                self.animator.cancel(link_key(nid))
                moved.append(nid)
            node.x += dx
            node.y += dy
            self.view_state.set_override(nid, node.x, node.y)
        return moved

    # ---------- Camera ----------
    def current_camera(self) -> Camera:
        values = self.animator.value(CAMERA_KEY)
        if values is None:
            return self.view_state.camera
        return Camera(*values)

    def set_camera(self, camera: Camera, duration_ms: float = 0, easing: Easing = ease_cubic_in_out) -> None:
        if duration_ms > 0:
            self.animator.start(CAMERA_KEY, self.current_camera().as_tuple(), camera.as_tuple(), duration_ms, easing)
        else:
            self.animator.cancel(CAMERA_KEY)
        self.view_state.camera = camera
        self._notify()

    def pan_by(self, dx: float, dy: float) -> None:
        cam = self.current_camera()
        self.set_camera(Camera(cam.translate_x + dx, cam.translate_y + dy, cam.scale))

    def zoom_by(self, factor: float, origin: Optional[Point] = None, duration_ms: float = ZOOM_MS) -> None:
        if origin is None:
            origin = (self.viewport[0] / 2, self.viewport[1] / 2)
        self.set_camera(self.view_state.camera.zoomed(factor, origin), duration_ms)

    def recenter(self) -> None:
        self.set_camera(default_camera(*self.viewport), ZOOM_MS)

    def node_at(self, sx: float, sy: float) -> Optional[LayoutNode]:
        """Visible node under screen point (sx, sy), nearest first."""
        if self.frame is None:
            return None
        camera = self.current_camera()
        wx, wy = camera.to_world(sx, sy)
        reach = HIT_RADIUS / (camera.scale or 1.0)
        best: Optional[LayoutNode] = None
        best_dist = reach
        for node in self.frame.visible_nodes():
            dist = math.hypot(node.x - wx, node.y - wy)
            if dist <= best_dist:
                best, best_dist = node, dist
        return best

    # ---------- Pins ----------
    def add_pin(self, node_id: str, label: str) -> Pin:
        pin = self.pins.add(node_id, label)
        self._notify()
        return pin

    def remove_pin(self, node_id: str) -> int:
        removed = self.pins.remove(node_id)
        if removed:
            self._notify()
        return removed

    def list_pins(self) -> List[Pin]:
        return self.pins.list()

    def navigate_to_pin(self, pin: Pin) -> bool:
        """Glide the camera to the pinned node; False when it no longer exists."""
        target = self.frame.visible_ancestor(pin.node_id) if self.frame is not None else None
        if target is None:
            logger.warning("Pin %r points at missing node %r", pin.label, pin.node_id)
            return False
        camera = focus_camera(target.x, target.y, self.viewport[0], self.viewport[1], PIN_FOCUS_SCALE)
        self.set_camera(camera, PIN_FOCUS_MS, ease_cubic_out)
        return True

    # ---------- Queries ----------
    def positions(self) -> Dict[str, Point]:
        if self.frame is None:
            return {}
        return {node.id: node.position for node in self.frame.visible_nodes()}


def _flat(pair: Tuple[Point, Point]) -> Tuple[float, float, float, float]:
    (sx, sy), (tx, ty) = pair
    return sx, sy, tx, ty
