"""Pointer gestures -> diagram changes or text edit requests.

A press on a node becomes a drag once the pointer has travelled more than
the threshold; otherwise the release is a click, which toggles collapse on
nodes with children. Structural menu actions never touch the tree: they are
handed to the text collaborator as `EditRequest`s.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from mindmap.config import DRAG_THRESHOLD, ZOOM_IN_STEP, ZOOM_OUT_STEP
from mindmap.diagram import Diagram
from mindmap.editing import EditAction, EditRequest
from mindmap.view_state import Pin


class Gesture(Enum):
    CLICK = "click"
    DRAG = "drag"


class ContextAction(str, Enum):
    RENAME = "rename"
    ADD_CHILD = "addChild"
    TOGGLE_COLLAPSE = "toggleCollapse"
    ADD_PIN = "addPin"
    REMOVE_PIN = "removePin"
    DELETE = "delete"
    ZOOM_IN = "zoomIn"
    ZOOM_OUT = "zoomOut"
    RECENTER = "recenter"


VIEW_ACTIONS = (ContextAction.ZOOM_IN, ContextAction.ZOOM_OUT, ContextAction.RECENTER)

_EDIT_ACTIONS = {
    ContextAction.RENAME: EditAction.RENAME,
    ContextAction.ADD_CHILD: EditAction.ADD_CHILD,
    ContextAction.DELETE: EditAction.DELETE,
}


@dataclass
class _Press:
    node_id: str
    last_x: float
    last_y: float
    travelled: float = 0.0
    pending_x: float = 0.0
    pending_y: float = 0.0
    dragging: bool = False


class InteractionController:
    def __init__(
        self,
        diagram: Diagram,
        on_edit: Callable[[EditRequest], None],
        drag_threshold: float = DRAG_THRESHOLD,
    ) -> None:
        self.diagram = diagram
        self.on_edit = on_edit
        self.drag_threshold = drag_threshold
        self._press: Optional[_Press] = None

    @property
    def dragging(self) -> bool:
        return self._press is not None and self._press.dragging

    def pointer_down(self, node_id: str, x: float, y: float) -> None:
        self._press = _Press(node_id, x, y)

    def pointer_move(self, x: float, y: float) -> List[str]:
        """Track movement; once it is a drag, return the ids just moved."""
        press = self._press
        if press is None:
            return []
        scale = self.diagram.current_camera().scale or 1.0
        dx = (x - press.last_x) / scale
        dy = (y - press.last_y) / scale
        press.travelled += math.hypot(x - press.last_x, y - press.last_y)
        press.last_x, press.last_y = x, y
        press.pending_x += dx
        press.pending_y += dy
        if not press.dragging and press.travelled <= self.drag_threshold:
            return []
        press.dragging = True
        moved = self.diagram.move_subtree(press.node_id, press.pending_x, press.pending_y)
        press.pending_x = press.pending_y = 0.0
        return moved

    def pointer_up(self, x: float, y: float) -> Optional[Gesture]:
        press = self._press
        if press is None:
            return None
        self._press = None
        if press.dragging:
            return Gesture.DRAG
        self.diagram.toggle_collapse(press.node_id)
        return Gesture.CLICK

    # ---------- Context menu ----------
    def context_actions(self, node_id: Optional[str] = None) -> List[ContextAction]:
        frame = self.diagram.frame
        node = frame.get(node_id) if frame is not None and node_id is not None else None
        if node is None:
            return list(VIEW_ACTIONS)
        actions = [ContextAction.RENAME, ContextAction.ADD_CHILD]
        if node.has_children:
            actions.append(ContextAction.TOGGLE_COLLAPSE)
        if self.diagram.pins.has_pin(node.id):
            actions.append(ContextAction.REMOVE_PIN)
        else:
            actions.append(ContextAction.ADD_PIN)
        actions.append(ContextAction.DELETE)
        actions.extend(VIEW_ACTIONS)
        return actions

    def activate(
        self,
        action: ContextAction,
        node_id: Optional[str] = None,
        value: Optional[str] = None,
    ) -> Optional[EditRequest]:
        """Carry out a context menu choice.

        Rename / add child / delete are emitted through `on_edit` (and
        returned); everything else acts on the diagram directly.
        """
        if action is ContextAction.ZOOM_IN:
            self.diagram.zoom_by(ZOOM_IN_STEP)
            return None
        if action is ContextAction.ZOOM_OUT:
            self.diagram.zoom_by(ZOOM_OUT_STEP)
            return None
        if action is ContextAction.RECENTER:
            self.diagram.recenter()
            return None

        frame = self.diagram.frame
        node = frame.get(node_id) if frame is not None and node_id is not None else None
        if node is None:
            return None
        if action is ContextAction.TOGGLE_COLLAPSE:
            self.diagram.toggle_collapse(node.id)
            return None
        if action is ContextAction.ADD_PIN:
            self.diagram.add_pin(node.id, value or node.name)
            return None
        if action is ContextAction.REMOVE_PIN:
            self.diagram.remove_pin(node.id)
            return None

        request = EditRequest(_EDIT_ACTIONS[action], node.line_index, value)
        self.on_edit(request)
        return request

    def navigate_to_pin(self, pin: Pin) -> bool:
        return self.diagram.navigate_to_pin(pin)
