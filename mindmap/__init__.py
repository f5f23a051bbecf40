"""Outline text to interactive mind map."""

from mindmap.diagram import Diagram
from mindmap.editing import EditAction, EditRequest, apply_edit
from mindmap.organizer import organize
from mindmap.parser import OutlineNode, derive_id, parse_outline
from mindmap.reconcile import ScenePatch, reconcile
from mindmap.view_state import Camera, Pin, PinBoard, ViewState

__all__ = [
    "Camera",
    "Diagram",
    "EditAction",
    "EditRequest",
    "OutlineNode",
    "Pin",
    "PinBoard",
    "ScenePatch",
    "ViewState",
    "apply_edit",
    "derive_id",
    "organize",
    "parse_outline",
    "reconcile",
]

__version__ = "0.1.0"
