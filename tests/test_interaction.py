"""Tests for pointer gestures and the context menu."""

from __future__ import annotations

from typing import List

import pytest

from mindmap.diagram import Diagram
from mindmap.editing import EditAction, EditRequest, apply_edit
from mindmap.interaction import VIEW_ACTIONS, ContextAction, Gesture, InteractionController
from mindmap.view_state import Camera

OUTLINE = "# Root\n## A\n### A1\n## B"


@pytest.fixture
def edits() -> List[EditRequest]:
    return []


@pytest.fixture
def controller(diagram: Diagram, edits: List[EditRequest]) -> InteractionController:
    diagram.set_text(OUTLINE)
    return InteractionController(diagram, edits.append)


def test_small_movement_is_still_a_click(controller: InteractionController, diagram: Diagram) -> None:
    """Travel within the threshold toggles collapse on release."""

    controller.pointer_down("root-a", 100.0, 100.0)
    assert controller.pointer_move(102.0, 101.0) == []
    assert not controller.dragging

    assert controller.pointer_up(102.0, 101.0) is Gesture.CLICK
    assert diagram.view_state.is_collapsed("root-a")
    assert diagram.view_state.position_overrides == {}


def test_drag_moves_subtree_past_threshold(controller: InteractionController, diagram: Diagram) -> None:
    """Once past the threshold the whole pending delta is applied."""

    ax, ay = diagram.frame.nodes["root-a"].position
    controller.pointer_down("root-a", 100.0, 100.0)
    controller.pointer_move(102.0, 100.0)

    moved = controller.pointer_move(106.0, 100.0)

    assert moved == ["root-a", "root-a-a1"]
    assert controller.dragging
    assert diagram.view_state.position_overrides["root-a"] == (ax + 6.0, ay)
    assert controller.pointer_up(106.0, 100.0) is Gesture.DRAG
    assert not diagram.view_state.is_collapsed("root-a")


def test_drag_delta_is_divided_by_zoom(controller: InteractionController, diagram: Diagram) -> None:
    """Screen movement maps to world movement through the camera scale."""

    diagram.set_camera(Camera(0.0, 0.0, 2.0))
    bx, by = diagram.frame.nodes["root-b"].position

    controller.pointer_down("root-b", 0.0, 0.0)
    controller.pointer_move(10.0, -20.0)

    assert diagram.view_state.position_overrides["root-b"] == (bx + 5.0, by - 10.0)


def test_click_on_leaf_changes_nothing(controller: InteractionController, diagram: Diagram) -> None:
    """Leaves have nothing to collapse."""

    controller.pointer_down("root-b", 0.0, 0.0)

    assert controller.pointer_up(0.0, 0.0) is Gesture.CLICK
    assert diagram.view_state.collapsed_ids == set()


def test_pointer_up_without_press(controller: InteractionController) -> None:
    """A stray release is ignored."""

    assert controller.pointer_up(0.0, 0.0) is None
    assert controller.pointer_move(5.0, 5.0) == []


def test_context_actions_on_canvas_and_nodes(controller: InteractionController, diagram: Diagram) -> None:
    """Empty canvas offers view actions only; nodes add structural ones."""

    assert controller.context_actions(None) == list(VIEW_ACTIONS)
    assert controller.context_actions("ghost") == list(VIEW_ACTIONS)
    assert controller.context_actions("root-a") == [
        ContextAction.RENAME,
        ContextAction.ADD_CHILD,
        ContextAction.TOGGLE_COLLAPSE,
        ContextAction.ADD_PIN,
        ContextAction.DELETE,
        *VIEW_ACTIONS,
    ]
    assert ContextAction.TOGGLE_COLLAPSE not in controller.context_actions("root-b")

    diagram.add_pin("root-b", "B")
    actions = controller.context_actions("root-b")
    assert ContextAction.REMOVE_PIN in actions
    assert ContextAction.ADD_PIN not in actions


def test_structural_actions_emit_edit_requests(
    controller: InteractionController, diagram: Diagram, edits: List[EditRequest]
) -> None:
    """Rename / add child / delete go to the text collaborator by line index."""

    request = controller.activate(ContextAction.RENAME, "root-a", "Alpha")

    assert request == EditRequest(EditAction.RENAME, 1, "Alpha")
    controller.activate(ContextAction.ADD_CHILD, "root-b", "B1")
    controller.activate(ContextAction.DELETE, "root-a-a1")
    assert [edit.action for edit in edits] == [EditAction.RENAME, EditAction.ADD_CHILD, EditAction.DELETE]
    assert [edit.line_index for edit in edits] == [1, 3, 2]
    assert diagram.text == OUTLINE
    assert apply_edit(OUTLINE, edits[0]) == "# Root\n## Alpha\n### A1\n## B"


def test_pin_and_collapse_actions_act_directly(
    controller: InteractionController, diagram: Diagram, edits: List[EditRequest]
) -> None:
    """Non-structural node actions change the diagram, not the text."""

    controller.activate(ContextAction.ADD_PIN, "root-a")
    assert [pin.label for pin in diagram.list_pins()] == ["A"]
    controller.activate(ContextAction.REMOVE_PIN, "root-a")
    assert diagram.list_pins() == []
    controller.activate(ContextAction.TOGGLE_COLLAPSE, "root-a")
    assert diagram.view_state.is_collapsed("root-a")
    assert edits == []


def test_view_actions_move_camera(controller: InteractionController, diagram: Diagram) -> None:
    """Zoom actions scale the camera target."""

    controller.activate(ContextAction.ZOOM_IN)
    assert diagram.view_state.camera.scale == pytest.approx(1.2)
    controller.activate(ContextAction.ZOOM_OUT)
    assert diagram.view_state.camera.scale == pytest.approx(0.96)


def test_actions_on_missing_node_are_ignored(controller: InteractionController, edits: List[EditRequest]) -> None:
    """A node that vanished before the menu choice does nothing."""

    assert controller.activate(ContextAction.DELETE, "ghost") is None
    assert edits == []
