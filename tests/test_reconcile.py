"""Tests for the identity diff between frames."""

from __future__ import annotations

from typing import Optional

from mindmap.layout import Frame
from mindmap.parser import parse_outline
from mindmap.reconcile import Reconciliation, reconcile
from mindmap.view_state import ViewState

PALETTE = ("red", "green")


def _step(previous: Optional[Frame], text: str, view_state: Optional[ViewState] = None, reset: bool = False) -> Reconciliation:
    return reconcile(previous, parse_outline(text), view_state or ViewState(), PALETTE, "grey", reset=reset)


def _by_id(motions):
    return {motion.id: motion for motion in motions}


def test_first_frame_enters_from_origin() -> None:
    """With no previous frame everything enters and grows from the origin."""

    result = _step(None, "# Root\n## A")
    nodes = result.patch.nodes

    assert set(_by_id(nodes.enter)) == {"root", "root-a"}
    assert nodes.update == [] and nodes.exit == []
    assert all(motion.start == (0.0, 0.0) for motion in nodes.enter)
    (link,) = result.patch.links.enter
    assert link.id == "root-a"
    assert link.source_id == "root"
    assert link.start == ((0.0, 0.0), (0.0, 0.0))


def test_surviving_node_starts_from_previous_position() -> None:
    """A node kept by id animates from where it was."""

    first = _step(None, "# Root\n## A")
    second = _step(first.frame, "# Root\n## A\n## B")

    a = _by_id(second.patch.nodes.update)["root-a"]
    assert a.start == (260.0, 0.0)
    assert a.end == second.frame.nodes["root-a"].position
    assert a.end != a.start


def test_new_child_grows_from_parent_old_position() -> None:
    """A new node whose parent existed starts at that parent's old spot."""

    first = _step(None, "# Root\n## A")
    second = _step(first.frame, "# Root\n## A\n### A1")

    a1 = _by_id(second.patch.nodes.enter)["root-a-a1"]
    assert a1.start == (260.0, 0.0)
    assert a1.end == (520.0, 0.0)
    link = _by_id(second.patch.links.enter)["root-a-a1"]
    assert link.start == ((260.0, 0.0), (260.0, 0.0))


def test_removed_node_exits_to_surviving_parent() -> None:
    """Deleted nodes fold into their parent's new position."""

    first = _step(None, "# Root\n## A\n## B")
    second = _step(first.frame, "# Root\n## A")

    b = _by_id(second.patch.nodes.exit)["root-b"]
    assert b.start == first.frame.nodes["root-b"].position
    assert b.end == second.frame.root.position
    link = _by_id(second.patch.links.exit)["root-b"]
    assert link.end == ((0.0, 0.0), (0.0, 0.0))


def test_collapse_exits_descendants_into_collapsed_node() -> None:
    """Hidden children shrink toward the node that now hides them."""

    first = _step(None, "# Root\n## A\n### A1\n#### deep\n## B")
    state = ViewState(collapsed_ids={"root-a"})
    second = _step(first.frame, "# Root\n## A\n### A1\n#### deep\n## B", state)

    exits = _by_id(second.patch.nodes.exit)
    assert set(exits) == {"root-a-a1", "root-a-a1-deep"}
    a = second.frame.nodes["root-a"].position
    assert exits["root-a-a1"].end == a
    assert exits["root-a-a1-deep"].end == a
    assert second.patch.nodes.enter == []


def test_rename_is_exit_plus_enter() -> None:
    """A renamed node gets a new id: the old one leaves, the new one grows in."""

    first = _step(None, "# Root\n## A")
    second = _step(first.frame, "# Root\n## A2")

    assert [m.id for m in second.patch.nodes.exit] == ["root-a"]
    entered = _by_id(second.patch.nodes.enter)["root-a2"]
    assert entered.start == first.frame.root.position


def test_reset_drops_overrides_without_mutating_input() -> None:
    """Reset clears drag overrides in the returned view state only."""

    first = _step(None, "# Root\n## A")
    state = ViewState(position_overrides={"root-a": (999.0, 999.0)})

    result = _step(first.frame, "# Root\n## A", state, reset=True)

    assert result.view_state.position_overrides == {}
    assert state.position_overrides == {"root-a": (999.0, 999.0)}
    assert result.frame.nodes["root-a"].position == (260.0, 0.0)


def test_reset_starts_survivors_from_previous_position() -> None:
    """After a reset, surviving nodes start where they were; new ones at the origin."""

    state = ViewState(position_overrides={"root-a": (360.0, 100.0)})
    first = _step(None, "# Root\n## A", state)

    result = _step(first.frame, "# Root\n## A\n### A1", state, reset=True)

    a = result.frame.nodes["root-a"]
    assert (a.x0, a.y0) == (360.0, 100.0)
    assert _by_id(result.patch.nodes.update)["root-a"].start == (a.x0, a.y0)
    a1 = result.frame.nodes["root-a-a1"]
    assert (a1.x0, a1.y0) == (0.0, 0.0)


def test_reset_forgets_hidden_positions() -> None:
    """Hidden nodes carry old positions between frames, except across a reset."""

    first = _step(None, "# Root\n## A\n### A1")
    collapsed = ViewState(collapsed_ids={"root-a"})

    kept = _step(first.frame, "# Root\n## A\n### A1", collapsed)
    dropped = _step(first.frame, "# Root\n## A\n### A1", collapsed, reset=True)

    assert kept.frame.nodes["root-a-a1"].position == first.frame.nodes["root-a-a1"].position
    assert not dropped.frame.nodes["root-a-a1"].placed


def test_motions_carry_style() -> None:
    """Node motions carry name, depth, colour and collapse flag."""

    result = _step(None, "# Root\n## A\n### A1", ViewState(collapsed_ids={"root-a"}))
    a = _by_id(result.patch.nodes.enter)["root-a"]

    assert a.name == "A"
    assert a.depth == 1
    assert a.color == "red"
    assert a.has_children and a.collapsed
    assert "root-a-a1" not in _by_id(result.patch.nodes.enter)
