"""Tests for the tidy tree layout."""

from __future__ import annotations

from collections import defaultdict
from typing import Optional

import pytest

from mindmap.config import LEVEL_WIDTH, NODE_BREADTH
from mindmap.layout import Frame, build_frame
from mindmap.parser import parse_outline
from mindmap.view_state import ViewState

PALETTE = ("red", "green")
ROOT = "grey"


def _frame(text: str, view_state: Optional[ViewState] = None) -> Frame:
    return build_frame(parse_outline(text), view_state or ViewState(), PALETTE, ROOT)


def test_root_at_origin_with_siblings_centred() -> None:
    """Two leaves straddle the root one sibling gap apart."""

    frame = _frame("# Root\n## A\n## B")

    assert frame.root.position == (0.0, 0.0)
    a, b = frame.nodes["root-a"], frame.nodes["root-b"]
    assert a.x == b.x == LEVEL_WIDTH
    assert a.y == pytest.approx(-0.55 * NODE_BREADTH)
    assert b.y == pytest.approx(0.55 * NODE_BREADTH)


def test_cousins_are_spaced_wider_than_siblings() -> None:
    """Nodes with different parents get the wider gap."""

    frame = _frame("# R\n## A\n### a1\n## B\n### b1")

    a1, b1 = frame.nodes["r-a-a1"], frame.nodes["r-b-b1"]
    assert a1.x == 2 * LEVEL_WIDTH
    assert b1.y - a1.y == pytest.approx(1.3 * NODE_BREADTH)


def test_no_overlaps_at_any_depth() -> None:
    """Nodes sharing a depth are at least one sibling gap apart."""

    text = "\n".join(
        [
            "# Root",
            "## A",
            "### A1",
            "#### A1a",
            "#### A1b",
            "#### A1c",
            "### A2",
            "## B",
            "## C",
            "### C1",
            "#### C1a",
            "### C2",
            "### C3",
        ]
    )
    frame = _frame(text)

    by_depth = defaultdict(list)
    for node in frame.visible_nodes():
        assert node.x == node.depth * LEVEL_WIDTH
        by_depth[node.depth].append(node.y)
    for ys in by_depth.values():
        ys.sort()
        for upper, lower in zip(ys, ys[1:]):
            assert lower - upper >= 1.1 * NODE_BREADTH - 1e-6


def test_collapsed_children_are_hidden_and_packed() -> None:
    """Collapsing moves children aside and tightens spacing."""

    text = "# R\n## A\n### a1\n### a2\n### a3\n## B\n### b1\n### b2"
    expanded = _frame(text)
    collapsed = _frame(text, ViewState(collapsed_ids={"r-a"}))

    a = collapsed.nodes["r-a"]
    assert a.children == []
    assert a.collapsed_children == ["r-a-a1", "r-a-a2", "r-a-a3"]
    assert a.is_collapsed and a.has_children
    assert not collapsed.is_visible("r-a-a1")
    assert {link.id for link in collapsed.links()} == {"r-a", "r-b", "r-b-b1", "r-b-b2"}
    gap = collapsed.nodes["r-b"].y - a.y
    assert gap == pytest.approx(1.1 * NODE_BREADTH)
    assert gap < expanded.nodes["r-b"].y - expanded.nodes["r-a"].y


def test_collapsing_a_leaf_has_no_effect() -> None:
    """Only nodes with children can collapse."""

    frame = _frame("# R\n## A", ViewState(collapsed_ids={"r-a"}))

    assert not frame.nodes["r-a"].is_collapsed


def test_overrides_replace_computed_positions() -> None:
    """Dragged nodes stay put; the rest follow the layout."""

    plain = _frame("# R\n## A\n## B")
    state = ViewState(position_overrides={"r-a": (10.0, 20.0), "gone": (5.0, 5.0)})
    frame = _frame("# R\n## A\n## B", state)

    assert frame.nodes["r-a"].position == (10.0, 20.0)
    assert frame.nodes["r-b"].position == plain.nodes["r-b"].position
    assert "gone" not in frame


def test_branch_colours_follow_top_level_index() -> None:
    """Each top-level branch takes palette[index % len]; the root is neutral."""

    frame = _frame("# R\n## A\n### a1\n## B\n## C")

    assert frame.root.color == ROOT
    assert frame.nodes["r-a"].color == "red"
    assert frame.nodes["r-a-a1"].color == "red"
    assert frame.nodes["r-b"].color == "green"
    assert frame.nodes["r-c"].color == "red"


def test_empty_palette_uses_root_colour() -> None:
    """No palette colours means every node is neutral."""

    frame = build_frame(parse_outline("# R\n## A"), ViewState(), (), ROOT)

    assert frame.nodes["r-a"].color == ROOT


def test_placeholder_frame_has_no_links() -> None:
    """Empty text lays out one node and zero links."""

    frame = _frame("")

    assert len(frame.visible_nodes()) == 1
    assert frame.links() == []


def test_deep_chain_layout() -> None:
    """A long chain of text lines lays out without recursion."""

    frame = _frame("\n".join(f"step {i}" for i in range(1500)))

    assert len(frame.nodes) == 1500
    assert max(node.x for node in frame.nodes.values()) == 1499 * LEVEL_WIDTH
    assert all(node.y == 0.0 for node in frame.nodes.values())
