"""Identity diff between consecutive layout frames.

Nodes are matched purely by derived id. The result is a declarative patch
(enter / update / exit for nodes and links) that a renderer plays back; this
module never touches a drawing surface.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

from mindmap.geometry import link_width
from mindmap.layout import Frame, LayoutNode, build_frame
from mindmap.logging import get_logger
from mindmap.parser import OutlineNode
from mindmap.view_state import Point, ViewState

logger = get_logger(__name__)

ORIGIN: Point = (0.0, 0.0)

T = TypeVar("T")


@dataclass(frozen=True)
class NodeMotion:
    id: str
    name: str
    depth: int
    color: str
    has_children: bool
    collapsed: bool
    start: Point
    end: Point


@dataclass(frozen=True)
class LinkMotion:
    id: str
    source_id: str
    color: str
    width: float
    start: Tuple[Point, Point]
    end: Tuple[Point, Point]


@dataclass
class Changes(Generic[T]):
    enter: List[T] = field(default_factory=list)
    update: List[T] = field(default_factory=list)
    exit: List[T] = field(default_factory=list)


@dataclass
class ScenePatch:
    nodes: Changes[NodeMotion] = field(default_factory=Changes)
    links: Changes[LinkMotion] = field(default_factory=Changes)


@dataclass
class Reconciliation:
    frame: Frame
    patch: ScenePatch
    view_state: ViewState


def _visible_index(frame: Optional[Frame]) -> Dict[str, LayoutNode]:
    if frame is None:
        return {}
    return {node.id: node for node in frame.visible_nodes()}


def assign_start_positions(frame: Frame, previous: Optional[Frame], grow_from_parent: bool = True) -> None:
    """Fill `x0`/`y0` of visible nodes from the previous frame.

    A node seen before starts where it ended. A new child of a node seen
    before starts at that parent's old position unless `grow_from_parent`
    is off; anything else starts at the origin.
    """
    old = _visible_index(previous)
    for node in frame.visible_nodes():
        match = old.get(node.id)
        if match is None and grow_from_parent and node.parent_id is not None:
            match = old.get(node.parent_id)
        node.x0, node.y0 = match.position if match is not None else ORIGIN


def carry_hidden_positions(frame: Frame, previous: Optional[Frame]) -> None:
    """Give hidden nodes without an override their last known position."""
    if previous is None:
        return
    for node in frame.nodes.values():
        if node.placed:
            continue
        before = previous.get(node.id)
        if before is not None and before.placed:
            node.x, node.y = before.position
            node.placed = True


def _exit_point(node: LayoutNode, previous: Frame, frame: Frame) -> Point:
    """Where a vanishing node folds to: its nearest old ancestor still on screen."""
    for ancestor in previous.ancestors(node.id):
        current = frame.get(ancestor.id)
        if current is not None and current.visible:
            return current.position
    return ORIGIN


def _node_motion(node: LayoutNode, start: Point, end: Point) -> NodeMotion:
    return NodeMotion(
        id=node.id,
        name=node.name,
        depth=node.depth,
        color=node.color,
        has_children=node.has_children,
        collapsed=node.is_collapsed,
        start=start,
        end=end,
    )


def _link_motion(target: LayoutNode, start: Tuple[Point, Point], end: Tuple[Point, Point]) -> LinkMotion:
    return LinkMotion(
        id=target.id,
        source_id=target.parent_id or "",
        color=target.color,
        width=link_width(target.depth),
        start=start,
        end=end,
    )


def diff_frames(previous: Optional[Frame], frame: Frame) -> ScenePatch:
    patch = ScenePatch()
    old = _visible_index(previous)

    for node in frame.visible_nodes():
        before = old.get(node.id)
        if before is not None:
            patch.nodes.update.append(_node_motion(node, before.position, node.position))
        else:
            patch.nodes.enter.append(_node_motion(node, (node.x0, node.y0), node.position))

        if node.parent_id is None:
            continue
        source = frame.nodes[node.parent_id]
        end = (source.position, node.position)
        if before is not None and before.parent_id is not None and before.parent_id in old:
            start = (old[before.parent_id].position, before.position)
            patch.links.update.append(_link_motion(node, start, end))
        else:
            seed = (node.x0, node.y0)
            patch.links.enter.append(_link_motion(node, (seed, seed), end))

    if previous is not None:
        for node in old.values():
            if frame.is_visible(node.id):
                continue
            point = _exit_point(node, previous, frame)
            patch.nodes.exit.append(_node_motion(node, node.position, point))
            if node.parent_id is not None and node.parent_id in old:
                start = (old[node.parent_id].position, node.position)
                patch.links.exit.append(_link_motion(node, start, (point, point)))

    return patch


def reconcile(
    previous: Optional[Frame],
    tree: OutlineNode,
    view_state: ViewState,
    palette: Sequence[str],
    root_color: str,
    reset: bool = False,
) -> Reconciliation:
    """Lay out `tree` against `view_state` and diff it with `previous`.

    With `reset`, drag overrides are dropped (in the returned view state),
    new nodes grow from the origin instead of from their old parents, and
    hidden nodes forget their old positions.
    """
    if reset:
        view_state = view_state.copy()
        view_state.clear_overrides()
    frame = build_frame(tree, view_state, palette, root_color)
    assign_start_positions(frame, previous, grow_from_parent=not reset)
    if not reset:
        carry_hidden_positions(frame, previous)
    patch = diff_frames(previous, frame)
    logger.debug(
        "Reconciled %d nodes: %d enter, %d update, %d exit",
        len(frame.nodes),
        len(patch.nodes.enter),
        len(patch.nodes.update),
        len(patch.nodes.exit),
    )
    return Reconciliation(frame, patch, view_state)
