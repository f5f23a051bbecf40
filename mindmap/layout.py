"""Tree layout.

`build_frame` turns a parsed outline into an arena of `LayoutNode`s keyed by
id: collapse state is applied first, visible nodes are placed with a tidy
tree (Buchheim / Walker, as popularised by d3's `tree`), dragged positions
replace computed ones, and each node gets its branch colour.

Hidden nodes are not laid out. Their `placed` flag stays False until a drag
override or a carried-over position (see `reconcile`) gives them one.

Nodes grow left to right: `x` is depth * LEVEL_WIDTH, `y` is the breadth
coordinate in NODE_BREADTH units, and the root sits at (0, 0).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from mindmap.config import COUSIN_SEPARATION, LEVEL_WIDTH, NODE_BREADTH, SIBLING_SEPARATION
from mindmap.parser import OutlineNode
from mindmap.view_state import ViewState


@dataclass
class LayoutNode:
    id: str
    line_index: int
    name: str
    depth: int
    parent_id: Optional[str]
    children: List[str] = field(default_factory=list)
    collapsed_children: List[str] = field(default_factory=list)
    visible: bool = True
    placed: bool = True
    x: float = 0.0
    y: float = 0.0
    x0: float = 0.0
    y0: float = 0.0
    color: str = ""

    @property
    def has_children(self) -> bool:
        return bool(self.children or self.collapsed_children)

    @property
    def is_collapsed(self) -> bool:
        return bool(self.collapsed_children)

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y


@dataclass(frozen=True)
class Link:
    source_id: str
    target_id: str

    @property
    def id(self) -> str:
        return self.target_id


@dataclass
class Frame:
    root_id: str
    nodes: Dict[str, LayoutNode] = field(default_factory=dict)
    top_level_ids: List[str] = field(default_factory=list)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def get(self, node_id: str) -> Optional[LayoutNode]:
        return self.nodes.get(node_id)

    @property
    def root(self) -> LayoutNode:
        return self.nodes[self.root_id]

    def visible_nodes(self) -> List[LayoutNode]:
        return [node for node in self.nodes.values() if node.visible]

    def is_visible(self, node_id: str) -> bool:
        node = self.nodes.get(node_id)
        return node is not None and node.visible

    def links(self) -> List[Link]:
        return [
            Link(node.parent_id, node.id)
            for node in self.nodes.values()
            if node.visible and node.parent_id is not None
        ]

    def subtree(self, node_id: str, visible_only: bool = True) -> List[str]:
        """Ids of `node_id` and its descendants, parents before children."""
        if node_id not in self.nodes:
            return []
        collected: List[str] = []
        stack = [node_id]
        while stack:
            current = self.nodes[stack.pop()]
            collected.append(current.id)
            kids = current.children if visible_only else current.children + current.collapsed_children
            stack.extend(reversed(kids))
        return collected

    def ancestors(self, node_id: str) -> Iterator[LayoutNode]:
        node = self.nodes.get(node_id)
        while node is not None and node.parent_id is not None:
            node = self.nodes.get(node.parent_id)
            if node is not None:
                yield node

    def visible_ancestor(self, node_id: str) -> Optional[LayoutNode]:
        """The node itself when visible, else the collapsed ancestor hiding it."""
        node = self.nodes.get(node_id)
        if node is None or node.visible:
            return node
        return next((anc for anc in self.ancestors(node_id) if anc.visible), None)


class _TidyTree:
    """Index-addressed working state for the Buchheim tidy-tree walk.

    Index 0 is a synthetic parent of the root; real nodes start at 1.
    """

    def __init__(self, frame: Frame) -> None:
        self.ids: List[Optional[str]] = [None]
        self.parent: List[int] = [-1]
        self.children: List[List[int]] = [[]]
        index_of: Dict[str, int] = {}
        for node in frame.nodes.values():
            if not node.visible:
                continue
            idx = len(self.ids)
            index_of[node.id] = idx
            self.ids.append(node.id)
            self.children.append([])
            parent_idx = index_of.get(node.parent_id, 0) if node.parent_id is not None else 0
            self.parent.append(parent_idx)
            self.children[parent_idx].append(idx)

        size = len(self.ids)
        self.number = [0] * size
        for kids in self.children:
            for i, kid in enumerate(kids):
                self.number[kid] = i
        self.prelim = [0.0] * size
        self.mod = [0.0] * size
        self.change = [0.0] * size
        self.shift = [0.0] * size
        self.thread: List[int] = [-1] * size
        self.ancestor: List[int] = list(range(size))
        self.default_ancestor: List[int] = [-1] * size
        self.breadth = [0.0] * size
        self.depth = [0] * size

    def separation(self, a: int, b: int) -> float:
        return SIBLING_SEPARATION if self.parent[a] == self.parent[b] else COUSIN_SEPARATION

    def next_left(self, v: int) -> int:
        kids = self.children[v]
        return kids[0] if kids else self.thread[v]

    def next_right(self, v: int) -> int:
        kids = self.children[v]
        return kids[-1] if kids else self.thread[v]

    def move_subtree(self, wm: int, wp: int, shift: float) -> None:
        change = shift / (self.number[wp] - self.number[wm])
        self.change[wp] -= change
        self.shift[wp] += shift
        self.change[wm] += change
        self.prelim[wp] += shift
        self.mod[wp] += shift

    def execute_shifts(self, v: int) -> None:
        shift = 0.0
        change = 0.0
        for w in reversed(self.children[v]):
            self.prelim[w] += shift
            self.mod[w] += shift
            change += self.change[w]
            shift += self.shift[w] + change

    def next_ancestor(self, vim: int, v: int, ancestor: int) -> int:
        candidate = self.ancestor[vim]
        return candidate if self.parent[candidate] == self.parent[v] else ancestor

    def apportion(self, v: int, w: int, ancestor: int) -> int:
        if w < 0:
            return ancestor
        vip = vop = v
        vim = w
        vom = self.children[self.parent[vip]][0]
        sip = self.mod[vip]
        sop = self.mod[vop]
        sim = self.mod[vim]
        som = self.mod[vom]
        while True:
            vim = self.next_right(vim)
            vip = self.next_left(vip)
            if vim < 0 or vip < 0:
                break
            vom = self.next_left(vom)
            vop = self.next_right(vop)
            self.ancestor[vop] = v
            shift = self.prelim[vim] + sim - self.prelim[vip] - sip + self.separation(vim, vip)
            if shift > 0:
                self.move_subtree(self.next_ancestor(vim, v, ancestor), v, shift)
                sip += shift
                sop += shift
            sim += self.mod[vim]
            sip += self.mod[vip]
            som += self.mod[vom]
            sop += self.mod[vop]
        if vim >= 0 and self.next_right(vop) < 0:
            self.thread[vop] = vim
            self.mod[vop] += sim - sop
        if vip >= 0 and self.next_left(vom) < 0:
            self.thread[vom] = vip
            self.mod[vom] += sip - som
            ancestor = v
        return ancestor

    def first_walk(self, v: int) -> None:
        kids = self.children[v]
        siblings = self.children[self.parent[v]]
        w = siblings[self.number[v] - 1] if self.number[v] else -1
        if kids:
            self.execute_shifts(v)
            midpoint = (self.prelim[kids[0]] + self.prelim[kids[-1]]) / 2
            if w >= 0:
                self.prelim[v] = self.prelim[w] + self.separation(v, w)
                self.mod[v] = self.prelim[v] - midpoint
            else:
                self.prelim[v] = midpoint
        elif w >= 0:
            self.prelim[v] = self.prelim[w] + self.separation(v, w)
        p = self.parent[v]
        current = self.default_ancestor[p] if self.default_ancestor[p] >= 0 else siblings[0]
        self.default_ancestor[p] = self.apportion(v, w, current)

    def run(self) -> None:
        if len(self.ids) < 2:
            return
        order: List[int] = []
        stack = [1]
        while stack:
            v = stack.pop()
            order.append(v)
            stack.extend(self.children[v])
        for v in reversed(order):
            self.first_walk(v)
        self.mod[0] = -self.prelim[1]
        for v in self.preorder():
            p = self.parent[v]
            self.breadth[v] = self.prelim[v] + self.mod[p]
            self.mod[v] += self.mod[p]
            self.depth[v] = self.depth[p] + 1 if p > 0 else 0

    def preorder(self) -> Iterator[int]:
        stack = [1]
        while stack:
            v = stack.pop()
            yield v
            stack.extend(reversed(self.children[v]))


def _collect(tree: OutlineNode, view_state: ViewState) -> Frame:
    frame = Frame(root_id=tree.id, top_level_ids=[child.id for child in tree.children])
    stack: List[Tuple[OutlineNode, Optional[str], int, bool]] = [(tree, None, 0, False)]
    while stack:
        node, parent_id, depth, hidden = stack.pop()
        child_ids = [child.id for child in node.children]
        collapsed = bool(child_ids) and view_state.is_collapsed(node.id)
        frame.nodes[node.id] = LayoutNode(
            id=node.id,
            line_index=node.line_index,
            name=node.name,
            depth=depth,
            parent_id=parent_id,
            children=[] if collapsed else child_ids,
            collapsed_children=child_ids if collapsed else [],
            visible=not hidden,
            placed=not hidden,
        )
        for child in reversed(node.children):
            stack.append((child, node.id, depth + 1, hidden or collapsed))
    return frame


def assign_colors(frame: Frame, palette: Sequence[str], root_color: str) -> None:
    """Colour every node by the index of its top-level branch."""
    branch_of: Dict[str, str] = {}
    for index, top_id in enumerate(frame.top_level_ids):
        branch_of[top_id] = palette[index % len(palette)] if palette else root_color
    for node in frame.nodes.values():
        if node.parent_id is None:
            node.color = root_color
        elif node.id in branch_of:
            node.color = branch_of[node.id]
        else:
            # parents precede children in the arena
            node.color = frame.nodes[node.parent_id].color


def tidy_layout(frame: Frame) -> None:
    tree = _TidyTree(frame)
    tree.run()
    for idx in range(1, len(tree.ids)):
        node = frame.nodes[tree.ids[idx]]
        node.x = tree.depth[idx] * LEVEL_WIDTH
        node.y = tree.breadth[idx] * NODE_BREADTH


def build_frame(
    tree: OutlineNode,
    view_state: ViewState,
    palette: Sequence[str],
    root_color: str,
) -> Frame:
    frame = _collect(tree, view_state)
    tidy_layout(frame)
    for node in frame.nodes.values():
        override = view_state.position_overrides.get(node.id)
        if override is not None:
            node.x, node.y = override
            node.placed = True
    assign_colors(frame, palette, root_color)
    return frame
