"""Outline text -> node tree.

Every non-blank line becomes a node. `# ...` lines are headings whose depth is
the number of `#`; any other line nests one level under the currently open
node. Ids are derived from the node text and its parent's id, so they survive
re-parsing as long as the path to a node keeps the same names.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Set, Tuple

from mindmap.config import EMPTY_NAME, PLACEHOLDER_NAME, UNTITLED_NAME, VIRTUAL_ROOT_NAME
from mindmap.logging import get_logger

logger = get_logger(__name__)

HEADING_RE = re.compile(r"^(#+)\s*(.*)")
LINE_SPLIT_RE = re.compile(r"\r?\n")
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")

ROOT_ID = "root"
VIRTUAL_ROOT_ID = "virtual-root"
VIRTUAL_LINE = -1


@dataclass
class OutlineNode:
    id: str
    line_index: int
    name: str
    children: List["OutlineNode"] = field(default_factory=list)


def split_lines(text: str) -> List[str]:
    return LINE_SPLIT_RE.split(text)


def slugify(text: str) -> str:
    return _NON_ALNUM_RE.sub("", text).lower() or "node"


def derive_id(text: str, parent_id: str, used_ids: Set[str]) -> str:
    """Build a unique id from the node text and its parent's id.

    The id is recorded in `used_ids`; clashes get a `-1`, `-2`, ... suffix.
    Renaming a node, or any of its ancestors, yields a different id.
    """
    slug = slugify(text)
    base = slug if parent_id == VIRTUAL_ROOT_ID else f"{parent_id}-{slug}"
    candidate = base
    count = 1
    while candidate in used_ids:
        candidate = f"{base}-{count}"
        count += 1
    used_ids.add(candidate)
    return candidate


def parse_outline(text: str) -> OutlineNode:
    if text.strip() == "":
        return OutlineNode(ROOT_ID, 0, PLACEHOLDER_NAME)

    used_ids: Set[str] = set()
    virtual_root = OutlineNode(VIRTUAL_ROOT_ID, VIRTUAL_LINE, VIRTUAL_ROOT_NAME)
    stack: List[Tuple[OutlineNode, int]] = [(virtual_root, 0)]

    for index, line in enumerate(split_lines(text)):
        if line.strip() == "":
            continue
        match = HEADING_RE.match(line)
        if match:
            level = len(match.group(1))
            name = match.group(2).strip() or UNTITLED_NAME
        else:
            level = stack[-1][1] + 1 if len(stack) > 1 else 1
            name = line.strip()

        # skipped levels attach to the nearest shallower ancestor
        while len(stack) > 1 and stack[-1][1] >= level:
            stack.pop()

        parent = stack[-1][0]
        node = OutlineNode(derive_id(name, parent.id, used_ids), index, name)
        parent.children.append(node)
        stack.append((node, level))

    logger.debug("Parsed %d outline nodes", len(used_ids))
    if len(virtual_root.children) == 1:
        return virtual_root.children[0]
    if virtual_root.children:
        return virtual_root
    return OutlineNode(ROOT_ID, 0, EMPTY_NAME)
