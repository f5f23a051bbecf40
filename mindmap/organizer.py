"""Batch reorganisation of outline text.

`organize` rebuilds a light tree from the text (same level rules as the
parser), optionally sorts siblings, and writes every node back as a
canonical `<#'s> <text>` heading with no skipped levels.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Literal, Tuple

from mindmap.parser import HEADING_RE, split_lines

OrganizeMode = Literal["smart", "az", "za"]
ORGANIZE_MODES: Tuple[str, ...] = ("smart", "az", "za")

BULLET_RE = re.compile(r"^[-*+]\s+")


@dataclass
class _Entry:
    content: str
    children: List["_Entry"] = field(default_factory=list)


def _build(lines: List[str]) -> _Entry:
    root = _Entry("root")
    stack: List[Tuple[_Entry, int]] = [(root, 0)]
    for line in lines:
        trimmed = line.strip()
        match = HEADING_RE.match(trimmed)
        if match:
            level = len(match.group(1))
            content = match.group(2).strip()
        else:
            level = stack[-1][1] + 1
            content = BULLET_RE.sub("", trimmed).strip()
        while len(stack) > 1 and stack[-1][1] >= level:
            stack.pop()
        entry = _Entry(content)
        stack[-1][0].children.append(entry)
        stack.append((entry, level))
    return root


def _sort_key(entry: _Entry) -> Tuple[str, str]:
    return entry.content.casefold(), entry.content


def _sort(root: _Entry, descending: bool) -> None:
    # plain text lines nest one per line, so trees can be very deep
    stack = [root]
    while stack:
        entry = stack.pop()
        entry.children.sort(key=_sort_key, reverse=descending)
        stack.extend(entry.children)


def _serialize(root: _Entry) -> List[str]:
    out: List[str] = []
    stack = [(child, 1) for child in reversed(root.children)]
    while stack:
        entry, level = stack.pop()
        out.append(f"{'#' * level} {entry.content}")
        stack.extend((child, level + 1) for child in reversed(entry.children))
    return out


def organize(text: str, mode: OrganizeMode) -> str:
    """Return `text` cleaned up and, for "az"/"za", sorted sibling-wise.

    Raises:
        ValueError: If `mode` is not one of "smart", "az", "za".
    """
    if mode not in ORGANIZE_MODES:
        raise ValueError(f"Unknown organize mode: {mode!r}")

    lines = [line for line in split_lines(text) if line.strip()]
    if not lines:
        return text

    root = _build(lines)
    if mode != "smart":
        _sort(root, descending=mode == "za")

    return "\n".join(_serialize(root))
