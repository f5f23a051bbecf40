"""Structural edits expressed as text splices.

The diagram never mutates its tree. Rename / add child / delete requests carry
the source line index of the node and are turned into new outline text here;
the caller feeds that text back through the parser.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from mindmap.parser import HEADING_RE, split_lines

_LEVEL_RE = re.compile(r"^(#+)")
_NAME_RE = re.compile(r"^(#+)?\s*(.*)")


class EditAction(str, Enum):
    RENAME = "rename"
    ADD_CHILD = "addChild"
    DELETE = "delete"


@dataclass(frozen=True)
class EditRequest:
    action: EditAction
    line_index: int
    value: Optional[str] = None


def line_level(line: str) -> int:
    """Number of leading `#`s; 0 for a plain text line."""
    match = _LEVEL_RE.match(line)
    return len(match.group(1)) if match else 0


def outline_levels(lines: List[str]) -> List[int]:
    """Depth of every line as the parser sees it; 0 for blank lines.

    Plain text lines sit one level below the node that is open above them.
    """
    levels: List[int] = []
    stack: List[int] = [0]
    for line in lines:
        if line.strip() == "":
            levels.append(0)
            continue
        match = HEADING_RE.match(line)
        level = len(match.group(1)) if match else stack[-1] + 1
        while len(stack) > 1 and stack[-1] >= level:
            stack.pop()
        stack.append(level)
        levels.append(level)
    return levels


def _is_empty_document(lines: List[str], index: int) -> bool:
    return len(lines) == 1 and lines[0].strip() == "" and index == 0


def _block(lines: List[str], index: int) -> Tuple[int, int]:
    """Depth of the node at `index` and the index one past its last descendant line."""
    levels = outline_levels(lines)
    level = levels[index]
    end = index + 1
    while end < len(lines) and (lines[end].strip() == "" or levels[end] > level):
        end += 1
    return level, end


def line_name(text: str, index: int) -> str:
    lines = split_lines(text)
    if not 0 <= index < len(lines):
        return ""
    match = _NAME_RE.match(lines[index])
    return match.group(2) if match else ""


def rename_line(text: str, index: int, name: str) -> str:
    lines = split_lines(text)
    if _is_empty_document(lines, index):
        return f"# {name}"
    if not 0 <= index < len(lines):
        return text
    level = line_level(lines[index])
    prefix = "#" * level + " " if level > 0 else ""
    lines[index] = f"{prefix}{name}"
    return "\n".join(lines)


def add_child_line(text: str, index: int, name: str) -> str:
    lines = split_lines(text)
    if _is_empty_document(lines, index):
        return f"# Root\n## {name}"
    if not 0 <= index < len(lines):
        return text
    level, end = _block(lines, index)
    lines.insert(end, f"{'#' * (level + 1)} {name}")
    return "\n".join(lines)


def delete_line(text: str, index: int) -> str:
    lines = split_lines(text)
    if not 0 <= index < len(lines):
        return text
    _, end = _block(lines, index)
    del lines[index:end]
    return "\n".join(lines)


def apply_edit(text: str, request: EditRequest) -> str:
    if request.action is EditAction.RENAME:
        return rename_line(text, request.line_index, request.value or "")
    if request.action is EditAction.ADD_CHILD:
        return add_child_line(text, request.line_index, request.value or "")
    return delete_line(text, request.line_index)
