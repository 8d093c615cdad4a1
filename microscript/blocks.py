"""Brace matching over the program's line list.

Blocks are never parsed ahead of time. When the statement engine meets a
block statement it asks :func:`scan_block` where the block's braces are,
counting ``{`` and ``}`` from the header onward while ignoring comments and
string or character literals, and then executes the lines in between.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from .errors import SyntaxFault

CHAIN_START_RE = re.compile(r'(elif|else)\b')


@dataclass
class BlockSpan:
    open_line: int
    open_col: int
    close_line: int
    close_col: int

    @property
    def single_line(self) -> bool:
        return self.open_line == self.close_line


def _skip_literal(text: str, i: int) -> int:
    quote = text[i]
    i += 1
    while i < len(text):
        if text[i] == '\\':
            i += 2
            continue
        if text[i] == quote:
            return i + 1
        i += 1
    return i


def code_chars(lines: List[str], line_no: int, col: int = 0) -> Iterator[Tuple[int, int, str]]:
    """Yield ``(line, col, char)`` for code characters from a position onward.

    Characters inside ``//`` and ``/* */`` comments and inside quoted
    literals are skipped. Literals never span lines; block comments may.
    """
    in_comment = False
    for n in range(line_no, len(lines)):
        text = lines[n]
        i = col if n == line_no else 0
        while i < len(text):
            if in_comment:
                end = text.find('*/', i)
                if end < 0:
                    break
                in_comment = False
                i = end + 2
                continue
            ch = text[i]
            if text.startswith('//', i):
                break
            if text.startswith('/*', i):
                in_comment = True
                i += 2
                continue
            if ch in '"\'':
                i = _skip_literal(text, i)
                continue
            yield n, i, ch
            i += 1


def scan_block(lines: List[str], line_no: int, col: int = 0) -> BlockSpan:
    """Locate the block whose ``{`` is the first one at or after a position."""
    depth = 0
    opening: Optional[Tuple[int, int]] = None
    for n, i, ch in code_chars(lines, line_no, col):
        if ch == '{':
            if opening is None:
                opening = (n, i)
            depth += 1
        elif ch == '}' and opening is not None:
            depth -= 1
            if depth == 0:
                return BlockSpan(opening[0], opening[1], n, i)
    if opening is None:
        raise SyntaxFault(f'expected a block after line {line_no + 1}')
    raise SyntaxFault(f'missing closing brace for block opened on line {opening[0] + 1}')


def block_body(lines: List[str], span: BlockSpan) -> List[str]:
    """Return the source lines strictly inside a block's braces."""
    if span.single_line:
        inner = lines[span.open_line][span.open_col + 1:span.close_col]
        return [inner] if inner.strip() else []
    body = []
    head = lines[span.open_line][span.open_col + 1:]
    if head.strip():
        body.append(head)
    body.extend(lines[span.open_line + 1:span.close_line])
    tail = lines[span.close_line][:span.close_col]
    if tail.strip():
        body.append(tail)
    return body


def text_after(lines: List[str], span: BlockSpan) -> str:
    return lines[span.close_line][span.close_col + 1:]


def top_level_positions(text: str, token: str) -> Iterator[int]:
    """Yield offsets of ``token`` outside literals and nested brackets."""
    depth = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in '"\'':
            i = _skip_literal(text, i)
            continue
        if depth == 0 and text.startswith(token, i):
            yield i
            i += len(token)
            continue
        if ch in '([{':
            depth += 1
        elif ch in ')]}':
            depth -= 1
        i += 1


def split_top_level(text: str, separator: str) -> List[str]:
    parts = []
    last = 0
    for i in top_level_positions(text, separator):
        parts.append(text[last:i])
        last = i + len(separator)
    parts.append(text[last:])
    return parts


def matching_paren(text: str, open_index: int) -> int:
    """Return the index of the ``)`` closing the ``(`` at ``open_index``."""
    depth = 0
    i = open_index
    while i < len(text):
        ch = text[i]
        if ch in '"\'':
            i = _skip_literal(text, i)
            continue
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth == 0:
                return i
        i += 1
    raise SyntaxFault(f'unmatched parenthesis in: {text.strip()}')


def strip_line_comment(text: str) -> str:
    """Drop a trailing ``//`` comment that is not inside a literal."""
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in '"\'':
            i = _skip_literal(text, i)
            continue
        if text.startswith('//', i):
            return text[:i]
        i += 1
    return text


def split_statements(text: str) -> List[str]:
    """Split a one-line block body into its statements.

    Statements end at a top-level ``;`` or after a nested block closes,
    unless the block is followed by ``else``/``elif`` or by ``;``.
    """
    parts = []
    depth = 0
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in '"\'':
            i = _skip_literal(text, i)
            continue
        if ch in '([{':
            depth += 1
        elif ch in ')]}':
            depth -= 1
            if ch == '}' and depth == 0:
                rest = text[i + 1:].lstrip()
                if not CHAIN_START_RE.match(rest) and not rest.startswith(';'):
                    parts.append(text[start:i + 1])
                    start = i + 1
        elif ch == ';' and depth == 0:
            parts.append(text[start:i])
            start = i + 1
        i += 1
    parts.append(text[start:])
    return [part.strip() for part in parts if part.strip()]
