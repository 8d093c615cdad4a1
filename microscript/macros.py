"""``#define`` / ``#undef`` preprocessing.

The preprocessor runs once over the whole program before execution. Directive
lines update the macro tables and are dropped; every other line is expanded,
function-like macros first, then object-like ones, until a pass changes
nothing or ``MAX_MACRO_PASSES`` passes have run.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .errors import MacroArgError

MAX_MACRO_PASSES = 10

MACRO_NAME = r'[A-Z_][A-Z0-9_]*'
DEFINE_FUNCTION_RE = re.compile(r'#define\s+(' + MACRO_NAME + r')\((.*?)\)\s*(.*)$')
DEFINE_OBJECT_RE = re.compile(r'#define\s+(' + MACRO_NAME + r')(?:\s+(.*))?$')
UNDEF_RE = re.compile(r'#undef\s+(' + MACRO_NAME + r')\s*$')
MACRO_ERROR_MARKER = re.compile(r'/\*MACRO_ARG_ERROR:(' + MACRO_NAME + r')\*/')
OPERATOR_RE = re.compile(r'[-+*/&|^%<>=!#]')


def error_marker(name: str) -> str:
    return f'/*MACRO_ARG_ERROR:{name}*/'


def raise_for_macro_error(text: str):
    """Raise MacroArgError if ``text`` carries an argument-count marker."""
    match = MACRO_ERROR_MARKER.search(text)
    if match:
        raise MacroArgError(match.group(1))


@dataclass
class MacroDef:
    name: str
    params: Optional[List[str]]
    body: str

    @property
    def function_like(self) -> bool:
        return self.params is not None


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == '_'


def _skip_literal(text: str, i: int) -> int:
    """Return the index just past the string or char literal starting at ``i``."""
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


def find_words(text: str, word: str):
    """Yield start offsets of ``word`` as a whole word outside string literals."""
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in '"\'':
            i = _skip_literal(text, i)
            continue
        if text.startswith(word, i) and (i == 0 or not _is_word_char(text[i - 1])):
            end = i + len(word)
            if end >= len(text) or not _is_word_char(text[end]):
                yield i
                i = end
                continue
        i += 1


def replace_word(text: str, word: str, replacement: str) -> str:
    parts = []
    last = 0
    for start in find_words(text, word):
        parts.append(text[last:start])
        parts.append(replacement)
        last = start + len(word)
    parts.append(text[last:])
    return ''.join(parts)


def split_arguments(text: str) -> List[str]:
    """Split a macro argument list on top-level commas.

    Commas nested in brackets of any kind or inside quoted literals do not
    split. An empty or blank list has no arguments.
    """
    if not text.strip():
        return []
    args = []
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
        elif ch == ',' and depth == 0:
            args.append(text[start:i].strip())
            start = i + 1
        i += 1
    args.append(text[start:].strip())
    return args


def _closing_paren(text: str, open_index: int) -> Optional[int]:
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
    return None


def fully_parenthesized(text: str) -> bool:
    return text.startswith('(') and _closing_paren(text, 0) == len(text) - 1


def needs_parentheses(body: str) -> bool:
    return bool(body) and not fully_parenthesized(body) and bool(OPERATOR_RE.search(body))


class MacroPreprocessor:
    """Macro table plus the expansion passes. Use a fresh instance per run."""

    def __init__(self, debug: Optional[Callable[[str], None]] = None):
        self.macros: Dict[str, MacroDef] = {}
        self._debug = debug

    def debug(self, msg: str):
        if self._debug is not None:
            self._debug(msg)

    def is_defined(self, name: str) -> bool:
        return name in self.macros

    def preprocess(self, lines: List[str]) -> List[str]:
        output = []
        for line in lines:
            stripped = line.strip()
            if stripped.startswith('#define'):
                self.define(stripped)
            elif stripped.startswith('#undef'):
                self.undef(stripped)
            else:
                expanded = self.expand(line)
                if expanded != line:
                    self.debug(f'Expanded: {line.strip()} -> {expanded.strip()}')
                output.append(expanded)
        return output

    def define(self, directive: str):
        match = DEFINE_FUNCTION_RE.match(directive)
        if match:
            name, params, body = match.groups()
            param_list = [p.strip() for p in params.split(',')] if params.strip() else []
            self.macros[name] = MacroDef(name, param_list, body.strip())
        else:
            match = DEFINE_OBJECT_RE.match(directive)
            if not match:
                # names that are not all uppercase never become macros
                self.debug(f'Ignored directive: {directive}')
                return
            name, value = match.groups()
            self.macros[name] = MacroDef(name, None, (value or '').strip())
        self.debug(f'Defined macro {self.macros[name]}')

    def undef(self, directive: str):
        match = UNDEF_RE.match(directive)
        if match and self.macros.pop(match.group(1), None) is not None:
            self.debug(f'Undefined macro {match.group(1)}')

    def expand(self, line: str) -> str:
        for _ in range(MAX_MACRO_PASSES):
            before = line
            line = self._expand_function_macros(line)
            line = self._expand_object_macros(line)
            if line == before:
                break
        return line

    def _expand_function_macros(self, line: str) -> str:
        for macro in self.macros.values():
            if not macro.function_like:
                continue
            line = self._expand_calls(line, macro)
        return line

    def _expand_calls(self, line: str, macro: MacroDef) -> str:
        search_from = 0
        while True:
            call = self._find_call(line, macro.name, search_from)
            if call is None:
                return line
            start, open_index, close_index = call
            args = split_arguments(line[open_index + 1:close_index])
            if len(args) != len(macro.params):
                replacement = error_marker(macro.name)
            else:
                replacement = macro.body
                for param, arg in zip(macro.params, args):
                    replacement = replace_word(replacement, param, arg)
                if needs_parentheses(replacement):
                    replacement = f'({replacement})'
            line = line[:start] + replacement + line[close_index + 1:]
            search_from = start + len(replacement)

    @staticmethod
    def _find_call(line: str, name: str, search_from: int):
        for start in find_words(line, name):
            if start < search_from:
                continue
            open_index = start + len(name)
            while open_index < len(line) and line[open_index].isspace():
                open_index += 1
            if open_index >= len(line) or line[open_index] != '(':
                continue
            close_index = _closing_paren(line, open_index)
            if close_index is None:
                return None
            return start, open_index, close_index
        return None

    def _expand_object_macros(self, line: str) -> str:
        for macro in self.macros.values():
            if not macro.function_like:
                line = replace_word(line, macro.name, macro.body)
        return line
