"""Statement and control-flow engine.

The engine walks a list of source lines with an explicit index. Nothing is
parsed ahead of time: the kind of each statement is decided from its leading
tokens when it is reached, block extents are found by brace matching, and
conditions are handed to the expression evaluator as text on every test.

Every block execution returns a :class:`BlockResult` so that ``break``,
``continue`` and ``return`` travel back up through nested blocks as values.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from .blocks import (
    BlockSpan, block_body, matching_paren, scan_block, split_statements,
    split_top_level, strip_line_comment, text_after, top_level_positions,
)
from .builtin_function import FunctionDef
from .environment import Environment
from .errors import (
    IterationLimitExceeded, PanicSignal, RuntimeFault, SyntaxFault, TypeMismatch,
)
from .evaluator import to_index
from .macros import MACRO_ERROR_MARKER
from .parser import (
    parse_arrow_header, parse_c_function_header, parse_declaration_head,
    parse_function_header, parse_loop_variable,
)
from .types import EPSILON, Char, default_value, is_number, is_truthy, to_string, type_name

if TYPE_CHECKING:
    from .interpreter import Interpreter


class BlockKind(Enum):
    NORMAL = 'normal'
    BREAK = 'break'
    CONTINUE = 'continue'
    RETURN = 'return'


@dataclass(frozen=True)
class BlockResult:
    kind: BlockKind
    value: Any = None

    @property
    def is_normal(self) -> bool:
        return self.kind is BlockKind.NORMAL


NORMAL = BlockResult(BlockKind.NORMAL)
BREAK = BlockResult(BlockKind.BREAK)
CONTINUE = BlockResult(BlockKind.CONTINUE)


def returned(value: Any) -> BlockResult:
    return BlockResult(BlockKind.RETURN, value)


KEYWORD_RE = re.compile(r'[A-Za-z_]\w*')
C_FUNCTION_RE = re.compile(r'^(String|Int32|Int64|Float32|Float64|Char|Bool|List|fn|void)\s+[A-Za-z_]\w*\s*\(')
ARROW_RE = re.compile(r'^var\s+([A-Za-z_]\w*)\s*(?::\s*\w+\s*)?=\s*(\|[^|]*\|\s*=>)(.*)$')
ARROW_BLOCK_RE = re.compile(r'^\s*([A-Za-z_]\w*)?\s*\{')
CHAIN_RE = re.compile(r'(elif|else\s+if|else)\b')
CASE_RE = re.compile(r'^(-?\d+(?:\.\d+)?)\s*=>\s*(.+?)\s*;?$')
DECLARATION_RE = re.compile(r'^(var|bool|list)\s')
ASSIGN_RE = re.compile(r'^([A-Za-z_]\w*)\s*=(?![=>])(.*)$')
INDEX_TARGET_RE = re.compile(r'^([A-Za-z_]\w*)\s*\[')
IMPORT_RE = re.compile(r'^import\s+([A-Za-z_][\w:.]*)$')
PANIC_RE = re.compile(r'^panic\s*\((.*)\)$')
RETURN_RE = re.compile(r'^return\b(.*)$')


def _statement_text(line: str) -> str:
    return strip_line_comment(line).strip().rstrip(';').strip()


def _inline_statements(body: List[str], span: BlockSpan) -> List[str]:
    # one-line blocks may hold several ';'-separated statements
    if span.single_line and body:
        return split_statements(body[0])
    return body


def _range_separator(header: str) -> Optional[int]:
    last = None
    for i in top_level_positions(header, ':'):
        if header[i - 1:i] != ':' and header[i + 1:i + 2] != ':':
            last = i
    return last


class Executor:
    """Executes blocks of MicroScript source lines for an interpreter."""

    def __init__(self, interpreter: 'Interpreter'):
        self.interpreter = interpreter

    def evaluate(self, text: str, env: Environment) -> Any:
        return self.interpreter.evaluate(text, env)

    def debug(self, level: int, msg: str):
        if self.interpreter.debug_level >= level:
            self.interpreter.debug(msg)

    # Blocks

    def execute_block(self, lines: List[str], env: Environment) -> BlockResult:
        i = 0
        while i < len(lines):
            result, i = self.execute_statement(lines, i, env)
            if not result.is_normal:
                return result
        return NORMAL

    def run_block(self, lines: List[str], env: Environment) -> BlockResult:
        return self.execute_block(lines, Environment(env))

    def body_of(self, lines: List[str], span: BlockSpan) -> List[str]:
        return _inline_statements(block_body(lines, span), span)

    def execute_statement(self, lines: List[str], i: int, env: Environment) -> Tuple[BlockResult, int]:
        """Execute the statement starting at ``lines[i]``; return the result and the next index."""
        line = lines[i].strip()
        if not line or line.startswith('//'):
            return NORMAL, i + 1
        if MACRO_ERROR_MARKER.search(line):
            self.execute_line(line, env)
            return NORMAL, i + 1
        if line.startswith('/*'):
            return NORMAL, self._skip_comment(lines, i)

        stmt = _statement_text(line)
        match = KEYWORD_RE.match(stmt)
        keyword = match.group(0) if match else ''
        if stmt == 'break':
            return BREAK, i + 1
        if stmt == 'continue':
            return CONTINUE, i + 1
        if keyword == 'return':
            return self._return(stmt, env), i + 1
        if keyword == 'if':
            return self._if(lines, i, env)
        if keyword == 'while':
            return self._while(lines, i, env)
        if keyword == 'for':
            return self._for(lines, i, env)
        if keyword == 'switch':
            return self._switch(lines, i, env)
        if keyword == 'function':
            return NORMAL, self._function(lines, i, env, c_style=False)
        if C_FUNCTION_RE.match(line):
            return NORMAL, self._function(lines, i, env, c_style=True)
        if keyword in ('struct', 'class'):
            return NORMAL, self._record(lines, i, keyword)
        if ARROW_RE.match(line):
            return NORMAL, self._arrow(lines, i, env)
        self.execute_line(line, env)
        return NORMAL, i + 1

    def _skip_comment(self, lines: List[str], i: int) -> int:
        start = lines[i].find('/*') + 2
        for n in range(i, len(lines)):
            if lines[n].find('*/', start if n == i else 0) >= 0:
                return n + 1
        return len(lines)

    def _indent(self, lines: List[str], i: int) -> int:
        return len(lines[i]) - len(lines[i].lstrip())

    def _condition(self, lines: List[str], i: int, col: int) -> Tuple[str, int]:
        """Return the parenthesized header after a keyword and the column past it."""
        text = lines[i]
        open_index = text.find('(', col)
        if open_index < 0:
            raise SyntaxFault(f'expected ( after {text[col:].split()[0]}')
        close_index = matching_paren(text, open_index)
        return text[open_index + 1:close_index], close_index + 1

    def _tick(self, count: int, kind: str) -> int:
        count += 1
        if count > self.interpreter.max_iterations:
            raise IterationLimitExceeded(
                f'possible infinite loop: {kind} loop exceeded {self.interpreter.max_iterations} iterations')
        return count

    # Statements

    def _return(self, stmt: str, env: Environment) -> BlockResult:
        expression = RETURN_RE.match(stmt).group(1).strip()
        if not expression:
            return returned(None)
        # faults here propagate out of the enclosing call
        return returned(self.evaluate(expression, env))

    def _if(self, lines: List[str], i: int, env: Environment) -> Tuple[BlockResult, int]:
        line_no, col, keyword = i, self._indent(lines, i), 'if'
        chosen: Optional[BlockSpan] = None
        while True:
            if keyword == 'else':
                span = scan_block(lines, line_no, col + len('else'))
                if chosen is None:
                    chosen = span
                break
            condition, after = self._condition(lines, line_no, col)
            span = scan_block(lines, line_no, after)
            if chosen is None:
                value = self.evaluate(condition, env)
                self.debug(3, f'Condition ({condition.strip()}) -> {to_string(value)}')
                if is_truthy(value):
                    chosen = span
            following = self._chain(lines, span)
            if following is None:
                break
            line_no, col, keyword = following
        end = span.close_line + 1
        if chosen is None:
            return NORMAL, end
        return self.run_block(self.body_of(lines, chosen), env), end

    def _chain(self, lines: List[str], span: BlockSpan) -> Optional[Tuple[int, int, str]]:
        """Find an ``elif``/``else`` continuing the chain after a closed block."""
        tail = text_after(lines, span)
        if tail.strip():
            line_no, col = span.close_line, span.close_col + 1 + len(tail) - len(tail.lstrip())
        else:
            line_no = span.close_line + 1
            while line_no < len(lines) and not lines[line_no].strip():
                line_no += 1
            if line_no >= len(lines):
                return None
            col = self._indent(lines, line_no)
        match = CHAIN_RE.match(lines[line_no], col)
        if not match:
            return None
        return line_no, col, 'else' if match.group(1) == 'else' else 'elif'

    def _while(self, lines: List[str], i: int, env: Environment) -> Tuple[BlockResult, int]:
        condition, after = self._condition(lines, i, self._indent(lines, i))
        span = scan_block(lines, i, after)
        body = self.body_of(lines, span)
        end = span.close_line + 1
        count = 0
        while is_truthy(self.evaluate(condition, env)):
            count = self._tick(count, 'while')
            result = self.run_block(body, env)
            if result.kind is BlockKind.BREAK:
                break
            if result.kind is BlockKind.RETURN:
                return result, end
        self.debug(3, f'while ({condition.strip()}) ran {count} iterations')
        return NORMAL, end

    def _for(self, lines: List[str], i: int, env: Environment) -> Tuple[BlockResult, int]:
        header, after = self._condition(lines, i, self._indent(lines, i))
        span = scan_block(lines, i, after)
        body = self.body_of(lines, span)
        end = span.close_line + 1
        if any(True for _ in top_level_positions(header, ';')):
            return self._counted_for(header, body, env), end
        return self._range_for(header, body, env), end

    def _counted_for(self, header: str, body: List[str], env: Environment) -> BlockResult:
        parts = split_top_level(header, ';')
        if len(parts) != 3:
            raise SyntaxFault(f'malformed for header: {header.strip()}')
        init, condition, increment = (part.strip() for part in parts)
        loop_env = Environment(env)
        if init:
            self.execute_simple(init, loop_env)
        count = 0
        while not condition or is_truthy(self.evaluate(condition, loop_env)):
            count = self._tick(count, 'for')
            result = self.run_block(body, loop_env)
            if result.kind is BlockKind.BREAK:
                break
            if result.kind is BlockKind.RETURN:
                return result
            if increment:
                self.execute_simple(increment, loop_env)
        self.debug(3, f'for ({header.strip()}) ran {count} iterations')
        return NORMAL

    def _range_for(self, header: str, body: List[str], env: Environment) -> BlockResult:
        separator = _range_separator(header)
        if separator is None:
            raise SyntaxFault(f'malformed for header: {header.strip()}')
        variable = parse_loop_variable(header[:separator])
        collection = self.evaluate(header[separator + 1:], env)
        if isinstance(collection, list):
            items = list(collection)
        elif isinstance(collection, str):
            items = [Char(ch) for ch in collection]
        else:
            raise TypeMismatch(f'cannot iterate over {type_name(collection)}')
        count = 0
        for item in items:
            count = self._tick(count, 'for')
            iteration_env = Environment(env)
            iteration_env.declare(variable.name, item, variable.type_name)
            result = self.execute_block(body, iteration_env)
            if result.kind is BlockKind.BREAK:
                break
            if result.kind is BlockKind.RETURN:
                return result
        return NORMAL

    def _switch(self, lines: List[str], i: int, env: Environment) -> Tuple[BlockResult, int]:
        expression, after = self._condition(lines, i, self._indent(lines, i))
        span = scan_block(lines, i, after)
        value = self.evaluate(expression, env)
        if not is_number(value):
            raise TypeMismatch(f'switch value must be numeric, got {type_name(value)}')
        for raw in self.body_of(lines, span):
            case = strip_line_comment(raw).strip()
            if not case:
                continue
            match = CASE_RE.match(case)
            if not match:
                if '=>' in case:
                    raise SyntaxFault(f'malformed switch case: {case}')
                break
            # no break between cases: every matching line runs
            if abs(float(match.group(1)) - float(value)) < EPSILON:
                self.execute_line(match.group(2), env)
        return NORMAL, span.close_line + 1

    def _function(self, lines: List[str], i: int, env: Environment, c_style: bool) -> int:
        col = self._indent(lines, i)
        span = scan_block(lines, i, col)
        header = lines[i][col:span.open_col] if span.open_line == i else lines[i][col:]
        if c_style:
            head = parse_c_function_header(header)
        else:
            head = parse_function_header(header)
        function = FunctionDef(head.name, head.params, head.return_type,
                               self.body_of(lines, span), c_style=c_style)
        env.define_function(function)
        self.debug(2, f'Defined function {head.name}({", ".join(p.name for p in head.params)})')
        return span.close_line + 1

    def _arrow(self, lines: List[str], i: int, env: Environment) -> int:
        match = ARROW_RE.match(lines[i].strip())
        name, head_text, rest = match.groups()
        block = ARROW_BLOCK_RE.match(rest)
        if block:
            head = parse_arrow_header(f'{head_text} {block.group(1) or ""}')
            arrow_at = lines[i].index('=>', lines[i].index('|'))
            span = scan_block(lines, i, arrow_at + 2)
            body = self.body_of(lines, span)
            end = span.close_line + 1
        else:
            head = parse_arrow_header(head_text)
            expression = _statement_text(rest)
            if not expression:
                raise SyntaxFault(f'arrow function {name} has no body')
            body = [f'return {expression}']
            end = i + 1
        function = FunctionDef(name, head.params, head.return_type, body, closure=env)
        env.declare(name, function, 'fn')
        self.debug(2, f'Defined arrow function {name}')
        return end

    def _record(self, lines: List[str], i: int, keyword: str) -> int:
        span = scan_block(lines, i, self._indent(lines, i))
        header = lines[i].strip().split()
        name = header[1].rstrip('{') if len(header) > 1 else '?'
        self.interpreter.report(RuntimeFault(f'{keyword} {name} skipped: record types are not supported'))
        return span.close_line + 1

    # Simple statements

    def execute_line(self, line: str, env: Environment) -> Any:
        """Execute one simple statement, reporting ordinary faults instead of raising them."""
        try:
            return self.execute_simple(line, env)
        except RuntimeFault as fault:
            self.interpreter.report(fault)
            return None

    def execute_simple(self, line: str, env: Environment) -> Any:
        stmt = _statement_text(line)
        if not stmt:
            return None
        match = IMPORT_RE.match(stmt)
        if match:
            return self.interpreter.import_module(match.group(1), env)
        match = PANIC_RE.match(stmt)
        if match:
            message = self.evaluate(match.group(1), env) if match.group(1).strip() else 'panic'
            raise PanicSignal(to_string(message))
        if DECLARATION_RE.match(stmt):
            return self._declare(stmt, env)
        match = ASSIGN_RE.match(stmt)
        if match:
            return env.set(match.group(1), self.evaluate(match.group(2), env))
        target = self._index_target(stmt)
        if target is not None:
            return self._index_assign(*target, env)
        return self.evaluate(stmt, env)

    def _declare(self, stmt: str, env: Environment) -> Any:
        equals = stmt.find('=')
        head = parse_declaration_head(stmt if equals < 0 else stmt[:equals])
        if equals < 0:
            value = default_value(head.type_name)
        else:
            value = self.evaluate(stmt[equals + 1:], env)
        value = env.declare(head.name, value, head.type_name)
        self.debug(2, f'Declared {head.name}: {head.type_name or "any"} = {to_string(value)}')
        return value

    @staticmethod
    def _index_target(stmt: str) -> Optional[Tuple[str, str, str]]:
        """Split ``name[index] = value`` into its parts, or return None."""
        if not INDEX_TARGET_RE.match(stmt):
            return None
        open_index = stmt.index('[')
        depth = 0
        for close_index in range(open_index, len(stmt)):
            if stmt[close_index] == '[':
                depth += 1
            elif stmt[close_index] == ']':
                depth -= 1
                if depth == 0:
                    break
        else:
            return None
        rest = stmt[close_index + 1:].lstrip()
        if not rest.startswith('=') or rest.startswith('=='):
            return None
        return stmt[:open_index].strip(), stmt[open_index + 1:close_index], rest[1:]

    def _index_assign(self, name: str, index_text: str, value_text: str, env: Environment) -> Any:
        target = env.get(name)
        if not isinstance(target, list):
            raise TypeMismatch(f'cannot assign into {type_name(target)}')
        index = to_index(self.evaluate(index_text, env), len(target))
        value = self.evaluate(value_text, env)
        target[index] = value
        return value
