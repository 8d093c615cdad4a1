"""Expression evaluator for MicroScript.

Expressions are evaluated directly from their source text by a single-pass
character scanner; there is no token list and no tree. Each grammar level is
one method, from lowest to highest precedence:

    assignment      name := expr | name (+= -= *= /=) expr
    ternary         comparison ['?' ternary ':' ternary]
    comparison      additive (('<=>'|'<='|'>='|'=='|'!='|'<'|'>') additive)*
    additive        multiplicative (('+'|'-') multiplicative)*
    multiplicative  unary (('*'|'/'|'#'|'%') unary)*
    unary           ('+'|'-') unary | ('++'|'--') name | power
    power           primary ['^' unary]
    primary         literal | '(' assignment ')' | list | '!' unary | not unary
                    | name | name '(' args ')' | name '++' | name '--'
                    followed by any number of '[' index ']'

The untaken branch of a ternary is still scanned, but with evaluation
suppressed, so its calls, increments and assignments never run.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, List, Optional

from .environment import Environment
from .errors import DivisionByZero, RuntimeFault, SyntaxFault, TypeMismatch, UndefinedName
from .macros import raise_for_macro_error
from .types import (
    EPSILON, Char, is_number, is_truthy, number_result, to_string, type_name,
)

if TYPE_CHECKING:
    from .interpreter import Interpreter

COMPARISON_OPS = ('<=>', '<=', '>=', '==', '!=', '<', '>')
ASSIGNMENT_OPS = (':=', '+=', '-=', '*=', '/=')
KEYWORDS = {'true', 'false', 'null', 'not'}
ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', '\\': '\\', '"': '"', "'": "'", '0': '\0'}


def arithmetic(op: str, a: Any, b: Any, position: Optional[int] = None) -> Any:
    """Apply a binary arithmetic operator in double precision."""
    if op == '+' and (isinstance(a, str) or isinstance(b, str)):
        return to_string(a) + to_string(b)
    if not (is_number(a) and is_number(b)):
        raise TypeMismatch(f'unsupported operands for {op}: {type_name(a)} and {type_name(b)}', position)
    x, y = float(a), float(b)
    if op in ('/', '#', '%') and abs(y) < EPSILON:
        raise DivisionByZero('division by zero', position)
    try:
        if op == '+':
            result = x + y
        elif op == '-':
            result = x - y
        elif op == '*':
            result = x * y
        elif op == '/':
            result = x / y
        elif op == '#':
            result = float(math.floor(x / y))
        elif op == '%':
            result = math.fmod(x, y)
        elif op == '^':
            result = math.pow(x, y)
        else:
            raise SyntaxFault(f'unknown operator {op}', position)
    except (ValueError, OverflowError) as e:
        raise RuntimeFault(f'{op} failed: {e}', position)
    return number_result(a, b, result)


def values_equal(a: Any, b: Any) -> bool:
    if is_number(a) and is_number(b):
        return abs(float(a) - float(b)) < EPSILON
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, str) and isinstance(b, str):
        return str.__eq__(a, b)
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    if a is None or b is None:
        return a is b
    return a == b


def three_way(a: Any, b: Any, position: Optional[int] = None) -> int:
    """Spaceship comparison: -1, 0 or 1."""
    if is_number(a) and is_number(b):
        if abs(float(a) - float(b)) < EPSILON:
            return 0
        return -1 if a < b else 1
    if isinstance(a, str) and isinstance(b, str):
        return (a > b) - (a < b)
    raise TypeMismatch(f'cannot compare {type_name(a)} and {type_name(b)}', position)


def compare(op: str, a: Any, b: Any, position: Optional[int] = None) -> Any:
    if op == '==':
        return values_equal(a, b)
    if op == '!=':
        return not values_equal(a, b)
    order = three_way(a, b, position)
    if op == '<=>':
        return order
    if op == '<':
        return order < 0
    if op == '<=':
        return order <= 0
    if op == '>':
        return order > 0
    return order >= 0


class ExpressionEvaluator:
    def __init__(self, expression: str, env: Environment, interpreter: 'Interpreter'):
        self.expression = expression
        self.env = env
        self.interpreter = interpreter
        self.pos = 0
        # > 0 while scanning a ternary branch that must not run
        self.skip_depth = 0

    def parse(self) -> Any:
        raise_for_macro_error(self.expression)
        value = self._assignment()
        self._skip_ws()
        if self.pos < len(self.expression):
            raise SyntaxFault(f'Unexpected: {self.expression[self.pos]!r}', self.pos)
        return value

    # Scanning helpers

    @property
    def skipping(self) -> bool:
        return self.skip_depth > 0

    def _peek(self, offset: int = 0) -> str:
        i = self.pos + offset
        return self.expression[i] if i < len(self.expression) else ''

    def _skip_ws(self):
        while self.pos < len(self.expression) and self.expression[self.pos].isspace():
            self.pos += 1

    def _at(self, token: str) -> bool:
        self._skip_ws()
        return self.expression.startswith(token, self.pos)

    def _eat(self, token: str) -> bool:
        if self._at(token):
            self.pos += len(token)
            return True
        return False

    def _expect(self, token: str, message: str):
        if not self._eat(token):
            raise SyntaxFault(message, self.pos)

    def _scan_name(self) -> str:
        start = self.pos
        if self.pos < len(self.expression) and (self.expression[self.pos].isalpha() or self.expression[self.pos] == '_'):
            self.pos += 1
            while self.pos < len(self.expression) and (self.expression[self.pos].isalnum() or self.expression[self.pos] == '_'):
                self.pos += 1
        return self.expression[start:self.pos]

    def _scan_qualified_name(self) -> str:
        # module::name and object.member are resolved as single names
        name = self._scan_name()
        while True:
            for sep in ('::', '.'):
                if self.expression.startswith(sep, self.pos):
                    save = self.pos
                    self.pos += len(sep)
                    part = self._scan_name()
                    if part:
                        name += sep + part
                        break
                    self.pos = save
            else:
                return name

    def _binary_op(self, ops) -> Optional[str]:
        self._skip_ws()
        for op in ops:
            if self.expression.startswith(op, self.pos):
                # leave compound assignment tokens alone
                if len(op) == 1 and self._peek(1) == '=':
                    continue
                self.pos += len(op)
                return op
        return None

    # Grammar levels

    def _assignment(self) -> Any:
        start = self.pos
        self._skip_ws()
        name = self._scan_name()
        if name and name not in KEYWORDS:
            self._skip_ws()
            for op in ASSIGNMENT_OPS:
                if self.expression.startswith(op, self.pos):
                    op_pos = self.pos
                    self.pos += len(op)
                    value = self._assignment()
                    return self._assign(name, op, value, op_pos)
        self.pos = start
        return self._ternary()

    def _assign(self, name: str, op: str, value: Any, position: int) -> Any:
        if self.skipping:
            return None
        if op == ':=':
            return self.env.set(name, value)
        if not self.env.has(name):
            raise UndefinedName(f'undefined variable {name}', position)
        current = self.env.get(name)
        return self.env.set(name, arithmetic(op[0], current, value, position))

    def _ternary(self) -> Any:
        condition = self._comparison()
        if not self._eat('?'):
            return condition
        take = not self.skipping and is_truthy(condition)
        then_value = self._branch(take)
        self._skip_ws()
        if self._peek() != ':' or self._peek(1) in (':', '='):
            raise SyntaxFault("expected ':' in conditional expression", self.pos)
        self.pos += 1
        else_value = self._branch(not take)
        return then_value if take else else_value

    def _branch(self, active: bool) -> Any:
        if active:
            return self._ternary()
        self.skip_depth += 1
        try:
            return self._ternary()
        finally:
            self.skip_depth -= 1

    def _comparison(self) -> Any:
        left = self._additive()
        while True:
            position = self.pos
            op = self._binary_op(COMPARISON_OPS)
            if op is None:
                return left
            right = self._additive()
            left = None if self.skipping else compare(op, left, right, position)

    def _additive(self) -> Any:
        left = self._multiplicative()
        while True:
            position = self.pos
            op = self._binary_op(('+', '-'))
            if op is None:
                return left
            right = self._multiplicative()
            left = None if self.skipping else arithmetic(op, left, right, position)

    def _multiplicative(self) -> Any:
        left = self._unary()
        while True:
            position = self.pos
            op = self._binary_op(('*', '/', '#', '%'))
            if op is None:
                return left
            right = self._unary()
            left = None if self.skipping else arithmetic(op, left, right, position)

    def _unary(self) -> Any:
        self._skip_ws()
        for op, delta in (('++', 1), ('--', -1)):
            if self.expression.startswith(op, self.pos):
                self.pos += 2
                self._skip_ws()
                name = self._scan_name()
                if not name:
                    raise SyntaxFault(f'{op} expects a variable name', self.pos)
                return self._increment(name, delta, prefix=True)
        if self._peek() == '+':
            self.pos += 1
            operand = self._unary()
            return None if self.skipping else self._numeric(operand, '+')
        if self._peek() == '-':
            self.pos += 1
            operand = self._unary()
            return None if self.skipping else -self._numeric(operand, '-')
        return self._power()

    def _power(self) -> Any:
        base = self._primary()
        position = self.pos
        if self._eat('^'):
            exponent = self._unary()
            return None if self.skipping else arithmetic('^', base, exponent, position)
        return base

    def _primary(self) -> Any:
        self._skip_ws()
        c = self._peek()
        start = self.pos
        if c == '':
            raise SyntaxFault('unexpected end of expression', self.pos)
        if c == '(':
            self.pos += 1
            value = self._assignment()
            self._expect(')', 'unmatched parenthesis')
        elif c == '[':
            self.pos += 1
            value = self._list_literal()
        elif c.isdigit() or (c == '.' and self._peek(1).isdigit()):
            value = self._number()
        elif c == '"':
            value = self._string()
        elif c == "'":
            value = self._char()
        elif c == '!' and self._peek(1) != '=':
            self.pos += 1
            operand = self._unary()
            value = None if self.skipping else not is_truthy(operand)
        elif c.isalpha() or c == '_':
            value = self._identifier()
        else:
            raise SyntaxFault(f'Unexpected: {c!r}', start)
        while self._at('['):
            self.pos += 1
            index = self._assignment()
            self._expect(']', "expected ']'")
            value = None if self.skipping else self._index(value, index, start)
        return value

    # Primaries

    def _number(self) -> Any:
        start = self.pos
        while self._peek().isdigit():
            self.pos += 1
        if self._peek() == '.' and self._peek(1).isdigit():
            self.pos += 1
            while self._peek().isdigit():
                self.pos += 1
            return float(self.expression[start:self.pos])
        if self._peek() == '.' and not self._peek(1).isalpha():
            self.pos += 1
            return float(self.expression[start:self.pos])
        return int(self.expression[start:self.pos])

    def _quoted(self, quote: str) -> str:
        start = self.pos
        self.pos += 1
        chars: List[str] = []
        while self.pos < len(self.expression):
            ch = self.expression[self.pos]
            if ch == '\\' and self.pos + 1 < len(self.expression):
                escaped = self.expression[self.pos + 1]
                chars.append(ESCAPES.get(escaped, '\\' + escaped))
                self.pos += 2
                continue
            if ch == quote:
                self.pos += 1
                return ''.join(chars)
            chars.append(ch)
            self.pos += 1
        raise SyntaxFault('unterminated literal', start)

    def _string(self) -> str:
        return self._quoted('"')

    def _char(self) -> Char:
        start = self.pos
        text = self._quoted("'")
        if len(text) != 1:
            raise SyntaxFault(f'invalid character literal {text!r}', start)
        return Char(text)

    def _list_literal(self) -> List[Any]:
        items: List[Any] = []
        if self._eat(']'):
            return items
        while True:
            items.append(self._assignment())
            if self._eat(']'):
                return items
            self._expect(',', "expected ',' or ']' in list literal")

    def _identifier(self) -> Any:
        start = self.pos
        name = self._scan_qualified_name()
        if name == 'true':
            return True
        if name == 'false':
            return False
        if name == 'null':
            return None
        if name == 'not':
            operand = self._unary()
            return None if self.skipping else not is_truthy(operand)
        if self._at('('):
            self.pos += 1
            args = self._arguments()
            return self._call(name, args, start)
        for op, delta in (('++', 1), ('--', -1)):
            # postfix operators must touch the name
            if self.expression.startswith(op, self.pos):
                self.pos += 2
                return self._increment(name, delta, prefix=False)
        if self.skipping:
            return None
        if not self.env.has(name):
            raise UndefinedName(f'undefined variable {name}', start)
        return self.env.get(name)

    def _arguments(self) -> List[Any]:
        args: List[Any] = []
        if self._eat(')'):
            return args
        while True:
            args.append(self._assignment())
            if self._eat(')'):
                return args
            self._expect(',', "expected ',' or ')' in argument list")

    # Effects

    def _call(self, name: str, args: List[Any], position: int) -> Any:
        if self.skipping:
            return None
        callee = self.env.get_function(name)
        if callee is None and self.env.has(name):
            callee = self.env.get(name)
        if callee is None:
            raise UndefinedName(f'undefined function {name}', position)
        return self.interpreter.call_function(callee, args, self.env)

    def _increment(self, name: str, delta: int, prefix: bool) -> Any:
        if self.skipping:
            return None
        if not self.env.has(name):
            raise UndefinedName(f'undefined variable {name}', self.pos)
        current = self.env.get(name)
        if not is_number(current):
            raise TypeMismatch(f'{name} is not numeric', self.pos)
        updated = self.env.set(name, number_result(current, delta, float(current) + delta))
        return updated if prefix else current

    def _numeric(self, value: Any, op: str) -> Any:
        if not is_number(value):
            raise TypeMismatch(f'unary {op} expects a number, got {type_name(value)}', self.pos)
        return value

    def _index(self, container: Any, index: Any, position: int) -> Any:
        if not isinstance(container, (list, str)):
            raise TypeMismatch(f'cannot index {type_name(container)}', position)
        i = to_index(index, len(container), position)
        item = container[i]
        return Char(item) if isinstance(container, str) else item


def to_index(index: Any, length: int, position: Optional[int] = None) -> int:
    """Resolve a script index value against a sequence length."""
    if not is_number(index) or (isinstance(index, float) and not index.is_integer()):
        raise TypeMismatch(f'index must be an Integer, got {type_name(index)}', position)
    i = int(index)
    if i < 0:
        i += length
    if i < 0 or i >= length:
        raise RuntimeFault(f'index {int(index)} out of range', position)
    return i


def evaluate(expression: str, env: Environment, interpreter: 'Interpreter') -> Any:
    """Evaluate one expression string in ``env``."""
    return ExpressionEvaluator(expression, env, interpreter).parse()
