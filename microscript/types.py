"""Type definitions and helpers for MicroScript.

This module defines the runtime value model used by the MicroScript
interpreter. Script values map onto Python objects:

* ``None`` is the script ``null``
* ``bool`` is ``true``/``false``
* ``int`` is an Integer (``Int32``/``Int64`` are declarations, not widths)
* ``float`` is a Float64 value, :class:`Float32` a value declared Float32
* ``str`` is a String, :class:`Char` a character literal
* ``list`` is a List
* :class:`~microscript.builtin_function.FunctionDef` and
  :class:`~microscript.builtin_function.NativeFunction` are Callables

The evaluator computes with double precision, but the Python type of a
number records where it came from (an integer literal, a float literal or a
declaration), which is what the strict annotation checks look at.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from .builtin_function import FunctionDef, NativeFunction

# Single tolerance for float equality, ``<=>``, truthiness, division by zero
# and switch case matching.
EPSILON = 1e-4

INTEGER_TYPES = {'Int32', 'Int64'}
FLOAT_TYPES = {'Float32', 'Float64'}
# Declared types the interpreter checks strictly. ``None`` (no annotation),
# ``void`` and ``fn`` disable the check.
KNOWN_TYPES = {'String', 'Char', 'Bool', 'List'} | INTEGER_TYPES | FLOAT_TYPES
UNCHECKED_TYPES = {'void', 'fn'}


class Char(str):
    """A string value that originated from a character literal."""

    def __repr__(self) -> str:
        return f"Char({str.__repr__(self)})"


class Float32(float):
    """A float value that was bound to a ``Float32`` declaration."""

    def __repr__(self) -> str:
        return f"Float32({float.__repr__(self)})"


def is_integer(value: Any) -> bool:
    # bool is a subclass of int; it is never a script Integer
    return isinstance(value, int) and not isinstance(value, bool)


def is_float(value: Any) -> bool:
    return isinstance(value, float)


def is_number(value: Any) -> bool:
    return is_integer(value) or is_float(value)


def is_string(value: Any) -> bool:
    return isinstance(value, str) and not isinstance(value, Char)


def number_result(a: Any, b: Any, result: float) -> Any:
    """Tag a double-precision result with the kind of its operands.

    Two Integer operands yield an Integer when the result is integral;
    anything else yields a Float64.
    """
    if is_integer(a) and is_integer(b) and math.isfinite(result) and result == int(result):
        return int(result)
    return float(result)


def type_name(value: Any) -> str:
    """Return the MicroScript type name of a runtime value."""
    if value is None:
        return 'Null'
    if isinstance(value, bool):
        return 'Bool'
    if is_integer(value):
        return 'Integer'
    if isinstance(value, Float32):
        return 'Float32'
    if isinstance(value, float):
        return 'Float64'
    if isinstance(value, Char):
        return 'Char'
    if isinstance(value, str):
        return 'String'
    if isinstance(value, list):
        return 'List'
    if isinstance(value, (FunctionDef, NativeFunction)):
        return 'Callable'
    return type(value).__name__


def check_value(value: Any, declared: Optional[str]) -> Any:
    """Check a runtime value against a declared type and return the bound value.

    The check is an exact kind match, not a coercion, with one exception:
    ``Float64`` accepts Integer and Float32 values and widens them, and
    ``Float32`` accepts any float. Unannotated (``None``), ``void`` and
    ``fn`` declarations accept anything unchanged. Raises ``TypeError``
    (not a script fault) on mismatch; callers wrap it.
    """
    if declared is None or declared in UNCHECKED_TYPES:
        return value
    if declared == 'String':
        if is_string(value):
            return value
    elif declared == 'Char':
        if isinstance(value, Char):
            return value
    elif declared in INTEGER_TYPES:
        if is_integer(value):
            return value
    elif declared == 'Float64':
        if is_float(value) or is_integer(value):
            return float(value)
    elif declared == 'Float32':
        if is_float(value):
            return Float32(value)
    elif declared == 'Bool':
        if isinstance(value, bool):
            return value
    elif declared == 'List':
        if isinstance(value, list):
            return value
    else:
        raise TypeError(f"unknown type annotation: {declared}")
    raise TypeError(f"expected {declared}, got {type_name(value)}")


def default_value(declared: Optional[str]) -> Any:
    """Value bound by a declaration that has no initializer."""
    if declared in INTEGER_TYPES:
        return 0
    if declared == 'Float64':
        return 0.0
    if declared == 'Float32':
        return Float32(0.0)
    if declared == 'String':
        return ''
    if declared == 'Char':
        return Char('\0')
    if declared == 'Bool':
        return False
    if declared == 'List':
        return []
    return None


def is_truthy(value: Any) -> bool:
    """Coerce a value to a boolean for conditions and negation."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return abs(value) > EPSILON
    if isinstance(value, str):
        return len(value) > 0
    return True


def format_number(value: float) -> str:
    # Integral floats print without a fractional part
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return repr(float(value))


def to_string(value: Any) -> str:
    """Convert a MicroScript value to its printed representation."""
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if is_integer(value):
        return str(value)
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return str.__str__(value)
    if isinstance(value, list):
        return '[' + ', '.join(to_string(item) for item in value) + ']'
    return str(value)
