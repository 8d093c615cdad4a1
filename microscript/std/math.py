import math
from typing import Any, List

from microscript.builtin_function import NativeFunction
from microscript.environment import Environment
from microscript.errors import RuntimeFault, TypeMismatch
from microscript.types import is_integer, is_number, number_result, type_name

CONSTANTS = {
    'PI': math.pi,
    'E': math.e,
    'TAU': math.tau,
    'PHI': (1 + math.sqrt(5)) / 2,
}


def _number(name: str, value: Any) -> Any:
    if not is_number(value):
        raise TypeMismatch(f'math::{name} expects a number, got {type_name(value)}')
    return value


def populate_math_environment() -> Environment:
    math_env = Environment()

    def math_sqrt(args: List[Any]) -> Any:
        x = _number('sqrt', args[0])
        if x < 0:
            raise RuntimeFault(f'math::sqrt of negative number {x}')
        return math.sqrt(x)

    def math_square(args: List[Any]) -> Any:
        x = _number('square', args[0])
        return number_result(x, x, float(x) * float(x))

    def math_cbrt(args: List[Any]) -> Any:
        x = float(_number('cbrt', args[0]))
        return math.copysign(abs(x) ** (1.0 / 3.0), x)

    def math_cube(args: List[Any]) -> Any:
        x = _number('cube', args[0])
        try:
            return number_result(x, x, float(x) ** 3)
        except OverflowError as e:
            raise RuntimeFault(f'math::cube failed: {e}')

    def math_pow(args: List[Any]) -> Any:
        base, exponent = _number('pow', args[0]), _number('pow', args[1])
        try:
            return number_result(base, exponent, math.pow(base, exponent))
        except (ValueError, OverflowError) as e:
            raise RuntimeFault(f'math::pow failed: {e}')

    def math_abs(args: List[Any]) -> Any:
        x = _number('abs', args[0])
        return abs(x) if is_integer(x) else abs(float(x))

    for name, value in CONSTANTS.items():
        math_env.declare(f'math::{name}', value, 'Float64')
    natives = [
        ('sqrt', 1, math_sqrt),
        ('square', 1, math_square),
        ('cbrt', 1, math_cbrt),
        ('cube', 1, math_cube),
        ('pow', 2, math_pow),
        ('abs', 1, math_abs),
    ]
    for name, arity, fn in natives:
        qualified = f'math::{name}'
        math_env.declare(qualified, NativeFunction(qualified, arity, fn), 'fn')
    return math_env
