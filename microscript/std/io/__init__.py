from typing import Any, List

from microscript.builtin_function import NativeFunction
from microscript.environment import Environment
from microscript.errors import TypeMismatch
from microscript.types import is_integer, is_string, to_string, type_name

from .basic_io import BasicIO


def _printable(name: str, value: Any) -> str:
    # an Integer argument is a character code
    if is_integer(value):
        if not 0 <= value <= 0x10FFFF:
            raise TypeMismatch(f'{name}: character code {value} out of range')
        return chr(value)
    return to_string(value)


def populate_io_environment() -> Environment:
    basic_io = BasicIO()
    io_env = Environment()

    def io_print(args: List[Any]) -> Any:
        basic_io.write(_printable('io::print', args[0]))
        return None

    def io_println(args: List[Any]) -> Any:
        basic_io.write_line(_printable('io::println', args[0]))
        return None

    def io_input(args: List[Any]) -> Any:
        prompt = args[0]
        if not is_string(prompt):
            raise TypeMismatch(f'io::input prompt must be String, got {type_name(prompt)}')
        return basic_io.read_line(prompt)

    io_env.declare('io::print', NativeFunction('io::print', 1, io_print), 'fn')
    io_env.declare('io::println', NativeFunction('io::println', 1, io_println), 'fn')
    io_env.declare('io::input', NativeFunction('io::input', 1, io_input), 'fn')
    return io_env
