from typing import Any, List

from microscript.builtin_function import NativeFunction
from microscript.environment import Environment
from microscript.errors import ArityError
from microscript.types import is_string, to_string


def format_arguments(args: List[Any]) -> str:
    """Render console arguments.

    When the first argument is a String containing ``{}`` placeholders, the
    remaining arguments fill them in order. Otherwise all arguments are
    printed separated by single spaces.
    """
    if not args:
        return ''
    first, rest = args[0], args[1:]
    if is_string(first) and '{}' in first:
        pieces = first.split('{}')
        if len(pieces) - 1 != len(rest):
            raise ArityError(f'format string has {len(pieces) - 1} placeholders but {len(rest)} arguments were given')
        out = [pieces[0]]
        for arg, piece in zip(rest, pieces[1:]):
            out.append(to_string(arg))
            out.append(piece)
        return ''.join(out)
    return ' '.join(to_string(arg) for arg in args)


def populate_console_environment() -> Environment:
    console_env = Environment()

    def console_write(args: List[Any]) -> Any:
        print(format_arguments(args))
        return None

    def console_writef(args: List[Any]) -> Any:
        print(format_arguments(args), end='')
        return None

    console_env.declare('console.write', NativeFunction('console.write', None, console_write), 'fn')
    console_env.declare('console.writef', NativeFunction('console.writef', None, console_writef), 'fn')
    return console_env
