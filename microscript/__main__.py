"""CLI entry point for the MicroScript interpreter.

Usage:
    python -m microscript run [-v|-vv|-vvv|-vvvv] <program_file>
    python -m microscript about
    python -m microscript --version

Options:
  -v            Increase debug verbosity (can be repeated)

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. Program files must end in `.mus`,
`.microscript` or `.micros`.
"""

import argparse
import sys
from pathlib import Path

from .errors import MicroScriptError, PanicSignal
from .interpreter import Interpreter

VERSION = 'MicroScript 0.1.0'
EXTENSIONS = ('.mus', '.microscript', '.micros')


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog='microscript', description='MicroScript language interpreter')
    parser.add_argument('--version', action='version', version=VERSION)
    commands = parser.add_subparsers(dest='command')
    run_parser = commands.add_parser('run', help='run a MicroScript file')
    run_parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    run_parser.add_argument('program', help='MicroScript program file to execute')
    commands.add_parser('about', help='show about information')
    args = parser.parse_args(argv)

    if args.command == 'about':
        print('MicroScript - The programming language')
        return
    if args.command != 'run':
        parser.print_help()
        return

    program_file = Path(args.program)
    if program_file.suffix not in EXTENSIONS:
        print(f"Error: {program_file} is not a MicroScript file (expected {', '.join(EXTENSIONS)})", file=sys.stderr)
        sys.exit(1)
    if not program_file.exists():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        sys.exit(1)
    with open(program_file, 'r', encoding='utf-8') as f:
        source = f.read()
    interpreter = Interpreter(debug_level=args.v)
    try:
        interpreter.run(source)
    except PanicSignal as e:
        print(f"panic: {e.message}", file=sys.stderr)
        sys.exit(1)
    except MicroScriptError as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
