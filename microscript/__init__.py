# MicroScript language package
# This package provides a line-oriented interpreter for the MicroScript language.
from .errors import FatalFault, MicroScriptError, PanicSignal, RuntimeFault
from .interpreter import Interpreter, run_file, run_program

__all__ = [
    'run_program',
    'run_file',
    'Interpreter',
    'MicroScriptError',
    'RuntimeFault',
    'FatalFault',
    'PanicSignal',
]
