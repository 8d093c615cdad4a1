from typing import Optional


class MicroScriptError(Exception):
    """Base class for every error raised while running a MicroScript program."""
    kind = 'Error'

    def __init__(self, message: str):
        super().__init__(f"{self.kind}: {message}")
        self.message = message


class RuntimeFault(MicroScriptError):
    """Recoverable fault; statement-level execution reports it and moves on."""
    kind = 'RuntimeError'

    def __init__(self, message: str, position: Optional[int] = None):
        if position is not None:
            message = f"{message} (at offset {position})"
        super().__init__(message)
        self.position = position


class UndefinedName(RuntimeFault):
    kind = 'NameError'


class TypeMismatch(RuntimeFault):
    kind = 'TypeError'


class DivisionByZero(RuntimeFault):
    kind = 'DivisionByZero'


class ArityError(RuntimeFault):
    kind = 'ArityError'


class SyntaxFault(RuntimeFault):
    kind = 'SyntaxError'


class MacroArgError(RuntimeFault):
    """Raised when a line carrying a macro argument-count marker is evaluated."""
    kind = 'MacroArgError'

    def __init__(self, macro_name: str):
        super().__init__(f"wrong number of arguments for macro {macro_name}")
        self.macro_name = macro_name


class FatalFault(MicroScriptError):
    """Never caught by statement execution; unwinds to the program driver."""
    kind = 'FatalError'


class PanicSignal(FatalFault):
    kind = 'Panic'


class IterationLimitExceeded(FatalFault):
    kind = 'InfiniteLoop'


class StackOverflow(FatalFault):
    kind = 'StackOverflow'
