"""Program driver for MicroScript.

An :class:`Interpreter` owns the global environment, the native modules and
the statement engine. Running a program preprocesses its macros, executes the
top-level lines in order and then, if the program defined a C-style ``main``,
calls it.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .builtin_function import FunctionDef, NativeFunction
from .environment import Environment
from .errors import ArityError, MicroScriptError, RuntimeFault, StackOverflow, TypeMismatch
from .evaluator import evaluate
from .executor import BlockKind, Executor
from .macros import MacroPreprocessor
from .std import IMPORTABLE, PRELUDE
from .types import check_value, to_string, type_name

MAX_ITERATIONS = 1_000_000
MAX_CALL_DEPTH = 200
# Python frames consumed by one script-level call, with headroom
FRAMES_PER_CALL = 60


class Interpreter:
    """Executes MicroScript source text."""
    def __init__(self, debug_level: int = 0, debug_file: Optional[str] = 'debug.txt',
                 max_iterations: int = MAX_ITERATIONS, max_call_depth: int = MAX_CALL_DEPTH):
        self.global_env = Environment()
        self.modules: Dict[str, Callable[[], Environment]] = dict(IMPORTABLE)
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w', encoding='utf-8') if debug_level > 0 and debug_file else None
        self.debug_closed = False
        self.max_iterations = max_iterations
        self.max_call_depth = max_call_depth
        self.call_depth = 0
        limit = max_call_depth * FRAMES_PER_CALL
        if sys.getrecursionlimit() < limit:
            sys.setrecursionlimit(limit)
        self.executor = Executor(self)
        self.load_standard_modules()

    def debug(self, msg: str):
        if self.debug_level > 0 and not self.debug_closed:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None
            # the trace file is gone; later trace lines are dropped
            self.debug_closed = True

    def report(self, fault: MicroScriptError):
        """Report a fault that statement-level execution recovered from."""
        self.debug(f'Fault: {fault}')
        print(f'Evaluation error: {fault}', file=sys.stderr)

    # Native modules

    def load_standard_modules(self):
        for populate in PRELUDE:
            self._bind_module(populate(), self.global_env)

    def register_native(self, qualified_name: str, fn: Callable[[List[Any]], Any],
                        arity: Optional[int] = None) -> NativeFunction:
        """Expose a host callable to scripts under a ``module::name`` or ``module.name`` key."""
        native = NativeFunction(qualified_name, arity, fn)
        self.global_env.declare(qualified_name, native, 'fn')
        return native

    def register_module(self, name: str, populate: Callable[[], Environment]):
        self.modules[name] = populate

    def import_module(self, name: str, env: Environment) -> Environment:
        populate = self.modules.get(name)
        if populate is None:
            raise RuntimeFault(f'unknown module {name}')
        module_env = populate()
        self._bind_module(module_env, env)
        if self.debug_level >= 2:
            self.debug(f'Imported module {name}: {", ".join(sorted(module_env.variables))}')
        return module_env

    @staticmethod
    def _bind_module(module_env: Environment, env: Environment):
        for name, value in module_env.variables.items():
            env.declare(name, value, module_env.types.get(name))

    # Public API

    def evaluate(self, text: str, env: Optional[Environment] = None) -> Any:
        """Evaluate an expression string; faults propagate to the caller."""
        return evaluate(text, self.global_env if env is None else env, self)

    def execute(self, source: str, env: Optional[Environment] = None) -> Any:
        """Execute one line or a body of lines in ``env``.

        Returns the value of a ``return`` statement reached at the top of the
        body, otherwise None.
        """
        result = self.executor.execute_block(source.splitlines(), self.global_env if env is None else env)
        return result.value if result.kind is BlockKind.RETURN else None

    def run(self, source: str, env: Optional[Environment] = None) -> Any:
        """Preprocess and run a whole program.

        Ordinary faults inside simple statements are reported and execution
        continues; any fault that escapes statement handling (a panic, the
        iteration or call-depth guards, a faulty top-level condition)
        propagates to the caller.
        """
        env = self.global_env if env is None else env
        self.debug('Program start')
        try:
            preprocessor = MacroPreprocessor(debug=self.debug if self.debug_level >= 4 else None)
            lines = preprocessor.preprocess(source.splitlines())
            result = self.executor.execute_block(lines, env)
            value = result.value if result.kind is BlockKind.RETURN else None
            main = env.get_function('main')
            if main is not None and main.c_style:
                self.debug('Running main')
                value = self.call_function(main, [], env)
            self.debug('Program end')
            return value
        except MicroScriptError as e:
            self.debug(f'Program aborted: {e}')
            raise
        finally:
            self.close()

    # Function invocation

    def call_function(self, func: Any, args: List[Any], caller_env: Environment) -> Any:
        if isinstance(func, NativeFunction):
            if func.arity is not None and len(args) != func.arity:
                raise ArityError(f'{func.name} expects {func.arity} arguments, got {len(args)}')
            try:
                return func.fn(args)
            except (ValueError, OverflowError, ZeroDivisionError, TypeError) as e:
                raise RuntimeFault(f'{func.name} failed: {e}')
        if not isinstance(func, FunctionDef):
            raise TypeMismatch(f'{type_name(func)} is not callable')
        if len(args) != func.arity:
            raise ArityError(f'{func.name} expects {func.arity} arguments, got {len(args)}')
        if self.call_depth >= self.max_call_depth:
            raise StackOverflow(f'call depth exceeded {self.max_call_depth} in {func.name}')
        # arrow functions see their defining scope, named functions the caller's
        call_env = Environment(func.closure if func.closure is not None else caller_env)
        for param, arg in zip(func.params, args):
            call_env.declare(param.name, arg, param.type_name)
        if self.debug_level >= 2:
            self.debug(f'Call {func.name}({", ".join(map(to_string, args))})')
        self.call_depth += 1
        try:
            result = self.executor.execute_block(func.body, call_env)
        except RecursionError:
            raise StackOverflow(f'host stack exhausted in {func.name}')
        finally:
            self.call_depth -= 1
        if result.kind is not BlockKind.RETURN:
            return None
        try:
            return check_value(result.value, func.return_type)
        except TypeError as e:
            raise TypeMismatch(f'return type mismatch in function {func.name}: {e}')


def run_program(source: str, debug_level: int = 0, **options) -> Any:
    """Convenience function to run a MicroScript program from a source string."""
    interpreter = Interpreter(debug_level=debug_level, **options)
    return interpreter.run(source)


def run_file(file_path: str, debug_level: int = 0, **options) -> Interpreter:
    """Run a MicroScript file, returning the interpreter instance."""
    source = Path(file_path).read_text(encoding='utf-8')
    interpreter = Interpreter(debug_level=debug_level, **options)
    interpreter.run(source)
    return interpreter
