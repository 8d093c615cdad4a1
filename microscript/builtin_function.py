from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, List, Optional

if TYPE_CHECKING:
    from .environment import Environment


@dataclass
class NativeFunction:
    """A host callable exposed to scripts; it receives the evaluated argument vector."""
    name: str
    arity: Optional[int]
    fn: Callable[[List[Any]], Any]

    def __repr__(self) -> str:
        return f"<native {self.name}>"


@dataclass
class Parameter:
    name: str
    type_name: Optional[str]


@dataclass
class FunctionDef:
    """A user-defined function.

    ``body`` holds the raw source lines of the function block; they are
    executed by the statement engine on every call. Arrow functions also
    carry ``closure``, the environment they were defined in.
    """
    name: str
    params: List[Parameter]
    return_type: Optional[str]
    body: List[str]
    closure: Optional['Environment'] = None
    c_style: bool = field(default=False, compare=False)

    @property
    def arity(self) -> int:
        return len(self.params)

    def __repr__(self) -> str:
        return f"<function {self.name}>"
