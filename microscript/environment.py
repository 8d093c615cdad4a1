from typing import Any, Dict, Optional

from .builtin_function import FunctionDef
from .errors import TypeMismatch, UndefinedName
from .types import check_value


class Environment:
    """A scope frame mapping names to values, declared types and functions.

    Frames are chained through ``parent``; lookups walk outward until a
    frame that owns the name is found. A parent never references its
    children, so a frame lives only as long as the call or block using it.
    """
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.variables: Dict[str, Any] = {}
        self.types: Dict[str, Optional[str]] = {}
        self.functions: Dict[str, FunctionDef] = {}

    def __repr__(self) -> str:
        return f"<Environment {sorted(self.variables)}>"

    def _owner(self, name: str) -> Optional['Environment']:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.variables:
                return env
            env = env.parent
        return None

    def has(self, name: str) -> bool:
        return self._owner(name) is not None

    def get(self, name: str) -> Any:
        owner = self._owner(name)
        if owner is None:
            raise UndefinedName(f'undefined variable {name}')
        return owner.variables[name]

    def declare(self, name: str, value: Any, type_name: Optional[str] = None) -> Any:
        """Bind ``name`` in this frame, checking ``value`` against ``type_name``."""
        value = self._checked(name, value, type_name)
        self.variables[name] = value
        self.types[name] = type_name
        return value

    def set(self, name: str, value: Any) -> Any:
        """Assign to the frame that already owns ``name``, or to this frame."""
        owner = self._owner(name) or self
        value = owner._checked(name, value, owner.types.get(name))
        owner.variables[name] = value
        return value

    def define_function(self, function: FunctionDef):
        self.functions[function.name] = function

    def get_function(self, name: str) -> Optional[FunctionDef]:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.functions:
                return env.functions[name]
            env = env.parent
        return None

    @staticmethod
    def _checked(name: str, value: Any, type_name: Optional[str]) -> Any:
        try:
            return check_value(value, type_name)
        except TypeError as e:
            raise TypeMismatch(f'{name}: {e}')
