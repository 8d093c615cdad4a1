import pytest

from microscript.builtin_function import FunctionDef
from microscript.environment import Environment
from microscript.errors import TypeMismatch, UndefinedName


def test_lookup_walks_to_nearest_frame():
    outer = Environment()
    outer.declare("x", 1)
    inner = Environment(outer)
    assert inner.get("x") == 1
    inner.declare("x", 2)
    assert inner.get("x") == 2
    assert outer.get("x") == 1


def test_set_mutates_owning_frame():
    outer = Environment()
    outer.declare("count", 0)
    inner = Environment(outer)
    inner.set("count", 5)
    assert outer.get("count") == 5
    assert "count" not in inner.variables


def test_set_of_unknown_name_binds_locally():
    outer = Environment()
    inner = Environment(outer)
    inner.set("fresh", "value")
    assert inner.get("fresh") == "value"
    assert not outer.has("fresh")


def test_get_missing_name_faults():
    with pytest.raises(UndefinedName):
        Environment().get("ghost")


def test_declared_type_is_rechecked_on_assignment():
    env = Environment()
    env.declare("n", 1, "Int32")
    with pytest.raises(TypeMismatch):
        env.set("n", "one")
    assert env.get("n") == 1
    env.declare("f", 1, "Float64")
    assert isinstance(env.get("f"), float)
    assert Environment(env).set("f", 3) == 3.0


def test_functions_resolve_through_parents():
    outer = Environment()
    fn = FunctionDef("greet", [], None, ["return 1"])
    outer.define_function(fn)
    inner = Environment(Environment(outer))
    assert inner.get_function("greet") is fn
    assert inner.get_function("nothing") is None
