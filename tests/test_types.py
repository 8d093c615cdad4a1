import pytest

from microscript.types import (
    Char, Float32, check_value, default_value, is_truthy, to_string, type_name,
)


def test_check_value_is_exact_except_float64_widening():
    assert check_value(3, "Int32") == 3
    assert check_value(3, "Float64") == 3.0
    assert isinstance(check_value(3, "Float64"), float)
    assert isinstance(check_value(Float32(1.5), "Float64"), float)
    assert isinstance(check_value(1.5, "Float32"), Float32)
    assert check_value("anything", None) == "anything"
    assert check_value(1, "void") == 1
    with pytest.raises(TypeError):
        check_value(3.0, "Int32")
    with pytest.raises(TypeError):
        check_value(3, "Float32")
    with pytest.raises(TypeError):
        check_value(Char("a"), "String")
    with pytest.raises(TypeError):
        check_value("a", "Char")
    with pytest.raises(TypeError):
        check_value(True, "Int64")
    with pytest.raises(TypeError):
        check_value(1, "Widget")


def test_default_values():
    assert default_value("Int64") == 0
    assert default_value("Float64") == 0.0
    assert isinstance(default_value("Float32"), Float32)
    assert default_value("String") == ""
    assert default_value("Bool") is False
    assert default_value("List") == []
    assert default_value(None) is None


def test_truthiness():
    assert is_truthy(None) is False
    assert is_truthy(0.00001) is False
    assert is_truthy(-1) is True
    assert is_truthy("") is False
    assert is_truthy("x") is True
    assert is_truthy([]) is True


def test_to_string():
    assert to_string(None) == "null"
    assert to_string(True) == "true"
    assert to_string(720.0) == "720"
    assert to_string(2.5) == "2.5"
    assert to_string([1, "a", [2.0]]) == "[1, a, [2]]"
    assert to_string(Char("c")) == "c"


def test_type_names():
    assert type_name(1) == "Integer"
    assert type_name(1.0) == "Float64"
    assert type_name(Float32(1.0)) == "Float32"
    assert type_name(Char("c")) == "Char"
    assert type_name(False) == "Bool"
    assert type_name(None) == "Null"
