import pytest

from microscript.errors import (
    DivisionByZero, MacroArgError, RuntimeFault, SyntaxFault, TypeMismatch, UndefinedName,
)
from microscript.interpreter import Interpreter
from microscript.types import Char


def test_precedence():
    interp = Interpreter()
    assert interp.evaluate("2 + 3 * 4") == 14
    assert interp.evaluate("(2 + 3) * 4") == 20
    assert interp.evaluate("2 ^ 3 ^ 2") == 512
    assert interp.evaluate("-2 ^ 2") == -4
    assert interp.evaluate("1 + 2 < 4") is True


def test_walrus_and_compound_assignment():
    interp = Interpreter()
    assert interp.evaluate("x := 5") == 5
    assert interp.evaluate("x") == 5
    assert interp.evaluate("x += 3") == 8
    assert interp.global_env.get("x") == 8
    with pytest.raises(DivisionByZero):
        interp.evaluate("x /= 0")
    assert interp.global_env.get("x") == 8


def test_compound_assignment_needs_existing_variable():
    interp = Interpreter()
    with pytest.raises(UndefinedName):
        interp.evaluate("missing += 1")


def test_increments():
    interp = Interpreter()
    interp.evaluate("x := 5")
    assert interp.evaluate("x++") == 5
    assert interp.evaluate("x") == 6
    assert interp.evaluate("++x") == 7
    assert interp.evaluate("x--") == 7
    assert interp.evaluate("--x") == 5


def test_ternary_only_evaluates_taken_branch():
    interp = Interpreter()
    interp.evaluate("n := 0")
    assert interp.evaluate("true ? 1 : undefined_fn()") == 1
    assert interp.evaluate("false ? missing : 2") == 2
    assert interp.evaluate("n > 0 ? (n := 10) : (n := 20)") == 20
    assert interp.global_env.get("n") == 20
    assert interp.evaluate("1 ? 2 ? 3 : 4 : 5") == 3


def test_float_equality_uses_epsilon():
    interp = Interpreter()
    assert interp.evaluate("0.1 + 0.2 == 0.3") is True
    assert interp.evaluate("1 == 1.00001") is True
    assert interp.evaluate("1 != 1.1") is True
    assert interp.evaluate("2 <=> 2.00001") == 0
    assert interp.evaluate('"b" <=> "a"') == 1


def test_integer_results_stay_integers():
    interp = Interpreter()
    assert isinstance(interp.evaluate("6 / 3"), int)
    assert interp.evaluate("7 / 2") == 3.5
    assert interp.evaluate("7 # 2") == 3
    assert interp.evaluate("-7 % 3") == -1
    assert isinstance(interp.evaluate("1.0 + 1"), float)


def test_division_by_near_zero():
    interp = Interpreter()
    with pytest.raises(DivisionByZero):
        interp.evaluate("1 / 0.00001")
    with pytest.raises(DivisionByZero):
        interp.evaluate("5 % 0")


def test_strings_and_chars():
    interp = Interpreter()
    assert interp.evaluate('"a" + 1') == "a1"
    assert interp.evaluate('"tab\\there"') == "tab\there"
    value = interp.evaluate("'x'")
    assert isinstance(value, Char) and value == "x"
    assert interp.evaluate('"abc"[0]') == "a"
    assert isinstance(interp.evaluate('"abc"[-1]'), Char)
    with pytest.raises(SyntaxFault):
        interp.evaluate("'xy'")


def test_negation_and_literals():
    interp = Interpreter()
    assert interp.evaluate("not 0") is True
    assert interp.evaluate("!1") is False
    assert interp.evaluate("!(1 > 2)") is True
    assert interp.evaluate("null") is None
    assert interp.evaluate("null == null") is True


def test_lists():
    interp = Interpreter()
    assert interp.evaluate("[1, 2, 3][1]") == 2
    assert interp.evaluate("[]") == []
    assert interp.evaluate("[1, [2, 3]][1][0]") == 2
    with pytest.raises(RuntimeFault) as excinfo:
        interp.evaluate("[1][5]")
    assert "out of range" in str(excinfo.value)


def test_faults_carry_position():
    interp = Interpreter()
    with pytest.raises(SyntaxFault) as excinfo:
        interp.evaluate("1 $ 2")
    assert excinfo.value.position == 2
    with pytest.raises(SyntaxFault):
        interp.evaluate("(1 + 2")
    with pytest.raises(UndefinedName):
        interp.evaluate("nope + 1")
    with pytest.raises(UndefinedName):
        interp.evaluate("nope(1)")
    with pytest.raises(TypeMismatch):
        interp.evaluate("true - 1")


def test_macro_marker_raises_when_evaluated():
    interp = Interpreter()
    with pytest.raises(MacroArgError) as excinfo:
        interp.evaluate("/*MACRO_ARG_ERROR:ADD*/")
    assert excinfo.value.macro_name == "ADD"


def test_non_finite_index_is_a_type_fault():
    interp = Interpreter()
    interp.execute("var big = 10.0 ^ 300 * 10.0 ^ 300;")
    with pytest.raises(TypeMismatch):
        interp.evaluate("[1][big]")
    with pytest.raises(TypeMismatch):
        interp.evaluate("[1][big - big]")


def test_overflowing_index_is_reported_and_execution_continues(capsys):
    Interpreter().run(
        "list xs = [1];\n"
        "var big = 10.0 ^ 300 * 10.0 ^ 300;\n"
        "console.write(xs[big]);\n"
        'console.write("after");\n'
    )
    captured = capsys.readouterr()
    assert captured.out.strip() == "after"
    assert "index must be an Integer" in captured.err
