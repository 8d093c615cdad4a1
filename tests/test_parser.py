import pytest

from microscript.builtin_function import Parameter
from microscript.errors import SyntaxFault
from microscript.parser import (
    DeclarationHead, FunctionHeader, LoopVariable, parse_arrow_header,
    parse_c_function_header, parse_declaration_head, parse_function_header,
    parse_loop_variable,
)


def test_function_header():
    head = parse_function_header("function add(a: Int32, b: Int32) -> Int32 ")
    assert head == FunctionHeader("add", [Parameter("a", "Int32"), Parameter("b", "Int32")], "Int32")
    bare = parse_function_header("function hello()")
    assert bare.params == [] and bare.return_type is None


def test_c_style_header():
    head = parse_c_function_header("Float64 area(r: Float64)")
    assert head.name == "area"
    assert head.return_type == "Float64"
    assert head.c_style is True
    assert parse_c_function_header("fn main()").return_type == "fn"


def test_arrow_headers():
    assert parse_arrow_header("|&| =>").params == []
    head = parse_arrow_header("|Int32: a, String: s| => Int32")
    assert head.params == [Parameter("a", "Int32"), Parameter("s", "String")]
    assert head.return_type == "Int32"
    assert parse_arrow_header("|| =>").return_type is None


def test_declaration_heads():
    assert parse_declaration_head("var x: Float32 ") == DeclarationHead("var", "x", "Float32")
    assert parse_declaration_head("var y") == DeclarationHead("var", "y", None)
    assert parse_declaration_head("bool ok ").type_name == "Bool"
    assert parse_declaration_head("list xs").type_name == "List"


def test_loop_variables():
    assert parse_loop_variable("var n: Int32 ") == LoopVariable("n", "Int32")
    assert parse_loop_variable("Char c") == LoopVariable("c", "Char")
    assert parse_loop_variable(" item ") == LoopVariable("item", None)


def test_malformed_headers_are_syntax_faults():
    with pytest.raises(SyntaxFault):
        parse_function_header("function (a: Int32)")
    with pytest.raises(SyntaxFault):
        parse_arrow_header("|Int32 a| =>")
    with pytest.raises(SyntaxFault):
        parse_declaration_head("let x")
