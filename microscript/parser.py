"""Declaration header parser for MicroScript.

Statements are classified and executed line by line, and expressions are
evaluated straight from their text, so the only structured syntax in the
language is the *header* of a declaration: the part of a function, arrow
function, variable declaration or range-for loop variable that names things
and gives them types. Those headers are parsed here with a small Lark LALR
grammar that has one start symbol per header kind, then turned into plain
dataclasses by :class:`HeaderTransformer`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from lark import Lark, Transformer, v_args
from lark.exceptions import LarkError

from .builtin_function import Parameter
from .errors import SyntaxFault


HEADER_GRAMMAR = r"""
    // function name(p: Type, ...) -> Type
    function_head: "function" NAME "(" [param_list] ")" ["->" type_name]
    // Type name(p: Type, ...)
    c_function_head: type_name NAME "(" [param_list] ")"
    param_list: param ("," param)*
    param: NAME ":" type_name

    // |Type: p, ...| => Type
    arrow_head: "|" [arrow_params] "|" "=>" [type_name]
    arrow_params: AMP                           -> no_params
                | arrow_param ("," arrow_param)*
    arrow_param: type_name ":" NAME

    var_head: "var" NAME [":" type_name]
    bool_head: "bool" NAME
    list_head: "list" NAME

    loop_var: "var" NAME [":" type_name]        -> typed_loop_var
            | type_name NAME                    -> c_loop_var
            | NAME                              -> bare_loop_var

    type_name: NAME

    AMP: "&"

    %import common.CNAME -> NAME
    %import common.WS
    %ignore WS
"""

HEADER_STARTS = [
    'function_head', 'c_function_head', 'arrow_head',
    'var_head', 'bool_head', 'list_head', 'loop_var',
]

HEADER_PARSER = Lark(
    HEADER_GRAMMAR,
    parser='lalr',
    start=HEADER_STARTS,
    maybe_placeholders=True,
    lexer='contextual',
)


@dataclass
class FunctionHeader:
    name: str
    params: List[Parameter]
    return_type: Optional[str]
    c_style: bool = False


@dataclass
class ArrowHeader:
    params: List[Parameter] = field(default_factory=list)
    return_type: Optional[str] = None


@dataclass
class DeclarationHead:
    keyword: str
    name: str
    type_name: Optional[str]


@dataclass
class LoopVariable:
    name: str
    type_name: Optional[str]


@v_args(inline=True)
class HeaderTransformer(Transformer):
    """Turns a header parse tree into one of the header dataclasses."""

    def type_name(self, name):
        return str(name)

    def param(self, name, type_name):
        return Parameter(str(name), type_name)

    def param_list(self, *params):
        return list(params)

    def function_head(self, name, params, return_type):
        return FunctionHeader(str(name), params or [], return_type)

    def c_function_head(self, return_type, name, params):
        return FunctionHeader(str(name), params or [], return_type, c_style=True)

    def arrow_param(self, type_name, name):
        return Parameter(str(name), type_name)

    def arrow_params(self, *params):
        return list(params)

    def no_params(self, _amp):
        return []

    def arrow_head(self, params, return_type):
        return ArrowHeader(params or [], return_type)

    def var_head(self, name, type_name):
        return DeclarationHead('var', str(name), type_name)

    def bool_head(self, name):
        return DeclarationHead('bool', str(name), 'Bool')

    def list_head(self, name):
        return DeclarationHead('list', str(name), 'List')

    def typed_loop_var(self, name, type_name):
        return LoopVariable(str(name), type_name)

    def c_loop_var(self, type_name, name):
        return LoopVariable(str(name), type_name)

    def bare_loop_var(self, name):
        return LoopVariable(str(name), None)


def parse_header(text: str, start: str):
    """Parse ``text`` as the header kind named by ``start``.

    Lark errors are reported as script syntax faults so that statement-level
    execution can report them like any other fault.
    """
    try:
        tree = HEADER_PARSER.parse(text, start=start)
    except LarkError as e:
        kind = start.replace('_', ' ')
        raise SyntaxFault(f'malformed {kind}: {text.strip()}') from e
    return HeaderTransformer().transform(tree)


def parse_function_header(text: str) -> FunctionHeader:
    return parse_header(text, 'function_head')


def parse_c_function_header(text: str) -> FunctionHeader:
    return parse_header(text, 'c_function_head')


def parse_arrow_header(text: str) -> ArrowHeader:
    return parse_header(text, 'arrow_head')


def parse_declaration_head(text: str) -> DeclarationHead:
    keyword = text.split(None, 1)[0] if text.strip() else ''
    start = {'var': 'var_head', 'bool': 'bool_head', 'list': 'list_head'}.get(keyword)
    if start is None:
        raise SyntaxFault(f'not a declaration: {text.strip()}')
    return parse_header(text, start)


def parse_loop_variable(text: str) -> LoopVariable:
    return parse_header(text, 'loop_var')
