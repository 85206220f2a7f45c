"""
AST printers.

- `AstPrinter` renders expressions as Lisp-like forms, e.g. `(?: 1 2 3)`.
- `unparse` turns a tree back into Lox source that parses to the same shape.
- `to_lark` converts a program into a `lark.Tree` for `.pretty()` dumps.
"""

from __future__ import annotations

import dataclasses
import re
from decimal import Decimal
from typing import List, Sequence, Union

from lark import Token, Tree

from .token_types import Tok
from .tree import (
    ArrayLiteral,
    Assign,
    Binary,
    Block,
    Call,
    Class,
    Expr,
    Expression,
    Function,
    Get,
    Grouping,
    If,
    IndexGet,
    IndexSet,
    Lambda,
    Literal,
    LiteralValue,
    Logical,
    Print,
    Return,
    Set,
    Stmt,
    Super,
    Ternary,
    This,
    Unary,
    Var,
    Variable,
    While,
)
from .types import LoxNumber

def format_literal(value: LiteralValue) -> str:
    match value:
        case None:
            return "nil"
        case bool():
            return "true" if value else "false"
        case float():
            return repr(LoxNumber(value))

    return str(value)

# ---------------- Lisp forms ----------------

class AstPrinter:
    """Prints expressions with explicit parentheses around every operation"""

    def print(self, expr: Expr) -> str:
        match expr:
            case Literal(value=value):
                return format_literal(value)
            case Grouping(expression=inner):
                return self.parenthesize("group", inner)
            case Unary(operator=op, right=right):
                return self.parenthesize(op.lexeme, right)
            case Binary(left=left, operator=op, right=right) | Logical(left=left, operator=op, right=right):
                return self.parenthesize(op.lexeme, left, right)
            case Ternary(condition=condition, then_branch=then_branch, else_branch=else_branch):
                return self.parenthesize("?:", condition, then_branch, else_branch)
            case Variable(name=name):
                return name.lexeme
            case Assign(name=name, value=value):
                return f"(= {name.lexeme} {self.print(value)})"
            case Call(callee=callee, arguments=arguments):
                return self.parenthesize("call", callee, *arguments)
            case Get(obj=obj, name=name):
                return f"(. {self.print(obj)} {name.lexeme})"
            case Set(obj=obj, name=name, value=value):
                return f"(= (. {self.print(obj)} {name.lexeme}) {self.print(value)})"
            case This():
                return "this"
            case Super(method=method):
                return f"(super {method.lexeme})"
            case Lambda(params=params):
                names = " ".join(p.lexeme for p in params)
                return f"(fun ({names}))"
            case ArrayLiteral(elements=elements):
                if not elements:
                    return "(array)"
                return self.parenthesize("array", *elements)
            case IndexGet(obj=obj, index=index):
                return self.parenthesize("[]", obj, index)
            case IndexSet(obj=obj, index=index, value=value):
                return f"(= {self.parenthesize('[]', obj, index)} {self.print(value)})"

        raise TypeError(f"Unknown expression node {type(expr).__name__}")

    def parenthesize(self, name: str, *exprs: Expr) -> str:
        return f"({name} {' '.join(self.print(e) for e in exprs)})"

# ---------------- Source ----------------

def _number_source(value: float) -> str:
    if value.is_integer():
        return str(int(value))

    text = repr(value)
    if "e" in text:
        # The lexer has no exponent syntax
        text = format(Decimal(text), "f")
    return text

def unparse_expr(expr: Expr) -> str:
    match expr:
        case Literal(value=float() as value):
            return _number_source(value)
        case Literal(value=str() as value):
            return f'"{value}"'
        case Literal(value=value):
            return format_literal(value)
        case Grouping(expression=inner):
            return f"({unparse_expr(inner)})"
        case Unary(operator=op, right=right):
            return f"{op.lexeme}{unparse_expr(right)}"
        case Binary(left=left, operator=op, right=right) | Logical(left=left, operator=op, right=right):
            return f"{unparse_expr(left)} {op.lexeme} {unparse_expr(right)}"
        case Ternary(condition=condition, then_branch=then_branch, else_branch=else_branch):
            return f"{unparse_expr(condition)} ? {unparse_expr(then_branch)} : {unparse_expr(else_branch)}"
        case Variable(name=name):
            return name.lexeme
        case Assign(name=name, value=value):
            return f"{name.lexeme} = {unparse_expr(value)}"
        case Call(callee=callee, arguments=arguments):
            return f"{unparse_expr(callee)}({_join_exprs(arguments)})"
        case Get(obj=obj, name=name):
            return f"{unparse_expr(obj)}.{name.lexeme}"
        case Set(obj=obj, name=name, value=value):
            return f"{unparse_expr(obj)}.{name.lexeme} = {unparse_expr(value)}"
        case This():
            return "this"
        case Super(method=method):
            return f"super.{method.lexeme}"
        case Lambda(params=params, body=body):
            return f"fun ({_join_params(params)}) {_unparse_body(body, 0)}"
        case ArrayLiteral(elements=elements):
            return f"[{_join_exprs(elements)}]"
        case IndexGet(obj=obj, index=index):
            return f"{unparse_expr(obj)}[{unparse_expr(index)}]"
        case IndexSet(obj=obj, index=index, value=value):
            return f"{unparse_expr(obj)}[{unparse_expr(index)}] = {unparse_expr(value)}"

    raise TypeError(f"Unknown expression node {type(expr).__name__}")

def _join_exprs(exprs: Sequence[Expr]) -> str:
    return ", ".join(unparse_expr(e) for e in exprs)

def _join_params(params: Sequence[Tok]) -> str:
    return ", ".join(p.lexeme for p in params)

def _unparse_body(body: Sequence[Stmt], depth: int) -> str:
    if not body:
        return "{}"

    lines = ["{"]
    lines.extend(unparse_stmt(s, depth + 1) for s in body)
    lines.append("  " * depth + "}")
    return "\n".join(lines)

def unparse_stmt(stmt: Stmt, depth: int = 0) -> str:
    pad = "  " * depth

    match stmt:
        case Expression(expression=expr):
            return f"{pad}{unparse_expr(expr)};"
        case Print(expression=expr):
            return f"{pad}print {unparse_expr(expr)};"
        case Var(name=name, initializer=None):
            return f"{pad}var {name.lexeme};"
        case Var(name=name, initializer=initializer):
            return f"{pad}var {name.lexeme} = {unparse_expr(initializer)};"
        case Block(statements=statements):
            return pad + _unparse_body(statements, depth)
        case If(condition=condition, then_branch=then_branch, else_branch=else_branch):
            text = f"{pad}if ({unparse_expr(condition)})\n{unparse_stmt(then_branch, depth + 1)}"
            if else_branch is not None:
                text += f"\n{pad}else\n{unparse_stmt(else_branch, depth + 1)}"
            return text
        case While(condition=condition, body=body):
            return f"{pad}while ({unparse_expr(condition)})\n{unparse_stmt(body, depth + 1)}"
        case Function(name=name, params=params, body=body):
            return f"{pad}fun {_unparse_method(name, params, body, depth)}"
        case Return(value=None):
            return f"{pad}return;"
        case Return(value=value):
            return f"{pad}return {unparse_expr(value)};"
        case Class(name=name, superclass=superclass, methods=methods):
            head = f"{pad}class {name.lexeme}"
            if superclass is not None:
                head += f" < {superclass.name.lexeme}"
            inner = "  " * (depth + 1)
            lines = [head + " {"]
            lines.extend(inner + _unparse_method(m.name, m.params, m.body, depth + 1) for m in methods)
            lines.append(pad + "}")
            return "\n".join(lines)

    raise TypeError(f"Unknown statement node {type(stmt).__name__}")

def _unparse_method(name: Tok, params: Sequence[Tok], body: Sequence[Stmt], depth: int) -> str:
    return f"{name.lexeme}({_join_params(params)}) {_unparse_body(body, depth)}"

def unparse(node: Union[Expr, Stmt, Sequence[Stmt]]) -> str:
    """Render a program, a statement or an expression back to source."""
    if isinstance(node, (list, tuple)):
        return "\n".join(unparse_stmt(s) for s in node)

    if isinstance(node, (Expression, Print, Var, Block, If, While, Function, Return, Class)):
        return unparse_stmt(node)

    return unparse_expr(node)

# ---------------- lark trees ----------------

def _label(node: object) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", type(node).__name__).lower()

def _literal_token(value: LiteralValue) -> Token:
    match value:
        case None:
            return Token("NIL", "nil")
        case bool():
            return Token("TRUE" if value else "FALSE", format_literal(value))
        case float():
            return Token("NUMBER", format_literal(value))

    return Token("STRING", value)

def _to_lark_node(node: object) -> Tree:
    children: List[Union[Tree, Token]] = []

    for f in dataclasses.fields(node):
        value = getattr(node, f.name)

        if value is None and not isinstance(node, Literal):
            continue

        if isinstance(node, Literal):
            children.append(_literal_token(value))
        elif isinstance(value, Tok):
            children.append(Token(value.type.name, value.lexeme, line=value.line, column=value.column))
        elif isinstance(value, tuple):
            children.append(Tree(f.name, [_to_lark_child(v) for v in value]))
        else:
            children.append(_to_lark_child(value))

    return Tree(_label(node), children)

def _to_lark_child(value: object) -> Union[Tree, Token]:
    if isinstance(value, Tok):
        return Token(value.type.name, value.lexeme, line=value.line, column=value.column)

    return _to_lark_node(value)

def to_lark(statements: Sequence[Stmt]) -> Tree:
    """Program as a lark Tree, labelled by node kind (`binary`, `var`, ...)."""
    return Tree("program", [_to_lark_node(s) for s in statements])
