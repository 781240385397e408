"""Syntax tree of bcc language, as produced by parser.py and walked by evaluator.py. Nodes are immutable once built and
each one carries the Span of source it was parsed from.

All grammar can be loosely defined as follows:

```
<program>    ::= <stmt>*
<stmt>       ::= <block> | <if> | <while> | <for> | <return> | <expr_stmt>
<block>      ::= "{" <stmt>* "}"                       ; a "{" that opens a dict literal starts an <expr_stmt> instead
<if>         ::= "if" "(" <single> ")" <stmt> ("else" <stmt>)?
<while>      ::= "while" "(" <single> ")" <stmt>
<for>        ::= "for" "(" <expr_stmt>? ";" <single>? ";" <expr>? ")" <stmt>
<return>     ::= "return" (<single> ("," <single>)*)? ";"?
<expr_stmt>  ::= <expr> ";"?

<expr>       ::= <or> ("," <or>)* ("=" <expr>)?         ; more than one <or> makes a tuple
<single>     ::= <or> ("=" <single>)?                   ; left of "=" must be a variable or a tuple of variables
<or>         ::= <and> ("or" <and>)*
<and>        ::= <equality> ("and" <equality>)*
<equality>   ::= <comparison> (("==" | "!=") <comparison>)*
<comparison> ::= <term> ((">" | ">=" | "<" | "<=" | "in") <term>)*
<term>       ::= <factor> (("+" | "-") <factor>)*
<factor>     ::= <unary> (("*" | "/") <unary>)*
<unary>      ::= ("!" | "not" | "-") <unary> | <call>
<call>       ::= <primary> ("(" <args>? ")" | "." <identifier>)*
<args>       ::= <single> ("," <single>)* ("," <identifier> "=" <single>)*
<primary>    ::= "true" | "false" | "nil" | <integer> | <double> | <string> | <identifier>
               | "(" <expr> ","? ")" | "[" (<single> ("," <single>)*)? "]"
               | "{" (<single> ":" <single> ("," <single> ":" <single>)*)? "}"
```
"""

from abc import ABC
from dataclasses import dataclass, fields
from enum import Enum

from bcc.lang.error import Span


def _format(value, indents):
    """Formats a node field for display. Multi-line values are indented relative to indents; the first line isn't."""
    if isinstance(value, Node):
        return value.display(indents).lstrip()

    elif isinstance(value, (list, tuple)):  # child lists, dict pairs
        open_, close = ("[", "]") if isinstance(value, list) else ("(", ")")
        if not value:
            return open_ + close

        result = open_
        for item in value:
            result += "\n" + "    " * (indents + 1) + _format(item, indents + 1) + ","
        return result[:-1] + f"\n{'    ' * indents}{close}"

    elif isinstance(value, Enum):
        return value.name
    return repr(value)


class Node(ABC):
    """Superclass of every syntax tree node. Subclasses are frozen dataclasses whose last field is span."""
    span: Span

    def display(self, indents=0):
        """Recursively displays syntax tree with readable format.

        Format:
        <Node>(<field>=<value>, <child>=<Node>(...), <children>=[
            <Node>(...),
            ...
        ])
        """
        args = ", ".join(f"{field.name}={_format(getattr(self, field.name), indents)}"
                         for field in fields(self) if field.name != "span")
        return f"{'    ' * indents}{type(self).__name__}({args})"


class Stmt(Node):
    """Statement: executed for its effects."""


class Expr(Node):
    """Expression: evaluated to a value."""


class BinaryOp(Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS = "<"
    LESS_EQUAL = "<="
    GREATER = ">"
    GREATER_EQUAL = ">="
    IN = "in"


class UnaryOp(Enum):
    NEGATE = "-"
    NOT = "!"


class LogicalOp(Enum):
    AND = "and"
    OR = "or"


# ---------------------------------------------------------------------------------------------------------------------
# Statements

@dataclass(frozen=True)
class Program(Node):
    statements: list
    span: Span


@dataclass(frozen=True)
class ExpressionStmt(Stmt):
    expr: Expr
    span: Span


@dataclass(frozen=True)
class Block(Stmt):
    """Runs statements in a new scope."""
    statements: list
    span: Span


@dataclass(frozen=True)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: object  # Stmt or None
    span: Span


@dataclass(frozen=True)
class While(Stmt):
    condition: Expr
    body: Stmt
    span: Span


@dataclass(frozen=True)
class For(Stmt):
    """Every clause but body is optional (None). A missing condition is always true."""
    initializer: object
    condition: object
    increment: object
    body: Stmt
    span: Span


# ---------------------------------------------------------------------------------------------------------------------
# Expressions

@dataclass(frozen=True)
class Literal(Expr):
    value: object  # None, bool, int, float or str
    span: Span


@dataclass(frozen=True)
class Variable(Expr):
    name: str
    span: Span


@dataclass(frozen=True)
class Assign(Expr):
    name: str
    value: Expr
    span: Span


@dataclass(frozen=True)
class MultiAssign(Expr):
    """Destructuring assignment: a, _, c = value."""
    targets: list
    value: Expr
    span: Span


@dataclass(frozen=True)
class Binary(Expr):
    left: Expr
    op: BinaryOp
    right: Expr
    span: Span


@dataclass(frozen=True)
class Unary(Expr):
    op: UnaryOp
    operand: Expr
    span: Span


@dataclass(frozen=True)
class Logical(Expr):
    """Short-circuiting and/or."""
    left: Expr
    op: LogicalOp
    right: Expr
    span: Span


@dataclass(frozen=True)
class Call(Expr):
    callee: Expr
    args: list
    span: Span


@dataclass(frozen=True)
class CallWithKwargs(Expr):
    """Call with at least one keyword argument. Keyword arguments always come after positional ones."""
    callee: Expr
    args: list
    kwargs: list
    span: Span


@dataclass(frozen=True)
class MultiReturn(Expr):
    values: list
    span: Span


@dataclass(frozen=True)
class Grouping(Expr):
    expr: Expr
    span: Span


@dataclass(frozen=True)
class ListExpr(Expr):
    elements: list
    span: Span


@dataclass(frozen=True)
class DictExpr(Expr):
    pairs: list  # list of (key, value) expression tuples
    span: Span


@dataclass(frozen=True)
class PropertyAccess(Expr):
    obj: Expr
    name: str
    span: Span


@dataclass(frozen=True)
class TupleExpr(Expr):
    elements: list
    span: Span


# ---------------------------------------------------------------------------------------------------------------------
# Parts of expressions

@dataclass(frozen=True)
class KeywordArg(Node):
    name: str
    value: Expr
    span: Span


class AssignTarget(Node):
    """Single target of a MultiAssign."""


@dataclass(frozen=True)
class VariableTarget(AssignTarget):
    name: str
    span: Span


@dataclass(frozen=True)
class IgnoreTarget(AssignTarget):
    """The _ placeholder: its value is discarded."""
    span: Span
