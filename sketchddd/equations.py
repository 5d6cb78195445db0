"""Equation text parser.

Turns invariant text such as ``totalPrice = sum(items.price)`` into a
PathEquation whose paths carry per-segment source spans.

The grammar is a small LALR grammar for lark: a comparison between two
arithmetic expressions over numbers, strings, dotted paths and calls.
Arithmetic is parsed but never evaluated.
"""

from __future__ import annotations

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken

from .errors import EquationSyntaxError
from .types import BinaryOp, Call, Expr, Literal, Path, PathEquation, Span

_GRAMMAR = r"""
    equation: sum CMP sum
    ?expr: sum

    ?sum: product
        | sum PLUS product   -> binop
        | sum MINUS product  -> binop

    ?product: atom
        | product STAR atom  -> binop
        | product SLASH atom -> binop

    ?atom: NUMBER                                   -> number
        | STRING                                    -> string
        | MINUS atom                                -> neg
        | _LPAR sum _RPAR
        | NAME _LPAR [sum (_COMMA sum)*] _RPAR      -> call
        | NAME (_DOT NAME)*                         -> path

    CMP: "==" | "!=" | "<=" | ">=" | "=" | "<" | ">"
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    _LPAR: "("
    _RPAR: ")"
    _COMMA: ","
    _DOT: "."
    NAME: /[A-Za-z_][A-Za-z0-9_]*/
    NUMBER: /\d+(?:\.\d+)?/
    STRING: /'[^']*'|"[^"]*"/

    %ignore /\s+/
"""

_PARSER = Lark(_GRAMMAR, parser="lalr", start=["equation", "expr"])


class _ToExpr(Transformer):
    """Build Expr nodes, placing token offsets at their document position."""

    def __init__(self, line: int, column: int, file: str | None):
        super().__init__()
        self.line = line
        self.column = column
        self.file = file

    def span(self, token: Token) -> Span:
        return Span(self.line, self.column + token.start_pos, len(token), self.file)

    def equation(self, children):
        lhs, operator, rhs = children
        return lhs, "=" if operator == "==" else str(operator), rhs

    def binop(self, children):
        left, operator, right = children
        return BinaryOp(str(operator), left, right)

    def neg(self, children):
        _minus, value = children
        return BinaryOp("-", Literal(0), value)

    def number(self, children):
        (token,) = children
        return Literal(float(token) if "." in token else int(token))

    def string(self, children):
        (token,) = children
        return Literal(str(token)[1:-1])

    def call(self, children):
        name, *args = children
        return Call(
            function=str(name),
            args=tuple(a for a in args if a is not None),
            span=self.span(name),
        )

    def path(self, children):
        return Path(
            segments=tuple(str(t) for t in children),
            spans=tuple(self.span(t) for t in children),
        )


def _syntax_error(e: UnexpectedInput, text: str, line: int, column: int,
                  file: str | None, equation: bool) -> EquationSyntaxError:
    if isinstance(e, UnexpectedCharacters):
        offset = e.pos_in_stream
        message = f"unexpected character {e.char!r}"
    elif isinstance(e, UnexpectedToken):
        at_end = e.token.type == "$END"
        offset = len(text) if at_end else e.token.start_pos
        found = "end of input" if at_end else str(e.token)
        # Lexer errors may list lark's internal ignore terminals too.
        expected = {name for name in e.expected if not name.startswith("__")}
        if expected == {"NAME"}:
            message = "expected a name after '.'"
        elif equation and "CMP" in expected:
            message = f"expected a comparison operator, found '{found}'"
        elif "_RPAR" in expected and "$END" not in expected:
            message = f"expected ')', found '{found}'"
        else:
            message = f"unexpected '{found}'"
    else:
        offset = len(text)
        message = "unexpected end of input"
    return EquationSyntaxError(
        f"{message} in equation {text!r}",
        file=file, line=line, column=column + offset,
    )


def _parse(text: str, start: str, line: int, column: int, file: str | None):
    try:
        tree = _PARSER.parse(text, start=start)
    except UnexpectedInput as e:
        raise _syntax_error(e, text, line, column, file, start == "equation") from None
    return _ToExpr(line, column, file).transform(tree)


def parse_expression(text: str, line: int = 1, column: int = 1, file: str | None = None) -> Expr:
    """Parse a bare expression (no comparison)."""
    return _parse(text, "expr", line, column, file)


def parse_equation(
    text: str,
    name: str = "",
    source: str | None = None,
    line: int = 1,
    column: int = 1,
    file: str | None = None,
) -> PathEquation:
    """Parse ``lhs CMP rhs`` into a PathEquation.

    ``line``/``column`` locate the first character of ``text`` in its
    document, so that spans of path segments point at the right place.
    Raises EquationSyntaxError when ``text`` does not follow the grammar.
    """
    lhs, operator, rhs = _parse(text, "equation", line, column, file)
    return PathEquation(
        name=name or text,
        lhs=lhs,
        rhs=rhs,
        operator=operator,
        source=source,
        span=Span(line, column, len(text), file),
    )
