import logging
import os

import lark

from .ail_errors import AilSyntaxError

logger = logging.getLogger("ailang.parser")

GRAMMAR_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "ailang.lark")


def _describe_token(token):
    if token.type == "$END":
        return "end of input"
    if token.type == "_SEP":
        return "end of line" if token.value == "\n" else "';'"
    return repr(str(token.value))


def _to_syntax_error(err: lark.UnexpectedInput) -> AilSyntaxError:
    line = getattr(err, "line", None)
    column = getattr(err, "column", None)
    if line is not None and line < 1:
        line = column = None

    expected = getattr(err, "expected", None) or getattr(err, "allowed", None) or []
    if isinstance(err, lark.UnexpectedCharacters):
        msg = f"Unexpected character {err.char!r}"
    elif isinstance(err, lark.UnexpectedToken):
        msg = f"Unexpected {_describe_token(err.token)}"
    else:
        msg = "Unexpected end of input"
    return AilSyntaxError(msg, line=line, column=column, expected=expected)


class AilParser:
    _parsers = {}

    def __init__(self, grammar_path=GRAMMAR_PATH):
        if grammar_path not in self._parsers:
            with open(grammar_path, "r", encoding="utf-8") as f:
                grammar = f.read()
            self._parsers[grammar_path] = lark.Lark(
                grammar,
                start=["start", "expression"],
                parser="lalr",
                propagate_positions=True,
                maybe_placeholders=True,
            )
            logger.debug(f"Loaded grammar from {grammar_path}")
        self.parser = self._parsers[grammar_path]

    def parse(self, code: str) -> lark.Tree:
        try:
            tree = self.parser.parse(code, start="start")
        except lark.UnexpectedInput as e:
            raise _to_syntax_error(e) from e
        check_loops(tree)
        logger.debug(f"Parsed program with {len(tree.children)} top-level statements")
        return tree

    def parse_expression(self, code: str) -> lark.Tree:
        try:
            tree = self.parser.parse(code, start="expression")
        except lark.UnexpectedInput as e:
            raise _to_syntax_error(e) from e
        return tree.children[0]


def check_loops(tree: lark.Tree):
    """Every `NEXT name` must name the variable of its FOR."""
    for loop in tree.find_data("for_stmt"):
        var, next_var = loop.children[0], loop.children[-1]
        if next_var is not None and next_var.upper() != var.upper():
            raise AilSyntaxError(
                f"NEXT {next_var.upper()} doesn't match FOR {var.upper()}",
                line=next_var.line,
                column=next_var.column,
            )


def get_parser() -> AilParser:
    return AilParser()


def parse(code: str) -> lark.Tree:
    return get_parser().parse(code)


def parse_expression(code: str) -> lark.Tree:
    return get_parser().parse_expression(code)
