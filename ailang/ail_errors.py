"""
AI-Lang error types.

Every failure reported to a user of the language is an ``AilError``. Syntax
errors come from the parser, run-time errors from the interpreter or from a
compiled program, and both carry the 1-based source line when it is known.
"""


def node_line(node):
    """Best-effort 1-based source line of a lark tree or token."""
    if node is None:
        return None
    line = getattr(node, "line", None)
    if line is None and hasattr(node, "meta"):
        line = getattr(node.meta, "line", None)
    return line


class AilError(Exception):
    pass


class AilSyntaxError(AilError):
    def __init__(self, msg, line=None, column=None, expected=None):
        self.msg = msg
        self.line = line
        self.column = column
        self.expected = sorted(expected or [])
        super().__init__(self.__str__())

    def __str__(self):
        if self.line and self.column:
            return f"Syntax error at line {self.line}, column {self.column}: {self.msg}"
        if self.line:
            return f"Syntax error at line {self.line}: {self.msg}"
        return f"Syntax error: {self.msg}"


class AilRuntimeError(AilError):
    def __init__(self, msg, node=None, line=None):
        self.msg = msg
        self.line = line if line is not None else node_line(node)
        super().__init__(self.__str__())

    def __str__(self):
        # line may be filled in while the error unwinds
        if self.line:
            return f"Error at line {self.line}: {self.msg}"
        return f"Error: {self.msg}"


class LoopLimitExceeded(AilRuntimeError):
    """The run went over its step budget."""
