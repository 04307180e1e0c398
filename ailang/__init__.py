"""AI-Lang: a small keyword language with an interpreter and a Python compiler."""

__version__ = "0.1.0"

from .ail_errors import AilError, AilRuntimeError, AilSyntaxError, LoopLimitExceeded
from .ail_interpreter import run_program
from .ail_parser import parse
from .ail_types import AilValue, Environment
from .compile import compile_to_python, emit_python_source, run_compiled

__all__ = [
    "AilError",
    "AilRuntimeError",
    "AilSyntaxError",
    "AilValue",
    "Environment",
    "LoopLimitExceeded",
    "compile_to_python",
    "emit_python_source",
    "parse",
    "run_compiled",
    "run_program",
]
