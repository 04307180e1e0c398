"""
AI-Lang Type System: values and the run-time environment.
"""
import math
import random
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .ail_errors import LoopLimitExceeded
from .config import settings


@dataclass(slots=True)
class AilValue:
    val: Any
    type: str


UNIT_VALUE = AilValue(None, "Unit")


def num(n) -> AilValue:
    return AilValue(float(n), "Number")


def text(s) -> AilValue:
    return AilValue(str(s), "String")


def bool_value(flag) -> AilValue:
    return num(1.0 if flag else 0.0)


def format_number(n: float) -> str:
    if math.isnan(n):
        return "NaN"
    if math.isinf(n):
        return "inf" if n > 0 else "-inf"
    if n.is_integer():
        return str(int(n))
    return repr(n)


def render_value(value: AilValue) -> str:
    if value.type == "Number":
        return format_number(value.val)
    if value.type == "Unit":
        return ""
    return str(value.val)


class HaltProgram(Exception):
    """Raised by STOP and END to unwind the running program."""


class Environment:
    """
    State of one program run: the global variable table, the I/O streams,
    the random generator and the step budget.
    """
    __slots__ = ('vars', 'out', 'inp', 'rng', 'max_steps', 'steps', 'line')

    def __init__(self, out=None, inp=None, max_steps: Optional[int] = None, seed: Optional[int] = None):
        self.vars: Dict[str, AilValue] = {}
        self.out = out if out is not None else sys.stdout
        self.inp = inp if inp is not None else sys.stdin
        self.max_steps = settings.MAX_STEPS if max_steps is None else max_steps
        self.rng = random.Random(settings.RANDOM_SEED if seed is None else seed)
        self.steps = 0
        self.line = None

    def get(self, name: str) -> Optional[AilValue]:
        return self.vars.get(name)

    def set(self, name: str, val: AilValue):
        self.vars[name] = val

    def tick(self, line: Optional[int] = None):
        if line is not None:
            self.line = line
        self.steps += 1
        if self.max_steps and self.steps > self.max_steps:
            raise LoopLimitExceeded(
                f"Step limit of {self.max_steps} exceeded (possible infinite loop)",
                line=self.line,
            )
