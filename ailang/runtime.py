"""
AI-Lang runtime helpers.

Operator semantics, PRINT/INPUT and FOR-loop bookkeeping shared by the
interpreter and by programs produced by ``ailang.compile``. A compiled
program imports the names in RUNTIME_NAMES and needs nothing else.
"""
import logging
import math
import operator
import sys

from .ail_errors import AilError, AilRuntimeError
from .ail_intrinsics import call_intrinsic
from .ail_types import (
    AilValue, Environment, HaltProgram, bool_value, num, render_value, text
)

logger = logging.getLogger("ailang.runtime")

RUNTIME_NAMES = (
    "HaltProgram",
    "bool_value",
    "call_intrinsic",
    "eval_binop",
    "for_continue",
    "for_start",
    "is_truthy",
    "load_var",
    "main",
    "negate",
    "num",
    "positive",
    "print_values",
    "read_number",
    "text",
)

TYPE_MISMATCH = "Invalid operation or type mismatch"

COMPARISONS = {
    "eq": operator.eq,
    "neq": operator.ne,
    "lt": operator.lt,
    "gt": operator.gt,
    "le": operator.le,
    "ge": operator.ge,
}


# ─── Operators ───────────────────────────────────────────────────────────────

def power(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and exponent % 2 == 1:
            return -math.inf
        return math.inf
    except ValueError:
        # 0 ^ negative, or a fractional power of a negative number
        if base == 0:
            return math.inf
        return math.nan


def eval_binop(op: str, left: AilValue, right: AilValue) -> AilValue:
    if op in COMPARISONS:
        if left.type != right.type or left.type not in ("Number", "String"):
            raise AilRuntimeError(TYPE_MISMATCH)
        return bool_value(COMPARISONS[op](left.val, right.val))

    if op == "add" and left.type == "String" and right.type == "String":
        return text(left.val + right.val)

    if left.type != "Number" or right.type != "Number":
        raise AilRuntimeError(TYPE_MISMATCH)

    l = left.val
    r = right.val
    if op == "add": return num(l + r)
    if op == "sub": return num(l - r)
    if op == "mul": return num(l * r)
    if op == "div":
        if r == 0:
            raise AilRuntimeError("Division by zero")
        return num(l / r)
    if op == "pow": return num(power(l, r))
    raise AilRuntimeError(f"Unknown operator: {op}")


def negate(value: AilValue) -> AilValue:
    if value.type != "Number":
        raise AilRuntimeError(TYPE_MISMATCH)
    return num(-value.val)


def positive(value: AilValue) -> AilValue:
    if value.type != "Number":
        raise AilRuntimeError(TYPE_MISMATCH)
    return value


def is_truthy(value: AilValue) -> bool:
    if value.type != "Number":
        raise AilRuntimeError("Condition must evaluate to a number")
    return value.val != 0


# ─── Variables and I/O ───────────────────────────────────────────────────────

def load_var(env: Environment, name: str) -> AilValue:
    value = env.get(name)
    if value is None:
        raise AilRuntimeError(f"Undefined variable: {name}")
    return value


def print_values(env: Environment, values, newline: bool = True):
    env.out.write(" ".join(render_value(v) for v in values))
    if newline:
        env.out.write("\n")
    env.out.flush()


def read_number(env: Environment, name: str) -> AilValue:
    env.out.write(f"Enter {name}: ")
    env.out.flush()
    try:
        line = env.inp.readline()
    except OSError as e:
        raise AilRuntimeError(f"Failed to read input: {e}") from e
    if line == "":
        raise AilRuntimeError("Failed to read input: end of input")
    try:
        return num(float(line.strip()))
    except ValueError:
        raise AilRuntimeError("Invalid number input") from None


# ─── FOR loops ───────────────────────────────────────────────────────────────

def for_start(start: AilValue, end: AilValue, step: AilValue) -> AilValue:
    if start.type != "Number" or end.type != "Number" or step.type != "Number":
        raise AilRuntimeError("Loop bounds must be numbers")
    return start


def for_continue(env: Environment, name: str, end: AilValue, step: AilValue) -> bool:
    """
    Advance the loop variable after one pass of the body. The body runs at
    least once; the variable keeps its last value when the loop ends.
    """
    if step.type != "Number":
        raise AilRuntimeError("Step must be a number")
    if end.type != "Number":
        raise AilRuntimeError("End must be a number")
    current = load_var(env, name)
    if current.type != "Number":
        raise AilRuntimeError(f"Loop variable {name} must be a number")

    next_val = current.val + step.val
    if (step.val > 0 and next_val <= end.val) or (step.val < 0 and next_val >= end.val):
        env.set(name, num(next_val))
        return True
    return False


# ─── Compiled program entry points ───────────────────────────────────────────

def execute(program, env: Environment) -> Environment:
    try:
        program(env)
    except HaltProgram:
        logger.debug("Program halted by STOP/END")
    except AilRuntimeError as e:
        if e.line is None:
            e.line = env.line
        raise
    except AilError:
        raise
    except Exception as e:
        raise AilRuntimeError(str(e), line=env.line) from e
    return env


def main(program):
    """Entry point of a compiled program run as a script."""
    try:
        execute(program, Environment())
    except AilError as e:
        print(e, file=sys.stderr)
        sys.exit(1)
