"""
AI-Lang Intrinsics: built-in functions callable as NAME(args).

Contains: intrinsic functions, INTRINSICS dict, INTRINSICS_WITH_ENV.
"""
import math
from typing import List

from .ail_errors import AilRuntimeError
from .ail_types import AilValue, format_number, num, text


def _check_arity(name: str, args: List[AilValue], low: int, high: int = None):
    high = low if high is None else high
    if low <= len(args) <= high:
        return
    expected = str(low) if low == high else f"{low} to {high}"
    raise AilRuntimeError(f"{name} expects {expected} argument(s), got {len(args)}")


def _number_arg(name: str, args: List[AilValue], index: int = 0) -> float:
    arg = args[index]
    if arg.type != "Number":
        raise AilRuntimeError(f"{name} requires a number argument")
    return arg.val


def _string_arg(name: str, args: List[AilValue], index: int = 0) -> str:
    arg = args[index]
    if arg.type != "String":
        raise AilRuntimeError(f"{name} requires a string argument")
    return arg.val


def _count_arg(name: str, args: List[AilValue], index: int) -> int:
    n = int(math.floor(_number_arg(name, args, index)))
    if n < 0:
        raise AilRuntimeError(f"{name} count must not be negative")
    return n


# ─── Numeric ─────────────────────────────────────────────────────────────────

def intrinsic_abs(args: List[AilValue]):
    _check_arity("ABS", args, 1)
    return num(abs(_number_arg("ABS", args)))

def intrinsic_sqr(args: List[AilValue]):
    _check_arity("SQR", args, 1)
    n = _number_arg("SQR", args)
    if n < 0:
        raise AilRuntimeError("Cannot take square root of negative number")
    return num(math.sqrt(n))

def intrinsic_sin(args: List[AilValue]):
    _check_arity("SIN", args, 1)
    return num(math.sin(_number_arg("SIN", args)))

def intrinsic_cos(args: List[AilValue]):
    _check_arity("COS", args, 1)
    return num(math.cos(_number_arg("COS", args)))

def intrinsic_tan(args: List[AilValue]):
    _check_arity("TAN", args, 1)
    return num(math.tan(_number_arg("TAN", args)))

def intrinsic_int(args: List[AilValue]):
    _check_arity("INT", args, 1)
    n = _number_arg("INT", args)
    if math.isinf(n) or math.isnan(n):
        return num(n)
    return num(math.floor(n))

def intrinsic_log(args: List[AilValue]):
    _check_arity("LOG", args, 1)
    n = _number_arg("LOG", args)
    if n <= 0:
        raise AilRuntimeError("Cannot take logarithm of a non-positive number")
    return num(math.log(n))

def intrinsic_exp(args: List[AilValue]):
    _check_arity("EXP", args, 1)
    n = _number_arg("EXP", args)
    try:
        return num(math.exp(n))
    except OverflowError:
        return num(math.inf)

def intrinsic_rnd(args: List[AilValue], env):
    # The argument is accepted for compatibility and ignored.
    _check_arity("RND", args, 0, 1)
    return num(env.rng.random())


# ─── Strings ─────────────────────────────────────────────────────────────────

def intrinsic_len(args: List[AilValue]):
    _check_arity("LEN", args, 1)
    return num(len(_string_arg("LEN", args)))

def intrinsic_left(args: List[AilValue]):
    _check_arity("LEFT", args, 2)
    s = _string_arg("LEFT", args)
    return text(s[:_count_arg("LEFT", args, 1)])

def intrinsic_right(args: List[AilValue]):
    _check_arity("RIGHT", args, 2)
    s = _string_arg("RIGHT", args)
    n = _count_arg("RIGHT", args, 1)
    return text(s[len(s) - n:] if n < len(s) else s)

def intrinsic_mid(args: List[AilValue]):
    _check_arity("MID", args, 2, 3)
    s = _string_arg("MID", args)
    start = int(math.floor(_number_arg("MID", args, 1)))
    if start < 1:
        raise AilRuntimeError("MID start position must be at least 1")
    if len(args) == 3:
        length = _count_arg("MID", args, 2)
        return text(s[start - 1:start - 1 + length])
    return text(s[start - 1:])

def intrinsic_str(args: List[AilValue]):
    _check_arity("STR", args, 1)
    return text(format_number(_number_arg("STR", args)))

def intrinsic_val(args: List[AilValue]):
    _check_arity("VAL", args, 1)
    s = _string_arg("VAL", args)
    try:
        return num(float(s.strip()))
    except ValueError:
        raise AilRuntimeError(f"VAL cannot convert {s!r} to a number") from None


INTRINSICS = {
    # Numeric
    "ABS": intrinsic_abs,
    "SQR": intrinsic_sqr,
    "SIN": intrinsic_sin,
    "COS": intrinsic_cos,
    "TAN": intrinsic_tan,
    "INT": intrinsic_int,
    "LOG": intrinsic_log,
    "EXP": intrinsic_exp,
    "RND": intrinsic_rnd,

    # Strings
    "LEN": intrinsic_len,
    "LEFT": intrinsic_left,
    "RIGHT": intrinsic_right,
    "MID": intrinsic_mid,
    "STR": intrinsic_str,
    "VAL": intrinsic_val,
}


INTRINSICS_WITH_ENV = {
    "RND",
}


def call_intrinsic(name: str, args: List[AilValue], env):
    func = INTRINSICS.get(name)
    if func is None:
        raise AilRuntimeError(f"Unknown function: {name}")
    if name in INTRINSICS_WITH_ENV:
        return func(args, env)
    return func(args)
