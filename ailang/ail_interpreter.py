"""
AI-Lang Interpreter: parse tree evaluation engine.

Contains: eval_node, all handle_* functions, NODE_HANDLERS, exec_block and
run_program. Operator semantics live in ailang.runtime so that compiled
programs behave identically.
"""
import logging

from lark import Token, Tree

from .ail_errors import AilRuntimeError, node_line
from .ail_intrinsics import call_intrinsic
from .ail_parser import parse
from .ail_types import (
    AilValue, UNIT_VALUE, Environment, HaltProgram, bool_value, num, text
)
from .runtime import (
    eval_binop, for_continue, for_start, is_truthy, load_var, negate,
    positive, print_values, read_number
)

logger = logging.getLogger("ailang.interpreter")

ONE = num(1)


# ─── Statements ──────────────────────────────────────────────────────────────

def handle_block(node, env):
    return exec_block(node.children, env)

def handle_assign(node, env):
    name = node.children[0].upper()
    val = eval_node(node.children[1], env)
    env.set(name, val)
    return UNIT_VALUE

def handle_print_stmt(node, env):
    print_list = node.children[0]
    values = []
    newline = True
    if print_list is not None:
        items = [c for c in print_list.children if c is not None]
        values = [eval_node(c, env) for c in items if isinstance(c, Tree)]
        # a trailing comma keeps the cursor on the line
        newline = not isinstance(items[-1], Token)
    print_values(env, values, newline)
    return UNIT_VALUE

def handle_input_stmt(node, env):
    name = node.children[0].upper()
    env.set(name, read_number(env, name))
    return UNIT_VALUE

def handle_halt(node, env):
    raise HaltProgram()

def _run_branch(branch, env):
    if branch.data == "else_line":
        branch = branch.children[0]
    if branch.data == "block":
        return eval_node(branch, env)
    # single-line IF: the branch is one statement
    return exec_block([branch], env)

def handle_if(node, env):
    cond, then_branch, else_branch = node.children
    if is_truthy(eval_node(cond, env)):
        return _run_branch(then_branch, env)
    if else_branch is not None:
        return _run_branch(else_branch, env)
    return UNIT_VALUE

def handle_while_stmt(node, env):
    cond_node, body_node = node.children
    line = node_line(node)
    while is_truthy(eval_node(cond_node, env)):
        env.tick(line)
        eval_node(body_node, env)
    return UNIT_VALUE

def handle_for_stmt(node, env):
    var_token, start_node, end_node, step_node, body_node, _ = node.children
    name = var_token.upper()
    line = node_line(node)

    def bounds():
        end = eval_node(end_node, env)
        step = eval_node(step_node, env) if step_node is not None else ONE
        return end, step

    start = eval_node(start_node, env)
    end, step = bounds()
    env.set(name, for_start(start, end, step))
    while True:
        env.tick(line)
        eval_node(body_node, env)
        # end and step are re-evaluated on every pass
        end, step = bounds()
        if not for_continue(env, name, end, step):
            break
    return UNIT_VALUE


# ─── Expressions ─────────────────────────────────────────────────────────────

def handle_number(node, env):
    return num(float(node.children[0].value))

def handle_string(node, env):
    return text(node.children[0].value[1:-1])

def handle_var(node, env):
    return load_var(env, node.children[0].upper())

def handle_call(node, env):
    name = node.children[0].upper()
    args_node = node.children[1]
    args = []
    if args_node is not None:
        # separators share the COMMA terminal with PRINT lists
        args = [eval_node(c, env) for c in args_node.children if isinstance(c, Tree)]
    return call_intrinsic(name, args, env)

def handle_binop(node, env):
    left = eval_node(node.children[0], env)
    right = eval_node(node.children[1], env)
    return eval_binop(node.data, left, right)

def handle_neg(node, env):
    return negate(eval_node(node.children[0], env))

def handle_pos(node, env):
    return positive(eval_node(node.children[0], env))

def handle_logical_or(node, env):
    left = eval_node(node.children[0], env)
    if is_truthy(left): return bool_value(True)
    right = eval_node(node.children[-1], env)
    return bool_value(is_truthy(right))

def handle_logical_and(node, env):
    left = eval_node(node.children[0], env)
    if not is_truthy(left): return bool_value(False)
    right = eval_node(node.children[-1], env)
    return bool_value(is_truthy(right))

def handle_logical_not(node, env):
    return bool_value(not is_truthy(eval_node(node.children[0], env)))


# ─── Node Handler Registry ───────────────────────────────────────────────────

NODE_HANDLERS = {
    "start": handle_block,
    "block": handle_block,
    "let_stmt": handle_assign,
    "assign_stmt": handle_assign,
    "print_stmt": handle_print_stmt,
    "input_stmt": handle_input_stmt,
    "stop_stmt": handle_halt,
    "end_stmt": handle_halt,
    "if_line": handle_if,
    "if_block": handle_if,
    "while_stmt": handle_while_stmt,
    "for_stmt": handle_for_stmt,
    "number": handle_number,
    "string": handle_string,
    "var": handle_var,
    "call": handle_call,
    "add": handle_binop,
    "sub": handle_binop,
    "mul": handle_binop,
    "div": handle_binop,
    "pow": handle_binop,
    "eq": handle_binop,
    "neq": handle_binop,
    "lt": handle_binop,
    "gt": handle_binop,
    "le": handle_binop,
    "ge": handle_binop,
    "neg": handle_neg,
    "pos": handle_pos,
    "logical_or": handle_logical_or,
    "logical_and": handle_logical_and,
    "logical_not": handle_logical_not,
}


def eval_node(node, env: Environment) -> AilValue:
    if node is None: return UNIT_VALUE

    handler = NODE_HANDLERS.get(node.data)
    if handler is None:
        raise AilRuntimeError(f"Unsupported construct: {node.data}", node)
    try:
        return handler(node, env)
    except HaltProgram:
        raise
    except AilRuntimeError as e:
        if e.line is None:
            e.line = node_line(node)
        raise
    except Exception as e:
        # Unexpected Python errors (OverflowError, ...) carry the node's line
        raise AilRuntimeError(str(e), node) from e


def exec_block(nodes, env: Environment):
    for stmt in nodes:
        env.tick(node_line(stmt))
        eval_node(stmt, env)
    return UNIT_VALUE


def run_program(program, env: Environment = None, **env_options) -> Environment:
    """
    Run a program given as source text or as a parsed tree. Returns the
    environment so callers can inspect the final variables.
    """
    tree = parse(program) if isinstance(program, str) else program
    if env is None:
        env = Environment(**env_options)

    logger.debug(f"Executing {len(tree.children)} top-level statements")
    try:
        eval_node(tree, env)
    except HaltProgram:
        logger.debug("Program halted by STOP/END")
    logger.debug(f"Run finished after {env.steps} steps")
    return env
