"""
AI-Lang to Python compiler.

Lowers a parse tree to a Python ``ast.Module``:

    from ailang.runtime import ...
    def program(env):
        ...
    if __name__ == "__main__":
        main(program)

Expressions become calls into ailang.runtime so the compiled program keeps
the interpreter's semantics (types, errors, FOR loops, step budget).
"""
import ast
import copy
import logging

from lark import Token, Transformer, v_args
from lark.exceptions import VisitError

from .ail_parser import parse
from .ail_types import Environment
from .runtime import RUNTIME_NAMES, execute

logger = logging.getLogger("ailang.compile")

PROGRAM_FUNC = "program"


def _name(id):
    return ast.Name(id=id, ctx=ast.Load())

def _const(value):
    return ast.Constant(value=value)

def _call(func, *args):
    return ast.Call(func=_name(func), args=list(args), keywords=[])

def _env_call(method, *args):
    return ast.Call(
        func=ast.Attribute(value=_name("env"), attr=method, ctx=ast.Load()),
        args=list(args),
        keywords=[]
    )

def _tick(meta):
    return ast.Expr(value=_env_call("tick", _const(getattr(meta, "line", None))))

def _restore_line(meta):
    # loop conditions are re-evaluated on the loop's own line
    target = ast.Attribute(value=_name("env"), attr="line", ctx=ast.Store())
    return ast.Assign(targets=[target], value=_const(getattr(meta, "line", None)))


class ProgramCompiler(Transformer):

    def start(self, items):
        body = self._flatten(items) or [ast.Pass()]
        program = ast.FunctionDef(
            name=PROGRAM_FUNC,
            args=ast.arguments(
                posonlyargs=[],
                args=[ast.arg(arg='env')],
                vararg=None,
                kwonlyargs=[],
                kw_defaults=[],
                kwarg=None,
                defaults=[]
            ),
            body=body,
            decorator_list=[],
            returns=None,
            type_comment=None,
            type_params=[],
        )
        imports = ast.ImportFrom(
            module="ailang.runtime",
            names=[ast.alias(name=n, asname=None) for n in RUNTIME_NAMES],
            level=0,
        )
        main_guard = ast.If(
            test=ast.Compare(left=_name("__name__"), ops=[ast.Eq()], comparators=[_const("__main__")]),
            body=[ast.Expr(value=_call("main", _name(PROGRAM_FUNC)))],
            orelse=[]
        )
        return ast.Module(body=[imports, program, main_guard], type_ignores=[])

    def block(self, items):
        return self._flatten(items)

    def _flatten(self, items):
        stmts = []
        for item in items:
            if isinstance(item, list):
                stmts.extend(item)
            elif isinstance(item, ast.stmt):
                stmts.append(item)
        return stmts

    def _statement(self, meta, *stmts):
        return [_tick(meta), *stmts]

    # Statements

    @v_args(meta=True)
    def let_stmt(self, meta, items):
        name, value = items
        return self._statement(meta, ast.Expr(value=_env_call("set", _const(name.upper()), value)))

    assign_stmt = let_stmt

    @v_args(meta=True)
    def print_stmt(self, meta, items):
        values, newline = items[0] if items[0] is not None else ([], True)
        call = _call("print_values", _name("env"), ast.List(elts=values, ctx=ast.Load()), _const(newline))
        return self._statement(meta, ast.Expr(value=call))

    def print_list(self, items):
        items = [i for i in items if i is not None]
        newline = not isinstance(items[-1], Token)
        return [i for i in items if not isinstance(i, Token)], newline

    @v_args(meta=True)
    def input_stmt(self, meta, items):
        name = items[0].upper()
        read = _call("read_number", _name("env"), _const(name))
        return self._statement(meta, ast.Expr(value=_env_call("set", _const(name), read)))

    @v_args(meta=True)
    def stop_stmt(self, meta, items):
        return self._statement(meta, ast.Raise(exc=_call("HaltProgram"), cause=None))

    end_stmt = stop_stmt

    @v_args(meta=True)
    def if_line(self, meta, items):
        cond, then_body, else_body = items
        node = ast.If(
            test=_call("is_truthy", cond),
            body=then_body or [ast.Pass()],
            orelse=else_body or []
        )
        return self._statement(meta, node)

    if_block = if_line

    def else_line(self, items):
        return items[0]

    @v_args(meta=True)
    def while_stmt(self, meta, items):
        cond, body = items
        loop = ast.While(test=_call("is_truthy", cond), body=[_tick(meta)] + body + [_restore_line(meta)], orelse=[])
        return self._statement(meta, loop)

    @v_args(meta=True)
    def for_stmt(self, meta, items):
        var, start, end, step, body, _ = items
        name = var.upper()
        if step is None:
            step = _call("num", _const(1.0))

        init = ast.Expr(value=_env_call(
            "set", _const(name), _call("for_start", start, end, step)
        ))
        advance = _call("for_continue", _name("env"), _const(name), copy.deepcopy(end), copy.deepcopy(step))
        loop = ast.While(
            test=_const(True),
            body=[_tick(meta)] + body + [
                _restore_line(meta),
                ast.If(test=ast.UnaryOp(op=ast.Not(), operand=advance), body=[ast.Break()], orelse=[])
            ],
            orelse=[]
        )
        return self._statement(meta, init, loop)

    # Expressions

    def number(self, items):
        return _call("num", _const(float(items[0])))

    def string(self, items):
        return _call("text", _const(items[0][1:-1]))

    def var(self, items):
        return _call("load_var", _name("env"), _const(items[0].upper()))

    def call(self, items):
        name, args = items
        return _call(
            "call_intrinsic",
            _const(name.upper()),
            ast.List(elts=args or [], ctx=ast.Load()),
            _name("env")
        )

    def args(self, items):
        return [i for i in items if not isinstance(i, Token)]

    def _binop(self, op, items):
        return _call("eval_binop", _const(op), items[0], items[1])

    def add(self, items): return self._binop("add", items)
    def sub(self, items): return self._binop("sub", items)
    def mul(self, items): return self._binop("mul", items)
    def div(self, items): return self._binop("div", items)
    def pow(self, items): return self._binop("pow", items)
    def eq(self, items): return self._binop("eq", items)
    def neq(self, items): return self._binop("neq", items)
    def lt(self, items): return self._binop("lt", items)
    def gt(self, items): return self._binop("gt", items)
    def le(self, items): return self._binop("le", items)
    def ge(self, items): return self._binop("ge", items)

    def neg(self, items):
        return _call("negate", items[0])

    def pos(self, items):
        return _call("positive", items[0])

    def _logical(self, op, items):
        test = ast.BoolOp(op=op, values=[_call("is_truthy", items[0]), _call("is_truthy", items[1])])
        return _call("bool_value", test)

    def logical_or(self, items): return self._logical(ast.Or(), items)
    def logical_and(self, items): return self._logical(ast.And(), items)

    def logical_not(self, items):
        return _call("bool_value", ast.UnaryOp(op=ast.Not(), operand=_call("is_truthy", items[0])))


def compile_to_ast(code) -> ast.Module:
    tree = parse(code) if isinstance(code, str) else code
    try:
        module = ProgramCompiler().transform(tree)
    except VisitError as e:
        raise e.orig_exc from None
    ast.fix_missing_locations(module)
    return module


def compile_to_python(code, filename="<ailang>"):
    code_obj = compile(compile_to_ast(code), filename=filename, mode="exec")
    logger.debug(f"Compiled {filename} to Python bytecode")
    return code_obj


def emit_python_source(code, source_name=None) -> str:
    origin = f" from {source_name}" if source_name else ""
    header = f"# Generated by ailang{origin}. Do not edit.\n"
    return header + ast.unparse(compile_to_ast(code)) + "\n"


def load_program(code, filename="<ailang>"):
    """Compile and return the program(env) function."""
    namespace = {"__name__": "__ailang_compiled__"}
    exec(compile_to_python(code, filename), namespace)
    return namespace[PROGRAM_FUNC]


def run_compiled(code, env: Environment = None, **env_options) -> Environment:
    program = load_program(code)
    if env is None:
        env = Environment(**env_options)
    return execute(program, env)
