"""
AI-Lang command line.

Commands:
    ailang run [FILE]           Interpret a program (default: code.ail)
    ailang FILE                 Same as `ailang run FILE`
    ailang compile FILE         Write the program as a Python module
    ailang check FILE           Syntax check only
    ailang repl                 Interactive session
"""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .ail_errors import AilError
from .ail_interpreter import run_program
from .ail_parser import parse
from .ail_types import Environment
from .compile import emit_python_source, run_compiled
from .config import settings

logger = logging.getLogger("ailang.cli")

COMMANDS = ("run", "compile", "check", "repl")


def setup_logging(verbose=False):
    level = logging.DEBUG if verbose or settings.DEBUG else logging.INFO
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )


def resolve_source(path):
    """`prog` also finds `prog.ail` when no file of that exact name exists."""
    candidate = Path(path)
    if not candidate.exists() and not candidate.suffix:
        with_suffix = candidate.with_suffix(settings.SOURCE_SUFFIX)
        if with_suffix.exists():
            return str(with_suffix)
    return str(path)


def read_source(path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        print(f"Error reading file: {e}", file=sys.stderr)
        return None


def make_env(args):
    return Environment(
        max_steps=getattr(args, "max_steps", None),
        seed=getattr(args, "seed", None),
    )


def cmd_run(args):
    path = resolve_source(args.file or settings.DEFAULT_SOURCE)
    code = read_source(path)
    if code is None:
        return 1

    if args.banner:
        print(f"Reading code from {path}...")
    runner = run_compiled if args.compiled else run_program
    try:
        env = runner(code, env=make_env(args))
    except AilError as e:
        sys.stdout.flush()
        print(e, file=sys.stderr)
        return 1
    logger.debug(f"{path}: {env.steps} steps, {len(env.vars)} variables")
    if args.banner:
        print("\nProgram execution completed.")
    return 0


def cmd_compile(args):
    args.file = resolve_source(args.file)
    code = read_source(args.file)
    if code is None:
        return 1

    try:
        source = emit_python_source(code, source_name=Path(args.file).name)
    except AilError as e:
        print(e, file=sys.stderr)
        return 1

    if args.print:
        sys.stdout.write(source)
        return 0

    output = Path(args.output) if args.output else Path(args.file).with_suffix(".py")
    try:
        output.write_text(source, encoding="utf-8")
    except OSError as e:
        print(f"Error writing file: {e}", file=sys.stderr)
        return 1
    print(f"Compiled {args.file} -> {output}")
    return 0


def cmd_check(args):
    args.file = resolve_source(args.file)
    code = read_source(args.file)
    if code is None:
        return 1

    try:
        parse(code)
    except AilError as e:
        print(e, file=sys.stderr)
        return 1
    print(f"{args.file}: OK")
    return 0


def cmd_repl(args):
    # imported here so readline is only touched by interactive sessions
    from .repl import REPL

    REPL(
        max_steps=getattr(args, "max_steps", None),
        seed=getattr(args, "seed", None),
    ).run()
    return 0


def add_common_options(parser):
    # SUPPRESS keeps a subcommand from resetting values given before it
    parser.add_argument("--max-steps", type=int, default=argparse.SUPPRESS,
                        help=f"Step budget, 0 disables (default {settings.MAX_STEPS})")
    parser.add_argument("--seed", type=int, default=argparse.SUPPRESS, help="Seed for RND()")
    parser.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS,
                        help="Debug logging")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="ailang",
        description="AI-Lang interpreter and compiler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Use 'ailang <command> --help' for more info on a command."
    )
    parser.add_argument("--version", action="version", version=f"ailang {__version__}")
    add_common_options(parser)
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Run
    parser_run = subparsers.add_parser("run", help="Interpret a program")
    parser_run.add_argument("file", nargs="?", help=f"Source file (default {settings.DEFAULT_SOURCE})")
    parser_run.add_argument("--banner", action="store_true",
                            help="Print progress lines around the program output")
    parser_run.add_argument("--compiled", action="store_true",
                            help="Compile to Python first and run the compiled program")
    add_common_options(parser_run)
    parser_run.set_defaults(func=cmd_run)

    # Compile
    parser_compile = subparsers.add_parser("compile", help="Compile a program to Python source")
    parser_compile.add_argument("file", help="Source file")
    parser_compile.add_argument("-o", "--output", help="Output file (default: FILE with .py suffix)")
    parser_compile.add_argument("--print", action="store_true", help="Write the source to stdout")
    add_common_options(parser_compile)
    parser_compile.set_defaults(func=cmd_compile)

    # Check
    parser_check = subparsers.add_parser("check", help="Check a program for syntax errors")
    parser_check.add_argument("file", help="Source file")
    add_common_options(parser_check)
    parser_check.set_defaults(func=cmd_check)

    # REPL
    parser_repl = subparsers.add_parser("repl", help="Start an interactive session")
    add_common_options(parser_repl)
    parser_repl.set_defaults(func=cmd_repl)

    return parser


def main(argv=None):
    argv = list(sys.argv[1:] if argv is None else argv)
    # `ailang FILE` and a bare `ailang` mean `ailang run ...`
    if not any(a in COMMANDS for a in argv) and not any(a in ("-h", "--help", "--version") for a in argv):
        argv.insert(0, "run")

    args = build_parser().parse_args(argv)
    setup_logging(getattr(args, "verbose", False))
    logger.debug(f"Command: {args.command}")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
