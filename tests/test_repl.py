import io
import os
import re
import subprocess
import sys
import unittest

import pytest

from ailang.ail_types import num, text
from ailang.repl import REPL, AilCompleter, is_incomplete

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def strip_ansi(text):
    ansi_escape = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')
    return ansi_escape.sub('', text)


def scripted(lines):
    """An input() replacement that feeds `lines` and then signals EOF."""
    pending = list(lines)

    def fake_input(prompt=""):
        if not pending:
            raise EOFError
        return pending.pop(0)
    return fake_input


def make_repl(lines, **options):
    out = io.StringIO()
    repl = REPL(out=out, input_func=scripted(lines), use_readline=False, **options)
    return repl, out


class TestIncompleteInput(unittest.TestCase):
    def test_block_openers(self):
        self.assertTrue(is_incomplete("IF x DO"))
        self.assertTrue(is_incomplete("FOR i = 1 TO 3"))
        self.assertTrue(is_incomplete("WHILE 1 DO\n FOR i = 1 TO 2\n NEXT"))
        self.assertFalse(is_incomplete("IF x DO\n PRINT 1\nEND"))
        self.assertFalse(is_incomplete("PRINT 1"))

    def test_strings_and_comments_are_ignored(self):
        self.assertFalse(is_incomplete('PRINT "DO it FOR me"'))
        self.assertFalse(is_incomplete("LET a = 1 ' DO"))
        self.assertFalse(is_incomplete("REM FOR ever"))

    def test_keywords_inside_names_do_not_count(self):
        self.assertFalse(is_incomplete("DONE = 1\nFORMAT = 2"))


class TestREPL(unittest.TestCase):
    def test_statements_share_environment(self):
        repl, out = make_repl(["LET x = 20", "PRINT x + 1"])
        repl.run()
        self.assertIn("21\n", out.getvalue())
        self.assertEqual(repl.env.get("X"), num(20))

    def test_expression_echo(self):
        repl, out = make_repl(["x = 6", "x * 7", '"hi" + "!"'])
        repl.run()
        output = strip_ansi(out.getvalue())
        self.assertIn("=> 42", output)
        self.assertIn('=> "hi!"', output)

    def test_multi_line_block(self):
        repl, out = make_repl(["FOR i = 1 TO 3", "  PRINT i", "NEXT"])
        repl.run()
        self.assertIn("1\n2\n3\n", out.getvalue())

    def test_errors_do_not_end_session(self):
        repl, out = make_repl(["PRINT y", "PRINT (", "PRINT 5"])
        repl.run()
        output = strip_ansi(out.getvalue())
        self.assertIn("Runtime Error at line 1: Undefined variable: Y", output)
        self.assertIn("Syntax error at line 1", output)
        self.assertIn("5\n", output)

    def test_step_budget_resets_per_input(self):
        repl, out = make_repl(["FOR i = 1 TO 5", "NEXT", "FOR i = 1 TO 5", "NEXT"], max_steps=8)
        repl.run()
        self.assertNotIn("Step limit", out.getvalue())

    def test_reset(self):
        repl, out = make_repl(["x = 1", ":reset"])
        repl.run()
        self.assertIsNone(repl.env.get("X"))
        self.assertIn("Session reset.", out.getvalue())

    def test_env_command(self):
        repl, out = make_repl(['name = "ada"', "n = 3", ":env"])
        repl.run()
        output = strip_ansi(out.getvalue())
        self.assertIn("NAME: String = ada", output)
        self.assertIn("N: Number = 3", output)

    def test_load(self):
        path = os.path.join(ROOT, "samples", "hello.ail")
        repl, out = make_repl([f":load {path}"])
        repl.run()
        output = strip_ansi(out.getvalue())
        self.assertIn("Hello, World!\n", output)
        self.assertIn(f"Loaded {path}", output)

    def test_load_missing_file(self):
        repl, out = make_repl([":load /no/such/file.ail"])
        repl.run()
        self.assertIn("Error reading file:", strip_ansi(out.getvalue()))

    def test_quit_stops_reading(self):
        repl, out = make_repl([":quit", "PRINT 99"])
        repl.run()
        self.assertNotIn("99", out.getvalue())

    def test_help_and_unknown_command(self):
        repl, out = make_repl([":help", ":bogus"])
        repl.run()
        output = strip_ansi(out.getvalue())
        self.assertIn(":load <file>", output)
        self.assertIn("Unknown command: :bogus", output)

    def test_end_halts_only_current_input(self):
        repl, out = make_repl(["PRINT 1; END; PRINT 2", "PRINT 3"])
        repl.run()
        self.assertEqual(strip_ansi(out.getvalue()).count("2\n"), 0)
        self.assertIn("3\n", out.getvalue())


def test_completer():
    repl, _ = make_repl([])
    repl.env.set("PRICE", num(1))
    repl.env.set("TITLE", text("x"))
    completer = AilCompleter(repl.env)
    assert completer.complete("pr", 0) == "PRICE"
    assert completer.complete("pr", 1) == "PRINT"
    assert completer.complete("pr", 2) is None
    assert completer.complete("le", 0) == "LEFT"
    assert completer.complete("", 0) is None


@pytest.mark.timeout(60)
def test_repl_subprocess(tmp_path):
    input_str = "LET a = 2\nFOR i = 1 TO 3\na = a * 2\nNEXT\na\n:quit\n"
    env = dict(os.environ, PYTHONPATH=ROOT, HOME=str(tmp_path))
    result = subprocess.run(
        [sys.executable, "-m", "ailang", "repl"],
        input=input_str, capture_output=True, text=True, env=env, timeout=30
    )
    assert result.returncode == 0
    assert "=> 16" in strip_ansi(result.stdout)
