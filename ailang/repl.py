import atexit
import os
import re
import shlex
import sys

from . import __version__
from .ail_errors import AilError, AilSyntaxError
from .ail_interpreter import eval_node, run_program
from .ail_intrinsics import INTRINSICS
from .ail_parser import parse, parse_expression
from .ail_types import Environment, render_value
from .colors import Colors, colorize, colorize_prompt
from .config import settings

try:
    import readline
except ImportError:
    # Windows without pyreadline; history and completion are skipped
    readline = None

KEYWORDS = [
    'LET', 'PRINT', 'INPUT', 'IF', 'THEN', 'ELSE', 'DO', 'END', 'WHILE',
    'FOR', 'TO', 'STEP', 'NEXT', 'STOP', 'AND', 'OR', 'NOT', 'REM'
]

OPENERS = re.compile(r'\b(DO|FOR)\b', re.IGNORECASE)
CLOSERS = re.compile(r'\b(END|NEXT)\b', re.IGNORECASE)
STRINGS_AND_COMMENTS = re.compile(r'"[^"\n]*"?|(\bREM\b|\')[^\n]*', re.IGNORECASE)

HELP = """Commands:
  :help        Show this help
  :reset       Reset session
  :load <file> Load and execute file
  :env         Show variables
  :quit        Exit REPL"""


def is_incomplete(text: str) -> bool:
    """True while a DO/FOR block in `text` is still waiting for its END/NEXT."""
    code = STRINGS_AND_COMMENTS.sub(' ', text)
    return len(OPENERS.findall(code)) > len(CLOSERS.findall(code))


class AilCompleter:
    def __init__(self, env):
        self.env = env

    def complete(self, text, state):
        if not text:
            return None

        prefix = text.upper()
        candidates = []
        candidates.extend([k for k in KEYWORDS if k.startswith(prefix)])
        candidates.extend([k for k in INTRINSICS.keys() if k.startswith(prefix)])
        candidates.extend([k for k in self.env.vars.keys() if k.startswith(prefix)])

        candidates = sorted(set(candidates))
        if state < len(candidates):
            return candidates[state]
        return None


class REPL:
    def __init__(self, out=None, input_func=None, use_readline=True, **env_options):
        self.out = out if out is not None else sys.stdout
        self.input_func = input_func or input
        self.env_options = env_options
        self.history_file = os.path.expanduser(settings.HISTORY_FILE)
        self.readline = readline if use_readline else None
        self.init_env()
        self.setup_readline()

    def init_env(self):
        self.env = Environment(out=self.out, **self.env_options)

    def setup_readline(self):
        if not self.readline:
            return
        if os.path.exists(self.history_file):
            try:
                self.readline.read_history_file(self.history_file)
            except OSError:
                pass
        atexit.register(self.save_history)

        self.completer = AilCompleter(self.env)
        self.readline.set_completer(self.completer.complete)
        self.readline.parse_and_bind("tab: complete")

    def save_history(self):
        try:
            self.readline.write_history_file(self.history_file)
        except OSError:
            pass

    def write(self, text=""):
        print(text, file=self.out)

    def get_input(self):
        buffer = [self.input_func(colorize_prompt(">>> ", Colors.BLUE, self.readline))]
        while not buffer[0].strip().startswith(':') and is_incomplete("\n".join(buffer)):
            buffer.append(self.input_func(colorize_prompt("... ", Colors.BLUE, self.readline)))
        return "\n".join(buffer)

    def handle_command(self, text):
        """Run a :command. Returns False when the session should end."""
        try:
            parts = shlex.split(text)
        except ValueError as e:
            self.write(colorize(f"Bad command: {e}", Colors.RED, self.out))
            return True
        cmd = parts[0].lower()
        args = parts[1:]

        if cmd == ":help":
            self.write(colorize(HELP, Colors.HEADER, self.out))

        elif cmd == ":reset":
            self.init_env()
            if self.readline:
                self.completer.env = self.env
            self.write(colorize("Session reset.", Colors.YELLOW, self.out))

        elif cmd == ":load":
            if not args:
                self.write(colorize("Usage: :load <file>", Colors.RED, self.out))
                return True
            path = args[0]
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    code = f.read()
            except OSError as e:
                self.write(colorize(f"Error reading file: {e}", Colors.RED, self.out))
                return True
            if self.execute(code):
                self.write(colorize(f"Loaded {path}", Colors.GREEN, self.out))

        elif cmd == ":env":
            self.write(colorize("Variables:", Colors.HEADER, self.out))
            for name, value in sorted(self.env.vars.items()):
                self.write(f"  {colorize(name, Colors.CYAN, self.out)}: {value.type} = {render_value(value)}")

        elif cmd in (":quit", ":exit"):
            return False

        else:
            self.write(colorize(f"Unknown command: {cmd}", Colors.RED, self.out))
        return True

    def echo(self, value):
        if value.type == "String":
            shown = f'"{value.val}"'
        else:
            shown = render_value(value)
        self.write(f'{colorize("=>", Colors.GREEN, self.out)} {shown}')

    def execute(self, code: str) -> bool:
        """Run one chunk of input in the session. Returns True on success."""
        self.env.steps = 0
        try:
            try:
                tree = parse(code)
            except AilSyntaxError as program_error:
                # A bare expression is evaluated and echoed
                try:
                    expr = parse_expression(code.strip())
                except AilSyntaxError:
                    raise program_error from None
                self.echo(eval_node(expr, self.env))
                return True
            run_program(tree, env=self.env)
            return True
        except AilSyntaxError as e:
            self.write(colorize(str(e), Colors.RED, self.out))
        except AilError as e:
            self.write(colorize(f"Runtime {e}", Colors.RED, self.out))
        return False

    def run(self):
        self.write(colorize(f"AI-Lang v{__version__}\nType :help for commands, :quit to exit", Colors.CYAN, self.out))

        while True:
            try:
                text = self.get_input()
                if not text.strip():
                    continue

                if text.strip().startswith(':'):
                    if not self.handle_command(text.strip()):
                        break
                    continue

                self.execute(text)

            except KeyboardInterrupt:
                self.write("\n^C")
                continue
            except EOFError:
                self.write("\nGoodbye!")
                break


if __name__ == "__main__":
    REPL().run()
