import os
import sys


class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


def use_color(stream=None):
    stream = stream or sys.stdout
    if os.name == 'nt' or os.environ.get("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def colorize(text, color, stream=None):
    if not use_color(stream): return text
    return f"{color}{text}{Colors.ENDC}"


def colorize_prompt(text, color, readline=None):
    if not use_color(): return text
    if not readline: return colorize(text, color)
    # Wrap escape sequences in \001 and \002 for readline
    return f"\001{color}\002{text}\001{Colors.ENDC}\002"
