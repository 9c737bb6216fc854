import sys
from loguru import logger

from minicas.config import load_settings
from minicas.common import ParseError
from minicas.equation import Equation
from minicas.parser import parse
from minicas.rewrite import evaluate
from minicas.scope import Scope

settings = load_settings(sys.argv[1] if len(sys.argv) > 1 else "minicas.json")
logger.remove()
logger.add(sys.stderr, level=settings.log_level)

scope = Scope(keep_constants=settings.keep_constants)
mode  = "evaluate"

HELP = """\
  <expression>        run the current mode on an expression or equation
  :let x = <expr>     bind a variable
  :unset x            unbind a variable
  :scope              show bindings
  :mode <name>        one of evaluate, simplify, expand, reduce
  :quit"""

def run(text):
    if "=" in text:
        tree = Equation.parse(text, settings)
    else:
        tree = parse(text, settings)
    if mode == "evaluate":
        return tree.evaluate(scope)
    return getattr(tree, mode)()

print("minicas, :help for commands")
running = True
while running:
    try:
        line = input(f"{mode}> ").strip()
    except EOFError:
        break
    if not line:
        continue
    if line in (":q", ":quit"):
        running = False
    elif line == ":help":
        print(HELP)
    elif line == ":scope":
        print(scope or "(empty)")
    elif line.startswith(":mode"):
        name = line[5:].strip()
        if name in ("evaluate", "simplify", "expand", "reduce"):
            mode = name
        else:
            print(f"unknown mode {name!r}")
    elif line.startswith(":unset"):
        scope.remove(line[6:].strip())
    elif line.startswith(":let"):
        name, _, value = line[4:].partition("=")
        try:
            scope.set(name.strip(), evaluate(parse(value, settings), scope))
        except ParseError as error:
            print(f"error: {error}")
    else:
        try:
            print(run(line))
        except ParseError as error:
            print(f"error: {error}")
        except NotImplementedError as error:
            print(f"error: {error}")
