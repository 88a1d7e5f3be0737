"""
Lox Programming Language - Main Entry Point
Runs scripts, dumps syntax trees and resolution tables, and hosts the REPL
"""

import sys
import argparse
from typing import Dict, List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from ast_nodes import KEYWORDS, Expr, pretty_print_ast
from error_handling import ErrorReporter
from parsing import create_parser, create_debug_parser
from semantics import create_resolver, create_debug_resolver
from interpreter import LoxInterpreter, create_interpreter, create_debug_interpreter
from runtime import NativeFunction
from stdlib import NATIVES
from utilities import display_element


VERSION = "pylox 1.0.0"

# sysexits.h values
EXIT_OK = 0
EXIT_USAGE = 64
EXIT_DATAERR = 65
EXIT_NOINPUT = 66
EXIT_SOFTWARE = 70

# Each Lox call costs several Python frames
RECURSION_LIMIT = 10000


class LoxArgumentParser(argparse.ArgumentParser):
  """ArgumentParser whose usage errors exit with EX_USAGE"""

  def error(self, message):
    self.print_usage(sys.stderr)
    self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = LoxArgumentParser(
      prog='pylox',
      description='Lox Programming Language - tree-walking interpreter',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.lox             # Run a Lox script
  %(prog)s                        # Interactive mode
  %(prog)s --parse script.lox     # Parse and show the syntax tree
  %(prog)s --analyze script.lox   # Parse, resolve and show hop counts
  %(prog)s --debug script.lox     # Run with debug output
  %(prog)s --context script.lox   # Show source lines around errors
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Lox script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show the syntax tree (for debugging)'
  )

  parser.add_argument(
      '--analyze',
      action='store_true',
      help='Parse and resolve file, show the resolution table (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--context',
      action='store_true',
      help='Show the source lines around each diagnostic'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


# ============================================================================
# PIPELINE
# ============================================================================

def read_source(script_path: str) -> Optional[str]:
  """Read a script, reporting why it could not be read"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found", file=sys.stderr)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'", file=sys.stderr)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}", file=sys.stderr)
  except OSError as e:
    print(f"Error: Cannot read '{script_path}': {e}", file=sys.stderr)
  return None


def run_source(source: str, interpreter: Optional[LoxInterpreter] = None,
               reporter: Optional[ErrorReporter] = None, debug: bool = False) -> int:
  """Lex, parse, resolve and run a program; returns the exit status"""
  reporter = reporter or ErrorReporter(source)
  interpreter = interpreter or create_interpreter(reporter, debug)

  parser = create_debug_parser(reporter) if debug else create_parser(reporter)
  statements = parser.parse_string(source)
  if reporter.had_error:
    return EXIT_DATAERR

  resolver = create_debug_resolver(reporter) if debug else create_resolver(reporter)
  locals_table = resolver.resolve(statements)
  if reporter.had_error:
    return EXIT_DATAERR

  interpreter.resolve(locals_table)
  if not interpreter.interpret(statements):
    return EXIT_SOFTWARE
  return EXIT_OK


def run_script_file(script_path: str, debug: bool = False, show_context: bool = False) -> int:
  """Run a Lox script file with full interpretation"""
  source = read_source(script_path)
  if source is None:
    return EXIT_NOINPUT

  reporter = ErrorReporter(source, show_context=show_context)
  interpreter = create_debug_interpreter(reporter) if debug else create_interpreter(reporter)
  return run_source(source, interpreter, reporter, debug)


def parse_file(script_path: str, debug: bool = False, show_context: bool = False) -> int:
  """Parse a Lox script file and show the syntax tree"""
  source = read_source(script_path)
  if source is None:
    return EXIT_NOINPUT

  reporter = ErrorReporter(source, show_context=show_context)
  parser = create_debug_parser(reporter) if debug else create_parser(reporter)

  print(f"Parsing {script_path}...")
  statements = parser.parse_string(source)

  print(f"\nParsed {len(statements)} top-level statements:")
  print("=" * 50)
  for i, stmt in enumerate(statements, 1):
    print(f"\nStatement {i}:")
    print(pretty_print_ast(stmt), end='')

  return EXIT_DATAERR if reporter.had_error else EXIT_OK


def format_resolution_table(locals_table: Dict[Expr, int]) -> List[str]:
  """One line per resolved reference, in source order"""
  rows = []
  for expr, hops in locals_table.items():
    token = getattr(expr, 'name', None) or getattr(expr, 'keyword', None)
    rows.append((token.line, token.column, f"  [line {token.line}] {type(expr).__name__} "
                                          f"'{token.lexeme}' -> {hops} hop(s)"))
  return [text for _, _, text in sorted(rows, key=lambda row: (row[0], row[1]))]


def analyze_file(script_path: str, debug: bool = False, show_context: bool = False) -> int:
  """Parse and resolve a Lox script file and show the resolution table"""
  source = read_source(script_path)
  if source is None:
    return EXIT_NOINPUT

  reporter = ErrorReporter(source, show_context=show_context)
  parser = create_debug_parser(reporter) if debug else create_parser(reporter)
  resolver = create_debug_resolver(reporter) if debug else create_resolver(reporter)

  print(f"Parsing and resolving {script_path}...")
  statements = parser.parse_string(source)
  if reporter.had_error:
    return EXIT_DATAERR
  locals_table = resolver.resolve(statements)

  print(f"\nResolved {len(locals_table)} local references (everything else is global):")
  print("=" * 50)
  for row in format_resolution_table(locals_table):
    print(row)

  return EXIT_DATAERR if reporter.had_error else EXIT_OK


# ============================================================================
# REPL
# ============================================================================

def run_repl_line(code: str, interpreter: LoxInterpreter, reporter: ErrorReporter,
                  debug: bool = False) -> bool:
  """Run one REPL entry; a line not ending in ';' or '}' is a bare expression"""
  reporter.reset(code)
  parser = create_debug_parser(reporter) if debug else create_parser(reporter)
  resolver = create_debug_resolver(reporter) if debug else create_resolver(reporter)

  if code.endswith(";") or code.endswith("}"):
    statements = parser.parse_string(code)
    if reporter.had_error:
      return False
    locals_table = resolver.resolve(statements)
    if reporter.had_error:
      return False
    interpreter.resolve(locals_table)
    return interpreter.interpret(statements)

  expr = parser.parse_expression(code)
  if expr is None or reporter.had_error:
    return False
  resolver.resolve_expr(expr)
  if reporter.had_error:
    return False
  interpreter.resolve(resolver.locals)
  return interpreter.interpret_expression(expr)


def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.pylox_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First run, or the history file is unreadable

  readline.set_history_length(1000)

  completions = sorted(KEYWORDS) + [name for name, _, _ in NATIVES] + [
      # REPL commands
      ":parse", ":env", ":help", ":quit"
  ]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def show_environment(interpreter: LoxInterpreter) -> None:
  """Print user-defined globals"""
  print("Current environment:")
  user_bindings = {name: value for name, value in interpreter.globals.values.items()
                   if not isinstance(value, NativeFunction)}
  if not user_bindings:
    print("  (no user-defined bindings)")
    return
  for name, value in user_bindings.items():
    val_str = display_element(value)
    if len(val_str) > 60:
      val_str = val_str[:57] + "..."
    print(f"  {name} = {val_str}")


def show_repl_help() -> None:
  print("REPL Commands:")
  print("  :parse <code>     - Show the syntax tree")
  print("  :env              - Show global bindings")
  print("  :help             - Show this help")
  print("  :quit or exit     - Exit REPL")
  print()
  print("Input:")
  print("  var x = 5;                - Lines ending in ';' or '}' run as statements")
  print("  x * 2                     - Anything else is evaluated and printed")


def run_interactive_mode(debug: bool = False, show_context: bool = False) -> None:
  """Run Lox in interactive mode; global state persists across lines"""
  print(f"{VERSION} - Interactive Mode")
  print("Type ':quit' to exit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  reporter = ErrorReporter(show_context=show_context)
  interpreter = create_debug_interpreter(reporter) if debug else create_interpreter(reporter)

  while True:
    try:
      code = input("> ").strip()
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    if not code:
      continue
    if code in (":quit", "exit"):
      break

    if code.startswith(":parse "):
      reporter.reset(code[7:])
      parser = create_parser(reporter)
      for stmt in parser.parse_string(code[7:]):
        print(pretty_print_ast(stmt), end='')
      continue

    if code == ":env":
      show_environment(interpreter)
      continue

    if code == ":help":
      show_repl_help()
      continue

    run_repl_line(code, interpreter, reporter, debug)


def main() -> None:
  """Main entry point for pylox"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args()

  sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))

  if args.script:
    if args.parse:
      status = parse_file(args.script, args.debug, args.context)
    elif args.analyze:
      status = analyze_file(args.script, args.debug, args.context)
    else:
      status = run_script_file(args.script, args.debug, args.context)
    sys.exit(status)

  if args.parse or args.analyze:
    arg_parser.error("--parse and --analyze need a script")

  run_interactive_mode(debug=args.debug, show_context=args.context)


if __name__ == "__main__":
  main()
