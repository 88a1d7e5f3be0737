"""
Lox Standard Library
Native functions installed in the global frame before a program runs
"""

from typing import Any, List
import re
import time

from ast_nodes import Token
from environment import Environment
from error_handling import LoxRuntimeError
from runtime import NativeFunction
from utilities import is_number, stringify


# ============================================================================
# TIME
# ============================================================================

def lox_clock(interpreter, arguments: List[Any], paren: Token) -> float:
  """Seconds since the epoch, with sub-second precision"""
  return time.time()


# ============================================================================
# CONSOLE I/O
# ============================================================================

def lox_input(interpreter, arguments: List[Any], paren: Token) -> str:
  """Print the prompt, then read one line without its newline ("" at end of input)"""
  try:
    return input(stringify(arguments[0]))
  except EOFError:
    return ""


def lox_print(interpreter, arguments: List[Any], paren: Token) -> None:
  """Print a value followed by a newline"""
  print(stringify(arguments[0]))
  return None


# ============================================================================
# CONVERSION
# ============================================================================

# Decimal text with optional sign and exponent, or Infinity/NaN; no '_' separators
NUMBER_TEXT = re.compile(
    r"\s*[+-]?(?:Infinity|NaN|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)\s*")

def lox_num(interpreter, arguments: List[Any], paren: Token) -> float:
  """Convert a string to a number; numbers pass through unchanged"""
  value = arguments[0]
  if is_number(value):
    return value
  if not isinstance(value, str):
    raise LoxRuntimeError(paren, f"Invalid input type: '{stringify(value)}'")
  if NUMBER_TEXT.fullmatch(value) is None:
    raise LoxRuntimeError(paren, f"Cannot convert input to number: '{value}'")
  return float(value)


# ============================================================================
# REGISTRATION
# ============================================================================

NATIVES = [
    ("clock", 0, lox_clock),
    ("input", 1, lox_input),
    ("print", 1, lox_print),
    ("num", 1, lox_num),
]


def install_natives(globals_env: Environment) -> Environment:
  """Define every native function in the given (global) frame"""
  for name, arity, impl in NATIVES:
    globals_env.define(name, NativeFunction(name, arity, impl))
  return globals_env
