"""
Utilities module for the Lox interpreter
Value classification, equality, number formatting and the operand checks
shared by the interpreter and the runtime containers
"""

from typing import Any, Optional, Tuple
import math

from ast_nodes import Token
from error_handling import LoxRuntimeError


# ==================== VALUE CLASSIFICATION ====================

def is_number(value: Any) -> bool:
  """
  Check if value is a Lox number

  bool is a subclass of int in Python, and Lox numbers are always float,
  so a plain isinstance check against float is exact.
  """
  return isinstance(value, float)


def type_category(value: Any) -> str:
  """
  Coarse runtime category used by equality and map keys

  Returns:
    One of "nil", "boolean", "number", "string", "object"
  """
  if value is None:
    return "nil"
  if isinstance(value, bool):
    return "boolean"
  if isinstance(value, float):
    return "number"
  if isinstance(value, str):
    return "string"
  return "object"


def is_truthy(value: Any) -> bool:
  """nil, false, 0 and the empty string are falsy; everything else is truthy"""
  if value is None:
    return False
  if isinstance(value, bool):
    return value
  if isinstance(value, float):
    return value != 0
  if isinstance(value, str):
    return value != ""
  return True


def values_equal(left: Any, right: Any) -> bool:
  """Value equality for nil/bool/number/string, identity for everything else"""
  left_kind, right_kind = type_category(left), type_category(right)
  if left_kind != right_kind:
    return False
  if left_kind == "object":
    return left is right
  return left == right


def map_key(value: Any) -> Tuple[str, Any]:
  """
  Hashable key for a Lox value

  Tags keep true and 1 apart (they collide as Python dict keys), and
  objects are keyed by identity.
  """
  category = type_category(value)
  if category == "object":
    return (category, id(value))
  return (category, value)


# ==================== FORMATTING ====================

def canonicalize_number(value: float) -> str:
  """
  Format a number the way Lox prints it

  Examples:
    canonicalize_number(3.0) -> "3"
    canonicalize_number(2.5) -> "2.5"
    canonicalize_number(float("inf")) -> "Infinity"
  """
  if math.isnan(value):
    return "NaN"
  if math.isinf(value):
    return "Infinity" if value > 0 else "-Infinity"
  text = repr(value)
  if text.endswith(".0"):
    text = text[:-2]
  return text


def stringify(value: Any) -> str:
  """User-visible text of a runtime value"""
  if value is None:
    return "nil"
  if isinstance(value, bool):
    return "true" if value else "false"
  if isinstance(value, float):
    return canonicalize_number(value)
  return str(value)


def display_element(value: Any) -> str:
  """Like stringify, but strings are single-quoted (container and REPL display)"""
  if isinstance(value, str):
    return f"'{value}'"
  return stringify(value)


# ==================== OPERAND CHECKS ====================

def check_number_operand(operator: Token, operand: Any) -> None:
  if not is_number(operand):
    raise LoxRuntimeError(operator, "Operand must be a number.")


def check_number_operands(operator: Token, left: Any, right: Any) -> None:
  if not (is_number(left) and is_number(right)):
    raise LoxRuntimeError(operator, "Operands must be numbers.")


def check_divisor(operator: Token, divisor: float) -> None:
  if divisor == 0:
    raise LoxRuntimeError(operator, "Division by 0 not allowed.")


INT32_MIN = -2 ** 31
INT32_MAX = 2 ** 31 - 1


def to_int32(value: float) -> int:
  """Truncate toward zero and saturate at the signed 32-bit limits (NaN is 0)"""
  if math.isnan(value):
    return 0
  if value >= INT32_MAX:
    return INT32_MAX
  if value <= INT32_MIN:
    return INT32_MIN
  return int(value)


def wrap_int32(value: int) -> int:
  """Keep the low 32 bits of an integer result as a signed value"""
  result = value & 0xFFFFFFFF
  return result - 0x100000000 if result >= 0x80000000 else result


# ==================== INDEXING ====================

def normalize_index(value: int, length: int) -> int:
  """Negative indices wrap modulo length; indices beyond length clamp to it"""
  if value < 0:
    return value % length if length else 0
  return min(value, length)


def string_index(bracket: Token, text: str, start: Any, end: Optional[Any] = None,
                 has_end: bool = False) -> str:
  """
  Index or slice a string

  Args:
    bracket: '[' token for error lines
    text: String being indexed
    start: Start index (a Lox number)
    end: Slice end, only meaningful when has_end
    has_end: Whether the expression was a slice

  Returns:
    One-character string, or the substring for a slice
  """
  length = len(text)
  first = normalize_index(_integer_index(bracket, start), length)

  if has_end:
    last = normalize_index(_integer_index(bracket, end), length)
    if first > last:
      raise LoxRuntimeError(bracket, "Start index cannot be greater than end index.")
    return text[first:last]

  if first >= length:
    raise LoxRuntimeError(bracket, "String index out of range.")
  return text[first]


def _integer_index(bracket: Token, value: Any) -> int:
  if not is_number(value) or math.isnan(value) or math.isinf(value):
    raise LoxRuntimeError(bracket, "String indices must be integers.")
  return int(value)


def check_index(token: Token, index: Any, length: int, what: str) -> int:
  """Validate a container index; negative indices count from the end"""
  if not is_number(index) or not index.is_integer():
    raise LoxRuntimeError(token, f"{what} indices must be integers.")
  position = int(index)
  if position < 0:
    position += length
  if position < 0 or position >= length:
    raise LoxRuntimeError(token, f"{what} index out of range.")
  return position


# ==================== ERROR BUILDERS ====================

def arity_error(paren: Token, expected: int, received: int) -> LoxRuntimeError:
  """Create an error for a call with the wrong number of arguments"""
  return LoxRuntimeError(
      paren, f"Expected {expected} arguments but received {received} arguments.")


def type_mismatch_error(operator: Token, message: str) -> LoxRuntimeError:
  """Create an operand type error attributed to the operator"""
  return LoxRuntimeError(operator, message)
