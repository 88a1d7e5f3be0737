"""
Lox Interpreter - Tree Walking Evaluator
Statements return an Outcome (normal, break, continue, return) that loops
and calls consume; runtime errors are LoxRuntimeError and end the program
"""

from typing import Any, Dict, List, Optional
import math

from ast_nodes import (
    TokenType, Token, Expr, Stmt,
    Literal, Grouping, Unary, Binary, Ternary, Variable, Assign, Prefix, Postfix,
    Index, Call, Anonymous, Get, Set, This, Super, ListLiteral, MapLiteral,
    Expression, Print, Var, If, While, For, Block, Break, Continue, Function,
    Return, Class
)
from environment import Environment, UNINITIALIZED
from error_handling import ErrorReporter, LoxRuntimeError
from runtime import (
    Outcome, OutcomeKind, NORMAL, THIS_TOKEN, escaped_signal_error,
    LoxCallable, LoxFunction, LoxClass, LoxInstance, LoxTuple, LoxMap
)
from stdlib import install_natives
from utilities import (
    is_number, is_truthy, type_category, values_equal, canonicalize_number,
    stringify, display_element, check_number_operand, check_number_operands,
    check_divisor, to_int32, wrap_int32, string_index, arity_error, type_mismatch_error
)


# Values that '!', '?:' and '==' accept
TRUTHY_TYPES = (type(None), bool, float, str, LoxFunction, LoxClass, LoxInstance)


# ============================================================================
# OPERATOR HELPERS
# ============================================================================

def check_truthy_operand(operator: Token, operand: Any) -> None:
  if not isinstance(operand, TRUTHY_TYPES):
    raise type_mismatch_error(operator, "Operand must be a truthy type.")


def check_truthy_operands(operator: Token, left: Any, right: Any) -> None:
  """Equality needs operands of the same kind, unless one side is nil"""
  left_ok, right_ok = isinstance(left, TRUTHY_TYPES), isinstance(right, TRUTHY_TYPES)
  if (left is None and right_ok) or (right is None and left_ok):
    return
  category = type_category(left)
  if category != "object" and category == type_category(right):
    return
  for kind in (LoxInstance, LoxFunction, LoxClass):
    if isinstance(left, kind) and isinstance(right, kind):
      return
  raise type_mismatch_error(operator, "Operands must be matching truthy types.")


def add_values(operator: Token, left: Any, right: Any) -> Any:
  if is_number(left) and is_number(right):
    return left + right
  if isinstance(left, str) and isinstance(right, str):
    return left + right
  if isinstance(left, str) and is_number(right):
    return left + canonicalize_number(right)
  if is_number(left) and isinstance(right, str):
    return canonicalize_number(left) + right
  raise type_mismatch_error(
      operator, f"{operator.lexeme} operator only supports number and/or string types.")


def _is_odd_integer(value: float) -> bool:
  return value.is_integer() and math.fmod(value, 2.0) != 0


def power(left: float, right: float) -> float:
  """IEEE pow: a zero base with a negative exponent is a signed infinity"""
  negative_result = left < 0 or (left == 0 and math.copysign(1.0, left) < 0)
  signed_inf = -math.inf if negative_result and _is_odd_integer(right) else math.inf
  if left == 0 and right < 0:
    return signed_inf
  try:
    return math.pow(left, right)
  except ValueError:
    return math.nan
  except OverflowError:
    return signed_inf


def remainder(left: float, right: float) -> float:
  """C fmod; an infinite dividend has no remainder"""
  try:
    return math.fmod(left, right)
  except ValueError:
    return math.nan


def shift_count(value: float) -> int:
  """Only the low five bits of the count are used"""
  return to_int32(value) & 31


ARITHMETIC = {
    TokenType.MINUS: lambda op, l, r: l - r,
    TokenType.STAR: lambda op, l, r: l * r,
    TokenType.STAR_STAR: lambda op, l, r: power(l, r),
    TokenType.GREATER: lambda op, l, r: l > r,
    TokenType.GREATER_EQUAL: lambda op, l, r: l >= r,
    TokenType.LESS: lambda op, l, r: l < r,
    TokenType.LESS_EQUAL: lambda op, l, r: l <= r,
    TokenType.BITWISE_AND: lambda op, l, r: float(to_int32(l) & to_int32(r)),
    TokenType.BITWISE_OR: lambda op, l, r: float(to_int32(l) | to_int32(r)),
    TokenType.BITWISE_XOR: lambda op, l, r: float(to_int32(l) ^ to_int32(r)),
    TokenType.BITSHIFT_LEFT: lambda op, l, r: float(wrap_int32(to_int32(l) << shift_count(r))),
    TokenType.BITSHIFT_RIGHT: lambda op, l, r: float(to_int32(l) >> shift_count(r)),
}


# ============================================================================
# INTERPRETER
# ============================================================================

class LoxInterpreter:
  """Evaluates resolved syntax trees against a chain of environments"""

  def __init__(self, reporter: Optional[ErrorReporter] = None, debug: bool = False):
    self.reporter = reporter or ErrorReporter()
    self.debug = debug
    self.globals = install_natives(Environment())
    self.environment = self.globals
    self.locals: Dict[Expr, int] = {}

    self.stmt_handlers = {
        Expression: self._expression_stmt,
        Print: self._print_stmt,
        Var: self._var_stmt,
        Block: lambda stmt: self.execute_block(stmt.statements, Environment(self.environment)),
        If: self._if_stmt,
        While: self._while_stmt,
        For: self._for_stmt,
        Break: lambda stmt: Outcome(OutcomeKind.BREAK, None, stmt.keyword),
        Continue: lambda stmt: Outcome(OutcomeKind.CONTINUE, None, stmt.keyword),
        Return: self._return_stmt,
        Function: self._function_stmt,
        Class: self._class_stmt,
    }
    self.expr_handlers = {
        Literal: lambda expr: expr.value,
        Grouping: lambda expr: self.evaluate(expr.expression),
        Unary: self._unary,
        Binary: self._binary,
        Ternary: self._ternary,
        Variable: lambda expr: self._look_up_variable(expr.name, expr),
        Assign: self._assign,
        Prefix: self._prefix,
        Postfix: self._postfix,
        Index: self._index,
        Call: self._call,
        Anonymous: lambda expr: LoxFunction("anonymous", expr.params, expr.body, self.environment),
        Get: self._get,
        Set: self._set,
        This: lambda expr: self._look_up_variable(expr.keyword, expr),
        Super: self._super,
        ListLiteral: lambda expr: LoxTuple(self.evaluate(e) for e in expr.elements),
        MapLiteral: self._map_literal,
    }

  # ------------------------------------------------------------------
  # Entry points
  # ------------------------------------------------------------------

  def resolve(self, locals_table: Dict[Expr, int]) -> None:
    """Merge a resolver's table (REPL lines accumulate)"""
    self.locals.update(locals_table)

  def interpret(self, statements: List[Stmt]) -> bool:
    """Run a program; the first runtime error is reported and stops it"""
    try:
      for stmt in statements:
        outcome = self.execute(stmt)
        if not outcome.is_normal:
          raise escaped_signal_error(outcome)
    except LoxRuntimeError as error:
      self.reporter.runtime_error(error)
      return False
    except RecursionError:
      self.reporter.runtime_error(LoxRuntimeError(None, "Stack overflow."))
      return False
    return True

  def interpret_expression(self, expr: Expr) -> bool:
    """Evaluate a bare expression and print it (strings shown quoted)"""
    try:
      print(display_element(self.evaluate(expr)))
    except LoxRuntimeError as error:
      self.reporter.runtime_error(error)
      return False
    except RecursionError:
      self.reporter.runtime_error(LoxRuntimeError(None, "Stack overflow."))
      return False
    return True

  def execute(self, stmt: Stmt) -> Outcome:
    if self.debug:
      print(f"Executing: {type(stmt).__name__}")
    return self.stmt_handlers[type(stmt)](stmt)

  def execute_block(self, statements: List[Stmt], environment: Environment) -> Outcome:
    previous = self.environment
    try:
      self.environment = environment
      for stmt in statements:
        outcome = self.execute(stmt)
        if not outcome.is_normal:
          return outcome
      return NORMAL
    finally:
      self.environment = previous

  def evaluate(self, expr: Expr) -> Any:
    return self.expr_handlers[type(expr)](expr)

  # ------------------------------------------------------------------
  # Statements
  # ------------------------------------------------------------------

  def _expression_stmt(self, stmt: Expression) -> Outcome:
    self.evaluate(stmt.expression)
    return NORMAL

  def _print_stmt(self, stmt: Print) -> Outcome:
    print(stringify(self.evaluate(stmt.expression)))
    return NORMAL

  def _var_stmt(self, stmt: Var) -> Outcome:
    value = UNINITIALIZED
    if stmt.initializer is not None:
      value = self.evaluate(stmt.initializer)
    self.environment.define(stmt.name.lexeme, value)
    return NORMAL

  def _if_stmt(self, stmt: If) -> Outcome:
    if is_truthy(self.evaluate(stmt.condition)):
      return self.execute(stmt.then_branch)
    if stmt.else_branch is not None:
      return self.execute(stmt.else_branch)
    return NORMAL

  def _while_stmt(self, stmt: While) -> Outcome:
    while is_truthy(self.evaluate(stmt.condition)):
      outcome = self.execute(stmt.body)
      if outcome.kind is OutcomeKind.BREAK:
        break
      if outcome.kind is OutcomeKind.RETURN:
        return outcome
    return NORMAL

  def _for_stmt(self, stmt: For) -> Outcome:
    previous = self.environment
    self.environment = Environment(previous)
    try:
      if stmt.initializer is not None:
        self.execute(stmt.initializer)
      while stmt.condition is None or is_truthy(self.evaluate(stmt.condition)):
        outcome = self.execute(stmt.body)
        if outcome.kind is OutcomeKind.BREAK:
          break
        if outcome.kind is OutcomeKind.RETURN:
          return outcome
        # 'continue' lands here too, so the update still runs
        if stmt.update is not None:
          self.evaluate(stmt.update)
      return NORMAL
    finally:
      self.environment = previous

  def _return_stmt(self, stmt: Return) -> Outcome:
    value = None
    if stmt.value is not None:
      value = self.evaluate(stmt.value)
    return Outcome(OutcomeKind.RETURN, value, stmt.keyword)

  def _function_stmt(self, stmt: Function) -> Outcome:
    function = LoxFunction(stmt.name.lexeme, stmt.params, stmt.body, self.environment)
    self.environment.define(stmt.name.lexeme, function)
    return NORMAL

  def _class_stmt(self, stmt: Class) -> Outcome:
    ancestors = []
    for superclass in stmt.superclasses:
      value = self.evaluate(superclass)
      if not isinstance(value, LoxClass):
        raise LoxRuntimeError(superclass.name, "Superclass must be a class.")
      ancestors.append(value)

    self.environment.define(stmt.name.lexeme, None)
    klass = LoxClass(stmt.name.lexeme, ancestors, {})

    method_env = self.environment
    if ancestors:
      # 'super' names the class being defined; lookups start at its ancestors
      method_env = Environment(method_env)
      method_env.define("super", klass)

    for method in stmt.methods:
      name = method.name.lexeme
      is_initializer = name == "init" and not method.is_static and not method.is_getter
      klass.methods[name] = LoxFunction(name, method.params, method.body, method_env,
                                        is_initializer, method.is_static, method.is_getter)

    self.environment.define(stmt.name.lexeme, klass)
    return NORMAL

  # ------------------------------------------------------------------
  # Expressions
  # ------------------------------------------------------------------

  def _unary(self, expr: Unary) -> Any:
    right = self.evaluate(expr.right)
    kind = expr.operator.type

    if kind == TokenType.MINUS:
      check_number_operand(expr.operator, right)
      return -right
    if kind == TokenType.BANG:
      check_truthy_operand(expr.operator, right)
      return not is_truthy(right)
    check_number_operand(expr.operator, right)
    return float(~to_int32(right))

  def _binary(self, expr: Binary) -> Any:
    operator = expr.operator
    kind = operator.type

    if kind == TokenType.AND:
      if not is_truthy(self.evaluate(expr.left)):
        return False
      return is_truthy(self.evaluate(expr.right))
    if kind == TokenType.OR:
      if is_truthy(self.evaluate(expr.left)):
        return True
      return is_truthy(self.evaluate(expr.right))

    left = self.evaluate(expr.left)
    right = self.evaluate(expr.right)

    if kind == TokenType.COMMA:
      return right
    if kind == TokenType.PLUS:
      return add_values(operator, left, right)
    if kind in (TokenType.EQUAL_EQUAL, TokenType.BANG_EQUAL):
      check_truthy_operands(operator, left, right)
      equal = values_equal(left, right)
      return equal if kind == TokenType.EQUAL_EQUAL else not equal

    check_number_operands(operator, left, right)
    if kind == TokenType.SLASH:
      check_divisor(operator, right)
      return left / right
    if kind == TokenType.MODULO:
      check_divisor(operator, right)
      return remainder(left, right)
    return ARITHMETIC[kind](operator, left, right)

  def _ternary(self, expr: Ternary) -> Any:
    condition = self.evaluate(expr.condition)
    check_truthy_operand(expr.operator, condition)
    if is_truthy(condition):
      return self.evaluate(expr.then_branch)
    return self.evaluate(expr.else_branch)

  def _assign(self, expr: Assign) -> Any:
    value = self.evaluate(expr.value)
    self._assign_variable(expr.name, expr, value)
    return value

  def _step(self, operator: Token, name: Token, expr: Expr):
    """Shared part of ++/--: returns (old, new) after storing new"""
    current = self._look_up_variable(name, expr)
    check_number_operand(operator, current)
    updated = current + 1 if operator.type == TokenType.PLUS_PLUS else current - 1
    self._assign_variable(name, expr, updated)
    return current, updated

  def _prefix(self, expr: Prefix) -> Any:
    return self._step(expr.operator, expr.name, expr)[1]

  def _postfix(self, expr: Postfix) -> Any:
    return self._step(expr.operator, expr.name, expr)[0]

  def _index(self, expr: Index) -> Any:
    target = self.evaluate(expr.object)
    start = self.evaluate(expr.start)
    end = self.evaluate(expr.end) if expr.end is not None else None

    if isinstance(target, str):
      return string_index(expr.bracket, target, start, end, expr.end is not None)
    raise LoxRuntimeError(expr.bracket, "Can only index strings.")

  def _call(self, expr: Call) -> Any:
    callee = self.evaluate(expr.callee)
    arguments = [self.evaluate(argument) for argument in expr.arguments]

    if not isinstance(callee, LoxCallable):
      raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")
    if len(arguments) != callee.arity():
      raise arity_error(expr.paren, callee.arity(), len(arguments))
    return callee.call(self, arguments, expr.paren)

  def _get(self, expr: Get) -> Any:
    target = self.evaluate(expr.object)
    if isinstance(target, (LoxInstance, LoxClass, LoxTuple, LoxMap)):
      return target.get(expr.name, self)
    raise LoxRuntimeError(expr.name, "Only instances have properties.")

  def _set(self, expr: Set) -> Any:
    target = self.evaluate(expr.object)
    if not isinstance(target, (LoxInstance, LoxClass)):
      raise LoxRuntimeError(expr.name, "Only instances have fields.")
    value = self.evaluate(expr.value)
    return target.set(expr.name, value)

  def _super(self, expr: Super) -> Any:
    distance = self.locals[expr]
    klass = self.environment.get_at(distance, expr.keyword)
    receiver = self.environment.get_at(distance - 1, THIS_TOKEN)

    method = None
    for ancestor in klass.ancestors:
      method = ancestor.find_method(expr.method.lexeme)
      if method is not None:
        break
    if method is None:
      raise LoxRuntimeError(expr.method, f"Undefined property '{expr.method.lexeme}'.")

    bound = method.bind(receiver)
    if bound.is_getter:
      return bound.call(self, [], expr.method)
    return bound

  def _map_literal(self, expr: MapLiteral) -> LoxMap:
    result = LoxMap()
    for key, value in zip(expr.keys, expr.values):
      result.put(self.evaluate(key), self.evaluate(value))
    return result

  # ------------------------------------------------------------------
  # Variable access
  # ------------------------------------------------------------------

  def _look_up_variable(self, name: Token, expr: Expr) -> Any:
    distance = self.locals.get(expr)
    if distance is not None:
      return self.environment.get_at(distance, name)
    return self.globals.get(name)

  def _assign_variable(self, name: Token, expr: Expr, value: Any) -> None:
    distance = self.locals.get(expr)
    if distance is not None:
      self.environment.assign_at(distance, name, value)
    else:
      self.globals.assign(name, value)


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(reporter: Optional[ErrorReporter] = None, debug: bool = False) -> LoxInterpreter:
  """Create an interpreter with the native functions installed"""
  return LoxInterpreter(reporter, debug)


def create_debug_interpreter(reporter: Optional[ErrorReporter] = None) -> LoxInterpreter:
  """Create an interpreter that traces every executed statement"""
  return LoxInterpreter(reporter, debug=True)
