"""
Lox Runtime Environments
Scope frames chained through 'enclosing'; the resolver's hop counts index
straight into this chain
"""

from typing import Any, Dict, Optional

from ast_nodes import Token
from error_handling import LoxRuntimeError


class _Uninitialized:
  """Marker for a declared name that has not been assigned yet"""

  def __repr__(self) -> str:
    return "<uninitialized>"


# 'var x;' binds this, while 'var x = nil;' binds None
UNINITIALIZED = _Uninitialized()


class Environment:
  """One lexical scope frame"""

  def __init__(self, enclosing: Optional["Environment"] = None):
    self.enclosing = enclosing
    self.values: Dict[str, Any] = {}

  def define(self, name: str, value: Any = UNINITIALIZED) -> None:
    """Bind a name in this frame, replacing any earlier binding"""
    self.values[name] = value

  def get(self, name: Token) -> Any:
    env = self
    while env is not None:
      if name.lexeme in env.values:
        return _checked(env.values[name.lexeme], name)
      env = env.enclosing
    raise LoxRuntimeError(name, f"Undefined variable: {name.lexeme}.")

  def assign(self, name: Token, value: Any) -> None:
    env = self
    while env is not None:
      if name.lexeme in env.values:
        env.values[name.lexeme] = value
        return
      env = env.enclosing
    raise LoxRuntimeError(name, f"Undefined variable: {name.lexeme}.")

  def ancestor(self, distance: int) -> "Environment":
    """Walk exactly 'distance' frames outward"""
    env = self
    for _ in range(distance):
      env = env.enclosing
    return env

  def get_at(self, distance: int, name: Token) -> Any:
    values = self.ancestor(distance).values
    if name.lexeme not in values:
      raise LoxRuntimeError(name, f"Undefined variable: {name.lexeme}.")
    return _checked(values[name.lexeme], name)

  def assign_at(self, distance: int, name: Token, value: Any) -> None:
    self.ancestor(distance).values[name.lexeme] = value

  def __repr__(self) -> str:
    depth = 0
    env = self.enclosing
    while env is not None:
      depth += 1
      env = env.enclosing
    return f"<Environment depth={depth} names={sorted(self.values)}>"


def _checked(value: Any, name: Token) -> Any:
  if value is UNINITIALIZED:
    raise LoxRuntimeError(name, f"Uninitialized variable: {name.lexeme}.")
  return value
