"""
Lox Runtime Object Model
Callables, classes, instances, the tuple/map containers, and the Outcome
record statement executors hand back for break/continue/return
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Tuple

from ast_nodes import Token, TokenType, synthetic_token
from environment import Environment
from error_handling import LoxRuntimeError
from utilities import check_index, display_element, map_key


# ============================================================================
# CONTROL FLOW
# ============================================================================

class OutcomeKind(Enum):
  NORMAL = auto()
  BREAK = auto()
  CONTINUE = auto()
  RETURN = auto()


@dataclass(frozen=True)
class Outcome:
  """How a statement finished; 'token' is the break/continue/return keyword"""
  kind: OutcomeKind
  value: Any = None
  token: Optional[Token] = None

  @property
  def is_normal(self) -> bool:
    return self.kind is OutcomeKind.NORMAL


NORMAL = Outcome(OutcomeKind.NORMAL)


def escaped_signal_error(outcome: Outcome) -> LoxRuntimeError:
  """Error for a break/continue/return that left the construct it belongs to"""
  keyword = outcome.kind.name.lower()
  if outcome.kind is OutcomeKind.RETURN:
    return LoxRuntimeError(outcome.token, f"{keyword} statement outside of function.")
  return LoxRuntimeError(outcome.token, f"{keyword} statement outside of loop.")


# ============================================================================
# CALLABLES
# ============================================================================

class LoxCallable:
  """Anything the call operator accepts"""

  def arity(self) -> int:
    raise NotImplementedError

  def call(self, interpreter, arguments: List[Any], paren: Token) -> Any:
    raise NotImplementedError


class NativeFunction(LoxCallable):
  """Host-implemented function; impl receives (interpreter, arguments, paren)"""

  def __init__(self, name: str, arity: int, impl: Callable):
    self.name = name
    self._arity = arity
    self.impl = impl

  def arity(self) -> int:
    return self._arity

  def call(self, interpreter, arguments: List[Any], paren: Token) -> Any:
    return self.impl(interpreter, arguments, paren)

  def __str__(self) -> str:
    return f"<native fn: {self.name}>"


THIS_TOKEN = synthetic_token(TokenType.THIS, "this")


class LoxFunction(LoxCallable):
  """User function or method closed over the frame it was declared in"""

  def __init__(self, name: str, params: List[Token], body: List, closure: Environment,
               is_initializer: bool = False, is_static: bool = False,
               is_getter: bool = False):
    self.name = name
    self.params = params
    self.body = body
    self.closure = closure
    self.is_initializer = is_initializer
    self.is_static = is_static
    self.is_getter = is_getter

  def bind(self, receiver: Any) -> "LoxFunction":
    """Copy of this function whose closure binds 'this' to the receiver"""
    env = Environment(self.closure)
    env.define("this", receiver)
    return LoxFunction(self.name, self.params, self.body, env,
                       self.is_initializer, self.is_static, self.is_getter)

  def arity(self) -> int:
    return len(self.params)

  def call(self, interpreter, arguments: List[Any], paren: Token) -> Any:
    env = Environment(self.closure)
    for param, argument in zip(self.params, arguments):
      env.define(param.lexeme, argument)

    outcome = interpreter.execute_block(self.body, env)
    if outcome.kind in (OutcomeKind.BREAK, OutcomeKind.CONTINUE):
      raise escaped_signal_error(outcome)

    if self.is_initializer:
      return self.closure.get_at(0, THIS_TOKEN)
    if outcome.kind is OutcomeKind.RETURN:
      return outcome.value
    return None

  def __str__(self) -> str:
    return f"<fn: {self.name}>"


# ============================================================================
# CLASSES AND INSTANCES
# ============================================================================

class LoxClass(LoxCallable):
  """A class is callable (construction) and carries its own static fields"""

  def __init__(self, name: str, ancestors: List["LoxClass"], methods: Dict[str, LoxFunction]):
    self.name = name
    self.ancestors = ancestors
    self.methods = methods
    self.fields: Dict[str, Any] = {}

  def find_method(self, name: str) -> Optional[LoxFunction]:
    """Own methods first, then each ancestor depth-first, left to right"""
    if name in self.methods:
      return self.methods[name]
    for ancestor in self.ancestors:
      method = ancestor.find_method(name)
      if method is not None:
        return method
    return None

  def find_member(self, name: str) -> Optional[Tuple[Any, bool]]:
    """(value, is_method) for the first field or method found, else None"""
    if name in self.fields:
      return self.fields[name], False
    if name in self.methods:
      return self.methods[name], True
    for ancestor in self.ancestors:
      member = ancestor.find_member(name)
      if member is not None:
        return member
    return None

  def arity(self) -> int:
    initializer = self.find_method("init")
    return initializer.arity() if initializer is not None else 0

  def call(self, interpreter, arguments: List[Any], paren: Token) -> Any:
    instance = LoxInstance(self)
    initializer = self.find_method("init")
    if initializer is not None:
      initializer.bind(instance).call(interpreter, arguments, paren)
    return instance

  def get(self, name: Token, interpreter) -> Any:
    member = self.find_member(name.lexeme)
    if member is None:
      raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    value, is_method = member
    if not is_method:
      return value
    if not value.is_static:
      raise LoxRuntimeError(name, f"Cannot access non-static method '{name.lexeme}' on class '{self.name}'.")
    return _resolve_method(value.bind(self), interpreter, name)

  def set(self, name: Token, value: Any) -> Any:
    self.fields[name.lexeme] = value
    return value

  def __str__(self) -> str:
    return f"<class: {self.name}>"


class LoxInstance:
  def __init__(self, klass: LoxClass):
    self.klass = klass
    self.fields: Dict[str, Any] = {}

  def get(self, name: Token, interpreter) -> Any:
    if name.lexeme in self.fields:
      return self.fields[name.lexeme]

    member = self.klass.find_member(name.lexeme)
    if member is None:
      raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    value, is_method = member
    if not is_method:
      return value
    receiver = self.klass if value.is_static else self
    return _resolve_method(value.bind(receiver), interpreter, name)

  def set(self, name: Token, value: Any) -> Any:
    self.fields[name.lexeme] = value
    return value

  def __str__(self) -> str:
    return f"<{self.klass.name} instance>"


def _resolve_method(method: LoxFunction, interpreter, name: Token) -> Any:
  """Getters run on access; other methods are returned bound"""
  if method.is_getter:
    return method.call(interpreter, [], name)
  return method


# ============================================================================
# CONTAINERS
# ============================================================================

def _native_method(name: str, arity: int, impl: Callable) -> NativeFunction:
  """Wrap a container method so it is called with the plain argument list"""
  return NativeFunction(name, arity, lambda interpreter, args, paren: impl(paren, *args))


class LoxTuple:
  """Immutable sequence produced by [a, b, c]"""

  def __init__(self, elements=()):
    self.elements = tuple(elements)

  def get(self, name: Token, interpreter=None) -> NativeFunction:
    methods = {
        "size": (0, lambda paren: float(len(self.elements))),
        "isEmpty": (0, lambda paren: len(self.elements) == 0),
        "get": (1, self._get_at),
        "concat": (1, self._concat),
        "append": (1, lambda paren, value: LoxTuple(self.elements + (value,))),
    }
    if name.lexeme not in methods:
      raise LoxRuntimeError(name, f"Undefined tuple method '{name.lexeme}'.")
    arity, impl = methods[name.lexeme]
    return _native_method(name.lexeme, arity, impl)

  def _get_at(self, paren: Token, index: Any) -> Any:
    position = check_index(paren, index, len(self.elements), "Tuple")
    return self.elements[position]

  def _concat(self, paren: Token, other: Any) -> "LoxTuple":
    if not isinstance(other, LoxTuple):
      raise LoxRuntimeError(paren, "Can only concat a tuple with another tuple.")
    return LoxTuple(self.elements + other.elements)

  def __str__(self) -> str:
    if not self.elements:
      return "()"
    return "( " + ", ".join(display_element(e) for e in self.elements) + " )"


class LoxMap:
  """Insertion-ordered map; true and 1 are different keys"""

  def __init__(self):
    self.entries: Dict[Tuple[str, Any], Tuple[Any, Any]] = {}

  def get(self, name: Token, interpreter=None) -> NativeFunction:
    methods = {
        "put": (2, lambda paren, key, value: self.put(key, value)),
        "get": (1, lambda paren, key: self.lookup(key)),
        "remove": (1, lambda paren, key: self.remove(key)),
        "containsKey": (1, lambda paren, key: map_key(key) in self.entries),
        "containsValue": (1, lambda paren, value: self.contains_value(value)),
        "clear": (0, lambda paren: self.entries.clear()),
        "size": (0, lambda paren: float(len(self.entries))),
        "isEmpty": (0, lambda paren: len(self.entries) == 0),
    }
    if name.lexeme not in methods:
      raise LoxRuntimeError(name, f"Undefined map method '{name.lexeme}'.")
    arity, impl = methods[name.lexeme]
    return _native_method(name.lexeme, arity, impl)

  def put(self, key: Any, value: Any) -> Any:
    self.entries[map_key(key)] = (key, value)
    return value

  def lookup(self, key: Any) -> Any:
    entry = self.entries.get(map_key(key))
    return entry[1] if entry is not None else None

  def remove(self, key: Any) -> None:
    self.entries.pop(map_key(key), None)

  def contains_value(self, value: Any) -> bool:
    target = map_key(value)
    return any(map_key(v) == target for _, v in self.entries.values())

  def __str__(self) -> str:
    if not self.entries:
      return "{}"
    pairs = (f"{display_element(k)}: {display_element(v)}" for k, v in self.entries.values())
    return "{ " + ", ".join(pairs) + " }"
