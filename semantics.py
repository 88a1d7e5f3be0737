"""
Lox Semantics Analysis - Static Scope Resolution
Walks the tree once, records how many frames out each local reference lives,
and reports scope and context errors before anything runs
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Optional

from ast_nodes import (
    Token, Expr, Stmt,
    Literal, Grouping, Unary, Binary, Ternary, Variable, Assign, Prefix, Postfix,
    Index, Call, Anonymous, Get, Set, This, Super, ListLiteral, MapLiteral,
    Expression, Print, Var, If, While, For, Block, Break, Continue, Function,
    Return, Class
)
from error_handling import ErrorReporter


# ============================================================================
# DATA STRUCTURES
# ============================================================================

class FunctionType(Enum):
  NONE = auto()
  FUNCTION = auto()
  METHOD = auto()
  STATIC_METHOD = auto()
  INITIALIZER = auto()


class ClassType(Enum):
  NONE = auto()
  CLASS = auto()
  SUBCLASS = auto()


@dataclass
class ScopeEntry:
  """What the resolver knows about one name in one local scope"""
  defined: bool
  used: bool
  kind: str
  token: Optional[Token] = None


# ============================================================================
# RESOLVER
# ============================================================================

class LoxResolver:
  """Static pass producing the node -> hop-count table.

  Errors are reported, never raised, so one pass surfaces all of them.
  Top-level names are not tracked: anything not found in a local scope is
  looked up in the global frame at run time.
  """

  def __init__(self, reporter: Optional[ErrorReporter] = None, debug: bool = False):
    self.reporter = reporter or ErrorReporter(echo=False)
    self.debug = debug
    self.scopes: List[Dict[str, ScopeEntry]] = []
    self.locals: Dict[Expr, int] = {}
    self.current_function = FunctionType.NONE
    self.current_class = ClassType.NONE
    self.loop_depth = 0

    self.stmt_handlers = {
        Block: self._block,
        Var: self._var,
        Function: self._function_declaration,
        Class: self._class,
        Expression: lambda stmt: self.resolve_expr(stmt.expression),
        Print: lambda stmt: self.resolve_expr(stmt.expression),
        If: self._if,
        While: self._while,
        For: self._for,
        Break: self._loop_jump,
        Continue: self._loop_jump,
        Return: self._return,
    }
    self.expr_handlers = {
        Literal: lambda expr: None,
        Grouping: lambda expr: self.resolve_expr(expr.expression),
        Unary: lambda expr: self.resolve_expr(expr.right),
        Binary: self._binary,
        Ternary: self._ternary,
        Variable: self._variable,
        Assign: self._assign,
        Prefix: lambda expr: self._resolve_local(expr, expr.name),
        Postfix: lambda expr: self._resolve_local(expr, expr.name),
        Index: self._index,
        Call: self._call,
        Anonymous: lambda expr: self._resolve_function(expr.params, expr.body, FunctionType.FUNCTION),
        Get: lambda expr: self.resolve_expr(expr.object),
        Set: self._set,
        This: self._this,
        Super: self._super,
        ListLiteral: lambda expr: self.resolve_all(expr.elements),
        MapLiteral: self._map_literal,
    }

  # ------------------------------------------------------------------
  # Entry points
  # ------------------------------------------------------------------

  def resolve(self, statements: List[Stmt]) -> Dict[Expr, int]:
    """Resolve a program and return the resolution table"""
    for stmt in statements:
      self.resolve_stmt(stmt)
    if self.debug:
      print(f"Resolved {len(self.locals)} local references")
    return self.locals

  def resolve_all(self, nodes: List) -> None:
    for node in nodes:
      if isinstance(node, Stmt):
        self.resolve_stmt(node)
      else:
        self.resolve_expr(node)

  def resolve_stmt(self, stmt: Stmt) -> None:
    self.stmt_handlers[type(stmt)](stmt)

  def resolve_expr(self, expr: Expr) -> None:
    self.expr_handlers[type(expr)](expr)

  # ------------------------------------------------------------------
  # Statements
  # ------------------------------------------------------------------

  def _block(self, stmt: Block) -> None:
    self._begin_scope()
    self.resolve_all(stmt.statements)
    self._end_scope()

  def _var(self, stmt: Var) -> None:
    self._declare(stmt.name, "variable")
    if stmt.initializer is not None:
      self.resolve_expr(stmt.initializer)
    self._define(stmt.name)

  def _function_declaration(self, stmt: Function) -> None:
    # Defined before the body so the function can call itself
    self._declare(stmt.name, "function")
    self._define(stmt.name)
    self._resolve_function(stmt.params, stmt.body, FunctionType.FUNCTION)

  def _class(self, stmt: Class) -> None:
    enclosing_class = self.current_class
    self.current_class = ClassType.CLASS

    self._declare(stmt.name, "class")
    self._define(stmt.name)

    for ancestor in stmt.superclasses:
      if ancestor.name.lexeme == stmt.name.lexeme:
        self._error(ancestor.name, "A class can't inherit from itself.")
      self.resolve_expr(ancestor)

    if stmt.superclasses:
      self.current_class = ClassType.SUBCLASS
      self._begin_scope()
      self.scopes[-1]["super"] = ScopeEntry(True, True, "super")

    self._begin_scope()
    self.scopes[-1]["this"] = ScopeEntry(True, True, "this")

    for method in stmt.methods:
      function_type = FunctionType.STATIC_METHOD if method.is_static else FunctionType.METHOD
      if method.name.lexeme == "init":
        if method.is_static:
          self._error(method.name, "Can't declare 'init' as a static method.")
        elif method.is_getter:
          self._error(method.name, "Can't declare 'init' as a getter.")
        else:
          function_type = FunctionType.INITIALIZER
      self._resolve_function(method.params, method.body, function_type)

    self._end_scope()
    if stmt.superclasses:
      self._end_scope()

    self.current_class = enclosing_class

  def _if(self, stmt: If) -> None:
    self.resolve_expr(stmt.condition)
    self.resolve_stmt(stmt.then_branch)
    if stmt.else_branch is not None:
      self.resolve_stmt(stmt.else_branch)

  def _while(self, stmt: While) -> None:
    self.resolve_expr(stmt.condition)
    self.loop_depth += 1
    self.resolve_stmt(stmt.body)
    self.loop_depth -= 1

  def _for(self, stmt: For) -> None:
    # The initializer lives in its own frame, matching the interpreter
    self._begin_scope()
    if stmt.initializer is not None:
      self.resolve_stmt(stmt.initializer)
    if stmt.condition is not None:
      self.resolve_expr(stmt.condition)
    if stmt.update is not None:
      self.resolve_expr(stmt.update)
    self.loop_depth += 1
    self.resolve_stmt(stmt.body)
    self.loop_depth -= 1
    self._end_scope()

  def _loop_jump(self, stmt) -> None:
    if self.loop_depth == 0:
      self._error(stmt.keyword, f"Cannot '{stmt.keyword.lexeme}' outside of loop.")

  def _return(self, stmt: Return) -> None:
    if self.current_function == FunctionType.NONE:
      self._error(stmt.keyword, "Cannot return from top-level code.")
    if stmt.value is not None:
      if self.current_function == FunctionType.INITIALIZER:
        self._error(stmt.keyword, "Cannot return a value from an initializer.")
      self.resolve_expr(stmt.value)

  # ------------------------------------------------------------------
  # Expressions
  # ------------------------------------------------------------------

  def _binary(self, expr: Binary) -> None:
    self.resolve_expr(expr.left)
    self.resolve_expr(expr.right)

  def _ternary(self, expr: Ternary) -> None:
    self.resolve_expr(expr.condition)
    self.resolve_expr(expr.then_branch)
    self.resolve_expr(expr.else_branch)

  def _variable(self, expr: Variable) -> None:
    if self.scopes:
      entry = self.scopes[-1].get(expr.name.lexeme)
      if entry is not None and not entry.defined:
        self._error(expr.name, "Cannot read local variable in its own initializer.")
    self._resolve_local(expr, expr.name)

  def _assign(self, expr: Assign) -> None:
    self.resolve_expr(expr.value)
    self._resolve_local(expr, expr.name, read=False)

  def _index(self, expr: Index) -> None:
    self.resolve_expr(expr.object)
    self.resolve_expr(expr.start)
    if expr.end is not None:
      self.resolve_expr(expr.end)

  def _call(self, expr: Call) -> None:
    self.resolve_expr(expr.callee)
    self.resolve_all(expr.arguments)

  def _set(self, expr: Set) -> None:
    self.resolve_expr(expr.value)
    self.resolve_expr(expr.object)

  def _this(self, expr: This) -> None:
    if self.current_class == ClassType.NONE:
      self._error(expr.keyword, "Cannot use 'this' outside of a class.")
      return
    self._resolve_local(expr, expr.keyword)

  def _super(self, expr: Super) -> None:
    if self.current_class == ClassType.NONE:
      self._error(expr.keyword, "Cannot use 'super' outside of a class.")
      return
    if self.current_class != ClassType.SUBCLASS:
      self._error(expr.keyword, "Cannot use 'super' in a class with no superclass.")
      return
    self._resolve_local(expr, expr.keyword)

  def _map_literal(self, expr: MapLiteral) -> None:
    for key, value in zip(expr.keys, expr.values):
      self.resolve_expr(key)
      self.resolve_expr(value)

  # ------------------------------------------------------------------
  # Scope helpers
  # ------------------------------------------------------------------

  def _resolve_function(self, params: List[Token], body: List[Stmt],
                        function_type: FunctionType) -> None:
    enclosing_function = self.current_function
    enclosing_loops = self.loop_depth
    self.current_function = function_type
    # A loop around a function body does not make 'break' legal inside it
    self.loop_depth = 0

    self._begin_scope()
    for param in params:
      self._declare(param, "parameter")
      self._define(param)
    self.resolve_all(body)
    self._end_scope()

    self.current_function = enclosing_function
    self.loop_depth = enclosing_loops

  def _begin_scope(self) -> None:
    self.scopes.append({})

  def _end_scope(self) -> None:
    scope = self.scopes.pop()
    for entry in scope.values():
      if entry.kind == "variable" and not entry.used and entry.token is not None:
        self.reporter.warning(entry.token, "Unused variable.", "resolve")

  def _declare(self, name: Token, kind: str) -> None:
    if not self.scopes:
      return
    scope = self.scopes[-1]
    if name.lexeme in scope:
      self._error(name, "Already declared a variable with this name in this scope.")
      return
    scope[name.lexeme] = ScopeEntry(False, False, kind, name)

  def _define(self, name: Token) -> None:
    if not self.scopes:
      return
    self.scopes[-1][name.lexeme].defined = True

  def _resolve_local(self, expr: Expr, name: Token, read: bool = True) -> None:
    for i in range(len(self.scopes) - 1, -1, -1):
      entry = self.scopes[i].get(name.lexeme)
      if entry is not None:
        hops = len(self.scopes) - 1 - i
        self.locals[expr] = hops
        if read:
          entry.used = True
        if self.debug:
          print(f"  {name.lexeme!r} on line {name.line} resolved {hops} frame(s) out")
        return

  def _error(self, token: Token, message: str) -> None:
    self.reporter.token_error(token, message, "resolve")


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_resolver(reporter: Optional[ErrorReporter] = None, debug: bool = False) -> LoxResolver:
  """Create a resolver reporting through the given reporter"""
  return LoxResolver(reporter, debug)


def create_debug_resolver(reporter: Optional[ErrorReporter] = None) -> LoxResolver:
  """Create a resolver that traces every resolved reference"""
  return LoxResolver(reporter, debug=True)
