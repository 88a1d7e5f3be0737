"""
Lox Syntax Tree
Token model plus the closed sets of expression and statement nodes
"""

from typing import Any, List, Optional
from dataclasses import dataclass, fields, is_dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Every kind of token the scanner can produce"""
    # Single-character tokens
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()
    LEFT_BRACK = auto()
    RIGHT_BRACK = auto()
    COMMA = auto()
    DOT = auto()
    MINUS = auto()
    PLUS = auto()
    SEMICOLON = auto()
    SLASH = auto()
    STAR = auto()
    MODULO = auto()
    QUESTION_MARK = auto()
    COLON = auto()
    BITWISE_AND = auto()
    BITWISE_OR = auto()
    BITWISE_NOT = auto()
    BITWISE_XOR = auto()

    # One or two character tokens
    BANG = auto()
    BANG_EQUAL = auto()
    EQUAL = auto()
    EQUAL_EQUAL = auto()
    GREATER = auto()
    GREATER_EQUAL = auto()
    LESS = auto()
    LESS_EQUAL = auto()
    BITSHIFT_LEFT = auto()
    BITSHIFT_RIGHT = auto()
    PLUS_PLUS = auto()
    MINUS_MINUS = auto()
    STAR_STAR = auto()

    # Literals
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()

    # Keywords
    AND = auto()
    BREAK = auto()
    CLASS = auto()
    CONTINUE = auto()
    ELSE = auto()
    EXTENDS = auto()
    FALSE = auto()
    FOR = auto()
    FUN = auto()
    IF = auto()
    NIL = auto()
    OR = auto()
    PRINT = auto()
    RETURN = auto()
    SUPER = auto()
    THIS = auto()
    TRUE = auto()
    VAR = auto()
    WHILE = auto()

    EOF = auto()


KEYWORDS = {
    "and": TokenType.AND,
    "break": TokenType.BREAK,
    "class": TokenType.CLASS,
    "continue": TokenType.CONTINUE,
    "else": TokenType.ELSE,
    "extends": TokenType.EXTENDS,
    "false": TokenType.FALSE,
    "for": TokenType.FOR,
    "fun": TokenType.FUN,
    "if": TokenType.IF,
    "nil": TokenType.NIL,
    "or": TokenType.OR,
    "print": TokenType.PRINT,
    "return": TokenType.RETURN,
    "super": TokenType.SUPER,
    "this": TokenType.THIS,
    "true": TokenType.TRUE,
    "var": TokenType.VAR,
    "while": TokenType.WHILE,
}


@dataclass(frozen=True)
class Token:
    """Lox token with source information"""
    type: TokenType
    lexeme: str
    literal: Any = None
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.literal is not None:
            return f"{self.type.name}({self.lexeme!r}, {self.literal!r})"
        return f"{self.type.name}({self.lexeme!r})"


def synthetic_token(token_type: TokenType, lexeme: str, line: int = 0) -> Token:
    """Build a token that never came from source text (e.g. the implicit 'this')"""
    return Token(token_type, lexeme, None, line)


# ============================================================================
# EXPRESSIONS
# ============================================================================
# eq=False keeps identity hashing: the resolver's side table is keyed by node,
# so two textually identical references must stay distinct entries.

class Expr:
    """Base class of all expression nodes"""
    pass


@dataclass(frozen=True, eq=False)
class Literal(Expr):
    value: Any


@dataclass(frozen=True, eq=False)
class Grouping(Expr):
    expression: Expr


@dataclass(frozen=True, eq=False)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Binary(Expr):
    """Arithmetic, comparison, bitwise, comma and short-circuit and/or"""
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Ternary(Expr):
    condition: Expr
    operator: Token
    then_branch: Expr
    else_branch: Expr


@dataclass(frozen=True, eq=False)
class Variable(Expr):
    name: Token


@dataclass(frozen=True, eq=False)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(frozen=True, eq=False)
class Prefix(Expr):
    operator: Token
    name: Token


@dataclass(frozen=True, eq=False)
class Postfix(Expr):
    name: Token
    operator: Token


@dataclass(frozen=True, eq=False)
class Index(Expr):
    bracket: Token
    object: Expr
    start: Expr
    end: Optional[Expr] = None


@dataclass(frozen=True, eq=False)
class Call(Expr):
    callee: Expr
    paren: Token
    arguments: List[Expr]


@dataclass(frozen=True, eq=False)
class Anonymous(Expr):
    keyword: Token
    params: List[Token]
    body: List["Stmt"]


@dataclass(frozen=True, eq=False)
class Get(Expr):
    object: Expr
    name: Token


@dataclass(frozen=True, eq=False)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr


@dataclass(frozen=True, eq=False)
class This(Expr):
    keyword: Token


@dataclass(frozen=True, eq=False)
class Super(Expr):
    keyword: Token
    method: Token


@dataclass(frozen=True, eq=False)
class ListLiteral(Expr):
    bracket: Token
    elements: List[Expr]


@dataclass(frozen=True, eq=False)
class MapLiteral(Expr):
    brace: Token
    keys: List[Expr]
    values: List[Expr]


# ============================================================================
# STATEMENTS
# ============================================================================

class Stmt:
    """Base class of all statement nodes"""
    pass


@dataclass(frozen=True, eq=False)
class Expression(Stmt):
    expression: Expr


@dataclass(frozen=True, eq=False)
class Print(Stmt):
    keyword: Token
    expression: Expr


@dataclass(frozen=True, eq=False)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr] = None


@dataclass(frozen=True, eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None


@dataclass(frozen=True, eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt


@dataclass(frozen=True, eq=False)
class For(Stmt):
    """Kept apart from While so that 'continue' still runs the update clause"""
    initializer: Optional[Stmt]
    condition: Optional[Expr]
    update: Optional[Expr]
    body: Stmt


@dataclass(frozen=True, eq=False)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(frozen=True, eq=False)
class Break(Stmt):
    keyword: Token


@dataclass(frozen=True, eq=False)
class Continue(Stmt):
    keyword: Token


@dataclass(frozen=True, eq=False)
class Function(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]
    is_static: bool = False
    is_getter: bool = False


@dataclass(frozen=True, eq=False)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr] = None


@dataclass(frozen=True, eq=False)
class Class(Stmt):
    name: Token
    superclasses: List[Variable]
    methods: List[Function]


# ============================================================================
# TREE DUMP (debugging aid for --parse)
# ============================================================================

def _dump_value(value: Any, indent: int) -> str:
    if isinstance(value, (Expr, Stmt)):
        return "\n" + pretty_print_ast(value, indent)
    if isinstance(value, Token):
        return f" {value.lexeme!r}\n"
    if isinstance(value, list):
        if not value:
            return " []\n"
        return "\n" + "".join(
            pretty_print_ast(item, indent) if isinstance(item, (Expr, Stmt))
            else "  " * indent + f"{item.lexeme if isinstance(item, Token) else item!r}\n"
            for item in value
        )
    return f" {value!r}\n"


def pretty_print_ast(node: Any, indent: int = 0) -> str:
    """Pretty print a syntax tree node for debugging"""
    if not is_dataclass(node):
        return "  " * indent + f"{node!r}\n"
    result = "  " * indent + type(node).__name__ + "\n"
    for f in fields(node):
        value = getattr(node, f.name)
        if value is None:
            continue
        result += "  " * (indent + 1) + f"{f.name}:" + _dump_value(value, indent + 2)
    return result
