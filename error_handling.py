"""
Error handling for the Lox front end and interpreter
Diagnostics are plain dictionaries built and formatted by pure functions;
the exception classes and ErrorReporter are the stateful boundary
"""

from typing import Dict, List, Optional, TextIO
import sys

from ast_nodes import Token, TokenType


ERROR = "error"
WARNING = "warning"


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_diagnostic(
    message: str,
    line: int,
    severity: str = ERROR,
    stage: str = "parse",
    where: str = "",
    column: int = 0
) -> Dict:
    """Create an immutable diagnostic structure"""
    return {
        'message': message,
        'line': line,
        'column': column,
        'severity': severity,
        'stage': stage,
        'where': where,
    }


def where_for_token(token: Token) -> str:
    """Describe the offending token the way diagnostics print it"""
    if token.type == TokenType.EOF:
        return " at end"
    return f" at '{token.lexeme}'"


def format_diagnostic(diagnostic: Dict) -> str:
    """Format a diagnostic as a single report line"""
    level = "Warning" if diagnostic['severity'] == WARNING else "Error"
    return f"[line {diagnostic['line']}] {level}{diagnostic['where']}: {diagnostic['message']}"


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1 and col_num > 0:
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^ here")

    return '\n'.join(context_parts)


def format_runtime_error(error: "LoxRuntimeError") -> str:
    """Format a runtime error as message plus its source line"""
    return f"{error.message}\n[line {error.line}]"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LoxError(Exception):
    """Base of every error raised by the Lox pipeline"""
    pass


class LoxParseError(LoxError):
    """Unwinds the parser to the nearest declaration boundary"""
    def __init__(self, token: Token, message: str):
        self.token = token
        self.message = message
        super().__init__(f"[line {token.line}] Error{where_for_token(token)}: {message}")


class LoxRuntimeError(LoxError):
    """Runtime error carrying the offending token for line information"""
    def __init__(self, token: Optional[Token], message: str):
        self.token = token
        self.message = message
        super().__init__(message)

    @property
    def line(self) -> int:
        return self.token.line if self.token is not None else 0


# ============================================================================
# REPORTER
# ============================================================================

class ErrorReporter:
    """Collects diagnostics from every stage and remembers whether any
    stage produced an error.

    Lexical, parse and resolve problems are collected (never raised), so a
    single run surfaces all of them. Runtime errors are recorded separately
    because they get their own exit status.
    """

    def __init__(self, source_text: str = "", echo: bool = True,
                 show_context: bool = False, stream: Optional[TextIO] = None):
        self.source_text = source_text
        self.echo = echo
        self.show_context = show_context
        self.stream = stream
        self.diagnostics: List[Dict] = []
        self.had_error = False
        self.had_runtime_error = False

    def _write(self, text: str) -> None:
        if self.echo:
            print(text, file=self.stream or sys.stderr)

    def _record(self, diagnostic: Dict) -> None:
        self.diagnostics.append(diagnostic)
        if diagnostic['severity'] == ERROR:
            self.had_error = True
        self._write(format_diagnostic(diagnostic))
        if self.show_context and self.source_text and diagnostic['line'] > 0:
            self._write(get_context_lines(self.source_text, diagnostic['line'], diagnostic['column']))

    def error(self, line: int, message: str, stage: str = "lex", column: int = 0) -> None:
        self._record(make_diagnostic(message, line, ERROR, stage, "", column))

    def token_error(self, token: Token, message: str, stage: str = "parse") -> None:
        self._record(make_diagnostic(message, token.line, ERROR, stage,
                                     where_for_token(token), token.column))

    def warning(self, token: Token, message: str, stage: str = "resolve") -> None:
        self._record(make_diagnostic(message, token.line, WARNING, stage,
                                     where_for_token(token), token.column))

    def runtime_error(self, error: LoxRuntimeError) -> None:
        self.had_runtime_error = True
        self._write(format_runtime_error(error))

    @property
    def errors(self) -> List[Dict]:
        return [d for d in self.diagnostics if d['severity'] == ERROR]

    @property
    def warnings(self) -> List[Dict]:
        return [d for d in self.diagnostics if d['severity'] == WARNING]

    def reset(self, source_text: Optional[str] = None) -> None:
        """Forget previous errors (one REPL line must not poison the next)"""
        if source_text is not None:
            self.source_text = source_text
        self.diagnostics = []
        self.had_error = False
        self.had_runtime_error = False
