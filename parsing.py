"""
Lox Programming Language Parser
pyparsing-driven tokenizer plus a recursive-descent parser over an explicit
precedence ladder, with error recovery at declaration boundaries
"""

from typing import List, Optional, Tuple

# Import pyparsing with error handling
try:
    from pyparsing import (
        Regex, MatchFirst, ParseException, one_of, lineno, col,
        Token as PyParsingToken
    )
except ImportError:
    raise ImportError("pyparsing library not found. Install with: pip install pyparsing")

from ast_nodes import (
    TokenType, Token, KEYWORDS, Expr, Stmt,
    Literal, Grouping, Unary, Binary, Ternary, Variable, Assign, Prefix, Postfix,
    Index, Call, Anonymous, Get, Set, This, Super, ListLiteral, MapLiteral,
    Expression, Print, Var, If, While, For, Block, Break, Continue, Function,
    Return, Class
)
from error_handling import ErrorReporter, LoxParseError


MAX_ARGUMENTS = 255

OPERATORS = {
    "(": TokenType.LEFT_PAREN, ")": TokenType.RIGHT_PAREN,
    "{": TokenType.LEFT_BRACE, "}": TokenType.RIGHT_BRACE,
    "[": TokenType.LEFT_BRACK, "]": TokenType.RIGHT_BRACK,
    ",": TokenType.COMMA, ".": TokenType.DOT, ";": TokenType.SEMICOLON,
    ":": TokenType.COLON, "?": TokenType.QUESTION_MARK, "%": TokenType.MODULO,
    "&": TokenType.BITWISE_AND, "|": TokenType.BITWISE_OR,
    "^": TokenType.BITWISE_XOR, "~": TokenType.BITWISE_NOT,
    "+": TokenType.PLUS, "++": TokenType.PLUS_PLUS,
    "-": TokenType.MINUS, "--": TokenType.MINUS_MINUS,
    "*": TokenType.STAR, "**": TokenType.STAR_STAR, "/": TokenType.SLASH,
    "!": TokenType.BANG, "!=": TokenType.BANG_EQUAL,
    "=": TokenType.EQUAL, "==": TokenType.EQUAL_EQUAL,
    "<": TokenType.LESS, "<=": TokenType.LESS_EQUAL, "<<": TokenType.BITSHIFT_LEFT,
    ">": TokenType.GREATER, ">=": TokenType.GREATER_EQUAL, ">>": TokenType.BITSHIFT_RIGHT,
}


# ============================================================================
# TOKENIZER
# ============================================================================

class NestedBlockComment(PyParsingToken):
    """Matches /* ... */ where nested openers need their own closers.

    An unterminated comment still matches (to end of input) so the scanner
    can report it and finish normally.
    """

    def __init__(self):
        super().__init__()
        self.set_name("block comment")
        self.mayReturnEmpty = False
        self.mayIndexError = False

    def parseImpl(self, instring, loc, do_actions=True):
        if not instring.startswith("/*", loc):
            raise ParseException(instring, loc, self.errmsg, self)

        depth = 0
        pos = loc
        end = len(instring)
        while pos < end:
            if instring.startswith("/*", pos):
                depth += 1
                pos += 2
            elif instring.startswith("*/", pos):
                depth -= 1
                pos += 2
                if depth == 0:
                    return pos, [("BLOCK_COMMENT", instring[loc:pos])]
            else:
                pos += 1

        return end, [("UNTERMINATED_COMMENT", instring[loc:end])]


def _tagged(element, tag: str):
    """Attach a category tag to whatever text the element matches"""
    return element.set_parse_action(lambda t: (tag, t[0]))


class LoxTokenizer:
    """Lox tokenizer reporting every lexical error instead of stopping at the first"""

    def __init__(self, reporter: Optional[ErrorReporter] = None, debug: bool = False):
        self.reporter = reporter or ErrorReporter(echo=False)
        self.debug = debug
        self._setup_token_patterns()

    def _setup_token_patterns(self):
        """Setup all token patterns; order matters, first match wins"""

        # Comments must be tried before the '/' operator
        block_comment = NestedBlockComment()
        line_comment = _tagged(Regex(r"//[^\n]*"), "LINE_COMMENT")

        # Strings are raw and may span lines
        string_literal = _tagged(Regex(r'"[^"]*"'), "STRING")
        unterminated_string = _tagged(Regex(r'"[^"]*'), "UNTERMINATED_STRING")

        # A trailing '.' is only part of a number at the very end of input
        number = _tagged(Regex(r"\d+(?:\.\d+|\.\Z)?"), "NUMBER")

        word = _tagged(Regex(r"[A-Za-z_][A-Za-z0-9_]*"), "WORD")

        # one_of reorders alternatives so that '**' is never masked by '*'
        operator = _tagged(one_of(list(OPERATORS)), "OPERATOR")

        unexpected = _tagged(Regex(r"\S"), "UNEXPECTED")

        self.scanner = MatchFirst([
            block_comment,
            line_comment,
            string_literal,
            unterminated_string,
            number,
            word,
            operator,
            unexpected,
        ]).parse_with_tabs()

    def tokenize(self, text: str) -> List[Token]:
        """Tokenize Lox source; the result always ends with an EOF token"""
        tokens: List[Token] = []

        for result, start, end in self.scanner.scan_string(text):
            tag, lexeme = result[0]
            line = lineno(start, text)
            column = col(start, text)

            if tag in ("BLOCK_COMMENT", "LINE_COMMENT"):
                continue
            if tag == "UNTERMINATED_COMMENT":
                self.reporter.error(line, "Unterminated multi-line comment.", "lex", column)
            elif tag == "UNTERMINATED_STRING":
                self.reporter.error(line, "Unterminated string.", "lex", column)
            elif tag == "UNEXPECTED":
                self.reporter.error(line, f"Unexpected character '{lexeme}'.", "lex", column)
            elif tag == "STRING":
                tokens.append(Token(TokenType.STRING, lexeme, lexeme[1:-1], line, column))
            elif tag == "NUMBER":
                tokens.append(Token(TokenType.NUMBER, lexeme, float(lexeme), line, column))
            elif tag == "WORD":
                token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
                tokens.append(Token(token_type, lexeme, None, line, column))
            else:
                tokens.append(Token(OPERATORS[lexeme], lexeme, None, line, column))

        eof_line = lineno(len(text), text) if text else 1
        tokens.append(Token(TokenType.EOF, "", None, eof_line, 0))

        if self.debug:
            print(f"Tokenized {len(tokens)} tokens")
        return tokens


# ============================================================================
# GRAMMAR (recursive descent)
# ============================================================================

STATEMENT_STARTS = {
    TokenType.CLASS, TokenType.FUN, TokenType.VAR, TokenType.FOR,
    TokenType.IF, TokenType.WHILE, TokenType.PRINT, TokenType.RETURN,
}

MISSING_OPERAND_OPERATORS = (
    TokenType.EQUAL_EQUAL, TokenType.BANG_EQUAL, TokenType.GREATER,
    TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL,
    TokenType.PLUS, TokenType.STAR, TokenType.SLASH, TokenType.MODULO,
    TokenType.STAR_STAR, TokenType.BITWISE_AND, TokenType.BITWISE_OR,
    TokenType.BITWISE_XOR, TokenType.BITSHIFT_LEFT, TokenType.BITSHIFT_RIGHT,
    TokenType.AND, TokenType.OR,
)


class LoxGrammar:
    """Recursive-descent parser; one method per precedence level.

    program     -> declaration* EOF
    declaration -> classDecl | funDecl | varDecl | statement
    expression  -> comma
    comma       -> assign ( "," assign )*
    assign      -> ternary ( "=" assign )?
    ternary     -> or ( "?" ternary ":" ternary )?
    or          -> and ( "or" and )*
    and         -> equality ( "and" equality )*
    equality    -> bitwise ( ( "==" | "!=" ) bitwise )*
    bitwise     -> comparison ( ( "&" | "|" | "^" ) comparison )*
    comparison  -> shift ( ( ">" | ">=" | "<" | "<=" ) shift )*
    shift       -> term ( ( "<<" | ">>" ) term )*
    term        -> factor ( ( "+" | "-" ) factor )*
    factor      -> unary ( ( "*" | "/" | "%" ) unary )*
    unary       -> ( "!" | "-" | "~" ) unary | exponent
    exponent    -> prefix ( "**" unary )?
    prefix      -> ( "++" | "--" ) index | index
    index       -> postfix ( "[" expression ( ":" expression )? "]" )*
    postfix     -> call ( "++" | "--" )?
    call        -> primary ( "(" arguments? ")" | "." IDENTIFIER )*
    """

    def __init__(self, tokens: List[Token], reporter: Optional[ErrorReporter] = None,
                 debug: bool = False):
        self.tokens = tokens
        self.reporter = reporter or ErrorReporter(echo=False)
        self.debug = debug
        self.current = 0

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def parse(self) -> List[Stmt]:
        """Parse a whole program, recovering from errors where possible"""
        statements = []
        while not self._is_at_end():
            stmt = self._declaration()
            if stmt is not None:
                statements.append(stmt)
        return statements

    def parse_expression(self) -> Optional[Expr]:
        """Parse a single bare expression (REPL input without ';')"""
        try:
            expr = self._expression()
            if not self._is_at_end():
                raise self._error(self._peek(), "Expect end of expression.")
            return expr
        except LoxParseError:
            return None

    # ------------------------------------------------------------------
    # Declarations and statements
    # ------------------------------------------------------------------

    def _declaration(self) -> Optional[Stmt]:
        try:
            if self._match(TokenType.VAR):
                return self._var_declaration()
            if self._check(TokenType.FUN) and self._check_next(TokenType.IDENTIFIER):
                self._advance()
                return self._function("function")
            if self._match(TokenType.CLASS):
                return self._class_declaration()
            return self._statement()
        except LoxParseError:
            self._synchronize()
            return None

    def _var_declaration(self) -> Stmt:
        name = self._consume(TokenType.IDENTIFIER, "Expect variable name.")
        initializer = None
        if self._match(TokenType.EQUAL):
            initializer = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return Var(name, initializer)

    def _class_declaration(self) -> Stmt:
        name = self._consume(TokenType.IDENTIFIER, "Expect class name.")

        superclasses = []
        if self._match(TokenType.EXTENDS):
            while True:
                if len(superclasses) >= MAX_ARGUMENTS:
                    self._report(self._peek(), f"Can't have more than {MAX_ARGUMENTS} superclasses.")
                ancestor = self._consume(TokenType.IDENTIFIER, "Expect superclass name.")
                superclasses.append(Variable(ancestor))
                if not self._match(TokenType.COMMA):
                    break

        self._consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")

        methods = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            kind = "static method" if self._match(TokenType.CLASS) else "method"
            methods.append(self._function(kind))

        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")
        return Class(name, superclasses, methods)

    def _function(self, kind: str) -> Function:
        """Function, method, static method ("class" prefix) or getter (no parameter list)"""
        name = self._consume(TokenType.IDENTIFIER, f"Expect {kind} name.")

        params = []
        is_getter = False
        if kind == "function" or self._check(TokenType.LEFT_PAREN):
            self._consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
            params = self._parameters(kind)
        else:
            is_getter = True

        self._consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        body = self._block()
        return Function(name, params, body, kind == "static method", is_getter)

    def _parameters(self, kind: str) -> List[Token]:
        params = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self._report(self._peek(), f"Can't have more than {MAX_ARGUMENTS} parameters in {kind}.")
                params.append(self._consume(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self._match(TokenType.COMMA):
                    break
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        return params

    def _statement(self) -> Stmt:
        if self._match(TokenType.PRINT):
            return self._print_statement()
        if self._match(TokenType.IF):
            return self._if_statement()
        if self._match(TokenType.WHILE):
            return self._while_statement()
        if self._match(TokenType.FOR):
            return self._for_statement()
        if self._match(TokenType.BREAK):
            keyword = self._previous()
            self._consume(TokenType.SEMICOLON, "Expect ';' after 'break'.")
            return Break(keyword)
        if self._match(TokenType.CONTINUE):
            keyword = self._previous()
            self._consume(TokenType.SEMICOLON, "Expect ';' after 'continue'.")
            return Continue(keyword)
        if self._match(TokenType.RETURN):
            return self._return_statement()
        if self._match(TokenType.LEFT_BRACE):
            return Block(self._block())
        return self._expression_statement()

    def _print_statement(self) -> Stmt:
        keyword = self._previous()
        value = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return Print(keyword, value)

    def _expression_statement(self) -> Stmt:
        expr = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return Expression(expr)

    def _if_statement(self) -> Stmt:
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")
        then_branch = self._statement()
        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._statement()
        return If(condition, then_branch, else_branch)

    def _while_statement(self) -> Stmt:
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        return While(condition, self._statement())

    def _for_statement(self) -> Stmt:
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._match(TokenType.VAR):
            initializer = self._var_declaration()
        else:
            initializer = self._expression_statement()

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        update = None
        if not self._check(TokenType.RIGHT_PAREN):
            update = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        return For(initializer, condition, update, self._statement())

    def _return_statement(self) -> Stmt:
        keyword = self._previous()
        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return Return(keyword, value)

    def _block(self) -> List[Stmt]:
        statements = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            stmt = self._declaration()
            if stmt is not None:
                statements.append(stmt)
        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expression(self) -> Expr:
        return self._comma()

    def _left_assoc(self, operand, *operators: TokenType) -> Expr:
        """Shared loop for every left-associative binary level"""
        expr = operand()
        while self._match(*operators):
            operator = self._previous()
            right = operand()
            expr = Binary(expr, operator, right)
        return expr

    def _comma(self) -> Expr:
        return self._left_assoc(self._assignment, TokenType.COMMA)

    def _assignment(self) -> Expr:
        expr = self._ternary()

        if self._match(TokenType.EQUAL):
            equals = self._previous()
            value = self._assignment()

            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            if isinstance(expr, Get):
                return Set(expr.object, expr.name, value)

            # Reported but not raised: the parser is not confused
            self._report(equals, "Invalid assignment target.")

        return expr

    def _ternary(self) -> Expr:
        expr = self._or()
        if self._match(TokenType.QUESTION_MARK):
            operator = self._previous()
            then_branch = self._ternary()
            self._consume(TokenType.COLON, "Expect ':' in ternary expression.")
            else_branch = self._ternary()
            expr = Ternary(expr, operator, then_branch, else_branch)
        return expr

    def _or(self) -> Expr:
        return self._left_assoc(self._and, TokenType.OR)

    def _and(self) -> Expr:
        return self._left_assoc(self._equality, TokenType.AND)

    def _equality(self) -> Expr:
        return self._left_assoc(self._bitwise, TokenType.EQUAL_EQUAL, TokenType.BANG_EQUAL)

    def _bitwise(self) -> Expr:
        return self._left_assoc(self._comparison, TokenType.BITWISE_AND,
                                TokenType.BITWISE_OR, TokenType.BITWISE_XOR)

    def _comparison(self) -> Expr:
        return self._left_assoc(self._shift, TokenType.GREATER, TokenType.GREATER_EQUAL,
                                TokenType.LESS, TokenType.LESS_EQUAL)

    def _shift(self) -> Expr:
        return self._left_assoc(self._term, TokenType.BITSHIFT_LEFT, TokenType.BITSHIFT_RIGHT)

    def _term(self) -> Expr:
        return self._left_assoc(self._factor, TokenType.PLUS, TokenType.MINUS)

    def _factor(self) -> Expr:
        return self._left_assoc(self._unary, TokenType.STAR, TokenType.SLASH, TokenType.MODULO)

    def _unary(self) -> Expr:
        if self._match(TokenType.BANG, TokenType.MINUS, TokenType.BITWISE_NOT):
            operator = self._previous()
            return Unary(operator, self._unary())
        return self._exponent()

    def _exponent(self) -> Expr:
        expr = self._prefix()
        if self._match(TokenType.STAR_STAR):
            operator = self._previous()
            # Recursing through unary makes '**' right-associative
            return Binary(expr, operator, self._unary())
        return expr

    def _prefix(self) -> Expr:
        if self._match(TokenType.PLUS_PLUS, TokenType.MINUS_MINUS):
            operator = self._previous()
            operand = self._index()
            if isinstance(operand, Variable):
                return Prefix(operator, operand.name)
            self._report(operator, "Invalid prefix expression.")
            return operand
        return self._index()

    def _index(self) -> Expr:
        expr = self._postfix()
        while self._match(TokenType.LEFT_BRACK):
            bracket = self._previous()
            start = self._expression()
            end = None
            if self._match(TokenType.COLON):
                end = self._expression()
            self._consume(TokenType.RIGHT_BRACK, "Expect ']' after index.")
            expr = Index(bracket, expr, start, end)
        return expr

    def _postfix(self) -> Expr:
        expr = self._call()
        if self._match(TokenType.PLUS_PLUS, TokenType.MINUS_MINUS):
            operator = self._previous()
            if isinstance(expr, Variable):
                return Postfix(expr.name, operator)
            self._report(operator, "Invalid postfix expression.")
        return expr

    def _call(self) -> Expr:
        expr = self._primary()
        while True:
            if self._match(TokenType.LEFT_PAREN):
                expr = self._finish_call(expr)
            elif self._match(TokenType.DOT):
                name = self._consume(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = Get(expr, name)
            else:
                break
        return expr

    def _finish_call(self, callee: Expr) -> Expr:
        arguments = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self._report(self._peek(), f"Can't have more than {MAX_ARGUMENTS} arguments.")
                # assignment, not comma: ',' separates arguments here
                arguments.append(self._assignment())
                if not self._match(TokenType.COMMA):
                    break
        paren = self._consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, arguments)

    def _primary(self) -> Expr:
        if self._match(TokenType.FALSE):
            return Literal(False)
        if self._match(TokenType.TRUE):
            return Literal(True)
        if self._match(TokenType.NIL):
            return Literal(None)
        if self._match(TokenType.NUMBER, TokenType.STRING):
            return Literal(self._previous().literal)
        if self._match(TokenType.IDENTIFIER):
            return Variable(self._previous())
        if self._match(TokenType.PRINT):
            # 'print' in expression position names the native print function
            return Variable(self._previous())
        if self._match(TokenType.THIS):
            return This(self._previous())
        if self._match(TokenType.SUPER):
            keyword = self._previous()
            self._consume(TokenType.DOT, "Expect '.' after 'super'.")
            method = self._consume(TokenType.IDENTIFIER, "Expect superclass method name.")
            return Super(keyword, method)
        if self._match(TokenType.FUN):
            return self._anonymous_function()
        if self._match(TokenType.LEFT_PAREN):
            expr = self._expression()
            self._consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)
        if self._match(TokenType.LEFT_BRACK):
            return self._list_literal()
        if self._match(TokenType.LEFT_BRACE):
            return self._map_literal()

        if self._match(*MISSING_OPERAND_OPERATORS):
            operator = self._previous()
            self._expression()
            raise self._error(operator, "Missing left-hand operand.")

        raise self._error(self._peek(), "Expect expression.")

    def _anonymous_function(self) -> Expr:
        keyword = self._previous()
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'fun'.")
        params = self._parameters("function")
        self._consume(TokenType.LEFT_BRACE, "Expect '{' before function body.")
        return Anonymous(keyword, params, self._block())

    def _list_literal(self) -> Expr:
        bracket = self._previous()
        elements = []
        if not self._check(TokenType.RIGHT_BRACK):
            while True:
                elements.append(self._assignment())
                if not self._match(TokenType.COMMA):
                    break
        self._consume(TokenType.RIGHT_BRACK, "Expect ']' after list elements.")
        return ListLiteral(bracket, elements)

    def _map_literal(self) -> Expr:
        brace = self._previous()
        keys, values = [], []
        if not self._check(TokenType.RIGHT_BRACE):
            while True:
                keys.append(self._assignment())
                self._consume(TokenType.COLON, "Expect ':' after map key.")
                values.append(self._assignment())
                if not self._match(TokenType.COMMA):
                    break
        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after map entries.")
        return MapLiteral(brace, keys, values)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _match(self, *types: TokenType) -> bool:
        for token_type in types:
            if self._check(token_type):
                self._advance()
                return True
        return False

    def _check(self, token_type: TokenType) -> bool:
        if self._is_at_end():
            return False
        return self._peek().type == token_type

    def _check_next(self, token_type: TokenType) -> bool:
        if self.current + 1 >= len(self.tokens):
            return False
        return self.tokens[self.current + 1].type == token_type

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _is_at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _previous(self) -> Token:
        return self.tokens[self.current - 1]

    def _consume(self, token_type: TokenType, message: str) -> Token:
        if self._check(token_type):
            return self._advance()
        raise self._error(self._peek(), message)

    def _report(self, token: Token, message: str) -> None:
        self.reporter.token_error(token, message, "parse")

    def _error(self, token: Token, message: str) -> LoxParseError:
        self._report(token, message)
        return LoxParseError(token, message)

    def _synchronize(self) -> None:
        """Discard tokens until the start of the next statement"""
        self._advance()
        while not self._is_at_end():
            if self._previous().type == TokenType.SEMICOLON:
                return
            if self._peek().type in STATEMENT_STARTS:
                return
            self._advance()


# ============================================================================
# FACADE
# ============================================================================

class LoxParser:
    """Main Lox parser combining tokenizer and grammar"""

    def __init__(self, reporter: Optional[ErrorReporter] = None, debug: bool = False):
        self.reporter = reporter or ErrorReporter(echo=False)
        self.debug = debug

    def tokenize(self, text: str) -> List[Token]:
        """Tokenize Lox source code"""
        return LoxTokenizer(self.reporter, self.debug).tokenize(text)

    def parse_string(self, text: str) -> List[Stmt]:
        """Parse Lox source code from a string"""
        tokens = self.tokenize(text)
        statements = LoxGrammar(tokens, self.reporter, self.debug).parse()
        if self.debug:
            print(f"Parsed {len(statements)} top-level statements")
        return statements

    def parse_file(self, filepath: str) -> Tuple[str, List[Stmt]]:
        """Parse a Lox source file, returning its text alongside the tree"""
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
        return content, self.parse_string(content)

    def parse_expression(self, text: str) -> Optional[Expr]:
        """Parse a single Lox expression"""
        tokens = self.tokenize(text)
        return LoxGrammar(tokens, self.reporter, self.debug).parse_expression()


# Factory functions for creating parsers
def create_parser(reporter: Optional[ErrorReporter] = None, debug: bool = False) -> LoxParser:
    """Create a Lox parser"""
    return LoxParser(reporter, debug=debug)


def create_debug_parser(reporter: Optional[ErrorReporter] = None) -> LoxParser:
    """Create a Lox parser with debug enabled"""
    return LoxParser(reporter, debug=True)
