"""
Basic tokenizing and parsing tests for Lox
Tests fundamental lexical and syntactic capabilities
"""

import pytest
from ast_nodes import (
    TokenType, Binary, Unary, Ternary, Assign, Set, Get, Call, Index, Prefix,
    Postfix, Literal, Variable, Anonymous, ListLiteral, MapLiteral, Super,
    Expression, Print, Var, For, Class, Function, pretty_print_ast
)
from error_handling import ErrorReporter
from parsing import LoxTokenizer, LoxGrammar, create_parser


def types_of(tokens):
  return [t.type for t in tokens]


class TestTokenizer:
  """Test the pyparsing-driven scanner"""

  @pytest.fixture
  def reporter(self):
    return ErrorReporter(echo=False)

  @pytest.fixture
  def tokenizer(self, reporter):
    """Provide a fresh tokenizer for each test"""
    return LoxTokenizer(reporter)

  def test_empty_source_yields_only_eof(self, tokenizer):
    tokens = tokenizer.tokenize("")
    assert types_of(tokens) == [TokenType.EOF]

  def test_comment_only_source(self, tokenizer, reporter):
    tokens = tokenizer.tokenize("// nothing here\n/* or here */")
    assert types_of(tokens) == [TokenType.EOF]
    assert not reporter.had_error

  def test_longest_operator_wins(self, tokenizer):
    tokens = tokenizer.tokenize("** ++ -- <= >= << >> == != * + - < > = !")
    assert types_of(tokens)[:-1] == [
        TokenType.STAR_STAR, TokenType.PLUS_PLUS, TokenType.MINUS_MINUS,
        TokenType.LESS_EQUAL, TokenType.GREATER_EQUAL, TokenType.BITSHIFT_LEFT,
        TokenType.BITSHIFT_RIGHT, TokenType.EQUAL_EQUAL, TokenType.BANG_EQUAL,
        TokenType.STAR, TokenType.PLUS, TokenType.MINUS, TokenType.LESS,
        TokenType.GREATER, TokenType.EQUAL, TokenType.BANG,
    ]

  def test_numbers_decode_to_float(self, tokenizer):
    tokens = tokenizer.tokenize("12 3.5")
    assert tokens[0].literal == 12.0
    assert isinstance(tokens[0].literal, float)
    assert tokens[1].literal == 3.5

  def test_trailing_dot_is_a_property_access(self, tokenizer):
    tokens = tokenizer.tokenize("12.foo")
    assert types_of(tokens)[:-1] == [TokenType.NUMBER, TokenType.DOT, TokenType.IDENTIFIER]

  def test_trailing_dot_at_end_of_input(self, tokenizer):
    tokens = tokenizer.tokenize("12.")
    assert tokens[0].type == TokenType.NUMBER
    assert tokens[0].lexeme == "12."
    assert tokens[0].literal == 12.0

  def test_keywords_and_identifiers(self, tokenizer):
    tokens = tokenizer.tokenize("class extends continue classy _x1")
    assert types_of(tokens)[:-1] == [
        TokenType.CLASS, TokenType.EXTENDS, TokenType.CONTINUE,
        TokenType.IDENTIFIER, TokenType.IDENTIFIER,
    ]

  def test_strings_are_raw_and_span_lines(self, tokenizer):
    tokens = tokenizer.tokenize('"a\\n\nb" x')
    assert tokens[0].literal == "a\\n\nb"
    assert tokens[0].line == 1
    assert tokens[1].line == 2

  def test_nested_block_comments(self, tokenizer, reporter):
    tokens = tokenizer.tokenize("/* a /* b */ still comment */ x")
    assert types_of(tokens) == [TokenType.IDENTIFIER, TokenType.EOF]
    assert not reporter.had_error

  def test_unterminated_block_comment(self, tokenizer, reporter):
    tokenizer.tokenize("x /* a /* b */")
    assert reporter.errors[0]['message'] == "Unterminated multi-line comment."

  def test_unterminated_string_reports_start_line(self, tokenizer, reporter):
    tokenizer.tokenize('\n\n\n"never closed\nmore\n')
    assert len(reporter.errors) == 1
    assert reporter.errors[0]['line'] == 4
    assert reporter.errors[0]['message'] == "Unterminated string."

  def test_unexpected_characters_keep_scanning(self, tokenizer, reporter):
    tokens = tokenizer.tokenize("a @ b # c")
    assert [t.lexeme for t in tokens if t.type == TokenType.IDENTIFIER] == ["a", "b", "c"]
    assert len(reporter.errors) == 2

  def test_line_and_column(self, tokenizer):
    tokens = tokenizer.tokenize("var\n  x")
    assert (tokens[1].line, tokens[1].column) == (2, 3)


class TestExpressionParsing:
  """Test the precedence ladder"""

  def parse(self, text):
    reporter = ErrorReporter(echo=False)
    expr = create_parser(reporter).parse_expression(text)
    assert not reporter.had_error, reporter.diagnostics
    return expr

  def test_factor_binds_tighter_than_term(self):
    expr = self.parse("1 + 2 * 3")
    assert isinstance(expr, Binary) and expr.operator.lexeme == "+"
    assert isinstance(expr.right, Binary) and expr.right.operator.lexeme == "*"

  def test_exponent_is_right_associative(self):
    expr = self.parse("2 ** 3 ** 2")
    assert expr.operator.type == TokenType.STAR_STAR
    assert isinstance(expr.left, Literal)
    assert isinstance(expr.right, Binary) and expr.right.operator.type == TokenType.STAR_STAR

  def test_unary_minus_applies_after_exponent(self):
    expr = self.parse("-2 ** 2")
    assert isinstance(expr, Unary)
    assert isinstance(expr.right, Binary)

  def test_comma_is_lowest(self):
    expr = self.parse("a = 1, b = 2")
    assert expr.operator.type == TokenType.COMMA
    assert isinstance(expr.left, Assign) and isinstance(expr.right, Assign)

  def test_ternary_nests_to_the_right(self):
    expr = self.parse("a ? b : c ? d : e")
    assert isinstance(expr, Ternary)
    assert isinstance(expr.else_branch, Ternary)

  def test_bitwise_sits_between_equality_and_comparison(self):
    expr = self.parse("a == b & c < d")
    assert expr.operator.type == TokenType.EQUAL_EQUAL
    assert expr.right.operator.type == TokenType.BITWISE_AND
    assert expr.right.right.operator.type == TokenType.LESS

  def test_property_assignment_becomes_set(self):
    expr = self.parse("a.b.c = 1")
    assert isinstance(expr, Set)
    assert isinstance(expr.object, Get)

  def test_call_chain(self):
    expr = self.parse("f(1)(2).g")
    assert isinstance(expr, Get)
    assert isinstance(expr.object, Call)
    assert isinstance(expr.object.callee, Call)

  def test_prefix_and_postfix(self):
    assert isinstance(self.parse("++x"), Prefix)
    assert isinstance(self.parse("x--"), Postfix)

  def test_index_and_slice(self):
    expr = self.parse('"hello"[1:3]')
    assert isinstance(expr, Index)
    assert expr.end is not None
    single = self.parse("s[0][1]")
    assert isinstance(single, Index) and isinstance(single.object, Index)

  def test_list_and_map_literals(self):
    assert len(self.parse("[1, 2, 3]").elements) == 3
    literal = self.parse('{"a": 1, "b": 2}')
    assert isinstance(literal, MapLiteral)
    assert len(literal.keys) == 2
    assert isinstance(self.parse("[]"), ListLiteral)

  def test_anonymous_function(self):
    expr = self.parse("fun (a, b) { return a + b; }")
    assert isinstance(expr, Anonymous)
    assert [p.lexeme for p in expr.params] == ["a", "b"]

  def test_super_access(self):
    expr = self.parse("super.greet")
    assert isinstance(expr, Super)
    assert expr.method.lexeme == "greet"

  def test_print_names_the_native(self):
    expr = self.parse("print")
    assert isinstance(expr, Variable)


class TestStatementParsing:
  """Test declarations and statements"""

  def parse(self, text):
    reporter = ErrorReporter(echo=False)
    statements = create_parser(reporter).parse_string(text)
    return statements, reporter

  def test_var_and_print(self):
    statements, reporter = self.parse("var x = 1; print x;")
    assert not reporter.had_error
    assert isinstance(statements[0], Var)
    assert isinstance(statements[1], Print)

  def test_for_keeps_its_clauses(self):
    statements, _ = self.parse("for (var i = 0; i < 3; i++) print i;")
    loop = statements[0]
    assert isinstance(loop, For)
    assert isinstance(loop.initializer, Var)
    assert isinstance(loop.update, Postfix)

  def test_for_with_empty_clauses(self):
    statements, reporter = self.parse("for (;;) break;")
    assert not reporter.had_error
    assert statements[0].initializer is None
    assert statements[0].condition is None
    assert statements[0].update is None

  def test_class_members(self):
    statements, reporter = self.parse("""
      class Circle extends Shape, Named {
        init(r) { this.r = r; }
        area { return 3 * this.r * this.r; }
        class unit() { return Circle(1); }
      }
    """)
    assert not reporter.had_error
    klass = statements[0]
    assert isinstance(klass, Class)
    assert [s.name.lexeme for s in klass.superclasses] == ["Shape", "Named"]
    init, area, unit = klass.methods
    assert not init.is_getter and not init.is_static
    assert area.is_getter
    assert unit.is_static

  def test_anonymous_function_statement(self):
    statements, reporter = self.parse("fun () {};")
    assert not reporter.had_error
    assert isinstance(statements[0], Expression)
    assert isinstance(statements[0].expression, Anonymous)

  def test_function_declaration(self):
    statements, _ = self.parse("fun add(a, b) { return a + b; }")
    assert isinstance(statements[0], Function)
    assert len(statements[0].params) == 2


class TestErrorRecovery:
  """Test error handling and reporting"""

  def parse(self, text):
    reporter = ErrorReporter(echo=False)
    statements = create_parser(reporter).parse_string(text)
    return statements, reporter

  def test_invalid_assignment_target_is_not_fatal(self):
    statements, reporter = self.parse("1 + 2 = 3; print 4;")
    assert reporter.errors[0]['message'] == "Invalid assignment target."
    assert len(statements) == 2

  def test_synchronizes_after_error(self):
    statements, reporter = self.parse("var = 1; print 2; var y = ; print 3;")
    assert len(reporter.errors) == 2
    assert [type(s) for s in statements] == [Print, Print]

  def test_missing_left_hand_operand(self):
    _, reporter = self.parse("* 3;")
    assert reporter.errors[0]['message'] == "Missing left-hand operand."
    assert reporter.errors[0]['where'] == " at '*'"

  def test_error_at_end(self):
    _, reporter = self.parse("print 1")
    assert reporter.errors[0]['where'] == " at end"

  def test_too_many_arguments(self):
    args = ", ".join("1" for _ in range(256))
    statements, reporter = self.parse(f"f({args});")
    assert reporter.errors[0]['message'] == "Can't have more than 255 arguments."
    assert len(statements) == 1

  def test_invalid_increment_target(self):
    _, reporter = self.parse("++1;")
    assert reporter.errors[0]['message'] == "Invalid prefix expression."

  def test_grammar_directly(self):
    reporter = ErrorReporter(echo=False)
    tokens = LoxTokenizer(reporter).tokenize("x")
    assert isinstance(LoxGrammar(tokens, reporter).parse_expression(), Variable)


class TestTreeDump:

  def test_dump_names_nodes(self):
    statements = create_parser().parse_string("var x = 1 + 2;")
    text = pretty_print_ast(statements[0])
    assert text.startswith("Var")
    assert "Binary" in text
    assert "'+'" in text
