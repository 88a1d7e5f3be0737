"""
Scope resolution tests for Lox
Checks hop counts and the static errors reported before execution
"""

import pytest
from ast_nodes import Variable, Assign, This, Super
from error_handling import ErrorReporter
from parsing import create_parser
from semantics import LoxResolver, create_resolver


def resolve(source):
  reporter = ErrorReporter(echo=False)
  statements = create_parser(reporter).parse_string(source)
  assert not reporter.had_error, reporter.diagnostics
  table = create_resolver(reporter).resolve(statements)
  return table, reporter


def messages(reporter):
  return [d['message'] for d in reporter.errors]


class TestHopCounts:
  """Test the node -> hop-count table"""

  def test_globals_are_not_recorded(self):
    table, _ = resolve("var a = 1; print a;")
    assert table == {}

  def test_block_local_is_zero_hops(self):
    table, _ = resolve("{ var a = 1; print a; }")
    assert list(table.values()) == [0]

  def test_closure_reference_counts_frames(self):
    table, _ = resolve("""
      fun outer() {
        var x = 1;
        fun inner() { { return x; } }
        return inner;
      }
    """)
    hops = {expr.name.lexeme: d for expr, d in table.items() if isinstance(expr, Variable)}
    assert hops["x"] == 2
    assert hops["inner"] == 0

  def test_identical_references_are_distinct_keys(self):
    table, _ = resolve("{ var a = 1; print a; { print a; } }")
    assert sorted(table.values()) == [0, 1]

  def test_assignment_is_resolved(self):
    table, _ = resolve("{ var a; a = 2; print a; }")
    assert any(isinstance(expr, Assign) and d == 0 for expr, d in table.items())

  def test_this_and_super_hops(self):
    table, _ = resolve("""
      class A { hi() { return 1; } }
      class B extends A {
        hi() { return super.hi() + this.x; }
      }
    """)
    supers = [d for expr, d in table.items() if isinstance(expr, Super)]
    thises = [d for expr, d in table.items() if isinstance(expr, This)]
    assert supers == [2]
    assert thises == [1]

  def test_for_initializer_has_its_own_frame(self):
    table, _ = resolve("for (var i = 0; i < 2; i = i + 1) { print i; }")
    assert sorted(table.values()) == [0, 0, 0, 1]


class TestStaticErrors:
  """Test the errors that withhold execution"""

  def test_duplicate_local_declaration(self):
    _, reporter = resolve("{ var a = 1; var a = 2; print a; }")
    assert messages(reporter) == ["Already declared a variable with this name in this scope."]

  def test_global_redeclaration_is_allowed(self):
    _, reporter = resolve("var a = 1; var a = 2;")
    assert not reporter.had_error

  def test_read_in_own_initializer(self):
    _, reporter = resolve("var a = 1; { var a = a; }")
    assert "Cannot read local variable in its own initializer." in messages(reporter)

  def test_break_outside_loop(self):
    _, reporter = resolve("break;")
    assert messages(reporter) == ["Cannot 'break' outside of loop."]

  def test_continue_inside_function_inside_loop(self):
    _, reporter = resolve("while (true) { fun f() { continue; } f(); }")
    assert messages(reporter) == ["Cannot 'continue' outside of loop."]

  def test_loop_jumps_inside_loops_are_fine(self):
    _, reporter = resolve("while (true) { if (true) break; else continue; }")
    assert not reporter.had_error

  def test_top_level_return(self):
    _, reporter = resolve("return 1;")
    assert messages(reporter) == ["Cannot return from top-level code."]

  def test_value_returned_from_initializer(self):
    _, reporter = resolve("class A { init() { return 1; } }")
    assert messages(reporter) == ["Cannot return a value from an initializer."]

  def test_bare_return_in_initializer_is_fine(self):
    _, reporter = resolve("class A { init() { return; } }")
    assert not reporter.had_error

  def test_this_outside_class(self):
    _, reporter = resolve("print this;")
    assert messages(reporter) == ["Cannot use 'this' outside of a class."]

  def test_super_without_superclass(self):
    _, reporter = resolve("class A { f() { return super.f(); } }")
    assert messages(reporter) == ["Cannot use 'super' in a class with no superclass."]

  def test_super_outside_class(self):
    _, reporter = resolve("fun f() { return super.g; }")
    assert messages(reporter) == ["Cannot use 'super' outside of a class."]

  def test_class_extending_itself(self):
    _, reporter = resolve("class A extends A {}")
    assert messages(reporter) == ["A class can't inherit from itself."]

  def test_static_or_getter_init(self):
    _, reporter = resolve("class A { class init() {} } class B { init {} }")
    assert messages(reporter) == [
        "Can't declare 'init' as a static method.",
        "Can't declare 'init' as a getter.",
    ]

  def test_all_errors_are_collected(self):
    _, reporter = resolve("break; return; print this;")
    assert len(reporter.errors) == 3


class TestWarnings:

  def test_unused_local_variable_warns(self):
    _, reporter = resolve("{ var unused = 1; }")
    assert not reporter.had_error
    assert [w['message'] for w in reporter.warnings] == ["Unused variable."]
    assert reporter.warnings[0]['where'] == " at 'unused'"

  def test_unused_parameter_does_not_warn(self):
    _, reporter = resolve("fun f(a) { return 1; }")
    assert reporter.warnings == []

  def test_debug_resolver_traces(self, capsys):
    reporter = ErrorReporter(echo=False)
    statements = create_parser(reporter).parse_string("{ var a = 1; print a; }")
    LoxResolver(reporter, debug=True).resolve(statements)
    assert "resolved 0 frame(s) out" in capsys.readouterr().out
