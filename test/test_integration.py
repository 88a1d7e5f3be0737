"""
Integration tests for the pylox command line and REPL
"""

import sys
import pytest
from error_handling import ErrorReporter
from interpreter import create_interpreter, create_debug_interpreter
from main import (
    main, run_script_file, parse_file, analyze_file, run_repl_line,
    EXIT_OK, EXIT_USAGE, EXIT_DATAERR, EXIT_NOINPUT, EXIT_SOFTWARE
)


def write_script(tmp_path, source, filename="script.lox"):
  path = tmp_path / filename
  path.write_text(source, encoding="utf-8")
  return str(path)


class TestScriptExitCodes:
  """Test batch mode exit statuses"""

  def test_successful_run(self, tmp_path, capsys):
    path = write_script(tmp_path, 'print "hello";')
    assert run_script_file(path) == EXIT_OK
    assert capsys.readouterr().out == "hello\n"

  def test_lexical_error_is_static(self, tmp_path, capsys):
    path = write_script(tmp_path, 'print 1;\n\n\n"unterminated\nprint 2;\n')
    assert run_script_file(path) == EXIT_DATAERR
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[line 4] Error: Unterminated string." in captured.err

  def test_parse_error_is_static(self, tmp_path, capsys):
    path = write_script(tmp_path, "var = 3;")
    assert run_script_file(path) == EXIT_DATAERR
    assert "[line 1] Error at '=': Expect variable name." in capsys.readouterr().err

  def test_resolve_error_withholds_execution(self, tmp_path, capsys):
    path = write_script(tmp_path, 'print "before";\n{ var x = 1; var x = 2; }')
    assert run_script_file(path) == EXIT_DATAERR
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Already declared a variable with this name in this scope." in captured.err

  def test_warning_does_not_fail(self, tmp_path, capsys):
    path = write_script(tmp_path, "{ var idle = 1; }")
    assert run_script_file(path) == EXIT_OK
    assert "Warning at 'idle': Unused variable." in capsys.readouterr().err

  def test_runtime_error(self, tmp_path, capsys):
    path = write_script(tmp_path, "print 1;\nprint -\"x\";\nprint 3;")
    assert run_script_file(path) == EXIT_SOFTWARE
    captured = capsys.readouterr()
    assert captured.out == "1\n"
    assert "Operand must be a number.\n[line 2]" in captured.err

  def test_infinite_remainder_is_not_a_crash(self, tmp_path, capsys):
    path = write_script(tmp_path, "print (2 ** 2000) % 2;\nprint 3;")
    assert run_script_file(path) == EXIT_OK
    assert capsys.readouterr().out == "NaN\n3\n"

  def test_missing_file(self, tmp_path, capsys):
    assert run_script_file(str(tmp_path / "missing.lox")) == EXIT_NOINPUT
    assert "not found" in capsys.readouterr().err

  def test_context_lines(self, tmp_path, capsys):
    path = write_script(tmp_path, "var a = 1;\nvar = 2;\n")
    assert run_script_file(path, show_context=True) == EXIT_DATAERR
    err = capsys.readouterr().err
    assert "   2: var = 2;" in err
    assert "^ here" in err


class TestCommandLine:
  """Test main() argument handling"""

  def test_runs_script(self, tmp_path, monkeypatch, capsys):
    path = write_script(tmp_path, "print 6 * 7;")
    monkeypatch.setattr(sys, "argv", ["pylox", path])
    with pytest.raises(SystemExit) as exit_info:
      main()
    assert exit_info.value.code == EXIT_OK
    assert capsys.readouterr().out == "42\n"

  def test_too_many_arguments_is_usage_error(self, monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["pylox", "a.lox", "b.lox"])
    with pytest.raises(SystemExit) as exit_info:
      main()
    assert exit_info.value.code == EXIT_USAGE

  def test_runtime_error_status(self, tmp_path, monkeypatch, capsys):
    path = write_script(tmp_path, "nil();")
    monkeypatch.setattr(sys, "argv", ["pylox", path])
    with pytest.raises(SystemExit) as exit_info:
      main()
    assert exit_info.value.code == EXIT_SOFTWARE

  def test_parse_dump(self, tmp_path, capsys):
    path = write_script(tmp_path, "var x = 1;")
    assert parse_file(path) == EXIT_OK
    out = capsys.readouterr().out
    assert "Parsed 1 top-level statements" in out
    assert "Var" in out

  def test_analyze_dump(self, tmp_path, capsys):
    path = write_script(tmp_path, "fun f(a) { return a; }")
    assert analyze_file(path) == EXIT_OK
    out = capsys.readouterr().out
    assert "Resolved 1 local references" in out
    assert "Variable 'a' -> 0 hop(s)" in out


class TestRepl:
  """Test line-at-a-time evaluation with persistent globals"""

  @pytest.fixture
  def session(self):
    reporter = ErrorReporter()
    return create_interpreter(reporter), reporter

  def test_bare_expression_is_printed(self, session, capsys):
    interpreter, reporter = session
    assert run_repl_line("1 + 2", interpreter, reporter)
    assert capsys.readouterr().out == "3\n"

  def test_strings_are_quoted(self, session, capsys):
    interpreter, reporter = session
    run_repl_line('"hi" + "!"', interpreter, reporter)
    assert capsys.readouterr().out == "'hi!'\n"

  def test_globals_persist_across_lines(self, session, capsys):
    interpreter, reporter = session
    run_repl_line("var counter = 10;", interpreter, reporter)
    run_repl_line("fun bump() { counter = counter + 1; return counter; }", interpreter, reporter)
    run_repl_line("bump()", interpreter, reporter)
    assert capsys.readouterr().out == "11\n"

  def test_errors_do_not_end_the_session(self, session, capsys):
    interpreter, reporter = session
    assert not run_repl_line("print undefinedThing;", interpreter, reporter)
    assert not run_repl_line("var = ;", interpreter, reporter)
    assert run_repl_line("print 5;", interpreter, reporter)
    captured = capsys.readouterr()
    assert captured.out == "5\n"
    assert "Undefined variable: undefinedThing." in captured.err
    assert not reporter.had_error

  def test_numeric_edge_cases_keep_the_session(self, session, capsys):
    interpreter, reporter = session
    assert run_repl_line("(2 ** 2000) % 2", interpreter, reporter)
    assert run_repl_line("0 ** -1", interpreter, reporter)
    assert run_repl_line("print 1 << -1;", interpreter, reporter)
    captured = capsys.readouterr()
    assert captured.out == "NaN\nInfinity\n-2147483648\n"
    assert captured.err == ""

  def test_locals_in_later_lines(self, session, capsys):
    interpreter, reporter = session
    run_repl_line("fun make() { var n = 2; return fun () { return n * 21; }; }", interpreter, reporter)
    run_repl_line("make()()", interpreter, reporter)
    assert capsys.readouterr().out == "42\n"

  def test_debug_interpreter_traces(self, capsys):
    reporter = ErrorReporter()
    interpreter = create_debug_interpreter(reporter)
    run_repl_line("print 1;", interpreter, reporter)
    out = capsys.readouterr().out
    assert "Executing: Print" in out
    assert out.endswith("1\n")
