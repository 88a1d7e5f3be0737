"""
Test configuration for the Lox interpreter tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from error_handling import ErrorReporter
from main import run_source


@pytest.fixture
def run_lox(capsys):
  """Run a whole program; returns (exit status, stdout, stderr)"""
  def _run(source):
    status = run_source(source, reporter=ErrorReporter(source))
    captured = capsys.readouterr()
    return status, captured.out, captured.err
  return _run


@pytest.fixture
def output_of(run_lox):
  """Run a program that must succeed and return its stdout lines"""
  def _output(source):
    status, out, err = run_lox(source)
    assert status == 0, err
    return out.splitlines()
  return _output
