"""Tests for filterbox.rich_utils console helpers."""

import pytest
from filterbox import rich_utils
from filterbox.serialization import SerializationError
from filterbox.types import ValidationError, ValidationResult, ValidationWarning


def test_print_status_success(capsys: pytest.CaptureFixture[str]) -> None:
    """Test success messages go to stdout."""
    rich_utils.print_status("All good", "success")

    assert "All good" in capsys.readouterr().out


def test_print_status_error_goes_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    """Test error messages go to stderr."""
    rich_utils.print_status("Broken", "error")

    captured = capsys.readouterr()
    assert "Broken" in captured.err
    assert captured.out == ""


def test_print_status_escapes_markup(capsys: pytest.CaptureFixture[str]) -> None:
    """Test messages containing brackets are printed literally."""
    rich_utils.print_status("value [/red] kept", "info")

    assert "value [/red] kept" in capsys.readouterr().out


def test_print_validation_result_valid(capsys: pytest.CaptureFixture[str]) -> None:
    """Test a clean result prints a success line."""
    rich_utils.print_validation_result(ValidationResult())

    assert "Filter is valid" in capsys.readouterr().out


def test_print_validation_result_table(capsys: pytest.CaptureFixture[str]) -> None:
    """Test errors and warnings are printed as table rows."""
    result = ValidationResult(
        errors=[ValidationError(type="field", message="bad", expression_index=0, field="a")],
        warnings=[ValidationWarning(message="meh")],
    )

    rich_utils.print_validation_result(result)

    out = capsys.readouterr().out
    assert "error" in out
    assert "warning" in out
    assert "bad" in out


def test_print_serialization_errors(capsys: pytest.CaptureFixture[str]) -> None:
    """Test skipped entries are reported on stderr."""
    rich_utils.print_serialization_errors(
        [SerializationError(index=2, message="Unknown field: x"), SerializationError(None, "oops")]
    )

    err = capsys.readouterr().err
    assert "Skipped entry 2: Unknown field: x" in err
    assert "Skipped input: oops" in err
