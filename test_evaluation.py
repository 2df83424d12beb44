"""
Tests for evaluation, button functions and the error display.

Run with: pytest test_evaluation.py -v
"""
import threading

import pytest

import config
from calculator import (
    ExpressionEditor,
    LastAction,
    UnaryFunctionKind,
    apply_unary,
    DomainFailure,
    factorial_of,
)
from conftest import RecordingEvaluator
from evaluator import EvaluationFailure
from scheduler import ThreadingScheduler


@pytest.fixture
def stub_evaluator():
    return RecordingEvaluator(result=0.5)


@pytest.fixture
def stub_editor(stub_evaluator, presenter, scheduler):
    return ExpressionEditor(evaluator=stub_evaluator, presenter=presenter, scheduler=scheduler)


class TestEvaluate:
    """Tests for evaluate()."""

    def test_simple_sum(self, editor, presenter, type_text):
        """Should show the result and record it in history."""
        type_text(editor, "2+2")
        editor.evaluate()
        assert editor.display_text == "4"
        assert editor.state.last_result == 4
        assert editor.state.last_action is LastAction.EVAL
        assert presenter.history == [("2+2", 4.0)]

    def test_strips_trailing_operator(self, editor, type_text):
        """Should ignore a dangling operator."""
        type_text(editor, "2+3*")
        editor.evaluate()
        assert editor.display_text == "5"

    def test_non_integer_result(self, editor, type_text):
        """Should show fractional results in full."""
        type_text(editor, "1/4")
        editor.evaluate()
        assert editor.display_text == "0.25"

    def test_small_result_takes_no_second_point(self, stub_editor, stub_evaluator, type_text):
        """Should show small results in plain notation so '.' is ignored."""
        stub_evaluator.result = 1e-05
        type_text(stub_editor, "1/100000")
        stub_editor.evaluate()
        assert stub_editor.display_text == "0.00001"

        stub_editor.append_decimal_point()
        assert stub_editor.display_text == "0.00001"

    def test_auto_closes_and_adds_degrees(self, stub_editor, stub_evaluator, presenter, type_text):
        """Should close open calls and mark trig arguments with the angle unit."""
        stub_editor.append_function("sin")
        type_text(stub_editor, "30")
        stub_editor.evaluate()

        assert stub_evaluator.received == ["sin(30 deg)"]
        assert stub_editor.display_text == "0.5"
        assert stub_editor.state.open_paren_count == 0
        assert stub_editor.state.last_action is LastAction.EVAL
        assert presenter.history == [("sin(30", 0.5)]

    def test_sin_30_degrees(self, editor, type_text):
        """Should evaluate trig functions in degrees by default."""
        editor.append_function("sin")
        type_text(editor, "30")
        editor.evaluate()
        assert editor.display_text == "0.5"
        assert editor.history.get_calculation_history()[0].expression == "sin(30"

    def test_radians_mode(self, stub_editor, stub_evaluator, type_text):
        """Should pass the radian unit after toggling."""
        stub_editor.toggle_angle_mode()
        stub_editor.append_function("cos")
        type_text(stub_editor, "0")
        stub_editor.evaluate()
        assert stub_evaluator.received == ["cos(0 rad)"]

    def test_nested_calls(self, stub_editor, stub_evaluator, type_text):
        """Should suffix inner calls before the outer one."""
        stub_editor.append_function("sin")
        stub_editor.append_function("cos")
        type_text(stub_editor, "60)*(1+2")
        stub_editor.evaluate()
        assert stub_evaluator.received == ["sin(cos(60 deg)*(1+2) deg)"]

    def test_history_keeps_last_twenty(self, editor, type_text):
        """Should evict the oldest entries past the limit."""
        for n in range(25):
            editor.clear()
            type_text(editor, f"{n}+1")
            editor.evaluate()
        history = editor.history.get_calculation_history()
        assert len(history) == config.MAX_HISTORY_ITEMS
        assert history[0].expression == "24+1"
        assert history[-1].expression == "5+1"


class TestFrozenErrorState:
    """Tests for the timed error display."""

    def test_division_by_zero_freezes(self, editor, presenter, scheduler, type_text):
        """Should show Error, refuse input, then recover after the delay."""
        type_text(editor, "1/0")
        editor.evaluate()
        assert editor.state.frozen
        assert editor.display_text == config.ERROR_TEXT
        assert presenter.history == []
        assert scheduler.pending[0].delay == config.ERROR_RESET_DELAY

        editor.append_digit("5")
        editor.append_operator("+")
        editor.append_function("sin")
        editor.clear()
        editor.evaluate()
        assert editor.display_text == config.ERROR_TEXT

        scheduler.advance()
        assert not editor.state.frozen
        assert editor.display_text == "0"
        assert presenter.displays[-2:] == [config.ERROR_TEXT, "0"]

        editor.append_digit("5")
        assert editor.display_text == "5"

    def test_evaluator_failure_freezes(self, stub_editor, stub_evaluator, type_text):
        """Should freeze when the evaluator rejects the text."""
        stub_evaluator.result = EvaluationFailure("nope")
        type_text(stub_editor, "2")
        stub_editor.evaluate()
        assert stub_editor.state.frozen
        assert stub_editor.display_text == config.ERROR_TEXT

    def test_recovery_resets_open_brackets(self, editor, scheduler, type_text):
        """Should forget brackets belonging to the failed expression."""
        type_text(editor, "(")
        editor.append_function("sqrt")
        type_text(editor, "0-1")
        editor.apply_unary_function(UnaryFunctionKind.SQUARE)
        assert editor.state.frozen
        scheduler.advance()
        assert editor.state.open_paren_count == 0

    def test_close_cancels_recovery(self, editor, scheduler, type_text):
        """Should cancel the pending timer and ignore a late callback."""
        type_text(editor, "1/0")
        editor.evaluate()
        timer = scheduler.pending[0]
        editor.close()
        assert timer.cancelled

        timer.callback()
        assert editor.state.frozen
        assert editor.display_text == config.ERROR_TEXT

    def test_stale_timer_is_ignored(self, editor, scheduler, type_text):
        """Should only let the current recovery timer unfreeze."""
        type_text(editor, "1/0")
        editor.evaluate()
        first = scheduler.pending[0]
        scheduler.advance()

        type_text(editor, "1/0")
        editor.evaluate()
        first.callback()
        assert editor.state.frozen

        scheduler.advance()
        assert not editor.state.frozen


class TestUnaryFunctions:
    """Tests for apply_unary_function()."""

    @pytest.mark.parametrize("typed, kind, expected", [
        ("3", UnaryFunctionKind.SQUARE, "9"),
        ("4", UnaryFunctionKind.RECIPROCAL, "0.25"),
        ("16", UnaryFunctionKind.SQRT, "4"),
        ("2", UnaryFunctionKind.TEN_POWER, "100"),
        ("2.5", UnaryFunctionKind.FLOOR, "2"),
        ("2.5", UnaryFunctionKind.CEIL, "3"),
        ("0-3", UnaryFunctionKind.ABS, "3"),
        ("1+2+", UnaryFunctionKind.SQUARE, "9"),
    ])
    def test_applies_function(self, editor, presenter, type_text, typed, kind, expected):
        type_text(editor, typed)
        editor.apply_unary_function(kind)
        assert editor.display_text == expected
        assert editor.state.last_action is LastAction.EVAL
        assert presenter.history == []

    def test_accepts_kind_name(self, editor, type_text):
        """Should accept the button id as well as the enum."""
        type_text(editor, "5")
        editor.apply_unary_function("square")
        assert editor.display_text == "25"

    def test_rejects_unknown_kind(self, editor):
        """Should only accept the closed set of kinds."""
        with pytest.raises(ValueError):
            editor.apply_unary_function("cube")

    @pytest.mark.parametrize("typed, kind", [
        ("0", UnaryFunctionKind.RECIPROCAL),
        ("0-4", UnaryFunctionKind.SQRT),
        ("400", UnaryFunctionKind.TEN_POWER),
    ])
    def test_domain_errors_freeze(self, editor, type_text, typed, kind):
        type_text(editor, typed)
        editor.apply_unary_function(kind)
        assert editor.state.frozen
        assert editor.display_text == config.ERROR_TEXT

    def test_domain_checks(self):
        """Should raise DomainFailure for disallowed operands."""
        with pytest.raises(DomainFailure):
            apply_unary(UnaryFunctionKind.RECIPROCAL, 0.0)
        with pytest.raises(DomainFailure):
            apply_unary(UnaryFunctionKind.SQRT, -1.0)
        with pytest.raises(EvaluationFailure):
            apply_unary(UnaryFunctionKind.SQUARE, 1e200)


class TestFactorial:
    """Tests for factorial()."""

    def test_factorial(self, editor, presenter, type_text):
        """Should replace the expression with its factorial."""
        type_text(editor, "2+3")
        editor.factorial()
        assert editor.display_text == "120"
        assert editor.state.last_result == 120
        assert presenter.history == []

    def test_zero_factorial(self, editor):
        """Should treat 0! as 1."""
        editor.factorial()
        assert editor.display_text == "1"

    @pytest.mark.parametrize("typed", ["2.5", "0-1", "171"])
    def test_invalid_operands_freeze(self, editor, type_text, typed):
        type_text(editor, typed)
        editor.factorial()
        assert editor.state.frozen
        assert editor.display_text == config.ERROR_TEXT

    def test_factorial_checks(self):
        """Should raise DomainFailure for negatives and fractions."""
        assert factorial_of(5.0) == 120.0
        with pytest.raises(DomainFailure):
            factorial_of(-1.0)
        with pytest.raises(DomainFailure):
            factorial_of(1.5)
        with pytest.raises(EvaluationFailure):
            factorial_of(171.0)


class TestThreadedRecovery:
    """Tests for recovery timers firing on another thread."""

    def test_recovery_waits_for_running_operation(self, editor, scheduler, type_text):
        """Should not unfreeze while another caller holds the editor."""
        type_text(editor, "1/0")
        editor.evaluate()
        timer = scheduler.pending[0]

        with editor.lock:
            worker = threading.Thread(target=timer.callback)
            worker.start()
            worker.join(timeout=0.2)
            assert worker.is_alive()
            assert editor.state.frozen
            assert editor.display_text == config.ERROR_TEXT

        worker.join(timeout=5)
        assert not worker.is_alive()
        assert not editor.state.frozen
        assert editor.display_text == "0"

    def test_keystroke_after_recovery_is_kept(self, editor, scheduler, type_text):
        """Should apply input after the whole recovery, never in between."""
        type_text(editor, "1/0")
        editor.evaluate()
        timer = scheduler.pending[0]

        worker = threading.Thread(target=timer.callback)
        with editor.lock:
            worker.start()
        worker.join(timeout=5)
        editor.append_digit("5")
        assert editor.display_text == "5"

    def test_threading_scheduler_recovers(self, presenter, monkeypatch):
        """Should recover on the default background timer."""
        monkeypatch.setattr(config, "ERROR_RESET_DELAY", 0.01)
        recovered = threading.Event()

        class Watcher(type(presenter)):
            def on_display_changed(self, text):
                super().on_display_changed(text)
                if text == "0" and config.ERROR_TEXT in self.displays:
                    recovered.set()

        editor = ExpressionEditor(presenter=Watcher(), scheduler=ThreadingScheduler())
        editor.append_digit("1")
        editor.append_operator("/")
        editor.append_digit("0")
        editor.evaluate()
        assert editor.state.frozen

        assert recovered.wait(timeout=5)
        with editor.lock:
            assert not editor.state.frozen
            assert editor.display_text == "0"
        editor.close()
