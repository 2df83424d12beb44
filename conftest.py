"""
Shared fixtures for the SciCal tests.

Run with: pytest -v
"""
import random

import pytest

from calculator import ExpressionEditor, Presenter


class ManualTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Collects timers; tests fire them explicitly with advance()."""

    def __init__(self):
        self.timers = []

    def call_later(self, delay, callback):
        timer = ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self):
        for timer in self.pending:
            timer.fired = True
            timer.callback()


class RecordingPresenter(Presenter):
    def __init__(self):
        self.displays = []
        self.history = []
        self.memory = []
        self.angle_modes = []

    def on_display_changed(self, text):
        self.displays.append(text)

    def on_history_entry_added(self, expression, result):
        self.history.append((expression, result))

    def on_memory_changed(self, text):
        self.memory.append(text)

    def on_angle_mode_changed(self, mode):
        self.angle_modes.append(mode)


class RecordingEvaluator:
    """Returns canned results and remembers what it was asked."""

    def __init__(self, result=0.0):
        self.result = result
        self.received = []

    def evaluate(self, expression):
        self.received.append(expression)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def editor(presenter, scheduler):
    return ExpressionEditor(presenter=presenter, scheduler=scheduler, rng=random.Random(1234))


@pytest.fixture
def type_text():
    """Feed a string of keypad characters into an editor."""

    def _type(editor, text):
        for char in text:
            if char.isdigit():
                editor.append_digit(char)
            elif char in "+-*/":
                editor.append_operator(char)
            elif char == ".":
                editor.append_decimal_point()
            elif char == "(":
                editor.append_open_paren()
            elif char == ")":
                editor.append_close_paren()
            else:
                raise ValueError(f"No key for {char!r}")
        return editor.display_text

    return _type
