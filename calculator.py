"""
Calculator Engine for SciCal
Builds the expression text from button presses and drives evaluation
"""
import functools
import math
import random
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import config
from evaluator import CalculatorError, EvaluationFailure, Evaluator, add_angle_units, format_number
from history_manager import HistoryManager
from logging_config import get_logger
from scheduler import ThreadingScheduler

logger = get_logger("calculator")

# 171! no longer fits in a float
MAX_FACTORIAL = 170


class SyntaxRejection(CalculatorError):
    """Input refused outright; nothing was changed"""


class DomainFailure(CalculatorError):
    """Operand outside the domain of the requested function"""


class LastAction(Enum):
    NONE = "none"
    DIGIT = "digit"
    OPERATOR = "operator"
    EVAL = "eval"


class AngleMode(Enum):
    DEGREES = "deg"
    RADIANS = "rad"


class UnaryFunctionKind(Enum):
    SQUARE = "square"
    RECIPROCAL = "reciprocal"
    SQRT = "sqrt"
    TEN_POWER = "tenPower"
    FLOOR = "floor"
    CEIL = "ceil"
    ABS = "abs"


@dataclass
class EditorState:
    display_text: str = config.ZERO_TEXT
    last_result: Optional[float] = None
    last_action: LastAction = LastAction.NONE
    frozen: bool = False
    open_paren_count: int = 0
    angle_mode: AngleMode = AngleMode(config.DEFAULT_ANGLE_MODE)
    memory_value: str = config.ZERO_TEXT


class Presenter:
    """Receives every outbound notification; the default does nothing."""

    def on_display_changed(self, text):
        pass

    def on_history_entry_added(self, expression, result):
        pass

    def on_memory_changed(self, text):
        pass

    def on_angle_mode_changed(self, mode):
        pass


def apply_unary(kind, value):
    """Apply a one-argument button function to an evaluated operand"""
    try:
        if kind is UnaryFunctionKind.SQUARE:
            result = value ** 2
        elif kind is UnaryFunctionKind.RECIPROCAL:
            if value == 0:
                raise DomainFailure("Reciprocal of zero")
            result = 1 / value
        elif kind is UnaryFunctionKind.SQRT:
            if value < 0:
                raise DomainFailure("Square root of a negative number")
            result = math.sqrt(value)
        elif kind is UnaryFunctionKind.TEN_POWER:
            result = 10.0 ** value
        elif kind is UnaryFunctionKind.FLOOR:
            result = math.floor(value)
        elif kind is UnaryFunctionKind.CEIL:
            result = math.ceil(value)
        elif kind is UnaryFunctionKind.ABS:
            result = abs(value)
        else:
            raise ValueError(f"Unknown function: {kind!r}")
        result = float(result)
    except OverflowError as e:
        raise EvaluationFailure(f"{kind.value}({value}) overflows") from e
    return _require_finite(result)


def factorial_of(value):
    if value < 0 or not float(value).is_integer():
        raise DomainFailure(f"Factorial needs a non-negative integer, got {value}")
    if value > MAX_FACTORIAL:
        raise EvaluationFailure(f"{int(value)}! overflows")
    try:
        result = float(math.factorial(int(value)))
    except OverflowError as e:
        raise EvaluationFailure(f"{int(value)}! overflows") from e
    return _require_finite(result)


def _require_finite(result):
    if not math.isfinite(result):
        raise EvaluationFailure(f"Result {result} is not finite")
    return result


def serialized(method):
    """Run an editor operation under the editor lock"""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.lock:
            return method(self, *args, **kwargs)
    return wrapper


class ExpressionEditor:
    def __init__(self, evaluator=None, presenter=None, scheduler=None,
                 history=None, rng=None):
        self.state = EditorState()
        self.evaluator = evaluator or Evaluator()
        self.presenter = presenter or Presenter()
        self.scheduler = scheduler or ThreadingScheduler()
        self.history = history if history is not None else HistoryManager()
        self.rng = rng or random.Random()
        self._recovery_handle = None
        self._closed = False
        # recovery timers may fire on another thread
        self.lock = threading.RLock()

    # ── Text helpers ──────────────────────────────────────────────────────
    @property
    def display_text(self):
        return self.state.display_text

    def get_current_number(self):
        """Text after the last operator: the number being typed"""
        text = self.state.display_text
        last_operator = max(text.rfind(op) for op in config.OPERATORS)
        return text[last_operator + 1:]

    def should_multiply(self):
        """Whether a new term needs an implicit '*' in front of it"""
        text = self.state.display_text
        return (
            (text[-1:].isdigit() and text != config.ZERO_TEXT)
            or text.endswith(")")
            or text.endswith("pi")
            or text.endswith("e")
        )

    def _ends_with_operator(self, text=None):
        text = self.state.display_text if text is None else text
        return text[-1:] in config.OPERATORS

    def _open_term(self, token):
        """Append a token that starts a new term"""
        state = self.state
        was_zero = state.display_text == config.ZERO_TEXT
        if self.should_multiply():
            state.display_text += "*"
        if was_zero:
            state.display_text = ""
        state.display_text += token

    def _set_display(self, text):
        self.state.display_text = text or config.ZERO_TEXT
        self.presenter.on_display_changed(self.state.display_text)

    def _strip_trailing_operator(self):
        text = self.state.display_text
        if self._ends_with_operator(text):
            text = text[:-1]
        return text

    # ── Token input ───────────────────────────────────────────────────────
    @serialized
    def append_digit(self, digit):
        """Add a digit to the current expression"""
        state = self.state
        if state.frozen:
            return
        digit = str(digit)
        if state.display_text.endswith("pi"):
            state.display_text += "*"

        if state.last_action is LastAction.EVAL and not self._ends_with_operator():
            state.display_text = digit
        elif state.display_text == config.ZERO_TEXT:
            state.display_text = digit
        else:
            state.display_text += digit
        state.last_action = LastAction.DIGIT
        state.last_result = None
        self._set_display(state.display_text)

    @serialized
    def append_operator(self, operator):
        """Add an operator, rewriting any operator already at the end"""
        state = self.state
        if state.frozen:
            return
        if operator not in config.OPERATORS:
            raise ValueError(f"Unknown operator: {operator!r}")
        if state.last_action is LastAction.EVAL:
            state.last_result = None

        text = state.display_text
        if self._ends_with_operator(text):
            last_op = text[-1]
            if operator == "-" and last_op != "-":
                text += operator
            elif last_op == "-" and text[-2:-1] in config.OPERATORS:
                text = text[:-2] + operator
            else:
                text = text[:-1] + operator
        else:
            text += operator
        state.last_action = LastAction.OPERATOR
        self._set_display(text)

    @serialized
    def append_decimal_point(self):
        state = self.state
        if state.frozen:
            return
        current = self.get_current_number()
        if "." in current:
            return
        state.display_text += "0." if current == "" else "."
        self._set_display(state.display_text)

    @serialized
    def append_function(self, name):
        """Open a function call such as sin( or log("""
        state = self.state
        if state.frozen:
            return
        self._open_term(f"{name}(")
        state.open_paren_count += 1
        self._set_display(state.display_text)

    @serialized
    def append_open_paren(self):
        state = self.state
        if state.frozen:
            return
        self._open_term("(")
        state.open_paren_count += 1
        self._set_display(state.display_text)

    @serialized
    def append_close_paren(self):
        state = self.state
        if state.frozen:
            return
        if state.open_paren_count <= 0:
            raise SyntaxRejection("Closing bracket not allowed without an opening bracket")
        state.display_text += ")"
        state.open_paren_count -= 1
        self._set_display(state.display_text)

    @serialized
    def append_constant(self, name):
        """Add pi or e"""
        state = self.state
        if state.frozen:
            return
        if name not in ("pi", "e"):
            raise ValueError(f"Unknown constant: {name!r}")
        self._open_term(name)
        self._set_display(state.display_text)

    @serialized
    def append_random(self):
        """Add a random number in [0, 1) as a finished term"""
        state = self.state
        if state.frozen:
            return
        self._open_term(repr(self.rng.random()))
        state.last_action = LastAction.EVAL
        self._set_display(state.display_text)

    @serialized
    def backspace(self):
        """Clear last entry"""
        state = self.state
        if state.frozen:
            return
        text = state.display_text
        if len(text) <= 1 or text == config.ZERO_TEXT:
            text = config.ZERO_TEXT
        else:
            removed = text[-1]
            text = text[:-1]
            if removed == "(":
                state.open_paren_count = max(state.open_paren_count - 1, 0)
            elif removed == ")":
                state.open_paren_count += 1
        if text == config.ZERO_TEXT:
            state.open_paren_count = 0
        self._set_display(text)

    @serialized
    def clear(self):
        """Clear current expression"""
        state = self.state
        if state.frozen:
            return
        state.last_result = None
        state.last_action = LastAction.NONE
        state.open_paren_count = 0
        self._set_display(config.ZERO_TEXT)

    @serialized
    def toggle_angle_mode(self):
        state = self.state
        if state.frozen:
            return
        if state.angle_mode is AngleMode.DEGREES:
            state.angle_mode = AngleMode.RADIANS
        else:
            state.angle_mode = AngleMode.DEGREES
        self.presenter.on_angle_mode_changed(state.angle_mode)

    # ── Evaluation ────────────────────────────────────────────────────────
    def _evaluate_text(self, expression):
        rewritten = add_angle_units(expression, self.state.angle_mode.value)
        logger.debug("Evaluating %r", rewritten)
        return self.evaluator.evaluate(rewritten)

    def _show_result(self, result):
        state = self.state
        state.last_result = result
        state.last_action = LastAction.EVAL
        self._set_display(format_number(result))

    @serialized
    def evaluate(self):
        """Evaluate the current expression"""
        state = self.state
        if state.frozen:
            return
        expression = self._strip_trailing_operator()
        closed = expression
        if state.open_paren_count > 0:
            closed += ")" * state.open_paren_count
            state.open_paren_count = 0

        try:
            result = self._evaluate_text(closed)
        except EvaluationFailure as e:
            self._fail(e)
            return

        self._show_result(result)
        entry = self.history.add_calculation(expression, result)
        self.presenter.on_history_entry_added(entry.expression, entry.result)

    @serialized
    def apply_unary_function(self, kind):
        """Evaluate the expression, then apply square/reciprocal/sqrt/..."""
        state = self.state
        if state.frozen:
            return
        kind = UnaryFunctionKind(kind)
        try:
            result = apply_unary(kind, self._evaluate_text(self._strip_trailing_operator()))
        except (EvaluationFailure, DomainFailure) as e:
            self._fail(e)
            return
        state.open_paren_count = 0
        self._show_result(result)

    @serialized
    def factorial(self):
        """Evaluate the expression, then take its factorial"""
        state = self.state
        if state.frozen:
            return
        try:
            result = factorial_of(self._evaluate_text(self._strip_trailing_operator()))
        except (EvaluationFailure, DomainFailure) as e:
            self._fail(e)
            return
        state.open_paren_count = 0
        self._show_result(result)

    # ── Frozen error state ────────────────────────────────────────────────
    def _fail(self, error):
        logger.warning("Calculation failed: %s", error)
        state = self.state
        state.frozen = True
        self._set_display(config.ERROR_TEXT)

        handle = None

        def recover():
            with self.lock:
                if self._closed or self._recovery_handle is not handle:
                    return
                self._recovery_handle = None
                state.frozen = False
                state.open_paren_count = 0
                logger.debug("Recovered from error display")
                self._set_display(config.ZERO_TEXT)

        handle = self.scheduler.call_later(config.ERROR_RESET_DELAY, recover)
        self._recovery_handle = handle

    @serialized
    def close(self):
        """Cancel any pending error recovery"""
        self._closed = True
        if self._recovery_handle is not None:
            self._recovery_handle.cancel()
            self._recovery_handle = None

    # ── Memory register ───────────────────────────────────────────────────
    @serialized
    def memory_store(self):
        """Evaluate and store the result (MS)"""
        state = self.state
        if state.frozen:
            return
        self.evaluate()
        if state.frozen:
            return
        state.memory_value = state.display_text
        self.presenter.on_memory_changed(state.memory_value)
        state.last_result = None
        state.last_action = LastAction.OPERATOR
        self._set_display(config.ZERO_TEXT)

    @serialized
    def memory_recall(self):
        """Recall memory value (MR)"""
        state = self.state
        if state.frozen or state.memory_value == config.ZERO_TEXT:
            return
        if state.display_text in (config.ZERO_TEXT, state.memory_value):
            self._set_display(state.memory_value)
            return
        if self.should_multiply():
            state.display_text += "*"
        self._set_display(state.display_text + state.memory_value)

    @serialized
    def memory_add(self):
        """Add memory value to the evaluated expression (M+)"""
        self._memory_combine("+")

    @serialized
    def memory_subtract(self):
        """Subtract memory value from the evaluated expression (M-)"""
        self._memory_combine("-")

    def _memory_combine(self, operator):
        state = self.state
        if state.frozen or state.memory_value == config.ZERO_TEXT:
            return
        self.evaluate()
        if state.frozen:
            return
        state.display_text = f"{state.display_text}{operator}{state.memory_value}"
        self.evaluate()

    @serialized
    def memory_clear(self):
        """Clear memory (MC)"""
        state = self.state
        if state.frozen:
            return
        state.memory_value = config.ZERO_TEXT
        self.presenter.on_memory_changed(state.memory_value)
