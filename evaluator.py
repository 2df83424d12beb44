"""
Expression Evaluator for SciCal
Turns calculator expression text into a number using SymPy
"""
import math
import re
from decimal import Decimal
from tokenize import NAME, OP

import sympy
from sympy.parsing.sympy_parser import parse_expr, standard_transformations

import config
from logging_config import get_logger

logger = get_logger("evaluator")

ANGLE_UNITS = ("deg", "rad")

_FUNCTION_CALL = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)\s*\(")
_EXPONENT = re.compile(r"e([+-])0*(\d+)")


class CalculatorError(Exception):
    """Base class for every calculator failure"""


class EvaluationFailure(CalculatorError):
    """The expression could not be turned into a finite real number"""


def format_number(value):
    """Canonical display text for a numeric result (4.0 -> '4', 0.5 -> '0.5')"""
    number = float(value)
    if number.is_integer() and abs(number) < 1e21:
        return str(int(number))
    text = repr(number)
    if "e" in text and 1e-6 <= abs(number) < 1e21:
        # plain notation down to 1e-6, exponent form below that
        return format(Decimal(text), "f")
    return _EXPONENT.sub(r"e\1\2", text)


def add_angle_units(expression, unit):
    """Suffix the argument of every trig call with an angle unit.

    Arguments are found by counting parenthesis depth, so nested groups and
    nested calls are handled; inner calls are rewritten before the unit is
    appended to the outer one:

        >>> add_angle_units("sin(30)+cos(sin(60)*(1+2))", "deg")
        'sin(30 deg)+cos(sin(60 deg)*(1+2) deg)'

    A call whose closing parenthesis is missing keeps it missing.
    """
    parts = []
    position = 0
    while True:
        match = _next_trig_call(expression, position)
        if match is None:
            parts.append(expression[position:])
            break

        parts.append(expression[position:match.start()])
        start = match.end()
        depth = 1
        index = start
        while index < len(expression) and depth > 0:
            if expression[index] == "(":
                depth += 1
            elif expression[index] == ")":
                depth -= 1
            index += 1

        if depth == 0:
            inner, closing = expression[start:index - 1], ")"
        else:
            inner, closing = expression[start:], ""

        parts.append(f"{match.group(1)}({add_angle_units(inner.strip(), unit)} {unit}{closing}")
        position = index
    return "".join(parts)


def _next_trig_call(expression, position):
    for match in _FUNCTION_CALL.finditer(expression, position):
        if match.group(1) in config.TRIG_FUNCTIONS:
            return match
    return None


def angle_units(tokens, local_dict, global_dict):
    """SymPy parser transformation for the `name(arg unit)` convention.

    Drops a trailing `deg`/`rad` token from a call's argument and renames the
    call to `name_deg` / `name_rad` so the namespace can pick the right
    conversion.
    """
    result = []
    owners = []
    for index, (toknum, tokval) in enumerate(tokens):
        if toknum == OP and tokval == "(":
            if result and result[-1][0] == NAME:
                owners.append(len(result) - 1)
            else:
                owners.append(None)
        elif toknum == OP and tokval == ")":
            if owners:
                owners.pop()
        elif toknum == NAME and tokval in ANGLE_UNITS:
            following = tokens[index + 1] if index + 1 < len(tokens) else None
            if following == (OP, ")") and owners and owners[-1] is not None:
                owner = owners[-1]
                result[owner] = (NAME, f"{result[owner][1]}_{tokval}")
                continue
        result.append((toknum, tokval))
    return result


TRANSFORMS = (angle_units,) + standard_transformations


def _from_degrees(func):
    return lambda arg: func(arg * sympy.pi / 180)


def _to_degrees(func):
    return lambda arg: func(arg) * 180 / sympy.pi


def build_namespace():
    """Names the expression language understands"""
    namespace = {
        "pi": sympy.pi,
        "e": sympy.E,
        "log": sympy.log,
        "ln": sympy.log,
        "log10": lambda arg: sympy.log(arg, 10),
        "sqrt": sympy.sqrt,
        "exp": sympy.exp,
        "abs": sympy.Abs,
        "floor": sympy.floor,
        "ceil": sympy.ceiling,
    }
    for name in config.TRIG_FUNCTIONS:
        func = getattr(sympy, name)
        namespace[name] = func
        namespace[f"{name}_rad"] = func
        if name.startswith("a"):
            # inverse: the unit names the unit of the result
            namespace[f"{name}_deg"] = _to_degrees(func)
        else:
            namespace[f"{name}_deg"] = _from_degrees(func)
    return namespace


class Evaluator:
    def __init__(self):
        self.namespace = build_namespace()

    def evaluate(self, expression) -> float:
        """Evaluate expression text to a finite real number"""
        try:
            parsed = parse_expr(
                expression,
                local_dict=dict(self.namespace),
                transformations=TRANSFORMS,
            )
            value = sympy.sympify(parsed).evalf(17)
            if not value.is_number or value.is_real is not True:
                raise EvaluationFailure(f"{expression!r} is not a real number: {value}")
            result = float(value)
        except EvaluationFailure:
            raise
        except Exception as e:
            raise EvaluationFailure(f"Cannot evaluate {expression!r}: {e}") from e

        if not math.isfinite(result):
            raise EvaluationFailure(f"{expression!r} is not finite")
        logger.debug("Evaluated %r -> %r", expression, result)
        return result
