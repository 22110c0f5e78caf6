"""Compile equation text into a numeric slope function f(x, y).

SymPy parses and lambdify() builds a NumPy callable. Evaluation runs on
numpy.float64 scalars with floating point warnings silenced, so 1/0, log(-1)
and overflow come back as inf/nan data instead of exceptions.
"""
import logging
import math
import re
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import numpy as np
import sympy as sp
from sympy.core.function import AppliedUndef
from sympy.parsing.sympy_parser import (
    parse_expr, standard_transformations, convert_xor
)

from slopefield.errors import ExpressionError
from slopefield.normalize import normalize, validate_characters

logger = logging.getLogger(__name__)

x, y = sp.symbols('x y')

TRANSFORMATIONS = standard_transformations + (convert_xor,)

_LOCALS = {
    'x': x, 'y': y,
    'sin': sp.sin, 'cos': sp.cos, 'tan': sp.tan,
    'sec': sp.sec, 'csc': sp.csc, 'cot': sp.cot,
    'asin': sp.asin, 'acos': sp.acos, 'atan': sp.atan,
    'sinh': sp.sinh, 'cosh': sp.cosh, 'tanh': sp.tanh,
    'asinh': sp.asinh, 'acosh': sp.acosh, 'atanh': sp.atanh,
    'exp': sp.exp, 'log': sp.log, 'ln': sp.log, 'sqrt': sp.sqrt,
    'pi': sp.pi, 'e': sp.E, 'E': sp.E,
}

# numpy has no reciprocal trig functions
_NUMPY_EXTRAS = {
    'sec': lambda v: 1 / np.cos(v),
    'csc': lambda v: 1 / np.sin(v),
    'cot': lambda v: 1 / np.tan(v),
}

_NUMBER = re.compile(r'(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')
_IDENTIFIER = re.compile(r'[A-Za-z_]\w*')
_ATTRIBUTE = re.compile(r'\.\s*[A-Za-z_]')

_FLOAT_MAX = sys.float_info.max


# ---------------- Slope classification ----------------

class SlopeKind(Enum):
    FINITE = 'finite'
    POSITIVE_VERTICAL = 'positive_vertical'
    NEGATIVE_VERTICAL = 'negative_vertical'
    UNDEFINED = 'undefined'


@dataclass(frozen=True)
class Slope:
    kind: SlopeKind
    value: float

    @classmethod
    def undefined(cls) -> "Slope":
        return cls(SlopeKind.UNDEFINED, math.nan)

    @property
    def is_finite(self) -> bool:
        return self.kind is SlopeKind.FINITE

    @property
    def is_vertical(self) -> bool:
        return self.kind in (SlopeKind.POSITIVE_VERTICAL, SlopeKind.NEGATIVE_VERTICAL)

    @property
    def sign(self) -> int:
        """+1/-1 for vertical slopes, sign of the value for finite ones, 0 when undefined."""
        if self.kind is SlopeKind.POSITIVE_VERTICAL:
            return 1
        if self.kind is SlopeKind.NEGATIVE_VERTICAL:
            return -1
        if self.kind is SlopeKind.FINITE:
            return (self.value > 0) - (self.value < 0)
        return 0


def classify_slope(value: float) -> Slope:
    if math.isnan(value):
        return Slope.undefined()
    if value == math.inf:
        return Slope(SlopeKind.POSITIVE_VERTICAL, value)
    if value == -math.inf:
        return Slope(SlopeKind.NEGATIVE_VERTICAL, value)
    return Slope(SlopeKind.FINITE, value)


# ---------------- Compilation ----------------

def _as_real(value) -> float:
    if isinstance(value, (complex, np.complexfloating)):
        return float(value.real) if value.imag == 0 else math.nan
    try:
        return float(value)
    except OverflowError:
        # Python int past the float range
        return math.inf if value > 0 else -math.inf


def _signed_infinities(expr: sp.Expr) -> sp.Expr:
    """Turn zoo (1/0, log(0)) and out-of-range rationals into oo or -oo.

    NumPy has no complex infinity, and 10**400 would overflow on every call.
    """
    subs = {sp.zoo: sp.oo}
    for n in expr.atoms(sp.Rational):
        if abs(n) > _FLOAT_MAX:
            subs[n] = sp.oo if n > 0 else -sp.oo
    return expr.xreplace(subs)


class SlopeFunction:
    """Pure callable f(x, y) -> float for one compiled equation."""

    def __init__(self, text: str, expr: sp.Expr, fn: Callable):
        self.text = text
        self.expr = expr
        self._fn = fn

    def __call__(self, px: float, py: float) -> float:
        with np.errstate(all='ignore'):
            return _as_real(self._fn(np.float64(px), np.float64(py)))

    def latex(self) -> str:
        return sp.latex(self.expr)

    def __repr__(self):
        return f"SlopeFunction({self.text!r})"


def _check_identifiers(text: str):
    if _ATTRIBUTE.search(text):
        raise ExpressionError("Attribute access is not allowed", text)
    for name in _IDENTIFIER.findall(_NUMBER.sub(' ', text)):
        if name not in _LOCALS:
            raise ExpressionError(f"Unknown name {name!r}", text)


def compile_slope(normalized: str) -> SlopeFunction:
    """Parse normalized text and build the numeric slope function.

    Raises ExpressionError for empty text, bad syntax, unknown names or
    anything that does not parse to a plain expression in x and y.
    """
    if not normalized.strip():
        raise ExpressionError("Empty expression", normalized)
    _check_identifiers(normalized)
    try:
        expr = parse_expr(normalized, local_dict=dict(_LOCALS), transformations=TRANSFORMATIONS)
    except Exception as e:
        raise ExpressionError(f"Could not parse {normalized!r}: {e}", normalized) from e

    if not isinstance(expr, sp.Expr):
        raise ExpressionError(f"Not an expression: {normalized!r}", normalized)
    if expr.atoms(AppliedUndef) or not expr.free_symbols <= {x, y}:
        raise ExpressionError(f"Unknown names in {normalized!r}", normalized)
    expr = _signed_infinities(expr)

    try:
        fn = sp.lambdify((x, y), expr, modules=[_NUMPY_EXTRAS, 'numpy'])
    except Exception as e:
        raise ExpressionError(f"Could not compile {normalized!r}: {e}", normalized) from e
    logger.debug("compiled %r -> %s", normalized, expr)
    return SlopeFunction(normalized, expr, fn)


def compile_equation(raw: str) -> SlopeFunction:
    """Validate, normalize and compile text typed by the player.

    Blank text means the zero field.
    """
    text = raw.strip() or '0'
    validate_characters(text)
    return compile_slope(normalize(text))


def evaluate_slope(f: Callable[[float, float], float], px: float, py: float) -> Slope:
    """Evaluate f and classify the result; a raised error counts as undefined."""
    try:
        value = float(f(px, py))
    except Exception:
        return Slope.undefined()
    return classify_slope(value)
