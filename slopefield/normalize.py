"""Equation text clean-up: "2x sin y" -> "2*x*sin(y)".

The rewrites run in a fixed order; each stage assumes the implicit
multiplications added by the stages before it. The constants pi and e take
part in implicit multiplication ("2pi", "x e"), except that "1e-3" stays a
number. A single-argument log(...) is base 10 whatever its argument holds.
Overlapping cases (nested ln or log_b arguments, a log subscript that is
itself an expression) are left as typed: a nested ln( is still the natural
log, and the rest is for the compiler to reject.
"""
import re

from slopefield.errors import InputRejected

FUNCTION_NAMES = (
    'sin', 'cos', 'tan', 'sec', 'csc', 'cot',
    'asin', 'acos', 'atan', 'sinh', 'cosh', 'tanh',
    'asinh', 'acosh', 'atanh', 'exp', 'log', 'ln', 'sqrt',
)

_FN = '(?:' + '|'.join(FUNCTION_NAMES) + ')'
_INVALID_CHAR = re.compile(r'[^0-9a-zA-Z_+\-*/^().\s]')

_DIGIT_VAR = re.compile(r'(\d)\s*(?=[xy])', re.I)
_VAR_DIGIT = re.compile(r'([xy])\s*(?=\d)', re.I)
_VAR_VAR = re.compile(r'([xy])\s*(?=[xy])', re.I)
_BEFORE_PAREN = re.compile(r'([0-9xy)])\s*\(', re.I)
_AFTER_PAREN = re.compile(r'\)\s*(?=[0-9xy]|' + _FN + r'\b)', re.I)
_BEFORE_FN = re.compile(r'([0-9xy)])\s*(?=' + _FN + r'\b)', re.I)
# "1e-3" is scientific notation, not 1*e - 3
_BEFORE_CONST = re.compile(r'([0-9xy)])(\s*)(?=(pi|e)\b([+-]\d)?)', re.I)
_AFTER_CONST = re.compile(r'\b(pi|e)\b\s*(?=[0-9xy(]|' + _FN + r'\b)', re.I)
_BARE_FN_ARG = re.compile(r'\b(' + _FN + r')\s*([xy])\b', re.I)
_NATURAL_LOG = re.compile(r'\bln\s*\(([^()]+)\)', re.I)
# log_b(arg), log2(arg); stage 5 may already have put a '*' before the '('
_LOG_BASE = re.compile(r'\blog(?:_([a-z])|_?(\d+(?:\.\d+)?))\s*\*?\s*\(([^()]+)\)', re.I)
_LOG_CALL = re.compile(r'\blog\s*\(', re.I)
_PAREN_PAIR = re.compile(r'\)\s*\(')


def find_invalid_char(raw: str):
    """First character outside the accepted alphabet, or None."""
    m = _INVALID_CHAR.search(raw)
    return m.group(0) if m else None


def validate_characters(raw: str) -> None:
    bad = find_invalid_char(raw)
    if bad is not None:
        raise InputRejected(raw, bad)


def _log_base(m: re.Match) -> str:
    base = m.group(1) or m.group(2)
    return f"log({m.group(3)}, {base})"


def _before_const(m: re.Match) -> str:
    if m.group(1).isdigit() and not m.group(2) and m.group(3).lower() == 'e' and m.group(4):
        return m.group(0)
    return m.group(1) + '*'


def _log10_calls(s: str) -> str:
    """Append ", 10" to every log( call whose argument has no top-level comma."""
    inserts = []
    for m in _LOG_CALL.finditer(s):
        depth = 1
        comma = False
        for i in range(m.end(), len(s)):
            ch = s[i]
            if ch == '(':
                depth += 1
            elif ch == ')':
                depth -= 1
                if depth == 0:
                    if not comma:
                        inserts.append(i)
                    break
            elif ch == ',' and depth == 1:
                comma = True
    for i in sorted(inserts, reverse=True):
        s = s[:i] + ', 10' + s[i:]
    return s


def normalize(raw: str) -> str:
    s = raw.strip()
    s = _DIGIT_VAR.sub(r'\1*', s)
    s = _VAR_DIGIT.sub(r'\1*', s)
    s = _VAR_VAR.sub(r'\1*', s)
    s = _BEFORE_PAREN.sub(r'\1*(', s)
    s = _AFTER_PAREN.sub(')*', s)
    s = _BEFORE_FN.sub(r'\1*', s)
    s = _BEFORE_CONST.sub(_before_const, s)
    s = _AFTER_CONST.sub(r'\1*', s)
    s = _BARE_FN_ARG.sub(r'\1(\2)', s)
    # ln keeps base e; a nested ln( stays as-is and the compiler maps it to log
    s = _NATURAL_LOG.sub(r'log(\1, E)', s)
    s = _LOG_BASE.sub(_log_base, s)
    s = _log10_calls(s)
    s = _PAREN_PAIR.sub(')*(', s)
    return s
