from decimal import Decimal
from fractions import Fraction
from math import gcd
from typing import Optional, Tuple, Union
import numpy as np

# Exact values are Fractions; anything inexact is a float computed by numpy
# with floating point errors silenced, so that arithmetic never raises.
Value = Union[Fraction, float]

MAX_DECIMAL_PLACES = 12
MAX_EXACT_EXPONENT = 1024

nan = float(np.nan)

def value_of(obj) -> Value:
    if isinstance(obj, Fraction):
        return obj
    elif isinstance(obj, bool):
        return Fraction(int(obj))
    elif isinstance(obj, int):
        return Fraction(obj)
    elif isinstance(obj, Decimal):
        return Fraction(obj)
    elif isinstance(obj, str):
        return Fraction(Decimal(obj))
    else:
        return float(obj)

def is_exact(v):
    return isinstance(v, Fraction)

def is_nan(v):
    return not is_exact(v) and bool(np.isnan(v))

def is_finite(v):
    return is_exact(v) or bool(np.isfinite(v))

def is_integer(v):
    if is_exact(v):
        return v.denominator == 1
    return is_finite(v) and float(v).is_integer()

def _inexact(op, a, b):
    with np.errstate(all="ignore"):
        return float(op(np.float64(a), np.float64(b)))

def vadd(a, b):
    if is_exact(a) and is_exact(b):
        return a + b
    return _inexact(np.add, a, b)

def vmul(a, b):
    if is_exact(a) and is_exact(b):
        return a * b
    return _inexact(np.multiply, a, b)

def vdiv(a, b):
    if b == 0 or is_nan(b):
        return nan
    if is_exact(a) and is_exact(b):
        return a / b
    return _inexact(np.divide, a, b)

def vpow(a, b):
    if a == 0 and not is_nan(b) and b < 0:
        return nan
    if is_exact(a) and is_exact(b) and b.denominator == 1 and abs(b) <= MAX_EXACT_EXPONENT:
        return a ** b.numerator
    return _inexact(np.power, a, b)

def exact_power(a, b) -> Optional[Value]:
    """a**b when it can be computed without losing exactness, else None."""
    result = vpow(a, b)
    if is_exact(a) and is_exact(b) and not is_exact(result):
        return None
    return result

def decimal_places(v) -> Optional[int]:
    """Count of digits after the decimal point, or None when the value
    has no finite decimal expansion."""
    if is_exact(v):
        d = v.denominator
        places = 0
        while d % 10 != 1 and places <= MAX_DECIMAL_PLACES:
            if d % 10 == 0:
                d //= 10
            elif d % 2 == 0:
                d //= 2
            elif d % 5 == 0:
                d //= 5
            else:
                return None
            places += 1
        return places if d == 1 else None
    if not is_finite(v):
        return None
    text = np.format_float_positional(v, trim="-")
    if "." not in text:
        return 0
    return len(text.split(".", 1)[1])

def reduce_ratio(num, den) -> Tuple[Value, Value]:
    """Bring a coefficient pair to lowest terms with a positive denominator.

    Both values are first scaled to integers (by a power of ten for decimals,
    by the common denominator for other fractions), then divided by their
    greatest common factor.
    """
    if not (is_finite(num) and is_finite(den)) or den == 0:
        return num, den
    if is_exact(num) and is_exact(den):
        scale = num.denominator * den.denominator // gcd(num.denominator, den.denominator)
        n, d = int(num * scale), int(den * scale)
    else:
        places = [decimal_places(num), decimal_places(den)]
        if None in places or max(places) > MAX_DECIMAL_PLACES:
            # no usable integer form, collapse to a single inexact ratio
            return vdiv(num, den), Fraction(1)
        scale = 10 ** max(places)
        n, d = round(float(num) * scale), round(float(den) * scale)
    g = gcd(n, d)
    if g > 1:
        n, d = n // g, d // g
    if d < 0:
        n, d = -n, -d
    return Fraction(n), Fraction(d)

def format_value(v) -> str:
    if is_exact(v):
        if v.denominator == 1:
            return str(v.numerator)
        places = decimal_places(v)
        if places is not None:
            return format(Decimal(v.numerator) / Decimal(v.denominator), "f")
        return f"{v.numerator}/{v.denominator}"
    if is_nan(v):
        return "NaN"
    if not is_finite(v):
        return "-inf" if v < 0 else "inf"
    if float(v).is_integer() and abs(v) < 1e15:
        return str(int(v))
    return np.format_float_positional(v, precision=12, trim="-")
