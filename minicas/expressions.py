from collections import Counter
from dataclasses import dataclass, replace
from fractions import Fraction
from typing import Callable, Iterator, List, Optional, Tuple
import math
import numpy as np

from .numbers import (
    Value, nan, value_of, is_exact, is_nan, vadd, vmul, vdiv, vpow,
    exact_power, format_value, decimal_places)

@dataclass(frozen=True)
class Token:
    precedence = 1000

    def __str__(self):
        return self.stringify(default_repr)

    def __add__(self, other):
        return add(self, convert(other))

    def __radd__(self, other):
        return add(convert(other), self)

    def __sub__(self, other):
        return add(self, negate(convert(other)))

    def __rsub__(self, other):
        return add(convert(other), negate(self))

    def __mul__(self, other):
        return multiply(self, convert(other))

    def __rmul__(self, other):
        return multiply(convert(other), self)

    def __truediv__(self, other):
        return multiply(self, fraction(one, convert(other)))

    def __rtruediv__(self, other):
        return multiply(convert(other), fraction(one, self))

    def __pow__(self, other):
        return Factor(self, convert(other))

    def __rpow__(self, other):
        return Factor(convert(other), self)

    def __neg__(self):
        return negate(self)

    def apply(self, fn):
        return replace(self)

    def subexpressions(self):
        return iter(())

    def add(self, other):
        return add(self, convert(other))

    def multiply(self, other):
        return multiply(self, convert(other))

    def reduce(self):
        return reduce(self)

    def clone(self):
        return clone(self)

    def to_number(self):
        return to_number(self)

    def fill_scope(self, scope):
        fill_scope(self, scope)
        return scope

    def extract_numbers(self):
        return extract_numbers(self)

    def simplify(self):
        from .rewrite import simplify
        return simplify(self)

    def expand(self):
        from .rewrite import expand
        return expand(self)

    def evaluate(self, scope=None):
        from .rewrite import evaluate
        return evaluate(self, scope)

    @property
    def is_constant(self):
        return is_constant(self)

    @property
    def is_zero(self):
        return is_zero(self)

    @property
    def is_one(self):
        return is_one(self)

    @property
    def is_negative(self):
        return is_negative(self)

@dataclass(frozen=True)
class Number(Token):
    value : Value

    def stringify(self, s):
        return format_value(self.value)

    @property
    def precedence(self):
        if is_nan(self.value):
            return 1000
        if self.value < 0:
            return 15
        if is_exact(self.value) and decimal_places(self.value) is None:
            return 20
        return 1000

@dataclass(frozen=True)
class Constant(Token):
    name   : str
    symbol : str
    value  : float

    def stringify(self, s):
        return self.symbol

@dataclass(frozen=True)
class Variable(Token):
    name : str

    def stringify(self, s):
        return self.name

@dataclass(frozen=True)
class Factor(Token):
    """A base raised to an exponent, the building block of a Term."""
    base     : Token
    exponent : Token

    @property
    def precedence(self):
        if is_one(self.exponent):
            return self.base.precedence
        return 30

    def stringify(self, s):
        if is_one(self.exponent):
            return s(self.base, 0)
        return f"{s(self.base, 30)}^{s(self.exponent, 30)}"

    def apply(self, fn):
        return Factor(fn(self.base), fn(self.exponent))

    def subexpressions(self):
        yield self.base
        yield self.exponent

@dataclass(frozen=True)
class Term(Token):
    """(coefficient_numerator * numerators) / (coefficient_denominator * denominators)

    Neither factor tuple is ever empty, an empty side holds the placeholder
    factor 1^1. Use term() to build one, it folds plain numbers into the
    coefficients.
    """
    coefficient_numerator   : Number
    coefficient_denominator : Number
    numerators              : Tuple[Factor, ...]
    denominators            : Tuple[Factor, ...]

    def __post_init__(self):
        assert self.numerators and self.denominators, f"empty side in {self!r}"

    @property
    def precedence(self):
        cn = self.coefficient_numerator.value
        visible = [f for f in self.numerators if not is_one(f)]
        if not denominator_is_one(self) or cn < 0:
            return 20
        if visible and cn != 1:
            return 20
        if len(visible) > 1:
            return 20
        if visible:
            return visible[0].precedence
        return self.coefficient_numerator.precedence

    def stringify(self, s, signed=True):
        cn = self.coefficient_numerator.value
        cd = self.coefficient_denominator.value
        if cn == 0:
            return "0"
        top = [f for f in self.numerators if not is_one(f)]
        bottom = [f for f in self.denominators if not is_one(f)]
        fractional = not denominator_is_one(self)

        coefficient = ""
        if cn != 1 or (fractional and not top):
            coefficient = _coefficient(cn, not top, signed)
        alone = cn == 1 and not fractional and len(top) == 1
        text = _juxtapose(coefficient, [s(f, 0 if alone else 20) for f in top])

        if fractional:
            divisor = ""
            if cd != 1 or not bottom:
                divisor = _coefficient(cd, not bottom, signed)
            pieces = [s(f, 20) for f in bottom]
            below = _juxtapose(divisor, pieces)
            if len(pieces) + bool(divisor) > 1:
                below = "(" + below + ")"
            text += "/" + below
        return text or "1"

    def apply(self, fn):
        return Term(fn(self.coefficient_numerator), fn(self.coefficient_denominator),
                    tuple(fn(f) for f in self.numerators),
                    tuple(fn(f) for f in self.denominators))

    def subexpressions(self):
        yield from self.numerators
        yield from self.denominators

@dataclass(frozen=True)
class Expression(Token):
    """A sum of Terms, kept in descending order of highest power."""
    terms : Tuple[Term, ...]
    precedence = 10

    def __post_init__(self):
        assert self.terms, "an Expression holds at least one Term"

    def stringify(self, s):
        out = [self.terms[0].stringify(s)]
        for t in self.terms[1:]:
            out.append(" - " if is_negative(t) else " + ")
            out.append(t.stringify(s, False))
        return "".join(out)

    def apply(self, fn):
        return Expression(tuple(fn(t) for t in self.terms))

    def subexpressions(self):
        yield from self.terms

@dataclass(frozen=True)
class FunctionSpec:
    name   : str
    arity  : int
    op     : Optional[Callable] = None
    symbol : Optional[str] = None

@dataclass(frozen=True)
class Function(Token):
    function : FunctionSpec
    args     : Tuple[Token, ...]

    @property
    def precedence(self):
        if self.function.symbol == "%":
            return 20
        if self.function.symbol == "!":
            return 40
        return 1000

    def stringify(self, s):
        if self.function.symbol == "%":
            lhs, rhs = self.args
            return f"{s(lhs, 20)} % {s(rhs, 20)}"
        if self.function.symbol == "!":
            return f"{s(self.args[0], 40)}!"
        args = [s(arg, 0) for arg in self.args]
        return self.function.name + "(" + ", ".join(args) + ")"

    def apply(self, fn):
        return Function(self.function, tuple(fn(arg) for arg in self.args))

    def subexpressions(self):
        yield from self.args

def _log(x, base):
    return np.log(x) / np.log(base)

MODULUS   = FunctionSpec("mod", 2, symbol="%")
FACTORIAL = FunctionSpec("factorial", 1, symbol="!")

FUNCTIONS = {spec.name: spec for spec in [
    FunctionSpec("sin", 1, np.sin),
    FunctionSpec("cos", 1, np.cos),
    FunctionSpec("tan", 1, np.tan),
    FunctionSpec("sqrt", 1, np.sqrt),
    FunctionSpec("abs", 1, np.abs),
    FunctionSpec("ln", 1, np.log),
    FunctionSpec("exp", 1, np.exp),
    FunctionSpec("log", 2, _log),
    FunctionSpec("min", 2, np.minimum),
    FunctionSpec("max", 2, np.maximum),
    MODULUS,
    FACTORIAL,
]}

CONSTANTS = {
    "pi": ("pi", "π", math.pi),
    "π":  ("pi", "π", math.pi),
    "e":  ("e", "e", math.e),
}

def constant(name) -> Optional[Constant]:
    try:
        return Constant(*CONSTANTS[name])
    except KeyError:
        return None

zero         = Number(Fraction(0))
one          = Number(Fraction(1))
negative_one = Number(Fraction(-1))
not_a_number = Number(nan)
placeholder  = Factor(one, one)

def convert(obj):
    if isinstance(obj, Token):
        return obj
    return Number(value_of(obj))

def default_repr(expr, precedence=0):
    if not isinstance(expr, Token):
        return str(expr)
    elif precedence < expr.precedence:
        return str(expr)
    else:
        return "(" + str(expr) + ")"

def _coefficient(value, show_one, signed):
    if abs(value) == 1 and not show_one:
        return "-" if signed and value < 0 else ""
    return format_value(value if signed else abs(value))

def _juxtapose(coefficient, pieces):
    body = "*".join(pieces)
    if not coefficient or not body:
        return coefficient + body
    if coefficient == "-" or not (body[0].isdigit() or body[0] == "."):
        return coefficient + body
    return coefficient + "*" + body

# Construction

def term(numerator=one, denominator=one, numerators=(), denominators=()) -> Term:
    cn, top = _collect(numerators, _value(numerator))
    cd, bottom = _collect(denominators, _value(denominator))
    return Term(Number(cn), Number(cd), tuple(top) or (placeholder,), tuple(bottom) or (placeholder,))

def _value(obj):
    if isinstance(obj, Number):
        return obj.value
    return value_of(obj)

def _collect(tokens, coefficient):
    factors = []
    for token in tokens:
        f = token if isinstance(token, Factor) else Factor(token, one)
        if is_zero(f.exponent):
            continue
        value = factor_value(f)
        if value is not None:
            coefficient = vmul(coefficient, value)
            continue
        if is_one(f.exponent) and is_negative(f.base):
            f = Factor(reduce(negate(f.base)), one)
            coefficient = vmul(coefficient, negative_one.value)
        factors.append(f)
    return coefficient, factors

def fraction(numerator, denominator) -> Term:
    return term(numerators=(numerator,), denominators=(denominator,))

def zero_term() -> Term:
    return term(zero)

def expression(terms) -> Expression:
    terms = [to_term(t) for t in terms]
    if not terms:
        terms = [zero_term()]
    return Expression(tuple(sorted(terms, key=_power_key, reverse=True)))

def to_term(t) -> Term:
    if isinstance(t, Term):
        return t
    elif isinstance(t, Expression):
        r = reduce(t)
        if isinstance(r, Term):
            return r
        if isinstance(r, Number):
            return term(r)
        return term(numerators=(r,))
    elif isinstance(t, Number):
        return term(t)
    else:
        return term(numerators=(t,))

def negate(t):
    return multiply(t, negative_one)

# Predicates

def plain_value(t) -> Optional[Value]:
    """The value of a token made only of numbers, or None."""
    if isinstance(t, Number):
        return t.value
    elif isinstance(t, Term) and is_number(t):
        return vdiv(t.coefficient_numerator.value, t.coefficient_denominator.value)
    elif isinstance(t, Expression) and len(t.terms) == 1:
        return plain_value(t.terms[0])
    elif isinstance(t, Factor):
        return factor_value(t)
    return None

def factor_value(f) -> Optional[Value]:
    """Value of a numeric factor, or None when symbolic or inexact."""
    b = plain_value(f.base)
    if b is None:
        return None
    e = plain_value(f.exponent)
    if e is None:
        return None
    return exact_power(b, e)

def is_number(t):
    if isinstance(t, Number):
        return True
    elif isinstance(t, Term):
        return all(is_one(f) for f in t.numerators) and all(is_one(f) for f in t.denominators)
    elif isinstance(t, Expression):
        return len(t.terms) == 1 and is_number(t.terms[0])
    elif isinstance(t, Factor):
        return is_number(t.base) and is_number(t.exponent)
    return False

def is_one(t):
    if isinstance(t, Number):
        return t.value == 1
    elif isinstance(t, Factor):
        return is_zero(t.exponent) or is_one(t.base)
    elif isinstance(t, Term):
        return (t.coefficient_numerator.value == 1 and denominator_is_one(t)
                and all(is_one(f) for f in t.numerators))
    elif isinstance(t, Expression):
        return len(t.terms) == 1 and is_one(t.terms[0])
    return False

def is_zero(t):
    if isinstance(t, Number):
        return t.value == 0
    elif isinstance(t, Factor):
        e = plain_value(t.exponent)
        return is_zero(t.base) and e is not None and e > 0
    elif isinstance(t, Term):
        return t.coefficient_numerator.value == 0 or any(is_zero(f) for f in t.numerators)
    elif isinstance(t, Expression):
        return all(is_zero(x) for x in t.terms)
    return False

def is_negative(t):
    if isinstance(t, Number):
        return t.value < 0
    elif isinstance(t, Factor):
        return is_one(t.exponent) and is_negative(t.base)
    elif isinstance(t, Term):
        return (t.coefficient_numerator.value < 0) != (t.coefficient_denominator.value < 0)
    return False

def is_constant(t):
    if isinstance(t, (Number, Constant)):
        return True
    elif isinstance(t, Variable):
        return False
    return all(is_constant(x) for x in t.subexpressions())

def denominator_is_one(t):
    return t.coefficient_denominator.value == 1 and all(is_one(f) for f in t.denominators)

def is_fraction(t):
    return isinstance(t, Term) and not denominator_is_one(t)

def is_like_term(a, b):
    """Terms are like when their factors match, ignoring coefficients and order."""
    return (Counter(a.numerators) == Counter(b.numerators)
            and Counter(a.denominators) == Counter(b.denominators))

def has_common_denominator(a, b):
    return (a.coefficient_denominator == b.coefficient_denominator
            and Counter(a.denominators) == Counter(b.denominators))

def highest_power(t) -> Optional[Value]:
    power = _highest(t.numerators)
    if power is None:
        return _highest(t.denominators)
    return power

def _highest(factors):
    highest = None
    for f in factors:
        e = plain_value(f.exponent)
        if e is None:
            continue
        power = Fraction(0) if is_constant(f.base) else e
        if highest is None or power > highest:
            highest = power
    return highest

def _power_key(t):
    power = highest_power(t)
    if power is None or is_nan(power):
        return -math.inf
    return float(power)

# Algebra

def add(lhs, rhs):
    if isinstance(lhs, Number) and isinstance(rhs, Number):
        return Number(vadd(lhs.value, rhs.value))
    if isinstance(lhs, Expression) or isinstance(rhs, Expression):
        return expression(summands(lhs) + summands(rhs))
    if isinstance(lhs, Term) and isinstance(rhs, Term):
        return _add_terms(lhs, rhs)
    if isinstance(lhs, Term) or isinstance(rhs, Term):
        return expression([lhs, rhs])
    return _add_terms(to_term(lhs), to_term(rhs))

def summands(t) -> List[Term]:
    if isinstance(t, Expression):
        if len(t.terms) == 1 and is_zero(t.terms[0]):
            return []
        return list(t.terms)
    return [to_term(t)]

def _add_terms(lhs, rhs):
    left = with_common_denominator(lhs, rhs)
    right = with_common_denominator(rhs, lhs)
    if is_like_term(left, right):
        total = vadd(left.coefficient_numerator.value, right.coefficient_numerator.value)
        return replace(left, coefficient_numerator=Number(total))
    if denominator_is_one(left):
        return expression([left, right])
    # keep the shared denominator, sum the numerators
    numerator = expression([term(left.coefficient_numerator, one, left.numerators),
                            term(right.coefficient_numerator, one, right.numerators)])
    return term(one, left.coefficient_denominator, (numerator,), left.denominators)

def with_common_denominator(t, other) -> Term:
    """Rewrite t over a denominator it shares with other, without changing its value."""
    if has_common_denominator(t, other):
        return t
    scale = other.coefficient_denominator.value
    return term(vmul(t.coefficient_numerator.value, scale),
                vmul(t.coefficient_denominator.value, scale),
                t.numerators + other.denominators,
                t.denominators + other.denominators)

def multiply(lhs, rhs):
    if isinstance(lhs, Number) and isinstance(rhs, Number):
        return Number(vmul(lhs.value, rhs.value))
    if isinstance(lhs, Expression):
        other = reduce(rhs)
        if isinstance(other, Term):
            return _multiply_term(other, lhs)
        return term(numerators=(lhs, other))
    return _multiply_term(to_term(lhs), rhs)

def _multiply_term(t, token):
    cn = t.coefficient_numerator.value
    cd = t.coefficient_denominator.value
    if isinstance(token, Term):
        return term(vmul(cn, token.coefficient_numerator.value),
                    vmul(cd, token.coefficient_denominator.value),
                    t.numerators + token.numerators,
                    t.denominators + token.denominators)
    elif isinstance(token, Number):
        return replace(t, coefficient_numerator=Number(vmul(cn, token.value)))
    else:
        return term(cn, cd, t.numerators + (token,), t.denominators)

def reduce(t):
    """Unwrap containers that hold a single thing."""
    if isinstance(t, Term):
        if len(t.numerators) == 1 and denominator_is_one(t):
            f = t.numerators[0]
            if is_one(f):
                return t.coefficient_numerator
            if t.coefficient_numerator.value == 1 and is_one(f.exponent):
                return reduce(f)
        return t
    elif isinstance(t, Expression):
        if len(t.terms) == 1:
            return reduce(t.terms[0])
        return t
    elif isinstance(t, Factor):
        if is_one(t.exponent):
            return reduce(t.base)
        return t
    return t

def clone(t):
    return t.apply(clone)

def walk(t) -> Iterator[Token]:
    yield t
    for x in t.subexpressions():
        yield from walk(x)

def fill_scope(t, scope):
    for x in walk(t):
        if isinstance(x, Variable):
            scope.add(x)

def to_number(t) -> Number:
    return Number(_numeric(t))

def _numeric(t) -> Value:
    if isinstance(t, (Number, Constant)):
        return t.value
    elif isinstance(t, Variable):
        return nan
    elif isinstance(t, Factor):
        return vpow(_numeric(t.base), _numeric(t.exponent))
    elif isinstance(t, Term):
        n = t.coefficient_numerator.value
        d = t.coefficient_denominator.value
        for f in t.numerators:
            n = vmul(n, _numeric(f))
        for f in t.denominators:
            d = vmul(d, _numeric(f))
        return vdiv(n, d)
    elif isinstance(t, Expression):
        total = Fraction(0)
        for x in t.terms:
            total = vadd(total, _numeric(x))
        return total
    elif isinstance(t, Function):
        return apply_function(t.function, [_numeric(arg) for arg in t.args])
    return nan

def apply_function(function, values) -> Value:
    if function.op is None:
        return nan
    with np.errstate(all="ignore"):
        return float(function.op(*[float(v) for v in values]))

def extract_numbers(t) -> Number:
    """The purely numeric multiplier carried by t, NaN when there is none."""
    if isinstance(t, Number):
        return t
    elif isinstance(t, Factor):
        value = factor_value(t)
        return not_a_number if value is None else Number(value)
    elif isinstance(t, Term):
        n = t.coefficient_numerator.value
        d = t.coefficient_denominator.value
        for f in t.numerators:
            x = extract_numbers(f).value
            if not is_nan(x):
                n = vmul(n, x)
        for f in t.denominators:
            x = extract_numbers(f).value
            if not is_nan(x):
                d = vmul(d, x)
        if n == 0 or d == 0:
            return zero
        return Number(vdiv(n, d))
    return not_a_number
