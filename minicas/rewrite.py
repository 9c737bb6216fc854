from collections import deque
from typing import List

from .expressions import (
    Token, Number, Constant, Variable, Factor, Term, Expression, Function,
    term, fraction, expression, zero_term, to_term, summands, add, multiply,
    reduce, negate, plain_value, factor_value, apply_function, is_zero, is_one,
    is_negative, is_like_term, is_fraction, zero, one, not_a_number)
from .numbers import is_exact, is_integer, vmul, vpow, reduce_ratio

MAX_EXPAND_POWER = 32

def canonical(t):
    return reduce(simplify(t))

def simplify(t):
    if isinstance(t, Term):
        return _simplify_term(t)
    elif isinstance(t, Expression):
        return _simplify_expression(t)
    elif isinstance(t, Factor):
        base, exponent = _normalize(t)
        value = factor_value(Factor(base, exponent))
        if value is not None:
            return Number(value)
        return _simplify_term(term(numerators=(Factor(base, exponent),)))
    elif isinstance(t, Function):
        return t.apply(canonical)
    return t

def _normalize(f):
    base = canonical(f.base)
    exponent = canonical(f.exponent)
    # (a^m)^n -> a^(m*n)
    while isinstance(base, Factor) and _joins(base.base, base.exponent):
        exponent = canonical(multiply(base.exponent, exponent))
        base = base.base
    return base, exponent

def _integer_power(exponent):
    value = plain_value(exponent)
    if value is None or not is_exact(value) or not is_integer(value):
        return None
    return value

def _joins(base, exponent):
    # (b^m)^n == b^(m*n) only for whole m or non-negative b
    return _integer_power(exponent) is not None or not is_negative(base)

def _simplify_term(t):
    numerator = t.coefficient_numerator.value
    denominator = t.coefficient_denominator.value
    if numerator == 0:
        return zero_term()

    upper, lower = {}, {}
    pending = deque((f, True) for f in t.numerators)
    pending.extend((f, False) for f in t.denominators)
    while pending:
        f, above = pending.popleft()
        base, exponent = _normalize(f)
        if is_zero(exponent):
            continue
        value = factor_value(Factor(base, exponent))
        if value is not None:
            if above:
                numerator = vmul(numerator, value)
            else:
                denominator = vmul(denominator, value)
            continue
        power = _integer_power(exponent)
        if isinstance(base, Term) and power is not None \
                and all(_joins(g.base, g.exponent) for g in base.numerators + base.denominators):
            n = vpow(base.coefficient_numerator.value, power)
            d = vpow(base.coefficient_denominator.value, power)
            if above:
                numerator, denominator = vmul(numerator, n), vmul(denominator, d)
            else:
                numerator, denominator = vmul(numerator, d), vmul(denominator, n)
            for g in base.numerators:
                pending.append((Factor(g.base, multiply(g.exponent, Number(power))), above))
            for g in base.denominators:
                pending.append((Factor(g.base, multiply(g.exponent, Number(power))), not above))
            continue
        side = upper if above else lower
        side[base] = _sum(side[base], exponent) if base in side else exponent

    for base in [b for b in upper if b in lower]:
        exponent = _sum(upper.pop(base), negate(lower.pop(base)))
        value = plain_value(exponent)
        if value is not None and value < 0:
            lower[base] = canonical(negate(exponent))
        elif not is_zero(exponent):
            upper[base] = exponent

    if numerator == 0:
        return zero_term()
    numerator, denominator = reduce_ratio(numerator, denominator)
    return term(numerator, denominator,
                [Factor(b, e) for b, e in upper.items()],
                [Factor(b, e) for b, e in lower.items()])

def _sum(a, b):
    return canonical(add(a, b))

def _simplify_expression(e):
    pending = deque(e.terms)
    combined: List[Term] = []
    while pending:
        t = simplify(pending.popleft())
        inner = reduce(t)
        if isinstance(inner, Expression):
            pending.extend(inner.terms)
            continue
        if is_zero(t):
            continue
        for i, other in enumerate(combined):
            if is_like_term(other, t):
                total = simplify(to_term(add(other, t)))
                if is_zero(total):
                    del combined[i]
                else:
                    combined[i] = total
                break
        else:
            combined.append(t)
    return expression([t for t in combined if not is_zero(t)])

def expand(t):
    if isinstance(t, Term):
        top = _expand_factors(t.numerators, t.coefficient_numerator)
        bottom = _expand_factors(t.denominators, t.coefficient_denominator)
        return canonical(fraction(top, bottom))
    elif isinstance(t, Expression):
        terms = []
        for x in t.terms:
            terms.extend(summands(expand(x)))
        return canonical(expression(terms))
    elif isinstance(t, Factor):
        return _expand_factor(t)
    elif isinstance(t, Function):
        return t.apply(expand)
    return t

def _expand_factor(f):
    base = expand(f.base)
    exponent = canonical(expand(f.exponent))
    if is_one(exponent):
        return base
    inner = reduce(base)
    power = _integer_power(exponent)
    if isinstance(inner, Expression) and power is not None and 0 <= power <= MAX_EXPAND_POWER:
        result = expression([term(one)])
        for _ in range(int(power)):
            result = foil(result, inner)
        return reduce(result)
    if isinstance(inner, Term) and power is not None:
        return canonical(term(numerators=(Factor(inner, exponent),)))
    return Factor(base, exponent)

def _expand_factors(factors, coefficient):
    output = expression([term(coefficient)])
    for f in factors:
        r = reduce(expand(f))
        if isinstance(r, Expression):
            output = foil(output, r)
        elif isinstance(r, Term) and not is_fraction(r):
            for piece in extract(r):
                if isinstance(piece, Expression):
                    output = foil(output, piece)
                else:
                    output = multiply_all(output, piece)
        else:
            output = multiply_all(output, r)
    return reduce(output)

def extract(t) -> List[Token]:
    """Flatten a Term into its coefficient and the reduced factors it multiplies."""
    pieces = [t.coefficient_numerator]
    for f in t.numerators:
        r = reduce(f)
        if isinstance(r, Term) and not is_fraction(r):
            pieces.extend(extract(r))
        else:
            pieces.append(r)
    return pieces

def multiply_all(e, token) -> Expression:
    return expression([multiply(t, token) for t in e.terms])

def foil(a, b) -> Expression:
    """Multiply every term of a by every term of b."""
    return simplify(expression([multiply(x, y) for x in a.terms for y in b.terms]))

def evaluate(t, scope=None):
    if isinstance(t, Term):
        if t.coefficient_numerator.value == 0:
            return zero
        if t.coefficient_denominator.value == 0:
            return not_a_number
        top = [evaluate(f, scope) for f in t.numerators]
        bottom = [evaluate(f, scope) for f in t.denominators]
        rebuilt = term(t.coefficient_numerator, t.coefficient_denominator, top, bottom)
        if rebuilt.coefficient_denominator.value == 0:
            return not_a_number
        result = canonical(rebuilt)
        if isinstance(result, Term) and result.coefficient_denominator.value == 0:
            return not_a_number
        return result
    elif isinstance(t, Expression):
        return canonical(expression([to_term(evaluate(x, scope)) for x in t.terms]))
    elif isinstance(t, Factor):
        base = evaluate(t.base, scope)
        exponent = evaluate(t.exponent, scope)
        b, e = plain_value(base), plain_value(exponent)
        if b is not None and e is not None:
            return Number(vpow(b, e))
        return Factor(base, exponent)
    elif isinstance(t, Variable):
        value = scope.get(t) if scope is not None else None
        return t if value is None else value
    elif isinstance(t, Constant):
        if scope is None or scope.keep_constants:
            return t
        return Number(t.value)
    elif isinstance(t, Function):
        args = tuple(evaluate(arg, scope) for arg in t.args)
        values = [plain_value(arg) for arg in args]
        if t.function.op is not None and None not in values:
            return Number(apply_function(t.function, values))
        return Function(t.function, args)
    return t
