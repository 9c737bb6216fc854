from fractions import Fraction

import pytest

from minicas.common import ParseError
from minicas.expressions import Function, Number, Term, zero
from minicas.lexer import split
from minicas.parser import parse, to_postfix
from minicas.tokens import classify


def rpn(text):
    return [lexeme.text for lexeme in to_postfix(classify(split(text)))]

@pytest.mark.parametrize("text,postfix", [
    ("1+2*3", ["1", "2", "3", "*", "+"]),
    ("1-2-3", ["1", "2", "-", "3", "-"]),
    ("2^3^2", ["2", "3", "2", "^", "^"]),
    ("3/4x", ["3", "4", "/", "x", "•"]),
    ("min(2x,y)", ["2", "x", "•", "y", "min"]),
    ("2^-1", ["2", "1", "~", "^"]),
])
def test_to_postfix(text, postfix):
    assert rpn(text) == postfix

def test_missing_closing_parenthesis():
    with pytest.raises(ParseError, match="Missing closing parenthesis") as info:
        parse("(x+1")
    assert info.value.token == "("

def test_missing_opening_parenthesis():
    with pytest.raises(ParseError, match="Missing opening parenthesis") as info:
        parse("x+1)")
    assert info.value.token == ")"

def test_too_many_operators():
    with pytest.raises(ParseError, match="Too many operators"):
        parse("x+")

def test_too_many_operands():
    with pytest.raises(ParseError, match="Overflow count = 2"):
        parse("x,y")

@pytest.mark.parametrize("text", ["x2", "$"])
def test_unknown_token(text):
    with pytest.raises(ParseError, match="Unknown token"):
        parse(text)

def test_empty_input_is_zero():
    assert parse("") == zero

@pytest.mark.parametrize("text,rendered", [
    ("2x+3x", "5x"),
    ("x^2+2*x+1", "x^2 + 2x + 1"),
    ("1 + x + x^3", "x^3 + x + 1"),
    ("x-1", "x - 1"),
    ("-x", "-x"),
    ("1/x", "1/x"),
    ("3/4x", "3x/4"),
    ("3*2^x", "3*2^x"),
    ("x^(n+1)", "x^(n + 1)"),
    ("(x+1)^2", "(x + 1)^2"),
    ("x^-1", "x^(-1)"),
    ("(x+1)*(x-1)", "(x + 1)*(x - 1)"),
    ("2pi", "2π"),
    ("sin(x)", "sin(x)"),
    ("min(2x,y)", "min(2x, y)"),
    ("x%3", "x % 3"),
    ("x!", "x!"),
])
def test_rendering(text, rendered):
    assert str(parse(text)) == rendered

def test_operators_build_functions():
    mod = parse("7%3")
    assert isinstance(mod, Function)
    assert mod.function.name == "mod"
    assert mod.args == (Number(Fraction(7)), Number(Fraction(3)))
    assert parse("x!").function.name == "factorial"

def test_division_builds_a_fraction():
    t = parse("1/0")
    assert isinstance(t, Term)
    assert t.coefficient_denominator == Number(Fraction(0))
    assert str(t) == "1/0"
