from dataclasses import dataclass
from typing import List, Optional
import re
from loguru import logger

from .common import IMPLICIT, NEGATION
from .expressions import (
    Token, Number, Variable, FunctionSpec, FUNCTIONS, MODULUS, FACTORIAL, constant)
from .lexer import is_opening, is_closing
from .numbers import value_of

class Kind:
    operand   = object()
    operator  = object()
    function  = object()
    open      = object()
    close     = object()
    separator = object()
    unknown   = object()

NUMBER   = re.compile(r"-?(\d+\.?\d*|\.\d+)")
VARIABLE = re.compile(r"[^\W\d_](_\d+)?")

# symbol -> (precedence, arity)
OPERATOR_TABLE = {
    "+": (1, 2),
    "-": (1, 2),
    "*": (2, 2),
    "/": (2, 2),
    "%": (2, 2),
    IMPLICIT: (2, 2),
    "^": (3, 2),
    NEGATION: (4, 1),
    "!": (4, 1),
}

RIGHT_ASSOCIATIVE = "^"

@dataclass
class Lexeme:
    text       : str
    kind       : object
    precedence : int = 0
    arity      : int = 0
    value      : Optional[Token] = None
    function   : Optional[FunctionSpec] = None

    @property
    def is_operator(self):
        return self.kind is Kind.operator

    def __repr__(self):
        return repr(self.text)

    def __str__(self):
        return self.text

def classify(units, brackets="()", log=logger) -> List[Lexeme]:
    out = []
    for i, text in enumerate(units):
        following = units[i+1:i+3]
        out.append(_classify(text, following, brackets))
    log.debug("classified {}", out)
    return out

def _classify(text, following, brackets):
    if text in OPERATOR_TABLE:
        precedence, arity = OPERATOR_TABLE[text]
        return Lexeme(text, Kind.operator, precedence, arity)
    if text == ",":
        return Lexeme(text, Kind.separator)
    if is_opening(text, brackets):
        return Lexeme(text, Kind.open)
    if is_closing(text, brackets):
        return Lexeme(text, Kind.close)
    if NUMBER.fullmatch(text):
        return Lexeme(text, Kind.operand, value=Number(value_of(text)))
    if text in FUNCTIONS and len(following) == 2 \
            and following[0] == IMPLICIT and is_opening(following[1], brackets):
        spec = FUNCTIONS[text]
        return Lexeme(text, Kind.function, arity=spec.arity, function=spec)
    c = constant(text)
    if c is not None:
        return Lexeme(text, Kind.operand, value=c)
    if VARIABLE.fullmatch(text):
        return Lexeme(text, Kind.operand, value=Variable(text))
    return Lexeme(text, Kind.unknown)

def operator_function(symbol) -> FunctionSpec:
    return {"%": MODULUS, "!": FACTORIAL}[symbol]
