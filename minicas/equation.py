from dataclasses import dataclass
from typing import Optional
from loguru import logger

from .common import ParseError
from .expressions import Token, reduce, clone, fill_scope, is_constant, to_number
from .parser import parse
from .rewrite import simplify, expand, evaluate

EQUALS = "="
NOT_EQUALS = "≠"

@dataclass(frozen=True)
class Equation:
    left  : Token
    right : Token

    @classmethod
    def parse(cls, text, settings=None, log=logger):
        sides = text.split(EQUALS)
        if len(sides) < 2:
            raise ParseError("The given object must include an equals sign!", EQUALS)
        elif len(sides) > 2:
            raise ParseError("The given object must include only one equals sign!", EQUALS)
        left, right = sides
        return cls(parse(left, settings, log), parse(right, settings, log))

    @classmethod
    def try_parse(cls, text, settings=None, log=logger) -> Optional["Equation"]:
        try:
            return cls.parse(text, settings, log)
        except ParseError as error:
            log.debug("not an equation: {}", error)
            return None

    def map(self, fn):
        return Equation(fn(self.left), fn(self.right))

    def evaluate(self, scope=None):
        return self.map(lambda side: evaluate(side, scope))

    def simplify(self):
        return self.map(simplify)

    def expand(self):
        return self.map(expand)

    def reduce(self):
        return self.map(reduce)

    def clone(self):
        return self.map(clone)

    def fill_scope(self, scope):
        fill_scope(self.left, scope)
        fill_scope(self.right, scope)
        return scope

    def solve(self):
        raise NotImplementedError("solving equations is not supported")

    def __str__(self):
        sign = EQUALS
        left, right = simplify(self.left), simplify(self.right)
        if is_constant(left) and is_constant(right):
            if to_number(left) != to_number(right):
                sign = NOT_EQUALS
        return f"{self.left} {sign} {self.right}"
