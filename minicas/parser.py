from collections import deque
from typing import List
from loguru import logger

from .common import IMPLICIT, NEGATION, ParseError
from .expressions import (
    Token, Factor, Function, add, multiply, fraction, negate, zero, one)
from .lexer import split
from .tokens import Kind, Lexeme, RIGHT_ASSOCIATIVE, classify, operator_function

def parse(text, settings=None, log=logger) -> Token:
    """Parse text into an expression tree."""
    brackets = settings.brackets if settings is not None else "()"
    units = split(text, brackets, log)
    lexemes = classify(units, brackets, log)
    postfix = to_postfix(lexemes, log)
    tree = build(postfix)
    log.debug("parsed {!r} -> {}", text, tree)
    return tree

def to_postfix(lexemes, log=logger) -> List[Lexeme]:
    """Shunting-yard: reorder an infix stream of lexemes into postfix."""
    pending = deque(lexemes)
    output = []
    operators = []
    while pending:
        lexeme = pending.popleft()
        if lexeme.kind is Kind.operand:
            output.append(lexeme)
        elif lexeme.kind is Kind.function:
            operators.append(lexeme)
            # the bracket does the grouping, drop the implicit marker
            pending.popleft()
        elif lexeme.kind is Kind.operator:
            while operators and _pops(operators[-1], lexeme):
                output.append(operators.pop())
            operators.append(lexeme)
        elif lexeme.kind is Kind.separator:
            while operators and operators[-1].is_operator:
                output.append(operators.pop())
        elif lexeme.kind is Kind.open:
            operators.append(lexeme)
        elif lexeme.kind is Kind.close:
            while operators and operators[-1].kind is not Kind.open:
                output.append(operators.pop())
            if not operators:
                raise ParseError("Missing opening parenthesis.", lexeme.text)
            operators.pop()
            if operators and operators[-1].kind is Kind.function:
                output.append(operators.pop())
        else:
            output.append(lexeme)

    while operators:
        lexeme = operators.pop()
        if lexeme.kind is Kind.open:
            raise ParseError("Missing closing parenthesis.", lexeme.text)
        output.append(lexeme)
    log.debug("postfix {}", output)
    return output

def _pops(top, incoming):
    if not top.is_operator:
        return False
    if top.precedence > incoming.precedence:
        return True
    return top.precedence == incoming.precedence and incoming.text != RIGHT_ASSOCIATIVE

def build(postfix) -> Token:
    """Evaluate a postfix stream of lexemes into a tree."""
    if not postfix:
        return zero
    operands = []
    for lexeme in postfix:
        if lexeme.kind is Kind.operand:
            operands.append(lexeme.value)
        elif lexeme.is_operator:
            if len(operands) < lexeme.arity:
                raise ParseError("Parsing incomplete. Too many operators.", lexeme.text)
            if lexeme.arity == 1:
                operands.append(apply_operator(lexeme.text, operands.pop()))
            else:
                right = operands.pop()
                left = operands.pop()
                operands.append(apply_operator(lexeme.text, left, right))
        elif lexeme.kind is Kind.function:
            count = lexeme.arity
            if len(operands) < count:
                raise ParseError(f"Function {lexeme.text} expects {count} arguments.", lexeme.text)
            args = tuple(operands[len(operands)-count:])
            del operands[len(operands)-count:]
            operands.append(Function(lexeme.function, args))
        else:
            raise ParseError("Unknown token when converting from string to Token.", lexeme.text)
    if len(operands) > 1:
        raise ParseError(f"Parsing incomplete. Too many operands. Overflow count = {len(operands)}.")
    return operands[0]

def apply_operator(symbol, left, right=None) -> Token:
    if symbol in ("*", IMPLICIT):
        return multiply(left, right)
    elif symbol == "^":
        return Factor(left, right)
    elif symbol == "%":
        return Function(operator_function("%"), (left, right))
    elif symbol == "/":
        return multiply(left, fraction(one, right))
    elif symbol == "+":
        return add(left, right)
    elif symbol == "-":
        return add(left, negate(right))
    elif symbol == NEGATION:
        return negate(left)
    elif symbol == "!":
        return Function(operator_function("!"), (left,))
    raise ParseError("Unimplemented operator functionality.", symbol)
