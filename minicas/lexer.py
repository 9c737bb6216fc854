from typing import List
from loguru import logger

from .common import IMPLICIT, NEGATION, OPERATORS

def is_opening(c, brackets):
    i = brackets.find(c)
    return i >= 0 and i % 2 == 0

def is_closing(c, brackets):
    i = brackets.find(c)
    return i >= 0 and i % 2 == 1

def _operand_char(c):
    return c.isalnum() or c == "."

def split(text, brackets="()", log=logger) -> List[str]:
    """Break text into units: numbers, names, operators and brackets.

    Multiplication markers are inserted where the product is only implied
    ("2x", "3(x)", ")(") and unary minus becomes either a leading "-1"
    factor or a negation marker.
    """
    text = "".join(text.split()).replace("--", "+")
    if not text:
        return []

    output = []
    current = []
    last = None
    for c in text:
        after_operator = last is not None and (last in OPERATORS or last in brackets)
        letter_after_digit = c.isalpha() and bool(current) and current[-1].isdigit()
        if c in brackets or c in OPERATORS or letter_after_digit or (after_operator and _operand_char(c)):
            marker = None
            if letter_after_digit or (last is not None and last.isalnum() and is_opening(c, brackets)):
                marker = IMPLICIT
            if last is not None and is_closing(last, brackets):
                if is_opening(c, brackets):
                    marker = "*"
                elif _operand_char(c):
                    marker = IMPLICIT
            if current:
                output.append("".join(current))
                current = []
                if marker:
                    output.append(marker)

        if c == "-" and (last is None or last in OPERATORS or is_opening(last, brackets)):
            if last is None:
                output.append("-1")
                current.append(IMPLICIT)
            else:
                current.append(NEGATION)
        else:
            current.append(c)
        last = c

    output.append("".join(current))
    log.debug("split {!r} -> {}", text, output)
    return output
