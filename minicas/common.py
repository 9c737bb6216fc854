# Markers the lexer inserts between units. They never appear in user input.
IMPLICIT = "•"
NEGATION = "~"

OPERATORS = "+-*/^%!,"

class ParseError(Exception):
    def __init__(self, message, token=None):
        super().__init__(message)
        self.message = message
        self.token = token

    def __str__(self):
        if self.token is None:
            return self.message
        return f"{self.message} ({self.token!r})"
