from dataclasses import dataclass, field
from typing import Dict, Optional

from .expressions import Token, Variable, clone, convert

@dataclass(eq=False)
class Scope:
    """Variable bindings for evaluate(). Unbound variables map to None."""
    variables      : Dict[Variable, Optional[Token]] = field(default_factory=dict)
    keep_constants : bool = True

    @classmethod
    def of(cls, bindings=None, keep_constants=True):
        scope = cls(keep_constants=keep_constants)
        for name, value in (bindings or {}).items():
            scope.set(name, value)
        return scope

    def get(self, var) -> Optional[Token]:
        value = self.variables.get(variable(var))
        if value is None:
            return None
        return clone(value)

    def set(self, var, value):
        self.variables[variable(var)] = None if value is None else convert(value)

    def add(self, var):
        self.variables.setdefault(variable(var), None)

    def remove(self, var):
        self.variables.pop(variable(var), None)

    def clear(self):
        self.variables.clear()

    def __contains__(self, var):
        return variable(var) in self.variables

    def __len__(self):
        return len(self.variables)

    def __str__(self):
        return "; ".join(f"{var} = {'?' if value is None else value}"
                         for var, value in self.variables.items())

def variable(var) -> Variable:
    if isinstance(var, Variable):
        return var
    return Variable(str(var))
