"""Compile expressions and equations into reusable evaluators.

An expression is reduced to postfix form once; the compiled object keeps the
slots of the variable cells it references and, on every call, writes the
supplied values into those cells (through their domain clamp) before running
the postfix evaluator. Calling a compiled expression therefore mutates shared
variable state.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Tuple

from .context import Context, Token, TokenKind
from .errors import (
    CompiledLookupError,
    FoundExpressionError,
    FoundMultipleEquationsError,
    NoVarsFoundError,
    VariableNotInContextError,
    WrongVarCountError,
)
from .lexer import get_legal_variables
from .shunting import eval_rpn, rpnify
from .variable import Variable, VariableArena

logger = logging.getLogger(__name__)


def frame_equation(equation: str) -> str:
    """Rewrite ``lhs = rhs`` as the root-finding expression ``lhs - (rhs)``."""

    sides = equation.split("=")
    if len(sides) == 1:
        raise FoundExpressionError(f"no '=' found in {equation!r}")
    if len(sides) > 2:
        raise FoundMultipleEquationsError(f"{len(sides) - 1} '=' signs found in {equation!r}")
    return f"{sides[0]} - ({sides[1]})"


def _bind_variables(expr: str, rpn: List[Token], context: Context) -> Dict[str, int]:
    # every occurrence of a name resolves to the same slot
    bindings: Dict[str, int] = {}
    slots = {token.slot for token in rpn if token.kind is TokenKind.VAR}
    for name in get_legal_variables(expr):
        token = context.get(name)
        if token is not None and token.kind is TokenKind.VAR and token.slot in slots:
            bindings[name] = token.slot
    return bindings


class CompiledScalarExpression:
    """Expression of exactly one unknown, called with a single float."""

    def __init__(self, expr: str, rpn: List[Token], arena: VariableArena, name: str, slot: int):
        self.expr = expr
        self.rpn = rpn
        self.name = name
        self._arena = arena
        self._slot = slot

    @property
    def variables(self) -> Tuple[str, ...]:
        return (self.name,)

    @property
    def variable(self) -> Variable:
        return self._arena[self._slot]

    def __call__(self, x: float) -> float:
        self._arena[self._slot].set(x)
        return eval_rpn(self.rpn, self._arena)

    def __repr__(self) -> str:
        return f"CompiledScalarExpression({self.expr!r}, var={self.name!r})"


class CompiledExpression:
    """Expression of any number of unknowns, called with a name -> value mapping."""

    def __init__(self, expr: str, rpn: List[Token], arena: VariableArena, bindings: Dict[str, int]):
        self.expr = expr
        self.rpn = rpn
        self._arena = arena
        self._bindings = bindings

    @property
    def variables(self) -> Tuple[str, ...]:
        return tuple(self._bindings)

    def __call__(self, values: Mapping[str, float]) -> float:
        for name, value in values.items():
            try:
                slot = self._bindings[name]
            except KeyError:
                raise CompiledLookupError(f"{name!r} is not bound in {self.expr!r}") from None
            self._arena[slot].set(value)
        return eval_rpn(self.rpn, self._arena)

    def __repr__(self) -> str:
        return f"CompiledExpression({self.expr!r}, vars={list(self._bindings)!r})"


def compile_to_fn(expr: str, context: Context) -> CompiledScalarExpression:
    """Compile ``expr``, which must reference exactly one variable cell."""

    rpn = rpnify(expr, context)
    bindings = _bind_variables(expr, rpn, context)
    if not bindings:
        raise NoVarsFoundError(f"no variables found in {expr!r}")
    if len(bindings) > 1:
        raise WrongVarCountError(f"expected one variable in {expr!r}, found {sorted(bindings)}")
    (name, slot), = bindings.items()
    logger.debug("Compiled scalar expression %r over %s", expr, name)
    return CompiledScalarExpression(expr, rpn, context.arena, name, slot)


def compile_to_fn_of_mapping(expr: str, context: Context) -> CompiledExpression:
    """Compile ``expr``; every identifier in it must already exist in ``context``."""

    missing = [name for name in get_legal_variables(expr) if name not in context]
    if missing:
        raise VariableNotInContextError(f"{', '.join(missing)} not found in context")
    rpn = rpnify(expr, context)
    bindings = _bind_variables(expr, rpn, context)
    logger.debug("Compiled expression %r over %s", expr, list(bindings))
    return CompiledExpression(expr, rpn, context.arena, bindings)


def compile_equation_to_fn(equation: str, context: Context) -> CompiledScalarExpression:
    return compile_to_fn(frame_equation(equation), context)


def compile_equation_to_fn_of_mapping(equation: str, context: Context) -> CompiledExpression:
    return compile_to_fn_of_mapping(frame_equation(equation), context)


__all__ = [
    "CompiledExpression",
    "CompiledScalarExpression",
    "compile_equation_to_fn",
    "compile_equation_to_fn_of_mapping",
    "compile_to_fn",
    "compile_to_fn_of_mapping",
    "frame_equation",
]
