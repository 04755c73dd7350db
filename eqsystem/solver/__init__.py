"""Solver façade: single-equation solves plus the system builder API."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..compiler import compile_equation_to_fn
from ..context import Context, new_context
from ..errors import SingleUnknownNotFoundError
from ..lexer import get_legal_variables
from .config import SolverConfig, get_solver_config, set_solver_config
from .newton import jacobian, multivariate_newton_raphson, newton_raphson
from .system import ConstrainResult, System, SystemBuilder, get_equation_unknowns

logger = logging.getLogger(__name__)


def solve_equation_with_context(
    equation: str,
    context: Context,
    margin: Optional[float] = None,
    limit: Optional[int] = None,
) -> Tuple[str, float]:
    """Solve ``equation`` for the single variable declared in ``context``.

    The variable's current value is the initial guess; every iterate stays
    inside its domain and the root is stored back into it. Fails with
    :class:`SingleUnknownNotFoundError` unless ``context`` holds exactly one
    variable.
    """

    cfg = get_solver_config()
    margin = cfg.default_margin if margin is None else margin
    limit = cfg.default_limit if limit is None else limit

    unknowns = context.variable_names()
    if len(unknowns) != 1:
        raise SingleUnknownNotFoundError(f"context declares {len(unknowns)} variable(s), expected 1")
    name = unknowns[0]
    guess = context.variable(name).value

    f = compile_equation_to_fn(equation, context)
    logger.info("Solving %r for %s from guess %g", equation, name, guess)
    cell = f.variable
    root = newton_raphson(f, guess, margin, limit, step=cfg.step, clamp=cell.clamp)
    cell.set(root)
    logger.info("Solved %r: %s=%.10g", equation, name, root)
    return name, root


def solve_equation_from_str(
    equation: str, margin: Optional[float] = None, limit: Optional[int] = None
) -> Tuple[str, float]:
    """Solve ``equation`` for the one identifier that is not a builtin.

    >>> name, value = solve_equation_from_str("x + 4 = 12", 1e-4, 10)
    >>> name, round(value, 3)
    ('x', 8.0)
    """

    ctx = new_context()
    unknowns = [name for name in get_legal_variables(equation) if name not in ctx]
    if len(unknowns) != 1:
        raise SingleUnknownNotFoundError(f"found unknowns {unknowns} in {equation!r}")

    cfg = get_solver_config()
    ctx.add_var(unknowns[0], cfg.default_guess, cfg.default_min, cfg.default_max)
    return solve_equation_with_context(equation, ctx, margin, limit)


__all__ = [
    "ConstrainResult",
    "SolverConfig",
    "System",
    "SystemBuilder",
    "get_equation_unknowns",
    "get_solver_config",
    "jacobian",
    "multivariate_newton_raphson",
    "newton_raphson",
    "set_solver_config",
    "solve_equation_from_str",
    "solve_equation_with_context",
]
