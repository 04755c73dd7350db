"""Newton-Raphson root finders with finite-difference derivatives."""

from __future__ import annotations

import logging
from typing import Callable, Dict, MutableMapping, Optional, Sequence

import numpy as np

from ..errors import (
    ImproperlyConstrainedSystemError,
    NegativeMarginError,
    ReachedIterationLimitError,
    SingularJacobianError,
    StationaryPointError,
)
from ..logging_utils import apply_debug_logging
from .config import get_solver_config

logger = logging.getLogger(__name__)

ScalarFunction = Callable[[float], float]
ResidualFunction = Callable[[MutableMapping[str, float]], float]


def newton_raphson(
    f: ScalarFunction,
    guess: float,
    margin: float,
    limit: int,
    *,
    step: Optional[float] = None,
    clamp: Optional[Callable[[float], float]] = None,
) -> float:
    """Find a root of ``f`` starting from ``guess``.

    The returned value satisfies ``|f(x)| <= margin`` and the last Newton
    step was no larger than ``margin``. At most ``limit`` iterations are run.
    When ``clamp`` is given every iterate, including the finite-difference
    point, is passed through it; near an upper bound the derivative is taken
    backwards.
    """

    if margin <= 0.0:
        raise NegativeMarginError(f"margin must be positive, got {margin!r}")
    dx = step if step is not None else get_solver_config().step
    keep = clamp if clamp is not None else float

    guess = keep(guess)
    for iteration in range(limit):
        y = f(guess)
        nudged = keep(guess + dx)
        if abs(nudged - guess) < 0.5 * dx:
            backward = keep(guess - dx)
            if abs(backward - guess) > abs(nudged - guess):
                nudged = backward
        h = nudged - guess
        y_prime = (f(nudged) - y) / h if h != 0.0 else 0.0
        if y_prime == 0.0:
            if abs(y) <= margin:
                return guess
            raise StationaryPointError(f"derivative vanished at x={guess!r} where f(x)={y!r}")
        delta = y / y_prime
        logger.debug(
            "newton_raphson: iteration=%d guess=%.10g y=%.6g delta=%.6g", iteration, guess, y, delta
        )
        if abs(y) <= margin and abs(delta) <= margin:
            return guess
        guess = keep(guess - delta)

    raise ReachedIterationLimitError(f"no root within margin {margin:.1e} after {limit} iteration(s)")


def _nudge(guess: MutableMapping[str, float], name: str, original: float, step: float) -> float:
    # returns the displacement the mapping actually accepted
    guess[name] = original + step
    forward = guess[name] - original
    if abs(forward) >= 0.5 * step:
        return forward
    guess[name] = original - step
    backward = guess[name] - original
    if abs(backward) > abs(forward):
        return backward
    guess[name] = original + step
    return forward


def jacobian(
    functions: Sequence[ResidualFunction],
    guess: MutableMapping[str, float],
    residuals: np.ndarray,
    step: float,
) -> np.ndarray:
    """Finite-difference Jacobian of ``functions`` around ``guess``.

    Each variable is perturbed in turn and restored afterwards; ``residuals``
    must hold the unperturbed values of ``functions`` at ``guess``. ``guess``
    may clamp its writes: a variable at or near its upper bound is stepped
    backwards, and each column is divided by the displacement that was
    actually applied.
    """

    names = list(guess)
    matrix = np.zeros((len(functions), len(names)), dtype=float)
    for j, name in enumerate(names):
        original = guess[name]
        try:
            applied = _nudge(guess, name, original, step)
            if applied == 0.0:
                continue
            # non-finite residuals surface later as a singular matrix
            with np.errstate(invalid="ignore", over="ignore"):
                for i, f in enumerate(functions):
                    matrix[i, j] = (f(guess) - residuals[i]) / applied
        finally:
            guess[name] = original
    return matrix


def _invert(matrix: np.ndarray) -> np.ndarray:
    if not np.all(np.isfinite(matrix)):
        raise SingularJacobianError("jacobian contains non-finite entries")
    try:
        return np.linalg.inv(matrix)
    except np.linalg.LinAlgError as exc:
        raise SingularJacobianError(f"jacobian could not be inverted: {exc}") from exc


def multivariate_newton_raphson(
    functions: Sequence[ResidualFunction],
    guess: MutableMapping[str, float],
    margin: float,
    limit: int,
    *,
    step: Optional[float] = None,
) -> Dict[str, float]:
    """Solve ``functions == 0`` for the named variables in ``guess``.

    ``guess`` is updated in place; when it is backed by domain-clamped cells
    every update passes through the clamp. Converges once the sum of absolute
    residuals and the Euclidean norm of the Newton step are both within
    ``margin``.
    """

    if margin <= 0.0:
        raise NegativeMarginError(f"margin must be positive, got {margin!r}")
    if limit <= 0:
        raise ReachedIterationLimitError("iteration limit must be positive")

    n = len(functions)
    if len(guess) != n:
        raise ImproperlyConstrainedSystemError(f"{n} equation(s) for {len(guess)} unknown(s)")
    dx = step if step is not None else get_solver_config().step
    names = list(guess)

    for iteration in range(limit):
        residuals = np.array([f(guess) for f in functions], dtype=float)
        inverse = _invert(jacobian(functions, guess, residuals, dx))
        deltas = inverse @ residuals

        error = float(np.sum(np.abs(residuals)))
        change = float(np.linalg.norm(deltas))
        logger.debug(
            "multivariate_newton_raphson: iteration=%d error=%.6g change=%.6g", iteration, error, change
        )
        if error <= margin and change <= margin:
            return dict(guess)

        for name, delta in zip(names, deltas):
            guess[name] = guess[name] - float(delta)

    raise ReachedIterationLimitError(f"no solution within margin {margin:.1e} after {limit} iteration(s)")


apply_debug_logging(globals(), logger=logger, skip={"jacobian"})


__all__ = ["jacobian", "multivariate_newton_raphson", "newton_raphson"]
