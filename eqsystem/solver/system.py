"""Incremental construction and solving of constrained equation systems."""

from __future__ import annotations

import enum
import logging
from typing import Dict, Iterable, Iterator, List, MutableMapping, Optional, Tuple

from ..compiler import CompiledExpression, compile_equation_to_fn_of_mapping
from ..context import Context, TokenKind, new_context
from ..errors import NoVarsFoundError, SystemBuilderConsumedError
from ..lexer import get_legal_variables
from ..logging_utils import apply_debug_logging
from .config import get_solver_config
from .newton import multivariate_newton_raphson

logger = logging.getLogger(__name__)


class ConstrainResult(enum.Enum):
    """Outcome of offering one equation to a :class:`SystemBuilder`.

    ``WILL_CONSTRAIN``: the equation added at most one unknown and was
    accepted. ``WILL_NOT_CONSTRAIN``: it would add more than one unknown.
    ``WILL_OVER_CONSTRAIN``: the system already has as many equations as
    unknowns. Only ``WILL_CONSTRAIN`` changes the builder.
    """

    WILL_NOT_CONSTRAIN = 0
    WILL_CONSTRAIN = 1
    WILL_OVER_CONSTRAIN = 2


def get_equation_unknowns(equation: str, context: Context) -> List[str]:
    """Identifiers in ``equation`` that are not constants or functions of ``context``.

    Names already bound as variables in ``context`` count as unknowns, so
    callers can pre-declare an unknown's guess and domain.
    """

    unknowns = []
    for name in get_legal_variables(equation):
        token = context.get(name)
        if token is None or token.kind is TokenKind.VAR:
            unknowns.append(name)
    return unknowns


class SystemBuilder:
    """Accumulates equations until there are exactly as many as unknowns.

    The builder takes ownership of ``context``: new unknowns are added to it
    with the configured default guess and domain.
    """

    def __init__(self, equation: str, context: Optional[Context] = None):
        self._context = context if context is not None else new_context()
        self._unknowns: List[str] = []
        self._equations: List[Tuple[str, CompiledExpression]] = []
        self._consumed = False

        unknowns = get_equation_unknowns(equation, self._context)
        if not unknowns:
            raise NoVarsFoundError(f"{equation!r} has no unknowns to solve for")
        self._add(equation, unknowns)

    def _ensure_open(self) -> None:
        if self._consumed:
            raise SystemBuilderConsumedError()

    def _add(self, equation: str, new_unknowns: List[str]) -> None:
        cfg = get_solver_config()
        declared = []
        for name in new_unknowns:
            if name not in self._context:
                self._context.add_var(name, cfg.default_guess, cfg.default_min, cfg.default_max)
                declared.append(name)
        try:
            compiled = compile_equation_to_fn_of_mapping(equation, self._context)
        except Exception:
            for name in declared:
                self._context.remove(name)
            raise
        self._equations.append((equation, compiled))
        self._unknowns.extend(new_unknowns)

    @property
    def unknowns(self) -> List[str]:
        return list(self._unknowns)

    @property
    def equations(self) -> List[str]:
        return [text for text, _ in self._equations]

    @property
    def degrees_of_freedom(self) -> int:
        return len(self._unknowns) - len(self._equations)

    def is_fully_constrained(self) -> bool:
        return len(self._equations) == len(self._unknowns)

    def try_constrain_with(self, equation: str) -> ConstrainResult:
        """Offer ``equation`` to the system and report whether it was taken."""

        self._ensure_open()
        if self.is_fully_constrained():
            return ConstrainResult.WILL_OVER_CONSTRAIN

        new_unknowns = [
            name for name in get_equation_unknowns(equation, self._context) if name not in self._unknowns
        ]
        if len(new_unknowns) > 1:
            logger.debug("Rejected %r: adds unknowns %s", equation, new_unknowns)
            return ConstrainResult.WILL_NOT_CONSTRAIN

        self._add(equation, new_unknowns)
        logger.debug(
            "Constrained with %r: %d equation(s), %d unknown(s)",
            equation,
            len(self._equations),
            len(self._unknowns),
        )
        return ConstrainResult.WILL_CONSTRAIN

    def try_fully_constrain_with(self, equations: Iterable[str]) -> bool:
        """Repeatedly offer ``equations`` until the system is fully constrained.

        Accepted equations are consumed; rejected ones are retried on the next
        pass since other equations may have introduced their unknowns. Stops
        when a pass makes no progress.
        """

        self._ensure_open()
        pending = list(equations)
        progress = True
        while progress and pending and not self.is_fully_constrained():
            progress = False
            for equation in list(pending):
                result = self.try_constrain_with(equation)
                if result is ConstrainResult.WILL_CONSTRAIN:
                    pending.remove(equation)
                    progress = True
                elif result is ConstrainResult.WILL_OVER_CONSTRAIN:
                    break
        logger.info(
            "System has %d equation(s) for %d unknown(s); %d candidate(s) unused",
            len(self._equations),
            len(self._unknowns),
            len(pending),
        )
        return self.is_fully_constrained()

    def build_system(self) -> Optional["System"]:
        """Consume the builder; return a :class:`System` if it is fully constrained."""

        self._ensure_open()
        self._consumed = True
        if not self.is_fully_constrained():
            logger.info("System is not fully constrained (%d degree(s) of freedom)", self.degrees_of_freedom)
            return None
        return System(self._context, list(self._unknowns), list(self._equations))


class _GuessVector(MutableMapping[str, float]):
    """Name -> value view over the variable cells of a system's unknowns."""

    def __init__(self, context: Context, names: List[str]):
        self._cells = {name: context.variable(name) for name in names}

    def __getitem__(self, name: str) -> float:
        return self._cells[name].value

    def __setitem__(self, name: str, value: float) -> None:
        self._cells[name].set(value)

    def __delitem__(self, name: str) -> None:
        raise TypeError("unknowns cannot be removed from a system")

    def __iter__(self) -> Iterator[str]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)


class System:
    """A fully constrained system of equations, ready to be solved.

    Only produced by :meth:`SystemBuilder.build_system`. Guess values and
    domains of the unknowns may still be changed before solving.
    """

    def __init__(self, context: Context, unknowns: List[str], equations: List[Tuple[str, CompiledExpression]]):
        self._context = context
        self._unknowns = unknowns
        self._equations = equations

    @property
    def unknowns(self) -> List[str]:
        return list(self._unknowns)

    @property
    def equations(self) -> List[str]:
        return [text for text, _ in self._equations]

    @property
    def guesses(self) -> Dict[str, float]:
        return {name: self._context.variable(name).value for name in self._unknowns}

    def specify_domain(self, var: str, min: float, max: float) -> bool:
        """Trap ``var`` between ``min`` and ``max``; False if it is not an unknown."""
        if var not in self._unknowns:
            return False
        self._context.variable(var).redomain(min, max)
        return True

    def specify_guess_value(self, var: str, guess: float) -> bool:
        if var not in self._unknowns:
            return False
        self._context.variable(var).set(guess)
        return True

    def specify_variable(self, var: str, guess: float, min: float, max: float) -> bool:
        return self.specify_domain(var, min, max) and self.specify_guess_value(var, guess)

    def solve(self, margin: Optional[float] = None, limit: Optional[int] = None) -> Dict[str, float]:
        """Solve the system with Newton-Raphson, starting from the current guesses."""

        cfg = get_solver_config()
        margin = cfg.default_margin if margin is None else margin
        limit = cfg.default_limit if limit is None else limit

        def residual(compiled: CompiledExpression):
            names = compiled.variables
            return lambda guess: compiled({name: guess[name] for name in names})

        functions = [residual(compiled) for _, compiled in self._equations]
        guess = _GuessVector(self._context, self._unknowns)
        logger.info(
            "Solving %d equation(s) for %s (margin=%g, limit=%d)", len(functions), self._unknowns, margin, limit
        )
        solution = multivariate_newton_raphson(functions, guess, margin, limit, step=cfg.step)
        logger.info("Solved system: %s", solution)
        return solution


apply_debug_logging(globals(), logger=logger, skip={"ConstrainResult"})


__all__ = ["ConstrainResult", "System", "SystemBuilder", "get_equation_unknowns"]
