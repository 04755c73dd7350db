"""Handle-based entry points for foreign callers.

Every object crosses the boundary as an opaque positive integer handle and
every failure collapses to a sentinel: ``None`` where a handle or string is
returned, ``-1`` where an integer code is returned. No exception raised
inside an entry point escapes it.
"""

from __future__ import annotations

import itertools
import logging
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar, cast

from .context import Context
from .context import new_context as _default_context
from .solver import ConstrainResult, System, SystemBuilder

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

ERROR = -1

_handles: Dict[int, object] = {}
_next_handle = itertools.count(1)


def _fault_boundary(sentinel: Any) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            try:
                return func(*args, **kwargs)
            except Exception:
                logger.exception("%s failed; returning %r", func.__name__, sentinel)
                return sentinel

        return cast(F, wrapper)

    return decorator


def _register(obj: object) -> int:
    handle = next(_next_handle)
    _handles[handle] = obj
    return handle


def _lookup(handle: int, kind: type) -> Any:
    obj = _handles[handle]
    if not isinstance(obj, kind):
        raise TypeError(f"handle {handle} refers to {type(obj).__name__}, not {kind.__name__}")
    return obj


def _release(handle: int, kind: type) -> Any:
    obj = _lookup(handle, kind)
    del _handles[handle]
    return obj


@_fault_boundary(None)
def new_context() -> Optional[int]:
    """Create a context seeded with the builtin functions and constants."""
    return _register(_default_context())


@_fault_boundary(ERROR)
def free_context(handle: int) -> int:
    _release(handle, Context)
    return 1


@_fault_boundary(ERROR)
def add_const_to_context(handle: int, name: str, value: float) -> int:
    _lookup(handle, Context).add_const(name, float(value))
    return 1


@_fault_boundary(None)
def new_system_builder(equation: str, context: Optional[int] = None) -> Optional[int]:
    """Start a system from ``equation``; the context handle, if given, is consumed."""
    ctx = _lookup(context, Context) if context is not None else _default_context()
    builder = SystemBuilder(equation, ctx)
    if context is not None:
        del _handles[context]
    return _register(builder)


@_fault_boundary(ERROR)
def free_system_builder(handle: int) -> int:
    _release(handle, SystemBuilder)
    return 1


@_fault_boundary(ERROR)
def try_constrain_with(handle: int, equation: str) -> int:
    """Return 0 (not added), 1 (added), 2 (would over-constrain) or -1 on error."""
    result: ConstrainResult = _lookup(handle, SystemBuilder).try_constrain_with(equation)
    return result.value


@_fault_boundary(ERROR)
def is_fully_constrained(handle: int) -> int:
    return 1 if _lookup(handle, SystemBuilder).is_fully_constrained() else 0


@_fault_boundary(None)
def build_system(handle: int) -> Optional[int]:
    """Consume the builder behind ``handle`` and return a system handle."""
    builder = _release(handle, SystemBuilder)
    system = builder.build_system()
    if system is None:
        return None
    return _register(system)


@_fault_boundary(ERROR)
def free_system(handle: int) -> int:
    _release(handle, System)
    return 1


@_fault_boundary(ERROR)
def specify_variable(handle: int, var: str, guess: float, min: float, max: float) -> int:
    if not _lookup(handle, System).specify_variable(var, guess, min, max):
        return ERROR
    return 1


@_fault_boundary(None)
def solve_system(handle: int, margin: float, limit: int) -> Optional[str]:
    """Solve and serialise the solution as ``name=value`` lines."""
    solution = _lookup(handle, System).solve(float(margin), int(limit))
    return "\n".join(f"{name}={value}" for name, value in solution.items())


__all__ = [
    "ERROR",
    "add_const_to_context",
    "build_system",
    "free_context",
    "free_system",
    "free_system_builder",
    "is_fully_constrained",
    "new_context",
    "new_system_builder",
    "solve_system",
    "specify_variable",
    "try_constrain_with",
]
