"""Domain-clamped scalar cells and the arena that owns them."""

from __future__ import annotations

import math
from typing import Iterator, List


class Variable:
    """Scalar value trapped inside ``[min, max]``.

    Every write goes through :meth:`set`, including the in-place arithmetic
    operators, so the stored value can never leave its domain.
    """

    __slots__ = ("_value", "min", "max")

    def __init__(self, value: float, min: float = -math.inf, max: float = math.inf):
        self.min = float(min)
        self.max = float(max)
        self._value = float(value)
        self.set(value)

    @property
    def value(self) -> float:
        return self._value

    def clamp(self, value: float) -> float:
        """Return ``value`` trapped inside this cell's domain without storing it."""
        value = float(value)
        if value > self.max:
            return self.max
        if value < self.min:
            return self.min
        return value

    def set(self, new_value: float) -> None:
        self._value = self.clamp(new_value)

    def redomain(self, min: float, max: float) -> None:
        """Replace the domain and re-clamp the current value into it."""
        self.min = float(min)
        self.max = float(max)
        self.set(self._value)

    def __iadd__(self, other: float) -> "Variable":
        self.set(self._value + float(other))
        return self

    def __isub__(self, other: float) -> "Variable":
        self.set(self._value - float(other))
        return self

    def __imul__(self, other: float) -> "Variable":
        self.set(self._value * float(other))
        return self

    def __itruediv__(self, other: float) -> "Variable":
        self.set(self._value / float(other))
        return self

    def __float__(self) -> float:
        return self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Variable):
            return NotImplemented
        return (self._value, self.min, self.max) == (other._value, other.min, other.max)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Variable(value={self._value!r}, min={self.min!r}, max={self.max!r})"


class VariableArena:
    """Stable-index storage for :class:`Variable` cells.

    Tokens and context entries refer to cells by slot index; every context
    copy shares the same arena so a write through one path is seen by all.
    """

    def __init__(self) -> None:
        self._cells: List[Variable] = []

    def allocate(self, value: float, min: float = -math.inf, max: float = math.inf) -> int:
        self._cells.append(Variable(value, min, max))
        return len(self._cells) - 1

    def __getitem__(self, slot: int) -> Variable:
        return self._cells[slot]

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Variable]:
        return iter(self._cells)


__all__ = ["Variable", "VariableArena"]
