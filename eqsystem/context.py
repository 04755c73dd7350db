"""Tokens, builtin functions and the name -> symbol table used while parsing."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import ContextMutationError, InvalidIdentifierError, VariableNotInContextError
from .lexer import is_identifier
from .variable import Variable, VariableArena

NumericFunction = Callable[[Sequence[float]], float]


class TokenKind(enum.Enum):
    LEFT_PAREN = "("
    COMMA = ","
    EXP = "^"
    MUL = "*"
    DIV = "/"
    PLUS = "+"
    MINUS = "-"
    NUM = "num"
    VAR = "var"
    FUNC = "func"


STRUCTURAL_KINDS = frozenset(
    {
        TokenKind.LEFT_PAREN,
        TokenKind.COMMA,
        TokenKind.EXP,
        TokenKind.MUL,
        TokenKind.DIV,
        TokenKind.PLUS,
        TokenKind.MINUS,
    }
)

OPERATOR_KINDS = frozenset({TokenKind.EXP, TokenKind.MUL, TokenKind.DIV, TokenKind.PLUS, TokenKind.MINUS})


def _conditional(a: float, op: float, b: float, then: float, otherwise: float) -> float:
    # 1: ==, 2: <=, 3: >=, 4: <, 5: >, anything else: !=
    code = -1 if math.isnan(op) else int(math.floor(op + 0.5))
    if code == 1:
        decision = a == b
    elif code == 2:
        decision = a <= b
    elif code == 3:
        decision = a >= b
    elif code == 4:
        decision = a < b
    elif code == 5:
        decision = a > b
    else:
        decision = a != b
    return then if decision else otherwise


class Builtin(enum.Enum):
    """Closed table of builtin functions, dispatched by tag.

    Arguments are passed in source order, so ``log(8, 2)`` is the base-2
    logarithm of 8 and the conditional is ``if(a, op, b, then, else)``.
    """

    IF = ("if", 5)
    SIN = ("sin", 1)
    COS = ("cos", 1)
    TAN = ("tan", 1)
    ARCSIN = ("arcsin", 1)
    ARCCOS = ("arccos", 1)
    ARCTAN = ("arctan", 1)
    SINH = ("sinh", 1)
    COSH = ("cosh", 1)
    TANH = ("tanh", 1)
    LN = ("ln", 1)
    LOG10 = ("log10", 1)
    LOG = ("log", 2)
    ABS = ("abs", 1)

    @property
    def symbol(self) -> str:
        return self.value[0]

    @property
    def arity(self) -> int:
        return self.value[1]

    def __call__(self, args: Sequence[float]) -> float:
        if len(args) != self.arity:
            raise TypeError(f"{self.symbol} expects {self.arity} argument(s), got {len(args)}")
        return _DISPATCH[self](*args)


_DISPATCH: Dict[Builtin, Callable[..., float]] = {
    Builtin.IF: _conditional,
    Builtin.SIN: math.sin,
    Builtin.COS: math.cos,
    Builtin.TAN: math.tan,
    Builtin.ARCSIN: math.asin,
    Builtin.ARCCOS: math.acos,
    Builtin.ARCTAN: math.atan,
    Builtin.SINH: math.sinh,
    Builtin.COSH: math.cosh,
    Builtin.TANH: math.tanh,
    Builtin.LN: math.log,
    Builtin.LOG10: math.log10,
    Builtin.LOG: math.log,
    Builtin.ABS: abs,
}


@dataclass(frozen=True)
class Token:
    """A single lexical unit of an expression or its postfix form.

    ``value`` is used by number tokens, ``slot`` by variable tokens (an
    index into a :class:`VariableArena`), ``func``/``arity`` by function
    tokens.
    """

    kind: TokenKind
    value: float = 0.0
    slot: int = -1
    func: Optional[Union[Builtin, NumericFunction]] = None
    arity: int = 0

    @classmethod
    def num(cls, value: float) -> "Token":
        return cls(TokenKind.NUM, value=float(value))

    @classmethod
    def var(cls, slot: int) -> "Token":
        return cls(TokenKind.VAR, slot=slot)

    @classmethod
    def function(cls, func: Union[Builtin, NumericFunction], arity: int) -> "Token":
        return cls(TokenKind.FUNC, func=func, arity=arity)

    @property
    def is_structural(self) -> bool:
        return self.kind in STRUCTURAL_KINDS

    def __repr__(self) -> str:
        if self.kind is TokenKind.NUM:
            return f"Num({self.value!r})"
        if self.kind is TokenKind.VAR:
            return f"Var(#{self.slot})"
        if self.kind is TokenKind.FUNC:
            name = self.func.symbol if isinstance(self.func, Builtin) else getattr(self.func, "__name__", "?")
            return f"Func({name}/{self.arity})"
        return self.kind.value


LEFT_PAREN = Token(TokenKind.LEFT_PAREN)
COMMA = Token(TokenKind.COMMA)
EXP = Token(TokenKind.EXP)
MUL = Token(TokenKind.MUL)
DIV = Token(TokenKind.DIV)
PLUS = Token(TokenKind.PLUS)
MINUS = Token(TokenKind.MINUS)

OPERATOR_TOKENS: Dict[str, Token] = {"^": EXP, "*": MUL, "/": DIV, "+": PLUS, "-": MINUS}


class Context:
    """Mapping from identifiers to number, shared-variable or function tokens.

    Numbers and functions are copied by value on lookup; variable entries
    hold a slot in :attr:`arena`, which is shared with every
    :meth:`copy` of this context.
    """

    def __init__(self, arena: Optional[VariableArena] = None):
        self._symbols: Dict[str, Token] = {}
        self.arena = arena if arena is not None else VariableArena()

    def insert(self, name: str, token: Token) -> None:
        if not is_identifier(name):
            raise InvalidIdentifierError(f"invalid identifier {name!r}")
        if token.is_structural:
            raise ContextMutationError(f"cannot store {token.kind.value!r} under {name!r}")
        self._symbols[name] = token

    def add_const(self, name: str, value: float) -> None:
        self.insert(name, Token.num(value))

    def add_var(self, name: str, value: float, min: float = -math.inf, max: float = math.inf) -> int:
        slot = self.arena.allocate(value, min, max)
        self.insert(name, Token.var(slot))
        return slot

    def add_func(self, name: str, func: Union[Builtin, NumericFunction], arity: int) -> None:
        if arity < 0:
            raise ValueError("function arity must be non-negative")
        self.insert(name, Token.function(func, arity))

    def remove(self, name: str) -> None:
        del self._symbols[name]

    def get(self, name: str) -> Optional[Token]:
        return self._symbols.get(name)

    def __getitem__(self, name: str) -> Token:
        return self._symbols[name]

    def __contains__(self, name: object) -> bool:
        return name in self._symbols

    def __iter__(self) -> Iterator[str]:
        return iter(self._symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def names(self) -> List[str]:
        return list(self._symbols)

    def items(self) -> List[Tuple[str, Token]]:
        return list(self._symbols.items())

    def is_variable(self, name: str) -> bool:
        token = self._symbols.get(name)
        return token is not None and token.kind is TokenKind.VAR

    def variable_names(self) -> List[str]:
        return [name for name, token in self._symbols.items() if token.kind is TokenKind.VAR]

    def variable(self, name: str) -> Variable:
        token = self._symbols.get(name)
        if token is None or token.kind is not TokenKind.VAR:
            raise VariableNotInContextError(f"{name!r} is not a variable in this context")
        return self.arena[token.slot]

    def copy(self) -> "Context":
        clone = Context(self.arena)
        clone._symbols = dict(self._symbols)
        return clone

    def __repr__(self) -> str:
        return f"Context({len(self._symbols)} symbols, {len(self.arena)} cells)"


def new_context() -> Context:
    """Return a context seeded with the builtin functions and ``pi``/``e``."""

    ctx = Context()
    for builtin in Builtin:
        ctx.add_func(builtin.symbol, builtin, builtin.arity)
    ctx.add_const("pi", math.pi)
    ctx.add_const("e", math.e)
    return ctx


__all__ = [
    "Builtin",
    "COMMA",
    "Context",
    "DIV",
    "EXP",
    "LEFT_PAREN",
    "MINUS",
    "MUL",
    "NumericFunction",
    "OPERATOR_KINDS",
    "OPERATOR_TOKENS",
    "PLUS",
    "STRUCTURAL_KINDS",
    "Token",
    "TokenKind",
    "is_identifier",
    "new_context",
]
