"""Shunting-yard reduction to postfix form and the postfix evaluator.

See https://en.wikipedia.org/wiki/Shunting_yard_algorithm
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from .context import (
    LEFT_PAREN,
    MUL,
    OPERATOR_KINDS,
    OPERATOR_TOKENS,
    Builtin,
    Context,
    Token,
    TokenKind,
    new_context,
)
from .errors import (
    ContextMutationError,
    DivisionByZeroError,
    EquationSolverError,
    ExpectedArgError,
    FunctionCallError,
    LeftoverTokenError,
    MathDomainError,
    NoTokensError,
    UnclosedParenthesisError,
    UnknownTokenError,
)
from .lexer import is_number, scan_words
from .variable import VariableArena

logger = logging.getLogger(__name__)

_PRECEDENCE = {
    TokenKind.EXP: 4,
    TokenKind.MUL: 3,
    TokenKind.DIV: 3,
    TokenKind.PLUS: 2,
    TokenKind.MINUS: 2,
}


def _precedence(token: Token) -> int:
    return _PRECEDENCE.get(token.kind, 1)


def _pops_before(o1: Token, o2: Token) -> bool:
    """Whether stacked ``o2`` must be emitted before ``o1`` is pushed."""
    if o2.kind is TokenKind.LEFT_PAREN:
        return False
    p1, p2 = _precedence(o1), _precedence(o2)
    # '^' is the only right-associative operator
    return p2 > p1 or (p2 == p1 and o1.kind is not TokenKind.EXP)


def _resolve_word(word: str, context: Context) -> Token:
    if is_number(word):
        return Token.num(float(word))
    token = context.get(word)
    if token is None:
        raise UnknownTokenError(f"unknown token {word!r}")
    if token.is_structural:
        raise ContextMutationError(f"context entry {word!r} holds reserved token {token!r}")
    return token


def rpnify(expr: str, context: Context) -> List[Token]:
    """Convert the infix ``expr`` into a postfix token list.

    Identifiers are resolved through ``context``: constants are inlined as
    numbers, variables become shared slot references and functions are
    emitted after their parenthesised arguments. A ``-`` in operand position
    becomes ``(-1) *``.
    """

    output: List[Token] = []
    stack: List[Token] = []
    expect_operand = True

    for word in scan_words(expr):
        if word == ",":
            while stack and stack[-1].kind is not TokenKind.LEFT_PAREN:
                output.append(stack.pop())
            if not stack:
                raise LeftoverTokenError("found ',' outside of a function call")
            expect_operand = True

        elif word == "(":
            stack.append(LEFT_PAREN)
            expect_operand = True

        elif word == ")":
            while stack and stack[-1].kind is not TokenKind.LEFT_PAREN:
                output.append(stack.pop())
            if not stack:
                raise UnclosedParenthesisError("found ')' without a matching '('")
            stack.pop()
            if stack and stack[-1].kind is TokenKind.FUNC:
                output.append(stack.pop())
            expect_operand = False

        elif word in OPERATOR_TOKENS:
            if expect_operand and word == "-":
                output.append(Token.num(-1.0))
                stack.append(MUL)
            elif expect_operand and word == "+":
                continue
            else:
                o1 = OPERATOR_TOKENS[word]
                while stack and _pops_before(o1, stack[-1]):
                    output.append(stack.pop())
                stack.append(o1)
            expect_operand = True

        else:
            token = _resolve_word(word, context)
            if token.kind is TokenKind.FUNC:
                stack.append(token)
                expect_operand = True
            else:
                output.append(token)
                expect_operand = False

    while stack:
        token = stack.pop()
        if token.kind is TokenKind.LEFT_PAREN:
            raise UnclosedParenthesisError()
        output.append(token)

    logger.debug("rpnify %r -> %s", expr, output)
    return output


def _apply_function(token: Token, args: List[float]) -> float:
    func = token.func
    name = func.symbol if isinstance(func, Builtin) else getattr(func, "__name__", "function")
    try:
        return float(func(args))
    except EquationSolverError:
        raise
    except ZeroDivisionError as exc:
        raise DivisionByZeroError(f"{name}{tuple(args)}: {exc}") from exc
    except (ValueError, OverflowError) as exc:
        raise MathDomainError(f"{name}{tuple(args)}: {exc}") from exc
    except Exception as exc:
        raise FunctionCallError(f"{name}{tuple(args)}: {type(exc).__name__}: {exc}") from exc


def _apply_operator(kind: TokenKind, left: float, right: float) -> float:
    if kind is TokenKind.PLUS:
        return left + right
    if kind is TokenKind.MINUS:
        return left - right
    if kind is TokenKind.MUL:
        return left * right
    if kind is TokenKind.DIV:
        if right == 0.0:
            raise DivisionByZeroError()
        return left / right
    try:
        return math.pow(left, right)
    except (ValueError, OverflowError) as exc:
        raise MathDomainError(f"{left!r} ^ {right!r}: {exc}") from exc


def eval_rpn(tokens: Sequence[Token], arena: Optional[VariableArena] = None) -> float:
    """Evaluate a postfix token sequence; variable slots are read from ``arena``."""

    stack: List[float] = []
    for token in tokens:
        kind = token.kind
        if kind is TokenKind.NUM:
            stack.append(token.value)
        elif kind is TokenKind.VAR:
            if arena is None:
                raise UnknownTokenError(f"no variable storage to read {token!r} from")
            stack.append(arena[token.slot].value)
        elif kind is TokenKind.FUNC:
            if len(stack) < token.arity:
                raise ExpectedArgError()
            args = [stack.pop() for _ in range(token.arity)]
            args.reverse()
            stack.append(_apply_function(token, args))
        elif kind in OPERATOR_KINDS:
            if len(stack) < 2:
                raise ExpectedArgError()
            right = stack.pop()
            left = stack.pop()
            stack.append(_apply_operator(kind, left, right))
        else:
            raise LeftoverTokenError(f"unexpected {token!r} in postfix expression")

    if not stack:
        raise NoTokensError()
    if len(stack) > 1:
        raise LeftoverTokenError(f"{len(stack)} values left on the evaluation stack")
    return stack[0]


def eval_str(expr: str) -> float:
    """Evaluate ``expr`` against the default builtin context."""
    ctx = new_context()
    return eval_rpn(rpnify(expr, ctx), ctx.arena)


def eval_str_with_context(expr: str, context: Context) -> float:
    return eval_rpn(rpnify(expr, context), context.arena)


__all__ = ["eval_rpn", "eval_str", "eval_str_with_context", "rpnify"]
