"""Exception taxonomy shared by the parser, compiler and solvers."""

from __future__ import annotations

from typing import Optional


class EquationSolverError(Exception):
    """Base class for every error raised by :mod:`eqsystem`."""

    default_message = "equation solver error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


class InvalidIdentifierError(EquationSolverError, ValueError):
    default_message = "identifiers must match [A-Za-z][A-Za-z0-9_]*"


class SingleUnknownNotFoundError(EquationSolverError):
    default_message = "failed to identify a single unknown variable in the equation"


class SystemBuilderConsumedError(EquationSolverError):
    default_message = "system builder was already consumed by build_system()"


# parse / evaluate


class ShuntingYardError(EquationSolverError):
    default_message = "failed to convert or evaluate expression"


class UnclosedParenthesisError(ShuntingYardError):
    default_message = "found an unclosed parenthesis while converting expression to reverse polish notation"


class LeftoverTokenError(ShuntingYardError):
    default_message = "found a token when none were expected"


class UnknownTokenError(ShuntingYardError):
    default_message = "found an unexpected token while converting expression to reverse polish notation"


class ContextMutationError(ShuntingYardError):
    default_message = "found reserved token in context"


class ExpectedArgError(ShuntingYardError):
    default_message = "expected to find function argument, but none was present on the stack"


class DivisionByZeroError(ShuntingYardError):
    default_message = "tried to divide by zero during postfix evaluation"


class NoTokensError(ShuntingYardError):
    default_message = "expected to find one token in postfix evaluation stack but found none"


class MathDomainError(ShuntingYardError):
    default_message = "function argument outside its real domain"


class FunctionCallError(ShuntingYardError):
    default_message = "function failed while evaluating its arguments"


# compile


class ExpressionCompilationError(EquationSolverError):
    default_message = "failed to compile expression"


class NoVarsFoundError(ExpressionCompilationError):
    default_message = "failed to find a single unknown variable in the expression"


class WrongVarCountError(ExpressionCompilationError):
    default_message = "expected exactly one unknown variable in the expression"


class VariableNotInContextError(ExpressionCompilationError):
    default_message = "expression references a name that is not in the context"


class CompiledLookupError(ExpressionCompilationError, KeyError):
    default_message = "compiled expression has no variable bound under that name"

    def __str__(self) -> str:
        # KeyError would otherwise wrap the message in quotes
        return str(self.args[0])


# equation framing


class EquationFramingError(EquationSolverError):
    default_message = "expected exactly one '=' in the equation"


class FoundExpressionError(EquationFramingError):
    default_message = "found an expression where an equation was expected"


class FoundMultipleEquationsError(EquationFramingError):
    default_message = "found more than one '=' in the equation"


# solve


class NewtonRaphsonSolverError(EquationSolverError):
    default_message = "newton-raphson solver failed"


class NegativeMarginError(NewtonRaphsonSolverError):
    default_message = "margin of error must be greater than zero"


class ReachedIterationLimitError(NewtonRaphsonSolverError):
    default_message = "reached iteration limit without converging"


class ImproperlyConstrainedSystemError(NewtonRaphsonSolverError):
    default_message = "number of equations does not match number of unknowns"


class SingularJacobianError(NewtonRaphsonSolverError):
    default_message = "jacobian matrix is singular and cannot be inverted"


class StationaryPointError(NewtonRaphsonSolverError):
    default_message = "derivative vanished away from a root"


__all__ = [
    "CompiledLookupError",
    "ContextMutationError",
    "DivisionByZeroError",
    "EquationFramingError",
    "EquationSolverError",
    "ExpectedArgError",
    "ExpressionCompilationError",
    "FoundExpressionError",
    "FoundMultipleEquationsError",
    "FunctionCallError",
    "ImproperlyConstrainedSystemError",
    "InvalidIdentifierError",
    "LeftoverTokenError",
    "MathDomainError",
    "NegativeMarginError",
    "NewtonRaphsonSolverError",
    "NoTokensError",
    "NoVarsFoundError",
    "ReachedIterationLimitError",
    "ShuntingYardError",
    "SingleUnknownNotFoundError",
    "SingularJacobianError",
    "StationaryPointError",
    "SystemBuilderConsumedError",
    "UnclosedParenthesisError",
    "UnknownTokenError",
    "VariableNotInContextError",
    "WrongVarCountError",
]
