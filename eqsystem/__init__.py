from .variable import Variable, VariableArena
from .context import Builtin, Context, Token, TokenKind, new_context
from .lexer import get_legal_variables, scan_words
from .shunting import eval_rpn, eval_str, eval_str_with_context, rpnify
from .compiler import (
    CompiledExpression,
    CompiledScalarExpression,
    compile_equation_to_fn,
    compile_equation_to_fn_of_mapping,
    compile_to_fn,
    compile_to_fn_of_mapping,
    frame_equation,
)
from .errors import *  # noqa: F401,F403
from .errors import __all__ as _errors_all
from .solver import (
    ConstrainResult,
    SolverConfig,
    System,
    SystemBuilder,
    get_equation_unknowns,
    get_solver_config,
    multivariate_newton_raphson,
    newton_raphson,
    set_solver_config,
    solve_equation_from_str,
    solve_equation_with_context,
)

__all__ = [
    'Variable',
    'VariableArena',
    'Builtin',
    'Context',
    'Token',
    'TokenKind',
    'new_context',
    'get_legal_variables',
    'scan_words',
    'eval_rpn',
    'eval_str',
    'eval_str_with_context',
    'rpnify',
    'CompiledExpression',
    'CompiledScalarExpression',
    'compile_equation_to_fn',
    'compile_equation_to_fn_of_mapping',
    'compile_to_fn',
    'compile_to_fn_of_mapping',
    'frame_equation',
    'ConstrainResult',
    'SolverConfig',
    'System',
    'SystemBuilder',
    'get_equation_unknowns',
    'get_solver_config',
    'multivariate_newton_raphson',
    'newton_raphson',
    'set_solver_config',
    'solve_equation_from_str',
    'solve_equation_with_context',
] + list(_errors_all)
