import math
import warnings

import numpy as np
import pytest

from eqsystem.errors import (
    ImproperlyConstrainedSystemError,
    NegativeMarginError,
    ReachedIterationLimitError,
    SingularJacobianError,
    StationaryPointError,
)
from eqsystem.solver import SolverConfig, get_solver_config, set_solver_config
from eqsystem.solver.newton import jacobian, multivariate_newton_raphson, newton_raphson


def test_newton_raphson_finds_square_root():
    root = newton_raphson(lambda x: x * x - 2.0, 1.0, 1e-8, 50)
    assert root == pytest.approx(math.sqrt(2.0), rel=1e-6)


def test_newton_raphson_double_root_near_zero():
    root = newton_raphson(lambda x: x * x, 1.0, 1e-4, 100)
    assert abs(root) < 1e-3


@pytest.mark.parametrize('margin', [0.0, -1e-3])
def test_newton_raphson_rejects_non_positive_margin(margin):
    with pytest.raises(NegativeMarginError):
        newton_raphson(lambda x: x, 1.0, margin, 10)


def test_newton_raphson_zero_limit_never_evaluates():
    calls = []

    def f(x):
        calls.append(x)
        return x - 1.0

    with pytest.raises(ReachedIterationLimitError):
        newton_raphson(f, 0.0, 1e-4, 0)
    assert calls == []


def test_newton_raphson_runs_out_of_iterations():
    with pytest.raises(ReachedIterationLimitError):
        newton_raphson(lambda x: x * x + 1.0, 3.0, 1e-6, 25)


def test_newton_raphson_stationary_point():
    with pytest.raises(StationaryPointError):
        newton_raphson(lambda x: 5.0, 1.0, 1e-4, 10)
    assert newton_raphson(lambda x: 0.0, 2.5, 1e-4, 10) == 2.5


def test_newton_raphson_uses_configured_step():
    seen = []

    def f(x):
        seen.append(x)
        return x - 3.0

    original = get_solver_config()
    try:
        set_solver_config(SolverConfig(step=0.5))
        newton_raphson(f, 1.0, 1e-4, 10)
    finally:
        set_solver_config(original)
    assert seen[1] == 1.5


def test_jacobian_restores_guess():
    guess = {"x": 2.0, "y": 3.0}
    functions = [lambda g: g["x"] * g["y"], lambda g: g["x"] - g["y"]]
    residuals = np.array([f(guess) for f in functions])
    matrix = jacobian(functions, guess, residuals, 1e-6)
    assert matrix.shape == (2, 2)
    np.testing.assert_allclose(matrix, [[3.0, 2.0], [1.0, -1.0]], rtol=1e-4)
    assert guess == {"x": 2.0, "y": 3.0}


def test_multivariate_newton_raphson_linear_system():
    functions = [
        lambda g: g["x"] + g["y"] - 9.0,
        lambda g: g["x"] - g["y"] - 4.0,
    ]
    guess = {"x": 1.0, "y": 1.0}
    solution = multivariate_newton_raphson(functions, guess, 1e-6, 20)
    assert solution["x"] == pytest.approx(6.5)
    assert solution["y"] == pytest.approx(2.5)
    assert guess == solution


def test_multivariate_newton_raphson_nonlinear_system():
    functions = [
        lambda g: g["x"] ** 2 + g["y"] ** 2 - 25.0,
        lambda g: g["x"] - g["y"] - 1.0,
    ]
    solution = multivariate_newton_raphson(functions, {"x": 4.0, "y": 2.0}, 1e-6, 50)
    assert solution["x"] == pytest.approx(4.0, abs=1e-5)
    assert solution["y"] == pytest.approx(3.0, abs=1e-5)


def test_multivariate_argument_checks_run_in_order():
    functions = [lambda g: g["x"], lambda g: g["x"]]
    with pytest.raises(NegativeMarginError):
        multivariate_newton_raphson(functions, {"x": 1.0}, 0.0, 0)
    with pytest.raises(ReachedIterationLimitError):
        multivariate_newton_raphson(functions, {"x": 1.0}, 1e-4, 0)
    with pytest.raises(ImproperlyConstrainedSystemError):
        multivariate_newton_raphson(functions, {"x": 1.0}, 1e-4, 10)


def test_multivariate_zero_limit_never_evaluates():
    calls = []

    def f(g):
        calls.append(dict(g))
        return g["x"]

    with pytest.raises(ReachedIterationLimitError):
        multivariate_newton_raphson([f], {"x": 1.0}, 1e-4, 0)
    assert calls == []


def test_multivariate_singular_jacobian():
    # neither residual depends on y
    functions = [lambda g: g["x"] - 1.0, lambda g: 2.0 * g["x"] - 2.0]
    with pytest.raises(SingularJacobianError):
        multivariate_newton_raphson(functions, {"x": 0.0, "y": 0.0}, 1e-4, 10)


def test_multivariate_non_finite_jacobian():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        with pytest.raises(SingularJacobianError):
            multivariate_newton_raphson([lambda g: math.inf], {"x": 0.0}, 1e-4, 10)


def test_multivariate_runs_out_of_iterations():
    functions = [lambda g: g["x"] ** 2 + 1.0]
    with pytest.raises(ReachedIterationLimitError):
        multivariate_newton_raphson(functions, {"x": 3.0}, 1e-6, 15)


class _CappedGuess(dict):
    """Guess mapping whose writes saturate at 2.0."""

    def __setitem__(self, name, value):
        super().__setitem__(name, min(value, 2.0))


def test_jacobian_steps_backwards_at_upper_bound():
    guess = _CappedGuess(x=2.0, y=1.0)
    functions = [lambda g: g["x"] ** 2 + g["y"], lambda g: g["x"] - g["y"]]
    residuals = np.array([f(guess) for f in functions])
    matrix = jacobian(functions, guess, residuals, 1e-6)
    np.testing.assert_allclose(matrix, [[4.0, 1.0], [1.0, -1.0]], rtol=1e-4)
    assert guess == {"x": 2.0, "y": 1.0}


def test_multivariate_root_on_upper_bound():
    functions = [
        lambda g: g["x"] + g["y"] - 4.0,
        lambda g: g["x"] - g["y"],
    ]
    solution = multivariate_newton_raphson(functions, _CappedGuess(x=2.0, y=2.0), 1e-6, 10)
    assert solution == {"x": 2.0, "y": 2.0}


def test_newton_raphson_keeps_iterates_inside_clamp():
    seen = []

    def f(x):
        seen.append(x)
        return x * x - 4.0

    root = newton_raphson(f, 0.0, 1e-8, 100, clamp=lambda x: min(max(x, 0.0), 10.0))
    assert root == pytest.approx(2.0)
    assert all(0.0 <= x <= 10.0 for x in seen)


def test_newton_raphson_root_on_lower_bound():
    root = newton_raphson(lambda x: x * (x - 20.0), 1.0, 1e-4, 50, clamp=lambda x: max(x, 0.0))
    assert root == 0.0
