import math

import pytest

from eqsystem.context import Context, new_context
from eqsystem.errors import (
    NoVarsFoundError,
    SingleUnknownNotFoundError,
    SystemBuilderConsumedError,
    UnclosedParenthesisError,
)
from eqsystem.solver import (
    ConstrainResult,
    SystemBuilder,
    get_equation_unknowns,
    solve_equation_from_str,
    solve_equation_with_context,
)


def _build(*equations, context=None):
    builder = SystemBuilder(equations[0], context)
    assert builder.try_fully_constrain_with(equations[1:])
    return builder.build_system()


def test_get_equation_unknowns_skips_constants_and_functions():
    ctx = new_context()
    ctx.add_const("k", 2.0)
    ctx.add_var("y", 1.0)
    assert get_equation_unknowns("sin(x) * k + y = pi", ctx) == ["x", "y"]


def test_seed_equation_needs_an_unknown():
    with pytest.raises(NoVarsFoundError):
        SystemBuilder("1 + 2 = 3")


def test_rejects_equation_with_two_new_unknowns():
    builder = SystemBuilder("x + y = 10")
    assert builder.try_constrain_with("a + b = 1") is ConstrainResult.WILL_NOT_CONSTRAIN
    assert builder.unknowns == ["x", "y"]
    assert builder.equations == ["x + y = 10"]
    assert builder.degrees_of_freedom == 1


def test_rejects_equation_once_fully_constrained():
    builder = SystemBuilder("x = 3")
    assert builder.is_fully_constrained()
    assert builder.try_constrain_with("x = 4") is ConstrainResult.WILL_OVER_CONSTRAIN
    assert builder.equations == ["x = 3"]


def test_accepts_equation_with_one_new_unknown():
    builder = SystemBuilder("x + y = 10")
    assert builder.try_constrain_with("y - z = 1") is ConstrainResult.WILL_CONSTRAIN
    assert builder.unknowns == ["x", "y", "z"]
    assert not builder.is_fully_constrained()


def test_failed_compilation_leaves_builder_unchanged():
    ctx = new_context()
    builder = SystemBuilder("x + y = 3", ctx)
    with pytest.raises(UnclosedParenthesisError):
        builder.try_constrain_with("z + (1 = 2")
    assert "z" not in ctx
    assert builder.unknowns == ["x", "y"]
    assert builder.try_constrain_with("z + x = 2") is ConstrainResult.WILL_CONSTRAIN


def test_try_fully_constrain_with_retries_rejected_equations():
    builder = SystemBuilder("x + y = 10")
    assert builder.try_fully_constrain_with(["y + z + w = 3", "z = 2", "w - z = 1"])
    assert builder.unknowns == ["x", "y", "z", "w"]
    assert builder.equations == ["x + y = 10", "z = 2", "w - z = 1", "y + z + w = 3"]

    solution = builder.build_system().solve(1e-8, 20)
    assert solution["z"] == pytest.approx(2.0)
    assert solution["w"] == pytest.approx(3.0)
    assert solution["y"] == pytest.approx(-2.0)
    assert solution["x"] == pytest.approx(12.0)


def test_try_fully_constrain_with_gives_up_without_progress():
    builder = SystemBuilder("x + y = 10")
    assert not builder.try_fully_constrain_with(["a + b = 1", "b - c = 2"])
    assert builder.equations == ["x + y = 10"]


def test_build_system_consumes_builder():
    builder = SystemBuilder("x + y = 10")
    assert builder.build_system() is None
    with pytest.raises(SystemBuilderConsumedError):
        builder.try_constrain_with("x - y = 2")
    with pytest.raises(SystemBuilderConsumedError):
        builder.build_system()


def test_solve_linear_system():
    system = _build("x + y = 9", "x - y = 4")
    assert system.unknowns == ["x", "y"]
    solution = system.solve()
    assert solution["x"] == pytest.approx(6.5)
    assert solution["y"] == pytest.approx(2.5)
    assert system.guesses == solution


def test_solve_three_variable_system():
    system = _build("x + y + z = 9", "x - y = 71.8", "2*z = 3.2")
    solution = system.solve(1e-8, 20)
    assert solution["x"] == pytest.approx(39.6)
    assert solution["y"] == pytest.approx(-32.2)
    assert solution["z"] == pytest.approx(1.6)


def test_solve_nonlinear_system_from_guesses():
    system = _build("x^2 + y^2 = 25", "x - y = 1")
    assert system.specify_guess_value("x", 4.0)
    assert system.specify_guess_value("y", 2.0)
    solution = system.solve(1e-6, 50)
    assert solution["x"] == pytest.approx(4.0, abs=1e-5)
    assert solution["y"] == pytest.approx(3.0, abs=1e-5)


def test_specify_variable_clamps_guess():
    system = _build("x + y = 9", "x - y = 4")
    assert system.specify_variable("x", 50.0, 0.0, 10.0)
    assert system.guesses["x"] == 10.0
    assert not system.specify_variable("q", 1.0, 0.0, 1.0)
    assert not system.specify_domain("q", 0.0, 1.0)
    assert not system.specify_guess_value("q", 1.0)


def test_domain_selects_root():
    system = _build("x^2 = 4")
    system.specify_variable("x", -1.0, 0.0, 10.0)
    solution = system.solve(1e-8, 100)
    assert solution["x"] == pytest.approx(2.0)


def test_context_constants_and_declared_variables():
    ctx = new_context()
    ctx.add_const("k", 3.0)
    ctx.add_var("x", 5.0)
    system = _build("x * k = 12", context=ctx)
    assert system.guesses == {"x": 5.0}
    assert system.solve()["x"] == pytest.approx(4.0)


def test_solve_equation_from_str():
    name, value = solve_equation_from_str("x + 4 = 12", 1e-4, 10)
    assert name == "x"
    assert value == pytest.approx(8.0, abs=1e-4)


def test_solve_equation_from_str_with_builtins():
    name, value = solve_equation_from_str("sin(t) = 0.5")
    assert name == "t"
    assert value == pytest.approx(math.asin(0.5), abs=1e-4)


@pytest.mark.parametrize('equation', ["x + y = 3", "1 + 1 = 2"])
def test_solve_equation_from_str_needs_single_unknown(equation):
    with pytest.raises(SingleUnknownNotFoundError):
        solve_equation_from_str(equation)


def test_solve_equation_with_context_uses_current_value():
    ctx = new_context()
    ctx.add_var("x", -3.0)
    name, value = solve_equation_with_context("x^2 = 4", ctx, 1e-8, 50)
    assert name == "x"
    assert value == pytest.approx(-2.0)


def test_solve_equation_with_context_needs_one_variable():
    ctx = Context()
    with pytest.raises(SingleUnknownNotFoundError):
        solve_equation_with_context("x = 1", ctx)
    ctx.add_var("x", 0.0)
    ctx.add_var("y", 0.0)
    with pytest.raises(SingleUnknownNotFoundError):
        solve_equation_with_context("x = y", ctx)


def test_solve_root_on_domain_bound():
    system = _build("x + y = 9", "x - y = 4")
    system.specify_variable("x", 1.0, 0.0, 6.5)
    solution = system.solve(1e-4, 20)
    assert solution["x"] == pytest.approx(6.5)
    assert solution["y"] == pytest.approx(2.5)


def test_single_equation_respects_domain():
    ctx = new_context()
    ctx.add_var("x", 1.0, 0.0, 10.0)
    name, value = solve_equation_with_context("x*(x-20) = 0", ctx, 1e-4, 50)
    assert 0.0 <= value <= 10.0
    assert value == pytest.approx(0.0)
    assert ctx.variable(name).value == value


def test_single_equation_recovers_from_overshoot():
    ctx = new_context()
    ctx.add_var("x", -1.0, 0.0, 10.0)
    name, value = solve_equation_with_context("x^2 = 4", ctx, 1e-8, 100)
    assert value == pytest.approx(2.0)
    assert ctx.variable(name).value == value
