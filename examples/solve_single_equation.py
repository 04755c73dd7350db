"""Example: solve one equation for its single unknown."""

from eqsystem import new_context, solve_equation_from_str, solve_equation_with_context

EQUATIONS = [
    "x + 4 = 12",
    "sin(t) = 0.5",
    "log(v, 2) = 5",
]


def main() -> None:
    for equation in EQUATIONS:
        name, value = solve_equation_from_str(equation, 1e-8, 100)
        print(f"{equation:<16} {name} = {value:.6f}")

    # start from a negative guess to pick the other root
    ctx = new_context()
    ctx.add_var("r", -3.0)
    name, value = solve_equation_with_context("r^2 = 2", ctx, 1e-8, 100)
    print(f"{'r^2 = 2':<16} {name} = {value:.6f}")


if __name__ == "__main__":
    main()
