"""Example: intersect a circle with a line, choosing the root by domain."""

from eqsystem import SystemBuilder

TEXT = """
x^2 + y^2 = 25
x - y = 1
"""


def main() -> None:
    first, *rest = [line.strip() for line in TEXT.strip().splitlines()]
    builder = SystemBuilder(first)
    builder.try_fully_constrain_with(rest)
    system = builder.build_system()
    for lo, hi in ((0.0, 10.0), (-10.0, 0.0)):
        system.specify_variable("x", (lo + hi) / 2, lo, hi)
        system.specify_variable("y", (lo + hi) / 2, lo, hi)
        solution = system.solve(1e-8, 100)
        print(f"x in [{lo:g}, {hi:g}]: x={solution['x']:.6f}, y={solution['y']:.6f}")


if __name__ == "__main__":
    main()
