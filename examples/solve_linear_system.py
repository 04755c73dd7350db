"""Example: grow a system equation by equation, then solve it."""

from eqsystem import SystemBuilder, new_context

CANDIDATES = [
    "y + z + w = 3",
    "z = 2",
    "w - z = k",
]


def main() -> None:
    ctx = new_context()
    ctx.add_const("k", 1.0)
    builder = SystemBuilder("x + y = 10", ctx)
    if not builder.try_fully_constrain_with(CANDIDATES):
        raise SystemExit(f"not enough equations for {builder.unknowns}")
    system = builder.build_system()
    print("Equations:", system.equations)
    for name, value in system.solve(1e-8, 50).items():
        print(f"{name} = {value:.6f}")


if __name__ == "__main__":
    main()
