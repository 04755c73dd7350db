import argparse
import logging
import math
import sys
from typing import Dict, List, Optional, Sequence, Tuple

from eqsystem import (
    EquationSolverError,
    SystemBuilder,
    get_equation_unknowns,
    new_context,
    solve_equation_with_context,
)
from eqsystem.solver import get_solver_config

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_assignment(value: str) -> Tuple[str, float]:
    name, sep, raw = value.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {value!r}")
    try:
        return name.strip(), float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number in {value!r}") from None


def _parse_domain(value: str) -> Tuple[str, float, float]:
    name, sep, raw = value.partition("=")
    low, colon, high = raw.partition(":")
    if not sep or not colon or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=MIN:MAX, got {value!r}")
    try:
        lo = float(low) if low.strip() else -math.inf
        hi = float(high) if high.strip() else math.inf
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid bound in {value!r}") from None
    return name.strip(), lo, hi


def _read_equations(path: str) -> List[str]:
    equations = []
    with open(path) as fin:
        for line in fin:
            line = line.split("#", 1)[0].strip()
            if line:
                equations.append(line)
    return equations


def _solve(
    equations: List[str],
    constants: Dict[str, float],
    guesses: Dict[str, float],
    domains: Dict[str, Tuple[float, float]],
    margin: float,
    limit: int,
) -> Dict[str, float]:
    ctx = new_context()
    for name, value in constants.items():
        ctx.add_const(name, value)

    if len(equations) == 1:
        unknowns = get_equation_unknowns(equations[0], ctx)
        if len(unknowns) == 1:
            name = unknowns[0]
            lo, hi = domains.get(name, (-math.inf, math.inf))
            ctx.add_var(name, guesses.get(name, get_solver_config().default_guess), lo, hi)
            name, value = solve_equation_with_context(equations[0], ctx, margin, limit)
            return {name: value}

    builder = SystemBuilder(equations[0], ctx)
    if not builder.try_fully_constrain_with(equations[1:]):
        logger.error(
            "System is not fully constrained: %d usable equation(s) for unknowns %s",
            len(builder.equations),
            builder.unknowns,
        )
        raise SystemExit(1)
    system = builder.build_system()
    for name in system.unknowns:
        lo, hi = domains.get(name, (-math.inf, math.inf))
        system.specify_variable(name, guesses.get(name, system.guesses[name]), lo, hi)
    return system.solve(margin, limit)


def main(argv: Optional[Sequence[str]] = None) -> None:
    cfg = get_solver_config()
    parser = argparse.ArgumentParser(description="Solve equations and systems of equations numerically")
    parser.add_argument("equations", nargs="*", help="Equations such as 'x + y = 9'")
    parser.add_argument("--file", help="Read additional equations from a file, one per line")
    parser.add_argument(
        "--const", action="append", default=[], type=_parse_assignment, metavar="NAME=VALUE",
        help="Define a named constant",
    )
    parser.add_argument(
        "--guess", action="append", default=[], type=_parse_assignment, metavar="NAME=VALUE",
        help="Initial guess for an unknown",
    )
    parser.add_argument(
        "--domain", action="append", default=[], type=_parse_domain, metavar="NAME=MIN:MAX",
        help="Clamp an unknown to [MIN, MAX]; either bound may be empty",
    )
    parser.add_argument(
        "--margin", type=float, default=cfg.default_margin,
        help=f"Convergence margin (default: {cfg.default_margin:g})",
    )
    parser.add_argument(
        "--limit", type=int, default=cfg.default_limit,
        help=f"Iteration limit (default: {cfg.default_limit})",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    equations = list(args.equations)
    if args.file:
        logger.info("Reading equations from %s", args.file)
        equations.extend(_read_equations(args.file))
    if not equations:
        parser.error("no equations given")

    try:
        solution = _solve(
            equations,
            dict(args.const),
            dict(args.guess),
            {name: (lo, hi) for name, lo, hi in args.domain},
            args.margin,
            args.limit,
        )
    except EquationSolverError as exc:
        logger.error("Failed to solve: %s", exc)
        raise SystemExit(1)

    for name, value in solution.items():
        print(f"{name}={value}")


if __name__ == "__main__":
    main(sys.argv[1:])
