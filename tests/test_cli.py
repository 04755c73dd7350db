import argparse
import math

import pytest

import eqsystem.__main__ as cli


def _read_solution(capsys):
    out = capsys.readouterr().out
    return {name: float(value) for name, value in (line.split("=") for line in out.splitlines())}


def test_main_solves_single_equation(capsys):
    cli.main(["x + 4 = 12"])
    solution = _read_solution(capsys)
    assert solution["x"] == pytest.approx(8.0, abs=1e-4)


def test_main_uses_guess_for_single_equation(capsys):
    cli.main(["x^2 = 4", "--guess", "x=-3", "--margin", "1e-8"])
    assert _read_solution(capsys)["x"] == pytest.approx(-2.0)


def test_main_solves_system_with_constants(capsys):
    cli.main(["x + y = k", "x - y = 4", "--const", "k=9"])
    solution = _read_solution(capsys)
    assert list(solution) == ["x", "y"]
    assert solution["x"] == pytest.approx(6.5)
    assert solution["y"] == pytest.approx(2.5)


def test_main_applies_guesses_and_domains(capsys):
    cli.main(
        [
            "x^2 + y^2 = 25",
            "x - y = 1",
            "--guess", "x=5",
            "--guess", "y=1",
            "--domain", "x=0:10",
            "--limit", "50",
        ]
    )
    solution = _read_solution(capsys)
    assert solution["x"] == pytest.approx(4.0, abs=1e-4)
    assert solution["y"] == pytest.approx(3.0, abs=1e-4)


def test_main_applies_domain_to_single_equation(capsys):
    cli.main(["x^2 = 4", "--domain", "x=0:10", "--guess", "x=-1", "--margin", "1e-8"])
    assert _read_solution(capsys)["x"] == pytest.approx(2.0)


def test_main_reads_equations_from_file(tmp_path, capsys):
    path = tmp_path / "system.txt"
    path.write_text("# chained system\nz = 2\nw - z = 1  # offset\n\n", encoding="utf-8")
    cli.main(["x + y = 10", "y + z + w = 3", "--file", str(path)])
    solution = _read_solution(capsys)
    assert solution["x"] == pytest.approx(12.0)
    assert solution["w"] == pytest.approx(3.0)


def test_main_fails_on_under_constrained_system(caplog):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["x + y = 3"])
    assert excinfo.value.code == 1
    assert "not fully constrained" in caplog.text


def test_main_fails_on_solver_error(caplog):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["x^2 + 1 = 0", "--limit", "5"])
    assert excinfo.value.code == 1
    assert "Failed to solve" in caplog.text


def test_main_requires_equations():
    with pytest.raises(SystemExit) as excinfo:
        cli.main([])
    assert excinfo.value.code == 2


def test_parse_domain_allows_open_bounds():
    assert cli._parse_domain("x=:5") == ("x", -math.inf, 5.0)
    assert cli._parse_domain("x=1.5:") == ("x", 1.5, math.inf)
    with pytest.raises(argparse.ArgumentTypeError):
        cli._parse_domain("x=1")
    with pytest.raises(argparse.ArgumentTypeError):
        cli._parse_assignment("x")
