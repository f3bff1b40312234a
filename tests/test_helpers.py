from fractions import Fraction

import z3

from helpers import model_values, sat_check


def test_sat_check():
    x = z3.Real("x")
    assert sat_check([x > 1]).sat
    assert sat_check([x > 1, x < 0]).unsat


def test_sat_check_prints_calls(capsys):
    x = z3.Real("x")
    sat_check([x >= 1], print_calls=True)
    assert "x >= 1" in capsys.readouterr().out


def test_sat_check_is_quiet_by_default(capsys):
    x = z3.Real("x")
    sat_check([x >= 1], print_calls=False)
    assert capsys.readouterr().out == ""


def test_model_values():
    x = z3.Real("x")
    result = sat_check([x == z3.RealVal("1/2")], find_model=True)
    assert model_values(result, {"x": x}) == {"x": Fraction(1, 2)}
