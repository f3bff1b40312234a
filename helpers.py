from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from fractions import Fraction
from functools import cached_property
from os import getenv

import z3

_PRINT_CALLS = getenv("PRINT_CALLS", "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class SatResult:
    result: z3.CheckSatResult
    model: z3.ModelRef | None = None

    @cached_property
    def sat(self) -> bool:
        return self.result == z3.sat

    @cached_property
    def unsat(self) -> bool:
        return self.result == z3.unsat

    @cached_property
    def timeout(self) -> bool:
        return self.result == z3.unknown


def sat_check(
    constraints: Iterable[z3.BoolRef],
    *,
    find_model: bool = False,
    print_calls: bool = _PRINT_CALLS,
) -> SatResult:
    """
    Check a conjunction of constraints with a fresh solver.

    :param find_model: also return a model when the constraints are satisfiable.
    :param print_calls: print every constraint before it is asserted
    (defaults to the `PRINT_CALLS` env var).
    """
    solver = default_solver()
    for c in constraints:
        if print_calls:
            print(c)
        solver.add(c)

    result = solver.check()
    if result != z3.sat or not find_model:
        return SatResult(result)

    return SatResult(result, solver.model())


def model_values(
    result: SatResult, consts: Mapping[str, z3.ArithRef]
) -> dict[str, Fraction]:
    """
    Read concrete values for `consts` out of a satisfiable result.
    Constants the model leaves unconstrained evaluate to zero.
    """
    assert result.model is not None, "No model to read values from"
    values = {}
    for name, const in consts.items():
        value = result.model.eval(const, model_completion=True)
        assert z3.is_rational_value(value), f"{name} has non-rational value {value}"
        values[name] = Fraction(
            value.numerator_as_long(), value.denominator_as_long()
        )
    return values


_DEFAULT_TIMEOUT = int(getenv("TIMEOUT_MS", "10_000"))  # 10 second timeout


def default_solver() -> z3.Solver:
    solver = z3.SolverFor("QF_LRA")
    solver.set(timeout=_DEFAULT_TIMEOUT)
    return solver
