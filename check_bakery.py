"""
Command-line entry point: checks mutual exclusion of the Bakery algorithm.

Configured through environment variables:
`PROCESSES` (number of processes, default 2), `TRACE` (print every visited state),
`MAX_DEPTH`, `MAX_STATES` and `TIME_LIMIT` (seconds, may be fractional) to bound the search.
Exits with 0 when no violation is found, 1 when one is found
and -1 on invalid input or an exhausted budget.
"""

from os import getenv

from bakery import BakerySystem
from search import SearchAborted, SearchBudget, SearchDriver, SearchResult
from ts import SymbolicTransitionSystem
from tracing import PrintSink


def check_mutex(
    system: SymbolicTransitionSystem,
    *,
    trace: bool = False,
    budget: SearchBudget | None = None,
) -> SearchResult:
    """
    Search `system` for a state with two processes in the critical section
    and print the outcome.

    :param trace: print every visited state.
    :raises search.SearchAborted: if the budget runs out first.
    """
    print(f"Checking mutual exclusion of {system}")
    driver = SearchDriver(
        system,
        trace=PrintSink() if trace else None,
        budget=budget or SearchBudget(),
    )
    result = driver.run()

    if result.witness is not None:
        print("Checking mutual exclusion: failed")
        print(result)
        tickets = ", ".join(str(t) for t in result.witness.state.concrete_tickets())
        print(f"Concrete tickets: ({tickets})")
    else:
        print("Checking mutual exclusion: passed")
        print(result)

    if result.encoding_errors:
        print(f"Encoding errors: {len(result.encoding_errors)}")
    print(f"Stats: {result.stats}")
    print(f"Table: {driver.table.size} regions over {len(driver.table)} control vectors")
    print(f"Time: {result.duration:.3f} seconds")
    return result


def check_bakery(
    processes: int, trace: bool = False, budget: SearchBudget | None = None
) -> SearchResult:
    return check_mutex(BakerySystem(processes), trace=trace, budget=budget)


def _int_env(name: str, default: int | None) -> int | None:
    value = getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _float_env(name: str, default: float | None) -> float | None:
    value = getenv(name)
    if value is None or value == "":
        return default
    return float(value)


def _flag_env(name: str) -> bool:
    return getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


if __name__ == "__main__":
    try:
        processes = _int_env("PROCESSES", 2)
        max_depth = _int_env("MAX_DEPTH", None)
        max_states = _int_env("MAX_STATES", None)
        time_limit = _float_env("TIME_LIMIT", None)
    except ValueError as e:
        print(f"Invalid env var: {e}")
        exit(-1)
    assert processes is not None
    if processes < 1:
        print(f"`PROCESSES` must be positive, got {processes}")
        exit(-1)

    try:
        outcome = check_bakery(
            processes,
            trace=_flag_env("TRACE"),
            budget=SearchBudget(max_depth, max_states, time_limit),
        )
    except SearchAborted as e:
        print(e)
        exit(-1)
    exit(1 if outcome.violated else 0)
