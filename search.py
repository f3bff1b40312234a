"""
Exhaustive depth-first search over symbolic states with tabling.

Every visited state goes through, in this order:
1. the trace sink (if any),
2. *report*: a state violating the property ends the whole run with a witness,
3. *prune*: a state whose region is covered by the table is not expanded,
4. *expand*: the region is recorded and a choice point
   with all enabled (process, transition) choices is pushed.

Backtracking is chronological and driven by an explicit stack of choice points,
so the depth of the search is not bounded by Python's recursion limit.
"""

import time
from collections.abc import Iterator
from dataclasses import dataclass, field

from constraints import EncodingError
from properties import Property, violates_mutex
from states import SymbolicState
from tabling import Table
from tracing import TraceSink, render_state
from ts import Choice, Step, SymbolicTransitionSystem

__all__ = [
    "SearchAborted",
    "SearchBudget",
    "SearchDriver",
    "SearchResult",
    "SearchStats",
    "Witness",
]


@dataclass(frozen=True)
class SearchBudget:
    """
    Limits checked cooperatively before every expansion.
    `None` means unlimited.
    """

    max_depth: int | None = None
    max_states: int | None = None
    time_limit: float | None = None  # seconds


@dataclass
class SearchStats:
    visited: int = 0
    expanded: int = 0
    pruned: int = 0
    infeasible: int = 0
    max_depth: int = 0

    def __str__(self) -> str:
        return (
            f"visited {self.visited}, expanded {self.expanded}, "
            f"pruned {self.pruned}, infeasible {self.infeasible}, "
            f"max depth {self.max_depth}"
        )


class SearchAborted(Exception):
    """The search exceeded its budget before completing."""

    def __init__(self, reason: str, stats: SearchStats) -> None:
        super().__init__(f"Search aborted: {reason} ({stats})")
        self.reason = reason
        self.stats = stats


@dataclass(frozen=True)
class Witness:
    """A reachable state violating the property, with the path leading to it."""

    state: SymbolicState
    path: tuple[Step, ...]

    @property
    def depth(self) -> int:
        return len(self.path)

    def __str__(self) -> str:
        lines = [render_state(self.state)]
        for i, step in enumerate(self.path, start=1):
            lines.append(f"  {i}. {step.choice}: {render_state(step.state)}")
        return "\n".join(lines)


@dataclass(frozen=True)
class SearchResult:
    witness: Witness | None
    stats: SearchStats
    encoding_errors: tuple[tuple[Choice, EncodingError], ...] = ()
    duration: float = 0.0

    @property
    def violated(self) -> bool:
        return self.witness is not None

    def __str__(self) -> str:
        if self.witness is None:
            return "no property violation found"
        return f"property violation found:\n{self.witness}"


@dataclass
class _ChoicePoint:
    state: SymbolicState
    path: tuple[Step, ...]
    choices: Iterator[Choice]


@dataclass
class SearchDriver:
    """
    Checks that no reachable state of `system` satisfies `prop`
    (by default: two processes in the critical section).

    The table is created anew on each `run`.
    """

    system: SymbolicTransitionSystem
    prop: Property = violates_mutex
    trace: TraceSink | None = None
    budget: SearchBudget = field(default_factory=SearchBudget)
    table: Table = field(default_factory=Table, init=False)
    stats: SearchStats = field(default_factory=SearchStats, init=False)
    _start: float = field(default=0.0, init=False, repr=False)

    def run(self) -> SearchResult:
        """
        :return: the result of an exhaustive search.
        :raises SearchAborted: if the budget runs out first.
        """
        self.table = Table()
        self.stats = SearchStats()
        self._start = time.monotonic()
        errors: list[tuple[Choice, EncodingError]] = []
        stack: list[_ChoicePoint] = []

        witness = self._visit(self.system.initial_state(), (), stack)
        while witness is None and stack:
            frame = stack[-1]
            choice = next(frame.choices, None)
            if choice is None:
                stack.pop()
                continue

            try:
                successor = self.system.fire(choice, frame.state)
            except EncodingError as e:
                print(f"Encoding error in {choice} at {render_state(frame.state)}: {e}")
                errors.append((choice, e))
                continue

            if successor is None:
                self.stats.infeasible += 1
                continue

            path = frame.path + (Step(choice, successor),)
            witness = self._visit(successor, path, stack)

        return SearchResult(
            witness, self.stats, tuple(errors), time.monotonic() - self._start
        )

    def _visit(
        self,
        state: SymbolicState,
        path: tuple[Step, ...],
        stack: list[_ChoicePoint],
    ) -> Witness | None:
        self.stats.visited += 1
        self.stats.max_depth = max(self.stats.max_depth, len(path))
        store = state.canonical_store
        if self.trace is not None:
            self.trace(state.control, store)

        if self.prop(state.control):
            return Witness(state, path)

        if self.table.tabled(state.control, store):
            self.stats.pruned += 1
            return None

        self._check_budget(len(path))
        self.table.record(state.control, store)
        self.stats.expanded += 1
        stack.append(_ChoicePoint(state, path, iter(self.system.choices(state))))
        return None

    def _check_budget(self, depth: int) -> None:
        budget = self.budget
        if budget.max_depth is not None and depth > budget.max_depth:
            raise SearchAborted(f"depth {depth} exceeds {budget.max_depth}", self.stats)
        if budget.max_states is not None and self.stats.expanded >= budget.max_states:
            raise SearchAborted(
                f"expanded {self.stats.expanded} states", self.stats
            )
        if (
            budget.time_limit is not None
            and time.monotonic() - self._start >= budget.time_limit
        ):
            raise SearchAborted(
                f"time limit of {budget.time_limit}s exceeded", self.stats
            )
