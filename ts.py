"""
This module provides the framework for defining
symbolic transition systems over N interleaved processes.

A system is defined by subclassing `SymbolicTransitionSystem`
and annotating methods with [`@transition`](#transition).
Each transition is guarded by the program point
the moving process must be at,
and maps a symbolic state to its successor
(or to `None` when the successor's constraints are unsatisfiable).
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import cached_property

from metadata import add_marker, get_methods
from states import ProgramPoint, SymbolicState

__all__ = [
    "SymbolicTransitionSystem",
    "Transition",
    "TransitionFun",
    "Choice",
    "Step",
    "transition",
]

type TransitionFun[TS: SymbolicTransitionSystem] = Callable[
    [TS, SymbolicState, int], SymbolicState | None
]


@dataclass(frozen=True)
class Transition:
    name: str
    guard: ProgramPoint
    fun: TransitionFun

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Choice:
    """A nondeterministic choice: process `pid` fires `transition`."""

    pid: int
    transition: Transition

    def __str__(self) -> str:
        return f"{self.transition}({self.pid})"


@dataclass(frozen=True)
class Step:
    """A fired choice together with the state it produced."""

    choice: Choice
    state: SymbolicState

    def __str__(self) -> str:
        return f"{self.choice} -> {self.state}"


class SymbolicTransitionSystem(ABC):
    """
    Abstract base class for symbolic transition systems.

    ```python
    class Toggle(SymbolicTransitionSystem):
        def initial_state(self) -> SymbolicState:
            return SymbolicState.initial(self.processes)

        @transition(ProgramPoint.IDLE)
        def wake(self, state: SymbolicState, p: int) -> SymbolicState | None:
            return state.moved(p, ProgramPoint.WAITING)
    ```
    """

    processes: int

    def __init__(self, processes: int) -> None:
        if processes < 1:
            raise ValueError(f"Process count must be positive, got {processes}")
        self.processes = processes

    @abstractmethod
    def initial_state(self) -> SymbolicState: ...

    @cached_property
    def transitions(self) -> dict[str, Transition]:
        return {
            name: Transition(name, guard, member)
            for name, member, guard in get_methods(self, _TS_TRANSITION)
        }

    def enabled(self, state: SymbolicState, pid: int) -> list[Transition]:
        """
        :return: the transitions whose guard matches the program point of `pid`.
        """
        point = state.point(pid)
        return [tr for tr in self.transitions.values() if tr.guard is point]

    def choices(self, state: SymbolicState) -> Iterable[Choice]:
        """
        All (process, transition) combinations enabled in `state`,
        processes in increasing id order.
        """
        for pid in state.pids:
            for tr in self.enabled(state, pid):
                yield Choice(pid, tr)

    def fire(self, choice: Choice, state: SymbolicState) -> SymbolicState | None:
        """
        :return: the successor, or `None` if it is infeasible.
        :raises constraints.EncodingError: if the transition builds a malformed relation.
        """
        assert (
            state.point(choice.pid) is choice.transition.guard
        ), f"{choice} is not enabled in {state}"
        return choice.transition.fun(self, state, choice.pid)

    def successors(self, state: SymbolicState) -> Iterable[Step]:
        for choice in self.choices(state):
            successor = self.fire(choice, state)
            if successor is not None:
                yield Step(choice, successor)

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.processes})"


_TS_TRANSITION = object()


def transition[TS: SymbolicTransitionSystem](
    guard: ProgramPoint,
) -> Callable[[TransitionFun[TS]], TransitionFun[TS]]:
    """
    Annotation (decorator) for defining a transition,
    enabled for a process when it is at `guard`.
    Should only be used inside a subclass of `SymbolicTransitionSystem`.

    ```python
    class Toggle(SymbolicTransitionSystem):
        # snip...

        @transition(ProgramPoint.WAITING)
        def sleep(self, state: SymbolicState, p: int) -> SymbolicState | None:
            return state.moved(p, ProgramPoint.IDLE)
    ```
    """

    def mark(fun: TransitionFun[TS]) -> TransitionFun[TS]:
        return add_marker(fun, _TS_TRANSITION, guard)

    return mark
