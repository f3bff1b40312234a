import pytest

from bakery import BakerySystem
from states import ProgramPoint, SymbolicState
from ts import Choice, SymbolicTransitionSystem, transition

I, W, C = ProgramPoint.IDLE, ProgramPoint.WAITING, ProgramPoint.CRITICAL


class Toggle(SymbolicTransitionSystem):
    def initial_state(self) -> SymbolicState:
        return SymbolicState.initial(self.processes)

    @transition(ProgramPoint.IDLE)
    def wake(self, state: SymbolicState, p: int) -> SymbolicState | None:
        return state.moved(p, ProgramPoint.WAITING)

    @transition(ProgramPoint.WAITING)
    def sleep(self, state: SymbolicState, p: int) -> SymbolicState | None:
        return state.moved(p, ProgramPoint.IDLE)

    @transition(ProgramPoint.WAITING)
    def block(self, state: SymbolicState, p: int) -> SymbolicState | None:
        return None


def test_transitions_in_definition_order():
    assert list(Toggle(1).transitions) == ["wake", "sleep", "block"]
    assert list(BakerySystem(1).transitions) == [
        "draw_ticket",
        "enter_critical",
        "exit_critical",
    ]


def test_transitions_are_guarded():
    system = Toggle(1)
    assert {tr.name: tr.guard for tr in system.transitions.values()} == {
        "wake": I,
        "sleep": W,
        "block": W,
    }


def test_choices_interleave_processes():
    system = Toggle(2)
    state = system.initial_state().moved(2, W)
    assert [str(choice) for choice in system.choices(state)] == [
        "wake(1)",
        "sleep(2)",
        "block(2)",
    ]


def test_successors_skip_infeasible():
    system = Toggle(1)
    state = system.initial_state().moved(1, W)
    steps = list(system.successors(state))
    assert [str(step.choice) for step in steps] == ["sleep(1)"]
    assert steps[0].state.control == (I,)


def test_fire_requires_enabled_choice():
    system = Toggle(1)
    choice = Choice(1, system.transitions["sleep"])
    with pytest.raises(AssertionError):
        system.fire(choice, system.initial_state())


def test_subclass_inherits_transitions():
    class Drowsy(Toggle):
        @transition(ProgramPoint.WAITING)
        def doze(self, state: SymbolicState, p: int) -> SymbolicState | None:
            return state.moved(p, ProgramPoint.CRITICAL)

    assert list(Drowsy(1).transitions) == ["wake", "sleep", "block", "doze"]


def test_process_count_must_be_positive():
    with pytest.raises(ValueError):
        Toggle(0)
