import pytest

from bakery import BakerySystem
from constraints import EncodingError, Relation, TicketVar
from properties import critical_processes, violates_mutex
from search import SearchAborted, SearchBudget, SearchDriver
from states import ProgramPoint, SymbolicState
from tracing import CollectingSink
from ts import Choice

I, W, C = ProgramPoint.IDLE, ProgramPoint.WAITING, ProgramPoint.CRITICAL


class TiedBakery(BakerySystem):
    """Tickets may tie, and ties may enter."""

    def draw_relation(self, fresh: TicketVar, other: TicketVar) -> Relation | None:
        return fresh >= other

    def entry_relation(self, own: TicketVar, other: TicketVar) -> Relation | None:
        return own <= other


class UnguardedBakery(BakerySystem):
    def entry_relation(self, own: TicketVar, other: TicketVar) -> Relation | None:
        return None


class MalformedBakery(BakerySystem):
    def entry_relation(self, own: TicketVar, other: TicketVar) -> Relation | None:
        return Relation(own.as_expr(), "!=", other.as_expr())  # type: ignore[arg-type]


class RecordingBakery(BakerySystem):
    def __init__(self, processes: int) -> None:
        super().__init__(processes)
        self.reached: list[SymbolicState] = []

    def fire(self, choice: Choice, state: SymbolicState) -> SymbolicState | None:
        successor = super().fire(choice, state)
        if successor is not None:
            self.reached.append(successor)
        return successor


def test_violates_mutex():
    assert not violates_mutex((I, W, C))
    assert violates_mutex((C, W, C))
    assert critical_processes((C, W, C)) == [1, 3]


@pytest.mark.parametrize("processes", [1, 2, 3])
def test_bakery_is_mutually_exclusive(processes):
    result = SearchDriver(BakerySystem(processes)).run()
    assert not result.violated
    assert result.witness is None
    assert result.encoding_errors == ()
    assert result.stats.pruned > 0
    assert str(result) == "no property violation found"


def test_reachable_states_are_well_formed():
    system = RecordingBakery(3)
    result = SearchDriver(system).run()
    assert not result.violated
    assert system.reached
    for state in system.reached:
        assert state.idle_invariant()
        for pid in state.pids:
            assert len(system.enabled(state, pid)) <= 1


def test_ties_break_mutual_exclusion():
    driver = SearchDriver(TiedBakery(2), budget=SearchBudget(max_depth=20))
    result = driver.run()
    assert result.violated
    witness = result.witness
    assert witness is not None
    assert critical_processes(witness.state.control) == [1, 2]
    assert witness.path[-1].state is witness.state
    assert witness.depth == len(witness.path)
    first, second = witness.state.concrete_tickets()
    assert first == second
    assert str(result).startswith("property violation found:")


def test_unguarded_entry_breaks_mutual_exclusion():
    result = SearchDriver(UnguardedBakery(2), budget=SearchBudget(max_depth=10)).run()
    assert result.violated
    assert violates_mutex(result.witness.state.control)


def test_encoding_errors_fail_only_their_branch(capsys):
    result = SearchDriver(MalformedBakery(2)).run()
    assert not result.violated
    assert result.encoding_errors
    choice, error = result.encoding_errors[0]
    assert choice.transition.name == "enter_critical"
    assert isinstance(error, EncodingError)
    assert "Encoding error in enter_critical" in capsys.readouterr().out
    assert result.stats.expanded > 1


def test_trace_sink_sees_every_visit():
    sink = CollectingSink()
    result = SearchDriver(BakerySystem(2), trace=sink).run()
    assert len(sink) == result.stats.visited
    control, store = sink.visited[0]
    assert control == (I, I)
    assert len(store) == 0


def test_trace_sink_does_not_change_the_search():
    silent = SearchDriver(BakerySystem(2)).run()
    traced = SearchDriver(BakerySystem(2), trace=CollectingSink()).run()
    assert silent.stats == traced.stats


def test_custom_property():
    def someone_waits(control) -> bool:
        return W in control

    result = SearchDriver(BakerySystem(2), prop=someone_waits).run()
    assert result.violated
    assert result.witness.state.control == (W, I)
    assert result.witness.depth == 1


def test_depth_budget():
    with pytest.raises(SearchAborted) as info:
        SearchDriver(BakerySystem(2), budget=SearchBudget(max_depth=1)).run()
    assert "depth" in info.value.reason


def test_state_budget():
    with pytest.raises(SearchAborted) as info:
        SearchDriver(BakerySystem(2), budget=SearchBudget(max_states=1)).run()
    assert info.value.stats.expanded == 1


def test_table_is_scoped_per_run():
    driver = SearchDriver(BakerySystem(2))
    first = driver.run()
    size = driver.table.size
    second = driver.run()
    assert driver.table.size == size
    assert first.stats == second.stats


def test_time_budget():
    with pytest.raises(SearchAborted) as info:
        SearchDriver(BakerySystem(2), budget=SearchBudget(time_limit=0)).run()
    assert "time limit" in info.value.reason
