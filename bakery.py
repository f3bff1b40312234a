"""
The N-process Bakery algorithm as a symbolic transition system.

Every process cycles through three atomic steps:
- `draw_ticket` (idle -> waiting): take a ticket strictly larger than
  every ticket currently held (and at least 1),
- `enter_critical` (waiting -> critical): enter once the own ticket is
  strictly smaller than every other ticket currently held,
- `exit_critical` (critical -> idle): give the ticket back.

Tickets are unbounded, so they are represented by fresh variables
constrained relative to each other rather than by concrete numbers.
Entry uses strict ticket order with no process-id tie-break:
equal tickets never enter.
"""

from constraints import Relation, TicketVar
from states import IDLE_TICKET, ProgramPoint, SymbolicState
from ts import SymbolicTransitionSystem, transition

__all__ = ["BakerySystem"]


class BakerySystem(SymbolicTransitionSystem):
    """
    The relations added by `draw_ticket` and `enter_critical`
    come from `draw_relation` and `entry_relation`,
    so variants of the protocol can be built by overriding them.
    """

    def initial_state(self) -> SymbolicState:
        return SymbolicState.initial(self.processes)

    def draw_relation(self, fresh: TicketVar, other: TicketVar) -> Relation | None:
        """New ticket is larger than `other`'s by at least one."""
        return fresh >= other + 1

    def entry_relation(self, own: TicketVar, other: TicketVar) -> Relation | None:
        """Own ticket has strict priority over `other`'s."""
        return own < other

    @transition(ProgramPoint.IDLE)
    def draw_ticket(self, state: SymbolicState, p: int) -> SymbolicState | None:
        fresh, state = state.fresh(p)
        relations = [
            relation
            for _, other in state.active(excluding=p)
            if (relation := self.draw_relation(fresh, other)) is not None
        ]
        relations.append(fresh >= 1)

        store = state.store.add(*relations)
        if store is None:
            return None
        return state.moved(p, ProgramPoint.WAITING, fresh, store)

    @transition(ProgramPoint.WAITING)
    def enter_critical(self, state: SymbolicState, p: int) -> SymbolicState | None:
        own = state.ticket(p)
        assert isinstance(own, TicketVar), f"Waiting process {p} holds no ticket"
        relations = [
            relation
            for _, other in state.active(excluding=p)
            if (relation := self.entry_relation(own, other)) is not None
        ]

        store = state.store.add(*relations)
        if store is None:
            return None
        return state.moved(p, ProgramPoint.CRITICAL, store=store)

    @transition(ProgramPoint.CRITICAL)
    def exit_critical(self, state: SymbolicState, p: int) -> SymbolicState | None:
        own = state.ticket(p)
        assert isinstance(own, TicketVar), f"Critical process {p} holds no ticket"
        return state.moved(
            p, ProgramPoint.IDLE, IDLE_TICKET, state.store.forget(own)
        )
