"""
Symbolic states of an N-process system:
a control vector (one program point per process),
a ticket vector and a constraint store over the live tickets.
"""

from collections.abc import Iterator
from dataclasses import dataclass, replace
from enum import Enum
from fractions import Fraction
from functools import cached_property
from typing import Self

from constraints import ConstraintStore, TicketVar

__all__ = [
    "ProgramPoint",
    "ControlVector",
    "Ticket",
    "IDLE_TICKET",
    "SymbolicState",
]


class ProgramPoint(Enum):
    IDLE = "idle"
    WAITING = "waiting"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value


type ControlVector = tuple[ProgramPoint, ...]
"""Program point of process `pid` is at index `pid - 1`."""

type Ticket = TicketVar | int

IDLE_TICKET = 0
"""The concrete ticket of a process that holds no ticket."""


@dataclass(frozen=True)
class SymbolicState:
    """
    A set of concrete states sharing a control vector,
    whose ticket values are described by `store`.

    Processes are numbered from 1.
    `allocated` counts the ticket variables drawn so far on the current path
    and determines the serial of the next fresh variable.
    """

    control: ControlVector
    tickets: tuple[Ticket, ...]
    store: ConstraintStore = ConstraintStore()
    allocated: int = 0

    def __post_init__(self) -> None:
        assert len(self.control) == len(
            self.tickets
        ), f"Control vector and ticket vector differ in length: {self}"

    @classmethod
    def initial(cls, processes: int) -> Self:
        """
        :return: the state where every process is idle without a ticket.
        """
        if processes < 1:
            raise ValueError(f"Process count must be positive, got {processes}")
        return cls(
            (ProgramPoint.IDLE,) * processes,
            (IDLE_TICKET,) * processes,
        )

    @property
    def processes(self) -> int:
        return len(self.control)

    @property
    def pids(self) -> range:
        return range(1, self.processes + 1)

    def point(self, pid: int) -> ProgramPoint:
        return self.control[self._index(pid)]

    def ticket(self, pid: int) -> Ticket:
        return self.tickets[self._index(pid)]

    def active(self, *, excluding: int | None = None) -> Iterator[tuple[int, TicketVar]]:
        """
        :return: pairs of process id and live ticket variable,
        for every process that holds a ticket.
        """
        for pid in self.pids:
            ticket = self.ticket(pid)
            if pid != excluding and isinstance(ticket, TicketVar):
                yield pid, ticket

    def fresh(self, pid: int) -> tuple[TicketVar, Self]:
        """
        Allocate a fresh ticket variable for `pid`.
        :return: the variable and the state with the bumped allocation counter.
        """
        self._index(pid)
        var = TicketVar(pid, self.allocated + 1)
        return var, replace(self, allocated=self.allocated + 1)

    def moved(
        self,
        pid: int,
        point: ProgramPoint,
        ticket: Ticket | None = None,
        store: ConstraintStore | None = None,
    ) -> Self:
        """
        :return: the state where `pid` is at `point`,
        optionally with a new ticket and store.
        """
        index = self._index(pid)
        control = self.control[:index] + (point,) + self.control[index + 1 :]
        tickets = self.tickets
        if ticket is not None:
            tickets = tickets[:index] + (ticket,) + tickets[index + 1 :]
        return replace(
            self,
            control=control,
            tickets=tickets,
            store=self.store if store is None else store,
        )

    @cached_property
    def canonical_store(self) -> ConstraintStore:
        """
        The store with every live ticket renamed to its process slot
        (`T1 .. TN`), so that stores of different paths can be compared.
        """
        return self.store.rename(
            {var: TicketVar.slot(pid) for pid, var in self.active()}
        )

    def idle_invariant(self) -> bool:
        """
        :return: whether exactly the idle processes hold the concrete ticket `0`.
        """
        return all(
            (self.point(pid) is ProgramPoint.IDLE)
            == (isinstance(ticket, int) and ticket == IDLE_TICKET)
            for pid, ticket in zip(self.pids, self.tickets)
        )

    def concrete_tickets(self) -> tuple[Fraction, ...]:
        """
        :return: one concrete ticket valuation described by this state.
        """
        values = self.store.model(var for _, var in self.active())
        return tuple(
            values[ticket] if isinstance(ticket, TicketVar) else Fraction(ticket)
            for ticket in self.tickets
        )

    def _index(self, pid: int) -> int:
        if not 1 <= pid <= self.processes:
            raise ValueError(f"No process {pid} in a {self.processes}-process system")
        return pid - 1

    def __str__(self) -> str:
        control = ", ".join(str(point) for point in self.control)
        tickets = ", ".join(str(ticket) for ticket in self.tickets)
        return f"[{control}] ({tickets}) {self.store}"
