"""
The `prelude` module re-exports all necessary symbols
so one can simple write `from prelude import *`
and start defining and checking systems.
"""

from bakery import BakerySystem
from check_bakery import check_bakery, check_mutex
from constraints import (
    ConstraintStore,
    EncodingError,
    LinExpr,
    Op,
    Relation,
    TicketVar,
)
from properties import Property, critical_processes, violates_mutex
from search import (
    SearchAborted,
    SearchBudget,
    SearchDriver,
    SearchResult,
    Witness,
)
from states import IDLE_TICKET, ControlVector, ProgramPoint, SymbolicState
from tabling import Region, Table
from tracing import CollectingSink, PrintSink, TraceSink, render, render_state
from ts import Choice, Step, SymbolicTransitionSystem, transition

__all__ = [
    # Constraints
    "ConstraintStore",
    "EncodingError",
    "LinExpr",
    "Op",
    "Relation",
    "TicketVar",
    # States
    "IDLE_TICKET",
    "ControlVector",
    "ProgramPoint",
    "SymbolicState",
    # Transition systems
    "SymbolicTransitionSystem",
    "Choice",
    "Step",
    "transition",
    "BakerySystem",
    # Properties
    "Property",
    "critical_processes",
    "violates_mutex",
    # Search
    "Region",
    "Table",
    "SearchAborted",
    "SearchBudget",
    "SearchDriver",
    "SearchResult",
    "Witness",
    "check_bakery",
    "check_mutex",
    # Tracing
    "TraceSink",
    "PrintSink",
    "CollectingSink",
    "render",
    "render_state",
]
