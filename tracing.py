"""
Trace sinks report visited states.
They are invoked by the search once per visited state
and never influence it.
"""

import sys
from dataclasses import dataclass, field
from typing import Protocol, TextIO

from constraints import ConstraintStore
from states import ControlVector, SymbolicState

__all__ = ["TraceSink", "PrintSink", "CollectingSink", "render", "render_state"]


class TraceSink(Protocol):
    def __call__(self, control: ControlVector, store: ConstraintStore) -> None: ...


def render(control: ControlVector, store: ConstraintStore) -> str:
    """
    Render a control vector as a list of labels
    and a (canonical) store as its relations,
    e.g. `[waiting, idle] {T1 >= 1}`.
    """
    labels = ", ".join(str(point) for point in control)
    return f"[{labels}] {store}"


def render_state(state: SymbolicState) -> str:
    return render(state.control, state.canonical_store)


@dataclass
class PrintSink:
    file: TextIO | None = None
    count: int = 0

    def __call__(self, control: ControlVector, store: ConstraintStore) -> None:
        self.count += 1
        print(
            f"{self.count}: {render(control, store)}",
            file=self.file or sys.stdout,
            flush=True,
        )


@dataclass
class CollectingSink:
    visited: list[tuple[ControlVector, ConstraintStore]] = field(default_factory=list)

    def __call__(self, control: ControlVector, store: ConstraintStore) -> None:
        self.visited.append((control, store))

    def __len__(self) -> int:
        return len(self.visited)
