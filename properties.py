"""
Safety properties over control vectors.
A property is any `Callable[[ControlVector], bool]`
returning `True` for *bad* control vectors.
"""

from collections.abc import Callable

from states import ControlVector, ProgramPoint

__all__ = ["Property", "critical_processes", "violates_mutex"]

type Property = Callable[[ControlVector], bool]


def critical_processes(control: ControlVector) -> list[int]:
    """
    :return: the ids of the processes in the critical section.
    """
    return [
        pid
        for pid, point in enumerate(control, start=1)
        if point is ProgramPoint.CRITICAL
    ]


def violates_mutex(control: ControlVector) -> bool:
    """
    Mutual exclusion is violated when two or more processes
    are in the critical section at once.
    """
    return len(critical_processes(control)) >= 2
