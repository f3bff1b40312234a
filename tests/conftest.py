from collections.abc import Callable

import pytest

from constraints import ConstraintStore, Relation, TicketVar


@pytest.fixture
def t1() -> TicketVar:
    return TicketVar.slot(1)


@pytest.fixture
def t2() -> TicketVar:
    return TicketVar.slot(2)


@pytest.fixture
def store_of() -> Callable[..., ConstraintStore]:
    def build(*relations: Relation) -> ConstraintStore:
        store = ConstraintStore().add(*relations)
        assert store is not None, f"{relations} is unsatisfiable"
        return store

    return build
