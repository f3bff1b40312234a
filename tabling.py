"""
Tabling of explored symbolic regions.

For every control vector the table keeps the regions
(canonical constraint stores) already expanded.
A candidate store is *covered* by a region `R`
if no disjunct of the negation of `R` is satisfiable together with it,
i.e. the candidate lies inside `R`.
Coverage is checked region by region, not against their union,
so this is an approximation used to make the search terminate,
not a decision procedure.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from functools import cached_property

from constraints import ConstraintStore, Relation
from states import ControlVector

__all__ = ["Region", "Table"]


@dataclass(frozen=True)
class Region:
    store: ConstraintStore

    @cached_property
    def negation(self) -> tuple[Relation, ...]:
        """The disjuncts of the complement of the region."""
        return self.store.negation()

    def covers(self, candidate: ConstraintStore) -> bool:
        """
        :return: whether every valuation of `candidate` lies in the region.
        """
        if self.store.relation_set <= candidate.relation_set:
            return True
        return not any(
            candidate.is_consistent_with(disjunct) for disjunct in self.negation
        )

    def __str__(self) -> str:
        return str(self.store)


@dataclass
class Table:
    """
    Append-only map from control vectors to explored regions.
    Stores passed in are expected in canonical form
    (see `states.SymbolicState.canonical_store`).
    """

    entries: dict[ControlVector, list[Region]] = field(default_factory=dict)

    def tabled(self, control: ControlVector, store: ConstraintStore) -> bool:
        """
        :return: whether a region recorded for `control` covers `store`.
        """
        return any(region.covers(store) for region in self.entries.get(control, ()))

    def record(self, control: ControlVector, store: ConstraintStore) -> Region:
        region = Region(store)
        self.entries.setdefault(control, []).append(region)
        return region

    def regions(self, control: ControlVector) -> tuple[Region, ...]:
        return tuple(self.entries.get(control, ()))

    @property
    def size(self) -> int:
        """Total number of recorded regions."""
        return sum(len(regions) for regions in self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[tuple[ControlVector, Region]]:
        for control, regions in self.entries.items():
            for region in regions:
                yield control, region
