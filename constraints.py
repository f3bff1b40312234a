"""
This module provides the arithmetic constraint store
used to describe sets of ticket valuations symbolically.

A store is an immutable conjunction of linear relations
(`=`, `<`, `>`, `<=`, `>=`) over real-valued ticket variables.
Extending a store checks satisfiability by delegating to Z3;
an unsatisfiable extension is not an error, it just yields `None`,
so the caller can backtrack.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from functools import cached_property
from typing import Self

import z3

from helpers import SatResult, sat_check, model_values

__all__ = [
    "EncodingError",
    "TicketVar",
    "LinExpr",
    "Op",
    "Relation",
    "ConstraintStore",
]


class EncodingError(Exception):
    """
    A relation has a shape the store does not support
    (an unknown operator, a non-integer coefficient, a foreign operand).
    This indicates a bug in an encoding,
    as opposed to an infeasible search branch.
    """


class _Arith:
    """
    Arithmetic sugar shared by ticket variables and linear expressions.
    Comparisons build a `Relation` instead of returning a `bool`,
    the same way Z3 expressions behave.
    Equality is spelled `.eq(...)` so that `==` keeps its usual meaning.
    """

    def as_expr(self) -> "LinExpr":
        raise NotImplementedError

    def __add__(self, other: "Operand") -> "LinExpr":
        return self.as_expr().plus(as_expr(other))

    def __radd__(self, other: "Operand") -> "LinExpr":
        return as_expr(other).plus(self.as_expr())

    def __neg__(self) -> "LinExpr":
        return self.as_expr().scaled(-1)

    def __sub__(self, other: "Operand") -> "LinExpr":
        return self.as_expr().plus(-as_expr(other))

    def __rsub__(self, other: "Operand") -> "LinExpr":
        return as_expr(other).plus(-self.as_expr())

    def __lt__(self, other: "Operand") -> "Relation":
        return Relation(self.as_expr(), Op.LT, as_expr(other))

    def __le__(self, other: "Operand") -> "Relation":
        return Relation(self.as_expr(), Op.LE, as_expr(other))

    def __gt__(self, other: "Operand") -> "Relation":
        return Relation(self.as_expr(), Op.GT, as_expr(other))

    def __ge__(self, other: "Operand") -> "Relation":
        return Relation(self.as_expr(), Op.GE, as_expr(other))

    def eq(self, other: "Operand") -> "Relation":
        return Relation(self.as_expr(), Op.EQ, as_expr(other))


@dataclass(frozen=True)
class TicketVar(_Arith):
    """
    A symbolic ticket of process `pid`.
    Serial `0` is the canonical slot of the process
    (used for tabling and display);
    variables drawn during the search have serial `>= 1`.
    """

    pid: int
    serial: int = 0

    @classmethod
    def slot(cls, pid: int) -> Self:
        return cls(pid, 0)

    @property
    def sort_key(self) -> tuple[int, int]:
        return self.pid, self.serial

    def as_expr(self) -> "LinExpr":
        return LinExpr(((self, 1),), 0)

    def __str__(self) -> str:
        if self.serial == 0:
            return f"T{self.pid}"
        return f"T{self.pid}.{self.serial}"


@dataclass(frozen=True)
class LinExpr(_Arith):
    """
    A linear combination `c1*x1 + ... + cn*xn + const`.
    Terms are kept sorted by variable with no zero coefficients,
    so structurally equal expressions compare equal.
    """

    terms: tuple[tuple[TicketVar, int], ...]
    const: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.const, int) or isinstance(self.const, bool):
            raise EncodingError(f"Non-integer constant {self.const!r}")
        merged: dict[TicketVar, int] = {}
        for var, coeff in self.terms:
            if not isinstance(var, TicketVar):
                raise EncodingError(f"Unsupported operand {var!r}")
            if not isinstance(coeff, int) or isinstance(coeff, bool):
                raise EncodingError(f"Non-integer coefficient {coeff!r} for {var}")
            merged[var] = merged.get(var, 0) + coeff
        normalized = tuple(
            sorted(
                ((var, coeff) for var, coeff in merged.items() if coeff != 0),
                key=lambda term: term[0].sort_key,
            )
        )
        object.__setattr__(self, "terms", normalized)

    def as_expr(self) -> "LinExpr":
        return self

    def plus(self, other: "LinExpr") -> "LinExpr":
        return LinExpr(self.terms + other.terms, self.const + other.const)

    def scaled(self, factor: int) -> "LinExpr":
        return LinExpr(
            tuple((var, coeff * factor) for var, coeff in self.terms),
            self.const * factor,
        )

    @cached_property
    def variables(self) -> frozenset[TicketVar]:
        return frozenset(var for var, _ in self.terms)

    def rename(self, mapping: Mapping[TicketVar, TicketVar]) -> "LinExpr":
        return LinExpr(
            tuple((mapping.get(var, var), coeff) for var, coeff in self.terms),
            self.const,
        )

    def to_z3(self, consts: Mapping[TicketVar, z3.ArithRef]) -> z3.ArithRef:
        result: z3.ArithRef = z3.RealVal(self.const)
        for var, coeff in self.terms:
            result = result + coeff * consts[var]
        return result

    def __str__(self) -> str:
        parts: list[str] = []
        for var, coeff in self.terms:
            if coeff == 1:
                term = str(var)
            elif coeff == -1:
                term = f"-{var}"
            else:
                term = f"{coeff}*{var}"
            if parts and term.startswith("-"):
                parts.append(f"- {term[1:]}")
            elif parts:
                parts.append(f"+ {term}")
            else:
                parts.append(term)
        if self.const or not parts:
            if not parts:
                parts.append(str(self.const))
            elif self.const > 0:
                parts.append(f"+ {self.const}")
            else:
                parts.append(f"- {-self.const}")
        return " ".join(parts)


type Operand = TicketVar | LinExpr | int


def as_expr(operand: Operand) -> LinExpr:
    if isinstance(operand, _Arith):
        return operand.as_expr()
    if isinstance(operand, int) and not isinstance(operand, bool):
        return LinExpr((), operand)
    raise EncodingError(f"Unsupported operand {operand!r}")


class Op(Enum):
    EQ = "="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="


_NEGATIONS: dict[Op, tuple[Op, ...]] = {
    Op.EQ: (Op.LT, Op.GT),
    Op.LT: (Op.GE,),
    Op.GT: (Op.LE,),
    Op.LE: (Op.GT,),
    Op.GE: (Op.LT,),
}


@dataclass(frozen=True)
class Relation:
    """An atomic linear relation `lhs op rhs`."""

    lhs: LinExpr
    op: Op
    rhs: LinExpr

    def check(self) -> Self:
        """
        Validate the shape of the relation.
        :raises EncodingError: on an unsupported operator or operand.
        """
        if not isinstance(self.op, Op):
            raise EncodingError(f"Unsupported operator {self.op!r} in {self}")
        if not isinstance(self.lhs, LinExpr) or not isinstance(self.rhs, LinExpr):
            raise EncodingError(f"Relation operands must be linear expressions: {self}")
        return self

    @cached_property
    def variables(self) -> frozenset[TicketVar]:
        return self.lhs.variables | self.rhs.variables

    def negated(self) -> tuple["Relation", ...]:
        """
        :return: the disjuncts of the negation of this relation.
        """
        self.check()
        return tuple(Relation(self.lhs, op, self.rhs) for op in _NEGATIONS[self.op])

    def rename(self, mapping: Mapping[TicketVar, TicketVar]) -> "Relation":
        return Relation(self.lhs.rename(mapping), self.op, self.rhs.rename(mapping))

    def to_z3(self, consts: Mapping[TicketVar, z3.ArithRef]) -> z3.BoolRef:
        lhs = self.lhs.to_z3(consts)
        rhs = self.rhs.to_z3(consts)
        match self.op:
            case Op.EQ:
                return lhs == rhs
            case Op.LT:
                return lhs < rhs
            case Op.GT:
                return lhs > rhs
            case Op.LE:
                return lhs <= rhs
            case Op.GE:
                return lhs >= rhs
        raise EncodingError(f"Unsupported operator {self.op!r} in {self}")

    def __str__(self) -> str:
        op = self.op.value if isinstance(self.op, Op) else self.op
        return f"{self.lhs} {op} {self.rhs}"


@dataclass(frozen=True)
class ConstraintStore:
    """
    A satisfiable conjunction of relations.
    Order is irrelevant for the semantics;
    insertion order is kept for rendering.
    """

    relations: tuple[Relation, ...] = ()

    def __iter__(self) -> Iterator[Relation]:
        return iter(self.relations)

    def __len__(self) -> int:
        return len(self.relations)

    def __contains__(self, relation: Relation) -> bool:
        return relation in self.relation_set

    @cached_property
    def relation_set(self) -> frozenset[Relation]:
        return frozenset(self.relations)

    @cached_property
    def variables(self) -> frozenset[TicketVar]:
        return frozenset(var for relation in self.relations for var in relation.variables)

    def add(self, *relations: Relation) -> Self | None:
        """
        Extend the conjunction.

        :return: the extended store, or `None` if it is unsatisfiable.
        :raises EncodingError: if one of the relations is malformed.
        """
        extended = self._extended(relations)
        if extended is self:
            return self
        if _check(extended.relations).unsat:
            return None
        return extended

    def is_consistent_with(self, *relations: Relation) -> bool:
        """
        Probe whether `self AND relations` is satisfiable
        without building a new store.
        A solver timeout counts as consistent.
        """
        for relation in relations:
            relation.check()
        return not _check(self.relations + relations).unsat

    def negation(self) -> tuple[Relation, ...]:
        """
        :return: the disjuncts of the negation of the conjunction
        (one or two per conjunct).
        """
        return tuple(
            disjunct for relation in self.relations for disjunct in relation.negated()
        )

    def forget(self, var: TicketVar) -> Self:
        """
        Discard `var` by dropping every relation that mentions it.
        The result over-approximates the projection of the store.
        """
        return self.__class__(
            tuple(relation for relation in self.relations if var not in relation.variables)
        )

    def rename(self, mapping: Mapping[TicketVar, TicketVar]) -> Self:
        renamed: dict[Relation, None] = {}
        for relation in self.relations:
            renamed[relation.rename(mapping)] = None
        return self.__class__(tuple(renamed))

    def model(self, variables: Iterable[TicketVar]) -> dict[TicketVar, Fraction]:
        """
        :return: concrete values for `variables` that satisfy the store.
        """
        variables = list(variables)
        consts = _z3_consts(self.variables | frozenset(variables))
        result = sat_check(
            [relation.to_z3(consts) for relation in self.relations], find_model=True
        )
        assert result.sat, f"Store {self} has no model"
        values = model_values(result, {str(var): consts[var] for var in variables})
        return {var: values[str(var)] for var in variables}

    def _extended(self, relations: Iterable[Relation]) -> Self:
        added: dict[Relation, None] = {}
        for relation in relations:
            relation.check()
            if relation not in self.relation_set:
                added[relation] = None
        if not added:
            return self
        return self.__class__(self.relations + tuple(added))

    def __str__(self) -> str:
        return "{" + ", ".join(str(relation) for relation in self.relations) + "}"


def _z3_consts(variables: Iterable[TicketVar]) -> dict[TicketVar, z3.ArithRef]:
    return {var: z3.Real(str(var)) for var in variables}


def _check(relations: tuple[Relation, ...]) -> SatResult:
    consts = _z3_consts(
        var for relation in relations for var in relation.variables
    )
    return sat_check(relation.to_z3(consts) for relation in relations)
