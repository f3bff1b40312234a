from constraints import ConstraintStore
from states import ProgramPoint
from tabling import Region, Table

I, W, C = ProgramPoint.IDLE, ProgramPoint.WAITING, ProgramPoint.CRITICAL


def test_empty_table_covers_nothing():
    assert not Table().tabled((I, I), ConstraintStore())


def test_empty_region_covers_everything(t1, store_of):
    table = Table()
    table.record((I, I), ConstraintStore())
    assert table.tabled((I, I), ConstraintStore())
    assert table.tabled((I, I), store_of(t1 >= 7))


def test_region_covers_stronger_store(t1, t2, store_of):
    table = Table()
    table.record((W, W), store_of(t1 >= 1, t2 >= t1 + 1))
    assert table.tabled((W, W), store_of(t1 >= 1, t2 >= t1 + 1))
    assert table.tabled((W, W), store_of(t1 >= 1, t2 >= t1 + 1, t2 >= 1))
    assert table.tabled((W, W), store_of(t1 >= 3, t2.eq(t1 + 4)))


def test_region_does_not_cover_weaker_store(t1, t2, store_of):
    table = Table()
    table.record((W, W), store_of(t1 >= 1, t2 >= t1 + 1))
    assert not table.tabled((W, W), store_of(t1 >= 1))
    assert not table.tabled((W, W), store_of(t2 >= 1, t1 >= t2 + 1))


def test_regions_are_per_control_vector(t1, store_of):
    table = Table()
    table.record((W, I), store_of(t1 >= 1))
    assert not table.tabled((C, I), store_of(t1 >= 1))
    assert len(table) == 1


def test_coverage_is_checked_per_region(t1, store_of):
    table = Table()
    table.record((W, I), store_of(t1 >= 1, t1 <= 2))
    table.record((W, I), store_of(t1 >= 2))
    # Covered by the union of the two regions, but by neither alone.
    assert not table.tabled((W, I), store_of(t1 >= 1))
    assert table.tabled((W, I), store_of(t1 >= 5))
    assert table.size == 2
    assert len(table.regions((W, I))) == 2


def test_region_negation(t1, t2, store_of):
    region = Region(store_of(t1 >= 1, t2.eq(t1)))
    assert region.negation == (t1 < 1, t2 < t1, t2 > t1)
    assert str(region) == "{T1 >= 1, T2 = T1}"
