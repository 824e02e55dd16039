import pytest

from conftest import INT_SIZE, FailingAllocator, dec, enc
from dynarray.errors import InvalidArgument, OutOfMemory, SizeOverflow
from dynarray.datastructures import SparseArray


@pytest.fixture
def sp():
    arr = SparseArray(INT_SIZE)
    yield arr
    arr.free()


def used_values(arr: SparseArray) -> list:
    return [(i, dec(b)) for i, b in arr]


def test_add_grows_one_slot_at_a_time(sp):
    for v in range(5):
        assert sp.add(enc(v)) == v
    assert len(sp) == 5
    assert sp.used_count == 5
    assert dec(sp.get(3)) == 3


def test_remove_leaves_hole_and_add_reuses_it(sp):
    for v in range(5):
        sp.add(enc(v))
    sp.remove(1)
    sp.remove(3)
    assert sp.get(1) is None
    assert not sp.is_used(1)
    assert len(sp) == 5
    assert sp.used_count == 3
    assert sp.add(enc(10)) == 1
    assert sp.add(enc(11)) == 3
    assert sp.add(enc(12)) == 5


def test_remove_free_slot_is_not_an_error(sp):
    sp.add(enc(1))
    sp.remove(0)
    sp.remove(0)
    assert sp.used_count == 0


def test_remove_out_of_range(sp):
    sp.add(enc(1))
    with pytest.raises(InvalidArgument):
        sp.remove(1)
    with pytest.raises(InvalidArgument):
        sp.remove(-1)


def test_add_without_object_reserves_free_slot(sp):
    assert sp.add() == 0
    assert len(sp) == 1
    assert sp.used_count == 0
    assert sp.add(enc(7)) == 0


def test_compact_preserves_order(sp):
    for v in range(10):
        sp.add(enc(v))
    for i in (0, 3, 4, 8):
        sp.remove(i)
    sp.compact()
    assert len(sp) == 6
    assert used_values(sp) == list(enumerate([1, 2, 5, 6, 7, 9]))


def test_compact_skips_few_holes_unless_forced(sp):
    for v in range(20):
        sp.add(enc(v))
    sp.remove(5)
    sp.compact()
    assert len(sp) == 20
    sp.compact(force=True)
    assert len(sp) == 19
    assert [v for _, v in used_values(sp)] == [v for v in range(20) if v != 5]


def test_compact_all_holes_clears(sp):
    for v in range(4):
        sp.add(enc(v))
    for i in range(4):
        sp.remove(i)
    sp.compact()
    assert len(sp) == 0
    assert sp.used_count == 0


def test_compact_respects_min_len(sp):
    for v in range(10):
        sp.add(enc(v))
    sp.set_min_len(8)
    for i in range(5):
        sp.remove(i)
    sp.compact()
    assert len(sp) == 8
    assert used_values(sp) == list(enumerate([5, 6, 7, 8, 9]))


def test_truncate(sp):
    for v in range(6):
        sp.add(enc(v))
    sp.remove(1)
    sp.truncate(3)
    assert len(sp) == 3
    assert sp.used_count == 2
    sp.truncate(6)
    assert len(sp) == 6
    assert sp.used_count == 2
    assert sp.get(5) is None
    sp.truncate(0)
    assert len(sp) == 0


def test_truncate_errors(sp):
    sp.set_min_len(4)
    assert len(sp) == 4
    with pytest.raises(InvalidArgument):
        sp.truncate(3)
    with pytest.raises(InvalidArgument):
        sp.truncate(-1)
    with pytest.raises(InvalidArgument):
        sp.set_min_len(-1)


def test_add_overflow(sp):
    from dynarray.planning.guards import MAX_INDEX

    sp._len = sp._used_count = MAX_INDEX
    with pytest.raises(SizeOverflow):
        sp.add(enc(1))
    sp._len = sp._used_count = 0


def test_add_allocation_failure():
    alloc = FailingAllocator()
    sp = SparseArray(INT_SIZE, allocator=alloc)
    sp.add(enc(1))
    alloc.fail = True
    with pytest.raises(OutOfMemory):
        sp.add(enc(2))
    assert len(sp) == 1
    assert sp.used_count == 1
    assert dec(sp.get(0)) == 1


def test_wrong_element_size(sp):
    with pytest.raises(InvalidArgument):
        sp.add(b"\x00")


def test_add_rejects_int(sp):
    with pytest.raises(InvalidArgument):
        sp.add(4)
    assert len(sp) == 0
