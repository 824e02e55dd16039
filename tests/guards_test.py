from dynarray.planning.guards import (
    MAX_BYTES,
    MAX_INDEX,
    MIN_INDEX,
    add_capped,
    can_add_signed,
    can_add_unsigned,
    can_add_within,
    can_mul_bytes,
    can_mul_signed,
    fits_as_signed_index,
    is_valid_index,
    to_signed_capped,
)


def test_platform_limits_are_consistent():
    assert MAX_INDEX > 0
    assert MIN_INDEX == -MAX_INDEX - 1
    assert MAX_BYTES >= MAX_INDEX


def test_can_add_signed():
    assert can_add_signed(0, 0)
    assert can_add_signed(1, -1)
    assert can_add_signed(0, MAX_INDEX)
    assert can_add_signed(MAX_INDEX, -1)
    assert can_add_signed(MIN_INDEX, 1)
    assert can_add_signed(MIN_INDEX, MAX_INDEX)
    assert can_add_signed(MAX_INDEX // 2, MAX_INDEX // 2)
    assert not can_add_signed(MAX_INDEX, 1)
    assert not can_add_signed(1, MAX_INDEX)
    assert not can_add_signed(MIN_INDEX, -1)
    assert not can_add_signed(MIN_INDEX, MIN_INDEX)
    assert not can_add_signed(MAX_INDEX, MAX_INDEX)
    assert not can_add_signed(MAX_INDEX // 2, MAX_INDEX // 2 + 2)


def test_can_add_unsigned():
    assert can_add_unsigned(0, MAX_BYTES)
    assert can_add_unsigned(MAX_BYTES - 1, 1)
    assert not can_add_unsigned(MAX_BYTES, 1)
    assert not can_add_unsigned(MAX_BYTES, MAX_BYTES)


def test_can_mul_signed():
    assert can_mul_signed(0, 0)
    assert can_mul_signed(MAX_INDEX, 0)
    assert can_mul_signed(MAX_INDEX, 1)
    assert can_mul_signed(MAX_INDEX, -1)
    assert can_mul_signed(MIN_INDEX, 1)
    assert not can_mul_signed(MIN_INDEX, -1)
    assert not can_mul_signed(MAX_INDEX, 2)
    assert not can_mul_signed(MAX_INDEX, -2)
    assert can_mul_signed(MAX_INDEX // 2, 2)
    assert can_mul_signed(MIN_INDEX // 2, 2)
    assert not can_mul_signed(MIN_INDEX // 2, -2)
    assert can_mul_signed(-(MAX_INDEX // 2), -2)


def test_can_mul_bytes():
    assert can_mul_bytes(0, 0)
    assert can_mul_bytes(MAX_BYTES, 1)
    assert can_mul_bytes(MAX_BYTES // 4, 4)
    assert not can_mul_bytes(MAX_BYTES // 4 + 1, 4)
    assert not can_mul_bytes(MAX_BYTES, 2)


def test_can_add_within_and_add_capped():
    assert can_add_within(0, 0, 0)
    assert can_add_within(MAX_INDEX - 1, 1, MAX_INDEX)
    assert not can_add_within(MAX_INDEX, 1, MAX_INDEX)
    assert not can_add_within(MAX_INDEX + 1, 0, MAX_INDEX)
    assert not can_add_within(0, MAX_INDEX + 1, MAX_INDEX)
    assert not can_add_within(MAX_BYTES, MAX_BYTES, MAX_INDEX)

    assert add_capped(3, 4, 10) == 7
    assert add_capped(6, 4, 10) == 10
    assert add_capped(7, 4, 10) == 10
    assert add_capped(MAX_INDEX, MAX_INDEX, MAX_INDEX) == MAX_INDEX


def test_signed_index_conversion():
    assert fits_as_signed_index(0)
    assert fits_as_signed_index(MAX_INDEX)
    assert not fits_as_signed_index(MAX_INDEX + 1)
    assert to_signed_capped(5) == 5
    assert to_signed_capped(MAX_BYTES) == MAX_INDEX


def test_is_valid_index():
    assert is_valid_index(0, 4)
    assert is_valid_index(MAX_INDEX, 1)
    assert not is_valid_index(-1, 4)
    assert not is_valid_index(MAX_INDEX + 1, 1)
    assert not is_valid_index(MAX_BYTES // 4 + 1, 4)
    # Valid indices always have an addressable byte size.
    for n, s in [(10, 8), (MAX_INDEX, 1), (MAX_BYTES // 16, 16)]:
        if is_valid_index(n, s):
            assert can_mul_bytes(n, s) and n <= MAX_INDEX
