import pytest

from gasbench.codec import decode_value, encode_value
from gasbench.mocks import (
    HEAVY_TAIL_MAX,
    U32_MAX,
    HeavyMock,
    LightDenseMock,
    LightSparseMock,
    shape_for,
)

PAYLOAD = b"\x11" * 32


def test_heavy_ordering_is_lexicographic():
    assert HeavyMock(1) < HeavyMock(2)
    # Absent payload sorts before any payload.
    assert HeavyMock(1, None, b"\xff") < HeavyMock(1, b"\x00" * 32, b"")
    assert HeavyMock(1, PAYLOAD, b"a") < HeavyMock(1, PAYLOAD, b"ab")
    assert HeavyMock(1, PAYLOAD, b"b") > HeavyMock(1, PAYLOAD, b"ab")
    values = [HeavyMock(3), HeavyMock(1, PAYLOAD), HeavyMock(1)]
    assert sorted(values) == [HeavyMock(1), HeavyMock(1, PAYLOAD), HeavyMock(3)]


def test_light_ordering():
    assert LightSparseMock(1) < LightSparseMock(2)
    assert LightDenseMock(7) >= LightDenseMock(7)


def test_shapes_do_not_compare():
    with pytest.raises(TypeError):
        LightSparseMock(1) < LightDenseMock(2)
    assert LightSparseMock(1) != LightDenseMock(1)


def test_defaults():
    assert HeavyMock.default() == HeavyMock(0, None, b"")
    assert LightSparseMock.default() == LightSparseMock(0)
    assert LightDenseMock.default().a == 0


def test_size_hints():
    assert HeavyMock.size_hint() == (18, 18 + 32 + HEAVY_TAIL_MAX)
    assert LightSparseMock.size_hint() == (4, 4)
    assert LightDenseMock.size_hint() == (4, 4)


@pytest.mark.parametrize(
    "factory",
    [
        lambda: HeavyMock(-1),
        lambda: HeavyMock(1 << 128),
        lambda: HeavyMock(0, b"short"),
        lambda: LightSparseMock(U32_MAX + 1),
        lambda: LightDenseMock(-1),
    ],
)
def test_out_of_range_values_rejected(factory):
    with pytest.raises(ValueError):
        factory()


def test_values_are_hashable():
    assert len({LightDenseMock(3), LightDenseMock(3), LightDenseMock(4)}) == 2
    assert len({HeavyMock(1, PAYLOAD, b"x"), HeavyMock(1, PAYLOAD, b"x")}) == 1


def test_wire_form_keeps_dense_values_unmasked():
    # The mask applies to generation only; the wire form is a plain u32.
    value = LightDenseMock(100)
    assert decode_value(encode_value(value), LightDenseMock) == value


def test_heavy_tail_longer_than_generated_maximum_still_encodes():
    value = HeavyMock(5, None, b"z" * 200)
    assert decode_value(encode_value(value), HeavyMock) == value


def test_shape_lookup():
    assert shape_for("heavy") is HeavyMock
    assert shape_for("light_dense") is LightDenseMock
    with pytest.raises(ValueError, match="Unknown value shape"):
        shape_for("medium")
