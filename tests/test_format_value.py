import pytest

from axmldec.axml_parse import complex_to_float, format_float, format_value
from axmldec.internal_types import *


@pytest.mark.parametrize("_type, _data, expected", [
    (TYPE_NULL, 0, ""),
    (TYPE_NULL, 1, ""),
    (TYPE_REFERENCE, 0x7F0A0001, "@0x7f0a0001"),
    (TYPE_REFERENCE, 0x01080010, "@0x01080010"),
    (TYPE_ATTRIBUTE, 0x01010000, "?0x01010000"),
    (TYPE_INT_DEC, 21, "21"),
    (TYPE_INT_DEC, 0, "0"),
    (TYPE_INT_DEC, 0xFFFFFFFF, "-1"),
    (TYPE_INT_DEC, 0x80000000, "-2147483648"),
    (TYPE_INT_DEC, 0x7FFFFFFF, "2147483647"),
    (TYPE_INT_HEX, 0x0000002A, "0x0000002a"),
    (TYPE_INT_HEX, 0xDEADBEEF, "0xdeadbeef"),
    (TYPE_INT_BOOLEAN, 1, "true"),
    (TYPE_INT_BOOLEAN, 0xFFFFFFFF, "true"),
    (TYPE_INT_BOOLEAN, 0, "false"),
    (TYPE_INT_COLOR_ARGB8, 0xFF112233, "#ff112233"),
    (TYPE_INT_COLOR_RGB8, 0x00112233, "#112233"),
    (TYPE_INT_COLOR_RGB8, 0xFF112233, "#112233"),
    (TYPE_INT_COLOR_ARGB4, 0xFF112233, "#f123"),
    (TYPE_INT_COLOR_RGB4, 0xFF112233, "#123"),
])
def test_format_table(_type, _data, expected):
    assert format_value(_type, _data) == expected


@pytest.mark.parametrize("_data, expected", [
    (0x3F800000, "1.0"),
    (0xBF800000, "-1.0"),
    (0x3F000000, "0.5"),
    (0x3DCCCCCD, "0.1"),
    (0x42C80000, "100.0"),
    (0x00000000, "0.0"),
])
def test_format_float(_data, expected):
    assert format_value(TYPE_FLOAT, _data) == expected
    assert format_float(_data) == expected


@pytest.mark.parametrize("_data, expected", [
    # 16dp, radix 23p0
    ((16 << 8) | 1, "16.0dp"),
    ((1 << 8) | 0, "1.0px"),
    # 1.5sp, radix 16p7
    ((192 << 8) | (1 << 4) | 2, "1.5sp"),
    # -8dp
    (((-8 << 8) & 0xFFFFFFFF) | 1, "-8.0dp"),
    ((12 << 8) | 3, "12.0pt"),
    ((2 << 8) | 4, "2.0in"),
    ((5 << 8) | 5, "5.0mm"),
])
def test_format_dimension(_data, expected):
    assert format_value(TYPE_DIMENSION, _data) == expected


@pytest.mark.parametrize("_data, expected", [
    # 0.5 with radix 16p7
    ((64 << 8) | (1 << 4) | 0, "50.0%"),
    ((64 << 8) | (1 << 4) | 1, "50.0%p"),
    ((1 << 8) | 0, "100.0%"),
])
def test_format_fraction(_data, expected):
    assert format_value(TYPE_FRACTION, _data) == expected


def test_complex_units_outside_of_table_fall_back_to_raw():
    assert format_value(TYPE_DIMENSION, (1 << 8) | 7) == "0x00000107"
    assert format_value(TYPE_FRACTION, (1 << 8) | 2) == "0x00000102"


def test_complex_to_float():
    assert complex_to_float((16 << 8) | 1) == 16.0
    assert complex_to_float(((-1 << 8) & 0xFFFFFFFF)) == -1.0
    assert complex_to_float((1 << 8) | (3 << 4)) == pytest.approx(2 ** -23)


@pytest.mark.parametrize("_type", [
    TYPE_DYNAMIC_REFERENCE,
    TYPE_DYNAMIC_ATTRIBUTE,
    0x09,
    0x13,
    0x1B,
    0x20,
    0xFF,
])
def test_unknown_types_use_raw_fallback(_type):
    assert format_value(_type, 0x2A) == "0x0000002a"


def test_string_uses_lookup():
    seen = []

    def lookup(ix):
        seen.append(ix)
        return "value-{}".format(ix)

    assert format_value(TYPE_STRING, 5, lookup) == "value-5"
    assert seen == [5]
    assert format_value(TYPE_STRING, 5) == "<string>"
