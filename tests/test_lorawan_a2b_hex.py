import pytest

from lorawan_a2b_hex import a2b_hex, b2a_hex

FRAME = bytes.fromhex("40C1D25201A5050003070703120864FE226A9E")


@pytest.mark.parametrize("text", [
    "40C1D25201A5050003070703120864FE226A9E",
    "40C1, D252, 01A5, 0500, 0307, 0703, 1208, 64FE, 226A, 9E",
    "40C1 D252 01A5 0500 0307 0703 1208 64FE 226A 9E",
    "0x40 0xC1 0xD2 0x52 0x01 0xA5 0x05 0x00 0x03 0x07 0x07 0x03 0x12 0x08 "
    "0x64 0xFE 0x22 0x6A 0x9E",
    "0x40,0xC1,0xD2,0x52,0x01,0xA5,0x05,0x00,0x03,0x07,0x07,0x03,0x12,0x08,"
    "0x64,0xFE,0x22,0x6A,0x9E",
    ["40C1D25201A50500", "03070703120864FE226A9E"],
    "40C1D25201A5050003070703120864FE226A9E\n",
])
def test_hexstr_forms(text):
    assert a2b_hex(text) == FRAME


def test_dotted_form():
    assert a2b_hex("66.8c.cc.57.8a.a4.a4.9.0.19") == bytes.fromhex(
        "668ccc578aa4a4090019")


def test_base64():
    assert a2b_hex("IM7jjKOUkVEf405egXcnkBPNCoKH6CIUgJgY5Op90XmQ",
                   string_type="base64") == bytes.fromhex(
        "20cee38ca39491511fe34e5e8177279013cd0a8287e82214809818e4ea7dd17990")


def test_none_passes_through():
    assert a2b_hex(None) is None


@pytest.mark.parametrize("text, string_type", [
    ("40C", "hexstr"),
    ("zz", "hexstr"),
    ("not*base64", "base64"),
    ("4040", "binary"),
])
def test_invalid_input(text, string_type):
    with pytest.raises(ValueError):
        a2b_hex(text, string_type=string_type)


def test_b2a_hex():
    assert b2a_hex(b"\x02\x0a\x14") == "02 0a 14"
    assert b2a_hex(b"") == ""
    assert b2a_hex(b"\xff\x01", sep="") == "ff01"
