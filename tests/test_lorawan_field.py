import pytest

from lorawan_error import LoRaWANTooShort
from lorawan_field import (MSGDIR_UP, MSGDIR_DOWN, MSGDIR_UNKNOWN,
                           MTYPE_UNCONFIRMED_UP, MTYPE_UNCONFIRMED_DOWN,
                           extract_mhdr, extract_ftype, extract_major,
                           extract_direction, extract_mic, extract_mac_payload,
                           extract_devaddr, extract_fctrl, extract_foptslen,
                           extract_fcnt, extract_fopts, extract_fhdr,
                           extract_fport, extract_frm_payload, parse_mhdr,
                           parse_fctrl, x2bin, x2int, int2bin, int2x, bin2x)


def _frame(mhdr="40", devaddr="01020304", fctrl="00", fcnt="0500", fopts="",
           rest="01aabb", mic="11223344"):
    return bytes.fromhex(mhdr + devaddr + fctrl + fcnt + fopts + rest + mic)


def test_unconfirmed_up_frame():
    frame = _frame()
    assert extract_mhdr(frame) == 0x40
    assert extract_ftype(frame) == MTYPE_UNCONFIRMED_UP
    assert extract_major(frame) == 0
    assert extract_direction(frame) == MSGDIR_UP
    assert extract_devaddr(frame) == 0x01020304
    assert extract_fctrl(frame) == 0
    assert extract_foptslen(frame) == 0
    assert extract_fcnt(frame) == 5
    assert extract_fopts(frame) == b""
    assert extract_fhdr(frame) == bytes.fromhex("01020304000500")
    assert extract_fport(frame) == 1
    assert extract_frm_payload(frame) == b"\xaa\xbb"
    assert extract_mic(frame) == bytes.fromhex("11223344")


def test_mac_payload_is_between_mhdr_and_mic(up_frame):
    payload = extract_mac_payload(up_frame)
    assert len(payload) == len(up_frame) - 5
    assert payload == up_frame[1:-4]
    assert extract_mic(up_frame) == bytes.fromhex("64ccc350")


def test_captured_uplink(up_frame):
    assert extract_direction(up_frame) == MSGDIR_UP
    assert extract_devaddr(up_frame) == 0x77100126
    assert extract_fctrl(up_frame) == 0x80
    assert extract_fcnt(up_frame) == 20
    assert extract_fport(up_frame) == 1
    assert extract_frm_payload(up_frame) == bytes.fromhex("bd18eb4a325ccfabd70b")


def test_captured_downlink_with_fopts(down_frame):
    assert extract_ftype(down_frame) == MTYPE_UNCONFIRMED_DOWN
    assert extract_direction(down_frame) == MSGDIR_DOWN
    assert extract_devaddr(down_frame) == 0x04000048
    assert extract_foptslen(down_frame) == 10
    assert extract_fcnt(down_frame) == 46
    fopts = extract_fopts(down_frame)
    assert fopts == bytes.fromhex("0353000070035300ff00")
    fhdr = extract_fhdr(down_frame)
    assert len(fhdr) == 7 + extract_foptslen(down_frame)
    assert fhdr[-10:] == fopts
    assert extract_fport(down_frame) is None
    assert extract_frm_payload(down_frame) == b""


@pytest.mark.parametrize("mhdr, direction", [
    ("40", MSGDIR_UP),
    ("80", MSGDIR_UP),
    ("60", MSGDIR_DOWN),
    ("a0", MSGDIR_DOWN),
])
def test_direction_follows_mtype(mhdr, direction):
    assert extract_direction(_frame(mhdr=mhdr)) == direction


def test_major_is_low_bits():
    assert extract_major(_frame(mhdr="43")) == 3
    assert extract_ftype(_frame(mhdr="43")) == MTYPE_UNCONFIRMED_UP


def test_foptslen_is_low_nibble_of_fctrl():
    frame = _frame(fctrl="a3", fopts="020304", rest="")
    assert extract_foptslen(frame) == 3
    assert extract_fopts(frame) == bytes.fromhex("020304")
    assert extract_fhdr(frame) == bytes.fromhex("01020304a30500020304")


def test_empty_frame_is_too_short():
    with pytest.raises(LoRaWANTooShort):
        extract_mhdr(b"")
    with pytest.raises(LoRaWANTooShort):
        extract_ftype(b"")


def test_mac_payload_needs_five_bytes():
    with pytest.raises(LoRaWANTooShort) as e:
        extract_mac_payload(b"\x40\x00\x00\x00")
    assert e.value.need == 5
    assert e.value.size == 4
    assert extract_mac_payload(b"\x40\x00\x00\x00\x00") == b""


def test_fopts_beyond_frame_is_too_short():
    frame = bytes.fromhex("40010203040f0500")
    with pytest.raises(LoRaWANTooShort):
        extract_fopts(frame)
    with pytest.raises(LoRaWANTooShort):
        extract_fhdr(frame)


def test_fhdr_fields_too_short():
    with pytest.raises(LoRaWANTooShort):
        extract_devaddr(b"\x40\x01\x02")
    with pytest.raises(LoRaWANTooShort):
        extract_fctrl(b"\x40\x01\x02\x03\x04")
    with pytest.raises(LoRaWANTooShort):
        extract_fcnt(b"\x40\x01\x02\x03\x04\x00\x05")


def test_fport_needs_room_for_mic():
    frame = bytes.fromhex("4001020304020500aabb")
    with pytest.raises(LoRaWANTooShort):
        extract_fport(frame)


def test_parse_mhdr():
    mhdr_o = parse_mhdr(0x60)
    assert mhdr_o["mtype"] == MTYPE_UNCONFIRMED_DOWN
    assert mhdr_o["mtype_name"] == "Unconfirmed Data Down"
    assert mhdr_o["major_name"] == "LoRaWAN R1"
    assert mhdr_o["msg_dir"] == MSGDIR_DOWN
    assert parse_mhdr(0x00)["msg_dir"] == MSGDIR_UNKNOWN
    assert parse_mhdr(0xe0)["mtype_name"] == "Proprietary"


def test_parse_fctrl_uplink():
    fctrl_o = parse_fctrl(0xd2, MSGDIR_UP)
    assert fctrl_o["adr"] == 1
    assert fctrl_o["adrackreq"] == 1
    assert fctrl_o["ack"] == 0
    assert fctrl_o["classb"] == 1
    assert fctrl_o["foptslen"] == 2
    assert "classb" not in parse_fctrl(0xd2, MSGDIR_UP, version="1.0")


def test_parse_fctrl_downlink():
    fctrl_o = parse_fctrl(0xaa, MSGDIR_DOWN)
    assert fctrl_o["adr"] == 1
    assert fctrl_o["ack"] == 1
    assert fctrl_o["fpending"] == 0
    assert fctrl_o["foptslen"] == 10
    assert "adrackreq" not in fctrl_o
    assert parse_fctrl(0xc0, MSGDIR_DOWN, version="1.0")["adrackreq"] == 1


def test_bit_helpers():
    assert x2bin(0x05) == "00000101"
    assert x2bin(b"\x01\x00") == "0000000100000000"
    assert x2int("101") == 5
    assert x2int(b"\x05\x00") == 5
    assert int2bin(5, 4) == "0101"
    assert int2x(0x010203, 3) == b"\x03\x02\x01"
    assert bin2x("0000000100000010") == b"\x01\x02"


def test_bit_helpers_reject_out_of_range():
    with pytest.raises(ValueError):
        int2bin(16, 4)
    with pytest.raises(ValueError):
        int2bin(-1, 4)
    with pytest.raises(ValueError):
        int2x(0x10000, 2)
    with pytest.raises(ValueError):
        bin2x("0101")
