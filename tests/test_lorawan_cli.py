import lorawan_cli
from lorawan_cli import main, formx


def test_downlink_dump(down_frame, capsys):
    assert main([down_frame.hex()]) == 0
    out = capsys.readouterr().out
    assert "=== PHYPayload ===" in out
    assert "MType : Unconfirmed Data Down" in out
    assert "Direction : Down" in out
    assert "FOptsLen : 10" in out
    assert "1. LinkADRReq : 0x03 Downlink" in out
    assert "2. LinkADRReq : 0x03 Downlink" in out
    assert "ch_mask : 65280" in out


def test_base64_input(capsys):
    assert main(["--string-type", "base64",
                 "YAQAAEiqLgADUwAAcANTAP8ADY5nmA=="]) == 0
    assert "LinkADRReq" in capsys.readouterr().out


def test_join_request_with_appkey(capsys):
    frame = ("00" "0000000000000000" "0100009581ab5000" "17e3" "9fadbc6e")
    assert main(["-v", "--appkey", "00"*16, frame]) == 0
    out = capsys.readouterr().out
    assert "JoinReq" in out
    assert "DevEUI : x 0050ab8195000001" in out
    assert "MIC Derived : x 9fadbc6e [OK]" in out


def test_join_accept(join_accept, capsys):
    assert main([join_accept.hex()]) == 0
    out = capsys.readouterr().out
    assert "JoinAccept" in out
    assert "RxDelay : 1 sec" in out
    assert "CF4" in out


def test_from_file_keeps_going(tmp_path, up_frame, down_frame, capsys):
    path = tmp_path / "frames.txt"
    path.write_text("{}\n\n40\n{}\n".format(up_frame.hex(), down_frame.hex()))
    assert main(["--from-file", str(path)]) == 1
    out = capsys.readouterr().out
    assert out.count("=== PHYPayload ===") == 2
    assert "Unconfirmed Data Up" in out


def test_from_file_skips_unreadable_line(tmp_path, up_frame, down_frame,
                                         capsys):
    path = tmp_path / "frames.txt"
    path.write_text("{}\nzz12\n401\n{}\n".format(up_frame.hex(),
                                                 down_frame.hex()))
    assert main(["--from-file", str(path)]) == 1
    assert capsys.readouterr().out.count("=== PHYPayload ===") == 2


def test_bad_base64_argument(capsys):
    assert main(["--string-type", "base64", "not*base64"]) == 1
    assert "PHYPayload" not in capsys.readouterr().out

def test_no_argument_prints_help(capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out


def test_formx():
    assert formx(8671000, "hz") == "867100000 Hz"
    assert formx(0x04000048, "devaddr") == "x 04000048"
    assert formx(b"\x01\x02") == "x 0102"
    assert formx("0101", "bin") == "b 0101"


def teardown_function(function):
    lorawan_cli.opt = type("DEFAULT_OPTION", (object,),
                           {"debug_level": 0, "verbose": False})
