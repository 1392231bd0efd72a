import sys
import logging
import dataclasses
from argparse import ArgumentParser, ArgumentDefaultsHelpFormatter
from lorawan_a2b_hex import a2b_hex, STRING_TYPES
from lorawan_codec import parse_phy_pdu
from lorawan_error import LoRaWANError
from lorawan_field import MSGDIR_UP, MSGDIR_DOWN, x2bin

logger = logging.getLogger(__name__)

opt = type("DEFAULT_OPTION",(object,),{"debug_level":0, "verbose":False})

#====

def formx(v, form=None):
    """
    convert a value into a string with a type of value.
    """
    if isinstance(v, int) and form == "hz":
        return "{} Hz".format(v*100)
    elif isinstance(v, int) and form == "sec":
        return "{} sec".format(v)
    elif isinstance(v, int) and form == "devaddr":
        return "x {:08x}".format(v)
    elif isinstance(v, int):
        return "x {:02x}".format(v)
    elif isinstance(v, (bytes,bytearray)):
        return "x {}".format(v.hex())
    elif isinstance(v, str) and form == "bin":
        return "b {}".format(v)
    else:
        raise ValueError("ERROR: unsupported arg for formx, {} type={}"
                         .format(v,type(v)))

def print_vt(tag, v_wire=None, v_bits=None, indent=0):
    """
    print a value with tag as a title.
        tag: string.
        v_wire: string or None, usually wire format in bytes.
        v_bits: string or None, usually bits.
    """
    bullet = " "*(2*indent) + "#"*(2+indent)
    print("{} {}".format(bullet, tag), end="")
    if v_wire not in ["", None]:
        print(" : {}".format(v_wire), end="")
    if opt.verbose and v_bits not in ["", None]:
        print(" [{}]".format(v_bits), end="")
    print("")

def print_v(tag, v_host=None, v_wire=None, indent=1):
    """
    print a value with tag.
        tag: string.
        v_host: string of human readable, or None.
        v_wire: string in the wire, or None.
        indent: 1, 2, or 3
    """
    print("{}".format("  "*indent), end="")
    print("{}".format(tag), end="")
    if v_host not in ["", None]:
        print(" : {}".format(v_host), end="")
    if opt.verbose and v_wire not in ["", None]:
        print(" [{}]".format(v_wire), end="")
    print("")

#====

def print_mac_cmds(cmd_list, msg_dir):
    dir_str = "Up" if msg_dir == MSGDIR_UP else "Down"
    print_vt("MAC Command (No. CMD CID DIR)", indent=1)
    for n_cmd, cmd in enumerate(cmd_list, start=1):
        print_v("{}. {}".format(n_cmd, type(cmd).__name__),
                "0x{:02x} {}link".format(cmd.CID, dir_str),
                formx(cmd.to_bytes()), indent=2)
        for f in dataclasses.fields(cmd):
            v = getattr(cmd, f.name)
            if f.name == "frequency":
                print_v(f.name, formx(v, "hz"), indent=3)
            else:
                print_v(f.name, v, indent=3)

fctrl_tag_list = [
    ("adr", "ADR"),
    ("adrackreq", "ADRACKReq"),
    ("ack", "ACK"),
    ("fpending", "FPending"),
    ("classb", "ClassB"),
    ("foptslen", "FOptsLen"),
    ]

def print_data_frame(msg_o):
    print_v("FHDR", formx(msg_o["fhdr"]))
    print_v("DevAddr", formx(msg_o["devaddr"], "devaddr"), indent=2)
    fctrl_o = msg_o["fctrl"]
    print_v("FCtrl", formx(int(fctrl_o["fctrl_bits"], 2)),
            formx(fctrl_o["fctrl_bits"], "bin"), indent=2)
    for k, tag in fctrl_tag_list:
        if k in fctrl_o:
            print_v(tag, fctrl_o[k], indent=3)
    print_v("FCnt", msg_o["fcnt"], indent=2)
    if msg_o["fopts"]:
        print_v("FOpts", formx(msg_o["fopts"]), indent=2)
        print_v("CID", formx(msg_o["cid"]), indent=2)
        print_mac_cmds(msg_o["mac_cmds"], msg_o["msg_dir"])
    if msg_o["fport"] is not None:
        print_v("FPort", msg_o["fport"])
        if msg_o["fport"] == 0:
            print_vt("FRMPayload(MAC Command)", formx(msg_o["frm_payload"]))
        else:
            print_vt("FRMPayload", formx(msg_o["frm_payload"]))

def print_join_request(msg_o):
    print_v("AppEUI", formx(msg_o["appeui"][::-1]), formx(msg_o["appeui"]))
    print_v("DevEUI", formx(msg_o["deveui"][::-1]), formx(msg_o["deveui"]))
    print_v("DevNonce", formx(msg_o["devnonce"][::-1]),
            formx(msg_o["devnonce"]))

def print_join_accept(msg_o):
    print_v("JoinNonce", formx(msg_o["joinnonce"][::-1]),
            formx(msg_o["joinnonce"]))
    print_v("NetID", formx(msg_o["netid"][::-1]), formx(msg_o["netid"]))
    print_v("DevAddr", formx(msg_o["devaddr"][::-1]), formx(msg_o["devaddr"]))
    print_v("DLSettings", formx(msg_o["dlsettings"]),
            formx(x2bin(msg_o["dlsettings"]), "bin"))
    print_v("RX1DROffset", msg_o["rx1droffset"], indent=2)
    print_v("RX2DataRate", msg_o["rx2datarate"], indent=2)
    print_v("RxDelay", formx(msg_o["rxdelay_sec"], "sec"),
            formx(msg_o["rxdelay"]))
    if "cflist_o" in msg_o:
        print_v("CFList", formx(msg_o["cflist"]))
        for i, cf in enumerate(msg_o["cflist_o"]["cflist"]):
            print_v("CF{}".format(i), formx(cf, "hz"), indent=2)
        if msg_o["cflist_o"]["cflisttype"] is not None:
            print_v("CFListType", msg_o["cflist_o"]["cflisttype"], indent=2)
    elif msg_o["cflist"]:
        print_v("CFList", formx(msg_o["cflist"]))

def print_phy_pdu(ret_o):
    mhdr_o = ret_o["mhdr"]
    msg_o = ret_o["body"]
    print("=== PHYPayload ===")
    print_vt("MHDR", formx(mhdr_o["mhdr"]), formx(mhdr_o["mhdr_bits"], "bin"))
    print_v("MType", mhdr_o["mtype_name"], formx(mhdr_o["mtype"]))
    if mhdr_o["msg_dir"] in [MSGDIR_UP, MSGDIR_DOWN]:
        print_v("Direction",
                "Up" if mhdr_o["msg_dir"] == MSGDIR_UP else "Down")
    print_v("RFU", formx(mhdr_o["rfu"], "bin"))
    print_v("Major", mhdr_o["major_name"], formx(mhdr_o["major"]))
    if "appeui" in msg_o:
        print_vt("JoinReq")
        print_join_request(msg_o)
    elif "joinnonce" in msg_o:
        print_vt("JoinAccept")
        print_join_accept(msg_o)
    elif "fhdr" in msg_o:
        print_vt("MACPayload")
        print_data_frame(msg_o)
    else:
        print_vt("Proprietary", formx(msg_o["payload"]))
    print_vt("MIC")
    print_v("MIC in frame", formx(ret_o["mic"]))
    if "mic_derived" in ret_o:
        print_v("MIC Derived", formx(ret_o["mic_derived"]),
                "OK" if ret_o["mic_ok"] else "NG")

#====

def decode_and_print(phy_pdu, nwkskey=None, appkey=None, version="1.0.3",
                     upper_fcnt=0):
    """
    return True if the frame is decoded.
    """
    try:
        ret_o = parse_phy_pdu(phy_pdu, nwkskey=nwkskey, appkey=appkey,
                              version=version, upper_fcnt=upper_fcnt)
    except LoRaWANError as e:
        logger.error("failed to decode {}: {}".format(phy_pdu.hex(), e))
        return False
    print_phy_pdu(ret_o)
    return True

def build_parser():
    ap = ArgumentParser(
            description="""
            LoRaWAN PHY Payload decoder.
            The input must be hex strings or base64 strings.
            You can use stdin to pass the string.
            """,
            formatter_class=ArgumentDefaultsHelpFormatter)
    ap.add_argument("phy_pdu", metavar="PHY_PDU_STR", type=str, nargs='*',
                    help="a series or multiple of hex string.")
    ap.add_argument("--appkey", "--AppKey", action="store", dest="appkey",
                    help="specify AppKey to derive the MIC of Join messages.")
    ap.add_argument("--nwkskey", "--NwkSKey", action="store", dest="nwkskey",
                    help="specify NwkSKey to derive the MIC of data frames.")
    ap.add_argument("--from-file", action="store", dest="from_file",
                    help="specify a file or stdin to read the messages.")
    ap.add_argument("--upper-fcnt", action="store", dest="upper_fcnt",
                    default="0000",
                    help="specify the most significant 16-bit of the FCnt in hex.")
    ap.add_argument("--lorawan-version", action="store", dest="version",
                    default="1.0.3",
                    help="specify the version of LoRaWAN; 1.0 or 1.0.3")
    ap.add_argument("--string-type", action="store", dest="string_type",
                    default="hexstr", choices=STRING_TYPES,
                    help="specify the type of string of phy_pdu.")
    ap.add_argument("-v", action="store_true", dest="verbose",
                    help="enable verbose mode.")
    ap.add_argument("-d", action="append_const", dest="_f_debug", default=[],
                    const=1, help="increase debug mode.")
    return ap

def main(argv=None):
    global opt
    ap = build_parser()
    opt = ap.parse_args(argv)
    opt.debug_level = len(opt._f_debug)
    if opt.debug_level > 0:
        log_level = logging.DEBUG
    elif opt.verbose:
        log_level = logging.INFO
    else:
        log_level = logging.WARNING
    logging.basicConfig(level=log_level,
                        format="%(levelname)s: %(name)s: %(message)s")

    nwkskey = a2b_hex(opt.nwkskey)
    appkey = a2b_hex(opt.appkey)
    upper_fcnt = int(opt.upper_fcnt, 16)

    if opt.from_file:
        if opt.from_file in ["-", "stdin"]:
            lines = sys.stdin.readlines()
        else:
            with open(opt.from_file) as fd:
                lines = fd.readlines()
        phy_pdu_list = [line.strip() for line in lines if line.strip()]
    else:
        if len(opt.phy_pdu) == 0:
            ap.print_help()
            return 0
        phy_pdu_list = ["".join(opt.phy_pdu)]

    n_error = 0
    for phy_pdu_str in phy_pdu_list:
        try:
            phy_pdu = a2b_hex(phy_pdu_str, string_type=opt.string_type)
        except ValueError as e:
            logger.error("failed to read {}: {}".format(phy_pdu_str, e))
            n_error += 1
            continue
        if not decode_and_print(phy_pdu, nwkskey=nwkskey, appkey=appkey,
                                version=opt.version, upper_fcnt=upper_fcnt):
            n_error += 1
    return 1 if n_error else 0

if __name__ == "__main__":
    sys.exit(main())
