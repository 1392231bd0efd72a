import logging
from lorawan_field import (MSGDIR_UNKNOWN, MTYPE_JOIN_REQUEST,
                           MTYPE_JOIN_ACCEPT, MTYPE_DATA_UP, MTYPE_DATA_DOWN,
                           extract_mhdr, parse_mhdr, extract_mic,
                           extract_mac_payload, extract_fhdr, extract_devaddr,
                           extract_fctrl, parse_fctrl, extract_fcnt,
                           extract_fopts, extract_fport, extract_frm_payload)
from lorawan_join import (decompose_join_request, decompose_join_accept,
                          parse_dlsettings, parse_rxdelay, parse_cflist,
                          CFLIST_SIZE, CFLIST_TYPE_SIZE)
from lorawan_mac_cmd import decode_mac_cmd, first_command_id
from lorawan_mic import compute_join_mic, compute_data_mic

logger = logging.getLogger(__name__)

def parse_join_request(phy_pdu, appkey=None):
    msg_o = decompose_join_request(phy_pdu)
    if appkey is not None:
        msg_o["mic_derived"] = compute_join_mic(appkey, phy_pdu)
    return msg_o

def parse_join_accept(phy_pdu, appkey=None, warn=None):
    """
    phy_pdu must be decrypted.
    """
    msg_o = decompose_join_accept(phy_pdu, warn=warn)
    dlsets_o = parse_dlsettings(msg_o["dlsettings"][0])
    msg_o["rx1droffset"] = dlsets_o["rx1droffset"]
    msg_o["rx2datarate"] = dlsets_o["rx2datarate"]
    msg_o["rxdelay_sec"] = parse_rxdelay(msg_o["rxdelay"][0])
    if len(msg_o["cflist"]) in [CFLIST_SIZE, CFLIST_SIZE + CFLIST_TYPE_SIZE]:
        msg_o["cflist_o"] = parse_cflist(msg_o["cflist"])
    if appkey is not None:
        msg_o["mic_derived"] = compute_join_mic(appkey, phy_pdu)
    return msg_o

def parse_mac_payload(phy_pdu, msg_dir, nwkskey=None, version="1.0.3",
                      upper_fcnt=0, warn=None):
    """
    MACPayload parser
        FHDR | FPort | FRMPayload
    MAC Commands in FOpts are decoded.
    FRMPayload is returned as it is, i.e. not decrypted.
    """
    fopts = extract_fopts(phy_pdu)
    msg_o = {
            "msg_dir": msg_dir,
            "fhdr": extract_fhdr(phy_pdu),
            "devaddr": extract_devaddr(phy_pdu),
            "fctrl": parse_fctrl(extract_fctrl(phy_pdu), msg_dir,
                                 version=version),
            "fcnt": extract_fcnt(phy_pdu),
            "fopts": fopts,
            "cid": first_command_id(fopts),
            "mac_cmds": decode_mac_cmd(fopts, msg_dir, warn=warn),
            "fport": extract_fport(phy_pdu),
            "frm_payload": extract_frm_payload(phy_pdu),
            }
    if msg_o["fport"] == 0 and msg_o["fctrl"]["foptslen"] > 0:
        logger.info("MAC Commands exist in both FOpts and FRMPayload.")
    if nwkskey is not None:
        msg_o["mic_derived"] = compute_data_mic(nwkskey, phy_pdu,
                                                upper_fcnt=upper_fcnt)
    return msg_o

def parse_phy_pdu(phy_pdu, nwkskey=None, appkey=None, version="1.0.3",
                  upper_fcnt=0, warn=None):
    """
    PHYPayload parser
        the format is like below:
              1  |    1...M   |  4
            MHDR | MACPayload | MIC
            MHDR |   JoinReq  | MIC
            MHDR |   JoinRes  | MIC
    appkey and nwkskey are optional, used to derive the MIC.
    """
    mhdr_o = parse_mhdr(extract_mhdr(phy_pdu))
    mic = extract_mic(phy_pdu)
    mtype = mhdr_o["mtype"]
    if mtype == MTYPE_JOIN_REQUEST:
        msg_o = parse_join_request(phy_pdu, appkey=appkey)
    elif mtype == MTYPE_JOIN_ACCEPT:
        msg_o = parse_join_accept(phy_pdu, appkey=appkey, warn=warn)
    elif mtype in MTYPE_DATA_UP + MTYPE_DATA_DOWN:
        msg_o = parse_mac_payload(phy_pdu, mhdr_o["msg_dir"],
                                  nwkskey=nwkskey, version=version,
                                  upper_fcnt=upper_fcnt, warn=warn)
    else:
        msg_o = {
                "msg_dir": MSGDIR_UNKNOWN,
                "payload": extract_mac_payload(phy_pdu),
                }
    ret_o = {
            "mhdr": mhdr_o,
            "body": msg_o,
            "mic": mic,
            }
    if "mic_derived" in msg_o:
        ret_o["mic_derived"] = msg_o["mic_derived"]
        ret_o["mic_ok"] = msg_o["mic_derived"] == mic
    return ret_o
