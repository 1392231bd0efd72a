from lorawan_field import extract_mac_payload, x2bin, x2int
from lorawan_error import MalformedJoinRequest, MalformedJoinAccept
from lorawan_mac_cmd import notify_warning

# NOTE:
#   all fields are returned in the wire format as they are,
#   i.e. multi-octet fields are still in little endian.
#   Join Accept must be decrypted before passing it here.

JOIN_REQUEST_SIZE = 18
JOIN_ACCEPT_FIXED_SIZE = 12
CFLIST_SIZE = 15
# since v1.0.2, CFListType follows the 15 bytes.
CFLIST_TYPE_SIZE = 1

def decompose_join_request(phy_pdu):
    """
    Join Request parser
        The main part of the request is like below:
          8    |   8    |    2
        AppEUI | DevEUI | DevNonce
    """
    payload = extract_mac_payload(phy_pdu)
    if len(payload) != JOIN_REQUEST_SIZE:
        raise MalformedJoinRequest(
                "length of MACPayload of Join Request must be {}, but {}."
                .format(JOIN_REQUEST_SIZE, len(payload)))
    return {
            "appeui": payload[0:8],
            "deveui": payload[8:16],
            "devnonce": payload[16:18],
            }

def decompose_join_accept(phy_pdu, warn=None):
    """
    JoinAccept parser
    - phy_pdu is MHDR + Join-Accept + MIC, already decrypted.
    - The format of Join-Accept is:
            3     |   3   |    4    |     1      |    1    |  (15)
        JoinNonce | NetID | DevAddr | DLSettings | RxDelay | (CFList)
    the length of CFList is reported to warn() unless it is 0 or 15.
    """
    payload = extract_mac_payload(phy_pdu)
    if len(payload) < JOIN_ACCEPT_FIXED_SIZE:
        raise MalformedJoinAccept(
                "length of MACPayload of Join Accept must be {} or more, but {}."
                .format(JOIN_ACCEPT_FIXED_SIZE, len(payload)))
    cflist_x = payload[12:]
    if len(cflist_x) not in [0, CFLIST_SIZE]:
        notify_warning(warn, "length of CFList must be 0 or {}, but {}"
                       .format(CFLIST_SIZE, len(cflist_x)))
    return {
            "joinnonce": payload[0:3],
            "netid": payload[3:6],
            "devaddr": payload[6:10],
            "dlsettings": payload[10:11],
            "rxdelay": payload[11:12],
            "cflist": cflist_x,
            }

def parse_dlsettings(dlsets):
    """
    DLSettings parser.
        dlsets: 1 bytes int.
            RFU: 1 bits
            RX1DRoffset: 3 b
            RX2DataRate: 4 b
    """
    dlsets_b = x2bin(dlsets)
    return {
            "dlsettings": dlsets,
            "rx1droffset": x2int(dlsets_b[1:4]),
            "rx2datarate": x2int(dlsets_b[4:]),
            }

def parse_rxdelay(rxdelay):
    """
    return the delay in second. the lower 4 bits are used, 0 means 1 sec.
    """
    delay_i = x2int(x2bin(rxdelay)[4:])
    return 1 if delay_i == 0 else delay_i

def parse_cflist(cflist_x):
    """
    CFList parser for the dynamic channel plan.
        Freq(3) * 5 | (CFListType(1))
    each frequency is in 100 Hz and in little endian.
    """
    if len(cflist_x) not in [CFLIST_SIZE, CFLIST_SIZE + CFLIST_TYPE_SIZE]:
        raise MalformedJoinAccept("length of CFList must be {} or {}, but {}."
                                  .format(CFLIST_SIZE,
                                          CFLIST_SIZE + CFLIST_TYPE_SIZE,
                                          len(cflist_x)))
    cflist = [x2int(cflist_x[i*3:i*3+3]) for i in range(5)]
    return {
            "cflist": cflist,
            "cflisttype": (cflist_x[CFLIST_SIZE]
                           if len(cflist_x) > CFLIST_SIZE else None),
            }
