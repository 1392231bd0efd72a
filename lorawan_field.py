from lorawan_error import LoRaWANTooShort

# NOTE:
#   all extractors take a whole PHYPayload in bytes or bytearray,
#   i.e. MHDR | MACPayload | MIC, and never modify it.
#   the offsets assume the layout of a data frame.
#   the caller has to look at the MType before using them.
#
#   DevAddr is read in big endian. FCnt is in little endian.

MSGDIR_UP = 0
MSGDIR_DOWN = 1
MSGDIR_UNKNOWN = 99

MTYPE_JOIN_REQUEST = 0
MTYPE_JOIN_ACCEPT = 1
MTYPE_UNCONFIRMED_UP = 2
MTYPE_UNCONFIRMED_DOWN = 3
MTYPE_CONFIRMED_UP = 4
MTYPE_CONFIRMED_DOWN = 5
MTYPE_RFU = 6
MTYPE_PROPRIETARY = 7

MTYPE_DATA_UP = [MTYPE_UNCONFIRMED_UP, MTYPE_CONFIRMED_UP]
MTYPE_DATA_DOWN = [MTYPE_UNCONFIRMED_DOWN, MTYPE_CONFIRMED_DOWN]

mtype_name_tab = {
    MTYPE_JOIN_REQUEST: "Join Request",
    MTYPE_JOIN_ACCEPT: "Join Accept",
    MTYPE_UNCONFIRMED_UP: "Unconfirmed Data Up",
    MTYPE_UNCONFIRMED_DOWN: "Unconfirmed Data Down",
    MTYPE_CONFIRMED_UP: "Confirmed Data Up",
    MTYPE_CONFIRMED_DOWN: "Confirmed Data Down",
    MTYPE_RFU: "RFU",
    MTYPE_PROPRIETARY: "Proprietary",
    }

major_name_tab = {
    0: "LoRaWAN R1",
    1: "RFU",
    2: "RFU",
    3: "RFU",
    }

MHDR_SIZE = 1
MIC_SIZE = 4
# DevAddr | FCtrl | FCnt
FHDR_FIXED_SIZE = 7
# MHDR + DevAddr + FCtrl + FCnt
FOPTS_OFFSET = MHDR_SIZE + FHDR_FIXED_SIZE

#====

def x2bin(v, size=None):
    """
    convert a value into a binary string, MSB first.
        v: int, bytes, bytearray
        size: number of bits. 8 for int, 8*len(v) for bytes if None.
    bytes, bytearray must be in *big* endian.
    """
    if isinstance(v, int):
        bits = bin(v)
        if size is None:
            size = 8
    elif isinstance(v, (bytes,bytearray)):
        bits = bin(int.from_bytes(v, "big"))
        if size is None:
            size = len(v)*8
    else:
        raise ValueError("ERROR: unsupported arg for x2bin, {} type={}"
                         .format(v,type(v)))
    return bits[2:].zfill(size)

def x2int(v):
    """
    convert a value into an int.
        v: bit string, bytes, bytearray
    bytes, bytearray must be in little endian.
    """
    if isinstance(v, str) and set(v) in [{"0"},{"1"},{"0","1"}]:
        return int(v, 2)
    elif isinstance(v, (bytes, bytearray)):
        return int.from_bytes(v, "little")
    raise ValueError("ERROR: unsupported arg for x2int, {} type={}"
                     .format(v,type(v)))

def int2bin(v, size, name="value"):
    """
    convert an unsigned int into a bit string of size bits.
    the value must fit in the size.
    """
    if not isinstance(v, int) or v < 0 or v >= (1 << size):
        raise ValueError("{} must be in the range of 0..{}, but {}."
                         .format(name, (1 << size) - 1, v))
    return bin(v)[2:].zfill(size)

def int2x(v, size, name="value"):
    """
    convert an unsigned int into size bytes in little endian.
    """
    if not isinstance(v, int) or v < 0 or v >= (1 << (8*size)):
        raise ValueError("{} must be in the range of 0..{}, but {}."
                         .format(name, (1 << (8*size)) - 1, v))
    return v.to_bytes(size, "little")

def bin2x(bits):
    """
    convert a bit string into bytes.
    the length of bits must be multiple of 8.
    """
    if len(bits) % 8 != 0:
        raise ValueError("length of bits must be multiple of 8, but {}."
                         .format(len(bits)))
    return int(bits, 2).to_bytes(len(bits)//8, "big")

def _need(frame, size, field):
    if len(frame) < size:
        raise LoRaWANTooShort(field, size, len(frame))

#==== MHDR

def extract_mhdr(frame):
    _need(frame, MHDR_SIZE, "MHDR")
    return frame[0]

def extract_ftype(frame):
    """
    MHDR:
        7 6 5 | 4 3 2 |  1 0
        MType |  RFU  | Major
    """
    return x2int(x2bin(extract_mhdr(frame))[0:3])

def extract_major(frame):
    return x2int(x2bin(extract_mhdr(frame))[6:8])

def extract_direction(frame):
    """
    the lowest bit of the MType tells the direction.
    it makes no sense for the Join and Proprietary frames.
    """
    dir_b = x2bin(extract_mhdr(frame))[2]
    return MSGDIR_DOWN if dir_b == "1" else MSGDIR_UP

def parse_mhdr(mhdr):
    """
    MHDR parser
        mhdr: 1 byte int.
    """
    mhdr_b = x2bin(mhdr)
    mtype_i = x2int(mhdr_b[0:3])
    major_i = x2int(mhdr_b[6:])
    if mtype_i in MTYPE_DATA_UP:
        msg_dir = MSGDIR_UP
    elif mtype_i in MTYPE_DATA_DOWN:
        msg_dir = MSGDIR_DOWN
    else:
        msg_dir = MSGDIR_UNKNOWN
    return {
            "mhdr": mhdr,
            "mhdr_bits": mhdr_b,
            "mtype": mtype_i,
            "mtype_name": mtype_name_tab[mtype_i],
            "rfu": mhdr_b[3:6],
            "major": major_i,
            "major_name": major_name_tab[major_i],
            "msg_dir": msg_dir,
            }

#==== MIC and MACPayload

def extract_mic(frame):
    _need(frame, MHDR_SIZE + MIC_SIZE, "MIC")
    return bytes(frame[-MIC_SIZE:])

def extract_mac_payload(frame):
    _need(frame, MHDR_SIZE + MIC_SIZE, "MACPayload")
    return bytes(frame[MHDR_SIZE:-MIC_SIZE])

#==== FHDR
#           4    |   1   |   2  | 0...15
#        DevAddr | FCtrl | FCnt | FOpts

def extract_devaddr(frame):
    _need(frame, 5, "DevAddr")
    return int.from_bytes(frame[1:5], "big")

def extract_fctrl(frame):
    _need(frame, 6, "FCtrl")
    return frame[5]

def extract_foptslen(frame):
    return x2int(x2bin(extract_fctrl(frame))[4:8])

def extract_fcnt(frame):
    _need(frame, 8, "FCnt")
    return x2int(frame[6:8])

def extract_fopts(frame):
    foptslen_i = extract_foptslen(frame)
    _need(frame, FOPTS_OFFSET + foptslen_i, "FOpts")
    return bytes(frame[FOPTS_OFFSET:FOPTS_OFFSET+foptslen_i])

def extract_fhdr(frame):
    fhdr_size = FHDR_FIXED_SIZE + extract_foptslen(frame)
    _need(frame, MHDR_SIZE + fhdr_size, "FHDR")
    return bytes(frame[MHDR_SIZE:MHDR_SIZE+fhdr_size])

def parse_fctrl(fctrl, msg_dir, version="1.0.3"):
    """
    FCtrl
        - FCtrl for downlink
                     7  |     6     |  5  |    4     |   3...0
            v1.0    ADR | ADRACKReq | ACK | FPending | FOptsLen
            v1.0.3  ADR |    RFU    | ACK | FPending | FOptsLen
        - FCtrl for uplink
                     7  |    6      |  5  |    4     |   3...0
            v1.0    ADR | ADRACKReq | ACK |   RFU    | FOptsLen
            v1.0.3  ADR | ADRACKReq | ACK |  ClassB  | FOptsLen
    """
    fctrl_b = x2bin(fctrl)
    fctrl_o = {
            "fctrl_bits": fctrl_b,
            "adr": int(fctrl_b[0]),
            "ack": int(fctrl_b[2]),
            "foptslen": x2int(fctrl_b[4:]),
            }
    if msg_dir == MSGDIR_DOWN:
        if version == "1.0":
            fctrl_o["adrackreq"] = int(fctrl_b[1])
        fctrl_o["fpending"] = int(fctrl_b[3])
    else:
        fctrl_o["adrackreq"] = int(fctrl_b[1])
        if version != "1.0":
            fctrl_o["classb"] = int(fctrl_b[3])
    return fctrl_o

#==== FPort and FRMPayload
#
#       <-------------- FHDR ------------->
#       DevAddr | FCtrl     | FCnt | FOpts | FPort | FRMPayload
#       ========+===========+======+=======+=======+=============
#    1) DevAddr | foptlen=0 | FCnt | (nul) | != 0  | App. message
#    2) DevAddr | foptlen=0 | FCnt | (nul) |  = 0  | MAC Commands
#    3) DevAddr | foptlen>0 | FCnt | FOpts | (nul) | (nul)
#    4) DevAddr | foptlen>0 | FCnt | FOpts | != 0  | App. message

def _fport_offset(frame):
    offset = FOPTS_OFFSET + extract_foptslen(frame)
    _need(frame, offset + MIC_SIZE, "FHDR")
    return offset

def extract_fport(frame):
    """
    return FPort in int, or None if the frame has no FPort.
    """
    offset = _fport_offset(frame)
    if len(frame) - MIC_SIZE == offset:
        return None
    return frame[offset]

def extract_frm_payload(frame):
    offset = _fport_offset(frame)
    if len(frame) - MIC_SIZE == offset:
        return b""
    return bytes(frame[offset+1:-MIC_SIZE])
