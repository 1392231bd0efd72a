#
# MIC calculation with AES128-CMAC, a wrapper of pycryptodome.
#
from Crypto.Hash import CMAC
from Crypto.Cipher import AES
from lorawan_field import extract_ftype, extract_direction, extract_mic
from lorawan_field import extract_devaddr, extract_fcnt, MIC_SIZE
from lorawan_field import MTYPE_JOIN_REQUEST, MTYPE_JOIN_ACCEPT
from lorawan_field import MTYPE_DATA_UP, MTYPE_DATA_DOWN

# Note:
#     the MIC returned is in the wire format,
#     so that it can be compared with extract_mic() directly.
#     a Join Accept must be decrypted before calculating the MIC.

def aes128_cmac(key, msg):
    """
    >>> aes128_cmac(b'Sixteen byte key', b'Hello').hex().upper()
    '8E1A0ED893AB9A3D891CDEF2878CDB59'
    """
    cmac = CMAC.new(bytes(key), ciphermod=AES)
    cmac.update(bytes(msg))
    return cmac.digest()

def compute_join_mic(appkey, phy_pdu):
    """
    MIC of Join Request, and Join Accept in plain text.
        aes128_cmac(AppKey, MHDR | MACPayload)[0:4]
    """
    return aes128_cmac(appkey, phy_pdu[:-MIC_SIZE])[:MIC_SIZE]

def compute_data_mic(nwkskey, phy_pdu, upper_fcnt=0):
    """
    MIC of a data frame.
        nwkskey: the size must be 16 bytes.
        upper_fcnt: the most significant 16 bits of the frame counter.
    This function refers to:
    - 4.4 Message Integrity Code (MIC)
        B0 = 0x49 | 4 x 0x00 | Dir | DevAddr | FCntUp or FCntDown | 0x00 | len(msg)
        aes128_cmac(NwkSKey, B0 | msg)[0:4]
    """
    msg = phy_pdu[:-MIC_SIZE]
    fcnt_i = (upper_fcnt << 16) | extract_fcnt(phy_pdu)
    B0 = bytearray(16)
    B0[0] = 0x49
    B0[5] = extract_direction(phy_pdu)
    # DevAddr as it is in the wire.
    B0[6:10] = extract_devaddr(phy_pdu).to_bytes(4, "big")
    B0[10:14] = fcnt_i.to_bytes(4, "little")
    B0[15] = len(msg)
    return aes128_cmac(nwkskey, bytes(B0) + bytes(msg))[:MIC_SIZE]

def verify_mic(key, phy_pdu, upper_fcnt=0):
    """
    key: AppKey for Join messages, NwkSKey for data frames.
    return True if the MIC in the frame is same as the derived one.
    """
    mtype = extract_ftype(phy_pdu)
    if mtype in [MTYPE_JOIN_REQUEST, MTYPE_JOIN_ACCEPT]:
        mic_derived = compute_join_mic(key, phy_pdu)
    elif mtype in MTYPE_DATA_UP + MTYPE_DATA_DOWN:
        mic_derived = compute_data_mic(key, phy_pdu, upper_fcnt=upper_fcnt)
    else:
        raise ValueError("MIC of MType {} is not supported.".format(mtype))
    return mic_derived == extract_mic(phy_pdu)
