import re
import binascii
from base64 import b64decode

STRING_TYPES = ["hexstr", "base64"]

def a2b_hex(buf, string_type="hexstr"):
    """
    convert a text form of a frame into bytes.
        buf: a string, or a list of strings to be joined.
        string_type: "hexstr" or "base64".
    several hex string forms are accepted, e.g.
        "40C1D252", "40C1, D252", "0x40 0xC1 0xD2 0x52", "40.c1.d2.52"
    """
    if buf is None:
        return None
    if isinstance(buf, list):
        buf = "".join(buf)
    if string_type not in STRING_TYPES:
        raise ValueError("string_type must be one of {}, but {}."
                         .format(STRING_TYPES, string_type))
    if string_type == "base64":
        try:
            return b64decode("".join(buf.split()), validate=True)
        except binascii.Error as e:
            raise ValueError("invalid base64 string: {}".format(e)) from e
    if "." in buf:
        # in case like "a4.9.0.19"
        hexstr = "".join([i.strip().rjust(2,"0") for i in buf.split(".")])
    else:
        hexstr = re.sub(r"([,\s]|0x|0X)", "", buf)
    if len(hexstr)%2 == 1:
        raise ValueError("the length of hexstr is not even. len={} hexstr={}"
                         .format(len(hexstr), hexstr))
    return bytes.fromhex(hexstr)

def b2a_hex(buf, sep=" "):
    """
    a human readable hex dump, e.g. "02 0a 14".
    """
    return sep.join(["{:02x}".format(i) for i in buf])
