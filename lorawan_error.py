#
# exceptions raised by the frame and join message extractors.
#
# a MAC command that can't be recognized is not an error here,
# see decode_mac_cmd() in lorawan_mac_cmd.
#

class LoRaWANError(ValueError):
    pass

class LoRaWANTooShort(LoRaWANError):
    """
    the frame is shorter than needed for the requested field.
    """
    def __init__(self, field, need, size):
        self.field = field
        self.need = need
        self.size = size
        super().__init__("frame is too short for {}, need {} bytes, but {}."
                         .format(field, need, size))

class MalformedJoinRequest(LoRaWANError):
    pass

class MalformedJoinAccept(LoRaWANError):
    pass
