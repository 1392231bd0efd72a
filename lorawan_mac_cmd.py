import logging
from dataclasses import dataclass
from lorawan_field import MSGDIR_UP, MSGDIR_DOWN
from lorawan_field import x2bin, x2int, int2bin, int2x, bin2x
from lorawan_a2b_hex import b2a_hex

# NOTE:
#   a MAC command is CID(1) | payload(N), N is fixed by the CID.
#   the same CID means a different command in each direction.
#   so that, the uplink commands and the downlink commands are
#   the different classes, and each direction has its own table.
#
#   bit fields in a byte are MSB first, RFU bits on the top.
#   multi-byte numbers are in little endian.

logger = logging.getLogger(__name__)

class MacCommand():
    CID = None
    SIZE = 0
    msg_dir = None

    @classmethod
    def is_valid(cls, payload):
        """
        payload: exactly SIZE bytes following the CID.
        False if a bit which must be zero is set.
        """
        return True

    @classmethod
    def parse(cls, payload):
        """
        payload: exactly SIZE bytes following the CID.
        """
        return cls()

    def encode_payload(self):
        return b""

    def to_bytes(self):
        return bytes([self.CID]) + self.encode_payload()

class UplinkCommand(MacCommand):
    msg_dir = MSGDIR_UP

class DownlinkCommand(MacCommand):
    msg_dir = MSGDIR_DOWN

def _flag(v, name):
    return int2bin(int(v), 1, name)

def _parse_channel(payload):
    """
    ChIndex(1) | Freq(3) | DrRange(1)
        DrRange: MaxDR(4) | MinDR(4)
    """
    DrRange_b = x2bin(payload[4])
    return (payload[0], x2int(payload[1:4]),
            x2int(DrRange_b[0:4]), x2int(DrRange_b[4:8]))

def _encode_channel(cmd):
    return (int2x(cmd.ch_index, 1, "ChIndex")
            + int2x(cmd.frequency, 3, "Freq")
            + bin2x(int2bin(cmd.max_dr, 4, "MaxDR")
                    + int2bin(cmd.min_dr, 4, "MinDR")))

#==== Uplink: sent by the end-device.

@dataclass(frozen=True)
class LinkCheckReq(UplinkCommand):
    CID = 0x02

@dataclass(frozen=True)
class LinkADRAns(UplinkCommand):
    """
    Status: RFU(5) | PowerACK(1) | DataRateACK(1) | ChannelMaskACK(1)
    """
    CID = 0x03
    SIZE = 1
    power_ack: int
    data_rate_ack: int
    channel_mask_ack: int

    @classmethod
    def parse(cls, payload):
        status_b = x2bin(payload[0])
        return cls(int(status_b[5]), int(status_b[6]), int(status_b[7]))

    def encode_payload(self):
        return bin2x("00000"
                     + _flag(self.power_ack, "PowerACK")
                     + _flag(self.data_rate_ack, "DataRateACK")
                     + _flag(self.channel_mask_ack, "ChannelMaskACK"))

@dataclass(frozen=True)
class DutyCycleAns(UplinkCommand):
    CID = 0x04

@dataclass(frozen=True)
class RXParamSetupAns(UplinkCommand):
    """
    Status: RFU(5) | RX1DRoffsetACK(1) | RX2DataRateACK(1) | ChannelACK(1)
    """
    CID = 0x05
    SIZE = 1
    rx1_dr_offset_ack: int
    rx2_data_rate_ack: int
    channel_ack: int

    @classmethod
    def parse(cls, payload):
        status_b = x2bin(payload[0])
        return cls(int(status_b[5]), int(status_b[6]), int(status_b[7]))

    def encode_payload(self):
        return bin2x("00000"
                     + _flag(self.rx1_dr_offset_ack, "RX1DRoffsetACK")
                     + _flag(self.rx2_data_rate_ack, "RX2DataRateACK")
                     + _flag(self.channel_ack, "ChannelACK"))

@dataclass(frozen=True)
class DevStatusAns(UplinkCommand):
    """
    Battery(1) | RFU(2 bits) Margin(6 bits)
    Margin is a signed integer in the range of -32..31.
    """
    CID = 0x06
    SIZE = 2
    battery: int
    margin: int

    @classmethod
    def parse(cls, payload):
        margin_i = x2int(x2bin(payload[1])[2:8])
        if margin_i >= 32:
            margin_i -= 64
        return cls(payload[0], margin_i)

    def encode_payload(self):
        if not isinstance(self.margin, int) or not -32 <= self.margin <= 31:
            raise ValueError("Margin must be in the range of -32..31, but {}."
                             .format(self.margin))
        return (int2x(self.battery, 1, "Battery")
                + bin2x("00" + int2bin(self.margin & 0x3f, 6)))

@dataclass(frozen=True)
class NewChannelAns(UplinkCommand):
    CID = 0x07
    SIZE = 1
    data_rate_range_ok: int
    channel_freq_ok: int

    @classmethod
    def parse(cls, payload):
        status_b = x2bin(payload[0])
        return cls(int(status_b[6]), int(status_b[7]))

    def encode_payload(self):
        return bin2x("000000"
                     + _flag(self.data_rate_range_ok, "DataRateRangeOK")
                     + _flag(self.channel_freq_ok, "ChannelFreqOK"))

@dataclass(frozen=True)
class RXTimingSetupAns(UplinkCommand):
    CID = 0x08

@dataclass(frozen=True)
class TXParamSetupAns(UplinkCommand):
    CID = 0x09

@dataclass(frozen=True)
class DlChannelAns(UplinkCommand):
    CID = 0x0A
    SIZE = 1
    uplink_freq_exists: int
    channel_freq_ok: int

    @classmethod
    def parse(cls, payload):
        status_b = x2bin(payload[0])
        return cls(int(status_b[6]), int(status_b[7]))

    def encode_payload(self):
        return bin2x("000000"
                     + _flag(self.uplink_freq_exists, "UplinkFreqExists")
                     + _flag(self.channel_freq_ok, "ChannelFreqOK"))

@dataclass(frozen=True)
class DeviceTimeReq(UplinkCommand):
    CID = 0x0D

#==== Downlink: sent by the network server.

@dataclass(frozen=True)
class LinkCheckAns(DownlinkCommand):
    CID = 0x02
    SIZE = 2
    margin: int
    gw_cnt: int

    @classmethod
    def parse(cls, payload):
        return cls(payload[0], payload[1])

    def encode_payload(self):
        return (int2x(self.margin, 1, "Margin")
                + int2x(self.gw_cnt, 1, "GwCnt"))

@dataclass(frozen=True)
class LinkADRReq(DownlinkCommand):
    """
    DataRate_TXPower(1) | ChMask(2) | Redundancy(1)
        DataRate_TXPower: DataRate(4) | TXPower(4)
        Redundancy: RFU(1) | ChMaskCntl(3) | NbTrans(4)
    """
    CID = 0x03
    SIZE = 4
    data_rate: int
    tx_power: int
    ch_mask: int
    ch_mask_cntl: int
    nb_trans: int

    @classmethod
    def is_valid(cls, payload):
        # RFU of Redundancy
        return x2bin(payload[3])[0] == "0"

    @classmethod
    def parse(cls, payload):
        DataRate_TXPower_b = x2bin(payload[0])
        Redundancy_b = x2bin(payload[3])
        return cls(x2int(DataRate_TXPower_b[0:4]),
                   x2int(DataRate_TXPower_b[4:8]),
                   x2int(payload[1:3]),
                   x2int(Redundancy_b[1:4]),
                   x2int(Redundancy_b[4:8]))

    def encode_payload(self):
        return (bin2x(int2bin(self.data_rate, 4, "DataRate")
                      + int2bin(self.tx_power, 4, "TXPower"))
                + int2x(self.ch_mask, 2, "ChMask")
                + bin2x("0"
                        + int2bin(self.ch_mask_cntl, 3, "ChMaskCntl")
                        + int2bin(self.nb_trans, 4, "NbTrans")))

@dataclass(frozen=True)
class DutyCycleReq(DownlinkCommand):
    """
    DutyCyclePL: RFU(4) | MaxDCycle(4)
    the aggregated duty cycle is 1/2^MaxDCycle, 0 means no limitation.
    """
    CID = 0x04
    SIZE = 1
    max_dcycle: int

    @classmethod
    def parse(cls, payload):
        return cls(x2int(x2bin(payload[0])[4:8]))

    def encode_payload(self):
        return bin2x("0000" + int2bin(self.max_dcycle, 4, "MaxDCycle"))

@dataclass(frozen=True)
class RXParamSetupReq(DownlinkCommand):
    """
    DLsettings(1) | Frequency(3)
        DLsettings: RFU(1) | RX1DRoffset(3) | RX2DataRate(4)
    Frequency is in 100 Hz.
    """
    CID = 0x05
    SIZE = 4
    rx1_dr_offset: int
    rx2_data_rate: int
    frequency: int

    @classmethod
    def parse(cls, payload):
        DLsettings_b = x2bin(payload[0])
        return cls(x2int(DLsettings_b[1:4]),
                   x2int(DLsettings_b[4:8]),
                   x2int(payload[1:4]))

    def encode_payload(self):
        return (bin2x("0"
                      + int2bin(self.rx1_dr_offset, 3, "RX1DRoffset")
                      + int2bin(self.rx2_data_rate, 4, "RX2DataRate"))
                + int2x(self.frequency, 3, "Frequency"))

@dataclass(frozen=True)
class DevStatusReq(DownlinkCommand):
    CID = 0x06

@dataclass(frozen=True)
class NewChannelReq(DownlinkCommand):
    """
    ChIndex(1) | Freq(3) | DrRange(1)
        DrRange: MaxDR(4) | MinDR(4)
    """
    CID = 0x07
    SIZE = 5
    ch_index: int
    frequency: int
    max_dr: int
    min_dr: int

    @classmethod
    def parse(cls, payload):
        return cls(*_parse_channel(payload))

    def encode_payload(self):
        return _encode_channel(self)

@dataclass(frozen=True)
class RXTimingSetupReq(DownlinkCommand):
    """
    Settings: RFU(4) | Del(4)
    """
    CID = 0x08
    SIZE = 1
    delay: int

    @classmethod
    def parse(cls, payload):
        return cls(x2int(x2bin(payload[0])[4:8]))

    def encode_payload(self):
        return bin2x("0000" + int2bin(self.delay, 4, "Delay"))

@dataclass(frozen=True)
class TXParamSetupReq(DownlinkCommand):
    """
    EIRP_DwellTime: RFU(2) | DownlinkDwellTime(1) | UplinkDwellTime(1)
                    | MaxEIRP(4)
    """
    CID = 0x09
    SIZE = 1
    downlink_dwell_time: int
    uplink_dwell_time: int
    max_eirp: int

    @classmethod
    def parse(cls, payload):
        EIRP_DwellTime_b = x2bin(payload[0])
        return cls(int(EIRP_DwellTime_b[2]), int(EIRP_DwellTime_b[3]),
                   x2int(EIRP_DwellTime_b[4:8]))

    def encode_payload(self):
        return bin2x("00"
                     + _flag(self.downlink_dwell_time, "DownlinkDwellTime")
                     + _flag(self.uplink_dwell_time, "UplinkDwellTime")
                     + int2bin(self.max_eirp, 4, "MaxEIRP"))

@dataclass(frozen=True)
class DlChannelReq(DownlinkCommand):
    """
    ChIndex(1) | Freq(3) | DrRange(1), the same layout as NewChannelReq.
    """
    CID = 0x0A
    SIZE = 5
    ch_index: int
    frequency: int
    max_dr: int
    min_dr: int

    @classmethod
    def parse(cls, payload):
        return cls(*_parse_channel(payload))

    def encode_payload(self):
        return _encode_channel(self)

@dataclass(frozen=True)
class DeviceTimeAns(DownlinkCommand):
    """
    Seconds(4) | FractionalSecond(1)
    FractionalSecond is in 1/256 second.
    """
    CID = 0x0D
    SIZE = 5
    seconds: int
    fractional: int

    @classmethod
    def parse(cls, payload):
        return cls(x2int(payload[0:4]), payload[4])

    @classmethod
    def from_ms(cls, ms_since_epoch):
        """
        ms_since_epoch: milliseconds, the fraction is truncated into 1/256 sec.
        """
        # 0.5^8
        fractional = int((ms_since_epoch % 1000) / 3.90625)
        return cls(ms_since_epoch // 1000, fractional)

    def to_ms(self):
        return self.seconds*1000 + int(self.fractional*3.90625)

    def encode_payload(self):
        return (int2x(self.seconds, 4, "Seconds")
                + int2x(self.fractional, 1, "FractionalSecond"))

#====

mac_cmd_tab = {
    MSGDIR_UP: {
        0x02: LinkCheckReq,
        0x03: LinkADRAns,
        0x04: DutyCycleAns,
        0x05: RXParamSetupAns,
        0x06: DevStatusAns,
        0x07: NewChannelAns,
        0x08: RXTimingSetupAns,
        0x09: TXParamSetupAns,
        0x0a: DlChannelAns,
        0x0d: DeviceTimeReq,
    },
    MSGDIR_DOWN: {
        0x02: LinkCheckAns,
        0x03: LinkADRReq,
        0x04: DutyCycleReq,
        0x05: RXParamSetupReq,
        0x06: DevStatusReq,
        0x07: NewChannelReq,
        0x08: RXTimingSetupReq,
        0x09: TXParamSetupReq,
        0x0a: DlChannelReq,
        0x0d: DeviceTimeAns,
    },
    }

def notify_warning(warn, msg):
    """
    pass a message to the warning sink.
    the sink must not stop the caller even if it fails.
    """
    if warn is None:
        warn = logger.warning
    try:
        warn(msg)
    except Exception as e:
        logger.debug("the warning sink failed: {}".format(e))

def decode_mac_cmd(mac_cmds, msg_dir, warn=None):
    """
    decode a sequence of MAC commands into a list of commands.
        mac_cmds: bytes, e.g. FOpts.
        msg_dir: MSGDIR_UP or MSGDIR_DOWN.
        warn: a callable taking a message, logger.warning if None.
    when an unknown or a truncated command is found,
    it is reported to warn(), and the rest of bytes is discarded.
    """
    tab = mac_cmd_tab.get(msg_dir)
    if tab is None:
        raise ValueError("msg_dir must be MSGDIR_UP or MSGDIR_DOWN, but {}."
                         .format(msg_dir))
    dir_str = "Up" if msg_dir == MSGDIR_UP else "Down"
    cmd_list = []
    offset = 0
    while offset < len(mac_cmds):
        cid = mac_cmds[offset]
        t = tab.get(cid)
        if t is None:
            notify_warning(warn, "Unknown {}link MAC command {}"
                           .format(dir_str, b2a_hex(mac_cmds[offset:])))
            # just stop to parse all.
            break
        payload = bytes(mac_cmds[offset+1:offset+1+t.SIZE])
        if len(payload) < t.SIZE:
            notify_warning(warn, "Truncated {}link MAC command {}, {}"
                           .format(dir_str, t.__name__,
                                   b2a_hex(mac_cmds[offset:])))
            break
        if not t.is_valid(payload):
            notify_warning(warn, "Unknown {}link MAC command {}"
                           .format(dir_str, b2a_hex(mac_cmds[offset:])))
            break
        cmd_list.append(t.parse(payload))
        offset += 1 + t.SIZE
    return cmd_list

def decode_uplink_commands(mac_cmds, warn=None):
    return decode_mac_cmd(mac_cmds, MSGDIR_UP, warn=warn)

def decode_downlink_commands(mac_cmds, warn=None):
    return decode_mac_cmd(mac_cmds, MSGDIR_DOWN, warn=warn)

def encode_uplink_commands(cmd_list):
    # anything other than the uplink commands is skipped.
    return b"".join([cmd.to_bytes() for cmd in cmd_list
                     if isinstance(cmd, UplinkCommand)])

def encode_downlink_commands(cmd_list):
    buf = []
    for cmd in cmd_list:
        if not isinstance(cmd, DownlinkCommand):
            raise ValueError("not a downlink MAC command, {!r}".format(cmd))
        buf.append(cmd.to_bytes())
    return b"".join(buf)

def encode_mac_cmd(cmd_list, msg_dir):
    if msg_dir == MSGDIR_UP:
        return encode_uplink_commands(cmd_list)
    elif msg_dir == MSGDIR_DOWN:
        return encode_downlink_commands(cmd_list)
    raise ValueError("msg_dir must be MSGDIR_UP or MSGDIR_DOWN, but {}."
                     .format(msg_dir))

def first_command_id(mac_cmds):
    """
    return the CID of the first command, or 0 if empty.
    """
    if not mac_cmds:
        return 0
    return mac_cmds[0]
