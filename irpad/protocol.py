"""
IR Pad - Protocol Constants

USB identifiers, endpoints and packet framing used to talk to the
IR transmitter, plus the table of supported carrier frequencies.
"""

# Default device identity (vendor ID and manufacturer/product tag)
DEFAULT_VENDOR_ID = 0x20A0
DEFAULT_PRODUCT_TAG = "flirc.tv"

# USB endpoints
EP_OUT = 0x01  # Host to device
EP_IN = 0x81   # Device to host
INTERFACE = 0

# Report IDs
REPORT_OUT = 0x02
REPORT_IN = 0x01
REPORT_SIZE = 61

# Packet framing
PACK_START = 0x5453  # "TS" - packet start marker
PACK_END = 0x4E45    # "EN" - packet end marker
MAX_FRAG_SIZE = 56   # Maximum fragment payload size
MAX_PACKET_SIZE = 1024  # Maximum assembled packet size

# Commands
CMD_IDLE_MODE = ord('L')  # Set device to idle mode
CMD_SEND_MODE = ord('S')  # Set device to send (transmit) mode
CMD_DATA = ord('D')       # IR data packet
CMD_OUTPUT = ord('O')     # Output finished acknowledgement

# Device states
STATE_SEND = 9

# Timing
WRITE_TIMEOUT_MS = 2000
READ_TIMEOUT_MS = 100
ACK_TIMEOUT_S = 2.0
WRITE_ATTEMPTS = 5

# Carrier used by the remote in the built-in catalog
DEFAULT_FREQ = 2300

# Carrier frequencies (Hz) the transmitter can generate, by table index
IR_FREQ_TABLE = [
    38000,  # 0
    37900,  # 1
    37917,  # 2
    36000,  # 3 - RC5/RC6
    40000,  # 4 - Sony
    39700,  # 5
    35750,  # 6
    36400,  # 7
    36700,  # 8
    37000,  # 9
    37700,  # 10
    38380,  # 11
    38400,  # 12
    38462,  # 13
    38740,  # 14
    39200,  # 15
    42000,  # 16
    43600,  # 17
    44000,  # 18
    33000,  # 19
    33500,  # 20
    34000,  # 21
    34500,  # 22
    35000,  # 23
    40500,  # 24
    41000,  # 25
    41500,  # 26
    42500,  # 27
    43000,  # 28
    45000,  # 29
]


def get_freq_index(freq: int) -> int:
    """
    Get the frequency table index for a given carrier.

    Exact matches win; anything else maps to the closest supported
    frequency.

    Args:
        freq: IR carrier frequency in Hz

    Returns:
        Index into IR_FREQ_TABLE
    """
    try:
        return IR_FREQ_TABLE.index(freq)
    except ValueError:
        return min(range(len(IR_FREQ_TABLE)), key=lambda i: abs(IR_FREQ_TABLE[i] - freq))


def get_freq_by_index(index: int) -> int:
    """
    Get the frequency for a given table index.

    Args:
        index: Index into the frequency table

    Returns:
        Frequency in Hz, or the first table entry if index out of range
    """
    if 0 <= index < len(IR_FREQ_TABLE):
        return IR_FREQ_TABLE[index]
    return IR_FREQ_TABLE[0]
