"""
IR Pad - Pulse Sequence Encoding

Pulse sequences are lists of microsecond durations that alternate
mark (IR LED on) and space (LED off), always starting with a mark.

The transmitter does not take microseconds directly. Its raw IR data
format uses timing bytes where:
- Bit 7 (0x80) indicates IR LED ON (mark)
- Bits 0-6 indicate duration in 16us ticks (0-127)

Durations longer than 127 ticks are split over several bytes of the
same level.
"""

from typing import Iterable, List, Sequence, Tuple

from .errors import WaveformError

IR_TICK_US = 16          # Device timing resolution
MAX_BLOCK_SIZE = 127     # Maximum ticks per timing byte
MARK_BIT = 0x80
MAX_PULSE_US = 0xFFFF    # Pulse values are unsigned 16-bit

# Space appended after a sequence that ends on a mark, so that
# back-to-back frames stay distinguishable for the receiver
DEFAULT_TRAILING_GAP_US = 40000


def validate_pulses(pulses: Iterable[int]) -> Tuple[int, ...]:
    """
    Check a pulse sequence and return it as an immutable tuple.

    Args:
        pulses: Mark/space durations in microseconds

    Returns:
        Tuple copy of the sequence

    Raises:
        WaveformError: if the sequence is empty or a value is not an
            unsigned 16-bit integer
    """
    values = tuple(pulses)
    if not values:
        raise WaveformError("Pulse sequence is empty")

    for i, value in enumerate(values):
        if isinstance(value, bool) or not isinstance(value, int):
            raise WaveformError(f"Pulse {i} is not an integer: {value!r}")
        if value < 0 or value > MAX_PULSE_US:
            raise WaveformError(f"Pulse {i} out of range 0-{MAX_PULSE_US}: {value}")

    return values


def encode_pulses(
    pulses: Sequence[int],
    trailing_gap_us: int = DEFAULT_TRAILING_GAP_US
) -> bytes:
    """
    Encode a microsecond pulse sequence into raw transmitter data.

    The rounding remainder of every duration is carried into the next
    one, so the total frame length does not drift even though each
    byte is quantized to 16us.

    Args:
        pulses: Mark/space durations in microseconds, starting with a mark
        trailing_gap_us: Space to append when the sequence ends on a mark
            (0 disables it)

    Returns:
        Raw IR signal data bytes

    Example:
        >>> encode_pulses([560, 560], trailing_gap_us=0)
        b'\\xa3#'
    """
    values = validate_pulses(pulses)

    result = []
    pulse_time = 0
    sender_time = 0

    def add_pulse(duration: int, is_high: bool):
        nonlocal pulse_time, sender_time
        pulse_time += duration
        ticks = (pulse_time - sender_time) // IR_TICK_US
        sender_time += ticks * IR_TICK_US

        while ticks > 0:
            block = min(ticks, MAX_BLOCK_SIZE)
            ticks -= block
            if is_high:
                block |= MARK_BIT
            result.append(block)

    for i, duration in enumerate(values):
        add_pulse(duration, i % 2 == 0)

    if len(values) % 2 == 1 and trailing_gap_us > 0:
        add_pulse(trailing_gap_us, False)

    return bytes(result)


def decode_pulses(ir_data: bytes) -> List[int]:
    """
    Decode raw transmitter data back into microsecond durations.

    Consecutive bytes of the same level are merged. A leading space is
    kept as a zero-length mark so that the result still starts with a
    mark.

    Args:
        ir_data: Raw IR signal data bytes

    Returns:
        List of mark/space durations in microseconds (quantized to 16us)
    """
    pulses: List[int] = []
    level = True

    for byte in ir_data:
        is_high = bool(byte & MARK_BIT)
        duration = (byte & MAX_BLOCK_SIZE) * IR_TICK_US
        if duration == 0:
            continue

        if not pulses:
            if not is_high:
                pulses.append(0)
                level = True
            pulses.append(duration)
            level = is_high
            continue

        if is_high == level:
            pulses[-1] += duration
        else:
            pulses.append(duration)
            level = is_high

    return pulses


def frame_duration_us(pulses: Sequence[int]) -> int:
    """Total on-air time of a pulse sequence in microseconds."""
    return sum(pulses)


def format_pulses(pulses: Sequence[int], limit: int = 8) -> str:
    """
    Format a pulse sequence for display.

    Args:
        pulses: Mark/space durations in microseconds
        limit: Maximum number of values to show

    Returns:
        String like "[1781, 835, 952, ... 872] (19 pulses, 25.5 ms)"
    """
    shown = ", ".join(str(p) for p in pulses[:limit])
    if len(pulses) > limit:
        shown += f", ... {pulses[-1]}"
    total_ms = frame_duration_us(pulses) / 1000
    return f"[{shown}] ({len(pulses)} pulses, {total_ms:.1f} ms)"
