from __future__ import annotations

import pytest

from irpad.catalog import BUILTIN_CODES, Action
from irpad.errors import WaveformError
from irpad.pulses import (
    IR_TICK_US,
    decode_pulses,
    encode_pulses,
    format_pulses,
    frame_duration_us,
    validate_pulses,
)


def test_encode_marks_and_spaces() -> None:
    assert encode_pulses([560, 560], trailing_gap_us=0) == bytes([0x80 | 35, 35])


def test_encode_carries_rounding_error() -> None:
    # 1000us = 62 ticks + 8us; the 8us spill into the following space
    assert encode_pulses([1000, 1000], trailing_gap_us=0) == bytes([0x80 | 62, 63])


def test_encode_splits_long_durations() -> None:
    assert encode_pulses([3000], trailing_gap_us=0) == bytes([0xFF, 0x80 | 60])


def test_trailing_gap_only_after_final_mark() -> None:
    assert encode_pulses([3000], trailing_gap_us=160) == bytes([0xFF, 0x80 | 60, 10])
    assert encode_pulses([560, 560], trailing_gap_us=160) == bytes([0x80 | 35, 35])


def test_decode_merges_runs() -> None:
    assert decode_pulses(bytes([0xFF, 0x80 | 60, 10])) == [2992, 160]


def test_decode_leading_space_gets_empty_mark() -> None:
    assert decode_pulses(bytes([10, 0x85])) == [0, 160, 80]


def test_decode_skips_zero_length_bytes() -> None:
    assert decode_pulses(bytes([0x80, 0x83, 0x00, 0x02])) == [48, 32]


def test_builtin_codes_survive_encoding_within_one_tick() -> None:
    pulses = BUILTIN_CODES[Action.POWER].primary
    decoded = decode_pulses(encode_pulses(pulses, trailing_gap_us=0))
    assert len(decoded) == len(pulses)
    for captured, quantized in zip(pulses, decoded):
        assert abs(captured - quantized) < 2 * IR_TICK_US
    assert abs(frame_duration_us(pulses) - frame_duration_us(decoded)) < IR_TICK_US


@pytest.mark.parametrize("bad", [[], [1, -1], [0x10000], ["12"], [None]])
def test_validate_rejects(bad) -> None:
    with pytest.raises(WaveformError):
        validate_pulses(bad)


def test_validate_returns_tuple() -> None:
    assert validate_pulses([0, 65535]) == (0, 65535)


def test_format_pulses() -> None:
    assert format_pulses([1000, 500, 1000]) == "[1000, 500, 1000] (3 pulses, 2.5 ms)"
    text = format_pulses(list(range(1, 11)), limit=3)
    assert text.startswith("[1, 2, 3, ... 10]")
    assert "(10 pulses" in text
