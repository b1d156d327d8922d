from __future__ import annotations

import pytest

from irpad.catalog import (
    BUILTIN_CODES,
    LAYOUTS,
    Action,
    Variant,
    WaveformPair,
    WaveformTable,
    layout_positions,
)
from irpad.errors import UnknownActionError, WaveformError


def test_action_parse_accepts_catalog_labels() -> None:
    assert Action.parse("Power") is Action.POWER
    assert Action.parse("Volume +") is Action.VOLUME_UP
    assert Action.parse("Pause/Mute") is Action.PAUSE_MUTE
    assert Action.parse("0") is Action.DIGIT_0
    assert Action.parse(Action.JUMP) is Action.JUMP
    assert str(Action.DISPLAY) == "Display"


def test_action_parse_rejects_unknown_label() -> None:
    with pytest.raises(UnknownActionError) as exc:
        Action.parse("power")
    assert exc.value.name == "power"
    assert "power" in str(exc.value)


def test_builtin_catalog_has_every_action() -> None:
    assert set(BUILTIN_CODES) == set(Action)
    assert len(WaveformTable.builtin()) == 25
    for pair in BUILTIN_CODES.values():
        assert pair.primary and pair.alternate
        assert all(0 <= v <= 0xFFFF for v in pair.primary + pair.alternate)


def test_power_entry_matches_capture() -> None:
    pair = WaveformTable.builtin().lookup("Power")
    assert pair.primary[0] == 1781
    assert pair.primary[-1] == 872
    assert pair.alternate[0] == 1735
    assert pair.alternate[-1] == 908
    assert len(pair.primary) == 19


def test_lookup_unknown_action_raises_unknown_action() -> None:
    table = WaveformTable.builtin()
    with pytest.raises(UnknownActionError):
        table.lookup("Nonexistent")
    assert "Nonexistent" not in table


def test_compact_layout_excludes_digits() -> None:
    table = WaveformTable.builtin("compact")
    assert len(table) == 9
    assert "Power" in table
    assert "7" not in table
    with pytest.raises(UnknownActionError):
        table.lookup("7")


def test_unknown_layout() -> None:
    with pytest.raises(KeyError):
        WaveformTable.builtin("tiny")


def test_table_is_read_only() -> None:
    table = WaveformTable.builtin()
    with pytest.raises(TypeError):
        table._codes[Action.POWER] = BUILTIN_CODES[Action.MODE]


def test_table_accepts_plain_sequences() -> None:
    table = WaveformTable({"Up": ([1, 2, 3], [4, 5])})
    pair = table.lookup(Action.UP)
    assert pair == WaveformPair((1, 2, 3), (4, 5))
    assert table.actions() == (Action.UP,)


def test_table_rejects_unknown_names() -> None:
    with pytest.raises(UnknownActionError):
        WaveformTable({"Eject": ([1], [2])})


@pytest.mark.parametrize(
    "primary, alternate",
    [
        ((), (1,)),
        ((1,), ()),
        ((1, 70000), (1,)),
        ((1,), (-1,)),
        ((1, 2.5), (1,)),
        ((True,), (1,)),
    ],
)
def test_waveform_pair_validation(primary, alternate) -> None:
    with pytest.raises(WaveformError):
        WaveformPair(primary, alternate)


def test_waveform_pair_select_and_copy() -> None:
    source = [10, 20]
    pair = WaveformPair(source, (30,))
    source.append(99)
    assert pair.select(Variant.PRIMARY) == (10, 20)
    assert pair.select(Variant.ALTERNATE) == (30,)


def test_restrict_keeps_order_and_skips_missing() -> None:
    compact = WaveformTable.builtin("compact")
    restricted = compact.restrict(["Select", "1", "Power"])
    assert restricted.actions() == (Action.SELECT, Action.POWER)


def test_layout_positions_are_unique() -> None:
    for name in LAYOUTS:
        positions = layout_positions(name)
        assert len(set(positions.values())) == len(positions)
    assert layout_positions("full")[Action.SELECT] == (2, 1)


def test_layout_positions_place_extra_actions_below() -> None:
    table = WaveformTable({"Power": ([1], [1]), "Jump": ([1], [1])})
    positions = layout_positions("compact", table)
    assert positions == {Action.POWER: (0, 0), Action.JUMP: (1, 0)}
