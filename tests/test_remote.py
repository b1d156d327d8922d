from __future__ import annotations

from pathlib import Path

import pytest

from irpad.catalog import Variant, WaveformTable
from irpad.config import IrPadConfig
from irpad.errors import DeviceOpenError
from irpad.remote import Remote
from irpad.storage import save_catalog

from conftest import FakeTransmitter


def test_remote_lifecycle() -> None:
    tx = FakeTransmitter()
    with Remote(IrPadConfig(repeats=3), tx) as remote:
        assert remote.session.is_open
        assert remote.dispatcher.running
        first = remote.press("Display")
        second = remote.press("Display")
        assert remote.wait(timeout=5)

    assert not remote.session.is_open
    assert not remote.dispatcher.running
    assert tx.close_calls == 1
    assert (first.variant, second.variant) == (Variant.PRIMARY, Variant.ALTERNATE)
    assert [c[2] for c in tx.calls] == [3, 3]


def test_remote_open_failure_leaves_nothing_running() -> None:
    remote = Remote(IrPadConfig(), FakeTransmitter(present=False))
    with pytest.raises(DeviceOpenError):
        remote.open()
    assert not remote.dispatcher.running
    remote.close()


def test_remote_press_without_open_is_dropped() -> None:
    tx = FakeTransmitter()
    remote = Remote(IrPadConfig(layout="compact"), tx)
    assert remote.press("Power") is None
    assert remote.dispatcher.dropped == 1
    assert tx.calls == []
    assert len(remote.table) == 9


def test_remote_uses_catalog_frequency(tmp_path: Path) -> None:
    path = save_catalog(tmp_path / "tv.json", WaveformTable({"Power": ([1, 2], [3, 4])}), 38000)
    tx = FakeTransmitter()
    with Remote(IrPadConfig(catalog_path=path), tx) as remote:
        remote.press("Power")
        assert remote.wait(timeout=5)
    assert remote.frequency == 38000
    assert tx.calls == [((1, 2), 38000, 0)]


def test_remote_frequency_option_overrides_catalog(tmp_path: Path) -> None:
    path = save_catalog(tmp_path / "tv.json", WaveformTable({"Power": ([1, 2], [3, 4])}), 38000)
    tx = FakeTransmitter()
    with Remote(IrPadConfig(catalog_path=path, frequency=36000), tx) as remote:
        remote.press("Power")
        assert remote.wait(timeout=5)
    assert tx.calls == [((1, 2), 36000, 0)]


def test_remote_builtin_catalog_frequency() -> None:
    assert Remote(IrPadConfig(), FakeTransmitter()).frequency == 2300
