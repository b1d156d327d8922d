from __future__ import annotations

import json
from pathlib import Path

import pytest

import irpad_cli
from irpad.catalog import WaveformTable
from irpad.remote import Remote

from conftest import FakeTransmitter


@pytest.fixture
def fake_remote(monkeypatch: pytest.MonkeyPatch) -> FakeTransmitter:
    tx = FakeTransmitter()
    monkeypatch.setattr(irpad_cli, "Remote", lambda config: Remote(config, tx))
    monkeypatch.delenv("IRPAD_VENDOR_ID", raising=False)
    monkeypatch.delenv("IRPAD_PRODUCT", raising=False)
    monkeypatch.delenv("IRPAD_CATALOG", raising=False)
    return tx


def test_send_presses_with_alternation(fake_remote: FakeTransmitter, capsys) -> None:
    code = irpad_cli.main(["send", "Power", "-n", "3", "-d", "0"])
    assert code == 0

    pair = WaveformTable.builtin().lookup("Power")
    assert [c[0] for c in fake_remote.calls] == [pair.primary, pair.alternate, pair.primary]
    assert all(c[1] == 2300 for c in fake_remote.calls)
    assert fake_remote.close_calls == 1
    assert "Done!" in capsys.readouterr().out


def test_send_with_options(fake_remote: FakeTransmitter) -> None:
    code = irpad_cli.main(["--frequency", "38000", "--repeats", "3", "--vendor-id", "0x10c4",
                           "--product", "tview", "send", "Volume +"])
    assert code == 0
    assert fake_remote.opened_with == (0x10C4, "tview")
    assert fake_remote.calls[0][1:] == (38000, 3)


def test_send_unknown_action(fake_remote: FakeTransmitter, capsys) -> None:
    assert irpad_cli.main(["send", "Eject"]) == 1
    assert fake_remote.open_calls == 0
    assert "Unknown action" in capsys.readouterr().err


def test_send_action_outside_layout(fake_remote: FakeTransmitter) -> None:
    assert irpad_cli.main(["--layout", "compact", "send", "7"]) == 1
    assert fake_remote.calls == []


def test_send_without_device(fake_remote: FakeTransmitter, capsys) -> None:
    fake_remote.present = False
    assert irpad_cli.main(["send", "Power"]) == 1
    assert fake_remote.calls == []
    assert "Failed to open" in capsys.readouterr().err


def test_send_reports_transmit_failure(fake_remote: FakeTransmitter, capsys) -> None:
    fake_remote.ok = False
    assert irpad_cli.main(["send", "Mode"]) == 1
    assert "1 transmission(s) failed" in capsys.readouterr().err


def test_invalid_repeats(fake_remote: FakeTransmitter, capsys) -> None:
    assert irpad_cli.main(["--repeats", "300", "send", "Power"]) == 2
    assert "Repeat count" in capsys.readouterr().err


def test_list(fake_remote: FakeTransmitter, capsys) -> None:
    assert irpad_cli.main(["--layout", "compact", "list"]) == 0
    out = capsys.readouterr().out
    assert "Catalog actions (9, layout 'compact')" in out
    assert "Volume +" in out
    assert "middle click  -> Select" in out


def test_show(fake_remote: FakeTransmitter, capsys) -> None:
    assert irpad_cli.main(["show", "Power", "--full"]) == 0
    out = capsys.readouterr().out
    assert "primary: [1781, 835" in out
    assert "19 pulses" in out

    assert irpad_cli.main(["show", "Eject"]) == 1


def test_export_and_use_catalog(fake_remote: FakeTransmitter, tmp_path: Path) -> None:
    path = tmp_path / "remote.json"
    assert irpad_cli.main(["--layout", "compact", "export", str(path)]) == 0
    data = json.loads(path.read_text())
    assert len(data["codes"]) == 9
    assert data["frequency"] == 2300

    data["codes"]["Power"] = {"primary": [10, 20], "alternate": [30, 40]}
    path.write_text(json.dumps(data))
    assert irpad_cli.main(["--catalog", str(path), "send", "Power"]) == 0
    assert fake_remote.calls[0][0] == (10, 20)


def test_bad_catalog_file(fake_remote: FakeTransmitter, tmp_path: Path, capsys) -> None:
    path = tmp_path / "bad.json"
    path.write_text("[]")
    assert irpad_cli.main(["--catalog", str(path), "list"]) == 1
    assert "JSON object" in capsys.readouterr().err


def test_catalog_directory_is_reported(fake_remote: FakeTransmitter, tmp_path: Path, capsys) -> None:
    assert irpad_cli.main(["--catalog", str(tmp_path), "list"]) == 1
    assert "Cannot read catalog file" in capsys.readouterr().err


def test_catalog_frequency_is_replayed(fake_remote: FakeTransmitter, tmp_path: Path) -> None:
    source = tmp_path / "tv.json"
    assert irpad_cli.main(["--frequency", "38000", "export", str(source)]) == 0
    copy = tmp_path / "copy.json"
    assert irpad_cli.main(["--catalog", str(source), "export", str(copy)]) == 0
    assert json.loads(copy.read_text())["frequency"] == 38000

    assert irpad_cli.main(["--catalog", str(source), "send", "Power"]) == 0
    assert fake_remote.calls[0][1] == 38000


def test_info(fake_remote: FakeTransmitter, capsys) -> None:
    assert irpad_cli.main(["info"]) == 0
    assert "Device: Connected" in capsys.readouterr().out
    assert fake_remote.close_calls == 1

    fake_remote.present = False
    assert irpad_cli.main(["info"]) == 1


def test_no_command_prints_help(capsys) -> None:
    assert irpad_cli.main([]) == 0
    assert "usage" in capsys.readouterr().out
