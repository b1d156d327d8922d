from __future__ import annotations

import threading

from irpad.catalog import Action, Variant
from irpad.toggle import ToggleStateStore


def test_strict_alternation_starts_with_primary() -> None:
    toggles = ToggleStateStore()
    picks = [toggles.select_and_advance("Power") for _ in range(5)]
    assert picks == [
        Variant.PRIMARY,
        Variant.ALTERNATE,
        Variant.PRIMARY,
        Variant.ALTERNATE,
        Variant.PRIMARY,
    ]


def test_actions_toggle_independently() -> None:
    toggles = ToggleStateStore()
    assert toggles.select_and_advance("Up") is Variant.PRIMARY
    assert toggles.select_and_advance("Down") is Variant.PRIMARY
    assert toggles.select_and_advance("Up") is Variant.ALTERNATE
    assert toggles.select_and_advance(Action.DOWN) is Variant.ALTERNATE


def test_peek_does_not_advance() -> None:
    toggles = ToggleStateStore()
    assert toggles.peek("Mode") is Variant.PRIMARY
    assert len(toggles) == 0
    toggles.select_and_advance("Mode")
    assert toggles.peek("Mode") is Variant.ALTERNATE
    assert toggles.peek("Mode") is Variant.ALTERNATE


def test_reset_one_and_all() -> None:
    toggles = ToggleStateStore()
    toggles.select_and_advance("1")
    toggles.select_and_advance("2")
    toggles.reset("1")
    assert toggles.peek("1") is Variant.PRIMARY
    assert toggles.peek("2") is Variant.ALTERNATE
    toggles.reset()
    assert len(toggles) == 0


def test_concurrent_presses_alternate_exactly() -> None:
    toggles = ToggleStateStore()
    picks: list[Variant] = []
    lock = threading.Lock()

    def press() -> None:
        for _ in range(250):
            variant = toggles.select_and_advance("Select")
            with lock:
                picks.append(variant)

    threads = [threading.Thread(target=press) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert picks.count(Variant.PRIMARY) == 500
    assert picks.count(Variant.ALTERNATE) == 500
    assert toggles.peek("Select") is Variant.PRIMARY
