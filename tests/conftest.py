"""Shared pytest fixtures and fake hardware."""

from __future__ import annotations

import threading

import pytest

from irpad.catalog import WaveformTable
from irpad.dispatcher import TransmissionDispatcher
from irpad.errors import DeviceNotFoundError
from irpad.router import ActionRouter
from irpad.session import DeviceSession


class FakeTransmitter:
    """In-memory stand-in for UsbIrTransmitter."""

    def __init__(self, *, delay: float = 0.0, ok: bool = True, present: bool = True) -> None:
        self.delay = delay
        self.ok = ok
        self.present = present
        self.error: Exception | None = None
        self.opened_with: tuple[int, str] | None = None
        self.open_calls = 0
        self.close_calls = 0
        self.calls: list[tuple[tuple[int, ...], int, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()
        self._never = threading.Event()

    def open(self, vendor_id: int, product_tag: str) -> None:
        self.open_calls += 1
        if not self.present:
            raise DeviceNotFoundError(f"no device 0x{vendor_id:04X} '{product_tag}'")
        self.opened_with = (vendor_id, product_tag)

    def close(self) -> None:
        self.close_calls += 1

    def transmit_raw(self, pulses, freq: int, repeats: int = 0) -> bool:
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                self._never.wait(self.delay)
            with self._lock:
                self.calls.append((tuple(pulses), freq, repeats))
            if self.error is not None:
                raise self.error
            return self.ok
        finally:
            with self._lock:
                self.in_flight -= 1


class ResultLog:
    """Listener collecting TransmissionResults from the worker thread."""

    def __init__(self) -> None:
        self.results = []
        self._lock = threading.Lock()

    def __call__(self, result) -> None:
        with self._lock:
            self.results.append(result)

    @property
    def ok(self):
        return [r for r in self.results if r.ok]

    @property
    def failed(self):
        return [r for r in self.results if not r.ok]


@pytest.fixture
def transmitter() -> FakeTransmitter:
    return FakeTransmitter()


@pytest.fixture
def session(transmitter: FakeTransmitter) -> DeviceSession:
    s = DeviceSession(transmitter).open()
    yield s
    s.close()


@pytest.fixture
def results() -> ResultLog:
    return ResultLog()


@pytest.fixture
def dispatcher(session: DeviceSession, results: ResultLog) -> TransmissionDispatcher:
    d = TransmissionDispatcher(session)
    d.add_listener(results)
    d.start()
    yield d
    d.stop(drain=False)


@pytest.fixture
def table() -> WaveformTable:
    return WaveformTable.builtin()


@pytest.fixture
def router(table: WaveformTable, dispatcher: TransmissionDispatcher) -> ActionRouter:
    return ActionRouter(table, dispatcher)
