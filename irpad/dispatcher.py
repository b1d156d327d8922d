"""
IR Pad - Transmission Dispatcher

Moves hardware transmissions off the calling thread. Requests go into
a bounded queue drained by a single worker thread, which is also what
keeps transmissions from overlapping on the device.

Results are reported on the log and to optional listeners; dispatch()
itself never waits for the hardware.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from .catalog import Action, ActionKey, Variant
from .errors import DeviceNotInitializedError, IrPadError, WaveformError
from .protocol import DEFAULT_FREQ
from .pulses import validate_pulses
from .session import DeviceSession

log = logging.getLogger(__name__)

MAX_REPEATS = 0xFF
DEFAULT_QUEUE_SIZE = 32


@dataclass(frozen=True)
class TransmissionRequest:
    """Snapshot of one transmission, safe to hand to another thread."""

    action: Action
    pulses: Tuple[int, ...]
    frequency: int = DEFAULT_FREQ
    repeats: int = 0
    variant: Variant = Variant.PRIMARY
    submitted_at: float = field(default_factory=time.perf_counter, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "action", Action.parse(self.action))
        object.__setattr__(self, "pulses", validate_pulses(self.pulses))
        if not 0 < self.frequency <= 0xFFFF:
            raise WaveformError(f"Carrier frequency out of range: {self.frequency}")
        if not 0 <= self.repeats <= MAX_REPEATS:
            raise WaveformError(f"Repeat count out of range 0-{MAX_REPEATS}: {self.repeats}")


@dataclass(frozen=True)
class TransmissionResult:
    """Outcome of one transmission as seen by the worker."""

    request: TransmissionRequest
    ok: bool
    elapsed_ms: float = 0.0
    error: Optional[Exception] = None


ResultListener = Callable[[TransmissionResult], None]


class TransmissionDispatcher:
    """
    Fire-and-forget transmitter front end.

    Example:
        >>> with TransmissionDispatcher(session) as dispatcher:
        ...     dispatcher.dispatch("Power", pair.primary)
        ...     dispatcher.join()
    """

    def __init__(
        self,
        session: DeviceSession,
        frequency: int = DEFAULT_FREQ,
        repeats: int = 0,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ):
        self.session = session
        self.frequency = frequency
        self.repeats = repeats
        self._queue: "queue.Queue[Optional[TransmissionRequest]]" = queue.Queue(maxsize=queue_size)
        self._listeners: List[ResultListener] = []
        self._worker: Optional[threading.Thread] = None
        # Guards _worker and the worker's decision to exit
        self._worker_lock = threading.RLock()
        self._stats_lock = threading.Lock()

        self.sent = 0
        self.failed = 0
        self.dropped = 0

    # ---------- Lifecycle ----------

    def start(self) -> "TransmissionDispatcher":
        """Start the worker thread (no-op if already running)."""
        with self._worker_lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._worker_loop, name="IrTransmit", daemon=True
                )
                self._worker.start()
        return self

    def stop(self, timeout: Optional[float] = 2.0, drain: bool = True):
        """
        Stop the worker thread.

        Args:
            timeout: Seconds to wait for the worker to exit
            drain: Transmit everything already queued before stopping;
                otherwise pending requests are discarded
        """
        worker = self._worker
        if worker is None:
            return

        if not drain:
            discarded = 0
            while True:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break
                self._queue.task_done()
                discarded += 1
            if discarded:
                log.info("Discarded %d pending transmissions", discarded)

        self._queue.put(None)
        worker.join(timeout)
        if worker.is_alive():
            # Exits at the stop marker once nothing is queued behind it
            log.warning("Transmit worker still busy after %s s", timeout)

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until every queued request has been handled.

        Returns:
            True if the queue drained within timeout
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def pending(self) -> int:
        return self._queue.qsize()

    def add_listener(self, listener: ResultListener):
        """Register a callable receiving every TransmissionResult."""
        self._listeners.append(listener)

    def remove_listener(self, listener: ResultListener):
        self._listeners.remove(listener)

    # ---------- Submission ----------

    def dispatch(
        self,
        action: ActionKey,
        pulses: Sequence[int],
        frequency: Optional[int] = None,
        repeats: Optional[int] = None,
        variant: Variant = Variant.PRIMARY,
    ) -> Optional[TransmissionRequest]:
        """
        Queue a transmission and return immediately.

        Args:
            action: Action the pulses belong to (for reporting)
            pulses: Mark/space durations in microseconds
            frequency: Carrier in Hz (dispatcher default if None)
            repeats: Extra retransmissions (dispatcher default if None)
            variant: Which waveform of the pair this is (for reporting)

        Returns:
            The queued request, or None if it was dropped because the
            session is closed or the queue is full
        """
        request = TransmissionRequest(
            action=action,
            pulses=tuple(pulses),
            frequency=self.frequency if frequency is None else frequency,
            repeats=self.repeats if repeats is None else repeats,
            variant=variant,
        )

        if not self.session.is_open:
            self._report(TransmissionResult(
                request, ok=False, error=DeviceNotInitializedError("IR transmitter is not initialized")
            ))
            return None

        try:
            with self._worker_lock:
                self.start()
                self._queue.put_nowait(request)
        except queue.Full:
            with self._stats_lock:
                self.dropped += 1
            log.warning("Transmit queue full, dropping %s", request.action)
            return None

        log.debug("Queued %s (%s, %d pulses)", request.action, request.variant.name.lower(), len(request.pulses))
        return request

    # ---------- Worker ----------

    def _worker_loop(self):
        while True:
            request = self._queue.get()
            try:
                if request is None:
                    with self._worker_lock:
                        if self._queue.empty():
                            if self._worker is threading.current_thread():
                                self._worker = None
                            return
                    continue
                self._transmit(request)
            finally:
                self._queue.task_done()

    def _transmit(self, request: TransmissionRequest):
        start = time.perf_counter()
        try:
            self.session.transmit_raw(request.pulses, request.frequency, request.repeats)
        except IrPadError as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self._report(TransmissionResult(request, ok=False, elapsed_ms=elapsed_ms, error=e))
            return
        except Exception as e:
            # Driver bug; the worker must survive it
            log.exception("Unexpected error transmitting %s", request.action)
            elapsed_ms = (time.perf_counter() - start) * 1000
            self._report(TransmissionResult(request, ok=False, elapsed_ms=elapsed_ms, error=e))
            return
        elapsed_ms = (time.perf_counter() - start) * 1000
        self._report(TransmissionResult(request, ok=True, elapsed_ms=elapsed_ms))

    def _report(self, result: TransmissionResult):
        request = result.request
        with self._stats_lock:
            if result.ok:
                self.sent += 1
            elif isinstance(result.error, DeviceNotInitializedError):
                self.dropped += 1
            else:
                self.failed += 1

        if result.ok:
            log.info(
                "Transmitted %s (%s) in %.1f ms",
                request.action, request.variant.name.lower(), result.elapsed_ms,
            )
        else:
            log.error("Failed to transmit %s: %s", request.action, result.error)

        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception:
                log.exception("Result listener %r failed", listener)

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
