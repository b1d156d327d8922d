"""
IR Pad - Device Session

Owns the transmitter handle for the life of the process. Every
transmission goes through the session, which refuses to touch the
hardware until it has been opened.
"""

import logging
import threading
from typing import Optional, Protocol, Sequence

import usb.core

from .errors import (
    DeviceNotFoundError,
    DeviceNotInitializedError,
    DeviceOpenError,
    TransmitError,
    WaveformError,
)
from .protocol import DEFAULT_PRODUCT_TAG, DEFAULT_VENDOR_ID

log = logging.getLogger(__name__)


class Transmitter(Protocol):
    """Hardware interface a session drives (UsbIrTransmitter in production)."""

    def open(self, vendor_id: int, product_tag: str) -> None: ...

    def close(self) -> None: ...

    def transmit_raw(self, pulses: Sequence[int], freq: int, repeats: int = 0) -> bool: ...


class DeviceSession:
    """
    Scoped owner of one transmitter.

    Example:
        >>> with DeviceSession(UsbIrTransmitter()).open() as session:
        ...     session.transmit_raw([1781, 835, 952], 2300, 0)
    """

    def __init__(
        self,
        transmitter: Transmitter,
        vendor_id: int = DEFAULT_VENDOR_ID,
        product_tag: str = DEFAULT_PRODUCT_TAG,
    ):
        self.transmitter = transmitter
        self.vendor_id = vendor_id
        self.product_tag = product_tag
        self._open = False
        self._state_lock = threading.Lock()
        self._io_lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._open

    def open(
        self,
        vendor_id: Optional[int] = None,
        product_tag: Optional[str] = None,
    ) -> "DeviceSession":
        """
        Acquire the transmitter.

        Args:
            vendor_id: Overrides the vendor ID given at construction
            product_tag: Overrides the product tag given at construction

        Returns:
            self, so that it can be used in a with statement

        Raises:
            DeviceOpenError: if the transmitter cannot be found or opened
        """
        if vendor_id is not None:
            self.vendor_id = vendor_id
        if product_tag is not None:
            self.product_tag = product_tag

        with self._state_lock:
            if self._open:
                return self
            try:
                self.transmitter.open(self.vendor_id, self.product_tag)
            except (DeviceNotFoundError, usb.core.USBError, usb.core.NoBackendError,
                    ValueError, NotImplementedError) as e:
                # NoBackendError: libusb could not be loaded
                raise DeviceOpenError(f"Failed to open IR transmitter: {e}") from e
            self._open = True

        log.info("Device session opened (vendor 0x%04X, tag '%s')", self.vendor_id, self.product_tag)
        return self

    def close(self):
        """Release the transmitter. Safe to call any number of times."""
        with self._state_lock:
            if not self._open:
                return
            self._open = False
            with self._io_lock:
                self.transmitter.close()
        log.info("Device session closed")

    def transmit_raw(self, pulses: Sequence[int], freq: int, repeats: int = 0):
        """
        Send a pulse sequence. Blocks for the duration of the transmission.

        Concurrent callers are serialized; the transmitter only handles
        one frame at a time.

        Raises:
            DeviceNotInitializedError: if the session is not open
            TransmitError: if the transmitter reports a failure
        """
        if not self._open:
            raise DeviceNotInitializedError("IR transmitter is not initialized")

        with self._io_lock:
            if not self._open:
                raise DeviceNotInitializedError("IR transmitter was closed")
            try:
                ok = self.transmitter.transmit_raw(pulses, freq, repeats)
            except usb.core.USBError as e:
                raise TransmitError(f"USB error during transmit: {e}") from e
            except WaveformError as e:
                raise TransmitError(str(e)) from e

        if not ok:
            raise TransmitError("Transmitter rejected the frame")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self):
        state = "open" if self._open else "closed"
        return f"<DeviceSession 0x{self.vendor_id:04X} '{self.product_tag}' {state}>"
