"""
IR Pad - Remote

Wires the pieces together: catalog, device session, dispatcher and
router. Both the CLI and the GUI build one of these.
"""

import logging
from typing import Optional

from .config import IrPadConfig
from .device import UsbIrTransmitter
from .dispatcher import TransmissionDispatcher
from .router import ActionRouter
from .session import DeviceSession, Transmitter
from .storage import load_table
from .toggle import ToggleStateStore

log = logging.getLogger(__name__)


class Remote:
    """
    A ready-to-use IR remote.

    Example:
        >>> with Remote(IrPadConfig()) as remote:
        ...     remote.press("Power")
        ...     remote.wait()
    """

    def __init__(self, config: IrPadConfig, transmitter: Optional[Transmitter] = None):
        self.config = config
        self.table, catalog_freq = load_table(config.catalog_path, config.layout)
        self.frequency = catalog_freq if config.frequency is None else config.frequency
        if transmitter is None:
            transmitter = UsbIrTransmitter(trailing_gap_us=config.trailing_gap_us)
        self.session = DeviceSession(transmitter, config.vendor_id, config.product_tag)
        self.dispatcher = TransmissionDispatcher(
            self.session,
            frequency=self.frequency,
            repeats=config.repeats,
            queue_size=config.queue_size,
        )
        self.router = ActionRouter(
            self.table,
            self.dispatcher,
            toggles=ToggleStateStore(),
            bindings=config.bindings,
        )

    def open(self) -> "Remote":
        """
        Open the device and start the transmit worker.

        Raises:
            DeviceOpenError: if the transmitter cannot be opened
        """
        self.session.open()
        self.dispatcher.start()
        return self

    def close(self, drain: bool = True):
        """Stop the worker and release the device."""
        try:
            self.dispatcher.stop(drain=drain)
        finally:
            self.session.close()

    def press(self, action_name):
        return self.router.route(action_name)

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self.dispatcher.join(timeout)

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
