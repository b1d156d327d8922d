"""
IR Pad - USB Infrared Remote Control Panel

Replays captured infrared remote-control codes through a USB IR
transmitter, one button per remote action.

Features:
    - Built-in catalog of captured pulse sequences, two per action
    - Toggle handling: presses alternate between the two waveforms
    - Non-blocking, serialized transmission on a worker thread
    - JSON catalog files for custom remotes
    - Command line and Tkinter front ends

Requirements:
    - pyusb >= 1.2.1
    - libusb-package >= 1.0.26.1
    - WinUSB driver (Windows only, install via Zadig)

Quick Start:
    >>> from irpad import IrPadConfig, Remote
    >>> with Remote(IrPadConfig()) as remote:
    ...     remote.press("Power")
    ...     remote.wait()

License: MIT
"""

__version__ = "1.0.0"

# Errors
from .errors import (
    IrPadError,
    DeviceError,
    DeviceNotFoundError,
    DeviceOpenError,
    DeviceNotInitializedError,
    TransmitError,
    CatalogError,
    UnknownActionError,
    WaveformError,
    CatalogFormatError,
)

# Catalog
from .catalog import (
    Action,
    Variant,
    WaveformPair,
    WaveformTable,
    BUILTIN_CODES,
    LAYOUTS,
)

# Pulse codec
from .pulses import (
    validate_pulses,
    encode_pulses,
    decode_pulses,
    format_pulses,
)

# Storage
from .storage import (
    save_catalog,
    load_catalog,
    load_table,
)

# Transmission
from .toggle import ToggleStateStore
from .device import UsbIrTransmitter
from .session import DeviceSession
from .dispatcher import (
    TransmissionDispatcher,
    TransmissionRequest,
    TransmissionResult,
)
from .router import ActionRouter, InputBindings
from .config import IrPadConfig
from .remote import Remote

__all__ = [
    "__version__",

    # Errors
    "IrPadError",
    "DeviceError",
    "DeviceNotFoundError",
    "DeviceOpenError",
    "DeviceNotInitializedError",
    "TransmitError",
    "CatalogError",
    "UnknownActionError",
    "WaveformError",
    "CatalogFormatError",

    # Catalog
    "Action",
    "Variant",
    "WaveformPair",
    "WaveformTable",
    "BUILTIN_CODES",
    "LAYOUTS",

    # Pulses
    "validate_pulses",
    "encode_pulses",
    "decode_pulses",
    "format_pulses",

    # Storage
    "save_catalog",
    "load_catalog",
    "load_table",

    # Transmission
    "ToggleStateStore",
    "UsbIrTransmitter",
    "DeviceSession",
    "TransmissionDispatcher",
    "TransmissionRequest",
    "TransmissionResult",
    "ActionRouter",
    "InputBindings",
    "IrPadConfig",
    "Remote",
]
