"""Exception hierarchy for irpad."""


class IrPadError(Exception):
    """Base error for irpad."""


class DeviceError(IrPadError):
    """Base device error."""


class DeviceNotFoundError(DeviceError):
    """Raised when no transmitter matches the requested vendor ID and tag."""


class DeviceOpenError(DeviceError):
    """Raised when the device session cannot be opened. Fatal at startup."""


class DeviceNotInitializedError(DeviceError):
    """Raised when a transmission is attempted without an open session."""


class TransmitError(DeviceError):
    """Raised when the transmitter rejects or fails a transmission."""


class CatalogError(IrPadError):
    """Base error for waveform catalog problems."""


class UnknownActionError(CatalogError, KeyError):
    """Raised when an action name is not part of the catalog."""

    def __init__(self, name):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return f"Unknown action: {self.name!r}"


class WaveformError(CatalogError, ValueError):
    """Raised when a pulse sequence is empty or out of range."""


class CatalogFormatError(CatalogError):
    """Raised when a catalog file cannot be parsed."""
