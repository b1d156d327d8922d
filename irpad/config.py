"""
IR Pad - Configuration

All tunables in one place. Values come from the dataclass defaults,
then IRPAD_* environment variables, then command line options.
"""

import argparse
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from .catalog import LAYOUTS, Action
from .dispatcher import DEFAULT_QUEUE_SIZE, MAX_REPEATS
from .protocol import DEFAULT_FREQ, DEFAULT_PRODUCT_TAG, DEFAULT_VENDOR_ID
from .pulses import DEFAULT_TRAILING_GAP_US
from .router import InputBindings

ENV_VENDOR_ID = "IRPAD_VENDOR_ID"
ENV_PRODUCT_TAG = "IRPAD_PRODUCT"
ENV_CATALOG = "IRPAD_CATALOG"


@dataclass(frozen=True)
class IrPadConfig:
    """
    Runtime configuration.

    Attributes:
        vendor_id: USB vendor ID of the transmitter
        product_tag: Substring of its manufacturer/product string
        frequency: Carrier frequency in Hz, or None to use the one
            recorded in the catalog (2300 for the built-in codes)
        repeats: Extra retransmissions per press. The captured remote
            was driven with both 0 and 3 in the past; 0 is the default
            and it is left to the user to change.
        layout: Button set, a key of catalog.LAYOUTS
        catalog_path: JSON catalog replacing the built-in codes
        queue_size: Maximum pending transmissions before presses are dropped
        trailing_gap_us: Space appended after frames ending on a mark
        bindings: Mouse gesture to action mapping
    """

    vendor_id: int = DEFAULT_VENDOR_ID
    product_tag: str = DEFAULT_PRODUCT_TAG
    frequency: Optional[int] = None
    repeats: int = 0
    layout: str = "full"
    catalog_path: Optional[Path] = None
    queue_size: int = DEFAULT_QUEUE_SIZE
    trailing_gap_us: int = DEFAULT_TRAILING_GAP_US
    bindings: InputBindings = field(default_factory=InputBindings)

    def __post_init__(self):
        if not 0 <= self.vendor_id <= 0xFFFF:
            raise ValueError(f"Vendor ID out of range: {self.vendor_id:#x}")
        if self.frequency is not None and not 0 < self.frequency <= 0xFFFF:
            raise ValueError(f"Carrier frequency out of range: {self.frequency}")
        if not 0 <= self.repeats <= MAX_REPEATS:
            raise ValueError(f"Repeat count must be 0-{MAX_REPEATS}, got {self.repeats}")
        if self.layout not in LAYOUTS:
            raise ValueError(f"Invalid layout: {self.layout}. Use {', '.join(LAYOUTS)}")
        if self.queue_size < 1:
            raise ValueError("Queue size must be at least 1")

    @classmethod
    def from_env(cls, environ=None) -> "IrPadConfig":
        """Defaults overridden by IRPAD_VENDOR_ID, IRPAD_PRODUCT and IRPAD_CATALOG."""
        environ = os.environ if environ is None else environ
        config = cls()
        if environ.get(ENV_VENDOR_ID):
            config = replace(config, vendor_id=int(environ[ENV_VENDOR_ID], 0))
        if environ.get(ENV_PRODUCT_TAG):
            config = replace(config, product_tag=environ[ENV_PRODUCT_TAG])
        if environ.get(ENV_CATALOG):
            config = replace(config, catalog_path=Path(environ[ENV_CATALOG]))
        return config

    @classmethod
    def from_args(cls, args: argparse.Namespace, environ=None) -> "IrPadConfig":
        """Environment defaults overridden by any option set on the command line."""
        config = cls.from_env(environ)
        overrides = {}
        for name in ("vendor_id", "product_tag", "frequency", "repeats", "layout", "catalog_path"):
            value = getattr(args, name, None)
            if value is not None:
                overrides[name] = value
        return replace(config, **overrides)


def parse_int(text: str) -> int:
    """Parse a decimal or 0x-prefixed hex option value."""
    try:
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {text!r}") from None


def add_config_arguments(parser: argparse.ArgumentParser):
    """Add the options understood by IrPadConfig.from_args to a parser."""
    group = parser.add_argument_group("device")
    group.add_argument('--vendor-id', dest='vendor_id', type=parse_int,
                       help=f'USB vendor ID (default: 0x{DEFAULT_VENDOR_ID:04X})')
    group.add_argument('--product', dest='product_tag',
                       help=f'Manufacturer/product string tag (default: {DEFAULT_PRODUCT_TAG})')
    group.add_argument('-f', '--frequency', type=int,
                       help=f'IR carrier frequency in Hz (default: from catalog, {DEFAULT_FREQ})')
    group.add_argument('-r', '--repeats', type=int,
                       help='Extra retransmissions per press (default: 0)')

    group = parser.add_argument_group("catalog")
    group.add_argument('--layout', choices=sorted(LAYOUTS),
                       help='Button set (default: full)')
    group.add_argument('--catalog', dest='catalog_path', type=Path,
                       help='JSON catalog file to use instead of the built-in codes')


def binding_names(bindings: InputBindings) -> dict:
    """Readable view of the gesture bindings."""
    return {
        "wheel up": Action(bindings.wheel_up).value,
        "wheel down": Action(bindings.wheel_down).value,
        "middle click": Action(bindings.middle_click).value,
    }
