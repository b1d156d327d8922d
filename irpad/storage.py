"""
IR Pad - Catalog Storage

This module saves and loads waveform catalogs as JSON files.

File format:
    {
      "version": 1,
      "frequency": 2300,
      "codes": {
        "Power": {"primary": [1781, 835, ...], "alternate": [1735, ...]},
        ...
      }
    }
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .catalog import Action, WaveformPair, WaveformTable
from .errors import CatalogFormatError, UnknownActionError, WaveformError
from .protocol import DEFAULT_FREQ

log = logging.getLogger(__name__)

CATALOG_VERSION = 1


def encode_pair(pair: WaveformPair) -> Dict[str, Any]:
    """Convert a waveform pair to its JSON representation."""
    return {
        "primary": list(pair.primary),
        "alternate": list(pair.alternate),
    }


def decode_pair(data: Dict[str, Any]) -> WaveformPair:
    """
    Build a waveform pair from its JSON representation.

    Raises:
        CatalogFormatError: if fields are missing or values are invalid
    """
    if not isinstance(data, dict):
        raise CatalogFormatError(f"Waveform entry must be an object, got {type(data).__name__}")

    try:
        primary = data["primary"]
        alternate = data["alternate"]
    except KeyError as e:
        raise CatalogFormatError(f"Waveform entry missing field {e}") from None

    if not isinstance(primary, list) or not isinstance(alternate, list):
        raise CatalogFormatError("Waveform sequences must be lists of integers")

    try:
        return WaveformPair(tuple(primary), tuple(alternate))
    except WaveformError as e:
        raise CatalogFormatError(str(e)) from None


def dump_catalog(table: WaveformTable, freq: int = DEFAULT_FREQ) -> Dict[str, Any]:
    """
    Build the JSON document for a waveform table.

    Args:
        table: Table to export
        freq: Carrier frequency recorded in the file

    Returns:
        Dictionary ready for json.dump
    """
    return {
        "version": CATALOG_VERSION,
        "frequency": freq,
        "codes": {action.value: encode_pair(pair) for action, pair in table.items()},
    }


def parse_catalog(data: Dict[str, Any]) -> Tuple[WaveformTable, int]:
    """
    Build a waveform table from a catalog document.

    Args:
        data: Parsed JSON document

    Returns:
        Tuple of (table, frequency)

    Raises:
        CatalogFormatError: on unknown versions, unknown action names or
            invalid waveforms
    """
    if not isinstance(data, dict):
        raise CatalogFormatError("Catalog must be a JSON object")

    version = data.get("version", CATALOG_VERSION)
    if version != CATALOG_VERSION:
        raise CatalogFormatError(f"Unsupported catalog version: {version}")

    codes = data.get("codes")
    if not isinstance(codes, dict) or not codes:
        raise CatalogFormatError("Catalog has no 'codes' object")

    freq = data.get("frequency", DEFAULT_FREQ)
    if isinstance(freq, bool) or not isinstance(freq, int) or not 0 < freq <= 0xFFFF:
        raise CatalogFormatError(f"Invalid carrier frequency: {freq!r}")

    entries = {}
    for name, pair_data in codes.items():
        try:
            action = Action.parse(name)
        except UnknownActionError:
            raise CatalogFormatError(f"Unknown action in catalog: {name!r}") from None
        try:
            entries[action] = decode_pair(pair_data)
        except CatalogFormatError as e:
            raise CatalogFormatError(f"{name}: {e}") from None

    return WaveformTable(entries), freq


def save_catalog(
    path: Path,
    table: WaveformTable,
    freq: int = DEFAULT_FREQ
) -> Path:
    """
    Save a waveform table to a JSON file.

    Args:
        path: Output file path
        table: Table to save
        freq: Carrier frequency recorded in the file

    Returns:
        Path to the saved file

    Example:
        >>> save_catalog(Path("remote.json"), WaveformTable.builtin())
        PosixPath('remote.json')
    """
    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(dump_catalog(table, freq), f, indent=2)

    log.info("Saved %d waveform pairs to %s", len(table), path)
    return path


def load_catalog(path: Path) -> Tuple[WaveformTable, int]:
    """
    Load a waveform table from a JSON file.

    Args:
        path: Catalog file path

    Returns:
        Tuple of (table, frequency)

    Raises:
        CatalogFormatError: if the file is missing, unreadable, not UTF-8
            JSON, or invalid
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise CatalogFormatError(f"Catalog file not found: {path}") from None
    except OSError as e:
        raise CatalogFormatError(f"Cannot read catalog file {path}: {e.strerror or e}") from None
    except UnicodeDecodeError as e:
        raise CatalogFormatError(f"{path}: not UTF-8 text ({e.reason})") from None
    except json.JSONDecodeError as e:
        raise CatalogFormatError(f"{path}: not valid JSON ({e})") from None

    table, freq = parse_catalog(data)
    log.info("Loaded %d waveform pairs from %s", len(table), path)
    return table, freq


def load_table(
    path: Optional[Path] = None,
    layout: str = "full"
) -> Tuple[WaveformTable, int]:
    """
    Get the waveform table to use: a catalog file if given, else built-in.

    A file catalog is filtered to the layout's buttons only when layout
    is "compact".

    Returns:
        Tuple of (table, frequency recorded with it)
    """
    if path is None:
        return WaveformTable.builtin(layout), DEFAULT_FREQ

    table, freq = load_catalog(path)
    if layout != "full":
        table = table.restrict(WaveformTable.builtin(layout).actions())
    return table, freq
