"""
IR Pad - Toggle State

Per-action flag deciding which waveform of a pair goes out next.
Selection reads the current flag and then inverts it, so the first
press of any action sends the primary waveform, the second the
alternate one, and so on.
"""

import threading
from typing import Dict, Optional

from .catalog import Action, ActionKey, Variant


class ToggleStateStore:
    """
    Thread-safe store of toggle flags, created lazily per action.

    Example:
        >>> toggles = ToggleStateStore()
        >>> toggles.select_and_advance("Power")
        <Variant.PRIMARY: 0>
        >>> toggles.select_and_advance("Power")
        <Variant.ALTERNATE: 1>
    """

    def __init__(self):
        self._flags: Dict[Action, Variant] = {}
        self._lock = threading.Lock()

    def select_and_advance(self, action: ActionKey) -> Variant:
        """
        Pick the variant for this press and flip the flag for the next one.

        Args:
            action: Action or catalog name

        Returns:
            Variant to transmit now
        """
        key = Action.parse(action)
        with self._lock:
            current = self._flags.get(key, Variant.PRIMARY)
            self._flags[key] = current.flipped()
        return current

    def peek(self, action: ActionKey) -> Variant:
        """Variant the next press would select, without changing state."""
        key = Action.parse(action)
        with self._lock:
            return self._flags.get(key, Variant.PRIMARY)

    def reset(self, action: Optional[ActionKey] = None):
        """Forget the flag of one action, or of all actions."""
        with self._lock:
            if action is None:
                self._flags.clear()
            else:
                self._flags.pop(Action.parse(action), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._flags)
