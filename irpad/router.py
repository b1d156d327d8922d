"""
IR Pad - Action Router

Single entry point for every input source. Buttons, the scroll wheel
and the middle mouse button all end up in ActionRouter.route(), so
toggle handling and dispatch behave the same whatever fired them.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .catalog import Action, ActionKey, WaveformTable
from .dispatcher import TransmissionDispatcher, TransmissionRequest
from .errors import UnknownActionError
from .toggle import ToggleStateStore

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class InputBindings:
    """Mouse gestures mapped to fixed actions."""

    wheel_up: Action = Action.UP
    wheel_down: Action = Action.DOWN
    middle_click: Action = Action.SELECT


class ActionRouter:
    """
    Translate action names into toggle selection plus dispatch.

    The toggle flag is flipped synchronously on the calling thread
    before the request is queued, so two quick presses of the same
    button always pick different waveforms no matter when the worker
    gets to them.
    """

    def __init__(
        self,
        table: WaveformTable,
        dispatcher: TransmissionDispatcher,
        toggles: Optional[ToggleStateStore] = None,
        bindings: Optional[InputBindings] = None,
    ):
        self.table = table
        self.dispatcher = dispatcher
        self.toggles = toggles if toggles is not None else ToggleStateStore()
        self.bindings = bindings if bindings is not None else InputBindings()
        self._error_listeners: List[Callable[[UnknownActionError], None]] = []

    def add_error_listener(self, listener: Callable[[UnknownActionError], None]):
        """Register a callable receiving every unknown-action report."""
        self._error_listeners.append(listener)

    def route(self, action_name: ActionKey) -> Optional[TransmissionRequest]:
        """
        Send the next waveform for an action.

        Args:
            action_name: Action or button label

        Returns:
            The queued request, or None if the action is unknown or the
            dispatcher dropped it
        """
        try:
            pair = self.table.lookup(action_name)
        except UnknownActionError as e:
            self._report_unknown(e)
            return None

        action = Action.parse(action_name)
        variant = self.toggles.select_and_advance(action)
        return self.dispatcher.dispatch(action, pair.select(variant), variant=variant)

    def route_wheel(self, delta: int) -> Optional[TransmissionRequest]:
        """Route a scroll step: positive is up, negative is down, zero ignored."""
        if delta > 0:
            return self.route(self.bindings.wheel_up)
        if delta < 0:
            return self.route(self.bindings.wheel_down)
        return None

    def route_middle_click(self) -> Optional[TransmissionRequest]:
        return self.route(self.bindings.middle_click)

    def _report_unknown(self, error: UnknownActionError):
        log.warning("%s", error)
        for listener in list(self._error_listeners):
            try:
                listener(error)
            except Exception:
                log.exception("Error listener %r failed", listener)
