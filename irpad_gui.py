#!/usr/bin/env python3
"""
IR Pad - Graphical User Interface

A Tkinter remote control panel for the IR transmitter.

Features:
    - One button per catalog action, laid out like the physical remote
    - Mouse wheel: Up / Down
    - Middle click: Select
    - Transmissions run in the background; the window never waits
      for the device
"""

import argparse
import logging
import sys
import tkinter as tk
from tkinter import ttk

from irpad import (
    CatalogError,
    DeviceOpenError,
    IrPadConfig,
    Remote,
    __version__,
)
from irpad.catalog import layout_positions
from irpad.config import add_config_arguments

log = logging.getLogger("irpad.gui")


class IRRemoteGUI:
    """Main window. Expects an already opened Remote."""

    def __init__(self, remote: Remote):
        self.remote = remote
        self._closing = False

        self.root = tk.Tk()
        self.root.title(f"IR Remote v{__version__}")
        self.root.resizable(True, True)
        self.root.minsize(300, 400)

        self._setup_ui()

        remote.dispatcher.add_listener(self._on_result)
        remote.router.add_error_listener(
            lambda e: self.root.after(0, self.status_var.set, f"Error: {e}")
        )

    def _setup_ui(self):
        """Set up the user interface."""
        main_frame = ttk.Frame(self.root, padding="10")
        main_frame.grid(row=0, column=0, sticky="nsew")

        # Status bar
        self.status_var = tk.StringVar(value="Connected - Ready to send")
        ttk.Label(
            main_frame,
            textvariable=self.status_var,
            font=('Arial', 10)
        ).grid(row=0, column=0, pady=(0, 5), sticky="w")

        ttk.Label(
            main_frame,
            text="Wheel: Up/Down | Middle click: Select",
            font=('Arial', 8),
            foreground='gray'
        ).grid(row=1, column=0, pady=(0, 10), sticky="w")

        self.buttons_frame = ttk.Frame(main_frame)
        self.buttons_frame.grid(row=2, column=0, sticky="nsew")
        self._load_buttons()

        # Gestures anywhere in the window
        self.root.bind('<MouseWheel>', self._on_wheel)
        self.root.bind('<Button-4>', lambda e: self.remote.router.route_wheel(1))
        self.root.bind('<Button-5>', lambda e: self.remote.router.route_wheel(-1))
        self.root.bind('<Button-2>', lambda e: self.remote.router.route_middle_click())

        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(0, weight=1)
        main_frame.columnconfigure(0, weight=1)
        main_frame.rowconfigure(2, weight=1)

    def _load_buttons(self):
        """Create one button per catalog action at its layout position."""
        positions = layout_positions(self.remote.config.layout, self.remote.table)

        for action, (row, col) in positions.items():
            btn = tk.Button(
                self.buttons_frame,
                text=action.value,
                width=10,
                height=2,
                font=('Arial', 10, 'bold'),
                bg='#e0e0e0',
                activebackground='#c0c0c0',
                command=lambda a=action: self.remote.router.route(a)
            )
            btn.grid(row=row, column=col, padx=4, pady=4, sticky="nsew")

        for c in range(3):
            self.buttons_frame.columnconfigure(c, weight=1)

    def _on_wheel(self, event):
        self.remote.router.route_wheel(event.delta)

    def _on_result(self, result):
        """Called on the transmit worker; hand the update to the Tk thread."""
        if self._closing:
            return
        request = result.request
        if result.ok:
            text = f"Sent: {request.action} ({result.elapsed_ms:.0f} ms)"
        else:
            text = f"Failed: {request.action} - {result.error}"
        self.root.after(0, self.status_var.set, text)

    def _on_close(self):
        """Window closed: detach from the worker before stopping it."""
        self._closing = True
        self.remote.dispatcher.remove_listener(self._on_result)
        self.root.withdraw()
        self.remote.close(drain=False)
        self.root.destroy()

    def run(self):
        """Run the application."""
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)
        self.root.mainloop()


def main(argv=None):
    """Entry point for the GUI application."""
    parser = argparse.ArgumentParser(description="IR Pad - remote control panel")
    parser.add_argument('-v', '--verbose', action='store_true', help='Log every transmission')
    add_config_arguments(parser)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        remote = Remote(IrPadConfig.from_args(args))
    except (ValueError, CatalogError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        remote.open()
    except DeviceOpenError as e:
        log.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        IRRemoteGUI(remote).run()
    finally:
        remote.close(drain=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
