#!/usr/bin/env python3
"""
IR Pad - Command Line Interface

A CLI tool for sending catalog IR codes and managing catalog files.

Usage:
    python irpad_cli.py send <action>      Press a remote button
    python irpad_cli.py list               List catalog actions
    python irpad_cli.py show <action>      Show the pulse sequences of an action
    python irpad_cli.py export <file>      Write the catalog to a JSON file
    python irpad_cli.py info               Probe the transmitter
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from irpad import (
    Action,
    CatalogError,
    DeviceOpenError,
    IrPadConfig,
    Remote,
    UnknownActionError,
    encode_pulses,
    format_pulses,
    load_table,
    save_catalog,
    __version__,
)
from irpad.catalog import layout_positions
from irpad.config import add_config_arguments, binding_names


def _load_table(config: IrPadConfig):
    """Return (table, frequency), or (None, None) after printing the error."""
    try:
        table, freq = load_table(config.catalog_path, config.layout)
    except CatalogError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None, None
    if config.frequency is not None:
        freq = config.frequency
    return table, freq


def cmd_send(args, config: IrPadConfig):
    """Press a remote button one or more times."""
    try:
        action = Action.parse(args.action)
    except UnknownActionError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Use 'irpad_cli.py list' to see available actions")
        return 1

    try:
        remote = Remote(config)
    except CatalogError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if action not in remote.table:
        print(f"Action '{action}' is not in the '{config.layout}' catalog", file=sys.stderr)
        return 1

    try:
        remote.open()
    except DeviceOpenError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Make sure:")
        print("  1. The IR transmitter is plugged in")
        print("  2. You have permission to access it (udev rule / WinUSB driver)")
        return 1

    failures = []
    remote.dispatcher.add_listener(lambda result: None if result.ok else failures.append(result))

    try:
        count = args.count or 1
        delay = args.delay or 0.0

        print(f"Sending '{action}' at {remote.frequency}Hz")
        for i in range(count):
            request = remote.press(action)
            if request is not None and count > 1:
                print(f"  Queued {i + 1}/{count} ({request.variant.name.lower()})")
            if i < count - 1 and delay:
                time.sleep(delay)

        remote.wait()
    finally:
        remote.close()

    if failures:
        print(f"{len(failures)} transmission(s) failed", file=sys.stderr)
        return 1

    print("Done!")
    return 0


def cmd_list(args, config: IrPadConfig):
    """List catalog actions."""
    table, _ = _load_table(config)
    if table is None:
        return 1

    print(f"Catalog actions ({len(table)}, layout '{config.layout}'):")
    positions = layout_positions(config.layout, table)
    for action in table:
        pair = table.lookup(action)
        row, col = positions[action]
        print(f"  - {action.value:<12} row {row:>2}, col {col}  "
              f"({len(pair.primary)}/{len(pair.alternate)} pulses)")

    print()
    print("Mouse bindings:")
    for gesture, name in binding_names(config.bindings).items():
        print(f"  {gesture:<13} -> {name}")
    return 0


def cmd_show(args, config: IrPadConfig):
    """Show the pulse sequences of one action."""
    table, _ = _load_table(config)
    if table is None:
        return 1

    try:
        pair = table.lookup(args.action)
    except UnknownActionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for label, pulses in (("primary", pair.primary), ("alternate", pair.alternate)):
        data = encode_pulses(pulses, config.trailing_gap_us)
        print(f"{label:>9}: {format_pulses(pulses)}")
        print(f"{'':>9}  {len(data)} bytes encoded")
        if args.full:
            print(f"{'':>9}  {list(pulses)}")
    return 0


def cmd_export(args, config: IrPadConfig):
    """Write the catalog to a JSON file."""
    table, freq = _load_table(config)
    if table is None:
        return 1

    path = save_catalog(Path(args.file), table, freq)
    print(f"Exported {len(table)} actions to: {path}")
    return 0


def cmd_info(args, config: IrPadConfig):
    """Show device info."""
    print(f"IR Pad v{__version__}")
    print()
    print("Searching for device...")
    print(f"  Vendor: 0x{config.vendor_id:04X}")
    print(f"  Tag:    {config.product_tag}")

    try:
        remote = Remote(config)
    except CatalogError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        remote.session.open()
    except DeviceOpenError as e:
        print(f"Device: Not found ({e})")
        print()
        print("Troubleshooting:")
        print("  1. Is the IR transmitter plugged in?")
        print("  2. Is WinUSB driver installed? (Use Zadig)")
        print("  3. Try unplugging and replugging the device")
        return 1
    else:
        print("Device: Connected")
    finally:
        remote.close()

    print()
    print(f"Catalog: {len(remote.table)} actions, carrier {remote.frequency}Hz, "
          f"repeats {config.repeats}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="IR Pad - Command Line Interface",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s send Power               Press 'Power' once
  %(prog)s send "Volume +" -n 5     Press 'Volume +' five times
  %(prog)s send Up --repeats 3      Send 'Up' with three extra frames
  %(prog)s list                     List catalog actions
  %(prog)s show Select --full       Show the pulse sequences of 'Select'
  %(prog)s export remote.json       Export the built-in catalog
  %(prog)s --catalog remote.json send Power
"""
    )

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Log transmissions (-vv for debug output)')
    add_config_arguments(parser)

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # send
    send_parser = subparsers.add_parser('send', help='Press a remote button')
    send_parser.add_argument('action', help='Action name, e.g. Power or "Volume +"')
    send_parser.add_argument('-n', '--count', type=int, default=1,
                             help='Number of presses (default: 1)')
    send_parser.add_argument('-d', '--delay', type=float, default=0.3,
                             help='Delay between presses in seconds (default: 0.3)')
    send_parser.set_defaults(func=cmd_send)

    # list
    list_parser = subparsers.add_parser('list', help='List catalog actions')
    list_parser.set_defaults(func=cmd_list)

    # show
    show_parser = subparsers.add_parser('show', help='Show the pulse sequences of an action')
    show_parser.add_argument('action', help='Action name')
    show_parser.add_argument('--full', action='store_true', help='Print every pulse value')
    show_parser.set_defaults(func=cmd_show)

    # export
    export_parser = subparsers.add_parser('export', help='Write the catalog to a JSON file')
    export_parser.add_argument('file', help='Output file')
    export_parser.set_defaults(func=cmd_export)

    # info
    info_parser = subparsers.add_parser('info', help='Show device info')
    info_parser.set_defaults(func=cmd_info)

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = IrPadConfig.from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
