"""
IR Pad - USB Transmitter Driver

Low-level USB communication with the IR transmitter: device lookup,
mode switching, packet fragmentation and raw pulse transmission.

Requirements:
    - pyusb >= 1.2.1
    - libusb-package >= 1.0.26.1 (provides bundled libusb)
    - WinUSB driver installed via Zadig (Windows only)
"""

import logging
import struct
import threading
import time
from typing import List, Optional, Sequence

import libusb_package
import usb.core
import usb.util

from .errors import DeviceNotFoundError
from .protocol import (
    EP_OUT, EP_IN, INTERFACE,
    REPORT_OUT, REPORT_IN, REPORT_SIZE,
    PACK_START, PACK_END, MAX_FRAG_SIZE, MAX_PACKET_SIZE,
    CMD_IDLE_MODE, CMD_SEND_MODE, CMD_DATA, CMD_OUTPUT,
    STATE_SEND,
    WRITE_TIMEOUT_MS, READ_TIMEOUT_MS, ACK_TIMEOUT_S, WRITE_ATTEMPTS,
    get_freq_index, get_freq_by_index,
)
from .pulses import DEFAULT_TRAILING_GAP_US, encode_pulses

log = logging.getLogger(__name__)


def _device_strings(dev) -> List[str]:
    """Read manufacturer and product strings, skipping unreadable ones."""
    strings = []
    for index in (dev.iManufacturer, dev.iProduct):
        if not index:
            continue
        try:
            value = usb.util.get_string(dev, index)
        except (usb.core.USBError, ValueError, NotImplementedError):
            continue
        if value:
            strings.append(value)
    return strings


def matches_tag(dev, product_tag: str) -> bool:
    """True if the device's manufacturer or product string contains the tag."""
    tag = product_tag.lower()
    return any(tag in s.lower() for s in _device_strings(dev))


class UsbIrTransmitter:
    """
    USB IR transmitter driver.

    This class handles all low-level USB communication including:
    - Device discovery by vendor ID and manufacturer/product tag
    - Packet fragmentation and reassembly
    - Mode switching
    - Raw pulse transmission with output acknowledgement

    Calls are blocking. Callers that must stay responsive run them on
    a worker thread (see TransmissionDispatcher).

    Example:
        >>> tx = UsbIrTransmitter()
        >>> tx.open(0x20A0, "flirc.tv")
        >>> tx.transmit_raw([1781, 835, 952], 2300, 0)
        True
        >>> tx.close()
    """

    def __init__(self, trailing_gap_us: int = DEFAULT_TRAILING_GAP_US):
        self.dev = None
        self.trailing_gap_us = trailing_gap_us
        self.packet_idx = 0
        self.cmd_id = 0
        self.device_state = 0
        self.read_thread = None
        self.read_active = False
        self.received_packets = []
        self.packet_event = threading.Event()
        self.lock = threading.Lock()
        self._substituted_freqs = set()

        # For packet reassembly
        self._recv_buffer = bytearray()
        self._recv_packet_idx = 0
        self._recv_frag_count = 0
        self._recv_last_frag = 0

    def open(self, vendor_id: int, product_tag: str):
        """
        Open the first transmitter matching vendor ID and tag.

        Args:
            vendor_id: USB vendor ID
            product_tag: Substring of the manufacturer or product string

        Raises:
            DeviceNotFoundError: if no device matches or it cannot be
                switched to send mode

        Note:
            On Windows, the device must have the WinUSB driver installed.
            Use Zadig (https://zadig.akeo.ie/) to install it.
        """
        backend = libusb_package.get_libusb1_backend()

        self.dev = usb.core.find(
            idVendor=vendor_id,
            custom_match=lambda d: matches_tag(d, product_tag),
            backend=backend,
        )

        if self.dev is None:
            raise DeviceNotFoundError(
                f"No IR transmitter with vendor 0x{vendor_id:04X} and tag '{product_tag}'"
            )

        try:
            self._claim()
        except usb.core.USBError as e:
            self.dev = None
            raise DeviceNotFoundError(f"Cannot claim transmitter interface: {e}") from e

        # Start background read thread
        self.read_active = True
        self.read_thread = threading.Thread(target=self._read_thread, daemon=True)
        self.read_thread.start()

        time.sleep(0.2)

        for attempt in range(3):
            try:
                self._send_cmd(CMD_SEND_MODE)
                time.sleep(0.2)
                self.device_state = STATE_SEND
                log.info("Transmitter 0x%04X '%s' opened", vendor_id, product_tag)
                return
            except usb.core.USBError as e:
                log.warning("USB error on attempt %d: %s, retrying...", attempt + 1, e)
                time.sleep(0.3)

        self.close()
        raise DeviceNotFoundError(
            "Failed to initialize transmitter - try unplugging and replugging"
        )

    def close(self):
        """Close the device connection and release resources."""
        if self.dev is None:
            return

        self.read_active = False
        try:
            self._send_cmd(CMD_IDLE_MODE)
        except usb.core.USBError as e:
            log.debug("Idle command failed on close: %s", e)
        try:
            usb.util.release_interface(self.dev, INTERFACE)
        except usb.core.USBError as e:
            log.debug("Release interface failed: %s", e)
        usb.util.dispose_resources(self.dev)
        if self.read_thread is not None:
            self.read_thread.join(timeout=1.0)
            self.read_thread = None
        self.dev = None
        log.info("Transmitter closed")

    def is_connected(self) -> bool:
        """
        Check if device is connected.

        Returns:
            True if device handle is valid
        """
        return self.dev is not None

    def transmit_raw(self, pulses: Sequence[int], freq: int, repeats: int = 0) -> bool:
        """
        Transmit a raw pulse sequence.

        Args:
            pulses: Mark/space durations in microseconds, starting with a mark
            freq: Carrier frequency in Hz
            repeats: Extra retransmissions after the first frame

        Returns:
            True if every frame was sent, False if the device refused
            send mode

        Raises:
            usb.core.USBError: on USB write failures
            WaveformError: if the pulse sequence is invalid
        """
        if self.dev is None:
            return False

        ir_data = encode_pulses(pulses, self.trailing_gap_us)
        if len(ir_data) + 9 > MAX_PACKET_SIZE:
            log.error("Encoded frame too long: %d bytes", len(ir_data))
            return False

        freq_id = get_freq_index(freq)
        actual = get_freq_by_index(freq_id)
        if actual != freq and freq not in self._substituted_freqs:
            self._substituted_freqs.add(freq)
            log.warning("Carrier %d Hz not supported by the device, using %d Hz", freq, actual)

        if self.device_state != STATE_SEND:
            if not self._send_cmd_wait(CMD_SEND_MODE):
                return False

        for _ in range(1 + repeats):
            self._send_frame(ir_data, freq_id)
        return True

    # ---------- Internal Methods ----------

    def _claim(self):
        """Configure the device and claim its interface."""
        try:
            self.dev.set_configuration()
        except usb.core.USBError:
            log.debug("Device already configured")

        try:
            if self.dev.is_kernel_driver_active(INTERFACE):
                self.dev.detach_kernel_driver(INTERFACE)
        except (usb.core.USBError, NotImplementedError):
            pass

        usb.util.claim_interface(self.dev, INTERFACE)

        # Clear stalled endpoints
        for ep in (EP_OUT, EP_IN):
            try:
                self.dev.clear_halt(ep)
            except usb.core.USBError:
                pass

        # Drain pending data
        for _ in range(10):
            try:
                self.dev.read(EP_IN, 64, timeout=50)
            except usb.core.USBError:
                break

    def _send_frame(self, ir_data: bytes, freq_id: int):
        """Send one IR data packet and wait for the output acknowledgement."""
        cmd_id = self._get_cmd_id()

        packet = struct.pack('<HBB', PACK_START, cmd_id, CMD_DATA)
        packet += bytes([freq_id])
        packet += ir_data
        packet += struct.pack('<H', PACK_END)

        with self.lock:
            self.received_packets.clear()
            self.packet_event.clear()

        self._send_report(packet)

        if not self._wait_reply(cmd_id, CMD_OUTPUT, ACK_TIMEOUT_S):
            # Some firmware never acknowledges; the frame is still out
            log.debug("No output acknowledgement for command %d", cmd_id)

    def _get_packet_idx(self) -> int:
        """Get next packet index (1-15, wrapping)."""
        self.packet_idx = (self.packet_idx % 15) + 1
        return self.packet_idx

    def _get_cmd_id(self) -> int:
        """Get next command ID (1-127, wrapping)."""
        self.cmd_id = (self.cmd_id % 0x7F) + 1
        return self.cmd_id

    def _send_report(self, data: bytes):
        """
        Send data with fragmentation via the output report.

        Large packets are split into 56-byte fragments.
        """
        packet_idx = self._get_packet_idx()
        frag_count = (len(data) + MAX_FRAG_SIZE - 1) // MAX_FRAG_SIZE

        offset = 0
        frag_idx = 0
        while offset < len(data):
            frag_idx += 1
            chunk = data[offset:offset + MAX_FRAG_SIZE]
            frag_size = len(chunk) + 3

            # Report format: [ReportID, FragSize, PacketIdx, FragCount, FragIdx, Data...]
            report = bytes([REPORT_OUT, frag_size, packet_idx, frag_count, frag_idx]) + chunk
            report = report.ljust(REPORT_SIZE, b'\x00')

            for attempt in range(WRITE_ATTEMPTS):
                try:
                    self.dev.write(EP_OUT, report, timeout=WRITE_TIMEOUT_MS)
                    break
                except usb.core.USBError:
                    if attempt == WRITE_ATTEMPTS - 1:
                        raise
                    time.sleep(0.1)

            offset += MAX_FRAG_SIZE

    def _send_cmd(self, cmd_type: int, cmd_id: Optional[int] = None) -> int:
        """Send a command packet."""
        if cmd_id is None:
            cmd_id = self._get_cmd_id()
        packet = struct.pack('<HBBH', PACK_START, cmd_id, cmd_type, PACK_END)
        self._send_report(packet)
        return cmd_id

    def _send_cmd_wait(self, cmd_type: int, timeout: float = 1.0) -> bool:
        """Send command and wait for reply."""
        cmd_id = self._get_cmd_id()

        with self.lock:
            self.received_packets.clear()
            self.packet_event.clear()

        self._send_cmd(cmd_type, cmd_id)
        return self._wait_reply(cmd_id, cmd_type, timeout)

    def _wait_reply(self, cmd_id: int, cmd_type: int, timeout: float) -> bool:
        """Wait for a reassembled packet answering cmd_id/cmd_type."""
        start = time.monotonic()
        while time.monotonic() - start < timeout:
            if self.packet_event.wait(timeout=0.1):
                with self.lock:
                    for pkt in self.received_packets:
                        if len(pkt) >= 2 and pkt[0] == cmd_id and pkt[1] == cmd_type:
                            if cmd_type != CMD_OUTPUT and len(pkt) >= 3:
                                self.device_state = pkt[2]
                            return True
                    self.packet_event.clear()
        return False

    def _read_thread(self):
        """Background thread to read from device."""
        while self.read_active:
            dev = self.dev
            if dev is None:
                break
            try:
                data = dev.read(EP_IN, 64, timeout=READ_TIMEOUT_MS)
                if data:
                    self._process_recv_data(bytes(data))
            except usb.core.USBTimeoutError:
                pass
            except usb.core.USBError:
                if self.read_active:
                    time.sleep(0.1)

    def _process_recv_data(self, data: bytes):
        """Process received USB data and reassemble fragmented packets."""
        if len(data) < 5:
            return

        report_id, frag_size, packet_idx, frag_count, frag_idx = data[:5]

        if report_id != REPORT_IN:
            return

        payload_size = frag_size - 3
        if payload_size <= 0 or payload_size > MAX_FRAG_SIZE:
            return

        payload = data[5:5 + payload_size]

        if frag_idx == 1:
            self._recv_buffer = bytearray(payload)
            self._recv_packet_idx = packet_idx
            self._recv_frag_count = frag_count
            self._recv_last_frag = 1
        elif packet_idx == self._recv_packet_idx and frag_idx == self._recv_last_frag + 1:
            self._recv_buffer.extend(payload)
            self._recv_last_frag = frag_idx

        if self._recv_frag_count > 0 and self._recv_last_frag == self._recv_frag_count:
            if len(self._recv_buffer) >= 4:
                start_sig = struct.unpack('<H', self._recv_buffer[0:2])[0]
                end_sig = struct.unpack('<H', self._recv_buffer[-2:])[0]

                if start_sig == PACK_START and end_sig == PACK_END:
                    packet_data = bytes(self._recv_buffer[2:-2])
                    with self.lock:
                        self.received_packets.append(packet_data)
                        self.packet_event.set()

            self._recv_frag_count = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
