# -*- coding: utf-8 -*-

"""
High-level Streams API for ttystream.
Binds a SerialPort and its SerialStreamBuffer into a file-like raw stream.
"""
import io
import logging

from typing import Any
from typing import Optional
from typing import Union

import serial

from .constants import BaudRate
from .constants import CharacterSize
from .constants import FlowControl
from .constants import OpenMode
from .constants import Parity
from .constants import StopBits
from .exceptions import SerialConfigError
from .port import SerialPort
from .streambuf import SerialStreamBuffer

log = logging.getLogger('ttystream.streams')


def _coerce_baudrate(value: Union[BaudRate, int]) -> BaudRate:
    if value is BaudRate.INVALID:
        raise SerialConfigError("Unsupported baud rate: INVALID")
    if isinstance(value, BaudRate):
        return value
    return BaudRate.from_rate(value)


def _coerce_bytesize(value: Union[CharacterSize, int]) -> CharacterSize:
    if isinstance(value, CharacterSize):
        return value
    return CharacterSize.from_bits(value)


def _coerce_parity(value: Union[Parity, str]) -> Parity:
    try:
        parity = Parity(value)
    except ValueError:
        raise SerialConfigError(f"Unsupported parity: {value!r}") from None
    if parity is Parity.INVALID:
        raise SerialConfigError(f"Unsupported parity: {value!r}")
    return parity


def _coerce_stopbits(value: Union[StopBits, float]) -> StopBits:
    try:
        return StopBits(value)
    except ValueError:
        raise SerialConfigError(f"Unsupported number of stop bits: {value!r}") from None


def _flow_control(xonxoff: bool, rtscts: bool,
                  flow_control: Optional[FlowControl]) -> FlowControl:
    if flow_control is not None:
        if xonxoff or rtscts:
            raise SerialConfigError("Pass either flow_control or xonxoff/rtscts, not both")
        if flow_control not in (FlowControl.NONE, FlowControl.SOFTWARE, FlowControl.HARDWARE):
            raise SerialConfigError(f"Unsupported flow control: {flow_control!r}")
        return flow_control
    if xonxoff and rtscts:
        raise SerialConfigError("Software and hardware flow control are exclusive")
    if xonxoff:
        return FlowControl.SOFTWARE
    if rtscts:
        return FlowControl.HARDWARE
    return FlowControl.NONE


def configure_serial_port(
    port: SerialPort,
    *,
    baudrate: Union[BaudRate, int] = BaudRate.DEFAULT,
    bytesize: Union[CharacterSize, int] = serial.EIGHTBITS,
    parity: Union[Parity, str] = serial.PARITY_NONE,
    stopbits: Union[StopBits, float] = serial.STOPBITS_ONE,
    xonxoff: bool = False,
    rtscts: bool = False,
    flow_control: Optional[FlowControl] = None,
    vmin: Optional[int] = None,
    vtime: Optional[int] = None,
):
    """
    Apply line parameters to an open port.

    Order is fixed: baud rate, character size, flow control, parity, stop
    bits, then VMIN/VTIME if given. All values are validated before the
    first one is written. The first failing step raises.
    """
    baud_rate = _coerce_baudrate(baudrate)
    character_size = _coerce_bytesize(bytesize)
    flow = _flow_control(xonxoff, rtscts, flow_control)
    parity_type = _coerce_parity(parity)
    stop_bits = _coerce_stopbits(stopbits)

    port.set_baud_rate(baud_rate)
    port.set_character_size(character_size)
    port.set_flow_control(flow)
    port.set_parity(parity_type)
    port.set_number_of_stop_bits(stop_bits)
    if vmin is not None:
        port.set_vmin(vmin)
    if vtime is not None:
        port.set_vtime(vtime)


class SerialStream(io.RawIOBase):
    """
    File-like raw stream over a serial device.

    Reads and writes are unbuffered: each call is one system call on the
    device. Wrap it in io.BufferedReader/BufferedWriter for buffering.

    Example:
        >>> with SerialStream('/dev/ttyUSB0', baudrate=9600) as stream:
        ...     stream.write(b'AT\\r\\n')
        ...     response = stream.read(16)
    """

    def __init__(self, port: Optional[str] = None, *,
                 mode: OpenMode = OpenMode.READ_WRITE, **kwargs: Any):
        super().__init__()
        self._mode = OpenMode(mode)
        self._port: Optional[SerialPort] = None
        self._buffer: Optional[SerialStreamBuffer] = None
        if port is not None:
            self.open(port, **kwargs)

    def open(self, port: str, **kwargs: Any):
        """
        Open port and apply kwargs (see configure_serial_port()).

        Raises:
            PortAlreadyOpenError: If this stream already has a port open
            PortOpenError: If the device cannot be opened
            SerialConfigError: If a parameter is invalid
        """
        self._checkClosed()
        serial_port = self._port if self._port is not None else SerialPort()
        serial_port.open(port, self._mode)
        try:
            configure_serial_port(serial_port, **kwargs)
        except Exception:
            serial_port.close()
            raise

        log.debug("Serial stream on %s ready", port)
        self._port = serial_port
        self._buffer = SerialStreamBuffer(serial_port)

    @property
    def port(self) -> SerialPort:
        """Get the SerialPort"""
        if self._port is None:
            raise RuntimeError("Stream not opened")
        return self._port

    @property
    def buffer(self) -> SerialStreamBuffer:
        """Get the SerialStreamBuffer"""
        if self._buffer is None:
            raise RuntimeError("Stream not opened")
        return self._buffer

    def readable(self) -> bool:
        return bool(self._mode & OpenMode.READ)

    def writable(self) -> bool:
        return bool(self._mode & OpenMode.WRITE)

    def fileno(self) -> int:
        return self.port.get_file_descriptor()

    def isatty(self) -> bool:
        return True

    def readinto(self, b) -> int:
        """Read into b; 0 means nothing arrived within VMIN/VTIME"""
        self._checkClosed()
        self._checkReadable()
        return self.buffer.read_bytes(b)

    def write(self, b) -> int:
        self._checkClosed()
        self._checkWritable()
        return self.buffer.write_bytes(b)

    def peek(self) -> int:
        """Next byte as an int without consuming it, or EOF"""
        self._checkClosed()
        self._checkReadable()
        return self.buffer.read_one()

    def getc(self) -> int:
        """Next byte as an int, consumed, or EOF"""
        self._checkClosed()
        self._checkReadable()
        return self.buffer.read_one_advance()

    def ungetc(self, char: int) -> int:
        """Push one byte back; EOF if one is already pending"""
        self._checkClosed()
        return self.buffer.pushback(char)

    @property
    def in_waiting(self) -> int:
        """1 if a byte can be read without blocking, else 0 (-1 on error)"""
        self._checkClosed()
        return self.buffer.bytes_ready()

    def close(self):
        """Restore the device settings, close the device and the stream"""
        if self.closed:
            return
        # A failed port close leaves the stream open so close() can be retried
        if self._port is not None and self._port.is_open:
            self._port.close()
        super().close()


def open_serial_stream(port: str, *, mode: OpenMode = OpenMode.READ_WRITE,
                       **kwargs: Any) -> SerialStream:
    """
    Open a serial device and return a configured SerialStream.

    Args:
        port: Device path (e.g. '/dev/ttyUSB0')
        mode: OpenMode (default: READ_WRITE)
        baudrate: Baud rate as int or BaudRate (default: 115200)
        bytesize: Data bits as int or CharacterSize (default: EIGHTBITS)
        parity: pyserial PARITY_* or Parity (default: PARITY_NONE)
        stopbits: pyserial STOPBITS_* or StopBits (default: STOPBITS_ONE)
        xonxoff: Software flow control (default: False)
        rtscts: Hardware (RTS/CTS) flow control (default: False)
        flow_control: FlowControl, instead of xonxoff/rtscts
        vmin: Minimum bytes per read (default: leave at 0)
        vtime: Read timeout in deciseconds (default: leave at 0)

    Raises:
        PortOpenError: If the device cannot be opened
        SerialConfigError: If configuration is invalid

    Example:
        >>> stream = open_serial_stream('/dev/ttyUSB0', baudrate=9600,
        ...                             parity=serial.PARITY_EVEN)
        >>> stream.write(b'AB')
        2
    """
    return SerialStream(port, mode=mode, **kwargs)


# Convenient aliases
open_serial = open_serial_stream
