# -*- coding: utf-8 -*-

"""
ttystream - unbuffered byte streams over POSIX serial devices

Features:
- Direct termios configuration: baud rate, character size, parity,
  stop bits, flow control, VMIN/VTIME
- Device settings restored on close
- Unbuffered stream buffer with one byte of putback
- File-like SerialStream (io.RawIOBase)
"""

from .port import SerialPort
from .streambuf import StreamBuffer
from .streambuf import SerialStreamBuffer
from .settings import DeviceSettings

from .streams import SerialStream
from .streams import open_serial_stream
from .streams import open_serial
from .streams import configure_serial_port

from .constants import BaudRate
from .constants import CharacterSize
from .constants import Parity
from .constants import StopBits
from .constants import FlowControl
from .constants import OpenMode
from .constants import EOF
from .constants import VMIN_DEFAULT
from .constants import VTIME_DEFAULT

from .exceptions import TTYStreamError
from .exceptions import PortNotOpenError
from .exceptions import PortAlreadyOpenError
from .exceptions import PortOpenError
from .exceptions import SerialIOError
from .exceptions import InvalidBaudRateError
from .exceptions import SerialConfigError

__version__ = "0.1.0"
__license__ = "MIT"

__all__ = [
    # Core
    'SerialPort',
    'StreamBuffer',
    'SerialStreamBuffer',
    'DeviceSettings',

    # High-level API
    'SerialStream',
    'open_serial_stream',
    'open_serial',
    'configure_serial_port',

    # Configuration domains
    'BaudRate',
    'CharacterSize',
    'Parity',
    'StopBits',
    'FlowControl',
    'OpenMode',
    'EOF',
    'VMIN_DEFAULT',
    'VTIME_DEFAULT',

    # Exceptions
    'TTYStreamError',
    'PortNotOpenError',
    'PortAlreadyOpenError',
    'PortOpenError',
    'SerialIOError',
    'InvalidBaudRateError',
    'SerialConfigError',
]
