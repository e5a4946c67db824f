# -*- coding: utf-8 -*-

"""
Configuration domains for ttystream.

Every enumeration maps a symbolic value to the encoding the terminal
settings structure uses, so setters can write members straight into it.
Parity and stop bits reuse pyserial's constants as their values, which
lets callers pass either the enum member or the pyserial constant.
"""
import enum
import termios

import serial

from .exceptions import SerialConfigError

# End-of-stream sentinel returned by single-character stream operations.
EOF = -1

VMIN_DEFAULT = 0
VTIME_DEFAULT = 0
CC_MAX = 255

# Software flow control start/stop characters (^Q / ^S).
XON = 0x11
XOFF = 0x13


class OpenMode(enum.IntFlag):
    """Direction a port is opened for"""
    READ = 1
    WRITE = 2
    READ_WRITE = READ | WRITE


class BaudRate(enum.IntEnum):
    """
    Standard line speeds, valued with the platform's termios speed codes.

    High speeds are only present where the platform defines them.
    """
    B50 = termios.B50
    B75 = termios.B75
    B110 = termios.B110
    B134 = termios.B134
    B150 = termios.B150
    B200 = termios.B200
    B300 = termios.B300
    B600 = termios.B600
    B1200 = termios.B1200
    B1800 = termios.B1800
    B2400 = termios.B2400
    B4800 = termios.B4800
    B9600 = termios.B9600
    B19200 = termios.B19200
    B38400 = termios.B38400
    B57600 = termios.B57600
    B115200 = termios.B115200
    B230400 = termios.B230400
    if hasattr(termios, 'B460800'):
        B460800 = termios.B460800
    if hasattr(termios, 'B500000'):
        B500000 = termios.B500000
    if hasattr(termios, 'B576000'):
        B576000 = termios.B576000
    if hasattr(termios, 'B921600'):
        B921600 = termios.B921600
    if hasattr(termios, 'B1000000'):
        B1000000 = termios.B1000000
    if hasattr(termios, 'B1152000'):
        B1152000 = termios.B1152000
    if hasattr(termios, 'B1500000'):
        B1500000 = termios.B1500000
    if hasattr(termios, 'B2000000'):
        B2000000 = termios.B2000000
    if hasattr(termios, 'B2500000'):
        B2500000 = termios.B2500000
    if hasattr(termios, 'B3000000'):
        B3000000 = termios.B3000000
    if hasattr(termios, 'B3500000'):
        B3500000 = termios.B3500000
    if hasattr(termios, 'B4000000'):
        B4000000 = termios.B4000000

    DEFAULT = termios.B115200
    INVALID = -1

    @property
    def rate(self) -> int:
        """Line speed in bits per second"""
        if self is BaudRate.INVALID:
            raise SerialConfigError("INVALID has no line speed")
        return int(self.name[1:])

    @classmethod
    def from_rate(cls, rate: int) -> 'BaudRate':
        """Look up the member for a numeric rate such as 9600"""
        try:
            return cls[f'B{int(rate)}']
        except (KeyError, TypeError, ValueError):
            raise SerialConfigError(f"Unsupported baud rate: {rate!r}") from None


class CharacterSize(enum.IntEnum):
    """Data bits per character, valued with the CSIZE bit group"""
    CS5 = termios.CS5
    CS6 = termios.CS6
    CS7 = termios.CS7
    CS8 = termios.CS8

    DEFAULT = termios.CS8

    @property
    def bits(self) -> int:
        return int(self.name[2:])

    @classmethod
    def from_bits(cls, bits: int) -> 'CharacterSize':
        """Map a pyserial byte size (serial.FIVEBITS..EIGHTBITS)"""
        try:
            return cls[f'CS{int(bits)}']
        except (KeyError, TypeError, ValueError):
            raise SerialConfigError(f"Unsupported character size: {bits!r}") from None


class Parity(enum.Enum):
    NONE = serial.PARITY_NONE
    EVEN = serial.PARITY_EVEN
    ODD = serial.PARITY_ODD

    DEFAULT = serial.PARITY_NONE
    # Never produced by a getter; kept so callers can match exhaustively.
    INVALID = None


class StopBits(enum.Enum):
    ONE = serial.STOPBITS_ONE
    TWO = serial.STOPBITS_TWO

    DEFAULT = serial.STOPBITS_ONE


class FlowControl(enum.Enum):
    """
    NONE, SOFTWARE (XON/XOFF) or HARDWARE (RTS/CTS).

    INVALID is reported for device states this package does not interpret.
    """
    NONE = 'none'
    SOFTWARE = 'software'
    HARDWARE = 'hardware'

    DEFAULT = 'none'
    INVALID = 'invalid'
