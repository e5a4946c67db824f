# -*- coding: utf-8 -*-

"""
SerialPort: lifecycle and line configuration of a POSIX serial device.

The port is either closed or open. Opening snapshots the device settings,
applies a raw baseline and the default parameter set, and switches the
descriptor to blocking mode. Closing puts the snapshot back, so the device
is left exactly as it was found.

Every getter re-reads the kernel settings and every setter does a
read-modify-write of them; no settings are cached between calls.
"""
import fcntl
import logging
import os
import struct
import termios

from typing import Optional

from .constants import BaudRate
from .constants import CharacterSize
from .constants import CC_MAX
from .constants import FlowControl
from .constants import OpenMode
from .constants import Parity
from .constants import StopBits
from .constants import VMIN_DEFAULT
from .constants import VTIME_DEFAULT
from .constants import XOFF
from .constants import XON
from .exceptions import InvalidBaudRateError
from .exceptions import PortAlreadyOpenError
from .exceptions import PortNotOpenError
from .exceptions import PortOpenError
from .exceptions import SerialConfigError
from .exceptions import SerialIOError
from .settings import DeviceSettings

log = logging.getLogger('ttystream.port')

INVALID_FD = -1

ERR_MSG_PORT_NOT_OPEN = "Serial port not open"
ERR_MSG_PORT_ALREADY_OPEN = "Serial port already open"

_OPEN_FLAGS = {
    OpenMode.READ: os.O_RDONLY,
    OpenMode.WRITE: os.O_WRONLY,
    OpenMode.READ_WRITE: os.O_RDWR,
}

# RTS/CTS flag; not every platform defines it.
_CRTSCTS = getattr(termios, 'CRTSCTS', 0)


def _os_error_text(exc: Exception) -> str:
    """Message text of an OSError or termios.error"""
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    if len(exc.args) > 1:
        return str(exc.args[1])
    return str(exc)


def _vdisable(fd: int) -> int:
    """The platform's _POSIX_VDISABLE for fd"""
    try:
        value = os.fpathconf(fd, 'PC_VDISABLE')
    except (OSError, ValueError):
        return 0
    return value if 0 <= value <= CC_MAX else 0


class SerialPort:
    """
    Owner of one serial device descriptor and its saved settings.

    Example:
        >>> port = SerialPort()
        >>> port.open('/dev/ttyUSB0')
        >>> port.set_baud_rate(BaudRate.B9600)
        >>> port.get_parity()
        <Parity.NONE: 'N'>
        >>> port.close()
    """

    def __init__(self):
        self._fd = INVALID_FD
        self._path: Optional[str] = None
        self._old_settings: Optional[DeviceSettings] = None

    def __repr__(self):
        state = 'open' if self.is_open else 'closed'
        return f'<{self.__class__.__name__} path={self._path!r} {state}>'

    def __enter__(self) -> 'SerialPort':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.is_open:
            self.close()

    @property
    def is_open(self) -> bool:
        return self._fd != INVALID_FD

    @property
    def path(self) -> Optional[str]:
        """Device path given to the last open()"""
        return self._path

    def _require_open(self):
        if not self.is_open:
            raise PortNotOpenError(ERR_MSG_PORT_NOT_OPEN)

    def _read_settings(self) -> DeviceSettings:
        self._require_open()
        try:
            return DeviceSettings.read(self._fd)
        except termios.error as e:
            raise SerialIOError(_os_error_text(e)) from e

    def _commit(self, settings: DeviceSettings):
        try:
            settings.commit(self._fd)
        except termios.error as e:
            raise SerialIOError(_os_error_text(e)) from e

    # Lifecycle

    def open(self, path: str, mode: OpenMode = OpenMode.READ_WRITE):
        """
        Open the serial device at path and put it in a known state.

        Args:
            path: Device path (e.g. '/dev/ttyUSB0')
            mode: OpenMode.READ, OpenMode.WRITE or OpenMode.READ_WRITE

        Raises:
            PortAlreadyOpenError: If this instance already has a port open
            SerialConfigError: If mode is not one of the three open modes
            PortOpenError: If the device cannot be opened or configured
        """
        if self.is_open:
            raise PortAlreadyOpenError(ERR_MSG_PORT_ALREADY_OPEN)

        try:
            access = _OPEN_FLAGS[OpenMode(mode)]
        except (KeyError, ValueError):
            raise SerialConfigError(f"Invalid open mode: {mode!r}") from None

        # O_NONBLOCK keeps open() from waiting for carrier detect; it is
        # cleared again once the port is initialized.
        try:
            self._fd = os.open(path, access | os.O_NOCTTY | os.O_NONBLOCK)
        except OSError as e:
            raise PortOpenError(_os_error_text(e)) from e

        self._path = path
        log.debug("Opened %s (fd %d, mode %s)", path, self._fd, OpenMode(mode).name)

        try:
            self._setup()
        except Exception:
            self._abort_open()
            raise

    def _setup(self):
        try:
            self._old_settings = DeviceSettings.read(self._fd)
        except termios.error as e:
            raise PortOpenError(_os_error_text(e)) from e

        # Raw transitional baseline: receiver on, modem lines ignored,
        # reads return immediately. The speeds are carried over because a
        # zero speed hangs up the line.
        baseline = DeviceSettings(
            cflag=termios.CREAD | termios.CLOCAL,
            ispeed=self._old_settings.ispeed,
            ospeed=self._old_settings.ospeed,
            cc=[0] * len(self._old_settings.cc),
        )
        baseline.cc[termios.VMIN] = 0
        baseline.cc[termios.VTIME] = 0
        try:
            baseline.commit(self._fd)
        except termios.error as e:
            raise PortOpenError(_os_error_text(e)) from e

        self.flush_io_buffers()
        self.initialize_serial_port()

    def _abort_open(self):
        """Undo a partially completed open()"""
        fd, self._fd = self._fd, INVALID_FD
        if self._old_settings is not None:
            try:
                self._old_settings.commit(fd)
            except termios.error as e:
                log.warning("Could not restore settings of %s: %s", self._path, e)
        try:
            os.close(fd)
        except OSError as e:
            log.warning("Could not close %s: %s", self._path, e)
        self._old_settings = None

    def close(self):
        """
        Restore the settings saved by open() and close the device.

        Raises:
            PortNotOpenError: If the port is not open
            SerialIOError: If restoring the settings or closing fails
        """
        self._require_open()

        self._commit(self._old_settings)

        try:
            os.close(self._fd)
        except OSError as e:
            raise SerialIOError(_os_error_text(e)) from e

        log.debug("Closed %s", self._path)
        self._fd = INVALID_FD
        self._old_settings = None

    def initialize_serial_port(self):
        """Apply the default parameters, flush, and switch to blocking I/O"""
        self._require_open()
        self.set_parameters_to_default()
        self.flush_io_buffers()
        self.set_blocking(True)

    # Buffers

    def _flush(self, queue: int):
        self._require_open()
        try:
            termios.tcflush(self._fd, queue)
        except termios.error as e:
            raise SerialIOError(_os_error_text(e)) from e

    def flush_input_buffer(self):
        """Discard data received but not read"""
        self._flush(termios.TCIFLUSH)

    def flush_output_buffer(self):
        """Discard data written but not transmitted"""
        self._flush(termios.TCOFLUSH)

    def flush_io_buffers(self):
        self._flush(termios.TCIOFLUSH)

    def is_data_available(self) -> bool:
        """True if the driver holds unread input. Never raises for OS errors."""
        self._require_open()
        try:
            raw = fcntl.ioctl(self._fd, termios.FIONREAD, struct.pack('I', 0))
        except OSError as e:
            log.debug("FIONREAD failed on %s: %s", self._path, e)
            return False
        return struct.unpack('I', raw)[0] > 0

    # Parameters

    def set_parameters_to_default(self):
        """
        Write a fixed raw 115200 8N1 baseline, then run every parameter
        setter with its default so both stay consistent.
        """
        settings = self._read_settings()
        settings.iflag = termios.IGNBRK
        settings.oflag = 0
        settings.cflag = termios.CS8 | termios.CLOCAL | termios.CREAD
        settings.lflag = 0
        settings.ispeed = settings.ospeed = int(BaudRate.B115200)
        settings.cc[termios.VMIN] = 0
        settings.cc[termios.VTIME] = 0
        self._commit(settings)

        self.set_baud_rate(BaudRate.DEFAULT)
        self.set_character_size(CharacterSize.DEFAULT)
        self.set_flow_control(FlowControl.DEFAULT)
        self.set_parity(Parity.DEFAULT)
        self.set_number_of_stop_bits(StopBits.DEFAULT)
        self.set_vmin(VMIN_DEFAULT)
        self.set_vtime(VTIME_DEFAULT)

    def set_baud_rate(self, baud_rate: BaudRate):
        """
        Set the input and output speed together.

        Raises:
            SerialConfigError: If baud_rate is not a BaudRate
            InvalidBaudRateError: If the device rejects the speed
        """
        if not isinstance(baud_rate, BaudRate) or baud_rate is BaudRate.INVALID:
            raise SerialConfigError(f"Invalid baud rate: {baud_rate!r}")

        settings = self._read_settings()
        settings.ispeed = settings.ospeed = int(baud_rate)
        try:
            settings.commit(self._fd)
        except termios.error as e:
            raise InvalidBaudRateError(
                f"Invalid baud rate {baud_rate.name}: {_os_error_text(e)}"
            ) from e
        log.debug("%s: baud rate %s", self._path, baud_rate.name)

    def get_baud_rate(self) -> BaudRate:
        """
        Raises:
            InvalidBaudRateError: If input and output speeds differ, or the
                speed is not a standard rate
        """
        settings = self._read_settings()
        if settings.ispeed != settings.ospeed:
            raise InvalidBaudRateError(
                f"Input speed {settings.ispeed} differs from output speed {settings.ospeed}"
            )
        try:
            return BaudRate(settings.ispeed)
        except ValueError:
            raise InvalidBaudRateError(f"Unknown speed code {settings.ispeed}") from None

    def set_character_size(self, character_size: CharacterSize):
        """
        Set the data bits per character.

        Sizes below 8 also set ISTRIP so the bits above the character are
        zeroed on input; size 8 clears it so the high bit survives.
        """
        if not isinstance(character_size, CharacterSize):
            raise SerialConfigError(f"Invalid character size: {character_size!r}")

        settings = self._read_settings()
        if character_size is CharacterSize.CS8:
            settings.iflag &= ~termios.ISTRIP
        else:
            settings.iflag |= termios.ISTRIP
        settings.cflag &= ~termios.CSIZE
        settings.cflag |= int(character_size)
        self._commit(settings)
        log.debug("%s: character size %d", self._path, character_size.bits)

    def get_character_size(self) -> CharacterSize:
        settings = self._read_settings()
        return CharacterSize(settings.cflag & termios.CSIZE)

    def set_flow_control(self, flow_control: FlowControl):
        """
        Select hardware (RTS/CTS), software (XON/XOFF) or no flow control.

        Both buffers are flushed first; queued data does not survive a
        flow control change.
        """
        if flow_control not in (FlowControl.NONE, FlowControl.SOFTWARE, FlowControl.HARDWARE):
            raise SerialConfigError(f"Invalid flow control: {flow_control!r}")

        self.flush_io_buffers()
        settings = self._read_settings()

        if flow_control is FlowControl.HARDWARE:
            settings.iflag &= ~(termios.IXON | termios.IXOFF)
            settings.cflag |= _CRTSCTS
            vdisable = _vdisable(self._fd)
            settings.cc[termios.VSTART] = vdisable
            settings.cc[termios.VSTOP] = vdisable
        elif flow_control is FlowControl.SOFTWARE:
            settings.iflag |= termios.IXON | termios.IXOFF
            settings.cflag &= ~_CRTSCTS
            settings.cc[termios.VSTART] = XON
            settings.cc[termios.VSTOP] = XOFF
        else:
            settings.iflag &= ~(termios.IXON | termios.IXOFF)
            settings.cflag &= ~_CRTSCTS

        self._commit(settings)
        log.debug("%s: flow control %s", self._path, flow_control.name)

    def get_flow_control(self) -> FlowControl:
        settings = self._read_settings()
        ixon = bool(settings.iflag & termios.IXON)
        ixoff = bool(settings.iflag & termios.IXOFF)

        if (ixon and ixoff
                and settings.cc[termios.VSTART] == XON
                and settings.cc[termios.VSTOP] == XOFF):
            return FlowControl.SOFTWARE
        if not (ixon or ixoff):
            if settings.cflag & _CRTSCTS:
                return FlowControl.HARDWARE
            return FlowControl.NONE
        # XON/XOFF half enabled or with non-standard characters
        return FlowControl.INVALID

    def set_parity(self, parity: Parity):
        if parity not in (Parity.NONE, Parity.EVEN, Parity.ODD):
            raise SerialConfigError(f"Invalid parity: {parity!r}")

        settings = self._read_settings()
        if parity is Parity.EVEN:
            settings.cflag |= termios.PARENB
            settings.cflag &= ~termios.PARODD
            settings.iflag |= termios.INPCK
        elif parity is Parity.ODD:
            settings.cflag |= termios.PARENB | termios.PARODD
            settings.iflag |= termios.INPCK
        else:
            settings.cflag &= ~termios.PARENB
            settings.iflag |= termios.IGNPAR
        self._commit(settings)
        log.debug("%s: parity %s", self._path, parity.name)

    def get_parity(self) -> Parity:
        settings = self._read_settings()
        if not settings.cflag & termios.PARENB:
            return Parity.NONE
        if settings.cflag & termios.PARODD:
            return Parity.ODD
        return Parity.EVEN

    def set_number_of_stop_bits(self, stop_bits: StopBits):
        if stop_bits not in (StopBits.ONE, StopBits.TWO):
            raise SerialConfigError(f"Invalid number of stop bits: {stop_bits!r}")

        settings = self._read_settings()
        if stop_bits is StopBits.TWO:
            settings.cflag |= termios.CSTOPB
        else:
            settings.cflag &= ~termios.CSTOPB
        self._commit(settings)
        log.debug("%s: stop bits %s", self._path, stop_bits.name)

    def get_number_of_stop_bits(self) -> StopBits:
        settings = self._read_settings()
        return StopBits.TWO if settings.cflag & termios.CSTOPB else StopBits.ONE

    def _set_control_char(self, index: int, name: str, value: int):
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= CC_MAX:
            raise SerialConfigError(f"{name} must be an integer in [0, {CC_MAX}], got {value!r}")

        settings = self._read_settings()
        settings.cc[index] = value
        self._commit(settings)
        log.debug("%s: %s %d", self._path, name, value)

    def set_vmin(self, vmin: int):
        """Minimum number of bytes a non-canonical read waits for"""
        self._set_control_char(termios.VMIN, 'VMIN', vmin)

    def get_vmin(self) -> int:
        return self._read_settings().cc[termios.VMIN]

    def set_vtime(self, vtime: int):
        """Non-canonical read timeout in deciseconds"""
        self._set_control_char(termios.VTIME, 'VTIME', vtime)

    def get_vtime(self) -> int:
        return self._read_settings().cc[termios.VTIME]

    # Descriptor

    def get_file_descriptor(self) -> int:
        self._require_open()
        return self._fd

    fileno = get_file_descriptor

    def set_blocking(self, blocking: bool):
        """Clear (blocking=True) or set the descriptor's O_NONBLOCK flag"""
        self._require_open()
        try:
            flags = fcntl.fcntl(self._fd, fcntl.F_GETFL)
            if blocking:
                flags &= ~os.O_NONBLOCK
            else:
                flags |= os.O_NONBLOCK
            fcntl.fcntl(self._fd, fcntl.F_SETFL, flags)
        except OSError as e:
            raise SerialIOError(_os_error_text(e)) from e

    def is_blocking(self) -> bool:
        self._require_open()
        try:
            flags = fcntl.fcntl(self._fd, fcntl.F_GETFL)
        except OSError as e:
            raise SerialIOError(_os_error_text(e)) from e
        return not flags & os.O_NONBLOCK
