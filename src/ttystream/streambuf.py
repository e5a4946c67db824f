# -*- coding: utf-8 -*-

"""
Unbuffered stream buffer over a SerialPort.

Reads and writes go straight to the descriptor with one system call each.
The only state kept is a single putback byte, which is what lets a caller
peek at the next character or push one back without an input buffer.

Byte-level failures are not raised: a failed or empty transfer is reported
as 0 bytes or EOF and the caller decides whether to retry. Only a closed
port raises.
"""
import abc
import logging
import os

from typing import Optional

from .constants import EOF
from .exceptions import SerialIOError
from .port import SerialPort

log = logging.getLogger('ttystream.streambuf')


class StreamBuffer(abc.ABC):
    """
    Device-facing primitives of a byte stream.

    Characters are ints in 0..255; EOF (-1) marks end of stream or failure.
    """

    @abc.abstractmethod
    def write_bytes(self, data, n: Optional[int] = None) -> int:
        """Write up to n bytes of data with one transfer; return the count sent"""

    @abc.abstractmethod
    def write_one(self, char: int) -> int:
        """Write one character; return it on success, EOF otherwise"""

    @abc.abstractmethod
    def read_bytes(self, buffer, n: Optional[int] = None) -> int:
        """Read up to n bytes into buffer; return the count read"""

    @abc.abstractmethod
    def read_one(self) -> int:
        """Return the next character without consuming it, or EOF"""

    @abc.abstractmethod
    def read_one_advance(self) -> int:
        """Return the next character and consume it, or EOF"""

    @abc.abstractmethod
    def pushback(self, char: int) -> int:
        """Push char back so the next read returns it; EOF on failure"""

    @abc.abstractmethod
    def bytes_ready(self) -> int:
        """1 if a character can be read without blocking, 0 if not, -1 on error"""


class SerialStreamBuffer(StreamBuffer):
    """
    StreamBuffer reading and writing the descriptor of an open SerialPort.

    The putback slot holds exactly one byte. It is filled by read_one(),
    pushback() and bytes_ready(), and emptied by read_bytes() and
    read_one_advance().
    """

    def __init__(self, port: SerialPort):
        self._port = port
        self._putback_char = 0
        self._putback_available = False
        self._mode_unknown = False

    @property
    def port(self) -> SerialPort:
        return self._port

    @property
    def putback_available(self) -> bool:
        return self._putback_available

    def _fileno(self) -> int:
        # Raises PortNotOpenError on a closed port.
        fd = self._port.get_file_descriptor()
        if self._mode_unknown:
            raise SerialIOError(
                "Blocking mode of the port could not be restored; stream buffer unusable"
            )
        return fd

    def write_bytes(self, data, n: Optional[int] = None) -> int:
        """
        Issue a single write of up to n bytes (default: all of data).

        A failed or empty write returns 0; a short write returns the
        shorter count. Nothing is retried.
        """
        fd = self._fileno()
        if n is None:
            n = len(data)
        if n <= 0:
            return 0

        try:
            written = os.write(fd, memoryview(data)[:n])
        except OSError as e:
            log.debug("write to fd %d failed: %s", fd, e)
            return 0
        return max(written, 0)

    def write_one(self, char: int) -> int:
        fd = self._fileno()
        if char == EOF:
            return EOF

        try:
            written = os.write(fd, bytes((char & 0xFF,)))
        except OSError as e:
            log.debug("write to fd %d failed: %s", fd, e)
            return EOF
        if written <= 0:
            return EOF
        return char

    def read_bytes(self, buffer, n: Optional[int] = None) -> int:
        """
        Read up to n bytes (default: len(buffer)) into buffer.

        A pending putback byte goes to buffer[0] and one read fetches the
        remaining n - 1 bytes. Failure or no data returns 0.
        """
        fd = self._fileno()
        view = memoryview(buffer).cast('B')
        if n is None:
            n = len(view)
        n = min(n, len(view))
        if n <= 0:
            return 0

        if self._putback_available:
            view[0] = self._putback_char
            self._putback_available = False
            count = 1
            if n > 1:
                data = self._read(fd, n - 1)
                if data is not None:
                    view[1:1 + len(data)] = data
                    count += len(data)
            return count

        data = self._read(fd, n)
        if not data:
            return 0
        view[:len(data)] = data
        return len(data)

    def _read(self, fd: int, n: int) -> Optional[bytes]:
        try:
            return os.read(fd, n)
        except OSError as e:
            log.debug("read from fd %d failed: %s", fd, e)
            return None

    def read_one(self) -> int:
        """
        Peek at the next character.

        The character stays in the putback slot, so repeated calls return
        the same one until read_one_advance() or read_bytes() consumes it.
        """
        fd = self._fileno()
        if self._putback_available:
            return self._putback_char

        data = self._read(fd, 1)
        if not data:
            return EOF
        self._putback_char = data[0]
        self._putback_available = True
        return self._putback_char

    def read_one_advance(self) -> int:
        char = self.read_one()
        self._putback_available = False
        return char

    def pushback(self, char: int) -> int:
        """
        Store char as the next character to read.

        Fails with EOF when a character is already pending or char is EOF.
        """
        self._fileno()
        if self._putback_available or char == EOF:
            return EOF
        self._putback_char = char & 0xFF
        self._putback_available = True
        return self._putback_char

    def bytes_ready(self) -> int:
        """
        Probe for input without blocking.

        A pending putback byte counts without touching the device. Otherwise
        one byte is read in non-blocking mode and kept as the putback byte.
        The previous blocking mode is restored afterwards; if that fails
        -1 is returned and this stream buffer refuses further use.
        """
        fd = self._fileno()
        if self._putback_available:
            return 1

        try:
            was_blocking = self._port.is_blocking()
            self._port.set_blocking(False)
        except SerialIOError as e:
            log.debug("fd %d: could not switch to non-blocking mode: %s", fd, e)
            return -1

        data = self._read(fd, 1)
        if data:
            self._putback_char = data[0]
            self._putback_available = True
            ready = 1
        else:
            ready = 0

        try:
            self._port.set_blocking(was_blocking)
        except SerialIOError as e:
            log.error("fd %d: could not restore blocking mode: %s", fd, e)
            self._mode_unknown = True
            return -1
        return ready
