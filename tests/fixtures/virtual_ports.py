"""
Fixtures for virtual serial port testing.
Provides pseudo-terminal pairs and an in-memory terminal settings store.
"""
import copy
import errno
import os
import select
import termios
import time

import pytest

from unittest.mock import patch
from typing import Dict
from typing import Generator
from typing import List

from ttystream.constants import BaudRate
from ttystream.settings import CC

# Captured before any test patches the module.
_REAL_TCGETATTR = termios.tcgetattr


class VirtualSerialPair:
    """
    Pseudo-terminal pair. The slave path is opened as the serial device;
    the master end plays the remote side of the line.
    """

    def __init__(self):
        self.master_fd, self.slave_fd = os.openpty()
        self.slave_path = os.ttyname(self.slave_fd)

    def write_to_master(self, data: bytes) -> int:
        """Write bytes into the master end (appears on the slave)."""
        return os.write(self.master_fd, data)

    def read_from_master(self, size: int, timeout: float = 1.0) -> bytes:
        """Read up to size bytes written to the slave, waiting at most timeout."""
        data = b''
        deadline = time.monotonic() + timeout
        while len(data) < size:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            ready, _, _ = select.select([self.master_fd], [], [], remaining)
            if not ready:
                break
            data += os.read(self.master_fd, size - len(data))
        return data

    def close(self):
        for fd in (self.master_fd, self.slave_fd):
            try:
                os.close(fd)
            except OSError:
                pass


def wait_readable(fd: int, timeout: float = 1.0) -> bool:
    """True once fd has input, False on timeout."""
    ready, _, _ = select.select([fd], [], [], timeout)
    return bool(ready)


def _normalize(attrs: list) -> list:
    attrs = copy.deepcopy(list(attrs))
    attrs[CC] = [c if isinstance(c, int) else ord(c) for c in attrs[CC]]
    return attrs


class VirtualTermios:
    """
    Stand-in for termios.tcgetattr/tcsetattr.

    Settings of each descriptor live in memory, seeded from the real
    device on first access. Linux pseudo-terminals force CS8 and clear
    PARENB, so configuration round trips are checked against this store.
    """

    def __init__(self):
        self.settings: Dict[int, List] = {}
        self.initial: Dict[int, List] = {}
        self.fail_set = False

    def tcgetattr(self, fd: int) -> list:
        if fd not in self.settings:
            self.settings[fd] = _normalize(_REAL_TCGETATTR(fd))
            self.initial[fd] = copy.deepcopy(self.settings[fd])
        attrs = copy.deepcopy(self.settings[fd])
        # Same shape as the real call in raw mode: 1-byte strings except VMIN/VTIME
        attrs[CC] = [
            c if i in (termios.VMIN, termios.VTIME) else bytes((c,))
            for i, c in enumerate(attrs[CC])
        ]
        return attrs

    def tcsetattr(self, fd: int, when: int, attrs: list):
        if self.fail_set:
            raise termios.error(errno.EIO, 'Input/output error')
        self.settings[fd] = _normalize(attrs)


@pytest.fixture
def pty_pair() -> Generator[VirtualSerialPair, None, None]:
    """
    Create a connected pseudo-terminal pair.
    """
    if os.name != 'posix':
        pytest.skip("Pseudo-terminals not supported on this platform")

    pair = VirtualSerialPair()
    yield pair
    pair.close()


@pytest.fixture
def virtual_termios() -> Generator[VirtualTermios, None, None]:
    """
    Route terminal settings reads and writes to an in-memory store.
    """
    fake = VirtualTermios()
    with patch('termios.tcgetattr', fake.tcgetattr), \
            patch('termios.tcsetattr', fake.tcsetattr):
        yield fake


@pytest.fixture
def serial_config():
    """
    Provide a standard pyserial-style configuration.
    """
    return {
        'baudrate': 9600,
        'bytesize': 8,
        'parity': 'N',
        'stopbits': 1,
        'xonxoff': False,
        'rtscts': False,
    }


@pytest.fixture
def simulated_serial_data():
    """
    Provide simulated serial data for testing.
    """
    return {
        'simple_response': b"OK\r\n",
        'binary_data': bytes(range(256)),
        'high_bit_data': b"\x80\xff\xfe",
    }


@pytest.fixture(params=[
    BaudRate.B1200,
    BaudRate.B9600,
    BaudRate.B19200,
    BaudRate.B57600,
    BaudRate.B115200,
    BaudRate.B230400,
])
def different_baudrates(request):
    """
    Parametrized fixture for testing different baud rates.
    """
    return request.param
