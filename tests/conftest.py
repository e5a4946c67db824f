"""
Pytest configuration and fixtures for ttystream tests.
"""
import pytest

from ttystream.port import SerialPort
from ttystream.streambuf import SerialStreamBuffer

# Import all fixtures from virtual_ports
from .fixtures.virtual_ports import *


def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "pty: tests that run against a pseudo-terminal pair"
    )

    config.addinivalue_line(
        "markers",
        "posix_only: tests that only work on POSIX systems"
    )


@pytest.fixture
def serial_port(pty_pair):
    """SerialPort opened on the slave end of a pseudo-terminal pair."""
    port = SerialPort()
    port.open(pty_pair.slave_path)
    yield port
    if port.is_open:
        port.close()


@pytest.fixture
def virtual_port(pty_pair, virtual_termios):
    """SerialPort whose terminal settings live in the virtual_termios store."""
    port = SerialPort()
    port.open(pty_pair.slave_path)
    yield port
    if port.is_open:
        virtual_termios.fail_set = False
        port.close()


@pytest.fixture
def stream_buffer(serial_port):
    """SerialStreamBuffer over the serial_port fixture."""
    return SerialStreamBuffer(serial_port)


@pytest.fixture
def closed_port():
    """SerialPort that has never been opened."""
    return SerialPort()
