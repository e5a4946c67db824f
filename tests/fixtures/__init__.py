"""
Test fixtures for ttystream testing.

Provides pseudo-terminal pairs and an in-memory terminal settings store
for testing without serial hardware.
"""

from .virtual_ports import (
    VirtualSerialPair,
    VirtualTermios,
    wait_readable,
    pty_pair,
    virtual_termios,
    serial_config,
    simulated_serial_data,
    different_baudrates,
)

__all__ = [
    'VirtualSerialPair',
    'VirtualTermios',
    'wait_readable',
    'pty_pair',
    'virtual_termios',
    'serial_config',
    'simulated_serial_data',
    'different_baudrates',
]
