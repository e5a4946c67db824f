# -*- coding: utf-8 -*-

"""
Terminal settings value type.

The kernel owns the live settings of a serial line and other programs may
change them at any time, so a DeviceSettings is always read fresh, changed
in memory and committed back. Nothing keeps one across calls.
"""
import termios

from dataclasses import dataclass
from dataclasses import field
from typing import List
from typing import Union

# Indices into the list termios.tcgetattr() returns.
IFLAG, OFLAG, CFLAG, LFLAG, ISPEED, OSPEED, CC = range(7)


def _cc_value(value: Union[bytes, int]) -> int:
    # tcgetattr() yields 1-byte strings, except VMIN/VTIME in raw mode
    return value if isinstance(value, int) else ord(value)


@dataclass
class DeviceSettings:
    """Snapshot of a terminal's iflag/oflag/cflag/lflag, speeds and cc"""
    iflag: int = 0
    oflag: int = 0
    cflag: int = 0
    lflag: int = 0
    ispeed: int = 0
    ospeed: int = 0
    cc: List[int] = field(default_factory=list)

    @classmethod
    def read(cls, fd: int) -> 'DeviceSettings':
        """Read the current settings of fd. Raises termios.error."""
        attrs = termios.tcgetattr(fd)
        return cls(
            iflag=attrs[IFLAG],
            oflag=attrs[OFLAG],
            cflag=attrs[CFLAG],
            lflag=attrs[LFLAG],
            ispeed=attrs[ISPEED],
            ospeed=attrs[OSPEED],
            cc=[_cc_value(c) for c in attrs[CC]],
        )

    def commit(self, fd: int, when: int = termios.TCSANOW):
        """Apply these settings to fd. Raises termios.error."""
        termios.tcsetattr(fd, when, self.to_list())

    def to_list(self) -> list:
        return [
            self.iflag,
            self.oflag,
            self.cflag,
            self.lflag,
            self.ispeed,
            self.ospeed,
            list(self.cc),
        ]

