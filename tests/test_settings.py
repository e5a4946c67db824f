"""
Unit tests for DeviceSettings.
"""
import errno
import termios

import pytest

from ttystream.settings import CC
from ttystream.settings import CFLAG
from ttystream.settings import DeviceSettings


class TestDeviceSettings:
    """Test reading and committing terminal settings."""

    def test_read_normalizes_control_chars(self, pty_pair):
        """Test every cc entry comes back as an int."""
        settings = DeviceSettings.read(pty_pair.slave_fd)

        assert settings.cc
        assert all(isinstance(c, int) for c in settings.cc)

    def test_commit_round_trip(self, pty_pair):
        settings = DeviceSettings.read(pty_pair.slave_fd)
        settings.cc[termios.VMIN] = 3
        settings.cc[termios.VTIME] = 4

        settings.commit(pty_pair.slave_fd)
        reread = DeviceSettings.read(pty_pair.slave_fd)

        assert reread.cc[termios.VMIN] == 3
        assert reread.cc[termios.VTIME] == 4

    def test_to_list_layout(self):
        settings = DeviceSettings(cflag=termios.CREAD, cc=[1, 2])
        attrs = settings.to_list()

        assert len(attrs) == 7
        assert attrs[CFLAG] == termios.CREAD
        assert attrs[CC] == [1, 2]
        assert attrs[CC] is not settings.cc

    def test_read_non_terminal(self, tmp_path):
        """Test reading a regular file raises termios.error."""
        path = tmp_path / 'plain'
        path.write_bytes(b'')

        with open(path, 'rb') as f:
            with pytest.raises(termios.error) as exc_info:
                DeviceSettings.read(f.fileno())

        assert exc_info.value.args[0] == errno.ENOTTY
