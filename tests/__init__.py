"""
Test suite for ttystream - unbuffered byte streams over POSIX serial devices.

This package contains unit tests, pseudo-terminal integration tests, and
test fixtures for verifying ttystream functionality.
"""
