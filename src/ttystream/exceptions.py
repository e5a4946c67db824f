# -*- coding: utf-8 -*-

"""
ttystream exceptions
"""
import serial


class TTYStreamError(serial.SerialException):
    """Base exception for all ttystream errors"""
    pass

class PortNotOpenError(TTYStreamError):
    """Operation requires an open serial port"""
    pass

class PortAlreadyOpenError(TTYStreamError):
    """Serial port is already open"""
    pass

class PortOpenError(TTYStreamError):
    """Failed to open or initially configure the serial port"""
    pass

class SerialIOError(TTYStreamError):
    """OS-level failure while configuring or flushing an open port"""
    pass

class InvalidBaudRateError(SerialIOError):
    """Baud rate could not be applied, or input and output rates differ"""
    pass

class SerialConfigError(TTYStreamError, ValueError):
    """Invalid serial configuration value"""
    pass
