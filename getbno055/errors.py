"""
Driver Errors
=============

Exception taxonomy for the BNO055 register driver. Every failure is raised
to the immediate caller; nothing in the driver substitutes default data.
"""

from typing import Optional


class BNO055Error(Exception):
    """Base class for all driver errors."""


class BusOpenError(BNO055Error):
    """The I2C bus device could not be opened (missing, permissions, no smbus2)."""


class DeviceNotPresent(BNO055Error):
    """Chip-ID check failed on both attempts."""

    def __init__(self, chip_id: int, expected: int):
        self.chip_id = chip_id
        self.expected = expected
        super().__init__(
            f"BNO055 not found: CHIP_ID = 0x{chip_id:02X}, expected 0x{expected:02X}"
        )


class BusError(BNO055Error):
    """A register transaction failed or transferred the wrong number of bytes."""

    def __init__(self, register: int, expected: int, actual: Optional[int] = None,
                 reason: str = ""):
        self.register = register
        self.expected = expected
        self.actual = actual
        msg = f"I2C transfer failure for register 0x{register:02X}"
        if actual is not None:
            msg += f": expected {expected} bytes, got {actual}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class CalibrationReadError(BNO055Error):
    """Reading calibration state failed. ``block`` is 'status' or 'offsets'."""

    def __init__(self, block: str):
        self.block = block
        super().__init__(f"Cannot read calibration {block}")


class OutOfRangeDiagnostic(BNO055Error):
    """An enumerated register held a value outside its documented set."""

    def __init__(self, field: str, value: int):
        self.field = field
        self.value = value
        super().__init__(f"Unknown {field} value 0x{value:02X}")


class InvalidCalibrationRecord(BNO055Error, ValueError):
    """A calibration record does not have a valid device block length."""
