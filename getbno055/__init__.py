"""
BNO055 Register Driver
======================

Synchronous I2C driver for the Bosch BNO055 absolute orientation sensor.

Components:
    - BusSession: register access primitives and identity check
    - modes: operating mode, power mode, page select and reset
    - calibration: calibration status and offset codec
    - diagnostics: device info decoding
    - measurement: raw sensor vector decoding
    - BNO055: driver sequencing the above
"""

from .bus import BusConfig, BusSession, HAS_SMBUS
from .calibration import (
    CalibrationOffsets,
    CalibrationProfile,
    CalibrationStatus,
    decode_from_persistence,
    decode_status,
    encode_for_persistence,
    to_signed16,
    to_unsigned16,
)
from .diagnostics import (
    DeviceInfo,
    SelfTestResult,
    SystemErrorCode,
    SystemStatus,
    UnitSelection,
)
from .driver import BNO055, BNO055Config
from .errors import (
    BNO055Error,
    BusError,
    BusOpenError,
    CalibrationReadError,
    DeviceNotPresent,
    InvalidCalibrationRecord,
    OutOfRangeDiagnostic,
)
from .measurement import Measurement, SensorKind
from .registers import OperationMode, PowerMode

__all__ = [
    'BNO055',
    'BNO055Config',
    'BusConfig',
    'BusSession',
    'HAS_SMBUS',
    'OperationMode',
    'PowerMode',
    'CalibrationOffsets',
    'CalibrationProfile',
    'CalibrationStatus',
    'decode_from_persistence',
    'decode_status',
    'encode_for_persistence',
    'to_signed16',
    'to_unsigned16',
    'DeviceInfo',
    'SelfTestResult',
    'SystemErrorCode',
    'SystemStatus',
    'UnitSelection',
    'Measurement',
    'SensorKind',
    'BNO055Error',
    'BusError',
    'BusOpenError',
    'CalibrationReadError',
    'DeviceNotPresent',
    'InvalidCalibrationRecord',
    'OutOfRangeDiagnostic',
]
