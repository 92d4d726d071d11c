"""
BNO055 Sensor Data
==================

Raw decoding of the sensor data output registers (0x08-0x33).

Each vector is read as a burst of little-endian int16 values and divided by
the datasheet LSB factor for the unit currently selected in UNIT_SEL. The
unit selection is re-read on every call. No filtering or fusion math is done
here; Euler and quaternion values are returned as the device reports them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple
import logging

import numpy as np

from .bus import BusSession
from .diagnostics import UnitSelection, decode_units
from .registers import (
    BNO055_ACC_DATA_X_LSB,
    BNO055_EUL_HEADING_LSB,
    BNO055_GRV_DATA_X_LSB,
    BNO055_GYR_DATA_X_LSB,
    BNO055_LIA_DATA_X_LSB,
    BNO055_MAG_DATA_X_LSB,
    BNO055_QUA_DATA_W_LSB,
    BNO055_UNIT_SEL,
)

logger = logging.getLogger(__name__)


class SensorKind(Enum):
    """Sensor data blocks that can be read."""
    ACCEL = "acc"
    MAG = "mag"
    GYRO = "gyr"
    EULER = "eul"            # heading, roll, pitch
    QUATERNION = "qua"       # w, x, y, z
    LINEAR_ACCEL = "lia"     # gravity removed
    GRAVITY = "grv"


# (start register, number of int16 values)
_LAYOUT = {
    SensorKind.ACCEL: (BNO055_ACC_DATA_X_LSB, 3),
    SensorKind.MAG: (BNO055_MAG_DATA_X_LSB, 3),
    SensorKind.GYRO: (BNO055_GYR_DATA_X_LSB, 3),
    SensorKind.EULER: (BNO055_EUL_HEADING_LSB, 3),
    SensorKind.QUATERNION: (BNO055_QUA_DATA_W_LSB, 4),
    SensorKind.LINEAR_ACCEL: (BNO055_LIA_DATA_X_LSB, 3),
    SensorKind.GRAVITY: (BNO055_GRV_DATA_X_LSB, 3),
}

# Scale factors (LSB per unit)
ACCEL_SCALE_MS2 = 100.0
ACCEL_SCALE_MG = 1.0
GYRO_SCALE_DPS = 16.0
GYRO_SCALE_RPS = 900.0
EULER_SCALE_DEG = 16.0
EULER_SCALE_RAD = 900.0
MAG_SCALE = 16.0        # LSB per uT
QUAT_SCALE = 16384.0    # LSB per unit quaternion (2^14)


def scale_for(kind: SensorKind, units: UnitSelection) -> Tuple[float, str]:
    """Return (LSB per unit, unit name) for a data block."""
    if kind in (SensorKind.ACCEL, SensorKind.LINEAR_ACCEL, SensorKind.GRAVITY):
        if units.accel_unit == "mg":
            return ACCEL_SCALE_MG, "mg"
        return ACCEL_SCALE_MS2, "m/s2"
    if kind == SensorKind.GYRO:
        if units.gyro_unit == "rps":
            return GYRO_SCALE_RPS, "rps"
        return GYRO_SCALE_DPS, "dps"
    if kind == SensorKind.EULER:
        if units.euler_unit == "radians":
            return EULER_SCALE_RAD, "rad"
        return EULER_SCALE_DEG, "deg"
    if kind == SensorKind.MAG:
        return MAG_SCALE, "uT"
    return QUAT_SCALE, ""


@dataclass
class Measurement:
    """One decoded sensor data block."""
    kind: SensorKind
    raw: Tuple[int, ...]
    values: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=np.float64))
    unit: str = ""
    timestamp: float = 0.0


def decode_vector(data: bytes, kind: SensorKind, units: UnitSelection) -> Measurement:
    """Decode a raw little-endian int16 block."""
    _, axes = _LAYOUT[kind]
    if len(data) != axes * 2:
        raise ValueError(f"{kind.name} block needs {axes * 2} bytes, got {len(data)}")

    raw = np.frombuffer(bytes(data), dtype='<i2')
    scale, unit = scale_for(kind, units)
    return Measurement(
        kind=kind,
        raw=tuple(int(v) for v in raw),
        values=raw.astype(np.float64) / scale,
        unit=unit,
    )


def read_measurement(session: BusSession, kind: SensorKind) -> Measurement:
    """
    Read one sensor data block.

    The data is only meaningful in an operating mode that enables the
    sensor (e.g. MAG requires a mode with the magnetometer on).
    """
    kind = SensorKind(kind)
    register, axes = _LAYOUT[kind]

    units = decode_units(session.read_byte(BNO055_UNIT_SEL))
    data = session.read(register, axes * 2)

    measurement = decode_vector(data, kind, units)
    measurement.timestamp = session.clock()
    logger.debug(f"{kind.name}: raw={measurement.raw} "
                 f"values={np.round(measurement.values, 3).tolist()} {measurement.unit}")
    return measurement
