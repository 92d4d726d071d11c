"""
BNO055 Calibration Codec
========================

Decodes the calibration status byte (0x35) and the offset block (0x55-0x6A),
and converts the offset block to and from the byte record used to restore a
calibration on the next power-up.

Offset block layout (little-endian, two's-complement int16):

    0x55-0x5A  accelerometer offset X, Y, Z
    0x5B-0x60  magnetometer offset X, Y, Z
    0x61-0x66  gyroscope offset X, Y, Z
    0x67-0x68  accelerometer radius   (22-byte block only)
    0x69-0x6A  magnetometer radius    (22-byte block only)

Offsets are kept as the raw unsigned register values so a record written
back reproduces the calibration bit-for-bit. Signed views (raw 65535 -> -1)
are separate properties; callers pick the one they need.

Offsets are only meaningful on the unit that produced them.
"""

import base64
import struct
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple, Union
import logging

from .bus import BusSession
from .errors import BusError, CalibrationReadError, InvalidCalibrationRecord
from .modes import config_mode
from .registers import (
    BNO055_ACC_OFFSET_X_LSB,
    BNO055_CALIB_STAT,
    CALIBRATION_BLOCK_LEN,
    CALIBRATION_OFFSETS_LEN,
)

logger = logging.getLogger(__name__)

CALIBRATION_RECORD_LENGTHS = (CALIBRATION_OFFSETS_LEN, CALIBRATION_BLOCK_LEN)

Triple = Tuple[int, int, int]


# =============================================================================
# 16-bit helpers
# =============================================================================

def to_signed16(raw: int) -> int:
    """Reinterpret an unsigned 16-bit register value as two's-complement."""
    if not 0 <= raw <= 0xFFFF:
        raise ValueError(f"Raw 16-bit value out of range: {raw}")
    return raw - 0x10000 if raw >= 0x8000 else raw


def to_unsigned16(value: int) -> int:
    """Encode a signed 16-bit value as its unsigned register value."""
    if not -0x8000 <= value <= 0x7FFF:
        raise ValueError(f"Signed 16-bit value out of range: {value}")
    return value & 0xFFFF


# =============================================================================
# Calibration status
# =============================================================================

@dataclass(frozen=True)
class CalibrationStatus:
    """Calibration confidence per subsystem, 0 (none) to 3 (fully calibrated)."""
    system: int = 0
    gyro: int = 0
    accel: int = 0
    mag: int = 0

    @property
    def is_fully_calibrated(self) -> bool:
        return self.system == 3 and self.gyro == 3 and self.accel == 3 and self.mag == 3

    def to_dict(self) -> dict:
        return {
            "sys": self.system,
            "gyro": self.gyro,
            "accel": self.accel,
            "mag": self.mag,
            "fully_calibrated": self.is_fully_calibrated,
        }


def decode_status(value: int) -> CalibrationStatus:
    """
    Unpack a CALIB_STAT byte.

    Bits 7-6 system, 5-4 gyroscope, 3-2 accelerometer, 1-0 magnetometer.
    """
    return CalibrationStatus(
        system=(value >> 6) & 0x03,
        gyro=(value >> 4) & 0x03,
        accel=(value >> 2) & 0x03,
        mag=value & 0x03,
    )


def encode_status(status: CalibrationStatus) -> int:
    """Pack a CalibrationStatus back into its CALIB_STAT byte."""
    return (((status.system & 0x03) << 6) | ((status.gyro & 0x03) << 4) |
            ((status.accel & 0x03) << 2) | (status.mag & 0x03))


# =============================================================================
# Calibration offsets
# =============================================================================

@dataclass(frozen=True)
class CalibrationOffsets:
    """
    Raw calibration offsets as stored in the device registers.

    All values are unsigned 16-bit register contents. Radii are present
    only when the 22-byte block was read.
    """
    accel: Triple = (0, 0, 0)
    mag: Triple = (0, 0, 0)
    gyro: Triple = (0, 0, 0)
    accel_radius: Optional[int] = None
    mag_radius: Optional[int] = None

    def __post_init__(self):
        if (self.accel_radius is None) != (self.mag_radius is None):
            raise ValueError("accel_radius and mag_radius must be given together")
        for name in ("accel", "mag", "gyro"):
            values = getattr(self, name)
            if len(values) != 3:
                raise ValueError(f"{name} offset needs 3 axes, got {len(values)}")
        for raw in self.raw_values():
            if not 0 <= raw <= 0xFFFF:
                raise ValueError(f"Raw offset out of 16-bit range: {raw}")

    @property
    def has_radii(self) -> bool:
        return self.accel_radius is not None

    @property
    def record_length(self) -> int:
        return CALIBRATION_BLOCK_LEN if self.has_radii else CALIBRATION_OFFSETS_LEN

    def raw_values(self) -> Tuple[int, ...]:
        """All raw values in register order."""
        values = tuple(self.accel) + tuple(self.mag) + tuple(self.gyro)
        if self.has_radii:
            values += (self.accel_radius, self.mag_radius)
        return values

    def signed_values(self) -> Tuple[int, ...]:
        """All values in register order, reinterpreted as signed int16."""
        return tuple(to_signed16(v) for v in self.raw_values())

    @property
    def signed_accel(self) -> Triple:
        return tuple(to_signed16(v) for v in self.accel)

    @property
    def signed_mag(self) -> Triple:
        return tuple(to_signed16(v) for v in self.mag)

    @property
    def signed_gyro(self) -> Triple:
        return tuple(to_signed16(v) for v in self.gyro)

    @property
    def signed_accel_radius(self) -> Optional[int]:
        return None if self.accel_radius is None else to_signed16(self.accel_radius)

    @property
    def signed_mag_radius(self) -> Optional[int]:
        return None if self.mag_radius is None else to_signed16(self.mag_radius)

    @classmethod
    def from_signed(cls, accel: Triple, mag: Triple, gyro: Triple,
                    accel_radius: Optional[int] = None,
                    mag_radius: Optional[int] = None) -> 'CalibrationOffsets':
        """Build offsets from signed physical values."""
        return cls(
            accel=tuple(to_unsigned16(v) for v in accel),
            mag=tuple(to_unsigned16(v) for v in mag),
            gyro=tuple(to_unsigned16(v) for v in gyro),
            accel_radius=None if accel_radius is None else to_unsigned16(accel_radius),
            mag_radius=None if mag_radius is None else to_unsigned16(mag_radius),
        )

    def to_bytes(self) -> bytes:
        """Encode to the device register block (18 or 22 bytes)."""
        values = self.raw_values()
        return struct.pack(f"<{len(values)}H", *values)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'CalibrationOffsets':
        """Decode a device register block (18 or 22 bytes)."""
        data = bytes(data)
        check_record_length(data)
        values = struct.unpack(f"<{len(data) // 2}H", data)
        radii = values[9:11] if len(values) == 11 else (None, None)
        return cls(
            accel=values[0:3],
            mag=values[3:6],
            gyro=values[6:9],
            accel_radius=radii[0],
            mag_radius=radii[1],
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        d = {
            "record": base64.b64encode(self.to_bytes()).decode('ascii'),
            "accel_offset": list(self.signed_accel),
            "mag_offset": list(self.signed_mag),
            "gyro_offset": list(self.signed_gyro),
        }
        if self.has_radii:
            d["accel_radius"] = self.signed_accel_radius
            d["mag_radius"] = self.signed_mag_radius
        return d

    @classmethod
    def from_dict(cls, data: dict) -> 'CalibrationOffsets':
        """
        Create from dictionary.

        Only the base64 ``record`` is trusted; the per-axis lists are for
        human readers.
        """
        if "record" not in data:
            raise InvalidCalibrationRecord("Calibration dict has no 'record' entry")
        return cls.from_bytes(base64.b64decode(data["record"]))


@dataclass(frozen=True)
class CalibrationProfile:
    """Calibration status together with the offsets from the same device."""
    status: CalibrationStatus = field(default_factory=CalibrationStatus)
    offsets: CalibrationOffsets = field(default_factory=CalibrationOffsets)


# =============================================================================
# Persistence record
# =============================================================================

def check_record_length(data: bytes):
    """Reject anything that is not an 18 or 22-byte offset block."""
    if len(data) not in CALIBRATION_RECORD_LENGTHS:
        raise InvalidCalibrationRecord(
            f"Calibration record must be {CALIBRATION_OFFSETS_LEN} or "
            f"{CALIBRATION_BLOCK_LEN} bytes, got {len(data)}"
        )


def encode_for_persistence(calibration: Union[CalibrationProfile, CalibrationOffsets]) -> bytes:
    """Return the exact device byte record for external storage."""
    if isinstance(calibration, CalibrationProfile):
        calibration = calibration.offsets
    return calibration.to_bytes()


def decode_from_persistence(data: bytes) -> CalibrationOffsets:
    """Parse a stored byte record; the length must be 18 or 22."""
    return CalibrationOffsets.from_bytes(data)


# =============================================================================
# Register transactions
# =============================================================================

def read_status(session: BusSession,
                profile: Optional[CalibrationProfile] = None) -> CalibrationProfile:
    """
    Read the calibration status byte.

    Offsets are carried over unchanged from ``profile`` (zeros by default);
    the device keeps status and offsets in separate registers.

    Raises:
        CalibrationReadError: block == 'status'
    """
    try:
        value = session.read_byte(BNO055_CALIB_STAT)
    except BusError as e:
        raise CalibrationReadError("status") from e

    status = decode_status(value)
    logger.debug(f"Calibration status: sys={status.system} gyro={status.gyro} "
                 f"accel={status.accel} mag={status.mag}")
    return replace(profile or CalibrationProfile(), status=status)


def read_offsets(session: BusSession,
                 profile: Optional[CalibrationProfile] = None,
                 include_radii: bool = True) -> CalibrationProfile:
    """
    Read the calibration offset block.

    Args:
        session: Open bus session
        profile: Profile whose status is carried over
        include_radii: Read the 22-byte block including radii (else 18 bytes)

    Raises:
        CalibrationReadError: block == 'offsets'
    """
    length = CALIBRATION_BLOCK_LEN if include_radii else CALIBRATION_OFFSETS_LEN
    try:
        data = session.read(BNO055_ACC_OFFSET_X_LSB, length)
    except BusError as e:
        raise CalibrationReadError("offsets") from e

    offsets = CalibrationOffsets.from_bytes(data)
    logger.debug(f"Accelerometer offset: {offsets.signed_accel}")
    logger.debug(f"Magnetometer offset: {offsets.signed_mag}")
    logger.debug(f"Gyroscope offset: {offsets.signed_gyro}")
    return replace(profile or CalibrationProfile(), offsets=offsets)


def read_profile(session: BusSession, include_radii: bool = True) -> CalibrationProfile:
    """Read status and offsets."""
    profile = read_status(session)
    return read_offsets(session, profile, include_radii=include_radii)


def write_offsets(session: BusSession, record: Union[bytes, CalibrationOffsets]):
    """
    Write a calibration record back to the offset registers.

    The sensor only accepts offset writes in CONFIG mode, so the write runs
    inside ``modes.config_mode`` and the previous mode is restored afterwards.

    Raises:
        InvalidCalibrationRecord: record is not 18 or 22 bytes (nothing written)
        BusError: the write failed
    """
    if isinstance(record, CalibrationOffsets):
        record = record.to_bytes()
    record = bytes(record)
    check_record_length(record)

    with config_mode(session):
        session.write(BNO055_ACC_OFFSET_X_LSB, record)
    logger.info(f"Calibration offsets written to sensor ({len(record)} bytes)")
