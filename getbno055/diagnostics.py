"""
BNO055 Diagnostics
==================

Reads and decodes the device information block: chip and component IDs,
firmware and bootloader revisions, operating mode, system status, self-test
result, system error, unit selection and die temperature.

System status and system error are closed enumerations. A byte outside the
documented set is reported as OutOfRangeDiagnostic, never mapped to a
default label.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple
import logging

from .bus import BusSession
from .errors import OutOfRangeDiagnostic
from .modes import decode_mode
from .registers import (
    BNO055_ACC_ID_VALUE,
    BNO055_CHIP_ID,
    BNO055_CHIP_ID_VALUE,
    BNO055_GYR_ID_VALUE,
    BNO055_MAG_ID_VALUE,
    BNO055_OPR_MODE,
    BNO055_ST_RESULT,
    BNO055_SYS_ERR,
    BNO055_SYS_STATUS,
    BNO055_TEMP,
    BNO055_UNIT_SEL,
    OPR_MODE_MASK,
    ST_RESULT_ALL_PASSED,
    ST_RESULT_MASK,
    OperationMode,
)

logger = logging.getLogger(__name__)

# Chip ID through bootloader revision
INFO_BLOCK_LEN = 7


class SystemStatus(IntEnum):
    """SYS_STATUS (0x39) values."""
    IDLE = 0x00
    SYSTEM_ERROR = 0x01
    INITIALIZING_PERIPHERALS = 0x02
    SYSTEM_INITIALIZATION = 0x03
    EXECUTING_SELF_TEST = 0x04
    FUSION_RUNNING = 0x05
    RUNNING_NO_FUSION = 0x06


class SystemErrorCode(IntEnum):
    """SYS_ERR (0x3A) values."""
    NO_ERROR = 0x00
    PERIPHERAL_INIT_ERROR = 0x01
    SYSTEM_INIT_ERROR = 0x02
    SELF_TEST_FAILED = 0x03
    REGISTER_VALUE_OUT_OF_RANGE = 0x04
    REGISTER_ADDRESS_OUT_OF_RANGE = 0x05
    REGISTER_WRITE_ERROR = 0x06
    LOW_POWER_NOT_AVAILABLE = 0x07
    ACCEL_POWER_MODE_NOT_AVAILABLE = 0x08
    FUSION_CONFIG_ERROR = 0x09
    SENSOR_CONFIG_ERROR = 0x0A


def decode_system_status(value: int) -> SystemStatus:
    try:
        return SystemStatus(value)
    except ValueError:
        raise OutOfRangeDiagnostic("system status", value) from None


def decode_system_error(value: int) -> SystemErrorCode:
    try:
        return SystemErrorCode(value)
    except ValueError:
        raise OutOfRangeDiagnostic("system error", value) from None


# =============================================================================
# Bitmask decoders
# =============================================================================

@dataclass(frozen=True)
class SelfTestResult:
    """Power-on self-test result; True means the component passed."""
    accel: bool
    mag: bool
    gyro: bool
    mcu: bool

    @property
    def passed(self) -> bool:
        return self.accel and self.mag and self.gyro and self.mcu


def decode_self_test(mask: int) -> SelfTestResult:
    """Decode ST_RESULT: bit0 accel, bit1 mag, bit2 gyro, bit3 MCU."""
    return SelfTestResult(
        accel=bool(mask & 0x01),
        mag=bool(mask & 0x02),
        gyro=bool(mask & 0x04),
        mcu=bool(mask & 0x08),
    )


@dataclass(frozen=True)
class UnitSelection:
    """Output units selected by UNIT_SEL (0x3B)."""
    raw: int
    accel_unit: str        # "m/s2" or "mg"
    gyro_unit: str         # "dps" or "rps"
    euler_unit: str        # "degrees" or "radians"
    temperature_unit: str  # "C" or "F"
    orientation: str       # "windows" or "android"


def decode_units(value: int) -> UnitSelection:
    """
    Decode the unit-selection byte.

    Bit 0 acceleration, bit 1 angular rate, bit 2 Euler angles,
    bit 4 temperature, bit 7 orientation convention. Bits 3, 5, 6 unused.
    """
    return UnitSelection(
        raw=value,
        accel_unit="mg" if value & 0x01 else "m/s2",
        gyro_unit="rps" if value & 0x02 else "dps",
        euler_unit="radians" if value & 0x04 else "degrees",
        temperature_unit="F" if value & 0x10 else "C",
        orientation="android" if value & 0x80 else "windows",
    )


# =============================================================================
# Device info
# =============================================================================

@dataclass(frozen=True)
class DeviceInfo:
    """
    Snapshot of the BNO055 identity and status registers.

    Enumerated fields hold the raw register values; the decoded properties
    raise OutOfRangeDiagnostic for values outside the documented set.
    """
    chip_id: int
    acc_id: int
    mag_id: int
    gyr_id: int
    sw_rev_lsb: int
    sw_rev_msb: int
    bl_rev: int
    opr_mode: int          # low 4 bits of OPR_MODE
    sys_status: int
    self_test_mask: int    # low 4 bits of ST_RESULT
    sys_error: int
    unit_sel: int
    temperature_raw: int   # signed, 1 LSB = 1 C or 2 F

    @property
    def firmware_major(self) -> int:
        return self.sw_rev_msb

    @property
    def firmware_minor(self) -> int:
        return self.sw_rev_lsb

    @property
    def firmware_revision(self) -> int:
        return (self.sw_rev_msb << 8) | self.sw_rev_lsb

    @property
    def components_ok(self) -> bool:
        """True if all four identity bytes match the BNO055 defaults."""
        return (self.chip_id == BNO055_CHIP_ID_VALUE and
                self.acc_id == BNO055_ACC_ID_VALUE and
                self.mag_id == BNO055_MAG_ID_VALUE and
                self.gyr_id == BNO055_GYR_ID_VALUE)

    @property
    def mode(self) -> OperationMode:
        return decode_mode(self.opr_mode)

    @property
    def status(self) -> SystemStatus:
        return decode_system_status(self.sys_status)

    @property
    def error(self) -> SystemErrorCode:
        return decode_system_error(self.sys_error)

    @property
    def self_test(self) -> SelfTestResult:
        return decode_self_test(self.self_test_mask)

    @property
    def self_test_passed(self) -> bool:
        return self.self_test_mask == ST_RESULT_ALL_PASSED

    @property
    def units(self) -> UnitSelection:
        return decode_units(self.unit_sel)

    @property
    def temperature(self) -> Tuple[int, str]:
        """Die temperature and its unit, e.g. (24, "C")."""
        unit = self.units.temperature_unit
        scale = 2 if unit == "F" else 1
        return self.temperature_raw * scale, unit


def _signed8(value: int) -> int:
    return value - 0x100 if value >= 0x80 else value


def read_info(session: BusSession, strict: bool = True) -> DeviceInfo:
    """
    Read the device information registers.

    Args:
        session: Open bus session
        strict: Raise OutOfRangeDiagnostic as soon as an enumerated register
            holds an unknown value. With strict=False the raw values are
            returned and the decoded properties raise on access.

    Raises:
        BusError: any register read failed
        OutOfRangeDiagnostic: (strict only) unknown mode/status/error value
    """
    block = session.read(BNO055_CHIP_ID, INFO_BLOCK_LEN)
    logger.debug(f"Sensor CHIP ID: [0x{block[0]:02X}] ACC ID: [0x{block[1]:02X}] "
                 f"MAG ID: [0x{block[2]:02X}] GYR ID: [0x{block[3]:02X}]")
    logger.debug(f"SW Rev-ID: [0x{block[5]:02X}{block[4]:02X}] Bootloader: [0x{block[6]:02X}]")

    opr_mode = session.read_byte(BNO055_OPR_MODE) & OPR_MODE_MASK
    sys_status = session.read_byte(BNO055_SYS_STATUS)
    self_test = session.read_byte(BNO055_ST_RESULT) & ST_RESULT_MASK
    sys_error = session.read_byte(BNO055_SYS_ERR)
    unit_sel = session.read_byte(BNO055_UNIT_SEL)
    temperature = _signed8(session.read_byte(BNO055_TEMP))

    info = DeviceInfo(
        chip_id=block[0],
        acc_id=block[1],
        mag_id=block[2],
        gyr_id=block[3],
        sw_rev_lsb=block[4],
        sw_rev_msb=block[5],
        bl_rev=block[6],
        opr_mode=opr_mode,
        sys_status=sys_status,
        self_test_mask=self_test,
        sys_error=sys_error,
        unit_sel=unit_sel,
        temperature_raw=temperature,
    )
    logger.debug(f"Operation mode: [0x{opr_mode:02X}] System status: [0x{sys_status:02X}] "
                 f"Self-test: [0x{self_test:02X}] Error: [0x{sys_error:02X}] "
                 f"Units: [0x{unit_sel:02X}] Temperature: [{temperature}]")

    if strict:
        decode_mode(opr_mode)
        decode_system_status(sys_status)
        decode_system_error(sys_error)
    return info
