"""
BNO055 Register Map
===================

Fixed page-0 register addresses, operating/power mode values and datasheet
constants for the Bosch BNO055 absolute orientation sensor.

Multi-byte fields are little-endian (LSB at the lower address).
"""

from enum import IntEnum


# =============================================================================
# Bus addressing
# =============================================================================

BNO055_ADDR_LOW = 0x28   # COM3 = LOW (default)
BNO055_ADDR_HIGH = 0x29  # COM3 = HIGH


# =============================================================================
# Page 0 registers
# =============================================================================

BNO055_CHIP_ID = 0x00
BNO055_ACC_ID = 0x01
BNO055_MAG_ID = 0x02
BNO055_GYR_ID = 0x03
BNO055_SW_REV_ID_LSB = 0x04
BNO055_SW_REV_ID_MSB = 0x05
BNO055_BL_REV_ID = 0x06
BNO055_PAGE_ID = 0x07

# Sensor data outputs
BNO055_ACC_DATA_X_LSB = 0x08
BNO055_MAG_DATA_X_LSB = 0x0E
BNO055_GYR_DATA_X_LSB = 0x14
BNO055_EUL_HEADING_LSB = 0x1A
BNO055_QUA_DATA_W_LSB = 0x20
BNO055_LIA_DATA_X_LSB = 0x28
BNO055_GRV_DATA_X_LSB = 0x2E

BNO055_TEMP = 0x34
BNO055_CALIB_STAT = 0x35
BNO055_ST_RESULT = 0x36

BNO055_SYS_STATUS = 0x39
BNO055_SYS_ERR = 0x3A
BNO055_UNIT_SEL = 0x3B

BNO055_OPR_MODE = 0x3D
BNO055_PWR_MODE = 0x3E
BNO055_SYS_TRIGGER = 0x3F

# Calibration offsets, 3x3 int16 followed by two int16 radii
BNO055_ACC_OFFSET_X_LSB = 0x55
BNO055_MAG_OFFSET_X_LSB = 0x5B
BNO055_GYR_OFFSET_X_LSB = 0x61
BNO055_ACC_RADIUS_LSB = 0x67
BNO055_MAG_RADIUS_LSB = 0x69


# =============================================================================
# Register values
# =============================================================================

# Expected identity bytes
BNO055_CHIP_ID_VALUE = 0xA0
BNO055_ACC_ID_VALUE = 0xFB
BNO055_MAG_ID_VALUE = 0x32
BNO055_GYR_ID_VALUE = 0x0F

SYS_TRIGGER_RESET = 0x20

OPR_MODE_MASK = 0x0F
ST_RESULT_MASK = 0x0F
ST_RESULT_ALL_PASSED = 0x0F

# Offset block sizes
CALIBRATION_OFFSETS_LEN = 18
CALIBRATION_BLOCK_LEN = 22   # offsets + accel/mag radius

# SMBus block transfers are limited to 32 data bytes
SMBUS_BLOCK_MAX = 32


class OperationMode(IntEnum):
    """Operating modes written to OPR_MODE (0x3D)."""
    CONFIG = 0x00
    ACCONLY = 0x01
    MAGONLY = 0x02
    GYROONLY = 0x03
    ACCMAG = 0x04
    ACCGYRO = 0x05
    MAGGYRO = 0x06
    AMG = 0x07
    IMU = 0x08
    COMPASS = 0x09
    M4G = 0x0A
    NDOF_FMC_OFF = 0x0B
    NDOF = 0x0C  # 9-DOF fusion

    @property
    def is_fusion(self) -> bool:
        """True for modes where the on-chip fusion processor runs."""
        return self >= OperationMode.IMU


class PowerMode(IntEnum):
    """Power modes written to PWR_MODE (0x3E)."""
    NORMAL = 0x00
    LOW = 0x01
    SUSPEND = 0x02


# =============================================================================
# Timing (seconds)
# =============================================================================

MODE_SETTLE_S = 0.030    # after any OPR_MODE write
POWER_SETTLE_S = 0.010   # after PWR_MODE write
RESET_SETTLE_S = 0.050   # after SYS_TRIGGER reset
BOOT_DELAY_S = 1.0       # wait before the second chip-ID read
