"""
BNO055 Driver
=============

High-level access to a BNO055 on the Pi's I2C bus. Sequences the bus
session, mode control, calibration and diagnostics modules for a calling
layer:

    with BNO055(BNO055Config(i2c_address=0x28)) as bno:
        bno.apply_defaults()
        info = bno.info()
        record = bno.save_calibration()

Wiring:
    BNO055     ->  Raspberry Pi
    VIN        ->  3.3V (Pin 1)
    GND        ->  GND (Pin 6)
    SDA        ->  SDA (Pin 3, GPIO 2)
    SCL        ->  SCL (Pin 5, GPIO 3)
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional, Union
import logging

from . import calibration, diagnostics, measurement, modes
from .bus import BusConfig, BusSession
from .calibration import CalibrationOffsets, CalibrationProfile, CalibrationStatus
from .diagnostics import DeviceInfo
from .measurement import Measurement, SensorKind
from .registers import OperationMode

logger = logging.getLogger(__name__)


@dataclass
class BNO055Config(BusConfig):
    """Configuration for a BNO055 connection."""
    # Mode set by apply_defaults() (NDOF = 9-DOF fusion)
    operation_mode: OperationMode = OperationMode.NDOF

    # Read/write the 22-byte offset block including radii
    include_radii: bool = True


class BNO055:
    """
    BNO055 register driver.

    Holds no device state besides the open session; every query goes to
    the sensor.
    """

    def __init__(self, config: Optional[BNO055Config] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.time):
        self.config = config or BNO055Config()
        self._sleep = sleep
        self._clock = clock
        self._session: Optional[BusSession] = None

    @property
    def session(self) -> BusSession:
        if self._session is None:
            raise RuntimeError("BNO055 not open")
        return self._session

    def open(self) -> 'BNO055':
        """
        Open the bus and verify the sensor identity.

        Raises:
            BusOpenError: bus unavailable
            DeviceNotPresent: chip ID wrong after one retry
        """
        session = BusSession.from_config(self.config, sleep=self._sleep, clock=self._clock)
        try:
            session.verify_identity()
        except Exception:
            session.close()
            raise
        self._session = session
        logger.info(f"BNO055 found on I2C bus {self.config.i2c_bus} "
                    f"at 0x{self.config.i2c_address:02X}")
        return self

    def close(self):
        """Close the I2C bus."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> 'BNO055':
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # -------------------------------------------------------------------------
    # Mode & power
    # -------------------------------------------------------------------------

    def apply_defaults(self):
        """Configured operating mode, normal power, register page 0."""
        modes.apply_defaults(self.session, self.config.operation_mode)

    def set_mode(self, mode: OperationMode):
        modes.set_mode(self.session, mode)

    def get_mode(self) -> OperationMode:
        return modes.get_mode(self.session)

    def reset(self, verify: bool = True):
        """
        Reset the sensor.

        The sensor does not acknowledge I2C traffic while it reboots
        (~650ms), so with verify=True the chip ID is only checked after
        ``boot_delay_s``.

        Args:
            verify: Re-check the chip ID once the sensor has booted
        """
        modes.reset(self.session)
        if verify:
            self.session.sleep(self.session.boot_delay_s)
            self.session.verify_identity()

    # -------------------------------------------------------------------------
    # Calibration
    # -------------------------------------------------------------------------

    def calibration_status(self) -> CalibrationStatus:
        return calibration.read_status(self.session).status

    def calibration(self) -> CalibrationProfile:
        """Read calibration status and offsets."""
        return calibration.read_profile(self.session, include_radii=self.config.include_radii)

    def save_calibration(self) -> bytes:
        """
        Read the offset block in CONFIG mode and return it as a record.

        The previous operating mode is restored afterwards.
        """
        with modes.config_mode(self.session):
            profile = calibration.read_offsets(self.session,
                                               include_radii=self.config.include_radii)
        return calibration.encode_for_persistence(profile)

    def restore_calibration(self, record: Union[bytes, CalibrationOffsets]):
        """
        Write a saved record back to the sensor.

        The record length is validated before the sensor is touched.
        """
        calibration.write_offsets(self.session, record)

    # -------------------------------------------------------------------------
    # Diagnostics & data
    # -------------------------------------------------------------------------

    def info(self, strict: bool = True) -> DeviceInfo:
        return diagnostics.read_info(self.session, strict=strict)

    def read(self, kind: SensorKind) -> Measurement:
        return measurement.read_measurement(self.session, kind)
