"""
BNO055 Bus Session
==================

Register access primitives and session management for a BNO055 on a Linux
I2C bus.

Every transaction selects a register by address and then transfers an exact
number of bytes. A short transfer or a bus-level OSError is fatal for that
call and surfaces as BusError; nothing is padded or retried here. Settle
delays are the caller's job and go through the session's ``sleep`` callable
so tests can substitute a fake clock.

Requirements:
- smbus2: pip install smbus2
- I2C enabled on Pi: sudo raspi-config -> Interface Options -> I2C
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional
import logging

from .errors import BusError, BusOpenError, DeviceNotPresent
from .registers import (
    BNO055_ADDR_LOW,
    BNO055_CHIP_ID,
    BNO055_CHIP_ID_VALUE,
    BOOT_DELAY_S,
    SMBUS_BLOCK_MAX,
)

logger = logging.getLogger(__name__)

# Try to import smbus2 (optional for testing without hardware)
try:
    import smbus2
    HAS_SMBUS = True
except ImportError:
    smbus2 = None
    HAS_SMBUS = False


@dataclass
class BusConfig:
    """Configuration for the BNO055 I2C connection."""
    i2c_bus: int = 1                     # I2C bus number (1 for Pi)
    i2c_address: int = BNO055_ADDR_LOW   # 0x28 or 0x29 per COM3 pin
    boot_delay_s: float = BOOT_DELAY_S   # wait before retrying the chip-ID read


class BusSession:
    """
    An open I2C bus bound to one BNO055 slave address.

    Not thread-safe; one session owns the bus for the lifetime of the
    program. Use ``BusSession.open`` rather than the constructor.
    """

    def __init__(self, bus, address: int, bus_num: int = 1,
                 sleep: Callable[[float], None] = time.sleep,
                 boot_delay_s: float = BOOT_DELAY_S,
                 clock: Callable[[], float] = time.time):
        self._bus = bus
        self.address = address
        self.bus_num = bus_num
        self.sleep = sleep
        self.boot_delay_s = boot_delay_s
        self.clock = clock

    @classmethod
    def open(cls, address: int = BNO055_ADDR_LOW, bus: int = 1,
             sleep: Callable[[float], None] = time.sleep,
             boot_delay_s: float = BOOT_DELAY_S,
             clock: Callable[[], float] = time.time) -> 'BusSession':
        """
        Open the I2C bus and bind the slave address.

        Args:
            address: 7-bit slave address (0x28 or 0x29)
            bus: I2C bus number (/dev/i2c-N)
            sleep: Blocking delay function used for all settle times
            boot_delay_s: Delay before the second identity read
            clock: Wall-clock source used to timestamp measurements

        Returns:
            An open BusSession

        Raises:
            BusOpenError: smbus2 missing or bus device unavailable
        """
        if not 0 <= address <= 0x7F:
            raise ValueError(f"I2C address must be 7-bit, got 0x{address:X}")

        if not HAS_SMBUS:
            logger.error("smbus2 not installed. Run: pip install smbus2")
            raise BusOpenError("smbus2 not installed")

        try:
            handle = smbus2.SMBus(bus)
        except OSError as e:
            logger.error(f"Failed to open I2C bus {bus}: {e}")
            raise BusOpenError(f"Failed to open I2C bus /dev/i2c-{bus}: {e}") from e

        logger.debug(f"Opened I2C bus {bus}, sensor address 0x{address:02X}")
        return cls(handle, address, bus_num=bus, sleep=sleep,
                   boot_delay_s=boot_delay_s, clock=clock)

    @classmethod
    def from_config(cls, config: BusConfig,
                    sleep: Callable[[float], None] = time.sleep,
                    clock: Callable[[], float] = time.time) -> 'BusSession':
        """Open a session from a BusConfig."""
        return cls.open(config.i2c_address, bus=config.i2c_bus, sleep=sleep,
                        boot_delay_s=config.boot_delay_s, clock=clock)

    @property
    def is_open(self) -> bool:
        return self._bus is not None

    # -------------------------------------------------------------------------
    # Register access primitives
    # -------------------------------------------------------------------------

    def read(self, register: int, count: int) -> bytes:
        """
        Read ``count`` consecutive bytes starting at ``register``.

        Raises:
            BusError: transfer failed or returned a different byte count
        """
        if not 1 <= count <= SMBUS_BLOCK_MAX:
            raise ValueError(f"Read length must be 1..{SMBUS_BLOCK_MAX}, got {count}")
        bus = self._require_bus()

        try:
            data = bus.read_i2c_block_data(self.address, register, count)
        except OSError as e:
            logger.error(f"I2C read failure for register 0x{register:02X}: {e}")
            raise BusError(register, count, reason=str(e)) from e

        if data is None or len(data) != count:
            actual = 0 if data is None else len(data)
            logger.error(f"I2C short read for register 0x{register:02X}: "
                         f"{actual}/{count} bytes")
            raise BusError(register, count, actual)

        result = bytes(data)
        logger.debug(f"Read  [0x{register:02X}] -> {result.hex()}")
        return result

    def write(self, register: int, payload: bytes):
        """
        Write ``payload`` to consecutive registers starting at ``register``.

        Raises:
            BusError: the bus rejected the transaction
        """
        payload = bytes(payload)
        if not 1 <= len(payload) <= SMBUS_BLOCK_MAX:
            raise ValueError(f"Write length must be 1..{SMBUS_BLOCK_MAX}, got {len(payload)}")
        bus = self._require_bus()

        logger.debug(f"Write [0x{register:02X}] <- {payload.hex()}")
        try:
            if len(payload) == 1:
                bus.write_byte_data(self.address, register, payload[0])
            else:
                bus.write_i2c_block_data(self.address, register, list(payload))
        except OSError as e:
            logger.error(f"I2C write failure for register 0x{register:02X}: {e}")
            raise BusError(register, len(payload), reason=str(e)) from e

    def read_byte(self, register: int) -> int:
        """Read a single byte from register."""
        return self.read(register, 1)[0]

    def write_byte(self, register: int, value: int):
        """Write a single byte to register."""
        self.write(register, bytes([value & 0xFF]))

    # -------------------------------------------------------------------------
    # Session management
    # -------------------------------------------------------------------------

    def verify_identity(self) -> int:
        """
        Confirm a BNO055 answers at the bound address.

        The sensor needs up to ~650ms to boot after power-up, so a mismatched
        chip ID is retried exactly once after ``boot_delay_s``.

        Returns:
            The chip ID byte (always 0xA0)

        Raises:
            DeviceNotPresent: chip ID mismatched on both reads
            BusError: a read transaction failed
        """
        chip_id = self.read_byte(BNO055_CHIP_ID)
        if chip_id == BNO055_CHIP_ID_VALUE:
            return chip_id

        logger.warning(f"CHIP_ID is 0x{chip_id:02X}, expected 0x{BNO055_CHIP_ID_VALUE:02X}. "
                       f"Retrying in {self.boot_delay_s:.2f}s")
        self.sleep(self.boot_delay_s)

        chip_id = self.read_byte(BNO055_CHIP_ID)
        if chip_id != BNO055_CHIP_ID_VALUE:
            logger.error(f"2nd CHIP_ID read is 0x{chip_id:02X}, "
                         f"expected 0x{BNO055_CHIP_ID_VALUE:02X}")
            raise DeviceNotPresent(chip_id, BNO055_CHIP_ID_VALUE)
        return chip_id

    def close(self):
        """Close the I2C bus."""
        if self._bus is not None:
            bus, self._bus = self._bus, None
            bus.close()
            logger.debug(f"Closed I2C bus {self.bus_num}")

    def _require_bus(self):
        if self._bus is None:
            raise RuntimeError("Bus session is closed")
        return self._bus

    def __enter__(self) -> 'BusSession':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
