"""
Shared test fixtures for BNO055 driver unit tests.
"""

import pytest

from getbno055.bus import BusSession
from getbno055.registers import (
    BNO055_ACC_ID_VALUE,
    BNO055_CHIP_ID_VALUE,
    BNO055_GYR_ID_VALUE,
    BNO055_MAG_ID_VALUE,
)


class FakeBus:
    """
    In-memory stand-in for smbus2.SMBus backed by a 256-byte register file.

    Records every transaction in ``log`` as (op, register, payload/length).
    """

    def __init__(self):
        self.registers = bytearray(256)
        self.registers[0x00] = BNO055_CHIP_ID_VALUE
        self.registers[0x01] = BNO055_ACC_ID_VALUE
        self.registers[0x02] = BNO055_MAG_ID_VALUE
        self.registers[0x03] = BNO055_GYR_ID_VALUE
        self.registers[0x04] = 0x11   # SW rev LSB
        self.registers[0x05] = 0x03   # SW rev MSB
        self.registers[0x06] = 0x15   # bootloader
        self.log = []
        self.chip_ids = []            # successive chip-ID answers, then registers[0]
        self.short_reads = {}         # register -> bytes actually returned
        self.fail_registers = set()   # registers raising OSError
        self.clock = None             # FakeClock; enables the reboot model below
        self.boot_time = 0.0          # seconds the sensor NACKs after a SYS_TRIGGER reset
        self.busy_until = 0.0         # NACK everything until clock.now reaches this
        self.closed = False

    def _check_busy(self):
        if self.clock is not None and self.clock.now < self.busy_until:
            raise OSError(121, "Remote I/O error")

    def read_i2c_block_data(self, address, register, length):
        self.log.append(("read", register, length))
        self._check_busy()
        if register in self.fail_registers:
            raise OSError(121, "Remote I/O error")
        data = list(self.registers[register:register + length])
        if register == 0x00 and length == 1 and self.chip_ids:
            data = [self.chip_ids.pop(0)]
        if register in self.short_reads:
            data = data[:self.short_reads[register]]
        return data

    def write_byte_data(self, address, register, value):
        self.log.append(("write", register, bytes([value])))
        self._check_busy()
        if register in self.fail_registers:
            raise OSError(121, "Remote I/O error")
        self.registers[register] = value
        if register == 0x3F and value & 0x20 and self.clock is not None:
            self.busy_until = self.clock.now + self.boot_time

    def write_i2c_block_data(self, address, register, data):
        self.log.append(("write", register, bytes(data)))
        self._check_busy()
        if register in self.fail_registers:
            raise OSError(121, "Remote I/O error")
        self.registers[register:register + len(data)] = bytes(data)

    def close(self):
        self.closed = True

    def writes(self):
        return [(reg, payload) for op, reg, payload in self.log if op == "write"]

    def reads(self):
        return [(reg, length) for op, reg, length in self.log if op == "read"]


class FakeClock:
    """Records blocking sleeps instead of waiting."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds

    def time(self) -> float:
        return self.now

    @property
    def total(self) -> float:
        return sum(self.sleeps)


@pytest.fixture
def fake_bus():
    """Register-file bus with BNO055 identity bytes preloaded."""
    return FakeBus()


@pytest.fixture
def clock():
    """Fake clock for settle delays."""
    return FakeClock()


@pytest.fixture
def session(fake_bus, clock):
    """Open session on the fake bus at the default address."""
    return BusSession(fake_bus, 0x28, sleep=clock.sleep, boot_delay_s=1.0,
                      clock=clock.time)
