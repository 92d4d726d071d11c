"""
Tests for BNO055 Sensor Data Decoding
=====================================
"""

import pytest

from getbno055 import measurement
from getbno055.diagnostics import decode_units
from getbno055.errors import BusError
from getbno055.measurement import SensorKind, decode_vector
from getbno055.registers import (
    BNO055_EUL_HEADING_LSB,
    BNO055_QUA_DATA_W_LSB,
    BNO055_UNIT_SEL,
)


class TestDecodeVector:
    """Tests for raw int16 block decoding."""

    def test_euler_degrees(self):
        """Test heading=180, roll=10, pitch=5 in 1/16 degree units."""
        data = bytes([0x40, 0x0B, 0xA0, 0x00, 0x50, 0x00])
        m = decode_vector(data, SensorKind.EULER, decode_units(0x00))
        assert m.raw == (2880, 160, 80)
        assert m.values[0] == pytest.approx(180.0)
        assert m.values[1] == pytest.approx(10.0)
        assert m.values[2] == pytest.approx(5.0)
        assert m.unit == "deg"

    def test_euler_radians(self):
        """Test 900 LSB per radian."""
        data = bytes([0x84, 0x03, 0x00, 0x00, 0x00, 0x00])
        m = decode_vector(data, SensorKind.EULER, decode_units(0x04))
        assert m.values[0] == pytest.approx(1.0)
        assert m.unit == "rad"

    def test_accel_negative(self):
        """Test signed little-endian decoding."""
        data = bytes([0x9C, 0xFF, 0x00, 0x00, 0xD4, 0x03])
        m = decode_vector(data, SensorKind.ACCEL, decode_units(0x00))
        assert m.raw == (-100, 0, 980)
        assert m.values[0] == pytest.approx(-1.0)
        assert m.values[2] == pytest.approx(9.8)
        assert m.unit == "m/s2"

    def test_accel_milli_g(self):
        """Test 1 LSB per mg."""
        data = bytes([0xE8, 0x03, 0x00, 0x00, 0x00, 0x00])
        m = decode_vector(data, SensorKind.LINEAR_ACCEL, decode_units(0x01))
        assert m.values[0] == pytest.approx(1000.0)
        assert m.unit == "mg"

    def test_gyro_units(self):
        """Test dps and rps scaling."""
        data = bytes([0x10, 0x00, 0x00, 0x00, 0x00, 0x00])
        assert decode_vector(data, SensorKind.GYRO, decode_units(0x00)).values[0] == pytest.approx(1.0)
        assert decode_vector(data, SensorKind.GYRO, decode_units(0x02)).unit == "rps"

    def test_quaternion(self):
        """Test the 4-value quaternion block."""
        data = bytes([0x00, 0x40, 0x00, 0x00, 0x00, 0x00, 0x00, 0xC0])
        m = decode_vector(data, SensorKind.QUATERNION, decode_units(0x00))
        assert m.raw == (16384, 0, 0, -16384)
        assert list(m.values) == pytest.approx([1.0, 0.0, 0.0, -1.0])

    def test_wrong_length(self):
        """Test a block of the wrong size is rejected."""
        with pytest.raises(ValueError):
            decode_vector(b'\x00' * 4, SensorKind.MAG, decode_units(0x00))


class TestReadMeasurement:
    """Tests for reading sensor data registers."""

    def test_reads_units_then_block(self, session, fake_bus, clock):
        """Test the unit selection is read fresh before the data block."""
        fake_bus.registers[BNO055_EUL_HEADING_LSB:BNO055_EUL_HEADING_LSB + 6] = \
            bytes([0x40, 0x0B, 0xA0, 0x00, 0x50, 0x00])
        m = measurement.read_measurement(session, SensorKind.EULER)
        assert fake_bus.reads() == [(BNO055_UNIT_SEL, 1), (BNO055_EUL_HEADING_LSB, 6)]
        assert m.values[0] == pytest.approx(180.0)
        assert m.timestamp == clock.now

    def test_timestamp_from_session_clock(self, session, clock):
        """Test the measurement is stamped with the session's clock."""
        clock.now = 123.5
        m = measurement.read_measurement(session, SensorKind.GYRO)
        assert m.timestamp == 123.5

    def test_accepts_short_name(self, session, fake_bus):
        """Test kinds can be given by their short name."""
        m = measurement.read_measurement(session, "qua")
        assert m.kind is SensorKind.QUATERNION
        assert fake_bus.reads()[-1] == (BNO055_QUA_DATA_W_LSB, 8)

    def test_truncated_block(self, session, fake_bus):
        """Test a short data read raises BusError."""
        fake_bus.short_reads[BNO055_EUL_HEADING_LSB] = 3
        with pytest.raises(BusError):
            measurement.read_measurement(session, SensorKind.EULER)
