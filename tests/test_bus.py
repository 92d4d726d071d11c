"""
Tests for BNO055 Bus Session
============================

Tests for the register access primitives and session management:
- Opening the bus (mocked smbus2)
- Exact-length reads and writes
- Chip-ID verification with a single retry
"""

import pytest
from unittest.mock import MagicMock, patch

from getbno055.bus import BusConfig, BusSession
from getbno055.errors import BusError, BusOpenError, DeviceNotPresent
from getbno055.registers import BNO055_CHIP_ID_VALUE


# =============================================================================
# Test Opening the Bus
# =============================================================================

class TestOpen:
    """Tests for BusSession.open with a mocked smbus2."""

    @pytest.fixture
    def mock_smbus(self):
        """Create a mock SMBus."""
        with patch('getbno055.bus.smbus2') as mock:
            mock_bus = MagicMock()
            mock.SMBus.return_value = mock_bus
            yield mock

    @pytest.fixture
    def mock_has_smbus(self):
        """Mock HAS_SMBUS to True."""
        with patch('getbno055.bus.HAS_SMBUS', True):
            yield

    def test_open_success(self, mock_smbus, mock_has_smbus):
        """Test bus number and address are bound."""
        session = BusSession.open(0x29, bus=3)
        mock_smbus.SMBus.assert_called_once_with(3)
        assert session.address == 0x29
        assert session.bus_num == 3
        assert session.is_open

    def test_open_bus_missing(self, mock_smbus, mock_has_smbus):
        """Test missing /dev/i2c-N raises BusOpenError."""
        mock_smbus.SMBus.side_effect = FileNotFoundError(2, "No such file")
        with pytest.raises(BusOpenError):
            BusSession.open(0x28)

    def test_open_permission_denied(self, mock_smbus, mock_has_smbus):
        """Test permission errors raise BusOpenError."""
        mock_smbus.SMBus.side_effect = PermissionError(13, "Permission denied")
        with pytest.raises(BusOpenError):
            BusSession.open(0x28)

    def test_open_without_smbus(self):
        """Test missing smbus2 raises BusOpenError."""
        with patch('getbno055.bus.HAS_SMBUS', False):
            with pytest.raises(BusOpenError):
                BusSession.open(0x28)

    def test_open_rejects_invalid_address(self, mock_smbus, mock_has_smbus):
        """Test addresses outside 7 bits are rejected before opening."""
        with pytest.raises(ValueError):
            BusSession.open(0x80)
        mock_smbus.SMBus.assert_not_called()

    def test_from_config(self, mock_smbus, mock_has_smbus):
        """Test session creation from BusConfig."""
        config = BusConfig(i2c_bus=0, i2c_address=0x29, boot_delay_s=0.65)
        session = BusSession.from_config(config)
        mock_smbus.SMBus.assert_called_once_with(0)
        assert session.address == 0x29
        assert session.boot_delay_s == 0.65

    def test_default_config(self):
        """Test default configuration values."""
        config = BusConfig()
        assert config.i2c_bus == 1
        assert config.i2c_address == 0x28
        assert config.boot_delay_s == 1.0


# =============================================================================
# Test Register Access Primitives
# =============================================================================

class TestPrimitives:
    """Tests for read/write transactions."""

    def test_read_block(self, session, fake_bus):
        """Test a burst read returns the register contents."""
        data = session.read(0x00, 7)
        assert data == bytes([0xA0, 0xFB, 0x32, 0x0F, 0x11, 0x03, 0x15])
        assert fake_bus.reads() == [(0x00, 7)]

    def test_read_byte(self, session, fake_bus):
        """Test single-byte read."""
        fake_bus.registers[0x35] = 0xE4
        assert session.read_byte(0x35) == 0xE4

    def test_truncated_read(self, session, fake_bus):
        """Test a short read raises BusError and returns nothing."""
        fake_bus.short_reads[0x55] = 10
        with pytest.raises(BusError) as exc_info:
            session.read(0x55, 22)
        assert exc_info.value.register == 0x55
        assert exc_info.value.expected == 22
        assert exc_info.value.actual == 10

    def test_empty_read(self, session, fake_bus):
        """Test zero bytes returned is a BusError."""
        fake_bus.short_reads[0x35] = 0
        with pytest.raises(BusError):
            session.read_byte(0x35)

    def test_read_oserror(self, session, fake_bus):
        """Test bus-level failures become BusError."""
        fake_bus.fail_registers.add(0x39)
        with pytest.raises(BusError) as exc_info:
            session.read_byte(0x39)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_read_length_limits(self, session, fake_bus):
        """Test read lengths outside the SMBus block range are rejected."""
        with pytest.raises(ValueError):
            session.read(0x00, 0)
        with pytest.raises(ValueError):
            session.read(0x00, 33)
        assert fake_bus.log == []

    def test_write_single_byte(self):
        """Test single-byte writes use write_byte_data."""
        bus = MagicMock()
        s = BusSession(bus, 0x28)
        s.write_byte(0x3D, 0x0C)
        bus.write_byte_data.assert_called_once_with(0x28, 0x3D, 0x0C)
        bus.write_i2c_block_data.assert_not_called()

    def test_write_block(self):
        """Test multi-byte writes use a single block transaction."""
        bus = MagicMock()
        s = BusSession(bus, 0x29)
        s.write(0x55, b'\x01\x02\x03')
        bus.write_i2c_block_data.assert_called_once_with(0x29, 0x55, [1, 2, 3])

    def test_write_oserror(self, session, fake_bus):
        """Test failed writes raise BusError."""
        fake_bus.fail_registers.add(0x3D)
        with pytest.raises(BusError):
            session.write_byte(0x3D, 0x00)

    def test_write_empty_payload(self, session):
        """Test an empty payload is rejected."""
        with pytest.raises(ValueError):
            session.write(0x55, b'')

    def test_no_implicit_delay(self, session, clock):
        """Test primitives never sleep."""
        session.read(0x00, 7)
        session.write_byte(0x07, 0)
        assert clock.sleeps == []


# =============================================================================
# Test Identity Verification
# =============================================================================

class TestVerifyIdentity:
    """Tests for the chip-ID check and its single retry."""

    def test_first_read_matches(self, session, fake_bus, clock):
        """Test no retry when the chip ID is correct."""
        assert session.verify_identity() == BNO055_CHIP_ID_VALUE
        assert fake_bus.reads() == [(0x00, 1)]
        assert clock.sleeps == []

    def test_retry_after_boot_delay(self, session, fake_bus, clock):
        """Test a wrong first answer is retried once after the boot delay."""
        fake_bus.chip_ids = [0x00, BNO055_CHIP_ID_VALUE]
        assert session.verify_identity() == BNO055_CHIP_ID_VALUE
        assert fake_bus.reads() == [(0x00, 1), (0x00, 1)]
        assert clock.sleeps == [1.0]

    def test_fails_twice(self, session, fake_bus, clock):
        """Test two mismatches raise DeviceNotPresent after exactly two reads."""
        fake_bus.chip_ids = [0x00, 0x55]
        with pytest.raises(DeviceNotPresent) as exc_info:
            session.verify_identity()
        assert exc_info.value.chip_id == 0x55
        assert exc_info.value.expected == 0xA0
        assert len(fake_bus.log) == 2

    def test_bus_error_propagates(self, session, fake_bus, clock):
        """Test a failed chip-ID transaction is not retried."""
        fake_bus.fail_registers.add(0x00)
        with pytest.raises(BusError):
            session.verify_identity()
        assert len(fake_bus.log) == 1
        assert clock.sleeps == []


# =============================================================================
# Test Session Lifecycle
# =============================================================================

class TestLifecycle:
    """Tests for closing the session."""

    def test_close(self, session, fake_bus):
        """Test close releases the bus and is idempotent."""
        session.close()
        session.close()
        assert fake_bus.closed is True
        assert session.is_open is False

    def test_use_after_close(self, session):
        """Test transactions on a closed session fail."""
        session.close()
        with pytest.raises(RuntimeError):
            session.read_byte(0x00)

    def test_context_manager(self, fake_bus):
        """Test the session closes on context exit."""
        with BusSession(fake_bus, 0x28) as s:
            s.read_byte(0x00)
        assert fake_bus.closed is True
