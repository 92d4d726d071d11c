"""
Mode & Power Control
====================

Operating mode, power mode, register page and reset transitions.

The driver keeps no local copy of the device mode: every query re-reads
OPR_MODE. Each write is followed by the datasheet settle delay, during which
the sensor is reconfiguring and must not be accessed:

    OPR_MODE write     >= 30ms
    PWR_MODE write     >= 10ms
    SYS_TRIGGER reset  >= 50ms
"""

from contextlib import contextmanager
from typing import Iterator
import logging

from .bus import BusSession
from .errors import BNO055Error, OutOfRangeDiagnostic
from .registers import (
    BNO055_OPR_MODE,
    BNO055_PAGE_ID,
    BNO055_PWR_MODE,
    BNO055_SYS_TRIGGER,
    MODE_SETTLE_S,
    OPR_MODE_MASK,
    POWER_SETTLE_S,
    RESET_SETTLE_S,
    SYS_TRIGGER_RESET,
    OperationMode,
    PowerMode,
)

logger = logging.getLogger(__name__)


def decode_mode(value: int) -> OperationMode:
    """
    Decode an OPR_MODE register byte.

    Bits 4-7 are reserved and stripped before decoding.

    Raises:
        OutOfRangeDiagnostic: low nibble is 0x0D-0x0F
    """
    masked = value & OPR_MODE_MASK
    try:
        return OperationMode(masked)
    except ValueError:
        raise OutOfRangeDiagnostic("operation mode", masked) from None


def get_mode(session: BusSession) -> OperationMode:
    """Read the current operating mode from the device."""
    value = session.read_byte(BNO055_OPR_MODE)
    mode = decode_mode(value)
    logger.debug(f"Operation mode: [0x{value:02X}] 4bit [0x{value & OPR_MODE_MASK:02X}] {mode.name}")
    return mode


def set_mode(session: BusSession, mode: OperationMode):
    """
    Write the operating mode and wait for the sensor to reconfigure.

    Args:
        session: Open bus session
        mode: Target mode
    """
    mode = OperationMode(mode)
    session.write_byte(BNO055_OPR_MODE, mode.value)
    session.sleep(MODE_SETTLE_S)
    logger.info(f"BNO055 mode set to {mode.name} (0x{mode.value:02X})")


def set_power_mode(session: BusSession, mode: PowerMode):
    """Write the power mode and wait for it to settle."""
    mode = PowerMode(mode)
    session.write_byte(BNO055_PWR_MODE, mode.value)
    session.sleep(POWER_SETTLE_S)
    logger.info(f"BNO055 power mode set to {mode.name}")


def set_power_normal(session: BusSession):
    """Switch to normal power mode."""
    set_power_mode(session, PowerMode.NORMAL)


def select_page(session: BusSession, page: int = 0):
    """
    Select the register page.

    Page 0 holds every register this driver uses; select it after
    power-mode changes since some addresses are banked.
    """
    if page not in (0, 1):
        raise ValueError(f"Register page must be 0 or 1, got {page}")
    session.write_byte(BNO055_PAGE_ID, page)
    logger.debug(f"Selected register page {page}")


def reset(session: BusSession):
    """
    Trigger a system reset.

    The device does not acknowledge a reset; success means only that the
    write went through. The sensor NACKs all traffic while it reboots, so
    wait ``session.boot_delay_s`` before ``session.verify_identity()`` if the
    sensor must be known to be back.
    """
    session.write_byte(BNO055_SYS_TRIGGER, SYS_TRIGGER_RESET)
    session.sleep(RESET_SETTLE_S)
    logger.info("BNO055 reset triggered")


def apply_defaults(session: BusSession, mode: OperationMode = OperationMode.NDOF):
    """
    Bring the sensor to a known operating state.

    Sets the operating mode, normal power and register page 0, in that order.
    """
    set_mode(session, mode)
    set_power_normal(session)
    select_page(session, 0)


@contextmanager
def config_mode(session: BusSession) -> Iterator[OperationMode]:
    """
    Temporarily switch to CONFIG mode.

    Reads the current mode, enters CONFIG if needed, and restores the
    previous mode on exit. Yields the mode that will be restored.

    If the body raises, that exception propagates even when restoring the
    previous mode fails as well.
    """
    previous = get_mode(session)
    if previous == OperationMode.CONFIG:
        yield previous
        return

    set_mode(session, OperationMode.CONFIG)
    try:
        yield previous
    except BaseException:
        try:
            set_mode(session, previous)
        except BNO055Error as e:
            logger.error(f"Failed to restore {previous.name} mode: {e}")
        raise
    set_mode(session, previous)
