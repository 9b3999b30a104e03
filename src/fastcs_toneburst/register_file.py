"""Register file of the tone burst generator.

Holds the seven implemented 32-bit registers, applies host writes, serves
combinational reads, and latches the controller status once per tick.
"""

import logging
from dataclasses import dataclass, replace

from .fields import ControlRegister
from .registers import DATA_MASK, DEFAULTS, RegAddr, is_writable_register, to_reg_addr

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BurstConfig:
    """Configuration registers as consumed by the burst controller."""

    pulse_count: int
    burst_count: int
    duty_cycle: int
    inter_burst_delay: int
    pulse_period: int


@dataclass(frozen=True)
class RegisterSnapshot:
    """Everything the burst controller reads in one tick."""

    control: ControlRegister
    config: BurstConfig


class RegisterFile:
    """Storage for the CONTROL, configuration and STATUS registers.

    Writes to STATUS or to unimplemented addresses are dropped without error,
    and reads from unimplemented addresses return 0.
    """

    def __init__(self):
        """Initialize every register to its power-on default."""
        self._values: dict[RegAddr, int] = {}
        self.reset()

    def reset(self) -> None:
        """Load every register with its documented default."""
        self._values = dict(DEFAULTS)

    def read(self, address: int) -> int:
        """Read a register.

        Args:
            address: Bus address (0x0-0xF)

        Returns:
            Stored value, or 0 for unimplemented addresses
        """
        reg = to_reg_addr(address)
        if reg is None:
            return 0
        return self._values[reg]

    def write(self, address: int, data: int) -> bool:
        """Apply a host write.

        Args:
            address: Bus address (0x0-0xF)
            data: Value to store, truncated to 32 bits

        Returns:
            True if the write was committed, False if it was dropped
        """
        if not is_writable_register(address):
            logger.debug(f"Dropped write of {data:#010x} to address {address:#03x}")
            return False
        self._values[RegAddr(address)] = data & DATA_MASK
        return True

    def tick(self, status_in: int, trigger_at_start: bool = False) -> None:
        """Commit the end of a non-reset tick.

        Latches the controller's status word. The trigger bit is cleared if
        it was already set when the tick began, whether or not this tick's
        write touched CONTROL. A trigger written in this tick therefore stays
        visible until the end of the next one.

        Args:
            status_in: Encoded status snapshot produced by the controller
            trigger_at_start: Trigger bit as it stood before this tick's write
        """
        self._values[RegAddr.STATUS] = status_in & DATA_MASK
        if trigger_at_start:
            control = replace(self.control, trigger=False)
            self._values[RegAddr.CONTROL] = control.encode()

    @property
    def control(self) -> ControlRegister:
        return ControlRegister.decode(self._values[RegAddr.CONTROL])

    @property
    def config(self) -> BurstConfig:
        return BurstConfig(
            pulse_count=self._values[RegAddr.PULSE_COUNT],
            burst_count=self._values[RegAddr.BURST_COUNT],
            duty_cycle=self._values[RegAddr.DUTY_CYCLE],
            inter_burst_delay=self._values[RegAddr.INTER_BURST_DELAY],
            pulse_period=self._values[RegAddr.PULSE_PERIOD],
        )

    def snapshot(self) -> RegisterSnapshot:
        """Capture the values the controller consumes this tick."""
        return RegisterSnapshot(control=self.control, config=self.config)

    def dump(self) -> dict[str, int]:
        """Return all implemented registers keyed by name."""
        return {reg.name: value for reg, value in self._values.items()}
