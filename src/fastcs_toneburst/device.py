"""Tone burst device: one clock tick across the register file and controller.

Tick ordering:
1. Reset (if asserted) reloads the register defaults and returns the
   controller to IDLE; any write on the same tick is discarded.
2. Otherwise the host write (if any) is applied to the register file.
3. The controller steps on the post-write register snapshot.
4. The register file latches the controller status and clears the trigger
   bit if it was set before this tick's write. A written trigger is thus
   seen by the controller in two ticks: the write tick and the one after.

Example usage::

    device = ToneBurstDevice()
    device.step(BusWrite(RegAddr.PULSE_PERIOD, 4))
    device.step(BusWrite(RegAddr.CONTROL, 0b11))  # enable + trigger
    levels = [result.tone_out for result in device.run(20)]
"""

import logging
from dataclasses import dataclass

from .burst_fsm import BurstState, ControllerState, pulse_timing, step
from .fields import StatusRegister
from .register_file import BurstConfig, RegisterFile
from .registers import DATA_MASK, RegAddr, get_register

logger = logging.getLogger(__name__)

_CONFIG_REGISTERS = frozenset(
    {
        RegAddr.PULSE_COUNT,
        RegAddr.BURST_COUNT,
        RegAddr.DUTY_CYCLE,
        RegAddr.INTER_BURST_DELAY,
        RegAddr.PULSE_PERIOD,
    }
)


@dataclass(frozen=True)
class BusWrite:
    """A host write presented on the bus for one tick."""

    address: int
    data: int


@dataclass(frozen=True)
class TickResult:
    """Observable outputs of one tick.

    Attributes:
        tone_out: Output level during the tick
        status: Status snapshot latched at the end of the tick
        state: Controller state after the tick
        write_committed: True if a host write was stored this tick
    """

    tone_out: bool
    status: StatusRegister
    state: BurstState
    write_committed: bool = False


def tick(
    registers: RegisterFile,
    controller: ControllerState,
    write: BusWrite | None = None,
    reset: bool = False,
) -> tuple[ControllerState, TickResult]:
    """Evaluate one clock tick.

    The register file is updated in place; the controller state is returned.

    Args:
        registers: Register file owned by the caller
        controller: Controller state at the start of the tick
        write: Host write to apply this tick, if any
        reset: Synchronous reset; overrides the write

    Returns:
        (controller state for the next tick, TickResult)
    """
    if reset:
        registers.reset()
        idle = ControllerState()
        return idle, TickResult(
            tone_out=False, status=StatusRegister(), state=idle.state
        )

    trigger_at_start = registers.control.trigger
    committed = False
    if write is not None:
        committed = registers.write(write.address, write.data)

    result = step(controller, registers.snapshot())
    registers.tick(result.status.encode(), trigger_at_start)

    return result.state, TickResult(
        tone_out=result.tone_out,
        status=result.status,
        state=result.state.state,
        write_committed=committed,
    )


def check_config(config: BurstConfig) -> list[str]:
    """List degenerate settings in a configuration.

    None of these stop the controller; they only produce odd waveforms.

    Args:
        config: Configuration registers to check

    Returns:
        Human-readable warnings, empty if the configuration looks sane
    """
    warnings = []
    if config.pulse_count == 0:
        warnings.append("PULSE_COUNT is 0: each burst still emits one pulse")
    if config.burst_count == 0:
        warnings.append("BURST_COUNT is 0: the run still emits one burst")
    if config.pulse_period == 0:
        warnings.append("PULSE_PERIOD is 0: pulses collapse to single ticks")
    if config.duty_cycle > 1024:
        timing = pulse_timing(config.pulse_period, config.duty_cycle)
        warnings.append(
            f"DUTY_CYCLE {config.duty_cycle} exceeds 1024: "
            f"low time wraps to {timing.low:#010x}"
        )
    return warnings


class ToneBurstDevice:
    """A register file and burst controller advanced together, tick by tick.

    Attributes:
        registers: The register file
        controller: Controller state after the most recent tick
        tone_out: Output level of the most recent tick
        cycle: Number of ticks evaluated since construction
    """

    def __init__(self, diagnostics: bool = False):
        """Initialize the device at power-on defaults.

        Args:
            diagnostics: Log warnings when degenerate settings are written
        """
        self.registers = RegisterFile()
        self.controller = ControllerState()
        self.tone_out = False
        self.cycle = 0
        self.diagnostics = diagnostics

    @property
    def state(self) -> BurstState:
        return self.controller.state

    def read(self, address: int) -> int:
        """Combinational register read."""
        return self.registers.read(address)

    def step(self, write: BusWrite | None = None, reset: bool = False) -> TickResult:
        """Advance one tick, optionally carrying a host write or a reset."""
        previous = self.controller.state
        self.controller, result = tick(self.registers, self.controller, write, reset)
        self.tone_out = result.tone_out
        self.cycle += 1

        if reset:
            logger.debug(f"Tick {self.cycle}: reset")
        elif result.state != previous:
            logger.debug(
                f"Tick {self.cycle}: {previous.name} -> {result.state.name}"
            )

        if self.diagnostics and result.write_committed and write is not None:
            if write.address in _CONFIG_REGISTERS:
                self._warn_config(write)
        return result

    def write(self, address: int, data: int) -> TickResult:
        """Spend one tick writing a register."""
        return self.step(BusWrite(address, data & DATA_MASK))

    def reset(self) -> TickResult:
        """Spend one tick with reset asserted."""
        return self.step(reset=True)

    def run(self, ticks: int) -> list[TickResult]:
        """Advance several ticks with no bus activity."""
        return [self.step() for _ in range(ticks)]

    def run_until(self, state: BurstState, max_ticks: int) -> int:
        """Advance until the controller reaches a state.

        Args:
            state: State to wait for
            max_ticks: Give up after this many ticks

        Returns:
            Number of ticks advanced

        Raises:
            TimeoutError: If the state was not reached within max_ticks
        """
        for count in range(1, max_ticks + 1):
            if self.step().state == state:
                return count
        raise TimeoutError(f"{state.name} not reached within {max_ticks} ticks")

    def _warn_config(self, write: BusWrite) -> None:
        name = get_register(write.address).name
        for message in check_config(self.registers.config):
            logger.warning(f"After write to {name}: {message}")
