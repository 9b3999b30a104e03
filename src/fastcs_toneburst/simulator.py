"""Tone burst hardware simulator for testing without real hardware.

Speaks the tone burst serial protocol on top of a cycle-accurate
ToneBurstDevice. Register writes and resets each take one clock tick; reads
are combinational. An optional free-running clock advances the device in
the background so a started burst plays out without host involvement.
"""

import asyncio
import logging
import re

from .constants import SIM_CLOCK_PERIOD, SIM_TICKS_PER_PERIOD
from .device import BusWrite, ToneBurstDevice

logger = logging.getLogger(__name__)

_READ_COMMAND = re.compile(r"^R([0-9A-F])$")
_WRITE_COMMAND = re.compile(r"^W([0-9A-F])([0-9A-F]{8})$")
_TICK_COMMAND = re.compile(r"^T([0-9A-F]{1,8})$")


class ToneBurstSimulator:
    """Software simulator for the tone burst generator.

    Implements the serial protocol for testing. Owns the simulated device and,
    when ticks_per_period is non-zero, a background clock task.
    """

    def __init__(
        self,
        ticks_per_period: int = SIM_TICKS_PER_PERIOD,
        clock_period: float = SIM_CLOCK_PERIOD,
        diagnostics: bool = False,
    ):
        """Initialize simulator at power-on defaults.

        Args:
            ticks_per_period: Ticks advanced per clock period (0 = manual clock)
            clock_period: Seconds between clock advances
            diagnostics: Log warnings for degenerate configurations
        """
        self.device = ToneBurstDevice(diagnostics=diagnostics)
        self.ticks_per_period = ticks_per_period
        self.clock_period = clock_period
        self._clock_task: asyncio.Task | None = None

    @property
    def clock_running(self) -> bool:
        return self._clock_task is not None and not self._clock_task.done()

    def start(self) -> None:
        """Start the background clock if one is configured."""
        if self.ticks_per_period <= 0 or self.clock_running:
            return
        logger.info(
            f"Simulator: clock running at {self.ticks_per_period} ticks "
            f"per {self.clock_period}s"
        )
        self._clock_task = asyncio.create_task(self._run_clock())

    async def process_command(self, command: str) -> str:
        """Process a command and return response.

        Args:
            command: Command string (without line terminator)

        Returns:
            Response string (without line terminator)
        """
        command = command.strip().upper()

        # Read register command: R<A>
        if match := _READ_COMMAND.match(command):
            addr = int(match.group(1), 16)
            value = self.device.read(addr)
            logger.debug(f"Simulator: Read reg 0x{addr:X} = 0x{value:08X}")
            return f"R{addr:X}{value:08X}"

        # Write register command: W<A><VVVVVVVV>
        if match := _WRITE_COMMAND.match(command):
            addr = int(match.group(1), 16)
            value = int(match.group(2), 16)
            result = self.device.step(BusWrite(addr, value))
            if result.write_committed:
                logger.debug(f"Simulator: Write reg 0x{addr:X} = 0x{value:08X}")
            else:
                logger.debug(f"Simulator: Write to 0x{addr:X} ignored")
            return f"W{addr:X}OK"

        # Advance clock command: T<N>
        if match := _TICK_COMMAND.match(command):
            count = int(match.group(1), 16)
            if count == 0:
                return "E0"
            self.device.run(count)
            logger.debug(f"Simulator: Advanced {count} ticks to {self.device.cycle}")
            return "TOK"

        # Reset tick
        if command == "X":
            self.device.reset()
            logger.info("Simulator: Reset")
            return "XOK"

        # Output level query
        if command == "O":
            return f"O{int(self.device.tone_out)}"

        logger.warning(f"Simulator: Unknown command '{command}'")
        return "E0"

    async def _run_clock(self) -> None:
        """Background task advancing the device like a free-running clock."""
        try:
            while True:
                self.device.run(self.ticks_per_period)
                await asyncio.sleep(self.clock_period)
        except asyncio.CancelledError:
            logger.debug("Simulator: clock stopped")
            raise

    def reset(self) -> None:
        """Stop the clock and return the device to power-on state."""
        if self._clock_task and not self._clock_task.done():
            self._clock_task.cancel()
        self._clock_task = None
        self.device = ToneBurstDevice(diagnostics=self.device.diagnostics)
