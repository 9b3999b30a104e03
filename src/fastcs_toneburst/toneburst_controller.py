"""FastCS controller for the tone burst generator.

Provides EPICS PVs for configuring and monitoring the tone burst generator
through the serial protocol layer:
- Configuration registers (pulse/burst counts, duty cycle, delays, period)
- CONTROL register and start/stop/reset commands
- STATUS register, decoded by the status sub-controller
- Derived pulse timing and the current tone output level
"""

import asyncio
import logging

from fastcs.attributes import AttrR, AttrRW
from fastcs.controllers import Controller
from fastcs.datatypes import Bool, Int, String
from fastcs.methods import command

from .burst_fsm import pulse_timing
from .constants import FAST_UPDATE, SIM_CLOCK_PERIOD, SIM_TICKS_PER_PERIOD, SLOW_UPDATE
from .controllers.status import StatusController
from .fields import ControlRegister
from .protocol import ProtocolError, ToneBurstProtocol
from .register_io import ToneBurstRegisterIO, ToneBurstRegisterIORef
from .registers import RegAddr
from .transport import ToneBurstTransport

logger = logging.getLogger(__name__)

__all__ = ["ToneBurstController", "ToneBurstRegisterIO", "ToneBurstRegisterIORef"]


def _register_rw(address: RegAddr, description: str) -> AttrRW:
    return AttrRW(
        Int(),
        io_ref=ToneBurstRegisterIORef(
            register=int(address), update_period=SLOW_UPDATE
        ),
        description=description,
    )


class ToneBurstController(Controller):
    """Top-level controller for the tone burst generator.

    Attributes:
        connected: Connection status
        status_msg: Human-readable status message
        control: Raw CONTROL register
        pulse_count: Pulses per burst
        burst_count: Bursts per run
        duty_cycle: High fraction of the period, in 1/1024ths
        inter_burst_delay: Idle ticks between bursts
        pulse_period: Ticks per pulse
        status_word: Raw STATUS register
        pulse_high_time: Derived high phase length (ticks)
        pulse_low_time: Derived low phase length (ticks)
        tone_out: Current output level

    Sub-controllers:
        status: Decoded STATUS register
    """

    def __init__(
        self,
        port: str,
        sim_ticks: int = SIM_TICKS_PER_PERIOD,
        sim_clock_period: float = SIM_CLOCK_PERIOD,
        diagnostics: bool = False,
    ):
        """Initialize tone burst controller.

        Args:
            port: Serial port path (e.g., '/dev/ttyUSB0') or 'sim://name'
            sim_ticks: Simulated ticks per clock period (0 = manual clock)
            sim_clock_period: Seconds between simulated clock advances
            diagnostics: Log warnings for degenerate configurations (simulator)
        """
        self._port = port
        self._sim_ticks = sim_ticks
        self._sim_clock_period = sim_clock_period
        self._diagnostics = diagnostics
        self._transport: ToneBurstTransport | None = None
        self._protocol: ToneBurstProtocol | None = None
        self._derived_task: asyncio.Task | None = None

        # Create IO handler (will be set to actual protocol after connect)
        self._register_io = ToneBurstRegisterIO(None)

        super().__init__(ios=[self._register_io])

        self.connected = AttrR(Bool())
        self.status_msg = AttrR(String())

        self.control = _register_rw(RegAddr.CONTROL, "Enable/trigger control bits")
        self.pulse_count = _register_rw(RegAddr.PULSE_COUNT, "Pulses per burst")
        self.burst_count = _register_rw(RegAddr.BURST_COUNT, "Bursts per run")
        self.duty_cycle = _register_rw(RegAddr.DUTY_CYCLE, "Duty cycle (1/1024)")
        self.inter_burst_delay = _register_rw(
            RegAddr.INTER_BURST_DELAY, "Ticks between bursts"
        )
        self.pulse_period = _register_rw(RegAddr.PULSE_PERIOD, "Ticks per pulse")

        self.status_word = AttrR(
            Int(),
            io_ref=ToneBurstRegisterIORef(
                register=int(RegAddr.STATUS), update_period=FAST_UPDATE
            ),
        )

        self.pulse_high_time = AttrR(Int())
        self.pulse_low_time = AttrR(Int())
        self.tone_out = AttrR(Bool())

        self.status = StatusController(self._register_io)

    @property
    def transport(self) -> ToneBurstTransport | None:
        return self._transport

    async def connect(self) -> None:
        """Connect to the tone burst generator."""
        try:
            self._transport = ToneBurstTransport(
                self._port,
                sim_ticks=self._sim_ticks,
                sim_clock_period=self._sim_clock_period,
                diagnostics=self._diagnostics,
            )
            await self._transport.connect()
            self._protocol = ToneBurstProtocol(self._transport)
            self._register_io.set_protocol(self._protocol)

            await self.connected.update(True)

            self._derived_task = asyncio.create_task(self._update_derived_values())

            logger.info(f"Connected to tone burst generator on {self._port}")
            await self.status_msg.update(f"Connected to {self._port}")

        except Exception as e:
            logger.error(f"Failed to connect: {e}")
            await self.status_msg.update(f"Connection failed: {e}")
            raise

    async def disconnect(self) -> None:
        """Disconnect from the tone burst generator."""
        if self._derived_task:
            self._derived_task.cancel()
            try:
                await self._derived_task
            except asyncio.CancelledError:
                pass
            self._derived_task = None

        self._register_io.set_protocol(None)
        if self._transport:
            await self._transport.disconnect()
            self._transport = None
            self._protocol = None

        await self.connected.update(False)
        logger.info("Disconnected from tone burst generator")
        await self.status_msg.update("Disconnected")

    def _check_connected(self) -> ToneBurstProtocol:
        """Return the protocol or raise RuntimeError if not connected."""
        if not self._protocol:
            raise RuntimeError("Not connected to tone burst generator")
        return self._protocol

    async def _write_control(self, control: ControlRegister) -> None:
        protocol = self._check_connected()
        await protocol.write_register(RegAddr.CONTROL, control.encode(), verify=False)
        await self.control.update(await protocol.read_register(RegAddr.CONTROL))

    # Commands

    @command()
    async def start(self) -> None:
        """Enable the generator and trigger a run."""
        await self._write_control(ControlRegister(enable=True, trigger=True))
        logger.info("Burst run triggered")
        await self.status_msg.update("Started")

    @command()
    async def stop(self) -> None:
        """Clear enable; a run in progress still completes."""
        await self._write_control(ControlRegister(enable=False))
        logger.info("Generator disabled")
        await self.status_msg.update("Stopped")

    @command()
    async def reset(self) -> None:
        """Reset every register to its default."""
        protocol = self._check_connected()
        await protocol.reset()
        logger.info("Generator reset")
        await self.status_msg.update("Reset")

    async def refresh_derived_values(self) -> None:
        """Recompute attributes derived from the registers and output line."""
        protocol = self._check_connected()

        status_word = await protocol.read_register(RegAddr.STATUS)
        await self.status_word.update(status_word)
        await self.status.update_derived_values(status_word)

        period = await protocol.read_register(RegAddr.PULSE_PERIOD)
        duty = await protocol.read_register(RegAddr.DUTY_CYCLE)
        timing = pulse_timing(period, duty)
        await self.pulse_high_time.update(timing.high)
        await self.pulse_low_time.update(timing.low)

        await self.tone_out.update(await protocol.read_output())

    async def _update_derived_values(self) -> None:
        """Background task to keep derived values current."""
        try:
            while self._transport and self._transport.connected:
                try:
                    await self.refresh_derived_values()
                    await asyncio.sleep(FAST_UPDATE)
                except (ProtocolError, TimeoutError, RuntimeError) as e:
                    logger.error(f"Error updating derived values: {e}")
                    await asyncio.sleep(1.0)

        except asyncio.CancelledError:
            logger.debug("Derived values update task cancelled")
            raise
