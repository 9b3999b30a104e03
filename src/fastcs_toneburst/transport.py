"""Asyncio serial transport for tone burst generator communication."""

import asyncio
import logging

try:
    import aioserial
except ImportError:
    aioserial = None  # type: ignore[assignment]

from .constants import SIM_CLOCK_PERIOD, SIM_TICKS_PER_PERIOD
from .simulator import ToneBurstSimulator

logger = logging.getLogger(__name__)

SIM_PREFIX = "sim://"


class ToneBurstTransport:
    """Asyncio-based line transport for the tone burst generator.

    Provides low-level communication with the device, either over a serial
    port with non-blocking I/O or, for ports of the form "sim://name", with an
    in-process ToneBurstSimulator.

    The serial link uses:
    - 115200 baud, 8N1, no flow control
    - Newline (\\n) line termination
    - ASCII text protocol
    """

    BAUD_RATE = 115200
    TIMEOUT = 1.0

    def __init__(
        self,
        port: str,
        sim_ticks: int = SIM_TICKS_PER_PERIOD,
        sim_clock_period: float = SIM_CLOCK_PERIOD,
        diagnostics: bool = False,
    ):
        """Initialize transport for given port.

        Args:
            port: Serial port path (e.g., '/dev/ttyUSB0') or 'sim://name'
            sim_ticks: Simulated ticks per clock period (0 = manual clock)
            sim_clock_period: Seconds between simulated clock advances
            diagnostics: Enable diagnostic warnings in the simulator
        """
        self.port = port
        self._is_simulation = port.startswith(SIM_PREFIX)
        self._sim_ticks = sim_ticks
        self._sim_clock_period = sim_clock_period
        self._diagnostics = diagnostics
        self._serial: aioserial.AioSerial | None = None  # type: ignore[name-defined]
        self._simulator: ToneBurstSimulator | None = None
        self._sim_rx_queue: asyncio.Queue[str] | None = None
        self._connected = False

        if not self._is_simulation and aioserial is None:
            raise ImportError(
                "aioserial is required for serial communication. "
                "Install with: pip install aioserial"
            )

    @property
    def is_simulation(self) -> bool:
        return self._is_simulation

    @property
    def simulator(self) -> ToneBurstSimulator | None:
        """The in-process simulator, when connected in simulation mode."""
        return self._simulator

    async def connect(self) -> None:
        """Open the serial port or start the simulator."""
        if self._connected:
            logger.warning(f"Already connected to {self.port}")
            return

        if self._is_simulation:
            logger.info(f"Starting tone burst simulator for {self.port}")
            self._simulator = ToneBurstSimulator(
                ticks_per_period=self._sim_ticks,
                clock_period=self._sim_clock_period,
                diagnostics=self._diagnostics,
            )
            self._sim_rx_queue = asyncio.Queue()
            self._simulator.start()
        else:
            logger.info(f"Connecting to {self.port} at {self.BAUD_RATE} baud")
            self._serial = aioserial.AioSerial(  # type: ignore[union-attr]
                port=self.port,
                baudrate=self.BAUD_RATE,
                bytesize=aioserial.EIGHTBITS,  # type: ignore[union-attr]
                parity=aioserial.PARITY_NONE,  # type: ignore[union-attr]
                stopbits=aioserial.STOPBITS_ONE,  # type: ignore[union-attr]
                timeout=self.TIMEOUT,
            )

        self._connected = True
        logger.info(f"Connected to {self.port}")

    async def disconnect(self) -> None:
        """Close the serial port or stop the simulator."""
        if not self._connected:
            return

        logger.info(f"Disconnecting from {self.port}")

        if self._simulator:
            self._simulator.reset()
            self._simulator = None
        self._sim_rx_queue = None
        if self._serial:
            self._serial.close()
            self._serial = None

        self._connected = False

    @property
    def connected(self) -> bool:
        """Check if transport is connected."""
        if self._is_simulation:
            return self._connected and self._simulator is not None
        return self._connected and self._serial is not None

    async def write_line(self, data: str) -> None:
        """Send one command line.

        Args:
            data: ASCII command (without newline)

        Raises:
            RuntimeError: If not connected
        """
        if not self.connected:
            raise RuntimeError(f"Not connected to {self.port}")

        logger.debug(f"TX: {data!r}")

        if self._is_simulation:
            if not self._simulator or not self._sim_rx_queue:
                raise RuntimeError("Simulator not properly initialized")
            response = await self._simulator.process_command(data)
            self._sim_rx_queue.put_nowait(response)
        else:
            line = data + "\n"
            await self._serial.write_async(  # type: ignore[union-attr]
                line.encode("ascii")
            )

    async def read_line(self, timeout: float | None = None) -> str:
        """Read one response line.

        Args:
            timeout: Read timeout in seconds (uses default if None)

        Returns:
            Received line without newline terminator

        Raises:
            RuntimeError: If not connected
            TimeoutError: If read times out
        """
        if not self.connected:
            raise RuntimeError(f"Not connected to {self.port}")

        if timeout is None:
            timeout = self.TIMEOUT

        try:
            if self._is_simulation:
                if not self._sim_rx_queue:
                    raise RuntimeError("Simulator not properly initialized")
                line = await asyncio.wait_for(self._sim_rx_queue.get(), timeout=timeout)
            else:
                line_bytes = await asyncio.wait_for(
                    self._serial.readline_async(),  # type: ignore[union-attr]
                    timeout=timeout,
                )
                line = line_bytes.decode("ascii").rstrip("\r\n")

            logger.debug(f"RX: {line!r}")
            return line

        except TimeoutError:
            logger.error(f"Read timeout after {timeout}s on {self.port}")
            raise

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()
        return False
