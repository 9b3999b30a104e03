"""Tone burst serial protocol implementation.

This module implements the text-based protocol of the tone burst generator,
building on top of the ToneBurstTransport layer to provide register access
and clock control.

Protocol format:
- Read register: R<A> -> R<A><VVVVVVVV>
- Write register: W<A><VVVVVVVV> -> W<A>OK (takes one clock tick)
- Advance clock: T<N> -> TOK (N = 1-8 hex digits, N > 0)
- Reset: X -> XOK (one tick with reset asserted)
- Output level: O -> O0 | O1
- Error: E0 (malformed command)

Where:
- <A> = 1-digit hex register address (0-F)
- <VVVVVVVV> = 8-digit hex value (32-bit)
"""

import asyncio
import logging
import re

from .registers import ADDRESS_SPACE, DATA_MASK
from .transport import ToneBurstTransport

logger = logging.getLogger(__name__)


class ProtocolError(Exception):
    """Base exception for protocol-level errors."""

    pass


class MalformedResponseError(ProtocolError):
    """Raised when response doesn't match expected format."""

    pass


class ToneBurstProtocol:
    """Tone burst serial protocol handler.

    Provides register read/write, clock and reset operations. Each
    command/response exchange holds a lock, so concurrent callers are
    serialised rather than interleaving on the wire.
    """

    READ_RESPONSE_PATTERN = re.compile(r"^R([0-9A-F])([0-9A-F]{8})$")
    WRITE_RESPONSE_PATTERN = re.compile(r"^W([0-9A-F])OK$")
    OUTPUT_RESPONSE_PATTERN = re.compile(r"^O([01])$")
    ERROR_RESPONSE = "E0"

    def __init__(self, transport: ToneBurstTransport):
        """Initialize protocol handler.

        Args:
            transport: Connected ToneBurstTransport instance
        """
        self.transport = transport
        self._lock = asyncio.Lock()

    async def _exchange(self, command: str, timeout: float | None = None) -> str:
        async with self._lock:
            await self.transport.write_line(command)
            response = await self.transport.read_line(timeout=timeout)
        if response == self.ERROR_RESPONSE:
            raise MalformedResponseError(
                f"Device reports malformed command {command!r} (E0)"
            )
        return response

    async def read_register(self, address: int) -> int:
        """Read a 32-bit register value.

        Args:
            address: Register address (0x0-0xF)

        Returns:
            Register value (0 for unimplemented addresses)

        Raises:
            ValueError: If address out of range
            ProtocolError: If response invalid
        """
        self._check_address(address)

        logger.debug(f"Reading register {address:#03x}")
        response = await self._exchange(f"R{address:X}")

        match = self.READ_RESPONSE_PATTERN.match(response)
        if not match:
            raise MalformedResponseError(f"Invalid read response format: {response!r}")

        addr_str, value_str = match.groups()
        if int(addr_str, 16) != address:
            raise MalformedResponseError(
                f"Address mismatch: expected {address:#03x}, got 0x{addr_str}"
            )

        value = int(value_str, 16)
        logger.debug(f"Read {value:#010x} from register {address:#03x}")
        return value

    async def write_register(
        self, address: int, value: int, verify: bool = True
    ) -> int:
        """Write a 32-bit value to a register.

        Writes to read-only or unimplemented addresses are accepted by the
        device and silently dropped; with verify=True the mismatch is logged.

        Args:
            address: Register address (0x0-0xF)
            value: Value to write (0x00000000-0xFFFFFFFF)
            verify: If True, read back value to verify write

        Returns:
            Read-back value if verify=True, else written value

        Raises:
            ValueError: If address or value out of range
            ProtocolError: If response invalid
        """
        self._check_address(address)
        if not 0 <= value <= DATA_MASK:
            raise ValueError(
                f"Register value {value:#x} out of range [0x0-0xFFFFFFFF]"
            )

        logger.debug(f"Writing {value:#010x} to register {address:#03x}")
        response = await self._exchange(f"W{address:X}{value:08X}")

        match = self.WRITE_RESPONSE_PATTERN.match(response)
        if not match:
            raise MalformedResponseError(f"Invalid write response format: {response!r}")
        if int(match.group(1), 16) != address:
            raise MalformedResponseError(
                f"Address mismatch: expected {address:#03x}, got 0x{match.group(1)}"
            )

        if verify:
            readback = await self.read_register(address)
            if readback != value:
                logger.warning(
                    f"Write verification mismatch at {address:#03x}: "
                    f"wrote {value:#010x}, read {readback:#010x}"
                )
            return readback

        return value

    async def step(self, ticks: int = 1) -> None:
        """Advance the device clock.

        Args:
            ticks: Number of ticks (1-0xFFFFFFFF)

        Raises:
            ValueError: If ticks out of range
            ProtocolError: If the device rejects the command
        """
        if not 0 < ticks <= DATA_MASK:
            raise ValueError(f"Tick count {ticks} out of range [1-{DATA_MASK}]")

        response = await self._exchange(f"T{ticks:X}")
        if response != "TOK":
            raise MalformedResponseError(f"Expected 'TOK', got {response!r}")

    async def reset(self) -> None:
        """Assert reset for one tick, restoring every register default."""
        logger.info("Resetting tone burst generator")
        response = await self._exchange("X")
        if response != "XOK":
            raise MalformedResponseError(f"Expected 'XOK', got {response!r}")

    async def read_output(self) -> bool:
        """Read the current tone output level."""
        response = await self._exchange("O")
        match = self.OUTPUT_RESPONSE_PATTERN.match(response)
        if not match:
            raise MalformedResponseError(
                f"Invalid output response format: {response!r}"
            )
        return match.group(1) == "1"

    @staticmethod
    def _check_address(address: int) -> None:
        if not 0 <= address < ADDRESS_SPACE:
            raise ValueError(f"Register address {address:#x} out of range [0x0-0xF]")
