"""Tone burst register I/O classes for FastCS attributes.

This module contains the AttributeIO classes that handle reading and writing
tone burst registers. They are separated from the main controller to avoid
circular imports with sub-controllers.
"""

import logging
from dataclasses import dataclass
from typing import TypeVar

from fastcs.attributes import AttributeIO, AttributeIORef, AttrRW

from .protocol import ProtocolError, ToneBurstProtocol

NumberT = TypeVar("NumberT", int, float)

logger = logging.getLogger(__name__)


@dataclass
class ToneBurstRegisterIORef(AttributeIORef):
    """Reference for tone burst register IO operations.

    Attributes:
        register: Register address (0x0-0xF)
        update_period: Poll period in seconds (default 1.0)
    """

    register: int = 0
    update_period: float | None = 1.0


class ToneBurstRegisterIO(AttributeIO[NumberT, ToneBurstRegisterIORef]):
    """Handles reading from and writing to tone burst registers.

    Bridges FastCS attributes with ToneBurstProtocol. Until a protocol is set
    (on connect) reads and writes are skipped.
    """

    def __init__(self, protocol: ToneBurstProtocol | None = None):
        """Initialize register IO handler.

        Args:
            protocol: ToneBurstProtocol instance (can be None initially)
        """
        super().__init__()
        self._protocol = protocol

    def set_protocol(self, protocol: ToneBurstProtocol | None) -> None:
        """Set the protocol instance for register I/O operations.

        Args:
            protocol: ToneBurstProtocol instance, or None on disconnect
        """
        self._protocol = protocol

    async def update(self, attr):
        """Read value from the register and update attribute.

        Args:
            attr: The attribute to update
        """
        if not self._protocol:
            return

        try:
            value = await self._protocol.read_register(attr.io_ref.register)
            await attr.update(attr.dtype(value))
        except (ProtocolError, TimeoutError, RuntimeError) as e:
            logger.error(f"Error reading register {attr.io_ref.register:#03x}: {e}")

    async def send(self, attr, value):
        """Write attribute value to the register.

        Args:
            attr: The attribute being written
            value: The value to write
        """
        if not self._protocol:
            return

        try:
            await self._protocol.write_register(
                attr.io_ref.register, int(value), verify=False
            )
            # Read back so the attribute shows what the register file kept
            if isinstance(attr, AttrRW):
                await self.update(attr)
        except (ProtocolError, TimeoutError, RuntimeError, ValueError) as e:
            logger.error(f"Error writing register {attr.io_ref.register:#03x}: {e}")
