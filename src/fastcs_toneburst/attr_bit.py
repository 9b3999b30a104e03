"""
A fastcs read-only attribute that reads a single bit from a shared io_ref.
"""

from fastcs.attributes.attr_r import AttrR
from fastcs.datatypes import Int

from fastcs_toneburst.register_io import ToneBurstRegisterIORef


class AttrBit(AttrR[int]):
    """A read-only attribute holding one bit of a register.

    The io_ref polls the whole register word; update() keeps only the
    selected bit. Used for the flag bits of the STATUS register.

    Attributes:
        bit_index: The index of the bit to read (0 for least significant bit).
    """

    def __init__(
        self,
        bit_index: int,
        io_ref: ToneBurstRegisterIORef,
        group: str | None = None,
        description: str | None = None,
    ):
        """Initialize the AttrBit.

        Args:
            bit_index: The index of the bit to read (0 for least significant bit).
            io_ref: The shared io_ref providing the register word.
            group: Optional group name for the attribute.
            description: Optional description of the attribute.
        """
        super().__init__(
            datatype=Int(), io_ref=io_ref, group=group, description=description
        )
        self.bit_index = bit_index

    async def update(self, value: int) -> None:
        """Update the attribute from a full register word.

        Args:
            value: The register word from which to extract the bit.
        """
        await super().update((int(value) >> self.bit_index) & 0x1)
