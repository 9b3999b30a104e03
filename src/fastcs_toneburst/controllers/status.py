"""STATUS register sub-controller.

Exposes the controller status word as individual flags plus the counter
bytes and state code it carries. The flags poll the STATUS register
directly; the counters and state are derived from the top-level status
word by update_derived_values().
"""

from fastcs.attributes import AttrR
from fastcs.controllers import Controller
from fastcs.datatypes import Enum, Int

from fastcs_toneburst.attr_bit import AttrBit
from fastcs_toneburst.burst_fsm import BurstState
from fastcs_toneburst.constants import FAST_UPDATE
from fastcs_toneburst.fields import (
    BUSY_BIT,
    COMPLETE_BIT,
    IN_INTER_BURST_DELAY_BIT,
    IN_PULSE_HIGH_BIT,
    IN_PULSE_LOW_BIT,
    StatusRegister,
)
from fastcs_toneburst.register_io import ToneBurstRegisterIO, ToneBurstRegisterIORef
from fastcs_toneburst.registers import RegAddr


_STATE_CODES = frozenset(state.value for state in BurstState)


class StatusController(Controller):
    """Decoded view of the STATUS register.

    Attributes:
        busy: A burst run is in progress
        complete: The run has finished and is held in DONE
        in_pulse_high: Controller is in PULSE_HIGH
        in_pulse_low: Controller is in PULSE_LOW
        in_inter_burst_delay: Controller is in INTER_BURST_DELAY
        pulse_counter: Pulse counter (low byte)
        burst_counter: Burst counter (low byte)
        state: Controller state
    """

    def __init__(self, register_io: ToneBurstRegisterIO):
        """Initialize status controller.

        Args:
            register_io: Shared register IO handler
        """
        super().__init__(ios=[register_io])

        self.busy = self.make_bit(BUSY_BIT, "Burst run in progress")
        self.complete = self.make_bit(COMPLETE_BIT, "Run finished")
        self.in_pulse_high = self.make_bit(IN_PULSE_HIGH_BIT, "Output high phase")
        self.in_pulse_low = self.make_bit(IN_PULSE_LOW_BIT, "Output low phase")
        self.in_inter_burst_delay = self.make_bit(
            IN_INTER_BURST_DELAY_BIT, "Gap between bursts"
        )

        self.pulse_counter = AttrR(Int())
        self.burst_counter = AttrR(Int())
        self.state = AttrR(Enum(BurstState))

    @staticmethod
    def make_bit(bit_index: int, description: str) -> AttrBit:
        """Helper to create a flag attribute polling one STATUS bit"""
        io_ref = ToneBurstRegisterIORef(
            register=int(RegAddr.STATUS), update_period=FAST_UPDATE
        )
        return AttrBit(bit_index, io_ref, description=description)

    async def update_derived_values(self, status_word: int) -> None:
        """Update counters and state from the status word.

        Args:
            status_word: Raw STATUS register value
        """
        status = StatusRegister.decode(status_word)
        await self.pulse_counter.update(status.pulse_counter)
        await self.burst_counter.update(status.burst_counter)
        if status.state_code in _STATE_CODES:
            await self.state.update(BurstState(status.state_code))
