"""Named-field views of the packed CONTROL and STATUS words.

Bit-level access to these registers goes through decode -> replace a field
-> encode, so no caller slices the raw words directly.

CONTROL (address 0x0):
- bit 0: enable
- bit 1: trigger (self-clearing)
- bit 2: reset (reserved)
- bit 3: auto_mode (reserved)
- bits 4-31: stored and read back unchanged

STATUS (address 0x6):
- bit 0: busy
- bit 1: complete
- bit 2: in_pulse_high
- bit 3: in_pulse_low
- bit 4: in_inter_burst_delay
- bits 8-15: pulse counter (low byte)
- bits 16-23: burst counter (low byte)
- bits 24-31: controller state code
"""

from dataclasses import dataclass

from .registers import DATA_MASK

ENABLE_BIT = 0
TRIGGER_BIT = 1
RESET_BIT = 2
AUTO_MODE_BIT = 3

_CONTROL_FLAG_MASK = 0xF

BUSY_BIT = 0
COMPLETE_BIT = 1
IN_PULSE_HIGH_BIT = 2
IN_PULSE_LOW_BIT = 3
IN_INTER_BURST_DELAY_BIT = 4

PULSE_COUNTER_SHIFT = 8
BURST_COUNTER_SHIFT = 16
STATE_SHIFT = 24


def _bit(value: int, index: int) -> bool:
    return bool((value >> index) & 1)


@dataclass(frozen=True)
class ControlRegister:
    """Decoded CONTROL register.

    Attributes:
        enable: Allows a trigger to start a run, and holds Done until cleared
        trigger: Starts a run from Idle, or leaves Done
        reset: Reserved
        auto_mode: Reserved
        upper: Bits 4-31, kept verbatim
    """

    enable: bool = False
    trigger: bool = False
    reset: bool = False
    auto_mode: bool = False
    upper: int = 0

    @classmethod
    def decode(cls, word: int) -> "ControlRegister":
        word &= DATA_MASK
        return cls(
            enable=_bit(word, ENABLE_BIT),
            trigger=_bit(word, TRIGGER_BIT),
            reset=_bit(word, RESET_BIT),
            auto_mode=_bit(word, AUTO_MODE_BIT),
            upper=word & ~_CONTROL_FLAG_MASK,
        )

    def encode(self) -> int:
        return (
            (self.upper & DATA_MASK & ~_CONTROL_FLAG_MASK)
            | int(self.enable) << ENABLE_BIT
            | int(self.trigger) << TRIGGER_BIT
            | int(self.reset) << RESET_BIT
            | int(self.auto_mode) << AUTO_MODE_BIT
        )


@dataclass(frozen=True)
class StatusRegister:
    """Decoded STATUS register.

    Counters are carried as their low byte only; the full counters live in
    the controller state.
    """

    busy: bool = False
    complete: bool = False
    in_pulse_high: bool = False
    in_pulse_low: bool = False
    in_inter_burst_delay: bool = False
    pulse_counter: int = 0
    burst_counter: int = 0
    state_code: int = 0

    @classmethod
    def decode(cls, word: int) -> "StatusRegister":
        word &= DATA_MASK
        return cls(
            busy=_bit(word, BUSY_BIT),
            complete=_bit(word, COMPLETE_BIT),
            in_pulse_high=_bit(word, IN_PULSE_HIGH_BIT),
            in_pulse_low=_bit(word, IN_PULSE_LOW_BIT),
            in_inter_burst_delay=_bit(word, IN_INTER_BURST_DELAY_BIT),
            pulse_counter=(word >> PULSE_COUNTER_SHIFT) & 0xFF,
            burst_counter=(word >> BURST_COUNTER_SHIFT) & 0xFF,
            state_code=(word >> STATE_SHIFT) & 0xFF,
        )

    def encode(self) -> int:
        return (
            int(self.busy) << BUSY_BIT
            | int(self.complete) << COMPLETE_BIT
            | int(self.in_pulse_high) << IN_PULSE_HIGH_BIT
            | int(self.in_pulse_low) << IN_PULSE_LOW_BIT
            | int(self.in_inter_burst_delay) << IN_INTER_BURST_DELAY_BIT
            | (self.pulse_counter & 0xFF) << PULSE_COUNTER_SHIFT
            | (self.burst_counter & 0xFF) << BURST_COUNTER_SHIFT
            | (self.state_code & 0xFF) << STATE_SHIFT
        )
