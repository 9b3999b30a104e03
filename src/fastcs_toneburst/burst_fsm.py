"""Burst controller state machine.

A pure step function: given the controller state at the start of a tick and
the register snapshot for that tick, decide the next state, then apply the
counter updates for it. Nothing is mutated in place.

Pulse timing is derived from the registers on every tick::

    pulse_high_time = (pulse_period * duty_cycle mod 2**32) // 1024
    pulse_low_time = (pulse_period - pulse_high_time) mod 2**32

A duty cycle above 1024 makes the low time wrap around to a very large value;
this is reproduced rather than clamped.
"""

import enum
from dataclasses import dataclass, replace

from .fields import ControlRegister, StatusRegister
from .register_file import BurstConfig, RegisterSnapshot
from .registers import DATA_MASK

DUTY_CYCLE_SCALE = 1024


class BurstState(enum.IntEnum):
    """Controller states; the value is the code reported in STATUS."""

    IDLE = 0
    PULSE_HIGH = 1
    PULSE_LOW = 2
    INTER_BURST_DELAY = 3
    DONE = 4


ACTIVE_STATES = frozenset(
    {BurstState.PULSE_HIGH, BurstState.PULSE_LOW, BurstState.INTER_BURST_DELAY}
)


@dataclass(frozen=True)
class PulseTiming:
    """High and low phase lengths of one pulse, in ticks."""

    high: int
    low: int


def pulse_timing(pulse_period: int, duty_cycle: int) -> PulseTiming:
    """Split a pulse period into high and low times.

    Args:
        pulse_period: Ticks per pulse
        duty_cycle: High fraction in 1/1024ths (values above 1024 accepted)

    Returns:
        PulseTiming whose high + low equals pulse_period modulo 2**32
    """
    high = ((pulse_period * duty_cycle) & DATA_MASK) // DUTY_CYCLE_SCALE
    low = (pulse_period - high) & DATA_MASK
    return PulseTiming(high=high, low=low)


@dataclass(frozen=True)
class ControllerState:
    """State and counters held by the controller between ticks."""

    state: BurstState = BurstState.IDLE
    pulse_counter: int = 0
    burst_counter: int = 0
    period_counter: int = 0
    delay_counter: int = 0

    @property
    def busy(self) -> bool:
        return self.state in ACTIVE_STATES

    @property
    def complete(self) -> bool:
        return self.state == BurstState.DONE

    def status(self) -> StatusRegister:
        """Build the status snapshot describing this state."""
        return StatusRegister(
            busy=self.busy,
            complete=self.complete,
            in_pulse_high=self.state == BurstState.PULSE_HIGH,
            in_pulse_low=self.state == BurstState.PULSE_LOW,
            in_inter_burst_delay=self.state == BurstState.INTER_BURST_DELAY,
            pulse_counter=self.pulse_counter,
            burst_counter=self.burst_counter,
            state_code=int(self.state),
        )


@dataclass(frozen=True)
class StepResult:
    """Outcome of one controller tick.

    Attributes:
        state: Controller state for the next tick
        tone_out: Output level during this tick
        status: Snapshot of the state this tick started in
    """

    state: ControllerState
    tone_out: bool
    status: StatusRegister


def _inc(value: int) -> int:
    return (value + 1) & DATA_MASK


def transition(
    current: ControllerState,
    control: ControlRegister,
    config: BurstConfig,
    timing: PulseTiming,
) -> BurstState:
    """Decide the next state from the current one.

    enable and trigger are only sampled in IDLE and DONE, so a run in
    progress cannot be aborted or restarted from the register file.
    """
    state = current.state

    if state == BurstState.IDLE:
        if control.enable and control.trigger:
            return BurstState.PULSE_HIGH
        return BurstState.IDLE

    if state == BurstState.PULSE_HIGH:
        if current.period_counter >= timing.high:
            return BurstState.PULSE_LOW
        return BurstState.PULSE_HIGH

    if state == BurstState.PULSE_LOW:
        if current.period_counter < timing.low:
            return BurstState.PULSE_LOW
        burst_full = current.pulse_counter >= config.pulse_count
        if burst_full and current.burst_counter >= config.burst_count:
            return BurstState.DONE
        if burst_full:
            return BurstState.INTER_BURST_DELAY
        return BurstState.PULSE_HIGH

    if state == BurstState.INTER_BURST_DELAY:
        if current.delay_counter >= config.inter_burst_delay:
            return BurstState.PULSE_HIGH
        return BurstState.INTER_BURST_DELAY

    # DONE
    if not control.enable or control.trigger:
        return BurstState.IDLE
    return BurstState.DONE


def apply(
    current: ControllerState, next_state: BurstState
) -> tuple[ControllerState, bool]:
    """Apply the counter updates for a decided transition.

    Args:
        current: State at the start of the tick
        next_state: Result of transition() for the same tick

    Returns:
        (state for the next tick, output level during this tick)
    """
    state = current.state
    leaving = next_state != state

    if state == BurstState.IDLE:
        return ControllerState(state=next_state), False

    if state == BurstState.PULSE_HIGH:
        period = 0 if leaving else _inc(current.period_counter)
        return replace(current, state=next_state, period_counter=period), True

    if state == BurstState.PULSE_LOW:
        if next_state == BurstState.PULSE_HIGH:
            updated = replace(
                current,
                period_counter=0,
                pulse_counter=_inc(current.pulse_counter),
            )
        elif next_state == BurstState.INTER_BURST_DELAY:
            updated = replace(
                current,
                period_counter=0,
                pulse_counter=0,
                burst_counter=_inc(current.burst_counter),
            )
        elif next_state == BurstState.PULSE_LOW:
            updated = replace(current, period_counter=_inc(current.period_counter))
        else:
            updated = current
        return replace(updated, state=next_state), False

    if state == BurstState.INTER_BURST_DELAY:
        delay = 0 if leaving else _inc(current.delay_counter)
        return replace(current, state=next_state, delay_counter=delay), False

    # DONE
    if next_state == BurstState.IDLE:
        return ControllerState(), False
    return current, False


def step(current: ControllerState, snapshot: RegisterSnapshot) -> StepResult:
    """Advance the controller by one tick.

    Args:
        current: Controller state at the start of the tick
        snapshot: Post-write register values for this tick

    Returns:
        StepResult with the next state, output level and status snapshot
    """
    timing = pulse_timing(snapshot.config.pulse_period, snapshot.config.duty_cycle)
    next_state = transition(current, snapshot.control, snapshot.config, timing)
    updated, tone_out = apply(current, next_state)
    return StepResult(state=updated, tone_out=tone_out, status=current.status())
