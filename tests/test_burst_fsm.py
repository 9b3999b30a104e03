"""Unit tests for the burst controller state machine."""

import pytest

from fastcs_toneburst.burst_fsm import (
    BurstState,
    ControllerState,
    PulseTiming,
    apply,
    pulse_timing,
    step,
    transition,
)
from fastcs_toneburst.fields import ControlRegister
from fastcs_toneburst.register_file import BurstConfig, RegisterSnapshot

ENABLED = ControlRegister(enable=True)
TRIGGERED = ControlRegister(enable=True, trigger=True)
DISABLED = ControlRegister()

CONFIG = BurstConfig(
    pulse_count=2,
    burst_count=1,
    duty_cycle=512,
    inter_burst_delay=3,
    pulse_period=4,
)
TIMING = pulse_timing(CONFIG.pulse_period, CONFIG.duty_cycle)


# =============================================================================
# Pulse Timing
# =============================================================================


class TestPulseTiming:
    """Tests for high/low time derivation."""

    @pytest.mark.parametrize(
        "period, duty, high, low",
        [
            (100, 512, 50, 50),
            (4, 512, 2, 2),
            (100, 0, 0, 100),
            (100, 1024, 100, 0),
            (100, 256, 25, 75),
            (7, 512, 3, 4),
            (0, 512, 0, 0),
        ],
    )
    def test_split(self, period, duty, high, low):
        """Test the floor of the high portion and the remainder."""
        assert pulse_timing(period, duty) == PulseTiming(high=high, low=low)

    @pytest.mark.parametrize("period", [1, 3, 99, 1000, 0xFFFF])
    @pytest.mark.parametrize("duty", [0, 1, 333, 512, 1023, 1024])
    def test_high_plus_low_is_period(self, period, duty):
        """Test that the two phases always add up to the period."""
        timing = pulse_timing(period, duty)
        assert timing.high + timing.low == period

    def test_duty_above_scale_wraps_low_time(self):
        """Test that a duty cycle above 1024 wraps the low time."""
        timing = pulse_timing(100, 2048)
        assert timing.high == 200
        assert timing.low == 0xFFFFFF9C
        assert (timing.high + timing.low) & 0xFFFFFFFF == 100

    def test_product_wraps_at_32_bits(self):
        """Test that period * duty is evaluated in 32-bit arithmetic."""
        timing = pulse_timing(0x00400000, 1024)
        assert timing.high == 0
        assert timing.low == 0x00400000


# =============================================================================
# Transitions
# =============================================================================


class TestTransition:
    """Tests for next-state decisions."""

    def test_idle_needs_enable_and_trigger(self):
        """Test that IDLE only leaves on enable and trigger together."""
        idle = ControllerState()
        assert transition(idle, TRIGGERED, CONFIG, TIMING) == BurstState.PULSE_HIGH
        assert transition(idle, ENABLED, CONFIG, TIMING) == BurstState.IDLE
        trigger_only = ControlRegister(trigger=True)
        assert transition(idle, trigger_only, CONFIG, TIMING) == BurstState.IDLE

    @pytest.mark.parametrize(
        "period_counter, expected",
        [
            (0, BurstState.PULSE_HIGH),
            (1, BurstState.PULSE_HIGH),
            (2, BurstState.PULSE_LOW),
        ],
    )
    def test_pulse_high(self, period_counter, expected):
        """Test that PULSE_HIGH ends once the counter reaches the high time."""
        current = ControllerState(BurstState.PULSE_HIGH, period_counter=period_counter)
        assert transition(current, DISABLED, CONFIG, TIMING) == expected

    @pytest.mark.parametrize(
        "pulses, bursts, expected",
        [
            (0, 0, BurstState.PULSE_HIGH),
            (1, 0, BurstState.PULSE_HIGH),
            (2, 0, BurstState.INTER_BURST_DELAY),
            (1, 1, BurstState.PULSE_HIGH),
            (2, 1, BurstState.DONE),
        ],
    )
    def test_pulse_low_end(self, pulses, bursts, expected):
        """Test the three exits of PULSE_LOW at the end of the low time."""
        current = ControllerState(
            BurstState.PULSE_LOW,
            pulse_counter=pulses,
            burst_counter=bursts,
            period_counter=TIMING.low,
        )
        assert transition(current, ENABLED, CONFIG, TIMING) == expected

    def test_pulse_low_holds_before_low_time(self):
        """Test that PULSE_LOW holds while the counter is below the low time."""
        current = ControllerState(
            BurstState.PULSE_LOW, pulse_counter=2, burst_counter=1, period_counter=1
        )
        assert transition(current, ENABLED, CONFIG, TIMING) == BurstState.PULSE_LOW

    def test_inter_burst_delay(self):
        """Test that the gap ends once the delay counter reaches the delay."""
        waiting = ControllerState(BurstState.INTER_BURST_DELAY, delay_counter=2)
        done = ControllerState(BurstState.INTER_BURST_DELAY, delay_counter=3)
        assert transition(waiting, ENABLED, CONFIG, TIMING) == (
            BurstState.INTER_BURST_DELAY
        )
        assert transition(done, ENABLED, CONFIG, TIMING) == BurstState.PULSE_HIGH

    @pytest.mark.parametrize(
        "control, expected",
        [
            (ENABLED, BurstState.DONE),
            (DISABLED, BurstState.IDLE),
            (TRIGGERED, BurstState.IDLE),
            (ControlRegister(trigger=True), BurstState.IDLE),
        ],
    )
    def test_done(self, control, expected):
        """Test that DONE holds only while enabled and not triggered."""
        done = ControllerState(BurstState.DONE)
        assert transition(done, control, CONFIG, TIMING) == expected

    @pytest.mark.parametrize(
        "state",
        [BurstState.PULSE_HIGH, BurstState.PULSE_LOW, BurstState.INTER_BURST_DELAY],
    )
    def test_active_states_ignore_control(self, state):
        """Test that enable and trigger are not sampled mid-run."""
        current = ControllerState(state)
        results = {
            transition(current, control, CONFIG, TIMING)
            for control in (ENABLED, DISABLED, TRIGGERED)
        }
        assert len(results) == 1


# =============================================================================
# Counter Updates
# =============================================================================


class TestApply:
    """Tests for counter and output updates."""

    def test_idle_zeroes_counters(self):
        """Test that IDLE leaves every counter at zero."""
        current = ControllerState(BurstState.IDLE, pulse_counter=3, delay_counter=9)
        updated, level = apply(current, BurstState.PULSE_HIGH)
        assert updated == ControllerState(BurstState.PULSE_HIGH)
        assert level is False

    def test_pulse_high_counts_then_resets(self):
        """Test the period counter in PULSE_HIGH."""
        current = ControllerState(BurstState.PULSE_HIGH, period_counter=1)
        staying, level = apply(current, BurstState.PULSE_HIGH)
        assert staying.period_counter == 2
        assert level is True
        leaving, level = apply(staying, BurstState.PULSE_LOW)
        assert leaving.period_counter == 0
        assert leaving.state == BurstState.PULSE_LOW
        assert level is True

    def test_pulse_low_to_pulse_high_counts_pulse(self):
        """Test that returning to PULSE_HIGH counts a pulse."""
        current = ControllerState(
            BurstState.PULSE_LOW, pulse_counter=1, period_counter=2
        )
        updated, level = apply(current, BurstState.PULSE_HIGH)
        assert updated.pulse_counter == 2
        assert updated.period_counter == 0
        assert level is False

    def test_pulse_low_to_delay_counts_burst(self):
        """Test that entering the gap restarts pulses and counts a burst."""
        current = ControllerState(
            BurstState.PULSE_LOW, pulse_counter=2, burst_counter=0, period_counter=2
        )
        updated, _ = apply(current, BurstState.INTER_BURST_DELAY)
        assert updated == ControllerState(
            BurstState.INTER_BURST_DELAY, pulse_counter=0, burst_counter=1
        )

    def test_pulse_low_to_done_holds_counters(self):
        """Test that finishing the run keeps the final counts."""
        current = ControllerState(
            BurstState.PULSE_LOW, pulse_counter=2, burst_counter=1, period_counter=2
        )
        updated, _ = apply(current, BurstState.DONE)
        assert updated == ControllerState(
            BurstState.DONE, pulse_counter=2, burst_counter=1, period_counter=2
        )

    def test_done_to_idle_zeroes_counters(self):
        """Test that leaving DONE clears everything."""
        current = ControllerState(BurstState.DONE, pulse_counter=2, burst_counter=1)
        updated, level = apply(current, BurstState.IDLE)
        assert updated == ControllerState()
        assert level is False

    def test_counters_wrap(self):
        """Test that counters wrap silently at 32 bits."""
        low = ControllerState(BurstState.PULSE_LOW, period_counter=0xFFFFFFFF)
        assert apply(low, BurstState.PULSE_LOW)[0].period_counter == 0
        gap = ControllerState(BurstState.INTER_BURST_DELAY, delay_counter=0xFFFFFFFF)
        assert apply(gap, BurstState.INTER_BURST_DELAY)[0].delay_counter == 0


# =============================================================================
# Step
# =============================================================================


class TestStep:
    """Tests for the combined step function."""

    def test_status_describes_start_of_tick(self):
        """Test that the status snapshot reports the state before the tick."""
        result = step(ControllerState(), RegisterSnapshot(TRIGGERED, CONFIG))
        assert result.state.state == BurstState.PULSE_HIGH
        assert result.status.state_code == BurstState.IDLE
        assert not result.status.busy
        assert result.tone_out is False

    def test_status_flags(self):
        """Test the flag bits for each state."""
        snapshot = RegisterSnapshot(ENABLED, CONFIG)
        high = step(ControllerState(BurstState.PULSE_HIGH), snapshot).status
        assert high.busy and high.in_pulse_high and not high.complete
        gap = step(ControllerState(BurstState.INTER_BURST_DELAY), snapshot).status
        assert gap.busy and gap.in_inter_burst_delay
        done = step(ControllerState(BurstState.DONE), snapshot).status
        assert done.complete and not done.busy

    def test_step_does_not_mutate(self):
        """Test that the input state is left untouched."""
        current = ControllerState(BurstState.PULSE_HIGH, period_counter=1)
        step(current, RegisterSnapshot(ENABLED, CONFIG))
        assert current == ControllerState(BurstState.PULSE_HIGH, period_counter=1)
