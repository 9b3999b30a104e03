"""Shared timing constants."""

# Attribute poll periods (seconds)
FAST_UPDATE = 0.2
SLOW_UPDATE = 1.0

# Simulated clock: advance SIM_TICKS_PER_PERIOD ticks every SIM_CLOCK_PERIOD
# seconds (10 kHz effective). Zero ticks means the clock only moves on request.
SIM_CLOCK_PERIOD = 0.01
SIM_TICKS_PER_PERIOD = 100
