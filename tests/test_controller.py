"""Unit tests for ToneBurstController.

These tests directly call the controller methods without using EPICS.
They can use either real hardware or a simulator.

Run with: pytest tests/test_controller.py -v --port /dev/ttyUSB0
Or with simulator (default):
    pytest tests/test_controller.py -v
"""

import pytest

from fastcs_toneburst.burst_fsm import ACTIVE_STATES, BurstState
from fastcs_toneburst.controllers import StatusController
from fastcs_toneburst.registers import RegAddr
from fastcs_toneburst.toneburst_controller import ToneBurstController


@pytest.fixture
async def toneburst_port(request):
    """Get the serial port from command line or use simulator."""
    port = request.config.getoption("--port", default=None)
    if port is None:
        # Default to simulator if no port specified
        return "sim://toneburst"
    return port


@pytest.fixture
async def toneburst_controller(toneburst_port):
    """Create and connect a ToneBurstController instance for testing."""
    # Manual clock so that only writes, resets and explicit steps advance it
    controller = ToneBurstController(toneburst_port, sim_ticks=0)
    # Must call post_initialise before connect to set up IO callbacks
    controller.post_initialise()
    await controller.connect()
    yield controller
    await controller.disconnect()


@pytest.fixture
def device(toneburst_controller):
    """The simulated device behind the controller."""
    transport = toneburst_controller.transport
    if transport is None or transport.simulator is None:
        pytest.skip("Requires the simulator")
    return transport.simulator.device


# Connection


@pytest.mark.asyncio
async def test_connected_attribute(toneburst_controller):
    """Test that connected attribute is True after connection."""
    assert toneburst_controller.connected.get() is True


@pytest.mark.asyncio
async def test_status_msg_attribute(toneburst_controller, toneburst_port):
    """Test that the status message names the port."""
    value = toneburst_controller.status_msg.get()
    assert isinstance(value, str)
    assert toneburst_port in value


@pytest.mark.asyncio
async def test_disconnect():
    """Test that disconnect clears the connection state."""
    controller = ToneBurstController("sim://toneburst", sim_ticks=0)
    controller.post_initialise()
    await controller.connect()
    await controller.disconnect()
    assert controller.connected.get() is False
    assert controller.transport is None
    assert controller.status_msg.get() == "Disconnected"


@pytest.mark.asyncio
async def test_command_requires_connection():
    """Test that commands fail cleanly before connect."""
    controller = ToneBurstController("sim://toneburst", sim_ticks=0)
    with pytest.raises(RuntimeError, match="Not connected"):
        await controller.start()


@pytest.mark.asyncio
async def test_status_sub_controller(toneburst_controller):
    """Test that the decoded STATUS view is attached."""
    assert isinstance(toneburst_controller.status, StatusController)


# Attribute write tests


@pytest.mark.asyncio
async def test_pulse_count_write(toneburst_controller, device):
    """Test writing PULSE_COUNT through its attribute."""
    await toneburst_controller.pulse_count.put(3)
    assert toneburst_controller.pulse_count.get() == 3
    assert device.read(RegAddr.PULSE_COUNT) == 3


@pytest.mark.asyncio
async def test_pulse_period_write(toneburst_controller, device):
    """Test writing PULSE_PERIOD through its attribute."""
    await toneburst_controller.pulse_period.put(4)
    assert toneburst_controller.pulse_period.get() == 4
    assert device.read(RegAddr.PULSE_PERIOD) == 4


@pytest.mark.asyncio
async def test_control_write_reads_back_trigger(toneburst_controller):
    """Test that the trigger bit is still set on immediate readback."""
    await toneburst_controller.control.put(0b11)
    assert toneburst_controller.control.get() == 0b11


# Commands


@pytest.mark.asyncio
async def test_start_command(toneburst_controller, device):
    """Test that start triggers a run."""
    await toneburst_controller.start()
    assert device.state == BurstState.PULSE_HIGH
    assert toneburst_controller.control.get() == 0b11
    assert toneburst_controller.status_msg.get() == "Started"


@pytest.mark.asyncio
async def test_start_restarts_from_done(toneburst_controller, device):
    """Test that start in DONE runs the sequence again."""
    await toneburst_controller.pulse_period.put(4)
    await toneburst_controller.pulse_count.put(0)
    await toneburst_controller.burst_count.put(0)
    await toneburst_controller.start()
    device.run_until(BurstState.DONE, 100)

    await toneburst_controller.start()
    assert device.state == BurstState.IDLE
    device.step()
    assert device.state == BurstState.PULSE_HIGH


@pytest.mark.asyncio
async def test_stop_does_not_abort(toneburst_controller, device):
    """Test that stop clears enable but the run carries on."""
    await toneburst_controller.start()
    await toneburst_controller.stop()
    assert toneburst_controller.control.get() == 0
    assert device.state in ACTIVE_STATES
    assert toneburst_controller.status_msg.get() == "Stopped"


@pytest.mark.asyncio
async def test_reset_command(toneburst_controller, device):
    """Test that reset restores the defaults."""
    await toneburst_controller.pulse_period.put(4)
    await toneburst_controller.start()
    await toneburst_controller.reset()
    assert device.read(RegAddr.PULSE_PERIOD) == 100
    assert device.state == BurstState.IDLE
    assert toneburst_controller.status_msg.get() == "Reset"


# Derived values


@pytest.mark.asyncio
async def test_derived_timing(toneburst_controller):
    """Test the pulse timing derived from the default registers."""
    await toneburst_controller.refresh_derived_values()
    assert toneburst_controller.pulse_high_time.get() == 50
    assert toneburst_controller.pulse_low_time.get() == 50
    assert toneburst_controller.status.state.get() == BurstState.IDLE
    assert toneburst_controller.tone_out.get() is False


@pytest.mark.asyncio
async def test_derived_timing_follows_registers(toneburst_controller):
    """Test that derived timing tracks PULSE_PERIOD and DUTY_CYCLE."""
    await toneburst_controller.pulse_period.put(8)
    await toneburst_controller.duty_cycle.put(256)
    await toneburst_controller.refresh_derived_values()
    assert toneburst_controller.pulse_high_time.get() == 2
    assert toneburst_controller.pulse_low_time.get() == 6


@pytest.mark.asyncio
async def test_derived_status_during_run(toneburst_controller, device):
    """Test the decoded status once a run is under way."""
    await toneburst_controller.start()
    device.step()
    await toneburst_controller.refresh_derived_values()

    status = toneburst_controller.status
    assert status.state.get() == BurstState.PULSE_HIGH
    assert status.pulse_counter.get() == 0
    assert status.burst_counter.get() == 0
    assert toneburst_controller.status_word.get() == device.read(RegAddr.STATUS)
    assert toneburst_controller.tone_out.get() is True
