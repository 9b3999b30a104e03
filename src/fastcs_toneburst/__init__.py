"""Top level API.

This package provides a cycle-accurate model of a register-mapped tone burst
generator together with asyncio serial communication and a FastCS controller.

Core model:
- RegisterFile: the seven 32-bit registers, self-clearing trigger, reset
- burst_fsm: the pure step function of the burst controller
- ToneBurstDevice / tick: one clock tick across both, in hardware order

Device access:
- ToneBurstTransport: serial or in-process simulator I/O
- ToneBurstProtocol: register read/write, clock stepping, reset
- ToneBurstController: FastCS controller exposing the registers as PVs

Example usage::

    from fastcs_toneburst import BusWrite, RegAddr, ToneBurstDevice

    device = ToneBurstDevice()
    device.step(BusWrite(RegAddr.PULSE_PERIOD, 4))
    device.step(BusWrite(RegAddr.CONTROL, 0b11))
    waveform = [int(result.tone_out) for result in device.run(40)]

.. data:: __version__
    :type: str

    Version number as calculated by https://github.com/pypa/setuptools_scm
"""

from ._version import __version__
from .burst_fsm import (
    BurstState,
    ControllerState,
    PulseTiming,
    StepResult,
    apply,
    pulse_timing,
    step,
    transition,
)
from .controllers import StatusController
from .device import BusWrite, TickResult, ToneBurstDevice, check_config, tick
from .fields import ControlRegister, StatusRegister
from .protocol import MalformedResponseError, ProtocolError, ToneBurstProtocol
from .register_file import BurstConfig, RegisterFile, RegisterSnapshot
from .register_io import ToneBurstRegisterIO, ToneBurstRegisterIORef
from .registers import (
    RegAddr,
    Register,
    RegisterType,
    get_all_registers,
    get_register,
    is_readonly_register,
    is_writable_register,
)
from .simulator import ToneBurstSimulator
from .toneburst_controller import ToneBurstController
from .transport import ToneBurstTransport

__all__ = [
    "__version__",
    # Core model
    "BurstConfig",
    "BurstState",
    "BusWrite",
    "ControlRegister",
    "ControllerState",
    "PulseTiming",
    "RegisterFile",
    "RegisterSnapshot",
    "StatusRegister",
    "StepResult",
    "TickResult",
    "ToneBurstDevice",
    "apply",
    "check_config",
    "pulse_timing",
    "step",
    "tick",
    "transition",
    # Register definitions
    "RegAddr",
    "Register",
    "RegisterType",
    "get_register",
    "get_all_registers",
    "is_readonly_register",
    "is_writable_register",
    # Transport, protocol and simulator
    "ToneBurstTransport",
    "ToneBurstProtocol",
    "ToneBurstSimulator",
    "ProtocolError",
    "MalformedResponseError",
    # Controller
    "ToneBurstController",
    "StatusController",
    "ToneBurstRegisterIO",
    "ToneBurstRegisterIORef",
]
