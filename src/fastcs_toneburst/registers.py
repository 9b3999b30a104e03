"""Tone burst generator register definitions.

This module provides the register map of the tone burst generator:
- Register definitions with access type and power-on default
- Bounds-checked lookup by name or address
- Default values applied at power-on and on every reset tick

The register file exposes a 4-bit address space (0x0-0xF) of 32-bit
registers. Only addresses 0x0-0x6 are implemented; the rest are valid to
address but read as zero and ignore writes.
"""

import enum
from dataclasses import dataclass
from enum import Enum, auto

ADDRESS_BITS = 4
ADDRESS_SPACE = 1 << ADDRESS_BITS
DATA_MASK = 0xFFFFFFFF


class RegisterType(Enum):
    """Register type classification.

    - RW: Read-Write configuration register
    - RO: Read-Only status register
    """

    RW = auto()  # Read-Write
    RO = auto()  # Read-Only


class RegAddr(enum.IntEnum):
    """Addresses of the implemented registers."""

    CONTROL = 0x0
    PULSE_COUNT = 0x1
    BURST_COUNT = 0x2
    DUTY_CYCLE = 0x3
    INTER_BURST_DELAY = 0x4
    PULSE_PERIOD = 0x5
    STATUS = 0x6


@dataclass(frozen=True)
class Register:
    """Definition of a single tone burst register.

    Attributes:
        name: Register name (e.g., 'PULSE_COUNT')
        address: Register address (0x0-0xF)
        reg_type: Register type (RW, RO)
        default: Value loaded at power-on and on reset
        description: Optional description of register purpose
    """

    name: str
    address: int
    reg_type: RegisterType
    default: int = 0
    description: str = ""

    def __post_init__(self):
        """Validate register address and default are in range."""
        if not 0 <= self.address < ADDRESS_SPACE:
            raise ValueError(
                f"Register address {self.address:#03x} out of range [0x0-0xF]"
            )
        if not 0 <= self.default <= DATA_MASK:
            raise ValueError(f"Register default {self.default:#x} exceeds 32 bits")


_REGISTERS: tuple[Register, ...] = (
    Register(
        "CONTROL",
        RegAddr.CONTROL,
        RegisterType.RW,
        0x0,
        "Enable, self-clearing trigger and reserved control bits",
    ),
    Register(
        "PULSE_COUNT", RegAddr.PULSE_COUNT, RegisterType.RW, 10, "Pulses per burst"
    ),
    Register(
        "BURST_COUNT", RegAddr.BURST_COUNT, RegisterType.RW, 5, "Bursts per run"
    ),
    Register(
        "DUTY_CYCLE",
        RegAddr.DUTY_CYCLE,
        RegisterType.RW,
        512,
        "High fraction of the pulse period, in 1/1024ths",
    ),
    Register(
        "INTER_BURST_DELAY",
        RegAddr.INTER_BURST_DELAY,
        RegisterType.RW,
        1000,
        "Idle ticks between bursts",
    ),
    Register(
        "PULSE_PERIOD",
        RegAddr.PULSE_PERIOD,
        RegisterType.RW,
        100,
        "Ticks per pulse (high + low)",
    ),
    Register(
        "STATUS",
        RegAddr.STATUS,
        RegisterType.RO,
        0x0,
        "Controller status snapshot from the previous tick",
    ),
)


# =============================================================================
# Lookup Dictionaries (built at module load time)
# =============================================================================

REGISTERS_BY_NAME: dict[str, Register] = {reg.name: reg for reg in _REGISTERS}

REGISTERS_BY_ADDRESS: dict[int, Register] = {reg.address: reg for reg in _REGISTERS}

DEFAULTS: dict[RegAddr, int] = {RegAddr(reg.address): reg.default for reg in _REGISTERS}


def get_register(name_or_address: str | int) -> Register:
    """Get a register definition by name or address.

    Args:
        name_or_address: Register name (str) or address (int)

    Returns:
        Register definition

    Raises:
        KeyError: If register not found
    """
    if isinstance(name_or_address, str):
        if name_or_address not in REGISTERS_BY_NAME:
            raise KeyError(f"Unknown register name: {name_or_address!r}")
        return REGISTERS_BY_NAME[name_or_address]
    else:
        if name_or_address not in REGISTERS_BY_ADDRESS:
            raise KeyError(f"Unknown register address: {name_or_address:#03x}")
        return REGISTERS_BY_ADDRESS[name_or_address]


def get_all_registers(reg_type: RegisterType | None = None) -> list[Register]:
    """Get all register definitions, optionally filtered by type.

    Args:
        reg_type: If specified, only return registers of this type

    Returns:
        List of Register objects
    """
    if reg_type is None:
        return list(_REGISTERS)
    return [reg for reg in _REGISTERS if reg.reg_type == reg_type]


def to_reg_addr(address: int) -> RegAddr | None:
    """Resolve a raw bus address to an implemented register.

    Args:
        address: Raw bus address

    Returns:
        The matching RegAddr, or None for unimplemented addresses
    """
    if address in REGISTERS_BY_ADDRESS:
        return RegAddr(address)
    return None


def is_readonly_register(address: int) -> bool:
    """Check if a register address is read-only.

    Args:
        address: Register address

    Returns:
        True if register is read-only
    """
    reg = REGISTERS_BY_ADDRESS.get(address)
    return reg is not None and reg.reg_type == RegisterType.RO


def is_writable_register(address: int) -> bool:
    """Check if a host write to this address is committed.

    Args:
        address: Register address

    Returns:
        True for implemented read-write registers
    """
    reg = REGISTERS_BY_ADDRESS.get(address)
    return reg is not None and reg.reg_type == RegisterType.RW
