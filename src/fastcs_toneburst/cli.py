"""Command-line interface for tone burst generator testing.

Provides interactive commands for exercising the ToneBurstTransport and
ToneBurstProtocol layers against real hardware or the simulator.
"""

import argparse
import asyncio
import logging
import sys
from typing import NoReturn

from .burst_fsm import BurstState
from .constants import SIM_TICKS_PER_PERIOD
from .fields import ControlRegister, StatusRegister
from .protocol import ProtocolError, ToneBurstProtocol
from .registers import RegAddr, get_all_registers
from .transport import ToneBurstTransport

logger = logging.getLogger(__name__)


class ToneBurstCLI:
    """Interactive CLI for the tone burst generator.

    Commands:
    - r <addr>: Read register (hex address)
    - w <addr> <value>: Write register (hex addr and value)
    - regs: Read all implemented registers
    - status: Decode the STATUS register
    - tick [n]: Advance the clock n ticks (default 1)
    - out: Show the tone output level
    - start: Set enable and trigger
    - stop: Clear enable
    - reset: Reset all registers to defaults
    - quit: Exit
    """

    def __init__(self, port: str, sim_ticks: int = SIM_TICKS_PER_PERIOD):
        """Initialize CLI.

        Args:
            port: Serial port path or sim://name
            sim_ticks: Simulated ticks per clock period (0 = manual clock)
        """
        self.port = port
        self.sim_ticks = sim_ticks
        self.transport: ToneBurstTransport | None = None
        self.protocol: ToneBurstProtocol | None = None

    async def start(self) -> None:
        """Connect to the generator."""
        self.transport = ToneBurstTransport(self.port, sim_ticks=self.sim_ticks)
        await self.transport.connect()
        self.protocol = ToneBurstProtocol(self.transport)

        print(f"Connected to tone burst generator on {self.port}")
        print("Type 'help' for available commands")

    async def stop(self) -> None:
        """Disconnect from the generator."""
        if self.transport:
            await self.transport.disconnect()

        print("Disconnected")

    async def run_command(self, cmd_line: str) -> bool:
        """Execute a command.

        Args:
            cmd_line: Command line input

        Returns:
            False if should exit, True otherwise
        """
        parts = cmd_line.strip().split()
        if not parts:
            return True

        cmd = parts[0].lower()
        protocol = self.protocol

        try:
            if cmd in ("quit", "exit", "q"):
                return False

            elif protocol is None:
                print("Not connected")

            elif cmd == "help":
                print(self.__class__.__doc__)

            elif cmd == "r" and len(parts) == 2:
                addr = int(parts[1], 16)
                value = await protocol.read_register(addr)
                print(f"R{addr:X} = {value:#010x} ({value})")

            elif cmd == "w" and len(parts) == 3:
                addr = int(parts[1], 16)
                value = int(parts[2], 16)
                result = await protocol.write_register(addr, value)
                print(f"W{addr:X} {value:#010x} -> {result:#010x}")

            elif cmd == "regs":
                for reg in get_all_registers():
                    value = await protocol.read_register(reg.address)
                    print(f"{reg.address:X} {reg.name:<18} {value:#010x} ({value})")

            elif cmd == "status":
                word = await protocol.read_register(RegAddr.STATUS)
                status = StatusRegister.decode(word)
                state = (
                    BurstState(status.state_code).name
                    if status.state_code <= max(BurstState)
                    else f"UNKNOWN({status.state_code})"
                )
                print(
                    f"state={state} busy={int(status.busy)} "
                    f"complete={int(status.complete)} "
                    f"pulses={status.pulse_counter} bursts={status.burst_counter}"
                )

            elif cmd == "tick" and len(parts) <= 2:
                count = int(parts[1]) if len(parts) == 2 else 1
                await protocol.step(count)
                print(f"Advanced {count} tick(s)")

            elif cmd == "out":
                level = await protocol.read_output()
                print(f"tone_out = {int(level)}")

            elif cmd == "start":
                control = ControlRegister(enable=True, trigger=True)
                await protocol.write_register(
                    RegAddr.CONTROL, control.encode(), verify=False
                )
                print("Burst run triggered")

            elif cmd == "stop":
                await protocol.write_register(
                    RegAddr.CONTROL, ControlRegister().encode(), verify=False
                )
                print("Generator disabled")

            elif cmd == "reset":
                await protocol.reset()
                print("Registers reset to defaults")

            else:
                print(f"Unknown command: {cmd}")
                print("Type 'help' for available commands")

        except ValueError as e:
            print(f"Error: {e}")
        except (ProtocolError, TimeoutError) as e:
            print(f"Command failed: {e}")
            logger.exception("Command error")

        return True

    async def run_interactive(self) -> None:
        """Run interactive command loop."""
        await self.start()

        try:
            while True:
                try:
                    loop = asyncio.get_running_loop()
                    cmd_line = await loop.run_in_executor(None, input, "tone> ")

                    should_continue = await self.run_command(cmd_line)
                    if not should_continue:
                        break

                except EOFError:
                    print()
                    break
                except KeyboardInterrupt:
                    print()
                    break

        finally:
            await self.stop()


async def async_main(args: argparse.Namespace) -> int:
    """Async main entry point.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    cli = ToneBurstCLI(args.port, sim_ticks=args.sim_ticks)

    if args.command:
        await cli.start()
        try:
            await cli.run_command(" ".join(args.command))
        finally:
            await cli.stop()
        return 0

    await cli.run_interactive()
    return 0


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv)
    """
    parser = argparse.ArgumentParser(description="Tone burst generator test tool")
    parser.add_argument(
        "port",
        help="Serial port (e.g., /dev/ttyUSB0) or sim://name",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "-c",
        "--command",
        nargs="+",
        help="Execute single command and exit",
    )
    parser.add_argument(
        "--sim-ticks",
        type=int,
        default=0,
        help="Simulated clock ticks per period (default: 0, step with 'tick')",
    )

    args = parser.parse_args(argv)

    try:
        exit_code = asyncio.run(async_main(args))
    except KeyboardInterrupt:
        print("\nInterrupted")
        exit_code = 130

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
