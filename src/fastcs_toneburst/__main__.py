"""FastCS tone burst EPICS server entry point.

Launches a FastCS server that exposes the tone burst generator via EPICS PVs.

Usage:
    python -m fastcs_toneburst --port /dev/ttyUSB0 --pv-prefix BL99I-EA-TONE-01
    python -m fastcs_toneburst --port sim://tone --sim-ticks 100 --diagnostics
"""

import logging
from argparse import ArgumentParser
from collections.abc import Sequence
from pathlib import Path

from . import __version__
from .constants import SIM_TICKS_PER_PERIOD
from .toneburst_controller import ToneBurstController

__all__ = ["main"]


def main(args: Sequence[str] | None = None) -> None:
    """Launch the FastCS tone burst EPICS server."""
    parser = ArgumentParser(description="FastCS Tone Burst EPICS Server")
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=__version__,
    )
    parser.add_argument(
        "--port",
        type=str,
        required=True,
        help="Serial port path (e.g., /dev/ttyUSB0) or sim://name for the simulator",
    )
    parser.add_argument(
        "--pv-prefix",
        type=str,
        default="TONEBURST",
        help="EPICS PV prefix (default: TONEBURST)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--gui",
        type=str,
        default=None,
        help="Generate Phoebus screen file (e.g., toneburst.bob)",
    )
    parser.add_argument(
        "--no-interactive",
        action="store_true",
        help="Run without the interactive shell",
    )
    parser.add_argument(
        "--sim-ticks",
        type=int,
        default=SIM_TICKS_PER_PERIOD,
        help=(
            "Simulated clock ticks per period, 0 for a manually stepped clock "
            f"(default: {SIM_TICKS_PER_PERIOD})"
        ),
    )
    parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Warn about degenerate configurations (simulator only)",
    )

    parsed_args = parser.parse_args(args)

    logging.basicConfig(
        level=getattr(logging, parsed_args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Import FastCS components (optional dependency for EPICS)
    try:
        from fastcs.launch import FastCS
        from fastcs.transports.epics.ca import EpicsCATransport
        from fastcs.transports.epics.options import (
            EpicsGUIOptions,
            EpicsIOCOptions,
        )
    except ImportError as e:
        print(f"Error: FastCS EPICS transport not available: {e}")
        print("Please install with: pip install 'fastcs[epicsca]'")
        return

    controller = ToneBurstController(
        port=parsed_args.port,
        sim_ticks=parsed_args.sim_ticks,
        diagnostics=parsed_args.diagnostics,
    )

    gui_options = None
    if parsed_args.gui:
        gui_options = EpicsGUIOptions(
            output_path=Path(parsed_args.gui),
            title="Tone Burst Generator",
        )

    transport = EpicsCATransport(
        gui=gui_options,
        epicsca=EpicsIOCOptions(pv_prefix=parsed_args.pv_prefix),
    )

    fastcs = FastCS(controller, [transport])
    fastcs.run(interactive=not parsed_args.no_interactive)


if __name__ == "__main__":
    main()
