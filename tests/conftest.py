"""Pytest configuration for fastcs-toneburst tests."""


def pytest_addoption(parser):
    """Add command line options for testing."""
    parser.addoption(
        "--port",
        action="store",
        default=None,
        help="Tone burst serial port (e.g., /dev/ttyUSB0 or /tmp/vserial0)",
    )
