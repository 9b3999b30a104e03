"""Tone burst sub-controllers.

Sub-controllers group FastCS attributes that decode a single register into
individual fields.
"""

from .status import StatusController

__all__ = ["StatusController"]
