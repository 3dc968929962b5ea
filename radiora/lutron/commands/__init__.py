from .base import LutronCommand, format_parameter
from .output import OutputAction, OutputCommand, SetLevelOptions

__all__ = [
    "LutronCommand",
    "OutputAction",
    "OutputCommand",
    "SetLevelOptions",
    "format_parameter",
]
