"""
Mock services for exercising the probe locally.

- MockControlBox: stand-in for the control box simulator's frontend socket
"""

from .control_box import ControlBoxState, MockControlBox

__all__ = ["ControlBoxState", "MockControlBox"]
