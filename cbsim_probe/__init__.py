"""
cbsim-probe: a WebSocket probe for the control box simulator frontend socket.

The probe connects to the simulator's ``/ws`` endpoint, asks for the entity
list and the full data set, logs whatever the simulator pushes back and exits
after a fixed lifetime.
"""

__version__ = "0.1.0"
