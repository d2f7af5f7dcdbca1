"""
Constants used throughout the probe.

Defaults mirror the control box simulator's web frontend: it listens on port
7071 and serves the socket under ``/ws``.
"""

# Logger name used throughout the application
LOGGER_NAME = "cbsim_probe"

# Control box frontend socket
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 7071
DEFAULT_PATH = "/ws"
DEFAULT_URL = f"ws://{DEFAULT_HOST}:{DEFAULT_PORT}{DEFAULT_PATH}"

# Probe timing (seconds)
DEFAULT_LIFETIME = 5.0
DEFAULT_OPEN_TIMEOUT = 10.0
DEFAULT_CLOSE_TIMEOUT = 1.0

# QR code text served by the mock control box when none is configured
DEFAULT_MOCK_QR_TEXT = "SHIP;SKI:0000000000000000000000000000000000000000;ID:Demo-ControlBox-123456789;BRAND:Demo;TYPE:EnergyManagementSystem;MODEL:ControlBox;SERIAL:123456789;CAT:1;ENDSHIP;"

# Raw frames longer than this are truncated in error metadata
MAX_FRAME_PREVIEW = 100
