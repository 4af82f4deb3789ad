"""
Default TCP client configuration for the live feed transport.

These values are used by the TCP client when no explicit arguments (or
config.yaml values) are provided.

Attributes
----------
HOST
    Default address of the live feed publisher.
PORT
    Default TCP port of the live feed publisher.
TIMEOUT_S
    Default connection timeout (seconds) for TCP clients.
"""

from __future__ import annotations

HOST: str = "127.0.0.1"
PORT: int = 9010
TIMEOUT_S: float = 5.0
