"""
Default TCP server configuration for the feed simulator.

These values match the dashboard's default `transport.tcp_client` settings
and can be overridden on the command line.

Attributes
----------
HOST
    Default bind address for the feed server.
PORT
    Default TCP port for the feed server.
"""

from __future__ import annotations

HOST: str = "127.0.0.1"
PORT: int = 9010
