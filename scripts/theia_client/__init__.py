"""
Theia client - keeps a WebSocket session to the host application, routes
command events and relays the responses over HTTP.

Usage:
    theia-client --config config.json
"""

from theia_client.cli import main

__all__ = ["main"]
