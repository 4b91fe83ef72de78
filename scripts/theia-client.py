#!/usr/bin/env python3
"""
Theia WebSocket Client

Connects to the host application over WebSocket, answers command events
through the HTTP message API, and reconnects with exponential backoff.

Usage:
    ./theia-client.py [--config PATH] [--log-file PATH] [--debug] [--no-update-check]
"""

from theia_client.cli import main

if __name__ == '__main__':
    main()
