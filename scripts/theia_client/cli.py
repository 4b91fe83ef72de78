"""
Command line entry point.

Usage:
    theia-client [--config PATH] [--log-file PATH] [--debug] [--no-update-check]

Environment variables:
    THEIA_CONFIG        - Configuration file (default: config.json)
    THEIA_LOG_FILE      - Append log lines to this file as well
    THEIA_DEBUG         - Set to "1" for debug logging
    THEIA_UPDATE_CHECK  - Set to "0" to disable the update checker
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from theia_client import logs
from theia_client.client import TheiaClient
from theia_client.constants import DEFAULT_CONFIG_PATH
from theia_client.logs import log
from theia_client.settings import ConfigError, Settings


class ClientOptions:
    """Process options for the client."""

    def __init__(self):
        self.config_path = Path(os.environ.get('THEIA_CONFIG', DEFAULT_CONFIG_PATH))
        log_file = os.environ.get('THEIA_LOG_FILE', '')
        self.log_file = Path(log_file) if log_file else None
        self.debug = os.environ.get('THEIA_DEBUG', '') == '1'
        self.update_check = os.environ.get('THEIA_UPDATE_CHECK', '1') != '0'

    def parse_args(self, args: list):
        """Parse command line arguments."""
        parser = argparse.ArgumentParser(description='Theia WebSocket client')
        parser.add_argument('--config', type=str, help='Configuration file')
        parser.add_argument('--log-file', type=str, help='Also append log lines to this file')
        parser.add_argument('--debug', action='store_true', help='Enable debug logging')
        parser.add_argument('--no-update-check', action='store_true', help='Disable the update checker')

        parsed = parser.parse_args(args)

        if parsed.config:
            self.config_path = Path(parsed.config)
        if parsed.log_file:
            self.log_file = Path(parsed.log_file)
        if parsed.debug:
            self.debug = True
        if parsed.no_update_check:
            self.update_check = False


def load_settings(path: Path) -> Settings:
    """Load and validate the configuration, exiting with status 1 on failure."""
    log("Loading configuration...")
    settings = Settings(path)
    try:
        settings.load()
    except ConfigError as e:
        log(f"Configuration error: {e}", "FATAL")
        sys.exit(1)
    return settings


def main(argv=None):
    """Main entry point."""
    options = ClientOptions()
    options.parse_args(sys.argv[1:] if argv is None else argv)

    logs.configure(options.log_file, options.debug)
    logs.rotate_log()

    settings = load_settings(options.config_path)
    client = TheiaClient(settings, update_check=options.update_check)

    try:
        asyncio.run(client.run())
    except KeyboardInterrupt:
        pass
    finally:
        log("Theia client stopped")

    sys.exit(0)


if __name__ == '__main__':
    main()
