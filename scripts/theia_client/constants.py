"""
Constants for the Theia client.

Reconnection budget, relay retry policy, update polling and default paths.
"""

# Connection manager
MAX_RECONNECT_ATTEMPTS = 3
BACKOFF_BASE = 2
LIVENESS_INTERVAL = 1.0  # seconds between shutdown checks while the session is open

# Response relay
RELAY_TIMEOUT = 60
RELAY_MAX_RETRIES = 3
RELAY_RETRY_DELAYS = (1, 2, 4)

# Unknown command reply (sent through the raw channel)
COMMAND_NOT_FOUND_TEXT = "Comando não encontrado"

# Version polling
DEFAULT_UPDATE_INTERVAL = 3600
UPDATE_CHECK_TIMEOUT = 10
REMOTE_MANIFEST_URL = "https://raw.githubusercontent.com/KillovSky/Theia/main/package.json"
LOCAL_MANIFEST_PATH = "package.json"

# Configuration
DEFAULT_CONFIG_PATH = "config.json"
REQUIRED_CONFIG_KEYS = ("Auth", "WebSocket", "PostRequest")

USER_AGENT = "theia-client/1.0"
