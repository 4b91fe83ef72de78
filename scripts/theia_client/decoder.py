"""
Inbound frame decoding.

Frames are JSON objects. Anything else is logged and dropped; the caller
only ever sees a dict or None.
"""

import json
from typing import Optional, Union

from theia_client.logs import log, log_debug


def decode(raw: Union[str, bytes, None]) -> Optional[dict]:
    """Parse one frame into an event dict, or return None if it is unusable."""
    if raw is None:
        return None

    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode('utf-8')
        except UnicodeDecodeError as e:
            log(f"Failed to decode binary frame: {e}", "ERROR")
            return None

    if not raw.strip():
        log_debug("Ignoring empty frame")
        return None

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        log(f"Invalid JSON message: {e}", "ERROR")
        log_debug(f"Message content: {raw!r}")
        return None

    if not isinstance(data, dict):
        log(f"Ignoring non-object message ({type(data).__name__})", "WARN")
        return None

    return data
