"""
Response relay: delivers outbound messages to the host's HTTP API.

Each request is a JSON POST carrying the configured credentials. Transient
transport failures (timeouts, resets, unreachable host) are retried with
exponential backoff; HTTP error statuses fail at once. Failures never raise
to the caller, they come back as ``{"status": "error", "error": ...}``.
"""

import json
import time
from datetime import datetime
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from theia_client.auth import insecure_ssl_context
from theia_client.constants import (
    RELAY_MAX_RETRIES,
    RELAY_RETRY_DELAYS,
    RELAY_TIMEOUT,
    USER_AGENT,
)
from theia_client.logs import log, log_debug
from theia_client.settings import Settings

RETRYABLE_ERRORS = (URLError, TimeoutError, ConnectionError, EOFError)


class RelayError(Exception):
    """A message could not be built or delivered."""


def format_message(message) -> dict:
    """Normalize a message body to the ``{"text": ...}`` shape the API expects."""
    if isinstance(message, dict):
        return message
    if message is None:
        return {'text': ''}
    return {'text': str(message)}


class MessageRelay:
    """Blocking HTTP client for the host's message endpoint."""

    def __init__(self, settings: Settings, timeout: float = RELAY_TIMEOUT,
                 retry_delays=RELAY_RETRY_DELAYS, max_retries: int = RELAY_MAX_RETRIES):
        self.settings = settings
        self.timeout = timeout
        self.retry_delays = tuple(retry_delays)
        self.max_retries = max_retries

    def send(self, chat_id, message, quoted=None, code=None) -> dict:
        """Send a message, normalizing plain text to ``{"text": ...}``."""
        return self._deliver(chat_id, format_message(message), quoted, code, raw=False)

    def send_raw(self, chat_id, message, quoted=None, code=None) -> dict:
        """Send a message flagged ``raw``, passing the body through unchanged."""
        body = message if message is not None else format_message(None)
        return self._deliver(chat_id, body, quoted, code, raw=True)

    def build_payload(self, chat_id, message, quoted=None, code=None, raw=False) -> dict:
        """Assemble the request body. Optional fields set to None are omitted."""
        username, password = self.settings.credentials
        if not username or not password:
            raise RelayError("Authentication credentials are not configured")
        if chat_id is None or chat_id == '':
            raise RelayError("chatId is required")

        payload = {
            'username': str(username),
            'password': str(password),
            'chatId': str(chat_id),
            'message': message,
            'quoted': quoted,
            'code': code,
            'raw': raw,
        }
        return {key: value for key, value in payload.items() if value is not None}

    def _deliver(self, chat_id, message, quoted, code, raw) -> dict:
        try:
            payload = self.build_payload(chat_id, message, quoted, code, raw)
            url = self.settings.post_url
            if not url:
                raise RelayError("PostRequest URL is not configured")
            request = Request(
                url,
                data=json.dumps(payload).encode('utf-8'),
                headers={
                    'Content-Type': 'application/json',
                    'User-Agent': USER_AGENT,
                },
                method='POST'
            )
            return self._execute_with_retries(request)
        except RelayError as e:
            return self._failure(e)
        except Exception as e:
            # Malformed URL, protocol errors (BadStatusLine, IncompleteRead)
            return self._failure(e, show_type=True)

    @staticmethod
    def _failure(error: BaseException, show_type: bool = False) -> dict:
        message = f"{type(error).__name__}: {error}" if show_type else str(error)
        log(f"Message delivery failed at {datetime.now().isoformat(timespec='seconds')}: {message}", "ERROR")
        return {'status': 'error', 'error': message}

    def _execute_with_retries(self, request: Request) -> dict:
        last_error = None
        for attempt in range(self.max_retries):
            try:
                with urlopen(request, timeout=self.timeout, context=insecure_ssl_context()) as response:
                    body = response.read().decode('utf-8')
                return self._parse_response(body)
            except HTTPError as e:
                raise RelayError(f"HTTP error {e.code}") from e
            except RETRYABLE_ERRORS as e:
                last_error = e
                log_debug(f"Delivery attempt {attempt + 1}/{self.max_retries} failed: {e}")
                if attempt < self.max_retries - 1:
                    time.sleep(self._delay(attempt))

        raise RelayError(f"Failed after {self.max_retries} attempts: {last_error}")

    def _delay(self, attempt: int) -> float:
        if attempt < len(self.retry_delays):
            return self.retry_delays[attempt]
        return self.retry_delays[-1] if self.retry_delays else 0

    @staticmethod
    def _parse_response(body: str) -> dict:
        try:
            data = json.loads(body)
        except json.JSONDecodeError:
            return {'status': 'success', 'data': body}
        if not isinstance(data, dict):
            return {'status': 'success', 'data': data}
        return data
