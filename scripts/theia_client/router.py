"""
Command routing.

Command events are matched against the command table (exact key first, then
the first key contained in the command text), permission checked, and the
resulting response is handed to the relay. Everything else goes to the
fallback. Nothing raised while routing ever leaves ``route()``.
"""

from dataclasses import dataclass

from theia_client.commands import CommandSpec, CommandTable, default_commands
from theia_client.constants import COMMAND_NOT_FOUND_TEXT
from theia_client.fallback import Fallback
from theia_client.logs import log, log_debug, log_exception
from theia_client.relay import MessageRelay
from theia_client.settings import Settings


@dataclass
class SessionHealth:
    """Counts application-level failures. Has no effect on the connection."""

    decode_errors: int = 0
    handler_errors: int = 0

    def record_decode_error(self):
        self.decode_errors += 1

    def record_handler_error(self):
        self.handler_errors += 1


def extract_command(event: dict) -> str:
    """
    Command text, lowercased and trimmed. ``body`` is consulted only when
    ``command`` is absent, so an empty ``command`` stays empty.
    """
    command = event.get('command')
    if command is None:
        command = event.get('body')
    if command is None:
        return ''
    return str(command).lower().strip()


class CommandRouter:
    """Routes decoded events to commands or the fallback."""

    def __init__(self, settings: Settings, relay: MessageRelay, commands: CommandTable = None,
                 fallback: Fallback = None, health: SessionHealth = None):
        self.settings = settings
        self.relay = relay
        self.commands = commands if commands is not None else default_commands()
        self.fallback = fallback or Fallback()
        self.health = health or SessionHealth()

    def route(self, event: dict):
        """Handle one event. Never raises."""
        try:
            if event.get('isCmd'):
                self.handle_command(event)
            else:
                self.fallback.handle(event)
        except Exception as e:
            self.health.record_handler_error()
            log_exception("Routing failed", e)
            self.fallback.handle({**event, 'error': str(e)})

    def handle_command(self, event: dict):
        command = extract_command(event)
        if not command:
            self.handle_unmatched(event)
            return

        spec = self.commands.exact(command, event) or self.commands.partial(command, event)
        if spec is None:
            self.handle_unmatched(event)
            return

        log_debug(f"Command '{command}' -> {spec.key}")
        self.respond(spec, event)

    def respond(self, spec: CommandSpec, event: dict):
        response = spec.build_response(event)
        self.send_response(event, response, raw=spec.raw)

    def handle_unmatched(self, event: dict):
        if not self.settings.value('Cases', False):
            log_debug(f"No command matched and unknown-command replies are disabled: {extract_command(event)!r}")
            return
        self.send_response(event, {'text': COMMAND_NOT_FOUND_TEXT}, raw=True)

    def send_response(self, event: dict, content, raw: bool = False) -> dict:
        """Deliver `content` to the event's chat, quoting its ``reply`` if any."""
        send = self.relay.send_raw if raw else self.relay.send
        result = send(event.get('chatId'), content, quoted=event.get('reply'))
        if isinstance(result, dict) and result.get('status') == 'error':
            log(f"Response to chat {event.get('chatId')} not delivered: {result.get('error')}", "WARN")
        return result
