"""
Command table.

Each entry maps a command key to either a fixed payload or a generator that
builds the payload from the inbound event. Entries keep their registration
order, which decides the winner when several keys match partially.

To add a command, register a CommandSpec in ``default_commands()``:

    table.register(CommandSpec('ping', {'text': 'pong'}))
    table.register(CommandSpec('whoami', lambda event: {'text': event.get('chatId')}))
"""

import ast
import platform
import sys
from dataclasses import dataclass
from importlib import metadata
from typing import Any, Callable, Iterator, Optional, Union

Response = Union[dict, Callable[[dict], Any]]


@dataclass(frozen=True)
class CommandSpec:
    """A routing entry: command key, response behavior and permission flag."""

    key: str
    response: Response
    admin_only: bool = False
    raw: bool = False

    def allows(self, event: dict) -> bool:
        """Admin-only commands require the sender to be the owner."""
        if not self.admin_only:
            return True
        return event.get('isOwner', False) is True

    def build_response(self, event: dict):
        if callable(self.response):
            return self.response(event)
        return self.response


class CommandTable:
    """Ordered, duplicate-free collection of CommandSpec entries."""

    def __init__(self, specs=()):
        self._specs: dict = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: CommandSpec) -> CommandSpec:
        key = spec.key.lower().strip()
        if not key:
            raise ValueError("Command key must not be empty")
        if key in self._specs:
            raise ValueError(f"Command already registered: {key}")
        if key != spec.key:
            spec = CommandSpec(key, spec.response, spec.admin_only, spec.raw)
        self._specs[key] = spec
        return spec

    def exact(self, command: str, event: dict) -> Optional[CommandSpec]:
        """The entry keyed exactly `command`, if the sender may use it."""
        spec = self._specs.get(command)
        if spec is not None and spec.allows(event):
            return spec
        return None

    def partial(self, command: str, event: dict) -> Optional[CommandSpec]:
        """First entry, in registration order, whose key occurs in `command`."""
        for key, spec in self._specs.items():
            if key in command and spec.allows(event):
                return spec
        return None

    def __iter__(self) -> Iterator[CommandSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, key: str) -> bool:
        return key in self._specs


def runtime_info(event: dict) -> dict:
    """Describe the Python runtime the client is running on."""
    packages = sum(1 for _ in metadata.distributions())
    return {
        'text': (
            "🐍 Informações do Ambiente Python:\n"
            f"Versão: {platform.python_version()}\n"
            f"Implementação: {platform.python_implementation()}\n"
            f"Plataforma: {sys.platform} ({platform.machine()})\n"
            f"Pacotes: {packages}\n"
        )
    }


def evaluate_expression(event: dict) -> dict:
    """
    Evaluate the ``arg`` field as a Python literal (owner only).

    Only literals and containers of literals are accepted; names, calls and
    operators raise ValueError (SyntaxError for malformed text), which the
    router contains.
    """
    result = ast.literal_eval((event.get('arg') or '').strip())
    return {'text': f"✅ Resultado:\n{result}"}


def default_commands() -> CommandTable:
    return CommandTable([
        CommandSpec('pyinfo', runtime_info),
        # Older hosts still send the command name of the previous client
        CommandSpec('rubyinfo', runtime_info),
        CommandSpec('evalpy', evaluate_expression, admin_only=True),
    ])
