"""
Update checker.

Compares the local manifest (version, build_date, build_name) with the one
published upstream and prints a colored status line. Failures are reported
on the console and never stop the client.
"""

import json
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from rich.text import Text

from theia_client.colors import paint
from theia_client.constants import (
    DEFAULT_UPDATE_INTERVAL,
    LOCAL_MANIFEST_PATH,
    REMOTE_MANIFEST_URL,
    UPDATE_CHECK_TIMEOUT,
    USER_AGENT,
)
from theia_client.lifecycle import ShutdownToken, run_in_daemon_thread
from theia_client.logs import echo, log_debug
from theia_client.settings import Settings

VERSION_FIELDS = ('version', 'build_date', 'build_name')


def versions_match(local: dict, remote: dict) -> bool:
    return all(local.get(field) == remote.get(field) for field in VERSION_FIELDS)


def update_available_message(remote: dict) -> Text:
    message = paint("UPDATE AVAILABLE ", "red")
    message.append("→ [")
    message.append_text(paint(remote.get('version', '?'), "magenta"))
    message.append(" ~ ")
    message.append_text(paint(str(remote.get('build_name', '')).upper(), "blue"))
    message.append(" ~ ")
    message.append_text(paint(str(remote.get('build_date', '')).upper(), "yellow"))
    message.append("] | ")
    message.append_text(paint(remote.get('homepage', ''), "green"))
    return message


class VersionChecker:
    """Periodic comparison of local and remote manifests."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def local_path(self) -> str:
        return (self.settings.value('Update') or {}).get('local', LOCAL_MANIFEST_PATH)

    @property
    def remote_url(self) -> str:
        return (self.settings.value('Update') or {}).get('remote', REMOTE_MANIFEST_URL)

    @property
    def interval(self) -> float:
        value = self.settings.value('UpdateInterval', DEFAULT_UPDATE_INTERVAL)
        try:
            interval = float(value)
        except (TypeError, ValueError):
            return DEFAULT_UPDATE_INTERVAL
        return interval if interval > 0 else DEFAULT_UPDATE_INTERVAL

    def read_local(self) -> dict:
        with open(self.local_path, encoding='utf-8') as f:
            return json.load(f)

    def fetch_remote(self, timeout: float) -> dict:
        req = Request(self.remote_url, headers={'User-Agent': USER_AGENT})
        with urlopen(req, timeout=timeout) as resp:
            return json.loads(resp.read().decode('utf-8'))

    def check(self, timeout: float = UPDATE_CHECK_TIMEOUT) -> bool:
        """True when the remote manifest differs from the local one."""
        try:
            local = self.read_local()
            remote = self.fetch_remote(timeout)
            for name, manifest in (('local', local), ('remote', remote)):
                if not isinstance(manifest, dict):
                    raise ValueError(f"{name} manifest is {type(manifest).__name__}, expected an object")
            up_to_date = versions_match(local, remote)
        except (HTTPError, URLError, TimeoutError) as e:
            self._report_error("Failed to reach the remote server", e)
            return False
        except (json.JSONDecodeError, ValueError) as e:
            self._report_error("Invalid version data", e)
            return False
        except Exception as e:
            self._report_error("Unknown failure while checking for updates", e, show_type=True)
            return False

        if up_to_date:
            line = paint("[VERSION] ", "cyan")
            line.append_text(paint("You are on the latest version!", "green"))
            echo(line)
            return False

        echo(update_available_message(remote))
        return True

    async def run(self, token: ShutdownToken):
        """Check now, then every ``UpdateInterval`` seconds until shutdown."""
        while not token.is_set():
            await run_in_daemon_thread(self.check, name="theia-update-check")
            if await token.sleep(self.interval):
                break
        log_debug("Update checker stopped")

    @staticmethod
    def _report_error(title: str, error: BaseException, show_type: bool = False):
        echo(paint(f"→ ERROR: {title}", "red"))
        details = f"{type(error).__name__}: {error}" if show_type else str(error)
        echo(f"Details: {details}")
