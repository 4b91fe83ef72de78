"""
Console and file logging for the Theia client.

Every line is written as ``[YYYY-mm-dd HH:MM:SS] [LEVEL] message`` to the
console and, when a log file is configured, appended to it.
"""

import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.text import Text

from theia_client.colors import LEVEL_STYLES, paint

console = Console(highlight=False, soft_wrap=True)

_log_file: Optional[Path] = None
_debug = False


def configure(log_file: Optional[Path] = None, debug: bool = False):
    """Set the log file destination and debug mode."""
    global _log_file, _debug
    _log_file = Path(log_file) if log_file else None
    _debug = debug


def is_debug() -> bool:
    return _debug


def log(message: str, level: str = "INFO"):
    """Write log entry with timestamp."""
    timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    log_line = f"[{timestamp}] [{level}] {message}"

    line = Text(f"[{timestamp}] ")
    line.append_text(paint(f"[{level}]", *LEVEL_STYLES.get(level, ())))
    line.append(f" {message}")
    console.print(line)

    if _log_file is None:
        return
    try:
        _log_file.parent.mkdir(parents=True, exist_ok=True)
        with open(_log_file, 'a', encoding='utf-8') as f:
            f.write(log_line + '\n')
    except OSError as e:
        console.print(f"[{timestamp}] [ERROR] Failed to write log: {e}", markup=False)


def log_debug(message: str):
    """Write debug log entry (only if debug mode enabled)."""
    if _debug:
        log(message, "DEBUG")


def log_exception(message: str, error: BaseException, level: str = "ERROR"):
    """Log a short diagnostic for `error`; the traceback only in debug mode."""
    log(f"{message}: {error}", level)
    if _debug:
        details = ''.join(traceback.format_exception(type(error), error, error.__traceback__))
        log(details.rstrip(), "DEBUG")


def echo(text):
    """Print a line verbatim (no timestamp, no markup)."""
    console.print(text, markup=False)


def rotate_log():
    """Rotate existing log file on startup so each session gets a clean log."""
    if _log_file is None or not _log_file.exists() or _log_file.stat().st_size == 0:
        return

    mtime = datetime.fromtimestamp(_log_file.stat().st_mtime)
    stamp = mtime.strftime('%Y%m%d-%H%M%S')
    rotated = _log_file.with_name(f"{_log_file.stem}.{stamp}{_log_file.suffix}")

    # Avoid overwriting if multiple restarts in the same second
    counter = 1
    while rotated.exists():
        rotated = _log_file.with_name(f"{_log_file.stem}.{stamp}-{counter}{_log_file.suffix}")
        counter += 1

    _log_file.rename(rotated)
