"""
Terminal colors for console output.

Static name -> Rich style mapping. Unknown names are ignored so callers can
pass through user supplied style names without checking them first.
"""

from rich.style import Style
from rich.text import Text

STYLES = {
    "bold": "bold",
    "dim": "dim",
    "italic": "italic",
    "underline": "underline",
    "blink": "blink",
    "inverse": "reverse",
    "hidden": "conceal",
    "strikethrough": "strike",
}

COLORS = {
    "black": "black",
    "red": "red",
    "green": "green",
    "yellow": "yellow",
    "blue": "blue",
    "magenta": "magenta",
    "cyan": "cyan",
    "white": "white",
    "gray": "bright_black",
    "grey": "bright_black",
    "bright_red": "bright_red",
    "bright_green": "bright_green",
    "bright_yellow": "bright_yellow",
    "bright_blue": "bright_blue",
    "bright_magenta": "bright_magenta",
    "bright_cyan": "bright_cyan",
    "bright_white": "bright_white",
}

BACKGROUNDS = {f"bg_{name}": f"on {color}" for name, color in COLORS.items()}

# Level tag colors used by the logger
LEVEL_STYLES = {
    "DEBUG": ("gray",),
    "INFO": ("cyan",),
    "WARN": ("yellow",),
    "ERROR": ("bright_red",),
    "FATAL": ("bold", "bg_red"),
}


def style_for(*names: str) -> Style:
    """Combine the named styles into a single Rich Style."""
    parts = []
    for name in names:
        spec = STYLES.get(name) or COLORS.get(name) or BACKGROUNDS.get(name)
        if spec:
            parts.append(spec)
    if not parts:
        return Style.null()
    return Style.parse(" ".join(parts))


def paint(text, *names: str) -> Text:
    """Return `text` as Rich Text carrying the given color/style names."""
    if text is None:
        return Text("")
    return Text(str(text), style=style_for(*names))
