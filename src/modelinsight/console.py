"""
Coloured console output.

Thin helpers over Rich that colour plain strings, for use in printed
summaries and messages.
"""

import io
import os

from rich.console import Console
from rich.text import Text

from modelinsight.config import get_config
from modelinsight.utils.logging import get_logger

log = get_logger(__name__)

console = Console(highlight=False, soft_wrap=True)

COLOR_STYLES: dict[str, str] = {
    "red": "red",
    "yellow": "yellow",
    "green": "green",
    "blue": "blue",
    "violet": "magenta",
    "cyan": "cyan",
    "grey": "bright_black",
    "gray": "bright_black",
    "bold": "bold",
    "italic": "italic",
}

# Background colour indices (from COLORFGBG) rendered as dark
_DARK_BACKGROUNDS = frozenset({0, 1, 2, 3, 4, 5, 6, 8})


def _colors_enabled() -> bool:
    return get_config().console.color and "NO_COLOR" not in os.environ


def _style_for(color: str) -> str | None:
    style = COLOR_STYLES.get(color.lower())
    if style is None:
        log.debug("Unknown colour, printing unstyled", color=color)
    return style


def color_text(text: str, color: str) -> str:
    """
    Return ``text`` wrapped in ANSI colour codes.

    Args:
        text: The text to colour.
        color: One of "red", "yellow", "green", "blue", "violet", "cyan",
            "grey", or a format, "bold" or "italic".

    Returns:
        The styled string. Unknown colours, or disabled colour output,
        return ``text`` unchanged.
    """
    style = _style_for(color)
    if style is None or not _colors_enabled():
        return text

    buffer = io.StringIO()
    renderer = Console(
        file=buffer,
        force_terminal=True,
        color_system="standard",
        highlight=False,
        soft_wrap=True,
    )
    renderer.print(Text(text, style=style), end="")
    return buffer.getvalue()


def colour_text(text: str, colour: str) -> str:
    """British-spelling alias of :func:`color_text`."""
    return color_text(text, colour)


def print_color(text: str, color: str) -> None:
    """Print ``text`` in ``color`` to the console, without a newline."""
    style = _style_for(color)
    if style is None or not _colors_enabled():
        console.print(Text(text), end="")
    else:
        console.print(Text(text, style=style), end="")


def print_colour(text: str, colour: str) -> None:
    """British-spelling alias of :func:`print_color`."""
    print_color(text, colour)


def color_theme() -> str | None:
    """
    Detect whether the terminal uses a dark or light colour scheme.

    A theme set in the configuration wins. Otherwise the background index
    of the ``COLORFGBG`` environment variable (set by many terminal
    emulators, e.g. "15;0") decides.

    Returns:
        "dark", "light", or None if the theme could not be detected.
    """
    configured = get_config().console.theme
    if configured is not None:
        return configured.value

    colorfgbg = os.environ.get("COLORFGBG")
    if not colorfgbg:
        return None

    background = colorfgbg.split(";")[-1]
    try:
        index = int(background)
    except ValueError:
        log.debug("Unparseable COLORFGBG", value=colorfgbg)
        return None
    return "dark" if index in _DARK_BACKGROUNDS else "light"
