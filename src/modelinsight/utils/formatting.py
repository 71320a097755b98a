"""Message formatting helpers for warnings and errors."""

import textwrap

LINE_LENGTH = 72


def format_message(string: str, *more: str, line_length: int = LINE_LENGTH) -> str:
    """
    Format a (multi-part) message for display in warnings and errors.

    The first part is wrapped at ``line_length``; every further part starts
    on a new line and is indented by two spaces.

    Args:
        string: Main message.
        *more: Additional message parts, e.g. a suggested solution.
        line_length: Maximum line width.

    Returns:
        The formatted message.
    """
    lines = [
        textwrap.fill(
            string,
            width=line_length,
            break_long_words=False,
            break_on_hyphens=False,
        )
    ]
    for part in more:
        lines.append(
            textwrap.fill(
                part,
                width=line_length,
                initial_indent="  ",
                subsequent_indent="  ",
                break_long_words=False,
                break_on_hyphens=False,
            )
        )
    return "\n".join(lines)
