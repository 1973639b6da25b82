"""Display-safe error messages.

Some exceptions have an empty str() (KeyboardInterrupt, bare OSError
subclasses), which would print as "Error: " with nothing after it.
"""

from __future__ import annotations

import subprocess

from rich.markup import escape as _escape_markup

from ..errors import BoxCollectionError

FRIENDLY_MESSAGES: dict[type, str] = {
    KeyboardInterrupt: "Operation interrupted by user.",
    PermissionError: "Permission denied while accessing the box collection.",
    FileNotFoundError: "A required file or tool could not be found.",
    subprocess.CalledProcessError: "An external command failed.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a non-empty display message.

    Box collection errors already read as sentences, so their type name is
    never prepended.

    Examples:
        >>> format_error_message(ValueError("invalid input"))
        'ValueError: invalid input'

        >>> format_error_message(KeyboardInterrupt())
        'KeyboardInterrupt: Operation interrupted by user.'
    """
    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        if isinstance(e, BoxCollectionError) or not include_type or error_type in error_str:
            return error_str
        return f"{error_type}: {error_str}"

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}"

    return f"{error_type}: (no additional details)"


def escape_markup(value: object) -> str:
    """Escape a value for interpolation into Rich markup strings."""
    return _escape_markup(str(value))
