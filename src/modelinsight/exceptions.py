"""Warning and error types raised by modelinsight."""

import functools
import inspect
import os
import warnings

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_FUNCTOOLS_FILE = os.path.abspath(functools.__file__)


class InsightWarning(UserWarning):
    """Soft failure: unsupported model class, singular fit, missing package."""


class PackageRequiredError(ImportError):
    """A package needed by a function is not installed or too old."""


def _is_internal(filename: str) -> bool:
    # singledispatch adds functools frames between public and registered functions
    path = os.path.abspath(filename)
    return path.startswith(_PACKAGE_DIR + os.sep) or path == _FUNCTOOLS_FILE


def find_stack_level() -> int:
    """
    Stack level of the first frame outside modelinsight.

    Counted from the caller of this function, as ``warnings.warn`` expects.
    """
    frame = inspect.currentframe()
    level = 0
    try:
        while frame is not None and _is_internal(frame.f_code.co_filename):
            frame = frame.f_back
            level += 1
    finally:
        del frame
    return level


def warn(message: str) -> None:
    """Emit an InsightWarning attributed to the calling user code."""
    warnings.warn(message, InsightWarning, stacklevel=find_stack_level())
