"""
Checks whether packages needed by a function are installed.
"""

import importlib.util
from collections.abc import Sequence
from importlib.metadata import PackageNotFoundError, packages_distributions, version

from packaging.version import InvalidVersion, Version

from modelinsight.config import get_config
from modelinsight.exceptions import PackageRequiredError, warn
from modelinsight.utils.formatting import format_message
from modelinsight.utils.logging import get_logger

log = get_logger(__name__)


def is_installed(package: str) -> bool:
    """Return True if ``package`` can be imported."""
    try:
        return importlib.util.find_spec(package) is not None
    except (ImportError, ValueError):
        # find_spec imports parent packages of dotted names
        return False


def installed_version(package: str) -> Version | None:
    """
    Version of an installed package.

    ``package`` may be a distribution name or an import name; import names
    are mapped to their distribution (e.g. ``yaml`` -> ``PyYAML``).

    Returns:
        The parsed version, or None if no version metadata is available.
    """
    candidates = [package]
    candidates.extend(packages_distributions().get(package.split(".")[0], []))
    for name in candidates:
        try:
            return Version(version(name))
        except PackageNotFoundError:
            continue
        except InvalidVersion:
            log.debug("Unparseable version metadata", package=name)
            return None
    return None


def _quote_list(packages: Sequence[str]) -> str:
    return " and ".join(f"'{p}'" for p in packages)


def _signal(message: str, stop: bool) -> None:
    if stop:
        raise PackageRequiredError(message)
    warn(message)


def check_if_installed(
    package: str | Sequence[str],
    reason: str | None = None,
    stop: bool = True,
    minimum_version: str | None = None,
) -> dict[str, bool]:
    """
    Check if needed packages are installed.

    Args:
        package: Import name, or a sequence of names, to check.
        reason: Phrase describing why the package is needed. Defaults to the
            configured generic description.
        stop: Raise if a package is missing (or too old) instead of warning.
        minimum_version: Minimum required version of the installed packages.
            If None, no version check is done.

    Returns:
        Mapping of package name to whether it is installed.

    Raises:
        PackageRequiredError: If ``stop`` is True and a package is missing
            or older than ``minimum_version``.
    """
    packages = [package] if isinstance(package, str) else list(package)
    if not packages:
        msg = "At least one package name is required"
        raise ValueError(msg)

    settings = get_config().dependencies
    if reason is None:
        reason = settings.reason
    installer = settings.installer

    status = {name: is_installed(name) for name in packages}
    missing = [name for name, ok in status.items() if not ok]

    if missing:
        log.debug("Missing packages", packages=missing)
        if len(missing) > 1:
            message = format_message(
                f"Packages {_quote_list(missing)} are required {reason}.",
                f"Please install them by running `{installer} {' '.join(missing)}`.",
            )
        else:
            message = format_message(
                f"Package '{missing[0]}' is required {reason}.",
                f"Please install it by running `{installer} {missing[0]}`.",
            )
        _signal(message, stop)
    elif minimum_version is not None:
        required = Version(minimum_version)
        for name in packages:
            current = installed_version(name)
            if current is not None and current >= required:
                continue
            log.debug(
                "Package too old",
                package=name,
                installed=str(current) if current else None,
                required=minimum_version,
            )
            message = format_message(
                f"Package '{name}' is installed, but package version "
                f"'{minimum_version}' is required {reason}.",
                f"Please update the package by running `{installer} --upgrade {name}`.",
            )
            _signal(message, stop)

    return status
