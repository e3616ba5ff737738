"""Exception hierarchy for auo.

All exceptions inherit from :class:`AuoError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`auo.exit_codes`.
:func:`auo.app.main` catches ``AuoError`` and exits with that code.

Validation rejections (duplicate names, out-of-range indices, removing the
last profile) are *not* exceptions: the store reports them and returns
``False`` or ``None``.

Subclass hierarchy::

    AuoError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConfigError         (exit 1)
    +-- LauncherError       (exit 127)
"""

from auo.exit_codes import (
    EXIT_COMMAND_NOT_FOUND,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class AuoError(Exception):
    """Base exception for all auo errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(AuoError):
    """Raised for invalid CLI arguments or conflicting flags."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(AuoError):
    """Raised when the configuration file cannot be written or force-migrated."""

    exit_code = EXIT_GENERIC_FAILURE


class LauncherError(AuoError):
    """Raised when ``claude`` cannot be found, installed, or started."""

    exit_code = EXIT_COMMAND_NOT_FOUND
