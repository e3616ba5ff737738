"""Numeric process exit codes.

Each constant maps to an error category and is referenced by the matching
:class:`~auo.exceptions.AuoError` subclass. When ``claude`` itself runs,
``auo`` exits with the child's own exit code instead.
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including configuration write faults)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_COMMAND_NOT_FOUND = 127
"""The wrapped ``claude`` executable could not be found or installed."""

EXIT_INTERRUPTED = 130
"""The user pressed Ctrl-C."""
