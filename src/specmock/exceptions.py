"""Exception hierarchy for specmock.

All exceptions inherit from :class:`SpecmockError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specmock.exit_codes`.
The top-level error handler in :func:`specmock.app.main` catches
``SpecmockError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SpecmockError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- SpecParseError             (exit 7)
    +-- MockImportError            (exit 8)
    |   +-- ReferenceResolutionError
    +-- DispatcherRulesError       (exit 1)
    +-- ConfigError                (exit 1)
"""

from __future__ import annotations

from typing import Optional

from specmock.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_IMPORT_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SPEC_PARSE_ERROR,
)


class SpecmockError(Exception):
    """Base exception for all specmock errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specmock.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecmockError):
    """Raised for invalid CLI arguments, such as an unknown operation name."""

    exit_code = EXIT_INVALID_USAGE


class SpecParseError(SpecmockError):
    """Raised when the OpenAPI document cannot be loaded, parsed, or has an unsupported version."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class MockImportError(SpecmockError):
    """Raised when mock definitions cannot be extracted from a parsed document.

    Import failures are fatal for the whole extraction: no partial service
    definition is returned.

    Args:
        message: Human-readable error description.
        location: The offending document location (a JSON pointer or a
            ``document#pointer`` reference), when known.
    """

    exit_code = EXIT_IMPORT_FAILURE

    def __init__(self, message: str, location: Optional[str] = None):
        if location:
            message = f"{message} (at {location})"
        super().__init__(message)
        self.location = location


class ReferenceResolutionError(MockImportError):
    """Raised when a ``$ref`` is missing, cyclic, too deep, or its document cannot be fetched."""


class DispatcherRulesError(SpecmockError):
    """Raised when dispatcher rules supplied through vendor metadata cannot be decoded.

    The compiler treats this as recoverable: it logs a warning and keeps the
    declared dispatcher as-is.
    """


class ConfigError(SpecmockError):
    """Raised for configuration problems (invalid JSON, unknown keys, bad values)."""
