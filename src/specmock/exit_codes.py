"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specmock.exceptions.SpecmockError` subclass.
CI scripts that import API descriptions can inspect the exit code to tell a
broken document apart from a bad invocation without parsing stderr.

Example::

    $ specmock inspect operations broken.yaml
    $ echo $?
    8   # EXIT_IMPORT_FAILURE -- a $ref could not be resolved
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI document could not be loaded, parsed, or has an unsupported version."""

EXIT_IMPORT_FAILURE = 8
"""The document was parsed but mock definitions could not be extracted from it."""
