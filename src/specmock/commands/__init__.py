"""Built-in CLI sub-commands for specmock.

This package groups all Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~specmock.commands.inspect` -- examine the service, operations and
  exchanges extracted from a document.
* :mod:`~specmock.commands.export` -- write the document and its external
  dependencies as mock resources.
* :mod:`~specmock.commands.config` -- view and modify global settings.
* :mod:`~specmock.commands.cache` -- inspect and empty the remote document
  cache.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``inspect``, ``config`` and ``cache``) or a plain callback
function registered directly on the root app (for single commands like
``export``).
"""
