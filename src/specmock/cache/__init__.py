"""Disk-based document caching for specmock.

This package provides :class:`DocumentCache`, which stores the text of
remotely fetched reference documents on disk using :mod:`diskcache`.
Entries are keyed by URL with a configurable TTL.

The cache is consumed by :class:`~specmock.parser.resolver.ReferenceResolver`
and is controlled by the ``cache`` section of the global configuration
(:class:`~specmock.models.CacheConfig`).
"""

from specmock.cache.cache import DocumentCache

__all__ = ["DocumentCache"]
