"""
In-memory cache of parsed tile libraries.

Parsing a library means decoding every face of every tile, which is
wasted work when the same document is used for many scenes.  Parsed
:class:`~.library_parser.TileLibrary` objects are kept here keyed by
the SHA-256 hash of the document, so identical uploads share one entry.

The cache is an ``OrderedDict`` with least-recently-used eviction once
``MAX_CACHE_ENTRIES`` is exceeded.  Cached libraries are treated as
read-only: the compositor only ever clones their prototypes.

Usage::

    library = get_library_from_cache(file_hash)
    if library is None:
        library = parse_tile_library_file(path)
        put_library_in_cache(file_hash, library)
"""

from __future__ import annotations

from collections import OrderedDict
from threading import RLock
from typing import Optional

from .library_parser import TileLibrary

_cache: "OrderedDict[str, TileLibrary]" = OrderedDict()
_lock = RLock()
MAX_CACHE_ENTRIES: int = 16


def get_library_from_cache(file_hash: str) -> Optional[TileLibrary]:
    """Return the cached library for ``file_hash``, or ``None``."""
    with _lock:
        library = _cache.get(file_hash)
        if library is not None:
            _cache.move_to_end(file_hash)
        return library


def put_library_in_cache(file_hash: str, library: TileLibrary) -> None:
    """Store a parsed library, evicting the least recently used entry if full."""
    with _lock:
        _cache[file_hash] = library
        _cache.move_to_end(file_hash)
        if len(_cache) > MAX_CACHE_ENTRIES:
            _cache.popitem(last=False)


def evict_library(file_hash: str) -> None:
    with _lock:
        _cache.pop(file_hash, None)


def clear_library_cache() -> None:
    with _lock:
        _cache.clear()
