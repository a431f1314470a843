"""Shared thumbnail cache keyed by sample identity.

Entries are handed out through owning handles. The registry counts the
outstanding handles of every entry and only evicts an entry from
``cleanup()`` once that count has dropped to zero. Nothing is evicted
implicitly.

Not thread-safe: callers sharing a registry across threads must serialize
lookup, release and cleanup themselves.
"""
from __future__ import annotations

from typing import Any

from attrs import define, field
from loguru import logger

from sample_thumbnail.core.pyramid import Thumbnail


@define
class ThumbnailCacheEntry:
    """All pyramid levels (finest first) and prerendered rasters for one sample."""

    levels: list[Thumbnail] = field(factory=list)
    rasters: list[Any] = field(factory=list)

    @property
    def is_populated(self) -> bool:
        return len(self.levels) > 0


class ThumbnailHandle:
    """Owning reference to a registry entry.

    Release explicitly (or use as a context manager) once the entry is no
    longer needed; releasing more than once is harmless.
    """

    def __init__(self, registry: ThumbnailRegistry, identity: str, entry: ThumbnailCacheEntry):
        self._registry = registry
        self.identity = identity
        self.entry = entry
        self.released = False

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self._registry._release(self.identity, self.entry)

    def __enter__(self) -> ThumbnailHandle:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.released else "held"
        return f"ThumbnailHandle({self.identity!r}, {state})"


class ThumbnailRegistry:
    """Identity -> shared ThumbnailCacheEntry with manual, refcount-driven eviction."""

    def __init__(self):
        self._entries: dict[str, ThumbnailCacheEntry] = {}
        self._holders: dict[str, int] = {}

    def lookup_or_reserve(self, identity: str) -> tuple[ThumbnailHandle, bool]:
        """Return a handle on the entry for ``identity``.

        Creates and inserts an empty entry when none exists.

        Returns:
            Tuple of (handle, found); found is False when the entry was just created
        """
        entry = self._entries.get(identity)
        if entry is not None:
            logger.debug(f"Thumbnail cache hit for '{identity}'")
            return self._new_handle(identity, entry), True

        entry = ThumbnailCacheEntry()
        self._entries[identity] = entry
        self._holders[identity] = 0
        logger.debug(f"Reserved thumbnail cache entry for '{identity}'")
        return self._new_handle(identity, entry), False

    def acquire(self, identity: str) -> ThumbnailHandle:
        """Take an additional handle on an existing entry.

        Raises:
            KeyError: If no entry exists for ``identity``
        """
        entry = self._entries[identity]
        return self._new_handle(identity, entry)

    def cleanup(self) -> list[str]:
        """Evict every entry with no outstanding handles.

        Returns:
            Identities that were evicted
        """
        unused = [identity for identity, count in self._holders.items() if count == 0]
        for identity in unused:
            del self._entries[identity]
            del self._holders[identity]

        if unused:
            logger.debug(f"Evicted {len(unused)} unused thumbnail entries: {unused}")
        return unused

    def holders(self, identity: str) -> int:
        """Number of outstanding handles for ``identity`` (0 if absent)."""
        return self._holders.get(identity, 0)

    def get(self, identity: str) -> ThumbnailCacheEntry | None:
        return self._entries.get(identity)

    def stats(self) -> dict[str, int]:
        return {
            "entries": len(self._entries),
            "handles": sum(self._holders.values()),
            "unused": sum(1 for count in self._holders.values() if count == 0),
        }

    def clear(self) -> None:
        """Forget every entry; handles still held keep their entry alive on their own."""
        self._entries.clear()
        self._holders.clear()

    def __contains__(self, identity: str) -> bool:
        return identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def _new_handle(self, identity: str, entry: ThumbnailCacheEntry) -> ThumbnailHandle:
        self._holders[identity] += 1
        return ThumbnailHandle(self, identity, entry)

    def _release(self, identity: str, entry: ThumbnailCacheEntry) -> None:
        # The entry may have been cleared and re-reserved under the same identity
        if self._entries.get(identity) is not entry:
            return
        self._holders[identity] -= 1


_default_registry: ThumbnailRegistry | None = None


def get_default_registry() -> ThumbnailRegistry:
    """Process-wide registry used when a facade is not given one explicitly."""
    global _default_registry
    if _default_registry is None:
        _default_registry = ThumbnailRegistry()
    return _default_registry


def reset_default_registry() -> None:
    """Replace the process-wide registry with an empty one."""
    global _default_registry
    _default_registry = None
