"""Tests for the shared thumbnail cache registry."""
import pytest

from sample_thumbnail.core.registry import (
    ThumbnailCacheEntry,
    ThumbnailRegistry,
    get_default_registry,
    reset_default_registry,
)


class TestLookupOrReserve:
    """Tests for entry lookup and reservation."""

    def test_first_lookup_reserves_empty_entry(self, registry):
        """Test that the first lookup reserves an empty entry."""
        handle, found = registry.lookup_or_reserve("a.wav")

        assert found is False
        assert "a.wav" in registry
        assert isinstance(handle.entry, ThumbnailCacheEntry)
        assert not handle.entry.is_populated
        assert registry.holders("a.wav") == 1

    def test_second_lookup_shares_entry(self, registry):
        """Test that a second lookup shares the existing entry."""
        first, _ = registry.lookup_or_reserve("a.wav")
        second, found = registry.lookup_or_reserve("a.wav")

        assert found is True
        assert second.entry is first.entry
        assert registry.holders("a.wav") == 2
        assert len(registry) == 1

    def test_distinct_identities_get_distinct_entries(self, registry):
        """Test that different identities get different entries."""
        a, _ = registry.lookup_or_reserve("a.wav")
        b, _ = registry.lookup_or_reserve("b.wav")

        assert a.entry is not b.entry
        assert len(registry) == 2

    def test_acquire_existing(self, registry):
        """Test acquiring another handle on an existing entry."""
        first, _ = registry.lookup_or_reserve("a.wav")
        extra = registry.acquire("a.wav")

        assert extra.entry is first.entry
        assert registry.holders("a.wav") == 2

    def test_acquire_missing_fails(self, registry):
        """Test that acquiring an unknown identity raises error."""
        with pytest.raises(KeyError):
            registry.acquire("missing.wav")


class TestCleanup:
    """Tests for refcount-driven eviction."""

    def test_held_entry_survives_cleanup(self, registry):
        """Test that a held entry is not evicted."""
        handle, _ = registry.lookup_or_reserve("a.wav")

        assert registry.cleanup() == []
        assert "a.wav" in registry
        assert handle.entry is registry.get("a.wav")

    def test_released_entry_is_evicted(self, registry):
        """Test that a released entry is evicted by cleanup."""
        handle, _ = registry.lookup_or_reserve("a.wav")
        handle.release()

        assert "a.wav" in registry  # nothing is evicted until cleanup runs
        assert registry.cleanup() == ["a.wav"]
        assert "a.wav" not in registry

    def test_entry_with_remaining_holder_survives(self, registry):
        """Test that an entry survives while one holder remains."""
        first, _ = registry.lookup_or_reserve("a.wav")
        second, _ = registry.lookup_or_reserve("a.wav")
        first.release()

        registry.cleanup()

        assert "a.wav" in registry
        assert registry.holders("a.wav") == 1
        second.release()
        assert registry.cleanup() == ["a.wav"]

    def test_cleanup_only_removes_unused(self, registry):
        """Test that cleanup evicts only unreferenced entries."""
        kept, _ = registry.lookup_or_reserve("kept.wav")
        for name in ["x.wav", "y.wav", "z.wav"]:
            handle, _ = registry.lookup_or_reserve(name)
            handle.release()

        evicted = registry.cleanup()

        assert sorted(evicted) == ["x.wav", "y.wav", "z.wav"]
        assert "kept.wav" in registry
        assert len(registry) == 1

    def test_double_release_is_harmless(self, registry):
        """Test that releasing a handle twice decrements once."""
        first, _ = registry.lookup_or_reserve("a.wav")
        second, _ = registry.lookup_or_reserve("a.wav")

        first.release()
        first.release()

        assert registry.holders("a.wav") == 1
        assert "a.wav" in registry
        assert registry.cleanup() == []
        second.release()

    def test_handle_context_manager(self, registry):
        """Test that a handle releases on context exit."""
        with registry.lookup_or_reserve("a.wav")[0] as handle:
            assert not handle.released
        assert handle.released
        assert registry.cleanup() == ["a.wav"]

    def test_stale_handle_does_not_touch_new_entry(self, registry):
        """Releasing a handle from a cleared registry leaves a re-reserved entry alone."""
        old, _ = registry.lookup_or_reserve("a.wav")
        registry.clear()
        new, found = registry.lookup_or_reserve("a.wav")

        old.release()

        assert found is False
        assert registry.holders("a.wav") == 1
        assert registry.cleanup() == []
        new.release()


class TestRegistryInfo:
    """Tests for registry statistics and the default registry."""

    def test_stats(self, registry):
        """Test entry, handle and unused counts."""
        registry.lookup_or_reserve("a.wav")
        released, _ = registry.lookup_or_reserve("b.wav")
        released.release()

        assert registry.stats() == {"entries": 2, "handles": 1, "unused": 1}

    def test_holders_of_absent_identity(self, registry):
        """Test holder count of an unknown identity."""
        assert registry.holders("nothing") == 0

    def test_default_registry_is_shared(self):
        """Test that the default registry is a singleton."""
        assert get_default_registry() is get_default_registry()

    def test_reset_default_registry(self):
        """Test that resetting replaces the default registry."""
        before = get_default_registry()
        reset_default_registry()
        assert get_default_registry() is not before
        assert isinstance(get_default_registry(), ThumbnailRegistry)
