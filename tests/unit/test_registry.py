"""
Tests for SessionRegistry.

Sessions create anyio Events on construction, so every test runs inside an
event loop.
"""

import pytest

from mineru_mcp.framework.errors import ConflictError
from mineru_mcp.server.registry import SessionRegistry


class TestSessionRegistry:
    """Tests for create/lookup/remove."""

    @pytest.mark.asyncio
    async def test_lookup_returns_created_instance(self, fake_registry: SessionRegistry) -> None:
        """Every lookup between create and remove yields the same object."""
        session = fake_registry.create("s-1")

        assert fake_registry.lookup("s-1") is session
        assert fake_registry.lookup("s-1") is session
        assert "s-1" in fake_registry
        assert len(fake_registry) == 1

    @pytest.mark.asyncio
    async def test_lookup_unknown_and_missing(self, fake_registry: SessionRegistry) -> None:
        assert fake_registry.lookup("nope") is None
        assert fake_registry.lookup(None) is None

    @pytest.mark.asyncio
    async def test_duplicate_create_keeps_original(self, fake_registry: SessionRegistry) -> None:
        """A second create for a live id fails and never replaces the entry."""
        original = fake_registry.create("s-1")

        with pytest.raises(ConflictError) as exc_info:
            fake_registry.create("s-1")

        assert exc_info.value.details["conflict_type"] == "session_id"
        assert fake_registry.lookup("s-1") is original

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self, fake_registry: SessionRegistry) -> None:
        fake_registry.create("s-1")

        fake_registry.remove("s-1")
        fake_registry.remove("s-1")
        fake_registry.remove("never-existed")

        assert fake_registry.lookup("s-1") is None
        assert len(fake_registry) == 0

    @pytest.mark.asyncio
    async def test_closing_session_removes_entry(self, fake_registry: SessionRegistry) -> None:
        """The close callback registered by create() drops the entry."""
        session = fake_registry.create("s-1")
        other = fake_registry.create("s-2")

        await session.terminate()

        assert session.closed
        assert fake_registry.lookup("s-1") is None
        assert fake_registry.lookup("s-2") is other

    @pytest.mark.asyncio
    async def test_stats(self, fake_registry: SessionRegistry) -> None:
        assert fake_registry.get_stats() == {
            "sessions": 0,
            "in_flight": 0,
            "oldest_session": None,
        }

        first = fake_registry.create("s-1")
        fake_registry.create("s-2")
        stats = fake_registry.get_stats()

        assert stats["sessions"] == 2
        assert stats["in_flight"] == 0
        assert stats["oldest_session"] == first.created_at.isoformat()
        assert sorted(fake_registry.session_ids()) == ["s-1", "s-2"]
