"""Unit tests for the editor session registry."""

import pytest
from unittest.mock import Mock

from src.visual_booking.application.services.schedule_editor import ScheduleEditor
from src.visual_booking.infrastructure.editor_sessions import EditorSessionRegistry, SessionNotFoundError


def make_editor():
    editor = Mock(spec=ScheduleEditor)
    editor.date = "2025-04-18"
    return editor


class TestEditorSessionRegistry:
    """Test cases for EditorSessionRegistry."""

    def test_open_and_get(self):
        """Test sessions are found by id."""
        registry = EditorSessionRegistry()
        editor = make_editor()

        session = registry.open(editor)

        assert registry.get(session.id).editor is editor
        assert len(registry) == 1

    def test_unknown_session(self):
        """Test missing ids raise."""
        with pytest.raises(SessionNotFoundError):
            EditorSessionRegistry().get("missing")

    def test_close(self):
        """Test closing removes the session and tolerates unknown ids."""
        registry = EditorSessionRegistry()
        session = registry.open(make_editor())

        assert registry.close(session.id) is session
        assert registry.close(session.id) is None
        assert len(registry) == 0

    def test_idle_sessions_expire(self):
        """Test purging sessions past the idle timeout."""
        registry = EditorSessionRegistry(idle_timeout_seconds=60)
        stale = registry.open(make_editor())
        fresh = registry.open(make_editor())
        stale.last_used -= 120

        assert registry.purge_expired() == 1
        with pytest.raises(SessionNotFoundError):
            registry.get(stale.id)
        assert registry.get(fresh.id) is fresh

    @pytest.mark.asyncio
    async def test_locked_session_is_not_expired(self):
        """Test a session in use survives purging."""
        registry = EditorSessionRegistry(idle_timeout_seconds=60)
        session = registry.open(make_editor())
        session.last_used -= 120

        async with session.lock:
            assert registry.purge_expired() == 0

        assert registry.purge_expired() == 1
