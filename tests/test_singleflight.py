"""Tests for PendingGuard."""

import pytest

from dockwatch.actions import PendingGuard
from dockwatch.exceptions import ActionInProgress


class TestPendingGuard:
    """Tests for per-key single-flight claims."""

    def test_claim_and_release(self):
        guard = PendingGuard()
        guard.claim("a")
        assert "a" in guard

        guard.release("a")
        assert "a" not in guard
        assert len(guard) == 0

    def test_second_claim_raises(self):
        guard = PendingGuard()
        guard.claim("a")

        with pytest.raises(ActionInProgress) as exc_info:
            guard.claim("a")

        assert exc_info.value.container_id == "a"

    def test_keys_are_independent(self):
        guard = PendingGuard()
        guard.claim("a")
        guard.claim("b")
        assert len(guard) == 2

    def test_hold_releases_on_error(self):
        guard = PendingGuard()
        with pytest.raises(RuntimeError):
            with guard.hold("a"):
                assert "a" in guard
                raise RuntimeError("boom")

        assert "a" not in guard

    def test_release_unclaimed_is_noop(self):
        PendingGuard().release("missing")
