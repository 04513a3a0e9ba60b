"""Tests for ActionDispatcher stop handling."""

import asyncio

import pytest
from conftest import FakeGateway, descriptor, wait_until

from dockwatch.actions import ActionDispatcher
from dockwatch.events import StopRejected, StopSucceeded
from dockwatch.exceptions import ActionFailed, ActionInProgress, NotFound
from dockwatch.registry import ContainerRegistry


async def make_dispatcher(gateway, **kwargs):
    registry = ContainerRegistry(gateway)
    await registry.refresh()
    events = []

    async def publish(event):
        events.append(event)

    dispatcher = ActionDispatcher(gateway, registry, publish=publish, **kwargs)
    return dispatcher, registry, events


@pytest.mark.asyncio
async def test_stop_success_forces_refresh():
    """A successful stop requests a refresh instead of editing the registry."""
    gateway = FakeGateway([descriptor("a")])
    dispatcher, registry, events = await make_dispatcher(gateway)

    await dispatcher.stop("a")

    assert gateway.stop_calls == ["a"]
    assert registry.refresh_forced
    assert "a" in registry.snapshot
    assert events == [StopSucceeded("a")]
    assert not dispatcher.in_flight("a")


@pytest.mark.asyncio
async def test_unknown_id_raises_not_found():
    gateway = FakeGateway([descriptor("a")])
    dispatcher, registry, _ = await make_dispatcher(gateway)

    with pytest.raises(NotFound):
        dispatcher.submit("zzz")

    assert gateway.stop_calls == []
    assert not registry.refresh_forced


@pytest.mark.asyncio
async def test_concurrent_stops_reach_gateway_once():
    """A second stop while the first is outstanding is refused."""
    gateway = FakeGateway([descriptor("a")])
    gateway.stop_gate = asyncio.Event()
    dispatcher, _, _ = await make_dispatcher(gateway)

    first = dispatcher.submit("a")
    await wait_until(lambda: gateway.stop_calls == ["a"])
    assert dispatcher.in_flight("a")

    with pytest.raises(ActionInProgress):
        dispatcher.submit("a")

    gateway.stop_gate.set()
    await first
    assert gateway.stop_calls == ["a"]
    assert not dispatcher.in_flight("a")


@pytest.mark.asyncio
async def test_failure_is_reported_once_without_retry():
    gateway = FakeGateway([descriptor("a")])
    gateway.stop_error = ActionFailed("a", "permission denied")
    dispatcher, registry, events = await make_dispatcher(gateway)

    with pytest.raises(ActionFailed, match="permission denied"):
        await dispatcher.stop("a")

    assert gateway.stop_calls == ["a"]
    assert not registry.refresh_forced
    assert len(events) == 1
    assert isinstance(events[0], StopRejected)
    assert not dispatcher.in_flight("a")


@pytest.mark.asyncio
async def test_unexpected_error_becomes_action_failed():
    gateway = FakeGateway([descriptor("a")])
    gateway.stop_error = RuntimeError("socket hang up")
    dispatcher, _, _ = await make_dispatcher(gateway)

    with pytest.raises(ActionFailed) as exc_info:
        await dispatcher.stop("a")

    assert exc_info.value.reason == "socket hang up"


@pytest.mark.asyncio
async def test_timeout_releases_tracking():
    """A stop exceeding stop_timeout + grace fails with "timed out"."""
    gateway = FakeGateway([descriptor("a")])
    gateway.stop_gate = asyncio.Event()
    dispatcher, _, _ = await make_dispatcher(gateway, stop_timeout=0, action_grace=0.05)

    with pytest.raises(ActionFailed) as exc_info:
        await dispatcher.stop("a")

    assert exc_info.value.reason == "timed out"
    assert not dispatcher.in_flight("a")
    # The daemon call itself was not cancelled
    gateway.stop_gate.set()
    await asyncio.sleep(0.01)
    assert gateway.stop_calls == ["a"]
