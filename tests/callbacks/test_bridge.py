import logging
from unittest.mock import AsyncMock, Mock

import pytest

from hookbridge.callbacks.bridge import CallbackBridge
from hookbridge.callbacks.models import (
    CallbackEvent,
    CallbackResult,
    InstallData,
    PollResult,
)
from hookbridge.callbacks.registration import CallbackRegistration, poll_with_set_state
from hookbridge.callbacks.state import InMemoryPollStateStore
from hookbridge.errors import ConfigurationError


def event(payload=None) -> CallbackEvent:
    return CallbackEvent(callback_id="cb1", event_id="evt-1", payload=payload or {})


class TestHandle:
    async def test_returns_hook_result(self) -> None:
        # Arrange
        result = CallbackResult(type="issue.created", result={"id": 7})
        bridge = CallbackBridge(CallbackRegistration(handle=AsyncMock(return_value=result)))

        # Act & Assert
        assert await bridge.handle(event()) == result

    async def test_none_is_a_valid_result(self) -> None:
        # Arrange
        hook = Mock(return_value=None)
        bridge = CallbackBridge(CallbackRegistration(handle=hook))

        # Act
        result = await bridge.handle(event({"action": "ignored"}))

        # Assert - no error, and the hook saw the event
        assert result is None
        hook.assert_called_once_with(event({"action": "ignored"}))

    async def test_mapping_result_is_coerced(self) -> None:
        bridge = CallbackBridge(
            CallbackRegistration(
                handle=Mock(return_value={"type": "message", "result": {"text": "hi"}})
            )
        )

        result = await bridge.handle(event())

        assert result == CallbackResult(type="message", result={"text": "hi"})

    async def test_hook_error_is_logged_and_reraised(self, caplog) -> None:
        # Arrange
        bridge = CallbackBridge(
            CallbackRegistration(handle=AsyncMock(side_effect=ValueError("bad payload")))
        )

        # Act & Assert
        with caplog.at_level(logging.ERROR):
            with pytest.raises(ValueError, match="bad payload"):
                await bridge.handle(event())

        assert "evt-1" in caplog.text


class TestInstall:
    async def test_returns_install_result(self) -> None:
        # Arrange
        install = AsyncMock(return_value={"webhook_id": "w1"})
        bridge = CallbackBridge(CallbackRegistration(handle=Mock(), install=install))
        data = InstallData(callback_url="https://host/callbacks/a/cb1", callback_id="cb1")

        # Act
        result = await bridge.install(data)

        # Assert
        assert result == {"webhook_id": "w1"}
        install.assert_awaited_once_with(data)

    async def test_without_install_hook_returns_none(self) -> None:
        bridge = CallbackBridge(CallbackRegistration(handle=Mock()))

        assert bridge.supports_install is False
        assert await bridge.install(InstallData("https://host/cb", "cb1")) is None


class TestPoll:
    async def test_state_round_trip(self) -> None:
        # Arrange - first poll sees S0 and commits S1
        seen_states = []

        def legacy(callback_id, state, set_state):
            seen_states.append(dict(state))
            set_state({"cursor": "S1"})
            return []

        bridge = CallbackBridge(
            CallbackRegistration(handle=Mock(), poll=poll_with_set_state(legacy)),
            initial_state={"cursor": "S0"},
        )

        # Act
        await bridge.poll("cb1")
        await bridge.poll("cb1")

        # Assert - the second poll sees what the first committed
        assert seen_states == [{"cursor": "S0"}, {"cursor": "S1"}]

    async def test_returns_items_and_commits_next_state(self) -> None:
        # Arrange
        store = InMemoryPollStateStore()
        poll = AsyncMock(
            return_value=PollResult(items=[{"id": 1}, {"id": 2}], next_state={"cursor": 2})
        )
        bridge = CallbackBridge(
            CallbackRegistration(handle=Mock(), poll=poll), state_store=store
        )

        # Act
        items = await bridge.poll("cb1")

        # Assert
        assert items == [{"id": 1}, {"id": 2}]
        assert await store.load("cb1") == {"cursor": 2}

    async def test_none_result_returns_empty_list_and_keeps_state(self) -> None:
        bridge = CallbackBridge(
            CallbackRegistration(handle=Mock(), poll=Mock(return_value=None)),
            initial_state={"cursor": "S0"},
        )

        assert await bridge.poll("cb1") == []
        assert await bridge.current_state("cb1") == {"cursor": "S0"}

    async def test_raising_hook_commits_nothing(self) -> None:
        # Arrange
        calls = []

        def legacy(callback_id, state, set_state):
            calls.append(dict(state))
            set_state({"cursor": "S1"})
            if len(calls) == 1:
                raise RuntimeError("provider down")
            return []

        bridge = CallbackBridge(
            CallbackRegistration(handle=Mock(), poll=poll_with_set_state(legacy)),
            initial_state={"cursor": "S0"},
        )

        # Act
        with pytest.raises(RuntimeError):
            await bridge.poll("cb1")
        await bridge.poll("cb1")

        # Assert - the retry still starts from S0
        assert calls == [{"cursor": "S0"}, {"cursor": "S0"}]

    async def test_state_is_scoped_per_callback_id(self) -> None:
        # Arrange
        def advance(request):
            return PollResult(next_state={"n": request.state.get("n", 0) + 1})

        bridge = CallbackBridge(CallbackRegistration(handle=Mock(), poll=advance))

        # Act
        await bridge.poll("cb1")
        await bridge.poll("cb1")
        await bridge.poll("cb2")

        # Assert
        assert await bridge.current_state("cb1") == {"n": 2}
        assert await bridge.current_state("cb2") == {"n": 1}

    async def test_hook_mutating_input_state_does_not_commit(self) -> None:
        def mutate(request):
            request.state["cursor"] = "tampered"
            return []

        bridge = CallbackBridge(
            CallbackRegistration(handle=Mock(), poll=mutate),
            initial_state={"cursor": "S0"},
        )

        await bridge.poll("cb1")

        assert await bridge.current_state("cb1") == {"cursor": "S0"}

    async def test_without_poll_hook_raises_configuration_error(self) -> None:
        bridge = CallbackBridge(CallbackRegistration(handle=Mock()))

        assert bridge.supports_poll is False
        with pytest.raises(ConfigurationError):
            await bridge.poll("cb1")

    async def test_invalid_poll_result_raises_type_error(self) -> None:
        bridge = CallbackBridge(
            CallbackRegistration(handle=Mock(), poll=Mock(return_value="nope"))
        )

        with pytest.raises(TypeError):
            await bridge.poll("cb1")


class TestBridgeConstruction:
    def test_object_without_handle_fails_fast(self) -> None:
        class NoHandle:
            def poll(self, request):
                return []

        with pytest.raises(ConfigurationError):
            CallbackBridge(NoHandle())


class SharingStateStore:
    """Store that hands out its own dicts instead of copies."""

    def __init__(self, states=None):
        self.states = states or {}

    async def load(self, callback_id):
        return self.states.get(callback_id)

    async def save(self, callback_id, state):
        self.states[callback_id] = state


class TestInjectedStateStore:
    async def test_empty_store_is_used_not_replaced(self) -> None:
        # Arrange - an empty in-memory store has length zero
        store = InMemoryPollStateStore()
        bridge = CallbackBridge(
            CallbackRegistration(
                handle=Mock(), poll=Mock(return_value=PollResult(next_state={"n": 1}))
            ),
            state_store=store,
        )

        # Act
        await bridge.poll("cb1")

        # Assert
        assert bridge.state_store is store
        assert await store.load("cb1") == {"n": 1}

    async def test_raising_hook_cannot_corrupt_a_sharing_store(self) -> None:
        # Arrange
        store = SharingStateStore({"cb1": {"cursor": "S1"}})

        def mutate_then_fail(request):
            request.state["cursor"] = "tampered"
            raise RuntimeError("provider down")

        bridge = CallbackBridge(
            CallbackRegistration(handle=Mock(), poll=mutate_then_fail),
            state_store=store,
        )

        # Act
        with pytest.raises(RuntimeError):
            await bridge.poll("cb1")

        # Assert
        assert store.states["cb1"] == {"cursor": "S1"}
