from unittest.mock import AsyncMock, Mock

import pytest

from hookbridge.callbacks.models import PollRequest, PollResult
from hookbridge.callbacks.registration import CallbackRegistration, poll_with_set_state
from hookbridge.errors import ConfigurationError


class TestCallbackRegistration:
    def test_missing_handle_fails_fast(self) -> None:
        with pytest.raises(ConfigurationError, match="handle is required"):
            CallbackRegistration(handle=None, poll=Mock())

    def test_non_callable_poll_fails_fast(self) -> None:
        with pytest.raises(ConfigurationError, match="poll must be callable"):
            CallbackRegistration(handle=Mock(), poll=42)

    def test_install_and_poll_are_optional(self) -> None:
        registration = CallbackRegistration(handle=Mock())

        assert registration.install is None
        assert registration.poll is None

    def test_from_handler_without_handle_fails_fast(self) -> None:
        class PollOnly:
            def poll(self, request):
                return []

        with pytest.raises(ConfigurationError):
            CallbackRegistration.from_handler(PollOnly())

    def test_from_handler_reads_methods(self) -> None:
        class Handler:
            def handle(self, event):
                return None

            async def install(self, data):
                return {"webhook_id": "w1"}

        registration = CallbackRegistration.from_handler(Handler())

        assert registration.install is not None
        assert registration.poll is None


class TestPollWithSetState:
    async def test_last_set_state_becomes_next_state(self) -> None:
        # Arrange
        def legacy(callback_id, state, set_state):
            set_state({"cursor": 1})
            set_state({"cursor": 2})
            return [{"id": "a"}]

        poll = poll_with_set_state(legacy)

        # Act
        result = await poll(PollRequest(callback_id="cb1", state={"cursor": 0}))

        # Assert
        assert result == PollResult(items=[{"id": "a"}], next_state={"cursor": 2})

    async def test_no_set_state_leaves_state_unchanged(self) -> None:
        poll = poll_with_set_state(AsyncMock(return_value=None))

        result = await poll(PollRequest(callback_id="cb1", state={}))

        assert result.items == []
        assert result.next_state is None

    async def test_hook_receives_callback_id_and_state(self) -> None:
        hook = Mock(return_value=[])
        poll = poll_with_set_state(hook)

        await poll(PollRequest(callback_id="cb1", state={"cursor": 5}))

        args = hook.call_args.args
        assert args[0] == "cb1"
        assert args[1] == {"cursor": 5}
        assert callable(args[2])

    async def test_raising_hook_propagates(self) -> None:
        def legacy(callback_id, state, set_state):
            set_state({"cursor": 99})
            raise RuntimeError("provider down")

        poll = poll_with_set_state(legacy)

        with pytest.raises(RuntimeError, match="provider down"):
            await poll(PollRequest(callback_id="cb1", state={}))
