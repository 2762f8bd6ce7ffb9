"""Tests for the shared runtime state."""

import pytest

from nexusbot.state import BotConfig, ConnectionStatus, RuntimeState


class TestRuntimeState:

    def test_initial_snapshot(self):
        assert RuntimeState().snapshot() == {
            "qr": None,
            "connectionStatus": "disconnected",
            "stats": {"messagesToday": 0, "aiResponses": 0},
        }

    def test_from_settings(self, settings):
        state = RuntimeState.from_settings(settings)
        assert state.config_snapshot() == {"isAiActive": True, "systemPrompt": "You are helpful."}

    def test_qr_only_while_disconnected(self):
        state = RuntimeState()
        state.show_qr("2@qr")
        assert state.snapshot()["qr"] == "2@qr"
        state.set_status(ConnectionStatus.CONNECTING)
        assert state.qr is None
        state.show_qr("2@again")
        state.set_status(ConnectionStatus.CONNECTED)
        assert state.snapshot()["qr"] is None
        assert state.snapshot()["connectionStatus"] == "connected"

    def test_counters(self):
        state = RuntimeState()
        state.record_message()
        state.record_message()
        state.record_ai_response()
        assert state.snapshot()["stats"] == {"messagesToday": 2, "aiResponses": 1}

    def test_patch_config_partial(self):
        state = RuntimeState(_config=BotConfig(ai_active=True, system_prompt="a"))
        state.patch_config(system_prompt="b")
        assert state.config == BotConfig(ai_active=True, system_prompt="b")
        state.patch_config(ai_active=False)
        assert state.config == BotConfig(ai_active=False, system_prompt="b")

    def test_patch_config_unknown_field(self):
        state = RuntimeState()
        before = state.config
        with pytest.raises(TypeError):
            state.patch_config(temperature=1.0)
        assert state.config is before
