"""Tests for directory-backed session credentials."""

import json
import stat

import pytest

from nexusbot.whatsapp.auth import MultiFileAuthState


class TestAuthState:

    def test_load_creates_directory(self, tmp_path):
        auth = MultiFileAuthState(str(tmp_path / "nested" / "auth"))
        assert auth.load() == {}
        assert auth.directory.is_dir()
        assert not auth.is_registered

    @pytest.mark.asyncio
    async def test_save_merges_and_reloads(self, tmp_path):
        auth = MultiFileAuthState(str(tmp_path))
        auth.load()
        await auth.save_creds({"noiseKey": "k1", "registered": False})
        await auth.save_creds({"registered": True})

        fresh = MultiFileAuthState(str(tmp_path))
        assert fresh.load() == {"noiseKey": "k1", "registered": True}
        assert fresh.is_registered

    @pytest.mark.asyncio
    async def test_creds_file_is_private(self, tmp_path):
        auth = MultiFileAuthState(str(tmp_path))
        await auth.save_creds({"a": 1})
        mode = stat.S_IMODE(auth.creds_path.stat().st_mode)
        assert mode == 0o600

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, tmp_path):
        auth = MultiFileAuthState(str(tmp_path))
        await auth.save_creds({"a": 1})
        assert [p.name for p in tmp_path.iterdir()] == ["creds.json"]

    def test_corrupt_file_starts_fresh(self, tmp_path):
        (tmp_path / "creds.json").write_text("{not json")
        auth = MultiFileAuthState(str(tmp_path))
        assert auth.load() == {}

    def test_non_object_file_starts_fresh(self, tmp_path):
        (tmp_path / "creds.json").write_text(json.dumps([1, 2]))
        assert MultiFileAuthState(str(tmp_path)).load() == {}

    @pytest.mark.asyncio
    async def test_clear(self, tmp_path):
        auth = MultiFileAuthState(str(tmp_path))
        await auth.save_creds({"registered": True})
        (tmp_path / "app-state-sync-key-1.json").write_text("{}")

        auth.clear()

        assert auth.creds == {}
        assert list(tmp_path.iterdir()) == []

    def test_clear_missing_directory(self, tmp_path):
        auth = MultiFileAuthState(str(tmp_path / "never-created"))
        auth.clear()
        assert auth.creds == {}
