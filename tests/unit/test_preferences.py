"""Tests for UserPreferences: defaults and corrupt-file recovery."""

import json
import logging

import pytest

from nutshell.infrastructure.preferences import UserPreferences


class TestStreamingPreference:
    """Tests for reading and writing the streaming flag."""

    @pytest.mark.asyncio
    async def test_default_is_enabled(self, preferences):
        assert await preferences.is_streaming_enabled() is True

    @pytest.mark.asyncio
    async def test_set_and_read_back(self, preferences):
        await preferences.set_streaming_enabled(False)
        assert await preferences.is_streaming_enabled() is False

        await preferences.set_streaming_enabled(True)
        assert await preferences.is_streaming_enabled() is True

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "prefs.json"
        await UserPreferences(path).set_streaming_enabled(False)

        assert await UserPreferences(path).is_streaming_enabled() is False
        assert json.loads(path.read_text()) == {"streaming_enabled": False}

    @pytest.mark.asyncio
    async def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "prefs.json"
        await UserPreferences(path).set_streaming_enabled(False)

        assert path.exists()


class TestCorruptPreferences:
    """Unreadable preference storage falls back to the default."""

    @pytest.mark.asyncio
    async def test_invalid_json_yields_default(self, tmp_path, caplog):
        path = tmp_path / "prefs.json"
        path.write_text("{not json")

        with caplog.at_level(logging.WARNING):
            assert await UserPreferences(path).is_streaming_enabled() is True

        assert "Corrupt preferences" in caplog.text

    @pytest.mark.asyncio
    async def test_wrong_type_yields_default(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text('{"streaming_enabled": "sometimes"}')

        assert await UserPreferences(path).is_streaming_enabled() is True

    @pytest.mark.asyncio
    async def test_non_object_yields_default(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("[false]")

        assert await UserPreferences(path).is_streaming_enabled() is True

    @pytest.mark.asyncio
    async def test_invalid_encoding_yields_default(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        assert await UserPreferences(path).is_streaming_enabled() is True

    @pytest.mark.asyncio
    async def test_unreadable_path_yields_default(self, tmp_path, caplog):
        path = tmp_path / "prefs.json"
        path.mkdir()

        with caplog.at_level(logging.WARNING):
            assert await UserPreferences(path).is_streaming_enabled() is True

        assert "Cannot read preferences" in caplog.text

    @pytest.mark.asyncio
    async def test_write_recovers_corrupt_file(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("garbage")

        prefs = UserPreferences(path)
        await prefs.set_streaming_enabled(False)

        assert await prefs.is_streaming_enabled() is False
