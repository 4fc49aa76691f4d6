"""Unit tests for platyplex/core/settings.py."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path

import pytest

from platyplex.core.settings import BatchSettings


def args(**overrides) -> Namespace:
    base = {"no_retry": False, "retry_cache": None, "no_cache": False, "json": False, "append": None}
    base.update(overrides)
    return Namespace(**base)


class TestFromConfig:
    @pytest.mark.unit
    def test_reads_config_sections(
        self, mock_general_config, mock_ledger_config, mock_retry_config, mock_upload_config
    ):
        settings = BatchSettings.from_config(
            mock_general_config, mock_ledger_config, mock_retry_config, mock_upload_config, args()
        )
        assert settings.retry_policy.max_attempts == 5
        assert settings.retry_policy.enabled
        assert settings.gateway_url == "https://gateway.test"
        assert settings.cache_suffix == "-cache.json"
        assert settings.owner_address is None

    @pytest.mark.unit
    def test_cli_flags_win(self, mock_retry_config):
        settings = BatchSettings.from_config(
            {}, {"owner_address": "O1"}, mock_retry_config, {},
            args(no_retry=True, retry_cache="r.json", json=True, append="all.json"),
        )
        assert settings.retry_policy.effective_attempts == 1
        assert settings.cache_path == Path("r.json")
        assert settings.json_output
        assert settings.append_path == Path("all.json")
        assert settings.owner_address == "O1"

    @pytest.mark.unit
    def test_without_args(self):
        settings = BatchSettings.from_config({}, {}, {}, {})
        assert settings.use_cache
        assert settings.cache_path is None


class TestResolveCachePath:
    @pytest.mark.unit
    def test_derived_from_input(self):
        assert BatchSettings().resolve_cache_path(Path("d/drops.json")) == Path("d/drops-cache.json")

    @pytest.mark.unit
    def test_override_wins(self):
        settings = BatchSettings(cache_path=Path("other.json"))
        assert settings.resolve_cache_path(Path("drops.json")) == Path("other.json")

    @pytest.mark.unit
    def test_no_cache_disables(self):
        settings = BatchSettings(cache_path=Path("other.json"), use_cache=False)
        assert settings.resolve_cache_path(Path("drops.json")) is None

    @pytest.mark.unit
    def test_memory_only_without_input(self):
        assert BatchSettings().resolve_cache_path(None) is None
