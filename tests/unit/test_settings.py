"""
Unit tests for WhitelistSettings and the Config values behind them.
"""

from datetime import timedelta
from pathlib import Path

import pytest

from src.core.config.config import Config
from src.core.exceptions import ConfigurationError
from src.modules.whitelist.settings import WhitelistSettings


@pytest.mark.unit
class TestDerivedValues:
    def test_defaults(self):
        settings = WhitelistSettings().validate()

        assert settings.threshold == 100.0
        assert settings.progress_delta == pytest.approx(50 * 30 / 3600)
        assert settings.decay_amount == pytest.approx(1.0)
        assert settings.decay_after == timedelta(hours=24)
        assert settings.whitelist_update_seconds == 300.0

    def test_two_hours_of_ticks_reach_default_threshold(self):
        settings = WhitelistSettings()
        ticks = 2 * 3600 // settings.tick_seconds
        assert ticks * settings.progress_delta == pytest.approx(settings.threshold)


@pytest.mark.unit
class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"output_path": ""},
            {"group_name": " "},
            {"group_name": "bad:group"},
            {"group_name": "bad=group"},
            {"threshold": 0},
            {"progress_per_hour": -1},
            {"decay_per_hour": -0.5},
            {"decay_interval_seconds": 0},
            {"decay_after_hours": -1},
            {"min_players_for_decay": -1},
            {"min_squad_members": 0},
            {"whitelist_update_minutes": 0},
            {"tick_seconds": 0},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ConfigurationError):
            WhitelistSettings(**overrides).validate()

    def test_zero_rates_are_allowed(self):
        settings = WhitelistSettings(progress_per_hour=0, decay_per_hour=0).validate()
        assert settings.progress_delta == 0
        assert settings.decay_amount == 0


@pytest.mark.unit
class TestOutputPath:
    def test_absolute_path_used_as_is(self, tmp_path):
        target = tmp_path / "wl.cfg"
        settings = WhitelistSettings(output_path=str(target), base_path="/ignored")
        assert settings.resolve_output_path() == target

    def test_relative_path_joined_to_settings_base(self, tmp_path):
        settings = WhitelistSettings(output_path="cfg/wl.cfg", base_path=str(tmp_path))
        assert settings.resolve_output_path() == tmp_path / "cfg" / "wl.cfg"

    def test_argument_base_wins(self, tmp_path):
        settings = WhitelistSettings(output_path="wl.cfg", base_path="/elsewhere")
        assert settings.resolve_output_path(str(tmp_path)) == tmp_path / "wl.cfg"

    def test_falls_back_to_working_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = WhitelistSettings(output_path="wl.cfg")
        assert settings.resolve_output_path() == Path(str(tmp_path)) / "wl.cfg"


@pytest.mark.unit
class TestFromConfig:
    @pytest.fixture(autouse=True)
    def _reload_config(self):
        yield
        Config.load()

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("WHITELIST_THRESHOLD", "150")
        monkeypatch.setenv("WHITELIST_GROUP", "earned")
        monkeypatch.setenv("WHITELIST_ONLY_OPEN_SQUADS", "false")
        monkeypatch.setenv("WHITELIST_MIN_SQUAD_MEMBERS", "6")
        Config.load()

        settings = WhitelistSettings.from_config().validate()

        assert settings.threshold == 150.0
        assert settings.group_name == "earned"
        assert settings.only_open_squads is False
        assert settings.min_squad_members == 6

    def test_invalid_environment_values_fall_back_to_defaults(self, monkeypatch):
        monkeypatch.setenv("WHITELIST_THRESHOLD", "lots")
        monkeypatch.setenv("WHITELIST_DECAY_PER_HOUR", "-3")
        Config.load()

        settings = WhitelistSettings.from_config()

        assert settings.threshold == 100.0
        assert settings.decay_per_hour == 12.0

    def test_overrides_win(self):
        settings = WhitelistSettings.from_config(threshold=42.0)
        assert settings.threshold == 42.0

    def test_testing_environment_detected(self):
        assert Config.is_testing() is True

    def test_database_timeouts_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_POOL_TIMEOUT", "12")
        monkeypatch.setenv("DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS", "2.5")
        Config.load()

        assert Config.DATABASE_POOL_TIMEOUT == 12
        assert Config.DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS == 2.5

    def test_database_timeouts_reject_out_of_range(self, monkeypatch):
        monkeypatch.setenv("DATABASE_POOL_TIMEOUT", "0")
        monkeypatch.setenv("DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS", "soon")
        Config.load()

        assert Config.DATABASE_POOL_TIMEOUT == 30
        assert Config.DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS == 5.0
