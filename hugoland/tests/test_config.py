"""
Tests for settings and the command-line interface.
"""

from pathlib import Path

import pytest

from ..cli import main
from ..config import EngineSettings, configure_logging
from ..session.store import DEFAULT_STORAGE_KEY


class TestEngineSettings:
    """Tests for reading settings from the environment."""

    def test_defaults(self):
        settings = EngineSettings.from_env({})

        assert settings.env == "development"
        assert settings.storage_key == DEFAULT_STORAGE_KEY
        assert settings.save_dir == Path.home() / ".hugoland"
        assert settings.persist_debounce_seconds == 1.0
        assert settings.allowed_origins == ["*"]

    def test_overrides(self):
        settings = EngineSettings.from_env({
            "HUGOLAND_ENV": "production",
            "HUGOLAND_SAVE_DIR": "/srv/hugoland",
            "HUGOLAND_STORAGE_KEY": "slot-1",
            "HUGOLAND_PERSIST_DEBOUNCE_SECONDS": "2.5",
            "HUGOLAND_MARKET_POLL_SECONDS": "30",
            "HUGOLAND_LOG_LEVEL": "debug",
            "ALLOWED_ORIGINS": "https://a.example, https://b.example,",
        })

        assert settings.env == "production"
        assert settings.save_dir == Path("/srv/hugoland")
        assert settings.storage_key == "slot-1"
        assert settings.persist_debounce_seconds == 2.5
        assert settings.market_poll_seconds == 30.0
        assert settings.log_level == "DEBUG"
        assert settings.allowed_origins == ["https://a.example", "https://b.example"]

    def test_unknown_log_level_falls_back(self):
        assert configure_logging("not-a-level") is None


class TestCli:
    """Tests for the hugoland command."""

    def test_no_command_prints_help(self):
        with pytest.raises(SystemExit):
            main([])

    def test_status(self, tmp_path, capsys):
        main(["--save-dir", str(tmp_path), "status"])

        out = capsys.readouterr().out
        assert "Zone: 1" in out
        assert "Coins: 500" in out
        assert "Level: 1 (0/100 xp, 0 skill points)" in out
        assert (tmp_path / f"{DEFAULT_STORAGE_KEY}.json").exists()

    def test_claim(self, tmp_path, capsys):
        main(["--save-dir", str(tmp_path), "claim"])
        assert "Claimed 0 coins and 0 gems" in capsys.readouterr().out

    def test_daily_claims_once(self, tmp_path, capsys):
        main(["--save-dir", str(tmp_path), "daily"])
        assert "Day 1 reward: 100 coins and 5 gems" in capsys.readouterr().out

        main(["--save-dir", str(tmp_path), "daily"])
        assert "Error: Daily reward already claimed today" in capsys.readouterr().out

    def test_reset(self, tmp_path, capsys):
        main(["--save-dir", str(tmp_path), "--key", "slot-9", "reset", "--yes"])

        assert "Started a new game" in capsys.readouterr().out
        assert (tmp_path / "slot-9.json").exists()
