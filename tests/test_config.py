"""
tests/test_config.py — YAML Configuration Loader Tests
=======================================================
"""

from __future__ import annotations

import pytest

from quizloop.config import QuizLoopConfig, load_config


class TestLoadConfig:
    def test_missing_file_uses_defaults(self, tmp_path):
        cfg = load_config(tmp_path / "absent.yaml")
        assert cfg == QuizLoopConfig()
        assert cfg.daily_invite_limit == 3
        assert cfg.cooldown_hours == 1.0
        assert cfg.min_share_score == 50
        assert cfg.decision_budget_ms == 150.0

    def test_values_are_read_and_coerced(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "base_url: https://quiz.example.com/\n"
            "daily_invite_limit: '5'\n"
            "cooldown_hours: 2\n"
            "cors_origins:\n"
            "  - https://app.example.com/\n"
            "unknown_key: ignored\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.base_url == "https://quiz.example.com"
        assert cfg.daily_invite_limit == 5
        assert cfg.cooldown_hours == 2.0
        assert cfg.min_share_score == 50
        assert cfg.cors_origins == ("https://app.example.com",)

    def test_env_var_selects_file(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("min_share_score: 70\n", encoding="utf-8")
        monkeypatch.setenv("QUIZLOOP_CONFIG", str(path))
        assert load_config().min_share_score == 70

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == QuizLoopConfig()

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)

    def test_bad_value_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("daily_invite_limit: lots\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid value"):
            load_config(path)
