"""
tests/test_config.py — YAML Configuration Loader
=================================================
"""

from __future__ import annotations

import pytest

from commentscore.config import (
    DEFAULT_NOTIFY_BASE_URL,
    CommentScoreConfig,
    ReratingPolicy,
    config_from_dict,
    load_config,
)


class TestLoadConfig:
    def test_reads_yaml(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NOTIFY_API_KEY", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text(
            "service_name: ratings\n"
            "log_level: debug\n"
            "port: 9001\n"
            "rerating_policy: accumulate\n"
            "notify:\n"
            "  enabled: false\n"
            "  base_url: https://hooks.example.test/\n"
            "  group_id: my_bot\n"
            "  api_key: from-file\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.service_name == "ratings"
        assert cfg.log_level == "DEBUG"
        assert cfg.port == 9001
        assert cfg.rerating_policy is ReratingPolicy.ACCUMULATE
        assert cfg.notify.enabled is False
        assert cfg.notify.base_url == "https://hooks.example.test"
        assert cfg.notify.group_id == "my_bot"
        assert cfg.notify.api_key == "from-file"

    def test_empty_file_gives_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NOTIFY_API_KEY", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == CommentScoreConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")


class TestConfigFromDict:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("NOTIFY_API_KEY", raising=False)
        cfg = config_from_dict({})
        assert cfg.rerating_policy is ReratingPolicy.ADJUST
        assert cfg.cas_max_attempts == 5
        assert cfg.notify.enabled is True
        assert cfg.notify.base_url == DEFAULT_NOTIFY_BASE_URL
        assert cfg.notify.api_key == ""

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match="rerating_policy"):
            config_from_dict({"rerating_policy": "double"})

    def test_policy_is_case_insensitive(self):
        assert config_from_dict({"rerating_policy": "ADJUST"}).rerating_policy is (
            ReratingPolicy.ADJUST
        )

    def test_env_api_key_wins(self, monkeypatch):
        monkeypatch.setenv("NOTIFY_API_KEY", "from-env")
        cfg = config_from_dict({"notify": {"api_key": "from-file"}})
        assert cfg.notify.api_key == "from-env"

    def test_cas_attempts_at_least_one(self):
        assert config_from_dict({"cas_max_attempts": 0}).cas_max_attempts == 1
