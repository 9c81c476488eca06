"""Tests for Config loading, merging and accessors."""

import yaml


class TestDefaults:
    def test_paths_relative_to_base_dir(self, fresh_config, tmp_path):
        assert fresh_config.base_dir == tmp_path
        assert fresh_config.events_path == tmp_path / "data" / "events.json"
        assert fresh_config.history_path == tmp_path / "data" / "history.json"
        assert fresh_config.data_dir == tmp_path / "data"

    def test_default_queries(self, fresh_config):
        assert len(fresh_config.queries) == 4
        assert fresh_config.queries[1] == {
            "entities": "cryptocurrency exchanges",
            "topic": "sanctions",
        }

    def test_max_history_weeks(self, fresh_config):
        assert fresh_config.max_history_weeks == 52


class TestGet:
    def test_dot_notation_nested_key(self, fresh_config):
        assert fresh_config.get("api.lookback_days") == 7

    def test_missing_key_returns_default(self, fresh_config):
        assert fresh_config.get("nonexistent.key", "fallback") == "fallback"


class TestMergeConfig:
    def test_deep_merge_dict_keys(self, fresh_config):
        fresh_config._merge_config({"api": {"timeout": 5}})
        assert fresh_config.get("api.timeout") == 5
        # Original keys preserved
        assert fresh_config.get("api.lookback_days") == 7

    def test_overwrite_non_dict_keys(self, fresh_config):
        fresh_config._merge_config({"queries": [{"entities": "DAOs", "topic": "policy"}]})
        assert fresh_config.queries == [{"entities": "DAOs", "topic": "policy"}]

    def test_merge_does_not_leak_into_defaults(self, fresh_config):
        from cryptoreg.config import Config

        fresh_config._merge_config({"analysis": {"model": "other-model"}})
        assert Config.DEFAULTS["analysis"]["model"] == "gpt-4o-mini"

    def test_provider_models_are_separate(self, fresh_config):
        assert fresh_config.get("analysis.model") == "gpt-4o-mini"
        assert fresh_config.get("analysis.anthropic_model") == "claude-3-5-haiku-latest"

    def test_reload_restores_defaults(self, fresh_config):
        fresh_config._merge_config({"history": {"max_weeks": 10}})
        fresh_config.reload()
        assert fresh_config.max_history_weeks == 52


class TestConfigFile:
    def test_loads_yaml_file(self, tmp_path, monkeypatch):
        from cryptoreg.config import Config

        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text(
            yaml.safe_dump({"history": {"max_weeks": 26}, "analysis": {"provider": "anthropic"}})
        )

        Config._instance = None
        monkeypatch.setenv("CRYPTOREG_BASE_DIR", str(tmp_path))
        try:
            cfg = Config()
            assert cfg.max_history_weeks == 26
            assert cfg.get("analysis.provider") == "anthropic"
            assert cfg.get("analysis.model") == "gpt-4o-mini"
        finally:
            Config._instance = None
