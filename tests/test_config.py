import os
import tempfile

import yaml

from triage.config import Config


class TestConfig:
    def test_default_config(self, config):
        """Verify defaults are loaded when no file is given."""
        assert config["server"]["host"] == "0.0.0.0"
        assert config["server"]["port"] == 5000
        assert config["server"]["debug"] is False
        assert config["store"]["backend"] == "memory"
        assert config["store"]["timeout"] == 10.0
        assert config["store"]["log_states_table"] == "log_states"
        assert config["store"]["sessions_table"] == "cabinet_work_sessions"
        assert config["identity"]["strategy"] == "content"
        assert config["notifications"]["max_recent"] == 50

    def test_load_from_yaml(self):
        """Write a temp YAML with overrides, verify merge."""
        override = {
            "server": {"port": 8080, "debug": True},
            "identity": {"strategy": "batch"},
        }
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".yaml", delete=False
        ) as f:
            yaml.dump(override, f)
            temp_path = f.name

        try:
            cfg = Config(temp_path, environ={})
            assert cfg["server"]["port"] == 8080
            assert cfg["server"]["debug"] is True
            assert cfg["server"]["host"] == "0.0.0.0"  # default preserved
            assert cfg["identity"]["strategy"] == "batch"
            assert cfg["store"]["backend"] == "memory"  # default preserved
        finally:
            os.unlink(temp_path)

    def test_missing_file_uses_defaults(self):
        cfg = Config("/nonexistent/path/config.yaml", environ={})
        assert cfg["server"]["port"] == 5000

    def test_invalid_yaml_uses_defaults(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("server: [unclosed")
            temp_path = f.name
        try:
            cfg = Config(temp_path, environ={})
            assert cfg["server"]["port"] == 5000
        finally:
            os.unlink(temp_path)

    def test_env_overrides(self):
        cfg = Config(environ={
            "SUPABASE_URL": "https://x.supabase.co",
            "SUPABASE_KEY": "k",
            "STORE_BACKEND": "supabase",
            "SERVER_PORT": "9000",
            "SERVER_DEBUG": "true",
            "STORE_TIMEOUT": "2.5",
        })
        assert cfg["store"]["url"] == "https://x.supabase.co"
        assert cfg["store"]["key"] == "k"
        assert cfg["store"]["backend"] == "supabase"
        assert cfg["server"]["port"] == 9000
        assert cfg["server"]["debug"] is True
        assert cfg["store"]["timeout"] == 2.5

    def test_invalid_env_value_ignored(self):
        cfg = Config(environ={"SERVER_PORT": "not-a-port"})
        assert cfg["server"]["port"] == 5000

    def test_deep_merge(self):
        base = {"server": {"host": "localhost", "port": 5000, "debug": False}}
        override = {"server": {"port": 9090}}
        result = Config._deep_merge(base, override)
        assert result["server"]["port"] == 9090
        assert result["server"]["host"] == "localhost"
        assert result["server"]["debug"] is False

    def test_get_and_contains(self, config):
        assert config.get("server")["port"] == 5000
        assert config.get("nonexistent") is None
        assert config.get("nonexistent", "fallback") == "fallback"
        assert "store" in config
        assert "nonexistent" not in config
