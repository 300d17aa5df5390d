import copy
import logging
import os

import yaml

logger = logging.getLogger(__name__)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


class Config:
    """Configuration manager that loads from YAML, merges with defaults, then applies env overrides."""

    DEFAULTS = {
        "server": {
            "host": "0.0.0.0",
            "port": 5000,
            "debug": False,
        },
        "store": {
            "backend": "memory",
            "url": "",
            "key": "",
            "timeout": 10.0,
            "log_states_table": "log_states",
            "sessions_table": "cabinet_work_sessions",
        },
        "identity": {
            "strategy": "content",
        },
        "notifications": {
            "max_recent": 50,
        },
        "logging": {
            "level": "INFO",
        },
    }

    # env var -> (section, key, converter)
    ENV_OVERRIDES = {
        "SERVER_HOST": ("server", "host", str),
        "SERVER_PORT": ("server", "port", int),
        "SERVER_DEBUG": ("server", "debug", _parse_bool),
        "STORE_BACKEND": ("store", "backend", str),
        "SUPABASE_URL": ("store", "url", str),
        "SUPABASE_KEY": ("store", "key", str),
        "STORE_TIMEOUT": ("store", "timeout", float),
        "IDENTITY_STRATEGY": ("identity", "strategy", str),
        "LOG_LEVEL": ("logging", "level", str),
    }

    def __init__(self, config_path=None, environ=None):
        self._config = copy.deepcopy(self.DEFAULTS)

        if config_path is not None:
            try:
                with open(config_path, "r") as f:
                    user_config = yaml.safe_load(f)

                if user_config and isinstance(user_config, dict):
                    self._config = self._deep_merge(self._config, user_config)
            except FileNotFoundError:
                logger.info("Config file %s not found, using defaults", config_path)
            except yaml.YAMLError:
                logger.warning("Invalid YAML in %s, using defaults", config_path)

        self._apply_env(os.environ if environ is None else environ)

    def _apply_env(self, environ):
        for name, (section, key, convert) in self.ENV_OVERRIDES.items():
            raw = environ.get(name)
            if raw is None or raw == "":
                continue
            try:
                self._config[section][key] = convert(raw)
            except ValueError:
                logger.warning("Ignoring invalid value for %s: %r", name, raw)

    @staticmethod
    def _deep_merge(base, override):
        """Recursively merge override dict into base dict."""
        result = copy.deepcopy(base)
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = Config._deep_merge(result[key], value)
            else:
                result[key] = copy.deepcopy(value)
        return result

    def get(self, key, default=None):
        """Get a top-level config key."""
        return self._config.get(key, default)

    def __getitem__(self, key):
        return self._config[key]

    def __contains__(self, key):
        return key in self._config
