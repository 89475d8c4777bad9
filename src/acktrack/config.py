import functools
import logging
import os
import re
from typing import Any, Optional

import tomllib

from acktrack.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

MAX_UNACKNOWLEDGED_MESSAGES_ENV_VAR = "MAX_UNACKNOWLEDGED_MESSAGES"
ENVIRONMENT_ENV_VAR = "ACKTRACK_ENV"

# `${NAME}` or `${NAME|default}`
ENV_VAR_PATTERN = re.compile(r"\$\{(?P<name>[^}|]+)(?:\|(?P<default>[^}]*))?\}")


def _default_config():
    """Return a fresh copy of the defaults, safe to mutate in tests."""
    return {
        "log_level": None,
        "max_unacknowledged_messages": None,
        "queue_clients": {"default": {"provider": "memory"}},
    }


def parse_max_unacknowledged(value: Any) -> Optional[int]:
    """Resolve a maximum-unacknowledged-messages value.

    Only a positive `int`, or a string made up solely of ASCII digits, enables
    bounded mode. Everything else (signs, underscores, whitespace, floats,
    booleans, garbage) resolves to `None`, which means unbounded.
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.isascii() and value.isdigit():
        parsed = int(value)
    else:
        if value not in (None, ""):
            logger.debug(f"Ignoring invalid max unacknowledged messages `{value!r}`")
        return None

    return parsed if parsed > 0 else None


@functools.lru_cache(maxsize=None)
def max_unacknowledged_messages() -> Optional[int]:
    """Capacity from the `MAX_UNACKNOWLEDGED_MESSAGES` environment variable.

    Read once per process; later changes to the environment are not observed.
    Use `max_unacknowledged_messages.cache_clear()` to force a re-read.
    """
    value = parse_max_unacknowledged(os.environ.get(MAX_UNACKNOWLEDGED_MESSAGES_ENV_VAR))
    logger.debug(f"Resolved max unacknowledged messages to {value}")
    return value


def merge_config(base: dict, overrides: dict) -> dict:
    """Recursively overlay `overrides` on `base`, without mutating either"""
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def substitute_env_vars(value: Any) -> Any:
    """Expand `${NAME}` and `${NAME|default}` in every string within `value`.

    Raises:
        ConfigurationError: If a variable without a default is not set
    """
    if isinstance(value, dict):
        return {key: substitute_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [substitute_env_vars(item) for item in value]
    if not isinstance(value, str):
        return value

    def expand(match: re.Match) -> str:
        name, default = match.group("name"), match.group("default")
        expanded = os.environ.get(name, default)
        if expanded is None:
            raise ConfigurationError(f"Environment variable {name} is not set")
        return expanded

    return ENV_VAR_PATTERN.sub(expand, value)


class Config(dict):
    CONFIG_FILES = [".acktrack.toml", "acktrack.toml", "pyproject.toml"]

    @property
    def max_unacknowledged_messages(self) -> Optional[int]:
        return parse_max_unacknowledged(self.get("max_unacknowledged_messages"))

    @property
    def log_level(self) -> Optional[str]:
        level = self.get("log_level")
        return str(level).upper() if level else None

    @classmethod
    def load_from_dict(cls, config: Optional[dict] = None) -> "Config":
        """Build configuration from a dictionary laid out like `acktrack.toml`."""
        return cls(substitute_env_vars(cls._select(config or {})))

    @classmethod
    def load_from_path(cls, path: str) -> "Config":
        """Load the first config file found in `path` or up to two parents.

        In a `pyproject.toml`, only the `[tool.acktrack]` table is read.
        """
        config_file = cls.find_config_file(path)
        if config_file is None:
            raise ConfigurationError(f"No configuration file found in {path}")

        logger.debug(f"Loading configuration from {config_file}")
        with open(config_file, "rb") as f:
            raw = tomllib.load(f)

        if os.path.basename(config_file) == "pyproject.toml":
            raw = raw.get("tool", {}).get("acktrack", {})

        return cls.load_from_dict(raw)

    @classmethod
    def find_config_file(cls, path: str) -> Optional[str]:
        directory = os.path.abspath(path if os.path.isdir(path) else os.path.dirname(path))

        for _ in range(3):
            for name in cls.CONFIG_FILES:
                candidate = os.path.join(directory, name)
                if os.path.exists(candidate):
                    return candidate
            directory = os.path.dirname(directory)

        return None

    @classmethod
    def _select(cls, raw: dict) -> dict:
        """Keep known keys over the defaults, then overlay the table named
        by `ACKTRACK_ENV`, when there is one.
        """
        defaults = _default_config()
        config = merge_config(
            defaults, {key: value for key, value in raw.items() if key in defaults}
        )

        environment = os.environ.get(ENVIRONMENT_ENV_VAR)
        if environment and isinstance(raw.get(environment), dict):
            config = merge_config(config, raw[environment])

        return config
