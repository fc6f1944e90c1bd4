"""Configuration management for photodiary.

Settings come from environment variables, optionally seeded from a ``.env``
file. The image normalization limits are fixed constants in the normalizer and
deliberately not configurable here.
"""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_DB_PATH = Path.home() / ".photodiary" / "diary.duckdb"


class Config:
    """Centralized configuration management using environment variables."""

    def __init__(self, env_file: str | os.PathLike | None = None):
        """Initialize configuration.

        Args:
            env_file: Optional ``.env`` file to load before reading values.
                Variables already present in the environment win.
        """
        self._cache: dict[str, Any] = {}

        if env_file is not None:
            if os.path.exists(env_file):
                load_dotenv(dotenv_path=env_file, override=False)
                logger.info("env_file_loaded", env_file=str(env_file))
            else:
                logger.warning("env_file_not_found", env_file=str(env_file))

    def get(self, key: str, default: Any = None, cast_type: type = str) -> Any:
        """Get configuration value from environment variables.

        Args:
            key: Configuration key
            default: Default value if not found
            cast_type: Type to cast the value to (str, int, bool, float)

        Returns:
            Configuration value cast to the specified type
        """
        cache_key = f"{key}:{cast_type.__name__}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        value = os.getenv(key)

        if value is None:
            value = default

        if value is not None:
            try:
                if cast_type is bool:
                    if isinstance(value, str):
                        value = value.lower() in ("true", "1", "yes", "on")
                    else:
                        value = bool(value)
                elif cast_type is not str:
                    value = cast_type(value)
            except (ValueError, TypeError) as e:
                logger.warning("config_cast_failed", key=key, cast_type=cast_type.__name__, error=str(e))
                value = default

        self._cache[cache_key] = value
        return value

    @property
    def db_path(self) -> Path:
        """Location of the DuckDB file holding the diary."""
        return Path(self.get("PHOTO_DIARY_DB_PATH", str(DEFAULT_DB_PATH))).expanduser()

    @property
    def allow_future_dates(self) -> bool:
        """Whether photos may be added to days after today."""
        return bool(self.get("PHOTO_DIARY_ALLOW_FUTURE_DATES", False, bool))

    def clear_cache(self) -> None:
        """Clear configuration cache."""
        self._cache.clear()


_config: Config | None = None


def get_config() -> Config:
    """Get the shared configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
