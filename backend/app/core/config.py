"""Application configuration management.

Settings are read from environment variables (optionally seeded from a
``.env`` file) through ``EnvironmentLoader``, converted to typed values and
validated once. ``get_settings()`` returns the cached instance.

Architecture:
- EnvironmentLoader: environment variable loading with type conversion
- MembershipConfig: reserved group names and lookup limits
- DatabaseConfig: store connection settings
- Settings: main configuration object
"""

import os
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any

from app.core.enums import Environment, LogFormat, LogLevel
from app.core.errors import ConfigurationError

ENV_PREFIX = "GROUPGRAPH_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class EnvironmentLoader:
    """
    Environment variable loader with type conversion and validation.

    Values already present in ``os.environ`` win over the ones in the
    environment file.
    """

    def __init__(self, env_file: str | None = ".env", prefix: str = ENV_PREFIX):
        self.env_file = env_file
        self.prefix = prefix
        self._file_values: dict[str, str] = {}
        self._load_env_file()

    def _load_env_file(self) -> None:
        """Load variables from the environment file if it exists."""
        if not self.env_file or not os.path.exists(self.env_file):
            return

        try:
            with open(self.env_file, encoding="utf-8") as f:
                for raw_line in f:
                    line = raw_line.strip()

                    if not line or line.startswith("#") or "=" not in line:
                        continue

                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip()

                    if (value.startswith('"') and value.endswith('"')) or (
                        value.startswith("'") and value.endswith("'")
                    ):
                        value = value[1:-1]

                    self._file_values[key] = value

        except OSError as e:
            raise ConfigurationError(
                f"Failed to load environment file {self.env_file}: {e}"
            ) from e

    def _raw(self, key: str) -> str | None:
        name = f"{self.prefix}{key}"
        if name in os.environ:
            return os.environ[name]
        return self._file_values.get(name)

    def get_string(
        self,
        key: str,
        default: str | None = None,
        required: bool = False,
        min_length: int = 0,
    ) -> str | None:
        """Get string value from environment."""
        value = self._raw(key)
        if value is None or value.strip() == "":
            if required:
                raise ConfigurationError(f"{self.prefix}{key} is required", config_key=key)
            return default

        value = value.strip()
        if len(value) < min_length:
            raise ConfigurationError(
                f"{self.prefix}{key} must be at least {min_length} characters",
                config_key=key,
            )
        return value

    def get_integer(
        self,
        key: str,
        default: int | None = None,
        min_value: int | None = None,
        max_value: int | None = None,
    ) -> int | None:
        """Get integer value from environment."""
        raw = self._raw(key)
        if raw is None or raw.strip() == "":
            return default

        try:
            value = int(raw)
        except ValueError as e:
            raise ConfigurationError(
                f"{self.prefix}{key} must be an integer, got {raw!r}", config_key=key
            ) from e

        if min_value is not None and value < min_value:
            raise ConfigurationError(
                f"{self.prefix}{key} must be >= {min_value}", config_key=key
            )
        if max_value is not None and value > max_value:
            raise ConfigurationError(
                f"{self.prefix}{key} must be <= {max_value}", config_key=key
            )
        return value

    def get_boolean(self, key: str, default: bool = False) -> bool:
        """Get boolean value from environment."""
        raw = self._raw(key)
        if raw is None or raw.strip() == "":
            return default

        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ConfigurationError(
            f"{self.prefix}{key} must be a boolean, got {raw!r}", config_key=key
        )

    def get_enum(self, key: str, enum_class: type[Enum], default: Enum) -> Any:
        """Get enum value (matched on the member value) from environment."""
        raw = self._raw(key)
        if raw is None or raw.strip() == "":
            return default

        try:
            return enum_class(raw.strip().lower())
        except ValueError as e:
            allowed = ", ".join(str(member.value) for member in enum_class)
            raise ConfigurationError(
                f"{self.prefix}{key} must be one of: {allowed}", config_key=key
            ) from e


@dataclass(frozen=True)
class MembershipConfig:
    """Reserved group names and lookup limits."""

    anonymous_group_name: str = "Anonymous"
    admin_group_name: str = "Administrator"
    search_page_size: int = 50

    def __post_init__(self):
        if self.anonymous_group_name == self.admin_group_name:
            raise ConfigurationError(
                "Anonymous and administrator groups must have different names",
                config_key="ADMIN_GROUP",
            )

    @property
    def reserved_names(self) -> frozenset[str]:
        return frozenset({self.anonymous_group_name, self.admin_group_name})


@dataclass(frozen=True)
class DatabaseConfig:
    """Store connection settings."""

    url: str = "sqlite+aiosqlite:///:memory:"
    echo: bool = False


class Settings:
    """
    Main application settings.

    Usage Example:
        settings = get_settings()
        anonymous = settings.membership.anonymous_group_name
    """

    def __init__(self, env_file: str | None = ".env"):
        self.env_loader = EnvironmentLoader(env_file)

        self._load_application_config()
        self._load_membership_config()
        self._load_database_config()

    def _load_application_config(self) -> None:
        self.app_name = self.env_loader.get_string("APP_NAME", "groupgraph")
        self.environment = self.env_loader.get_enum(
            "ENVIRONMENT", Environment, Environment.DEVELOPMENT
        )

        raw_level = self.env_loader.get_string("LOG_LEVEL", "INFO")
        try:
            self.log_level = LogLevel.from_string(raw_level)
        except ValueError as e:
            raise ConfigurationError(str(e), config_key="LOG_LEVEL") from e

        self.log_format = self.env_loader.get_enum("LOG_FORMAT", LogFormat, LogFormat.JSON)

    def _load_membership_config(self) -> None:
        self.membership = MembershipConfig(
            anonymous_group_name=self.env_loader.get_string(
                "ANONYMOUS_GROUP", "Anonymous", min_length=1
            ),
            admin_group_name=self.env_loader.get_string(
                "ADMIN_GROUP", "Administrator", min_length=1
            ),
            search_page_size=self.env_loader.get_integer(
                "SEARCH_PAGE_SIZE", 50, min_value=1, max_value=1000
            ),
        )

    def _load_database_config(self) -> None:
        self.database = DatabaseConfig(
            url=self.env_loader.get_string(
                "DATABASE_URL", "sqlite+aiosqlite:///:memory:"
            ),
            echo=self.env_loader.get_boolean("DATABASE_ECHO", False),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "app_name": self.app_name,
            "environment": self.environment.value,
            "log_level": self.log_level.value,
            "log_format": self.log_format.value,
            "anonymous_group_name": self.membership.anonymous_group_name,
            "admin_group_name": self.membership.admin_group_name,
            "search_page_size": self.membership.search_page_size,
            "database_url": self.database.url,
        }


@lru_cache
def get_settings(env_file: str | None = ".env") -> Settings:
    """
    Get cached settings instance.

    Args:
        env_file: Environment file to load
    """
    return Settings(env_file)


__all__ = [
    "DatabaseConfig",
    "EnvironmentLoader",
    "MembershipConfig",
    "Settings",
    "get_settings",
]
