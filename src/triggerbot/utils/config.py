"""Configuration management for triggerbot."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class DispatchConfig(BaseModel):
    """Command dispatch configuration."""

    default_prefixes: list[str] = Field(default_factory=lambda: ["!"])
    generic_permissions: list[str] = Field(default_factory=list)
    developers: list[str] = Field(default_factory=list)
    help_enabled: bool = True
    reply_on_failure: bool = True

    @field_validator("default_prefixes")
    @classmethod
    def prefixes_longest_first(cls, v: list[str]) -> list[str]:
        # "hello there" must be tried before "hello"
        if any(not prefix for prefix in v):
            raise ValueError("prefixes must be non-empty strings")
        return sorted(v, key=len, reverse=True)


class TelegramConfig(BaseModel):
    """Telegram platform configuration."""

    enabled: bool = True
    bot_token: str
    allowed_user_ids: list[str] = Field(default_factory=list)


class DiscordConfig(BaseModel):
    """Discord platform configuration."""

    enabled: bool = True
    bot_token: str
    channel_id: str | None = None
    allowed_user_ids: list[str] = Field(default_factory=list)


class CliConfig(BaseModel):
    """Local console bus configuration."""

    user_id: str = "cli-user"
    mention: str = "@triggerbot"


class MessageBusConfig(BaseModel):
    """Message bus configuration."""

    enabled: bool = False
    telegram: TelegramConfig | None = None
    discord: DiscordConfig | None = None
    cli: CliConfig = Field(default_factory=CliConfig)

    @model_validator(mode="after")
    def validate_platforms(self) -> "MessageBusConfig":
        """Require at least one platform when the bus is enabled."""
        if self.enabled and not (self.telegram or self.discord):
            raise ValueError(
                "messagebus is enabled but neither telegram nor discord is configured"
            )
        return self


CONFIG_FILES = ("config.user.yaml", "config.runtime.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


class Config(BaseModel):
    """
    Top-level triggerbot configuration.

    `Config.load` layers the files in CONFIG_FILES from the workspace, later
    files overriding earlier ones key by key. Anything left unset falls back
    to the model defaults.
    """

    workspace: Path
    logging_path: Path = Field(default=Path(".logs"))
    log_level: str = "INFO"
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    messagebus: MessageBusConfig = Field(default_factory=MessageBusConfig)

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def resolve_paths(self) -> "Config":
        if self.logging_path.is_absolute():
            raise ValueError(f"logging_path must be relative, got: {self.logging_path}")
        self.logging_path = self.workspace / self.logging_path
        return self

    @classmethod
    def load(cls, workspace_dir: Path) -> "Config":
        """Build a Config from the YAML files in `workspace_dir`; raises ValidationError."""
        data: dict[str, Any] = {"workspace": workspace_dir}
        for name in CONFIG_FILES:
            data = cls._deep_merge(data, _read_yaml(workspace_dir / name))
        return cls.model_validate(data)

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Copy of `base` with `override` applied; nested dicts merge recursively."""
        merged = dict(base)
        for key, value in override.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                value = Config._deep_merge(current, value)
            merged[key] = value
        return merged
