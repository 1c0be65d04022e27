from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cadence.domain.constants import DEFAULT_SESSION_CAP


class AppConfig(BaseSettings):
    """
    Configuration model for cadence.
    Supports loading from:
    1. Config file (~/.config/cadence/config.toml or ~/.cadence.toml)
    2. Environment variables (CADENCE_*)
    3. Manual overrides (CLI / API)
    """

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".config/cadence/data")

    # Learn sessions
    session_cap: int = Field(default=DEFAULT_SESSION_CAP, ge=1)
    seed: int | None = None
    # Server sessions untouched for this long are discarded
    session_idle_minutes: int = Field(default=60, ge=1)

    # Server
    host: str = "127.0.0.1"
    port: int = 8787

    # Log level when no -v flag is given: 0=WARNING, 1=INFO, 2+=DEBUG
    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Earlier sources win, so overrides come first and the file last.
        toml_file = next((f for f in _config_files() if f.exists()), None)
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("data_dir", mode="before")
    @classmethod
    def resolve_dir(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()


def _config_files() -> list[Path]:
    # Recomputed on each call so a patched HOME is honoured.
    return [
        Path.home() / ".config/cadence/config.toml",
        Path.home() / ".cadence.toml",
    ]


def resolve_config(overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/cadence/config.toml (if exists)
    3. Environment variables (CADENCE_*)
    4. overrides (None values are ignored)
    """
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
