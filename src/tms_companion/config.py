"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if "server" in data:
            flattened["host"] = data["server"].get("host")
            flattened["port"] = data["server"].get("port")
        if "user" in data:
            flattened["user_id"] = data["user"].get("id")
        if "storage" in data:
            flattened["storage_dir"] = data["storage"].get("data_dir")
        if "safety" in data:
            safety = data["safety"]
            flattened["max_treatment_weeks"] = safety.get("max_treatment_weeks")
            flattened["worsening_threshold"] = safety.get("worsening_threshold")
        if "chat" in data:
            flattened["chat_seed"] = data["chat"].get("seed")

        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)

    # Single local user
    user_id: str = Field(default="local")

    # Safety limits
    max_treatment_weeks: int = Field(default=12)
    worsening_threshold: float = Field(default=1.0)

    # Counselor closing phrases are random unless seeded
    chat_seed: int | None = Field(default=None)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)
    storage_dir: Path | None = Field(default=None)

    @property
    def data_dir(self) -> Path:
        d = self.storage_dir or self.project_root / "data"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()


@functools.lru_cache
def load_content(name: str) -> dict:
    """Load a static content file (config/content/<name>.yaml)."""
    path = _find_project_root() / "config" / "content" / f"{name}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Content file not found: {path}")
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}
