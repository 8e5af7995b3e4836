"""Configuration management for Lumiere."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lumiere.common.errors import ConfigError


class AppConfig(BaseModel):
    """Host application identity and runtime settings."""

    package_name: str | None = None
    api_key: str | None = None
    port: int = 3000
    mode: Literal["production", "development"] = "development"
    log_level: str = "INFO"


class LLMConfig(BaseModel):
    """Chat completion endpoint configuration."""

    endpoint: str = "https://api.openai.com/v1"
    api_key: str | None = None
    model: str = "gpt-4o-mini"
    persona_temperature: float = 0.9
    persona_max_tokens: int = 50
    reply_temperature: float = 0.8
    reply_max_tokens: int = 150
    timeout_seconds: float = 30.0


class VisionConfig(BaseModel):
    """Object detection workflow configuration."""

    workflow_url: str | None = None
    api_key: str | None = None
    timeout_seconds: float = 30.0


class VoiceConfig(BaseModel):
    """Text-to-speech voices and wake triggers."""

    voice_ids: list[str] = Field(default_factory=list)
    wake_words: list[str] = Field(default_factory=lambda: ["awaken"])
    trigger_press_type: str = "long"

    @field_validator("voice_ids", mode="before")
    @classmethod
    def _split_voice_ids(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_voice_ids(value)
        return value


class VideoConfig(BaseModel):
    """Image-to-video job API configuration."""

    api_key: str | None = None
    base_url: str = "https://api.dev.runwayml.com/v1"
    api_version: str = "2024-11-06"
    model: str = "gen4_turbo"
    ratio: str = "1280:720"
    duration: int = 5
    poll_interval_seconds: float = 2.0
    max_wait_seconds: float | None = None
    max_polls: int | None = None
    timeout_seconds: float = 60.0
    diagnostics_dir: str | None = None


class Config(BaseSettings):
    """Main configuration for Lumiere."""

    model_config = SettingsConfigDict(
        env_prefix="LUMIERE_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app: AppConfig = Field(default_factory=AppConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    vision: VisionConfig = Field(default_factory=VisionConfig)
    voice: VoiceConfig = Field(default_factory=VoiceConfig)
    video: VideoConfig = Field(default_factory=VideoConfig)

    # Mock mode for development
    mock_mode: bool = False

    @classmethod
    def from_yaml(cls, path: Path | str) -> Config:
        """Load configuration from YAML file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def to_yaml(self, path: Path | str) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)

    def missing_conversation_settings(self) -> list[str]:
        """Names of required settings for the conversational app that are unset."""
        required = {
            "PACKAGE_NAME": self.app.package_name,
            "MENTRAOS_API_KEY": self.app.api_key,
            "OPENAI_API_KEY": self.llm.api_key,
            "ROBOFLOW_WORKFLOW_URL": self.vision.workflow_url,
            "ROBOFLOW_API_KEY": self.vision.api_key,
        }
        return [name for name, value in required.items() if not value]

    def require_conversation(self) -> None:
        """Raise ConfigError unless every conversational setting is present."""
        missing = self.missing_conversation_settings()
        if missing:
            raise ConfigError(missing)

    def require_video(self) -> None:
        """Raise ConfigError unless the video API key is present."""
        if not self.video.api_key:
            raise ConfigError(["RUNWAYML_API_SECRET"])


def parse_voice_ids(raw: str | None) -> list[str]:
    """Split a comma-separated voice list, trimming and dropping blanks."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


# Conventional variable names used by the hosted platform and API vendors.
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "PACKAGE_NAME": ("app", "package_name"),
    "MENTRAOS_API_KEY": ("app", "api_key"),
    "OPENAI_API_KEY": ("llm", "api_key"),
    "ROBOFLOW_WORKFLOW_URL": ("vision", "workflow_url"),
    "ROBOFLOW_API_KEY": ("vision", "api_key"),
    "RUNWAY_API_KEY": ("video", "api_key"),
    "RUNWAYML_API_SECRET": ("video", "api_key"),
}


def load_config(
    config_path: Path | str | None = None,
    env_override: bool = True,
) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Path to config file. If None, searches standard locations.
        env_override: Whether to allow environment variables (and a .env file
            in or above the working directory) to override config.

    Returns:
        Loaded configuration.
    """
    # Standard config locations
    search_paths = [
        Path("/etc/lumiere/config.yaml"),
        Path.home() / ".config" / "lumiere" / "config.yaml",
        Path("config.yaml"),
        Path("configs/lumiere.yaml"),
    ]

    if config_path:
        search_paths.insert(0, Path(config_path))

    # Find first existing config file
    config_file: Path | None = None
    for path in search_paths:
        if path.exists():
            config_file = path
            break

    if config_file:
        config = Config.from_yaml(config_file)
    else:
        config = Config()

    if env_override:
        # Vendor names in .env fill gaps only; real environment variables win
        load_dotenv(find_dotenv(usecwd=True))

        # RUNWAYML_API_SECRET is listed last so it wins over RUNWAY_API_KEY
        for env_name, (section, field) in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                setattr(getattr(config, section), field, value)

        voice_ids = os.environ.get("ELEVENLABS_VOICE_IDS")
        if voice_ids is not None:
            config.voice.voice_ids = parse_voice_ids(voice_ids)

        port = os.environ.get("PORT")
        if port:
            try:
                config.app.port = int(port)
            except ValueError as e:
                raise ConfigError(["PORT"], f"PORT must be an integer, got {port!r}") from e

        if os.environ.get("LUMIERE_MOCK_MODE", "").lower() in ("1", "true", "yes"):
            config.mock_mode = True

    return config


def get_default_config() -> dict[str, Any]:
    """Get default configuration as dictionary."""
    return Config().model_dump()
