"""Runtime configuration for the voice bridge."""

from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(
        env_prefix="VOICE_BRIDGE_",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "voice-bridge"
    log_level: str = "INFO"
    elevenlabs_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ELEVENLABS_API_KEY", "VOICE_BRIDGE_ELEVENLABS_API_KEY"),
    )
    elevenlabs_base_url: str = "https://api.elevenlabs.io"
    temp_dir: Path = Field(
        default=Path("/tmp"),
        validation_alias=AliasChoices("TMPDIR", "VOICE_BRIDGE_TEMP_DIR"),
        description="Directory for short-lived audio files handed to the player.",
    )
    home: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("HOME", "VOICE_BRIDGE_HOME"),
        description="Base directory of the user-global voice.json lookup.",
    )
    message_limit: int = 25
    host_url: str = Field(
        default="http://127.0.0.1:4096",
        description="Base URL of the host HTTP API used by the `listen` command.",
    )

    @field_validator("temp_dir", mode="before")
    @classmethod
    def _default_temp_dir(cls, value: object) -> object:
        if value is None or value == "":
            return Path("/tmp")
        return value

    @field_validator("home", mode="before")
    @classmethod
    def _empty_home_is_unset(cls, value: object) -> object:
        if value == "":
            return None
        return value


settings = Settings()
