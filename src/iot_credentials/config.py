"""
Configuration — typed, validated settings loaded once at startup.

Uses pydantic-settings to:
  - Load from environment variables (IOT_ prefix)
  - Fall back to a .env file
  - Fall back to the bundled `iot-credentials.properties` resource
  - Validate types (paths, algorithm hint) before anything runs

The composition root builds one AppSettings and passes the values it needs
explicitly; nothing re-reads configuration per call.

Properties keys are camelCase (`certificateFile`) and map onto the
snake_case fields (`certificate_file`). Blank property values count as unset.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from iot_credentials.adapters.properties import get_config, load_bundled_properties
from iot_credentials.domain.models import KeyAlgorithm

# Resolve the .env file relative to the project root (two levels above this file),
# so settings load correctly regardless of the working directory at runtime.
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def property_to_field_name(name: str) -> str:
    """`certificateFile` → `certificate_file`; snake_case names pass through."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def normalise_properties(properties: Mapping[str, str]) -> dict[str, str]:
    """Rename keys to field names and drop blank values."""
    return {
        property_to_field_name(name): value.strip()
        for name in properties
        if (value := get_config(properties, name)) is not None
    }


class PropertiesSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by a `.properties` mapping (the bundled resource by default)."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        properties: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(settings_cls)
        if properties is None:
            properties = load_bundled_properties().get_or_else({})
        self._values = normalise_properties(properties)

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return self._values.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return {
            name: self._values[name]
            for name in self.settings_cls.model_fields
            if name in self._values
        }


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Constructor arguments
      2. Environment variables (IOT_CERTIFICATE_FILE, IOT_KEY_ALGORITHM, ...)
      3. .env file
      4. Bundled properties resource
      5. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="IOT_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    certificate_file: Path | None = Field(default=None, description="X.509 certificate (PEM or DER)")
    private_key_file: Path | None = Field(default=None, description="Private key (PEM or DER)")
    key_algorithm: KeyAlgorithm | None = Field(
        default=None,
        description="Key algorithm hint; detected from the key encoding when unset",
    )
    client_endpoint: str | None = Field(default=None, description="Message broker endpoint")
    client_id: str | None = Field(default=None, description="MQTT client identifier")
    verify_key_match: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    @field_validator("key_algorithm", mode="before")
    @classmethod
    def parse_key_algorithm(cls, value: Any) -> Any:
        """Accept hint names such as "rsa", "EC" or "ECDSA"; blank means unset."""
        if isinstance(value, str):
            if not value.strip():
                return None
            return KeyAlgorithm.from_name(value)
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            PropertiesSettingsSource(settings_cls),
            file_secret_settings,
        )

    @classmethod
    def from_properties(cls, properties: Mapping[str, str]) -> AppSettings:
        """Build settings from an explicit properties mapping; its values take precedence."""
        return cls(**normalise_properties(properties))
