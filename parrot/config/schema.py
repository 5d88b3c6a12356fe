from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PERSONALITIES = ("mild", "sarcastic", "savage")


class ParrotBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow")


def _strip_endpoint(value: str) -> str:
    return (value or "").strip().rstrip("/")


class APIConfig(ParrotBaseModel):
    enabled: bool = Field(default=True)
    provider: str = Field(default="openai")
    endpoint: str = Field(default="https://api.openai.com/v1")
    api_key: Optional[str] = None
    model: str = Field(default="gpt-3.5-turbo")
    timeout_seconds: int = Field(default=3, ge=1)

    @field_validator("endpoint")
    @classmethod
    def normalize_endpoint(cls, value: str) -> str:
        return _strip_endpoint(value)


class LocalConfig(ParrotBaseModel):
    enabled: bool = Field(default=True)
    provider: str = Field(default="ollama")
    endpoint: str = Field(default="http://localhost:11434")
    model: str = Field(default="phi3.5:3.8b")
    timeout_seconds: int = Field(default=5, ge=1)

    @field_validator("endpoint")
    @classmethod
    def normalize_endpoint(cls, value: str) -> str:
        return _strip_endpoint(value)


class GeneralConfig(ParrotBaseModel):
    personality: str = Field(default="savage")
    fallback_only: bool = Field(default=False)
    debug: bool = Field(default=False)
    colors: bool = Field(default=True)
    enhanced: bool = Field(default=False)

    @field_validator("personality")
    @classmethod
    def validate_personality(cls, value: str) -> str:
        if value not in PERSONALITIES:
            raise ValueError(f"general.personality must be one of {', '.join(PERSONALITIES)}")
        return value


class ParrotConfig(ParrotBaseModel):
    api: APIConfig = Field(default_factory=APIConfig)
    local: LocalConfig = Field(default_factory=LocalConfig)
    general: GeneralConfig = Field(default_factory=GeneralConfig)

    def dump(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def with_general(self, **changes: Any) -> "ParrotConfig":
        """Return a copy with *changes* applied to the general section; self is untouched."""
        return self.model_copy(update={"general": self.general.model_copy(update=changes)})
