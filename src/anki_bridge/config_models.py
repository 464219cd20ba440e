from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from anki_bridge.errors import ConfigurationError

DEFAULT_TTS_URL = "https://dashscope.aliyuncs.com/api/v1/services/aigc/multimodal-generation/generation"

# Environment variable -> (section, field)
ENV_OVERRIDES: Dict[str, tuple] = {
    "ANKI_CONNECT_URL": ("anki", "url"),
    "OPENAI_API_KEY": ("llm", "api_key"),
    "OPENAI_BASE_URL": ("llm", "base_url"),
    "OPENAI_MODEL": ("llm", "model"),
    "TTS_URL": ("tts", "url"),
    "TTS_API_KEY": ("tts", "api_key"),
    "TTS_MODEL": ("tts", "model"),
    "TTS_VOICE": ("tts", "voice"),
    "ANKI_BRIDGE_HOST": ("server", "host"),
    "ANKI_BRIDGE_PORT": ("server", "port"),
    "ANKI_BRIDGE_LOG_LEVEL": ("server", "log_level"),
}


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class AnkiConnectConfig(_FrozenModel):
    """Where AnkiConnect listens. ``url`` stays unset until configured."""
    url: Optional[str] = Field(default=None, description="AnkiConnect endpoint, e.g. http://127.0.0.1:8765")
    version: int = Field(default=6, description="AnkiConnect API version sent with every call")
    timeout_seconds: Optional[float] = Field(default=30.0, gt=0, description="Per-call timeout, None to wait forever")

    def require_url(self) -> str:
        if not self.url:
            raise ConfigurationError(
                "AnkiConnect is not configured: set the ANKI_CONNECT_URL environment variable "
                "(e.g. http://127.0.0.1:8765)."
            )
        return self.url


class LLMConfig(_FrozenModel):
    """OpenAI-compatible chat completion endpoint."""
    api_key: Optional[str] = Field(default=None, description="Bearer API key")
    base_url: Optional[str] = Field(default=None, description="Base URL; /chat/completions is appended")
    model: Optional[str] = Field(default=None, description="Model identifier")
    refine_temperature: float = Field(default=0.3, ge=0, le=2, description="Temperature for note refinement")
    complete_temperature: float = Field(default=0.7, ge=0, le=2, description="Temperature for the legacy completion route")

    def missing(self) -> List[str]:
        names = {"api_key": "OPENAI_API_KEY", "base_url": "OPENAI_BASE_URL", "model": "OPENAI_MODEL"}
        return [env for attr, env in names.items() if not getattr(self, attr)]

    def require(self) -> None:
        missing = self.missing()
        if missing:
            raise ConfigurationError(
                f"Language model configuration is incomplete: set {', '.join(missing)}."
            )


class TTSConfig(_FrozenModel):
    """Text-to-speech endpoint returning a URL to the generated audio."""
    url: str = Field(default=DEFAULT_TTS_URL, description="Synthesis endpoint")
    api_key: Optional[str] = Field(default=None, description="Bearer key; falls back to the LLM key")
    model: str = Field(default="qwen3-tts-flash", description="TTS model name")
    voice: str = Field(default="Ethan", description="Voice name")
    language_type: str = Field(default="English", description="Language of the input text")
    timeout_seconds: Optional[float] = Field(default=60.0, gt=0, description="Per-call timeout, None to wait forever")


class RetryConfig(_FrozenModel):
    """Bounded retry for the language-model facing calls."""
    max_attempts: int = Field(default=5, ge=1, description="Attempts including the first one")
    delay_ms: float = Field(default=500, ge=0, description="Constant delay between attempts")


class UploadConfig(_FrozenModel):
    """Deck, note type and field names used by the upload route."""
    deck_name: str = Field(default="Vocabulary", description="Target deck")
    model_name: str = Field(default="Vocabulary", description="Note type")
    word_field: str = Field(default="Word", description="Field receiving the word")
    context_field: str = Field(default="Context", description="Field receiving the context sentence")
    description_field: str = Field(default="Description", description="Field receiving the HTML description")


class ServerConfig(_FrozenModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(default="INFO")
    strict_arguments: bool = Field(
        default=False,
        description="Reject RPC bodies that are valid JSON but not an array instead of calling with no arguments",
    )


class AppConfig(_FrozenModel):
    """Process-wide configuration, read once at startup and never mutated."""
    anki: AnkiConnectConfig = Field(default_factory=AnkiConnectConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    tts: TTSConfig = Field(default_factory=TTSConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @property
    def tts_api_key(self) -> Optional[str]:
        return self.tts.api_key or self.llm.api_key


def _apply_env(raw: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for section, values in raw.items():
        if values is not None and not isinstance(values, dict):
            raise ConfigurationError(f"Config section '{section}' must be a mapping, got {type(values).__name__}")
        merged[section] = dict(values or {})
    for env_name, (section, field_name) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            merged.setdefault(section, {})[field_name] = value
    return merged


def load_config(config_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Build the configuration from an optional YAML file and the environment.

    Environment variables win over the file. A missing file is an error only
    when a path was given explicitly.
    """
    environ = os.environ if environ is None else environ
    raw: Dict[str, Any] = {}
    if config_path is not None:
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")
        try:
            raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Config file {config_path} is not valid YAML: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    try:
        return AppConfig.model_validate(_apply_env(raw, environ))
    except ValidationError as ve:
        raise ConfigurationError(f"Invalid configuration:\n{ve}") from ve
