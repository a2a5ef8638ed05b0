"""Configuration models and helpers for the chat client."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

_DOTENV_LOADED = False


def _load_dotenv_once() -> None:
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return

    env_file = os.getenv("ENV_FILE", ".env")
    env_path = Path(env_file)
    if not env_path.is_absolute():
        env_path = Path.cwd() / env_file
    if env_path.exists():
        load_dotenv(env_path, override=False)
    _DOTENV_LOADED = True


def _env(key: str) -> Optional[str]:
    value = os.getenv(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _update_dataclass(instance: Any, values: Dict[str, Any]) -> None:
    for key, value in (values or {}).items():
        if hasattr(instance, key):
            setattr(instance, key, value)


def _default_history_file() -> Path:
    base = _env("XDG_CONFIG_HOME")
    config_dir = Path(base) if base else Path.home() / ".config"
    return config_dir / "llm-chat" / "history.txt"


@dataclass
class OllamaConfig:
    """Connection details for the local Ollama HTTP API."""

    host: str = "http://localhost:11434"
    model: str = "llama3"
    timeout: float = 120.0
    probe_timeout: float = 5.0


@dataclass
class GeminiConfig:
    """Settings for the Google Gemini ``generateContent`` API."""

    api_key: Optional[str] = None
    model: str = "gemini-1.5-pro-latest"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    temperature: Optional[float] = 0.7
    top_p: Optional[float] = None
    max_tokens: Optional[int] = 2048
    timeout: float = 120.0
    probe_timeout: float = 10.0


@dataclass
class GroqConfig:
    """Settings for Groq's OpenAI-compatible endpoint."""

    api_key: Optional[str] = None
    model: str = "llama3-8b-8192"
    base_url: str = "https://api.groq.com/openai/v1"
    timeout: float = 120.0
    probe_timeout: float = 10.0


@dataclass
class HuggingFaceConfig:
    """Settings for the Hugging Face Inference API."""

    api_key: Optional[str] = None
    model: str = "meta-llama/Llama-2-7b-chat-hf"
    base_url: str = "https://api-inference.huggingface.co/models"
    whoami_url: str = "https://huggingface.co/api/whoami-v2"
    timeout: float = 120.0
    probe_timeout: float = 10.0


@dataclass
class LLMConfig:
    """Provider selected when the session starts."""

    provider: str = "ollama"


@dataclass
class ReplConfig:
    """Line editing and rendering options for the interactive loop."""

    history_file: Optional[Path] = field(default_factory=_default_history_file)
    history_size: int = 1000
    render_markdown: bool = True


@dataclass
class AppConfig:
    """Aggregate configuration container used throughout the project."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    ollama: OllamaConfig = field(default_factory=OllamaConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    groq: GroqConfig = field(default_factory=GroqConfig)
    huggingface: HuggingFaceConfig = field(default_factory=HuggingFaceConfig)
    repl: ReplConfig = field(default_factory=ReplConfig)

    @classmethod
    def load(cls, *, config_path: Optional[Path] = None) -> "AppConfig":
        """Create an :class:`AppConfig` from YAML/JSON and environment overrides."""

        _load_dotenv_once()
        instance = cls()

        file_path = config_path or _env("LLMCHAT_CONFIG_FILE")
        if file_path is None:
            yaml_path = Path.cwd() / "config.yaml"
            json_path = Path.cwd() / "config.json"
            file_path = yaml_path if yaml_path.exists() or not json_path.exists() else json_path
        file_path = Path(file_path).expanduser()
        if file_path.exists():
            with file_path.open("r", encoding="utf-8") as handle:
                if file_path.suffix.lower() in {".yaml", ".yml"}:
                    payload = yaml.safe_load(handle) or {}
                else:
                    payload = json.load(handle)
            instance.apply_mapping(payload)

        instance.apply_environment()
        return instance

    # ------------------------------------------------------------------
    # Override helpers
    # ------------------------------------------------------------------
    def apply_mapping(self, payload: Dict[str, Any]) -> None:
        if not payload:
            return

        if "llm" in payload:
            _update_dataclass(self.llm, payload["llm"])
        if "ollama" in payload:
            _update_dataclass(self.ollama, payload["ollama"])
        if "gemini" in payload:
            _update_dataclass(self.gemini, payload["gemini"])
        if "groq" in payload:
            _update_dataclass(self.groq, payload["groq"])
        if "huggingface" in payload:
            _update_dataclass(self.huggingface, payload["huggingface"])
        if "repl" in payload:
            repl = dict(payload["repl"] or {})
            if repl.get("history_file"):
                repl["history_file"] = Path(repl["history_file"]).expanduser()
            _update_dataclass(self.repl, repl)

    def apply_environment(self) -> None:
        """Overlay environment variables; API keys are only ever read from here."""

        self.gemini.api_key = _env("GEMINI_API_KEY")
        self.groq.api_key = _env("GROQ_API_KEY")
        self.huggingface.api_key = _env("HUGGINGFACE_API_KEY")

        provider = _env("LLM_PROVIDER")
        if provider:
            self.llm.provider = provider.lower()

        ollama_host = _env("OLLAMA_HOST")
        if ollama_host:
            if "://" not in ollama_host:
                ollama_host = f"http://{ollama_host}"
            self.ollama.host = ollama_host
        ollama_model = _env("OLLAMA_MODEL")
        if ollama_model:
            self.ollama.model = ollama_model

        gemini_model = _env("GEMINI_MODEL")
        if gemini_model:
            self.gemini.model = gemini_model

        groq_model = _env("GROQ_MODEL")
        if groq_model:
            self.groq.model = groq_model
        groq_base = _env("GROQ_BASE_URL")
        if groq_base:
            self.groq.base_url = groq_base

        hf_model = _env("HUGGINGFACE_MODEL")
        if hf_model:
            self.huggingface.model = hf_model
        hf_base = _env("HUGGINGFACE_BASE_URL")
        if hf_base:
            self.huggingface.base_url = hf_base

        history_file = _env("LLMCHAT_HISTORY_FILE")
        if history_file:
            self.repl.history_file = Path(history_file).expanduser()
