"""Provider identities and their static facts."""

from __future__ import annotations

from enum import Enum

from .llm import ValidationError


class Provider(str, Enum):
    OLLAMA = "ollama"
    GEMINI = "gemini"
    GROQ = "groq"
    HUGGINGFACE = "huggingface"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def config_name(self) -> str:
        return self.value

    @property
    def api_key_env(self) -> str:
        """Environment variable holding the API key (empty for Ollama)."""

        return _API_KEY_ENV[self]

    @property
    def requires_api_key(self) -> bool:
        return bool(self.api_key_env)

    @classmethod
    def parse(cls, name: str) -> "Provider":
        key = name.strip().lower()
        key = _ALIASES.get(key, key)
        for provider in cls:
            if provider.value == key:
                return provider
        available = ", ".join(provider.value for provider in cls)
        raise ValidationError(f"Unknown provider: '{name}'. Available: {available}")

    def __str__(self) -> str:
        return self.display_name


_DISPLAY_NAMES = {
    Provider.OLLAMA: "Ollama",
    Provider.GEMINI: "Gemini",
    Provider.GROQ: "Groq",
    Provider.HUGGINGFACE: "Hugging Face",
}

_API_KEY_ENV = {
    Provider.OLLAMA: "",
    Provider.GEMINI: "GEMINI_API_KEY",
    Provider.GROQ: "GROQ_API_KEY",
    Provider.HUGGINGFACE: "HUGGINGFACE_API_KEY",
}

_ALIASES = {"hf": Provider.HUGGINGFACE.value, "hugging_face": Provider.HUGGINGFACE.value}
