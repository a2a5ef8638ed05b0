"""Mutable session state for the interactive loop and the handlers that change it."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .config import AppConfig, GeminiConfig, GroqConfig, HuggingFaceConfig, OllamaConfig
from .llm import ConfigurationError, GenerationParams, ValidationError
from .logging import get_logger
from .providers import Provider

LOGGER = get_logger(__name__)

ProviderConfig = Union[OllamaConfig, GeminiConfig, GroqConfig, HuggingFaceConfig]

RESET = "reset"


@dataclass(frozen=True)
class ParameterSpec:
    """How one generation parameter is parsed, bounded and reset."""

    attribute: str
    label: str
    kind: type
    minimum: Union[int, float]
    maximum: Optional[Union[int, float]] = None

    @property
    def valid_range(self) -> str:
        if self.maximum is None:
            return f">{self.minimum - 1}" if self.kind is int else f">={self.minimum}"
        return f"{self.minimum}-{self.maximum}"

    def parse(self, raw: str) -> Union[int, float]:
        try:
            value = self.kind(raw)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid {self.label} value '{raw}'") from exc
        if not self.in_range(value):
            raise ValidationError(f"Invalid {self.label} '{raw}'. Must be {self.valid_range}.")
        return value

    def in_range(self, value: Any) -> bool:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if self.kind is int and not isinstance(value, int):
            return False
        if not value >= self.minimum:
            return False
        return self.maximum is None or value <= self.maximum


_TEMPERATURE = ParameterSpec("temperature", "temp", float, 0.0, 1.0)
_TOP_P = ParameterSpec("top_p", "top_p", float, 0.0, 1.0)
_MAX_TOKENS = ParameterSpec("max_tokens", "max_tokens", int, 1)

GENERATION_PARAMETERS: Dict[Provider, Dict[str, ParameterSpec]] = {
    Provider.GEMINI: {
        "temp": _TEMPERATURE,
        "temperature": _TEMPERATURE,
        "top_p": _TOP_P,
        "max_tokens": _MAX_TOKENS,
    },
}


def _builtin_defaults(provider: Provider) -> Dict[str, Any]:
    if provider is Provider.GEMINI:
        defaults = GeminiConfig()
        return {
            "temperature": defaults.temperature,
            "top_p": defaults.top_p,
            "max_tokens": defaults.max_tokens,
        }
    return {}


@dataclass
class SessionState:
    """Active provider plus a private copy of every provider's settings.

    Owned by the REPL for the lifetime of the process and passed explicitly to
    every command handler. Each mutator validates before assigning, so a
    rejected command leaves the state untouched.
    """

    active: Provider = Provider.OLLAMA
    ollama: OllamaConfig = field(default_factory=OllamaConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    groq: GroqConfig = field(default_factory=GroqConfig)
    huggingface: HuggingFaceConfig = field(default_factory=HuggingFaceConfig)

    @classmethod
    def from_config(cls, config: AppConfig) -> "SessionState":
        state = cls(
            ollama=copy.deepcopy(config.ollama),
            gemini=copy.deepcopy(config.gemini),
            groq=copy.deepcopy(config.groq),
            huggingface=copy.deepcopy(config.huggingface),
        )
        state._sanitize_generation_parameters()

        try:
            requested = Provider.parse(config.llm.provider or Provider.OLLAMA.value)
        except ValidationError as exc:
            LOGGER.warning("%s. Starting with Ollama.", exc)
            return state
        try:
            state.switch_provider(requested)
        except ConfigurationError as exc:
            LOGGER.warning("%s Starting with Ollama.", exc)
        return state

    def _sanitize_generation_parameters(self) -> None:
        for provider, specs in GENERATION_PARAMETERS.items():
            settings = self.config_for(provider)
            defaults = _builtin_defaults(provider)
            for spec in set(specs.values()):
                value = getattr(settings, spec.attribute)
                if value is not None and not spec.in_range(value):
                    LOGGER.warning(
                        "Configured %s %s=%r is out of range (%s); using the default.",
                        provider.display_name,
                        spec.label,
                        value,
                        spec.valid_range,
                    )
                    setattr(settings, spec.attribute, defaults[spec.attribute])

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------
    def config_for(self, provider: Provider) -> ProviderConfig:
        return getattr(self, provider.config_name)

    def model_for(self, provider: Provider) -> str:
        return self.config_for(provider).model

    @property
    def active_model(self) -> str:
        return self.model_for(self.active)

    def api_key_for(self, provider: Provider) -> Optional[str]:
        if not provider.requires_api_key:
            return None
        return getattr(self.config_for(provider), "api_key", None)

    def is_configured(self, provider: Provider) -> bool:
        return not provider.requires_api_key or bool(self.api_key_for(provider))

    def generation_params(self, provider: Provider) -> GenerationParams:
        if provider not in GENERATION_PARAMETERS:
            return GenerationParams()
        settings = self.config_for(provider)
        return GenerationParams(
            temperature=getattr(settings, "temperature"),
            top_p=getattr(settings, "top_p"),
            max_tokens=getattr(settings, "max_tokens"),
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def switch_provider(self, provider: Provider) -> None:
        if not self.is_configured(provider):
            raise ConfigurationError(f"{provider.api_key_env} not set.")
        self.active = provider

    def set_model(self, provider: Provider, model: str) -> None:
        model = model.strip()
        if not model:
            raise ValidationError("Model name must not be empty.")
        self.config_for(provider).model = model

    def set_generation_parameter(
        self, provider: Provider, name: str, raw_value: str
    ) -> Optional[Union[int, float]]:
        """Set or reset one parameter and return its new value."""

        specs = GENERATION_PARAMETERS.get(provider)
        if not specs:
            raise ValidationError(f"{provider.display_name} has no tunable generation parameters.")
        spec = specs.get(name.lower())
        if spec is None:
            raise ValidationError(
                f"Unknown parameter '{name}'. Available: {', '.join(sorted(specs))}"
            )
        if raw_value.strip().lower() == RESET:
            value = _builtin_defaults(provider)[spec.attribute]
        else:
            value = spec.parse(raw_value.strip())
        setattr(self.config_for(provider), spec.attribute, value)
        return value

    def reset_generation_parameters(self, provider: Provider) -> GenerationParams:
        if provider not in GENERATION_PARAMETERS:
            raise ValidationError(f"{provider.display_name} has no tunable generation parameters.")
        settings = self.config_for(provider)
        for key, value in _builtin_defaults(provider).items():
            setattr(settings, key, value)
        return self.generation_params(provider)
