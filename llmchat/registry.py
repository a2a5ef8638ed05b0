"""The one place that maps a :class:`Provider` to its client implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, Optional

import requests

from .gemini import GeminiClient
from .groq import GroqClient
from .huggingface import HuggingFaceClient
from .llm import SupportsGeneration
from .ollama import OllamaClient
from .providers import Provider

if TYPE_CHECKING:  # pragma: no cover - import for type checkers only
    from .session import SessionState


ClientFactory = Callable[["SessionState", requests.Session], SupportsGeneration]

_FACTORIES: Dict[Provider, ClientFactory] = {
    Provider.OLLAMA: lambda state, http: OllamaClient(state.ollama, session=http),
    Provider.GEMINI: lambda state, http: GeminiClient(state.gemini, session=http),
    Provider.GROQ: lambda state, http: GroqClient(state.groq, session=http),
    Provider.HUGGINGFACE: lambda state, http: HuggingFaceClient(state.huggingface, session=http),
}


def create_client(
    provider: Provider, state: "SessionState", session: Optional[requests.Session] = None
) -> SupportsGeneration:
    """Build a client bound to the provider's current configuration in *state*."""

    try:
        factory = _FACTORIES[provider]
    except KeyError as exc:
        raise ValueError(f"No client registered for provider '{provider.value}'") from exc
    return factory(state, session or requests.Session())
