"""Groq client, a thin binding of the shared OpenAI-compatible schema."""

from __future__ import annotations

from typing import List, Optional

import requests

from .config import GroqConfig
from .llm import ConfigurationError, GenerationParams
from .logging import get_logger
from .openai_compat import OpenAICompatibleClient

LOGGER = get_logger(__name__)


class GroqClient:
    display_name = "Groq"

    def __init__(self, config: GroqConfig, *, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self._session = session or requests.Session()

    def _client(self) -> OpenAICompatibleClient:
        if not self.config.api_key:
            raise ConfigurationError(
                "GROQ_API_KEY is not set. Add it to your .env file or environment."
            )
        return OpenAICompatibleClient(
            api_key=self.config.api_key,
            base_url=self.config.base_url,
            provider_name=self.display_name,
            timeout=self.config.timeout,
            probe_timeout=self.config.probe_timeout,
            session=self._session,
        )

    def generate(self, prompt: str, model: str, params: Optional[GenerationParams] = None) -> str:
        if params is not None and not params.is_empty():
            LOGGER.debug("Groq ignores generation parameters: %s", params)
        return self._client().chat(model, prompt)

    def list_models(self) -> List[str]:
        return self._client().list_models()

    def check_connection(self) -> None:
        self._client().check_connection()
