"""Client for the Hugging Face Inference API text-generation task."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from .config import HuggingFaceConfig
from .http import decode_json, ensure_reachable, raise_for_error_field, schema_error, send
from .llm import (
    ConfigurationError,
    EmptyResponseError,
    GenerationParams,
    MissingContentError,
    check_finish_reason,
)
from .logging import get_logger

LOGGER = get_logger(__name__)

NORMAL_FINISH_REASONS = ("eos_token", "stop_sequence")


class HuggingFaceClient:
    display_name = "Hugging Face"

    def __init__(
        self, config: HuggingFaceConfig, *, session: Optional[requests.Session] = None
    ) -> None:
        self.config = config
        self._session = session or requests.Session()

    def _headers(self, operation: str) -> Dict[str, str]:
        if not self.config.api_key:
            raise ConfigurationError(f"HUGGINGFACE_API_KEY is not set. Cannot run {operation}.")
        return {"Authorization": f"Bearer {self.config.api_key}"}

    def generate(self, prompt: str, model: str, params: Optional[GenerationParams] = None) -> str:
        operation = "Hugging Face generate"
        headers = self._headers(operation)
        url = f"{self.config.base_url.rstrip('/')}/{model}"
        payload = {
            "inputs": prompt,
            "parameters": {"return_full_text": False, "details": True},
        }

        response = send(
            self._session,
            "POST",
            url,
            operation=operation,
            timeout=self.config.timeout,
            headers=headers,
            json=payload,
        )
        body = decode_json(response, operation)
        if isinstance(body, dict):
            raise_for_error_field(body, response, self.display_name)
            generations: List[Any] = [body]
        elif isinstance(body, list):
            generations = body
        else:
            raise schema_error(response, operation, "expected a generation object or list")

        if not generations:
            raise EmptyResponseError("No generations found in Hugging Face response")
        first = generations[0]
        if not isinstance(first, dict):
            raise schema_error(response, operation, "generation entry is not an object")

        details = first.get("details")
        reason = details.get("finish_reason") if isinstance(details, dict) else None
        check_finish_reason(self.display_name, reason, normal=NORMAL_FINISH_REASONS)

        text = first.get("generated_text")
        if not isinstance(text, str):
            raise MissingContentError(self.display_name, "'generated_text'")
        return text

    def list_models(self) -> List[str]:
        """The Inference API has no per-account listing endpoint."""

        LOGGER.debug("Hugging Face model listing is not available; returning no models.")
        return []

    def check_connection(self) -> None:
        """Authenticate the token against ``whoami`` instead of spending a generation."""

        headers = self._headers("Hugging Face connection check")
        response = send(
            self._session,
            "GET",
            self.config.whoami_url,
            operation="Hugging Face connection check",
            timeout=self.config.probe_timeout,
            headers=headers,
        )
        ensure_reachable(response, self.display_name, "Hugging Face connection check")
