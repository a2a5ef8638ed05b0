"""HTTP client for the local Ollama REST API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from .config import OllamaConfig
from .http import decode_object, ensure_reachable, raise_for_error_field, schema_error, send
from .llm import GenerationParams, check_finish_reason
from .logging import get_logger

LOGGER = get_logger(__name__)


@dataclass
class OllamaGeneration:
    model: str
    created_at: str
    response: str
    done: bool
    done_reason: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "OllamaGeneration":
        for key, kind in (("model", str), ("created_at", str), ("response", str), ("done", bool)):
            if not isinstance(payload.get(key), kind):
                raise ValueError(f"missing or invalid '{key}'")
        done_reason = payload.get("done_reason")
        return cls(
            model=payload["model"],
            created_at=payload["created_at"],
            response=payload["response"],
            done=payload["done"],
            done_reason=done_reason if isinstance(done_reason, str) else None,
        )


class OllamaClient:
    display_name = "Ollama"

    def __init__(self, config: OllamaConfig, *, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self.config.host.rstrip("/")

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    def generate(self, prompt: str, model: str, params: Optional[GenerationParams] = None) -> str:
        operation = "Ollama generate"
        url = f"{self.base_url}/api/generate"
        payload = {"model": model, "prompt": prompt, "stream": False}

        response = send(
            self._session, "POST", url, operation=operation, timeout=self.config.timeout, json=payload
        )
        body = decode_object(response, operation)
        raise_for_error_field(body, response, self.display_name)
        try:
            generation = OllamaGeneration.from_payload(body)
        except ValueError as exc:
            raise schema_error(response, operation, str(exc)) from exc

        check_finish_reason(self.display_name, generation.done_reason, normal=("stop",))
        return generation.response

    # ------------------------------------------------------------------
    # Model discovery helpers
    # ------------------------------------------------------------------
    def list_models(self) -> List[str]:
        operation = "Ollama list models"
        url = f"{self.base_url}/api/tags"
        response = send(self._session, "GET", url, operation=operation, timeout=self.config.timeout)
        body = decode_object(response, operation)
        raise_for_error_field(body, response, self.display_name)

        models = body.get("models")
        if not isinstance(models, list):
            raise schema_error(response, operation, "'models' must be a list")
        names = [model["name"] for model in models if isinstance(model, dict) and model.get("name")]
        LOGGER.debug("Found Ollama models: %s", names)
        return names

    def check_connection(self) -> None:
        """The Ollama root answers ``Ollama is running``; no model is loaded."""

        response = send(
            self._session,
            "GET",
            self.base_url,
            operation="Ollama connection check",
            timeout=self.config.probe_timeout,
        )
        ensure_reachable(response, self.display_name, f"Ollama connection check at {self.base_url}")
