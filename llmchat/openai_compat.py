"""Marshaling for the OpenAI-compatible ``chat/completions`` wire format.

Providers that expose this schema (Groq today) supply an API key, a base URL,
a model and a prompt; everything else lives here: request construction, the
bearer header, the HTTP call and classification of the response.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from .http import decode_object, raise_for_error_field, schema_error, send
from .llm import (
    EmptyResponseError,
    MissingContentError,
    check_finish_reason,
)
from .logging import get_logger

LOGGER = get_logger(__name__)

NORMAL_FINISH_REASONS = ("stop",)


@dataclass
class ChatChoice:
    index: int
    content: Optional[str]
    finish_reason: Optional[str]


@dataclass
class ChatCompletion:
    choices: List[ChatChoice]

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ChatCompletion":
        raw_choices = payload.get("choices")
        if not isinstance(raw_choices, list):
            raise ValueError("'choices' must be a list")
        choices = []
        for position, item in enumerate(raw_choices):
            if not isinstance(item, dict):
                raise ValueError(f"choice {position} is not an object")
            message = item.get("message")
            if message is not None and not isinstance(message, dict):
                raise ValueError(f"choice {position} 'message' is not an object")
            content = (message or {}).get("content")
            if content is not None and not isinstance(content, str):
                raise ValueError(f"choice {position} 'content' is not a string")
            index = item.get("index")
            choices.append(
                ChatChoice(
                    index=index if isinstance(index, int) else position,
                    content=content,
                    finish_reason=item.get("finish_reason"),
                )
            )
        return cls(choices=choices)


class OpenAICompatibleClient:
    """Parametrised client for any provider speaking the OpenAI chat schema."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        provider_name: str = "OpenAI-compatible",
        timeout: Optional[float] = None,
        probe_timeout: Optional[float] = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.provider_name = provider_name
        self.timeout = timeout
        self.probe_timeout = probe_timeout
        self._base_url = base_url
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url.rstrip("/")

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    # ------------------------------------------------------------------
    # Chat completions
    # ------------------------------------------------------------------
    def chat(self, model: str, prompt: str) -> str:
        operation = f"{self.provider_name} chat completion"
        url = f"{self.base_url}/chat/completions"
        payload = {"model": model, "messages": [{"role": "user", "content": prompt}]}

        response = send(
            self._session,
            "POST",
            url,
            operation=operation,
            timeout=self.timeout,
            headers=self._headers(),
            json=payload,
        )
        body = decode_object(response, operation)
        raise_for_error_field(body, response, self.provider_name)
        try:
            completion = ChatCompletion.from_payload(body)
        except ValueError as exc:
            raise schema_error(response, operation, str(exc)) from exc

        if not completion.choices:
            raise EmptyResponseError(f"No choices found in {self.provider_name} response")
        first = completion.choices[0]
        check_finish_reason(
            self.provider_name,
            first.finish_reason,
            normal=NORMAL_FINISH_REASONS,
            unknown=(None, ""),
        )
        if first.content is None:
            raise MissingContentError(self.provider_name, "message content in the first choice")
        return first.content

    # ------------------------------------------------------------------
    # Model discovery
    # ------------------------------------------------------------------
    def list_models(self, *, timeout: Optional[float] = None) -> List[str]:
        operation = f"{self.provider_name} list models"
        url = f"{self.base_url}/models"
        response = send(
            self._session,
            "GET",
            url,
            operation=operation,
            timeout=timeout if timeout is not None else self.timeout,
            headers=self._headers(),
        )
        body = decode_object(response, operation)
        raise_for_error_field(body, response, self.provider_name)

        data = body.get("data")
        if not isinstance(data, list):
            raise schema_error(response, operation, "'data' must be a list")
        model_ids = []
        for item in data:
            if not isinstance(item, dict) or not isinstance(item.get("id"), str):
                raise schema_error(response, operation, "model entry without a string 'id'")
            model_ids.append(item["id"])
        LOGGER.debug("Found %d %s models", len(model_ids), self.provider_name)
        return model_ids

    def check_connection(self) -> None:
        """Probe reachability by listing models under the short probe timeout."""

        self.list_models(timeout=self.probe_timeout)
