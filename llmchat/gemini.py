"""Client for the Google Gemini ``generateContent`` REST API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from .config import GeminiConfig
from .http import decode_object, raise_for_error_field, schema_error, send
from .llm import (
    ConfigurationError,
    EmptyResponseError,
    GenerationParams,
    MissingContentError,
    PromptBlockedError,
    check_finish_reason,
)
from .logging import get_logger

LOGGER = get_logger(__name__)

NORMAL_FINISH_REASONS = ("STOP",)
UNKNOWN_FINISH_REASONS = (None, "", "UNKNOWN", "FINISH_REASON_UNSPECIFIED")
GENERATE_METHOD = "generateContent"
MODEL_PREFIX = "models/"


@dataclass
class SafetyRating:
    category: str
    probability: str

    def __str__(self) -> str:
        return f"{self.category}={self.probability}"


def _ratings(raw: Any) -> List[SafetyRating]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("'safetyRatings' must be a list")
    return [
        SafetyRating(str(item.get("category", "")), str(item.get("probability", "")))
        for item in raw
        if isinstance(item, dict)
    ]


def _format_ratings(ratings: List[SafetyRating]) -> str:
    return ", ".join(str(rating) for rating in ratings)


@dataclass
class Candidate:
    content: Optional[Dict[str, Any]]
    finish_reason: Optional[str]
    safety_ratings: List[SafetyRating] = field(default_factory=list)


@dataclass
class GeminiResponse:
    candidates: Optional[List[Candidate]]
    block_reason: Optional[str] = None
    prompt_ratings: List[SafetyRating] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "GeminiResponse":
        feedback = payload.get("promptFeedback")
        if feedback is not None and not isinstance(feedback, dict):
            raise ValueError("'promptFeedback' must be an object")
        feedback = feedback or {}

        raw_candidates = payload.get("candidates")
        candidates: Optional[List[Candidate]] = None
        if raw_candidates is not None:
            if not isinstance(raw_candidates, list):
                raise ValueError("'candidates' must be a list")
            candidates = []
            for position, item in enumerate(raw_candidates):
                if not isinstance(item, dict):
                    raise ValueError(f"candidate {position} is not an object")
                content = item.get("content")
                if content is not None and not isinstance(content, dict):
                    raise ValueError(f"candidate {position} 'content' is not an object")
                candidates.append(
                    Candidate(
                        content=content,
                        finish_reason=item.get("finishReason"),
                        safety_ratings=_ratings(item.get("safetyRatings")),
                    )
                )
        return cls(
            candidates=candidates,
            block_reason=feedback.get("blockReason"),
            prompt_ratings=_ratings(feedback.get("safetyRatings")),
        )


class GeminiClient:
    display_name = "Gemini"

    def __init__(self, config: GeminiConfig, *, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self.config.base_url.rstrip("/")

    def _headers(self, operation: str) -> Dict[str, str]:
        # The key travels in a header so it never appears in URLs or logs.
        if not self.config.api_key:
            raise ConfigurationError(f"GEMINI_API_KEY is not set. Cannot run {operation}.")
        return {"x-goog-api-key": self.config.api_key}

    @staticmethod
    def build_payload(prompt: str, params: Optional[GenerationParams]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if params is None or params.is_empty():
            return payload
        generation_config: Dict[str, Any] = {}
        if params.temperature is not None:
            generation_config["temperature"] = params.temperature
        if params.top_p is not None:
            generation_config["topP"] = params.top_p
        if params.max_tokens is not None:
            generation_config["maxOutputTokens"] = params.max_tokens
        payload["generationConfig"] = generation_config
        return payload

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    def generate(self, prompt: str, model: str, params: Optional[GenerationParams] = None) -> str:
        operation = "Gemini generate"
        headers = self._headers(operation)
        url = f"{self.base_url}/models/{model}:{GENERATE_METHOD}"

        response = send(
            self._session,
            "POST",
            url,
            operation=operation,
            timeout=self.config.timeout,
            headers=headers,
            json=self.build_payload(prompt, params),
        )
        body = decode_object(response, operation)
        raise_for_error_field(body, response, self.display_name)
        try:
            parsed = GeminiResponse.from_payload(body)
        except ValueError as exc:
            raise schema_error(response, operation, str(exc)) from exc
        return self._extract_text(parsed)

    def _extract_text(self, parsed: GeminiResponse) -> str:
        if parsed.block_reason:
            LOGGER.error("Gemini prompt blocked. Reason: %s", parsed.block_reason)
            raise PromptBlockedError(
                self.display_name, parsed.block_reason, _format_ratings(parsed.prompt_ratings)
            )

        if not parsed.candidates:
            LOGGER.error("No candidates found in Gemini response structure.")
            raise EmptyResponseError("No candidates found in Gemini response")
        first = parsed.candidates[0]

        reason = first.finish_reason
        safety = _format_ratings(first.safety_ratings) if reason == "SAFETY" else ""
        if reason in UNKNOWN_FINISH_REASONS:
            LOGGER.warning("Gemini candidate is missing a 'finishReason'. Proceeding cautiously.")
        else:
            if reason not in NORMAL_FINISH_REASONS:
                LOGGER.warning("Gemini generation finished due to reason: %s", reason)
            check_finish_reason(
                self.display_name,
                reason,
                normal=NORMAL_FINISH_REASONS,
                unknown=UNKNOWN_FINISH_REASONS,
                safety=safety,
            )

        if first.content is None:
            raise MissingContentError(self.display_name, "candidate content")
        parts = first.content.get("parts")
        if parts is None:
            raise MissingContentError(self.display_name, "content 'parts'")
        if not isinstance(parts, list) or not parts:
            raise MissingContentError(self.display_name, "entries in content 'parts'")
        text = parts[0].get("text") if isinstance(parts[0], dict) else None
        if not isinstance(text, str):
            raise MissingContentError(self.display_name, "'text' in the first content part")
        return text

    # ------------------------------------------------------------------
    # Model discovery
    # ------------------------------------------------------------------
    def _fetch_models_page(
        self, *, page_token: Optional[str], page_size: Optional[int], timeout: Optional[float]
    ) -> Dict[str, Any]:
        operation = "Gemini list models"
        headers = self._headers(operation)
        params: Dict[str, Any] = {}
        if page_token:
            params["pageToken"] = page_token
        if page_size:
            params["pageSize"] = page_size
        response = send(
            self._session,
            "GET",
            f"{self.base_url}/models",
            operation=operation,
            timeout=timeout,
            headers=headers,
            params=params,
        )
        body = decode_object(response, operation)
        raise_for_error_field(body, response, self.display_name)
        models = body.get("models", [])
        if not isinstance(models, list):
            raise schema_error(response, operation, "'models' must be a list")
        return body

    def list_models(self) -> List[str]:
        model_ids: List[str] = []
        page_token: Optional[str] = None
        seen_tokens = set()
        while True:
            body = self._fetch_models_page(
                page_token=page_token, page_size=None, timeout=self.config.timeout
            )
            for model in body.get("models", []):
                if not isinstance(model, dict):
                    continue
                methods = model.get("supportedGenerationMethods") or []
                name = str(model.get("name", ""))
                if GENERATE_METHOD in methods and name.startswith(MODEL_PREFIX):
                    model_ids.append(name[len(MODEL_PREFIX):])
            page_token = body.get("nextPageToken")
            if not page_token:
                break
            if page_token in seen_tokens:
                LOGGER.warning("Gemini repeated page token %r; stopping model listing.", page_token)
                break
            seen_tokens.add(page_token)
        if not model_ids:
            LOGGER.warning("Gemini listed no models supporting '%s'.", GENERATE_METHOD)
        return model_ids

    def check_connection(self) -> None:
        """A single one-entry listing page proves both reachability and the key."""

        self._fetch_models_page(page_token=None, page_size=1, timeout=self.config.probe_timeout)
        LOGGER.debug("Gemini connection check successful.")
