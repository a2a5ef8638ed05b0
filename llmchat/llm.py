"""Abstract interfaces, shared models and the error taxonomy for chat providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Collection, Dict, List, Optional, Protocol

BODY_PREVIEW_CHARS = 500


def preview(text: str, limit: int = BODY_PREVIEW_CHARS) -> str:
    """Return at most *limit* characters of *text*, marking truncation."""

    if len(text) <= limit:
        return text
    return text[:limit] + "..."


@dataclass
class GenerationParams:
    """Optional sampling controls; ``None`` means "use the provider default"."""

    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_tokens: Optional[int] = None

    def is_empty(self) -> bool:
        return self.temperature is None and self.top_p is None and self.max_tokens is None


# ----------------------------------------------------------------------
# Error taxonomy
# ----------------------------------------------------------------------
class ModelClientError(RuntimeError):
    """Base exception raised for chat provider errors."""


class ConfigurationError(ModelClientError):
    """Raised when a required credential is missing; no request is sent."""


class ModelConnectionError(ModelClientError):
    """Raised when the provider cannot be reached (connection, timeout, bad URL)."""


class ResponseParseError(ModelClientError):
    """Raised when a response body does not match the expected schema."""

    def __init__(self, operation: str, status: int, body: str, reason: str = "") -> None:
        self.operation = operation
        self.status = status
        self.body = preview(body)
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Failed to parse {operation} response (Status: {status}){detail}. Body: {self.body}"
        )


class ProviderAPIError(ModelClientError):
    """A well-formed error envelope returned by the provider."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        code: Any = None,
        status: Optional[str] = None,
        http_status: Optional[int] = None,
    ) -> None:
        self.provider = provider
        self.message = message
        self.code = code
        self.status = status
        self.http_status = http_status
        labels = [str(item) for item in (code, status) if item not in (None, "")]
        label = f" ({' '.join(labels)})" if labels else ""
        super().__init__(f"{provider} API Error{label}: {message}")


class ValidationError(ValueError):
    """Raised when a user-supplied command argument is malformed or out of range."""


class SoftFailureError(ModelClientError):
    """A successful response envelope that carries no usable text."""


class PromptBlockedError(SoftFailureError):
    def __init__(self, provider: str, reason: str, safety: str = "") -> None:
        self.reason = reason
        self.safety = safety
        suffix = f" Safety Ratings: {safety}" if safety else ""
        super().__init__(f"Prompt blocked by {provider} due to '{reason}'.{suffix}")


class EmptyResponseError(SoftFailureError):
    """Raised when the provider returned no candidates or choices."""


class AbnormalFinishError(SoftFailureError):
    def __init__(self, provider: str, reason: str, safety: str = "") -> None:
        self.reason = reason
        self.safety = safety
        suffix = f" Safety Ratings: {safety}" if safety else ""
        super().__init__(f"{provider} generation finished early: Reason '{reason}'.{suffix}")


class MissingContentError(SoftFailureError):
    def __init__(self, provider: str, missing: str) -> None:
        self.missing = missing
        super().__init__(f"{provider} response is missing {missing}")


def check_finish_reason(
    provider: str,
    reason: Optional[str],
    *,
    normal: Collection[str],
    unknown: Collection[Optional[str]] = (None, ""),
    safety: str = "",
) -> None:
    """Raise :class:`AbnormalFinishError` unless *reason* is normal or unlabeled.

    Unlabeled reasons pass: some providers omit the field on success.
    """

    if reason in unknown or reason in normal:
        return
    raise AbnormalFinishError(provider, str(reason), safety)


class SupportsGeneration(Protocol):
    """Operations every provider client exposes to the dispatcher."""

    display_name: str

    def generate(self, prompt: str, model: str, params: Optional[GenerationParams] = None) -> str:
        ...

    def list_models(self) -> List[str]:
        ...

    def check_connection(self) -> None:
        ...


def error_details(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Normalise an ``error`` field that may be an object, a string or a list."""

    error = payload.get("error")
    if isinstance(error, dict):
        return {
            "message": str(error.get("message", "")),
            "code": error.get("code"),
            "status": error.get("status") or error.get("type"),
        }
    if isinstance(error, list):
        return {"message": "; ".join(str(item) for item in error), "code": None, "status": None}
    return {"message": str(error), "code": None, "status": None}
