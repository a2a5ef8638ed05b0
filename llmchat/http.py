"""Thin helpers around :mod:`requests` shared by every provider client."""

from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from .llm import ModelConnectionError, ProviderAPIError, ResponseParseError, error_details, preview
from .logging import get_logger

LOGGER = get_logger(__name__)


def send(
    session: requests.Session,
    method: str,
    url: str,
    *,
    operation: str,
    timeout: Optional[float],
    **kwargs: Any,
) -> requests.Response:
    """Issue exactly one HTTP request, mapping transport failures to our taxonomy."""

    LOGGER.debug("Sending %s request: %s %s", operation, method, url)
    try:
        return session.request(method, url, timeout=timeout, **kwargs)
    except requests.Timeout as exc:
        raise ModelConnectionError(f"{operation} request to {url} timed out after {timeout}s") from exc
    except requests.RequestException as exc:
        raise ModelConnectionError(f"Failed to send {operation} request to {url}: {exc}") from exc


def decode_json(response: requests.Response, operation: str) -> Any:
    """Decode the response body, never coercing a malformed body to a default."""

    try:
        payload = response.json()
    except ValueError as exc:
        LOGGER.error(
            "Failed to parse %s response (status %s): %s",
            operation,
            response.status_code,
            preview(response.text, 200),
        )
        raise ResponseParseError(operation, response.status_code, response.text, str(exc)) from exc
    LOGGER.debug("Parsed %s response (status %s)", operation, response.status_code)
    return payload


def decode_object(response: requests.Response, operation: str) -> Dict[str, Any]:
    payload = decode_json(response, operation)
    if not isinstance(payload, dict):
        raise ResponseParseError(
            operation, response.status_code, response.text, "expected a JSON object"
        )
    return payload


def schema_error(response: requests.Response, operation: str, reason: str) -> ResponseParseError:
    LOGGER.error("Unexpected %s response shape (status %s): %s", operation, response.status_code, reason)
    return ResponseParseError(operation, response.status_code, response.text, reason)


def raise_for_error_field(
    payload: Dict[str, Any], response: requests.Response, provider: str
) -> None:
    """Surface a provider-reported ``error`` field verbatim."""

    if payload.get("error") in (None, ""):
        return
    details = error_details(payload)
    LOGGER.error("%s API returned an error (status %s): %s", provider, response.status_code, details)
    raise ProviderAPIError(
        provider,
        details["message"],
        code=details["code"],
        status=details["status"],
        http_status=response.status_code,
    )


def ensure_reachable(response: requests.Response, provider: str, operation: str) -> None:
    """Accept any 2xx probe response; otherwise report the provider's own error."""

    if response.ok:
        LOGGER.debug("%s connection check successful (status %s)", provider, response.status_code)
        return
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        raise_for_error_field(payload, response, provider)
    raise ModelConnectionError(
        f"{operation} failed: Status {response.status_code} - {preview(response.text, 100)}"
    )
