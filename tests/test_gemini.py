"""Tests for the Gemini client."""

from __future__ import annotations

import pytest

from llmchat.config import GeminiConfig
from llmchat.gemini import GeminiClient
from llmchat.llm import (
    AbnormalFinishError,
    ConfigurationError,
    EmptyResponseError,
    GenerationParams,
    MissingContentError,
    PromptBlockedError,
    ProviderAPIError,
    ResponseParseError,
)

BASE_URL = "https://gemini.test/v1beta"


def _client(http, **overrides) -> GeminiClient:
    settings = {"api_key": "g-key", "base_url": BASE_URL + "/"}
    settings.update(overrides)
    return GeminiClient(GeminiConfig(**settings), session=http)


def _candidate(text="Hello there", finish_reason="STOP", **extra) -> dict:
    candidate = {"content": {"parts": [{"text": text}], "role": "model"}}
    if finish_reason is not None:
        candidate["finishReason"] = finish_reason
    candidate.update(extra)
    return candidate


def test_generate_returns_first_part_verbatim(http) -> None:
    text = "**bold**\n\n- item\n  "
    http.queue({"candidates": [_candidate(text), _candidate("second")]})

    assert _client(http).generate("hi", "gemini-pro") == text

    call = http.last
    assert call["method"] == "POST"
    assert call["url"] == f"{BASE_URL}/models/gemini-pro:generateContent"
    assert call["headers"] == {"x-goog-api-key": "g-key"}
    assert "g-key" not in call["url"]
    assert call["json"] == {"contents": [{"parts": [{"text": "hi"}]}]}


def test_generate_sends_generation_config_when_params_given(http) -> None:
    http.queue({"candidates": [_candidate()]})

    params = GenerationParams(temperature=0.2, top_p=None, max_tokens=64)
    _client(http).generate("hi", "gemini-pro", params)

    assert http.last["json"]["generationConfig"] == {"temperature": 0.2, "maxOutputTokens": 64}


def test_generate_omits_generation_config_for_empty_params(http) -> None:
    http.queue({"candidates": [_candidate()]})

    _client(http).generate("hi", "gemini-pro", GenerationParams())

    assert "generationConfig" not in http.last["json"]


def test_generate_reports_blocked_prompt_with_ratings(http) -> None:
    http.queue(
        {
            "promptFeedback": {
                "blockReason": "SAFETY",
                "safetyRatings": [{"category": "HARM_CATEGORY_HARASSMENT", "probability": "HIGH"}],
            }
        }
    )

    with pytest.raises(PromptBlockedError) as excinfo:
        _client(http).generate("hi", "gemini-pro")

    assert excinfo.value.reason == "SAFETY"
    assert "HARM_CATEGORY_HARASSMENT=HIGH" in str(excinfo.value)


def test_generate_without_candidates_is_empty_response(http) -> None:
    http.queue({"candidates": []})

    with pytest.raises(EmptyResponseError, match="No candidates"):
        _client(http).generate("hi", "gemini-pro")


def test_generate_rejects_max_tokens_finish(http) -> None:
    http.queue({"candidates": [_candidate("truncated", finish_reason="MAX_TOKENS")]})

    with pytest.raises(AbnormalFinishError) as excinfo:
        _client(http).generate("hi", "gemini-pro")

    assert excinfo.value.reason == "MAX_TOKENS"
    assert excinfo.value.safety == ""


def test_generate_safety_finish_includes_candidate_ratings(http) -> None:
    ratings = [
        {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "probability": "MEDIUM"},
        {"category": "HARM_CATEGORY_HATE_SPEECH", "probability": "LOW"},
    ]
    http.queue({"candidates": [_candidate("", finish_reason="SAFETY", safetyRatings=ratings)]})

    with pytest.raises(AbnormalFinishError) as excinfo:
        _client(http).generate("hi", "gemini-pro")

    assert excinfo.value.safety == (
        "HARM_CATEGORY_DANGEROUS_CONTENT=MEDIUM, HARM_CATEGORY_HATE_SPEECH=LOW"
    )


@pytest.mark.parametrize("reason", [None, "FINISH_REASON_UNSPECIFIED"])
def test_generate_accepts_unlabeled_finish_reason(http, reason) -> None:
    http.queue({"candidates": [_candidate("fine", finish_reason=reason)]})

    assert _client(http).generate("hi", "gemini-pro") == "fine"


def test_generate_reports_missing_content(http) -> None:
    http.queue({"candidates": [{"finishReason": "STOP"}]})

    with pytest.raises(MissingContentError, match="candidate content"):
        _client(http).generate("hi", "gemini-pro")


def test_generate_reports_missing_parts(http) -> None:
    http.queue({"candidates": [{"finishReason": "STOP", "content": {"role": "model"}}]})

    with pytest.raises(MissingContentError, match="parts"):
        _client(http).generate("hi", "gemini-pro")


def test_generate_reports_missing_text(http) -> None:
    http.queue(
        {"candidates": [{"finishReason": "STOP", "content": {"parts": [{"inlineData": {}}]}}]}
    )

    with pytest.raises(MissingContentError, match="'text'"):
        _client(http).generate("hi", "gemini-pro")


def test_generate_malformed_body_is_parse_error(http) -> None:
    http.queue("not json", status=200)

    with pytest.raises(ResponseParseError) as excinfo:
        _client(http).generate("hi", "gemini-pro")

    assert excinfo.value.status == 200
    assert excinfo.value.body == "not json"


def test_generate_surfaces_error_envelope(http) -> None:
    http.queue(
        {"error": {"code": 400, "message": "API key not valid.", "status": "INVALID_ARGUMENT"}},
        status=400,
    )

    with pytest.raises(ProviderAPIError) as excinfo:
        _client(http).generate("hi", "gemini-pro")

    error = excinfo.value
    assert error.message == "API key not valid."
    assert error.code == 400
    assert error.status == "INVALID_ARGUMENT"
    assert str(error) == "Gemini API Error (400 INVALID_ARGUMENT): API key not valid."


def test_missing_key_fails_before_any_request(http) -> None:
    client = _client(http, api_key=None)

    with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
        client.generate("hi", "gemini-pro")
    with pytest.raises(ConfigurationError):
        client.list_models()

    assert http.calls == []


def test_list_models_filters_strips_prefix_and_follows_pages(http) -> None:
    http.queue(
        {
            "models": [
                {"name": "models/gemini-pro", "supportedGenerationMethods": ["generateContent"]},
                {"name": "models/embedding-001", "supportedGenerationMethods": ["embedContent"]},
            ],
            "nextPageToken": "page-2",
        }
    )
    http.queue(
        {
            "models": [
                {
                    "name": "models/gemini-1.5-flash",
                    "supportedGenerationMethods": ["countTokens", "generateContent"],
                }
            ]
        }
    )

    assert _client(http).list_models() == ["gemini-pro", "gemini-1.5-flash"]
    assert http.calls[0]["params"] == {}
    assert http.calls[1]["params"] == {"pageToken": "page-2"}
    assert http.calls[1]["url"] == f"{BASE_URL}/models"


def test_list_models_rejects_non_list_models(http) -> None:
    http.queue({"models": "oops"})

    with pytest.raises(ResponseParseError):
        _client(http).list_models()


def test_check_connection_fetches_single_entry_page(http) -> None:
    http.queue({"models": [{"name": "models/gemini-pro"}]})

    _client(http, probe_timeout=3.0).check_connection()

    assert http.last["params"] == {"pageSize": 1}
    assert http.last["timeout"] == 3.0
    assert http.last["headers"] == {"x-goog-api-key": "g-key"}


def test_check_connection_rejects_bad_key(http) -> None:
    http.queue({"error": {"code": 403, "message": "Permission denied"}}, status=403)

    with pytest.raises(ProviderAPIError, match="Permission denied"):
        _client(http).check_connection()


def test_list_models_stops_on_repeated_page_token(http) -> None:
    page = {
        "models": [{"name": "models/gemini-pro", "supportedGenerationMethods": ["generateContent"]}],
        "nextPageToken": "same",
    }
    for _ in range(5):
        http.queue(page)

    assert _client(http).list_models() == ["gemini-pro", "gemini-pro"]
    assert len(http.calls) == 2
