"""Tests for the OpenAI-compatible schema client and its Groq binding."""

from __future__ import annotations

import pytest
import requests

from llmchat.config import GroqConfig
from llmchat.groq import GroqClient
from llmchat.llm import (
    AbnormalFinishError,
    ConfigurationError,
    EmptyResponseError,
    GenerationParams,
    MissingContentError,
    ModelConnectionError,
    ProviderAPIError,
    ResponseParseError,
)
from llmchat.openai_compat import ChatCompletion, OpenAICompatibleClient


def _completion(content="Hi!", finish_reason="stop") -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": finish_reason,
            }
        ],
    }


def _compat(http, **overrides) -> OpenAICompatibleClient:
    settings = {
        "api_key": "sk-test",
        "base_url": "https://compat.test/v1/",
        "provider_name": "Groq",
        "timeout": 30.0,
        "probe_timeout": 4.0,
        "session": http,
    }
    settings.update(overrides)
    return OpenAICompatibleClient(**settings)


def test_chat_sends_single_user_message_with_bearer_token(http) -> None:
    http.queue(_completion("  spaced answer \n"))

    assert _compat(http).chat("llama3-8b-8192", "Hello") == "  spaced answer \n"

    call = http.last
    assert call["method"] == "POST"
    assert call["url"] == "https://compat.test/v1/chat/completions"
    assert call["headers"] == {"Authorization": "Bearer sk-test"}
    assert call["json"] == {
        "model": "llama3-8b-8192",
        "messages": [{"role": "user", "content": "Hello"}],
    }
    assert call["timeout"] == 30.0


def test_chat_rejects_length_finish(http) -> None:
    http.queue(_completion("cut", finish_reason="length"))

    with pytest.raises(AbnormalFinishError, match="'length'"):
        _compat(http).chat("m", "Hello")


def test_chat_accepts_null_finish_reason(http) -> None:
    http.queue(_completion("fine", finish_reason=None))

    assert _compat(http).chat("m", "Hello") == "fine"


def test_chat_without_choices_is_empty_response(http) -> None:
    http.queue({"choices": []})

    with pytest.raises(EmptyResponseError):
        _compat(http).chat("m", "Hello")


def test_chat_with_null_content_is_missing_content(http) -> None:
    http.queue(_completion(None))

    with pytest.raises(MissingContentError):
        _compat(http).chat("m", "Hello")


def test_chat_surfaces_error_envelope(http) -> None:
    http.queue(
        {
            "error": {
                "message": "Invalid API Key",
                "type": "invalid_request_error",
                "code": "invalid_api_key",
            }
        },
        status=401,
    )

    with pytest.raises(ProviderAPIError) as excinfo:
        _compat(http).chat("m", "Hello")

    error = excinfo.value
    assert error.message == "Invalid API Key"
    assert error.code == "invalid_api_key"
    assert error.status == "invalid_request_error"
    assert error.http_status == 401


def test_chat_malformed_body_keeps_status(http) -> None:
    http.queue("<html>Bad Gateway</html>", status=502)

    with pytest.raises(ResponseParseError) as excinfo:
        _compat(http).chat("m", "Hello")

    assert excinfo.value.status == 502
    assert "Bad Gateway" in excinfo.value.body


def test_chat_non_list_choices_is_parse_error(http) -> None:
    http.queue({"choices": {"0": "nope"}})

    with pytest.raises(ResponseParseError, match="'choices' must be a list"):
        _compat(http).chat("m", "Hello")


def test_chat_timeout_is_transport_error(http) -> None:
    http.responses.append(requests.Timeout("slow"))

    with pytest.raises(ModelConnectionError, match="timed out"):
        _compat(http).chat("m", "Hello")


def test_completion_index_falls_back_to_position() -> None:
    completion = ChatCompletion.from_payload(
        {"choices": [{"message": {"content": "a"}}, {"index": "x", "message": {"content": "b"}}]}
    )

    assert [choice.index for choice in completion.choices] == [0, 1]


def test_list_models_returns_ids(http) -> None:
    http.queue({"object": "list", "data": [{"id": "llama3-8b-8192"}, {"id": "mixtral-8x7b"}]})

    assert _compat(http).list_models() == ["llama3-8b-8192", "mixtral-8x7b"]
    assert http.last["url"] == "https://compat.test/v1/models"
    assert http.last["timeout"] == 30.0


def test_list_models_requires_data_array(http) -> None:
    http.queue({"object": "list"})

    with pytest.raises(ResponseParseError, match="'data'"):
        _compat(http).list_models()


def test_check_connection_uses_probe_timeout(http) -> None:
    http.queue({"data": []})

    _compat(http).check_connection()

    assert http.last["method"] == "GET"
    assert http.last["timeout"] == 4.0


# ----------------------------------------------------------------------
# Groq binding
# ----------------------------------------------------------------------
def test_groq_generate_uses_configured_endpoint(http) -> None:
    http.queue(_completion("from groq"))
    client = GroqClient(
        GroqConfig(api_key="gsk", base_url="https://api.groq.test/openai/v1"), session=http
    )

    answer = client.generate("Hello", "llama3-8b-8192", GenerationParams(temperature=0.1))

    assert answer == "from groq"
    assert http.last["url"] == "https://api.groq.test/openai/v1/chat/completions"
    assert http.last["headers"] == {"Authorization": "Bearer gsk"}
    assert "temperature" not in http.last["json"]


def test_groq_errors_are_labelled_with_provider_name(http) -> None:
    http.queue({"error": {"message": "Rate limit reached"}}, status=429)
    client = GroqClient(GroqConfig(api_key="gsk"), session=http)

    with pytest.raises(ProviderAPIError, match="^Groq API Error: Rate limit reached$"):
        client.generate("Hello", "llama3-8b-8192")


def test_groq_without_key_sends_nothing(http) -> None:
    client = GroqClient(GroqConfig(api_key=None), session=http)

    with pytest.raises(ConfigurationError, match="GROQ_API_KEY"):
        client.generate("Hello", "llama3-8b-8192")
    with pytest.raises(ConfigurationError):
        client.check_connection()

    assert http.calls == []
