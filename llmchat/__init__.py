"""Provider-agnostic interactive chat client for local and hosted LLMs."""

from .config import (
    AppConfig,
    GeminiConfig,
    GroqConfig,
    HuggingFaceConfig,
    LLMConfig,
    OllamaConfig,
    ReplConfig,
)
from .gemini import GeminiClient
from .groq import GroqClient
from .history import LineHistory
from .huggingface import HuggingFaceClient
from .llm import (
    AbnormalFinishError,
    ConfigurationError,
    EmptyResponseError,
    GenerationParams,
    MissingContentError,
    ModelClientError,
    ModelConnectionError,
    PromptBlockedError,
    ProviderAPIError,
    ResponseParseError,
    SoftFailureError,
    SupportsGeneration,
    ValidationError,
)
from .ollama import OllamaClient
from .openai_compat import OpenAICompatibleClient
from .providers import Provider
from .registry import create_client
from .repl import ChatRepl, InputKind, ParsedInput, classify_input
from .session import SessionState

__all__ = [
    "AppConfig",
    "GeminiConfig",
    "GroqConfig",
    "HuggingFaceConfig",
    "LLMConfig",
    "OllamaConfig",
    "ReplConfig",
    "GeminiClient",
    "GroqClient",
    "HuggingFaceClient",
    "OllamaClient",
    "OpenAICompatibleClient",
    "LineHistory",
    "AbnormalFinishError",
    "ConfigurationError",
    "EmptyResponseError",
    "GenerationParams",
    "MissingContentError",
    "ModelClientError",
    "ModelConnectionError",
    "PromptBlockedError",
    "ProviderAPIError",
    "ResponseParseError",
    "SoftFailureError",
    "SupportsGeneration",
    "ValidationError",
    "Provider",
    "create_client",
    "ChatRepl",
    "InputKind",
    "ParsedInput",
    "classify_input",
    "SessionState",
]
