"""Interactive chat CLI for Ollama, Gemini, Groq and Hugging Face models."""

from __future__ import annotations

import argparse
import os
from pathlib import Path

import requests

from llmchat.config import AppConfig
from llmchat.history import LineHistory
from llmchat.logging import configure_logging, get_logger
from llmchat.repl import ChatRepl
from llmchat.session import SessionState

LOGGER = get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Chat with local and hosted LLM providers from one interactive prompt."
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        help="Path to a config file (YAML or JSON, default: config.yaml in the working directory).",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        help="Path to a .env file with secrets such as GEMINI_API_KEY (default: .env).",
    )
    parser.add_argument(
        "--provider",
        choices=["ollama", "gemini", "groq", "huggingface"],
        help="Provider to activate at startup (requires its API key for hosted providers).",
    )
    parser.add_argument("--model", help="Model to use for the startup provider.")
    parser.add_argument(
        "--host",
        help="Ollama HTTP host (default: OLLAMA_HOST env or value from the config file).",
    )
    parser.add_argument("--history-file", type=Path, help="Where to persist input history.")
    parser.add_argument(
        "--no-history", action="store_true", help="Do not read or write the history file."
    )
    parser.add_argument(
        "--plain", action="store_true", help="Print answers as plain text instead of Markdown."
    )
    parser.add_argument("--log-level", default="WARNING", help="Python logging level (default: WARNING).")
    return parser.parse_args(argv)


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> None:
    if args.provider:
        config.llm.provider = args.provider
    if args.host:
        config.ollama.host = args.host
    if args.history_file:
        config.repl.history_file = args.history_file.expanduser()
    if args.no_history:
        config.repl.history_file = None
    if args.plain:
        config.repl.render_markdown = False


def build_repl(config: AppConfig, args: argparse.Namespace) -> ChatRepl:
    state = SessionState.from_config(config)
    if args.model:
        state.set_model(state.active, args.model)
    history = LineHistory(config.repl.history_file, max_entries=config.repl.history_size)
    return ChatRepl(
        state,
        http_session=requests.Session(),
        history=history,
        render_markdown=config.repl.render_markdown,
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    if args.env_file:
        os.environ["ENV_FILE"] = str(args.env_file)

    config = AppConfig.load(config_path=args.config_file)
    apply_overrides(config, args)
    repl = build_repl(config, args)

    try:
        repl.run()
    except Exception as exc:
        LOGGER.error("Application error: %s", exc, exc_info=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
