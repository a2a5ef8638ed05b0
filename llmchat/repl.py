"""Interactive read-eval loop: input classification, slash commands and rendering."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

import requests
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .console import console
from .history import LineHistory
from .llm import ConfigurationError, ModelClientError, SupportsGeneration, ValidationError
from .logging import get_logger
from .providers import Provider
from .registry import create_client
from .session import GENERATION_PARAMETERS, RESET, SessionState
from .shell import run_shell_command

LOGGER = get_logger(__name__)

SHELL_MARKER = "!"
COMMAND_MARKER = "/"
EXIT_INPUTS = frozenset({"quit", "exit", "/quit", "/exit"})
DEFAULT_DISPLAY = "Default"

ClientBuilder = Callable[[Provider, SessionState, requests.Session], SupportsGeneration]


class InputKind(Enum):
    SHELL = "shell"
    COMMAND = "command"
    PROMPT = "prompt"
    EXIT = "exit"


@dataclass
class ParsedInput:
    kind: InputKind
    text: str
    command: str = ""
    argument: str = ""

    @property
    def args(self) -> List[str]:
        return self.argument.split()


def classify_input(line: str) -> Optional[ParsedInput]:
    """Classify one raw input line; blank lines yield ``None`` and are never dispatched."""

    text = line.strip()
    if not text:
        return None
    if text in EXIT_INPUTS:
        return ParsedInput(InputKind.EXIT, text)
    if text.startswith(SHELL_MARKER):
        return ParsedInput(InputKind.SHELL, text, argument=text[len(SHELL_MARKER):].strip())
    if text.startswith(COMMAND_MARKER):
        command, _, argument = text[len(COMMAND_MARKER):].partition(" ")
        return ParsedInput(InputKind.COMMAND, text, command=command.strip(), argument=argument.strip())
    return ParsedInput(InputKind.PROMPT, text)


def _display(value: object) -> str:
    return DEFAULT_DISPLAY if value is None else str(value)


class ChatRepl:
    """Drives one :class:`SessionState` through the interactive loop."""

    def __init__(
        self,
        state: SessionState,
        *,
        http_session: Optional[requests.Session] = None,
        client_factory: ClientBuilder = create_client,
        history: Optional[LineHistory] = None,
        console_override: Optional[Console] = None,
        input_func: Optional[Callable[[str], str]] = None,
        render_markdown: bool = True,
    ) -> None:
        self.state = state
        self.http_session = http_session or requests.Session()
        self.client_factory = client_factory
        self.history = history
        self.console = console_override or console
        self.render_markdown = render_markdown
        self._input = input_func or self._console_input
        self.commands: Dict[str, Callable[[ParsedInput], None]] = {
            "help": self.cmd_help,
            "status": self.cmd_status,
            "use": self.cmd_use,
            "model": self.cmd_model,
            "model_list": self.cmd_model_list,
            "select_model": self.cmd_select_model,
            "config": self.cmd_config,
            "gemini_config": self.cmd_gemini_config,
            "groq_config": self.cmd_groq_config,
            "huggingface_config": self.cmd_huggingface_config,
        }

    def _console_input(self, prompt: str) -> str:
        return self.console.input(f"[prompt]{escape(prompt)}[/prompt] ")

    def client(self, provider: Optional[Provider] = None) -> SupportsGeneration:
        return self.client_factory(provider or self.state.active, self.state, self.http_session)

    def prompt_text(self) -> str:
        return f"{self.state.active.display_name}:{self.state.active_model}*"

    def completions(self) -> List[str]:
        return [f"{COMMAND_MARKER}{name}" for name in (*self.commands, "quit", "exit")]

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def run(self) -> None:
        LOGGER.info("Starting interactive LLM chat session.")
        if self.history:
            self.history.setup(self.completions())
        self.print_banner()
        try:
            while True:
                try:
                    line = self._input(self.prompt_text())
                except KeyboardInterrupt:
                    self.console.print("^C")
                    continue
                except EOFError:
                    self.console.print("^D")
                    break
                if not self.handle_line(line):
                    break
        finally:
            if self.history:
                self.history.save()
        self.console.print("Exiting interactive session.")
        LOGGER.info("Exiting interactive LLM chat session.")

    def handle_line(self, line: str) -> bool:
        """Process one line; return ``False`` once the session should terminate."""

        parsed = classify_input(line)
        if parsed is None:
            return True
        if self.history:
            self.history.add(line.strip())
        if parsed.kind is InputKind.EXIT:
            return False
        if parsed.kind is InputKind.COMMAND and parsed.command in ("quit", "exit"):
            return False

        try:
            self.dispatch(parsed)
        except KeyboardInterrupt:
            LOGGER.info("Command '%s' interrupted.", parsed.text)
            self.console.print("^C")
        except (ModelClientError, ValidationError) as exc:
            LOGGER.debug("Command '%s' failed: %s", parsed.text, exc)
            self.render_error(exc)
        except Exception as exc:
            LOGGER.exception("Unexpected failure while handling '%s'", parsed.text)
            self.render_error(exc)
        return True

    def dispatch(self, parsed: ParsedInput) -> None:
        if parsed.kind is InputKind.SHELL:
            run_shell_command(parsed.argument, self.console)
        elif parsed.kind is InputKind.COMMAND:
            handler = self.commands.get(parsed.command)
            if handler is None:
                self.console.print(
                    f"[warning]Unknown command: '/{escape(parsed.command)}'. "
                    "Type '/help' for available commands.[/warning]"
                )
                return
            LOGGER.debug("Handling app command '%s' args=%s", parsed.command, parsed.args)
            handler(parsed)
        else:
            self.ask(parsed.text)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def print_banner(self) -> None:
        provider = self.state.active
        self.console.rule("LLM Chat CLI")
        self.console.print(f"Default Provider: [bold]{provider.display_name}[/bold]")
        if provider is Provider.OLLAMA:
            self.console.print(f"Ollama Endpoint: {escape(self.state.ollama.host)}")
        self.console.print(f"{provider.display_name} Model: {escape(self.state.active_model)}")
        for other in Provider:
            if not self.state.is_configured(other):
                self.console.print(
                    f"[muted]{other.display_name} disabled: {other.api_key_env} not set.[/muted]"
                )
        self.console.print(
            "Type '/help' for commands, '!' followed by a shell command, or your prompt."
        )

    def render_answer(self, answer: str) -> None:
        if not answer.strip():
            self.console.print("[warning]No response received.[/warning]")
        elif self.render_markdown:
            self.console.print(Markdown(answer))
        else:
            self.console.out(answer, highlight=False)

    def render_error(self, exc: BaseException) -> None:
        title = f"{self.state.active.display_name} Error"
        if isinstance(exc, ValidationError):
            title = "Invalid Input"
        elif isinstance(exc, ConfigurationError):
            title = "Not Configured"
        self.console.print(Panel(escape(str(exc)), title=title, style="error"))

    def warn(self, message: str) -> None:
        self.console.print(f"[warning]Warning: {escape(message)}[/warning]")

    # ------------------------------------------------------------------
    # Free-text prompt
    # ------------------------------------------------------------------
    def ask(self, prompt: str) -> str:
        provider = self.state.active
        client = self.client(provider)
        with self.console.status(f"[info]Generating via {provider.display_name}...[/info]"):
            answer = client.generate(
                prompt, self.state.model_for(provider), self.state.generation_params(provider)
            )
        self.render_answer(answer)
        return answer

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def cmd_help(self, parsed: ParsedInput) -> None:
        table = Table(title="Available Commands", box=None, show_header=False)
        table.add_column("Command", style="cyan")
        table.add_column("Description")
        rows = [
            ("/help", "Show this help message."),
            ("/status", "Check connection status for configured providers."),
            ("/use <provider>", "Switch active provider (ollama, gemini, groq, huggingface)."),
            ("/model [<name>]", "Show or set the model for the active provider."),
            ("/model_list", "List available models for the active provider."),
            ("/select_model", "Interactively select a model for the active provider."),
            ("/config", "Show current configuration settings."),
            ("/gemini_config [...]", "View/Set Gemini generation parameters."),
            ("/groq_config", "View Groq settings."),
            ("/huggingface_config", "View Hugging Face settings."),
            ("/quit | /exit", "Exit the application (Ctrl+D also exits)."),
            ("!<command> [args...]", "Execute a shell command."),
        ]
        for command, description in rows:
            table.add_row(escape(command), description)
        self.console.print(table)
        self.console.print(
            "[muted]Set API keys via GEMINI_API_KEY / GROQ_API_KEY / HUGGINGFACE_API_KEY "
            "environment variables (or a .env file).[/muted]"
        )

    def _endpoint(self, provider: Provider) -> str:
        settings = self.state.config_for(provider)
        return getattr(settings, "host", None) or getattr(settings, "base_url", "")

    def cmd_status(self, parsed: ParsedInput) -> None:
        table = Table(title="Connection Status", box=None)
        table.add_column("Provider", style="magenta")
        table.add_column("Endpoint")
        table.add_column("Status")
        with self.console.status("[info]Checking connection status...[/info]"):
            for provider in Provider:
                if not self.state.is_configured(provider):
                    status = f"[warning]Not configured ({provider.api_key_env} not set)[/warning]"
                else:
                    try:
                        self.client(provider).check_connection()
                    except ModelClientError as exc:
                        status = f"[error]Error ({escape(str(exc))})[/error]"
                    else:
                        status = "[success]Connected[/success]"
                table.add_row(provider.display_name, escape(self._endpoint(provider)), status)
        self.console.print(table)

    def cmd_use(self, parsed: ParsedInput) -> None:
        if len(parsed.args) != 1:
            names = ", ".join(provider.value for provider in Provider)
            self.console.print(f"Usage: /use <provider> ({names})")
            return
        provider = Provider.parse(parsed.args[0])
        self.state.switch_provider(provider)
        self.console.print(
            f"[success]Switched to {provider.display_name} "
            f"(Model: {escape(self.state.model_for(provider))}).[/success]"
        )

    def cmd_model(self, parsed: ParsedInput) -> None:
        if not parsed.argument:
            self.console.print(f"Current model: {escape(self.state.active_model)}")
            self.console.print("Usage: /model <name>")
            self.console.print("Use /select_model for interactive selection.")
            return

        provider = self.state.active
        model_name = parsed.argument
        try:
            known_models = self.client(provider).list_models()
        except ModelClientError as exc:
            LOGGER.warning("Could not verify model existence: %s", exc)
            self.warn(f"Could not verify model '{model_name}': the model list is unavailable ({exc}).")
        else:
            if model_name not in known_models:
                LOGGER.warning(
                    "%s model '%s' not found via /model_list.", provider.display_name, model_name
                )
                self.warn(f"Model '{model_name}' not verified.")
        self.state.set_model(provider, model_name)
        self.console.print(f"Set default model to: {escape(self.state.active_model)}")

    def _require_configured(self, provider: Provider) -> None:
        if not self.state.is_configured(provider):
            raise ConfigurationError(f"{provider.api_key_env} not set.")

    def _fetch_models(self, provider: Provider) -> List[str]:
        self._require_configured(provider)
        with self.console.status(f"[info]Fetching available {provider.display_name} models...[/info]"):
            return self.client(provider).list_models()

    def _models_table(self, provider: Provider, models: List[str]) -> Table:
        title = f"Available {provider.display_name} Models"
        table = Table(title=title, box=None, highlight=True, min_width=len(title))
        table.add_column("#", style="cyan", justify="right")
        table.add_column("Name", style="magenta")
        for idx, model in enumerate(models, start=1):
            table.add_row(str(idx), escape(model))
        return table

    def cmd_model_list(self, parsed: ParsedInput) -> None:
        provider = self.state.active
        models = self._fetch_models(provider)
        if not models:
            self.console.print(f"[warning]No {provider.display_name} models found.[/warning]")
            return
        self.console.print(self._models_table(provider, models))

    def cmd_select_model(self, parsed: ParsedInput) -> None:
        if parsed.argument:
            self.console.print("Usage: /select_model")
            return
        provider = self.state.active
        models = self._fetch_models(provider)
        if not models:
            self.console.print("[warning]No models found.[/warning]")
            return
        self.console.print(self._models_table(provider, models))
        while True:
            try:
                choice = self._input("Enter number (or 0 to cancel):").strip()
            except (EOFError, KeyboardInterrupt):
                self.console.print("Cancelled.")
                return
            if choice.isdigit():
                number = int(choice)
                if number == 0:
                    self.console.print("Cancelled.")
                    return
                if number <= len(models):
                    self.state.set_model(provider, models[number - 1])
                    self.console.print(
                        f"[success]Selected {provider.display_name} model: "
                        f"{escape(self.state.model_for(provider))}[/success]"
                    )
                    return
            self.console.print("[warning]Invalid input. Try again.[/warning]")

    def _provider_table(self, provider: Provider) -> Table:
        settings = self.state.config_for(provider)
        table = Table(title=f"{provider.display_name}", box=None, show_header=False)
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        if provider.requires_api_key:
            table.add_row("API Key Set", str(self.state.is_configured(provider)))
        endpoint = self._endpoint(provider)
        if endpoint:
            table.add_row("Endpoint", escape(endpoint))
        table.add_row("Model", escape(settings.model))
        params = self.state.generation_params(provider)
        if provider in GENERATION_PARAMETERS:
            table.add_row("Temperature", _display(params.temperature))
            table.add_row("Top P", _display(params.top_p))
            table.add_row("Max Tokens", _display(params.max_tokens))
        return table

    def cmd_config(self, parsed: ParsedInput) -> None:
        self.console.print(f"Active Provider: [bold]{self.state.active.display_name}[/bold]")
        for provider in Provider:
            self.console.print(self._provider_table(provider))

    def cmd_gemini_config(self, parsed: ParsedInput) -> None:
        provider = Provider.GEMINI
        args = parsed.args
        if not args:
            self.console.print(self._provider_table(provider))
            self.console.print(
                escape(
                    "Usage: /gemini_config [temp <v|reset>] [top_p <v|reset>] "
                    "[max_tokens <v|reset>] [reset]"
                )
            )
            return

        specs = GENERATION_PARAMETERS[provider]
        i = 0
        while i < len(args):
            name = args[i].lower()
            if name == RESET:
                self.state.reset_generation_parameters(provider)
                self.console.print("Reset all Gemini parameters to defaults.")
                i += 1
                continue
            if name not in specs or i + 1 >= len(args):
                self.console.print(
                    f"[warning]Unknown parameter or missing value for '{escape(args[i])}'. "
                    "Use /gemini_config for help.[/warning]"
                )
                i += 1
                continue
            raw_value = args[i + 1]
            label = specs[name].label
            try:
                value = self.state.set_generation_parameter(provider, name, raw_value)
            except ValidationError as exc:
                self.console.print(f"[warning]{escape(str(exc))}[/warning]")
            else:
                action = "Reset" if raw_value.lower() == RESET else "Set"
                suffix = " to default" if action == "Reset" else ""
                self.console.print(f"{action} {label}{suffix} ({_display(value)})")
            i += 2

    def _show_untunable(self, provider: Provider, parsed: ParsedInput) -> None:
        if parsed.args:
            raise ValidationError(f"{provider.display_name} has no tunable generation parameters.")
        self.console.print(self._provider_table(provider))
        self.console.print(f"[muted]{provider.display_name} has no tunable generation parameters.[/muted]")

    def cmd_groq_config(self, parsed: ParsedInput) -> None:
        self._show_untunable(Provider.GROQ, parsed)

    def cmd_huggingface_config(self, parsed: ParsedInput) -> None:
        self._show_untunable(Provider.HUGGINGFACE, parsed)
