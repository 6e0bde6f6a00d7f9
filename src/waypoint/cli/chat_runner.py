"""Terminal chat against the turn coordinator."""

from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Prompt

from waypoint.config.loader import ConfigLoader
from waypoint.core.dspy_service import DSPyBootstrapper
from waypoint.core.errors import ConfigError
from waypoint.core.message_sink import MessageSink
from waypoint.du.oracle import Oracle
from waypoint.observability.logging import setup_logging
from waypoint.runtime.builder import RuntimeComponents, RuntimeInitializer

BANNER_ART = r"""
__      __                     _       _
\ \    / /_ _ _  _ _ __  ___ (_)_ _ | |_
 \ \/\/ / _` | || | '_ \/ _ \| | ' \|  _|
  \_/\_/\__,_|\_, | .__/\___/|_|_||_|\__|
              |__/|_|
"""

EXIT_WORDS = frozenset({"quit", "exit", "q", "/quit", "/exit"})
HELP_TEXT = "Commands: /state shows node and context, /reset starts over, exit quits."


class ConsoleMessageSink(MessageSink):
    """Prints agent replies to a rich console."""

    def __init__(self, console: Console):
        self.console = console

    async def send(self, message: str) -> None:
        self.console.print(f"[bold blue]Agent > [/]{message}\n")


@dataclass
class ChatConfig:
    config_path: Path | None = None
    verbose: bool = False
    debug: bool = False


class ChatRunner:
    """One terminal conversation.

    ``setup()`` builds the runtime and opens a session, ``respond()`` runs a
    single turn, ``start()`` loops on the prompt until the user leaves.
    """

    def __init__(
        self,
        config: ChatConfig,
        console: Console | None = None,
        oracle: Oracle | None = None,
    ):
        """
        Args:
            config: Chat configuration
            console: Console to print to
            oracle: Oracle to use instead of the configured LLM
        """
        self.config = config
        self.console = console or Console()
        self.sink = ConsoleMessageSink(self.console)
        self.oracle = oracle
        self.runtime: RuntimeComponents | None = None
        self.connection_id: str | None = None
        self.welcome_text = ""

    async def setup(self) -> None:
        """Build the runtime and open a conversation.

        Raises:
            ConfigError: If config is invalid
        """
        load_dotenv()
        try:
            waypoint_config = ConfigLoader.load_or_default(self.config.config_path)
        except ConfigError as e:
            self.console.print(f"[red]Invalid config: {e}[/]")
            raise

        log_settings = waypoint_config.settings.logging
        setup_logging("DEBUG" if self.config.debug else log_settings.level, log_settings.file)
        if self.oracle is None:
            DSPyBootstrapper.bootstrap(waypoint_config)

        self.runtime = await RuntimeInitializer(waypoint_config, oracle=self.oracle).initialize()
        await self._open_conversation()

    async def _open_conversation(self) -> None:
        assert self.runtime is not None
        welcome = await self.runtime.coordinator.connect()
        self.connection_id = welcome.connection_id
        self.welcome_text = welcome.text

    async def respond(self, user_input: str) -> str:
        """Run one turn, print the reply and return it."""
        assert self.runtime is not None and self.connection_id is not None
        result = await self.runtime.coordinator.handle_message(self.connection_id, user_input)
        await self.sink.send(result.reply_text)
        if self.config.verbose:
            self.show_state()
            if result.oracle_degraded:
                self.console.print("[yellow]oracle unavailable, fallback used[/]")
        return result.reply_text

    def show_state(self) -> None:
        assert self.runtime is not None and self.connection_id is not None
        session = self.runtime.coordinator.get_session(self.connection_id)
        self.console.print(f"[dim]node={session.current_node_id} context={session.context}[/]")

    async def reset(self) -> None:
        """Drop the current conversation and open a fresh one."""
        assert self.runtime is not None and self.connection_id is not None
        self.runtime.coordinator.disconnect(self.connection_id)
        await self._open_conversation()
        await self.sink.send(self.welcome_text)

    async def start(self) -> None:
        """Prompt loop. Returns when the user exits or hits Ctrl+C."""
        if self.runtime is None:
            await self.setup()

        self.console.print(BANNER_ART, style="bold blue")
        self.console.print(f"Session ID: [green]{self.connection_id}[/]")
        self.console.print(f"{HELP_TEXT}\n")
        await self.sink.send(self.welcome_text)

        while True:
            try:
                user_input = Prompt.ask("[bold green]You[/]", console=self.console).strip()
            except (KeyboardInterrupt, EOFError):
                break

            if self._is_exit_command(user_input):
                break
            if not user_input:
                continue
            if user_input == "/state":
                self.show_state()
                continue
            if user_input == "/reset":
                await self.reset()
                continue

            try:
                with self.console.status("[bold blue]Thinking...[/]"):
                    await self.respond(user_input)
            except Exception as e:
                if self.config.debug:
                    self.console.print_exception()
                else:
                    self.console.print(f"[red]Error: {e}[/]")

        self.console.print("\n[yellow]Goodbye![/]")

    def _is_exit_command(self, user_input: str) -> bool:
        return user_input.strip().lower() in EXIT_WORDS

    async def cleanup(self) -> None:
        """Close the conversation and shut the runtime down."""
        if self.runtime is None:
            return
        if self.connection_id is not None:
            self.runtime.coordinator.disconnect(self.connection_id)
        await self.runtime.shutdown()
        self.runtime = None

    async def __aenter__(self) -> "ChatRunner":
        await self.setup()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.cleanup()


async def run_chat_session(config: ChatConfig) -> None:
    async with ChatRunner(config) as runner:
        await runner.start()
