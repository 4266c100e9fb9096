"""Parbot command line interface."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from parbot.app import Parbot
from parbot.channels.console import ConsoleChat
from parbot.config import Settings, get_settings
from parbot.errors import ConfigurationError
from parbot.logging_utils import configure_logging
from parbot.ports import ChatType

SECRET_FIELDS = {"api_key"}
WAIT_POLL_SECONDS = 0.5

app = typer.Typer(
    name="parbot",
    help="Keep a conversation going with players in a game chat.",
    add_completion=False,
)


@app.command()
def run(
    name: Optional[str] = typer.Option(None, "--name", help="Display name of the bot in the chat."),
    model: Optional[str] = typer.Option(None, "--model", help="Backend model in provider:model format."),
    time_window: Optional[int] = typer.Option(None, "--time-window", help="Minutes to run; 0 runs unlimited."),
    focus_lost_timeout: Optional[float] = typer.Option(
        None, "--focus-lost-timeout", help="Seconds without a message before a new partner is selected."
    ),
    sender: str = typer.Option("you", "--sender", help="Sender for console lines without a 'name:' prefix."),
) -> None:
    """Chat on the console with the bot."""
    settings = get_settings(
        chatbot_username=name,
        model=model,
        time_window_minutes=time_window,
        focus_lost_timeout_seconds=focus_lost_timeout,
    )
    configure_logging(profile="console", level=settings.log_level)

    def chat_factory(current: Settings) -> ConsoleChat:
        chat = ConsoleChat(
            current.chatbot_username,
            default_sender=sender,
            chat_type=current.chat_type_restriction or ChatType.GLOBAL,
        )
        chat.start()
        return chat

    parbot = Parbot(settings, chat_factory=chat_factory)
    parbot.install_exit_hook()
    try:
        parbot.start()
    except ConfigurationError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(1) from exc
    except Exception as exc:
        raise typer.Exit(1) from exc

    try:
        while not parbot.wait(WAIT_POLL_SECONDS):
            continue
    except KeyboardInterrupt:
        typer.echo("Stopping...")
        parbot.shutdown()

    service = parbot.service
    if service is not None and service.has_problem:
        raise typer.Exit(1)


@app.command("settings")
def show_settings() -> None:
    """Show the resolved settings."""
    settings = get_settings()
    table = Table(title="parbot settings")
    table.add_column("setting")
    table.add_column("value")
    for key, value in settings.model_dump().items():
        if key in SECRET_FIELDS and value:
            value = "***"
        table.add_row(key, "" if value is None else str(value))
    Console().print(table)
