"""Command-line driver for gpt-reply."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path

import click
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from gpt_reply.config import CompletionConfig, load_config
from gpt_reply.errors import GPTError
from gpt_reply.llm.client import GPTClient

console = Console()


def _make_client(config_path: str | None) -> GPTClient:
    def _load() -> CompletionConfig:
        return load_config(config_path)[0]

    # Fail early on a bad file; after that the file is re-read per request.
    _, config_file = load_config(config_path)
    if config_file:
        console.print(f"[dim]Config: {config_file}[/dim]")
    else:
        console.print("[dim]Config: defaults (no gpt_reply.yaml found)[/dim]")
    return GPTClient(_load)


def _print_reply(reply: str, reason: str, elapsed: float) -> None:
    console.print(Markdown(reply) if reply else "[dim](empty reply)[/dim]")
    console.print(f"[dim]finish_reason={reason or '-'} ({elapsed:.1f}s)[/dim]\n")


def _print_history(client: GPTClient, user: str) -> None:
    turns = client.history.read(user)
    if not turns:
        console.print("[dim]No history.[/dim]")
        return
    table = Table(title=f"History: {user}", border_style="dim")
    table.add_column("#", style="bold", width=4)
    table.add_column("Role", width=10)
    table.add_column("Content", max_width=70)
    for i, turn in enumerate(turns, 1):
        table.add_row(str(i), turn.role.value, turn.content)
    console.print(table)


@click.group()
@click.option("--config", "-c", "config_path", default=None,
              help="Path to gpt_reply.yaml (auto-detected from CWD or ~/.gpt_reply/)")
@click.option("--user", "-u", default="local", show_default=True,
              help="User id the conversation is stored under")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, user: str, verbose: bool):
    """gpt-reply - OpenAI completion client with per-user chat history."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["user"] = user


@main.command()
@click.argument("message")
@click.option("--assistant", "from_assistant", is_flag=True,
              help="Send the message as an assistant turn")
@click.pass_context
def ask(ctx: click.Context, message: str, from_assistant: bool):
    """Send a single MESSAGE and print the reply."""
    try:
        client = _make_client(ctx.obj["config_path"])
    except (FileNotFoundError, GPTError) as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)
    with client:
        start = time.monotonic()
        try:
            reply, reason = client.complete(ctx.obj["user"], message, from_assistant)
        except GPTError as e:
            console.print(f"[red]Error: {e}[/red]")
            ctx.exit(1)
        _print_reply(reply, reason, time.monotonic() - start)


@main.command()
@click.pass_context
def chat(ctx: click.Context):
    """Interactive conversation; every line is sent as the same user."""
    user = ctx.obj["user"]
    try:
        client = _make_client(ctx.obj["config_path"])
    except (FileNotFoundError, GPTError) as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)

    console.print(
        "[dim]/history shows stored turns, /assistant <text> sends an "
        "assistant turn, /quit exits[/dim]\n"
    )
    history_path = Path(os.path.expanduser("~/.gpt_reply/history"))
    history_path.parent.mkdir(parents=True, exist_ok=True)
    session = PromptSession(history=FileHistory(str(history_path)))

    with client:
        while True:
            try:
                line = session.prompt(f"{user}> ").strip()
            except (EOFError, KeyboardInterrupt):
                console.print("\n[dim]Goodbye![/dim]")
                break
            if not line:
                continue
            if line in ("/quit", "/exit"):
                console.print("[dim]Goodbye![/dim]")
                break
            if line == "/history":
                _print_history(client, user)
                continue

            from_assistant = False
            if line.startswith("/assistant "):
                line = line[len("/assistant "):].strip()
                from_assistant = True

            start = time.monotonic()
            try:
                reply, reason = client.complete(user, line, from_assistant)
            except GPTError as e:
                console.print(f"[red]Error: {e}[/red]\n")
                continue
            _print_reply(reply, reason, time.monotonic() - start)


if __name__ == "__main__":
    main()
