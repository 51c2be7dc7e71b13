"""prenatal-chat CLI.

Usage:
    prenatal-chat serve                      Run the backend API
    prenatal-chat health                     Probe the backend and its dependencies
    prenatal-chat chat                       Interactive chat
    prenatal-chat conversations list         List conversations
    prenatal-chat favorites list             List bookmarked replies
"""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console

from prenatal_chat.cli.http_client import HttpClient
from prenatal_chat.cli.output import (
    format_conversation_detail,
    format_conversation_table,
    format_favorites_table,
    format_health,
)
from prenatal_chat.cli.protocol import ChatClientError
from prenatal_chat.config import PrenatalChatConfig, load_config

_log = logging.getLogger(__name__)

app = typer.Typer(
    name="prenatal-chat",
    help="Prenatal chat backend and terminal client",
    no_args_is_help=True,
)
conversations_app = typer.Typer(help="Manage conversations")
favorites_app = typer.Typer(help="Manage favorite AI replies")

app.add_typer(conversations_app, name="conversations")
app.add_typer(favorites_app, name="favorites")

console = Console()

# --- Global state ---
_config_path: str | None = None
_base_url: str | None = None
_user_id: str | None = None


@app.callback()
def main(
    config: Optional[str] = typer.Option(
        None, "--config", help="Path to prenatal_chat.yaml config file"
    ),
    url: Optional[str] = typer.Option(
        None, "--url", help="Backend base URL (overrides client.base_url)"
    ),
    user: Optional[str] = typer.Option(
        None, "--user", "-u", help="User id (overrides client.user_id)"
    ),
):
    """Prenatal chat backend and terminal client."""
    global _config_path, _base_url, _user_id
    _config_path = config
    _base_url = url
    _user_id = user


def _load() -> PrenatalChatConfig:
    try:
        return load_config(config_path=_config_path)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _client(cfg: PrenatalChatConfig) -> HttpClient:
    return HttpClient(base_url=_base_url or cfg.client.base_url)


def _user(cfg: PrenatalChatConfig) -> str:
    return _user_id or cfg.client.user_id


def _run(coro) -> None:
    """Run a client coroutine, turning ChatClientError into exit code 1."""
    try:
        asyncio.run(coro)
    except ChatClientError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)


# --- Server ---


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
):
    """Run the backend API with uvicorn."""
    import uvicorn

    from prenatal_chat.api.main import create_app

    cfg = _load()
    bind_host = host or cfg.server.host
    bind_port = port or cfg.server.port
    console.print(f"Serving on http://{bind_host}:{bind_port}")
    uvicorn.run(
        create_app(cfg),
        host=bind_host,
        port=bind_port,
        log_level=cfg.server.log_level,
    )


@app.command()
def health():
    """Check the backend, its store and the AI service."""
    cfg = _load()
    client = _client(cfg)
    result = {}

    async def _probe():
        async with client:
            result["status"] = await client.health()

    _run(_probe())
    status = result["status"]
    console.print(format_health(status))
    if not status.healthy:
        raise typer.Exit(1)


@app.command()
def chat(
    conversation: Optional[str] = typer.Option(
        None, "--conversation", "-c", help="Conversation id to continue"
    ),
):
    """Start an interactive chat session."""
    from prenatal_chat.cli.repl import run_repl

    cfg = _load()
    asyncio.run(run_repl(_client(cfg), _user(cfg), conversation_id=conversation))


# --- Conversations ---


@conversations_app.command("list")
def conversations_list(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List conversations, most recently updated first."""
    cfg = _load()
    client = _client(cfg)

    async def _list():
        async with client:
            items = await client.list_conversations(_user(cfg))
            console.print(format_conversation_table(items, as_json=json_output))

    _run(_list())


@conversations_app.command("show")
def conversations_show(
    conversation_id: str = typer.Argument(help="Conversation id"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show a conversation with all of its messages."""
    cfg = _load()
    client = _client(cfg)

    async def _show():
        async with client:
            detail = await client.get_conversation(conversation_id)
            console.print(format_conversation_detail(detail, as_json=json_output))

    _run(_show())


@conversations_app.command("new")
def conversations_new(
    title: Optional[str] = typer.Option(None, "--title", help="Conversation title"),
):
    """Create an empty conversation."""
    cfg = _load()
    client = _client(cfg)

    async def _create():
        async with client:
            conversation_id = await client.create_conversation(_user(cfg), title=title)
            console.print(f"[green]Created conversation[/green] {conversation_id}")

    _run(_create())


@conversations_app.command("delete")
def conversations_delete(
    conversation_id: str = typer.Argument(help="Conversation id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a conversation and its messages."""
    if not yes:
        typer.confirm(f"Delete conversation {conversation_id}?", abort=True)
    cfg = _load()
    client = _client(cfg)

    async def _delete():
        async with client:
            await client.delete_conversation(conversation_id, _user(cfg))
            console.print(f"[yellow]Deleted conversation {conversation_id}.[/yellow]")

    _run(_delete())


# --- Favorites ---


@favorites_app.command("list")
def favorites_list(
    page: int = typer.Option(1, "--page", min=1, help="Page number"),
    limit: int = typer.Option(10, "--limit", min=1, max=100, help="Favorites per page"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List favorite replies, newest first."""
    cfg = _load()
    client = _client(cfg)

    async def _list():
        async with client:
            result = await client.list_favorites(_user(cfg), page=page, limit=limit)
            console.print(format_favorites_table(result, as_json=json_output))

    _run(_list())


@favorites_app.command("add")
def favorites_add(
    message_id: str = typer.Argument(help="AI message id"),
    conversation_id: str = typer.Argument(help="Conversation the message belongs to"),
):
    """Bookmark a message."""
    cfg = _load()
    client = _client(cfg)

    async def _add():
        async with client:
            favorite_id = await client.add_favorite(
                _user(cfg), message_id, conversation_id
            )
            console.print(f"[green]Added to favorites[/green] ({favorite_id})")

    _run(_add())


@favorites_app.command("remove")
def favorites_remove(
    message_id: str = typer.Argument(help="Message id"),
):
    """Remove a bookmark."""
    cfg = _load()
    client = _client(cfg)

    async def _remove():
        async with client:
            await client.remove_favorite(_user(cfg), message_id)
            console.print("[yellow]Removed from favorites.[/yellow]")

    _run(_remove())


@favorites_app.command("check")
def favorites_check(
    message_id: str = typer.Argument(help="Message id"),
):
    """Show whether a message is bookmarked."""
    cfg = _load()
    client = _client(cfg)

    async def _check():
        async with client:
            is_favorited, favorite_id = await client.check_favorite(
                _user(cfg), message_id
            )
            if is_favorited:
                console.print(f"[green]Favorited[/green] ({favorite_id})")
            else:
                console.print("Not favorited")

    _run(_check())


if __name__ == "__main__":
    app()
