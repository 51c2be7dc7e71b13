"""CLI output formatters for Rich tables and JSON.

Rich tables by default, JSON with ``--json``. All formatting goes through
these functions so the CLI commands stay clean.
"""

import dataclasses
import json

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from prenatal_chat.cli.protocol import (
    ConversationDetail,
    ConversationSummary,
    FavoritesPage,
    HealthStatus,
)

console = Console()

STATUS_COLORS = {
    "healthy": "green",
    "unhealthy": "red",
    "connected": "green",
    "error": "red",
}


def _render(renderable) -> str:
    with console.capture() as capture:
        console.print(renderable)
    return capture.get()


def _short_time(value: str) -> str:
    return value[:19].replace("T", " ") if value else "-"


def format_conversation_table(
    conversations: list[ConversationSummary], as_json: bool = False
) -> str:
    """Format a user's conversations as a Rich table or JSON."""
    if as_json:
        return json.dumps([dataclasses.asdict(c) for c in conversations], indent=2)

    if not conversations:
        return "No conversations found."

    table = Table(title="Conversations", show_lines=True)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Msgs", justify="right")
    table.add_column("Last message", style="dim")
    table.add_column("Updated")

    for conv in conversations:
        table.add_row(
            conv.conversation_id,
            conv.title or "-",
            str(conv.message_count),
            conv.last_message_preview or "-",
            _short_time(conv.updated_at),
        )
    return _render(table)


def format_conversation_detail(detail: ConversationDetail, as_json: bool = False) -> str:
    """Format a conversation and its messages as a Rich panel or JSON.

    A differing stored ``message_count`` is flagged; the message list is
    authoritative.
    """
    if as_json:
        return json.dumps(dataclasses.asdict(detail), indent=2)

    conv = detail.conversation
    lines = [
        f"[bold]ID:[/bold]       {conv.conversation_id}",
        f"[bold]Title:[/bold]    {conv.title}",
        f"[bold]Messages:[/bold] {detail.total_messages}",
    ]
    if detail.count_mismatch:
        lines.append(
            f"[yellow]Stored message count is {conv.message_count}; "
            f"{detail.total_messages} messages found.[/yellow]"
        )
    lines.append("")
    for msg in detail.messages:
        speaker = "[green]you[/green]" if msg.type == "user" else "[magenta]ai[/magenta]"
        lines.append(f"{speaker} [dim]{_short_time(msg.timestamp)} {msg.message_id}[/dim]")
        lines.append(f"  {msg.content}")
    return _render(Panel("\n".join(lines), title="Conversation", expand=False))


def format_favorites_table(page: FavoritesPage, as_json: bool = False) -> str:
    """Format one page of favorites as a Rich table or JSON."""
    if as_json:
        return json.dumps(dataclasses.asdict(page), indent=2)

    if not page.favorites:
        return "No favorites found."

    p = page.pagination
    table = Table(
        title=f"Favorites (page {p.page}/{max(p.total_pages, 1)}, {p.total} total)",
        show_lines=True,
    )
    table.add_column("Message", style="cyan", no_wrap=True)
    table.add_column("Conversation", style="white")
    table.add_column("Reply")
    table.add_column("Saved")

    for fav in page.favorites:
        content = fav.message_content
        if len(content) > 80:
            content = content[:80] + "..."
        table.add_row(
            fav.message_id,
            fav.conversation_title or "-",
            content,
            _short_time(fav.favorited_at),
        )
    return _render(table)


def format_health(status: HealthStatus) -> str:
    """Format a health probe result."""
    def colored(value: str) -> str:
        color = STATUS_COLORS.get(value, "yellow")
        return f"[{color}]{value}[/{color}]"

    lines = [
        f"[bold]Status:[/bold]     {colored(status.status)}",
        f"[bold]Database:[/bold]   {colored(status.database)}",
        f"[bold]AI service:[/bold] {colored(status.ai_service)}",
    ]
    if status.error:
        lines.append(f"[bold]Error:[/bold]      {status.error}")
    return _render(Panel("\n".join(lines), title="Backend health", expand=False))
