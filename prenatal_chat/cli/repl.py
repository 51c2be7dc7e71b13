"""Interactive chat REPL.

Each line is sent as one turn. Slash commands:
    /retry   resend the last failed message as a new turn
    /new     start a new conversation
    /fav     bookmark the last AI reply
    /quit    exit (Ctrl+D works too)
"""

from rich.console import Console

from prenatal_chat.cli.http_client import HttpClient
from prenatal_chat.cli.protocol import ChatClientError
from prenatal_chat.cli.transcript import (
    ConversationStarted,
    EntryDiscarded,
    Transcript,
    TurnCompleted,
    TurnFailed,
    TurnSubmitted,
    last_failed,
    last_reply,
    new_correlation_id,
    reduce,
)

console = Console()


async def submit_turn(
    client: HttpClient, state: Transcript, text: str, user_id: str
) -> Transcript:
    """Send ``text`` as a new turn and return the updated transcript."""
    correlation_id = new_correlation_id()
    state = reduce(state, TurnSubmitted(correlation_id, text))
    try:
        reply = await client.send_message(
            text, user_id, conversation_id=state.conversation_id
        )
    except ChatClientError as e:
        return reduce(state, TurnFailed(correlation_id, e.message))
    return reduce(
        state,
        TurnCompleted(
            correlation_id,
            reply_text=reply.response,
            message_id=reply.message_id,
            conversation_id=reply.conversation_id,
        ),
    )


async def retry_last_failed(
    client: HttpClient, state: Transcript, user_id: str
) -> Transcript | None:
    """Drop the last failed entry and resubmit its text. None if nothing failed."""
    failed = last_failed(state)
    if failed is None:
        return None
    state = reduce(state, EntryDiscarded(failed.correlation_id))
    return await submit_turn(client, state, failed.text, user_id)


def _print_outcome(state: Transcript) -> None:
    last = state.entries[-1] if state.entries else None
    if last is None:
        return
    if last.role == "ai":
        console.print(f"[magenta]ai>[/magenta] {last.text}")
        console.print(f"[dim]message {last.message_id}[/dim]")
    elif last.error:
        console.print(f"[red]Error: {last.error}[/red] [dim](/retry to resend)[/dim]")


async def run_repl(
    client: HttpClient, user_id: str, conversation_id: str | None = None
) -> Transcript:
    """Run the interactive chat loop.

    Args:
        client: Unopened HttpClient; the REPL owns its lifetime.
        user_id: User the turns are recorded for.
        conversation_id: Conversation to continue. A new one is created by
            the first turn when None.

    Returns:
        The final transcript.
    """
    state = reduce(Transcript(), ConversationStarted(conversation_id))
    async with client:
        console.print()
        console.print("[bold]Prenatal Chat[/bold]")
        console.print("Type a message. /retry /new /fav /quit. Ctrl+D to exit.")
        if conversation_id:
            console.print(f"[dim]Conversation: {conversation_id}[/dim]")
        console.print()

        while True:
            try:
                line = console.input("[bold green]> [/bold green]")
            except EOFError:
                break
            text = line.strip()
            if not text:
                continue

            if text == "/quit":
                break
            if text == "/new":
                state = reduce(state, ConversationStarted())
                console.print("[dim]Started a new conversation.[/dim]")
                continue
            if text == "/retry":
                retried = await retry_last_failed(client, state, user_id)
                if retried is None:
                    console.print("[yellow]Nothing to retry.[/yellow]")
                    continue
                state = retried
                _print_outcome(state)
                continue
            if text == "/fav":
                reply = last_reply(state)
                if reply is None or state.conversation_id is None:
                    console.print("[yellow]No AI reply to bookmark yet.[/yellow]")
                    continue
                try:
                    await client.add_favorite(
                        user_id, reply.message_id, state.conversation_id
                    )
                    console.print("[green]Added to favorites.[/green]")
                except ChatClientError as e:
                    console.print(f"[red]Error:[/red] {e.message}")
                continue

            try:
                state = await submit_turn(client, state, text, user_id)
            except KeyboardInterrupt:
                console.print("\n[yellow]Interrupted[/yellow]")
                continue
            _print_outcome(state)

    if state.conversation_id:
        console.print(f"\n[dim]Conversation {state.conversation_id} saved.[/dim]")
    return state
