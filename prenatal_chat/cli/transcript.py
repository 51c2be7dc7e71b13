"""Client-side chat transcript as a pure reducer.

Each submitted line gets a client correlation id before the server has
assigned anything. The user entry moves ``pending -> sent`` when the turn
completes (the AI reply is appended next to it) or ``pending -> error``
when it fails. Server ids are recorded on completion only.

Completions and failures for correlation ids no longer in the transcript
(for example after ``/new``) are ignored: the turn may still have been
stored server-side, but the local view has moved on.
"""

import uuid
from dataclasses import dataclass, replace
from enum import Enum


class EntryStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    ERROR = "error"


@dataclass(frozen=True)
class TranscriptEntry:
    correlation_id: str
    role: str  # "user" | "ai"
    text: str
    status: EntryStatus
    message_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class Transcript:
    entries: tuple[TranscriptEntry, ...] = ()
    conversation_id: str | None = None


# --- Actions ---


@dataclass(frozen=True)
class TurnSubmitted:
    correlation_id: str
    text: str


@dataclass(frozen=True)
class TurnCompleted:
    correlation_id: str
    reply_text: str
    message_id: str
    conversation_id: str


@dataclass(frozen=True)
class TurnFailed:
    correlation_id: str
    error: str


@dataclass(frozen=True)
class EntryDiscarded:
    correlation_id: str


@dataclass(frozen=True)
class ConversationStarted:
    conversation_id: str | None = None


def new_correlation_id() -> str:
    return f"local-{uuid.uuid4().hex[:12]}"


def _user_entry(state: Transcript, correlation_id: str) -> TranscriptEntry | None:
    for entry in state.entries:
        if entry.correlation_id == correlation_id and entry.role == "user":
            return entry
    return None


def reduce(state: Transcript, action) -> Transcript:
    """Return the transcript after applying ``action``. Never mutates ``state``."""
    if isinstance(action, TurnSubmitted):
        entry = TranscriptEntry(
            correlation_id=action.correlation_id,
            role="user",
            text=action.text,
            status=EntryStatus.PENDING,
        )
        return replace(state, entries=state.entries + (entry,))

    if isinstance(action, TurnCompleted):
        user = _user_entry(state, action.correlation_id)
        if user is None or user.status is not EntryStatus.PENDING:
            return state
        entries = tuple(
            replace(e, status=EntryStatus.SENT) if e is user else e
            for e in state.entries
        )
        reply = TranscriptEntry(
            correlation_id=action.correlation_id,
            role="ai",
            text=action.reply_text,
            status=EntryStatus.SENT,
            message_id=action.message_id,
        )
        return Transcript(
            entries=entries + (reply,), conversation_id=action.conversation_id
        )

    if isinstance(action, TurnFailed):
        user = _user_entry(state, action.correlation_id)
        if user is None or user.status is not EntryStatus.PENDING:
            return state
        entries = tuple(
            replace(e, status=EntryStatus.ERROR, error=action.error) if e is user else e
            for e in state.entries
        )
        return replace(state, entries=entries)

    if isinstance(action, EntryDiscarded):
        entries = tuple(
            e for e in state.entries if e.correlation_id != action.correlation_id
        )
        return replace(state, entries=entries)

    if isinstance(action, ConversationStarted):
        return Transcript(entries=(), conversation_id=action.conversation_id)

    raise TypeError(f"Unknown transcript action: {action!r}")


def last_failed(state: Transcript) -> TranscriptEntry | None:
    """Most recent user entry in the error state."""
    for entry in reversed(state.entries):
        if entry.role == "user" and entry.status is EntryStatus.ERROR:
            return entry
    return None


def last_reply(state: Transcript) -> TranscriptEntry | None:
    """Most recent AI reply with a server message id."""
    for entry in reversed(state.entries):
        if entry.role == "ai" and entry.message_id:
            return entry
    return None


def pending(state: Transcript) -> list[TranscriptEntry]:
    return [e for e in state.entries if e.status is EntryStatus.PENDING]
