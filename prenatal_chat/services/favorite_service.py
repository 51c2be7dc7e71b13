"""Service for per-user favorites of chat messages.

A favorite is a bookmark from one user onto one message, unique per
(user_id, message_id). It stores a snapshot of the message so it remains
readable after the source conversation is deleted; favorites are never
cascade-deleted.

Example:
    svc = FavoriteService(db)
    fav = svc.add_favorite("u1", message_id, conversation_id)
    svc.is_favorited("u1", message_id)   # (True, fav.favorite_id)
"""

import logging
import math
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from prenatal_chat.db.models import (
    UNTITLED_CONVERSATION,
    Conversation,
    Favorite,
    Message,
    generate_uuid,
    utc_now,
)
from prenatal_chat.errors.domain import (
    AlreadyFavoritedError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
MAX_PAGE = 100_000


class FavoriteService:
    """Add, remove, check and page through a user's favorites.

    Methods that write commit their own unit of work.
    """

    def __init__(self, db: Session) -> None:
        """Initialize with a SQLAlchemy session.

        Args:
            db: Active database session.
        """
        self.db = db

    def _find(self, user_id: str, message_id: str) -> Favorite | None:
        return self.db.scalars(
            select(Favorite).where(
                Favorite.user_id == user_id,
                Favorite.message_id == message_id,
            )
        ).first()

    def add_favorite(
        self, user_id: str, message_id: str, conversation_id: str
    ) -> Favorite:
        """Bookmark a message for a user.

        The duplicate check runs before the insert to return a clean
        conflict; the unique constraint catches the race where two requests
        pass the check together.

        Args:
            user_id: Owner of the favorite.
            message_id: Message to bookmark.
            conversation_id: Conversation the message must belong to.

        Returns:
            The created Favorite.

        Raises:
            ValidationError: If any id is missing.
            NotFoundError: If the message is not in that conversation.
            AlreadyFavoritedError: If the user already favorited it.
        """
        if not user_id or not message_id or not conversation_id:
            raise ValidationError(
                "user_id, message_id, and conversation_id are required"
            )

        message = self.db.scalars(
            select(Message).where(
                Message.message_id == message_id,
                Message.conversation_id == conversation_id,
            )
        ).first()
        if message is None:
            raise NotFoundError("Message", message_id)

        if self._find(user_id, message_id) is not None:
            raise AlreadyFavoritedError(user_id, message_id)

        favorite = Favorite(
            favorite_id=generate_uuid(),
            user_id=user_id,
            message_id=message_id,
            conversation_id=conversation_id,
            message_content=message.content,
            message_timestamp=message.timestamp,
            favorited_at=utc_now(),
            metadata_json={
                "message_type": message.type,
                "original_metadata": message.metadata_json,
            },
        )
        self.db.add(favorite)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise AlreadyFavoritedError(user_id, message_id) from None

        logger.info("Message %s favorited by user %s", message_id, user_id)
        return favorite

    def remove_favorite(self, user_id: str, message_id: str) -> None:
        """Remove a user's favorite on a message.

        Raises:
            ValidationError: If user_id is missing.
            NotFoundError: If no such favorite exists.
        """
        if not user_id:
            raise ValidationError("user_id is required")
        favorite = self._find(user_id, message_id)
        if favorite is None:
            raise NotFoundError("Favorite", message_id)
        self.db.delete(favorite)
        self.db.commit()
        logger.info("Message %s unfavorited by user %s", message_id, user_id)

    def is_favorited(self, user_id: str, message_id: str) -> tuple[bool, str | None]:
        """Check whether a user has favorited a message. No side effects.

        Returns:
            (is_favorited, favorite_id or None).
        """
        favorite = self._find(user_id, message_id)
        if favorite is None:
            return False, None
        return True, favorite.favorite_id

    def list_favorites(
        self, user_id: str, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE
    ) -> dict[str, Any]:
        """Page through a user's favorites, newest first.

        Each favorite is enriched with the current title of its
        conversation, fetched in one query for the whole page. Favorites
        whose conversation is gone get 'Untitled Conversation'.

        Args:
            user_id: Owner id.
            page: 1-based page number.
            page_size: Items per page.

        Returns:
            Dict with 'favorites' (list of dicts) and 'pagination'.

        Raises:
            ValidationError: If page or page_size is below 1, or above
                MAX_PAGE / MAX_PAGE_SIZE.
        """
        if page < 1 or page_size < 1:
            raise ValidationError("page and limit must be positive integers")
        if page > MAX_PAGE or page_size > MAX_PAGE_SIZE:
            raise ValidationError(
                f"page must be at most {MAX_PAGE} and limit at most {MAX_PAGE_SIZE}"
            )

        favorites = list(
            self.db.scalars(
                select(Favorite)
                .where(Favorite.user_id == user_id)
                .order_by(Favorite.favorited_at.desc(), Favorite.id.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
        )
        total = self.db.scalar(
            select(func.count()).select_from(Favorite).where(Favorite.user_id == user_id)
        ) or 0

        conversation_ids = {f.conversation_id for f in favorites}
        titles: dict[str, str] = {}
        if conversation_ids:
            rows = self.db.execute(
                select(Conversation.conversation_id, Conversation.title).where(
                    Conversation.conversation_id.in_(conversation_ids)
                )
            )
            titles = {cid: title for cid, title in rows}

        enriched = []
        for favorite in favorites:
            item = favorite.to_dict()
            item["conversation_title"] = titles.get(
                favorite.conversation_id, UNTITLED_CONVERSATION
            )
            enriched.append(item)

        total_pages = math.ceil(total / page_size)
        return {
            "favorites": enriched,
            "pagination": {
                "page": page,
                "limit": page_size,
                "total": total,
                "totalPages": total_pages,
                "hasNext": page < total_pages,
                "hasPrev": page > 1,
            },
        }
