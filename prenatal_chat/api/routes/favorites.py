"""API routes for favorite (bookmarked) AI messages.

Endpoints:
    POST   /api/favorites                                Add a favorite
    DELETE /api/favorites/{message_id}                   Remove a favorite
    GET    /api/favorites/{user_id}?page=&limit=         Page through favorites
    GET    /api/favorites/{user_id}/check/{message_id}   Is this message favorited?
"""

import logging

from fastapi import APIRouter, Depends

from prenatal_chat.api.dependencies import get_favorite_service
from prenatal_chat.api.schemas import (
    AddFavoriteRequest,
    AddFavoriteResponse,
    FavoriteCheckResponse,
    FavoriteListResponse,
    StatusMessageResponse,
    UserScopedRequest,
)
from prenatal_chat.db.models import as_utc
from prenatal_chat.services.favorite_service import DEFAULT_PAGE_SIZE, FavoriteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.post("", response_model=AddFavoriteResponse)
def add_favorite(
    body: AddFavoriteRequest,
    service: FavoriteService = Depends(get_favorite_service),
) -> AddFavoriteResponse:
    """Bookmark an AI message.

    Args:
        body: user_id, message_id and conversation_id.
        service: FavoriteService (injected).

    Raises:
        NotFoundError: 404 if the message is not in that conversation.
        AlreadyFavoritedError: 409 if already favorited.
    """
    favorite = service.add_favorite(body.user_id, body.message_id, body.conversation_id)
    return AddFavoriteResponse(
        favorite_id=favorite.favorite_id,
        message="Message added to favorites",
        favorited_at=as_utc(favorite.favorited_at),
    )


@router.delete("/{message_id}", response_model=StatusMessageResponse)
def remove_favorite(
    message_id: str,
    body: UserScopedRequest | None = None,
    service: FavoriteService = Depends(get_favorite_service),
) -> StatusMessageResponse:
    """Remove the caller's favorite on a message.

    Raises:
        NotFoundError: 404 if there is no such favorite.
    """
    service.remove_favorite(body.user_id if body else None, message_id)
    return StatusMessageResponse(message="Message removed from favorites")


@router.get("/{user_id}", response_model=FavoriteListResponse)
def list_favorites(
    user_id: str,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    service: FavoriteService = Depends(get_favorite_service),
) -> dict:
    """Page through a user's favorites, newest first.

    Args:
        user_id: Owner id.
        page: 1-based page number.
        limit: Page size.
        service: FavoriteService (injected).

    Returns:
        Favorites enriched with conversation titles, plus pagination.
    """
    return service.list_favorites(user_id, page=page, page_size=limit)


@router.get("/{user_id}/check/{message_id}", response_model=FavoriteCheckResponse)
def check_favorite(
    user_id: str,
    message_id: str,
    service: FavoriteService = Depends(get_favorite_service),
) -> FavoriteCheckResponse:
    """Report whether the user has favorited the message."""
    is_favorited, favorite_id = service.is_favorited(user_id, message_id)
    return FavoriteCheckResponse(is_favorited=is_favorited, favorite_id=favorite_id)
