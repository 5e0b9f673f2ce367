"""Routes for the signed-in user's own data: history, badges, favorites."""

from fastapi import APIRouter, Query

from backend.api.deps import CurrentUser, UserServiceDep
from backend.models.users import BadgesResponse, FavoritesResponse, HistoryResponse

router = APIRouter()


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    user: CurrentUser,
    user_service: UserServiceDep,
    limit: int = Query(50, ge=1, le=100, description="Maximum entries to return"),
) -> HistoryResponse:
    """Listening history, newest first."""
    history = await user_service.get_history(user.id, limit=limit)
    return HistoryResponse(history=history, total=len(user.listening_history))


@router.get("/badges", response_model=BadgesResponse)
async def get_badges(user: CurrentUser, user_service: UserServiceDep) -> BadgesResponse:
    return BadgesResponse(badges=await user_service.get_badges(user.id))


@router.get("/favorites", response_model=FavoritesResponse)
async def get_favorites(user: CurrentUser) -> FavoritesResponse:
    return FavoritesResponse(song_ids=user.favorite_songs, total=len(user.favorite_songs))
