"""Public site counters (subscribers, posts)."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.db.session import get_async_db
from memberhub.schemas.content import StatsOut
from memberhub.services.content_service import site_stats

router = APIRouter(tags=["Stats"])


@router.get("", response_model=StatsOut, summary="Subscriber and post counts")
async def get_stats(db: AsyncSession = Depends(get_async_db)) -> StatsOut:
    return await site_stats(db)


__all__ = ["router"]
