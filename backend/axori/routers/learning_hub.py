"""Learning hub progress and bookmarks.

Endpoints:
  GET  /api/learning-hub/progress     → all progress for the current user
  POST /api/learning-hub/progress     → upsert one item's progress
  GET  /api/learning-hub/bookmarks    → bookmarks, optionally by content type
  POST /api/learning-hub/bookmarks    → add a bookmark (idempotent)

Both POSTs are safe to repeat, which is what lets a partially failed
local-data migration simply run again.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from axori.auth.deps import get_current_user_id
from axori.database import get_db, utcnow
from axori.models.learning_hub import LearningBookmark, LearningProgress
from axori.schemas.learning_hub import (
    BookmarkCreate,
    BookmarkOut,
    ContentType,
    ProgressOut,
    ProgressUpsert,
)

router = APIRouter()


# ── Progress ─────────────────────────────────────────────────

@router.get("/progress")
async def list_progress(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    result = await db.execute(
        select(LearningProgress)
        .where(LearningProgress.user_id == user_id)
        .order_by(LearningProgress.updated_at.desc())
    )
    return {"progress": [ProgressOut.model_validate(p) for p in result.scalars().all()]}


@router.post("/progress")
async def upsert_progress(
    body: ProgressUpsert,
    response: Response,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Create or update progress; `completed` stamps completed_at."""
    result = await db.execute(
        select(LearningProgress).where(
            and_(
                LearningProgress.user_id == user_id,
                LearningProgress.content_type == body.content_type,
                LearningProgress.content_slug == body.content_slug,
            )
        )
    )
    existing = result.scalar_one_or_none()
    now = utcnow()

    if existing:
        if body.status:
            existing.status = body.status
        if "progress_data" in body.model_fields_set:
            existing.progress_data = body.progress_data
        if body.status == "completed":
            existing.completed_at = now
        existing.updated_at = now
        await db.flush()
        return {"progress": ProgressOut.model_validate(existing)}

    created = LearningProgress(
        user_id=user_id,
        content_type=body.content_type,
        content_slug=body.content_slug,
        status=body.status or "viewed",
        progress_data=body.progress_data,
        completed_at=now if body.status == "completed" else None,
    )
    db.add(created)
    await db.flush()
    await db.refresh(created)
    response.status_code = status.HTTP_201_CREATED
    return {"progress": ProgressOut.model_validate(created)}


# ── Bookmarks ────────────────────────────────────────────────

@router.get("/bookmarks")
async def list_bookmarks(
    content_type: ContentType | None = None,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    query = select(LearningBookmark).where(LearningBookmark.user_id == user_id)
    if content_type:
        query = query.where(LearningBookmark.content_type == content_type)
    result = await db.execute(query.order_by(LearningBookmark.created_at.desc()))
    return {"bookmarks": [BookmarkOut.model_validate(b) for b in result.scalars().all()]}


@router.post("/bookmarks")
async def add_bookmark(
    body: BookmarkCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    result = await db.execute(
        select(LearningBookmark).where(
            and_(
                LearningBookmark.user_id == user_id,
                LearningBookmark.content_type == body.content_type,
                LearningBookmark.content_slug == body.content_slug,
            )
        )
    )
    existing = result.scalar_one_or_none()
    if existing:
        return {"bookmark": BookmarkOut.model_validate(existing)}

    created = LearningBookmark(
        user_id=user_id,
        content_type=body.content_type,
        content_slug=body.content_slug,
    )
    db.add(created)
    await db.flush()
    await db.refresh(created)
    response.status_code = status.HTTP_201_CREATED
    return {"bookmark": BookmarkOut.model_validate(created)}
