"""Local staging store for learning hub activity.

Viewed terms, bookmarks, and learning-path progress are tracked here
before the account's data lives in the database.  Keys are scoped per
account under `learning_hub_storage_prefix`:

    {prefix}:{account}:viewed-terms    JSON object  slug -> ViewedTerm
    {prefix}:{account}:bookmarks       JSON list    newest first, max 50
    {prefix}:{account}:path-progress   JSON object  path slug -> PathProgress
    {prefix}:{account}:migrated        "true" once migration succeeded

The `migrated` marker is independent of the data keys: clearing staged
data never removes it, so a finished migration stays finished.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import redis.asyncio as redis
from pydantic import TypeAdapter, ValidationError

from axori.config import settings
from axori.schemas.learning_hub import (
    Bookmark,
    BookmarkContentType,
    PathProgress,
    StagedRecord,
    ViewedTerm,
)

logger = logging.getLogger(__name__)

MAX_BOOKMARKS = 50

_terms_adapter = TypeAdapter(dict[str, ViewedTerm])
_bookmarks_adapter = TypeAdapter(list[Bookmark])
_paths_adapter = TypeAdapter(dict[str, PathProgress])


def _now() -> datetime:
    return datetime.now(timezone.utc)


class StagingStore:
    """Redis-backed key-value staging for one account."""

    def __init__(
        self,
        client: redis.Redis,
        account_id: str,
        prefix: str | None = None,
    ):
        self.client = client
        self.account_id = account_id
        base = prefix or settings.learning_hub_storage_prefix
        self.prefix = f"{base}:{account_id}"

    # ── Keys ──

    @property
    def viewed_terms_key(self) -> str:
        return f"{self.prefix}:viewed-terms"

    @property
    def bookmarks_key(self) -> str:
        return f"{self.prefix}:bookmarks"

    @property
    def path_progress_key(self) -> str:
        return f"{self.prefix}:path-progress"

    @property
    def migration_key(self) -> str:
        return f"{self.prefix}:migrated"

    # ── Raw access ──

    async def _read(self, key: str, adapter: TypeAdapter, default: Any) -> Any:
        raw = await self.client.get(key)
        if not raw:
            return default
        try:
            return adapter.validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring unreadable staged data under %s", key)
            return default

    async def _write(self, key: str, adapter: TypeAdapter, value: Any) -> None:
        await self.client.set(key, adapter.dump_json(value).decode())

    async def _viewed_terms_map(self) -> dict[str, ViewedTerm]:
        return await self._read(self.viewed_terms_key, _terms_adapter, {})

    async def _path_progress_map(self) -> dict[str, PathProgress]:
        return await self._read(self.path_progress_key, _paths_adapter, {})

    # ── Migration marker ──

    async def is_migration_complete(self) -> bool:
        return await self.client.get(self.migration_key) == "true"

    async def mark_migration_complete(self) -> None:
        await self.client.set(self.migration_key, "true")

    async def reset_migration_status(self) -> None:
        """Forget that migration ran (support / debugging only)."""
        await self.client.delete(self.migration_key)

    # ── Staged data ──

    async def viewed_terms(self) -> list[ViewedTerm]:
        terms = await self._viewed_terms_map()
        return sorted(terms.values(), key=lambda t: t.viewed_at, reverse=True)

    async def bookmarks(self) -> list[Bookmark]:
        return await self._read(self.bookmarks_key, _bookmarks_adapter, [])

    async def path_progress(self) -> list[PathProgress]:
        paths = await self._path_progress_map()
        return list(paths.values())

    async def has_local_data(self) -> bool:
        return bool(
            await self._viewed_terms_map()
            or await self.bookmarks()
            or await self._path_progress_map()
        )

    async def staged_records(self) -> list[StagedRecord]:
        """All staged records as one tagged list: terms, bookmarks, paths."""
        records: list[StagedRecord] = []
        records.extend((await self._viewed_terms_map()).values())
        records.extend(await self.bookmarks())
        records.extend((await self._path_progress_map()).values())
        return records

    async def clear_migrated_data(self) -> bool:
        """Delete staged data once migration is recorded as complete.

        Returns False (and deletes nothing) if the marker is not set.
        """
        if not await self.is_migration_complete():
            logger.warning(
                "Refusing to clear learning hub data for %s before migration is complete",
                self.account_id,
            )
            return False
        await self.client.delete(
            self.viewed_terms_key, self.bookmarks_key, self.path_progress_key
        )
        logger.info("Cleared staged learning hub data for %s", self.account_id)
        return True

    # ── Local tracking ──

    async def mark_term_viewed(self, slug: str) -> ViewedTerm:
        terms = await self._viewed_terms_map()
        existing = terms.get(slug)
        term = ViewedTerm(
            slug=slug,
            viewed_at=_now(),
            view_count=existing.view_count + 1 if existing else 1,
        )
        terms[slug] = term
        await self._write(self.viewed_terms_key, _terms_adapter, terms)
        return term

    async def is_bookmarked(self, content_type: BookmarkContentType, slug: str) -> bool:
        return any(
            b.content_type == content_type and b.slug == slug
            for b in await self.bookmarks()
        )

    async def add_bookmark(
        self, content_type: BookmarkContentType, slug: str, title: str
    ) -> bool:
        """Add a bookmark at the front; returns False if it already exists."""
        bookmarks = await self.bookmarks()
        if any(b.content_type == content_type and b.slug == slug for b in bookmarks):
            return False
        bookmarks.insert(
            0,
            Bookmark(
                content_type=content_type,
                slug=slug,
                title=title,
                bookmarked_at=_now(),
            ),
        )
        await self._write(self.bookmarks_key, _bookmarks_adapter, bookmarks[:MAX_BOOKMARKS])
        return True

    async def remove_bookmark(self, content_type: BookmarkContentType, slug: str) -> None:
        bookmarks = [
            b for b in await self.bookmarks()
            if not (b.content_type == content_type and b.slug == slug)
        ]
        await self._write(self.bookmarks_key, _bookmarks_adapter, bookmarks)

    async def toggle_bookmark(
        self, content_type: BookmarkContentType, slug: str, title: str
    ) -> bool:
        """Flip bookmark state; returns True if now bookmarked."""
        if await self.is_bookmarked(content_type, slug):
            await self.remove_bookmark(content_type, slug)
            return False
        await self.add_bookmark(content_type, slug, title)
        return True

    async def record_lesson_completed(
        self, path_slug: str, lesson_slug: str, total_lessons: int
    ) -> PathProgress:
        paths = await self._path_progress_map()
        now = _now()
        progress = paths.get(path_slug) or PathProgress(
            path_slug=path_slug, started_at=now, last_activity_at=now
        )
        lessons = list(progress.completed_lessons)
        if lesson_slug not in lessons:
            lessons.append(lesson_slug)
        completed_at = progress.completed_at
        if completed_at is None and len(lessons) >= total_lessons:
            completed_at = now
        progress = progress.model_copy(update={
            "completed_lessons": lessons,
            "last_activity_at": now,
            "completed_at": completed_at,
        })
        paths[path_slug] = progress
        await self._write(self.path_progress_key, _paths_adapter, paths)
        return progress
