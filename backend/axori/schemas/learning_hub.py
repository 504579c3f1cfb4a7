"""Pydantic schemas for learning hub progress, bookmarks, and migration.

Locally staged records are a tagged union on `kind`, so a staged list
can be validated in one pass and dispatched without shape sniffing.
"""

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

ContentType = Literal["term", "article", "path", "lesson", "quiz"]
BookmarkContentType = Literal["term", "article", "path"]
ProgressStatus = Literal["viewed", "in_progress", "completed"]


# ── Locally staged records ──────────────────────────────────

class ViewedTerm(BaseModel):
    kind: Literal["term"] = "term"
    slug: str
    viewed_at: datetime
    view_count: int = 1


class Bookmark(BaseModel):
    kind: Literal["bookmark"] = "bookmark"
    content_type: BookmarkContentType
    slug: str
    title: str
    bookmarked_at: datetime


class PathProgress(BaseModel):
    kind: Literal["path"] = "path"
    path_slug: str
    completed_lessons: list[str] = []
    started_at: datetime
    last_activity_at: datetime
    completed_at: datetime | None = None


StagedRecord = Annotated[
    Union[ViewedTerm, Bookmark, PathProgress],
    Field(discriminator="kind"),
]


# ── Migration outcome ───────────────────────────────────────

class MigrationResult(BaseModel):
    success: bool
    migrated_terms: int = 0
    migrated_bookmarks: int = 0
    migrated_paths: int = 0
    errors: int = 0

    @property
    def migrated_counts(self) -> dict[str, int]:
        return {
            "term": self.migrated_terms,
            "bookmark": self.migrated_bookmarks,
            "path": self.migrated_paths,
        }


# ── API bodies (camelCase on the wire) ──────────────────────

class ProgressUpsert(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content_type: ContentType = Field(alias="contentType")
    content_slug: str = Field(alias="contentSlug", min_length=1)
    status: ProgressStatus | None = None
    progress_data: dict | None = Field(default=None, alias="progressData")


class BookmarkCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content_type: ContentType = Field(alias="contentType")
    content_slug: str = Field(alias="contentSlug", min_length=1)


class ProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    content_type: str
    content_slug: str
    status: str
    progress_data: dict | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class BookmarkOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    content_type: str
    content_slug: str
    created_at: datetime
