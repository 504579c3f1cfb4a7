"""Aggregate model imports for Alembic auto-detection."""

from axori.models.property import Property  # noqa: F401
from axori.models.learning_hub import LearningBookmark, LearningProgress  # noqa: F401
