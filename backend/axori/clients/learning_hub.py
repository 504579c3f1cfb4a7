"""Learning hub endpoints used as the migration's durable store."""

from axori.clients.base import ApiClient
from axori.schemas.learning_hub import ProgressStatus


class LearningHubClient:
    def __init__(self, api: ApiClient):
        self.api = api

    async def save_progress(
        self,
        content_type: str,
        content_slug: str,
        status: ProgressStatus = "viewed",
        progress_data: dict | None = None,
    ) -> None:
        await self.api.post(
            "/api/learning-hub/progress",
            json={
                "contentType": content_type,
                "contentSlug": content_slug,
                "status": status,
                "progressData": progress_data,
            },
        )

    async def save_bookmark(self, content_type: str, content_slug: str) -> None:
        await self.api.post(
            "/api/learning-hub/bookmarks",
            json={"contentType": content_type, "contentSlug": content_slug},
        )
