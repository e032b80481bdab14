"""Blog posts and news items share one shape around an optional cover image."""

from typing import Any, List, Optional, Tuple, Union

from fastapi import Depends

from app.database import BLOGS, NEWS, DocumentStore, get_store
from app.models.content import CoverSource
from app.schemas.content import BlogCreate, BlogUpdate, NewsCreate, NewsUpdate
from app.services.content_service import ContentService
from app.utils.documents import utcnow
from app.utils.logging import get_logger

logger = get_logger("services.article")


def _uploaded_cover(item: dict) -> Optional[str]:
    cover = item.get("coverImage") or {}
    if isinstance(cover, dict) and cover.get("source") == CoverSource.UPLOADED.value:
        return cover.get("url")
    return None


class ArticleService(ContentService):
    def owned_assets(self, item: dict) -> List[str]:
        url = _uploaded_cover(item)
        return [url] if url else []

    def _prepare(self, document: dict) -> dict:
        return document

    async def create(
        self,
        payload: Union[BlogCreate, NewsCreate],
        *,
        cover_url: Optional[str] = None,
    ) -> dict:
        document = payload.to_document()
        if cover_url:
            document["coverImage"] = {"url": cover_url, "source": CoverSource.UPLOADED.value}
        return await self._insert(self._prepare(document))

    async def update(
        self,
        item_id: Any,
        payload: Union[BlogUpdate, NewsUpdate],
        *,
        cover_url: Optional[str] = None,
    ) -> Tuple[dict, List[str]]:
        existing = await self.get(item_id)
        fields = payload.to_document(exclude_unset=True)
        fields.pop("removeCoverImage", None)
        if "coverImage" in fields and fields["coverImage"] is None:
            fields.pop("coverImage")

        if cover_url:
            fields["coverImage"] = {"url": cover_url, "source": CoverSource.UPLOADED.value}
        elif payload.remove_cover_image and payload.cover_image is None:
            fields["coverImage"] = None

        orphans: List[str] = []
        if "coverImage" in fields:
            old = _uploaded_cover(existing)
            new_url = (fields["coverImage"] or {}).get("url")
            if old and old != new_url:
                orphans.append(old)

        await self._retitle(existing, fields)
        item = await self._set(existing["_id"], fields)
        logger.info(
            "article_updated",
            collection=self.collection_name,
            item_id=str(item["_id"]),
            orphaned_assets=len(orphans),
        )
        return item, orphans


class BlogService(ArticleService):
    collection_name = BLOGS
    label = "Blog"
    plural = "blogs"
    search_fields = ("title", "excerpt", "content")
    facet_field = "category"


class NewsService(ArticleService):
    collection_name = NEWS
    label = "News"
    plural = "news"
    search_fields = ("title", "excerpt", "content", "source")
    sortable_fields = ("createdAt", "updatedAt", "title", "publishedAt")
    public_sort = "publishedAt"

    def _prepare(self, document: dict) -> dict:
        if not document.get("publishedAt"):
            document["publishedAt"] = utcnow()
        return document


def get_blog_service(store: DocumentStore = Depends(get_store)) -> BlogService:
    return BlogService(store)


def get_news_service(store: DocumentStore = Depends(get_store)) -> NewsService:
    return NewsService(store)
