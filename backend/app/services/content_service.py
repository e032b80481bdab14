"""Shared behaviour for slugged, publishable content collections."""

import math
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from app.database import DocumentStore
from app.errors import NotFoundError, ValidationError
from app.models.content import ContentStatus
from app.utils.documents import to_object_id, utcnow
from app.utils.logging import get_logger

logger = get_logger("services.content")

_NON_WORD = re.compile(r"[^\w\s-]")
_SEPARATORS = re.compile(r"[\s_-]+")


def slugify(title: str) -> str:
    slug = _NON_WORD.sub("", (title or "").lower().strip())
    slug = _SEPARATORS.sub("-", slug)
    return slug.strip("-")


class ContentService:
    """CRUD plus publish/unpublish for one content collection.

    Mutating operations return the document together with the asset URLs it
    stopped referencing; callers schedule their removal.
    """

    collection_name: str = ""
    label: str = "Content"
    plural: str = "items"
    search_fields: Sequence[str] = ("title",)
    facet_field: Optional[str] = None
    sortable_fields: Sequence[str] = ("createdAt", "updatedAt", "title")
    public_sort: str = "createdAt"

    def __init__(self, store: DocumentStore):
        self.collection = store.collection(self.collection_name)

    # ---------------- Queries ----------------

    def _build_query(self, q: Optional[str], status: Optional[str], facet: Optional[str]) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if q and q.strip():
            pattern = {"$regex": re.escape(q.strip()), "$options": "i"}
            query["$or"] = [{field: pattern} for field in self.search_fields]
        if status and status != "all":
            query["status"] = status
        if facet and facet.strip() and self.facet_field:
            query[self.facet_field] = facet.strip()
        return query

    def _sort(self, sort: Optional[str], order: Optional[str]) -> List[Tuple[str, int]]:
        field = sort if sort in self.sortable_fields else self.public_sort
        return [(field, ASCENDING if order == "asc" else DESCENDING)]

    async def _page(self, query: Dict[str, Any], sort, page: int, limit: int) -> Dict[str, Any]:
        total = await self.collection.count_documents(query)
        cursor = self.collection.find(query).sort(sort).skip((page - 1) * limit).limit(limit)
        items = await cursor.to_list(length=limit)
        return {
            self.plural: items,
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "totalPages": math.ceil(total / limit) if limit else 0,
            },
        }

    async def list_admin(
        self,
        *,
        q: Optional[str] = None,
        status: Optional[str] = None,
        facet: Optional[str] = None,
        sort: Optional[str] = None,
        order: Optional[str] = "desc",
        page: int = 1,
        limit: int = 25,
    ) -> Dict[str, Any]:
        result = await self._page(self._build_query(q, status, facet), self._sort(sort, order), page, limit)
        if self.facet_field:
            values = await self.collection.distinct(self.facet_field)
            result["facets"] = sorted(v for v in values if v)
        return result

    async def list_published(
        self,
        *,
        q: Optional[str] = None,
        facet: Optional[str] = None,
        sort: Optional[str] = None,
        order: Optional[str] = "desc",
        page: int = 1,
        limit: int = 25,
    ) -> Dict[str, Any]:
        query = self._build_query(q, ContentStatus.PUBLISHED.value, facet)
        return await self._page(query, self._sort(sort, order), page, limit)

    async def get(self, item_id: Any) -> dict:
        item = await self.collection.find_one({"_id": to_object_id(item_id, self.label)})
        if not item:
            raise NotFoundError(f"{self.label} not found")
        return item

    async def get_published(self, slug: str) -> dict:
        item = await self.collection.find_one({"slug": slug, "status": ContentStatus.PUBLISHED.value})
        if not item:
            raise NotFoundError(f"{self.label} not found")
        return item

    # ---------------- Mutations ----------------

    async def unique_slug(self, title: str, exclude_id: Any = None) -> str:
        base = slugify(title)
        if not base:
            raise ValidationError("Title must contain at least one letter or digit")
        slug = base
        counter = 1
        while True:
            query: Dict[str, Any] = {"slug": slug}
            if exclude_id is not None:
                query["_id"] = {"$ne": exclude_id}
            if not await self.collection.find_one(query, {"_id": 1}):
                return slug
            slug = f"{base}-{counter}"
            counter += 1

    async def _insert(self, document: Dict[str, Any]) -> dict:
        now = utcnow()
        document["slug"] = await self.unique_slug(document["title"])
        document.setdefault("status", ContentStatus.DRAFT.value)
        document["createdAt"] = now
        document["updatedAt"] = now
        result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        logger.info(
            "content_created",
            collection=self.collection_name,
            item_id=str(result.inserted_id),
            slug=document["slug"],
        )
        return document

    async def _set(self, item_id: Any, fields: Dict[str, Any]) -> dict:
        fields["updatedAt"] = utcnow()
        item = await self.collection.find_one_and_update(
            {"_id": to_object_id(item_id, self.label)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if not item:
            raise NotFoundError(f"{self.label} not found")
        return item

    async def _retitle(self, existing: dict, fields: Dict[str, Any]) -> None:
        title = fields.get("title")
        if title and title != existing.get("title"):
            fields["slug"] = await self.unique_slug(title, exclude_id=existing["_id"])

    async def set_status(self, item_id: Any, status: ContentStatus) -> dict:
        item = await self._set(item_id, {"status": ContentStatus(status).value})
        logger.info(
            "content_status_changed",
            collection=self.collection_name,
            item_id=str(item["_id"]),
            status=item["status"],
        )
        return item

    def owned_assets(self, item: dict) -> List[str]:
        return []

    async def delete(self, item_id: Any) -> Tuple[dict, List[str]]:
        item = await self.get(item_id)
        await self.collection.delete_one({"_id": item["_id"]})
        logger.info("content_deleted", collection=self.collection_name, item_id=str(item["_id"]))
        return item, self.owned_assets(item)
