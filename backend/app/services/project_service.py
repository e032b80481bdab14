"""Portfolio projects."""

from typing import Any, List, Optional, Tuple

from fastapi import Depends

from app.config import settings
from app.database import PROJECTS, DocumentStore, get_store
from app.errors import NotFoundError, ValidationError
from app.models.content import ProjectImageType, ProjectTag
from app.schemas.content import ProjectCreate, ProjectUpdate
from app.services.content_service import ContentService
from app.utils.logging import get_logger

logger = get_logger("services.project")


def _without(urls: List[str], removed: List[str]) -> List[str]:
    drop = set(removed)
    return [url for url in urls if url not in drop]


class ProjectService(ContentService):
    collection_name = PROJECTS
    label = "Project"
    plural = "projects"
    search_fields = ("title", "description")
    facet_field = "tag"
    sortable_fields = ("createdAt", "updatedAt", "title", "year")

    def owned_assets(self, item: dict) -> List[str]:
        urls = [item.get("coverImage")]
        urls.extend(item.get("images") or [])
        urls.extend(item.get("plans") or [])
        return [url for url in urls if url]

    def _check_limits(self, images: List[str], plans: List[str]) -> None:
        if len(images) > settings.max_project_images:
            raise ValidationError(f"A project can hold at most {settings.max_project_images} images")
        if len(plans) > settings.max_project_plans:
            raise ValidationError(f"A project can hold at most {settings.max_project_plans} plans")

    async def create(
        self,
        payload: ProjectCreate,
        *,
        cover_url: Optional[str] = None,
        image_urls: Optional[List[str]] = None,
        plan_urls: Optional[List[str]] = None,
    ) -> Tuple[dict, List[str]]:
        images = list(payload.images) + list(image_urls or [])
        plans = list(payload.plans) + list(plan_urls or [])
        orphans: List[str] = []

        if payload.tag == ProjectTag.RESIDENTIAL.value and plans:
            # Residential projects never carry plans; uploaded ones are dropped.
            logger.info("project_plans_dropped", title=payload.title, count=len(plans))
            orphans.extend(plan_urls or [])
            plans = []
        self._check_limits(images, plans)

        document = payload.to_document()
        document.update({
            "coverImage": cover_url or payload.cover_image,
            "images": images,
            "plans": plans,
        })
        project = await self._insert(document)
        return project, orphans

    async def update(
        self,
        project_id: Any,
        payload: ProjectUpdate,
        *,
        cover_url: Optional[str] = None,
        image_urls: Optional[List[str]] = None,
        plan_urls: Optional[List[str]] = None,
    ) -> Tuple[dict, List[str]]:
        existing = await self.get(project_id)
        orphans: List[str] = []

        fields = payload.to_document(exclude_unset=True)
        for key in ("deletedImages", "deletedPlans", "deletedCoverImage"):
            fields.pop(key, None)
        if payload.info is None:
            fields.pop("info", None)

        current_images = existing.get("images") or []
        current_plans = existing.get("plans") or []
        removed_images = [url for url in payload.deleted_images if url in current_images]
        removed_plans = [url for url in payload.deleted_plans if url in current_plans]
        orphans.extend(removed_images + removed_plans)

        images = _without(current_images, removed_images) + list(image_urls or [])
        plans = _without(current_plans, removed_plans) + list(plan_urls or [])

        cover = existing.get("coverImage")
        if cover_url or payload.deleted_cover_image:
            if cover:
                orphans.append(cover)
            cover = cover_url

        tag = payload.tag or existing.get("tag")
        if tag == ProjectTag.RESIDENTIAL.value and plans:
            logger.info("project_plans_dropped", project_id=str(existing["_id"]), count=len(plans))
            orphans.extend(plans)
            plans = []
        self._check_limits(images, plans)

        fields.update({"images": images, "plans": plans, "coverImage": cover})
        await self._retitle(existing, fields)
        project = await self._set(existing["_id"], fields)
        logger.info("project_updated", project_id=str(project["_id"]), orphaned_assets=len(orphans))
        return project, orphans

    async def delete_image(self, project_id: Any, image_type: ProjectImageType, url: str) -> Tuple[dict, List[str]]:
        project = await self.get(project_id)
        image_type = ProjectImageType(image_type)

        if image_type == ProjectImageType.COVER:
            if project.get("coverImage") != url:
                raise NotFoundError("Image not found on this project")
            fields = {"coverImage": None}
        elif image_type == ProjectImageType.GALLERY:
            images = project.get("images") or []
            if url not in images:
                raise NotFoundError("Image not found on this project")
            fields = {"images": _without(images, [url])}
        else:
            plans = project.get("plans") or []
            if url not in plans:
                raise NotFoundError("Image not found on this project")
            fields = {"plans": _without(plans, [url])}

        project = await self._set(project["_id"], fields)
        logger.info("project_image_removed", project_id=str(project["_id"]), image_type=image_type.value)
        return project, [url]


def get_project_service(store: DocumentStore = Depends(get_store)) -> ProjectService:
    return ProjectService(store)
