"""Project endpoints: public portfolio and admin management."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from app.config import settings
from app.errors import AppError
from app.middleware.auth import require_admin
from app.models.content import ContentStatus, ProjectImageType, ProjectTag
from app.schemas.content import ProjectCreate, ProjectUpdate
from app.services.blob_service import (
    DOCUMENT_TYPES,
    IMAGE_TYPES,
    AssetStorage,
    discard_assets,
    get_asset_storage,
    store_uploads,
    validate_files,
)
from app.services.project_service import ProjectService, get_project_service
from app.utils.documents import serialize, serialize_many, success
from app.utils.request_parsing import ParsedRequest, parse_request, validate_model

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])


async def _upload_project_files(
    parsed: ParsedRequest,
    storage: AssetStorage,
    *,
    include_plans: bool,
) -> tuple:
    cover = parsed.files_for("coverImage")
    images = parsed.files_for("images")
    plans = parsed.files_for("plans") if include_plans else []
    validate_files(cover, allowed_types=IMAGE_TYPES, max_count=1, label="cover image")
    validate_files(images, allowed_types=IMAGE_TYPES, max_count=settings.max_project_images, label="images")
    validate_files(plans, allowed_types=DOCUMENT_TYPES, max_count=settings.max_project_plans, label="plans")

    cover_urls = await store_uploads(storage, cover, folder="projects/covers")
    try:
        image_urls = await store_uploads(storage, images, folder="projects/images")
    except AppError:
        await discard_assets(storage, cover_urls)
        raise
    try:
        plan_urls = await store_uploads(storage, plans, folder="projects/plans")
    except AppError:
        await discard_assets(storage, cover_urls + image_urls)
        raise
    return (cover_urls[0] if cover_urls else None), image_urls, plan_urls


# ---------------- Public ----------------


@router.get("")
async def list_projects(
    tag: Optional[str] = None,
    sort: str = "createdAt",
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=100),
    service: ProjectService = Depends(get_project_service),
) -> dict:
    result = await service.list_published(facet=tag, sort=sort, order=order, page=page, limit=limit)
    return success(serialize_many(result["projects"]), pagination=result["pagination"])


@router.get("/{slug}")
async def get_project(
    slug: str,
    service: ProjectService = Depends(get_project_service),
) -> dict:
    project = await service.get_published(slug)
    return success(serialize(project))


# ---------------- Admin ----------------


@admin_router.get("")
async def admin_list_projects(
    q: Optional[str] = None,
    status: Optional[str] = None,
    tag: Optional[str] = None,
    sort: str = "createdAt",
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    service: ProjectService = Depends(get_project_service),
) -> dict:
    result = await service.list_admin(
        q=q, status=status, facet=tag, sort=sort, order=order, page=page, limit=limit
    )
    return success({
        "projects": serialize_many(result["projects"]),
        "pagination": result["pagination"],
        "tags": result.get("facets", []),
    })


@admin_router.get("/{project_id}")
async def admin_get_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
) -> dict:
    project = await service.get(project_id)
    return success(serialize(project))


@admin_router.post("", status_code=201)
async def create_project(
    background_tasks: BackgroundTasks,
    parsed: ParsedRequest = Depends(parse_request),
    service: ProjectService = Depends(get_project_service),
    storage: AssetStorage = Depends(get_asset_storage),
) -> dict:
    payload = validate_model(ProjectCreate, parsed.data)
    include_plans = payload.tag != ProjectTag.RESIDENTIAL.value
    cover_url, image_urls, plan_urls = await _upload_project_files(parsed, storage, include_plans=include_plans)

    try:
        project, orphans = await service.create(
            payload, cover_url=cover_url, image_urls=image_urls, plan_urls=plan_urls
        )
    except AppError:
        await discard_assets(storage, [cover_url, *image_urls, *plan_urls])
        raise
    background_tasks.add_task(discard_assets, storage, orphans)
    return success(serialize(project), "Project created successfully")


@admin_router.put("/{project_id}")
async def update_project(
    project_id: str,
    background_tasks: BackgroundTasks,
    parsed: ParsedRequest = Depends(parse_request),
    service: ProjectService = Depends(get_project_service),
    storage: AssetStorage = Depends(get_asset_storage),
) -> dict:
    payload = validate_model(ProjectUpdate, parsed.data)
    existing = await service.get(project_id)
    tag = payload.tag or existing.get("tag")
    include_plans = tag != ProjectTag.RESIDENTIAL.value
    cover_url, image_urls, plan_urls = await _upload_project_files(parsed, storage, include_plans=include_plans)

    try:
        project, orphans = await service.update(
            existing["_id"], payload, cover_url=cover_url, image_urls=image_urls, plan_urls=plan_urls
        )
    except AppError:
        await discard_assets(storage, [cover_url, *image_urls, *plan_urls])
        raise
    background_tasks.add_task(discard_assets, storage, orphans)
    return success(serialize(project), "Project updated successfully")


@admin_router.delete("/{project_id}/image")
async def delete_project_image(
    project_id: str,
    background_tasks: BackgroundTasks,
    image_type: ProjectImageType = Query(..., alias="type"),
    url: str = Query(..., min_length=1),
    service: ProjectService = Depends(get_project_service),
    storage: AssetStorage = Depends(get_asset_storage),
) -> dict:
    project, orphans = await service.delete_image(project_id, image_type, url)
    background_tasks.add_task(discard_assets, storage, orphans)
    return success(serialize(project), "Image deleted successfully")


@admin_router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    background_tasks: BackgroundTasks,
    service: ProjectService = Depends(get_project_service),
    storage: AssetStorage = Depends(get_asset_storage),
) -> dict:
    _, orphans = await service.delete(project_id)
    background_tasks.add_task(discard_assets, storage, orphans)
    return success(message="Project deleted successfully")


@admin_router.patch("/{project_id}/publish")
async def publish_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
) -> dict:
    project = await service.set_status(project_id, ContentStatus.PUBLISHED)
    return success(serialize(project), "Project published successfully")


@admin_router.patch("/{project_id}/unpublish")
async def unpublish_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
) -> dict:
    project = await service.set_status(project_id, ContentStatus.DRAFT)
    return success(serialize(project), "Project unpublished successfully")
