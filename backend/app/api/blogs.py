"""Blog endpoints: public reading and admin management."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from app.errors import AppError
from app.middleware.auth import require_admin
from app.models.content import ContentStatus
from app.schemas.content import BlogCreate, BlogUpdate
from app.services.article_service import BlogService, get_blog_service
from app.services.blob_service import (
    IMAGE_TYPES,
    AssetStorage,
    discard_assets,
    get_asset_storage,
    store_uploads,
    validate_files,
)
from app.utils.documents import serialize, serialize_many, success
from app.utils.request_parsing import ParsedRequest, parse_request, validate_model

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])


async def upload_cover(parsed: ParsedRequest, storage: AssetStorage, folder: str) -> Optional[str]:
    cover = parsed.files_for("coverImage")
    validate_files(cover, allowed_types=IMAGE_TYPES, max_count=1, label="cover image")
    urls = await store_uploads(storage, cover, folder=folder)
    return urls[0] if urls else None


@router.get("")
async def list_blogs(
    category: Optional[str] = None,
    q: Optional[str] = None,
    sort: str = "createdAt",
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: BlogService = Depends(get_blog_service),
) -> dict:
    result = await service.list_published(q=q, facet=category, sort=sort, order=order, page=page, limit=limit)
    return success({
        "blogs": serialize_many(result["blogs"]),
        "pagination": result["pagination"],
    })


@router.get("/{slug}")
async def get_blog(slug: str, service: BlogService = Depends(get_blog_service)) -> dict:
    blog = await service.get_published(slug)
    return success(serialize(blog))


@admin_router.get("")
async def admin_list_blogs(
    q: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    sort: str = "createdAt",
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    service: BlogService = Depends(get_blog_service),
) -> dict:
    result = await service.list_admin(
        q=q, status=status, facet=category, sort=sort, order=order, page=page, limit=limit
    )
    return success({
        "blogs": serialize_many(result["blogs"]),
        "pagination": result["pagination"],
        "categories": result.get("facets", []),
    })


@admin_router.get("/{blog_id}")
async def admin_get_blog(blog_id: str, service: BlogService = Depends(get_blog_service)) -> dict:
    blog = await service.get(blog_id)
    return success(serialize(blog))


@admin_router.post("", status_code=201)
async def create_blog(
    parsed: ParsedRequest = Depends(parse_request),
    service: BlogService = Depends(get_blog_service),
    storage: AssetStorage = Depends(get_asset_storage),
) -> dict:
    payload = validate_model(BlogCreate, parsed.data)
    cover_url = await upload_cover(parsed, storage, "blogs")
    try:
        blog = await service.create(payload, cover_url=cover_url)
    except AppError:
        await discard_assets(storage, [cover_url])
        raise
    return success(serialize(blog), "Blog created successfully")


@admin_router.put("/{blog_id}")
async def update_blog(
    blog_id: str,
    background_tasks: BackgroundTasks,
    parsed: ParsedRequest = Depends(parse_request),
    service: BlogService = Depends(get_blog_service),
    storage: AssetStorage = Depends(get_asset_storage),
) -> dict:
    payload = validate_model(BlogUpdate, parsed.data)
    await service.get(blog_id)
    cover_url = await upload_cover(parsed, storage, "blogs")
    try:
        blog, orphans = await service.update(blog_id, payload, cover_url=cover_url)
    except AppError:
        await discard_assets(storage, [cover_url])
        raise
    background_tasks.add_task(discard_assets, storage, orphans)
    return success(serialize(blog), "Blog updated successfully")


@admin_router.delete("/{blog_id}")
async def delete_blog(
    blog_id: str,
    background_tasks: BackgroundTasks,
    service: BlogService = Depends(get_blog_service),
    storage: AssetStorage = Depends(get_asset_storage),
) -> dict:
    _, orphans = await service.delete(blog_id)
    background_tasks.add_task(discard_assets, storage, orphans)
    return success(message="Blog deleted successfully")


@admin_router.patch("/{blog_id}/publish")
async def publish_blog(blog_id: str, service: BlogService = Depends(get_blog_service)) -> dict:
    blog = await service.set_status(blog_id, ContentStatus.PUBLISHED)
    return success(serialize(blog), "Blog published successfully")


@admin_router.patch("/{blog_id}/unpublish")
async def unpublish_blog(blog_id: str, service: BlogService = Depends(get_blog_service)) -> dict:
    blog = await service.set_status(blog_id, ContentStatus.DRAFT)
    return success(serialize(blog), "Blog unpublished successfully")
