"""News endpoints: public reading and admin management."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from app.api.blogs import upload_cover
from app.errors import AppError
from app.middleware.auth import require_admin
from app.models.content import ContentStatus
from app.schemas.content import NewsCreate, NewsUpdate
from app.services.article_service import NewsService, get_news_service
from app.services.blob_service import AssetStorage, discard_assets, get_asset_storage
from app.utils.documents import serialize, serialize_many, success
from app.utils.request_parsing import ParsedRequest, parse_request, validate_model

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("")
async def list_news(
    q: Optional[str] = None,
    sort: str = "publishedAt",
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: NewsService = Depends(get_news_service),
) -> dict:
    result = await service.list_published(q=q, sort=sort, order=order, page=page, limit=limit)
    return success({
        "news": serialize_many(result["news"]),
        "pagination": result["pagination"],
    })


@router.get("/{slug}")
async def get_news(slug: str, service: NewsService = Depends(get_news_service)) -> dict:
    item = await service.get_published(slug)
    return success(serialize(item))


@admin_router.get("")
async def admin_list_news(
    q: Optional[str] = None,
    status: Optional[str] = None,
    sort: str = "createdAt",
    order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    service: NewsService = Depends(get_news_service),
) -> dict:
    result = await service.list_admin(q=q, status=status, sort=sort, order=order, page=page, limit=limit)
    return success({
        "news": serialize_many(result["news"]),
        "pagination": result["pagination"],
    })


@admin_router.get("/{news_id}")
async def admin_get_news(news_id: str, service: NewsService = Depends(get_news_service)) -> dict:
    item = await service.get(news_id)
    return success(serialize(item))


@admin_router.post("", status_code=201)
async def create_news(
    parsed: ParsedRequest = Depends(parse_request),
    service: NewsService = Depends(get_news_service),
    storage: AssetStorage = Depends(get_asset_storage),
) -> dict:
    payload = validate_model(NewsCreate, parsed.data)
    cover_url = await upload_cover(parsed, storage, "news")
    try:
        item = await service.create(payload, cover_url=cover_url)
    except AppError:
        await discard_assets(storage, [cover_url])
        raise
    return success(serialize(item), "News created successfully")


@admin_router.put("/{news_id}")
async def update_news(
    news_id: str,
    background_tasks: BackgroundTasks,
    parsed: ParsedRequest = Depends(parse_request),
    service: NewsService = Depends(get_news_service),
    storage: AssetStorage = Depends(get_asset_storage),
) -> dict:
    payload = validate_model(NewsUpdate, parsed.data)
    await service.get(news_id)
    cover_url = await upload_cover(parsed, storage, "news")
    try:
        item, orphans = await service.update(news_id, payload, cover_url=cover_url)
    except AppError:
        await discard_assets(storage, [cover_url])
        raise
    background_tasks.add_task(discard_assets, storage, orphans)
    return success(serialize(item), "News updated successfully")


@admin_router.delete("/{news_id}")
async def delete_news(
    news_id: str,
    background_tasks: BackgroundTasks,
    service: NewsService = Depends(get_news_service),
    storage: AssetStorage = Depends(get_asset_storage),
) -> dict:
    _, orphans = await service.delete(news_id)
    background_tasks.add_task(discard_assets, storage, orphans)
    return success(message="News deleted successfully")


@admin_router.patch("/{news_id}/publish")
async def publish_news(news_id: str, service: NewsService = Depends(get_news_service)) -> dict:
    item = await service.set_status(news_id, ContentStatus.PUBLISHED)
    return success(serialize(item), "News published successfully")


@admin_router.patch("/{news_id}/unpublish")
async def unpublish_news(news_id: str, service: NewsService = Depends(get_news_service)) -> dict:
    item = await service.set_status(news_id, ContentStatus.DRAFT)
    return success(serialize(item), "News unpublished successfully")
