"""Admin views over client inquiries."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import Response

from app.middleware.auth import require_admin
from app.schemas.inquiry import AdminNoteCreate, BulkDelete, BulkStatusUpdate, StatusUpdate
from app.services.blob_service import AssetStorage, discard_assets, get_asset_storage
from app.services.inquiry_service import InquiryFilters, InquiryService, get_inquiry_service
from app.utils.documents import serialize, serialize_many, success, utcnow
from app.utils.request_parsing import ParsedRequest, parse_request, validate_model

router = APIRouter()


def inquiry_filters(
    q: Optional[str] = None,
    status: Optional[str] = None,
    client_type: Optional[str] = Query(None, alias="clientType"),
    service: Optional[str] = None,
    payment_status: Optional[str] = Query(None, alias="paymentStatus"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    sort: str = "createdAt",
    order: str = Query("desc", pattern="^(asc|desc)$"),
) -> InquiryFilters:
    return InquiryFilters(
        q=q,
        status=status if status != "all" else None,
        client_type=client_type if client_type != "all" else None,
        service=service if service != "all" else None,
        payment_status=payment_status if payment_status != "all" else None,
        date_from=date_from,
        date_to=date_to,
        sort=sort,
        order=order,
    )


@router.get("")
async def list_inquiries(
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    filters: InquiryFilters = Depends(inquiry_filters),
    service: InquiryService = Depends(get_inquiry_service),
    admin: dict = Depends(require_admin),
) -> dict:
    result = await service.list_inquiries(filters, page=page, limit=limit)
    return success({
        "inquiries": serialize_many(result["inquiries"]),
        "pagination": result["pagination"],
        "filters": result["filters"],
    })


@router.get("/export")
async def export_inquiries(
    filters: InquiryFilters = Depends(inquiry_filters),
    service: InquiryService = Depends(get_inquiry_service),
    admin: dict = Depends(require_admin),
) -> Response:
    content = await service.export(filters)
    filename = f"inquiries-{utcnow().date().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.patch("/bulk-status")
async def bulk_update_status(
    parsed: ParsedRequest = Depends(parse_request),
    service: InquiryService = Depends(get_inquiry_service),
    admin: dict = Depends(require_admin),
) -> dict:
    update = validate_model(BulkStatusUpdate, parsed.data)
    result = await service.bulk_update_status(update.ids, update.status, admin)
    return success(result, f"{len(result['updated'])} inquiries updated")


@router.post("/bulk-delete")
async def bulk_delete(
    background_tasks: BackgroundTasks,
    parsed: ParsedRequest = Depends(parse_request),
    service: InquiryService = Depends(get_inquiry_service),
    storage: AssetStorage = Depends(get_asset_storage),
    admin: dict = Depends(require_admin),
) -> dict:
    request = validate_model(BulkDelete, parsed.data)
    deleted, document_urls = await service.bulk_delete(request.ids)
    background_tasks.add_task(discard_assets, storage, document_urls)
    return success({"deleted": deleted}, f"{deleted} inquiries deleted")


@router.get("/{inquiry_id}")
async def get_inquiry(
    inquiry_id: str,
    service: InquiryService = Depends(get_inquiry_service),
    admin: dict = Depends(require_admin),
) -> dict:
    inquiry = await service.get(inquiry_id)
    return success(serialize(inquiry))


@router.patch("/{inquiry_id}/status")
async def update_status(
    inquiry_id: str,
    parsed: ParsedRequest = Depends(parse_request),
    service: InquiryService = Depends(get_inquiry_service),
    admin: dict = Depends(require_admin),
) -> dict:
    update = validate_model(StatusUpdate, parsed.data)
    inquiry = await service.update_status(inquiry_id, update.status, admin, note=update.note)
    return success(serialize(inquiry), "Inquiry status updated")


@router.post("/{inquiry_id}/notes")
async def add_note(
    inquiry_id: str,
    parsed: ParsedRequest = Depends(parse_request),
    service: InquiryService = Depends(get_inquiry_service),
    admin: dict = Depends(require_admin),
) -> dict:
    note = validate_model(AdminNoteCreate, parsed.data)
    inquiry = await service.add_note(inquiry_id, note.text, admin)
    return success(serialize(inquiry), "Note added")


@router.delete("/{inquiry_id}")
async def delete_inquiry(
    inquiry_id: str,
    background_tasks: BackgroundTasks,
    service: InquiryService = Depends(get_inquiry_service),
    storage: AssetStorage = Depends(get_asset_storage),
    admin: dict = Depends(require_admin),
) -> dict:
    inquiry = await service.delete(inquiry_id)
    background_tasks.add_task(discard_assets, storage, inquiry.get("documentUrls") or [])
    return success(message="Inquiry deleted")
