"""Public inquiry funnel endpoints."""

from fastapi import APIRouter, Depends, status

from app.config import settings
from app.schemas.inquiry import ConsultationDetails, InquiryContext, InquiryIdentity, PathSelection
from app.services.blob_service import (
    DOCUMENT_TYPES,
    AssetStorage,
    get_asset_storage,
    store_uploads,
    validate_files,
)
from app.services.inquiry_service import InquiryService, get_inquiry_service
from app.utils.documents import serialize, success
from app.utils.request_parsing import ParsedRequest, parse_request, validate_model

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_inquiry(
    parsed: ParsedRequest = Depends(parse_request),
    service: InquiryService = Depends(get_inquiry_service),
) -> dict:
    """Step 1: identity."""
    identity = validate_model(InquiryIdentity, parsed.data)
    inquiry = await service.begin(identity)
    return success(serialize(inquiry), "Identity information saved")


@router.get("/{inquiry_id}")
async def get_inquiry(
    inquiry_id: str,
    service: InquiryService = Depends(get_inquiry_service),
) -> dict:
    inquiry = await service.get(inquiry_id)
    return success(serialize(inquiry))


@router.put("/{inquiry_id}/context")
async def update_context(
    inquiry_id: str,
    parsed: ParsedRequest = Depends(parse_request),
    service: InquiryService = Depends(get_inquiry_service),
    storage: AssetStorage = Depends(get_asset_storage),
) -> dict:
    """Step 2: project context, optionally with uploaded documents."""
    context = validate_model(InquiryContext, parsed.data)
    documents = parsed.files_for("documents")
    validate_files(
        documents,
        allowed_types=DOCUMENT_TYPES,
        max_count=settings.max_inquiry_documents,
        label="documents",
    )
    inquiry = await service.get(inquiry_id)

    urls = await store_uploads(storage, documents, folder=f"inquiries/{inquiry['_id']}")
    inquiry = await service.add_context(inquiry["_id"], context, urls)
    return success(serialize(inquiry), "Project context saved")


@router.put("/{inquiry_id}/path")
async def update_path(
    inquiry_id: str,
    parsed: ParsedRequest = Depends(parse_request),
    service: InquiryService = Depends(get_inquiry_service),
) -> dict:
    """Step 3: general enquiry or paid consultation."""
    selection = validate_model(PathSelection, parsed.data)
    inquiry = await service.choose_path(inquiry_id, selection.selected_path)
    return success(serialize(inquiry), "Path selection saved")


@router.post("/{inquiry_id}/submit")
async def submit_inquiry(
    inquiry_id: str,
    service: InquiryService = Depends(get_inquiry_service),
) -> dict:
    """Step 4 on the general path."""
    inquiry = await service.submit_general(inquiry_id)
    return success(serialize(inquiry), "Inquiry submitted successfully")


@router.put("/{inquiry_id}/consultation")
async def update_consultation(
    inquiry_id: str,
    parsed: ParsedRequest = Depends(parse_request),
    service: InquiryService = Depends(get_inquiry_service),
) -> dict:
    """Step 4 on the consult path. Payment follows through checkout."""
    details = validate_model(ConsultationDetails, parsed.data)
    inquiry = await service.set_consultation(inquiry_id, details)
    return success(serialize(inquiry), "Consultation details saved")
