"""Post-payment billing details for business clients."""

from fastapi import APIRouter, Depends

from app.schemas.payment import BusinessBillingRequest
from app.services.payment_service import PaymentService, get_payment_service
from app.utils.documents import success
from app.utils.request_parsing import ParsedRequest, parse_request, validate_model

router = APIRouter()


@router.post("/business")
async def submit_business_billing(
    parsed: ParsedRequest = Depends(parse_request),
    service: PaymentService = Depends(get_payment_service),
) -> dict:
    request = validate_model(BusinessBillingRequest, parsed.data)
    data = await service.finalize_business_billing(request)
    return success(data, "Billing details saved and invoice finalized")
