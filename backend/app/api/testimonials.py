"""Testimonial endpoints: public submission and admin moderation."""

from typing import Optional

from fastapi import APIRouter, Depends

from app.middleware.auth import require_admin
from app.models.content import TestimonialStatus
from app.schemas.content import TestimonialCreate, TestimonialUpdate
from app.services.testimonial_service import TestimonialService, get_testimonial_service
from app.utils.documents import serialize, serialize_many, success
from app.utils.request_parsing import ParsedRequest, parse_request, validate_model

router = APIRouter()
admin_router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("")
async def list_testimonials(service: TestimonialService = Depends(get_testimonial_service)) -> dict:
    testimonials = await service.list_public()
    return success(serialize_many(testimonials), count=len(testimonials))


@router.get("/{testimonial_id}")
async def get_testimonial(
    testimonial_id: str,
    service: TestimonialService = Depends(get_testimonial_service),
) -> dict:
    testimonial = await service.get(testimonial_id)
    return success(serialize(testimonial))


@router.post("", status_code=201)
async def create_testimonial(
    parsed: ParsedRequest = Depends(parse_request),
    service: TestimonialService = Depends(get_testimonial_service),
) -> dict:
    payload = validate_model(TestimonialCreate, parsed.data)
    testimonial = await service.create(payload)
    return success(serialize(testimonial), "Thank you! Your testimonial will appear once reviewed.")


@router.put("/{testimonial_id}", dependencies=[Depends(require_admin)])
async def update_testimonial(
    testimonial_id: str,
    parsed: ParsedRequest = Depends(parse_request),
    service: TestimonialService = Depends(get_testimonial_service),
) -> dict:
    payload = validate_model(TestimonialUpdate, parsed.data)
    testimonial = await service.update(testimonial_id, payload)
    return success(serialize(testimonial), "Testimonial updated successfully")


@router.delete("/{testimonial_id}", dependencies=[Depends(require_admin)])
async def delete_testimonial(
    testimonial_id: str,
    service: TestimonialService = Depends(get_testimonial_service),
) -> dict:
    await service.delete(testimonial_id)
    return success(message="Testimonial deleted successfully")


@admin_router.get("")
async def admin_list_testimonials(
    status: Optional[str] = None,
    q: Optional[str] = None,
    service: TestimonialService = Depends(get_testimonial_service),
) -> dict:
    result = await service.list_admin(status=status, q=q)
    return success({
        "testimonials": serialize_many(result["testimonials"]),
        "counts": result["counts"],
    })


@admin_router.patch("/{testimonial_id}/approve")
async def approve_testimonial(
    testimonial_id: str,
    service: TestimonialService = Depends(get_testimonial_service),
    admin: dict = Depends(require_admin),
) -> dict:
    testimonial = await service.moderate(testimonial_id, TestimonialStatus.APPROVED, admin)
    return success(serialize(testimonial), "Testimonial approved")


@admin_router.patch("/{testimonial_id}/reject")
async def reject_testimonial(
    testimonial_id: str,
    service: TestimonialService = Depends(get_testimonial_service),
    admin: dict = Depends(require_admin),
) -> dict:
    testimonial = await service.moderate(testimonial_id, TestimonialStatus.REJECTED, admin)
    return success(serialize(testimonial), "Testimonial rejected")
