"""Admin dashboard statistics."""

from fastapi import APIRouter, Depends

from app.middleware.auth import require_admin
from app.services.dashboard_service import DashboardService, get_dashboard_service
from app.utils.documents import serialize, success

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/stats")
async def get_dashboard_stats(service: DashboardService = Depends(get_dashboard_service)) -> dict:
    """Counts, recent activity and Stripe revenue for the admin home page."""
    stats = await service.stats()
    return success(serialize(stats))
