from fastapi import APIRouter, Depends, HTTPException, status
from azure.cosmos.aio import ContainerProxy

from crm_panel.crud.dashboard_crud import get_dashboard_metrics
from crm_panel.dependencies import get_inventory_container, get_products_container
from crm_panel.exceptions import DatabaseError
from crm_panel.models.dashboard import DashboardResponse
from crm_panel.models.user import UserSession
from crm_panel.session import require_user
from crm_panel.logging_config import get_child_logger

logger = get_child_logger("routes.dashboard")

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    user: UserSession = Depends(require_user),
    products: ContainerProxy = Depends(get_products_container),
    inventory: ContainerProxy = Depends(get_inventory_container),
):
    try:
        metrics = await get_dashboard_metrics(products, inventory)
    except DatabaseError as e:
        logger.error(f"Database error building dashboard: {e}", exc_info=e.original_exception)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
    return DashboardResponse(user=user, metrics=metrics)
