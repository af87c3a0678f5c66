from fastapi import APIRouter, Depends, Form, HTTPException, Query, status
from azure.cosmos.aio import ContainerProxy

from crm_panel.crud.inventory_crud import list_inventory, upsert_inventory
from crm_panel.dependencies import get_inventory_container, get_products_container
from crm_panel.exceptions import DatabaseError, PartialBatchError
from crm_panel.models.inventory import (
    InventoryBatchResult,
    InventoryBatchUpsert,
    InventoryChange,
    InventoryListing,
)
from crm_panel.models.user import UserSession
from crm_panel.session import require_user
from crm_panel.logging_config import get_child_logger, tracer

logger = get_child_logger("routes.inventory")

router = APIRouter(prefix="/inventario", tags=["inventory"])


@router.get("", response_model=InventoryListing)
async def get_inventory(
    search: str = Query("", title="Case-insensitive title substring"),
    color: str = Query("", title="Exact color label"),
    user: UserSession = Depends(require_user),
    products: ContainerProxy = Depends(get_products_container),
    inventory: ContainerProxy = Depends(get_inventory_container),
):
    with tracer.start_as_current_span("api_get_inventory") as span:
        span.set_attribute("filter.search", search)
        span.set_attribute("filter.color", color)
        try:
            return await list_inventory(products, inventory, search=search, color=color)
        except DatabaseError as e:
            span.set_attribute("error", True)
            logger.error(
                "Database error during inventory listing",
                extra={"error": str(e), "search": search, "color": color},
                exc_info=e.original_exception,
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e),
            )


@router.post("/batch", response_model=InventoryBatchResult)
async def commit_inventory_batch(
    batch: InventoryBatchUpsert,
    user: UserSession = Depends(require_user),
    inventory: ContainerProxy = Depends(get_inventory_container),
):
    with tracer.start_as_current_span("api_commit_inventory_batch") as span:
        batch_size = len(batch.changes)
        span.set_attribute("batch.size", batch_size)

        logger.info(
            f"Handling inventory batch of {batch_size} changes",
            extra={"batch_size": batch_size, "user_id": user.id},
        )

        try:
            applied = await upsert_inventory(inventory, batch.changes)
        except PartialBatchError:
            # Reported with the applied ids by the app-level handler
            span.set_attribute("error", True)
            raise

        return InventoryBatchResult(success=True, applied=applied)


@router.post("", response_model=InventoryBatchResult)
async def commit_single_change(
    product_id: int = Form(..., alias="productId"),
    cantidad: int = Form(...),
    user: UserSession = Depends(require_user),
    inventory: ContainerProxy = Depends(get_inventory_container),
):
    """
    Row edit mode: save one quantity without going through the ledger.
    """
    if cantidad < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Quantity must be zero or greater.",
        )
    applied = await upsert_inventory(
        inventory, [InventoryChange(product_id=product_id, cantidad=cantidad)]
    )
    return InventoryBatchResult(success=True, applied=applied)
