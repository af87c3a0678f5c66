from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.cosmos.aio import ContainerProxy
from typing import Dict, List, Sequence
from datetime import datetime, timezone

from pydantic import ValidationError

from crm_panel.crud.product_crud import list_filter_values, list_products
from crm_panel.exceptions import DatabaseError, PartialBatchError
from crm_panel.models.inventory import (
    InventoryChange,
    InventoryListing,
    InventoryRecord,
    InventoryRow,
)
from crm_panel.models.product import ProductFilterOptions, ProductFilters
from crm_panel.logging_config import get_child_logger, tracer

logger = get_child_logger("crud.inventory")


async def list_quantities(container: ContainerProxy) -> Dict[int, int]:
    """
    Read every inventory record as a ``product_id -> cantidad`` map.
    """
    query = "SELECT c.product_id, c.cantidad FROM c"
    try:
        quantities = {}
        async for item in container.query_items(query=query):
            try:
                record = InventoryRecord.model_validate(item)
            except ValidationError as e:
                logger.debug(f"Skipping invalid inventory record: {e.errors()}")
                continue
            quantities[record.product_id] = record.cantidad
        return quantities
    except CosmosHttpResponseError as e:
        logger.error(
            "Cosmos DB error during inventory listing",
            extra={"status_code": e.status_code, "error_message": e.message},
            exc_info=True,
        )
        raise DatabaseError(
            f"Cosmos DB error during inventory listing: Status Code {e.status_code}, Message: {e.message}",
            original_exception=e,
        ) from e


async def list_inventory(
    products_container: ContainerProxy,
    inventory_container: ContainerProxy,
    search: str = "",
    color: str = "",
) -> InventoryListing:
    """
    Join the filtered products with their inventory quantities.
    Products without an inventory record get a quantity of 0.
    """
    with tracer.start_as_current_span("list_inventory") as span:
        products = await list_products(products_container, search=search, color=color)
        quantities = await list_quantities(inventory_container)
        colores = await list_filter_values(products_container, "color")

        rows = [
            InventoryRow(
                id=product.id,
                title=product.title,
                color=product.color,
                color_hex=product.color_hex,
                cantidad=quantities.get(product.id, 0),
            )
            for product in products
        ]
        span.set_attribute("inventory.rows", len(rows))

        return InventoryListing(
            items=rows,
            filters=ProductFilterOptions(colores=colores),
            current_filters=ProductFilters(search=search, color=color),
        )


async def upsert_inventory(
    container: ContainerProxy,
    changes: Sequence[InventoryChange],
) -> List[int]:
    """
    Upsert one inventory record per change, in order.

    The pairs are written one by one, so the batch is not atomic: if a write
    fails, the earlier ones stay applied and a PartialBatchError reports them.

    Returns:
        Product ids whose upsert was confirmed, in request order

    Raises:
        PartialBatchError: If any upsert fails
    """
    with tracer.start_as_current_span("upsert_inventory") as span:
        span.set_attribute("batch.size", len(changes))

        applied: List[int] = []
        for change in changes:
            record = {
                "id": str(change.product_id),
                "product_id": change.product_id,
                "cantidad": change.cantidad,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }
            try:
                await container.upsert_item(body=record)
            except CosmosHttpResponseError as e:
                span.set_attribute("error", True)
                span.set_attribute("batch.applied_count", len(applied))
                logger.error(
                    "Cosmos DB error during inventory upsert",
                    extra={
                        "status_code": e.status_code,
                        "error_message": e.message,
                        "product_id": change.product_id,
                        "applied": applied,
                    },
                    exc_info=True,
                )
                raise PartialBatchError(
                    f"Cosmos DB error updating inventory for product {change.product_id}: "
                    f"Status Code {e.status_code}, Message: {e.message}",
                    applied=applied,
                    failed_product_id=change.product_id,
                    original_exception=e,
                ) from e
            applied.append(change.product_id)

        span.set_attribute("batch.applied_count", len(applied))
        logger.info(
            f"Upserted {len(applied)} inventory records",
            extra={"count": len(applied)},
        )
        return applied
