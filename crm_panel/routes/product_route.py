from fastapi import APIRouter, Depends, HTTPException, Query, status
from azure.cosmos.aio import ContainerProxy

from crm_panel.crud.product_crud import list_filter_values, list_products
from crm_panel.dependencies import get_products_container
from crm_panel.exceptions import DatabaseError
from crm_panel.models.product import ProductFilterOptions, ProductFilters, ProductList
from crm_panel.models.user import UserSession
from crm_panel.session import require_user
from crm_panel.logging_config import get_child_logger

logger = get_child_logger("routes.product")

router = APIRouter(prefix="/productos", tags=["products"])


@router.get("", response_model=ProductList)
async def get_products(
    search: str = Query("", title="Case-insensitive title substring"),
    category: str = Query("", title="Exact category"),
    user: UserSession = Depends(require_user),
    container: ContainerProxy = Depends(get_products_container),
):
    try:
        items = await list_products(container, search=search, category=category)
        categories = await list_filter_values(container, "category")
    except DatabaseError as e:
        logger.error(f"Database error: {e}", exc_info=e.original_exception)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
    return ProductList(
        items=items,
        filters=ProductFilterOptions(categories=categories),
        current_filters=ProductFilters(search=search, category=category),
    )
