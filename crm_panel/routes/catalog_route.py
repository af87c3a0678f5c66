from fastapi import APIRouter, Depends, File, HTTPException, Path, Query, UploadFile, status
from azure.cosmos.aio import ContainerProxy

from crm_panel.crud.product_crud import (
    get_product_by_id,
    list_filter_values,
    list_products,
    set_product_image,
)
from crm_panel.dependencies import get_image_store, get_products_container
from crm_panel.exceptions import (
    DatabaseError,
    ProductNotFoundError,
    StorageError,
    ValidationError,
)
from crm_panel.models.product import (
    ImageUpdateResponse,
    ProductFilterOptions,
    ProductFilters,
    ProductList,
)
from crm_panel.models.user import UserSession
from crm_panel.session import require_user
from crm_panel.storage import ImageStore
from crm_panel.logging_config import get_child_logger, tracer

logger = get_child_logger("routes.catalog")

router = APIRouter(prefix="/catalogo", tags=["catalog"])


@router.get("", response_model=ProductList)
async def get_catalog(
    search: str = Query("", title="Case-insensitive title substring"),
    color: str = Query("", title="Exact color label"),
    user: UserSession = Depends(require_user),
    container: ContainerProxy = Depends(get_products_container),
):
    try:
        items = await list_products(container, search=search, color=color)
        colores = await list_filter_values(container, "color")
    except DatabaseError as e:
        logger.error(f"Database error: {e}", exc_info=e.original_exception)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
    return ProductList(
        items=items,
        filters=ProductFilterOptions(colores=colores),
        current_filters=ProductFilters(search=search, color=color),
    )


@router.post("/{product_id}/image", response_model=ImageUpdateResponse)
async def upload_product_image(
    product_id: int = Path(..., title="The ID of the product"),
    image: UploadFile = File(...),
    user: UserSession = Depends(require_user),
    container: ContainerProxy = Depends(get_products_container),
    images: ImageStore = Depends(get_image_store),
):
    with tracer.start_as_current_span("api_upload_product_image") as span:
        span.set_attribute("product.id", product_id)
        try:
            await get_product_by_id(container, product_id)
            data = await image.read()
            url = await images.upload(
                product_id,
                filename=image.filename,
                content_type=image.content_type,
                data=data,
            )
            product = await set_product_image(container, product_id, url)
        except ValidationError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except ProductNotFoundError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
        except (DatabaseError, StorageError) as e:
            span.set_attribute("error", True)
            logger.error(
                f"Image upload failed for product {product_id}: {e}",
                exc_info=e.original_exception,
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(e),
            )
        return ImageUpdateResponse(id=product.id, image_url=product.image_url)


@router.delete("/{product_id}/image", response_model=ImageUpdateResponse)
async def delete_product_image(
    product_id: int = Path(..., title="The ID of the product"),
    user: UserSession = Depends(require_user),
    container: ContainerProxy = Depends(get_products_container),
):
    try:
        product = await set_product_image(container, product_id, None)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DatabaseError as e:
        logger.error(f"Database error: {e}", exc_info=e.original_exception)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
    return ImageUpdateResponse(id=product.id, image_url=None)
