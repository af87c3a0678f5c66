from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.cosmos.aio import ContainerProxy
from typing import List, Optional

from pydantic import ValidationError

from crm_panel.colors import get_color_hex
from crm_panel.models.product import ProductResponse

from crm_panel.exceptions import (
    ProductNotFoundError,
    DatabaseError,
)

from crm_panel.logging_config import get_child_logger, tracer

logger = get_child_logger("crud.product")

# Fields that may be used for distinct-value lookups
FILTER_FIELDS = ("color", "category")


def sort_by_title(products: List[ProductResponse]) -> List[ProductResponse]:
    """
    Order products by title ascending; untitled products go last.
    """
    return sorted(products, key=lambda p: (p.title is None, (p.title or "").lower()))


def build_product_query(
    search: str = "", color: str = "", category: str = ""
) -> tuple:
    """
    Build the Cosmos SQL query and parameters for a filtered product listing.

    The title match is a case-insensitive substring match; color and
    category are exact matches. Empty filters are left out.
    """
    conditions = []
    params = []
    if search:
        conditions.append("CONTAINS(c.title, @search, true)")
        params.append({"name": "@search", "value": search})
    if color:
        conditions.append("c.color = @color")
        params.append({"name": "@color", "value": color})
    if category:
        conditions.append("c.category = @category")
        params.append({"name": "@category", "value": category})

    query = "SELECT * FROM c"
    if conditions:
        query += " WHERE " + " AND ".join(conditions)
    return query, params


async def list_products(
    container: ContainerProxy,
    search: str = "",
    color: str = "",
    category: str = "",
) -> List[ProductResponse]:
    """
    Retrieve all products matching the filters, ordered by title.
    """
    with tracer.start_as_current_span("list_products") as span:
        span.set_attribute("filter.search", search)
        span.set_attribute("filter.color", color)
        span.set_attribute("filter.category", category)

        logger.info(
            "Listing products",
            extra={"search": search, "color": color, "category": category},
        )

        query, params = build_product_query(search, color, category)

        try:
            products = []
            async for item in container.query_items(query=query, parameters=params):
                try:
                    product = ProductResponse.model_validate(item)
                except ValidationError as e:
                    logger.debug(f"Pydantic validation errors: {e.errors()}")
                    continue
                product.color_hex = get_color_hex(product.color)
                products.append(product)

            span.set_attribute("products.count", len(products))
            logger.info(f"Retrieved {len(products)} products", extra={"count": len(products)})
            return sort_by_title(products)

        except CosmosHttpResponseError as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", "cosmos_http_error")
            span.set_attribute("error.status_code", e.status_code)

            logger.error(
                "Cosmos DB error during product listing",
                extra={"status_code": e.status_code, "error_message": e.message},
                exc_info=True,
            )
            raise DatabaseError(
                f"Cosmos DB error during product listing: Status Code {e.status_code}, Message: {e.message}",
                original_exception=e,
            ) from e


async def list_filter_values(container: ContainerProxy, field: str) -> List[str]:
    """
    Distinct non-null values of `field` across all products, in first-seen order.
    """
    if field not in FILTER_FIELDS:
        raise ValueError(f"Unsupported filter field '{field}'. Valid options: {list(FILTER_FIELDS)}")

    query = f"SELECT VALUE c.{field} FROM c WHERE IS_STRING(c.{field})"
    try:
        values = []
        async for value in container.query_items(query=query):
            if value and value not in values:
                values.append(value)
        return values
    except CosmosHttpResponseError as e:
        logger.error(
            f"Cosmos DB error listing distinct {field} values: Status Code {e.status_code}, Message: {e.message}",
            exc_info=True,
        )
        raise DatabaseError(
            f"Cosmos DB error listing {field} values: Status Code {e.status_code}, Message: {e.message}",
            original_exception=e,
        ) from e


async def get_product_by_id(container: ContainerProxy, product_id: int) -> ProductResponse:
    """
    Retrieve a product by its integer id.

    Raises:
        ProductNotFoundError: If the product doesn't exist
        DatabaseError: If a database operation fails
    """
    try:
        item = await container.read_item(item=str(product_id), partition_key=str(product_id))
        return ProductResponse.model_validate(item)
    except CosmosHttpResponseError as e:
        if e.status_code == 404:
            logger.warning("Product not found", extra={"product_id": product_id})
            raise ProductNotFoundError(f"Product with ID '{product_id}' not found") from e
        logger.error(
            f"Cosmos DB error retrieving product {product_id}: Status {e.status_code}, Msg: {e.message}",
            exc_info=True,
        )
        raise DatabaseError(
            f"Cosmos DB error retrieving product {product_id}: Status {e.status_code}, Msg: {e.message}",
            original_exception=e,
        ) from e


async def set_product_image(
    container: ContainerProxy,
    product_id: int,
    image_url: Optional[str],
) -> ProductResponse:
    """
    Replace or clear (``image_url=None``) the image reference of a product.
    The blob itself is never deleted here.

    Raises:
        ProductNotFoundError: If the product doesn't exist
        DatabaseError: If a database operation fails
    """
    with tracer.start_as_current_span("set_product_image") as span:
        span.set_attribute("product.id", product_id)
        span.set_attribute("image.cleared", image_url is None)

        patch_operations = [{"op": "set", "path": "/image_url", "value": image_url}]
        try:
            result = await container.patch_item(
                item=str(product_id),
                partition_key=str(product_id),
                patch_operations=patch_operations,
            )
            logger.info(
                "Product image updated",
                extra={"product_id": product_id, "cleared": image_url is None},
            )
            return ProductResponse.model_validate(result)
        except CosmosHttpResponseError as e:
            span.set_attribute("error", True)
            span.set_attribute("error.status_code", e.status_code)
            if e.status_code == 404:
                raise ProductNotFoundError(f"Product with ID '{product_id}' not found") from e
            logger.error(
                f"Cosmos DB error during image update: Status Code {e.status_code}, Message: {e.message}",
                exc_info=True,
            )
            raise DatabaseError(
                f"Cosmos DB error during image update: Status Code {e.status_code}, Message: {e.message}",
                original_exception=e,
            ) from e
