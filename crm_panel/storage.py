import time
from typing import Optional

from azure.core.exceptions import AzureError
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import ContainerClient

from crm_panel.exceptions import StorageError, ValidationError
from crm_panel.logging_config import get_child_logger, tracer

logger = get_child_logger("storage")

MAX_IMAGE_BYTES = 5_000_000
CACHE_CONTROL = "max-age=3600"


def build_image_key(product_id: int, filename: str, now_ms: Optional[int] = None) -> str:
    """
    Blob name for a product image: ``product-{id}-{epoch_ms}.{ext}``.
    The extension is whatever follows the last dot of the original name.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    extension = filename.rsplit(".", 1)[-1]
    return f"product-{product_id}-{now_ms}.{extension}"


def validate_image(filename: Optional[str], content_type: Optional[str], data: bytes) -> None:
    if not filename or not data:
        raise ValidationError("Invalid data: an image file is required.")
    if not (content_type or "").startswith("image/"):
        raise ValidationError("Only image files are allowed.")
    if len(data) > MAX_IMAGE_BYTES:
        raise ValidationError(f"Image exceeds the {MAX_IMAGE_BYTES} byte limit.")


class ImageStore:
    """
    Product images in a public-read blob container.
    """

    def __init__(self, container: ContainerClient):
        self._container = container

    async def upload(
        self,
        product_id: int,
        filename: str,
        content_type: str,
        data: bytes,
        now_ms: Optional[int] = None,
    ) -> str:
        """
        Upload an image and return its public URL.

        Raises:
            ValidationError: If the file is missing, not an image, or too large
            StorageError: If the upload fails
        """
        validate_image(filename, content_type, data)
        key = build_image_key(product_id, filename, now_ms)

        with tracer.start_as_current_span("upload_product_image") as span:
            span.set_attribute("product.id", product_id)
            span.set_attribute("blob.name", key)
            span.set_attribute("blob.size", len(data))
            try:
                blob = await self._container.upload_blob(
                    name=key,
                    data=data,
                    overwrite=True,
                    content_settings=ContentSettings(
                        content_type=content_type, cache_control=CACHE_CONTROL
                    ),
                )
            except AzureError as e:
                span.set_attribute("error", True)
                logger.error(
                    "Blob upload failed",
                    extra={"product_id": product_id, "blob_name": key},
                    exc_info=True,
                )
                raise StorageError(
                    f"Image upload failed: {e}", original_exception=e
                ) from e

        logger.info("Uploaded product image", extra={"product_id": product_id, "blob_name": key})
        return blob.url
