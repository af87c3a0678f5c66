from typing import Optional
from enum import Enum

from azure.cosmos.aio import CosmosClient, ContainerProxy
from azure.identity.aio import DefaultAzureCredential
from azure.storage.blob.aio import BlobServiceClient, ContainerClient

from crm_panel.config import Settings
from crm_panel.logging_config import get_child_logger

logger = get_child_logger("db")


class ContainerType(str, Enum):
    PRODUCTS = "products"
    INVENTORY = "inventory"
    USERS = "users"


class Backend:
    """
    Handle on the hosted services the panel delegates to.

    One instance per process, created from `Settings` and handed to routes
    through FastAPI dependencies. Clients are opened lazily on first use.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._credential: Optional[DefaultAzureCredential] = None
        self._cosmos: Optional[CosmosClient] = None
        self._blob_service: Optional[BlobServiceClient] = None
        self._containers = {
            ContainerType.PRODUCTS: settings.products_container,
            ContainerType.INVENTORY: settings.inventory_container,
            ContainerType.USERS: settings.users_container,
        }

    def _ensure_credential(self) -> DefaultAzureCredential:
        if self._credential is None:
            self._credential = DefaultAzureCredential()
        return self._credential

    def _ensure_cosmos(self) -> CosmosClient:
        if self._cosmos is None:
            logger.info("Creating CosmosDB client with DefaultAzureCredential")
            self._cosmos = CosmosClient(
                self.settings.cosmosdb_endpoint, self._ensure_credential()
            )
        return self._cosmos

    def get_container(self, container_type: ContainerType) -> ContainerProxy:
        container_name = self._containers.get(container_type)
        if not container_name:
            raise ValueError(
                f"Container '{container_type}' not configured. "
                f"Valid options: {[c.value for c in self._containers]}"
            )

        database = self._ensure_cosmos().get_database_client(
            self.settings.cosmosdb_database
        )
        return database.get_container_client(container_name)

    def get_image_container(self) -> ContainerClient:
        if self._blob_service is None:
            logger.info("Creating Blob Storage client with DefaultAzureCredential")
            self._blob_service = BlobServiceClient(
                account_url=self.settings.storage_account_url,
                credential=self._ensure_credential(),
            )
        return self._blob_service.get_container_client(self.settings.image_container)

    async def close(self) -> None:
        if self._cosmos is not None:
            await self._cosmos.close()
            self._cosmos = None
        if self._blob_service is not None:
            await self._blob_service.close()
            self._blob_service = None
        if self._credential is not None:
            await self._credential.close()
            self._credential = None
