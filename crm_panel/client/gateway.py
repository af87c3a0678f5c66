from typing import List, Protocol, Sequence

import httpx
from azure.cosmos.aio import ContainerProxy

from crm_panel.crud.inventory_crud import list_inventory, upsert_inventory
from crm_panel.exceptions import GatewayError, PartialBatchError
from crm_panel.models.inventory import (
    InventoryBatchResult,
    InventoryBatchUpsert,
    InventoryChange,
    InventoryListing,
)
from crm_panel.logging_config import get_child_logger

logger = get_child_logger("client.gateway")


class InventoryGateway(Protocol):
    """Access from the inventory editor to the server."""

    async def fetch_inventory(self, search: str = "", color: str = "") -> InventoryListing:
        """Fetch the joined product/quantity listing."""

    async def upsert_batch(self, changes: Sequence[InventoryChange]) -> List[int]:
        """Submit one batch commit; returns the confirmed product ids."""


class HttpInventoryGateway:
    """
    Talks to the panel API over HTTP. The client must carry the session
    cookie of a signed-in user.
    """

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def fetch_inventory(self, search: str = "", color: str = "") -> InventoryListing:
        params = {name: value for name, value in (("search", search), ("color", color)) if value}
        response = await self._client.get("/inventario", params=params)
        self._raise_for_status(response)
        return InventoryListing.model_validate(response.json())

    async def upsert_batch(self, changes: Sequence[InventoryChange]) -> List[int]:
        body = InventoryBatchUpsert(changes=list(changes)).model_dump(by_alias=True)
        response = await self._client.post("/inventario/batch", json=body)
        self._raise_for_status(response)
        return InventoryBatchResult.model_validate(response.json()).applied

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        if response.is_redirect:
            raise GatewayError("Session expired; sign in again.", status_code=response.status_code)
        try:
            payload = response.json()
        except ValueError:
            payload = {"detail": response.text}
        if isinstance(payload, str):
            payload = {"detail": payload}
        elif payload is None:
            payload = {}
        elif not isinstance(payload, dict):
            payload = {"detail": response.text}
        detail = str(payload.get("detail") or response.reason_phrase)
        logger.warning(
            "Server rejected request",
            extra={"status_code": response.status_code, "detail": detail},
        )
        if "applied" in payload:
            raise PartialBatchError(detail, applied=payload["applied"])
        raise GatewayError(detail, status_code=response.status_code)


class CosmosInventoryGateway:
    """Calls the CRUD layer directly, for jobs running next to the database."""

    def __init__(self, products: ContainerProxy, inventory: ContainerProxy):
        self._products = products
        self._inventory = inventory

    async def fetch_inventory(self, search: str = "", color: str = "") -> InventoryListing:
        return await list_inventory(self._products, self._inventory, search=search, color=color)

    async def upsert_batch(self, changes: Sequence[InventoryChange]) -> List[int]:
        return await upsert_inventory(self._inventory, changes)
