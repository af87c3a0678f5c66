import os
import re
from types import SimpleNamespace

import pytest

os.environ.setdefault("COSMOSDB_ENDPOINT", "https://test-account.documents.azure.com:443/")
os.environ.setdefault("COSMOSDB_DATABASE", "crm")
os.environ.setdefault("AZURE_STORAGE_ACCOUNT_URL", "https://testaccount.blob.core.windows.net")
os.environ.setdefault("SESSION_SECRET", "test-secret")

from azure.core.exceptions import AzureError
from azure.cosmos.exceptions import CosmosHttpResponseError
from fastapi.testclient import TestClient

from crm_panel.config import Settings
from crm_panel.crud.user_crud import get_password_hash
from crm_panel.dependencies import (
    get_image_store,
    get_inventory_container,
    get_products_container,
    get_users_container,
)
from crm_panel.storage import ImageStore

BLOB_BASE_URL = "https://testaccount.blob.core.windows.net/product-images"


async def _iterate(items):
    for item in items:
        yield item


class FakeContainer:
    """
    In-memory stand-in for an async Cosmos container.

    Understands the handful of query shapes the CRUD layer issues: the
    @search/@color/@category/@email parameters and ``SELECT VALUE c.<field>``.
    """

    def __init__(self, items=()):
        self.items = {}
        for item in items:
            self.items[str(item["id"])] = dict(item)
        self.queries = []
        self.upserts = []
        self.fail_queries = False
        self.fail_upsert_ids = set()

    def query_items(self, query, parameters=None, **kwargs):
        self.queries.append((query, parameters))
        if self.fail_queries:
            raise CosmosHttpResponseError(status_code=503, message="service unavailable")

        params = {p["name"]: p["value"] for p in parameters or []}
        docs = [dict(doc) for doc in self.items.values()]
        if "@search" in params:
            needle = params["@search"].lower()
            docs = [d for d in docs if needle in (d.get("title") or "").lower()]
        for field in ("color", "category", "email"):
            if f"@{field}" in params:
                docs = [d for d in docs if d.get(field) == params[f"@{field}"]]

        projection = re.match(r"SELECT VALUE c\.(\w+)", query)
        if projection:
            field = projection.group(1)
            docs = [d[field] for d in docs if isinstance(d.get(field), str)]
        return _iterate(docs)

    async def read_item(self, item, partition_key):
        if item not in self.items:
            raise CosmosHttpResponseError(status_code=404, message="not found")
        return dict(self.items[item])

    async def upsert_item(self, body):
        if body["product_id"] in self.fail_upsert_ids:
            raise CosmosHttpResponseError(status_code=500, message="upsert exploded")
        self.upserts.append(dict(body))
        self.items[body["id"]] = dict(body)
        return dict(body)

    async def patch_item(self, item, partition_key, patch_operations):
        if item not in self.items:
            raise CosmosHttpResponseError(status_code=404, message="not found")
        doc = self.items[item]
        for op in patch_operations:
            doc[op["path"].lstrip("/")] = op["value"]
        return dict(doc)


class FakeBlobContainer:
    def __init__(self):
        self.uploads = []
        self.fail = False

    async def upload_blob(self, name, data, overwrite=False, content_settings=None):
        if self.fail:
            raise AzureError("blob service unavailable")
        self.uploads.append(
            {
                "name": name,
                "data": data,
                "overwrite": overwrite,
                "content_settings": content_settings,
            }
        )
        return SimpleNamespace(url=f"{BLOB_BASE_URL}/{name}")


PRODUCTS = [
    {"id": "1", "title": "Downline 1039", "color": "Azul", "category": "Leggings", "image_url": None},
    {"id": "2", "title": "Body Lila", "color": "Lila", "category": "Bodies", "image_url": "https://img/2.png"},
    {"id": "3", "title": "top azul", "color": "Azul", "category": "Tops", "image_url": None},
    {"id": "4", "title": "Calza Negra", "color": "Negro", "category": "Leggings", "image_url": "https://img/4.png"},
]

INVENTORY = [
    {"id": "1", "product_id": 1, "cantidad": 10, "updated_at": "2026-01-01T00:00:00+00:00"},
    {"id": "2", "product_id": 2, "cantidad": 3, "updated_at": "2026-01-01T00:00:00+00:00"},
    {"id": "4", "product_id": 4, "cantidad": 25, "updated_at": "2026-01-01T00:00:00+00:00"},
]

USER_PASSWORD = "s3cret-pass"


@pytest.fixture
def settings():
    return Settings(
        cosmosdb_endpoint="https://test-account.documents.azure.com:443/",
        cosmosdb_database="crm",
        storage_account_url="https://testaccount.blob.core.windows.net",
        session_secret="test-secret",
    )


@pytest.fixture
def products_container():
    return FakeContainer(PRODUCTS)


@pytest.fixture
def inventory_container():
    return FakeContainer(INVENTORY)


@pytest.fixture
def users_container():
    return FakeContainer(
        [
            {
                "id": "u-1",
                "email": "ana@example.com",
                "name": "Ana",
                "hashed_password": get_password_hash(USER_PASSWORD),
            },
            {
                "id": "u-2",
                "email": "luis@example.com",
                "hashed_password": get_password_hash(USER_PASSWORD),
            },
        ]
    )


@pytest.fixture
def blob_container():
    return FakeBlobContainer()


@pytest.fixture
def app(settings, products_container, inventory_container, users_container, blob_container):
    from function_app import create_app

    app = create_app(settings)
    app.dependency_overrides[get_products_container] = lambda: products_container
    app.dependency_overrides[get_inventory_container] = lambda: inventory_container
    app.dependency_overrides[get_users_container] = lambda: users_container
    app.dependency_overrides[get_image_store] = lambda: ImageStore(blob_container)
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_client(client):
    response = client.post(
        "/login",
        data={"email": "ana@example.com", "password": USER_PASSWORD},
        follow_redirects=False,
    )
    assert response.status_code == 303
    return client
