import pytest

from crm_panel.crud.dashboard_crud import chart_label, compute_metrics, get_dashboard_metrics
from crm_panel.crud.inventory_crud import list_inventory, list_quantities, upsert_inventory
from crm_panel.crud.product_crud import (
    build_product_query,
    get_product_by_id,
    list_filter_values,
    list_products,
    set_product_image,
)
from crm_panel.crud.user_crud import authenticate_user
from crm_panel.exceptions import DatabaseError, PartialBatchError, ProductNotFoundError
from crm_panel.models.inventory import InventoryChange
from crm_panel.models.product import ProductResponse

from conftest import USER_PASSWORD


def test_build_product_query_skips_empty_filters():
    query, params = build_product_query()
    assert query == "SELECT * FROM c"
    assert params == []

    query, params = build_product_query(search="azul", color="Azul")
    assert query == "SELECT * FROM c WHERE CONTAINS(c.title, @search, true) AND c.color = @color"
    assert [p["name"] for p in params] == ["@search", "@color"]


async def test_list_products_filters_case_insensitively_and_sorts_by_title(products_container):
    products = await list_products(products_container, search="AZUL")

    assert [p.id for p in products] == [3]

    everything = await list_products(products_container)
    assert [p.title for p in everything] == ["Body Lila", "Calza Negra", "Downline 1039", "top azul"]
    assert everything[0].color_hex == "#C084FC"


async def test_list_products_puts_untitled_last(products_container):
    products_container.items["9"] = {"id": "9", "title": None, "color": None}

    products = await list_products(products_container)

    assert products[-1].id == 9
    assert products[-1].color_hex == "#CCCCCC"


async def test_list_products_wraps_cosmos_errors(products_container):
    products_container.fail_queries = True

    with pytest.raises(DatabaseError) as exc_info:
        await list_products(products_container)

    assert "service unavailable" in str(exc_info.value)


async def test_list_filter_values_are_distinct(products_container):
    assert await list_filter_values(products_container, "color") == ["Azul", "Lila", "Negro"]
    with pytest.raises(ValueError):
        await list_filter_values(products_container, "title")


async def test_get_product_by_id_not_found(products_container):
    assert (await get_product_by_id(products_container, 2)).title == "Body Lila"
    with pytest.raises(ProductNotFoundError):
        await get_product_by_id(products_container, 404)


async def test_set_product_image_replaces_and_clears(products_container):
    product = await set_product_image(products_container, 1, "https://img/new.png")
    assert product.image_url == "https://img/new.png"

    product = await set_product_image(products_container, 1, None)
    assert product.image_url is None
    assert products_container.items["1"]["image_url"] is None


async def test_list_inventory_defaults_missing_records_to_zero(products_container, inventory_container):
    listing = await list_inventory(products_container, inventory_container, color="Azul")

    assert [(row.id, row.cantidad) for row in listing.items] == [(1, 10), (3, 0)]
    assert listing.filters.colores == ["Azul", "Lila", "Negro"]
    assert listing.current_filters.color == "Azul"


async def test_list_quantities(inventory_container):
    assert await list_quantities(inventory_container) == {1: 10, 2: 3, 4: 25}


async def test_upsert_inventory_writes_in_order(inventory_container):
    changes = [InventoryChange(product_id=3, cantidad=5), InventoryChange(product_id=1, cantidad=2)]

    applied = await upsert_inventory(inventory_container, changes)

    assert applied == [3, 1]
    assert [(u["product_id"], u["cantidad"]) for u in inventory_container.upserts] == [(3, 5), (1, 2)]
    assert inventory_container.items["3"]["id"] == "3"
    assert inventory_container.items["3"]["updated_at"]


async def test_upsert_inventory_reports_partial_application(inventory_container):
    inventory_container.fail_upsert_ids = {2}
    changes = [
        InventoryChange(product_id=1, cantidad=7),
        InventoryChange(product_id=2, cantidad=8),
        InventoryChange(product_id=4, cantidad=9),
    ]

    with pytest.raises(PartialBatchError) as exc_info:
        await upsert_inventory(inventory_container, changes)

    assert exc_info.value.applied == [1]
    assert exc_info.value.failed_product_id == 2
    assert inventory_container.items["1"]["cantidad"] == 7
    assert inventory_container.items["4"]["cantidad"] == 25


def test_compute_metrics():
    products = [
        ProductResponse(id=1, title="A very long product title", color="Azul", image_url="x"),
        ProductResponse(id=2, title="B", color="Azul"),
        ProductResponse(id=3, title="C", color="Lila"),
        ProductResponse(id=4, title="D"),
    ]

    metrics = compute_metrics(products, {1: 10, 2: 5, 4: 1})

    assert metrics.total_productos == 4
    assert metrics.total_colores == 2
    assert metrics.productos_con_imagen == 1
    assert metrics.productos_sin_imagen == 3
    assert metrics.total_unidades == 16
    assert [p.id for p in metrics.top_mas] == [1, 2, 4]
    assert [p.id for p in metrics.top_menos] == [3, 4, 2]
    assert [p.cantidad for p in metrics.chart_data] == [10, 5, 5, 1, 1, 0]
    assert metrics.chart_data[0].name == "A very long pr…"


def test_chart_label():
    assert chart_label(None) == ""
    assert chart_label("Short") == "Short"
    assert chart_label("x" * 15) == "x" * 14 + "…"


async def test_get_dashboard_metrics(products_container, inventory_container):
    metrics = await get_dashboard_metrics(products_container, inventory_container)

    assert metrics.total_productos == 4
    assert metrics.total_unidades == 38
    assert metrics.top_mas[0].id == 4


async def test_authenticate_user(users_container):
    user = await authenticate_user(users_container, "ana@example.com", USER_PASSWORD)

    assert user.name == "Ana"
    assert user.last_sign_in_at is not None
    assert users_container.items["u-1"]["last_sign_in_at"] == user.last_sign_in_at


async def test_authenticate_user_falls_back_to_email_name(users_container):
    user = await authenticate_user(users_container, "luis@example.com", USER_PASSWORD)

    assert user.name == "luis"


async def test_authenticate_user_rejects_bad_credentials(users_container):
    assert await authenticate_user(users_container, "ana@example.com", "wrong") is None
    assert await authenticate_user(users_container, "nobody@example.com", USER_PASSWORD) is None
