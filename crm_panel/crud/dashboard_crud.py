from azure.cosmos.aio import ContainerProxy
from typing import Dict, List

from crm_panel.crud.inventory_crud import list_quantities
from crm_panel.crud.product_crud import list_products
from crm_panel.models.dashboard import ChartPoint, DashboardMetrics, RankedProduct
from crm_panel.models.product import ProductResponse
from crm_panel.logging_config import tracer

TOP_COUNT = 3
CHART_SIZE = 10
CHART_LABEL_LENGTH = 14


def chart_label(title):
    if not title:
        return ""
    if len(title) > CHART_LABEL_LENGTH:
        return title[:CHART_LABEL_LENGTH] + "…"
    return title


def compute_metrics(
    products: List[ProductResponse], quantities: Dict[int, int]
) -> DashboardMetrics:
    """
    Summarize the catalog and stock for the dashboard.

    The chart shows the union of the top and bottom rankings, sorted by
    quantity descending and capped at ten bars.
    """
    ranked = [
        RankedProduct(
            id=p.id,
            title=p.title,
            color=p.color,
            image_url=p.image_url,
            cantidad=quantities.get(p.id, 0),
        )
        for p in products
    ]
    with_image = sum(1 for p in products if p.image_url)

    top_mas = sorted(ranked, key=lambda p: p.cantidad, reverse=True)[:TOP_COUNT]
    top_menos = sorted(ranked, key=lambda p: p.cantidad)[:TOP_COUNT]

    chart = sorted(top_mas + top_menos, key=lambda p: p.cantidad, reverse=True)[:CHART_SIZE]

    return DashboardMetrics(
        total_productos=len(products),
        total_colores=len({p.color for p in products if p.color}),
        productos_con_imagen=with_image,
        productos_sin_imagen=len(products) - with_image,
        total_unidades=sum(p.cantidad for p in ranked),
        top_mas=top_mas,
        top_menos=top_menos,
        chart_data=[ChartPoint(name=chart_label(p.title), cantidad=p.cantidad) for p in chart],
    )


async def get_dashboard_metrics(
    products_container: ContainerProxy,
    inventory_container: ContainerProxy,
) -> DashboardMetrics:
    with tracer.start_as_current_span("get_dashboard_metrics"):
        products = await list_products(products_container)
        quantities = await list_quantities(inventory_container)
        return compute_metrics(products, quantities)
