from pydantic import BaseModel
from typing import List, Optional

from crm_panel.models.user import UserSession


class RankedProduct(BaseModel):
    id: int
    title: Optional[str] = None
    color: Optional[str] = None
    image_url: Optional[str] = None
    cantidad: int = 0


class ChartPoint(BaseModel):
    name: str
    cantidad: int


class DashboardMetrics(BaseModel):
    total_productos: int
    total_colores: int
    productos_con_imagen: int
    productos_sin_imagen: int
    total_unidades: int
    top_mas: List[RankedProduct]
    top_menos: List[RankedProduct]
    chart_data: List[ChartPoint]


class DashboardResponse(BaseModel):
    user: UserSession
    metrics: DashboardMetrics
