from pydantic import BaseModel, ConfigDict
from typing import Optional, List


class ProductResponse(BaseModel):
    """
    Product as stored in the products container.
    The Cosmos document id is the decimal string of the integer id.
    """

    id: int
    title: Optional[str] = None
    color: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    color_hex: Optional[str] = None  # swatch for the color label

    model_config = ConfigDict(extra="ignore")


class ProductFilters(BaseModel):
    """
    Filters currently applied to a product listing, echoed back to the client.
    """

    search: str = ""
    color: str = ""
    category: str = ""


class ProductFilterOptions(BaseModel):
    """
    Distinct values offered in the filter dropdowns.
    """

    colores: List[str] = []
    categories: List[str] = []


class ProductList(BaseModel):
    """
    Response model for the products and catalog listings.
    """

    items: List[ProductResponse]
    filters: ProductFilterOptions
    current_filters: ProductFilters

    model_config = ConfigDict(extra="forbid")


class ImageUpdateResponse(BaseModel):
    """
    Result of replacing or clearing a product image.
    """

    id: int
    image_url: Optional[str] = None
