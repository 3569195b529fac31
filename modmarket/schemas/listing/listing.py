from datetime import datetime
from typing import ClassVar

from .._modmarket import _MarketModel

__all__ = ["ListingRead"]


class ListingRead(_MarketModel):
    """
    Public view of a listing. Its fields are also the default columns
    returned by the search endpoints.
    """

    _searchable_properties: ClassVar[list[str]] = ["title", "make", "model", "description"]

    id: int
    title: str
    make: str
    model: str
    year: int
    price: float
    location: str | None = None
    description: str | None = None
    engine: str | None = None
    transmission: str | None = None
    mileage: int | None = None
    condition: str | None = None
    status: str
    modification_count: int = 0
    view_count: int = 0
    created_at: datetime | None = None
