"""
Base pydantic model shared by every modmarket schema.

`_MarketModel` gives all schemas camelCase aliases for the JSON wire format
while still accepting snake_case names from Python callers, reads ORM objects
directly, and normalizes naive datetimes to UTC. Schemas that are searchable
by free text list the columns to search in `_searchable_properties`.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import ClassVar

from humps import camelize
from pydantic import BaseModel, ConfigDict, model_validator

__all__ = ["_MarketModel", "SearchType"]


class SearchType(Enum):
    full_text = "full_text"
    """database full-text search (PostgreSQL)"""
    tokenized = "tokenized"
    """every search token must appear in one of the searched columns"""


class _MarketModel(BaseModel):
    _searchable_properties: ClassVar[list[str]] = []
    """
    Column names searched by free text when a query does not name its own
    fields. The first entry is the most relevant one.
    """
    _normalize_search: ClassVar[bool] = False
    """transliterate and lowercase search text before tokenizing"""

    model_config = ConfigDict(
        alias_generator=camelize,
        populate_by_name=True,
        from_attributes=True,
    )

    @model_validator(mode="after")
    def set_tz_info(self) -> _MarketModel:
        """
        Marks naive datetime attributes as UTC. The database stores UTC without
        timezone information.
        """
        for field_name in type(self).model_fields:
            field_value = getattr(self, field_name)
            if isinstance(field_value, datetime) and field_value.tzinfo is None:
                setattr(self, field_name, field_value.replace(tzinfo=UTC))
        return self
