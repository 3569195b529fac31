"""
This module defines the SQLAlchemy models for marketplace listings.

A `ListingModel` is one vehicle offered for sale. It owns its modifications
and images; both are deleted with the listing. Only listings with status
"active" are returned by the search endpoints.
"""
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text, orm
from sqlalchemy.orm import Mapped, mapped_column

from .. import BaseMixins, SqlAlchemyBase

if TYPE_CHECKING:
    from .modifications import ModificationModel

__all__ = ["ListingModel", "ListingImageModel"]


class ListingModel(SqlAlchemyBase, BaseMixins):
    __tablename__ = "listings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String, nullable=False, index=True)
    make: Mapped[str] = mapped_column(String, nullable=False, index=True)
    model: Mapped[str] = mapped_column(String, nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    price: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    engine: Mapped[str | None] = mapped_column(String, nullable=True)
    transmission: Mapped[str | None] = mapped_column(String, nullable=True)
    mileage: Mapped[int | None] = mapped_column(Integer, nullable=True)
    condition: Mapped[str | None] = mapped_column(String, nullable=True)

    # "active", "sold", "draft" or "archived"
    status: Mapped[str] = mapped_column(String, nullable=False, default="active", index=True)

    modification_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    search_boost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    modifications: Mapped[list["ModificationModel"]] = orm.relationship(
        "ModificationModel", back_populates="listing", cascade="all, delete-orphan"
    )
    images: Mapped[list["ListingImageModel"]] = orm.relationship(
        "ListingImageModel", back_populates="listing", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Listing {self.id} {self.year} {self.make} {self.model}>"


class ListingImageModel(SqlAlchemyBase, BaseMixins):
    __tablename__ = "listing_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    listing_id: Mapped[int] = mapped_column(Integer, ForeignKey("listings.id"), nullable=False, index=True)
    listing: Mapped["ListingModel"] = orm.relationship("ListingModel", back_populates="images")

    image_url: Mapped[str] = mapped_column(String, nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
