from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, Text, orm
from sqlalchemy.orm import Mapped, mapped_column

from .. import BaseMixins, SqlAlchemyBase

if TYPE_CHECKING:
    from .listings import ListingModel

__all__ = ["ModificationModel"]


class ModificationModel(SqlAlchemyBase, BaseMixins):
    """
    A single aftermarket modification fitted to a listed vehicle
    (e.g. a turbo kit in the "engine" category).
    """

    __tablename__ = "modifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    listing_id: Mapped[int] = mapped_column(Integer, ForeignKey("listings.id"), nullable=False, index=True)
    listing: Mapped["ListingModel"] = orm.relationship("ListingModel", back_populates="modifications")

    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String, nullable=False, index=True)
