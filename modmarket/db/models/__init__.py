from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SqlAlchemyBase(DeclarativeBase):
    pass


class BaseMixins:
    """
    Timestamp columns shared by every table.

    `created_at` is set on insert; `updated_at` is refreshed on every update.
    """

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


from .listings import *  # noqa: E402, F403
