import uuid
from typing import Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricebook.db.session import Base, TimestampMixin, UUIDPrimaryKey
from pricebook.domain.enums import ItemStatus


class Item(UUIDPrimaryKey, TimestampMixin, Base):
    """A candidate product inside a project. Owns its price history."""

    __tablename__ = "items"

    project_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    manufacturer: Mapped[Optional[str]] = mapped_column(String(120), default=None)
    model: Mapped[str] = mapped_column(String(150))
    source_url_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("urls.id", ondelete="SET NULL"), default=None, index=True
    )
    status: Mapped[str] = mapped_column(String(20), default=ItemStatus.ACTIVE.value)
    note: Mapped[Optional[str]] = mapped_column(Text, default=None)

    project: Mapped["Project"] = relationship(back_populates="items")  # noqa: F821
    prices: Mapped[list["ItemPrice"]] = relationship(  # noqa: F821
        back_populates="item", cascade="all, delete-orphan", passive_deletes=True
    )
