"""Price observations recorded against an item."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Numeric, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricebook.db.session import Base, TimestampMixin, UUIDPrimaryKey
from pricebook.domain.enums import PriceSourceType

PRIMARY_INDEX_NAME = "uq_item_prices_primary_per_condition"


class ItemPrice(UUIDPrimaryKey, TimestampMixin, Base):
    """One observed price for one item.

    At most one row per (item_id, condition) carries is_primary = true. The
    ledger keeps that true inside its write transactions; the partial unique
    index below rejects anything that slips past it.
    """

    __tablename__ = "item_prices"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="amount_non_negative"),
        CheckConstraint("length(currency) = 3", name="currency_three_letters"),
        CheckConstraint("condition IN ('new', 'used')", name="condition_valid"),
        CheckConstraint("source_type IN ('url', 'manual')", name="source_type_valid"),
        CheckConstraint(
            "source_type = 'url' OR source_url_id IS NULL", name="manual_source_without_url"
        ),
        Index(
            PRIMARY_INDEX_NAME,
            "item_id",
            "condition",
            unique=True,
            postgresql_where=text("is_primary"),
            sqlite_where=text("is_primary"),
        ),
        Index("ix_item_prices_item_id_observed_at", "item_id", "observed_at"),
    )

    item_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("items.id", ondelete="CASCADE"), index=True)
    condition: Mapped[str] = mapped_column(String(10))
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    currency: Mapped[str] = mapped_column(String(3))
    source_type: Mapped[str] = mapped_column(String(10), default=PriceSourceType.MANUAL.value)
    source_url_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("urls.id", ondelete="SET NULL"), default=None, index=True
    )
    source_note: Mapped[Optional[str]] = mapped_column(Text, default=None)
    note: Mapped[Optional[str]] = mapped_column(Text, default=None)
    observed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, server_default=text("false"))

    item: Mapped["Item"] = relationship(back_populates="prices")  # noqa: F821
    source_url_ref: Mapped[Optional["Url"]] = relationship(lazy="joined")  # noqa: F821

    @property
    def source_url(self) -> Optional[str]:
        """Denormalized URL string of the referenced source, if any."""
        return self.source_url_ref.url if self.source_url_ref is not None else None
