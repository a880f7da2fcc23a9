"""Transactional writes that keep one primary price per (item, condition).

Every write runs in a single transaction on the caller's session. Demotion of
the previous primary and the write of the new one commit together or not at
all; the partial unique index on item_prices rejects anything that races past.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from pricebook.db.models.item_price import ItemPrice
from pricebook.db.repos.item_price_repo import ItemPriceRepo
from pricebook.domain.enums import PriceCondition, PriceSourceType
from pricebook.exceptions import LedgerValidationError
from pricebook.ledger.fields import PriceCreate, PriceUpdate

logger = logging.getLogger(__name__)


def _value(v):
    """Enum members are stored by value."""
    return v.value if isinstance(v, (PriceCondition, PriceSourceType)) else v


class PrimaryEnforcer:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repo = ItemPriceRepo(session)

    async def create(self, item_id: uuid.UUID, fields: PriceCreate) -> ItemPrice:
        """Insert one price; when it is primary, demote the current primary first."""
        condition = PriceCondition(fields.condition).value
        values = {
            "item_id": item_id,
            "condition": condition,
            "amount": fields.amount,
            "currency": fields.currency,
            "source_type": PriceSourceType(fields.source_type).value,
            "source_url_id": fields.source_url_id,
            "source_note": fields.source_note,
            "note": fields.note,
            "is_primary": fields.is_primary,
        }
        if fields.observed_at is not None:
            values["observed_at"] = fields.observed_at

        async with self._repo.transaction():
            if fields.is_primary:
                demoted = await self._repo.demote_primaries(item_id, condition)
                if demoted:
                    logger.debug("Demoted %d primary price(s) for item %s (%s)", demoted, item_id, condition)
            price = await self._repo.add(ItemPrice(**values))
            price_id = price.id

        return await self._read_back(price_id)

    async def update(self, price_id: uuid.UUID, changes: PriceUpdate) -> Optional[ItemPrice]:
        """Apply a partial update under a row lock. Returns None if the row is gone."""
        async with self._repo.transaction():
            price = await self._repo.get_by_id(price_id, for_update=True)
            if price is None:
                await self._session.rollback()
                return None

            values = {name: _value(v) for name, v in changes.present()}
            if values.get("source_type") == PriceSourceType.MANUAL.value:
                values["source_url_id"] = None
            self._check_source(price, values)

            condition = values.get("condition", price.condition)
            is_primary = values.get("is_primary", price.is_primary)
            if is_primary:
                demoted = await self._repo.demote_primaries(price.item_id, condition, exclude_id=price.id)
                if demoted:
                    logger.debug(
                        "Demoted %d primary price(s) for item %s (%s)", demoted, price.item_id, condition
                    )

            for name, value in values.items():
                setattr(price, name, value)
            await self._session.flush()

        return await self._repo.get_by_id(price_id, reload=True)

    async def delete(self, price_id: uuid.UUID) -> bool:
        """Hard delete. False means there was nothing to delete."""
        async with self._repo.transaction():
            deleted = await self._repo.delete_by_id(price_id)
        return deleted

    @staticmethod
    def _check_source(price: ItemPrice, values: dict) -> None:
        if "source_type" not in values and "source_url_id" not in values:
            return
        source_type = values.get("source_type", price.source_type)
        source_url_id = values.get("source_url_id", price.source_url_id)
        if source_type == PriceSourceType.URL.value and source_url_id is None:
            raise LedgerValidationError("sourceUrlId is required when sourceType is url")
        if source_type == PriceSourceType.MANUAL.value and source_url_id is not None:
            raise LedgerValidationError("sourceUrlId must be null when sourceType is manual")

    async def _read_back(self, price_id: uuid.UUID) -> ItemPrice:
        price = await self._repo.get_by_id(price_id, reload=True)
        if price is None:
            raise RuntimeError(f"Price {price_id} vanished after commit")
        return price
