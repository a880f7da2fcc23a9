"""PriceLedger: the operations the HTTP layer calls for item prices."""

from __future__ import annotations

import uuid
from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from pricebook.config import settings
from pricebook.db.models.item_price import ItemPrice
from pricebook.db.repos.item_price_repo import ItemPriceRepo
from pricebook.db.repos.url_repo import UrlRepo
from pricebook.domain.enums import PriceCondition, PriceSourceType
from pricebook.exceptions import LedgerValidationError
from pricebook.ledger.fields import NULLABLE_FIELDS, PriceCreate, PriceUpdate
from pricebook.ledger.primary import PrimaryEnforcer
from pricebook.ledger.summary import PriceSummary, summarize

# NUMERIC(12,2): ten integer digits
MAX_AMOUNT = Decimal("10000000000")
_CENT = Decimal("0.01")


def normalize_currency(value) -> str:
    """Upper-case first: some letters grow when upper-cased ("ß" -> "SS")."""
    code = value.strip().upper() if isinstance(value, str) else None
    if code is None or len(code) != 3 or not (code.isascii() and code.isalpha()):
        raise LedgerValidationError("currency must be a 3-letter code", {"currency": value})
    return code


def _check_amount(value) -> Decimal:
    """Round to cents and keep within NUMERIC(12,2)."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise LedgerValidationError("amount must be a non-negative number", {"amount": value})
    if not amount.is_finite() or amount < 0:
        raise LedgerValidationError("amount must be a non-negative number", {"amount": value})
    if amount < MAX_AMOUNT:
        amount = amount.quantize(_CENT, rounding=ROUND_HALF_UP)
    if amount >= MAX_AMOUNT:
        raise LedgerValidationError(f"amount must be less than {MAX_AMOUNT}", {"amount": value})
    return amount


def _check_enum(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise LedgerValidationError(f"{field} must be one of {allowed}", {field: value})


def validate_create(fields: PriceCreate) -> PriceCreate:
    """Check and normalize a new price. Raises LedgerValidationError."""
    source_type = _check_enum(PriceSourceType, fields.source_type, "sourceType")
    if source_type == PriceSourceType.MANUAL and fields.source_url_id is not None:
        raise LedgerValidationError("sourceUrlId must be null when sourceType is manual")
    if source_type == PriceSourceType.URL and fields.source_url_id is None:
        raise LedgerValidationError("sourceUrlId is required when sourceType is url")
    return replace(
        fields,
        condition=_check_enum(PriceCondition, fields.condition, "condition"),
        amount=_check_amount(fields.amount),
        currency=normalize_currency(fields.currency),
        source_type=source_type,
        is_primary=bool(fields.is_primary),
    )


def validate_update(changes: PriceUpdate) -> PriceUpdate:
    """Check and normalize a partial update. Raises LedgerValidationError."""
    if changes.is_empty():
        raise LedgerValidationError("At least one field must be provided for update")
    for name, value in changes.present():
        if value is None and name not in NULLABLE_FIELDS:
            raise LedgerValidationError(f"{name} cannot be null", {name: None})

    normalized = {}
    if changes.is_set("condition"):
        normalized["condition"] = _check_enum(PriceCondition, changes.condition, "condition")
    if changes.is_set("amount"):
        normalized["amount"] = _check_amount(changes.amount)
    if changes.is_set("currency"):
        normalized["currency"] = normalize_currency(changes.currency)
    if changes.is_set("source_type"):
        source_type = _check_enum(PriceSourceType, changes.source_type, "sourceType")
        normalized["source_type"] = source_type
        if source_type == PriceSourceType.MANUAL and changes.source_url_id:
            raise LedgerValidationError("sourceUrlId must be null when sourceType is manual")
        if source_type == PriceSourceType.URL and not changes.source_url_id:
            raise LedgerValidationError("sourceUrlId is required when sourceType is url")
    if changes.is_set("is_primary"):
        normalized["is_primary"] = bool(changes.is_primary)
    return replace(changes, **normalized)


class PriceLedger:
    """Price operations for one request session.

    Writes go through PrimaryEnforcer and commit before returning. Reads are
    plain selects; nothing is cached between calls.
    """

    def __init__(self, session: AsyncSession, max_limit: Optional[int] = None) -> None:
        self._session = session
        self._repo = ItemPriceRepo(session)
        self._urls = UrlRepo(session)
        self._enforcer = PrimaryEnforcer(session)
        self._max_limit = max_limit or settings.max_page_limit

    async def list(
        self,
        item_id: uuid.UUID,
        limit: int,
        offset: int,
        condition: Optional[PriceCondition] = None,
    ) -> list[ItemPrice]:
        """Newest observations first."""
        if not 1 <= limit <= self._max_limit:
            raise LedgerValidationError(f"limit must be between 1 and {self._max_limit}", {"limit": limit})
        if offset < 0:
            raise LedgerValidationError("offset must be greater than or equal to 0", {"offset": offset})
        if condition is not None:
            condition = _check_enum(PriceCondition, condition, "condition").value
        return await self._repo.list_for_item(item_id, limit=limit, offset=offset, condition=condition)

    async def create(self, item_id: uuid.UUID, fields: PriceCreate) -> ItemPrice:
        """Raises ItemNotFoundError if item_id does not exist."""
        fields = validate_create(fields)
        await self._check_url_exists(fields.source_url_id)
        return await self._enforcer.create(item_id, fields)

    async def get(self, price_id: uuid.UUID) -> Optional[ItemPrice]:
        return await self._repo.get_by_id(price_id)

    async def update(self, price_id: uuid.UUID, changes: PriceUpdate) -> Optional[ItemPrice]:
        """Returns None if the price does not exist."""
        changes = validate_update(changes)
        if changes.is_set("source_url_id") and not changes.is_set("source_type"):
            # The stored source_type decides whether a url id is allowed
            current = await self._repo.get_by_id(price_id)
            if current is None:
                return None
            if current.source_type == PriceSourceType.MANUAL.value and changes.source_url_id is not None:
                raise LedgerValidationError("sourceUrlId must be null when sourceType is manual")
            if current.source_type == PriceSourceType.URL.value and changes.source_url_id is None:
                raise LedgerValidationError("sourceUrlId is required when sourceType is url")
        if changes.is_set("source_url_id"):
            await self._check_url_exists(changes.source_url_id)
        return await self._enforcer.update(price_id, changes)

    async def delete(self, price_id: uuid.UUID) -> bool:
        return await self._enforcer.delete(price_id)

    async def summary(self, item_id: uuid.UUID) -> Optional[PriceSummary]:
        return (await self.summaries([item_id]))[item_id]

    async def summaries(self, item_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, Optional[PriceSummary]]:
        """One summary per item, each from that item's rows only."""
        ids = list(dict.fromkeys(item_ids))
        rows_by_item: dict[uuid.UUID, list] = {item_id: [] for item_id in ids}
        for row in await self._repo.amounts_for_items(ids):
            rows_by_item[row.item_id].append(row)
        return {item_id: summarize(rows) for item_id, rows in rows_by_item.items()}

    async def _check_url_exists(self, source_url_id: Optional[uuid.UUID]) -> None:
        if source_url_id is not None and await self._urls.get_by_id(source_url_id) is None:
            raise LedgerValidationError("sourceUrlId does not exist", {"sourceUrlId": str(source_url_id)})
