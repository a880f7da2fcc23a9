import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from pricebook.domain.enums import PriceCondition, PriceSourceType
from pricebook.ledger.fields import PriceUpdate

# Amounts go out as JSON numbers, not decimal strings
Amount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _currency(value: str) -> str:
    code = value.strip().upper()
    if len(code) != 3 or not (code.isascii() and code.isalpha()):
        raise ValueError("currency must be a 3-letter code")
    return code


class PriceCreateRequest(_CamelModel):
    condition: PriceCondition
    amount: Decimal = Field(ge=0)
    currency: str
    source_type: PriceSourceType = PriceSourceType.MANUAL
    source_url_id: Optional[uuid.UUID] = None
    source_url: Optional[str] = None
    source_note: Optional[str] = None
    note: Optional[str] = None
    observed_at: Optional[datetime] = None
    is_primary: bool = False

    @field_validator("currency")
    @classmethod
    def _normalize_currency(cls, value: str) -> str:
        return _currency(value)


class PriceUpdateRequest(_CamelModel):
    """Every field optional. Omitted fields are left alone, explicit nulls clear."""

    condition: Optional[PriceCondition] = None
    amount: Optional[Decimal] = Field(default=None, ge=0)
    currency: Optional[str] = None
    source_type: Optional[PriceSourceType] = None
    source_url_id: Optional[uuid.UUID] = None
    source_url: Optional[str] = None
    source_note: Optional[str] = None
    note: Optional[str] = None
    observed_at: Optional[datetime] = None
    is_primary: Optional[bool] = None

    @field_validator("currency")
    @classmethod
    def _normalize_currency(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _currency(value)

    def has(self, name: str) -> bool:
        return name in self.model_fields_set

    def to_update(self, source_url_id=None, resolve_source: bool = False) -> PriceUpdate:
        """Build the ledger's tri-state update from the fields the client sent."""
        changes = PriceUpdate()
        for name in ("condition", "amount", "currency", "source_type", "source_note", "note", "observed_at", "is_primary"):
            if self.has(name):
                setattr(changes, name, getattr(self, name))
        if resolve_source:
            changes.source_url_id = source_url_id
        return changes


class PriceResponse(_CamelModel):
    id: uuid.UUID
    item_id: uuid.UUID
    condition: PriceCondition
    amount: Amount
    currency: str
    source_type: PriceSourceType
    source_url_id: Optional[uuid.UUID] = None
    source_url: Optional[str] = None
    source_note: Optional[str] = None
    note: Optional[str] = None
    observed_at: datetime
    is_primary: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PageMeta(BaseModel):
    limit: int
    offset: int
    count: int


class PriceListResponse(BaseModel):
    data: list[PriceResponse]
    meta: PageMeta


class PriceEnvelope(BaseModel):
    data: PriceResponse


class ConditionSummaryResponse(_CamelModel):
    min_amount: Optional[Amount] = None
    count: int = 0
    currency: Optional[str] = None
    has_mixed_currency: bool = False


class PriceSummaryResponse(_CamelModel):
    min_amount: Amount
    max_amount: Amount
    price_count: int
    currency: str
    has_mixed_currency: bool
    new: ConditionSummaryResponse
    used: ConditionSummaryResponse

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PriceSummaryEnvelope(BaseModel):
    data: Optional[PriceSummaryResponse] = None
