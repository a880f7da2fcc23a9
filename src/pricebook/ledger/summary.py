"""Read-time price summary of an item, derived from its current price rows."""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional, Protocol

from pydantic import BaseModel

from pricebook.domain.enums import PriceCondition


class PricePoint(Protocol):
    condition: str
    amount: Decimal
    currency: str


class ConditionSummary(BaseModel):
    """Summary of one condition partition. An empty partition has count 0."""

    min_amount: Optional[Decimal] = None
    count: int = 0
    currency: Optional[str] = None
    has_mixed_currency: bool = False


class PriceSummary(BaseModel):
    """Overall and per-condition price figures for one item.

    ``currency`` is the currency of a minimum-amount row. When the rows span
    several currencies it is only indicative; ``has_mixed_currency`` is the
    flag to trust.
    """

    min_amount: Decimal
    max_amount: Decimal
    price_count: int
    currency: str
    has_mixed_currency: bool
    new: ConditionSummary
    used: ConditionSummary


def _cheapest(points: list[PricePoint]) -> PricePoint:
    return min(points, key=lambda p: p.amount)


def _condition_summary(points: list[PricePoint]) -> ConditionSummary:
    if not points:
        return ConditionSummary()
    cheapest = _cheapest(points)
    return ConditionSummary(
        min_amount=cheapest.amount,
        count=len(points),
        currency=cheapest.currency,
        has_mixed_currency=len({p.currency for p in points}) > 1,
    )


def summarize(points: Iterable[PricePoint]) -> Optional[PriceSummary]:
    """Summarize an item's prices. Returns None when the item has no prices.

    is_primary plays no part here: min and max are taken over every row.
    """
    points = list(points)
    if not points:
        return None

    by_condition: dict[str, list[PricePoint]] = defaultdict(list)
    for p in points:
        by_condition[PriceCondition(p.condition).value].append(p)

    cheapest = _cheapest(points)
    return PriceSummary(
        min_amount=cheapest.amount,
        max_amount=max(p.amount for p in points),
        price_count=len(points),
        currency=cheapest.currency,
        has_mixed_currency=len({p.currency for p in points}) > 1,
        new=_condition_summary(by_condition[PriceCondition.NEW.value]),
        used=_condition_summary(by_condition[PriceCondition.USED.value]),
    )
