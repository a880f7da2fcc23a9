from pricebook.domain.enums.item import ItemStatus
from pricebook.domain.enums.price import PriceCondition, PriceSourceType

__all__ = [
    "ItemStatus",
    "PriceCondition",
    "PriceSourceType",
]
