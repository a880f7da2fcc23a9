from enum import Enum


class PriceCondition(str, Enum):
    """Condition of the product a price was observed for."""

    NEW = "new"
    USED = "used"


class PriceSourceType(str, Enum):
    """Where a price observation came from."""

    URL = "url"
    MANUAL = "manual"
