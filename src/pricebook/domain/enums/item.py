from enum import Enum


class ItemStatus(str, Enum):
    """Research status of a candidate item."""

    ACTIVE = "active"
    REJECTED = "rejected"
