from pricebook.db.models.item import Item
from pricebook.db.models.item_price import ItemPrice
from pricebook.db.models.project import Project
from pricebook.db.models.url import Url

__all__ = [
    "Item",
    "ItemPrice",
    "Project",
    "Url",
]
