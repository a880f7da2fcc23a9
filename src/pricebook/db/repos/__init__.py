from pricebook.db.repos.item_price_repo import ItemPriceRepo
from pricebook.db.repos.item_repo import ItemRepo
from pricebook.db.repos.url_repo import UrlRepo

__all__ = ["ItemPriceRepo", "ItemRepo", "UrlRepo"]
