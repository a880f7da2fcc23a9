import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import DataError, DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pricebook.db.models.item_price import PRIMARY_INDEX_NAME, ItemPrice
from pricebook.exceptions import ConflictError, ItemNotFoundError, StoreError, TransientStoreError

logger = logging.getLogger(__name__)

# SQLSTATE codes (PostgreSQL); SQLite only reports a message
_FOREIGN_KEY_VIOLATION = "23503"
_UNIQUE_VIOLATION = "23505"
_CHECK_VIOLATION = "23514"

SOURCE_URL_FK_NAME = "fk_item_prices_source_url_id_urls"


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _constraint_name(exc: DBAPIError) -> Optional[str]:
    # asyncpg errors arrive wrapped by the SQLAlchemy adapter
    for err in (exc.orig, getattr(exc.orig, "__cause__", None)):
        name = getattr(err, "constraint_name", None)
        if name:
            return name
    return None


def translate_store_error(exc: SQLAlchemyError) -> StoreError:
    """Map a driver-level failure onto the ledger's closed set of store errors."""
    if isinstance(exc, IntegrityError):
        code = _sqlstate(exc)
        message = str(exc.orig).lower()
        if code == _FOREIGN_KEY_VIOLATION or "foreign key" in message:
            if _constraint_name(exc) == SOURCE_URL_FK_NAME or SOURCE_URL_FK_NAME in message:
                return ConflictError("Source URL no longer exists")
            return ItemNotFoundError("Item not found")
        if code == _UNIQUE_VIOLATION or "unique" in message or PRIMARY_INDEX_NAME in message:
            return ConflictError("Another price is already primary for this item and condition")
        if code == _CHECK_VIOLATION or "check" in message:
            return ConflictError("Price violates a storage constraint")
        return ConflictError(str(exc.orig))
    if isinstance(exc, DataError):
        return ConflictError("Price value does not fit its column")
    if isinstance(exc, (OperationalError, InterfaceError)):
        return TransientStoreError(str(exc))
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return TransientStoreError(str(exc))
    return StoreError(str(exc))


class ItemPriceRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Commit on success; roll back everything and translate on failure."""
        try:
            yield
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            error = translate_store_error(exc)
            logger.warning("Price write rolled back: %s", error)
            raise error from exc
        except BaseException:
            await self._session.rollback()
            raise

    async def get_by_id(
        self, price_id: uuid.UUID, for_update: bool = False, reload: bool = False
    ) -> Optional[ItemPrice]:
        stmt = select(ItemPrice).where(ItemPrice.id == price_id)
        if for_update:
            # The locked row must win over whatever the identity map holds
            stmt = stmt.with_for_update(of=ItemPrice)
            reload = True
        if reload:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self._session.execute(stmt)
        return result.unique().scalar_one_or_none()

    async def list_for_item(
        self,
        item_id: uuid.UUID,
        limit: int,
        offset: int,
        condition: Optional[str] = None,
    ) -> list[ItemPrice]:
        stmt = select(ItemPrice).where(ItemPrice.item_id == item_id)
        if condition is not None:
            stmt = stmt.where(ItemPrice.condition == condition)
        stmt = (
            stmt.order_by(ItemPrice.observed_at.desc(), ItemPrice.created_at.desc(), ItemPrice.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self._session.execute(stmt)
        return list(result.unique().scalars().all())

    async def amounts_for_items(self, item_ids: Iterable[uuid.UUID]):
        """Return (item_id, condition, amount, currency) rows for the given items."""
        ids = list(item_ids)
        if not ids:
            return []
        result = await self._session.execute(
            select(ItemPrice.item_id, ItemPrice.condition, ItemPrice.amount, ItemPrice.currency)
            .where(ItemPrice.item_id.in_(ids))
        )
        return list(result.all())

    async def add(self, price: ItemPrice) -> ItemPrice:
        self._session.add(price)
        await self._session.flush()
        return price

    async def demote_primaries(
        self, item_id: uuid.UUID, condition: str, exclude_id: Optional[uuid.UUID] = None
    ) -> int:
        """Clear is_primary on every row of (item_id, condition) except exclude_id."""
        stmt = (
            update(ItemPrice)
            .where(
                ItemPrice.item_id == item_id,
                ItemPrice.condition == condition,
                ItemPrice.is_primary.is_(True),
            )
            .values(is_primary=False)
        )
        if exclude_id is not None:
            stmt = stmt.where(ItemPrice.id != exclude_id)
        result = await self._session.execute(stmt.execution_options(synchronize_session="evaluate"))
        return result.rowcount or 0

    async def delete_by_id(self, price_id: uuid.UUID) -> bool:
        result = await self._session.execute(
            delete(ItemPrice)
            .where(ItemPrice.id == price_id)
            .execution_options(synchronize_session="evaluate")
        )
        return (result.rowcount or 0) > 0
