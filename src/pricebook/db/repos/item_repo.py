import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pricebook.db.models.item import Item


class ItemRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, item_id: uuid.UUID) -> Optional[Item]:
        result = await self._session.execute(select(Item).where(Item.id == item_id))
        return result.scalar_one_or_none()
