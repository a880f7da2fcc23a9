import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pricebook.db.models.url import Url


class UrlRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, url_id: uuid.UUID) -> Optional[Url]:
        result = await self._session.execute(select(Url).where(Url.id == url_id))
        return result.scalar_one_or_none()

    async def get_by_value(self, url: str) -> Optional[Url]:
        result = await self._session.execute(select(Url).where(Url.url == url))
        return result.scalar_one_or_none()

    async def get_or_create(self, url: str) -> Url:
        """Return the row for an already-normalized URL, inserting it if missing."""
        existing = await self.get_by_value(url)
        if existing is not None:
            return existing
        try:
            async with self._session.begin_nested():
                record = Url(url=url)
                self._session.add(record)
        except IntegrityError:
            # Another request inserted the same URL first; savepoint rolled back
            record = await self.get_by_value(url)
            if record is None:
                raise
        return record
