from typing import AsyncGenerator

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pricebook.container import Container
from pricebook.ledger.service import PriceLedger


@inject
async def get_db(
    session_factory: async_sessionmaker[AsyncSession] = Depends(Provide[Container.session_factory]),
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


async def get_ledger(db: AsyncSession = Depends(get_db)) -> PriceLedger:
    return PriceLedger(db)
