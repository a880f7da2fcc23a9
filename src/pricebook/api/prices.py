import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pricebook.api.deps import get_db, get_ledger
from pricebook.api.schemas.prices import (
    PageMeta,
    PriceCreateRequest,
    PriceEnvelope,
    PriceListResponse,
    PriceResponse,
    PriceSummaryEnvelope,
    PriceSummaryResponse,
    PriceUpdateRequest,
)
from pricebook.config import settings
from pricebook.db.repos.item_repo import ItemRepo
from pricebook.domain.enums import PriceCondition, PriceSourceType
from pricebook.exceptions import ItemNotFoundError
from pricebook.ledger.fields import PriceCreate
from pricebook.ledger.service import PriceLedger
from pricebook.ledger.urls import resolve_source_url_id

router = APIRouter(prefix="/api", tags=["prices"])

DbDep = Annotated[AsyncSession, Depends(get_db)]
LedgerDep = Annotated[PriceLedger, Depends(get_ledger)]


@router.get("/items/{item_id}/prices", response_model=PriceListResponse)
async def list_item_prices(
    item_id: uuid.UUID,
    ledger: LedgerDep,
    limit: int = Query(settings.default_page_limit),
    offset: int = Query(0),
    condition: Optional[PriceCondition] = Query(None),
) -> PriceListResponse:
    prices = await ledger.list(item_id, limit=limit, offset=offset, condition=condition)
    return PriceListResponse(
        data=[PriceResponse.model_validate(p) for p in prices],
        meta=PageMeta(limit=limit, offset=offset, count=len(prices)),
    )


@router.post("/items/{item_id}/prices", response_model=PriceEnvelope, status_code=status.HTTP_201_CREATED)
async def create_item_price(
    item_id: uuid.UUID, body: PriceCreateRequest, db: DbDep, ledger: LedgerDep
) -> PriceEnvelope:
    source_url_id = body.source_url_id
    if body.source_type == PriceSourceType.URL:
        source_url_id = await resolve_source_url_id(db, body.source_url_id, body.source_url)

    try:
        price = await ledger.create(
            item_id,
            PriceCreate(
                condition=body.condition,
                amount=body.amount,
                currency=body.currency,
                source_type=body.source_type,
                source_url_id=source_url_id,
                source_note=body.source_note,
                note=body.note,
                observed_at=body.observed_at,
                is_primary=body.is_primary,
            ),
        )
    except ItemNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return PriceEnvelope(data=PriceResponse.model_validate(price))


@router.get("/prices/{price_id}", response_model=PriceEnvelope)
async def get_item_price(price_id: uuid.UUID, ledger: LedgerDep) -> PriceEnvelope:
    price = await ledger.get(price_id)
    if price is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Price not found")
    return PriceEnvelope(data=PriceResponse.model_validate(price))


@router.patch("/prices/{price_id}", response_model=PriceEnvelope)
async def update_item_price(
    price_id: uuid.UUID, body: PriceUpdateRequest, db: DbDep, ledger: LedgerDep
) -> PriceEnvelope:
    """Partial update. Switching to a manual source drops the URL."""
    source_url_id = None
    resolve_source = False
    if body.has("source_type") and body.source_type == PriceSourceType.MANUAL:
        resolve_source = True
    elif body.source_type == PriceSourceType.URL or body.has("source_url") or body.has("source_url_id"):
        source_url_id = await resolve_source_url_id(db, body.source_url_id, body.source_url)
        resolve_source = True

    price = await ledger.update(price_id, body.to_update(source_url_id, resolve_source))
    if price is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Price not found")
    return PriceEnvelope(data=PriceResponse.model_validate(price))


@router.delete("/prices/{price_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item_price(price_id: uuid.UUID, ledger: LedgerDep) -> None:
    deleted = await ledger.delete(price_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Price not found")


@router.get("/items/{item_id}/price-summary", response_model=PriceSummaryEnvelope)
async def get_item_price_summary(item_id: uuid.UUID, db: DbDep, ledger: LedgerDep) -> PriceSummaryEnvelope:
    """Summary of the item's current prices; data is null when it has none."""
    if await ItemRepo(db).get_by_id(item_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    summary = await ledger.summary(item_id)
    if summary is None:
        return PriceSummaryEnvelope(data=None)
    return PriceSummaryEnvelope(data=PriceSummaryResponse.model_validate(summary.model_dump()))
