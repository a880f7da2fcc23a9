"""Resolve a price's source URL into a deduplicated urls row id.

Runs before the ledger's write transaction and commits its own upsert, so the
ledger only ever receives an id that already exists.
"""

import re
import uuid
from typing import Optional
from urllib.parse import unquote

from sqlalchemy.ext.asyncio import AsyncSession

from pricebook.db.repos.url_repo import UrlRepo
from pricebook.exceptions import LedgerValidationError

# Escapes of reserved characters stay encoded, so "a%2Fb" and "a/b" stay distinct
_RESERVED_ESCAPE = re.compile(r"(%(?:2[346BCFbcf]|3[ABDFabdf]|40))")


def normalize_url(raw: str) -> str:
    """Trim, percent-decode (except reserved characters) and lower-case a URL."""
    if not isinstance(raw, str):
        raise LedgerValidationError("URL must be a string")
    trimmed = raw.strip()
    if not trimmed:
        raise LedgerValidationError("URL must not be empty")
    try:
        parts = _RESERVED_ESCAPE.split(trimmed)
        decoded = "".join(part if i % 2 else unquote(part, errors="strict") for i, part in enumerate(parts))
    except UnicodeDecodeError as exc:
        raise LedgerValidationError("URL could not be decoded", {"url": raw}) from exc
    return decoded.lower()


async def resolve_source_url_id(
    session: AsyncSession,
    source_url_id: Optional[uuid.UUID] = None,
    source_url: Optional[str] = None,
) -> Optional[uuid.UUID]:
    """A given source_url wins over source_url_id; an unknown id is rejected."""
    repo = UrlRepo(session)
    if source_url:
        url = await repo.get_or_create(normalize_url(source_url))
        url_id = url.id
        await session.commit()
        return url_id
    if source_url_id is not None:
        if await repo.get_by_id(source_url_id) is None:
            raise LedgerValidationError("sourceUrlId does not exist", {"sourceUrlId": str(source_url_id)})
        return source_url_id
    return None
