"""Address service — search, pagination and CRUD against the addresses table.

Functions here take an ``AsyncSession`` and validated data; they raise
``NotFoundError`` for unknown ids and let database errors propagate.  The
guarded, never-raising operations live in ``address_actions``.
"""

import uuid
from typing import Any

from loguru import logger
from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from address_admin.core.errors import NotFoundError
from address_admin.models.address import Address

DEFAULT_PAGE_SIZE = 6

# Columns matched by the free-text search (case-insensitive substring, OR-ed).
SEARCHABLE_COLUMNS = (
    Address.first_name,
    Address.last_name,
    Address.company,
    Address.street,
    Address.city,
    Address.postal_code,
    Address.country,
    Address.email,
    Address.keywords,
    Address.search_terms,
)

# Fields that may be written through create/update.  Anything outside this
# set is ignored, preventing mass-assignment of id or timestamps.
_WRITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "salutation",
        "first_name",
        "last_name",
        "company",
        "street",
        "house_number",
        "postal_code",
        "city",
        "country",
        "email",
        "phone",
        "mobile",
        "keywords",
        "search_terms",
        "profile_image",
    }
)

_LIKE_ESCAPE = "\\"


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so the query matches literally."""
    return value.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2).replace("%", f"{_LIKE_ESCAPE}%").replace("_", f"{_LIKE_ESCAPE}_")


def build_search_filter(search_query: str | None) -> ColumnElement[bool] | None:
    """Build the OR filter for a free-text query, or None for an empty query."""
    if not search_query:
        return None
    pattern = f"%{_escape_like(search_query)}%"
    return or_(*(column.ilike(pattern, escape=_LIKE_ESCAPE) for column in SEARCHABLE_COLUMNS))


def _writable(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k in _WRITABLE_FIELDS}


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


async def count_addresses(session: AsyncSession, *, search_query: str | None = None) -> int:
    """Count addresses matching the search query."""
    query = select(func.count(Address.id))
    search_filter = build_search_filter(search_query)
    if search_filter is not None:
        query = query.where(search_filter)
    return (await session.execute(query)).scalar_one()


async def list_addresses(
    session: AsyncSession,
    *,
    search_query: str | None = None,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> tuple[list[Address], int]:
    """List addresses newest first with optional free-text search.

    Args:
        session: Database session.
        search_query: Substring matched case-insensitively against the
            searchable columns; empty or None matches everything.
        page: Page number (1-based).
        page_size: Items per page.

    Returns:
        Tuple of (addresses on the page, total matching count).
    """
    query = select(Address)
    search_filter = build_search_filter(search_query)
    if search_filter is not None:
        query = query.where(search_filter)

    offset = (page - 1) * page_size
    query = query.order_by(Address.created_at.desc()).offset(offset).limit(page_size)
    result = await session.execute(query)
    addresses = list(result.scalars().all())

    total = await count_addresses(session, search_query=search_query)

    logger.info(f"Listed {len(addresses)} addresses (total={total}, page={page}, query={search_query!r})")
    return addresses, total


async def get_address(session: AsyncSession, address_id: uuid.UUID) -> Address | None:
    """Get a single address by ID, or None if it does not exist."""
    result = await session.execute(select(Address).where(Address.id == address_id))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Write operations
# ---------------------------------------------------------------------------


async def create_address(session: AsyncSession, *, data: dict[str, Any]) -> Address:
    """Insert a new address from validated data.

    Args:
        session: Database session.
        data: Validated field map (see ``schemas.address.validate_address``).

    Returns:
        The created Address with its generated id and timestamps.
    """
    address = Address(**_writable(data))
    session.add(address)
    await session.commit()
    await session.refresh(address)
    logger.info(f"Created address {address.id} ({address.last_name}, {address.city})")
    return address


async def update_address(session: AsyncSession, address_id: uuid.UUID, *, data: dict[str, Any]) -> Address:
    """Patch the supplied fields of an address.

    Args:
        session: Database session.
        address_id: The address UUID.
        data: Validated partial field map; only these keys are written.

    Returns:
        The updated Address.

    Raises:
        NotFoundError: If no address has this id.
    """
    address = await get_address(session, address_id)
    if address is None:
        raise NotFoundError

    for field_name, value in _writable(data).items():
        setattr(address, field_name, value)

    await session.commit()
    await session.refresh(address)
    logger.info(f"Updated address {address.id} (fields={sorted(data)})")
    return address


async def delete_address(session: AsyncSession, address_id: uuid.UUID) -> None:
    """Permanently delete an address.

    Raises:
        NotFoundError: If no address has this id.
    """
    address = await get_address(session, address_id)
    if address is None:
        raise NotFoundError

    await session.delete(address)
    await session.commit()
    logger.info(f"Deleted address {address_id}")
