"""Guarded address operations returning uniform result envelopes.

Every function here is a boundary: it authorizes the request context,
validates input, calls ``address_service`` and converts every failure
(authorization, validation, missing record, database error) into the
``error``/``error_kind``/``field_errors`` fields of its result.  Nothing
raises to the caller.
"""

import uuid
from datetime import UTC, date, datetime
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from address_admin.core.authorization import RequestContext, authorize
from address_admin.core.errors import (
    AddressOperationError,
    ErrorKind,
    NotFoundError,
    StoreFailureError,
    ValidationFailedError,
)
from address_admin.lib.exporter import export_filename, format_addresses_csv
from address_admin.schemas.address import (
    AddressDeleteResult,
    AddressExportResult,
    AddressListResult,
    AddressResponse,
    AddressResult,
    validate_address,
)
from address_admin.schemas.common import PaginationMeta
from address_admin.services import address_service


def _parse_id(address_id: str | uuid.UUID) -> uuid.UUID:
    """Parse an address id; a malformed id cannot match any record."""
    if isinstance(address_id, uuid.UUID):
        return address_id
    try:
        return uuid.UUID(str(address_id))
    except ValueError:
        raise NotFoundError from None


async def _rollback(session: AsyncSession) -> None:
    try:
        await session.rollback()
    except Exception as exc:
        logger.warning(f"Rollback after failed address operation also failed: {exc}")


async def _classify(session: AsyncSession, exc: Exception, action: str) -> tuple[str, ErrorKind]:
    """Turn an exception into (message, kind), rolling back on store failures."""
    if isinstance(exc, AddressOperationError):
        logger.warning(f"{action} rejected ({exc.kind}): {exc.message}")
        return exc.message, exc.kind
    await _rollback(session)
    logger.error(f"Failed to {action}: {exc}")
    failure = StoreFailureError(str(exc) or None)
    return failure.message, failure.kind


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_addresses(
    session: AsyncSession,
    context: RequestContext,
    *,
    search_query: str | None = None,
    page: int = 1,
    page_size: int = address_service.DEFAULT_PAGE_SIZE,
) -> AddressListResult:
    """List one page of addresses matching ``search_query``, newest first."""
    try:
        authorize(context, "list")
        if page < 1 or page_size < 1:
            raise ValidationFailedError(message="Page and page size must be at least 1")
        addresses, total = await address_service.list_addresses(
            session,
            search_query=search_query,
            page=page,
            page_size=page_size,
        )
    except Exception as exc:
        message, kind = await _classify(session, exc, "get addresses")
        return AddressListResult(data=None, total=0, error=message, error_kind=kind)

    return AddressListResult(
        data=[AddressResponse.model_validate(a) for a in addresses],
        total=total,
        pagination=PaginationMeta.build(total=total, page=page, page_size=page_size),
    )


async def get_address_by_id(session: AsyncSession, context: RequestContext, address_id: str | uuid.UUID) -> AddressResult:
    """Fetch one address; an unknown id yields ``Address not found.``."""
    try:
        authorize(context, "get")
        address = await address_service.get_address(session, _parse_id(address_id))
        if address is None:
            raise NotFoundError
    except Exception as exc:
        message, kind = await _classify(session, exc, "get address by ID")
        return AddressResult(error=message, error_kind=kind)
    return AddressResult(data=AddressResponse.model_validate(address))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def create_address(session: AsyncSession, context: RequestContext, raw: Any) -> AddressResult:
    """Validate ``raw`` strictly and insert a new address."""
    try:
        session_info = authorize(context, "create")
        outcome = validate_address(raw)
        if not outcome.ok:
            raise ValidationFailedError(outcome.field_errors)
        address = await address_service.create_address(session, data=outcome.data or {})
    except ValidationFailedError as exc:
        logger.info(f"Address create rejected: {sorted(exc.field_errors)}")
        return AddressResult(error=exc.message, error_kind=exc.kind, field_errors=exc.field_errors)
    except Exception as exc:
        message, kind = await _classify(session, exc, "create address")
        return AddressResult(error=message, error_kind=kind)

    logger.info(f"User {session_info.username} created address {address.id}")
    return AddressResult(data=AddressResponse.model_validate(address))


async def update_address(
    session: AsyncSession,
    context: RequestContext,
    address_id: str | uuid.UUID,
    raw: Any,
) -> AddressResult:
    """Validate ``raw`` partially and patch only the supplied fields."""
    try:
        session_info = authorize(context, "update")
        outcome = validate_address(raw, partial=True)
        if not outcome.ok:
            raise ValidationFailedError(outcome.field_errors)
        address = await address_service.update_address(session, _parse_id(address_id), data=outcome.data or {})
    except ValidationFailedError as exc:
        logger.info(f"Address update rejected: {sorted(exc.field_errors)}")
        return AddressResult(error=exc.message, error_kind=exc.kind, field_errors=exc.field_errors)
    except Exception as exc:
        message, kind = await _classify(session, exc, "update address")
        return AddressResult(error=message, error_kind=kind)

    logger.info(f"User {session_info.username} updated address {address.id}")
    return AddressResult(data=AddressResponse.model_validate(address))


async def delete_address(session: AsyncSession, context: RequestContext, address_id: str | uuid.UUID) -> AddressDeleteResult:
    """Delete an address; restricted to the admin role by default."""
    try:
        session_info = authorize(context, "delete")
        parsed_id = _parse_id(address_id)
        await address_service.delete_address(session, parsed_id)
    except Exception as exc:
        message, kind = await _classify(session, exc, "delete address")
        return AddressDeleteResult(success=False, error=message, error_kind=kind)

    logger.info(f"User {session_info.username} deleted address {parsed_id}")
    return AddressDeleteResult(success=True)


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


async def export_addresses(
    session: AsyncSession,
    context: RequestContext,
    *,
    search_query: str | None = None,
    sanitize_formulas: bool = False,
    today: date | None = None,
) -> AddressExportResult:
    """Render every address matching ``search_query`` as CSV.

    The full filtered set is fetched as a single page sized to the current
    match count, so the export has the same order as the list view.
    """
    try:
        authorize(context, "export")
        total = await address_service.count_addresses(session, search_query=search_query)
        addresses, _ = await address_service.list_addresses(
            session,
            search_query=search_query,
            page=1,
            page_size=max(total, 1),
        )
        content = format_addresses_csv(addresses, sanitize_formulas=sanitize_formulas)
    except Exception as exc:
        message, kind = await _classify(session, exc, "export addresses")
        return AddressExportResult(error=message, error_kind=kind)

    day = (today or datetime.now(UTC).date()).isoformat()
    logger.info(f"Exported {len(addresses)} addresses (query={search_query!r})")
    return AddressExportResult(content=content, filename=export_filename(day), record_count=len(addresses))
