"""Address API endpoints.

Every endpoint returns the operation's result envelope as its body; the
HTTP status is derived from the envelope's ``error_kind``.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from address_admin.core.authorization import RequestContext
from address_admin.core.config import Settings, get_settings
from address_admin.core.dependencies import get_async_session, get_request_context
from address_admin.core.errors import ErrorKind
from address_admin.schemas.address import (
    AddressDeleteResult,
    AddressExportResult,
    AddressListResult,
    AddressResult,
)
from address_admin.services import address_actions

addresses_router = APIRouter(prefix="/addresses", tags=["addresses"])

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.VALIDATION_FAILED: 422,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.STORE_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

SessionDep = Annotated[AsyncSession, Depends(get_async_session)]
ContextDep = Annotated[RequestContext, Depends(get_request_context)]


def status_for(error_kind: ErrorKind | None, success_status: int = status.HTTP_200_OK) -> int:
    """HTTP status code for an envelope's error kind."""
    if error_kind is None:
        return success_status
    return _STATUS_BY_KIND[error_kind]


def _envelope_response(result: BaseModel, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    error_kind = getattr(result, "error_kind", None)
    headers = {"WWW-Authenticate": "Bearer"} if error_kind is ErrorKind.UNAUTHORIZED else None
    return JSONResponse(
        status_code=status_for(error_kind, success_status),
        content=result.model_dump(mode="json"),
        headers=headers,
    )


async def _read_fields(request: Request) -> Any:
    """Read the submitted field map from a JSON or form-encoded body.

    Malformed JSON yields None, which validation reports as a field error.
    File uploads in multipart bodies are ignored.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            return await request.json()
        except ValueError:
            return None
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@addresses_router.get("", response_model=AddressListResult)
async def list_addresses_endpoint(
    session: SessionDep,
    context: ContextDep,
    settings: Annotated[Settings, Depends(get_settings)],
    search: Annotated[str | None, Query(description="Case-insensitive substring search", max_length=200)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1, le=1000)] = None,
) -> JSONResponse:
    """List addresses newest first, filtered by ``search``."""
    result = await address_actions.get_addresses(
        session,
        context,
        search_query=search,
        page=page,
        page_size=page_size or settings.address_page_size,
    )
    return _envelope_response(result)


@addresses_router.get("/export", response_model=AddressExportResult)
async def export_addresses_endpoint(
    session: SessionDep,
    context: ContextDep,
    settings: Annotated[Settings, Depends(get_settings)],
    search: Annotated[str | None, Query(description="Case-insensitive substring search", max_length=200)] = None,
) -> Response:
    """Download every address matching ``search`` as a CSV attachment."""
    result = await address_actions.export_addresses(
        session,
        context,
        search_query=search,
        sanitize_formulas=settings.export_sanitize_formulas,
    )
    if result.error_kind is not None or result.content is None:
        return _envelope_response(result)
    return Response(
        content=result.content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@addresses_router.get("/{address_id}", response_model=AddressResult)
async def get_address_endpoint(address_id: str, session: SessionDep, context: ContextDep) -> JSONResponse:
    """Fetch a single address."""
    result = await address_actions.get_address_by_id(session, context, address_id)
    return _envelope_response(result)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@addresses_router.post("", response_model=AddressResult, status_code=status.HTTP_201_CREATED)
async def create_address_endpoint(request: Request, session: SessionDep, context: ContextDep) -> JSONResponse:
    """Create an address from form fields or a JSON object."""
    fields = await _read_fields(request)
    result = await address_actions.create_address(session, context, fields)
    return _envelope_response(result, success_status=status.HTTP_201_CREATED)


@addresses_router.patch("/{address_id}", response_model=AddressResult)
async def update_address_endpoint(
    address_id: str,
    request: Request,
    session: SessionDep,
    context: ContextDep,
) -> JSONResponse:
    """Update the supplied fields of an address."""
    fields = await _read_fields(request)
    result = await address_actions.update_address(session, context, address_id, fields)
    return _envelope_response(result)


@addresses_router.delete("/{address_id}", response_model=AddressDeleteResult)
async def delete_address_endpoint(address_id: str, session: SessionDep, context: ContextDep) -> JSONResponse:
    """Delete an address (admin role by default)."""
    result = await address_actions.delete_address(session, context, address_id)
    return _envelope_response(result)
