"""Unit tests for address service query building and writes."""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from address_admin.core.errors import NotFoundError
from address_admin.services.address_service import (
    _escape_like,
    build_search_filter,
    count_addresses,
    create_address,
    delete_address,
    get_address,
    list_addresses,
    update_address,
)


def _mock_session(scalar_one_value=0, scalar_one_or_none_value=None, scalars_all_value=None) -> AsyncMock:
    """Create a mock async session with configurable return values."""
    session = AsyncMock()
    session.add = MagicMock()
    mock_result = MagicMock()
    mock_result.scalar_one.return_value = scalar_one_value
    mock_result.scalar_one_or_none.return_value = scalar_one_or_none_value
    mock_result.scalars.return_value.all.return_value = scalars_all_value or []
    session.execute.return_value = mock_result
    return session


def _mock_address(**overrides) -> MagicMock:
    """Create a mock Address."""
    defaults = {
        "id": uuid.uuid4(),
        "first_name": "Jane",
        "last_name": "Doe",
        "city": "Berlin",
        "created_at": datetime.now(UTC),
        "updated_at": datetime.now(UTC),
    }
    defaults.update(overrides)
    obj = MagicMock()
    for k, v in defaults.items():
        setattr(obj, k, v)
    return obj


class TestSearchFilter:
    def test_empty_query_has_no_filter(self) -> None:
        assert build_search_filter(None) is None
        assert build_search_filter("") is None

    def test_query_builds_or_filter(self) -> None:
        clause = build_search_filter("Acme")
        assert clause is not None
        compiled = str(clause.compile(compile_kwargs={"literal_binds": True})).lower()
        assert "company" in compiled
        assert "search_terms" in compiled
        assert " or " in compiled

    def test_like_wildcards_escaped(self) -> None:
        assert _escape_like("50%_off\\") == "50\\%\\_off\\\\"


class TestListAddresses:
    """Tests for list_addresses query building."""

    @pytest.mark.asyncio
    async def test_no_query(self) -> None:
        rows = [_mock_address(), _mock_address()]
        session = _mock_session(scalar_one_value=2, scalars_all_value=rows)
        addresses, total = await list_addresses(session)
        assert addresses == rows
        assert total == 2
        assert session.execute.call_count == 2  # data + count

    @pytest.mark.asyncio
    async def test_with_search_query(self) -> None:
        session = _mock_session()
        await list_addresses(session, search_query="Acme", page=2, page_size=6)
        assert session.execute.call_count == 2

    @pytest.mark.asyncio
    async def test_pagination_offset(self) -> None:
        session = _mock_session()
        await list_addresses(session, page=3, page_size=6)
        query = session.execute.call_args_list[0].args[0]
        compiled = query.compile(compile_kwargs={"literal_binds": True})
        assert "LIMIT 6" in str(compiled)
        assert "OFFSET 12" in str(compiled)

    @pytest.mark.asyncio
    async def test_count(self) -> None:
        session = _mock_session(scalar_one_value=7)
        assert await count_addresses(session, search_query="x") == 7


class TestGetAddress:
    @pytest.mark.asyncio
    async def test_found(self) -> None:
        address = _mock_address()
        session = _mock_session(scalar_one_or_none_value=address)
        assert await get_address(session, address.id) is address

    @pytest.mark.asyncio
    async def test_missing(self) -> None:
        session = _mock_session()
        assert await get_address(session, uuid.uuid4()) is None


class TestWrites:
    @pytest.mark.asyncio
    async def test_create_ignores_non_writable_keys(self) -> None:
        session = _mock_session()
        address = await create_address(session, data={"first_name": "Jane", "id": "forged"})
        session.add.assert_called_once_with(address)
        session.commit.assert_awaited_once()
        session.refresh.assert_awaited_once_with(address)
        assert address.first_name == "Jane"
        assert address.id != "forged"

    @pytest.mark.asyncio
    async def test_update_sets_only_supplied_fields(self) -> None:
        address = _mock_address()
        session = _mock_session(scalar_one_or_none_value=address)
        result = await update_address(session, address.id, data={"city": "Hamburg"})
        assert result.city == "Hamburg"
        assert result.first_name == "Jane"
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_missing_raises(self) -> None:
        session = _mock_session()
        with pytest.raises(NotFoundError):
            await update_address(session, uuid.uuid4(), data={"city": "Hamburg"})
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        address = _mock_address()
        session = _mock_session(scalar_one_or_none_value=address)
        await delete_address(session, address.id)
        session.delete.assert_awaited_once_with(address)
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_missing_raises(self) -> None:
        session = _mock_session()
        with pytest.raises(NotFoundError):
            await delete_address(session, uuid.uuid4())
        session.delete.assert_not_awaited()
