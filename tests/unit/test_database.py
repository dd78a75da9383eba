"""
Unit tests for Supabase client management and the health check.
"""

from unittest.mock import AsyncMock, patch

import pytest

from config import database
from config.database import check_connection, get_supabase_client, reset_connection, ConnectionError
from tests.factories import AssetFactory


@pytest.fixture(autouse=True)
def fresh_connection():
    reset_connection()
    yield
    reset_connection()


@pytest.mark.asyncio
async def test_client_created_once(mock_supabase):
    create = AsyncMock(return_value=mock_supabase)

    with patch.object(database, "acreate_client", create):
        first = await get_supabase_client()
        second = await get_supabase_client()

    assert first is second is mock_supabase
    create.assert_awaited_once()


@pytest.mark.asyncio
async def test_reset_reconnects(mock_supabase):
    create = AsyncMock(return_value=mock_supabase)

    with patch.object(database, "acreate_client", create):
        await get_supabase_client()
        reset_connection()
        await get_supabase_client()

    assert create.await_count == 2


@pytest.mark.asyncio
async def test_connection_failure():
    with patch.object(database, "acreate_client", AsyncMock(side_effect=OSError("dns failure"))):
        with pytest.raises(ConnectionError):
            await get_supabase_client()


@pytest.mark.asyncio
async def test_check_connection_healthy(mock_supabase):
    mock_supabase.set_table_data("assets", [AssetFactory.create(), AssetFactory.create()])

    with patch.object(database, "acreate_client", AsyncMock(return_value=mock_supabase)):
        status = await check_connection()

    assert status == {"status": "healthy", "assets_count": 2}


@pytest.mark.asyncio
async def test_check_connection_unhealthy():
    with patch.object(database, "acreate_client", AsyncMock(side_effect=OSError("dns failure"))):
        status = await check_connection()

    assert status["status"] == "unhealthy"
    assert "dns failure" in status["error"]
