"""
Unit tests for filter option loading.
"""

import pytest

from services.filter_options_service import load_filter_options
from exceptions import RemoteQueryError
from tests.conftest import FakeAssetStore
from tests.factories import AssetFactory


@pytest.mark.asyncio
async def test_distinct_sorted_values():
    store = FakeAssetStore([
        AssetFactory.build(allocation_scope="Recife - PE", model="SUNMI P2", status="Bad"),
        AssetFactory.build(allocation_scope="Campinas", model="A910"),
        AssetFactory.build(allocation_scope="Recife - PE", model="SUNMI P2", detail=None),
    ])

    options = await load_filter_options(store=store, sample_size=1000)

    assert options.allocation_scope == ["Campinas", "Recife - PE"]
    assert options.model == ["A910", "SUNMI P2"]
    assert options.status == ["Bad", "Good"]
    assert options.detail == ["Em perfeito estado"]
    assert options.park_category == []


@pytest.mark.asyncio
async def test_single_unfiltered_sample_query():
    store = FakeAssetStore(AssetFactory.build_batch(3))

    await load_filter_options(store=store, sample_size=2)

    assert len(store.calls) == 1
    assert store.calls[0]["page_size"] == 2
    assert store.calls[0]["filters"].scope is None


@pytest.mark.asyncio
async def test_failure_propagates():
    store = FakeAssetStore()
    store.fail_on_call(1)

    with pytest.raises(RemoteQueryError):
        await load_filter_options(store=store, sample_size=10)
