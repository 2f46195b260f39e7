# tests/unit/services/test_inventory_history_service.py
import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.exc import OperationalError

from stockroom.core.exceptions import DatabaseError, InvalidArgumentError, ProductNotFoundError
from stockroom.services.inventory_history_service import InventoryHistoryService
from stockroom.services.product_service import ProductService


@pytest.mark.asyncio
async def test_history_for_product_without_changes_is_empty(db_session):
    product = await ProductService(db_session).create_product({"name": "Widget", "stock": 4})

    found, entries = await InventoryHistoryService(db_session).get_history(product.id)

    assert found.id == product.id
    assert found.name == "Widget"
    assert entries == []


@pytest.mark.asyncio
async def test_history_unknown_product_not_found(db_session):
    with pytest.raises(ProductNotFoundError):
        await InventoryHistoryService(db_session).get_history(123)


@pytest.mark.asyncio
async def test_history_is_newest_first(db_session):
    service = ProductService(db_session)
    product = await service.create_product({"name": "Widget", "stock": 1})
    for stock in (2, 3, 4):
        await service.update_product(product.id, {"name": "Widget", "stock": stock})

    _, entries = await InventoryHistoryService(db_session).get_history(product.id)

    assert [(e.old_quantity, e.new_quantity) for e in entries] == [(3, 4), (2, 3), (1, 2)]


@pytest.mark.asyncio
async def test_record_change_stores_entry(db_session):
    product = await ProductService(db_session).create_product({"name": "Widget", "stock": 1})
    history = InventoryHistoryService(db_session)

    entry = await history.record_change(product.id, 1, 9, actor="stocktake")

    assert entry.id is not None
    assert entry.actor == "stocktake"
    _, entries = await history.get_history(product.id)
    assert len(entries) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("old, new", [(-1, 5), (5, -1)])
async def test_record_change_rejects_negative_quantities(old, new):
    mock_session = AsyncMock()

    with pytest.raises(InvalidArgumentError):
        await InventoryHistoryService(mock_session).record_change(1, old, new)

    mock_session.add.assert_not_called()


@pytest.mark.asyncio
async def test_record_change_rolls_back_on_commit_error():
    # 1. Arrange
    mock_session = AsyncMock()
    mock_session.add = MagicMock()
    mock_session.commit = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("database is locked")))

    # 2. Act & Assert
    with pytest.raises(DatabaseError, match="Failed to record stock change"):
        await InventoryHistoryService(mock_session).record_change(1, 2, 3)

    mock_session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_purge_product_history_counts_removed_rows(db_session):
    service = ProductService(db_session)
    product = await service.create_product({"name": "Widget", "stock": 1})
    await service.update_product(product.id, {"name": "Widget", "stock": 2})
    await service.update_product(product.id, {"name": "Widget", "stock": 5})

    removed = await InventoryHistoryService(db_session).purge_product_history(product.id)

    assert removed == 2
    _, entries = await InventoryHistoryService(db_session).get_history(product.id)
    assert entries == []
