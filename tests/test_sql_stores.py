"""
Tests for the SQLAlchemy store implementations against a mocked session.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from advising.exceptions import NotFoundError
from advising.models import ConfigEntry, EarlyAlert
from advising.stores import Stores, build_sql_stores
from advising.stores.sql import SqlConfigStore, SqlEarlyAlertStore, SqlPersonStore

from fakes import make_person


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.execute = AsyncMock()
    return db


def _scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


class TestSqlPersonStore:

    @pytest.mark.asyncio
    async def test_returns_person(self, mock_db):
        person = make_person("coach")
        mock_db.get.return_value = person

        assert await SqlPersonStore(mock_db).get("coach") is person

    @pytest.mark.asyncio
    async def test_missing_person_raises(self, mock_db):
        mock_db.get.return_value = None

        with pytest.raises(NotFoundError) as exc_info:
            await SqlPersonStore(mock_db).get("ghost")
        assert exc_info.value.entity_id == "ghost"

    @pytest.mark.asyncio
    async def test_blank_id_raises_without_query(self, mock_db):
        with pytest.raises(NotFoundError):
            await SqlPersonStore(mock_db).get(None)
        mock_db.get.assert_not_called()


class TestSqlEarlyAlertStore:

    @pytest.mark.asyncio
    async def test_add_flushes_and_refreshes(self, mock_db):
        alert = EarlyAlert(id="ea-1")

        await SqlEarlyAlertStore(mock_db).add(alert)

        mock_db.add.assert_called_once_with(alert)
        mock_db.flush.assert_awaited_once()
        mock_db.refresh.assert_awaited_once_with(
            alert, attribute_names=["created_date", "reasons", "suggestions"]
        )

    @pytest.mark.asyncio
    async def test_counts_skip_query_for_no_ids(self, mock_db):
        assert await SqlEarlyAlertStore(mock_db).count_open_for_people([]) == {}
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_counts_map_rows(self, mock_db):
        result = MagicMock()
        result.all.return_value = [("student-1", 2), ("student-2", 1)]
        mock_db.execute.return_value = result

        counts = await SqlEarlyAlertStore(mock_db).count_closed_for_people(["student-1", "student-2"])

        assert counts == {"student-1": 2, "student-2": 1}


class TestSqlConfigStore:

    @pytest.mark.asyncio
    async def test_value_overrides_default_value(self, mock_db):
        mock_db.execute.return_value = _scalar_result(
            ConfigEntry(name="inst_name", value="Example College", default_value="College")
        )

        assert await SqlConfigStore(mock_db).get_string("inst_name") == "Example College"

    @pytest.mark.asyncio
    async def test_falls_back_to_stored_default_value(self, mock_db):
        mock_db.execute.return_value = _scalar_result(
            ConfigEntry(name="inst_name", value=None, default_value="College")
        )

        assert await SqlConfigStore(mock_db).get_string("inst_name") == "College"

    @pytest.mark.asyncio
    async def test_missing_entry_uses_caller_default(self, mock_db):
        mock_db.execute.return_value = _scalar_result(None)

        assert await SqlConfigStore(mock_db).get_string("inst_name", "fallback") == "fallback"


def test_build_sql_stores_shares_session(mock_db):
    stores = build_sql_stores(mock_db)

    assert isinstance(stores, Stores)
    assert stores.alerts.db is mock_db
    assert stores.config.db is mock_db
