"""
Store helpers: bounded calls and driver failure mapping.
"""
import asyncio

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from app.courses import database
from app.courses.database import _bounded, get_user_progress, get_top_users_by_xp
from app.courses.exceptions import InternalError


class TestBounded:

    @pytest.mark.asyncio
    async def test_returns_the_store_result(self):
        async def find():
            return {"user_id": "U1"}

        assert await _bounded(find(), "find") == {"user_id": "U1"}

    @pytest.mark.asyncio
    async def test_timeout_becomes_internal_error(self):
        with pytest.raises(InternalError) as exc:
            await _bounded(asyncio.sleep(1), "slow_find", timeout=0.01)

        assert exc.value.message == "Database operation timed out"
        assert exc.value.status_code == 500
        assert exc.value.details == {"operation": "slow_find"}

    @pytest.mark.asyncio
    async def test_driver_error_becomes_internal_error(self):
        async def broken():
            raise ServerSelectionTimeoutError("no servers available")

        with pytest.raises(InternalError) as exc:
            await _bounded(broken(), "find_user")

        assert exc.value.message == "Database operation failed"
        assert exc.value.details == {"operation": "find_user"}

    @pytest.mark.asyncio
    async def test_default_timeout_comes_from_config(self, monkeypatch):
        monkeypatch.setattr(database, "STORE_TIMEOUT_SECONDS", 0.01)

        with pytest.raises(InternalError):
            await _bounded(asyncio.sleep(1), "slow_find")


class TestQueries:

    @pytest.mark.asyncio
    async def test_missing_user_is_none(self, mongo_db):
        assert await get_user_progress(mongo_db, "GHOST") is None

    @pytest.mark.asyncio
    async def test_store_failure_in_a_query_surfaces_as_internal_error(self, unreachable_db):
        with pytest.raises(InternalError) as exc:
            await get_user_progress(unreachable_db, "U1")

        assert exc.value.message == "Database operation failed"
        assert exc.value.details == {"operation": "get_user_progress"}

    @pytest.mark.asyncio
    async def test_top_users_sorted_by_xp_then_username(self, mongo_db):
        await mongo_db.users.insert_one({"user_id": "U3", "username": "aaron", "xp": 40, "level": 1, "progress": []})

        users = await get_top_users_by_xp(mongo_db, 3)

        assert [u["username"] for u in users] == ["bob", "aaron", "root"]
        assert "_id" not in users[0]
        assert "password" not in users[0]
