"""
SnapPDF Backend - User Service Tests
======================================

What we test:
    ✅ First login inserts with ON CONFLICT (email) DO NOTHING, then re-selects
    ✅ A concurrent first login for the same email returns the winner's row
    ✅ Avatar refreshed only when Google reports a different, non-empty one
    ✅ Database failures surface as DatabaseError
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError, OperationalError

from snappdf.exceptions import DatabaseError, UpstreamUnavailableError
from snappdf.models.user import User
from snappdf.services.user_service import UserService


def _lookup(user):
    result = MagicMock()
    result.scalar_one_or_none.return_value = user
    return result


def _inserted(user_id):
    """RETURNING id: the new id, or None when the conflict clause skipped the row."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = user_id
    return result


def _sql(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


class TestGetOrCreate:
    @pytest.mark.asyncio
    async def test_creates_on_first_login(self, mock_db_session):
        created = User(email="new@example.com", avatar="https://a/1.png")
        mock_db_session.execute = AsyncMock(
            side_effect=[_lookup(None), _inserted("u-1"), _lookup(created)]
        )

        user = await UserService(mock_db_session).get_or_create("new@example.com", "https://a/1.png")

        assert user is created
        insert_sql = _sql(mock_db_session.execute.await_args_list[1].args[0])
        assert insert_sql.startswith("INSERT INTO users")
        assert "ON CONFLICT (email) DO NOTHING" in insert_sql
        mock_db_session.add.assert_not_called()
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_first_login_returns_existing_row(self, mock_db_session):
        winner = User(email="new@example.com", avatar="https://a/1.png")
        mock_db_session.execute = AsyncMock(
            side_effect=[_lookup(None), _inserted(None), _lookup(winner)]
        )

        user = await UserService(mock_db_session).get_or_create("new@example.com", "https://a/1.png")

        assert user is winner
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_winner_with_other_avatar_is_updated(self, mock_db_session):
        winner = User(email="new@example.com", avatar="https://a/old.png")
        mock_db_session.execute = AsyncMock(
            side_effect=[_lookup(None), _inserted(None), _lookup(winner)]
        )

        user = await UserService(mock_db_session).get_or_create("new@example.com", "https://a/new.png")

        assert user.avatar == "https://a/new.png"
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_existing_user_unchanged(self, mock_db_session):
        existing = User(email="linh@example.com", avatar="https://a/1.png")
        mock_db_session.execute.return_value = _lookup(existing)

        user = await UserService(mock_db_session).get_or_create("linh@example.com", "https://a/1.png")

        assert user is existing
        mock_db_session.execute.assert_awaited_once()
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_avatar_updated_when_changed(self, mock_db_session):
        existing = User(email="linh@example.com", avatar="https://a/old.png")
        mock_db_session.execute.return_value = _lookup(existing)

        user = await UserService(mock_db_session).get_or_create("linh@example.com", "https://a/new.png")

        assert user.avatar == "https://a/new.png"
        assert user.email == "linh@example.com"
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_avatar_keeps_old_one(self, mock_db_session):
        existing = User(email="linh@example.com", avatar="https://a/old.png")
        mock_db_session.execute.return_value = _lookup(existing)

        user = await UserService(mock_db_session).get_or_create("linh@example.com", None)

        assert user.avatar == "https://a/old.png"


class TestFailures:
    @pytest.mark.asyncio
    async def test_insert_failure_raises(self, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=[
            _lookup(None),
            IntegrityError("INSERT", {}, Exception("check constraint")),
        ])

        with pytest.raises(DatabaseError):
            await UserService(mock_db_session).get_or_create("new@example.com", None)

    @pytest.mark.asyncio
    async def test_row_missing_after_insert_raises(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=[_lookup(None), _inserted(None), _lookup(None)]
        )

        with pytest.raises(DatabaseError):
            await UserService(mock_db_session).get_or_create("new@example.com", None)

    @pytest.mark.asyncio
    async def test_avatar_flush_failure_raises(self, mock_db_session):
        mock_db_session.execute.return_value = _lookup(
            User(email="linh@example.com", avatar="https://a/old.png")
        )
        mock_db_session.flush = AsyncMock(
            side_effect=IntegrityError("UPDATE", {}, Exception("boom"))
        )

        with pytest.raises(DatabaseError):
            await UserService(mock_db_session).get_or_create("linh@example.com", "https://a/new.png")

    @pytest.mark.asyncio
    async def test_connection_loss_is_unavailable(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("connection refused"))
        )

        with pytest.raises(UpstreamUnavailableError):
            await UserService(mock_db_session).get_or_create("linh@example.com", None)
