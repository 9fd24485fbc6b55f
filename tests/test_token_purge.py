"""Unit and integration tests for the expired refresh-token purge."""

import unittest
import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from taskify.models import RefreshToken
from taskify.services.token_purge import purge_expired_refresh_tokens

from tests.support import make_session_factory, make_user


class TestPurgeDisabled(unittest.TestCase):
    """When TOKEN_PURGE_ENABLED is False, nothing is queried."""

    def test_returns_zero_and_does_not_query(self) -> None:
        settings = MagicMock()
        settings.TOKEN_PURGE_ENABLED = False
        session = MagicMock()
        self.assertEqual(purge_expired_refresh_tokens(session, settings), 0)
        session.query.assert_not_called()
        session.commit.assert_not_called()


class TestPurgeMocked(unittest.TestCase):
    def test_nothing_expired(self) -> None:
        settings = MagicMock()
        settings.TOKEN_PURGE_ENABLED = True
        session = MagicMock()
        session.query.return_value.filter.return_value.delete.return_value = 0
        self.assertEqual(purge_expired_refresh_tokens(session, settings), 0)
        session.commit.assert_called_once()

    def test_returns_deleted_count(self) -> None:
        settings = MagicMock()
        settings.TOKEN_PURGE_ENABLED = True
        session = MagicMock()
        session.query.return_value.filter.return_value.delete.return_value = 3
        self.assertEqual(purge_expired_refresh_tokens(session, settings), 3)
        session.add.assert_not_called()
        session.commit.assert_called_once()


class TestPurgeAgainstDatabase(unittest.TestCase):
    """Only rows past their expiry are removed."""

    def test_keeps_live_tokens(self) -> None:
        db = make_session_factory()()
        try:
            user = make_user(db, "alice")
            now = datetime.now(UTC)
            expired = RefreshToken(
                id=uuid.uuid4(),
                user_id=user.id,
                refresh_token=uuid.uuid4(),
                expires_at=now - timedelta(minutes=5),
            )
            live = RefreshToken(
                id=uuid.uuid4(),
                user_id=user.id,
                refresh_token=uuid.uuid4(),
                expires_at=now + timedelta(days=1),
            )
            db.add_all([expired, live])
            db.commit()
            live_id = live.id

            settings = MagicMock()
            settings.TOKEN_PURGE_ENABLED = True
            self.assertEqual(purge_expired_refresh_tokens(db, settings, now=now), 1)

            remaining = [r.id for r in db.query(RefreshToken).all()]
            self.assertEqual(remaining, [live_id])
            self.assertEqual(purge_expired_refresh_tokens(db, settings, now=now), 0)
        finally:
            db.close()


if __name__ == "__main__":
    unittest.main()
