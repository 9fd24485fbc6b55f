"""Unit tests for taskify.services.tokens: issuance, validation, rotation and failure paths."""

import unittest
import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

import jwt
from sqlalchemy.exc import OperationalError

from taskify.core.errors import (
    ExpiredToken,
    InvalidRefreshToken,
    InvalidToken,
    RefreshTokenExpired,
    TokenIssuanceFailed,
)
from taskify.models import RefreshToken
from taskify.services.policy import DEFAULT_PERMISSIONS, assign_role, grant_permission, revoke_role
from taskify.services.tokens import TokenService

from tests.support import TEST_SECRET, make_session_factory, make_token_service, make_user

USER_PERMISSIONS = ["tasks:create", "tasks:delete", "tasks:read", "tasks:update"]


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


class TokenServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        self.db = self.session_factory()
        self.service = make_token_service()

    def tearDown(self) -> None:
        self.db.close()


class TestIssueAndValidate(TokenServiceTestCase):
    """issue_tokens -> validate_access_token returns the snapshot taken at issuance."""

    def test_user_claims_round_trip(self) -> None:
        user = make_user(self.db, "alice")
        pair = self.service.issue_tokens(self.db, user)
        claims = self.service.validate_access_token(pair.access_token)
        self.assertEqual(claims.user_id, user.id)
        self.assertEqual(claims.username, "alice")
        self.assertEqual(claims.roles, ["user"])
        self.assertEqual(claims.permissions, USER_PERMISSIONS)
        self.assertEqual(claims.exp - claims.iat, timedelta(hours=1))
        self.assertEqual(pair.expires_in, 3600)

    def test_admin_holds_every_default_permission(self) -> None:
        admin = make_user(self.db, "root", roles=["admin"])
        claims = self.service.validate_access_token(self.service.issue_tokens(self.db, admin).access_token)
        expected = sorted(f"{resource}:{action}" for resource, action in DEFAULT_PERMISSIONS)
        self.assertEqual(claims.permissions, expected)
        self.assertEqual(claims.roles, ["admin"])

    def test_permissions_deduplicated_across_roles(self) -> None:
        both = make_user(self.db, "both", roles=["admin", "user"])
        claims = self.service.validate_access_token(self.service.issue_tokens(self.db, both).access_token)
        self.assertEqual(claims.roles, ["admin", "user"])
        self.assertEqual(len(claims.permissions), len(set(claims.permissions)))
        self.assertEqual(len(claims.permissions), len(DEFAULT_PERMISSIONS))

    def test_refresh_token_persisted_with_expiry(self) -> None:
        user = make_user(self.db, "alice")
        before = datetime.now(UTC)
        pair = self.service.issue_tokens(self.db, user)
        record = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.refresh_token == uuid.UUID(pair.refresh_token))
            .one()
        )
        self.assertEqual(record.user_id, user.id)
        expires_at = _aware(record.expires_at)
        self.assertGreaterEqual(expires_at, before + timedelta(days=7) - timedelta(seconds=1))
        self.assertLessEqual(expires_at, datetime.now(UTC) + timedelta(days=7))

    def test_access_token_wire_format(self) -> None:
        user = make_user(self.db, "alice")
        pair = self.service.issue_tokens(self.db, user)
        header = jwt.get_unverified_header(pair.access_token)
        payload = jwt.decode(pair.access_token, TEST_SECRET, algorithms=["HS256"])
        self.assertEqual(header["alg"], "HS256")
        self.assertEqual(payload["user_id"], str(user.id))
        self.assertEqual(
            set(payload),
            {"user_id", "username", "roles", "permissions", "iat", "exp"},
        )
        self.assertIsInstance(payload["iat"], int)


class TestValidationFailures(TokenServiceTestCase):
    """Expired tokens and tampered tokens fail with different errors."""

    def test_expired_token(self) -> None:
        user = make_user(self.db, "alice")
        two_hours_ago = datetime.now(UTC) - timedelta(hours=2)
        past_service = make_token_service(clock=lambda: two_hours_ago)
        pair = past_service.issue_tokens(self.db, user)
        with self.assertRaises(ExpiredToken) as ctx:
            self.service.validate_access_token(pair.access_token)
        self.assertEqual(ctx.exception.message, "token has expired")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_forged_payload_with_original_signature(self) -> None:
        user = make_user(self.db, "alice")
        pair = self.service.issue_tokens(self.db, user)
        header, _, signature = pair.access_token.split(".")
        forged = jwt.encode(
            {
                "user_id": str(user.id),
                "username": "alice",
                "roles": ["admin"],
                "permissions": ["users:delete"],
                "iat": int(datetime.now(UTC).timestamp()),
                "exp": int((datetime.now(UTC) + timedelta(hours=1)).timestamp()),
            },
            "attacker-secret",
            algorithm="HS256",
        )
        forged_payload = forged.split(".")[1]
        with self.assertRaises(InvalidToken) as ctx:
            self.service.validate_access_token(f"{header}.{forged_payload}.{signature}")
        self.assertEqual(ctx.exception.message, "invalid token")

    def test_token_signed_with_other_secret(self) -> None:
        user = make_user(self.db, "alice")
        other = TokenService(secret="some-other-secret")
        pair = other.issue_tokens(self.db, user)
        with self.assertRaises(InvalidToken):
            self.service.validate_access_token(pair.access_token)

    def test_expired_and_tampered_reports_invalid(self) -> None:
        user = make_user(self.db, "alice")
        past = datetime.now(UTC) - timedelta(hours=2)
        pair = TokenService(secret="some-other-secret", clock=lambda: past).issue_tokens(self.db, user)
        with self.assertRaises(InvalidToken):
            self.service.validate_access_token(pair.access_token)

    def test_garbage(self) -> None:
        for token in ("", "not-a-jwt", "a.b.c"):
            with self.subTest(token=token):
                with self.assertRaises(InvalidToken):
                    self.service.validate_access_token(token)

    def test_missing_claims(self) -> None:
        token = jwt.encode(
            {"user_id": str(uuid.uuid4()), "exp": int(datetime.now(UTC).timestamp()) + 60},
            TEST_SECRET,
            algorithm="HS256",
        )
        with self.assertRaises(InvalidToken):
            self.service.validate_access_token(token)

    def test_non_uuid_user_id(self) -> None:
        now = int(datetime.now(UTC).timestamp())
        token = jwt.encode(
            {
                "user_id": "42",
                "username": "alice",
                "roles": [],
                "permissions": [],
                "iat": now,
                "exp": now + 60,
            },
            TEST_SECRET,
            algorithm="HS256",
        )
        with self.assertRaises(InvalidToken):
            self.service.validate_access_token(token)


class TestClaimSnapshot(TokenServiceTestCase):
    """Policy changes after issuance do not alter an issued token."""

    def test_old_token_keeps_claims_after_role_revoked(self) -> None:
        user = make_user(self.db, "alice")
        old = self.service.issue_tokens(self.db, user)

        revoke_role(self.db, user, "user")

        old_claims = self.service.validate_access_token(old.access_token)
        self.assertEqual(old_claims.roles, ["user"])
        self.assertEqual(old_claims.permissions, USER_PERMISSIONS)

        new_claims = self.service.validate_access_token(
            self.service.refresh_tokens(self.db, old.refresh_token).access_token
        )
        self.assertEqual(new_claims.roles, [])
        self.assertEqual(new_claims.permissions, [])

    def test_old_token_lacks_permission_granted_later(self) -> None:
        user = make_user(self.db, "alice")
        old = self.service.issue_tokens(self.db, user)

        grant_permission(self.db, "user", "users", "read")
        assign_role(self.db, user, "admin")

        old_claims = self.service.validate_access_token(old.access_token)
        self.assertNotIn("users:read", old_claims.permissions)
        self.assertEqual(old_claims.roles, ["user"])

        new_claims = self.service.validate_access_token(self.service.issue_tokens(self.db, user).access_token)
        self.assertIn("users:read", new_claims.permissions)
        self.assertEqual(new_claims.roles, ["admin", "user"])


class TestRefreshRotation(TokenServiceTestCase):
    def test_rotation_replaces_refresh_token(self) -> None:
        user = make_user(self.db, "alice")
        first = self.service.issue_tokens(self.db, user)
        second = self.service.refresh_tokens(self.db, first.refresh_token)

        self.assertNotEqual(second.refresh_token, first.refresh_token)
        self.assertEqual(self.service.validate_access_token(second.access_token).user_id, user.id)
        values = [str(r.refresh_token) for r in self.db.query(RefreshToken).all()]
        self.assertEqual(values, [second.refresh_token])

    def test_second_redemption_fails(self) -> None:
        user = make_user(self.db, "alice")
        first = self.service.issue_tokens(self.db, user)
        self.service.refresh_tokens(self.db, first.refresh_token)
        with self.assertRaises(InvalidRefreshToken) as ctx:
            self.service.refresh_tokens(self.db, first.refresh_token)
        self.assertEqual(ctx.exception.status_code, 401)

    def test_malformed_value(self) -> None:
        with self.assertRaises(InvalidRefreshToken):
            self.service.refresh_tokens(self.db, "not-a-uuid")

    def test_unknown_value(self) -> None:
        with self.assertRaises(InvalidRefreshToken):
            self.service.refresh_tokens(self.db, str(uuid.uuid4()))

    def test_expired_refresh_token(self) -> None:
        user = make_user(self.db, "alice")
        long_ago = datetime.now(UTC) - timedelta(days=8)
        pair = make_token_service(clock=lambda: long_ago).issue_tokens(self.db, user)
        with self.assertRaises(RefreshTokenExpired) as ctx:
            self.service.refresh_tokens(self.db, pair.refresh_token)
        self.assertEqual(ctx.exception.message, "refresh token expired")

    def test_soft_deleted_owner(self) -> None:
        user = make_user(self.db, "alice")
        pair = self.service.issue_tokens(self.db, user)
        user.deleted_at = datetime.now(UTC)
        self.db.commit()
        with self.assertRaises(InvalidRefreshToken):
            self.service.refresh_tokens(self.db, pair.refresh_token)

    def test_lost_race_maps_to_invalid_refresh_token(self) -> None:
        """A delete that removes no row means another request redeemed the token first."""
        record = MagicMock(id=uuid.uuid4(), user_id=uuid.uuid4())
        record.expires_at = datetime.now(UTC) + timedelta(days=1)
        user = MagicMock(id=record.user_id, username="alice")
        db = MagicMock()
        db.query.return_value.filter.return_value.first.side_effect = [record, user]
        db.query.return_value.filter.return_value.delete.return_value = 0

        with self.assertRaises(InvalidRefreshToken):
            self.service.refresh_tokens(db, str(uuid.uuid4()))
        db.rollback.assert_called_once()
        db.add.assert_not_called()
        db.commit.assert_not_called()


class TestIssuanceFailure(unittest.TestCase):
    """A store failure while persisting the refresh token surfaces as TokenIssuanceFailed."""

    @patch("taskify.services.tokens.resolve_grants")
    def test_commit_failure(self, mock_grants: MagicMock) -> None:
        mock_grants.return_value = (["user"], ["tasks:read"])
        db = MagicMock()
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("db down"))
        user = MagicMock(id=uuid.uuid4(), username="alice")

        with self.assertRaises(TokenIssuanceFailed) as ctx:
            make_token_service().issue_tokens(db, user)
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertIsInstance(ctx.exception.cause, OperationalError)
        db.rollback.assert_called_once()


class TestConstruction(unittest.TestCase):
    def test_empty_secret_rejected(self) -> None:
        with self.assertRaises(ValueError):
            TokenService(secret="")

    def test_from_settings(self) -> None:
        settings = MagicMock()
        settings.JWT_SECRET.get_secret_value.return_value = "from-settings"
        settings.JWT_ALGORITHM = "HS512"
        settings.ACCESS_TOKEN_EXPIRE_MINUTES = 15
        settings.REFRESH_TOKEN_EXPIRE_DAYS = 3
        service = TokenService.from_settings(settings)
        self.assertEqual(service.algorithm, "HS512")
        self.assertEqual(service.expires_in, 900)
        self.assertEqual(service.refresh_ttl, timedelta(days=3))


if __name__ == "__main__":
    unittest.main()
