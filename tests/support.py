"""Shared helpers: in-memory database, seeded policy, users and an API client."""

import unittest
from collections.abc import Generator, Iterable

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from taskify.api.dependencies import get_token_service
from taskify.core.authorization import USER_ROLE
from taskify.core.database import get_db
from taskify.core.security import hash_password
from taskify.main import app
from taskify.models import Base, Task, User
from taskify.services.policy import get_role, seed_default_policy
from taskify.services.tokens import TokenService

TEST_SECRET = "unit-test-signing-secret"
DEFAULT_PASSWORD = "password123"


def make_session_factory(seed: bool = True) -> sessionmaker:
    """Fresh in-memory SQLite database shared by every session from the factory."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    if seed:
        db = factory()
        try:
            seed_default_policy(db)
        finally:
            db.close()
    return factory


def make_token_service(**kwargs: object) -> TokenService:
    return TokenService(secret=TEST_SECRET, **kwargs)


def make_user(
    db: Session,
    username: str,
    roles: Iterable[str] = (USER_ROLE,),
    password: str = DEFAULT_PASSWORD,
) -> User:
    """Create a user holding the given roles."""
    user = User(
        username=username,
        email=f"{username}@test.com",
        password_hash=hash_password(password, rounds=4),
    )
    for role_name in roles:
        user.roles.append(get_role(db, role_name))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_task(db: Session, owner: User, title: str = "Task") -> Task:
    task = Task(title=title, description=f"{title} description", user_id=owner.id)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def make_client(session_factory: sessionmaker, token_service: TokenService) -> TestClient:
    """TestClient whose database and token service point at the test doubles."""

    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_service] = lambda: token_service
    return TestClient(app)


def clear_overrides() -> None:
    app.dependency_overrides.clear()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class ApiTestCase(unittest.TestCase):
    """Seeded database, token service and TestClient wired together per test."""

    prefix = "/api/v1"

    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        self.db = self.session_factory()
        self.token_service = make_token_service()
        self.client = make_client(self.session_factory, self.token_service)

    def tearDown(self) -> None:
        clear_overrides()
        self.db.close()

    def login_headers(self, user: User) -> dict[str, str]:
        """Authorization header carrying a freshly issued access token for user."""
        return bearer(self.token_service.issue_tokens(self.db, user).access_token)
