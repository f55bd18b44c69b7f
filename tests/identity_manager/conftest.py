"""Pytest fixtures for identity_manager tests."""

import base64
import os
import shutil
from pathlib import Path
from typing import Callable, Generator, Iterable

# Settings are read at import time, so the test environment must be in place first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from identity_manager.core.security import create_access_token
from identity_manager.core.storage import LocalStorage
from identity_manager.database import Base, build_engine, get_db
from identity_manager.main import app
from identity_manager.models.role import RoleName
from identity_manager.models.user import User
from identity_manager.services.user_service import UserService

DEFAULT_PASSWORD = "password123"


@pytest.fixture(scope="function")
def test_db_engine():
    """Create an in-memory SQLite engine shared by every connection of one test."""
    engine = build_engine("sqlite://", poolclass=StaticPool)

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup: drop all tables
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_session(test_db_engine) -> Generator[Session, None, None]:
    """Create a database session for testing."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine,
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def temp_storage(tmp_path: Path) -> Generator[LocalStorage, None, None]:
    """Create a temporary avatar storage directory and install it as the global storage.

    Args:
        tmp_path: Pytest temporary directory fixture

    Yields:
        LocalStorage: Storage instance using temporary directory
    """
    storage_dir = tmp_path / "test_avatars"
    storage = LocalStorage(base_path=storage_dir)

    # Override the global storage instance
    import identity_manager.core.storage as storage_module

    original_storage = getattr(storage_module, "_storage", None)
    storage_module._storage = storage

    try:
        yield storage
    finally:
        # Restore original storage
        storage_module._storage = original_storage
        if storage_dir.exists():
            shutil.rmtree(storage_dir, ignore_errors=True)


@pytest.fixture(scope="function")
def test_client(test_db_session: Session, temp_storage: LocalStorage) -> Generator[TestClient, None, None]:
    """Create a test client with database dependency override."""

    def override_get_db() -> Generator[Session, None, None]:
        """Override get_db dependency to use test database session."""
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    client = TestClient(app)

    try:
        yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def user_service(test_db_session: Session, temp_storage: LocalStorage) -> UserService:
    return UserService(test_db_session, storage=temp_storage)


@pytest.fixture(scope="function")
def create_user(test_db_session: Session) -> Callable:
    """Factory function to create users through the user service.

    Returns:
        Function that creates a user and returns (user entity, JWT access token)

    Example:
        ```python
        def test_example(create_user):
            admin, token = create_user("admin@example.com", roles=(RoleName.ADMIN,))
            assert admin.has_role(RoleName.ADMIN)
        ```
    """

    def _create_user(
        email: str,
        password: str = DEFAULT_PASSWORD,
        first_name: str = "Test",
        last_name: str = "User",
        phone: str | None = None,
        is_privacy_enabled: bool = False,
        roles: Iterable[RoleName] = (RoleName.USER,),
    ) -> tuple[User, str]:
        created = UserService(test_db_session).create_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            is_privacy_enabled=is_privacy_enabled,
            roles=roles,
        )
        user = test_db_session.get(User, created.id)
        token = create_access_token(data={"sub": user.email})
        return user, token

    return _create_user


@pytest.fixture
def basic_auth() -> Callable[[str, str], dict[str, str]]:
    """Build an HTTP Basic ``Authorization`` header."""

    def _basic_auth(email: str, password: str = DEFAULT_PASSWORD) -> dict[str, str]:
        encoded = base64.b64encode(f"{email}:{password}".encode("utf-8")).decode("ascii")
        return {"Authorization": f"Basic {encoded}"}

    return _basic_auth


@pytest.fixture
def web_login(test_client: TestClient) -> Callable[[str, str], TestClient]:
    """Sign the test client in through the login form."""

    def _web_login(email: str, password: str = DEFAULT_PASSWORD) -> TestClient:
        response = test_client.post(
            "/login",
            data={"email": email, "password": password},
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/"
        return test_client

    return _web_login
