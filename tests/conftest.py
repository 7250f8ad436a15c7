import os

# Must be set before the application modules read their settings
os.environ["ENV"] = "testing"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ.setdefault("LOG_DIR", "logs")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from main import app
from core.database import Base
from models.users import User
from utils.deps import get_db
from utils.hashing import get_password_hash

# SYNC SQLite for testing (matches sync service layer)
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

TEST_PASSWORD = "TestPassword123!"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False}
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    Creates a fresh, empty database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def container():
    """Services the application was built with."""
    return app.state.container


@pytest.fixture
def token_service(container):
    return container.token_service


@pytest.fixture
async def client(session: Session):
    """
    Yields an HTTP client that interacts with the app using the test database.
    The client is async (for FastAPI), but the DB session is sync.
    """
    def override_get_db():
        try:
            yield session
        finally:
            pass  # Session cleanup handled by session fixture

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


def make_user(session: Session, email: str = "test@example.com", password: str = TEST_PASSWORD,
              is_active: bool = True, **fields) -> User:
    user = User(
        email=email,
        first_name=fields.pop("first_name", "Test"),
        last_name=fields.pop("last_name", "User"),
        hashed_password=get_password_hash(password),
        phone=fields.pop("phone", "+201111111111"),
        is_active=is_active,
        **fields
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def verified_user(session: Session) -> User:
    return make_user(session)


@pytest.fixture
def inactive_user(session: Session) -> User:
    return make_user(session, email="inactive@example.com", is_active=False)


@pytest.fixture
async def logged_in(client, verified_user) -> dict:
    """Login response ``data`` for ``verified_user``."""
    response = await client.post("/api/v1/auth/login", json={
        "email": verified_user.email,
        "password": TEST_PASSWORD
    })
    assert response.status_code == 200
    return response.json()["data"]
