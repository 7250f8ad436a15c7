from jose import jwt
from core.config import settings
from models.refresh_tokens import RefreshToken
from conftest import make_user, TEST_PASSWORD


async def test_login_success(client, verified_user, session):
    """Test successful user login."""
    response = await client.post("/api/v1/auth/login", json={
        "email": verified_user.email,
        "password": TEST_PASSWORD
    })

    assert response.status_code == 200

    body = response.json()
    assert body["success"] is True
    assert body["message"] == "SUCCESS"
    assert body["status"] == "OK"
    assert body["timestamp"]
    assert "errors" not in body
    assert "error" not in body

    data = body["data"]
    assert isinstance(data["token"], str) and len(data["token"]) > 0
    assert isinstance(data["refreshToken"], str) and len(data["refreshToken"]) > 0

    # Verify user info, without sensitive data
    assert data["user"]["id"] == verified_user.id
    assert data["user"]["email"] == verified_user.email
    assert data["user"]["firstName"] == verified_user.first_name
    assert "password" not in data["user"]
    assert "hashedPassword" not in data["user"]

    # Verify token claims
    payload = jwt.decode(data["token"], settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert payload["sub"] == verified_user.email
    assert payload["id"] == verified_user.id
    assert payload["type"] == "access"

    # Refresh token was persisted
    stored = session.query(RefreshToken).filter(
        RefreshToken.refresh_token == data["refreshToken"]
    ).first()
    assert stored is not None
    assert stored.user_id == verified_user.id


async def test_login_example_credentials(client, session):
    make_user(session, email="a@b.com", password="secret")

    response = await client.post("/api/v1/auth/login", json={"email": "a@b.com", "password": "secret"})

    assert response.status_code == 200
    assert response.json()["data"]["token"]
    assert response.json()["data"]["refreshToken"]


async def test_login_email_is_case_insensitive(client, verified_user):
    response = await client.post("/api/v1/auth/login", json={
        "email": "  TEST@Example.com ",
        "password": TEST_PASSWORD
    })

    assert response.status_code == 200


async def test_each_login_opens_a_new_session(client, verified_user, session):
    for _ in range(2):
        response = await client.post("/api/v1/auth/login", json={
            "email": verified_user.email,
            "password": TEST_PASSWORD
        })
        assert response.status_code == 200

    assert session.query(RefreshToken).filter(RefreshToken.user_id == verified_user.id).count() == 2


async def test_login_wrong_password(client, verified_user, session):
    """Test login with incorrect password."""
    response = await client.post("/api/v1/auth/login", json={
        "email": verified_user.email,
        "password": "WrongPassword123!"
    })

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["status"] == "UNPROCESSABLE_ENTITY"
    assert body["error"]["code"] == "INVALID_CREDENTIALS"
    assert "invalid email or password" in body["message"].lower()
    assert "data" not in body
    assert session.query(RefreshToken).count() == 0


async def test_login_nonexistent_user(client):
    """Test login with non-existent email."""
    response = await client.post("/api/v1/auth/login", json={
        "email": "nonexistent@example.com",
        "password": "Password123!"
    })

    assert response.status_code == 422
    assert response.json()["success"] is False


async def test_login_inactive_user(client, inactive_user):
    """Test login for an inactive user"""
    response = await client.post("/api/v1/auth/login", json={
        "email": inactive_user.email,
        "password": TEST_PASSWORD
    })

    assert response.status_code == 422
    assert "inactive" in response.json()["message"].lower()


async def test_login_validation_errors(client):
    response = await client.post("/api/v1/auth/login", json={"email": "not-an-email"})

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert "email" in body["errors"]
    assert "password" in body["errors"]
