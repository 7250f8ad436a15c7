from datetime import timedelta
from models.refresh_tokens import RefreshToken


async def test_refresh_token_success(client, logged_in, verified_user):
    """Test successful token refresh with valid refresh token."""
    response = await client.post("/api/v1/auth/refresh_token", json={
        "refreshToken": logged_in["refreshToken"]
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "OK"

    data = body["data"]
    assert data["token"] and data["refreshToken"]
    assert data["token"] != logged_in["token"]
    assert data["refreshToken"] != logged_in["refreshToken"]

    # the new access token is accepted by protected endpoints
    response = await client.get("/api/v1/users/me", headers={
        "Authorization": f"Bearer {data['token']}"
    })
    assert response.status_code == 200
    assert response.json()["data"]["email"] == verified_user.email


async def test_refresh_token_rotation(client, logged_in, session):
    """Old refresh token is retired after a successful refresh."""
    old_refresh_token = logged_in["refreshToken"]

    response = await client.post("/api/v1/auth/refresh_token", json={"refreshToken": old_refresh_token})
    assert response.status_code == 200
    new_refresh_token = response.json()["data"]["refreshToken"]

    response = await client.post("/api/v1/auth/refresh_token", json={"refreshToken": old_refresh_token})
    assert response.status_code == 401
    assert response.json()["success"] is False
    assert "revoked" in response.json()["message"].lower()

    # the replacement keeps working
    response = await client.post("/api/v1/auth/refresh_token", json={"refreshToken": new_refresh_token})
    assert response.status_code == 200

    old_record = session.query(RefreshToken).filter(RefreshToken.refresh_token == old_refresh_token).first()
    assert old_record.revoked is True


async def test_refresh_accepts_snake_case_key(client, logged_in):
    response = await client.post("/api/v1/auth/refresh_token", json={
        "refresh_token": logged_in["refreshToken"]
    })

    assert response.status_code == 200


async def test_refresh_invalid_token_format(client):
    """Test that malformed refresh tokens are rejected."""
    response = await client.post("/api/v1/auth/refresh_token", json={
        "refreshToken": "invalid_token_format"
    })

    assert response.status_code == 401
    body = response.json()
    assert body["message"] == "Refresh token is invalid"
    assert body["status"] == "UNAUTHORIZED"


async def test_refresh_expired_token(client, verified_user, token_service):
    """A refresh token past its exp claim fails the signature check."""
    expired, _ = token_service.create_refresh_token(
        verified_user.id, verified_user.email, timedelta(seconds=-1)
    )

    response = await client.post("/api/v1/auth/refresh_token", json={"refreshToken": expired})

    assert response.status_code == 401
    assert response.json()["message"] == "Refresh token is invalid"


async def test_refresh_token_wrong_type(client, logged_in):
    """Test that access token cannot be used as refresh token."""
    response = await client.post("/api/v1/auth/refresh_token", json={
        "refreshToken": logged_in["token"]
    })

    assert response.status_code == 401
    assert response.json()["message"] == "Refresh token is invalid"


async def test_refresh_token_not_in_store(client, verified_user, token_service):
    """Correctly signed but never issued: rejected as unauthorized."""
    unknown, _ = token_service.create_refresh_token(verified_user.id, verified_user.email)

    response = await client.post("/api/v1/auth/refresh_token", json={"refreshToken": unknown})

    assert response.status_code == 401
    assert "not found" in response.json()["message"].lower()


async def test_refresh_empty_token(client):
    """Test that empty refresh token is rejected."""
    response = await client.post("/api/v1/auth/refresh_token", json={
        "refreshToken": ""
    })

    assert response.status_code == 422
    assert "refreshToken" in response.json()["errors"]


async def test_refresh_missing_token(client):
    """Test that missing refresh token field is rejected."""
    response = await client.post("/api/v1/auth/refresh_token", json={})

    assert response.status_code == 422


async def test_refresh_for_deactivated_user_revokes_sessions(client, logged_in, verified_user, session):
    verified_user.is_active = False
    session.commit()

    response = await client.post("/api/v1/auth/refresh_token", json={
        "refreshToken": logged_in["refreshToken"]
    })

    assert response.status_code == 401
    session.expire_all()
    tokens = session.query(RefreshToken).filter(RefreshToken.user_id == verified_user.id).all()
    assert tokens and all(t.revoked for t in tokens)
