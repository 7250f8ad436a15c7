from models.blacklisted_tokens import BlacklistedToken


async def test_blacklist_token(client, logged_in, verified_user, session):
    token = logged_in["token"]

    response = await client.post("/api/v1/auth/blacklisted_token", json={"token": token})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Token blacklisted successfully"
    assert body["data"]["userId"] == verified_user.id
    assert body["data"]["blacklistedAt"]
    assert body["data"]["expiresAt"]
    assert "token" not in body["data"]

    assert session.query(BlacklistedToken).filter(BlacklistedToken.token == token).count() == 1

    response = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


async def test_blacklist_token_twice(client, logged_in):
    await client.post("/api/v1/auth/blacklisted_token", json={"token": logged_in["token"]})

    response = await client.post("/api/v1/auth/blacklisted_token", json={"token": logged_in["token"]})

    assert response.status_code == 200
    assert response.json()["message"] == "Token already blacklisted"


async def test_blacklist_refresh_token_leaves_refresh_flow_alone(client, logged_in):
    """The blacklist guards access; refresh tokens are governed by the store."""
    response = await client.post("/api/v1/auth/blacklisted_token", json={"token": logged_in["refreshToken"]})
    assert response.status_code == 200

    response = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {logged_in['token']}"})
    assert response.status_code == 200


async def test_blacklist_invalid_token(client, session):
    response = await client.post("/api/v1/auth/blacklisted_token", json={"token": "garbage"})

    assert response.status_code == 401
    assert response.json()["message"] == "Token is invalid"
    assert session.query(BlacklistedToken).count() == 0


async def test_blacklist_empty_token(client):
    response = await client.post("/api/v1/auth/blacklisted_token", json={"token": "   "})

    assert response.status_code == 422
    assert "token" in response.json()["errors"]
