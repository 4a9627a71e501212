def register(client, email, role="customer"):
    return client.post(
        "/api/auth/register",
        json={"name": "Sam Sample", "email": email, "password": "s3cret-password", "role": role},
    )


def test_register_and_login(client):
    response = register(client, "sam@example.com", role="provider")
    assert response.status_code == 201
    assert response.json()["role"] == "provider"
    assert "password_hash" not in response.json()

    login = client.post("/api/auth/login", json={"email": "sam@example.com", "password": "s3cret-password"})
    assert login.status_code == 200
    body = login.json()
    assert body["token_type"] == "bearer"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.json()["email"] == "sam@example.com"


def test_duplicate_email_is_rejected(client):
    assert register(client, "sam@example.com").status_code == 201
    assert register(client, "sam@example.com").status_code == 400


def test_wrong_password(client):
    register(client, "sam@example.com")

    response = client.post("/api/auth/login", json={"email": "sam@example.com", "password": "nope"})

    assert response.status_code == 401


def test_oauth2_token_endpoint(client):
    register(client, "sam@example.com")

    response = client.post("/api/token", data={"username": "sam@example.com", "password": "s3cret-password"})

    assert response.status_code == 200
    assert response.json()["access_token"]


def test_token_endpoint_rejects_malformed_username(client):
    response = client.post("/api/token", data={"username": "not-an-email", "password": "x"})

    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Invalid input"
    assert [error["loc"] for error in body["errors"]] == [["email"]]
