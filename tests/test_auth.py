TEST_PASSWORD = "password123"


def test_register(client):
    response = client.post("/api/auth/register", json={
        "name": "Test User",
        "email": "TestUser@gearguard.io",
        "password": "TestPassword123",
    })
    assert response.status_code == 201
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["email"] == "testuser@gearguard.io"
    assert data["user"]["role"] == "User"


def test_register_duplicate_email(client, make_user):
    make_user(email="taken@gearguard.io")
    response = client.post("/api/auth/register", json={
        "name": "Someone Else",
        "email": "taken@gearguard.io",
        "password": "TestPassword123",
    })
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "email"


def test_register_technician_into_unknown_team(client):
    response = client.post("/api/auth/register", json={
        "name": "Tech",
        "email": "tech@gearguard.io",
        "password": "TestPassword123",
        "role": "Technician",
        "team_id": "00000000-0000-0000-0000-000000000000",
    })
    assert response.status_code == 404


def test_register_short_password(client):
    response = client.post("/api/auth/register", json={
        "name": "Short",
        "email": "short@gearguard.io",
        "password": "abc",
    })
    assert response.status_code == 422


def test_login_and_me(client, make_user):
    user = make_user(email="login@gearguard.io")

    response = client.post("/api/auth/login", json={"email": "login@gearguard.io", "password": TEST_PASSWORD})
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["id"] == str(user.id)


def test_login_invalid(client, make_user):
    make_user(email="login@gearguard.io")
    response = client.post("/api/auth/login", json={"email": "login@gearguard.io", "password": "wrong"})
    assert response.status_code == 401

    response = client.post("/api/auth/login", json={"email": "nobody@gearguard.io", "password": "wrong"})
    assert response.status_code == 401


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code in (401, 403)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["success"] is True
