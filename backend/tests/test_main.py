from fastapi.testclient import TestClient


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data

def test_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Attendance Time Tracking API"

def test_login(client: TestClient, manager):
    form_data = {
        "username": "admin",
        "password": "changeme"
    }
    response = client.post("/token", data=form_data)
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"

def test_login_wrong_password(client: TestClient, manager):
    response = client.post("/token", data={"username": "admin", "password": "wrong"})
    assert response.status_code == 401

def test_users_me(client: TestClient, manager, manager_headers):
    response = client.get("/users/me/", headers=manager_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["username"] == "admin"
    assert data["is_manager"] is True

def test_protected_route_requires_token(client: TestClient):
    response = client.get("/api/v1/time-entries/status")
    assert response.status_code == 401
