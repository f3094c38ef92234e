from conftest import ADMIN, PASSWORD


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True


def test_healthz_ok(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_login_me_logout(client):
    # Anonymous is rejected
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json == {"error": "Unauthorized"}

    r = client.post("/api/auth/login", json={"email": ADMIN, "password": PASSWORD})
    assert r.status_code == 200
    assert r.json["success"] is True
    assert r.json["user"]["email"] == ADMIN
    assert r.json["user"]["role"] == "admin"
    assert "hasFinanceAccess" not in r.json["user"]

    r = client.get("/api/auth/me")
    assert r.status_code == 200
    assert r.json["user"]["fullName"] == "Admin"
    assert r.json["user"]["hasFinanceAccess"] is False

    r = client.post("/api/auth/logout")
    assert r.status_code == 200
    r = client.get("/api/auth/me")
    assert r.status_code == 401


def test_unknown_route_is_json(client):
    r = client.get("/api/does-not-exist")
    assert r.status_code == 404
    assert "error" in r.json
