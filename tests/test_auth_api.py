from extensions import db
from models_auth import User
from tests.utils.workbooks import register


def test_register_and_me(client):
    headers = register(client)
    me = client.get("/api/auth/me", headers=headers).get_json()["user"]
    assert me["username"] == "alice"
    assert me["email"] == "alice@example.com"
    assert me["role"] == "user"
    assert "passwordHash" not in me and "password_hash" not in me


def test_register_validation(client):
    register(client)
    resp = client.post("/api/auth/register",
                       json={"username": "alice", "email": "other@example.com", "password": "secret123"})
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "user_exists"

    resp = client.post("/api/auth/register", json={"username": "al", "email": "a@b.co", "password": "secret123"})
    assert resp.get_json()["error"] == "bad_username"
    resp = client.post("/api/auth/register", json={"username": "dave", "email": "nope", "password": "secret123"})
    assert resp.get_json()["error"] == "bad_email"
    resp = client.post("/api/auth/register", json={"username": "dave", "email": "d@b.co", "password": "123"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "weak_password"


def test_login_by_email_or_username(client):
    register(client)
    for ident in ({"email": "ALICE@example.com"}, {"username": "alice"}):
        resp = client.post("/api/auth/login", json={**ident, "password": "secret123"})
        assert resp.status_code == 200
        assert resp.get_json()["token"]

    resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-one"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "bad_credentials"


def test_token_errors(app, client):
    assert client.get("/api/auth/me").get_json()["error"] == "missing_token"

    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "invalid_token"

    app.config["JWT_TTL_MIN"] = -1
    headers = register(client)
    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "token_expired"


def test_inactive_user_is_refused(app, client):
    headers = register(client)
    with app.app_context():
        u = User.query.filter_by(username="alice").one()
        u.is_active = False
        db.session.commit()
    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "user_inactive"


def test_profile_update(client, auth_headers):
    resp = client.put("/api/auth/profile", headers=auth_headers,
                      json={"profile": {"firstName": "Alice", "company": "ACME"}})
    assert resp.status_code == 200
    profile = resp.get_json()["user"]["profile"]
    assert profile["firstName"] == "Alice"
    assert profile["company"] == "ACME"
    assert profile["lastName"] is None


def test_password_change(client, auth_headers):
    resp = client.put("/api/auth/password", headers=auth_headers,
                      json={"currentPassword": "bad", "newPassword": "another1"})
    assert resp.status_code == 400

    resp = client.put("/api/auth/password", headers=auth_headers,
                      json={"currentPassword": "secret123", "newPassword": "another1"})
    assert resp.status_code == 200
    login = client.post("/api/auth/login", json={"username": "alice", "password": "another1"})
    assert login.status_code == 200
