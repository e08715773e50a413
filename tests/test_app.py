from __future__ import annotations

from pathlib import Path

import pytest

from recipe_manager import create_app
from recipe_manager.config import Settings
from recipe_manager.users import UserDirectory, UserRecord


def create_test_client():
    users = UserDirectory.from_url("sqlite://")
    settings = Settings(data_dir=Path("unused"), cors_origin="http://localhost:3000")
    app = create_app(users=users, settings=settings)
    app.config.update(TESTING=True)
    return app.test_client(), users


def register(client, name="Alice", email="alice@example.com", password="secret1"):
    return client.post("/api/register", json={"name": name, "email": email, "password": password})


def test_register_creates_user():
    client, _ = create_test_client()

    response = register(client)

    assert response.status_code == 201
    body = response.get_json()
    assert body["success"] is True
    assert body["user"]["name"] == "Alice"
    assert body["user"]["email"] == "alice@example.com"
    assert isinstance(body["user"]["id"], int)
    assert "password" not in body["user"]


def test_register_stores_only_a_password_hash():
    client, users = create_test_client()
    register(client)

    with users._sessions() as session:
        record = session.query(UserRecord).one()

    assert record.password != "secret1"
    assert record.created_at is not None


def test_register_trims_name_and_email():
    client, _ = create_test_client()

    body = register(client, name="  Alice ", email=" alice@example.com ").get_json()

    assert body["user"]["name"] == "Alice"
    assert body["user"]["email"] == "alice@example.com"


def test_register_rejects_duplicate_email():
    client, _ = create_test_client()
    register(client)

    response = register(client, name="Other")

    assert response.status_code == 409
    assert response.get_json() == {"success": False, "error": "Email is already registered"}


def test_register_validates_input():
    client, _ = create_test_client()

    cases = [
        ({"name": " ", "email": "a@b.co", "password": "secret1"}, "Name cannot be empty"),
        ({"name": "A", "email": "not-an-email", "password": "secret1"}, "Invalid email format"),
        ({"name": "A", "email": "a@b.co", "password": "12345"}, "Password must be at least 6 characters long"),
        ({"name": "A", "email": "a@b.co"}, "Name, email, and password are required"),
    ]
    for payload, message in cases:
        response = client.post("/api/register", json=payload)
        assert response.status_code == 400
        assert response.get_json() == {"success": False, "error": message}


def test_login_returns_user():
    client, _ = create_test_client()
    user_id = register(client).get_json()["user"]["id"]

    response = client.post("/api/login", json={"email": "alice@example.com", "password": "secret1"})

    assert response.status_code == 200
    assert response.get_json() == {
        "success": True,
        "user": {"id": user_id, "name": "Alice", "email": "alice@example.com"},
    }


def test_login_does_not_reveal_which_credential_was_wrong():
    client, _ = create_test_client()
    register(client)

    wrong_password = client.post("/api/login", json={"email": "alice@example.com", "password": "nope123"})
    unknown_email = client.post("/api/login", json={"email": "bob@example.com", "password": "secret1"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.get_json() == unknown_email.get_json() == {
        "success": False,
        "error": "Invalid credentials",
    }


def test_login_rejects_bad_requests():
    client, _ = create_test_client()

    empty = client.post("/api/login", data="")
    garbage = client.post("/api/login", data="{not json", content_type="application/json")
    missing = client.post("/api/login", json={"email": "alice@example.com"})
    bad_email = client.post("/api/login", json={"email": "alice", "password": "secret1"})

    assert empty.get_json()["error"] == "No data received"
    assert garbage.get_json()["error"] == "Invalid JSON data"
    assert missing.get_json()["error"] == "Email and password are required"
    assert bad_email.get_json()["error"] == "Invalid email format"
    assert {r.status_code for r in (empty, garbage, missing, bad_email)} == {400}


def test_responses_carry_cors_headers():
    client, _ = create_test_client()

    response = client.get("/api/health")

    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
    assert "POST" in response.headers["Access-Control-Allow-Methods"]


def test_preflight_request_is_answered():
    client, _ = create_test_client()

    response = client.options("/api/login")

    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Headers"] == "Content-Type"


def test_health_reports_database_status():
    client, _ = create_test_client()

    body = client.get("/api/health").get_json()

    assert body["success"] is True
    assert body["timestamp"]


@pytest.mark.parametrize("url", ["sqlite://", "sqlite+pysqlite://", "sqlite:///:memory:", "sqlite+pysqlite:///:memory:"])
def test_in_memory_database_urls_share_one_connection(url):
    users = UserDirectory.from_url(url)

    created = users.register("Alice", "alice@example.com", "secret1")

    assert users.authenticate("alice@example.com", "secret1") == created


def test_file_database_url_persists_users(tmp_path: Path):
    url = f"sqlite:///{tmp_path / 'users.db'}"
    UserDirectory.from_url(url).register("Alice", "alice@example.com", "secret1")

    assert UserDirectory.from_url(url).authenticate("alice@example.com", "secret1").name == "Alice"
