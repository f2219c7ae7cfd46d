import pytest
from fastapi.testclient import TestClient

from app.main import app
from tests.helpers import auth, create_user


@pytest.fixture()
def people(db_session):
    return {
        "alice": create_user(db_session, "alice@cable.test", full_name="Alice Smith"),
        "bob": create_user(db_session, "bob@cable.test", full_name="Bob Jones"),
        "carol": create_user(db_session, "carol@other.test", full_name="Carol Retired", is_active=False),
    }


def test_users_require_auth(db_session):
    client = TestClient(app)
    assert client.get("/users").status_code == 401


def test_list_users_active_only_by_default(db_session, people):
    client = TestClient(app)
    r = client.get("/users", headers=auth("alice@cable.test"))
    assert r.status_code == 200
    assert [u["full_name"] for u in r.json()] == ["Alice Smith", "Bob Jones"]

    r = client.get("/users?include_inactive=true", headers=auth("alice@cable.test"))
    assert [u["full_name"] for u in r.json()] == ["Alice Smith", "Bob Jones", "Carol Retired"]


def test_list_users_search_matches_name_or_email(db_session, people):
    client = TestClient(app)
    r = client.get("/users?search=JONES", headers=auth("alice@cable.test"))
    assert [u["email"] for u in r.json()] == ["bob@cable.test"]

    r = client.get("/users?search=cable.test", headers=auth("alice@cable.test"))
    assert len(r.json()) == 2


def test_list_users_limit_and_offset(db_session, people):
    client = TestClient(app)
    r = client.get("/users?limit=1&offset=1", headers=auth("alice@cable.test"))
    assert [u["full_name"] for u in r.json()] == ["Bob Jones"]

    assert client.get("/users?limit=0", headers=auth("alice@cable.test")).status_code == 422


def test_autocomplete_shape(db_session, people):
    client = TestClient(app)
    r = client.get("/users/autocomplete?search=ali", headers=auth("alice@cable.test"))
    assert r.status_code == 200
    alice = people["alice"]
    assert r.json() == [
        {
            "id": str(alice.id),
            "value": str(alice.id),
            "label": "Alice Smith",
            "name": "Alice Smith",
            "email": "alice@cable.test",
        }
    ]


def test_autocomplete_hides_inactive_users(db_session, people):
    client = TestClient(app)
    r = client.get("/users/autocomplete?search=carol", headers=auth("alice@cable.test"))
    assert r.json() == []


def test_get_user_by_id(db_session, people):
    client = TestClient(app)
    bob = people["bob"]

    r = client.get(f"/users/{bob.id}", headers=auth("alice@cable.test"))
    assert r.status_code == 200
    assert r.json()["email"] == "bob@cable.test"

    r = client.get("/users/not-a-uuid", headers=auth("alice@cable.test"))
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid user ID format"

    r = client.get("/users/00000000-0000-0000-0000-000000000000", headers=auth("alice@cable.test"))
    assert r.status_code == 404


def test_get_user_by_email(db_session, people):
    client = TestClient(app)

    r = client.get("/users/email/BOB@cable.test", headers=auth("alice@cable.test"))
    assert r.status_code == 200
    assert r.json()["id"] == str(people["bob"].id)

    r = client.get("/users/email/nobody@cable.test", headers=auth("alice@cable.test"))
    assert r.status_code == 404
    assert r.json()["detail"] == "User not found"

    r = client.get("/users/email/not-an-email", headers=auth("alice@cable.test"))
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid email format"
