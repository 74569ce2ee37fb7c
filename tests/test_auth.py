from datetime import timedelta

from adventureconnect.auth.utils import create_access_token

from conftest import API, PASSWORD


def test_register_traveler_returns_token_and_sends_welcome(client, sender):
    response = client.post(f"{API}/auth/register", json={
        "email": "Sarah@Example.com",
        "password": PASSWORD,
        "first_name": "Sarah",
        "last_name": "Miller",
        "role": "traveler",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"]
    assert body["user"]["email"] == "sarah@example.com"
    assert body["user"]["role"] == "traveler"
    assert body["user"]["provider_profile"] is None
    assert "password" not in body["user"] and "password_hash" not in body["user"]
    assert sender.templates_for("sarah@example.com") == ["welcome_traveler"]


def test_register_provider_creates_pending_profile(market, sender):
    account = market.register("provider", email="alex@example.com", first_name="Alex", last_name="Chen")

    profile = account["user"]["provider_profile"]
    assert profile["approval_state"] == "pending"
    assert profile["business_name"] == "Alex Chen"
    assert profile["commission_rate"] == "15.00"
    assert sender.templates_for("alex@example.com") == ["welcome_provider"]


def test_register_rejects_unknown_role(client):
    response = client.post(f"{API}/auth/register", json={
        "email": "admin@example.com",
        "password": PASSWORD,
        "first_name": "Ada",
        "last_name": "Admin",
        "role": "admin",
    })

    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_role"


def test_register_rejects_malformed_body(client):
    response = client.post(f"{API}/auth/register", json={
        "email": "not-an-email",
        "password": "123",
        "first_name": "",
        "last_name": "X",
        "role": "traveler",
        "is_admin": True,
    })

    assert response.status_code == 400
    body = response.json()
    assert body["kind"] == "validation_error"
    assert body["errors"]


def test_register_duplicate_email_is_conflict(market, client):
    market.traveler(email="dup@example.com")

    response = client.post(f"{API}/auth/register", json={
        "email": "DUP@example.com",
        "password": PASSWORD,
        "first_name": "Second",
        "last_name": "Account",
        "role": "provider",
    })

    assert response.status_code == 409
    assert response.json()["kind"] == "duplicate_email"


def test_login_failures_are_indistinguishable(market, client):
    market.traveler(email="known@example.com")

    wrong_password = client.post(f"{API}/auth/login", json={"email": "known@example.com", "password": "nope-nope"})
    unknown_email = client.post(f"{API}/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {
        "kind": "invalid_credentials",
        "message": "Invalid email or password",
    }


def test_login_and_me(market, client):
    market.traveler(email="me@example.com", first_name="Maya")

    login = client.post(f"{API}/auth/login", json={"email": "me@example.com", "password": PASSWORD})
    assert login.status_code == 200

    me = client.get(f"{API}/auth/me", headers=market.auth(login.json()))
    assert me.status_code == 200
    assert me.json()["first_name"] == "Maya"


def test_oauth2_token_form(market, client):
    market.traveler(email="form@example.com")

    response = client.post(f"{API}/auth/token", data={"username": "form@example.com", "password": PASSWORD})

    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"


def test_update_me_changes_password(market, client):
    account = market.traveler(email="change@example.com")

    response = client.put(
        f"{API}/auth/me",
        json={"last_name": "Renamed", "password": "brand-new-pass"},
        headers=market.auth(account),
    )
    assert response.status_code == 200
    assert response.json()["last_name"] == "Renamed"

    old = client.post(f"{API}/auth/login", json={"email": "change@example.com", "password": PASSWORD})
    new = client.post(f"{API}/auth/login", json={"email": "change@example.com", "password": "brand-new-pass"})
    assert old.status_code == 401
    assert new.status_code == 200


def test_me_requires_valid_token(client, settings):
    missing = client.get(f"{API}/auth/me")
    garbage = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    expired_token = create_access_token({"sub": "1"}, settings, expires_delta=timedelta(seconds=-5))
    expired = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {expired_token}"})

    for response in (missing, garbage, expired):
        assert response.status_code == 401
        assert response.json()["kind"] == "unauthenticated"
        assert response.headers["WWW-Authenticate"] == "Bearer"
    assert expired.json()["message"] == "Token has expired"


def test_token_for_deleted_account_is_rejected(client, settings):
    token = create_access_token({"sub": "9999"}, settings)

    response = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_role_gate_blocks_travelers_from_provider_endpoints(market, client):
    traveler = market.traveler()

    response = client.get(f"{API}/providers/me/stats", headers=market.auth(traveler))

    assert response.status_code == 403
    assert response.json()["kind"] == "forbidden"
