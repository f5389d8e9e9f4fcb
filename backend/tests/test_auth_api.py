"""
Authentication and authorization API tests.

Verifies:
- Member self-registration and its guards
- Login by email or mobile, inactive accounts, bad credentials
- 401 without a token, 403 for roles lacking a permission
"""

import pytest

from dairy_api.models import Member, User

from conftest import PASSWORD, auth_headers


# =============================================================================
# REGISTRATION
# =============================================================================


class TestRegistration:

    def test_register_creates_member_with_wallet(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "name": "Neha",
            "email": "Neha@Example.com",
            "mobile": "9123456780",
            "password": PASSWORD,
        })
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["token"]
        assert body["user"]["role"] == "MEMBER"
        assert body["user"]["email"] == "neha@example.com"
        assert body["user"]["member"]["wallet_balance"] == 0.0

        user = db_session.query(User).filter_by(mobile="9123456780").one()
        assert db_session.query(Member).filter_by(user_id=user.id).count() == 1

    def test_register_ignores_requested_role(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "name": "Sneaky",
            "email": "sneaky@example.com",
            "password": PASSWORD,
            "role": "ADMIN",
        })
        assert resp.status_code == 201
        assert resp.get_json()["user"]["role"] == "MEMBER"

    def test_duplicate_email_conflicts(self, client, member_user):
        resp = client.post("/api/auth/register", json={
            "name": "Again",
            "email": "asha@example.com",
            "password": PASSWORD,
        })
        assert resp.status_code == 409

    def test_needs_email_or_mobile(self, client, db_session):
        resp = client.post("/api/auth/register", json={"name": "Nobody", "password": PASSWORD})
        assert resp.status_code == 400

    def test_short_password_rejected(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "name": "Weak",
            "email": "weak@example.com",
            "password": "abc",
        })
        assert resp.status_code == 400
        assert "password" in resp.get_json()["error"]["fields"]

    def test_bad_mobile_rejected(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "name": "Short Mobile",
            "mobile": "12345",
            "password": PASSWORD,
        })
        assert resp.status_code == 400

    def test_registration_can_be_disabled(self, app, client, db_session):
        app.config["ALLOW_REGISTRATION"] = False
        try:
            resp = client.post("/api/auth/register", json={
                "name": "Late",
                "email": "late@example.com",
                "password": PASSWORD,
            })
        finally:
            app.config["ALLOW_REGISTRATION"] = True
        assert resp.status_code == 403


# =============================================================================
# LOGIN
# =============================================================================


class TestLogin:

    @pytest.mark.parametrize("identifier", ["asha@example.com", "ASHA@example.com", "9876543210"])
    def test_login_by_email_or_mobile(self, client, member_user, identifier):
        resp = client.post("/api/auth/login", json={"identifier": identifier, "password": PASSWORD})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["user"]["id"] == member_user.id
        assert body["user"]["last_login_at"] is not None

    def test_wrong_password(self, client, member_user):
        resp = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "nope-nope"})
        assert resp.status_code == 401

    def test_unknown_user(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
        assert resp.status_code == 401

    def test_inactive_account_forbidden(self, client, db_session, member_user):
        member_user.is_active = False
        db_session.commit()
        resp = client.post("/api/auth/login", json={"email": "asha@example.com", "password": PASSWORD})
        assert resp.status_code == 403

    def test_token_reaches_me(self, client, member_user):
        resp = client.post("/api/auth/login", json={"mobile": "9876543210", "password": PASSWORD})
        token = resp.get_json()["token"]
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.get_json()["user"]["member"]["name"] == "Asha Member"

    def test_deactivated_user_token_rejected(self, client, db_session, member_user):
        headers = auth_headers(member_user)
        member_user.is_active = False
        db_session.commit()
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_change_password(self, client, member_user, member_headers):
        resp = client.post("/api/auth/change-password", headers=member_headers, json={
            "current_password": PASSWORD,
            "new_password": "brand-new-pass",
        })
        assert resp.status_code == 200
        relog = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "brand-new-pass"})
        assert relog.status_code == 200

    def test_change_password_requires_current(self, client, member_headers):
        resp = client.post("/api/auth/change-password", headers=member_headers, json={
            "current_password": "wrong-one",
            "new_password": "brand-new-pass",
        })
        assert resp.status_code == 400


# =============================================================================
# AUTHORIZATION
# =============================================================================


class TestAuthorization:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/products"),
            ("GET", "/api/wallet"),
            ("GET", "/api/admin/members"),
            ("GET", "/api/admin/dashboard"),
            ("POST", "/api/product-orders"),
            ("GET", "/api/transfers"),
            ("GET", "/api/reports/deliveries"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token_rejected(self, client, db_session):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401
        assert resp.get_json()["error"]["status"] == 401

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/admin/members"),
            ("GET", "/api/admin/wallets"),
            ("POST", "/api/admin/users"),
            ("POST", "/api/depots"),
            ("GET", "/api/stock-ledgers"),
            ("GET", "/api/leads"),
            ("GET", "/api/reports/wallets"),
            ("POST", "/api/invoices/orders/1"),
        ],
    )
    def test_member_denied_admin_routes(self, client, member_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=member_headers, json={})
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"

    def test_agency_cannot_manage_wallets(self, client, agency_headers):
        resp = client.post("/api/admin/wallets/1/add-funds", headers=agency_headers, json={"amount": 10})
        assert resp.status_code == 403

    def test_admin_creates_staff_user(self, client, admin_headers, second_depot):
        resp = client.post("/api/admin/users", headers=admin_headers, json={
            "name": "Depot Lead",
            "email": "lead@example.com",
            "password": PASSWORD,
            "role": "DepotAdmin",
            "depot_id": second_depot.id,
        })
        assert resp.status_code == 201
        assert resp.get_json()["depot_id"] == second_depot.id

    def test_health(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200


# =============================================================================
# CROSS-ORIGIN REQUESTS
# =============================================================================


class TestCors:
    def test_allowed_origin_echoed(self, client, db_session):
        resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert resp.status_code == 200
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_unknown_origin_gets_no_header(self, client, db_session):
        resp = client.get("/api/health", headers={"Origin": "https://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers

    def test_preflight_allows_authorization_header(self, client, db_session):
        resp = client.options(
            "/api/product-orders",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Authorization",
            },
        )
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
        assert "authorization" in resp.headers["Access-Control-Allow-Headers"].lower()
