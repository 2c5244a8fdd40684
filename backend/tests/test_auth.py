"""Authentication endpoint tests."""

from starlette.requests import Request

from havens.core.rate_limit import get_user_or_ip
from havens.core.rbac import UserRole
from havens.core.security import verify_password
from havens.models.user import User

API = "/api/v1"

REGISTRATION = {
    "name": "Arjun Mehta",
    "phone": "9812345678",
    "email": "Arjun@Example.com",
    "password": "tandoori1",
    "address": "44 Hauz Khas Village, New Delhi",
}


class TestRegister:
    def test_register_returns_token(self, client, db_session):
        resp = client.post(f"{API}/auth/register", json=REGISTRATION)
        assert resp.status_code == 201
        assert resp.json()["token_type"] == "bearer"

        user = db_session.query(User).filter(User.email == "arjun@example.com").one()
        assert user.role == UserRole.CUSTOMER
        assert user.password_hash != REGISTRATION["password"]
        assert verify_password("tandoori1", user.password_hash)

    def test_duplicate_email(self, client):
        client.post(f"{API}/auth/register", json=REGISTRATION)
        resp = client.post(f"{API}/auth/register", json={**REGISTRATION, "email": "arjun@example.com"})
        assert resp.status_code == 409

    def test_invalid_fields_listed(self, client):
        resp = client.post(
            f"{API}/auth/register",
            json={**REGISTRATION, "phone": "5123456789", "password": "abc", "address": "Delhi"},
        )
        assert resp.status_code == 422
        assert set(resp.json()["errors"]) == {"phone", "password", "address"}


class TestLogin:
    def test_customer_login(self, client, customer):
        resp = client.post(f"{API}/auth/login", json={"email": "priya@example.com", "password": "testpass123"})
        assert resp.status_code == 200
        token = resp.json()["access_token"]

        me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "priya@example.com"
        assert "password_hash" not in me.json()

    def test_email_is_case_insensitive(self, client, customer):
        resp = client.post(f"{API}/auth/login", json={"email": " PRIYA@example.com ", "password": "testpass123"})
        assert resp.status_code == 200

    def test_wrong_password_and_unknown_user_look_the_same(self, client, customer):
        wrong = client.post(f"{API}/auth/login", json={"email": "priya@example.com", "password": "nope"})
        unknown = client.post(f"{API}/auth/login", json={"email": "nobody@example.com", "password": "nope"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json()["detail"] == unknown.json()["detail"] == "Invalid email or password"

    def test_portals_are_separate(self, client, customer, manager):
        assert client.post(
            f"{API}/auth/staff/login", json={"email": "priya@example.com", "password": "testpass123"}
        ).status_code == 401
        assert client.post(
            f"{API}/auth/login", json={"email": "manager@havens.test", "password": "testpass123"}
        ).status_code == 401
        assert client.post(
            f"{API}/auth/staff/login", json={"email": "manager@havens.test", "password": "testpass123"}
        ).status_code == 200

    def test_inactive_account_refused(self, client, db_session, manager):
        manager.is_active = False
        db_session.commit()
        resp = client.post(f"{API}/auth/staff/login", json={"email": "manager@havens.test", "password": "testpass123"})
        assert resp.status_code == 401


class TestCurrentUser:
    def test_requires_token(self, client):
        assert client.get(f"{API}/auth/me").status_code == 401

    def test_garbage_token(self, client):
        resp = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_permissions_exposed(self, client, manager_headers):
        resp = client.get(f"{API}/auth/me", headers=manager_headers)
        assert resp.status_code == 200
        permissions = resp.json()["permissions"]
        assert permissions["manage_orders"] is True
        assert permissions["manage_outlets"] is False

    def test_deactivated_account_token_refused(self, client, db_session, manager, manager_headers):
        manager.is_active = False
        db_session.commit()
        assert client.get(f"{API}/auth/me", headers=manager_headers).status_code == 401


class TestRateLimitKey:
    @staticmethod
    def _request(headers=None):
        return Request({
            "type": "http",
            "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
            "client": ("203.0.113.7", 51000),
        })

    def test_keyed_by_account_when_signed_in(self, customer, customer_headers):
        assert get_user_or_ip(self._request(customer_headers)) == f"user:{customer.id}"

    def test_guests_keyed_by_address(self):
        assert get_user_or_ip(self._request()) == "203.0.113.7"
        assert get_user_or_ip(self._request({"Authorization": "Bearer not-a-token"})) == "203.0.113.7"
