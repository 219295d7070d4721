"""
Authentication API tests.

Covers email signup/login, phone OTP sign-in, Google sign-in, logout and
the bearer-token gate every protected route sits behind.
"""
from datetime import timedelta

import pytest
from jose import jwt
from sqlalchemy import select, update

from storefront.services.auth_service.models import OtpCode, User, UserSession
from storefront.shared.security import create_access_token, token_sha256
from storefront.shared.utils import utcnow
from tests.conftest import bearer


async def latest_otp(session_factory, phone: str) -> str:
    async with session_factory() as session:
        result = await session.execute(
            select(OtpCode).where(OtpCode.phone == phone).order_by(OtpCode.id.desc()).limit(1)
        )
        return result.scalars().first().otp_code


class TestSignupAndLogin:

    async def test_signup_returns_user_and_token(self, client, signup):
        body = await signup("New.Shopper@Example.com")

        assert body["message"] == "User registered successfully"
        assert body["user"]["email"] == "new.shopper@example.com"
        assert body["user"]["firstName"] == "Asha"
        assert body["user"]["isVerified"] is False

        me = await client.get("/api/auth/me", headers=bearer(body["token"]))
        assert me.json()["user"]["id"] == body["user"]["id"]

    async def test_duplicate_email_is_a_conflict(self, client, signup):
        await signup("dup@example.com")

        resp = await client.post(
            "/api/auth/signup",
            json={"email": "dup@example.com", "password": "secret123", "firstName": "Ravi", "lastName": "Kumar"},
        )

        assert resp.status_code == 409

    async def test_duplicate_phone_is_a_conflict(self, client, signup):
        await signup("first@example.com", phone="9876543210")

        resp = await client.post(
            "/api/auth/signup",
            json={
                "email": "second@example.com",
                "password": "secret123",
                "firstName": "Ravi",
                "lastName": "Kumar",
                "phone": "9876543210",
            },
        )

        assert resp.status_code == 409

    async def test_signup_validation_reports_fields(self, client):
        resp = await client.post(
            "/api/auth/signup",
            json={"email": "not-an-email", "password": "123", "firstName": "A", "lastName": "Rao"},
        )

        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Validation failed."
        assert {e["field"] for e in body["errors"]} == {"email", "password", "firstName"}

    async def test_login_with_correct_password(self, client, signup):
        await signup("login@example.com", password="secret123")

        resp = await client.post("/api/auth/login", json={"email": "login@example.com", "password": "secret123"})

        assert resp.status_code == 200
        assert resp.json()["message"] == "Login successful"
        assert resp.json()["token"]

    @pytest.mark.parametrize("email, password", [
        ("login@example.com", "wrong-password"),
        ("nobody@example.com", "secret123"),
    ])
    async def test_login_failures_are_indistinguishable(self, client, signup, email, password):
        await signup("login@example.com", password="secret123")

        resp = await client.post("/api/auth/login", json={"email": email, "password": password})

        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid credentials."}

    async def test_deactivated_user_cannot_log_in_or_use_token(self, client, signup, session_factory):
        body = await signup("gone@example.com")
        async with session_factory() as session:
            await session.execute(update(User).where(User.id == body["user"]["id"]).values(is_active=False))
            await session.commit()

        login = await client.post("/api/auth/login", json={"email": "gone@example.com", "password": "secret123"})
        me = await client.get("/api/auth/me", headers=bearer(body["token"]))

        assert login.status_code == 401
        assert login.json() == {"error": "Account is deactivated."}
        assert me.json() == {"error": "Account is deactivated."}

    async def test_login_is_rate_limited(self, client, signup):
        await signup("busy@example.com")

        statuses = [
            (await client.post("/api/auth/login", json={"email": "busy@example.com", "password": "nope"})).status_code
            for _ in range(11)
        ]

        assert statuses[:10] == [401] * 10
        assert statuses[10] == 429


class TestTokens:

    async def test_each_issued_token_is_distinct(self):
        assert create_access_token(1) != create_access_token(1)

    async def test_missing_token(self, client):
        resp = await client.get("/api/auth/me")

        assert resp.status_code == 401
        assert resp.json() == {"error": "Access denied. No token provided."}

    async def test_tampered_token(self, client, customer):
        resp = await client.get("/api/auth/me", headers=bearer(customer["token"] + "x"))

        assert resp.json() == {"error": "Invalid token."}

    async def test_expired_token(self, client, customer):
        token = create_access_token(customer["user"]["id"], expires_delta=timedelta(seconds=-1))

        resp = await client.get("/api/auth/me", headers=bearer(token))

        assert resp.status_code == 401
        assert resp.json() == {"error": "Token expired."}

    async def test_token_for_unknown_user(self, client):
        resp = await client.get("/api/auth/me", headers=bearer(create_access_token(4242)))

        assert resp.json() == {"error": "User not found."}

    async def test_token_signed_with_other_key(self, client, customer):
        forged = jwt.encode({"sub": str(customer["user"]["id"]), "exp": utcnow() + timedelta(hours=1)}, "other-key")

        resp = await client.get("/api/auth/me", headers=bearer(forged))

        assert resp.json() == {"error": "Invalid token."}

    async def test_logout_revokes_only_that_token(self, client, customer):
        second = await client.post("/api/auth/login", json={"email": "customer@example.com", "password": "secret123"})

        out = await client.post("/api/auth/logout", headers=customer["headers"])
        revoked = await client.get("/api/auth/me", headers=customer["headers"])
        still_valid = await client.get("/api/auth/me", headers=bearer(second.json()["token"]))

        assert out.status_code == 200
        assert revoked.status_code == 401
        assert revoked.json() == {"error": "Token has been invalidated."}
        assert still_valid.status_code == 200

    async def test_blacklist_stores_token_hash(self, client, customer, session_factory):
        await client.post("/api/auth/logout", headers=customer["headers"])

        async with session_factory() as session:
            [entry] = (await session.execute(select(UserSession))).scalars().all()
        assert entry.token_hash == token_sha256(customer["token"])
        assert entry.token_hash != customer["token"]


class TestOtp:

    async def test_new_phone_user_signs_in_with_otp(self, client, session_factory):
        sent = await client.post("/api/auth/send-otp", json={"phone": "9876543210"})
        code = await latest_otp(session_factory, "9876543210")

        resp = await client.post(
            "/api/auth/verify-otp",
            json={
                "phone": "9876543210",
                "otp": code,
                "firstName": "Meera",
                "lastName": "Iyer",
                "email": "meera@example.com",
            },
        )

        assert sent.status_code == 200
        assert sent.json() == {"message": "OTP sent successfully."}
        assert resp.status_code == 200, resp.text
        assert resp.json()["user"]["phone"] == "9876543210"
        assert resp.json()["user"]["isVerified"] is True

    async def test_otp_is_single_use(self, client, session_factory):
        await client.post("/api/auth/send-otp", json={"phone": "9876543210"})
        code = await latest_otp(session_factory, "9876543210")
        payload = {"phone": "9876543210", "otp": code, "firstName": "Meera", "lastName": "Iyer", "email": "m@example.com"}

        first = await client.post("/api/auth/verify-otp", json=payload)
        second = await client.post("/api/auth/verify-otp", json=payload)

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json() == {"error": "Invalid or expired OTP."}

    async def test_expired_otp_is_rejected(self, client, session_factory):
        await client.post("/api/auth/send-otp", json={"phone": "9876543210"})
        code = await latest_otp(session_factory, "9876543210")
        async with session_factory() as session:
            await session.execute(update(OtpCode).values(expires_at=utcnow() - timedelta(minutes=1)))
            await session.commit()

        resp = await client.post(
            "/api/auth/verify-otp",
            json={"phone": "9876543210", "otp": code, "firstName": "Meera", "lastName": "Iyer", "email": "m@example.com"},
        )

        assert resp.json() == {"error": "Invalid or expired OTP."}

    async def test_new_phone_user_needs_profile_fields(self, client, session_factory):
        await client.post("/api/auth/send-otp", json={"phone": "9876543210"})
        code = await latest_otp(session_factory, "9876543210")

        resp = await client.post("/api/auth/verify-otp", json={"phone": "9876543210", "otp": code})

        assert resp.status_code == 400

    async def test_existing_phone_user_signs_in(self, client, signup, session_factory):
        existing = await signup("phone@example.com", phone="9876543210")
        await client.post("/api/auth/send-otp", json={"phone": "9876543210"})
        code = await latest_otp(session_factory, "9876543210")

        resp = await client.post("/api/auth/verify-otp", json={"phone": "9876543210", "otp": code})

        assert resp.json()["user"]["id"] == existing["user"]["id"]

    async def test_new_phone_user_with_taken_email_keeps_code(self, client, signup, session_factory):
        """
        SCENARIO: A new phone number signs in with an email another account already uses
        EXPECTED: Conflict; the code is not spent and works once a free email is given
        """
        await signup("taken@example.com")
        await client.post("/api/auth/send-otp", json={"phone": "9876543210"})
        code = await latest_otp(session_factory, "9876543210")
        payload = {"phone": "9876543210", "otp": code, "firstName": "Meera", "lastName": "Iyer"}

        taken = await client.post("/api/auth/verify-otp", json={**payload, "email": "Taken@Example.com"})
        retried = await client.post("/api/auth/verify-otp", json={**payload, "email": "meera@example.com"})

        assert taken.status_code == 409
        assert taken.json() == {"error": "User already exists with this email or phone."}
        assert retried.status_code == 200, retried.text
        assert retried.json()["user"]["email"] == "meera@example.com"

    async def test_send_otp_is_rate_limited(self, client):
        statuses = [
            (await client.post("/api/auth/send-otp", json={"phone": "9876543210"})).status_code for _ in range(6)
        ]

        assert statuses == [200] * 5 + [429]


class TestGoogle:

    async def test_first_google_login_creates_verified_user(self, client):
        resp = await client.post(
            "/api/auth/google",
            json={"googleId": "g-123", "email": "g@example.com", "firstName": "Kiran", "lastName": "Das"},
        )

        assert resp.status_code == 200
        assert resp.json()["user"]["isVerified"] is True

        again = await client.post(
            "/api/auth/google",
            json={"googleId": "g-123", "email": "g@example.com", "firstName": "Kiran", "lastName": "Das"},
        )
        assert again.json()["user"]["id"] == resp.json()["user"]["id"]

    async def test_google_links_existing_email_account(self, client, signup, session_factory):
        existing = await signup("linked@example.com")

        resp = await client.post(
            "/api/auth/google",
            json={
                "googleId": "g-777",
                "email": "linked@example.com",
                "firstName": "Asha",
                "lastName": "Rao",
                "avatarUrl": "https://example.com/a.png",
            },
        )

        assert resp.json()["user"]["id"] == existing["user"]["id"]
        assert resp.json()["user"]["avatarUrl"] == "https://example.com/a.png"
        async with session_factory() as session:
            user = await session.get(User, existing["user"]["id"])
        assert user.google_id == "g-777"
