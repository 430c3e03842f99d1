import unittest
from datetime import timedelta

from database import db
from errors import Conflict, Unauthorized, ValidationError
from models.user import User
from services.auth_service import INVALID_LOGIN_MESSAGE, AuthService
from tests.utils.base import AppTestCase


class AuthServiceTestCase(AppTestCase):
    def test_register_hashes_password_and_issues_credential(self):
        with self.app.app_context():
            user, token = self.services.auth.register("newbie", "newbie@example.com", "secret1", "New Person")
            self.assertNotEqual(user.password_hash, "secret1")
            self.assertTrue(user.check_password("secret1"))
            self.assertEqual(self.services.auth.verify(token).id, user.id)

    def test_register_with_existing_email_is_a_conflict(self):
        with self.app.app_context():
            with self.assertRaises(Conflict) as ctx:
                self.services.auth.register("another", "owner@example.com", "secret1", "Another")
            self.assertEqual(ctx.exception.message, "Email already registered")
            self.assertEqual(User.query.filter_by(username="another").count(), 0)

    def test_register_with_existing_username_is_a_conflict(self):
        with self.app.app_context():
            with self.assertRaises(Conflict) as ctx:
                self.services.auth.register("owner", "fresh@example.com", "secret1", "Another")
            self.assertEqual(ctx.exception.message, "Username already taken")

    def test_register_validates_email_shape_and_password_length(self):
        with self.app.app_context():
            with self.assertRaises(ValidationError) as ctx:
                self.services.auth.register("newbie", "not-an-email", "secret1", "New")
            self.assertEqual(ctx.exception.message, "Invalid email format")
            with self.assertRaises(ValidationError) as ctx:
                self.services.auth.register("newbie", "newbie@example.com", "12345", "New")
            self.assertEqual(ctx.exception.message, "Password must be at least 6 characters long")

    def test_login_failures_share_one_message(self):
        with self.app.app_context():
            with self.assertRaises(Unauthorized) as wrong_password:
                self.services.auth.login("owner@example.com", "not-the-password")
            with self.assertRaises(Unauthorized) as unknown_email:
                self.services.auth.login("nobody@example.com", "password123")
        self.assertEqual(wrong_password.exception.message, INVALID_LOGIN_MESSAGE)
        self.assertEqual(wrong_password.exception.message, unknown_email.exception.message)

    def test_user_without_password_cannot_log_in(self):
        with self.app.app_context():
            db.session.add(User(username="nopass", name="No Password", email="nopass@example.com"))
            db.session.commit()
            with self.assertRaises(Unauthorized):
                self.services.auth.login("nopass@example.com", "anything")

    def test_verify_rejects_expired_tampered_and_orphaned_credentials(self):
        with self.app.app_context():
            expired_issuer = AuthService(db.session, self.app.config["JWT_SECRET"], expires_in=timedelta(seconds=-5))
            expired = expired_issuer.issue_credential(self.owner())
            with self.assertRaises(Unauthorized) as ctx:
                self.services.auth.verify(expired)
            self.assertEqual(ctx.exception.message, "Token has expired")

            foreign = AuthService(db.session, "another-signing-secret-0123456789abcdef").issue_credential(self.owner())
            with self.assertRaises(Unauthorized) as ctx:
                self.services.auth.verify(foreign)
            self.assertEqual(ctx.exception.message, "Invalid token")

            with self.assertRaises(Unauthorized):
                self.services.auth.verify("not.a.jwt")

            ghost = self._make_user("ghost", "Ghost", "ghost@example.com")
            db.session.add(ghost)
            db.session.commit()
            token = self.services.auth.issue_credential(ghost)
            db.session.delete(ghost)
            db.session.commit()
            with self.assertRaises(Unauthorized) as ctx:
                self.services.auth.verify(token)
            self.assertEqual(ctx.exception.message, "User not found")

    def test_update_profile_rehashes_password_and_rejects_collisions(self):
        with self.app.app_context():
            user = self.services.auth.update_profile(self.owner_id, {"password": "brandnew", "name": "Renamed"})
            self.assertTrue(user.check_password("brandnew"))
            self.assertEqual(user.name, "Renamed")

            with self.assertRaises(Conflict):
                self.services.auth.update_profile(self.owner_id, {"email": "member@example.com"})
            with self.assertRaises(ValidationError):
                self.services.auth.update_profile(self.owner_id, {})

            # Keeping your own username is not a collision.
            user = self.services.auth.update_profile(self.owner_id, {"username": "owner"})
            self.assertEqual(user.username, "owner")


class AuthRoutesTestCase(AppTestCase):
    def test_register_route_returns_user_and_token(self):
        response = self.client.post(
            "/api/auth/register",
            json={"username": "newbie", "email": "newbie@example.com", "password": "secret1", "name": "New"},
        )
        self.assertEqual(response.status_code, 201)
        body = response.get_json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["user"]["username"], "newbie")
        self.assertNotIn("password_hash", body["data"]["user"])
        self.assertTrue(body["data"]["token"])

    def test_register_conflict_issues_no_token(self):
        response = self.client.post(
            "/api/auth/register",
            json={"username": "dupe", "email": "owner@example.com", "password": "secret1", "name": "Dupe"},
        )
        self.assertEqual(response.status_code, 400)
        body = response.get_json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "Conflict")
        self.assertNotIn("data", body)

    def test_register_requires_every_field(self):
        response = self.client.post("/api/auth/register", json={"username": "newbie"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "ValidationError")

    def test_login_route(self):
        response = self.client.post("/api/auth/login", json={"email": "owner@example.com", "password": "password123"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["user"]["id"], self.owner_id)

        wrong = self.client.post("/api/auth/login", json={"email": "owner@example.com", "password": "nope123"})
        unknown = self.client.post("/api/auth/login", json={"email": "who@example.com", "password": "nope123"})
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(unknown.status_code, 401)
        self.assertEqual(wrong.get_json()["message"], unknown.get_json()["message"])

    def test_verify_requires_token(self):
        response = self.client.get("/api/auth/verify")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(
            response.get_json(),
            {"success": False, "message": "Access token required", "error": "Unauthorized"},
        )

        response = self.client.get("/api/auth/verify", headers=self.auth_headers())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["user"]["username"], "owner")

    def test_verify_rejects_malformed_header(self):
        response = self.client.get("/api/auth/verify", headers={"Authorization": "Token abc"})
        self.assertEqual(response.status_code, 401)

    def test_profile_roundtrip(self):
        response = self.client.get("/api/auth/profile", headers=self.auth_headers())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["email"], "owner@example.com")

        response = self.client.put(
            "/api/auth/profile",
            headers=self.auth_headers(),
            json={"name": "Owner Renamed", "avatar": "https://example.com/a.png"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["name"], "Owner Renamed")

        response = self.client.put("/api/auth/profile", headers=self.auth_headers(), json={"username": "member"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "Conflict")

    def test_non_string_fields_are_rejected(self):
        response = self.client.post(
            "/api/auth/register",
            json={"username": 12345, "email": "numbers@example.com", "password": "secret1", "name": "Numbers"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "ValidationError")

        response = self.client.post("/api/auth/login", json={"email": 5, "password": "password123"})
        self.assertEqual(response.status_code, 400)

        response = self.client.put("/api/auth/profile", headers=self.auth_headers(), json={"name": ["Owner"]})
        self.assertEqual(response.status_code, 400)

    def test_blank_avatar_is_stored_as_none(self):
        self.client.put("/api/auth/profile", headers=self.auth_headers(), json={"avatar": "a.png"})
        response = self.client.put("/api/auth/profile", headers=self.auth_headers(), json={"avatar": ""})
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.get_json()["data"]["avatar"])


if __name__ == "__main__":
    unittest.main()
