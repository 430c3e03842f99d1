"""Registration, login and bearer credential handling."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

import jwt
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from errors import Conflict, InternalError, Unauthorized, ValidationError
from forms import LoginForm, RegisterForm, UserForm, validate_payload
from models.user import User
from services import commit_or_raise, load_or_404

INVALID_LOGIN_MESSAGE = "Invalid email or password"
PROFILE_FIELDS = ("name", "email", "username", "password", "avatar")


class AuthService:
    """Issues and verifies signed, time-limited credentials bound to a user id.

    Credentials are stateless: nothing is stored server-side, so logging out
    is just the client discarding its token.
    """

    def __init__(
        self,
        session,
        secret: str,
        *,
        algorithm: str = "HS256",
        expires_in: timedelta = timedelta(days=7),
    ):
        if not secret:
            raise ValueError("A signing secret is required.")
        self.session = session
        self._secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in

    # Credentials
    # ------------------------------
    def issue_credential(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "sub": str(user.id),
            "iat": now,
            "exp": now + self.expires_in,
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, credential: str | None) -> User:
        """Return the user a credential refers to, or raise ``Unauthorized``."""
        if not credential:
            raise Unauthorized("Access token required")
        try:
            claims = jwt.decode(credential, self._secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise Unauthorized("Token has expired") from None
        except jwt.InvalidTokenError:
            raise Unauthorized("Invalid token") from None

        try:
            user_id = int(claims.get("sub"))
        except (TypeError, ValueError):
            raise Unauthorized("Invalid token") from None

        try:
            user = self.session.get(User, user_id)
        except SQLAlchemyError as exc:
            logging.exception("Unable to load user for credential")
            raise InternalError("Authentication failed") from exc
        if user is None:
            raise Unauthorized("User not found")
        return user

    # Accounts
    # ------------------------------
    def register(self, username, email, password, name) -> tuple[User, str]:
        data = validate_payload(
            RegisterForm,
            {"username": username, "email": email, "password": password, "name": name},
        )
        ensure_unique_identity(self.session, data["username"], data["email"])

        user = User(username=data["username"], email=data["email"], name=data["name"])
        user.set_password(data["password"])
        self.session.add(user)
        commit_or_raise(self.session, "Registration failed")
        logging.info("Registered user %s", user.id)
        return user, self.issue_credential(user)

    def login(self, email, password) -> tuple[User, str]:
        data = validate_payload(LoginForm, {"email": email, "password": password})
        try:
            user = self.session.query(User).filter_by(email=data["email"]).first()
        except SQLAlchemyError as exc:
            logging.exception("Unable to look up user during login")
            raise InternalError("Login failed") from exc
        if user is None or not user.check_password(data["password"]):
            logging.info("Rejected login attempt")
            raise Unauthorized(INVALID_LOGIN_MESSAGE)
        return user, self.issue_credential(user)

    def get_profile(self, user_id: int) -> User:
        return load_or_404(self.session, User, user_id, "User")

    def update_profile(self, user_id: int, fields: Mapping[str, Any]) -> User:
        """Apply the profile ``fields`` present in the request."""
        updates = {key: fields[key] for key in PROFILE_FIELDS if key in fields}
        if not updates:
            raise ValidationError("No fields to update")
        user = load_or_404(self.session, User, user_id, "User")
        data = validate_payload(UserForm, updates, partial=True)
        ensure_unique_identity(self.session, data.get("username"), data.get("email"), exclude_id=user.id)

        password = data.pop("password", None)
        if password is not None:
            user.set_password(password)
        for key, value in data.items():
            setattr(user, key, value)
        commit_or_raise(self.session, "Failed to update user profile")
        return user


def ensure_unique_identity(session, username, email, *, exclude_id: int | None = None) -> None:
    """Raise ``Conflict`` when ``username`` or ``email`` belongs to another user."""
    checks = []
    if username:
        checks.append(User.username == username)
    if email:
        checks.append(User.email == email)
    if not checks:
        return
    query = session.query(User).filter(or_(*checks))
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    try:
        existing = query.first()
    except SQLAlchemyError as exc:
        logging.exception("Unable to check for existing users")
        raise InternalError("Failed to validate user identity") from exc
    if existing is None:
        return
    if email and existing.email == email:
        raise Conflict("Email already registered")
    raise Conflict("Username already taken")


__all__ = ["AuthService", "INVALID_LOGIN_MESSAGE", "ensure_unique_identity"]
