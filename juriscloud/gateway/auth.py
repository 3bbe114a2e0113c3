"""Email/password auth provider backed by the ``profiles`` table."""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from juriscloud.auth.schemas import AuthResponse, AuthSession, AuthUser
from juriscloud.auth.utils import (
    create_access_token, create_confirmation_token, decode_token, get_password_hash, verify_password
)
from juriscloud.config import ACCESS_TOKEN_EXPIRE_MINUTES, AUTO_CONFIRM_SIGNUPS, MIN_PASSWORD_LENGTH, PUBLIC_BASE_URL
from juriscloud.gateway.errors import AuthError
from juriscloud.gateway.query import Gateway
from juriscloud.models import ProfileStatus, utcnow

logger = logging.getLogger(__name__)

AuthListener = Callable[[str, Optional[AuthSession]], None]
ConfirmationSender = Callable[[AuthUser, str], None]

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
USER_UPDATED = "USER_UPDATED"


def log_confirmation_link(user: AuthUser, token: str) -> None:
    logger.info(f"Confirmation link for {user.email}: {PUBLIC_BASE_URL}/auth/confirm?token={token}")


class AuthGateway:
    def __init__(self, gateway: Optional[Gateway] = None, auto_confirm: Optional[bool] = None,
                 send_confirmation: Optional[ConfirmationSender] = None):
        self._db = (gateway or Gateway()).service()
        self.auto_confirm = AUTO_CONFIRM_SIGNUPS if auto_confirm is None else auto_confirm
        self.send_confirmation = send_confirmation or log_confirmation_link
        self._listeners: List[AuthListener] = []

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _emit(self, event: str, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    async def _find_profile(self, **filters) -> Optional[dict]:
        query = self._db.table("profiles").select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        response = await query.maybe_single().execute()
        return response.raise_for_error().data

    async def sign_up(self, email: str, password: str, data: Optional[dict] = None) -> AuthResponse:
        """Register a profile. Without auto confirmation no session is returned."""
        email = email.strip().lower()
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters", code="weak_password")
        if await self._find_profile(email=email):
            raise AuthError("User already registered", code="user_already_exists")

        fields = {key: value for key, value in (data or {}).items() if value is not None}
        now = utcnow()
        profile = {
            "email": email,
            "password_hash": get_password_hash(password),
            "first_name": fields.get("first_name"),
            "last_name": fields.get("last_name"),
            "company_name": fields.get("company_name"),
            "phone": fields.get("phone"),
            "status": ProfileStatus.ACTIVE if self.auto_confirm else ProfileStatus.PENDING,
            "email_confirmed_at": now if self.auto_confirm else None,
        }
        response = await self._db.table("profiles").insert(profile).execute()
        user = AuthUser.from_profile(response.raise_for_error().data[0])
        logger.info(f"Registered user {user.id} ({user.status.value})")

        if not self.auto_confirm:
            self.send_confirmation(user, create_confirmation_token(user.id))
            return AuthResponse(user=user)
        session = self._issue_session(user)
        self._emit(SIGNED_IN, session)
        return AuthResponse(user=user, session=session)

    async def confirm_user(self, email: str) -> AuthUser:
        profile = await self._find_profile(email=email.strip().lower())
        if profile is None:
            raise AuthError("User not found", code="user_not_found")
        return await self._activate(profile)

    async def verify_email(self, token: str) -> AuthUser:
        """Confirm the address behind a link sent at sign up."""
        payload = decode_token(token, expected_type="confirm")
        if payload is None:
            raise AuthError("Email link is invalid or has expired", code="otp_expired")
        profile = await self._find_profile(user_id=payload["sub"])
        if profile is None:
            raise AuthError("User not found", code="user_not_found")
        return await self._activate(profile)

    async def _activate(self, profile: dict) -> AuthUser:
        response = await (
            self._db.table("profiles")
            .update({"status": ProfileStatus.ACTIVE, "email_confirmed_at": utcnow()})
            .eq("id", profile["id"])
            .execute()
        )
        user = AuthUser.from_profile(response.raise_for_error().data[0])
        self._emit(USER_UPDATED, None)
        return user

    async def sign_in_with_password(self, email: str, password: str) -> AuthResponse:
        profile = await self._find_profile(email=email.strip().lower())
        if profile is None or not verify_password(password, profile["password_hash"]):
            raise AuthError("Invalid login credentials", code="invalid_credentials")
        if profile["status"] != ProfileStatus.ACTIVE:
            raise AuthError("Email not confirmed", code="email_not_confirmed")

        response = await (
            self._db.table("profiles")
            .update({"last_sign_in_at": utcnow()})
            .eq("id", profile["id"])
            .execute()
        )
        user = AuthUser.from_profile(response.raise_for_error().data[0])
        session = self._issue_session(user)
        logger.info(f"User {user.id} signed in")
        self._emit(SIGNED_IN, session)
        return AuthResponse(user=user, session=session)

    def _issue_session(self, user: AuthUser) -> AuthSession:
        token = create_access_token(data={"sub": user.id, "email": user.email})
        return AuthSession(access_token=token, expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60, user=user)

    async def _claims(self, token: str) -> dict:
        payload = decode_token(token)
        if payload is None or not payload.get("sub"):
            raise AuthError("Invalid or expired token", code="bad_jwt")
        revoked = await (
            self._db.table("revoked_tokens").select("jti").eq("jti", payload.get("jti")).maybe_single().execute()
        )
        if revoked.raise_for_error().data:
            raise AuthError("Session has been signed out", code="session_revoked")
        return payload

    async def get_user(self, token: str) -> AuthUser:
        payload = await self._claims(token)
        profile = await self._find_profile(user_id=payload["sub"])
        if profile is None:
            raise AuthError("User not found", code="user_not_found")
        return AuthUser.from_profile(profile)

    async def get_session(self, token: str) -> AuthSession:
        """Rebuild the session for a token issued earlier (startup restore)."""
        payload = await self._claims(token)
        user = await self.get_user(token)
        remaining = int(payload["exp"] - datetime.now(timezone.utc).timestamp())
        return AuthSession(access_token=token, expires_in=max(remaining, 0), user=user)

    async def sign_out(self, token: str) -> None:
        payload = await self._claims(token)
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc).replace(tzinfo=None)
        response = await (
            self._db.table("revoked_tokens")
            .insert({"jti": payload["jti"], "user_id": payload["sub"], "expires_at": expires_at})
            .execute()
        )
        response.raise_for_error()
        logger.info(f"User {payload['sub']} signed out")
        self._emit(SIGNED_OUT, None)
