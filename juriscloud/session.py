"""Current user session shared by the screens."""

import logging
from typing import Callable, List, Optional

from juriscloud.auth.schemas import AuthSession, AuthUser
from juriscloud.gateway.auth import AuthGateway, SIGNED_IN, SIGNED_OUT
from juriscloud.gateway.errors import AuthError, GatewayError
from juriscloud.notifications import Notifier

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[AuthUser]], None]

DASHBOARD_PATH = "/dashboard"
AUTH_PATH = "/auth"


class SessionContext:
    """Holds the signed in user and tells subscribers when it changes.

    Sign in navigates to the dashboard, sign out back to the auth screen.
    Failures become destructive notifications and are returned to the caller.
    """

    def __init__(self, auth: AuthGateway, notifier: Optional[Notifier] = None,
                 navigate: Optional[Callable[[str], None]] = None):
        self.auth = auth
        self.notifier = notifier or Notifier()
        self.navigate = navigate or (lambda path: None)
        self.loading = True
        self._session: Optional[AuthSession] = None
        self._listeners: List[SessionListener] = []
        self._unsubscribe_auth = auth.on_auth_state_change(self._on_auth_event)

    @property
    def user(self) -> Optional[AuthUser]:
        return self._session.user if self._session else None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    @property
    def access_token(self) -> Optional[str]:
        return self._session.access_token if self._session else None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    on_auth_state_change = subscribe

    def _set_session(self, session: Optional[AuthSession]) -> None:
        previous = self.user_id
        self._session = session
        self.loading = False
        if previous != self.user_id:
            for listener in list(self._listeners):
                listener(self.user)

    def _on_auth_event(self, event: str, session: Optional[AuthSession]) -> None:
        if event == SIGNED_IN:
            self._set_session(session)
        elif event == SIGNED_OUT:
            self._set_session(None)

    async def restore(self, access_token: Optional[str]) -> Optional[AuthUser]:
        """Re-establish a session from a stored token at startup."""
        session = None
        if access_token:
            try:
                session = await self.auth.get_session(access_token)
            except AuthError as e:
                logger.info(f"Stored session discarded: {e.message}")
        self._set_session(session)
        return self.user

    async def sign_in(self, email: str, password: str) -> Optional[GatewayError]:
        try:
            response = await self.auth.sign_in_with_password(email, password)
        except GatewayError as e:
            self.notifier.error("Erreur de connexion", e.message)
            return e
        self._set_session(response.session)
        self.notifier.success("Connexion réussie", "Bienvenue sur votre plateforme juridique!")
        self.navigate(DASHBOARD_PATH)
        return None

    async def sign_up(self, email: str, password: str, profile: Optional[dict] = None) -> Optional[GatewayError]:
        """Register; success means the email still has to be confirmed."""
        try:
            response = await self.auth.sign_up(email, password, profile)
        except GatewayError as e:
            self.notifier.error("Erreur d'inscription", e.message)
            return e
        if response.session is not None:
            self._set_session(response.session)
        self.notifier.success("Inscription réussie", "Vérifiez votre email pour confirmer votre compte.")
        return None

    async def sign_out(self) -> Optional[GatewayError]:
        token = self.access_token
        error = None
        if token:
            try:
                await self.auth.sign_out(token)
            except GatewayError as e:
                # The local session is dropped even when revocation fails
                logger.warning(f"Sign out failed: {e.message}")
                error = e
        self._set_session(None)
        self.notifier.success("Déconnexion réussie", "À bientôt sur JurisCloud!")
        self.navigate(AUTH_PATH)
        return error

    def close(self) -> None:
        self._unsubscribe_auth()
        self._listeners.clear()
