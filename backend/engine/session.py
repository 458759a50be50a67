from enum import Enum
from typing import Optional

from backend.engine.fetch import (
    AuthenticationError,
    CyberVidyaClient,
    PortalSession,
    SessionExpiredError,
    StudentAttendance,
)
from backend.engine.stream import app_logger


class SessionState(str, Enum):
    LOGGED_OUT = "logged_out"
    AUTHENTICATING = "authenticating"
    LOGGED_IN = "logged_in"
    SESSION_EXPIRED = "session_expired"


class InvalidSessionTransition(Exception):
    """Raised when an operation is not allowed in the current session state."""

    pass


class AttendanceSession:
    """Owns the portal token for one client flow.

    The token never lives anywhere but here; callers decide whether to
    persist it (e.g. in a cookie) after a successful sign-in.
    """

    def __init__(self, client: Optional[CyberVidyaClient] = None) -> None:
        self.client = client or CyberVidyaClient()
        self.state = SessionState.LOGGED_OUT
        self.portal_session: Optional[PortalSession] = None
        self.error: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self.portal_session.token if self.portal_session else None

    def _require(self, *allowed: SessionState) -> None:
        if self.state not in allowed:
            raise InvalidSessionTransition(
                f"Cannot perform this action while {self.state.value}"
            )

    def sign_in(self, username: str, password: str) -> PortalSession:
        self._require(SessionState.LOGGED_OUT, SessionState.SESSION_EXPIRED)
        self.state = SessionState.AUTHENTICATING
        self.error = None

        try:
            self.portal_session = self.client.login(username, password)
        except AuthenticationError as e:
            self.state = SessionState.LOGGED_OUT
            self.portal_session = None
            self.error = "Failed to fetch attendance data. Please check your credentials."
            app_logger.warning(f"Sign-in failed: {e}")
            raise

        self.state = SessionState.LOGGED_IN
        return self.portal_session

    def resume(self, token: str) -> None:
        self._require(SessionState.LOGGED_OUT, SessionState.SESSION_EXPIRED)
        if not token:
            raise InvalidSessionTransition("Cannot resume a session without a token")
        self.portal_session = PortalSession(token=token)
        self.state = SessionState.LOGGED_IN
        self.error = None

    def load_attendance(self) -> StudentAttendance:
        self._require(SessionState.LOGGED_IN)

        try:
            return self.client.fetch_attendance(self.portal_session)  # type: ignore[arg-type]
        except SessionExpiredError as e:
            self.state = SessionState.SESSION_EXPIRED
            self.portal_session = None
            self.error = "Session expired. Please login again."
            app_logger.warning(f"Session expired: {e}")
            raise

    def sign_out(self) -> None:
        self.portal_session = None
        self.error = None
        self.state = SessionState.LOGGED_OUT
