from datetime import datetime, timedelta
from typing import Tuple

from authcore.domain.entities import Session


class SessionPolicy:
    """
    Reauthentication windows for refresh sessions.

    A session needs reauth once it has not been rotated for the rolling window,
    or once its credentials were last proven longer ago than the forced window.
    Reaching either deadline exactly counts as expired.
    """

    def __init__(
        self,
        rolling_window: timedelta = timedelta(days=7),
        forced_window: timedelta = timedelta(days=30),
        access_lifetime: timedelta = timedelta(minutes=15),
        max_sessions: int = 10,
    ):
        self.rolling_window = rolling_window
        self.forced_window = forced_window
        self.access_lifetime = access_lifetime
        self.max_sessions = max_sessions

    def reauth_deadlines(self, session: Session) -> Tuple[datetime, datetime]:
        """(rolling deadline, forced deadline)"""
        return (
            session.refreshed_at + self.rolling_window,
            session.last_authenticated_at + self.forced_window,
        )

    def requires_reauth(self, session: Session, now: datetime) -> bool:
        return (
            session.refreshed_at <= now - self.rolling_window
            or session.last_authenticated_at <= now - self.forced_window
        )

    def logged_in_until(self, session: Session) -> datetime:
        return min(self.reauth_deadlines(session))

    def jwt_valid_until(self, session: Session) -> datetime:
        return session.refreshed_at + self.access_lifetime
