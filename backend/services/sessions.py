"""
Server-side session store.

The cookie only carries an opaque token; the principal lives here, in
process memory, until logout or expiry. Expiry is checked lazily when a
token is resolved.
"""
import logging
import secrets
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from domain.models import Identity, SessionPrincipal
from settings import settings

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(
        self,
        ttl_seconds: int = settings.SESSION_TTL_SECONDS,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._sessions: Dict[str, SessionPrincipal] = {}
        self._lock = threading.Lock()

    def establish(self, identity: Identity) -> SessionPrincipal:
        """Start a session with a fixed lifetime from now."""
        token = secrets.token_urlsafe(32)
        principal = SessionPrincipal.start(identity, token, self.ttl, now=self._clock())
        with self._lock:
            self._sessions[token] = principal
        logger.info("session established for %s", type(identity).__name__.lower())
        return principal

    def resolve(self, token: Optional[str]) -> SessionPrincipal:
        """Return the live principal for ``token``, or an anonymous one."""
        if not token:
            return SessionPrincipal.anonymous()
        with self._lock:
            principal = self._sessions.get(token)
            if principal is None:
                return SessionPrincipal.anonymous()
            if principal.is_expired(self._clock()):
                del self._sessions[token]
                logger.debug("session expired")
                return SessionPrincipal.anonymous()
            return principal

    def terminate(self, token: Optional[str]) -> None:
        """Invalidate a session. Unknown or empty tokens are ignored."""
        if not token:
            return
        with self._lock:
            self._sessions.pop(token, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


session_store = SessionStore()
