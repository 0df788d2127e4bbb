"""Explicit holder of the active admin session for one browser context.

The store relays identity-provider events to its own subscribers. Events are
queued on emission and handed out by ``deliver_pending``, so each event reaches
the subscribers registered at delivery time at most once and in emission order.
"""

import logging
from collections import deque
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Tuple

from use_cases.errors import BarrioError
from use_cases.session_models import AuthSession

log = logging.getLogger(__name__)


class SessionEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    CODE_EXCHANGED = "CODE_EXCHANGED"
    CODE_EXCHANGE_FAILED = "CODE_EXCHANGE_FAILED"


SessionListener = Callable[[SessionEvent, Optional[AuthSession]], None]
Unsubscribe = Callable[[], None]

# Events that carry a fresh session to adopt.
_SESSION_BEARING = frozenset({
    SessionEvent.SIGNED_IN,
    SessionEvent.PASSWORD_RECOVERY,
    SessionEvent.TOKEN_REFRESHED,
    SessionEvent.USER_UPDATED,
    SessionEvent.CODE_EXCHANGED,
})


class SessionStore:
    def __init__(self):
        self._session: Optional[AuthSession] = None
        self._initialized = False
        self._listeners: Dict[int, SessionListener] = {}
        self._next_listener_id = 0
        self._pending: Deque[Tuple[SessionEvent, Optional[AuthSession]]] = deque()
        self._provider_unsubscribe: Optional[Unsubscribe] = None

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def initialized(self) -> bool:
        return self._initialized

    def hydrate(self, provider, refresh_token: Optional[str] = None) -> Optional[AuthSession]:
        """Start relaying provider events and restore the persisted session.

        Never raises: any failure while checking the session resolves to
        "no session" so the guard cannot hang on a broken backend.
        """
        if self._provider_unsubscribe is None:
            self._provider_unsubscribe = provider.subscribe(self.emit)

        session = None
        try:
            if refresh_token:
                session = provider.restore_session(refresh_token)
            else:
                session = provider.get_active_session()
        except BarrioError as exc:
            log.warning("Session restore failed: %s", exc)
        except Exception:
            log.exception("Unexpected error while checking the session")

        self._session = session
        self._initialized = True
        return session

    def mark_checked(self, session: Optional[AuthSession] = None) -> None:
        self._session = session
        self._initialized = True

    def emit(self, event: SessionEvent, session: Optional[AuthSession] = None) -> None:
        if event == SessionEvent.SIGNED_OUT:
            self._session = None
        elif event in _SESSION_BEARING and session is not None:
            # A new sign-in replaces the previous session.
            self._session = session
        self._pending.append((event, session))
        log.debug("Session event queued: %s", event.value)

    def subscribe(self, listener: SessionListener) -> Unsubscribe:
        listener_id = self._next_listener_id
        self._next_listener_id += 1
        self._listeners[listener_id] = listener

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)

        return unsubscribe

    def deliver_pending(self) -> List[SessionEvent]:
        delivered = []
        while self._pending:
            event, session = self._pending.popleft()
            for listener in list(self._listeners.values()):
                listener(event, session)
            delivered.append(event)
        return delivered

    def teardown(self) -> None:
        if self._provider_unsubscribe is not None:
            self._provider_unsubscribe()
            self._provider_unsubscribe = None
        self._listeners.clear()
        self._pending.clear()
        self._session = None
        self._initialized = False
