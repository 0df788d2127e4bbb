from unittest.mock import MagicMock

from use_cases.errors import TransportError
from use_cases.session_models import AuthSession
from use_cases.session_store import SessionEvent, SessionStore

SESSION = AuthSession(user_id="uid-1", email="a@example.com", access_token="access", refresh_token="refresh")
OTHER = AuthSession(user_id="uid-2", email="b@example.com", access_token="access-2")


def _provider(active=None):
    provider = MagicMock()
    provider.get_active_session.return_value = active
    provider.restore_session.return_value = active
    return provider


def test_hydrate_uses_refresh_token_when_present():
    provider = _provider(SESSION)
    store = SessionStore()

    session = store.hydrate(provider, refresh_token="refresh")

    provider.restore_session.assert_called_once_with("refresh")
    provider.get_active_session.assert_not_called()
    assert session == SESSION
    assert store.initialized is True


def test_hydrate_failure_resolves_to_no_session():
    provider = _provider()
    provider.get_active_session.side_effect = TransportError("Error de conexión con el servidor: timeout")
    store = SessionStore()

    assert store.hydrate(provider) is None
    assert store.session is None
    assert store.initialized is True


def test_hydrate_unexpected_error_resolves_to_no_session():
    provider = _provider()
    provider.restore_session.side_effect = RuntimeError("boom")
    store = SessionStore()

    assert store.hydrate(provider, refresh_token="stale") is None
    assert store.initialized is True


def test_hydrate_subscribes_to_provider_once():
    provider = _provider()
    store = SessionStore()

    store.hydrate(provider)
    store.hydrate(provider)

    provider.subscribe.assert_called_once_with(store.emit)


def test_events_delivered_once_in_emission_order():
    store = SessionStore()
    received = []
    store.subscribe(lambda event, session: received.append(event))

    store.emit(SessionEvent.SIGNED_IN, SESSION)
    store.emit(SessionEvent.PASSWORD_RECOVERY, SESSION)
    store.emit(SessionEvent.SIGNED_OUT)

    assert store.deliver_pending() == [
        SessionEvent.SIGNED_IN,
        SessionEvent.PASSWORD_RECOVERY,
        SessionEvent.SIGNED_OUT,
    ]
    assert store.deliver_pending() == []
    assert received == [SessionEvent.SIGNED_IN, SessionEvent.PASSWORD_RECOVERY, SessionEvent.SIGNED_OUT]


def test_unsubscribed_listener_receives_nothing():
    store = SessionStore()
    received = []
    unsubscribe = store.subscribe(lambda event, session: received.append(event))
    unsubscribe()

    store.emit(SessionEvent.SIGNED_IN, SESSION)
    store.deliver_pending()

    assert received == []


def test_new_sign_in_replaces_previous_session():
    store = SessionStore()

    store.emit(SessionEvent.SIGNED_IN, SESSION)
    store.emit(SessionEvent.SIGNED_IN, OTHER)

    assert store.session == OTHER


def test_signed_out_clears_session():
    store = SessionStore()
    store.emit(SessionEvent.SIGNED_IN, SESSION)

    store.emit(SessionEvent.SIGNED_OUT)

    assert store.session is None


def test_teardown_unsubscribes_from_provider():
    provider = _provider(SESSION)
    unsubscribe = MagicMock()
    provider.subscribe.return_value = unsubscribe
    store = SessionStore()
    store.hydrate(provider)

    store.teardown()

    unsubscribe.assert_called_once()
    assert store.session is None
    assert store.initialized is False
