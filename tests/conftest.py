from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from use_cases.domain_models import Profile, Suggestion, SuggestionStatus
from use_cases.errors import InvalidOrExpiredCodeError, NotFoundError
from use_cases.session_models import AdminUser, AuthSession, Role


class FakeTable:
    """Chainable stand-in for a PostgREST query builder."""

    def __init__(self, data=None, error=None):
        self.data = data if data is not None else []
        self.error = error
        self.calls = []

    def __getattr__(self, name):
        if name in ("select", "eq", "order", "limit", "insert", "upsert", "update", "delete"):
            def record(*args, **kwargs):
                self.calls.append((name, args, kwargs))
                return self
            return record
        raise AttributeError(name)

    def execute(self):
        if self.error is not None:
            raise self.error
        return SimpleNamespace(data=self.data)

    def called(self, name):
        return [c for c in self.calls if c[0] == name]


class FakeSupabaseClient:
    def __init__(self):
        self.tables = {}
        self.auth = MagicMock()
        self.storage = MagicMock()

    def table(self, name):
        return self.tables.setdefault(name, FakeTable())


class FakeProfileRepo:
    def __init__(self, profiles=None):
        self.profiles = {p.id: p for p in profiles or []}
        self.calls = []
        self.fail_on = {}

    def _maybe_fail(self, op):
        self.calls.append(op)
        if op in self.fail_on:
            raise self.fail_on[op]

    def get_role(self, identity_id):
        self._maybe_fail("get_role")
        profile = self.profiles.get(identity_id)
        return profile.role.value if profile else None

    def list_profiles(self):
        self._maybe_fail("list_profiles")
        return list(self.profiles.values())

    def upsert_profile(self, identity_id, role, email=None):
        self._maybe_fail("upsert_profile")
        self.profiles[identity_id] = Profile(id=identity_id, role=Role(role), email=email)

    def update_role(self, identity_id, role):
        self._maybe_fail("update_role")
        if identity_id not in self.profiles:
            raise NotFoundError(f"No existe un perfil para el usuario {identity_id}.")
        current = self.profiles[identity_id]
        self.profiles[identity_id] = Profile(id=identity_id, role=Role(role), email=current.email)

    def delete_profile(self, identity_id):
        self._maybe_fail("delete_profile")
        self.profiles.pop(identity_id, None)


class FakeIdentity:
    def __init__(self):
        self.identities = {}
        self.calls = []
        self.fail_on = {}
        self.code = "123456"
        self._next = 0

    def _maybe_fail(self, op):
        self.calls.append(op)
        if op in self.fail_on:
            raise self.fail_on[op]

    def redirect_url(self, route):
        return f"http://localhost:8501/?page={route.strip('/')}"

    def invite_identity(self, email, redirect_to):
        self._maybe_fail("invite_identity")
        for identity_id, known in self.identities.items():
            if known == email:
                return identity_id
        self._next += 1
        identity_id = f"uid-{self._next}"
        self.identities[identity_id] = email
        return identity_id

    def delete_identity(self, identity_id):
        self._maybe_fail("delete_identity")
        self.identities.pop(identity_id, None)

    def send_password_reset(self, email, redirect_to):
        self._maybe_fail("send_password_reset")

    def list_identity_ids(self):
        self._maybe_fail("list_identity_ids")
        return set(self.identities)

    def sign_in_with_one_time_code(self, email, allow_new_identity, redirect_to=None):
        self._maybe_fail("sign_in_with_one_time_code")
        self.last_allow_new_identity = allow_new_identity

    def verify_one_time_code(self, email, code):
        self._maybe_fail("verify_one_time_code")
        if code != self.code:
            raise InvalidOrExpiredCodeError()
        return AuthSession(user_id="visitor", email=email, access_token="token")


class FakeSuggestionRepo:
    def __init__(self, suggestions=None):
        self.rows = list(suggestions or [])
        self.inserted = []
        self.fail_on = {}

    def list_suggestions(self):
        if "list" in self.fail_on:
            raise self.fail_on["list"]
        return list(self.rows)

    def update_status(self, suggestion_id, status):
        if "update" in self.fail_on:
            raise self.fail_on["update"]

    def delete_suggestion(self, suggestion_id):
        if "delete" in self.fail_on:
            raise self.fail_on["delete"]

    def insert_suggestion(self, payload):
        self.inserted.append(payload)
        return Suggestion.from_row({"id": "new-1", **payload})


def make_suggestion(suggestion_id, status=SuggestionStatus.PENDIENTE, **overrides):
    fields = dict(
        id=suggestion_id,
        nombre="Ana",
        apellido="Pérez",
        email="ana@example.com",
        zona="Plaza",
        descripcion="Luminaria rota",
        status=status,
    )
    fields.update(overrides)
    return Suggestion(**fields)


@pytest.fixture
def fake_client():
    return FakeSupabaseClient()


@pytest.fixture
def profile_repo():
    return FakeProfileRepo()


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def admin_actor():
    return AdminUser(id="admin-1", email="admin@example.com", role=Role.ADMIN)


@pytest.fixture
def superadmin_actor():
    return AdminUser(id="super-1", email="super@example.com", role=Role.SUPERADMIN)


@pytest.fixture
def viewer_actor():
    return AdminUser(id="viewer-1", email="viewer@example.com", role=Role.VIEWER)


class SessionStateStub(dict):
    """Attribute-style dict standing in for st.session_state outside `streamlit run`."""

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name)

    def __setattr__(self, name, value):
        self[name] = value

    def __delattr__(self, name):
        del self[name]


@pytest.fixture(autouse=True)
def session_state(monkeypatch):
    import streamlit as st

    state = SessionStateStub()
    monkeypatch.setattr(st, "session_state", state)
    return state
