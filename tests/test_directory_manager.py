import pytest

from conftest import FakeIdentity, FakeProfileRepo
from use_cases.directory_manager import DirectoryCache, DirectoryManager
from use_cases.domain_models import Profile
from use_cases.errors import (
    NotFoundError,
    PermissionDeniedError,
    SendFailureError,
    UnknownBackendError,
    ValidationError,
)
from use_cases.session_models import AdminUser, Role, can_manage_areas, can_manage_users


@pytest.fixture
def manager(identity, profile_repo, admin_actor):
    return DirectoryManager(identity, profile_repo, admin_actor)


def test_invite_provisions_identity_then_upserts_viewer_profile(manager, identity, profile_repo):
    result = manager.invite("  vecino@example.com ")

    assert result.success is True
    assert [s.name for s in result.steps] == ["provision_identity", "upsert_profile"]
    profile = profile_repo.profiles[result.identity_id]
    assert profile.role == Role.VIEWER
    assert profile.email == "vecino@example.com"
    assert identity.calls == ["invite_identity"]


def test_invite_twice_is_idempotent_at_profile_level(manager, profile_repo):
    first = manager.invite("vecino@example.com")
    second = manager.invite("vecino@example.com")

    assert first.identity_id == second.identity_id
    assert len(profile_repo.profiles) == 1
    assert profile_repo.profiles[first.identity_id].role == Role.VIEWER


def test_invite_rejects_bad_email_before_any_network_call(manager, identity, profile_repo):
    result = manager.invite("not-an-email")

    assert result.success is False
    assert isinstance(result.error, ValidationError)
    assert identity.calls == []
    assert profile_repo.calls == []


def test_invite_reports_send_failure_and_skips_profile(manager, identity, profile_repo):
    identity.fail_on["invite_identity"] = SendFailureError("rate limit exceeded")

    result = manager.invite("vecino@example.com")

    assert result.success is False
    assert isinstance(result.error, SendFailureError)
    assert "upsert_profile" not in profile_repo.calls


def test_invite_profile_failure_still_succeeds_with_partial_step(manager, profile_repo):
    profile_repo.fail_on["upsert_profile"] = PermissionDeniedError("new row violates row-level security")

    result = manager.invite("vecino@example.com")

    assert result.success is True
    assert result.step("provision_identity").ok is True
    assert result.step("upsert_profile").ok is False
    assert [s.name for s in result.partial_failures] == ["upsert_profile"]


def test_invite_then_promote_grants_user_management_only():
    identity = FakeIdentity()
    profiles = FakeProfileRepo()
    manager = DirectoryManager(identity, profiles, AdminUser(id="a", email="a@x.com", role=Role.SUPERADMIN))

    invited = manager.invite("nuevo@example.com")
    assert profiles.profiles[invited.identity_id].role == Role.VIEWER

    promoted = manager.update_role(invited.identity_id, Role.ADMIN)
    assert promoted.success is True

    role = profiles.profiles[invited.identity_id].role
    assert can_manage_users(role) is True
    assert can_manage_areas(role) is False


def test_update_role_missing_profile_reports_not_found(manager):
    result = manager.update_role("ghost", Role.ADMIN)

    assert result.success is False
    assert isinstance(result.error, NotFoundError)


def test_delete_user_removes_profile_before_identity(manager, identity, profile_repo):
    invited = manager.invite("vecino@example.com")
    profile_repo.calls.clear()
    identity.calls.clear()
    order = []
    profile_repo.fail_on = {}
    original_delete_profile = profile_repo.delete_profile
    original_delete_identity = identity.delete_identity

    def delete_profile(identity_id):
        order.append("profile")
        original_delete_profile(identity_id)

    def delete_identity(identity_id):
        order.append("identity")
        original_delete_identity(identity_id)

    profile_repo.delete_profile = delete_profile
    identity.delete_identity = delete_identity

    result = manager.delete_user(invited.identity_id)

    assert result.success is True
    assert order == ["profile", "identity"]
    assert invited.identity_id not in profile_repo.profiles
    assert invited.identity_id not in identity.identities


def test_delete_user_identity_failure_is_overall_failure(manager, identity, profile_repo):
    invited = manager.invite("vecino@example.com")
    identity.fail_on["delete_identity"] = UnknownBackendError("Database error deleting user")

    result = manager.delete_user(invited.identity_id)

    assert result.success is False
    assert result.step("delete_profile").ok is True
    assert result.step("delete_identity").ok is False
    # The profile is gone even though the saga failed.
    assert invited.identity_id not in profile_repo.profiles


def test_delete_user_attempts_identity_even_if_profile_delete_fails(manager, identity, profile_repo):
    invited = manager.invite("vecino@example.com")
    profile_repo.fail_on["delete_profile"] = PermissionDeniedError("permission denied for table profiles")

    result = manager.delete_user(invited.identity_id)

    assert result.success is True
    assert result.step("delete_profile").ok is False
    assert "delete_identity" in identity.calls


def test_reset_password_uses_update_password_redirect(manager, identity):
    sent = {}

    def send_password_reset(email, redirect_to):
        sent["email"] = email
        sent["redirect_to"] = redirect_to

    identity.send_password_reset = send_password_reset

    result = manager.reset_password("vecino@example.com")

    assert result.success is True
    assert sent == {
        "email": "vecino@example.com",
        "redirect_to": "http://localhost:8501/?page=admin/update-password",
    }


def test_viewer_actor_cannot_run_directory_operations(identity, profile_repo, viewer_actor):
    manager = DirectoryManager(identity, profile_repo, viewer_actor)

    result = manager.invite("vecino@example.com")

    assert result.success is False
    assert isinstance(result.error, PermissionDeniedError)
    assert identity.calls == []


def test_list_users_separates_orphaned_profiles(manager, identity, profile_repo):
    identity.identities["uid-live"] = "live@example.com"
    profile_repo.profiles = {
        "uid-live": Profile(id="uid-live", role=Role.ADMIN, email="live@example.com"),
        "uid-gone": Profile(id="uid-gone", role=Role.VIEWER, email="gone@example.com"),
    }

    listing = manager.list_users()

    assert [p.id for p in listing.users] == ["uid-live"]
    assert [p.id for p in listing.orphans] == ["uid-gone"]
    assert listing.verified is True


def test_list_users_without_admin_client_returns_unverified_listing(manager, identity, profile_repo):
    identity.fail_on["list_identity_ids"] = PermissionDeniedError("Falta SUPABASE_SERVICE_ROLE_KEY")
    profile_repo.profiles = {"uid-1": Profile(id="uid-1", role=Role.VIEWER, email="a@example.com")}

    listing = manager.list_users()

    assert [p.id for p in listing.users] == ["uid-1"]
    assert listing.verified is False


def test_cache_change_role_is_optimistic(manager, identity, profile_repo):
    identity.identities["uid-1"] = "a@example.com"
    profile_repo.profiles = {"uid-1": Profile(id="uid-1", role=Role.VIEWER, email="a@example.com")}
    cache = DirectoryCache(manager)
    cache.refresh()

    result = cache.change_role("uid-1", Role.ADMIN)

    assert result.success is True
    assert cache.users[0].role == Role.ADMIN


def test_cache_change_role_failure_refetches_authoritative_list(manager, identity, profile_repo):
    identity.identities["uid-1"] = "a@example.com"
    profile_repo.profiles = {"uid-1": Profile(id="uid-1", role=Role.VIEWER, email="a@example.com")}
    cache = DirectoryCache(manager)
    cache.refresh()
    profile_repo.fail_on["update_role"] = PermissionDeniedError("permission denied")
    profile_repo.calls.clear()

    result = cache.change_role("uid-1", Role.SUPERADMIN)

    assert result.success is False
    assert cache.users[0].role == Role.VIEWER
    assert "list_profiles" in profile_repo.calls


def test_cache_delete_drops_user_locally(manager, identity, profile_repo):
    invited = manager.invite("a@example.com")
    cache = DirectoryCache(manager)
    cache.refresh()

    result = cache.delete(invited.identity_id)

    assert result.success is True
    assert cache.users == []


def test_cache_invite_keeps_result_when_refresh_fails(manager, identity, profile_repo):
    cache = DirectoryCache(manager)
    cache.refresh()
    profile_repo.fail_on["list_profiles"] = PermissionDeniedError("permission denied for table profiles")

    result = cache.invite("new@example.com")

    assert result.success is True
    assert identity.identities == {result.identity_id: "new@example.com"}
    assert isinstance(cache.refresh_error, PermissionDeniedError)

    del profile_repo.fail_on["list_profiles"]
    cache.refresh()
    assert cache.refresh_error is None
    assert [u.email for u in cache.users] == ["new@example.com"]


def test_update_role_rejects_unknown_role_without_touching_store(manager, profile_repo):
    profile_repo.profiles = {"uid-1": Profile(id="uid-1", role=Role.VIEWER, email="a@example.com")}

    result = manager.update_role("uid-1", "owner")

    assert result.success is False
    assert isinstance(result.error, ValidationError)
    assert "update_role" not in profile_repo.calls
    assert profile_repo.profiles["uid-1"].role == Role.VIEWER


def test_cache_change_role_unknown_role_leaves_list_untouched(manager, identity, profile_repo):
    identity.identities["uid-1"] = "a@example.com"
    profile_repo.profiles = {"uid-1": Profile(id="uid-1", role=Role.VIEWER, email="a@example.com")}
    cache = DirectoryCache(manager)
    cache.refresh()

    result = cache.change_role("uid-1", "owner")

    assert isinstance(result.error, ValidationError)
    assert cache.users[0].role == Role.VIEWER
