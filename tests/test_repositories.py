import pytest

from conftest import FakeTable
from infrastructure.repositories.supabase_area_repository import SupabaseAreaRepository
from infrastructure.repositories.supabase_profile_repository import SupabaseProfileRepository
from infrastructure.repositories.supabase_suggestion_repository import SupabaseSuggestionRepository
from use_cases.domain_models import SuggestionStatus
from use_cases.errors import NotFoundError, PermissionDeniedError
from use_cases.session_models import Role


def test_get_role_missing_row_returns_none(fake_client):
    repo = SupabaseProfileRepository(fake_client)

    assert repo.get_role("uid-1") is None
    assert ("eq", ("id", "uid-1"), {}) in fake_client.table("profiles").calls


def test_list_profiles_newest_first(fake_client):
    fake_client.tables["profiles"] = FakeTable([{"id": "u1", "role": "admin", "email": "a@example.com"}])

    profiles = SupabaseProfileRepository(fake_client).list_profiles()

    assert profiles[0].role == Role.ADMIN
    assert ("order", ("created_at",), {"desc": True}) in fake_client.table("profiles").calls


def test_upsert_profile_payload(fake_client):
    SupabaseProfileRepository(fake_client).upsert_profile("uid-1", "viewer", "a@example.com")

    upserts = fake_client.table("profiles").called("upsert")
    assert upserts[0][1][0] == {"id": "uid-1", "role": "viewer", "email": "a@example.com"}


def test_update_role_with_no_matching_row_is_not_found(fake_client):
    with pytest.raises(NotFoundError):
        SupabaseProfileRepository(fake_client).update_role("ghost", "admin")


def test_profile_rls_error_is_permission_denied(fake_client):
    fake_client.tables["profiles"] = FakeTable(error=Exception("permission denied for table profiles"))

    with pytest.raises(PermissionDeniedError):
        SupabaseProfileRepository(fake_client).delete_profile("uid-1")


def test_list_suggestions_reads_joined_area_and_legacy_image(fake_client):
    fake_client.tables["sugerencias"] = FakeTable([
        {
            "id": 7,
            "nombre": "Ana",
            "apellido": "Pérez",
            "email": "ana@example.com",
            "zona": "Plaza",
            "descripcion": "Bache",
            "status": None,
            "area_id": 3,
            "areas": {"name": "Calles"},
            "image_url": "https://cdn/legacy.jpg",
        }
    ])

    suggestion = SupabaseSuggestionRepository(fake_client).list_suggestions()[0]

    assert suggestion.id == "7"
    assert suggestion.status == SuggestionStatus.PENDIENTE
    assert suggestion.area_name == "Calles"
    assert suggestion.images == ("https://cdn/legacy.jpg",)
    assert fake_client.table("sugerencias").called("select")[0][1] == ("*, areas(name)",)


class _JoinFailsOnce(FakeTable):
    def execute(self):
        selects = self.called("select")
        if selects and selects[-1][1] == ("*, areas(name)",):
            raise Exception("Could not find a relationship between 'sugerencias' and 'areas'")
        return super().execute()


def test_list_suggestions_falls_back_without_join(fake_client):
    fake_client.tables["sugerencias"] = _JoinFailsOnce([{"id": 1, "zona": "Plaza"}])

    suggestions = SupabaseSuggestionRepository(fake_client).list_suggestions()

    assert [s.id for s in suggestions] == ["1"]
    assert fake_client.table("sugerencias").called("select")[-1][1] == ("*",)


def test_update_status_writes_value(fake_client):
    fake_client.tables["sugerencias"] = FakeTable([{"id": 1, "status": "finalizado"}])

    SupabaseSuggestionRepository(fake_client).update_status("1", SuggestionStatus.FINALIZADO)

    assert fake_client.table("sugerencias").called("update")[0][1][0] == {"status": "finalizado"}


def test_update_status_hidden_row_is_not_found(fake_client):
    with pytest.raises(NotFoundError):
        SupabaseSuggestionRepository(fake_client).update_status("1", SuggestionStatus.EN_PROCESO)


def test_insert_suggestion_hidden_by_policy_still_returns_payload(fake_client):
    suggestion = SupabaseSuggestionRepository(fake_client).insert_suggestion(
        {"nombre": "Ana", "email": "ana@example.com", "images": ["https://cdn/1.jpg"], "status": "pendiente"}
    )

    assert suggestion.email == "ana@example.com"
    assert suggestion.images == ("https://cdn/1.jpg",)


def test_areas_ordered_by_name(fake_client):
    fake_client.tables["areas"] = FakeTable([{"id": 1, "name": "Alumbrado"}])

    areas = SupabaseAreaRepository(fake_client).list_areas()

    assert areas[0].name == "Alumbrado"
    assert ("order", ("name",), {}) in fake_client.table("areas").calls


def test_create_area(fake_client):
    fake_client.tables["areas"] = FakeTable([{"id": 2, "name": "Limpieza"}])

    area = SupabaseAreaRepository(fake_client).create_area("Limpieza")

    assert area.id == "2"
    assert fake_client.table("areas").called("insert")[0][1][0] == {"name": "Limpieza"}
