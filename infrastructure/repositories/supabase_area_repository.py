from typing import List

from use_cases.domain_models import Area
from use_cases.errors import classify_backend_error


class SupabaseAreaRepository:
    TABLE = "areas"

    def __init__(self, client):
        self.client = client

    def list_areas(self) -> List[Area]:
        try:
            result = self.client.table(self.TABLE).select("*").order("name").execute()
        except Exception as exc:
            raise classify_backend_error(exc) from exc
        return [Area.from_row(row) for row in result.data or []]

    def create_area(self, name: str) -> Area:
        try:
            result = self.client.table(self.TABLE).insert({"name": name}).execute()
        except Exception as exc:
            raise classify_backend_error(exc) from exc
        rows = result.data or []
        return Area.from_row(rows[0]) if rows else Area(id="", name=name)

    def delete_area(self, area_id: str) -> None:
        try:
            self.client.table(self.TABLE).delete().eq("id", area_id).execute()
        except Exception as exc:
            raise classify_backend_error(exc) from exc
