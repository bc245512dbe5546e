"""
KPI registry and association tests.

Covers:
    - replace_associations: idempotent full-set replace with add/remove diff
    - duplicate ids collapse, unknown KPI / suggestion → NotFound
    - Suggestion.kpis mirrors the association table
    - registry create/search/soft delete and the HTTP endpoints
"""

import pytest

from ideabox.core.exceptions import ConflictError, NotFoundError, ValidationError
from ideabox.models import db
from ideabox.models.kpi import SuggestionKpi
from ideabox.models.suggestion import Suggestion
from ideabox.services import kpi_service as ks
from ideabox.services import suggestion_service as ss


def _suggestion(user_id=None):
    return ss.create(
        {"description": "Reduzir desperdício na linha 2", "contribution": {"type": "SUGESTAO_MELHORIA"}},
        user_id,
    )


def _links(suggestion_id):
    return sorted(
        link.kpi_id
        for link in db.session.query(SuggestionKpi).filter_by(suggestion_id=suggestion_id)
    )


class TestReplaceAssociations:
    def test_diff_and_mirror(self):
        s = _suggestion()
        k1 = ks.create("Custo")
        k2 = ks.create("Qualidade")
        k3 = ks.create("Segurança")

        first = ks.replace_associations(s["id"], [k1["id"], k2["id"]])
        assert first["added"] == [k1["id"], k2["id"]]
        assert first["removed"] == []

        second = ks.replace_associations(s["id"], [k2["id"], k3["id"]])
        assert second["added"] == [k3["id"]]
        assert second["removed"] == [k1["id"]]
        assert _links(s["id"]) == sorted([k2["id"], k3["id"]])

        db.session.expire_all()
        assert sorted(db.session.get(Suggestion, s["id"]).kpis) == sorted([k2["id"], k3["id"]])

    def test_idempotent(self):
        s = _suggestion()
        k1 = ks.create("Custo")
        ks.replace_associations(s["id"], [k1["id"]])
        again = ks.replace_associations(s["id"], [k1["id"]])
        assert again["added"] == [] and again["removed"] == []
        assert _links(s["id"]) == [k1["id"]]

    def test_duplicates_collapse(self):
        s = _suggestion()
        k1 = ks.create("Custo")
        result = ks.replace_associations(s["id"], [k1["id"], k1["id"]])
        assert result["kpi_ids"] == [k1["id"]]
        assert _links(s["id"]) == [k1["id"]]

    def test_empty_set_clears(self):
        s = _suggestion()
        k1 = ks.create("Custo")
        ks.replace_associations(s["id"], [k1["id"]])
        ks.replace_associations(s["id"], [])
        assert _links(s["id"]) == []

    def test_unknown_kpi(self):
        s = _suggestion()
        with pytest.raises(NotFoundError):
            ks.replace_associations(s["id"], [999])

    def test_unknown_suggestion(self):
        k1 = ks.create("Custo")
        with pytest.raises(NotFoundError):
            ks.replace_associations(999, [k1["id"]])

    def test_ids_must_be_integers(self):
        s = _suggestion()
        with pytest.raises(ValidationError):
            ks.replace_associations(s["id"], ["1"])

    def test_get_by_suggestion_id(self):
        s = _suggestion()
        k1 = ks.create("Custo")
        ks.replace_associations(s["id"], [k1["id"]])
        assert [k["name"] for k in ks.get_by_suggestion_id(s["id"])] == ["Custo"]

    def test_unlink(self):
        s = _suggestion()
        k1 = ks.create("Custo")
        k2 = ks.create("Qualidade")
        ks.replace_associations(s["id"], [k1["id"], k2["id"]])
        result = ks.unlink(s["id"], [k1["id"], 999])
        assert result["removed"] == [k1["id"]]
        assert result["kpi_ids"] == [k2["id"]]
        assert _links(s["id"]) == [k2["id"]]


class TestKpiRegistry:
    def test_duplicate_name(self):
        ks.create("Custo")
        with pytest.raises(ConflictError):
            ks.create("Custo")

    def test_search_is_case_insensitive_and_active_only(self):
        ks.create("Custo operacional")
        hidden = ks.create("Custo logístico")
        ks.create("Qualidade")
        ks.delete(hidden["id"])
        assert [k["name"] for k in ks.search("CUSTO")] == ["Custo operacional"]

    def test_search_limit(self):
        for i in range(12):
            ks.create(f"Indicador {i:02d}", order=i)
        assert len(ks.search("indicador")) == ks.SEARCH_LIMIT

    def test_list_active_counts_suggestions(self):
        s = _suggestion()
        k1 = ks.create("Custo", order=2)
        ks.create("Qualidade", order=1)
        ks.replace_associations(s["id"], [k1["id"]])
        rows = ks.list_active()
        assert [r["name"] for r in rows] == ["Qualidade", "Custo"]
        assert rows[1]["suggestion_count"] == 1

    def test_update_rename_conflict(self):
        ks.create("Custo")
        other = ks.create("Qualidade")
        with pytest.raises(ConflictError):
            ks.update(other["id"], {"name": "Custo"})


class TestKpiApi:
    def test_replace_via_put(self, client, admin_headers):
        s = _suggestion()
        k1 = ks.create("Custo")
        res = client.put(f"/api/v1/suggestions/{s['id']}/kpis", json={"kpi_ids": [k1["id"]]}, headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()["kpi_ids"] == [k1["id"]]

        res = client.get(f"/api/v1/suggestions/{s['id']}/kpis", headers=admin_headers)
        assert [k["id"] for k in res.get_json()["items"]] == [k1["id"]]

    def test_unknown_kpi_is_404(self, client, admin_headers):
        s = _suggestion()
        res = client.put(f"/api/v1/suggestions/{s['id']}/kpis", json={"kpi_ids": [404]}, headers=admin_headers)
        assert res.status_code == 404

    def test_employee_forbidden(self, client, employee_headers):
        res = client.get("/api/v1/kpis", headers=employee_headers)
        assert res.status_code == 403

    def test_create_and_search(self, client, admin_headers):
        res = client.post("/api/v1/kpis", json={"name": "Produtividade"}, headers=admin_headers)
        assert res.status_code == 201
        res = client.get("/api/v1/kpis/search?q=produt", headers=admin_headers)
        assert [k["name"] for k in res.get_json()["items"]] == ["Produtividade"]

    def test_empty_search_is_400(self, client, admin_headers):
        assert client.get("/api/v1/kpis/search?q=", headers=admin_headers).status_code == 400
