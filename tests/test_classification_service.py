"""
Classification registry tests.

Covers:
    - create: score range, append-after-max order, (label, type) uniqueness
    - list_by_type ordering and cache invalidation on writes
    - soft delete keeps the row and existing snapshots
    - reorder is all-or-nothing
    - seed_defaults is idempotent
    - HTTP surface: admin gate and error mapping
"""

import pytest

from ideabox.core.exceptions import ConflictError, NotFoundError, ValidationError
from ideabox.models import db
from ideabox.models.classification import ClassificationEntry
from ideabox.services import classification_service as cs

BASE = "/api/v1/classifications"


class TestCreate:
    def test_appends_after_max_order(self):
        first = cs.create("Alto", 5, "IMPACT")
        second = cs.create("Baixo", 1, "IMPACT")
        assert first["order"] == 1
        assert second["order"] == 2

    def test_order_is_per_type(self):
        cs.create("Alto", 5, "IMPACT", order=7)
        other = cs.create("Alta", 5, "CAPACITY")
        assert other["order"] == 1

    @pytest.mark.parametrize("score", [-1, 11, "5", 2.5, None, True])
    def test_rejects_invalid_score(self, score):
        with pytest.raises(ValidationError):
            cs.create("Label", score, "IMPACT")

    @pytest.mark.parametrize("score", [0, 10])
    def test_accepts_range_bounds(self, score):
        assert cs.create(f"Label {score}", score, "EFFORT")["score"] == score

    def test_rejects_unknown_type(self):
        with pytest.raises(ValidationError):
            cs.create("Label", 3, "URGENCY")

    def test_rejects_long_label(self):
        with pytest.raises(ValidationError):
            cs.create("x" * 101, 3, "IMPACT")

    def test_duplicate_label_and_type_conflicts(self):
        cs.create("Alto", 5, "IMPACT")
        with pytest.raises(ConflictError):
            cs.create("Alto", 4, "IMPACT")
        # same label on another axis is fine
        assert cs.create("Alto", 4, "EFFORT")["type"] == "EFFORT"


class TestListing:
    def test_ordered_by_order_then_score_desc(self):
        cs.create("B", 2, "IMPACT", order=1)
        cs.create("A", 9, "IMPACT", order=1)
        cs.create("C", 10, "IMPACT", order=0)
        labels = [row["label"] for row in cs.list_by_type("IMPACT")]
        assert labels == ["C", "A", "B"]

    def test_writes_invalidate_cached_pool(self):
        entry = cs.create("Alto", 5, "IMPACT")
        assert [r["score"] for r in cs.list_by_type("IMPACT")] == [5]
        cs.update(entry["id"], {"score": 7})
        assert [r["score"] for r in cs.list_by_type("IMPACT")] == [7]
        cs.delete(entry["id"])
        assert cs.list_by_type("IMPACT") == []

    def test_list_all_includes_inactive(self):
        entry = cs.create("Alto", 5, "IMPACT")
        cs.delete(entry["id"])
        rows = cs.list_all("IMPACT")
        assert len(rows) == 1 and rows[0]["is_active"] is False


class TestUpdateDelete:
    def test_invalid_update_changes_nothing(self):
        entry = cs.create("Alto", 5, "IMPACT")
        with pytest.raises(ValidationError):
            cs.update(entry["id"], {"label": "Novo", "score": 99})
        db.session.expire_all()
        row = db.session.get(ClassificationEntry, entry["id"])
        assert (row.label, row.score) == ("Alto", 5)

    def test_update_unknown_id(self):
        with pytest.raises(NotFoundError):
            cs.update(999, {"score": 1})

    def test_soft_delete_keeps_row(self):
        entry = cs.create("Alto", 5, "IMPACT")
        cs.delete(entry["id"])
        assert db.session.get(ClassificationEntry, entry["id"]) is not None

    def test_snapshot_rejects_inactive_and_wrong_type(self):
        entry = cs.create("Alto", 5, "IMPACT")
        assert cs.snapshot("IMPACT", entry["id"]) == {"label": "Alto", "score": 5}
        with pytest.raises(ValidationError):
            cs.snapshot("EFFORT", entry["id"])
        cs.delete(entry["id"])
        with pytest.raises(ValidationError):
            cs.snapshot("IMPACT", entry["id"])


class TestReorder:
    def test_applies_all_orders(self):
        a = cs.create("A", 1, "IMPACT")
        b = cs.create("B", 2, "IMPACT")
        result = cs.reorder("IMPACT", [{"id": a["id"], "order": 2}, {"id": b["id"], "order": 1}])
        assert result == {"success": True, "updated": 2}
        assert [r["label"] for r in cs.list_by_type("IMPACT")] == ["B", "A"]

    def test_unknown_id_rolls_back_batch(self):
        a = cs.create("A", 1, "IMPACT")
        with pytest.raises(NotFoundError):
            cs.reorder("IMPACT", [{"id": a["id"], "order": 50}, {"id": 999, "order": 1}])
        db.session.expire_all()
        assert db.session.get(ClassificationEntry, a["id"]).order == 1

    def test_foreign_type_rolls_back_batch(self):
        a = cs.create("A", 1, "IMPACT")
        e = cs.create("E", 1, "EFFORT")
        with pytest.raises(ValidationError):
            cs.reorder("IMPACT", [{"id": a["id"], "order": 50}, {"id": e["id"], "order": 1}])
        db.session.expire_all()
        assert db.session.get(ClassificationEntry, a["id"]).order == 1


class TestSeedDefaults:
    def test_idempotent(self):
        first = cs.seed_defaults()
        second = cs.seed_defaults()
        assert first == {"success": True, "created": 9, "updated": 0}
        assert second == {"success": True, "created": 0, "updated": 9}
        assert db.session.query(ClassificationEntry).count() == 9

    def test_effort_pool_scores(self):
        cs.seed_defaults()
        scores = {r["label"]: r["score"] for r in cs.list_by_type("EFFORT")}
        assert scores == {"Baixo esforço": 1, "Médio esforço": 3, "Alto esforço": 5}


class TestClassificationApi:
    def test_pool_requires_identity(self, client):
        res = client.get(f"{BASE}?type=IMPACT")
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHENTICATED"

    def test_employee_can_read_pool(self, client, employee_headers, seeded_pools):
        res = client.get(f"{BASE}?type=IMPACT", headers=employee_headers)
        assert res.status_code == 200
        assert [r["score"] for r in res.get_json()["items"]] == [5, 3, 1]

    def test_employee_cannot_create(self, client, employee_headers):
        res = client.post(BASE, json={"label": "X", "score": 1, "type": "IMPACT"}, headers=employee_headers)
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_FORBIDDEN"

    def test_admin_create_and_out_of_range(self, client, admin_headers):
        res = client.post(BASE, json={"label": "Enorme", "score": 10, "type": "IMPACT"}, headers=admin_headers)
        assert res.status_code == 201
        res = client.post(BASE, json={"label": "Demais", "score": 11, "type": "IMPACT"}, headers=admin_headers)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_duplicate_is_409(self, client, admin_headers):
        body = {"label": "Alto", "score": 5, "type": "IMPACT"}
        assert client.post(BASE, json=body, headers=admin_headers).status_code == 201
        assert client.post(BASE, json=body, headers=admin_headers).status_code == 409

    def test_seed_endpoint(self, client, admin_headers):
        res = client.post(f"{BASE}/seed", headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()["created"] == 9

    def test_reorder_endpoint_rollback_returns_404(self, client, admin_headers):
        a = cs.create("A", 1, "IMPACT")
        res = client.post(
            f"{BASE}/reorder",
            json={"type": "IMPACT", "items": [{"id": a["id"], "order": 9}, {"id": 4040, "order": 1}]},
            headers=admin_headers,
        )
        assert res.status_code == 404
        db.session.expire_all()
        assert db.session.get(ClassificationEntry, a["id"]).order == 1
