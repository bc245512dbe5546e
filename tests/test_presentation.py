"""
Admin board helpers, notification inbox and health endpoints.

Covers:
    - display_name masking
    - filter_suggestions: all / score / bucket kind / status label
    - group_kanban fixed column order, unknown statuses appended
    - sort_for_list and distribute_columns
    - notification inbox: list, unread count, mark read, read-all
    - health probes and request timing headers
"""

import pytest

from ideabox.core.exceptions import ValidationError
from ideabox.services import presentation as p
from ideabox.services.notification import NotificationService


def _item(id, status="NEW", created_at="2026-01-01T00:00:00", impact=None, capacity=None, effort=None, **extra):
    item = {
        "id": id,
        "status": status,
        "status_label": p.STATUS_LABELS.get(status, status),
        "created_at": created_at,
        "impact": {"label": "i", "score": impact} if impact is not None else None,
        "capacity": {"label": "c", "score": capacity} if capacity is not None else None,
        "effort": {"label": "e", "score": effort} if effort is not None else None,
        "submitted_name": "Maria",
        "is_name_visible": True,
    }
    item.update(extra)
    return item


class TestDisplayName:
    def test_visible_name(self):
        assert p.display_name(_item(1)) == "Maria"

    def test_hidden_name(self):
        assert p.display_name(_item(1, is_name_visible=False)) == "Nome oculto"

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_missing_name(self, name):
        assert p.display_name(_item(1, submitted_name=name)) == "Não informado"


class TestFilter:
    ITEMS = [
        _item(1, impact=8, capacity=6, effort=2),    # 12 adjust
        _item(2, impact=10, capacity=10, effort=0),  # 20 approve
        _item(3, effort=5),                          # -5 review
        _item(4),                                    # 0 discard
        _item(5, status="APPROVED"),
    ]

    def test_all(self):
        assert len(p.filter_suggestions(self.ITEMS, "all")) == 5

    def test_score_excludes_review(self):
        ids = [i["id"] for i in p.filter_suggestions(self.ITEMS, "score")]
        assert ids == [1, 2, 4, 5]

    def test_bucket_kind(self):
        assert [i["id"] for i in p.filter_suggestions(self.ITEMS, "review")] == [3]
        assert [i["id"] for i in p.filter_suggestions(self.ITEMS, "approve")] == [2]

    def test_status_label_and_key(self):
        assert [i["id"] for i in p.filter_suggestions(self.ITEMS, "Aprovado")] == [5]
        assert [i["id"] for i in p.filter_suggestions(self.ITEMS, "APPROVED")] == [5]

    def test_unknown_filter(self):
        with pytest.raises(ValidationError):
            p.filter_suggestions(self.ITEMS, "Ajustes e incubar")

    def test_does_not_mutate_input(self):
        items = [_item(1)]
        p.build_board(items, "all")
        assert "display_name" not in items[0]


class TestKanban:
    def test_fixed_order_with_empty_columns(self):
        columns = p.group_kanban([_item(1, status="DONE")])
        assert [c["label"] for c in columns] == [
            "Novo", "Em avaliação", "Aprovado", "Em execução", "Concluído", "Não implantado",
        ]
        assert [len(c["items"]) for c in columns] == [0, 0, 0, 0, 1, 0]

    def test_unknown_status_appended(self):
        legacy = _item(9, status="ARCHIVED", status_label="Arquivado")
        columns = p.group_kanban([legacy, _item(1)])
        assert columns[-1]["label"] == "Arquivado"
        assert columns[-1]["items"] == [legacy]
        assert "Ajustes e incubar" not in [c["label"] for c in columns]


class TestOrdering:
    def test_status_priority_then_newest(self):
        items = [
            _item(1, status="NOT_IMPLEMENTED", created_at="2026-03-01T00:00:00"),
            _item(2, status="NEW", created_at="2026-01-01T00:00:00"),
            _item(3, status="NEW", created_at="2026-02-01T00:00:00"),
            _item(4, status="DONE", created_at="2026-04-01T00:00:00"),
        ]
        assert [i["id"] for i in p.sort_for_list(items)] == [3, 2, 4, 1]

    def test_round_robin_columns(self):
        columns = p.distribute_columns([_item(i) for i in range(7)], 3)
        assert [[i["id"] for i in col] for col in columns] == [[0, 3, 6], [1, 4], [2, 5]]

    def test_columns_must_be_positive(self):
        with pytest.raises(ValidationError):
            p.distribute_columns([], 0)

    def test_board_annotations(self):
        board = p.build_board([_item(1, effort=3)], "all")
        item = board["items"][0]
        assert item["live_score"] == -3
        assert item["recommendation"]["kind"] == "review"
        assert item["needs_justification"] is True
        assert board["total"] == 1


class TestNotificationApi:
    def _notify(self, user, title="Sugestão #100 aprovada"):
        return NotificationService.create(
            title=title, type="SUGGESTION_APPROVED", user_id=user.id,
            entity_type="suggestion", entity_id=1,
        )

    def test_list_and_unread_count(self, client, employee, employee_headers):
        self._notify(employee)
        self._notify(employee, "Sugestão #101 atualizada")
        res = client.get("/api/v1/notifications", headers=employee_headers)
        body = res.get_json()
        assert body["total"] == 2
        assert body["unread_count"] == 2
        assert body["items"][0]["title"] == "Sugestão #101 atualizada"

    def test_mark_read(self, client, employee, employee_headers):
        notif = self._notify(employee)
        res = client.post(f"/api/v1/notifications/{notif.id}/read", headers=employee_headers)
        assert res.status_code == 200
        assert res.get_json()["is_read"] is True
        res = client.get("/api/v1/notifications/unread-count", headers=employee_headers)
        assert res.get_json()["unread_count"] == 0

    def test_cannot_read_someone_elses(self, client, admin, employee_headers):
        notif = self._notify(admin)
        res = client.post(f"/api/v1/notifications/{notif.id}/read", headers=employee_headers)
        assert res.status_code == 404

    def test_read_all(self, client, employee, employee_headers):
        self._notify(employee)
        self._notify(employee)
        res = client.post("/api/v1/notifications/read-all", headers=employee_headers)
        assert res.get_json() == {"marked": 2}
        res = client.get("/api/v1/notifications?unread_only=true", headers=employee_headers)
        assert res.get_json()["total"] == 0

    def test_requires_identity(self, client):
        assert client.get("/api/v1/notifications").status_code == 401


class TestHealth:
    def test_basic(self, client):
        assert client.get("/api/v1/health").get_json()["status"] == "ok"

    def test_live_reports_database_and_cache(self, client):
        res = client.get("/api/v1/health/live")
        assert res.status_code == 200
        checks = res.get_json()["checks"]
        assert checks["database"]["status"] == "ok"
        assert checks["app"]["mail"] == "log-only"
        assert "cache" in checks

    def test_request_id_is_echoed_with_duration(self, client, employee_headers):
        res = client.get("/api/v1/notifications", headers={**employee_headers, "X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert float(res.headers["X-Request-Duration-Ms"]) >= 0

    def test_request_id_is_generated(self, client):
        assert len(client.get("/api/v1/health").headers["X-Request-ID"]) == 12
