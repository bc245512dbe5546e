"""
Suggestion lifecycle planning tests (pure, no HTTP).

Covers:
    - status vocabulary: key ↔ label table is bijective
    - transition table: terminal states have no exits
    - plan_transition side effects per target status
    - rejection reason gating
    - rejection re-send preconditions
    - dispatcher outcome reporting
"""

import pytest

from ideabox.core.exceptions import TransitionError, ValidationError
from ideabox.models.suggestion import (
    LABEL_TO_STATUS,
    STATUS_LABELS,
    SUGGESTION_STATUSES,
    SUGGESTION_TRANSITIONS,
    TERMINAL_STATUSES,
    validate_status_transition,
)
from ideabox.services.side_effects import NotifySubmitter, SendRejectionEmail, SideEffectDispatcher
from ideabox.services.suggestion_workflow import (
    SuggestionContext,
    plan_rejection_resend,
    plan_transition,
    resolve_status,
)


def _ctx(status="NEW", **overrides):
    values = {
        "suggestion_id": 1,
        "idea_number": 100,
        "status": status,
        "submitter_id": 7,
        "submitter_email": "joao@example.com",
        "submitter_name": "João Silva",
        "analyst_name": "Ana Souza",
        "action_url": "http://ideabox.test/my-suggestions",
    }
    values.update(overrides)
    return SuggestionContext(**values)


class TestStatusVocabulary:
    def test_labels_are_bijective(self):
        assert len(LABEL_TO_STATUS) == len(STATUS_LABELS) == len(SUGGESTION_STATUSES)
        for key, label in STATUS_LABELS.items():
            assert LABEL_TO_STATUS[label] == key

    def test_ajustes_e_incubar_is_not_a_state(self):
        assert "Ajustes e incubar" not in LABEL_TO_STATUS
        with pytest.raises(ValidationError):
            resolve_status("Ajustes e incubar")

    def test_resolve_accepts_key_or_label(self):
        assert resolve_status("APPROVED") == "APPROVED"
        assert resolve_status("Não implantado") == "NOT_IMPLEMENTED"
        assert resolve_status(None) is None

    def test_terminal_states_have_no_exits(self):
        for status in TERMINAL_STATUSES:
            assert SUGGESTION_TRANSITIONS[status] == []

    def test_non_terminal_states_reach_every_other_state(self):
        for status in set(SUGGESTION_STATUSES) - TERMINAL_STATUSES:
            for target in SUGGESTION_STATUSES:
                assert validate_status_transition(status, target) is (target != status)


class TestPlanTransition:
    def test_approve_emits_single_approved_notification(self):
        plan = plan_transition(_ctx("IN_REVIEW"), "APPROVED")
        assert plan.status_changed
        assert len(plan.effects) == 1
        effect = plan.effects[0]
        assert isinstance(effect, NotifySubmitter)
        assert effect.notification_type == "SUGGESTION_APPROVED"
        assert effect.user_id == 7
        assert "#100" in effect.title

    def test_generic_status_change_type(self):
        plan = plan_transition(_ctx("NEW"), "IN_REVIEW")
        assert [e.notification_type for e in plan.effects] == ["SUGGESTION_STATUS_UPDATED"]
        assert "Em avaliação" in plan.effects[0].message

    def test_rejection_requires_reason(self):
        with pytest.raises(ValidationError):
            plan_transition(_ctx("IN_REVIEW"), "NOT_IMPLEMENTED")
        with pytest.raises(ValidationError):
            plan_transition(_ctx("IN_REVIEW"), "NOT_IMPLEMENTED", rejection_reason="   ", reason_provided=True)

    def test_rejection_emits_notification_and_email(self):
        plan = plan_transition(
            _ctx("IN_REVIEW"), "NOT_IMPLEMENTED",
            rejection_reason="  Custo elevado ", reason_provided=True,
        )
        assert plan.rejection_reason == "Custo elevado"
        kinds = [type(e) for e in plan.effects]
        assert kinds == [NotifySubmitter, SendRejectionEmail]
        email = plan.effects[1]
        assert email.to_email == "joao@example.com"
        assert email.analyst_name == "Ana Souza"
        assert email.status_label == "Não implantado"
        assert email.reason == "Custo elevado"
        assert plan.effects[0].notification_type == "SUGGESTION_REJECTED"

    def test_stored_reason_satisfies_gate(self):
        plan = plan_transition(_ctx("IN_REVIEW", rejection_reason="Já existe"), "NOT_IMPLEMENTED")
        assert plan.rejection_reason == "Já existe"

    def test_terminal_state_refuses_moves(self):
        with pytest.raises(TransitionError) as exc:
            plan_transition(_ctx("DONE"), "IN_PROGRESS")
        assert exc.value.current_status == "DONE"
        assert exc.value.target_status == "IN_PROGRESS"

    def test_same_status_is_not_a_transition(self):
        plan = plan_transition(_ctx("DONE"), "DONE")
        assert not plan.status_changed
        assert plan.effects == []

    def test_classification_change_without_status_change(self):
        plan = plan_transition(_ctx("IN_REVIEW"), None, classification_changed=True)
        assert [e.notification_type for e in plan.effects] == ["SUGGESTION_CLASSIFIED"]

    def test_status_change_wins_over_classification_notice(self):
        plan = plan_transition(_ctx("IN_REVIEW"), "APPROVED", classification_changed=True)
        assert [e.notification_type for e in plan.effects] == ["SUGGESTION_APPROVED"]

    def test_anonymous_submitter_gets_no_notification(self):
        plan = plan_transition(_ctx("NEW", submitter_id=None), "APPROVED")
        assert plan.effects == []


class TestPlanRejectionResend:
    def test_requires_not_implemented(self):
        with pytest.raises(ValidationError):
            plan_rejection_resend(_ctx("APPROVED"), "motivo")

    def test_requires_reason(self):
        with pytest.raises(ValidationError):
            plan_rejection_resend(_ctx("NOT_IMPLEMENTED"), "")

    def test_requires_submitter_email(self):
        with pytest.raises(ValidationError):
            plan_rejection_resend(_ctx("NOT_IMPLEMENTED", submitter_email=None), "motivo")

    def test_builds_email(self):
        email = plan_rejection_resend(_ctx("NOT_IMPLEMENTED"), " motivo ")
        assert isinstance(email, SendRejectionEmail)
        assert email.reason == "motivo"
        assert email.idea_number == 100


class _Record:
    def __init__(self, status):
        self.status = status


class TestDispatcherOutcome:
    EMAIL = SendRejectionEmail(
        suggestion_id=1, to_email="joao@example.com", to_name="João Silva",
        idea_number=100, analyst_name="Ana Souza", status_label="Não implantado", reason="Baixo ROI",
    )

    def test_failed_record_is_not_ok(self):
        dispatcher = SideEffectDispatcher(email_sender=lambda effect: _Record("failed"))
        assert dispatcher.dispatch([self.EMAIL]) == [{"kind": "email", "ok": False}]

    def test_missing_record_is_not_ok(self):
        dispatcher = SideEffectDispatcher(email_sender=lambda effect: None)
        assert dispatcher.dispatch([self.EMAIL]) == [{"kind": "email", "ok": False}]

    def test_sent_record_is_ok(self):
        dispatcher = SideEffectDispatcher(email_sender=lambda effect: _Record("sent"))
        assert dispatcher.dispatch([self.EMAIL]) == [{"kind": "email", "ok": True}]

    def test_raising_handler_does_not_stop_the_batch(self):
        def broken(effect):
            raise RuntimeError("smtp down")

        notice = NotifySubmitter(
            user_id=7, suggestion_id=1, notification_type="SUGGESTION_REJECTED",
            title="Sugestão #100 não será implantada", message="Motivo: Baixo ROI",
        )
        dispatcher = SideEffectDispatcher(
            notification_sink=broken, email_sender=lambda effect: _Record("sent"),
        )
        assert dispatcher.dispatch([notice, self.EMAIL]) == [
            {"kind": "notification", "ok": False},
            {"kind": "email", "ok": True},
        ]
