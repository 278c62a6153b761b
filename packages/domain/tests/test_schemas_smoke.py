"""Smoke tests for schema validation.

These tests verify that:
1. All schemas can be imported
2. Basic instantiation works
3. Field validation catches obvious errors
4. Persisted documents use camelCase keys
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from pydantic import ValidationError

from crowdround_domain.schemas import (
    EventRecord,
    EventTemplate,
    MILESTONE_TEMPLATES,
    PaymentDraft,
    ReservationPayment,
    ReservationRecord,
    RoundContext,
    RoundProgress,
)


class TestBasicInstantiation:
    """Test that basic schema instantiation works."""

    def test_round_context_defaults(self):
        ctx = RoundContext(goal_value=Decimal("1000"), deposit_amount=Decimal("50"), deadline="2024-12-20")

        assert ctx.goal_type == "amount"
        assert ctx.funding_rule == "all_or_nothing"
        assert ctx.partial_threshold == Decimal("0.7")
        assert ctx.raised_amount == Decimal("0")
        assert ctx.current_slots is None
        assert ctx.deadline == datetime(2024, 12, 20, tzinfo=timezone.utc)

    def test_round_context_accepts_camel_case(self):
        ctx = RoundContext.model_validate({
            "goalType": "reservations",
            "goalValue": "40",
            "depositAmount": "1500",
            "deadline": "2025-01-31T00:00:00Z",
            "fundingRule": "partial",
            "currentSlots": 12,
        })
        assert ctx.goal_type == "reservations"
        assert ctx.current_slots == 12

    def test_reservation_defaults(self):
        record = ReservationRecord()
        assert record.slots == 0
        assert record.status == "pending"
        assert record.payment is None
        assert not record.is_refunded

    def test_every_milestone_has_a_template(self):
        assert set(MILESTONE_TEMPLATES) == {
            "progress_80",
            "deadline_72h",
            "goal_failed",
            "reservation_confirmed",
            "reservation_refunded",
        }
        assert all(isinstance(t, EventTemplate) for t in MILESTONE_TEMPLATES.values())

    def test_payment_draft_selected_reference(self):
        draft = PaymentDraft(references={"card": "pi_mock_a", "transfer": "trf_b"}, selected_method="transfer")
        assert draft.selected_reference == "trf_b"


class TestValidation:
    """Test that validation rules work correctly."""

    def test_round_context_is_frozen(self):
        ctx = RoundContext(goal_value=Decimal("10"), deposit_amount=Decimal("1"), deadline="2025-01-01")
        with pytest.raises(ValidationError):
            ctx.goal_value = Decimal("20")

    def test_invalid_currency(self):
        with pytest.raises(ValidationError, match="ISO 4217"):
            RoundContext(goal_value=Decimal("10"), deposit_amount=Decimal("1"), deadline="2025-01-01", currency="usd")

    def test_threshold_must_be_fraction(self):
        with pytest.raises(ValidationError):
            RoundContext(
                goal_value=Decimal("10"),
                deposit_amount=Decimal("1"),
                deadline="2025-01-01",
                partial_threshold=Decimal("70"),
            )

    def test_negative_slots_rejected(self):
        with pytest.raises(ValidationError):
            ReservationRecord(slots=-1)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            ReservationRecord(status="cancelled")

    def test_payment_requires_reference(self):
        with pytest.raises(ValidationError):
            ReservationPayment(method="card", tx_id="")

    def test_progress_percent_bounds(self):
        with pytest.raises(ValidationError):
            RoundProgress(
                contribution_slots=0,
                contribution_amount=Decimal("0"),
                progress_value=Decimal("0"),
                progress_percent=101,
                round_status="in_progress",
            )


class TestDocuments:

    def test_event_document_keys(self):
        record = EventRecord(
            id="e1",
            round_id="r1",
            type="progress_80",
            title="t",
            description="d",
            audience="both",
            timestamp=1,
        )
        assert record.to_document() == {
            "id": "e1",
            "roundId": "r1",
            "type": "progress_80",
            "title": "t",
            "description": "d",
            "audience": "both",
            "timestamp": 1,
        }
        assert record.dedup_key == ("r1", "progress_80")

    def test_event_visibility(self):
        admin_only = EventRecord(
            id="e1", round_id="r1", type="goal_failed", title="t",
            description="d", audience="admin", timestamp=1,
        )
        assert admin_only.visible_to(None)
        assert admin_only.visible_to("admin")
        assert not admin_only.visible_to("buyer")
