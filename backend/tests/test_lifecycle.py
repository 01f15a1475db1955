"""
Tests para el ciclo de vida: borrador -> validada -> pagada.
"""
import pytest
from datetime import date
from decimal import Decimal

from app.core.exceptions import (
    ImmutableRecordError, InvalidTransitionError, DeclarationValidationError
)
from app.models.models import DeclarationStatus, PaymentType
from app.services.declaration_store import DeclarationStore
from app.services.lifecycle import DeclarationLifecycle, TRANSITIONS

LATE = date(2024, 3, 1)
ON_TIME = date(2024, 2, 29)


@pytest.fixture
def store():
    return DeclarationStore()


@pytest.fixture
def lifecycle(store):
    return DeclarationLifecycle(store)


@pytest.fixture
def draft(store):
    """Declaración de enero 2024 con 1000 retenidos y 200 ya pagados."""
    declaration = store.create(2024, 1)
    return store.update(declaration.id, {"withholdings": 1000, "already_paid": 200})


class TestEdit:

    def test_edit_recalculates(self, lifecycle, draft):
        edited = lifecycle.edit(draft.id, {"withholdings": 2000}, ON_TIME)
        assert edited.withholdings == Decimal("2000")
        assert edited.status == DeclarationStatus.DRAFT
        assert edited.total_amount == 1800

    def test_edit_validated_then_pay_uses_current_inputs(self, lifecycle, draft):
        """El monto pagado corresponde a las entradas vigentes al pagar."""
        lifecycle.submit(draft.id, date(2024, 2, 1))
        edited = lifecycle.edit(draft.id, {"withholdings": 5000}, date(2024, 2, 1))
        assert edited.status == DeclarationStatus.VALIDATED

        paid = lifecycle.mark_paid(draft.id)

        assert paid.withholdings == Decimal("5000")
        assert paid.principal_amount == Decimal("4800")
        assert paid.total_amount == 4800

    def test_edit_requires_reference_date(self, lifecycle, store, draft):
        with pytest.raises(DeclarationValidationError):
            lifecycle.edit(draft.id, {"withholdings": 2000}, None)
        assert store.get(draft.id).withholdings == Decimal("1000")

    def test_edit_rejects_non_input_fields(self, lifecycle, draft):
        with pytest.raises(DeclarationValidationError):
            lifecycle.edit(draft.id, {"total_amount": 1}, ON_TIME)

    def test_edit_paid_raises_immutable(self, lifecycle, draft):
        lifecycle.submit(draft.id, ON_TIME)
        lifecycle.mark_paid(draft.id)

        with pytest.raises(ImmutableRecordError):
            lifecycle.edit(draft.id, {"payment_type": PaymentType.CORRECTIVE}, ON_TIME)


class TestSaveDraft:

    def test_save_recalculates(self, lifecycle, draft):
        saved = lifecycle.save_draft(draft.id, LATE)

        assert saved.status == DeclarationStatus.DRAFT
        assert saved.principal_amount == Decimal("800")
        assert saved.penalty_amount == Decimal("160")
        assert saved.late_fee == Decimal("40")
        assert saved.total_amount == 1000

    def test_save_applies_changes_before_calculating(self, lifecycle, draft):
        saved = lifecycle.save_draft(draft.id, ON_TIME, {"already_paid": "0"})
        assert saved.total_amount == 1000

    def test_save_keeps_validated_status(self, lifecycle, draft):
        """Guardar una validada no la devuelve a borrador."""
        lifecycle.submit(draft.id, ON_TIME)
        saved = lifecycle.save_draft(draft.id, LATE)

        assert saved.status == DeclarationStatus.VALIDATED
        assert saved.total_amount == 1000

    def test_save_paid_is_invalid(self, lifecycle, draft):
        lifecycle.submit(draft.id, ON_TIME)
        lifecycle.mark_paid(draft.id)

        with pytest.raises(InvalidTransitionError):
            lifecycle.save_draft(draft.id, LATE)

    def test_failed_save_leaves_record_unchanged(self, lifecycle, store, draft):
        with pytest.raises(DeclarationValidationError):
            lifecycle.save_draft(draft.id, LATE, {"withholdings": "-5"})

        current = store.get(draft.id)
        assert current.withholdings == Decimal("1000")
        assert current.total_amount == 0


class TestSubmit:

    def test_submit_recalculates_and_validates(self, lifecycle, draft):
        submitted = lifecycle.submit(draft.id, ON_TIME)

        assert submitted.status == DeclarationStatus.VALIDATED
        assert submitted.total_amount == 800
        assert submitted.penalty_amount == 0

    def test_submit_twice_is_invalid(self, lifecycle, store, draft):
        lifecycle.submit(draft.id, ON_TIME)

        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.submit(draft.id, LATE)

        assert exc_info.value.current == DeclarationStatus.VALIDATED
        assert exc_info.value.requested == DeclarationStatus.VALIDATED
        # Sin recálculo con la fecha tardía
        assert store.get(draft.id).total_amount == 800

    def test_submit_requires_reference_date(self, lifecycle, store, draft):
        with pytest.raises(DeclarationValidationError):
            lifecycle.submit(draft.id, None)
        assert store.get(draft.id).status == DeclarationStatus.DRAFT


class TestMarkPaid:

    def test_mark_paid_does_not_recalculate(self, lifecycle, draft):
        lifecycle.submit(draft.id, ON_TIME)
        paid = lifecycle.mark_paid(draft.id)

        assert paid.status == DeclarationStatus.PAID
        assert paid.total_amount == 800

    def test_mark_paid_from_draft_is_invalid(self, lifecycle, store, draft):
        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.mark_paid(draft.id)

        assert exc_info.value.current == DeclarationStatus.DRAFT
        assert exc_info.value.requested == DeclarationStatus.PAID
        assert store.get(draft.id).status == DeclarationStatus.DRAFT

    def test_mark_paid_twice_is_invalid(self, lifecycle, draft):
        lifecycle.submit(draft.id, ON_TIME)
        lifecycle.mark_paid(draft.id)
        with pytest.raises(InvalidTransitionError):
            lifecycle.mark_paid(draft.id)


class TestTransition:
    """Solo borrador -> validada -> pagada; el resto falla sin cambios."""

    ALLOWED = {
        (DeclarationStatus.DRAFT, DeclarationStatus.DRAFT),
        (DeclarationStatus.DRAFT, DeclarationStatus.VALIDATED),
        (DeclarationStatus.VALIDATED, DeclarationStatus.DRAFT),
        (DeclarationStatus.VALIDATED, DeclarationStatus.PAID),
    }

    def _bring_to(self, lifecycle, declaration_id, status):
        if status in (DeclarationStatus.VALIDATED, DeclarationStatus.PAID):
            lifecycle.submit(declaration_id, ON_TIME)
        if status == DeclarationStatus.PAID:
            lifecycle.mark_paid(declaration_id)

    @pytest.mark.parametrize("current", list(DeclarationStatus))
    @pytest.mark.parametrize("requested", list(DeclarationStatus))
    def test_transition_matrix(self, store, lifecycle, current, requested):
        declaration = store.create(2024, 1)
        self._bring_to(lifecycle, declaration.id, current)

        if (current, requested) in self.ALLOWED:
            updated = lifecycle.transition(declaration.id, requested, ON_TIME)
            assert updated.status in (current, requested)
        else:
            with pytest.raises(InvalidTransitionError) as exc_info:
                lifecycle.transition(declaration.id, requested, ON_TIME)
            assert exc_info.value.current == current
            assert exc_info.value.requested == requested
            assert store.get(declaration.id).status == current

    def test_status_given_as_text(self, lifecycle, draft):
        updated = lifecycle.transition(draft.id, "validated", ON_TIME)
        assert updated.status == DeclarationStatus.VALIDATED

    @pytest.mark.parametrize("requested", ["payee", "", None, 3])
    def test_unknown_requested_status_rejected(self, lifecycle, store, draft, requested):
        with pytest.raises(DeclarationValidationError):
            lifecycle.transition(draft.id, requested, ON_TIME)
        assert store.get(draft.id).status == DeclarationStatus.DRAFT

    def test_paid_is_terminal(self):
        assert TRANSITIONS[DeclarationStatus.PAID] == {}
        assert DeclarationLifecycle.valid_actions(DeclarationStatus.PAID) == []

    def test_preview_does_not_persist(self, lifecycle, store, draft):
        breakdown = lifecycle.preview(draft.id, LATE)

        assert breakdown.total_amount == 1000
        assert store.get(draft.id).total_amount == 0
