"""
Controlador del ciclo de vida de la declaración.

Máquina de estados sobre status:
    borrador --submit--> validada --pay--> pagada (terminal)
    borrador/validada --save--> mismo estado, con recálculo

La máquina decide qué transiciones son válidas; cada operación calcula
el registro nuevo completo antes de confirmarlo en el almacén con una
sola llamada a update().
"""
import logging
from dataclasses import replace
from typing import Optional

from ..core.exceptions import (
    ImmutableRecordError, InvalidTransitionError, DeclarationValidationError
)
from ..models.models import Declaration, DeclarationStatus, INPUT_FIELDS
from ..utils.validators import parse_status
from .declaration_store import DeclarationStore, coerce_patch
from .fee_calculator import WithholdingFeeCalculator, FeeBreakdown

logger = logging.getLogger(__name__)

# Mapa de transiciones: {estado_actual: {acción: estado_siguiente}}
TRANSITIONS = {
    DeclarationStatus.DRAFT: {
        "save": DeclarationStatus.DRAFT,
        "submit": DeclarationStatus.VALIDATED,
    },
    DeclarationStatus.VALIDATED: {
        "save": DeclarationStatus.VALIDATED,
        "pay": DeclarationStatus.PAID,
    },
    DeclarationStatus.PAID: {},
}

# Estado pedido -> acción que lo produce
ACTION_FOR_STATUS = {
    DeclarationStatus.DRAFT: "save",
    DeclarationStatus.VALIDATED: "submit",
    DeclarationStatus.PAID: "pay",
}


class DeclarationLifecycle:
    """Aplica las reglas de transición sobre un DeclarationStore."""

    def __init__(self, store: DeclarationStore, calculator=WithholdingFeeCalculator):
        self.store = store
        self.calculator = calculator

    # ===================== CONSULTAS =====================

    @staticmethod
    def can_transition(current: DeclarationStatus, action: str) -> bool:
        return action in TRANSITIONS.get(current, {})

    @staticmethod
    def valid_actions(current: DeclarationStatus) -> list:
        return list(TRANSITIONS.get(current, {}).keys())

    def preview(self, declaration_id: str, as_of_date) -> FeeBreakdown:
        """Calcula sin persistir (botón "Calculer" del formulario)."""
        return self.calculator.calculate(self.store.get(declaration_id), as_of_date)

    # ===================== EDICIÓN =====================

    def edit(self, declaration_id: str, changes: dict, as_of_date) -> Declaration:
        """
        Edita las entradas del formulario y recalcula los derivados.
        Solo en borrador o validada; una pagada es inmutable. El estado
        no cambia, así que el monto que se pagará siempre corresponde a
        las entradas vigentes.
        """
        current = self.store.get(declaration_id)
        if not current.is_editable:
            logger.warning("Rejected edit of paid declaration %s", declaration_id)
            raise ImmutableRecordError(declaration_id)
        self._check_input_fields(changes)
        return self._apply("save", declaration_id, as_of_date, changes)

    # ===================== TRANSICIONES =====================

    def save_draft(self, declaration_id: str, as_of_date, changes: Optional[dict] = None) -> Declaration:
        """
        Guarda el formulario recalculando los derivados.
        Una declaración validada sigue validada: el estado nunca retrocede.
        """
        return self._apply("save", declaration_id, as_of_date, changes)

    def submit(self, declaration_id: str, as_of_date, changes: Optional[dict] = None) -> Declaration:
        """
        Recalcula y pasa la declaración a validada.
        Después de esto sigue el paso de pago.
        """
        return self._apply("submit", declaration_id, as_of_date, changes)

    def mark_paid(self, declaration_id: str) -> Declaration:
        """Pasa a pagada sin recalcular: el monto quedó fijado al validar."""
        return self._apply("pay", declaration_id, None, None)

    def transition(self, declaration_id: str, requested: DeclarationStatus, as_of_date=None) -> Declaration:
        """Ejecuta la acción que produce el estado pedido."""
        requested = parse_status(requested)
        action = ACTION_FOR_STATUS[requested]
        current = self.store.get(declaration_id)
        if not self.can_transition(current.status, action):
            logger.warning(
                "Invalid transition for %s: %s -> %s",
                declaration_id, current.status.value, requested.value
            )
            raise InvalidTransitionError(current.status, requested)
        return self._apply(action, declaration_id, as_of_date, None)

    def _apply(self, action: str, declaration_id: str, as_of_date, changes: Optional[dict]) -> Declaration:
        current = self.store.get(declaration_id)
        state_transitions = TRANSITIONS.get(current.status, {})
        if action not in state_transitions:
            logger.warning(
                "Invalid action %r for %s in state %s (valid: %s)",
                action, declaration_id, current.status.value, list(state_transitions.keys())
            )
            raise InvalidTransitionError(current.status, self._status_for_action(action))

        new_status = state_transitions[action]
        patch = {}

        if changes:
            self._check_input_fields(changes)
            patch.update(coerce_patch(changes))

        if action != "pay":
            if as_of_date is None:
                raise DeclarationValidationError("Date de référence manquante", field="as_of_date")
            candidate = replace(current, **patch)
            breakdown = self.calculator.calculate(candidate, as_of_date)
            patch.update(breakdown.as_patch())

        if new_status != current.status:
            patch["status"] = new_status

        updated = self.store.update(declaration_id, patch)
        logger.info(
            "Declaration %s: %s --%s--> %s (total=%s)",
            declaration_id, current.status.value, action, updated.status.value, updated.total_amount
        )
        return updated

    @staticmethod
    def _status_for_action(action: str) -> DeclarationStatus:
        for status, status_action in ACTION_FOR_STATUS.items():
            if status_action == action:
                return status
        raise DeclarationValidationError(f"Action inconnue: {action}")

    @staticmethod
    def _check_input_fields(changes: dict) -> None:
        extra = set(changes) - set(INPUT_FIELDS)
        if extra:
            field = sorted(extra)[0]
            raise DeclarationValidationError(f"Champ non modifiable: {field}", field=field)
