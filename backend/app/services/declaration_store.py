"""
Almacén de declaraciones.
Colección ordenada (orden de inserción) indexada por id, con una
única regla de unicidad: una declaración por par (año, mes).

El almacén no lee ni escribe disco por sí mismo: recibe su estado
inicial y se carga/guarda explícitamente a través de un colaborador
de persistencia con load() y save(declarations).
"""
import logging
import uuid
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from ..core.exceptions import (
    DuplicatePeriodError, DeclarationNotFoundError,
    ImmutableRecordError, InvalidTransitionError, DeclarationValidationError
)
from ..models.models import (
    Declaration, DeclarationStatus, INPUT_FIELDS, DERIVED_FIELDS
)
from ..utils.validators import (
    validate_fiscal_year, validate_month, parse_monetary_amount,
    parse_payment_type, parse_status, parse_total_amount, DERIVED_AMOUNT_PLACES
)

logger = logging.getLogger(__name__)

# Campos fijados al crear la declaración
LOCKED_FIELDS = ("id", "year", "month")

STATUS_ORDER = (
    DeclarationStatus.DRAFT,
    DeclarationStatus.VALIDATED,
    DeclarationStatus.PAID,
)


def generate_declaration_id() -> str:
    return uuid.uuid4().hex


def coerce_field(name: str, value):
    if name == "payment_type":
        return parse_payment_type(value)
    if name == "status":
        return parse_status(value)
    if name == "total_amount":
        return parse_total_amount(value)
    if name in DERIVED_FIELDS:
        # penalty_percentage también es un Decimal no negativo
        return parse_monetary_amount(value, field=name, places=DERIVED_AMOUNT_PLACES)
    return parse_monetary_amount(value, field=name)


def coerce_patch(patch: dict) -> dict:
    """Valida y convierte cada valor del parche sin tocar el almacén."""
    return {name: coerce_field(name, value) for name, value in patch.items()}


class DeclarationStore:
    """
    Colección en memoria de declaraciones.
    Toda operación fallida deja el almacén intacto y todos los
    valores devueltos son copias.
    """

    def __init__(
        self,
        declarations: Optional[Iterable[Declaration]] = None,
        allow_delete_paid: bool = True,
        id_factory=generate_declaration_id
    ):
        self.allow_delete_paid = allow_delete_paid
        self._id_factory = id_factory
        self._records: Dict[str, Declaration] = {}

        for declaration in declarations or []:
            if declaration.id in self._records:
                raise DeclarationValidationError(
                    f"Identifiant dupliqué: {declaration.id}", field="id"
                )
            existing = self.find_by_period(declaration.year, declaration.month)
            if existing:
                raise DuplicatePeriodError(declaration.year, declaration.month, existing.id)
            self._records[declaration.id] = replace(declaration)

    # ===================== CARGA / GUARDADO =====================

    @classmethod
    def load(cls, persistence, **kwargs) -> "DeclarationStore":
        """Construye el almacén con el contenido del colaborador de persistencia."""
        return cls(persistence.load(), **kwargs)

    def save(self, persistence) -> None:
        """Entrega la colección completa al colaborador de persistencia."""
        persistence.save(self.list())

    # ===================== CONSULTAS =====================

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, declaration_id: str) -> bool:
        return declaration_id in self._records

    def list(self) -> List[Declaration]:
        """Todas las declaraciones en orden de inserción."""
        return [replace(d) for d in self._records.values()]

    def get(self, declaration_id: str) -> Declaration:
        return replace(self._get(declaration_id))

    def find_by_period(self, year: int, month: int) -> Optional[Declaration]:
        for declaration in self._records.values():
            if declaration.year == year and declaration.month == month:
                return replace(declaration)
        return None

    def _get(self, declaration_id: str) -> Declaration:
        try:
            return self._records[declaration_id]
        except KeyError:
            raise DeclarationNotFoundError(declaration_id)

    # ===================== MUTACIONES =====================

    def create(self, year: int, month: int) -> Declaration:
        """
        Crea una declaración en borrador con montos en cero.
        Falla con DuplicatePeriodError si el periodo ya existe.
        """
        validate_fiscal_year(year)
        validate_month(month)

        existing = self.find_by_period(year, month)
        if existing:
            logger.warning("Duplicate period %02d/%d (existing %s)", month, year, existing.id)
            raise DuplicatePeriodError(year, month, existing.id)

        declaration = Declaration(id=self._id_factory(), year=year, month=month)
        self._records[declaration.id] = declaration
        logger.info("Declaration %s created for %02d/%d", declaration.id, month, year)
        return replace(declaration)

    def update(self, declaration_id: str, patch: dict) -> Declaration:
        """
        Fusiona el parche en la declaración.
        Una declaración pagada no admite cambios: ni entradas ni montos.
        """
        current = self._get(declaration_id)

        unknown = set(patch) - set(INPUT_FIELDS) - set(DERIVED_FIELDS) - {"status"}
        if unknown:
            field = sorted(unknown)[0]
            if field in LOCKED_FIELDS:
                raise DeclarationValidationError(f"Champ non modifiable: {field}", field=field)
            raise DeclarationValidationError(f"Champ inconnu: {field}", field=field)

        if current.status == DeclarationStatus.PAID and set(patch) - {"status"}:
            logger.warning("Rejected edit of paid declaration %s", declaration_id)
            raise ImmutableRecordError(declaration_id)

        changes = coerce_patch(patch)

        new_status = changes.get("status", current.status)
        if new_status != current.status:
            self._check_status_change(current.status, new_status)

        updated = replace(current, **changes)
        self._records[declaration_id] = updated
        return replace(updated)

    def delete(self, declaration_id: str) -> None:
        """
        Elimina la declaración.
        Con allow_delete_paid=False una declaración pagada no se elimina.
        """
        current = self._get(declaration_id)
        if current.status == DeclarationStatus.PAID and not self.allow_delete_paid:
            raise ImmutableRecordError(
                declaration_id,
                f"La déclaration {declaration_id} est payée et ne peut pas être supprimée"
            )
        del self._records[declaration_id]
        logger.info("Declaration %s deleted", declaration_id)

    @staticmethod
    def _check_status_change(current: DeclarationStatus, new: DeclarationStatus) -> None:
        # Solo se avanza un paso: borrador -> validada -> pagada
        if STATUS_ORDER.index(new) != STATUS_ORDER.index(current) + 1:
            raise InvalidTransitionError(current, new)
