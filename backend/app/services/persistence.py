"""
Persistencia de la colección de declaraciones en base de datos.
Granularidad de colección completa: load() devuelve todo, save()
reemplaza todo, conservando el orden de inserción.
"""
import logging
from decimal import Decimal
from typing import List, Sequence

from sqlalchemy.orm import Session

from ..models.models import Declaration, DeclarationRecord

logger = logging.getLogger(__name__)


def to_record(declaration: Declaration, position: int) -> DeclarationRecord:
    return DeclarationRecord(
        id=declaration.id,
        position=position,
        year=declaration.year,
        month=declaration.month,
        payment_type=declaration.payment_type,
        status=declaration.status,
        total_remuneration=declaration.total_remuneration,
        withholdings=declaration.withholdings,
        already_paid=declaration.already_paid,
        principal_amount=declaration.principal_amount,
        penalty_percentage=declaration.penalty_percentage,
        penalty_amount=declaration.penalty_amount,
        late_fee=declaration.late_fee,
        total_amount=declaration.total_amount
    )


def _amount(value) -> Decimal:
    # normalize() quita los ceros de la escala de la columna (800.0000 -> 800)
    return Decimal(value or 0).normalize() + 0


def from_record(record: DeclarationRecord) -> Declaration:
    return Declaration(
        id=record.id,
        year=record.year,
        month=record.month,
        payment_type=record.payment_type,
        status=record.status,
        total_remuneration=_amount(record.total_remuneration),
        withholdings=_amount(record.withholdings),
        already_paid=_amount(record.already_paid),
        principal_amount=_amount(record.principal_amount),
        penalty_percentage=_amount(record.penalty_percentage),
        penalty_amount=_amount(record.penalty_amount),
        late_fee=_amount(record.late_fee),
        total_amount=int(record.total_amount or 0)
    )


class SQLDeclarationPersistence:
    """Colaborador de persistencia sobre una sesión SQLAlchemy."""

    def __init__(self, db: Session):
        self.db = db

    def load(self) -> List[Declaration]:
        records = self.db.query(DeclarationRecord).order_by(DeclarationRecord.position).all()
        return [from_record(r) for r in records]

    def save(self, declarations: Sequence[Declaration]) -> None:
        """Reemplaza la colección completa en una sola transacción."""
        try:
            self.db.query(DeclarationRecord).delete()
            # El DELETE debe llegar a la base antes de insertar los mismos periodos
            self.db.flush()
            for position, declaration in enumerate(declarations):
                self.db.add(to_record(declaration, position))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.debug("Persisted %d declarations", len(declarations))
