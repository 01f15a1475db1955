"""
Modelos del sistema de versamientos de retenciones en la fuente.

Modelo de datos base (una declaración por año y mes):
{
  "id": "string",
  "year": YYYY,
  "month": 1-12,
  "payment_type": "initial | corrective",
  "status": "draft | validated | paid",
  "entradas": {total_remuneration, withholdings, already_paid},
  "derivados": {principal_amount, penalty_percentage, penalty_amount, late_fee, total_amount}
}
"""
from dataclasses import dataclass, field
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Numeric, Enum, UniqueConstraint
)
from ..db.database import Base
import enum


class DeclarationStatus(enum.Enum):
    """
    Estado de la declaración.
    Solo avanza: borrador -> validada -> pagada.
    """
    DRAFT = "draft"
    VALIDATED = "validated"
    PAID = "paid"


class PaymentType(enum.Enum):
    """Tipo de versamiento."""
    INITIAL = "initial"
    CORRECTIVE = "corrective"


# Campos que el declarante diligencia en el formulario
INPUT_FIELDS = ("payment_type", "total_remuneration", "withholdings", "already_paid")

# Campos calculados por el motor de cálculo
DERIVED_FIELDS = (
    "principal_amount", "penalty_percentage", "penalty_amount", "late_fee", "total_amount"
)


@dataclass
class Declaration:
    """Declaración mensual de retenciones."""
    id: str
    year: int
    month: int
    payment_type: PaymentType = PaymentType.INITIAL
    status: DeclarationStatus = DeclarationStatus.DRAFT

    # Entradas
    total_remuneration: Decimal = field(default_factory=Decimal)
    withholdings: Decimal = field(default_factory=Decimal)
    already_paid: Decimal = field(default_factory=Decimal)

    # Derivados
    principal_amount: Decimal = field(default_factory=Decimal)
    penalty_percentage: Decimal = field(default_factory=Decimal)
    penalty_amount: Decimal = field(default_factory=Decimal)
    late_fee: Decimal = field(default_factory=Decimal)
    total_amount: int = 0

    @property
    def is_editable(self) -> bool:
        return self.status != DeclarationStatus.PAID


# ===================== PERSISTENCIA =====================

class DeclarationRecord(Base):
    """
    Fila persistida de una declaración.
    La colección se guarda completa; position conserva el orden de inserción.
    """
    __tablename__ = "withholding_declarations"
    __table_args__ = (
        UniqueConstraint("year", "month", name="uq_declaration_period"),
    )

    id = Column(String(64), primary_key=True)
    position = Column(Integer, nullable=False, index=True)

    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    payment_type = Column(Enum(PaymentType), nullable=False, default=PaymentType.INITIAL)
    status = Column(Enum(DeclarationStatus), nullable=False, default=DeclarationStatus.DRAFT)

    total_remuneration = Column(Numeric(18, 4), nullable=False, default=0)
    withholdings = Column(Numeric(18, 4), nullable=False, default=0)
    already_paid = Column(Numeric(18, 4), nullable=False, default=0)

    principal_amount = Column(Numeric(20, 6), nullable=False, default=0)
    penalty_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    penalty_amount = Column(Numeric(20, 6), nullable=False, default=0)
    late_fee = Column(Numeric(20, 6), nullable=False, default=0)
    total_amount = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<DeclarationRecord(id={self.id}, period={self.month:02d}/{self.year}, status={self.status})>"
