"""
Esquemas Pydantic para validación de datos.
Validación doble: aquí (HTTP) y en el dominio (utils.validators).
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date
from decimal import Decimal
from dataclasses import asdict

from ..core.labels import Language, month_name, payment_type_label, status_label
from ..models.models import Declaration, DeclarationStatus, PaymentType


# ===================== DECLARACIONES =====================

class DeclarationCreate(BaseModel):
    """Nuevo versamiento: periodo declarado."""
    year: int
    month: int = Field(..., ge=1, le=12)


class DeclarationInputs(BaseModel):
    """
    Entradas del formulario "Calculer le montant à verser".
    Solo se aplican los campos enviados.
    """
    payment_type: Optional[PaymentType] = None
    total_remuneration: Optional[Decimal] = Field(None, ge=0)
    withholdings: Optional[Decimal] = Field(None, ge=0)
    already_paid: Optional[Decimal] = Field(None, ge=0)

    def to_changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class DeclarationResponse(BaseModel):
    id: str
    year: int
    month: int
    payment_type: PaymentType
    status: DeclarationStatus

    total_remuneration: Decimal
    withholdings: Decimal
    already_paid: Decimal

    principal_amount: Decimal
    penalty_percentage: Decimal
    penalty_amount: Decimal
    late_fee: Decimal
    total_amount: int

    # Textos de presentación
    month_label: str = ""
    payment_type_label: str = ""
    status_label: str = ""

    @classmethod
    def from_declaration(cls, declaration: Declaration, lang: Language = Language.FR) -> "DeclarationResponse":
        return cls(
            **asdict(declaration),
            month_label=month_name(declaration.month, lang),
            payment_type_label=payment_type_label(declaration.payment_type, lang),
            status_label=status_label(declaration.status, lang)
        )


class FeeBreakdownResponse(BaseModel):
    """Resultado del cálculo sin persistir."""
    principal_amount: Decimal
    penalty_percentage: Decimal
    penalty_amount: Decimal
    late_fee: Decimal
    total_amount: int
    deadline: date
    is_late: bool


# ===================== PAGO =====================

class PaymentDetailsResponse(BaseModel):
    """Datos del paso de pago después de validar."""
    declaration: DeclarationResponse
    amount_to_debit: int
    currency: str
    payment_modes: List[str]
    bank_accounts: List[str]


class PaymentConfirmation(BaseModel):
    bank_account: str = Field(..., min_length=1, max_length=255)
