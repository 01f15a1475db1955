"""
Motor de cálculo de los versamientos de retenciones en la fuente.
Implementa las fórmulas del formulario de manera desacoplada:
principal, multa, recargo por mora y total redondeado.

Ninguna función lee el reloj del sistema: la fecha de referencia
(as_of_date) siempre la entrega quien llama.
"""
import calendar
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, ROUND_CEILING

from ..models.models import Declaration

# Multa por presentación tardía (porcentaje sobre el principal)
LATE_PENALTY_PERCENTAGE = Decimal("20")

# Recargo por mora (fracción del principal)
LATE_FEE_RATE = Decimal("0.05")

# El total se redondea hacia arriba a la unidad monetaria entera
TOTAL_ROUNDING = ROUND_CEILING

ZERO = Decimal("0")


@dataclass(frozen=True)
class FeeBreakdown:
    """Resultado completo del cálculo."""
    principal_amount: Decimal
    penalty_percentage: Decimal
    penalty_amount: Decimal
    late_fee: Decimal
    total_amount: int
    deadline: date
    is_late: bool

    def as_patch(self) -> dict:
        """Campos derivados listos para fusionar en la declaración."""
        return {
            "principal_amount": self.principal_amount,
            "penalty_percentage": self.penalty_percentage,
            "penalty_amount": self.penalty_amount,
            "late_fee": self.late_fee,
            "total_amount": self.total_amount,
        }


class WithholdingFeeCalculator:
    """
    Motor de cálculo para el formulario de retenciones.
    """

    @staticmethod
    def compute_deadline(year: int, month: int) -> date:
        """
        Fecha límite: último día calendario del mes siguiente al declarado.
        Marzo -> 30 de abril; diciembre -> 31 de enero del año siguiente.
        """
        if month == 12:
            year, month = year + 1, 1
        else:
            month += 1
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, last_day)

    @staticmethod
    def is_late(deadline: date, as_of_date) -> bool:
        """Se compara solo la fecha; la hora se descarta."""
        if isinstance(as_of_date, datetime):
            as_of_date = as_of_date.date()
        return as_of_date > deadline

    @staticmethod
    def calculate_principal(withholdings: Decimal, already_paid: Decimal) -> Decimal:
        """
        Principal a pagar.
        Fórmula: max(0, retenciones - ya pagado)
        """
        return max(ZERO, withholdings - already_paid)

    @staticmethod
    def calculate_penalties(principal: Decimal, late: bool) -> tuple:
        """
        Multa y recargo.
        Tardía: multa = 20% del principal, recargo = 5% del principal.
        En plazo: ambos en cero.

        Returns:
            (penalty_percentage, penalty_amount, late_fee)
        """
        if not late:
            return ZERO, ZERO, ZERO
        penalty_amount = principal * LATE_PENALTY_PERCENTAGE / 100
        late_fee = principal * LATE_FEE_RATE
        return LATE_PENALTY_PERCENTAGE, penalty_amount, late_fee

    @staticmethod
    def calculate_total(principal: Decimal, penalty_amount: Decimal, late_fee: Decimal) -> int:
        """
        Total a pagar, redondeado hacia arriba a la unidad entera.
        Política del tesoro, no un redondeo de presentación.
        """
        total = principal + penalty_amount + late_fee
        return int(total.to_integral_value(rounding=TOTAL_ROUNDING))

    @classmethod
    def calculate(cls, declaration: Declaration, as_of_date) -> FeeBreakdown:
        """
        Calcula todos los valores derivados de la declaración.
        Función pura: mismas entradas y misma fecha, mismo resultado.
        """
        deadline = cls.compute_deadline(declaration.year, declaration.month)
        late = cls.is_late(deadline, as_of_date)

        principal = cls.calculate_principal(declaration.withholdings, declaration.already_paid)
        penalty_percentage, penalty_amount, late_fee = cls.calculate_penalties(principal, late)
        total = cls.calculate_total(principal, penalty_amount, late_fee)

        return FeeBreakdown(
            principal_amount=principal,
            penalty_percentage=penalty_percentage,
            penalty_amount=penalty_amount,
            late_fee=late_fee,
            total_amount=total,
            deadline=deadline,
            is_late=late
        )


# Instancia global del motor
fee_calculator = WithholdingFeeCalculator()
