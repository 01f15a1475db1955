"""
Utilidades de validación.
Validación estricta de las entradas del formulario antes de tocar el almacén.
"""
from decimal import Decimal, InvalidOperation
from typing import Any

from ..core.config import settings
from ..core.exceptions import DeclarationValidationError
from ..models.models import PaymentType, DeclarationStatus

# Máximo razonable para evitar overflow
MAX_MONETARY_AMOUNT = Decimal("999999999999")

# Decimales que conservan las columnas de la base de datos
INPUT_AMOUNT_PLACES = 4
DERIVED_AMOUNT_PLACES = 6


def validate_month(month: Any) -> int:
    """El mes declarado va de 1 a 12."""
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise DeclarationValidationError(f"Mois invalide: {month!r}", field="month")
    return month


def validate_fiscal_year(year: Any) -> int:
    """
    Valida que el año fiscal sea válido.
    El rango viene de la configuración; nunca del reloj del sistema.
    """
    if isinstance(year, bool) or not isinstance(year, int):
        raise DeclarationValidationError(f"Année invalide: {year!r}", field="year")
    if not settings.MIN_FISCAL_YEAR <= year <= settings.MAX_FISCAL_YEAR:
        raise DeclarationValidationError(
            f"Année hors limites ({settings.MIN_FISCAL_YEAR}-{settings.MAX_FISCAL_YEAR}): {year}",
            field="year"
        )
    return year


def parse_monetary_amount(value: Any, field: str = "amount", places: int = INPUT_AMOUNT_PLACES) -> Decimal:
    """
    Convierte un monto a Decimal.
    Acepta int, float, Decimal o texto numérico con a lo sumo `places`
    decimales; rechaza negativos, booleanos, NaN/infinito y valores
    fuera de rango.
    """
    if isinstance(value, bool) or value is None:
        raise DeclarationValidationError(f"Montant non numérique: {value!r}", field=field)

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        # repr conserva el valor que escribió el usuario (0.1 -> "0.1")
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise DeclarationValidationError(f"Montant non numérique: {value!r}", field=field)
    else:
        raise DeclarationValidationError(f"Montant non numérique: {value!r}", field=field)

    if not amount.is_finite():
        raise DeclarationValidationError(f"Montant non numérique: {value!r}", field=field)
    if amount < 0:
        raise DeclarationValidationError(f"Montant négatif: {value!r}", field=field)
    if amount > MAX_MONETARY_AMOUNT:
        raise DeclarationValidationError(f"Montant trop élevé: {value!r}", field=field)
    if amount.normalize().as_tuple().exponent < -places:
        raise DeclarationValidationError(
            f"Montant avec plus de {places} décimales: {value!r}", field=field
        )
    return amount


def parse_payment_type(value: Any) -> PaymentType:
    if isinstance(value, PaymentType):
        return value
    try:
        return PaymentType(value)
    except ValueError:
        raise DeclarationValidationError(
            f"Type de versement invalide: {value!r}", field="payment_type"
        )


def parse_status(value: Any) -> DeclarationStatus:
    if isinstance(value, DeclarationStatus):
        return value
    try:
        return DeclarationStatus(value)
    except ValueError:
        raise DeclarationValidationError(f"Statut invalide: {value!r}", field="status")


def parse_total_amount(value: Any) -> int:
    """El total a pagar es un entero no negativo."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise DeclarationValidationError(
            f"Montant total invalide: {value!r}", field="total_amount"
        )
    return value
