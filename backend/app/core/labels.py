"""
Textos de presentación (francés / árabe) para los valores del dominio.
Los enums guardan etiquetas independientes del idioma; la traducción
ocurre solo aquí, en la frontera de presentación.
"""
import enum

from ..models.models import DeclarationStatus, PaymentType


class Language(str, enum.Enum):
    FR = "fr"
    AR = "ar"


STATUS_LABELS = {
    Language.FR: {
        DeclarationStatus.DRAFT: "Brouillon",
        DeclarationStatus.VALIDATED: "Validé",
        DeclarationStatus.PAID: "Payé",
    },
    Language.AR: {
        DeclarationStatus.DRAFT: "مسودة",
        DeclarationStatus.VALIDATED: "مصادق عليه",
        DeclarationStatus.PAID: "مؤدى",
    },
}

PAYMENT_TYPE_LABELS = {
    Language.FR: {
        PaymentType.INITIAL: "Initial",
        PaymentType.CORRECTIVE: "Correctif",
    },
    Language.AR: {
        PaymentType.INITIAL: "أولي",
        PaymentType.CORRECTIVE: "تصحيحي",
    },
}

MONTH_NAMES = {
    Language.FR: [
        "Janvier", "Février", "Mars", "Avril", "Mai", "Juin",
        "Juillet", "Août", "Septembre", "Octobre", "Novembre", "Décembre",
    ],
    Language.AR: [
        "يناير", "فبراير", "مارس", "أبريل", "ماي", "يونيو",
        "يوليوز", "غشت", "شتنبر", "أكتوبر", "نونبر", "دجنبر",
    ],
}


def _lang(lang) -> Language:
    # Idioma desconocido -> francés
    try:
        return Language(lang)
    except ValueError:
        return Language.FR


def status_label(status: DeclarationStatus, lang=Language.FR) -> str:
    return STATUS_LABELS[_lang(lang)][status]


def payment_type_label(payment_type: PaymentType, lang=Language.FR) -> str:
    return PAYMENT_TYPE_LABELS[_lang(lang)][payment_type]


def month_name(month: int, lang=Language.FR) -> str:
    """Nombre del mes (1-12); cadena vacía fuera de rango."""
    if not 1 <= month <= 12:
        return ""
    return MONTH_NAMES[_lang(lang)][month - 1]
