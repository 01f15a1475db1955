"""
Exportación de declaraciones a CSV (botón "Exporter Excel").
"""
import csv
import io
from typing import Sequence

from ..core.exceptions import DeclarationValidationError
from ..core.labels import Language, payment_type_label
from ..models.models import Declaration

CSV_HEADERS = [
    "Annee", "Mois", "Type de versement", "Montant global verse",
    "Montant retenu", "Montant deja verse", "Montant total a verser",
]

DEFAULT_EXPORT_FILENAME = "export_declarations_ir.csv"


def export_declarations_csv(declarations: Sequence[Declaration], lang=Language.FR) -> str:
    """
    Genera el contenido CSV de las declaraciones, en el orden recibido.
    Sin declaraciones no hay nada que exportar.
    """
    if not declarations:
        raise DeclarationValidationError("Aucune donnée à exporter")

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for d in declarations:
        writer.writerow([
            d.year,
            d.month,
            payment_type_label(d.payment_type, lang),
            d.total_remuneration,
            d.withholdings,
            d.already_paid,
            d.total_amount,
        ])
    return buffer.getvalue()
