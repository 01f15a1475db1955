# Archivo de Pruebas - SimplIR
# Este archivo contiene casos de prueba para la hora de Marruecos,
# las etiquetas bilingües y los documentos exportados.

"""
CASOS DE PRUEBA - SIMPLIR
=========================

Este archivo documenta los casos de prueba para verificar:
1. Hora de Marruecos
2. Etiquetas en francés y árabe
3. Exportación CSV
4. Documentos PDF (resumen y recibo)

Ejecutar con: pytest tests/test_exports_and_timezone.py -v
"""

import pytest
from datetime import date, datetime, timezone, timedelta
from decimal import Decimal
import sys
import os

# Agregar path del backend para imports
backend_path = os.path.join(os.path.dirname(__file__), '..', 'backend')
sys.path.insert(0, backend_path)


def make_declaration(**kwargs):
    from app.models.models import Declaration

    values = dict(
        id="decl-1",
        year=2024,
        month=1,
        total_remuneration=Decimal("10000"),
        withholdings=Decimal("1000"),
        already_paid=Decimal("200"),
        principal_amount=Decimal("800"),
        penalty_percentage=Decimal("20"),
        penalty_amount=Decimal("160"),
        late_fee=Decimal("40"),
        total_amount=1000,
    )
    values.update(kwargs)
    return Declaration(**values)


# =============================================================================
# CASO DE PRUEBA 1: HORA DE MARRUECOS
# =============================================================================

class TestMoroccoTimezone:
    """Pruebas para la función get_morocco_time()"""

    def test_morocco_timezone_offset(self):
        """Verifica que la zona horaria de Marruecos sea UTC+1"""
        from app.core.config import MOROCCO_TZ

        assert MOROCCO_TZ.utcoffset(None) == timedelta(hours=1)

    def test_get_morocco_time_has_timezone(self):
        from app.core.config import get_morocco_time

        result = get_morocco_time()
        assert isinstance(result, datetime)
        assert result.tzinfo is not None

    def test_morocco_time_difference_from_utc(self):
        """La diferencia con UTC debe ser de una hora"""
        from app.core.config import get_morocco_time

        morocco_now = get_morocco_time()
        utc_now = datetime.now(timezone.utc)

        assert abs((morocco_now - utc_now).total_seconds()) < 5
        assert morocco_now.utcoffset() == timedelta(hours=1)


# =============================================================================
# CASO DE PRUEBA 2: ETIQUETAS
# =============================================================================

class TestLabels:

    def test_french_labels(self):
        from app.core.labels import Language, month_name, status_label
        from app.models.models import DeclarationStatus

        assert month_name(12, Language.FR) == "Décembre"
        assert status_label(DeclarationStatus.VALIDATED, Language.FR) == "Validé"

    def test_arabic_labels(self):
        from app.core.labels import Language, month_name, payment_type_label
        from app.models.models import PaymentType

        assert month_name(1, Language.AR) == "يناير"
        assert payment_type_label(PaymentType.CORRECTIVE, Language.AR) == "تصحيحي"

    def test_unknown_language_falls_back_to_french(self):
        from app.core.labels import month_name

        assert month_name(3, "es") == "Mars"

    def test_month_out_of_range(self):
        from app.core.labels import month_name

        assert month_name(0) == ""
        assert month_name(13) == ""


# =============================================================================
# CASO DE PRUEBA 3: EXPORTACIÓN CSV
# =============================================================================

class TestCsvExport:

    def test_headers_and_rows(self):
        from app.services.csv_export import export_declarations_csv, CSV_HEADERS
        from app.models.models import PaymentType

        content = export_declarations_csv([
            make_declaration(),
            make_declaration(id="decl-2", month=2, payment_type=PaymentType.CORRECTIVE, total_amount=0),
        ])
        lines = content.strip().split("\n")

        assert lines[0] == ",".join(CSV_HEADERS)
        assert lines[1] == "2024,1,Initial,10000,1000,200,1000"
        assert lines[2] == "2024,2,Correctif,10000,1000,200,0"

    def test_arabic_payment_type(self):
        from app.core.labels import Language
        from app.services.csv_export import export_declarations_csv

        content = export_declarations_csv([make_declaration()], Language.AR)
        assert "أولي" in content

    def test_empty_export_rejected(self):
        from app.core.exceptions import DeclarationValidationError
        from app.services.csv_export import export_declarations_csv

        with pytest.raises(DeclarationValidationError):
            export_declarations_csv([])


# =============================================================================
# CASO DE PRUEBA 4: DOCUMENTOS PDF
# =============================================================================

class TestPdfDocuments:

    def test_declaration_pdf(self):
        from app.services.pdf_generator import PDFGenerator

        content = PDFGenerator().generate_declaration_pdf(make_declaration())
        assert content.startswith(b"%PDF")

    def test_declaration_pdf_written_to_path(self, tmp_path):
        from app.services.pdf_generator import PDFGenerator

        output = tmp_path / "out" / "declaration.pdf"
        content = PDFGenerator({'watermark_text': 'SIMULATION'}).generate_declaration_pdf(
            make_declaration(), str(output)
        )
        assert output.read_bytes() == content

    def test_receipt_only_for_paid(self):
        from app.core.exceptions import DocumentUnavailableError
        from app.models.models import DeclarationStatus
        from app.services.pdf_generator import PDFGenerator

        generator = PDFGenerator()
        for status in (DeclarationStatus.DRAFT, DeclarationStatus.VALIDATED):
            with pytest.raises(DocumentUnavailableError):
                generator.generate_receipt_pdf(make_declaration(status=status), date(2024, 3, 1))

        content = generator.generate_receipt_pdf(
            make_declaration(status=DeclarationStatus.PAID), date(2024, 3, 1)
        )
        assert content.startswith(b"%PDF")

    def test_amount_format(self):
        from app.services.pdf_generator import fmt_amount

        assert fmt_amount(Decimal("1234567.5")) == "1 234 567.50"
        assert fmt_amount(1000) == "1 000.00"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
