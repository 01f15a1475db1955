"""
Servicio de generación de PDF.
Genera el resumen de la declaración y el recibo de pago.
Los textos del PDF van en francés: la fuente Helvetica de reportlab
no incluye glifos árabes.
"""
import os
from datetime import date
from io import BytesIO
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch, cm
from reportlab.platypus import (
    SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, HRFlowable
)
from reportlab.lib.enums import TA_CENTER

from ..core.config import settings
from ..core.exceptions import DocumentUnavailableError
from ..core.labels import Language, month_name, payment_type_label, status_label
from ..models.models import Declaration, DeclarationStatus


def fmt_amount(value) -> str:
    return f"{value:,.2f}".replace(",", " ")


class PDFGenerator:
    """
    Generador de PDF para declaraciones de retenciones.
    """

    def __init__(self, config: dict = None):
        self.config = config or {}
        self.currency = self.config.get('currency', settings.CURRENCY)
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()
        self.watermark_text = self.config.get('watermark_text', '')

    def _setup_custom_styles(self):
        """Configura estilos personalizados."""
        primary_color = self.config.get('primary_color', '#003366')
        r, g, b = self._hex_to_rgb(primary_color)

        self.styles.add(ParagraphStyle(
            name='FormTitle',
            parent=self.styles['Heading1'],
            fontSize=16,
            textColor=colors.Color(r/255, g/255, b/255),
            alignment=TA_CENTER,
            spaceAfter=20
        ))

        self.styles.add(ParagraphStyle(
            name='Footer',
            parent=self.styles['Normal'],
            fontSize=8,
            textColor=colors.grey,
            alignment=TA_CENTER
        ))

    def _hex_to_rgb(self, hex_color: str) -> tuple:
        """Convierte color hexadecimal a RGB."""
        hex_color = hex_color.lstrip('#')
        return tuple(int(hex_color[i:i+2], 16) for i in (0, 2, 4))

    def generate_declaration_pdf(
        self,
        declaration: Declaration,
        output_path: Optional[str] = None
    ) -> bytes:
        """
        Genera el PDF con el resumen de la declaración.

        Args:
            declaration: Declaración con los derivados calculados
            output_path: Si se indica, el PDF también se escribe en esa ruta

        Returns:
            Contenido del PDF
        """
        period = f"{month_name(declaration.month, Language.FR)} {declaration.year}"
        rows = [
            ['Exercice fiscal:', str(declaration.year)],
            ['Mois de versement:', month_name(declaration.month, Language.FR)],
            ['Type de versement:', payment_type_label(declaration.payment_type, Language.FR)],
            ['Statut:', status_label(declaration.status, Language.FR)],
            ['Montant global des rémunérations:', fmt_amount(declaration.total_remuneration)],
            ['Montant des retenues correspondantes:', fmt_amount(declaration.withholdings)],
            ['Montant déjà versé:', fmt_amount(declaration.already_paid)],
            ['Montant en principal:', fmt_amount(declaration.principal_amount)],
            [f'Pénalité ({declaration.penalty_percentage}%):', fmt_amount(declaration.penalty_amount)],
            ['Majorations de retard:', fmt_amount(declaration.late_fee)],
            ['Montant total à verser:', f"{fmt_amount(declaration.total_amount)} {self.currency}"],
        ]
        elements = self._build_document(f"Récapitulatif de la déclaration - {period}", rows)
        return self._render(elements, output_path)

    def generate_receipt_pdf(
        self,
        declaration: Declaration,
        issued_on: date,
        output_path: Optional[str] = None
    ) -> bytes:
        """
        Genera el recibo de pago. Solo existe para declaraciones pagadas.
        """
        if declaration.status != DeclarationStatus.PAID:
            raise DocumentUnavailableError(
                f"Le reçu n'est disponible qu'après paiement (statut: {declaration.status.value})"
            )

        rows = [
            ['Statut:', status_label(DeclarationStatus.PAID, Language.FR)],
            ['Détails de la déclaration:', f"{declaration.year}/{month_name(declaration.month, Language.FR)}"],
            ['ID:', declaration.id],
            ['Montant total à verser:', f"{fmt_amount(declaration.total_amount)} {self.currency}"],
            ['Date:', issued_on.strftime('%d/%m/%Y')],
        ]
        elements = self._build_document("Reçu de paiement", rows)
        return self._render(elements, output_path)

    def _build_document(self, title: str, rows: list) -> list:
        elements = []
        elements.append(Paragraph(title, self.styles['FormTitle']))
        elements.append(HRFlowable(width="100%", thickness=2, color=colors.grey))
        elements.append(Spacer(1, 0.3*inch))

        table = Table(rows, colWidths=[3*inch, 3.5*inch])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.lightgrey),
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ]))
        elements.append(table)
        elements.append(Spacer(1, 0.3*inch))
        elements.extend(self._build_footer())
        return elements

    def _build_footer(self) -> list:
        """Construye el pie de página."""
        elements = []
        elements.append(HRFlowable(width="100%", thickness=1, color=colors.grey))
        elements.append(Spacer(1, 0.1*inch))
        footer_text = self.config.get(
            'footer_text',
            "Application de simulation à but démonstratif - Inspiré par DGI Simpl-IR."
        )
        elements.append(Paragraph(footer_text, self.styles['Footer']))
        return elements

    def _render(self, elements: list, output_path: Optional[str]) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=1.5*cm,
            leftMargin=1.5*cm,
            topMargin=1.5*cm,
            bottomMargin=1.5*cm
        )

        watermark = self.watermark_text

        def add_watermark(canvas, doc):
            """Agrega marca de agua diagonal en cada página."""
            canvas.saveState()
            canvas.setFont('Helvetica-Bold', 50)
            canvas.setFillColor(colors.Color(0.85, 0.85, 0.85, alpha=0.3))
            page_width, page_height = A4
            canvas.translate(page_width / 2, page_height / 2)
            canvas.rotate(45)
            canvas.drawCentredString(0, 0, watermark)
            canvas.restoreState()

        if watermark:
            doc.build(elements, onFirstPage=add_watermark, onLaterPages=add_watermark)
        else:
            doc.build(elements)

        content = buffer.getvalue()
        if output_path:
            os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
            with open(output_path, "wb") as f:
                f.write(content)
        return content
