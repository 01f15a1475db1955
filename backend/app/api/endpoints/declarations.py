"""
Endpoints para las declaraciones de retenciones.
Cada petición carga el almacén desde la base de datos y, si la
operación tiene éxito, guarda la colección completa.
"""
from dataclasses import asdict
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy.orm import Session

from ...db.database import get_db
from ...core.config import settings, get_morocco_time
from ...core.exceptions import (
    DeclarationError, DeclarationNotFoundError, DuplicatePeriodError,
    ImmutableRecordError, InvalidTransitionError, DeclarationValidationError,
    DocumentUnavailableError
)
from ...core.labels import Language
from ...models.models import DeclarationStatus
from ...schemas.schemas import (
    DeclarationCreate, DeclarationInputs, DeclarationResponse,
    FeeBreakdownResponse, PaymentDetailsResponse, PaymentConfirmation
)
from ...services.declaration_store import DeclarationStore
from ...services.lifecycle import DeclarationLifecycle
from ...services.persistence import SQLDeclarationPersistence
from ...services.csv_export import export_declarations_csv, DEFAULT_EXPORT_FILENAME
from ...services.pdf_generator import PDFGenerator

router = APIRouter(prefix="/declarations", tags=["Déclarations IR"])

PAYMENT_MODES = ["Virement bancaire"]

ERROR_STATUS_CODES = {
    DeclarationNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicatePeriodError: status.HTTP_409_CONFLICT,
    ImmutableRecordError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    DocumentUnavailableError: status.HTTP_409_CONFLICT,
    DeclarationValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def to_http_exception(exc: DeclarationError) -> HTTPException:
    """Traduce un error de dominio a la respuesta HTTP."""
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    detail = str(exc)
    if isinstance(exc, DuplicatePeriodError):
        # El cliente ofrece editar la declaración existente
        detail = {"message": detail, "existing_id": exc.existing_id}
    return HTTPException(status_code=status_code, detail=detail)


def get_persistence(db: Session = Depends(get_db)) -> SQLDeclarationPersistence:
    return SQLDeclarationPersistence(db)


def get_store(
    persistence: SQLDeclarationPersistence = Depends(get_persistence)
) -> DeclarationStore:
    return DeclarationStore.load(persistence, allow_delete_paid=settings.ALLOW_DELETE_PAID)


def resolve_as_of(as_of: Optional[date]) -> date:
    """Fecha de referencia: la enviada o la fecha actual en Marruecos."""
    return as_of or get_morocco_time().date()


def _respond(declaration, lang: Language) -> DeclarationResponse:
    return DeclarationResponse.from_declaration(declaration, lang)


@router.post("/", response_model=DeclarationResponse, status_code=status.HTTP_201_CREATED)
async def create_declaration(
    data: DeclarationCreate,
    lang: Language = Query(Language(settings.DEFAULT_LANGUAGE)),
    store: DeclarationStore = Depends(get_store),
    persistence: SQLDeclarationPersistence = Depends(get_persistence)
):
    """
    Crea un nuevo versamiento en borrador para el periodo indicado.
    """
    try:
        declaration = store.create(data.year, data.month)
    except DeclarationError as exc:
        raise to_http_exception(exc)
    store.save(persistence)
    return _respond(declaration, lang)


@router.get("/", response_model=List[DeclarationResponse])
async def list_declarations(
    status_filter: Optional[DeclarationStatus] = None,
    year_filter: Optional[int] = None,
    lang: Language = Query(Language(settings.DEFAULT_LANGUAGE)),
    store: DeclarationStore = Depends(get_store)
):
    """
    Lista las declaraciones en orden de creación.
    """
    declarations = store.list()
    if status_filter:
        declarations = [d for d in declarations if d.status == status_filter]
    if year_filter:
        declarations = [d for d in declarations if d.year == year_filter]
    return [_respond(d, lang) for d in declarations]


@router.get("/export")
async def export_declarations(
    lang: Language = Query(Language(settings.DEFAULT_LANGUAGE)),
    store: DeclarationStore = Depends(get_store)
):
    """
    Exporta todas las declaraciones en CSV.
    """
    try:
        content = export_declarations_csv(store.list(), lang)
    except DeclarationError as exc:
        raise to_http_exception(exc)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{DEFAULT_EXPORT_FILENAME}"'}
    )


@router.get("/{declaration_id}", response_model=DeclarationResponse)
async def get_declaration(
    declaration_id: str,
    lang: Language = Query(Language(settings.DEFAULT_LANGUAGE)),
    store: DeclarationStore = Depends(get_store)
):
    try:
        declaration = store.get(declaration_id)
    except DeclarationError as exc:
        raise to_http_exception(exc)
    return _respond(declaration, lang)


@router.put("/{declaration_id}", response_model=DeclarationResponse)
async def update_declaration(
    declaration_id: str,
    data: DeclarationInputs,
    as_of: Optional[date] = None,
    lang: Language = Query(Language(settings.DEFAULT_LANGUAGE)),
    store: DeclarationStore = Depends(get_store),
    persistence: SQLDeclarationPersistence = Depends(get_persistence)
):
    """
    Actualiza las entradas del formulario y recalcula los montos.
    No permitido si la declaración ya está pagada.
    """
    try:
        declaration = DeclarationLifecycle(store).edit(
            declaration_id, data.to_changes(), resolve_as_of(as_of)
        )
    except DeclarationError as exc:
        raise to_http_exception(exc)
    store.save(persistence)
    return _respond(declaration, lang)


@router.delete("/{declaration_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_declaration(
    declaration_id: str,
    store: DeclarationStore = Depends(get_store),
    persistence: SQLDeclarationPersistence = Depends(get_persistence)
):
    try:
        store.delete(declaration_id)
    except DeclarationError as exc:
        raise to_http_exception(exc)
    store.save(persistence)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{declaration_id}/calculate", response_model=FeeBreakdownResponse)
async def calculate_declaration(
    declaration_id: str,
    as_of: Optional[date] = None,
    store: DeclarationStore = Depends(get_store)
):
    """
    Calcula principal, multa, recargo y total sin guardar.
    """
    try:
        breakdown = DeclarationLifecycle(store).preview(declaration_id, resolve_as_of(as_of))
    except DeclarationError as exc:
        raise to_http_exception(exc)
    return FeeBreakdownResponse(**asdict(breakdown))


@router.post("/{declaration_id}/save", response_model=DeclarationResponse)
async def save_declaration(
    declaration_id: str,
    data: Optional[DeclarationInputs] = None,
    as_of: Optional[date] = None,
    lang: Language = Query(Language(settings.DEFAULT_LANGUAGE)),
    store: DeclarationStore = Depends(get_store),
    persistence: SQLDeclarationPersistence = Depends(get_persistence)
):
    """
    Guarda el borrador con los montos recalculados.
    """
    changes = data.to_changes() if data else None
    try:
        declaration = DeclarationLifecycle(store).save_draft(
            declaration_id, resolve_as_of(as_of), changes
        )
    except DeclarationError as exc:
        raise to_http_exception(exc)
    store.save(persistence)
    return _respond(declaration, lang)


@router.post("/{declaration_id}/submit", response_model=PaymentDetailsResponse)
async def submit_declaration(
    declaration_id: str,
    data: Optional[DeclarationInputs] = None,
    as_of: Optional[date] = None,
    lang: Language = Query(Language(settings.DEFAULT_LANGUAGE)),
    store: DeclarationStore = Depends(get_store),
    persistence: SQLDeclarationPersistence = Depends(get_persistence)
):
    """
    Valida la declaración y devuelve los datos del paso de pago.
    """
    changes = data.to_changes() if data else None
    try:
        declaration = DeclarationLifecycle(store).submit(
            declaration_id, resolve_as_of(as_of), changes
        )
    except DeclarationError as exc:
        raise to_http_exception(exc)
    store.save(persistence)
    return PaymentDetailsResponse(
        declaration=_respond(declaration, lang),
        amount_to_debit=declaration.total_amount,
        currency=settings.CURRENCY,
        payment_modes=PAYMENT_MODES,
        bank_accounts=settings.bank_accounts
    )


@router.post("/{declaration_id}/pay", response_model=DeclarationResponse)
async def pay_declaration(
    declaration_id: str,
    payment: PaymentConfirmation,
    lang: Language = Query(Language(settings.DEFAULT_LANGUAGE)),
    store: DeclarationStore = Depends(get_store),
    persistence: SQLDeclarationPersistence = Depends(get_persistence)
):
    """
    Confirma el pago por transferencia.
    Una vez pagada, la declaración queda bloqueada.
    """
    try:
        if payment.bank_account not in settings.bank_accounts:
            raise DeclarationValidationError(
                f"Compte bancaire inconnu: {payment.bank_account}", field="bank_account"
            )
        declaration = DeclarationLifecycle(store).mark_paid(declaration_id)
    except DeclarationError as exc:
        raise to_http_exception(exc)
    store.save(persistence)
    return _respond(declaration, lang)


@router.get("/{declaration_id}/declaration-pdf")
async def download_declaration_pdf(
    declaration_id: str,
    store: DeclarationStore = Depends(get_store)
):
    """
    Descarga el resumen de la declaración en PDF.
    """
    try:
        content = PDFGenerator().generate_declaration_pdf(store.get(declaration_id))
    except DeclarationError as exc:
        raise to_http_exception(exc)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="declaration.pdf"'}
    )


@router.get("/{declaration_id}/receipt-pdf")
async def download_receipt_pdf(
    declaration_id: str,
    as_of: Optional[date] = None,
    store: DeclarationStore = Depends(get_store)
):
    """
    Descarga el recibo de pago. Solo para declaraciones pagadas.
    """
    try:
        content = PDFGenerator().generate_receipt_pdf(
            store.get(declaration_id), resolve_as_of(as_of)
        )
    except DeclarationError as exc:
        raise to_http_exception(exc)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="receipt.pdf"'}
    )
