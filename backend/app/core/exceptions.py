"""
Errores de dominio de las declaraciones de retenciones.
Todos son recuperables: quien llama decide cómo presentarlos al usuario.
"""


class DeclarationError(Exception):
    """Error base del dominio de declaraciones."""


class DuplicatePeriodError(DeclarationError):
    """Ya existe una declaración para el par (año, mes)."""

    def __init__(self, year: int, month: int, existing_id: str):
        self.year = year
        self.month = month
        self.existing_id = existing_id
        super().__init__(
            f"Une déclaration pour la période {month:02d}/{year} existe déjà"
        )


class DeclarationNotFoundError(DeclarationError):
    def __init__(self, declaration_id: str):
        self.declaration_id = declaration_id
        super().__init__(f"Déclaration introuvable: {declaration_id}")


class ImmutableRecordError(DeclarationError):
    """La declaración ya está pagada y no admite cambios."""

    def __init__(self, declaration_id: str, message: str = None):
        self.declaration_id = declaration_id
        super().__init__(
            message or f"La déclaration {declaration_id} est payée et ne peut plus être modifiée"
        )


class InvalidTransitionError(DeclarationError):
    """Transición de estado no permitida; conserva el estado actual y el pedido."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Transition non autorisée: {current.value} -> {requested.value}"
        )


class DeclarationValidationError(DeclarationError):
    """Montos negativos o no numéricos, periodo inválido, campos no editables."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(message)


class DocumentUnavailableError(DeclarationError):
    """El documento pedido no existe todavía para el estado de la declaración."""
