"""
Configuración central de la aplicación SimplIR (retenciones en la fuente).
Los valores se cargan desde variables de entorno o desde el archivo .env.
"""
from pydantic_settings import BaseSettings
from datetime import datetime, timezone, timedelta
from typing import List


# Marruecos opera en UTC+1 (hora legal)
MOROCCO_TZ = timezone(timedelta(hours=1), name="Africa/Casablanca")


class Settings(BaseSettings):
    """
    Configuración de la aplicación.
    Los valores se cargan desde variables de entorno para seguridad.
    """
    # Application
    APP_NAME: str = "SimplIR - Versements des retenues à la source"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database - SQLite por defecto, PostgreSQL en despliegue
    DATABASE_URL: str = "sqlite:///./simplir.db"

    # CORS
    CORS_ORIGINS: str = "*"

    # Reglas del formulario
    MIN_FISCAL_YEAR: int = 2000
    MAX_FISCAL_YEAR: int = 2100
    ALLOW_DELETE_PAID: bool = True

    # Presentación
    CURRENCY: str = "MAD"
    DEFAULT_LANGUAGE: str = "fr"

    # Cuentas bancarias ofrecidas en el paso de pago (separadas por comas)
    BANK_ACCOUNTS: str = (
        "BMCE - 0117800000802100095567,"
        "CIH - 2307805454122100014500,"
        "ATTIJARIWAFA BANK - 0077800012548000000125"
    )

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def bank_accounts(self) -> List[str]:
        """Lista de cuentas bancarias configuradas."""
        return [a.strip() for a in self.BANK_ACCOUNTS.split(",") if a.strip()]


settings = Settings()


def get_morocco_time() -> datetime:
    """Hora actual de Marruecos. Solo se usa en la frontera HTTP."""
    return datetime.now(MOROCCO_TZ)

