"""
Configuración de base de datos.
SQLite para uso local y pruebas; PostgreSQL con pool de conexiones en despliegue.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from ..core.config import settings


def create_db_engine(database_url: str, echo: bool = False):
    """
    Crea el motor según el tipo de base de datos.
    Las bases SQLite en memoria comparten una única conexión.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(
        database_url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=echo
    )


engine = create_db_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Sesión de base de datos
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base para modelos declarativos
Base = declarative_base()


def get_db():
    """
    Dependency para obtener sesión de base de datos.
    Garantiza cierre correcto de conexión.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Inicializa las tablas de la base de datos."""
    # Registra los modelos en Base.metadata
    from ..models import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
