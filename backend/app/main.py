"""
Aplicación principal FastAPI para SimplIR.
Simulación del servicio de versamiento de las retenciones en la fuente
sobre salarios (IR): declaración, validación, pago y recibo.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .db.database import init_db
from .api.endpoints import declarations
from .api.middleware.request_log import RequestLogMiddleware

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Crear aplicación
app = FastAPI(
    title=settings.APP_NAME,
    description="""
    ## SimplIR - Versements des retenues à la source

    Simulación del flujo de declaración mensual de retenciones.

    ### Funcionalidades:
    - Creación de un versamiento por año y mes (único por periodo)
    - Cálculo del principal, multa (20%) y recargo por mora (5%)
    - Validación, pago por transferencia y recibo en PDF
    - Exportación CSV de las declaraciones
    """,
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLogMiddleware)

# Incluir routers
app.include_router(declarations.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    """Inicialización al arrancar la aplicación."""
    init_db()
    logger.info("%s v%s started", settings.APP_NAME, settings.APP_VERSION)
    logger.info("Documentation available at /api/docs")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application stopped")


@app.get("/")
async def root():
    """Endpoint raíz."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/api/docs"
    }


@app.get("/health")
async def health_check():
    """Health check para monitoreo."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION
    }
