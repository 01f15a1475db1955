"""
Middleware de registro de peticiones.
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable
import logging
import time

logger = logging.getLogger(__name__)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """
    Registra método, ruta, código de respuesta y duración de cada petición.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            "%s %s - %s - %.3fs - IP: %s",
            request.method,
            request.url.path,
            response.status_code,
            process_time,
            request.client.host if request.client else "unknown"
        )
        response.headers["X-Process-Time"] = f"{process_time:.3f}"
        return response
