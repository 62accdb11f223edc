"""
Punto de entrada de la aplicación FastAPI.
Configura logging, CORS, manejadores de error y monta los routers.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from app.api.v1.router import api_v1_router
from app.config import get_settings
from app.core import messages

settings = get_settings()
logger = logging.getLogger(__name__)


# ── Lifecycle ────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Eventos de inicio y cierre de la aplicación."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info(f"{settings.APP_NAME} iniciando en modo {settings.APP_ENV}")
    yield
    logger.info(f"{settings.APP_NAME} cerrando...")


# ── App ──────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    description="API de horarios de atención jerárquicos y reprogramación de citas",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Exception Handlers ───────────────────────────────
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Errores de forma del request (tipos, enums, campos faltantes)."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": {
                "code": "VALIDATION_ERROR",
                "message": messages.REQUEST_VALIDATION_FAILED.model_dump(),
                "errors": jsonable_encoder(exc.errors()),
            }
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Captura excepciones no manejadas para evitar exponer detalles internos."""
    logger.error(f"Error no manejado en {request.method} {request.url.path}: {exc}", exc_info=True)
    content = {
        "detail": {
            "code": "INTERNAL_ERROR",
            "message": messages.INTERNAL_ERROR.model_dump(),
        }
    }
    if settings.DEBUG:
        # En desarrollo, mostrar detalles
        content["detail"]["error"] = str(exc)
        content["detail"]["type"] = type(exc).__name__
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content
    )


# ── Routers ──────────────────────────────────────────
app.include_router(api_v1_router, prefix=settings.API_V1_PREFIX)


# ── Health Check ─────────────────────────────────────
@app.get("/health", tags=["Health"])
async def health_check():
    """Endpoint de health check para monitoreo."""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": "0.1.0",
        "environment": settings.APP_ENV,
        "cache_backend": settings.CACHE_BACKEND,
    }


# ── Servidor ─────────────────────────────────────────
def run() -> None:
    """Levanta la API con uvicorn usando HOST/PORT de la configuración."""
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
