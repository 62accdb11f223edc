"""
Router principal de la API v1.
Agrupa todos los sub-routers de la versión 1.
"""

from fastapi import APIRouter

from app.api.v1.working_hours import router as working_hours_router

api_v1_router = APIRouter()

api_v1_router.include_router(
    working_hours_router, prefix="/working-hours", tags=["Horarios de Atención"]
)
