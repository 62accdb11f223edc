"""
Excepciones HTTP personalizadas para la API.

Todas exponen `detail = {"code", "message": {"es", "en"}, "errors"?}`.
"""

from typing import Any

from fastapi import HTTPException, status

from app.core.messages import BilingualMessage


def _build_detail(code: str, message: BilingualMessage, errors: list[Any] | None) -> dict:
    detail: dict[str, Any] = {"code": code, "message": message.model_dump()}
    if errors is not None:
        detail["errors"] = errors
    return detail


class AppException(HTTPException):
    """Base: error con código de máquina y mensaje bilingüe."""

    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        code: str,
        message: BilingualMessage,
        errors: list[Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.errors = errors
        super().__init__(
            status_code=self.status_code_default,
            detail=_build_detail(code, message, errors),
        )


class BadRequestException(AppException):
    """Petición inválida (400), ej: tipo de entidad no soportado."""

    status_code_default = status.HTTP_400_BAD_REQUEST


class NotFoundException(AppException):
    """Recurso no encontrado (404)."""

    status_code_default = status.HTTP_404_NOT_FOUND


class ValidationException(AppException):
    """Error de validación de negocio (422)."""

    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
