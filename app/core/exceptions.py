"""
Errores tipados de la aplicación.

Los servicios lanzan estas excepciones y el handler central de main.py
las convierte al formato estándar:

    {"success": false, "status_code": N, "error": {"message": ..., "code": ..., "errors": [...]}}
"""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Error base con código HTTP asociado"""
    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors

    def to_dict(self) -> Dict[str, Any]:
        error = {"message": self.message, "code": self.error_code}
        if self.errors:
            error["errors"] = self.errors
        return error


class ValidationError(AppError):
    """Datos inválidos o regla de negocio violada (400)"""
    status_code = 400
    error_code = "VALIDATION_ERROR"


class UnauthorizedError(AppError):
    status_code = 401
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "No autorizado", errors=None):
        super().__init__(message, errors)


class ForbiddenError(AppError):
    status_code = 403
    error_code = "FORBIDDEN"

    def __init__(self, message: str = "Acceso denegado", errors=None):
        super().__init__(message, errors)


class NotFoundError(AppError):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, message: str = "Recurso no encontrado", errors=None):
        super().__init__(message, errors)
