from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, DataError
from contextlib import asynccontextmanager
import logging
from core.config import settings
from core.exceptions import AppError

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Rutas de endpoints importadas
from routes.auth import router as auth_router
from routes.barbers import router as barbers_router
from routes.services import router as services_router
from routes.offers import router as offers_router
from routes.products import router as products_router
from routes.discounts import router as discounts_router
from routes.reservations import router as reservations_router
from routes.settings import router as settings_router
from routes.statistics import router as statistics_router

docs_url = "/docs" if settings.is_development else None
redoc_url = "/redoc" if settings.is_development else None
openapi_url = "/openapi.json" if settings.is_development else None

# ==================== LIFESPAN EVENTS ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestiona el startup y shutdown de la aplicación.
    """
    logger.info(f"{settings.API_TITLE} {settings.API_VERSION} iniciando (ENV={settings.ENV})")
    yield
    logger.info("Aplicación detenida")

app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
    docs_url=docs_url,
    redoc_url=redoc_url,
    openapi_url=openapi_url,
    redirect_slashes=False,  # Evita redirects 307
    lifespan=lifespan
)

# CORS config - allow_credentials=True necesario para cookies HttpOnly
allow_origins = [origin.strip() for origin in settings.CORS_ALLOW_ORIGINS.split(",") if origin.strip() and origin.strip() != "*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "X-CSRF-Token"],
)

# ==================== CSRF PROTECTION MIDDLEWARE ====================

if settings.CSRF_ENABLED:
    from core.csrf_protection import CSRFMiddleware
    app.add_middleware(CSRFMiddleware)

# ==================== EXCEPTION HANDLERS ====================

def _error_response(status_code: int, message: str, errors=None) -> JSONResponse:
    error = {"message": message}
    if errors:
        error["errors"] = errors
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "status_code": status_code,
            "error": error
        }
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """
    Errores de negocio tipados (400, 401, 403, 404).
    """
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "status_code": exc.status_code,
            "error": exc.to_dict()
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Maneja errores de validación de Pydantic y los convierte al formato estándar.
    """
    error_messages = []
    validation_errors = []

    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"][1:]) or str(error["loc"][0])
        msg = error["msg"]
        error_type = error["type"]
        ctx = error.get("ctx") or {}

        # Mensajes personalizados según el tipo de error
        if error_type == "string_too_short":
            message = f"El campo '{field}' debe tener al menos {ctx.get('min_length', '')} caracteres"
        elif error_type == "string_too_long":
            message = f"El campo '{field}' debe tener máximo {ctx.get('max_length', '')} caracteres"
        elif error_type == "missing":
            message = f"El campo '{field}' es requerido"
        elif error_type == "value_error":
            message = f"El campo '{field}': {msg.replace('Value error, ', '')}"
        elif error_type.startswith("greater_than"):
            limit = ctx.get("gt", ctx.get("ge", ""))
            message = f"El campo '{field}' debe ser mayor que {limit}"
        elif error_type.startswith("less_than"):
            limit = ctx.get("lt", ctx.get("le", ""))
            message = f"El campo '{field}' debe ser menor que {limit}"
        elif error_type in ("enum", "literal_error"):
            message = f"El campo '{field}' debe ser uno de: {ctx.get('expected', '')}"
        else:
            message = f"El campo '{field}': {msg}"

        error_messages.append(message)
        validation_errors.append({"field": field, "message": message, "type": error_type})

    logger.info(f"{request.method} {request.url.path} -> 400 validación: {'; '.join(error_messages)}")
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "Error de validación: " + "; ".join(error_messages),
        validation_errors
    )


@app.exception_handler(IntegrityError)
@app.exception_handler(DataError)
async def database_data_error_handler(request: Request, exc: Exception):
    """
    Datos rechazados por la base de datos (FK inexistente, valor fuera de rango...).
    """
    logger.warning(f"{request.method} {request.url.path} -> 400 base de datos: {exc}")
    return _error_response(status.HTTP_400_BAD_REQUEST, "Error en los datos proporcionados")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Cualquier otro error: se registra completo y se responde sin detalles
    (salvo en desarrollo).
    """
    logger.exception(f"{request.method} {request.url.path} -> 500")
    message = "Error interno del servidor"
    if settings.is_development:
        message = f"{message}: {exc}"
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

# Registrar routers bajo /api
app.include_router(auth_router, prefix="/api")
app.include_router(barbers_router, prefix="/api")
app.include_router(services_router, prefix="/api")
app.include_router(offers_router, prefix="/api")
app.include_router(products_router, prefix="/api")
app.include_router(discounts_router, prefix="/api")
app.include_router(reservations_router, prefix="/api")
app.include_router(settings_router, prefix="/api")
app.include_router(statistics_router, prefix="/api")

@app.get("/")
async def root():
    return {
        "message": "Welcome to the Barbería API",
        "version": settings.API_VERSION,
        "docs": "/docs"
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
