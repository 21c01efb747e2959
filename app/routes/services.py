"""
Endpoints de servicios (cortes, barba, tratamientos...).
"""
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from core.database import get_db
from core.dependencies import get_current_admin_user
from core.exceptions import ValidationError, NotFoundError
from models.services import Service
from models.reservations import Reservation
from models.user import User
from schemas.services import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/services",
    tags=["services"]
)


def _service_to_dict(service: Service) -> dict:
    return {
        "id": service.id,
        "name": service.name,
        "description": service.description,
        "price": float(service.price),
        "duration": service.duration,
        "category": service.category,
        "image_url": service.image_url,
        "is_active": service.is_active,
    }


def _get_service_or_404(db: Session, service_id: str) -> Service:
    service = db.query(Service).filter(Service.id == service_id).first()
    if not service:
        raise NotFoundError("Servicio no encontrado")
    return service


# ==================== ENDPOINTS PÚBLICOS ====================

@router.get("")
async def list_services(
    category: Optional[str] = Query(None, description="Filtrar por categoría"),
    db: Session = Depends(get_db)
):
    """Servicios activos"""
    query = db.query(Service).filter(Service.is_active.is_(True))
    if category:
        query = query.filter(Service.category == category)

    services = query.order_by(Service.name.asc()).all()
    return {
        "success": True,
        "status_code": 200,
        "message": "Servicios obtenidos exitosamente",
        "data": [_service_to_dict(s) for s in services]
    }


@router.get("/all")
async def list_all_services(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    services = db.query(Service).order_by(Service.name.asc()).all()
    return {
        "success": True,
        "status_code": 200,
        "message": "Servicios obtenidos exitosamente",
        "data": [_service_to_dict(s) for s in services]
    }


@router.get("/{service_id}")
async def get_service(service_id: str, db: Session = Depends(get_db)):
    service = _get_service_or_404(db, service_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Servicio obtenido exitosamente",
        "data": _service_to_dict(service)
    }


# ==================== ADMIN ENDPOINTS ====================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_service(
    service_data: ServiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    if db.query(Service).filter(Service.id == service_data.id).first():
        raise ValidationError(f"Ya existe un servicio con el ID {service_data.id}")

    service = Service(**service_data.model_dump())
    db.add(service)
    db.commit()
    db.refresh(service)

    logger.info(f"Servicio {service.id} creado")
    return {
        "success": True,
        "status_code": 201,
        "message": "Servicio creado exitosamente",
        "data": _service_to_dict(service)
    }


@router.put("/{service_id}")
async def update_service(
    service_id: str,
    service_data: ServiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    """
    Actualizar servicio. Las reservas ya hechas conservan el precio con el
    que se reservaron.
    """
    service = _get_service_or_404(db, service_id)

    for field, value in service_data.model_dump(exclude_unset=True).items():
        setattr(service, field, value)

    db.commit()
    db.refresh(service)

    return {
        "success": True,
        "status_code": 200,
        "message": "Servicio actualizado exitosamente",
        "data": _service_to_dict(service)
    }


@router.delete("/{service_id}")
async def delete_service(
    service_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    """
    Eliminar servicio junto con sus reservas (borrado definitivo).
    """
    service = _get_service_or_404(db, service_id)

    reservations = db.query(Reservation).filter(Reservation.service_id == service_id).all()
    for reservation in reservations:
        db.delete(reservation)
    db.delete(service)
    db.commit()

    logger.info(f"Servicio {service_id} eliminado con {len(reservations)} reservas")
    return {
        "success": True,
        "status_code": 200,
        "message": "Servicio eliminado exitosamente",
        "data": {"deleted_reservations": len(reservations)}
    }
