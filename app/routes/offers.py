"""
Endpoints de ofertas y paquetes promocionales.
"""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, status
from sqlalchemy import or_
from sqlalchemy.orm import Session
from core.database import get_db
from core.dependencies import get_current_admin_user
from core.exceptions import ValidationError, NotFoundError
from models.offers import Offer
from models.user import User
from schemas.offers import OfferCreate, OfferUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/offers",
    tags=["offers"]
)


def _money(value):
    return float(value) if value is not None else None


def _offer_to_dict(offer: Offer) -> dict:
    return {
        "id": offer.id,
        "name": offer.name,
        "description": offer.description,
        "discount_percentage": _money(offer.discount_percentage),
        "discount_amount": _money(offer.discount_amount),
        "original_price": _money(offer.original_price),
        "final_price": _money(offer.final_price),
        "image_url": offer.image_url,
        "start_date": offer.start_date.isoformat() if offer.start_date else None,
        "end_date": offer.end_date.isoformat() if offer.end_date else None,
        "is_active": offer.is_active,
    }


def _get_offer_or_404(db: Session, offer_id: str) -> Offer:
    offer = db.query(Offer).filter(Offer.id == offer_id).first()
    if not offer:
        raise NotFoundError("Oferta no encontrada")
    return offer


# ==================== ENDPOINTS PÚBLICOS ====================

@router.get("")
async def list_offers(db: Session = Depends(get_db)):
    """Ofertas activas y vigentes"""
    now = datetime.now(timezone.utc)
    offers = db.query(Offer).filter(
        Offer.is_active.is_(True),
        or_(Offer.start_date.is_(None), Offer.start_date <= now),
        or_(Offer.end_date.is_(None), Offer.end_date >= now)
    ).order_by(Offer.name.asc()).all()

    return {
        "success": True,
        "status_code": 200,
        "message": "Ofertas obtenidas exitosamente",
        "data": [_offer_to_dict(o) for o in offers]
    }


@router.get("/all")
async def list_all_offers(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    offers = db.query(Offer).order_by(Offer.created_at.desc(), Offer.id.asc()).all()
    return {
        "success": True,
        "status_code": 200,
        "message": "Ofertas obtenidas exitosamente",
        "data": [_offer_to_dict(o) for o in offers]
    }


@router.get("/{offer_id}")
async def get_offer(offer_id: str, db: Session = Depends(get_db)):
    offer = _get_offer_or_404(db, offer_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Oferta obtenida exitosamente",
        "data": _offer_to_dict(offer)
    }


# ==================== ADMIN ENDPOINTS ====================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_offer(
    offer_data: OfferCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    if db.query(Offer).filter(Offer.id == offer_data.id).first():
        raise ValidationError(f"Ya existe una oferta con el ID {offer_data.id}")

    offer = Offer(**offer_data.model_dump())
    db.add(offer)
    db.commit()
    db.refresh(offer)

    logger.info(f"Oferta {offer.id} creada")
    return {
        "success": True,
        "status_code": 201,
        "message": "Oferta creada exitosamente",
        "data": _offer_to_dict(offer)
    }


@router.put("/{offer_id}")
async def update_offer(
    offer_id: str,
    offer_data: OfferUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    offer = _get_offer_or_404(db, offer_id)
    changes = offer_data.model_dump(exclude_unset=True)

    start_date = changes.get("start_date", offer.start_date)
    end_date = changes.get("end_date", offer.end_date)
    if start_date and end_date and start_date.replace(tzinfo=None) > end_date.replace(tzinfo=None):
        raise ValidationError("La fecha de inicio debe ser anterior a la fecha de fin")

    for field, value in changes.items():
        setattr(offer, field, value)

    db.commit()
    db.refresh(offer)

    return {
        "success": True,
        "status_code": 200,
        "message": "Oferta actualizada exitosamente",
        "data": _offer_to_dict(offer)
    }


@router.delete("/{offer_id}")
async def delete_offer(
    offer_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    offer = _get_offer_or_404(db, offer_id)
    db.delete(offer)
    db.commit()

    logger.info(f"Oferta {offer_id} eliminada")
    return {
        "success": True,
        "status_code": 200,
        "message": "Oferta eliminada exitosamente"
    }
