"""
Endpoints de códigos de descuento.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from core.database import get_db
from core.dependencies import get_current_admin_user
from core import discount_service
from models.discounts import DiscountCode
from models.user import User
from schemas.discounts import DiscountValidateRequest, DiscountCreate, DiscountUpdate

router = APIRouter(
    prefix="/discounts",
    tags=["discounts"]
)


# ==================== ENDPOINTS PÚBLICOS ====================

@router.post("/validate")
async def validate_discount(
    request_data: DiscountValidateRequest,
    db: Session = Depends(get_db)
):
    """
    Validar un código contra el total del carrito.

    Retorna el código con discountAmount y finalAmount.
    """
    result = discount_service.validate_discount_code(db, request_data.code, request_data.total_amount)
    result["discountAmount"] = float(result["discountAmount"])
    result["finalAmount"] = float(result["finalAmount"])

    return {
        "success": True,
        "status_code": 200,
        "message": "Código de descuento válido",
        "data": result
    }


# ==================== ADMIN ENDPOINTS ====================

@router.get("")
async def list_discounts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    discounts = db.query(DiscountCode).order_by(DiscountCode.created_at.desc(), DiscountCode.id.desc()).all()
    return {
        "success": True,
        "status_code": 200,
        "message": "Códigos de descuento obtenidos exitosamente",
        "data": [discount_service.discount_to_dict(d) for d in discounts]
    }


@router.get("/{discount_id}")
async def get_discount(
    discount_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    discount = discount_service.get_discount(db, discount_id)
    return {
        "success": True,
        "status_code": 200,
        "message": "Código de descuento obtenido exitosamente",
        "data": discount_service.discount_to_dict(discount)
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_discount(
    discount_data: DiscountCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    discount = discount_service.create_discount(db, discount_data.model_dump())
    return {
        "success": True,
        "status_code": 201,
        "message": "Código de descuento creado exitosamente",
        "data": discount_service.discount_to_dict(discount)
    }


@router.put("/{discount_id}")
async def update_discount(
    discount_id: int,
    discount_data: DiscountUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    discount = discount_service.update_discount(db, discount_id, discount_data.model_dump(exclude_unset=True))
    return {
        "success": True,
        "status_code": 200,
        "message": "Código de descuento actualizado exitosamente",
        "data": discount_service.discount_to_dict(discount)
    }


@router.delete("/{discount_id}")
async def delete_discount(
    discount_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user)
):
    """Las líneas de factura que lo usaron quedan sin código (SET NULL)"""
    discount = discount_service.get_discount(db, discount_id)
    db.delete(discount)
    db.commit()
    return {
        "success": True,
        "status_code": 200,
        "message": "Código de descuento eliminado exitosamente"
    }
