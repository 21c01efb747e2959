"""
Códigos de descuento: validación, cálculo y uso.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
from core.exceptions import ValidationError, NotFoundError
from core.validators import MAX_AMOUNT, to_money
from models.discounts import DiscountCode, DiscountType

logger = logging.getLogger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite devuelve datetimes naive; se interpretan como UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def calculate_discount_amount(discount: DiscountCode, total_amount: Decimal) -> Decimal:
    """
    Calcular el descuento de un código sobre un total.

    - percentage: total * valor / 100, con tope max_discount si existe
    - fixed: valor, con tope en el total
    """
    total_amount = to_money(total_amount)
    value = to_money(discount.discount_value)

    if discount.discount_type == DiscountType.PERCENTAGE:
        amount = total_amount * value / Decimal("100")
        if discount.max_discount is not None:
            amount = min(amount, to_money(discount.max_discount))
    else:
        amount = min(value, total_amount)

    return to_money(amount)


def discount_to_dict(discount: DiscountCode) -> Dict[str, Any]:
    return {
        "id": discount.id,
        "code": discount.code,
        "description": discount.description,
        "discount_type": discount.discount_type.value,
        "discount_value": float(discount.discount_value),
        "min_purchase": float(discount.min_purchase or 0),
        "max_discount": float(discount.max_discount) if discount.max_discount is not None else None,
        "start_date": discount.start_date.isoformat() if discount.start_date else None,
        "end_date": discount.end_date.isoformat() if discount.end_date else None,
        "usage_limit": discount.usage_limit,
        "usage_count": discount.usage_count,
        "is_active": discount.is_active,
        "created_at": discount.created_at.isoformat() if discount.created_at else None,
    }


def validate_discount_code(db: Session, code: str, total_amount) -> Dict[str, Any]:
    """
    Validar un código de descuento para un total de compra.

    Args:
        code: Código introducido por el cliente (se normaliza a mayúsculas)
        total_amount: Total de la compra

    Returns:
        Dict con los datos del código más discountAmount y finalAmount (Decimal)

    Raises:
        ValidationError: código inexistente, fuera de vigencia, sin usos o
        total fuera de rango
    """
    try:
        total = to_money(total_amount)
    except (ArithmeticError, ValueError, TypeError):
        raise ValidationError("El monto total debe ser un número válido")

    if total < 0 or total > MAX_AMOUNT:
        raise ValidationError("El monto total debe estar entre $0.00 y $999999.99")

    discount = db.query(DiscountCode).filter(
        DiscountCode.code == normalize_code(code),
        DiscountCode.is_active.is_(True)
    ).first()

    if not discount:
        raise ValidationError("Código de descuento no válido")

    now = datetime.now(timezone.utc)
    start_date = _as_utc(discount.start_date)
    end_date = _as_utc(discount.end_date)

    if start_date and now < start_date:
        raise ValidationError("El código de descuento aún no está activo")

    if end_date and now > end_date:
        raise ValidationError("El código de descuento ha expirado")

    min_purchase = to_money(discount.min_purchase)
    if total < min_purchase:
        raise ValidationError(f"El código requiere una compra mínima de ${min_purchase}")

    if discount.usage_limit is not None and discount.usage_count >= discount.usage_limit:
        raise ValidationError("El código de descuento ha alcanzado su límite de usos")

    discount_amount = calculate_discount_amount(discount, total)
    final_amount = to_money(max(total - discount_amount, Decimal("0")))

    result = discount_to_dict(discount)
    result["discountAmount"] = discount_amount
    result["finalAmount"] = final_amount
    return result


def increment_usage(db: Session, discount_code_id: int) -> DiscountCode:
    """
    Sumar un uso al código dentro de la transacción del llamador.
    """
    discount = db.query(DiscountCode).filter(
        DiscountCode.id == discount_code_id
    ).with_for_update().first()

    if not discount:
        raise ValidationError("Código de descuento no válido")

    discount.usage_count = (discount.usage_count or 0) + 1
    db.flush()

    logger.info(f"Código {discount.code} usado ({discount.usage_count} usos)")
    return discount


# ==================== ADMIN ====================

def check_discount_rules(data: Dict[str, Any]) -> None:
    """Reglas de negocio para crear/actualizar un código"""
    discount_type = data.get("discount_type")
    value = data.get("discount_value")

    if value is not None and value <= 0:
        raise ValidationError("El valor del descuento debe ser mayor a 0")

    if discount_type == DiscountType.PERCENTAGE and value is not None and value > 100:
        raise ValidationError("El porcentaje de descuento no puede ser mayor a 100")

    start_date = _as_utc(data.get("start_date"))
    end_date = _as_utc(data.get("end_date"))
    if start_date and end_date and start_date > end_date:
        raise ValidationError("La fecha de inicio debe ser anterior a la fecha de fin")


def get_discount(db: Session, discount_id: int) -> DiscountCode:
    discount = db.query(DiscountCode).filter(DiscountCode.id == discount_id).first()
    if not discount:
        raise NotFoundError("Código de descuento no encontrado")
    return discount


def create_discount(db: Session, data: Dict[str, Any]) -> DiscountCode:
    data["code"] = normalize_code(data["code"])
    check_discount_rules(data)

    if db.query(DiscountCode).filter(DiscountCode.code == data["code"]).first():
        raise ValidationError("El código de descuento ya existe")

    discount = DiscountCode(**data)
    db.add(discount)
    db.commit()
    db.refresh(discount)

    logger.info(f"Código de descuento {discount.code} creado")
    return discount


def update_discount(db: Session, discount_id: int, data: Dict[str, Any]) -> DiscountCode:
    discount = get_discount(db, discount_id)

    if "code" in data:
        data["code"] = normalize_code(data["code"])
        duplicate = db.query(DiscountCode).filter(
            DiscountCode.code == data["code"],
            DiscountCode.id != discount_id
        ).first()
        if duplicate:
            raise ValidationError("El código de descuento ya existe")

    merged = {
        "discount_type": data.get("discount_type", discount.discount_type),
        "discount_value": data.get("discount_value", discount.discount_value),
        "start_date": data.get("start_date", discount.start_date),
        "end_date": data.get("end_date", discount.end_date),
    }
    check_discount_rules(merged)

    for field, value in data.items():
        setattr(discount, field, value)

    db.commit()
    db.refresh(discount)
    return discount
