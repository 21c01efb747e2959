"""
Estadísticas para el dashboard del panel de administración.
"""
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from core.validators import to_money
from models.reservations import (
    Reservation,
    ReservationItem,
    ReservationStatus,
    ReservationKind,
    DeliveryStatus,
)

MONTH_NAMES = [
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
]


def _month_range(year: int, month: int):
    start = date(year, month, 1)
    if month == 12:
        end = date(year + 1, 1, 1)
    else:
        end = date(year, month + 1, 1)
    return start, end


def _shift_month(year: int, month: int, offset: int):
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def counts_as_revenue(reservation: Reservation) -> bool:
    """Solo cuentan las confirmadas; las facturas de productos cuando ya se entregaron"""
    if reservation.status != ReservationStatus.CONFIRMADA:
        return False
    if reservation.kind == ReservationKind.PRODUCT_INVOICE:
        return reservation.delivery_status == DeliveryStatus.ENTREGADO
    return True


def reservation_revenue(reservation: Reservation) -> Decimal:
    """Suma de las líneas de factura o, sin líneas, el precio guardado del servicio"""
    if reservation.items:
        return to_money(sum((to_money(item.subtotal) for item in reservation.items), Decimal("0")))
    return to_money(reservation.service_price)


def _revenue_between(db: Session, start: date, end: date) -> Dict[str, Any]:
    reservations = db.query(Reservation).options(selectinload(Reservation.items)).filter(
        Reservation.date >= start,
        Reservation.date < end
    ).all()

    revenue = sum(
        (reservation_revenue(r) for r in reservations if counts_as_revenue(r)),
        Decimal("0")
    )
    return {"count": len(reservations), "revenue": to_money(revenue)}


def get_dashboard_stats(db: Session, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()
    month_start, month_end = _month_range(today.year, today.month)

    total_reservations = db.query(func.count(Reservation.id)).scalar()
    today_reservations = db.query(func.count(Reservation.id)).filter(
        Reservation.date == today
    ).scalar()
    month = _revenue_between(db, month_start, month_end)

    status_rows = db.query(Reservation.status, func.count(Reservation.id)).group_by(Reservation.status).all()
    status_stats = {status.value: 0 for status in ReservationStatus}
    for status, count in status_rows:
        status_stats[status.value] = count

    top_rows = db.query(
        ReservationItem.item_name,
        ReservationItem.item_type,
        func.sum(ReservationItem.quantity).label("quantity")
    ).group_by(
        ReservationItem.item_name,
        ReservationItem.item_type
    ).order_by(func.sum(ReservationItem.quantity).desc()).limit(5).all()

    top_items = [
        {"name": name, "type": item_type.value, "quantity": int(quantity or 0)}
        for name, item_type, quantity in top_rows
    ]

    # Reservas por día de los últimos 31 días (incluye hoy)
    first_day = today - timedelta(days=30)
    day_rows = db.query(Reservation.date, func.count(Reservation.id)).filter(
        Reservation.date >= first_day,
        Reservation.date <= today
    ).group_by(Reservation.date).all()
    per_day = {day: count for day, count in day_rows}
    daily = [
        {"date": (first_day + timedelta(days=i)).isoformat(), "count": per_day.get(first_day + timedelta(days=i), 0)}
        for i in range(31)
    ]

    return {
        "total_reservations": total_reservations,
        "month_reservations": month["count"],
        "today_reservations": today_reservations,
        "month_revenue": float(month["revenue"]),
        "status_stats": status_stats,
        "top_items": top_items,
        "daily_reservations": daily,
    }


def get_monthly_sales(db: Session, months: int = 3, today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Ventas de los últimos meses (el actual incluido), del más antiguo al más reciente"""
    today = today or date.today()
    result = []

    for offset in range(months - 1, -1, -1):
        year, month = _shift_month(today.year, today.month, -offset)
        start, end = _month_range(year, month)
        totals = _revenue_between(db, start, end)
        result.append({
            "month": f"{MONTH_NAMES[month - 1]} {year}",
            "year": year,
            "month_number": month,
            "reservations": totals["count"],
            "revenue": float(totals["revenue"]),
        })

    return result
