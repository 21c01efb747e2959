"""
Validaciones compartidas entre schemas y servicios.
"""
import re
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from core.exceptions import ValidationError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$")
PHONE_PATTERN = re.compile(r"^[\d\s\-\+\(\)]+$")

MAX_AMOUNT = Decimal("999999.99")
MAX_SUBTOTAL = Decimal("99999999.99")
CENT = Decimal("0.01")


def parse_date(value: Union[str, date]) -> date:
    """Convertir 'YYYY-MM-DD' a date validando que sea una fecha real"""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValidationError("Formato de fecha inválido. Use YYYY-MM-DD")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Fecha inválida")


def validate_time(value: str) -> str:
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValidationError("Formato de hora inválido. Use HH:MM")
    return value


def validate_phone(value: Optional[str]) -> Optional[str]:
    """Teléfono opcional: dígitos, espacios, guiones, + y paréntesis (7-20 caracteres)"""
    if value is None or value == "":
        return None
    value = value.strip()
    if not PHONE_PATTERN.match(value) or not 7 <= len(value) <= 20:
        raise ValidationError("Teléfono inválido")
    return value


def to_money(value) -> Decimal:
    """Convertir a Decimal redondeado a 2 decimales"""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
