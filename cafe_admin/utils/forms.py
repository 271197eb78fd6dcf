from decimal import Decimal, InvalidOperation
from typing import Optional

# Numeric(12, 2) на бэкенде
MAX_PRICE = Decimal(10) ** 10


def parse_price(raw: Optional[str]) -> Optional[Decimal]:
    """'12,50' / '12.5' -> Decimal; пусто, мусор, отрицательное или слишком большое -> None"""
    s = (raw or "").strip().replace(",", ".")
    if not s:
        return None
    try:
        value = Decimal(s)
    except InvalidOperation:
        return None
    if not value.is_finite() or value < 0 or value >= MAX_PRICE:
        return None
    return value.quantize(Decimal("0.01"))


def parse_count(raw: Optional[str], default: int = 0) -> Optional[int]:
    """Целое >= 0; пусто -> default; мусор или отрицательное -> None"""
    s = (raw or "").strip()
    if not s:
        return default
    try:
        value = int(s)
    except ValueError:
        return None
    return value if value >= 0 else None


def parse_optional_id(raw: Optional[str]) -> Optional[int]:
    s = (raw or "").strip()
    if not s or s == "all":
        return None
    try:
        return int(s)
    except ValueError:
        return None


def checkbox(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() in ("on", "true", "1", "yes")
