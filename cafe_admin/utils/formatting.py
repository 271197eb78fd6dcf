from decimal import Decimal, ROUND_HALF_UP
from typing import Union

HIDDEN_VALUE = "R$ •••"


def format_brl(value: Union[int, float, Decimal, None]) -> str:
    """1234.5 -> 'R$ 1.234,50' (формат pt-BR)"""
    amount = Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    whole, cents = f"{abs(amount):.2f}".split(".")
    # тысячи через точку, дробная часть через запятую
    whole = f"{int(whole):,}".replace(",", ".")
    return f"{sign}R$ {whole},{cents}"


def format_pct(value: Union[int, float, None]) -> str:
    v = float(value or 0)
    return f"{'+' if v > 0 else ''}{v:.1f}%"
