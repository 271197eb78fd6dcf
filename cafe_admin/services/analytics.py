# cafe_admin/services/analytics.py
"""
Агрегация продаж для дашборда.

Чистые функции над уже загруженными строками (см. services/sales.py):
никаких запросов к БД, только группировки и сортировки.
Отменённые заказы в продажи не входят.
"""
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from itertools import combinations
from typing import Dict, Iterable, List, Optional

from cafe_admin.utils.dates import Period
from cafe_admin.utils.enums import OrderStatus

NO_CATEGORY = "Sem categoria"
TOP_LIMIT = 10


@dataclass(frozen=True)
class OrderRow:
    id: int
    created_at: datetime          # naive локальное время
    price: float
    status: str
    client_id: Optional[int] = None
    client_name: Optional[str] = None


@dataclass(frozen=True)
class LineRow:
    order_id: int
    product_name: str
    category_name: Optional[str]
    revenue: float                # цена варианта (или товара) + добавки


def _money(x: float) -> float:
    return round(float(x), 2)


def active_orders(orders: Iterable[OrderRow]) -> List[OrderRow]:
    return [o for o in orders if o.status != OrderStatus.CANCELED.value]


def summarize_sales(orders: Iterable[OrderRow]) -> Dict[str, float]:
    active = active_orders(orders)
    total = sum(o.price for o in active)
    count = len(active)
    return {
        "total_sales": count,
        "total_revenue": _money(total),
        "average_ticket": _money(total / count) if count else 0.0,
    }


def daily_evolution(orders: Iterable[OrderRow], day: date) -> float:
    """Выручка за day против предыдущего дня, в процентах"""
    prev = day - timedelta(days=1)
    current = previous = 0.0
    for o in active_orders(orders):
        d = o.created_at.date()
        if d == day:
            current += o.price
        elif d == prev:
            previous += o.price
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)


def client_stats(orders: Iterable[OrderRow]) -> Dict[str, object]:
    revenue: Dict[int, float] = defaultdict(float)
    visits: Counter = Counter()
    names: Dict[int, str] = {}

    for o in active_orders(orders):
        if o.client_id is None:
            continue
        revenue[o.client_id] += o.price
        visits[o.client_id] += 1
        names.setdefault(o.client_id, o.client_name or f"Cliente #{o.client_id}")

    total_clients = len(revenue)
    if not total_clients:
        return {
            "total_clients": 0,
            "average_frequency": 0.0,
            "average_revenue": 0.0,
            "best_client": {"name": "-", "revenue": 0.0},
        }

    # при равной выручке берём меньший id
    best_id = min(revenue, key=lambda cid: (-revenue[cid], cid))
    return {
        "total_clients": total_clients,
        "average_frequency": round(sum(visits.values()) / total_clients, 1),
        "average_revenue": _money(sum(revenue.values()) / total_clients),
        "best_client": {"name": names[best_id], "revenue": _money(revenue[best_id])},
    }


def daily_series(orders: Iterable[OrderRow], start: date, end: date) -> List[Dict[str, object]]:
    """Точка на каждый день диапазона, пустые дни с нулями"""
    revenue: Dict[date, float] = defaultdict(float)
    sales: Counter = Counter()
    for o in active_orders(orders):
        d = o.created_at.date()
        revenue[d] += o.price
        sales[d] += 1

    points = []
    d = start
    while d <= end:
        points.append({
            "date": d.isoformat(),
            "day": d.strftime("%d/%m"),
            "revenue": _money(revenue[d]),
            "sales": sales[d],
        })
        d += timedelta(days=1)
    return points


def weekly_series(orders: Iterable[OrderRow]) -> List[Dict[str, object]]:
    """Группировка по неделям (с понедельника), по возрастанию"""
    revenue: Dict[date, float] = defaultdict(float)
    sales: Counter = Counter()
    for o in active_orders(orders):
        d = o.created_at.date()
        monday = d - timedelta(days=d.weekday())
        revenue[monday] += o.price
        sales[monday] += 1

    return [
        {"week": monday.strftime("%d/%m"), "revenue": _money(revenue[monday]), "sales": sales[monday]}
        for monday in sorted(revenue)
    ]


def top_products(lines: Iterable[LineRow], limit: int = TOP_LIMIT) -> List[Dict[str, object]]:
    qty = Counter(line.product_name for line in lines)
    ranked = sorted(qty.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{"name": name, "quantity": n} for name, n in ranked[:limit]]


def product_combinations(lines: Iterable[LineRow], limit: int = TOP_LIMIT) -> List[Dict[str, object]]:
    """Пары товаров из одного заказа; пара считается один раз на заказ"""
    per_order: Dict[int, set] = defaultdict(set)
    for line in lines:
        per_order[line.order_id].add(line.product_name)

    pairs: Counter = Counter()
    for names in per_order.values():
        for a, b in combinations(sorted(names), 2):
            pairs[f"{a} + {b}"] += 1

    ranked = sorted(pairs.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{"combo": combo, "quantity": n} for combo, n in ranked[:limit]]


def category_revenue(lines: Iterable[LineRow]) -> List[Dict[str, object]]:
    revenue: Dict[str, float] = defaultdict(float)
    for line in lines:
        revenue[line.category_name or NO_CATEGORY] += line.revenue

    ranked = sorted(revenue.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{"category": name, "revenue": _money(value)} for name, value in ranked]


def build_dashboard(orders: List[OrderRow], lines: List[LineRow], period: Period) -> Dict[str, object]:
    """
    Всё для графиков за период.
    orders может содержать и предыдущий день: он нужен только для «evolução diária».
    """
    in_period = [o for o in orders if period.contains(o.created_at)]
    sold_ids = {o.id for o in active_orders(in_period)}
    sold_lines = [line for line in lines if line.order_id in sold_ids]

    metrics = summarize_sales(in_period)
    metrics["daily_evolution_pct"] = daily_evolution(orders, period.last_day)
    metrics.update(client_stats(in_period))

    return {
        "period": {
            "name": period.name,
            "start": period.first_day.isoformat(),
            "end": period.last_day.isoformat(),
        },
        "metrics": metrics,
        "daily": daily_series(in_period, period.first_day, period.last_day),
        "weekly": weekly_series(in_period),
        "top_products": top_products(sold_lines),
        "combinations": product_combinations(sold_lines),
        "category_revenue": category_revenue(sold_lines),
    }
