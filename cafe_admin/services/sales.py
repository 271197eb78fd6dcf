# cafe_admin/services/sales.py
from datetime import timedelta
from typing import Dict, List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from cafe_admin.models.catalog import Category, Product
from cafe_admin.models.order import Order, OrderProduct, OrderProductAddition
from cafe_admin.services.analytics import LineRow, OrderRow, build_dashboard
from cafe_admin.utils.dates import Period, to_local, to_utc


def catalog_counts(db: Session) -> Dict[str, int]:
    return {
        "products": db.query(func.count(Product.id)).scalar() or 0,
        "categories": db.query(func.count(Category.id)).scalar() or 0,
    }


def _order_row(o: Order) -> OrderRow:
    client_name = None
    if o.client is not None:
        client_name = o.client.name or o.client.email
    return OrderRow(
        id=o.id,
        created_at=to_local(o.created_at),
        price=float(o.price or 0),
        status=o.status,
        client_id=o.client_id,
        client_name=client_name,
    )


def _line_row(item: OrderProduct) -> LineRow:
    p = item.product
    if item.variant is not None:
        unit = float(item.variant.price or 0)
    else:
        unit = float(p.price or 0) if p else 0.0
    extras = sum(float(a.addition.price or 0) for a in item.additions if a.addition is not None)

    return LineRow(
        order_id=item.order_id,
        product_name=p.name if p else f"Produto #{item.product_id}",
        category_name=p.category.name if p and p.category else None,
        revenue=unit + extras,
    )


def load_rows(db: Session, period: Period) -> Tuple[List[OrderRow], List[LineRow]]:
    """
    Заказы за период + предыдущий день (для сравнения день к дню)
    и строки этих заказов.
    """
    window_start = period.start - timedelta(days=1)
    orders = (
        db.query(Order)
        .options(joinedload(Order.client))
        .filter(Order.created_at >= to_utc(window_start), Order.created_at <= to_utc(period.end))
        .order_by(Order.created_at.asc())
        .all()
    )
    order_rows = [_order_row(o) for o in orders if o.created_at is not None]

    ids = [o.id for o in orders]
    if not ids:
        return order_rows, []

    items = (
        db.query(OrderProduct)
        .options(
            selectinload(OrderProduct.product).selectinload(Product.category),
            selectinload(OrderProduct.variant),
            selectinload(OrderProduct.additions).selectinload(OrderProductAddition.addition),
        )
        .filter(OrderProduct.order_id.in_(ids))
        .all()
    )
    return order_rows, [_line_row(i) for i in items]


def dashboard_data(db: Session, period: Period) -> Dict[str, object]:
    orders, lines = load_rows(db, period)
    return build_dashboard(orders, lines, period)
