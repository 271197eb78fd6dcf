import logging
from typing import Optional

from fastapi import APIRouter, Request, Depends, Query, Form, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from cafe_admin.db import get_db
from cafe_admin.models.order import Client, Order, OrderProduct, OrderProductAddition
from cafe_admin.templating import templates
from cafe_admin.utils.dates import day_end, day_start, parse_date, to_local, to_utc
from cafe_admin.utils.enums import OrderStatus
from cafe_admin.utils.flash import flash

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])

ALLOWED_STATUSES = [s.value for s in OrderStatus]


@router.get("", response_class=HTMLResponse)
def list_orders(
    request: Request,
    db: Session = Depends(get_db),
    q: Optional[str] = Query(None, description="поиск по имени/телефону/email клиента"),
    status: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=2000),
):
    query = (
        db.query(Order)
        .options(
            joinedload(Order.client),
            selectinload(Order.items).selectinload(OrderProduct.product),
            selectinload(Order.items).selectinload(OrderProduct.variant),
            selectinload(Order.items).selectinload(OrderProduct.additions)
            .selectinload(OrderProductAddition.addition),
        )
        .order_by(Order.created_at.desc())
    )

    if q:
        like = "%%%s%%" % q.strip()
        query = query.outerjoin(Client, Client.id == Order.client_id).filter(
            or_(Client.name.ilike(like), Client.tel.ilike(like), Client.email.ilike(like))
        )

    if status in ALLOWED_STATUSES:
        query = query.filter(Order.status == status)

    # границы дней в часовом поясе кафе
    df = parse_date(date_from)
    dt = parse_date(date_to)
    if df:
        query = query.filter(Order.created_at >= to_utc(day_start(df)))
    if dt:
        query = query.filter(Order.created_at <= to_utc(day_end(dt)))

    orders = []
    try:
        orders = query.limit(limit).all()
    except SQLAlchemyError:
        logger.exception("Erro ao carregar pedidos")
        flash(request, "❌ Erro ao carregar pedidos. Tente novamente mais tarde.")

    return templates.TemplateResponse(request, "admin/orders_list.html", {
        "orders": orders,
        "local_time": {o.id: to_local(o.created_at) for o in orders if o.created_at},
        "statuses": ALLOWED_STATUSES,
        "q": q or "",
        "status": status or "",
        "date_from": date_from or "",
        "date_to": date_to or "",
    })


# ---------- СМЕНА СТАТУСА ----------
@router.post("/{order_id}/status")
def change_status(
    order_id: int,
    request: Request,
    new_status: str = Form(...),
    db: Session = Depends(get_db),
):
    if new_status not in ALLOWED_STATUSES:
        raise HTTPException(status_code=400, detail="Status inválido")

    order: Optional[Order] = db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Pedido não encontrado")

    old_status = order.status
    try:
        order.status = new_status
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Erro ao alterar status do pedido #%s", order_id)
        flash(request, "❌ Erro ao atualizar pedido. Tente novamente mais tarde.")
        return RedirectResponse("/admin/orders", status_code=303)

    logger.info("Pedido #%s: %s -> %s", order_id, old_status, new_status)
    flash(request, f"✅ Pedido #{order_id} atualizado.")
    return RedirectResponse("/admin/orders", status_code=303)
