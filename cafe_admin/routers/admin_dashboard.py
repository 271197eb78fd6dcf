# cafe_admin/routers/admin_dashboard.py
import logging
from typing import Optional

from fastapi import APIRouter, Request, Depends, Query
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cafe_admin.db import get_db
from cafe_admin.services.sales import catalog_counts, dashboard_data
from cafe_admin.templating import templates
from cafe_admin.utils.dates import PERIODS, parse_date, resolve_period
from cafe_admin.utils.flash import flash
from cafe_admin.utils.formatting import HIDDEN_VALUE

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin-dashboard"])

PERIOD_LABELS_PT = {
    "today": "Hoje",
    "week": "Última Semana",
    "month": "Último Mês",
    "custom": "Período Personalizado",
}


def _hide_values(request: Request) -> bool:
    return bool(request.session.get("hide_values"))


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(
    request: Request,
    period: str = Query("today"),
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    selected = resolve_period(period, parse_date(start), parse_date(end))
    counts = {"products": 0, "categories": 0}
    data = None
    try:
        counts = catalog_counts(db)
        data = dashboard_data(db, selected)
    except SQLAlchemyError:
        logger.exception("Erro ao carregar dados do painel")
        flash(request, "❌ Erro ao carregar dados do painel. Tente novamente mais tarde.")

    return templates.TemplateResponse(request, "admin/dashboard.html", {
        "counts": counts,
        "data": data,
        "period": selected,
        "periods": PERIODS,
        "period_labels": PERIOD_LABELS_PT,
        "start": start or "",
        "end": end or "",
        "hide_values": _hide_values(request),
        "hidden_value": HIDDEN_VALUE,
    })


@router.get("/dashboard/data")
def dashboard_json(
    period: str = Query("today"),
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    selected = resolve_period(period, parse_date(start), parse_date(end))
    try:
        data = dashboard_data(db, selected)
    except SQLAlchemyError:
        logger.exception("Erro ao carregar dados do painel")
        return JSONResponse({"detail": "Erro ao carregar dados do painel"}, status_code=502)
    return data


# 👁 показать / скрыть суммы
@router.post("/dashboard/visibility")
def toggle_visibility(request: Request):
    request.session["hide_values"] = not _hide_values(request)
    back = request.headers.get("referer") or "/admin/dashboard"
    if not back.startswith(str(request.base_url)):
        back = "/admin/dashboard"
    return RedirectResponse(back, status_code=303)
