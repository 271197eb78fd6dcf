# cafe_admin/routers/admin_categories.py
import logging

from fastapi import APIRouter, Request, Depends, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cafe_admin.db import get_db
from cafe_admin.models.catalog import Category, Product
from cafe_admin.templating import templates
from cafe_admin.utils.flash import flash

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin/categories", tags=["admin-categories"])

LIST_URL = "/admin/categories"


def _form(request: Request, category=None, error: str = "", name: str = ""):
    return templates.TemplateResponse(request, "admin/category_form.html", {
        "category": category,
        "name": name or (category.name if category else ""),
        "error": error,
    })


# --- список ---
@router.get("", response_class=HTMLResponse)
def category_list(request: Request, db: Session = Depends(get_db)):
    rows = []
    try:
        rows = (
            db.query(Category, func.count(Product.id))
            .outerjoin(Product, Product.category_id == Category.id)
            .group_by(Category.id)
            .order_by(Category.name.asc())
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Erro ao carregar categorias")
        flash(request, "❌ Erro ao carregar categorias. Tente novamente mais tarde.")

    return templates.TemplateResponse(request, "admin/categories_index.html", {
        "rows": rows,
    })


@router.get("/new", response_class=HTMLResponse)
def category_new_form(request: Request):
    return _form(request)


@router.post("/create")
def category_create(request: Request, name: str = Form(""), db: Session = Depends(get_db)):
    name = (name or "").strip()
    if not name:
        return _form(request, error="Por favor, forneça um nome para a categoria.")

    try:
        db.add(Category(name=name))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Erro ao criar categoria %r", name)
        return _form(request, name=name, error="Erro ao salvar categoria. Tente novamente mais tarde.")

    logger.info("Categoria criada: %s", name)
    flash(request, "✅ Categoria criada com sucesso.")
    return RedirectResponse(LIST_URL, status_code=303)


@router.get("/{category_id}/edit", response_class=HTMLResponse)
def category_edit_form(category_id: int, request: Request, db: Session = Depends(get_db)):
    category = db.get(Category, category_id)
    if not category:
        flash(request, "❌ Categoria não encontrada.")
        return RedirectResponse(LIST_URL, status_code=303)
    return _form(request, category=category)


@router.post("/{category_id}/update")
def category_update(
    category_id: int,
    request: Request,
    name: str = Form(""),
    db: Session = Depends(get_db),
):
    category = db.get(Category, category_id)
    if not category:
        flash(request, "❌ Categoria não encontrada.")
        return RedirectResponse(LIST_URL, status_code=303)

    name = (name or "").strip()
    if not name:
        return _form(request, category=category, error="Por favor, forneça um nome para a categoria.")

    try:
        category.name = name
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Erro ao atualizar categoria #%s", category_id)
        return _form(request, category=category, name=name,
                     error="Erro ao salvar categoria. Tente novamente mais tarde.")

    flash(request, "✅ Categoria atualizada com sucesso.")
    return RedirectResponse(LIST_URL, status_code=303)


@router.post("/{category_id}/delete")
def category_delete(category_id: int, request: Request, db: Session = Depends(get_db)):
    category = db.get(Category, category_id)
    if not category:
        flash(request, "❌ Categoria não encontrada.")
        return RedirectResponse(LIST_URL, status_code=303)

    # если в категории есть товары, не удаляем
    in_use = db.query(func.count(Product.id)).filter(Product.category_id == category.id).scalar() or 0
    if in_use:
        flash(request, f"❌ Não é possível excluir: {in_use} produto(s) nesta categoria.")
        return RedirectResponse(LIST_URL, status_code=303)

    try:
        db.delete(category)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Erro ao excluir categoria #%s", category_id)
        flash(request, "❌ Erro ao excluir categoria. Tente novamente mais tarde.")
        return RedirectResponse(LIST_URL, status_code=303)

    flash(request, "✅ Categoria excluída.")
    return RedirectResponse(LIST_URL, status_code=303)
