import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from fastapi import APIRouter, Request, Form, UploadFile, File, Depends, Query
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from cafe_admin.db import get_db
from cafe_admin.models import Product, Category, Variant, Addition, OrderProduct
from cafe_admin.storage.storage_client import storage, StorageError
from cafe_admin.templating import templates
from cafe_admin.utils.flash import flash
from cafe_admin.utils.forms import checkbox, parse_count, parse_optional_id, parse_price

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin/products", tags=["admin-products"])

LIST_URL = "/admin/products"
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


def _wants_json(request: Request) -> bool:
    return "application/json" in request.headers.get("accept", "").lower()


def _list_url(category_id: Optional[int]) -> str:
    return f"{LIST_URL}?category_id={category_id}" if category_id else LIST_URL


def _form_values(product: Optional[Product]) -> dict:
    if product is None:
        return {
            "id": None, "name": "", "description": "", "price": "0.00", "stock_quantity": 0,
            "enabled": True, "image": "", "category_id": None, "variant_box_title": "",
        }
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description or "",
        "price": f"{product.price or 0:.2f}",
        "stock_quantity": product.stock_quantity or 0,
        "enabled": bool(product.enabled),
        "image": product.image or "",
        "category_id": product.category_id,
        "variant_box_title": product.variant_box_title or "",
    }


def _render_form(request: Request, db: Session, form: dict, product: Optional[Product] = None, error: str = ""):
    categories = db.query(Category).order_by(Category.name.asc()).all()
    return templates.TemplateResponse(request, "admin/product_form.html", {
        "form": form,
        "product": product,
        "categories": categories,
        "variants": product.variants if product else [],
        "additions": product.additions if product else [],
        "storage_enabled": storage.is_configured,
        "error": error,
    })


def _clean_product(
    name: str, description: str, price: str, stock_quantity: str, enabled: Optional[str],
    image: str, category_id: str, variant_box_title: str,
) -> Tuple[dict, str]:
    """Значения формы -> (значения для Product, текст ошибки или '')"""
    values = {
        "name": (name or "").strip(),
        "description": (description or "").strip() or None,
        "price": parse_price(price),
        "stock_quantity": parse_count(stock_quantity),
        "enabled": checkbox(enabled),
        "image": (image or "").strip() or None,
        "category_id": parse_optional_id(category_id),
        "variant_box_title": (variant_box_title or "").strip() or None,
    }
    if not values["name"]:
        return values, "Por favor, forneça um nome para o produto."
    if values["price"] is None:
        return values, "Por favor, forneça um preço válido."
    if values["stock_quantity"] is None:
        return values, "Por favor, forneça uma quantidade em estoque válida."
    if values["category_id"] is None:
        return values, "Por favor, selecione uma categoria."
    return values, ""


def _clean_existing_rows(
    label: str, ids: List[int], names: List[str], prices: List[str], delete_ids: List[int],
) -> Tuple[List[tuple], str]:
    """Существующие варианты/добавки: [(id, name, price)] для обновления"""
    rows = []
    for i, row_id in enumerate(ids):
        if row_id in delete_ids:
            continue
        row_name = (names[i] if i < len(names) else "").strip()
        row_price = parse_price(prices[i] if i < len(prices) else "")
        if not row_name:
            return [], f"{label}: o nome é obrigatório."
        if row_price is None:
            return [], f"{label} \"{row_name}\": preço inválido."
        rows.append((row_id, row_name, row_price))
    return rows, ""


def _clean_new_rows(label: str, names: List[str], prices: List[str]) -> Tuple[List[tuple], str]:
    """Новые строки: строку с пустым именем пропускаем"""
    rows = []
    for i, raw_name in enumerate(names):
        row_name = (raw_name or "").strip()
        if not row_name:
            continue
        row_price = parse_price(prices[i] if i < len(prices) else "")
        if row_price is None:
            return [], f"{label} \"{row_name}\": preço inválido."
        rows.append((row_name, row_price))
    return rows, ""


def _sync_children(db: Session, children: list, model, product_id: int,
                   updates: List[tuple], delete_ids: List[int], new_rows: List[tuple]) -> None:
    current = {c.id: c for c in children}

    for row_id in delete_ids:
        child = current.get(row_id)
        if child is not None:
            db.delete(child)

    for row_id, row_name, row_price in updates:
        child = current.get(row_id)
        if child is None:
            continue
        child.name = row_name
        child.price = row_price

    for row_name, row_price in new_rows:
        db.add(model(product_id=product_id, name=row_name, price=row_price))


def _store_image(image_file: Optional[UploadFile]) -> Optional[str]:
    """Загрузить картинку в хранилище; None, если файла нет"""
    if not (image_file and image_file.filename):
        return None
    ext = Path(image_file.filename).suffix.lower()
    if ext not in IMAGE_EXTENSIONS:
        raise StorageError("Formato de imagem não suportado.")
    filename = f"{uuid.uuid4().hex}{ext}"
    return storage.upload(filename, image_file.file.read(), image_file.content_type or "application/octet-stream")


def _discard_image(url: Optional[str]) -> None:
    """Удалить картинку из хранилища; ошибка хранилища только логируется"""
    if not url:
        return
    try:
        storage.remove(url)
    except StorageError as e:
        logger.warning("Imagem não removida (%s): %s", url, e)


# 📦 список товаров
@router.get("", response_class=HTMLResponse)
def products_index(
    request: Request,
    category_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    selected = parse_optional_id(category_id)
    products, categories = [], []
    try:
        categories = db.query(Category).order_by(Category.name.asc()).all()
        query = db.query(Product).options(joinedload(Product.category))
        if selected:
            query = query.filter(Product.category_id == selected)
        products = query.order_by(Product.name.asc()).all()
    except SQLAlchemyError:
        logger.exception("Erro ao carregar produtos")
        flash(request, "❌ Erro ao carregar produtos. Tente novamente mais tarde.")

    return templates.TemplateResponse(request, "admin/products_index.html", {
        "products": products,
        "categories": categories,
        "selected_category": selected,
    })


# 🆕 форма создания
@router.get("/new", response_class=HTMLResponse)
def product_new(request: Request, db: Session = Depends(get_db)):
    return _render_form(request, db, _form_values(None))


# 💾 создание
@router.post("/create")
def product_create(
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    price: str = Form(""),
    stock_quantity: str = Form("0"),
    enabled: Optional[str] = Form(None),
    image: str = Form(""),
    image_file: UploadFile = File(None),
    category_id: str = Form(""),
    variant_box_title: str = Form(""),

    new_variant_name: List[str] = Form([]),
    new_variant_price: List[str] = Form([]),
    new_addition_name: List[str] = Form([]),
    new_addition_price: List[str] = Form([]),

    db: Session = Depends(get_db),
):
    values, error = _clean_product(name, description, price, stock_quantity, enabled,
                                   image, category_id, variant_box_title)
    new_variants, new_additions = [], []
    if not error:
        new_variants, error = _clean_new_rows("Variante", new_variant_name, new_variant_price)
    if not error:
        new_additions, error = _clean_new_rows("Adicional", new_addition_name, new_addition_price)
    if not error and not db.get(Category, values["category_id"]):
        error = "Por favor, selecione uma categoria."
    if error:
        return _render_form(request, db, {**values, "id": None, "price": price}, error=error)

    try:
        uploaded = _store_image(image_file)
    except StorageError as e:
        logger.warning("Upload de imagem falhou: %s", e)
        return _render_form(request, db, {**values, "id": None, "price": price}, error=str(e))
    if uploaded:
        values["image"] = uploaded

    try:
        product = Product(**values, updated_at=datetime.now(timezone.utc))
        db.add(product)
        db.flush()
        _sync_children(db, [], Variant, product.id, [], [], new_variants)
        _sync_children(db, [], Addition, product.id, [], [], new_additions)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Erro ao criar produto %r", values["name"])
        # убираем уже загруженную картинку
        _discard_image(uploaded)
        form = {**values, "id": None, "price": price, "image": (image or "").strip()}
        return _render_form(request, db, form,
                            error="Erro ao salvar produto. Tente novamente mais tarde.")

    logger.info("Produto criado: #%s %s", product.id, product.name)
    flash(request, "✅ Produto criado com sucesso.")
    return RedirectResponse(LIST_URL, status_code=303)


# ✏️ форма редактирования
@router.get("/{product_id}/edit", response_class=HTMLResponse)
def product_edit(product_id: int, request: Request, db: Session = Depends(get_db)):
    product = db.get(Product, product_id)
    if not product:
        flash(request, "❌ Produto não encontrado.")
        return RedirectResponse(LIST_URL, status_code=303)
    return _render_form(request, db, _form_values(product), product=product)


# 🔄 обновление товара
@router.post("/{product_id}/update")
def product_update(
    product_id: int,
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    price: str = Form(""),
    stock_quantity: str = Form("0"),
    enabled: Optional[str] = Form(None),
    image: str = Form(""),
    image_file: UploadFile = File(None),
    category_id: str = Form(""),
    variant_box_title: str = Form(""),

    variant_id: List[int] = Form([]),
    variant_name: List[str] = Form([]),
    variant_price: List[str] = Form([]),
    new_variant_name: List[str] = Form([]),
    new_variant_price: List[str] = Form([]),
    delete_variant_id: List[int] = Form([]),

    addition_id: List[int] = Form([]),
    addition_name: List[str] = Form([]),
    addition_price: List[str] = Form([]),
    new_addition_name: List[str] = Form([]),
    new_addition_price: List[str] = Form([]),
    delete_addition_id: List[int] = Form([]),

    db: Session = Depends(get_db),
):
    product = db.get(Product, product_id)
    if not product:
        flash(request, "❌ Produto não encontrado.")
        return RedirectResponse(LIST_URL, status_code=303)

    values, error = _clean_product(name, description, price, stock_quantity, enabled,
                                   image, category_id, variant_box_title)
    variant_updates = addition_updates = new_variants = new_additions = []
    if not error:
        variant_updates, error = _clean_existing_rows("Variante", variant_id, variant_name,
                                                      variant_price, delete_variant_id)
    if not error:
        new_variants, error = _clean_new_rows("Variante", new_variant_name, new_variant_price)
    if not error:
        addition_updates, error = _clean_existing_rows("Adicional", addition_id, addition_name,
                                                       addition_price, delete_addition_id)
    if not error:
        new_additions, error = _clean_new_rows("Adicional", new_addition_name, new_addition_price)
    if not error and not db.get(Category, values["category_id"]):
        error = "Por favor, selecione uma categoria."
    if error:
        return _render_form(request, db, {**values, "id": product.id, "price": price},
                            product=product, error=error)

    try:
        uploaded = _store_image(image_file)
    except StorageError as e:
        logger.warning("Upload de imagem falhou: %s", e)
        return _render_form(request, db, {**values, "id": product.id, "price": price},
                            product=product, error=str(e))

    old_image = product.image
    if uploaded:
        values["image"] = uploaded

    try:
        for field, value in values.items():
            setattr(product, field, value)
        product.updated_at = datetime.now(timezone.utc)

        _sync_children(db, product.variants, Variant, product.id,
                       variant_updates, delete_variant_id, new_variants)
        _sync_children(db, product.additions, Addition, product.id,
                       addition_updates, delete_addition_id, new_additions)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Erro ao atualizar produto #%s", product_id)
        _discard_image(uploaded)
        flash(request, "❌ Erro ao salvar produto. Tente novamente mais tarde.")
        return RedirectResponse(f"{LIST_URL}/{product_id}/edit", status_code=303)

    # старая картинка заменена или убрана; чужие URL хранилище не трогает
    if old_image and old_image != values["image"]:
        _discard_image(old_image)

    logger.info("Produto atualizado: #%s %s", product.id, product.name)
    flash(request, "✅ Produto atualizado com sucesso.")
    return RedirectResponse(LIST_URL, status_code=303)


# 🔁 включить / выключить из списка
@router.post("/{product_id}/toggle")
def product_toggle(
    product_id: int,
    request: Request,
    filter_category: str = Form(""),
    db: Session = Depends(get_db),
):
    back = _list_url(parse_optional_id(filter_category))
    product = db.get(Product, product_id)
    if not product:
        if _wants_json(request):
            return JSONResponse({"detail": "Produto não encontrado"}, status_code=404)
        flash(request, "❌ Produto não encontrado.")
        return RedirectResponse(back, status_code=303)

    try:
        product.enabled = not product.enabled
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Erro ao alternar produto #%s", product_id)
        if _wants_json(request):
            return JSONResponse({"detail": "Erro ao atualizar produto"}, status_code=502)
        flash(request, "❌ Erro ao atualizar produto. Tente novamente mais tarde.")
        return RedirectResponse(back, status_code=303)

    state = "habilitado" if product.enabled else "desabilitado"
    if _wants_json(request):
        return JSONResponse({"id": product.id, "enabled": product.enabled})
    flash(request, f"✅ Produto {product.name} foi {state}.")
    return RedirectResponse(back, status_code=303)


# 🗑 удаление
@router.post("/{product_id}/delete")
def product_delete(product_id: int, request: Request, db: Session = Depends(get_db)):
    product = db.get(Product, product_id)
    if not product:
        flash(request, "❌ Produto não encontrado.")
        return RedirectResponse(LIST_URL, status_code=303)

    # товар из заказов не удаляем: на него ссылается история продаж
    sold = db.query(func.count(OrderProduct.id)).filter(OrderProduct.product_id == product.id).scalar() or 0
    if sold:
        flash(request, "❌ Não é possível excluir: o produto aparece em pedidos. Desabilite-o.")
        return RedirectResponse(LIST_URL, status_code=303)

    image_url = product.image
    try:
        db.delete(product)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Erro ao excluir produto #%s", product_id)
        flash(request, "❌ Erro ao excluir produto. Tente novamente mais tarde.")
        return RedirectResponse(LIST_URL, status_code=303)

    _discard_image(image_url)

    flash(request, "✅ Produto excluído.")
    return RedirectResponse(LIST_URL, status_code=303)
