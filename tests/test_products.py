from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from cafe_admin.db import SessionLocal, get_db
from cafe_admin.main import app
from cafe_admin.models import Addition, Product, Variant
from cafe_admin.routers import admin_products
from tests.conftest import make_order


class FakeStorage:
    is_configured = True

    def __init__(self):
        self.uploaded = []
        self.removed = []

    def upload(self, name, data, content_type="application/octet-stream"):
        self.uploaded.append((name, data, content_type))
        return f"https://cdn.test/products/{name}"

    def remove(self, url):
        self.removed.append(url)


@pytest.fixture
def fake_storage(monkeypatch):
    fake = FakeStorage()
    monkeypatch.setattr(admin_products, "storage", fake)
    return fake


@pytest.fixture
def failing_commit():
    """Сессия приложения, у которой commit падает как при недоступном бэкенде"""
    def broken_db():
        session = SessionLocal()

        def commit():
            raise OperationalError("COMMIT", {}, Exception("backend offline"))

        session.commit = commit
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = broken_db
    yield
    app.dependency_overrides.pop(get_db, None)


def product_data(default_category, **overrides):
    data = {
        "name": "Cappuccino",
        "description": "Cremoso",
        "price": "14,50",
        "stock_quantity": "8",
        "enabled": "on",
        "category_id": str(default_category),
        "variant_box_title": "Tamanho",
    }
    data.update(overrides)
    return data


def test_product_list_and_category_filter(admin, catalog):
    resp = admin.get("/admin/products")
    assert resp.status_code == 200
    for name in ("Espresso", "Latte", "Bolo"):
        assert name in resp.text

    resp = admin.get(f"/admin/products?category_id={catalog['doces'].id}")
    assert "Bolo" in resp.text
    assert "Latte" not in resp.text

    assert "Latte" in admin.get("/admin/products?category_id=all").text


def test_create_product_with_variants_and_additions(admin, db, catalog):
    data = product_data(
        catalog["cafes"].id,
        new_variant_name=["Pequeno", "Grande", ""],
        new_variant_price=["14.50", "18", ""],
        new_addition_name=["Canela"],
        new_addition_price=["1"],
    )
    resp = admin.post("/admin/products/create", data=data, follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/admin/products"

    product = db.query(Product).filter_by(name="Cappuccino").one()
    assert product.price == Decimal("14.50")
    assert product.stock_quantity == 8
    assert product.enabled is True
    assert product.variant_box_title == "Tamanho"
    assert [(v.name, v.price) for v in product.variants] == [("Pequeno", Decimal("14.50")), ("Grande", Decimal("18.00"))]
    assert [a.name for a in product.additions] == ["Canela"]

    assert "Produto criado com sucesso" in admin.get("/admin/products").text


def test_create_product_unchecked_is_disabled(admin, db, catalog):
    data = product_data(catalog["cafes"].id)
    del data["enabled"]
    admin.post("/admin/products/create", data=data, follow_redirects=False)
    assert db.query(Product).filter_by(name="Cappuccino").one().enabled is False


@pytest.mark.parametrize("overrides, message", [
    ({"name": "  "}, "forneça um nome para o produto"),
    ({"price": "-3"}, "forneça um preço válido"),
    ({"price": "abc"}, "forneça um preço válido"),
    ({"price": "9" * 27}, "forneça um preço válido"),
    ({"price": "10000000000"}, "forneça um preço válido"),
    ({"category_id": ""}, "selecione uma categoria"),
    ({"category_id": "999"}, "selecione uma categoria"),
    ({"new_variant_name": ["Grande"], "new_variant_price": ["x"]}, "preço inválido"),
])
def test_create_product_validation(admin, db, catalog, overrides, message):
    resp = admin.post("/admin/products/create", data=product_data(catalog["cafes"].id, **overrides))
    assert resp.status_code == 200
    assert message in resp.text
    assert db.query(Product).count() == 3


def test_edit_form_shows_variants(admin, catalog):
    resp = admin.get(f"/admin/products/{catalog['espresso'].id}/edit")
    assert resp.status_code == 200
    assert 'value="Duplo"' in resp.text


def test_edit_missing_product_redirects(admin, catalog):
    resp = admin.get("/admin/products/999/edit", follow_redirects=False)
    assert resp.status_code == 303
    assert "Produto não encontrado" in admin.get("/admin/products").text


def test_update_product_and_variants(admin, db, catalog):
    espresso_id = catalog["espresso"].id
    duplo_id = catalog["duplo"].id
    data = product_data(
        catalog["cafes"].id,
        name="Espresso Curto",
        price="6,50",
        variant_id=[str(duplo_id)],
        variant_name=["Duplo"],
        variant_price=["10"],
        new_variant_name=["Triplo"],
        new_variant_price=["12"],
    )
    resp = admin.post(f"/admin/products/{espresso_id}/update", data=data, follow_redirects=False)
    assert resp.status_code == 303

    db.expire_all()
    product = db.get(Product, espresso_id)
    assert product.name == "Espresso Curto"
    assert product.price == Decimal("6.50")
    assert product.updated_at is not None
    assert [(v.name, v.price) for v in product.variants] == [("Duplo", Decimal("10.00")), ("Triplo", Decimal("12.00"))]


def test_update_product_deletes_addition(admin, db, catalog):
    latte_id = catalog["latte"].id
    leite_id = catalog["leite"].id
    data = product_data(
        catalog["cafes"].id,
        name="Latte",
        price="13",
        addition_id=[str(leite_id)],
        addition_name=["Leite extra"],
        addition_price=["1.50"],
        delete_addition_id=[str(leite_id)],
    )
    admin.post(f"/admin/products/{latte_id}/update", data=data, follow_redirects=False)

    db.expire_all()
    assert db.query(Addition).filter_by(product_id=latte_id).count() == 0


def test_update_rejects_invalid_existing_variant(admin, db, catalog):
    espresso_id = catalog["espresso"].id
    duplo_id = catalog["duplo"].id
    data = product_data(
        catalog["cafes"].id,
        name="Espresso",
        variant_id=[str(duplo_id)],
        variant_name=["Duplo"],
        variant_price=["-1"],
    )
    resp = admin.post(f"/admin/products/{espresso_id}/update", data=data)
    assert resp.status_code == 200
    assert "preço inválido" in resp.text

    db.expire_all()
    assert db.get(Variant, duplo_id).price == Decimal("9.00")


def test_toggle_product_keeps_filter(admin, db, catalog):
    bolo_id = catalog["bolo"].id
    doces_id = catalog["doces"].id
    resp = admin.post(f"/admin/products/{bolo_id}/toggle",
                      data={"filter_category": str(doces_id)}, follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == f"/admin/products?category_id={doces_id}"

    db.expire_all()
    assert db.get(Product, bolo_id).enabled is True
    assert "Produto Bolo foi habilitado." in admin.get("/admin/products").text

    admin.post(f"/admin/products/{bolo_id}/toggle", follow_redirects=False)
    assert "Produto Bolo foi desabilitado." in admin.get("/admin/products").text


def test_toggle_product_json(admin, db, catalog):
    espresso_id = catalog["espresso"].id
    resp = admin.post(f"/admin/products/{espresso_id}/toggle", headers={"Accept": "application/json"})
    assert resp.status_code == 200
    assert resp.json() == {"id": espresso_id, "enabled": False}

    resp = admin.post("/admin/products/999/toggle", headers={"Accept": "application/json"})
    assert resp.status_code == 404


def test_delete_product_removes_children(admin, db, catalog):
    latte_id = catalog["latte"].id
    resp = admin.post(f"/admin/products/{latte_id}/delete", follow_redirects=False)
    assert resp.status_code == 303

    db.expire_all()
    assert db.query(Product).filter_by(id=latte_id).count() == 0
    assert db.query(Addition).filter_by(product_id=latte_id).count() == 0


def test_delete_sold_product_is_refused(admin, db, catalog):
    from datetime import datetime

    espresso_id = catalog["espresso"].id
    make_order(db, datetime(2026, 10, 1, 10), [catalog["espresso"]], 6)

    admin.post(f"/admin/products/{espresso_id}/delete", follow_redirects=False)

    db.expire_all()
    assert db.query(Product).filter_by(id=espresso_id).count() == 1
    assert "aparece em pedidos" in admin.get("/admin/products").text


def test_create_product_uploads_image(admin, db, catalog, fake_storage):
    resp = admin.post(
        "/admin/products/create",
        data=product_data(catalog["cafes"].id),
        files={"image_file": ("foto.PNG", b"\x89PNG", "image/png")},
        follow_redirects=False,
    )
    assert resp.status_code == 303

    name, data, content_type = fake_storage.uploaded[0]
    assert name.endswith(".png")
    assert data == b"\x89PNG"
    assert content_type == "image/png"
    assert db.query(Product).filter_by(name="Cappuccino").one().image == f"https://cdn.test/products/{name}"


def test_new_image_replaces_old_one(admin, db, catalog, fake_storage):
    espresso = catalog["espresso"]
    espresso.image = "https://cdn.test/products/old.png"
    db.commit()
    espresso_id = espresso.id

    resp = admin.post(
        f"/admin/products/{espresso_id}/update",
        data=product_data(catalog["cafes"].id, name="Espresso", image="https://cdn.test/products/old.png"),
        files={"image_file": ("nova.jpg", b"jpeg", "image/jpeg")},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert fake_storage.removed == ["https://cdn.test/products/old.png"]

    db.expire_all()
    assert db.get(Product, espresso_id).image.endswith(".jpg")


def test_rejects_unsupported_image(admin, db, catalog, fake_storage):
    resp = admin.post(
        "/admin/products/create",
        data=product_data(catalog["cafes"].id),
        files={"image_file": ("notas.txt", b"hello", "text/plain")},
    )
    assert resp.status_code == 200
    assert "Formato de imagem não suportado" in resp.text
    assert fake_storage.uploaded == []


def test_upload_without_storage_configured(admin, db, catalog):
    resp = admin.post(
        "/admin/products/create",
        data=product_data(catalog["cafes"].id),
        files={"image_file": ("foto.png", b"\x89PNG", "image/png")},
    )
    assert resp.status_code == 200
    assert "Armazenamento de imagens não configurado" in resp.text
    assert db.query(Product).filter_by(name="Cappuccino").count() == 0


def test_cleared_image_is_removed_from_storage(admin, db, catalog, fake_storage):
    espresso = catalog["espresso"]
    espresso.image = "https://cdn.test/products/old.png"
    db.commit()
    espresso_id = espresso.id

    resp = admin.post(
        f"/admin/products/{espresso_id}/update",
        data=product_data(catalog["cafes"].id, name="Espresso", image=""),
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert fake_storage.removed == ["https://cdn.test/products/old.png"]

    db.expire_all()
    assert db.get(Product, espresso_id).image is None


def test_unchanged_image_is_kept(admin, db, catalog, fake_storage):
    espresso = catalog["espresso"]
    espresso.image = "https://cdn.test/products/old.png"
    db.commit()

    admin.post(
        f"/admin/products/{espresso.id}/update",
        data=product_data(catalog["cafes"].id, name="Espresso", image="https://cdn.test/products/old.png"),
        follow_redirects=False,
    )
    assert fake_storage.removed == []


def test_delete_product_removes_image(admin, db, catalog, fake_storage):
    latte = catalog["latte"]
    latte.image = "https://cdn.test/products/latte.png"
    db.commit()

    resp = admin.post(f"/admin/products/{latte.id}/delete", follow_redirects=False)
    assert resp.status_code == 303
    assert fake_storage.removed == ["https://cdn.test/products/latte.png"]


def test_failed_create_removes_uploaded_image(admin, db, catalog, fake_storage, failing_commit):
    resp = admin.post(
        "/admin/products/create",
        data=product_data(catalog["cafes"].id),
        files={"image_file": ("foto.png", b"\x89PNG", "image/png")},
    )
    assert resp.status_code == 200
    assert "Erro ao salvar produto" in resp.text

    name = fake_storage.uploaded[0][0]
    assert fake_storage.removed == [f"https://cdn.test/products/{name}"]
    assert db.query(Product).count() == 3


def test_failed_update_removes_uploaded_image(admin, db, catalog, fake_storage, failing_commit):
    espresso = catalog["espresso"]
    espresso.image = "https://cdn.test/products/old.png"
    db.commit()
    espresso_id = espresso.id

    resp = admin.post(
        f"/admin/products/{espresso_id}/update",
        data=product_data(catalog["cafes"].id, name="Espresso", image="https://cdn.test/products/old.png"),
        files={"image_file": ("nova.jpg", b"jpeg", "image/jpeg")},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == f"/admin/products/{espresso_id}/edit"

    # новая картинка убрана, старая на месте
    name = fake_storage.uploaded[0][0]
    assert fake_storage.removed == [f"https://cdn.test/products/{name}"]
    db.expire_all()
    assert db.get(Product, espresso_id).image == "https://cdn.test/products/old.png"
