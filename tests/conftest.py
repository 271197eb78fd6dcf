import os

# до импорта приложения: локальная БД в памяти, UTC, без хранилища
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CREATE_TABLES"] = "0"
os.environ["TIMEZONE"] = "UTC"
os.environ["ADMIN_PASSWORD"] = "test-password"
os.environ["STORAGE_URL"] = ""
os.environ["STORAGE_KEY"] = ""

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from cafe_admin.db import Base, engine, SessionLocal
from cafe_admin.main import app
from cafe_admin.models import Category, Product, Variant, Addition, Client, Order, OrderProduct, OrderProductAddition
from cafe_admin.routers import auth

PASSWORD = "test-password"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    auth.login_attempts.clear()
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin(client):
    resp = client.post("/login", data={"password": PASSWORD}, follow_redirects=False)
    assert resp.status_code == 303
    return client


@pytest.fixture
def catalog(db):
    """Две категории, товары с вариантами и добавками"""
    cafes = Category(name="Cafés")
    doces = Category(name="Doces")
    db.add_all([cafes, doces])
    db.flush()

    espresso = Product(name="Espresso", price=Decimal("6.00"), category_id=cafes.id, enabled=True, stock_quantity=10)
    latte = Product(name="Latte", price=Decimal("13.00"), category_id=cafes.id, enabled=True, stock_quantity=5)
    bolo = Product(name="Bolo", price=Decimal("9.50"), category_id=doces.id, enabled=False, stock_quantity=0)
    db.add_all([espresso, latte, bolo])
    db.flush()

    duplo = Variant(product_id=espresso.id, name="Duplo", price=Decimal("9.00"))
    leite = Addition(product_id=latte.id, name="Leite extra", price=Decimal("1.50"))
    db.add_all([duplo, leite])
    db.commit()
    return {
        "cafes": cafes, "doces": doces,
        "espresso": espresso, "latte": latte, "bolo": bolo,
        "duplo": duplo, "leite": leite,
    }


def make_order(db, created_at: datetime, products, price, status="done", client=None, variant=None, additions=()):
    order = Order(created_at=created_at, price=Decimal(str(price)), status=status,
                  client_id=client.id if client else None, is_takeout=False)
    db.add(order)
    db.flush()
    for p in products:
        line = OrderProduct(order_id=order.id, product_id=p.id,
                            variant_id=variant.id if variant and variant.product_id == p.id else None)
        db.add(line)
        db.flush()
        for a in additions:
            if a.product_id == p.id:
                db.add(OrderProductAddition(order_product_id=line.id, addition_id=a.id))
    db.commit()
    return order


@pytest.fixture
def ana(db):
    c = Client(name="Ana", email="ana@example.com", tel="11 90000-0001")
    db.add(c)
    db.commit()
    return c
