# seed.py: локальная БД для разработки, пересоздать таблицы и залить демо-данные
import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import configure_mappers

from cafe_admin.db import Base, engine, SessionLocal
import cafe_admin.models  # подтягиваем все модели
from cafe_admin.models.catalog import Category, Product, Variant, Addition
from cafe_admin.models.order import Client, Order, OrderProduct, OrderProductAddition
from cafe_admin.utils.enums import OrderStatus

MENU = {
    "Cafés": [
        ("Espresso", "6.00", [("Simples", "6.00"), ("Duplo", "9.00")], [("Leite extra", "1.50")]),
        ("Cappuccino", "12.00", [("Médio", "12.00"), ("Grande", "15.00")], [("Chantilly", "2.00")]),
        ("Latte", "13.00", [("Médio", "13.00"), ("Grande", "16.00")], [("Xarope de baunilha", "2.50")]),
    ],
    "Doces": [
        ("Pão de queijo", "5.00", [], []),
        ("Bolo de cenoura", "9.50", [], [("Cobertura de chocolate", "2.00")]),
    ],
    "Bebidas": [
        ("Suco de laranja", "10.00", [("300 ml", "10.00"), ("500 ml", "14.00")], []),
    ],
}

CLIENTS = [
    ("Ana Souza", "ana@example.com", "11 99999-0001"),
    ("Bruno Lima", "bruno@example.com", "11 99999-0002"),
    ("Carla Dias", None, "11 99999-0003"),
]


def run_seed(days: int = 45, orders_per_day: int = 12):
    if engine.dialect.name != "sqlite":
        raise SystemExit("Seed só roda na base local (sqlite); as tabelas de produção são do backend.")

    # === RESET ===
    Base.metadata.drop_all(bind=engine)
    print("🗑 Все таблицы удалены")

    configure_mappers()
    Base.metadata.create_all(bind=engine)
    print("✅ Все таблицы пересозданы")

    rnd = random.Random(42)
    db = SessionLocal()
    try:
        products = []
        for cat_name, items in MENU.items():
            category = Category(name=cat_name)
            db.add(category)
            db.flush()
            for name, price, variants, additions in items:
                p = Product(
                    name=name,
                    price=Decimal(price),
                    category_id=category.id,
                    enabled=True,
                    stock_quantity=50,
                    variant_box_title="Escolha o tamanho" if variants else None,
                )
                db.add(p)
                db.flush()
                for v_name, v_price in variants:
                    db.add(Variant(product_id=p.id, name=v_name, price=Decimal(v_price)))
                for a_name, a_price in additions:
                    db.add(Addition(product_id=p.id, name=a_name, price=Decimal(a_price)))
                products.append(p)
            print(f"✅ Категория создана: {cat_name}")
        db.commit()

        clients = [Client(name=n, email=e, tel=t) for n, e, t in CLIENTS]
        db.add_all(clients)
        db.commit()

        now = datetime.now(timezone.utc).replace(tzinfo=None)
        statuses = [OrderStatus.DONE.value] * 8 + [OrderStatus.CANCELED.value, OrderStatus.NEW.value]
        for day in range(days):
            for _ in range(rnd.randint(orders_per_day // 2, orders_per_day)):
                created = now - timedelta(days=day, minutes=rnd.randint(0, 600))
                client = rnd.choice(clients + [None, None])
                order = Order(
                    created_at=created,
                    status=rnd.choice(statuses),
                    is_takeout=rnd.random() < 0.3,
                    client_id=client.id if client else None,
                    price=Decimal("0"),
                )
                db.add(order)
                db.flush()

                total = Decimal("0")
                for p in rnd.sample(products, rnd.randint(1, 3)):
                    variant = rnd.choice(p.variants) if p.variants else None
                    line = OrderProduct(order_id=order.id, product_id=p.id,
                                        variant_id=variant.id if variant else None)
                    db.add(line)
                    db.flush()
                    total += variant.price if variant else p.price
                    if p.additions and rnd.random() < 0.3:
                        extra = rnd.choice(p.additions)
                        db.add(OrderProductAddition(order_product_id=line.id, addition_id=extra.id))
                        total += extra.price
                order.price = total
            db.commit()
        print(f"✅ Заказы за {days} дней созданы")
    finally:
        db.close()


if __name__ == "__main__":
    run_seed()
