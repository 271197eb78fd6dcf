# cafe_admin/models/order.py
# Заказы пишет касса/сайт кафе, админка их только читает (и меняет статус)
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cafe_admin.db import Base
from cafe_admin.utils.enums import OrderStatus


class Client(Base):
    __tablename__ = "Client"

    id: Mapped[int] = mapped_column(primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    tel: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    orders: Mapped[List["Order"]] = relationship("Order", back_populates="client")


class Order(Base):
    __tablename__ = "Order"

    id: Mapped[int] = mapped_column(primary_key=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )
    is_takeout: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    # допустимые значения: 'new' | 'progress' | 'canceled' | 'done'
    status: Mapped[str] = mapped_column(String(16), default=OrderStatus.NEW.value)

    client_id: Mapped[Optional[int]] = mapped_column("client", ForeignKey("Client.id"), nullable=True)
    client: Mapped[Optional["Client"]] = relationship("Client", back_populates="orders")

    items: Mapped[List["OrderProduct"]] = relationship(
        "OrderProduct", back_populates="order", cascade="all, delete-orphan"
    )


class OrderProduct(Base):
    # одна строка = одна единица товара в заказе
    __tablename__ = "OrderProducts"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[Optional[int]] = mapped_column(ForeignKey("Order.id"), nullable=True, index=True)
    product_id: Mapped[Optional[int]] = mapped_column("product", ForeignKey("Product.id"), nullable=True)
    variant_id: Mapped[Optional[int]] = mapped_column("variant", ForeignKey("Variant.id"), nullable=True)

    order: Mapped[Optional["Order"]] = relationship("Order", back_populates="items")
    product = relationship("Product")
    variant = relationship("Variant")
    additions: Mapped[List["OrderProductAddition"]] = relationship(
        "OrderProductAddition", back_populates="order_product", cascade="all, delete-orphan"
    )


class OrderProductAddition(Base):
    __tablename__ = "OrderProductAdditions"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_product_id: Mapped[int] = mapped_column("order_product", ForeignKey("OrderProducts.id"))
    addition_id: Mapped[Optional[int]] = mapped_column("addition", ForeignKey("Addition.id"), nullable=True)

    order_product: Mapped["OrderProduct"] = relationship("OrderProduct", back_populates="additions")
    addition = relationship("Addition")
