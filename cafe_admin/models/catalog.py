# cafe_admin/models/catalog.py
# Таблицы каталога живут на бэкенде; имена таблиц и колонок как там
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Text, ForeignKey, Integer, Numeric, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cafe_admin.db import Base


class Category(Base):
    __tablename__ = "Category"
    id: Mapped[int] = mapped_column(primary_key=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), server_default=func.now())
    name: Mapped[str] = mapped_column(String(120))

    products: Mapped[List["Product"]] = relationship("Product", back_populates="category")


class Product(Base):
    __tablename__ = "Product"
    id: Mapped[int] = mapped_column(primary_key=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    enabled: Mapped[Optional[bool]] = mapped_column(Boolean, default=True)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    stock_quantity: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    variant_box_title: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    # колонка на бэкенде называется просто "category"
    category_id: Mapped[Optional[int]] = mapped_column("category", ForeignKey("Category.id"), nullable=True)
    category: Mapped[Optional["Category"]] = relationship("Category", back_populates="products")

    variants: Mapped[List["Variant"]] = relationship(
        "Variant", back_populates="product", cascade="all, delete-orphan", order_by="Variant.id"
    )
    additions: Mapped[List["Addition"]] = relationship(
        "Addition", back_populates="product", cascade="all, delete-orphan", order_by="Addition.id"
    )


class Variant(Base):
    __tablename__ = "Variant"
    id: Mapped[int] = mapped_column(primary_key=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), server_default=func.now())
    name: Mapped[str] = mapped_column(String(120))   # "Pequeno", "Grande" и т.д.
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    product_id: Mapped[Optional[int]] = mapped_column("product", ForeignKey("Product.id"), nullable=True)
    product: Mapped[Optional["Product"]] = relationship("Product", back_populates="variants")


class Addition(Base):
    __tablename__ = "Addition"
    id: Mapped[int] = mapped_column(primary_key=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), server_default=func.now())
    name: Mapped[str] = mapped_column(String(120))   # "Leite extra", "Chantilly"
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    product_id: Mapped[Optional[int]] = mapped_column("product", ForeignKey("Product.id"), nullable=True)
    product: Mapped[Optional["Product"]] = relationship("Product", back_populates="additions")
