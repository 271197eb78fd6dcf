# cafe_admin/models/__init__.py
from .catalog import *      # Category, Product, Variant, Addition
from .order import *        # Client, Order, OrderProduct, OrderProductAddition
