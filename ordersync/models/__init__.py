from ordersync.models.tenant import Tenant
from ordersync.models.user import User
from ordersync.models.order import Order
from ordersync.models.product import Product

__all__ = ["Tenant", "User", "Order", "Product"]
