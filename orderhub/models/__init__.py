from orderhub.core.database import Base
from orderhub.models.order import Order

__all__ = ["Base", "Order"]
