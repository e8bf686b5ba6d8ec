from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class OrderChange(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"

    @property
    def routing_key(self) -> str:
        return f"order.{self.value}"


class OrderChangedEvent(BaseModel):
    order_id: str
    change: OrderChange
    source: str
    occurred_at: datetime
