from datetime import datetime, timezone

from pydantic import Field, field_validator

from orderhub.schemas.base import CamelModel, Money


class OrderCreate(CamelModel):
    user_id: str = Field(min_length=1, max_length=100)
    product_id: str = Field(min_length=1, max_length=100)
    product_price: Money = Field(gt=0)
    quantity: int = Field(gt=0)


class OrderUpdate(OrderCreate):
    pass


class OrderResponse(CamelModel):
    id: str
    user_id: str
    product_id: str
    product_price: Money
    quantity: int
    total_price: Money
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        # timestamps are written in UTC; some backends hand them back naive
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class OrderWithDetails(OrderResponse):
    product_name: str
    user_name: str
    country: str
