from datetime import datetime

from orderhub.schemas.base import CamelModel, Money


class UserDto(CamelModel):
    id: str
    name: str
    email: str = ""
    country: str
    created_at: datetime | None = None


class ProductDto(CamelModel):
    id: str
    name: str
    description: str = ""
    price: Money
    created_at: datetime | None = None
