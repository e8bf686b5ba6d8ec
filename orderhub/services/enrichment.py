"""Joins orders with the user and product catalogs for display.

The join is best effort: catalog snapshots are read independently of the
order list, so a reference that cannot be resolved is filled with a
placeholder instead of failing or dropping the order.
"""
from typing import Iterable, List, Sequence, TypeVar

from orderhub.schemas.catalog import ProductDto, UserDto
from orderhub.schemas.order import OrderResponse, OrderWithDetails

UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_USER = "Unknown User"
UNKNOWN_COUNTRY = "Unknown Country"

T = TypeVar("T", UserDto, ProductDto)

_ORDER_FIELDS = set(OrderResponse.model_fields)


def _index_by_id(items: Iterable[T]) -> dict[str, T]:
    index: dict[str, T] = {}
    for item in items:
        index.setdefault(item.id, item)
    return index


def enrich_orders(
    orders: Sequence[OrderResponse],
    users: Sequence[UserDto],
    products: Sequence[ProductDto]
) -> List[OrderWithDetails]:
    users_by_id = _index_by_id(users)
    products_by_id = _index_by_id(products)

    enriched = []
    for order in orders:
        user = users_by_id.get(order.user_id)
        product = products_by_id.get(order.product_id)
        enriched.append(
            OrderWithDetails(
                **order.model_dump(include=_ORDER_FIELDS),
                product_name=product.name if product else UNKNOWN_PRODUCT,
                user_name=user.name if user else UNKNOWN_USER,
                country=user.country if user else UNKNOWN_COUNTRY
            )
        )
    return enriched
