import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from orderhub.core.broker import broker
from orderhub.core.config import settings
from orderhub.models.order import Order
from orderhub.repositories.order import OrderRepository
from orderhub.schemas.events import OrderChange, OrderChangedEvent
from orderhub.schemas.order import OrderCreate, OrderResponse, OrderUpdate, OrderWithDetails
from orderhub.services.catalog import ProductCatalogClient, UserCatalogClient
from orderhub.services.enrichment import enrich_orders
from orderhub.services.live_updates import OrderStreamHub

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, repository: OrderRepository, hub: OrderStreamHub) -> None:
        self.repository = repository
        self.hub = hub

    async def create_order(self, order_data: OrderCreate) -> OrderResponse:
        now = datetime.now(timezone.utc)
        order = Order(
            id=str(uuid.uuid4()),
            user_id=order_data.user_id,
            product_id=order_data.product_id,
            product_price=order_data.product_price,
            quantity=order_data.quantity,
            total_price=order_data.product_price * order_data.quantity,
            created_at=now,
            updated_at=now
        )

        created_order = await self.repository.create(order)
        logger.info(
            f"Order created: {created_order.id} (user: {created_order.user_id}, "
            f"product: {created_order.product_id}, quantity: {created_order.quantity}, "
            f"total: {created_order.total_price})"
        )

        await self._order_changed(created_order.id, OrderChange.CREATED)
        return OrderResponse.model_validate(created_order)

    async def get_order(self, order_id: str) -> Optional[OrderResponse]:
        order = await self.repository.get_by_id(order_id)
        if not order:
            return None
        return OrderResponse.model_validate(order)

    async def list_orders(self) -> List[OrderResponse]:
        orders = await self.repository.get_all()
        return [OrderResponse.model_validate(order) for order in orders]

    async def update_order(self, order_id: str, order_data: OrderUpdate) -> Optional[OrderResponse]:
        order = await self.repository.get_by_id(order_id)
        if not order:
            logger.warning(f"Order not found for update: {order_id}")
            return None

        order.user_id = order_data.user_id
        order.product_id = order_data.product_id
        order.product_price = order_data.product_price
        order.quantity = order_data.quantity
        order.total_price = order_data.product_price * order_data.quantity
        order.updated_at = datetime.now(timezone.utc)

        updated_order = await self.repository.update(order)
        logger.info(f"Order updated: {updated_order.id}, total: {updated_order.total_price}")

        await self._order_changed(updated_order.id, OrderChange.UPDATED)
        return OrderResponse.model_validate(updated_order)

    async def delete_order(self, order_id: str) -> bool:
        order = await self.repository.get_by_id(order_id)
        if not order:
            logger.warning(f"Order not found for deletion: {order_id}")
            return False

        await self.repository.delete(order)
        logger.info(f"Order deleted: {order_id}")

        await self._order_changed(order_id, OrderChange.DELETED)
        return True

    async def get_orders_with_details(
        self,
        user_client: UserCatalogClient,
        product_client: ProductCatalogClient
    ) -> List[OrderWithDetails]:
        # the three reads are independent; no snapshot spans collections
        orders, users, products = await asyncio.gather(
            self.list_orders(),
            user_client.fetch_all(),
            product_client.fetch_all()
        )
        return enrich_orders(orders, users, products)

    async def _order_changed(self, order_id: str, change: OrderChange) -> None:
        self.hub.notify()

        event = OrderChangedEvent(
            order_id=order_id,
            change=change,
            source=settings.instance_id,
            occurred_at=datetime.now(timezone.utc)
        )
        try:
            await broker.publish(
                change.routing_key,
                event.model_dump_json().encode()
            )
        except Exception as e:
            logger.error(f"Failed to publish {change.routing_key} event for order {order_id}: {e}", exc_info=True)
