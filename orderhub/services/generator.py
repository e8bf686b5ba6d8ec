import asyncio
import logging
import random
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderhub.repositories.order import OrderRepository
from orderhub.schemas.catalog import ProductDto, UserDto
from orderhub.schemas.order import OrderCreate, OrderResponse
from orderhub.services.catalog import ProductCatalogClient, UserCatalogClient
from orderhub.services.live_updates import OrderStreamHub
from orderhub.services.order import OrderService

logger = logging.getLogger(__name__)

MIN_QUANTITY = 1
MAX_QUANTITY = 10


class OrderGenerator:
    """Places a random order for a random user on a fixed interval."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        user_client: UserCatalogClient,
        product_client: ProductCatalogClient,
        hub: OrderStreamHub,
        interval: float = 30,
        rng: Optional[random.Random] = None
    ) -> None:
        self.session_maker = session_maker
        self.user_client = user_client
        self.product_client = product_client
        self.hub = hub
        self.interval = interval
        self.rng = rng or random.Random()
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            logger.warning("OrderGenerator is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._generate_loop())
        logger.info(f"OrderGenerator started (interval: {self.interval}s)")

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("OrderGenerator stopped")

    async def _generate_loop(self) -> None:
        while self._running:
            try:
                await self.run_cycle()
            except Exception as e:
                logger.error(f"Error in order generator loop: {e}", exc_info=True)

            await asyncio.sleep(self.interval)

    async def run_cycle(self) -> Optional[OrderResponse]:
        users, products = await asyncio.gather(
            self.user_client.fetch_all(),
            self.product_client.fetch_all()
        )
        logger.info(f"Fetched {len(products)} products and {len(users)} users for order generation")

        if not users or not products:
            logger.warning(
                f"Cannot create order. Products count: {len(products)}, Users count: {len(users)}"
            )
            return None

        order_data = self.build_random_order(users, products)

        async with self.session_maker() as session:
            service = OrderService(OrderRepository(session), self.hub)
            return await service.create_order(order_data)

    def build_random_order(self, users: Sequence[UserDto], products: Sequence[ProductDto]) -> OrderCreate:
        user = self.rng.choice(users)
        product = self.rng.choice(products)
        quantity = self.rng.randint(MIN_QUANTITY, MAX_QUANTITY)

        return OrderCreate(
            user_id=user.id,
            product_id=product.id,
            product_price=product.price,
            quantity=quantity
        )
