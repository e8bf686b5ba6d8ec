import logging
from aio_pika import connect_robust, IncomingMessage, ExchangeType
from aio_pika.abc import AbstractRobustConnection
from pydantic import ValidationError

from orderhub.core.broker import ORDERS_EXCHANGE
from orderhub.core.config import settings
from orderhub.schemas.events import OrderChangedEvent
from orderhub.services.live_updates import OrderStreamHub, order_stream_hub

logger = logging.getLogger(__name__)


class OrderEventConsumer:
    """Wakes local stream subscribers for order changes made by other instances."""

    def __init__(self, hub: OrderStreamHub) -> None:
        self.hub = hub
        self.connection: AbstractRobustConnection | None = None

    async def start(self) -> None:
        self.connection = await connect_robust(settings.rabbitmq_url)
        channel = await self.connection.channel()
        await channel.set_qos(prefetch_count=settings.rabbitmq_prefetch_count)

        exchange = await channel.declare_exchange(ORDERS_EXCHANGE, ExchangeType.TOPIC, durable=True)

        # one private queue per instance so every replica sees every change
        queue = await channel.declare_queue(exclusive=True, auto_delete=True)
        await queue.bind(exchange, routing_key="order.*")

        await queue.consume(self._process_message)
        logger.info(f"Started consuming order change events on {queue.name}")

    async def _process_message(self, message: IncomingMessage) -> None:
        try:
            event = OrderChangedEvent.model_validate_json(message.body)

            if event.source != settings.instance_id:
                self.hub.notify()
                logger.info(f"Received order.{event.change.value} event for order {event.order_id} from {event.source}")

            await message.ack()
        except ValidationError as e:
            logger.error(f"Validation error processing message: {e}", exc_info=True)
            await message.reject(requeue=False)
        except Exception as e:
            logger.error(f"Error processing message: {e}", exc_info=True)
            await message.reject(requeue=False)

    async def stop(self) -> None:
        if self.connection:
            await self.connection.close()
            logger.info("Stopped order event consumer")


consumer = OrderEventConsumer(order_stream_hub)
