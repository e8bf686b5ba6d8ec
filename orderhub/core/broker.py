import logging
from typing import Optional
import aio_pika
from aio_pika import ExchangeType
from aio_pika.abc import AbstractRobustConnection, AbstractRobustChannel

from orderhub.core.config import settings

logger = logging.getLogger(__name__)

ORDERS_EXCHANGE = "orders"


class RabbitMQBroker:
    def __init__(self) -> None:
        self.connection: Optional[AbstractRobustConnection] = None
        self.channel: Optional[AbstractRobustChannel] = None

    @property
    def is_connected(self) -> bool:
        return self.connection is not None and not self.connection.is_closed

    async def connect(self) -> None:
        self.connection = await aio_pika.connect_robust(settings.rabbitmq_url)
        self.channel = await self.connection.channel()

        await self.channel.declare_exchange(
            ORDERS_EXCHANGE,
            ExchangeType.TOPIC,
            durable=True
        )

        logger.info("Connected to RabbitMQ")

    async def close(self) -> None:
        if self.channel:
            await self.channel.close()
        if self.connection:
            await self.connection.close()
        logger.info("Disconnected from RabbitMQ")

    async def publish(self, routing_key: str, message: bytes) -> None:
        if not self.channel:
            raise RuntimeError("Channel is not initialized")

        exchange = await self.channel.get_exchange(ORDERS_EXCHANGE)
        await exchange.publish(
            aio_pika.Message(
                body=message,
                content_type="application/json"
            ),
            routing_key=routing_key
        )
        logger.info(f"Published message to {routing_key}")


broker = RabbitMQBroker()
