import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orderhub.core.logging import setup_logging
from orderhub.core.broker import broker
from orderhub.core.config import settings
from orderhub.core.database import engine, async_session_maker
from orderhub.models import Base
from orderhub.api.orders import router as orders_router
from orderhub.api.health import router as health_router
from orderhub.services.catalog import get_product_client, get_user_client
from orderhub.services.consumer import consumer
from orderhub.services.generator import OrderGenerator
from orderhub.services.live_updates import order_stream_hub

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await broker.connect()
    try:
        await consumer.start()
    except Exception:
        logger.error("Failed to start order event consumer", exc_info=True)
        await broker.close()
        raise

    generator = OrderGenerator(
        async_session_maker,
        get_user_client(),
        get_product_client(),
        order_stream_hub,
        interval=settings.order_generator_interval_seconds
    )
    if settings.order_generator_enabled:
        await generator.start()
    else:
        logger.info("Order generator disabled")

    yield

    await generator.stop()
    order_stream_hub.close()
    await consumer.stop()
    await broker.close()
    await engine.dispose()


app = FastAPI(
    title="Order Service",
    description="Order management microservice with live order updates",
    version="0.1.0",
    lifespan=lifespan
)

cors_origins = settings.cors_origins.split(",") if settings.cors_origins else ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(orders_router)
