import logging
from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import StreamingResponse
from pydantic import TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderhub.core.config import settings
from orderhub.core.database import get_db, get_session_maker
from orderhub.repositories.order import OrderRepository
from orderhub.schemas.order import OrderCreate, OrderResponse, OrderUpdate, OrderWithDetails
from orderhub.services.catalog import (
    ProductCatalogClient,
    UserCatalogClient,
    get_product_client,
    get_user_client,
)
from orderhub.services.live_updates import OrderStreamHub, SnapshotLoader, order_stream_hub
from orderhub.services.order import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])

_snapshot_adapter = TypeAdapter(List[OrderWithDetails])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def get_stream_hub() -> OrderStreamHub:
    return order_stream_hub


def get_order_service(
    db: AsyncSession = Depends(get_db),
    hub: OrderStreamHub = Depends(get_stream_hub)
) -> OrderService:
    return OrderService(OrderRepository(db), hub)


def format_sse(snapshot: Optional[List[OrderWithDetails]]) -> str:
    if snapshot is None:
        return ": keepalive\n\n"
    payload = _snapshot_adapter.dump_json(snapshot, by_alias=True).decode()
    return f"data: {payload}\n\n"


async def stream_order_events(
    request: Request,
    hub: OrderStreamHub,
    load_snapshot: SnapshotLoader,
    keepalive: Optional[float] = None
) -> AsyncIterator[str]:
    subscription = hub.subscribe(load_snapshot, keepalive=keepalive)
    try:
        async for snapshot in subscription:
            if await request.is_disconnected():
                logger.info("Order stream client disconnected")
                break
            yield format_sse(snapshot)
    finally:
        await subscription.aclose()


@router.get("", response_model=List[OrderResponse])
async def list_orders(
    service: OrderService = Depends(get_order_service)
) -> List[OrderResponse]:
    return await service.list_orders()


@router.get("/details", response_model=List[OrderWithDetails])
async def list_orders_with_details(
    service: OrderService = Depends(get_order_service),
    user_client: UserCatalogClient = Depends(get_user_client),
    product_client: ProductCatalogClient = Depends(get_product_client)
) -> List[OrderWithDetails]:
    return await service.get_orders_with_details(user_client, product_client)


@router.get("/stream")
async def stream_orders(
    request: Request,
    hub: OrderStreamHub = Depends(get_stream_hub),
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
    user_client: UserCatalogClient = Depends(get_user_client),
    product_client: ProductCatalogClient = Depends(get_product_client)
) -> StreamingResponse:
    # each push reads through its own session; the request one is long gone by then
    async def load_snapshot() -> List[OrderWithDetails]:
        async with session_maker() as session:
            service = OrderService(OrderRepository(session), hub)
            return await service.get_orders_with_details(user_client, product_client)

    return StreamingResponse(
        stream_order_events(request, hub, load_snapshot, keepalive=settings.stream_keepalive_seconds),
        media_type="text/event-stream",
        headers=SSE_HEADERS
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    service: OrderService = Depends(get_order_service)
) -> OrderResponse:
    order = await service.get_order(order_id)
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order {order_id} not found"
        )
    return order


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    service: OrderService = Depends(get_order_service)
) -> OrderResponse:
    return await service.create_order(order_data)


@router.put("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: str,
    order_data: OrderUpdate,
    service: OrderService = Depends(get_order_service)
) -> OrderResponse:
    order = await service.update_order(order_id, order_data)
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order {order_id} not found"
        )
    return order


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(
    order_id: str,
    service: OrderService = Depends(get_order_service)
) -> Response:
    if not await service.delete_order(order_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order {order_id} not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
