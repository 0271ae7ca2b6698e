"""Live catalog endpoints.

WebSocket endpoints that push the current value on connect and again
after every change, until the client disconnects.
"""

import asyncio
from collections.abc import Callable
from typing import Any

import structlog
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from storefront.api.products import product_to_response
from storefront.catalog.service import CatalogService
from storefront.catalog.subscriptions import SubscriptionStream
from storefront.domain.entities import Product

logger = structlog.get_logger()

router = APIRouter(prefix="/ws", tags=["Live"])


def render_product(product: Product | None) -> dict[str, Any]:
    return {
        "type": "product",
        "product": product_to_response(product).model_dump(mode="json") if product else None,
    }


def render_products(products: list[Product]) -> dict[str, Any]:
    return {
        "type": "products",
        "items": [product_to_response(p).model_dump(mode="json") for p in products],
        "count": len(products),
    }


async def forward(websocket: WebSocket, stream: SubscriptionStream, render: Callable[[Any], dict[str, Any]]) -> None:
    """Send stream deliveries to the client until either side stops.

    Args:
        websocket: Accepted connection.
        stream: Subscription stream to drain.
        render: Converts a delivery to a JSON message.
    """

    async def pump() -> None:
        async for value in stream:
            await websocket.send_json(render(value))

    async def wait_for_disconnect() -> None:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return

    tasks = {asyncio.create_task(pump()), asyncio.create_task(wait_for_disconnect())}
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                logger.warning("Live connection failed", path=websocket.url.path, error=str(error))
    finally:
        stream.close()
        logger.info("Live connection closed", path=websocket.url.path)


@router.websocket("/products/{product_id}")
async def watch_product(websocket: WebSocket, product_id: str) -> None:
    """Push a product on connect and whenever it changes.

    Messages have the form ``{"type": "product", "product": {...}}``;
    ``product`` is null while the product does not exist.
    """
    service: CatalogService = websocket.app.state.catalog_service
    await websocket.accept()
    logger.info("Live product connection opened", product_id=product_id)
    await forward(websocket, service.stream_product(product_id), render_product)


@router.websocket("/categories/{category}/products")
async def watch_category(
    websocket: WebSocket,
    category: str,
    limit: int = Query(default=6, ge=1, le=100),
) -> None:
    """Push the newest products of a category on connect and on change.

    Messages have the form ``{"type": "products", "items": [...], "count": n}``.
    """
    service: CatalogService = websocket.app.state.catalog_service
    await websocket.accept()
    logger.info("Live category connection opened", category=category, limit=limit)
    await forward(websocket, service.stream_products_by_category(category, limit), render_products)
