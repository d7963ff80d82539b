"""Live progress over WebSocket.

WS /api/ws/articles/{article_id}
WS /api/ws/keyword-researches/{research_id}

The socket is subscribed before the snapshot is read, so no event published in
between is lost. The snapshot carries the durable progress log for keyword
researches; afterwards every live event is relayed until the target reaches a
terminal status or the client goes away. The socket is read alongside the
relay, so a client that disconnects while the target is quiet releases its
subscription straight away.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from backend.routes.deps import registry_dependency, store_dependency
from seogen.models import Article, GenerationTarget, KeywordResearch
from seogen.pipelines.state import TERMINAL
from seogen.progress import SubscriberRegistry, build_event
from seogen.store import EntityStore

logger = logging.getLogger(__name__)
router = APIRouter()

NOT_FOUND_CLOSE_CODE = 4404
POLL_SECONDS = 1.0


async def _forward(websocket: WebSocket, sub) -> None:
    while True:
        event = await asyncio.to_thread(sub.get, POLL_SECONDS)
        if event is None:
            continue
        await websocket.send_json(event)
        if event.get("status") in TERMINAL:
            return


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def _relay(
    websocket: WebSocket,
    model: type[GenerationTarget],
    entity_id: str,
    store: EntityStore,
    registry: SubscriberRegistry,
) -> None:
    await websocket.accept()
    sub = registry.subscribe(f"{model.collection}:{entity_id}")
    try:
        target = store.get(model, entity_id)
        if target is None:
            await websocket.close(code=NOT_FOUND_CLOSE_CODE)
            return
        await websocket.send_json(build_event(target))
        if target.is_terminal:
            await websocket.close()
            return

        forward = asyncio.create_task(_forward(websocket, sub))
        watch = asyncio.create_task(_wait_for_disconnect(websocket))
        done, pending = await asyncio.wait({forward, watch}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if forward in done:
            forward.result()
            await websocket.close()
        else:
            logger.debug("Client left %s:%s", model.collection, entity_id)
    except WebSocketDisconnect:
        logger.debug("Client left %s:%s", model.collection, entity_id)
    finally:
        registry.unsubscribe(sub)


@router.websocket("/ws/articles/{article_id}")
async def article_updates(
    websocket: WebSocket,
    article_id: str,
    store: EntityStore = Depends(store_dependency),
    registry: SubscriberRegistry = Depends(registry_dependency),
):
    await _relay(websocket, Article, article_id, store, registry)


@router.websocket("/ws/keyword-researches/{research_id}")
async def keyword_research_updates(
    websocket: WebSocket,
    research_id: str,
    store: EntityStore = Depends(store_dependency),
    registry: SubscriberRegistry = Depends(registry_dependency),
):
    await _relay(websocket, KeywordResearch, research_id, store, registry)
