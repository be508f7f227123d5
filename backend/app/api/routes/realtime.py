"""Realtime Route - WebSocket fan-out of domain events.

Invariants:
    - Each connection subscribes on accept and unsubscribes on disconnect
    - Messages are {"event": <name>, "data": <record>} JSON frames, in publish order
    - No replay: a client sees only events published after it connected
    - The client-reader task is always awaited; its failures are logged, never lost
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)
router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def events(websocket: WebSocket):
    hub = websocket.app.state.hub
    await websocket.accept()
    async with hub.subscribe() as subscription:
        logger.info("Observer connected", extra={"observers": hub.observer_count})
        receiver = asyncio.create_task(_drain_client(websocket))
        try:
            while not receiver.done():
                next_event = asyncio.create_task(subscription.next())
                done, _ = await asyncio.wait(
                    {next_event, receiver}, return_when=asyncio.FIRST_COMPLETED,
                )
                if next_event in done:
                    await websocket.send_json(next_event.result())
                else:
                    next_event.cancel()
        except WebSocketDisconnect:
            pass
        finally:
            await settle_receiver(receiver)
    logger.info("Observer disconnected", extra={"observers": hub.observer_count})


async def _drain_client(websocket: WebSocket) -> None:
    """Read and discard client frames until the socket closes."""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


async def settle_receiver(receiver: asyncio.Task) -> None:
    """Cancel the reader if still running and collect its outcome."""
    receiver.cancel()
    (outcome,) = await asyncio.gather(receiver, return_exceptions=True)
    if isinstance(outcome, Exception):
        logger.error(
            "WebSocket reader failed: %s", outcome,
            exc_info=(type(outcome), outcome, outcome.__traceback__),
        )
