from fastapi import APIRouter, Depends, WebSocket

from zenqa.services.broadcaster import Broadcaster, get_broadcaster

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
async def relay(
    websocket: WebSocket,
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    await broadcaster.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            # frames carry either text or bytes, relayed as received
            payload = message.get("text")
            if payload is None:
                payload = message.get("bytes")
            if payload is not None:
                await broadcaster.broadcast(payload)
    finally:
        broadcaster.disconnect(websocket)
