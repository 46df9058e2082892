import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from typing import List

from ..db.redis_client import COLLECTION_TYPES, RedisClient
from ..models.redis_models import User
from ..models.store_models import DARK_MODE_KEY
from .auth import get_current_user
from .dependencies import get_redis_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Change Notifications"])

WATCHABLE_KEYS = list(COLLECTION_TYPES) + [DARK_MODE_KEY]
KEEPALIVE_SECONDS = 15.0


@router.get("", summary="Server-sent stream of changed storage keys")
async def stream_changes(
    request: Request,
    keys: List[str] = Query(default=WATCHABLE_KEYS),
    user: User = Depends(get_current_user),
    redis_client: RedisClient = Depends(get_redis_client),
):
    """
    Emits one `change` event carrying the key name after every write to one
    of `keys`, so open dashboards know which collections to reload.
    """
    unknown = sorted(set(keys) - set(WATCHABLE_KEYS))
    if unknown:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown keys: {', '.join(unknown)}")

    async def event_stream():
        logger.info(f"User '{user.username}' subscribed to changes of {keys}.")
        async with redis_client.subscribe(keys) as changes:
            while not await request.is_disconnected():
                key = await changes.next_change(timeout=KEEPALIVE_SECONDS)
                if key is None:
                    yield ": keep-alive\n\n"
                else:
                    yield f"event: change\ndata: {key}\n\n"
        logger.info(f"User '{user.username}' left the change stream.")

    return StreamingResponse(event_stream(), media_type="text/event-stream")
