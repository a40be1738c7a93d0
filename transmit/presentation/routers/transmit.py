"""Transmit HTTP endpoints.

    GET  /events?uid=<id>   open the event stream
    POST /subscribe         {"uid": ..., "channel": ...}
    POST /unsubscribe       {"uid": ..., "channel": ...}

The prefix (``/__transmit`` by default) is applied when the router is
included. The request object is the authorization context handed to
channel authorization callbacks.
"""

import asyncio
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from transmit.application.transmit import Transmit
from transmit.core.constants import SSE_MEDIA_TYPE
from transmit.core.container import get_transmit
from transmit.core.enums import ErrorCode
from transmit.core.errors import AuthorizationError, ValidationError
from transmit.infrastructure.sse.stream import sse_headers
from transmit.presentation.problem_details import problem_response

router = APIRouter(tags=["transmit"])


class ChannelRequest(BaseModel):
    """Body of subscribe/unsubscribe requests.

    Fields are optional here so that missing values produce a 400 problem
    response rather than FastAPI's 422.
    """

    uid: str | None = None
    channel: str | None = None


def _validate(request: Request, body: ChannelRequest) -> Response | tuple[str, str]:
    if not body.uid:
        return problem_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            ValidationError(
                code=ErrorCode.STREAM_UID_MISSING,
                message="Missing stream uid",
                field="uid",
            ),
        )
    if not body.channel:
        return problem_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            ValidationError(
                code=ErrorCode.CHANNEL_MISSING,
                message="Missing channel",
                field="channel",
            ),
        )
    return body.uid, body.channel


@router.get("/events", response_model=None)
async def get_events(
    request: Request,
    transmit: Annotated[Transmit, Depends(get_transmit)],
    uid: Annotated[str | None, Query(description="Client-chosen stream id")] = None,
) -> Response:
    """Open a Server-Sent Events stream.

    Headers are sent first, then the priming comment, then one frame per
    message. When the client goes away the stream is removed from every
    channel.
    """
    if not uid:
        return problem_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            ValidationError(
                code=ErrorCode.STREAM_UID_MISSING,
                message="Missing stream uid",
                field="uid",
            ),
        )

    stream = await transmit.create_stream(uid)

    async def event_generator() -> AsyncGenerator[bytes, None]:
        try:
            async for frame in stream.frames():
                yield frame
        finally:
            # Runs during cancellation on client disconnect
            await asyncio.shield(transmit.close_stream(stream))

    return StreamingResponse(
        event_generator(),
        media_type=SSE_MEDIA_TYPE,
        headers=sse_headers(),
    )


@router.post("/subscribe", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def subscribe(
    request: Request,
    body: ChannelRequest,
    transmit: Annotated[Transmit, Depends(get_transmit)],
) -> Response:
    """Subscribe a stream to a channel (401 when denied or unknown uid)."""
    validated = _validate(request, body)
    if isinstance(validated, Response):
        return validated

    uid, channel = validated
    if not await transmit.subscribe_to_channel(uid, channel, request):
        return problem_response(
            request,
            status.HTTP_401_UNAUTHORIZED,
            AuthorizationError(
                code=ErrorCode.CHANNEL_SUBSCRIPTION_DENIED,
                message="Subscription refused",
                channel=channel,
            ),
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/unsubscribe", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def unsubscribe(
    request: Request,
    body: ChannelRequest,
    transmit: Annotated[Transmit, Depends(get_transmit)],
) -> Response:
    """Unsubscribe a stream from a channel."""
    validated = _validate(request, body)
    if isinstance(validated, Response):
        return validated

    uid, channel = validated
    await transmit.unsubscribe_from_channel(uid, channel)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
