from typing import Any, Dict

from anyio import to_thread

import httpx

from fastapi import APIRouter, HTTPException, Request

from google.oauth2 import id_token
from google.auth.transport import requests as ga_requests

from ..logging import jlog
from ..schemas import CompletionStatus, PubSubEnvelope
from ..config import settings
from ..service import relay_event

router = APIRouter()

async def _verify_pubsub_auth(request: Request) -> None:
    if not settings.pubsub_require_auth:
        return
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token")
    token = auth.split(" ", 1)[1]
    audience = settings.pubsub_push_audience or str(request.url)

    def _verify():
        req = ga_requests.Request()
        claims = id_token.verify_oauth2_token(token, req, audience=audience)
        iss = claims.get("iss")
        if iss not in ("https://accounts.google.com", "accounts.google.com"):
            raise ValueError("Invalid issuer")

    try:
        await to_thread.run_sync(_verify)
    except Exception as e:
        raise HTTPException(status_code=401, detail=f"Invalid Pub/Sub OIDC token: {e}")

@router.post("/events/pubsub")
async def pubsub_push(request: Request, envelope: PubSubEnvelope) -> Dict[str, Any]:
    """
    Pub/Sub push handler for snapshot audit-log events.
    Relays one message to the webhook. Failed completions map to 400 (bad event)
    or 502 (webhook unreachable) so the subscription sees the message as unhandled.
    """
    await _verify_pubsub_auth(request)
    delivery_attempt = request.headers.get("X-Goog-Delivery-Attempt")
    message = envelope.message

    jlog(
        event="pubsub_event_received",
        message_id=message.messageId,
        subscription=envelope.subscription,
        delivery_attempt=delivery_attempt,
    )

    client: httpx.AsyncClient = request.app.state.httpx_client
    completion = await relay_event(
        message.data,
        settings.webhook_url,
        client,
        max_chars=settings.content_max_chars,
        message_id=message.messageId,
    )

    if completion.status == CompletionStatus.FAILED:
        status_code = 502 if completion.retryable else 400
        raise HTTPException(status_code=status_code, detail=f"{completion.error_type}: {completion.error}")

    return completion.model_dump(mode="json", exclude_none=True)
