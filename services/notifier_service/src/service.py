import base64
import binascii
import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

import httpx
from pydantic import ValidationError

from .exceptions import DecodeError, DeliveryTransportError, ExtractionError, PermanentError, RetryableError
from .logging import jlog
from .schemas import Completion, CompletionStatus, LogEntry, Notification

DEFAULT_MAX_CHARS = 2000

EMPTY_CONTENT_MESSAGE = "Event message's content is empty."
NOT_CONFIGURED_MESSAGE = "WEBHOOK_URL environment variable is not set"

# milli to nano range
_SUBSECONDS_RE = re.compile(r"\.[0-9]{3,9}Z")

# -----------------------
# Decode
# -----------------------

def decode_event(data: Union[str, bytes, None]) -> Optional[Dict[str, Any]]:
    """
    Decode a Pub/Sub message payload (base64 of UTF-8 JSON).
    Returns None when there is nothing to decode.
    """
    if not data:
        return None
    try:
        raw = base64.b64decode(data, validate=True)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError) as e:
        # ValueError covers UnicodeDecodeError and JSONDecodeError
        raise DecodeError(f"Invalid base64/json: {e}") from e

# -----------------------
# Extract and compose
# -----------------------

def normalize_timestamp(timestamp: str) -> str:
    """Drop a 3-9 digit fractional-seconds group before the trailing Z."""
    return _SUBSECONDS_RE.sub("Z", timestamp, count=1)

def parse_timestamp(timestamp: str) -> datetime:
    normalized = normalize_timestamp(timestamp)
    try:
        parsed = datetime.fromisoformat(normalized.replace("Z", "+00:00"))
    except ValueError as e:
        raise ExtractionError(f"Unparsable timestamp {timestamp!r}: {e}") from e
    # Audit log timestamps are UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

def _is_present(value: Any) -> bool:
    # JSON truthiness: {} and [] count, null/false/0/"" don't
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0
    if isinstance(value, str):
        return value != ""
    return True

def operation_name(method_name: str, request: Any = None) -> str:
    operation = method_name.split(".")[-1]
    if _is_present(request):
        operation += " Request"
    return operation

def extract_fields(record: Any) -> Notification:
    try:
        entry = LogEntry.model_validate(record)
    except ValidationError as e:
        raise ExtractionError(f"Unexpected event shape: {e.error_count()} error(s): {e}") from e

    payload = entry.protoPayload
    return Notification(
        resource_type=entry.resource.type,
        function_name=entry.resource.labels.function_name,
        operation=operation_name(payload.methodName, payload.request),
        authentication_email=payload.authenticationInfo.principalEmail,
        date_time=parse_timestamp(entry.timestamp),
        resource_name=payload.resourceName,
        project_id=entry.resource.labels.project_id,
    )

def compose_message(notification: Notification, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    content = (
        f"{notification.resource_type}: {notification.function_name}\n"
        f"operation: {notification.operation}\n"
        f"authentication: {notification.authentication_email}\n"
        f"{notification.date_time}\n"
    )
    return content[:max_chars]

# -----------------------
# Deliver
# -----------------------

async def deliver(
    client: httpx.AsyncClient,
    content: str,
    webhook_url: Optional[str],
) -> Completion:
    """
    Single best-effort POST of {"content": ...} to the webhook.
    Any HTTP response counts as delivered; the status code is surfaced, not judged.
    """
    if not webhook_url:
        jlog(event="webhook_not_configured", severity="WARNING")
        return Completion(status=CompletionStatus.NOT_CONFIGURED, message=NOT_CONFIGURED_MESSAGE)

    try:
        resp = await client.post(
            webhook_url,
            json={"content": content},
            headers={"Content-Type": "application/json"},
        )
    except httpx.RequestError as e:
        jlog(event="webhook_transport_error", severity="ERROR", webhook_url=webhook_url, error=str(e))
        raise DeliveryTransportError(f"An error occurred sending the event to the webhook: {e}") from e

    jlog(event="webhook_delivered", webhook_url=webhook_url, status_code=resp.status_code)
    return Completion(
        status=CompletionStatus.DELIVERED,
        status_code=resp.status_code,
        message=f"statusCode: {resp.status_code}",
    )

# -----------------------
# Invocation boundary
# -----------------------

def _failed(e: Exception) -> Completion:
    return Completion(
        status=CompletionStatus.FAILED,
        error=str(e),
        error_type=type(e).__name__,
        retryable=isinstance(e, RetryableError),
    )

async def relay_event(
    data: Union[str, bytes, None],
    webhook_url: Optional[str],
    client: httpx.AsyncClient,
    *,
    max_chars: int = DEFAULT_MAX_CHARS,
    message_id: Optional[str] = None,
) -> Completion:
    """
    One inbound message in, at most one webhook call out, exactly one Completion back.
    Errors from any step are logged here and reported as a FAILED completion.
    """
    try:
        if not data:
            jlog(event="event_empty", message_id=message_id)
            return Completion(status=CompletionStatus.EMPTY, message=EMPTY_CONTENT_MESSAGE)

        # A decoded JSON null is not "empty"; extraction rejects it
        record = decode_event(data)
        jlog(event="event_decoded", message_id=message_id, keys=sorted(record) if isinstance(record, dict) else None)

        notification = extract_fields(record)
        content = compose_message(notification, max_chars=max_chars)

        jlog(
            event="notification_composed",
            message_id=message_id,
            resource_type=notification.resource_type,
            function_name=notification.function_name,
            operation=notification.operation,
            project_id=notification.project_id,
            resource_name=notification.resource_name,
            content=content,
        )

        return await deliver(client, content, webhook_url)
    except Exception as e:
        jlog(
            event="relay_failed",
            severity="ERROR",
            message_id=message_id,
            error_type=type(e).__name__,
            retryable=isinstance(e, RetryableError),
            unexpected=not isinstance(e, (PermanentError, RetryableError)),
            error=str(e),
        )
        return _failed(e)
