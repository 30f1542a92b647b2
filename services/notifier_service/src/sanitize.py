# src/sanitize.py
import hashlib
from typing import Any
from urllib.parse import urlsplit

SAFE_KEYS = {
    "event_type", "message_id", "resource_type", "function_name", "operation",
    "status", "status_code", "project_id", "resource_name", "host",
    "error", "error_type", "subscription", "delivery_attempt",
}
# Webhook URLs carry their auth token in the path
SECRET_URL_KEYS = {"webhook_url", "url"}
SENSITIVE_KEYS = {
    "authorization", "token", "headers", "content", "body", "data",
}

def hash_preview(s: str, n: int = 12) -> str:
    if not isinstance(s, str):
        s = str(s)
    return f"sha256={hashlib.sha256(s.encode('utf-8')).hexdigest()[:n]},len={len(s)}"

def url_preview(url: str) -> str:
    host = urlsplit(url).hostname or "?"
    return f"{host} ({hash_preview(url)})"

def sanitize_value(key: str, value: Any) -> Any:
    k = (key or "").lower()
    if value is None or k in SAFE_KEYS:
        return value
    if k in SECRET_URL_KEYS:
        return url_preview(str(value))
    if k in SENSITIVE_KEYS:
        return hash_preview(str(value))
    if isinstance(value, (bytes, bytearray)):
        return f"bytes:{len(value)}"
    if isinstance(value, str):
        return value if len(value) <= 120 else hash_preview(value)
    if isinstance(value, (int, float, bool)):
        return value
    if isinstance(value, dict):
        return {k: sanitize_value(k, v) for k, v in value.items()}
    if isinstance(value, list):
        return [sanitize_value("", v) for v in value]
    return str(value)
