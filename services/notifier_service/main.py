import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from .src.routers import events
from .src.config import settings
from .otel import init_tracing

def build_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.webhook_timeout_s, http2=True)

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Shared HTTP client for webhook delivery
    httpx_client = build_http_client()
    app.state.httpx_client = httpx_client
    try:
        yield
    finally:
        await httpx_client.aclose()

app = FastAPI(title="Snapshot Notifier API", version="1.0.0", lifespan=lifespan)

# Routers
app.include_router(events.router)

os.environ.setdefault("SERVICE_NAME", settings.service_name)
tracer = init_tracing(app, service_name=settings.service_name, service_version="v1")

@app.get("/health")
def health():
    return {"status": "ok", "service": settings.service_name}
