import base64
import copy
import json

import httpx
import pytest

WEBHOOK_URL = "https://discord.test/api/webhooks/123/secret-token"

SNAPSHOT_EVENT = {
    "resource": {
        "type": "gce_instance",
        "labels": {"function_name": "snapshot-fn", "project_id": "demo-project"},
    },
    "protoPayload": {
        "methodName": "v1.compute.disks.createSnapshot",
        "request": {},
        "authenticationInfo": {"principalEmail": "svc@example.com"},
        "resourceName": "projects/demo-project/zones/us-central1-a/disks/disk-1",
    },
    "timestamp": "2020-01-01T00:00:00.123456789Z",
}

EXPECTED_CONTENT = (
    "gce_instance: snapshot-fn\n"
    "operation: createSnapshot Request\n"
    "authentication: svc@example.com\n"
    "2020-01-01 00:00:00+00:00\n"
)

def encode(obj) -> str:
    return base64.b64encode(json.dumps(obj).encode("utf-8")).decode("ascii")

@pytest.fixture
def anyio_backend():
    return "asyncio"

@pytest.fixture
def event():
    return copy.deepcopy(SNAPSHOT_EVENT)

class FakeWebhook:
    """Records every request and answers with a fixed status (or raises)."""

    def __init__(self, status_code: int = 204, exc: Exception | None = None):
        self.status_code = status_code
        self.exc = exc
        self.requests: list[httpx.Request] = []
        self.clients: list[httpx.AsyncClient] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code)

    def client(self) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self))
        self.clients.append(client)
        return client

@pytest.fixture
def webhook():
    return FakeWebhook()
