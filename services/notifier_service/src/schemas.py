from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel

# Pub/Sub push envelope

class PubSubMessage(BaseModel):
    data: Optional[str] = None             # base64; absent means "empty content"
    messageId: Optional[str] = None
    publishTime: Optional[str] = None      # RFC3339
    attributes: Optional[Dict[str, str]] = None

class PubSubEnvelope(BaseModel):
    message: PubSubMessage
    subscription: Optional[str] = None

# Cloud Audit Log entry (only the fields the notifier reads)

class ResourceLabels(BaseModel):
    function_name: str
    project_id: Optional[str] = None

class MonitoredResource(BaseModel):
    type: str
    labels: ResourceLabels

class AuthenticationInfo(BaseModel):
    principalEmail: str

class AuditPayload(BaseModel):
    methodName: str
    authenticationInfo: AuthenticationInfo
    request: Any = None                    # presence marker only
    resourceName: Optional[str] = None

class LogEntry(BaseModel):
    resource: MonitoredResource
    protoPayload: AuditPayload
    timestamp: str

class Notification(BaseModel):
    resource_type: str
    function_name: str
    operation: str
    authentication_email: str
    date_time: datetime
    # Logged, not rendered
    resource_name: Optional[str] = None
    project_id: Optional[str] = None

# Outcome of one invocation

class CompletionStatus(str, Enum):
    DELIVERED = "delivered"
    EMPTY = "empty"
    NOT_CONFIGURED = "not_configured"
    FAILED = "failed"

class Completion(BaseModel):
    status: CompletionStatus
    message: Optional[str] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    retryable: bool = False

    @property
    def ok(self) -> bool:
        return self.status != CompletionStatus.FAILED
