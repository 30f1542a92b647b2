from opentelemetry import trace
import os, logging, time, json

from .config import settings
from .sanitize import sanitize_value

SERVICE_NAME = os.getenv("SERVICE_NAME", settings.service_name)
ENV = os.getenv("ENVIRONMENT", settings.environment)

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
# httpx logs the full request URL, which carries the webhook token
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
_logger = logging.getLogger(SERVICE_NAME)

def jlog(event: str = "", severity: str = "INFO", **fields):
    span = trace.get_current_span()
    ctx = span.get_span_context() if span else None
    trace_id = f"{ctx.trace_id:032x}" if ctx and ctx.trace_id else None
    span_id = f"{ctx.span_id:016x}" if ctx and ctx.span_id else None

    record = {
        "event": event,
        "severity": severity,
        "service": SERVICE_NAME,
        "env": ENV,
        "ts": time.time(),
        "trace_id": trace_id,
        "span_id": span_id,
    }
    record.update({k: sanitize_value(k, v) for k, v in fields.items()})
    _logger.log(getattr(logging, severity, logging.INFO), json.dumps(record, ensure_ascii=False, default=str))
