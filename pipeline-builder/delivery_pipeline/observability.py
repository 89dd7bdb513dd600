import contextvars
import logging
from contextlib import contextmanager
from typing import Any, Iterator

from delivery_pipeline.redaction import redact_text


pipeline_ctx = contextvars.ContextVar("pipeline", default="")
_logger = logging.getLogger("delivery_pipeline.obs")


def get_pipeline_name() -> str:
    return pipeline_ctx.get() or ""


@contextmanager
def pipeline_scope(name: str) -> Iterator[None]:
    token = pipeline_ctx.set(name)
    try:
        yield
    finally:
        pipeline_ctx.reset(token)


def log_event(event: str, **fields: Any) -> None:
    payload = {"event": event, "pipeline": get_pipeline_name()}
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, str):
            payload[key] = redact_text(value)
        elif isinstance(value, (list, tuple)):
            payload[key] = ",".join(redact_text(str(item)) for item in value)
        else:
            payload[key] = value
    parts = [f"{key}={payload[key]}" for key in sorted(payload.keys())]
    _logger.info(" ".join(parts))
