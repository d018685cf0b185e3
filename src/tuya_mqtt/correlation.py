"""
Correlation ids for tracing one MQTT message or device event through the bridge.

The id lives in a context variable, so every task spawned while handling a message
inherits it and the device response can be matched with the topic that caused it.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager

__all__ = [
    "correlation_context",
    "ensure_correlation_id",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "tuya_mqtt_correlation_id",
    default=None,
)


def generate_correlation_id() -> str:
    """Return a new id (uuid4 hex, 32 chars)."""
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None) -> None:
    _ = _correlation_id.set(correlation_id)


@contextmanager
def correlation_context(
    correlation_id: str | None = None,
    auto_generate: bool = True,
) -> Generator[str | None]:
    """
    Scope a correlation id to a block and restore the previous one afterwards.

    Args:
        correlation_id: Id to use; a new one is generated when None and auto_generate is set
        auto_generate: Generate an id when none is given

    Yields:
        The correlation id active inside the block

    Example:
        with correlation_context() as corr_id:
            await router.handle_message(topic, payload)
    """
    if correlation_id is None and auto_generate:
        correlation_id = generate_correlation_id()

    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


def ensure_correlation_id() -> str:
    """Return the current id, generating and storing one first if none is set."""
    current_id = get_correlation_id()
    if current_id is None:
        current_id = generate_correlation_id()
        set_correlation_id(current_id)
    return current_id
