"""Context variables for tracegraph.

This module contains context variables used across the library.
It is kept separate to avoid circular imports.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from ._config import TraceConfig

if TYPE_CHECKING:
    from collections.abc import Iterator
    from contextvars import Token

# Tracing options in effect for nodes created in the current context.
_trace_config_var: ContextVar[TraceConfig] = ContextVar("trace_config", default=TraceConfig())


def get_trace_config() -> TraceConfig:
    """Get the tracing options of the current context."""
    return _trace_config_var.get()


def set_trace_config(config: TraceConfig) -> Token[TraceConfig]:
    """Set the tracing options of the current context.

    Returns a token that can be used to reset the value.
    """
    return _trace_config_var.set(config)


def reset_trace_config(token: Token[TraceConfig]) -> None:
    """Reset the tracing options using a token from set_trace_config."""
    _trace_config_var.reset(token)


@contextmanager
def trace_config(**overrides: Any) -> Iterator[TraceConfig]:
    """Temporarily override fields of the current tracing options.

    Example:
        >>> with trace_config(capture_frames=True):
        ...     node = Constant(1.0, Shape.scalar(ElementType.F32))

    """
    config = replace(get_trace_config(), **overrides)
    token = set_trace_config(config)
    try:
        yield config
    finally:
        reset_trace_config(token)
