"""Utilities for context tracing of nested chart operations."""

import contextvars
from contextlib import contextmanager
import logging
from time import perf_counter
from typing import Generator


_LOGGER = logging.getLogger(__name__)

# No public API
__all__: list[str] = []


trace: contextvars.ContextVar[list[str]] = contextvars.ContextVar("trace")


@contextmanager
def trace_context(name: str) -> Generator[None, None, None]:
    """Log entry and exit of a named step, nested under the enclosing steps."""
    stack = trace.get([])
    token = trace.set(stack + [name])
    label = " > ".join(stack + [name])
    t1 = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield
    except Exception:
        _LOGGER.debug("[Trace] ! %s failed (%0.2fs)", label, perf_counter() - t1)
        raise
    else:
        _LOGGER.debug("[Trace] < %s (%0.2fs)", label, perf_counter() - t1)
    finally:
        trace.reset(token)
