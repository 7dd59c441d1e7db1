"""Simple span helper for timing upstream calls."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from .logger import log_event


@contextmanager
def span(session_id: str, name: str, **fields: Any) -> Iterator[None]:
    """Log the wall-clock duration of the wrapped block as a ``span`` event."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        log_event("span", session_id, name=name, ms=elapsed_ms, **fields)


__all__ = ["span"]
