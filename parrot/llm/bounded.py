"""Run one manager call under a hard wall-clock deadline.

The call runs on a daemon thread and hands its result back through a
single-slot queue. The supervisor waits on that queue: first up to the
"thinking" threshold, then (after printing the indicator) up to the overall
deadline. On expiry the context is cancelled, the worker is abandoned
without joining it, and the fallback tier answers synchronously.
"""

from __future__ import annotations

import logging
import queue
import sys
import threading
from typing import IO, Optional

from .base import BackendKind, GenerationRequest, GenerationResult
from .context import CallContext
from .manager import LLMManager

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE_SECONDS = 2.0
THINKING_AFTER_SECONDS = 0.5
THINKING_INDICATOR = "\U0001F4AD"

_PENDING = object()

_BACKEND_LABELS = {
    BackendKind.API: "API",
    BackendKind.LOCAL: "Local",
    BackendKind.FALLBACK: "Fallback",
}


def generate_with_deadline(
    manager: LLMManager,
    request: GenerationRequest,
    *,
    deadline: float = DEFAULT_DEADLINE_SECONDS,
    thinking_after: float = THINKING_AFTER_SECONDS,
    stream: Optional[IO[str]] = None,
) -> GenerationResult:
    stream = stream if stream is not None else sys.stdout
    slot: "queue.Queue[Optional[GenerationResult]]" = queue.Queue(maxsize=1)
    ctx = CallContext.root(deadline)

    def _worker() -> None:
        try:
            result: Optional[GenerationResult] = manager.generate(ctx, request)
        except Exception:
            logger.exception("Generation worker crashed")
            result = None
        try:
            slot.put_nowait(result)
        except queue.Full:  # pragma: no cover - single producer
            pass

    worker = threading.Thread(target=_worker, name="parrot_generate", daemon=True)
    worker.start()

    try:
        result = _await(slot, min(thinking_after, deadline))
        if result is _PENDING and thinking_after < deadline:
            stream.write(THINKING_INDICATOR)
            stream.flush()
            result = _await(slot, ctx.remaining())
    finally:
        ctx.cancel()

    if result is _PENDING:
        _trace(manager, "Deadline of %.1fs reached; using fallback", deadline)
        return manager.fallback(request.command_category)
    if result is None:
        return manager.fallback(request.command_category)
    _trace(manager, "%s backend used", _BACKEND_LABELS[result.backend])
    return result


def _await(slot: "queue.Queue[Optional[GenerationResult]]", timeout: Optional[float]):
    try:
        return slot.get(timeout=max(0.0, timeout or 0.0))
    except queue.Empty:
        return _PENDING


def _trace(manager: LLMManager, msg: str, *args) -> None:
    logger.log(logging.INFO if manager.debug else logging.DEBUG, msg, *args)
