from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import requests

from .base import (
    BackendError,
    BackendKind,
    ConfigurationMissing,
    EmptyResponse,
    ProtocolFailure,
    TransportFailure,
)
from .context import CallContext
from .transport import CancellableSession

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:11434"
DEFAULT_MODEL = "phi3.5:3.8b"
PROBE_TIMEOUT_SECONDS = 5.0
WARMUP_TIMEOUT_SECONDS = 120.0
WARMUP_PROMPT = "Hello"


class LocalInferenceBackend:
    """Client for a local Ollama-style ``/api/generate`` endpoint (non-streaming)."""

    kind = BackendKind.LOCAL

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        model: str = DEFAULT_MODEL,
        *,
        timeout_seconds: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.endpoint = (endpoint or DEFAULT_ENDPOINT).rstrip("/")
        self.model = model or DEFAULT_MODEL
        self.timeout = float(timeout_seconds)
        self._session = session or CancellableSession()

    # ------------------------------------------------------------------
    def generate(self, ctx: CallContext, prompt: str) -> str:
        if not self.endpoint:
            raise ConfigurationMissing("local endpoint not configured", backend=self.kind)
        if ctx.cancelled:
            raise TransportFailure("request cancelled before send", backend=self.kind)

        payload = {"model": self.model, "prompt": prompt, "stream": False}
        unregister = ctx.on_cancel(self._session.close)
        try:
            response = self._session.post(
                f"{self.endpoint}/api/generate",
                json=payload,
                timeout=ctx.bounded_timeout(self.timeout),
            )
        except requests.RequestException as exc:
            if ctx.cancelled:
                raise TransportFailure("request cancelled", backend=self.kind) from exc
            raise TransportFailure(f"failed to send request: {exc}", backend=self.kind) from exc
        finally:
            unregister()
        if ctx.cancelled:
            response.close()
            raise TransportFailure("request cancelled", backend=self.kind)

        if response.status_code != 200:
            raise ProtocolFailure(f"ollama API returned status: {response.status_code}", backend=self.kind)
        try:
            data: Dict[str, Any] = response.json()
        except ValueError as exc:
            raise ProtocolFailure(f"failed to decode response: {exc}", backend=self.kind) from exc
        if not isinstance(data, dict):
            raise ProtocolFailure("response is not a JSON object", backend=self.kind)

        text = data.get("response")
        if not isinstance(text, str) or not text.strip():
            raise EmptyResponse("empty response from local model", backend=self.kind)
        return text

    def is_available(self) -> bool:
        try:
            response = self._session.get(f"{self.endpoint}/api/version", timeout=PROBE_TIMEOUT_SECONDS)
        except requests.RequestException as exc:
            logger.debug("Local availability probe failed: %s", exc)
            return False
        return response.status_code == 200

    # ------------------------------------------------------------------
    def warmup(self, *, debug: bool = False, session: Optional[requests.Session] = None) -> threading.Thread:
        """Load the model into memory ahead of the first real request.

        Fire-and-forget: runs on a daemon thread so it never delays startup or
        process exit. The outcome is only reported when *debug* is set. The
        warmup talks over its own session so cancelling a real request never
        tears down the warmup connection, and the reverse.
        """
        warmer = LocalInferenceBackend(
            self.endpoint,
            self.model,
            timeout_seconds=WARMUP_TIMEOUT_SECONDS,
            session=session,
        )

        def _run() -> None:
            if not warmer.is_available():
                if debug:
                    logger.info("Model warmup skipped: %s unreachable", self.endpoint)
                return
            try:
                with CallContext.root(WARMUP_TIMEOUT_SECONDS) as ctx:
                    warmer.generate(ctx, WARMUP_PROMPT)
            except BackendError as exc:
                if debug:
                    logger.info("Model warmup failed: %s", exc.cause)
                return
            if debug:
                logger.info("Model %s warmed up", self.model)

        thread = threading.Thread(target=_run, name="parrot_warmup", daemon=True)
        thread.start()
        return thread
