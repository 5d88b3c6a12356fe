from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from ..config.schema import ParrotConfig
from .base import Backend, BackendError, BackendKind, EmptyResponse, GenerationRequest, GenerationResult
from .cloud import RemoteAPIBackend
from .context import CallContext
from .fallback import fallback_response
from .local import LocalInferenceBackend
from .sanitize import sanitize

logger = logging.getLogger(__name__)

LOCAL_TIMEOUT_FLOOR_SECONDS = 30


class LLMManager:
    """Tries the API tier, then the local tier, then the canned fallback table.

    Built once per invocation from an immutable config snapshot. Tiers run
    strictly in order and a failed tier is never retried within one call.
    """

    def __init__(
        self,
        config: ParrotConfig,
        *,
        api_backend: Optional[Backend] = None,
        local_backend: Optional[Backend] = None,
        warm_up: bool = False,
    ) -> None:
        self.config = config
        self.debug = bool(config.general.debug)
        self.local_timeout = max(int(config.local.timeout_seconds), LOCAL_TIMEOUT_FLOOR_SECONDS)

        if api_backend is None and config.api.enabled:
            api_backend = RemoteAPIBackend(
                config.api.endpoint,
                config.api.api_key,
                config.api.model,
                timeout_seconds=config.api.timeout_seconds,
            )
        if local_backend is None and config.local.enabled:
            local_backend = LocalInferenceBackend(
                config.local.endpoint,
                config.local.model,
                timeout_seconds=self.local_timeout,
            )
        self.api_backend = api_backend
        self.local_backend = local_backend

        if warm_up and self.local_backend is not None and config.local.enabled and not config.general.fallback_only:
            warmup = getattr(self.local_backend, "warmup", None)
            if warmup is not None:
                warmup(debug=self.debug)

    # ------------------------------------------------------------------
    def generate(self, ctx: CallContext, request: GenerationRequest) -> GenerationResult:
        if self.config.general.fallback_only:
            self._trace("Fallback-only mode; skipping model backends")
            return self.fallback(request.command_category)

        if self.api_backend is not None and self.config.api.enabled:
            text = self._attempt(self.api_backend, BackendKind.API, ctx, request.prompt)
            if text:
                return GenerationResult(text=text, backend=BackendKind.API)

        if self.local_backend is not None and self.config.local.enabled:
            with ctx.child(self.local_timeout) as local_ctx:
                text = self._attempt(self.local_backend, BackendKind.LOCAL, local_ctx, request.prompt)
            if text:
                return GenerationResult(text=text, backend=BackendKind.LOCAL)

        self._trace("Using fallback backend")
        return self.fallback(request.command_category)

    def fallback(self, category: str) -> GenerationResult:
        return GenerationResult(text=fallback_response(category), backend=BackendKind.FALLBACK)

    def status(self) -> Dict[str, Any]:
        """Configuration summary plus live availability probes for each tier."""
        cfg = self.config
        status: Dict[str, Any] = {
            "fallback_only": cfg.general.fallback_only,
            "debug": cfg.general.debug,
            "personality": cfg.general.personality,
        }
        if self.api_backend is not None and cfg.api.enabled:
            status.update(
                api_enabled=True,
                api_provider=cfg.api.provider,
                api_model=cfg.api.model,
                api_available=self.api_backend.is_available(),
            )
        else:
            status.update(api_enabled=False, api_available=False)

        if self.local_backend is not None and cfg.local.enabled:
            status.update(
                local_enabled=True,
                local_provider=cfg.local.provider,
                local_model=cfg.local.model,
                local_available=self.local_backend.is_available(),
            )
        else:
            status.update(local_enabled=False, local_available=False)
        return status

    # ------------------------------------------------------------------
    def _attempt(self, backend: Backend, kind: BackendKind, ctx: CallContext, prompt: str) -> str:
        self._trace("Trying %s backend...", kind.value)
        start = time.monotonic()
        try:
            text = sanitize(backend.generate(ctx, prompt))
            if not text:
                raise EmptyResponse("response was empty after cleanup", backend=kind)
        except BackendError as exc:
            self._trace(
                "%s backend failed after %.2fs: %s",
                kind.value,
                time.monotonic() - start,
                exc.cause,
            )
            return ""
        self._trace("%s backend succeeded in %.2fs", kind.value, time.monotonic() - start)
        return text

    def _trace(self, msg: str, *args: Any) -> None:
        logger.log(logging.INFO if self.debug else logging.DEBUG, msg, *args)
