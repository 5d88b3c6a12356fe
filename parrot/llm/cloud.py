from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .base import (
    BackendKind,
    ConfigurationMissing,
    EmptyResponse,
    ProtocolFailure,
    TransportFailure,
)
from .context import CallContext
from .transport import CancellableSession

logger = logging.getLogger(__name__)

MAX_TOKENS = 150
TEMPERATURE = 0.8
PROBE_TIMEOUT_SECONDS = 5.0


class RemoteAPIBackend:
    """Thin client for OpenAI-compatible chat completion endpoints.

    One request per call, no retries. The returned text is raw model output;
    cleaning it up is the manager's job.
    """

    kind = BackendKind.API

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str],
        model: str,
        *,
        timeout_seconds: float = 3,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.endpoint = (endpoint or "").rstrip("/")
        self.api_key = api_key or ""
        self.model = model
        self.timeout = float(timeout_seconds)
        self._session = session or CancellableSession()

    # ------------------------------------------------------------------
    def generate(self, ctx: CallContext, prompt: str) -> str:
        if not self.api_key:
            raise ConfigurationMissing("API key not configured", backend=self.kind)
        if not self.endpoint:
            raise ConfigurationMissing("API endpoint not configured", backend=self.kind)

        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }
        response = self._post(ctx, payload)
        data = self._decode(response)

        choices = data.get("choices")
        if choices is None or choices == []:
            raise EmptyResponse("no response choices returned", backend=self.kind)
        try:
            content = choices[0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProtocolFailure(f"malformed response: {exc!r}", backend=self.kind) from exc
        if not isinstance(content, str) or not content:
            raise EmptyResponse("empty response from API", backend=self.kind)
        return content

    def is_available(self) -> bool:
        if not self.api_key or not self.endpoint:
            return False
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": "test"}],
            "max_tokens": 1,
        }
        try:
            response = self._session.post(
                self._url(),
                json=payload,
                headers=self._headers(),
                timeout=PROBE_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            logger.debug("API availability probe failed: %s", exc)
            return False
        return 200 <= response.status_code < 300

    # ------------------------------------------------------------------
    def _url(self) -> str:
        return f"{self.endpoint}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _post(self, ctx: CallContext, payload: Dict[str, Any]) -> requests.Response:
        if ctx.cancelled:
            raise TransportFailure("request cancelled before send", backend=self.kind)
        timeout = ctx.bounded_timeout(self.timeout)
        unregister = ctx.on_cancel(self._session.close)
        try:
            response = self._session.post(self._url(), json=payload, headers=self._headers(), timeout=timeout)
        except requests.RequestException as exc:
            if ctx.cancelled:
                raise TransportFailure("request cancelled", backend=self.kind) from exc
            raise TransportFailure(f"failed to send request: {exc}", backend=self.kind) from exc
        finally:
            unregister()
        if ctx.cancelled:
            response.close()
            raise TransportFailure("request cancelled", backend=self.kind)
        return response

    def _decode(self, response: requests.Response) -> Dict[str, Any]:
        ok = 200 <= response.status_code < 300
        try:
            data = response.json()
        except ValueError as exc:
            if not ok:
                raise ProtocolFailure(f"API returned status {response.status_code}", backend=self.kind) from exc
            raise ProtocolFailure(f"failed to decode response: {exc}", backend=self.kind) from exc
        if not isinstance(data, dict):
            raise ProtocolFailure("response is not a JSON object", backend=self.kind)

        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ProtocolFailure(f"API error: {message}", backend=self.kind)
        if not ok:
            raise ProtocolFailure(f"API returned status {response.status_code}", backend=self.kind)
        return data
