from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:  # pragma: no cover
    from .context import CallContext


class BackendKind(str, Enum):
    """Tier that produced a result."""

    API = "api"
    LOCAL = "local"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    command_category: str = "generic"


@dataclass(frozen=True)
class GenerationResult:
    text: str
    backend: BackendKind


class BackendError(RuntimeError):
    """Raised when a backend cannot produce text for a prompt.

    Every subclass is local to its tier: the manager falls through to the
    next tier and never surfaces these to the end user.
    """

    def __init__(self, cause: str, *, backend: BackendKind) -> None:
        super().__init__(cause)
        self.cause = cause
        self.backend = backend


class ConfigurationMissing(BackendError):
    """Credential or endpoint not configured; no network call was made."""


class TransportFailure(BackendError):
    """DNS, connect, timeout or cancellation."""


class ProtocolFailure(BackendError):
    """Non-2xx status, malformed JSON or a provider-reported error."""


class EmptyResponse(BackendError):
    """Well-formed payload without any usable content."""


class Backend(Protocol):
    """Common interface for text generation backends."""

    kind: BackendKind

    def generate(self, ctx: "CallContext", prompt: str) -> str:
        """Return raw model output for *prompt* or raise BackendError."""

    def is_available(self) -> bool:
        """Cheap liveness probe under its own short timeout."""
