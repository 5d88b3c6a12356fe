"""Backend orchestration: model backends, fallback policy and output cleanup."""

from .base import (
    Backend,
    BackendError,
    BackendKind,
    ConfigurationMissing,
    EmptyResponse,
    GenerationRequest,
    GenerationResult,
    ProtocolFailure,
    TransportFailure,
)
from .bounded import generate_with_deadline
from .cloud import RemoteAPIBackend
from .context import CallContext
from .fallback import fallback_response
from .local import LocalInferenceBackend
from .manager import LLMManager
from .sanitize import sanitize

__all__ = [
    "Backend",
    "BackendError",
    "BackendKind",
    "CallContext",
    "ConfigurationMissing",
    "EmptyResponse",
    "GenerationRequest",
    "GenerationResult",
    "LLMManager",
    "LocalInferenceBackend",
    "ProtocolFailure",
    "RemoteAPIBackend",
    "TransportFailure",
    "fallback_response",
    "generate_with_deadline",
    "sanitize",
]
