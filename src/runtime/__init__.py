# =============================================================================
# Runtime Package - Envelope Adapter and Dispatch
# =============================================================================
# Provides a single dispatch layer invokable via:
# - API Gateway (HTTP routes and the integration platform's envelope)
# - Lambda direct invoke
# - CLI (developer tooling)
# =============================================================================

from src.runtime.envelope import Invocation, Outcome
from src.runtime.errors import (
    ToolError,
    ValidationError,
    ConfigurationError,
    UpstreamError,
    MalformedRequest,
)
from src.runtime.parse_event import decode, encode, detect_event_source
from src.runtime.dispatch import dispatch, register
from src.runtime.deps import Deps, create_deps

__all__ = [
    "Invocation",
    "Outcome",
    "ToolError",
    "ValidationError",
    "ConfigurationError",
    "UpstreamError",
    "MalformedRequest",
    "decode",
    "encode",
    "detect_event_source",
    "dispatch",
    "register",
    "Deps",
    "create_deps",
]
