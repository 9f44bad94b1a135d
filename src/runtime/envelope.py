# =============================================================================
# Envelope - Normalized Invocation and Outcome
# =============================================================================
# Every transport (API Gateway, direct invoke, CLI) is normalized into an
# Invocation. Handlers answer with an Outcome, which the adapter encodes back
# into the {statusCode, body} shape the transport expects.
# =============================================================================

import json
import uuid
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


def jdump(x: Any) -> str:
    """Compact JSON dump, same separators as JSON.stringify."""
    return json.dumps(x, ensure_ascii=False, separators=(",", ":"), default=str)


def _frozen(mapping: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class Invocation:
    """
    Normalized request for one handler call.

    Attributes:
        action: Registered handler name (write_to_sheet, summarize_chat, ...)
        args: Caller-supplied arguments
        secrets: Credentials supplied with the request
        request_id: Unique identifier for this request
        source: Origin of the request (api_gateway, direct, cli)
        metadata: Transport details (path, method, headers)
    """
    action: str
    args: Mapping[str, Any] = field(default_factory=dict)
    secrets: Mapping[str, str] = field(default_factory=dict)
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    source: str = "direct"
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "args", _frozen(self.args))
        object.__setattr__(self, "secrets", _frozen(self.secrets))
        object.__setattr__(self, "metadata", _frozen(self.metadata))

    def get(self, key: str, default: Any = None) -> Any:
        """Get value from args."""
        return self.args.get(key, default)

    def secret(self, name: str) -> Optional[str]:
        return self.secrets.get(name) or None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary. Secret values are never included."""
        return {
            "action": self.action,
            "requestId": self.request_id,
            "source": self.source,
            "args": dict(self.args),
            "secretNames": sorted(self.secrets),
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class Outcome:
    """Handler result: HTTP-style status plus a JSON-serializable body."""
    status: int
    body: Mapping[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status < 400

    def to_response(self) -> Dict[str, Any]:
        """Encode as the transport-level {statusCode, body} pair."""
        return {
            "statusCode": self.status,
            "body": jdump(dict(self.body)),
        }

    @classmethod
    def from_response(cls, response: Mapping[str, Any]) -> "Outcome":
        body = response.get("body") or "{}"
        if isinstance(body, str):
            body = json.loads(body)
        return cls(status=int(response.get("statusCode", 200)), body=body)

    @classmethod
    def success(cls, **body: Any) -> "Outcome":
        return cls(status=200, body=body)

    @classmethod
    def failure(cls, status: int, error: str, **extra: Any) -> "Outcome":
        return cls(status=status, body={"error": error, **extra})
