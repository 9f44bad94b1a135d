# =============================================================================
# Event Parser - Decode Lambda Events into Invocations
# =============================================================================
# Supports: API Gateway (HTTP API v2, REST API v1), direct invoke, CLI.
#
# The integration platform wraps the real request as a JSON string inside
# the event body: {"body": "{\"args\": {...}, \"secrets\": {...}}"}.
# Local HTTP routes (POST /write, POST /summarize) send the handler fields
# flat instead; those get their secrets from the transport.
# =============================================================================

import json
import logging
import uuid
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from src.runtime.envelope import Invocation
from src.runtime.errors import MalformedRequest

logger = logging.getLogger(__name__)


class EventSource:
    """Event source identifiers."""
    API_GATEWAY = "api_gateway"
    DIRECT = "direct"
    CLI = "cli"
    UNKNOWN = "unknown"


# HTTP route -> action
ROUTES = {
    "/write": "write_to_sheet",
    "/summarize": "summarize_chat",
    "/health": "health",
}

# Keys that belong to the envelope rather than to the handler arguments
_ENVELOPE_KEYS = {"action", "args", "secrets", "requestId", "_source"}


def detect_event_source(event: Dict[str, Any]) -> str:
    """
    Detect the source of a Lambda event.

    Returns one of: api_gateway, direct, cli, unknown
    """
    if not event:
        return EventSource.UNKNOWN

    if "requestContext" in event:
        return EventSource.API_GATEWAY

    if "body" in event:
        return EventSource.API_GATEWAY

    if event.get("_source") == "cli":
        return EventSource.CLI

    if "args" in event or "action" in event:
        return EventSource.DIRECT

    return EventSource.UNKNOWN


def request_route(event: Dict[str, Any]) -> Tuple[str, str]:
    """Return (method, path) for an API Gateway event, empty strings otherwise."""
    request_context = event.get("requestContext") or {}
    http = request_context.get("http") or {}
    method = http.get("method") or request_context.get("httpMethod") or event.get("httpMethod") or ""
    path = event.get("rawPath") or http.get("path") or event.get("path") or ""
    if len(path) > 1:
        path = path.rstrip("/")
    return method.upper(), path


def _load_body(body: Any) -> Dict[str, Any]:
    if body is None or body == "":
        return {}
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8")
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError as e:
            raise MalformedRequest(f"Request body is not valid JSON: {e.msg}") from e
    if not isinstance(body, dict):
        raise MalformedRequest("Request body must be a JSON object")
    return body


def _mapping_field(payload: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = payload.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedRequest(f"'{key}' must be a JSON object")
    return value


def resolve_action(
    payload: Mapping[str, Any], path: str, default_action: str, envelope_form: bool = False
) -> str:
    """Explicit action field, then HTTP route, then the configured default.

    A flat body posted to an unknown route has no action. The {args, secrets}
    envelope falls back to the default on any path.
    """
    action = payload.get("action")
    if action:
        return str(action)
    if path in ROUTES:
        return ROUTES[path]
    if path and not envelope_form:
        return ""
    return default_action


def decode(
    event: Dict[str, Any],
    default_action: str = "write_to_sheet",
    secret_provider: Optional[Callable[[], Mapping[str, str]]] = None,
) -> Invocation:
    """
    Decode a transport event into an Invocation.

    Args:
        event: Lambda event (API Gateway, direct invoke or CLI)
        default_action: Action used when neither the body nor the route names one
        secret_provider: Returns the secrets the transport injects for
            route-form requests; not called for envelope-form requests

    Raises:
        MalformedRequest: body is not JSON, not an object, or args/secrets
            are not objects
    """
    if not isinstance(event, dict):
        raise MalformedRequest("Event must be a JSON object")

    source = detect_event_source(event)
    method, path = request_route(event)

    if source == EventSource.API_GATEWAY:
        payload = _load_body(event.get("body"))
    else:
        payload = event

    envelope_form = "args" in payload or "secrets" in payload
    if envelope_form:
        args = _mapping_field(payload, "args")
        secrets = _mapping_field(payload, "secrets")
    else:
        # Route form: the body holds the handler fields directly
        args = {k: v for k, v in payload.items() if k not in _ENVELOPE_KEYS}
        query = event.get("queryStringParameters") or {}
        for key, value in query.items():
            args.setdefault(key, value)
        secrets = dict(secret_provider()) if secret_provider else {}

    request_id = (
        (event.get("requestContext") or {}).get("requestId")
        or payload.get("requestId")
        or str(uuid.uuid4())
    )

    invocation = Invocation(
        action=resolve_action(payload, path, default_action, envelope_form),
        args=args,
        secrets={k: v for k, v in secrets.items() if v is not None},
        request_id=request_id,
        source=source,
        metadata={"httpMethod": method, "path": path, "envelopeForm": envelope_form},
    )
    logger.info(
        f"Decoded invocation action={invocation.action} source={source} "
        f"args={sorted(invocation.args)} secrets={sorted(invocation.secrets)}"
    )
    return invocation


def encode(outcome) -> Dict[str, Any]:
    """Encode an Outcome into the transport {statusCode, body} shape."""
    return outcome.to_response()
