# =============================================================================
# API Gateway Handler
# =============================================================================
# Entry point for API Gateway HTTP API requests.
# Routes: POST /write, POST /summarize, GET /health, and the integration
# platform's {"args", "secrets"} envelope on any POST.
# =============================================================================

import logging
from typing import Any, Dict

from src.runtime.deps import create_deps
from src.runtime.dispatch import dispatch
from src.runtime.envelope import Invocation, Outcome
from src.runtime.errors import MalformedRequest
from src.runtime.parse_event import decode, request_route

logger = logging.getLogger(__name__)


def api_response(outcome: Outcome) -> Dict[str, Any]:
    """Format response for API Gateway HTTP API."""
    response = outcome.to_response()
    response["headers"] = {"Content-Type": "application/json"}
    return response


def api_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    API Gateway entry point.

    Route-form requests (flat JSON body on POST /write or POST /summarize)
    get their secrets from configuration; envelope-form requests carry
    their own.

    Args:
        event: API Gateway event
        context: Lambda context

    Returns:
        API Gateway response format
    """
    deps = create_deps()
    logging.getLogger().setLevel(deps.config["LOG_LEVEL"])
    logger.info(f"API_HANDLER event keys: {list(event.keys()) if isinstance(event, dict) else type(event)}")

    method, path = request_route(event) if isinstance(event, dict) else ("", "")
    if method == "GET" and path == "/health":
        return api_response(dispatch(Invocation(action="health", source="api_gateway"), deps))

    try:
        invocation = decode(
            event,
            default_action=deps.config["DEFAULT_ACTION"],
            secret_provider=deps.resolve_secrets,
        )
    except MalformedRequest as e:
        logger.error(f"Malformed request: {e.message}")
        return api_response(Outcome(status=e.status, body=e.to_body()))

    return api_response(dispatch(invocation, deps))
