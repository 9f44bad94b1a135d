# =============================================================================
# Direct Invoke Handler
# =============================================================================
# Entry point for the integration platform and direct Lambda invocations.
# The caller supplies {args, secrets} (usually JSON-encoded inside "body")
# and gets back exactly {statusCode, body}.
# =============================================================================

import logging
from typing import Any, Dict

from src.runtime.deps import create_deps
from src.runtime.dispatch import dispatch
from src.runtime.envelope import Outcome
from src.runtime.errors import MalformedRequest
from src.runtime.parse_event import decode

logger = logging.getLogger(__name__)


def direct_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Direct invoke entry point.

    Secrets are never injected here: whatever the caller put in the
    envelope is what the handler sees.

    Args:
        event: {"body": "<json {args, secrets, action?}>"} or the same
            object unwrapped
        context: Lambda context

    Returns:
        {"statusCode": int, "body": str}
    """
    deps = create_deps()
    logging.getLogger().setLevel(deps.config["LOG_LEVEL"])
    logger.info(f"DIRECT_HANDLER event keys: {list(event.keys()) if isinstance(event, dict) else type(event)}")

    try:
        invocation = decode(event, default_action=deps.config["DEFAULT_ACTION"])
    except MalformedRequest as e:
        logger.error(f"Malformed request: {e.message}")
        return Outcome(status=e.status, body=e.to_body()).to_response()

    return dispatch(invocation, deps).to_response()


# Lambda handler name used by the integration platform
handler = direct_handler
