# Base utilities for all handlers
# Validation gates, secret parsing and best-effort side effects shared by the
# Sheets and Slack handlers.
import json
import logging
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

from src.runtime.envelope import Invocation
from src.runtime.errors import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

INVALID_KEY = "Invalid GOOGLE_SERVICE_ACCOUNT_KEY format. Must be valid JSON."


# =============================================================================
# VALIDATION HELPERS
# =============================================================================
def require_args(args: Mapping[str, Any], fields) -> None:
    """Raise ValidationError naming the first missing field, in order."""
    for name in fields:
        if not args.get(name):
            raise ValidationError(f"{name} is required")


def require_secret(invocation: Invocation, name: str, message: str) -> str:
    """Return the secret or raise ConfigurationError with the given message."""
    value = invocation.secret(name)
    logger.info(f"{name} available: {bool(value)}")
    if not value:
        raise ConfigurationError(message)
    return value


def optional_str(value: Any) -> Optional[str]:
    if not value:
        return None
    return str(value)


# =============================================================================
# CREDENTIALS
# =============================================================================
def parse_service_account_key(raw: str) -> Dict[str, Any]:
    """Parse a service-account key stored as a JSON string.

    Keys kept in single-line environment variables usually carry the PEM
    block with escaped newlines; the signer needs real ones, so every literal
    backslash-n in private_key is replaced. No other field is touched.
    """
    try:
        credentials = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(INVALID_KEY) from e
    if not isinstance(credentials, dict):
        raise ConfigurationError(INVALID_KEY)

    private_key = credentials.get("private_key")
    if private_key and not isinstance(private_key, str):
        raise ConfigurationError(INVALID_KEY)
    if private_key:
        credentials["private_key"] = private_key.replace("\\n", "\n")
    logger.info(f"Loaded service account credentials for {credentials.get('client_email', '<unknown>')}")
    return credentials


# =============================================================================
# ERRORS
# =============================================================================
def error_message(exc: BaseException, fallback: str = "An unknown error occurred.") -> str:
    """Human readable message for a provider exception."""
    reason = getattr(exc, "reason", None)
    if isinstance(reason, str) and reason:
        return reason
    return str(exc) or fallback


def best_effort(description: str, func: Callable[..., T], *args, **kwargs) -> Optional[T]:
    """Run a side effect whose failure must never propagate.

    Failures are logged and discarded; returns None in that case.
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        logger.error(f"Best-effort {description} failed: {e}")
        return None
