# =============================================================================
# Unified Dispatcher
# =============================================================================
# Single entry point for all handler dispatch.
# Works with API Gateway, direct invoke, and CLI.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from src.runtime.deps import Deps, get_deps
from src.runtime.envelope import Invocation, Outcome
from src.runtime.errors import ToolError

logger = logging.getLogger(__name__)

HandlerFunc = Callable[[Invocation, Deps], Outcome]

# =============================================================================
# HANDLER REGISTRY
# =============================================================================
_HANDLERS: Dict[str, HandlerFunc] = {}
_HANDLER_METADATA: Dict[str, Dict[str, Any]] = {}


def _describe(action: str, func: Callable, description: Optional[str]) -> str:
    if description:
        return description
    if func.__doc__:
        return func.__doc__.strip().split("\n")[0].strip()
    return f"Handle {action} action"


def register_handler(action: str, handler: HandlerFunc, category: str = "general",
                     description: str = None):
    """Manually register a handler function."""
    _HANDLERS[action] = handler
    _HANDLER_METADATA[action] = {
        "category": category,
        "description": _describe(action, handler, description),
        "module": handler.__module__,
        "function": handler.__name__,
    }


def register(action: str, category: str = "general", description: str = None):
    """
    Decorator to register a handler.

    Usage:
        @register("my_action", category="slack")
        def handle_my_action(inv: Invocation, deps: Deps) -> Outcome:
            return Outcome.success(message="done")
    """
    def decorator(func: HandlerFunc) -> HandlerFunc:
        register_handler(action, func, category, description)
        return func
    return decorator


def get_handler(action: str) -> Optional[HandlerFunc]:
    """Get handler for an action."""
    _ensure_handlers_loaded()
    return _HANDLERS.get(action)


def handler_exists(action: str) -> bool:
    """Check if handler exists."""
    return get_handler(action) is not None


def list_handlers() -> Dict[str, str]:
    """List all handlers with descriptions."""
    _ensure_handlers_loaded()
    return {action: meta["description"] for action, meta in sorted(_HANDLER_METADATA.items())}


def get_handlers_by_category() -> Dict[str, List[str]]:
    """Get handlers grouped by category."""
    _ensure_handlers_loaded()
    categories: Dict[str, List[str]] = {}
    for action, meta in _HANDLER_METADATA.items():
        categories.setdefault(meta.get("category", "general"), []).append(action)
    return categories


# =============================================================================
# DISPATCH
# =============================================================================

def dispatch(invocation: Invocation, deps: Deps = None) -> Outcome:
    """
    Dispatch an invocation to its handler.

    Handler errors never escape: ToolError subclasses become their own
    status and body, anything else becomes a 500.

    Args:
        invocation: Normalized request
        deps: Dependency container (optional, uses global if not provided)

    Returns:
        Outcome of the handler
    """
    if deps is None:
        deps = get_deps()
    _ensure_handlers_loaded()

    action = invocation.action
    if not action:
        logger.warning(f"No action for request {invocation.request_id} path={invocation.metadata.get('path')}")
        return Outcome.failure(400, "No action specified", availableActions=sorted(_HANDLERS))

    handler = get_handler(action)
    if handler is None:
        logger.warning(f"Unknown action: {action}")
        return Outcome.failure(400, f"Unknown action: {action}", availableActions=sorted(_HANDLERS))

    logger.info(f"Dispatching action={action} source={invocation.source} request={invocation.request_id}")

    try:
        return handler(invocation, deps)
    except ToolError as e:
        logger.warning(f"Action '{action}' failed with {type(e).__name__} ({e.status}): {e.message}")
        return Outcome(status=e.status, body=e.to_body())
    except Exception as e:
        logger.exception(f"Handler error for action '{action}': {e}")
        return Outcome.failure(500, f"Internal error: {e}")


# =============================================================================
# HANDLER LOADING
# =============================================================================

_handlers_loaded = False


def _ensure_handlers_loaded():
    """Import handler modules so their @register decorators run."""
    global _handlers_loaded
    if _handlers_loaded:
        return
    _handlers_loaded = True

    import handlers  # noqa: F401
    logger.info(f"Loaded {len(_HANDLERS)} handlers into registry")


# =============================================================================
# BUILT-IN HANDLERS
# =============================================================================

@register("health", category="utility", description="Health check")
def handle_health(invocation: Invocation, deps: Deps) -> Outcome:
    """Informational health probe; no business logic."""
    return Outcome.success(
        status="healthy",
        service=deps.config["SERVICE_NAME"],
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=deps.config["APP_ENV"],
    )


@register("list_actions", category="utility", description="List all available actions")
def handle_list_actions(invocation: Invocation, deps: Deps) -> Outcome:
    category_filter = invocation.get("category")
    if category_filter:
        actions = get_handlers_by_category().get(category_filter, [])
        return Outcome.success(
            category=category_filter,
            count=len(actions),
            actions={a: _HANDLER_METADATA[a]["description"] for a in sorted(actions)},
        )
    handlers = list_handlers()
    return Outcome.success(count=len(handlers), actions=handlers)


@register("help", category="utility", description="Get help documentation")
def handle_help(invocation: Invocation, deps: Deps) -> Outcome:
    by_category = get_handlers_by_category()
    return Outcome.success(
        totalActions=len(_HANDLERS),
        categories={
            cat: {"count": len(actions), "actions": sorted(actions)}
            for cat, actions in sorted(by_category.items())
        },
    )
