# =============================================================================
# Application Entry Points
# =============================================================================
# Thin transport adapters that decode events and call the dispatcher.
# =============================================================================

from src.app.api_handler import api_handler
from src.app.direct_handler import direct_handler

__all__ = [
    "api_handler",
    "direct_handler",
]
