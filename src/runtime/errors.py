# =============================================================================
# Tool Errors
# =============================================================================
# Raised by handlers and the envelope adapter, converted into an Outcome by
# the dispatcher. Nothing in this hierarchy should reach the Lambda runtime.
# =============================================================================

from typing import Any, Dict, Optional


class ToolError(Exception):
    """Base error carrying the HTTP-style status it maps to."""
    status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(ToolError):
    """A required argument is missing or empty."""
    status = 400


class ConfigurationError(ToolError):
    """A secret is missing or malformed."""
    status = 500


class UpstreamError(ToolError):
    """The external provider rejected or failed the call."""
    status = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.details = details

    def to_body(self) -> Dict[str, Any]:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class MalformedRequest(ToolError):
    """The transport body is not a JSON object of the expected shape."""
    status = 500
