"""
Gateway error types and upstream error classification.
"""

import json
import re
from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Base exception for gateway errors."""

    status_code: int = 500

    def __init__(self, message: str, provider: str = None):
        self.message = message
        self.provider = provider
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class InvalidRequestError(GatewayError):
    """Raised when the canonical request is malformed."""

    status_code = 400


class ModelNotFoundError(GatewayError):
    """Raised when the requested model is not in the registry."""

    status_code = 404

    def __init__(self, message: str, provider: str = None, model: str = None):
        super().__init__(message, provider)
        self.model = model


class MissingCredentialError(GatewayError):
    """Raised when no secret is stored for the model's provider."""

    status_code = 424


class UnsupportedProviderError(GatewayError):
    """Raised when a registry row names a provider with no adapter."""

    status_code = 501


class UpstreamError(GatewayError):
    """Base class for failures reported by a provider."""

    status_code = 502

    def __init__(
        self,
        message: str,
        provider: str = None,
        status_code: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, provider)
        self.upstream_status = status_code
        self.payload = payload


class UpstreamTransientError(UpstreamError):
    """Network failure, rate limit or provider 5xx."""

    status_code = 503


class UpstreamModelUnavailableError(UpstreamTransientError):
    """Provider reports the model as missing; may trigger a fallback."""


class UpstreamRejectedError(UpstreamError):
    """Any other provider error; message passed through verbatim."""


class MigrationError(Exception):
    """Raised when a schema migration cannot be applied."""

    def __init__(self, message: str, version: Optional[int] = None):
        self.message = message
        self.version = version
        super().__init__(message)


# Heuristic allow-list for "model not found" signatures. Providers change
# error shapes without notice; every matched pattern lives here.
MODEL_NOT_FOUND_TYPES = frozenset({"not_found_error"})
MODEL_NOT_FOUND_CODES = frozenset({"model_not_found"})
MODEL_NOT_FOUND_MARKERS = ('"type":"not_found_error"', "does not exist")

_JSON_FRAGMENT = re.compile(r"\{.*\}", re.DOTALL)


def _payload_signals_not_found(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return False

    candidates = [payload]
    if isinstance(payload.get("error"), dict):
        candidates.append(payload["error"])

    for candidate in candidates:
        if candidate.get("type") in MODEL_NOT_FOUND_TYPES:
            return True
        if candidate.get("code") in MODEL_NOT_FOUND_CODES:
            return True
    return False


def extract_json_fragment(message: str) -> Optional[Dict[str, Any]]:
    """Parse the outermost ``{...}`` fragment embedded in free text."""
    match = _JSON_FRAGMENT.search(message or "")
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def is_model_not_found(error: Any) -> bool:
    """
    Decide whether an upstream failure means "model not found".

    This is a heuristic. It checks, in order:
    - a structured ``payload`` attribute on the error,
    - a JSON fragment embedded in the error message,
    - literal markers in the message text.

    Args:
        error: An exception, or a plain error message string

    Returns:
        True if any allow-listed signature matches
    """
    if _payload_signals_not_found(getattr(error, "payload", None)):
        return True

    if isinstance(error, str):
        message = error
    else:
        message = getattr(error, "message", None) or str(error)

    if _payload_signals_not_found(extract_json_fragment(message)):
        return True

    return any(marker in message for marker in MODEL_NOT_FOUND_MARKERS)
