"""Shared Gemini client and provider error classification.

All three adapters talk to the Generative Language API through the
google-genai SDK. This module owns client construction (API key, base URL,
timeout, proxy) and the single place where SDK exceptions are turned into
gateway errors.
"""

import logging
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from mediagate.config import Settings
from mediagate.errors import (
    AuthError,
    InvalidInputError,
    MediaGatewayError,
    UpstreamError,
    classify_upstream_status,
)

logger = logging.getLogger(__name__)


def build_genai_client(settings: Settings) -> Optional[genai.Client]:
    """Create a Gemini client, or None when GEMINI_API_KEY is not configured."""
    if not settings.gemini_api_key:
        return None

    client_args: dict[str, Any] = {}
    if settings.proxy_url:
        client_args["proxy"] = settings.proxy_url

    http_options = types.HttpOptions(
        base_url=settings.gemini_base_url,
        timeout=int(settings.request_timeout * 1000),  # milliseconds
        async_client_args=client_args or None,
    )
    logger.info(
        f"Gemini client configured (base_url={settings.gemini_base_url}, "
        f"timeout={settings.request_timeout}s, proxy={'configured' if settings.proxy_url else 'none'})"
    )
    return genai.Client(api_key=settings.gemini_api_key, http_options=http_options)


def require_client(client: Optional[genai.Client]) -> genai.Client:
    """Return the client or fail with an auth error when no key is set."""
    if client is None:
        raise AuthError("Gemini API key missing. Set the GEMINI_API_KEY environment variable.")
    return client


def classify_provider_error(exc: Exception, label: str) -> MediaGatewayError:
    """Translate an exception raised during a provider call.

    Args:
        exc: Exception raised by the SDK or the HTTP layer
        label: Short operation description used as the message prefix

    Returns:
        The gateway error to raise in its place
    """
    if isinstance(exc, MediaGatewayError):
        return exc

    if isinstance(exc, genai_errors.APIError):
        message = getattr(exc, "message", None) or str(exc)
        return classify_upstream_status(exc.code, f"{label} failed ({exc.code}): {message}")

    if isinstance(exc, httpx.TimeoutException):
        return UpstreamError(f"{label} timed out: {exc}")

    if isinstance(exc, httpx.HTTPError):
        return UpstreamError(f"{label} network error: {exc}")

    if isinstance(exc, ValueError):
        # The SDK validates some parameters client-side
        return InvalidInputError(f"{label} rejected: {exc}")

    return UpstreamError(f"{label} failed: {exc}")
