"""Tests for error classification."""

from dataclasses import replace

import httpx
import pytest
from google.genai import errors as genai_errors

from mediagate.errors import (
    AuthError,
    DependencyError,
    ErrorCode,
    InvalidInputError,
    NotFoundError,
    RateLimitedError,
    UpstreamBadRequestError,
    UpstreamError,
    classify_upstream_status,
)
from mediagate.generation.client import build_genai_client, classify_provider_error, require_client


@pytest.mark.parametrize("status,error_type,code,http_status", [
    (401, AuthError, ErrorCode.AUTH_ERROR, 401),
    (403, AuthError, ErrorCode.AUTH_ERROR, 401),
    (429, RateLimitedError, ErrorCode.RATE_LIMITED, 429),
    (400, UpstreamBadRequestError, ErrorCode.INVALID_REQUEST, 400),
    (404, NotFoundError, ErrorCode.NOT_FOUND, 404),
    (500, UpstreamError, ErrorCode.UPSTREAM_ERROR, 500),
    (503, UpstreamError, ErrorCode.UPSTREAM_ERROR, 500),
    (None, UpstreamError, ErrorCode.UPSTREAM_ERROR, 500),
])
def test_classify_upstream_status(status, error_type, code, http_status):
    error = classify_upstream_status(status, "boom")
    assert type(error) is error_type
    assert error.code == code
    assert error.status_code == http_status
    assert error.message == "boom"


def test_dependency_error_message():
    error = DependencyError("img", "narrate")
    assert error.message == "Dependency img not executed for step narrate"
    assert error.code == ErrorCode.DEPENDENCY_ERROR
    assert error.status_code == 400


def test_gateway_errors_pass_through():
    original = InvalidInputError("Text is required")
    assert classify_provider_error(original, "TTS generation") is original


def test_sdk_error_classified_by_status():
    exc = genai_errors.ClientError(
        403,
        {"error": {"code": 403, "message": "API key not valid", "status": "PERMISSION_DENIED"}},
    )
    error = classify_provider_error(exc, "TTS generation")

    assert isinstance(error, AuthError)
    assert error.upstream_status == 403
    assert error.message.startswith("TTS generation failed (403)")


def test_sdk_server_error_is_upstream():
    exc = genai_errors.ServerError(
        500,
        {"error": {"code": 500, "message": "Internal", "status": "INTERNAL"}},
    )
    error = classify_provider_error(exc, "Image generation")
    assert type(error) is UpstreamError
    assert error.code == ErrorCode.UPSTREAM_ERROR


def test_network_errors_are_upstream():
    timeout = classify_provider_error(httpx.ReadTimeout("timed out"), "Video generation")
    assert type(timeout) is UpstreamError
    assert "timed out" in timeout.message

    network = classify_provider_error(httpx.ConnectError("refused"), "Video generation")
    assert "network error" in network.message


def test_client_side_validation_is_invalid_request():
    error = classify_provider_error(ValueError("bad aspect ratio"), "Image generation")
    assert isinstance(error, InvalidInputError)


def test_missing_key_means_no_client(settings):
    assert build_genai_client(replace(settings, gemini_api_key="")) is None
    with pytest.raises(AuthError):
        require_client(None)
