"""Tests for core/errors.py."""
from smartsummary.core.errors import (
    ConfigurationError,
    ErrorCode,
    LLMRateLimitError,
    LLMServiceError,
    PersistenceError,
    error_message,
)


def test_provider_error_code_follows_upstream_status():
    assert LLMServiceError("OpenAI API error: 500", status_code=500).code == ErrorCode.PROVIDER_ERROR
    assert LLMServiceError("Invalid API key", status_code=401).code == ErrorCode.PROVIDER_ERROR
    assert LLMServiceError("Failed to stream summarize: boom").code == ErrorCode.NETWORK_ERROR
    assert LLMRateLimitError().code == ErrorCode.RATE_LIMITED


def test_fixed_error_codes():
    assert ConfigurationError("x").code == ErrorCode.CONFIGURATION_ERROR
    assert PersistenceError("x").code == ErrorCode.PERSISTENCE_ERROR


def test_error_message_shapes():
    assert error_message(PersistenceError("Database error")) == "Database error"
    assert error_message(RuntimeError("boom")) == "boom"
    assert error_message(RuntimeError()) == "RuntimeError"
    assert error_message("plain") == "plain"
    assert error_message({"code": 1}) == '{"code": 1}'
    assert error_message(object) == repr(object)
