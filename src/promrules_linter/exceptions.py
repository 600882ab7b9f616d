"""Exceptions raised by the rules linter."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Error categories surfaced by the linter."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    PARSING_ERROR = "PARSING_ERROR"


class PromRulesLinterError(Exception):
    """Base exception for the rules linter."""

    def __init__(self, message: str, error_code: ErrorCode):
        self.error_code = error_code
        super().__init__(message)


class ConfigError(PromRulesLinterError):
    """Raised when the backend address is missing or malformed."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR)


class BackendError(PromRulesLinterError):
    """Raised when a Prometheus API call fails at transport or decode level."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.EXTERNAL_SERVICE_ERROR)


class RuleParseError(PromRulesLinterError):
    """Raised when a rule query cannot be parsed as PromQL."""

    def __init__(self, query: str, message: str):
        self.query = query
        super().__init__(message, ErrorCode.PARSING_ERROR)
