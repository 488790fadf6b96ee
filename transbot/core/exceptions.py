"""Custom exception classes for structured error handling."""

from typing import Any


class TransbotError(Exception):
    """Base exception for all transbot errors."""

    def __init__(self, code: str, message: str, status_code: int = 500) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": {"code": self.code, "message": self.message}}


class ConfigurationError(TransbotError):
    def __init__(self, message: str = "Required configuration is missing") -> None:
        super().__init__(code="CONFIGURATION_ERROR", message=message, status_code=500)


class InvalidSignatureError(TransbotError):
    def __init__(self, message: str = "Invalid or missing webhook signature") -> None:
        super().__init__(code="INVALID_SIGNATURE", message=message, status_code=401)


class TranslationBackendError(TransbotError):
    def __init__(self, message: str = "Translation backend call failed") -> None:
        super().__init__(
            code="TRANSLATION_BACKEND_ERROR", message=message, status_code=502
        )


class BackendOverloadedError(TranslationBackendError):
    """Transient backend failure (5xx, 429, overload). Safe to retry."""

    def __init__(self, message: str = "Translation backend is overloaded") -> None:
        super().__init__(message=message)
        self.code = "BACKEND_OVERLOADED"
        self.status_code = 503


class MalformedResponseError(TransbotError):
    def __init__(self, message: str = "Backend response could not be parsed") -> None:
        super().__init__(code="MALFORMED_RESPONSE", message=message, status_code=502)
