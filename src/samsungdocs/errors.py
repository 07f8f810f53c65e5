from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    PAGE_NOT_FOUND = "PAGE_NOT_FOUND"
    PAGE_FETCH_FAILED = "PAGE_FETCH_FAILED"
    DISCOVERY_FAILED = "DISCOVERY_FAILED"
    URL_NOT_ALLOWED = "URL_NOT_ALLOWED"
    UNKNOWN_SECTION = "UNKNOWN_SECTION"
    INVALID_INPUT = "INVALID_INPUT"


class SamsungDocsError(Exception):
    """Raised for all expected failure conditions.

    Tool handlers let it propagate to server.py, which serialises it into the
    MCP error response. The populate pipeline and the on-demand resolver catch
    it per page so that one bad page never aborts a batch.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }
