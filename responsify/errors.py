"""Error codes and the exception raised by the transformation pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_HTML = "INVALID_HTML"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    GENERATION_FAILED = "GENERATION_FAILED"
    SELECTOR_ERROR = "SELECTOR_ERROR"


class TransformError(Exception):
    """Raised when a stage of the pipeline cannot continue."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        return self.message
