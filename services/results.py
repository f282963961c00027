"""
Result types shared by the services.

Service operations report failures as values instead of raising, so every
write path has an explicit error branch and callers can show `error` as is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class OperationResult:
    """
    Result of an update/delete style operation.

    success: True if the operation completed
    error: Human-readable reason when success is False
    """

    success: bool
    error: Optional[str] = None

    @staticmethod
    def ok() -> "OperationResult":
        return OperationResult(success=True)

    @staticmethod
    def failed(error: str) -> "OperationResult":
        return OperationResult(success=False, error=error)
