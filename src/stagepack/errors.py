"""Typed packaging error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across API surfaces."""

    VALIDATION = "E_VALIDATION"
    TOOL_NOT_FOUND = "E_TOOL_NOT_FOUND"
    STAGING = "E_STAGING"
    PACKAGING = "E_PACKAGING"
    OUTPUT_PARSE = "E_OUTPUT_PARSE"


class StagepackError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    @property
    def operation(self) -> str | None:
        return self.context.get("operation")

    @property
    def step(self) -> str | None:
        """Name of the staging step that failed, when the error came from one."""
        return self.context.get("step")

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(StagepackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class ToolNotFoundError(StagepackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.TOOL_NOT_FOUND, hint=hint, context=context)


class StagingError(StagepackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.STAGING, hint=hint, context=context)


class PackagingError(StagepackError):
    """Raised when the packaging process fails or is misused."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.PACKAGING, hint=hint, context=context)

    @property
    def stderr(self) -> str:
        return self.context.get("stderr", "")


class OutputParseError(StagepackError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.OUTPUT_PARSE, hint=hint, context=context)


__all__ = [
    "ErrorCode",
    "OutputParseError",
    "PackagingError",
    "StagepackError",
    "StagingError",
    "ToolNotFoundError",
    "ValidationError",
]
