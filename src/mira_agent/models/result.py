"""Browser operation result models.

The union type design makes invalid states unrepresentable:
- SuccessResult: always carries fresh visual confirmation, never an error
- FailureResult: always has an error, optionally an actionable hint

Browser operations never raise to their callers; they return one of these.
"""

from typing import Any, Union

from pydantic import BaseModel, ConfigDict


class Viewport(BaseModel):
    """Browser viewport size in CSS pixels."""

    model_config = ConfigDict(frozen=True)

    width: int
    height: int


class SuccessResult(BaseModel):
    """Result of a successful browser operation.

    Attributes:
        screenshot_base64: PNG screenshot captured after the operation.
        viewport: Viewport of the session (set by start).
    """

    model_config = ConfigDict(frozen=True)

    screenshot_base64: str | None = None
    viewport: Viewport | None = None

    @property
    def ok(self) -> bool:
        """Always True for SuccessResult."""
        return True

    @property
    def error(self) -> None:
        """Always None for SuccessResult."""
        return None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"ok": True}
        if self.viewport is not None:
            payload["viewport"] = self.viewport.model_dump()
        if self.screenshot_base64 is not None:
            payload["screenshotBase64"] = self.screenshot_base64
        return payload


class FailureResult(BaseModel):
    """Result of a failed browser operation.

    Attributes:
        error: Error message describing the failure.
        hint: Optional suggestion for the caller (e.g. fall back to iframe mode).
    """

    model_config = ConfigDict(frozen=True)

    error: str
    hint: str | None = None

    @property
    def ok(self) -> bool:
        """Always False for FailureResult."""
        return False

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"ok": False, "error": self.error}
        if self.hint:
            payload["hint"] = self.hint
        return payload


BrowserResult = Union[SuccessResult, FailureResult]


def success_result(
    screenshot_base64: str | None = None,
    viewport: Viewport | None = None,
) -> BrowserResult:
    """Create a successful browser result."""
    return SuccessResult(screenshot_base64=screenshot_base64, viewport=viewport)


def failure_result(error: str, hint: str | None = None) -> BrowserResult:
    """Create a failed browser result.

    Args:
        error: Error message describing the failure.
        hint: Optional actionable hint for the caller.

    Returns:
        A FailureResult instance.
    """
    return FailureResult(error=error, hint=hint)
