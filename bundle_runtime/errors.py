from __future__ import annotations

from typing import Optional


class BundleExecutionError(RuntimeError):
    """Raised when a bundle cannot be parsed, run, or yields unusable exports."""

    def __init__(
        self,
        message: str,
        *,
        phase: str = "runtime",
        session_id: Optional[str] = None,
    ) -> None:
        if not message.startswith("Bundle execution failed"):
            message = f"Bundle execution failed: {message}"
        super().__init__(message)
        self.message = message
        self.phase = phase
        self.session_id = session_id


class BundleLoadError(RuntimeError):
    """Raised when a bundle cannot be read from the store."""

    def __init__(self, message: str, *, session_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.session_id = session_id
