from __future__ import annotations

from typing import Any, Dict, Optional


class PhaseError(RuntimeError):
    """Raised when a service builder phase fails unexpectedly.

    Detected conflicts never end up here; they are returned as ``Issue`` values.
    This error is reserved for faults in the phase logic itself and carries
    enough context to reproduce the failing call.
    """

    phase = "unknown"

    def __init__(
        self,
        *,
        component: str,
        service_name: str,
        message: str,
        cause: Optional[BaseException] = None,
        input_snapshot: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.component = component
        self.service_name = service_name
        self.message = message
        self.cause = cause
        self.input_snapshot = input_snapshot or {}
        detail = f": {cause!r}" if cause is not None else ""
        super().__init__(f"{component} {message}{detail}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component": self.component,
            "phase": self.phase,
            "service": self.service_name,
            "message": self.message,
            "cause": {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
            if self.cause is not None
            else None,
            "input_snapshot": self.input_snapshot,
        }


class InitError(PhaseError):
    """Raised when a template fails to prepare itself before compile."""

    phase = "init"


class CompileError(PhaseError):
    """Raised when merging a service's options into the working document fails."""

    phase = "compile"


class ValidationFault(PhaseError):
    """Raised when an issues checker errors, as opposed to finding a conflict."""

    phase = "issues"


class AssumeError(PhaseError):
    """Raised when default injection fails."""

    phase = "assume"


class BuildError(PhaseError):
    """Raised when asset resolution or script assembly fails."""

    phase = "build"
