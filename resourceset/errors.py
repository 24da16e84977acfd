# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Standard error codes for the resource-set planner.

Errors carry a machine-readable code, a human-readable message, optional
details and a remediation suggestion. The planner never retries: every
error is returned to the caller (the reconciler or the CLI) untouched.

Error body schema:
```json
{
  "error": {
    "code": "CONFIGURATION_LOOKUP_FAILED",
    "message": "No service spec found for 'history'",
    "details": {"service": "history"},
    "suggestion": "Provide the missing entry under spec.services; the planning pass is aborted until it is fixed"
  }
}
```
"""

from enum import Enum
from typing import Any


class PlannerErrorCode(str, Enum):
    """Planner error codes."""

    CONFIGURATION_LOOKUP_FAILED = "CONFIGURATION_LOOKUP_FAILED"
    SPECIFICATION_INVALID = "SPECIFICATION_INVALID"
    SPECIFICATION_NOT_FOUND = "SPECIFICATION_NOT_FOUND"
    FACTORY_NOT_REGISTERED = "FACTORY_NOT_REGISTERED"
    PLAN_INCONSISTENT = "PLAN_INCONSISTENT"


# CLI exit status mapping
ERROR_CODE_TO_EXIT_STATUS: dict[PlannerErrorCode, int] = {
    PlannerErrorCode.CONFIGURATION_LOOKUP_FAILED: 3,
    PlannerErrorCode.SPECIFICATION_INVALID: 2,
    PlannerErrorCode.SPECIFICATION_NOT_FOUND: 2,
    PlannerErrorCode.FACTORY_NOT_REGISTERED: 4,
    PlannerErrorCode.PLAN_INCONSISTENT: 5,
}


ERROR_CODE_SUGGESTIONS: dict[PlannerErrorCode, str] = {
    PlannerErrorCode.CONFIGURATION_LOOKUP_FAILED: (
        "Provide the missing entry under spec.services; the planning pass is aborted until it is fixed"
    ),
    PlannerErrorCode.SPECIFICATION_INVALID: "Check the manifest against the TemporalCluster schema",
    PlannerErrorCode.SPECIFICATION_NOT_FOUND: "Verify the manifest path exists and is readable",
    PlannerErrorCode.FACTORY_NOT_REGISTERED: "Register a resource factory for this kind before rendering",
    PlannerErrorCode.PLAN_INCONSISTENT: "Report this plan; a resource was both desired and pruned",
}


class PlannerError(Exception):
    """Base exception for planner errors.

    Usage:
        raise PlannerError(
            code=PlannerErrorCode.SPECIFICATION_INVALID,
            message="spec.mTLS.provider: unknown provider 'vault'",
            details={"path": "cluster.yaml"},
        )
    """

    def __init__(
        self,
        code: PlannerErrorCode | str,
        message: str,
        details: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ):
        self.code = code if isinstance(code, PlannerErrorCode) else PlannerErrorCode(code)
        self.message = message
        self.details = details
        self.suggestion = suggestion or ERROR_CODE_SUGGESTIONS.get(self.code)
        super().__init__(message)

    @property
    def exit_status(self) -> int:
        """CLI exit status for this error."""
        return ERROR_CODE_TO_EXIT_STATUS.get(self.code, 1)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
                "suggestion": self.suggestion,
            }
        }


# =============================================================================
# Specific Error Classes
# =============================================================================


class ConfigurationLookupError(PlannerError):
    """Raised when a fixed service has no resolvable per-service spec."""

    def __init__(self, service: str, message: str | None = None):
        super().__init__(
            code=PlannerErrorCode.CONFIGURATION_LOOKUP_FAILED,
            message=message or f"No service spec found for '{service}'",
            details={"service": service},
        )
        self.service = service


class SpecificationLoadError(PlannerError):
    """Raised when a cluster manifest cannot be read or validated."""

    def __init__(
        self,
        path: str,
        message: str,
        code: PlannerErrorCode = PlannerErrorCode.SPECIFICATION_INVALID,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            code=code,
            message=message,
            details={"path": path, **(details or {})},
        )
        self.path = path


class FactoryNotRegisteredError(PlannerError):
    """Raised when rendering a builder kind that has no factory."""

    def __init__(self, kind: str):
        super().__init__(
            code=PlannerErrorCode.FACTORY_NOT_REGISTERED,
            message=f"No resource factory registered for kind '{kind}'",
            details={"kind": kind},
        )
        self.kind = kind


class PlanInconsistencyError(PlannerError):
    """Raised when a computed plan violates its own invariants."""

    def __init__(self, message: str, resources: list[str]):
        super().__init__(
            code=PlannerErrorCode.PLAN_INCONSISTENT,
            message=message,
            details={"resources": resources},
        )
