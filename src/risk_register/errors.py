"""Errors raised by the risk register.

Policy denials are not errors: the access functions return booleans and the
caller decides how to refuse.
"""

from typing import Any


class RiskRegisterError(Exception):
    """Base error for the risk register."""


class ScoreValidationError(RiskRegisterError, ValueError):
    """Raised when a likelihood, impact or control effectiveness input is unusable."""

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"{field}: {reason} (got {value!r})")


class RiskNotFoundError(RiskRegisterError, LookupError):
    """Raised when a risk ID is not in the register."""

    def __init__(self, risk_id: str):
        self.risk_id = risk_id
        super().__init__(f"Risk {risk_id} not found.")


class DuplicateRiskError(RiskRegisterError, ValueError):
    """Raised when a risk ID has already been issued."""

    def __init__(self, risk_id: str):
        self.risk_id = risk_id
        super().__init__(f"Risk {risk_id} already exists.")
