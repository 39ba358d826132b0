# File: /risk-register/src/risk_register/models.py

"""
models.py

Value types shared by the scoring and access-control modules.

Everything here is request-scoped: built fresh per call and never mutated.
Persisted risk rows live in the store as plain dictionaries and only carry
the flattened score columns.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class RiskRating(str, Enum):
    """Ordered risk rating labels, lowest first."""

    VERY_LOW = "Very Low"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "Very High"

    @property
    def rank(self) -> int:
        return list(RiskRating).index(self)


class Role(str, Enum):
    """Closed set of user roles, valued as stored on the user record."""

    SUPERADMIN = "superadmin"
    RISK_ADMIN = "risk_admin"
    BUSINESS_USER = "business_user"
    REVIEWER = "reviewer"
    AUDITOR = "auditor"

    @classmethod
    def parse(cls, value: Any) -> Optional["Role"]:
        """Parse a stored role string, ignoring case and separators.

        Returns None for anything outside the closed set.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("_", "").replace("-", "").replace(" ", "")
        for role in cls:
            if role.value.replace("_", "") == key:
                return role
        return None


class AccessLevel(str, Enum):
    FULL = "full"
    DEPARTMENT = "department"
    READ_ONLY = "read_only"


@dataclass(frozen=True)
class UserContext:
    """The slice of an authenticated user the access policy reads.

    ``role`` is normally a ``Role``; a raw string is tolerated and resolved
    by the policy, failing closed when unrecognized.
    """

    user_id: str
    role: Union[Role, str, None]
    department: str

    @classmethod
    def from_raw(cls, user_id: Any, role: Any, department: Any) -> "UserContext":
        parsed = Role.parse(role)
        return cls(
            user_id=str(user_id),
            role=parsed if parsed is not None else role,
            department=str(department or ""),
        )


@dataclass(frozen=True)
class InherentRisk:
    score: float
    matrix_value: int
    rating: RiskRating


@dataclass(frozen=True)
class ResidualRisk:
    score: float
    rating: RiskRating


@dataclass(frozen=True)
class RiskScoreResult:
    """Inherent, optional residual, and final sortable risk score."""

    inherent_risk: InherentRisk
    residual_risk: Optional[ResidualRisk]
    risk_score: float

    @property
    def rating(self) -> RiskRating:
        if self.residual_risk is not None:
            return self.residual_risk.rating
        return self.inherent_risk.rating

    def to_dict(self) -> Dict[str, Any]:
        residual = None
        if self.residual_risk is not None:
            residual = {
                "score": self.residual_risk.score,
                "rating": self.residual_risk.rating.value,
            }
        return {
            "inherent_risk": {
                "score": self.inherent_risk.score,
                "matrix_value": self.inherent_risk.matrix_value,
                "rating": self.inherent_risk.rating.value,
            },
            "residual_risk": residual,
            "risk_score": self.risk_score,
        }
