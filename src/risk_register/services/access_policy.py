"""Role and department access decisions for risk records.

Every decision depends only on the user's role and whether the user's
department matches the risk's department. Risk content (status, owner,
score) is never consulted.

Unknown roles resolve to the most restrictive known role, so a bad role
string can only ever reduce what a user may do.
"""

from typing import Any, List, Optional, Sequence, TypeVar

from risk_register.constants import (
    DELETE_ROLES,
    EDIT_ROLES,
    MOST_RESTRICTIVE_ROLE,
    ROLE_ACCESS_MAP,
)
from risk_register.models import AccessLevel, Role, UserContext

T = TypeVar("T")


def resolve_role(role: Any) -> Role:
    parsed = Role.parse(role)
    return parsed if parsed is not None else MOST_RESTRICTIVE_ROLE


def access_level_for(role: Any) -> AccessLevel:
    return ROLE_ACCESS_MAP[resolve_role(role)]


def _department_of(risk: Any) -> Any:
    if isinstance(risk, dict):
        return risk.get("department")
    return getattr(risk, "department", None)


def can_see_all_risks(user: UserContext) -> bool:
    return access_level_for(user.role) is AccessLevel.FULL


def can_see_risk(user: UserContext, risk_department: str) -> bool:
    return can_see_all_risks(user) or user.department == risk_department


def can_edit_risk(user: UserContext, risk_department: str) -> bool:
    if resolve_role(user.role) not in EDIT_ROLES:
        return False
    return can_see_all_risks(user) or user.department == risk_department


def can_delete_risk(user: UserContext, risk_department: str) -> bool:
    if resolve_role(user.role) not in DELETE_ROLES:
        return False
    return can_see_all_risks(user) or user.department == risk_department


def can_create_risk(user: UserContext) -> bool:
    """Creation ignores department; new risks are tagged with the creator's own."""
    return resolve_role(user.role) in EDIT_ROLES


def get_department_filter(user: UserContext) -> Optional[str]:
    """Department a bulk query must be restricted to, or None for no filter."""
    if can_see_all_risks(user):
        return None
    return user.department


def filter_risks(user: UserContext, risks: Sequence[T]) -> List[T]:
    """Keep the risks the user may see, in their original order."""
    if can_see_all_risks(user):
        return list(risks)
    return [risk for risk in risks if _department_of(risk) == user.department]


class AccessPolicy:
    """Namespace bundling the access decisions for callers that want one handle."""

    resolve_role = staticmethod(resolve_role)
    access_level_for = staticmethod(access_level_for)
    can_see_all_risks = staticmethod(can_see_all_risks)
    can_see_risk = staticmethod(can_see_risk)
    can_edit_risk = staticmethod(can_edit_risk)
    can_delete_risk = staticmethod(can_delete_risk)
    can_create_risk = staticmethod(can_create_risk)
    get_department_filter = staticmethod(get_department_filter)
    filter_risks = staticmethod(filter_risks)
