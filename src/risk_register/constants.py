"""Fixed lookup tables for scoring, roles and departments.

All tables are immutable: tuples, frozensets and read-only mappings.
"""

from types import MappingProxyType
from typing import Mapping, Tuple

from risk_register.models import AccessLevel, RiskRating, Role

# Upper bounds (inclusive) of the first four buckets; anything above is bucket 4.
BUCKET_THRESHOLDS: Tuple[float, ...] = (20, 40, 60, 80)

# Rows are likelihood buckets, columns impact buckets: M[i][j] = 5 * i + j.
RATING_MATRIX: Tuple[Tuple[int, ...], ...] = tuple(
    tuple(5 * i + j for j in range(5)) for i in range(5)
)
MAX_MATRIX_VALUE = 24

RATING_SEQUENCE: Tuple[RiskRating, ...] = tuple(RiskRating)

# Upper bounds (inclusive) of the matrix-value bands per rating.
MATRIX_VALUE_BANDS: Tuple[Tuple[int, RiskRating], ...] = (
    (4, RiskRating.VERY_LOW),
    (9, RiskRating.LOW),
    (14, RiskRating.MEDIUM),
    (19, RiskRating.HIGH),
    (24, RiskRating.VERY_HIGH),
)

ROLE_ACCESS_MAP: Mapping[Role, AccessLevel] = MappingProxyType({
    Role.SUPERADMIN: AccessLevel.FULL,
    Role.AUDITOR: AccessLevel.FULL,
    Role.RISK_ADMIN: AccessLevel.DEPARTMENT,
    Role.BUSINESS_USER: AccessLevel.DEPARTMENT,
    Role.REVIEWER: AccessLevel.READ_ONLY,
})

# Unknown roles are treated as this one.
MOST_RESTRICTIVE_ROLE = Role.REVIEWER

EDIT_ROLES = frozenset({Role.SUPERADMIN, Role.RISK_ADMIN, Role.BUSINESS_USER})
DELETE_ROLES = frozenset({Role.SUPERADMIN, Role.RISK_ADMIN})

DEPARTMENT_CODES: Mapping[str, str] = MappingProxyType({
    "Credit Management Office": "CR",
    "Corporate Strategy": "CS",
    "Digital Banking": "DB",
    "Facility Management": "FM",
    "Finance Office": "FO",
    "Human Capital": "HC",
    "IFB": "IF",
    "Information & IT Service": "IT",
    "Internal Audit": "IA",
    "Legal Service": "LS",
    "Marketing Office": "MO",
    "Retail & SME": "RS",
    "Risk & Compliance": "RC",
    "Transformation Office": "TO",
    "Trade Service": "TS",
    "Wholesale Banking": "WS",
})


def get_department_code(department_name: str) -> str:
    """Two-letter code for a department name.

    Tries an exact match, then a case-insensitive match, then a substring
    match in either direction, and finally falls back to the first two
    letters uppercased.
    """
    if department_name in DEPARTMENT_CODES:
        return DEPARTMENT_CODES[department_name]

    normalized = department_name.lower()
    for name, code in DEPARTMENT_CODES.items():
        if name.lower() == normalized:
            return code

    for name, code in DEPARTMENT_CODES.items():
        key = name.lower()
        if key in normalized or normalized in key:
            return code

    return department_name[:2].upper()
