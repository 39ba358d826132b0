# File: /risk-register/src/risk_register/api/routes.py

# Risk register endpoints. Every read and write path goes through the access
# policy; scoring runs whenever likelihood, impact or control effectiveness
# are created or changed.

import logging
from datetime import date
from typing import Any, Dict, List, Literal, Optional

import pandas as pd
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel

from risk_register.db import COLUMNS, RiskStore, store_for
from risk_register.helpers import build_matrix, risk_statistics, score_columns
from risk_register.models import UserContext
from risk_register.services import access_policy
from risk_register.services.risk_service import compute_risk_scores

logger = logging.getLogger(__name__)

router = APIRouter()

SCORE_INPUTS = ("likelihood", "impact", "control_effectiveness")

# Columns a risk can never be without; an explicit null for them is ignored.
REQUIRED_FIELDS = ("title", "category", "status")

RiskStatus = Literal["Open", "Mitigating", "Closed"]


class RiskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    category: str
    status: RiskStatus = "Open"
    owner_id: Optional[str] = None
    likelihood: float
    impact: float
    control_effectiveness: Optional[float] = None
    date_reported: Optional[date] = None


class RiskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    department: Optional[str] = None
    status: Optional[RiskStatus] = None
    owner_id: Optional[str] = None
    likelihood: Optional[float] = None
    impact: Optional[float] = None
    control_effectiveness: Optional[float] = None
    date_reported: Optional[date] = None


class ScoreRequest(BaseModel):
    likelihood: float
    impact: float
    control_effectiveness: Optional[float] = None


def get_store(request: Request) -> RiskStore:
    return store_for(request.app.state.settings.csv_path)


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_user_department: Optional[str] = Header(None),
) -> UserContext:
    """Build the caller's context from headers set by the authentication proxy."""
    if not x_user_id or x_user_department is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user identity.")
    return UserContext.from_raw(x_user_id, x_user_role, x_user_department)


def _deny(user: UserContext, action: str, target: str) -> HTTPException:
    logger.warning("Denied %s on %s for user %s (%s)", action, target, user.user_id, user.role)
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")


def _visible_frame(user: UserContext, store: RiskStore) -> pd.DataFrame:
    records = store.list_risks(department=access_policy.get_department_filter(user))
    return pd.DataFrame(records, columns=COLUMNS)


def _serialize(changes: Dict[str, Any]) -> Dict[str, Any]:
    if isinstance(changes.get("date_reported"), date):
        changes["date_reported"] = changes["date_reported"].isoformat()
    return changes


@router.get("/risks")
def list_risks(
    user: UserContext = Depends(get_current_user),
    store: RiskStore = Depends(get_store),
) -> List[Dict[str, Any]]:
    records = store.list_risks(department=access_policy.get_department_filter(user))
    return access_policy.filter_risks(user, records)


@router.get("/risks/statistics")
def get_statistics(
    user: UserContext = Depends(get_current_user),
    store: RiskStore = Depends(get_store),
) -> Dict[str, Any]:
    df = _visible_frame(user, store)
    return risk_statistics(df, include_by_department=access_policy.can_see_all_risks(user))


@router.get("/risks/matrix")
def get_matrix(
    user: UserContext = Depends(get_current_user),
    store: RiskStore = Depends(get_store),
) -> Dict[str, Any]:
    matrix = build_matrix(_visible_frame(user, store))
    return {"matrix": matrix.tolist()}


@router.get("/risks/{risk_id}")
def get_risk(
    risk_id: str,
    user: UserContext = Depends(get_current_user),
    store: RiskStore = Depends(get_store),
) -> Dict[str, Any]:
    risk = store.get_risk(risk_id)
    if not access_policy.can_see_risk(user, risk["department"]):
        raise _deny(user, "read", risk_id)
    return risk


@router.post("/risks", status_code=status.HTTP_201_CREATED)
def create_risk(
    payload: RiskCreate,
    user: UserContext = Depends(get_current_user),
    store: RiskStore = Depends(get_store),
) -> Dict[str, Any]:
    if not access_policy.can_create_risk(user):
        raise _deny(user, "create", "risks")

    scores = compute_risk_scores(payload.likelihood, payload.impact, payload.control_effectiveness)
    record = _serialize(payload.model_dump())
    record["date_reported"] = record["date_reported"] or date.today().isoformat()
    record["department"] = user.department
    record["owner_id"] = record["owner_id"] or user.user_id
    record.update(score_columns(scores))
    return store.create_risk(record)


@router.put("/risks/{risk_id}")
def update_risk(
    risk_id: str,
    payload: RiskUpdate,
    user: UserContext = Depends(get_current_user),
    store: RiskStore = Depends(get_store),
) -> Dict[str, Any]:
    existing = store.get_risk(risk_id)
    if not access_policy.can_edit_risk(user, existing["department"]):
        raise _deny(user, "edit", risk_id)

    changes = _serialize(payload.model_dump(exclude_unset=True))
    for key in REQUIRED_FIELDS + ("department",):
        if key in changes and changes[key] is None:
            del changes[key]
    if "department" in changes and not changes["department"].strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Department must not be empty."
        )
    new_department = changes.get("department", existing["department"])
    moved = new_department != existing["department"]
    if moved and not access_policy.can_edit_risk(user, new_department):
        raise _deny(user, "move", risk_id)

    if any(key in changes for key in SCORE_INPUTS):
        inputs = {key: changes.get(key, existing[key]) for key in SCORE_INPUTS}
        scores = compute_risk_scores(
            inputs["likelihood"], inputs["impact"], inputs["control_effectiveness"]
        )
        changes.update(score_columns(scores))

    return store.update_risk(risk_id, changes)


@router.delete("/risks/{risk_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_risk(
    risk_id: str,
    user: UserContext = Depends(get_current_user),
    store: RiskStore = Depends(get_store),
) -> None:
    existing = store.get_risk(risk_id)
    if not access_policy.can_delete_risk(user, existing["department"]):
        raise _deny(user, "delete", risk_id)
    store.delete_risk(risk_id)


@router.post("/scores")
def preview_scores(payload: ScoreRequest) -> Dict[str, Any]:
    """Score a likelihood/impact/control triple without storing anything."""
    return compute_risk_scores(
        payload.likelihood, payload.impact, payload.control_effectiveness
    ).to_dict()


@router.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}
