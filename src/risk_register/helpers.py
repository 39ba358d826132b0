import numpy as np
import pandas as pd
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from risk_register.constants import get_department_code
from risk_register.models import RiskRating, RiskScoreResult
from risk_register.services.risk_service import bucket

TOP_RISK_COUNT = 5
TREND_MONTHS = 12


def score_columns(result: RiskScoreResult) -> Dict[str, Any]:
    """Flatten a score result into the register's score columns."""
    residual = result.residual_risk
    return {
        "inherent_score": result.inherent_risk.score,
        "inherent_matrix_value": result.inherent_risk.matrix_value,
        "inherent_rating": result.inherent_risk.rating.value,
        "residual_score": residual.score if residual is not None else None,
        "residual_rating": residual.rating.value if residual is not None else None,
        "risk_score": result.risk_score,
        "risk_rating": result.rating.value,
    }


def next_risk_id(department: str, existing_ids: Iterable[str]) -> str:
    """Next free ID of the form <DEPT-CODE>-NN for a department."""
    code = get_department_code(department)
    highest = 0
    for risk_id in existing_ids:
        parts = str(risk_id).split("-")
        if len(parts) != 2 or parts[0] != code:
            continue
        try:
            number = int(parts[1])
        except ValueError:
            continue
        highest = max(highest, number)
    return f"{code}-{highest + 1:02d}"


def build_matrix(df: pd.DataFrame) -> np.ndarray:
    """Build 5x5 matrix of risk counts by likelihood/impact bucket."""
    matrix = np.zeros((5, 5), dtype=int)
    if df.empty:
        return matrix
    likelihood = pd.to_numeric(df["likelihood"], errors="coerce")
    impact = pd.to_numeric(df["impact"], errors="coerce")
    valid = likelihood.between(0, 100) & impact.between(0, 100)
    for l_value, i_value in zip(likelihood[valid], impact[valid]):
        matrix[bucket(l_value), bucket(i_value)] += 1
    return matrix


def _counts(series: pd.Series) -> Dict[str, int]:
    return {str(k): int(v) for k, v in series.dropna().value_counts(sort=False).items()}


def _top_risks(df: pd.DataFrame) -> List[Dict[str, Any]]:
    scores = pd.to_numeric(df["risk_score"], errors="coerce")
    ranked = df.assign(_score=scores).sort_values(
        "_score", ascending=False, kind="stable", na_position="last"
    )
    top = []
    for _, row in ranked.head(TOP_RISK_COUNT).iterrows():
        top.append({
            "risk_id": row["risk_id"],
            "title": row["title"],
            "department": row["department"],
            "risk_score": None if pd.isna(row["_score"]) else float(row["_score"]),
        })
    return top


def _trend(df: pd.DataFrame, today: date) -> List[Dict[str, Any]]:
    """Risks reported per month over the last TREND_MONTHS months, oldest first."""
    months = pd.period_range(end=pd.Timestamp(today).to_period("M"), periods=TREND_MONTHS, freq="M")
    reported = pd.to_datetime(df["date_reported"], errors="coerce").dropna()
    counts = reported.dt.to_period("M").value_counts()
    return [{"month": month.strftime("%Y-%m"), "count": int(counts.get(month, 0))} for month in months]


def risk_statistics(
    df: pd.DataFrame,
    include_by_department: bool = False,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Dashboard figures for an already access-filtered set of risks."""
    by_rating = {rating.value: 0 for rating in RiskRating}
    for label, count in _counts(df["risk_rating"]).items():
        if label in by_rating:
            by_rating[label] = count

    control = pd.to_numeric(df["control_effectiveness"], errors="coerce")
    controlled = control[control > 0]
    average_control = float(controlled.mean()) if len(controlled) else 0.0

    stats = {
        "total": int(len(df)),
        "by_rating": by_rating,
        "by_status": _counts(df["status"]),
        "by_category": _counts(df["category"]),
        "top_risks": _top_risks(df),
        "average_control_effectiveness": average_control,
        "trend": _trend(df, today or date.today()),
    }
    if include_by_department:
        stats["by_department"] = _counts(df["department"])
        by_department = df.loc[controlled.index, "department"].to_frame().assign(control=controlled)
        stats["average_control_effectiveness_by_department"] = {
            str(k): float(v) for k, v in by_department.groupby("department")["control"].mean().items()
        }
    return stats
