# File: /risk-register/src/risk_register/services/risk_service.py

"""
Risk Service Module

Scores risks on the 5x5 likelihood/impact matrix.

Inherent risk is rated from the discrete matrix value (0-24) while residual
risk is rated by re-bucketing its continuous 0-100 score. The two band sets
are close but not identical; keep them separate.

Nothing in this module logs or keeps state, so every function is safe to
call concurrently.
"""

import math
from numbers import Real
from typing import Any, Optional

from risk_register.constants import (
    BUCKET_THRESHOLDS,
    MATRIX_VALUE_BANDS,
    MAX_MATRIX_VALUE,
    RATING_MATRIX,
    RATING_SEQUENCE,
)
from risk_register.errors import ScoreValidationError
from risk_register.models import InherentRisk, ResidualRisk, RiskRating, RiskScoreResult


def validate_percentage(field: str, value: Any) -> float:
    """
    Check that a scoring input is a real number in [0, 100].

    Args:
        field (str): Name reported in the error.
        value: The raw input.

    Returns:
        float: The value as a float.

    Raises:
        ScoreValidationError: If the value is missing, non-numeric, NaN or out of range.
    """
    if value is None:
        raise ScoreValidationError(field, value, "value is required")
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ScoreValidationError(field, value, "value must be a number")
    number = float(value)
    if math.isnan(number):
        raise ScoreValidationError(field, value, "value must be a number")
    if number < 0 or number > 100:
        raise ScoreValidationError(field, value, "value must be between 0 and 100")
    return number


def bucket(score: float) -> int:
    """Quantize a 0-100 value into one of five matrix indexes."""
    for index, upper in enumerate(BUCKET_THRESHOLDS):
        if score <= upper:
            return index
    return len(BUCKET_THRESHOLDS)


def matrix_index_to_rating(index: int) -> RiskRating:
    return RATING_SEQUENCE[max(0, min(len(RATING_SEQUENCE) - 1, index))]


def matrix_value_to_rating(value: int) -> RiskRating:
    for upper, rating in MATRIX_VALUE_BANDS:
        if value <= upper:
            return rating
    return RiskRating.VERY_HIGH


def matrix_value(likelihood: float, impact: float) -> int:
    return RATING_MATRIX[bucket(likelihood)][bucket(impact)]


def calculate_inherent_risk(likelihood: float, impact: float) -> InherentRisk:
    """
    Score a risk before controls.

    Args:
        likelihood (float): Likelihood on a 0-100 scale.
        impact (float): Impact on a 0-100 scale.

    Returns:
        InherentRisk: Matrix value, its 0-100 projection, and the banded rating.
    """
    value = matrix_value(likelihood, impact)
    score = (value / MAX_MATRIX_VALUE) * 100
    return InherentRisk(score=score, matrix_value=value, rating=matrix_value_to_rating(value))


def calculate_residual_risk(inherent_score: float, control_effectiveness: float) -> ResidualRisk:
    """
    Discount an inherent score by control effectiveness.

    Args:
        inherent_score (float): Inherent risk score on a 0-100 scale.
        control_effectiveness (float): Percentage of risk mitigated by controls.

    Returns:
        ResidualRisk: Remaining score and its rating.
    """
    score = inherent_score * (1 - control_effectiveness / 100)
    return ResidualRisk(score=score, rating=matrix_index_to_rating(bucket(score)))


def compute_risk_scores(
    likelihood: Any,
    impact: Any,
    control_effectiveness: Optional[Any] = None,
) -> RiskScoreResult:
    """
    Compute every score stored alongside a risk record.

    Args:
        likelihood: Likelihood on a 0-100 scale.
        impact: Impact on a 0-100 scale.
        control_effectiveness: Optional control effectiveness on a 0-100 scale.

    Returns:
        RiskScoreResult: Inherent risk, residual risk when controls are given,
        and the final risk score (residual if present, otherwise inherent).

    Raises:
        ScoreValidationError: If any supplied input is invalid.
    """
    likelihood = validate_percentage("likelihood", likelihood)
    impact = validate_percentage("impact", impact)
    if control_effectiveness is not None:
        control_effectiveness = validate_percentage("control_effectiveness", control_effectiveness)

    inherent = calculate_inherent_risk(likelihood, impact)
    residual = None
    if control_effectiveness is not None:
        residual = calculate_residual_risk(inherent.score, control_effectiveness)

    risk_score = residual.score if residual is not None else inherent.score
    return RiskScoreResult(inherent_risk=inherent, residual_risk=residual, risk_score=risk_score)
