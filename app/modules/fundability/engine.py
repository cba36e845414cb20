"""Fundability scoring engine: pure, deterministic, synchronous.

Maps a criterion-id -> value response map onto per-category percentages and a
weighted overall score. Malformed values are scored as "no response" rather
than raising; only caller contract violations raise ScoringContractError.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any

from app.modules.fundability.criteria import (
    Category,
    CriteriaCatalog,
    Criterion,
    ResponseType,
)


class ScoringContractError(ValueError):
    """The caller broke the engine's contract (not a data-quality problem)."""


class CriterionStatus(str, enum.Enum):
    MET = "met"
    PARTIAL = "partial"
    UNMET = "unmet"
    MISSING = "missing"  # required, no valid response
    EXCLUDED = "excluded"  # optional, no valid response


_GRADES: tuple[tuple[int, str], ...] = (
    (90, "A+"),
    (80, "A"),
    (70, "B"),
    (60, "C"),
    (50, "D"),
)


@dataclass
class CriterionScore:
    criterion_id: str
    points: float
    max_points: float
    status: CriterionStatus
    required: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "criterion_id": self.criterion_id,
            "points": self.points,
            "max_points": self.max_points,
            "status": self.status.value,
            "required": self.required,
        }


@dataclass
class CategoryScore:
    category_id: str
    raw_score: float
    max_score: float
    percentage: int
    completed_criteria: int
    total_criteria: int
    is_complete: bool
    criteria: list[CriterionScore] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category_id": self.category_id,
            "raw_score": self.raw_score,
            "max_score": self.max_score,
            "percentage": self.percentage,
            "completed_criteria": self.completed_criteria,
            "total_criteria": self.total_criteria,
            "is_complete": self.is_complete,
            "criteria": [c.to_dict() for c in self.criteria],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CategoryScore:
        return cls(
            category_id=data["category_id"],
            raw_score=data["raw_score"],
            max_score=data["max_score"],
            percentage=data["percentage"],
            completed_criteria=data["completed_criteria"],
            total_criteria=data["total_criteria"],
            is_complete=data["is_complete"],
            criteria=[
                CriterionScore(
                    criterion_id=c["criterion_id"],
                    points=c["points"],
                    max_points=c["max_points"],
                    status=CriterionStatus(c["status"]),
                    required=c["required"],
                )
                for c in data.get("criteria", [])
            ],
        )


@dataclass
class OverallScore:
    percentage: int
    grade: str
    weights: dict[str, float] = field(default_factory=dict)  # normalised, qualifying only

    def to_dict(self) -> dict[str, Any]:
        return {
            "percentage": self.percentage,
            "grade": self.grade,
            "weights": self.weights,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OverallScore:
        return cls(
            percentage=data["percentage"],
            grade=data["grade"],
            weights=dict(data.get("weights", {})),
        )


@dataclass
class ScoringResult:
    catalog_version: str
    category_scores: list[CategoryScore]
    overall: OverallScore
    completion_percentage: int


# ── Helpers ──────────────────────────────────────────────────────────────────


def round_half_up(value: Fraction | float) -> int:
    """Round to the nearest integer, .5 away from zero for non-negative input."""
    return math.floor(Fraction(value) + Fraction(1, 2))


def grade_for(percentage: int) -> str:
    for threshold, grade in _GRADES:
        if percentage >= threshold:
            return grade
    return "F"


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def criterion_points(criterion: Criterion, value: Any) -> float | None:
    """Points earned by ``value``; None when the value counts as no response."""
    kind = criterion.response_type

    if kind is ResponseType.BOOLEAN:
        if not isinstance(value, bool):
            return None
        return float(criterion.weight) if value else 0.0

    if kind is ResponseType.NUMBER:
        if not _is_number(value):
            return None
        for bucket in criterion.buckets():
            if bucket.contains(value):
                return float(bucket.points)
        return 0.0  # below the first bucket

    if kind is ResponseType.SELECT:
        if not isinstance(value, str):
            return None
        if criterion.options:
            if value not in criterion.options:
                return None
        elif not value.strip():
            return None
        if value in criterion.no_score_options:
            return 0.0
        if value in criterion.satisfies:
            return float(criterion.weight)
        partial = dict(criterion.option_points)
        if value in partial:
            return float(partial[value])
        if not criterion.satisfies:
            return float(criterion.weight)
        return 0.0

    if kind is ResponseType.TEXT:
        if not isinstance(value, str) or not value.strip():
            return None
        return float(criterion.weight)

    return None


def _check_responses(responses: Any) -> Mapping[str, Any]:
    if responses is None:
        return {}
    if not isinstance(responses, Mapping):
        raise ScoringContractError(
            f"responses must be a mapping, got {type(responses).__name__}"
        )
    return responses


# ── Aggregation ──────────────────────────────────────────────────────────────


def compute_category_score(
    category: Category, responses: Mapping[str, Any] | None
) -> CategoryScore:
    """Score one category.

    Required criteria always count toward the max; optional criteria count
    only when they carry a valid response.
    """
    responses = _check_responses(responses)
    raw = Fraction(0)
    maximum = Fraction(0)
    completed = 0
    required_missing = False
    breakdown: list[CriterionScore] = []

    for criterion in category.criteria:
        points = (
            criterion_points(criterion, responses[criterion.id])
            if criterion.id in responses
            else None
        )
        if points is None:
            if criterion.required:
                maximum += Fraction(criterion.weight)
                required_missing = True
                status = CriterionStatus.MISSING
                max_points = float(criterion.weight)
            else:
                status = CriterionStatus.EXCLUDED
                max_points = 0.0
            breakdown.append(
                CriterionScore(
                    criterion_id=criterion.id,
                    points=0.0,
                    max_points=max_points,
                    status=status,
                    required=criterion.required,
                )
            )
            continue

        completed += 1
        raw += Fraction(points)
        maximum += Fraction(criterion.weight)
        if points >= criterion.weight:
            status = CriterionStatus.MET
        elif points > 0:
            status = CriterionStatus.PARTIAL
        else:
            status = CriterionStatus.UNMET
        breakdown.append(
            CriterionScore(
                criterion_id=criterion.id,
                points=points,
                max_points=float(criterion.weight),
                status=status,
                required=criterion.required,
            )
        )

    if maximum > 0:
        percentage = min(100, max(0, round_half_up(raw / maximum * 100)))
    else:
        percentage = 0

    return CategoryScore(
        category_id=category.id,
        raw_score=float(raw),
        max_score=float(maximum),
        percentage=percentage,
        completed_criteria=completed,
        total_criteria=len(category.criteria),
        is_complete=maximum > 0 and not required_missing,
        criteria=breakdown,
    )


def normalized_weights(
    category_scores: Sequence[CategoryScore], categories: Sequence[Category]
) -> dict[str, Fraction]:
    """Category weights normalised over categories that have a non-zero max."""
    by_id = {c.id: c for c in categories}
    qualifying: dict[str, Fraction] = {}
    for score in category_scores:
        category = by_id.get(score.category_id)
        if category is None:
            raise ScoringContractError(
                f"Category {score.category_id!r} is not in the supplied catalog"
            )
        if score.max_score > 0 and category.weight > 0:
            qualifying[score.category_id] = Fraction(category.weight)

    total = sum(qualifying.values(), Fraction(0))
    if total == 0:
        return {}
    return {cid: w / total for cid, w in qualifying.items()}


def compute_overall_score(
    category_scores: Sequence[CategoryScore], categories: Sequence[Category]
) -> OverallScore:
    weights = normalized_weights(category_scores, categories)
    if not weights:
        return OverallScore(percentage=0, grade=grade_for(0), weights={})

    total = sum(
        (weights[s.category_id] * s.percentage for s in category_scores if s.category_id in weights),
        Fraction(0),
    )
    percentage = min(100, max(0, round_half_up(total)))
    return OverallScore(
        percentage=percentage,
        grade=grade_for(percentage),
        weights={cid: round(float(w), 4) for cid, w in weights.items()},
    )


def completion_percentage(category_scores: Sequence[CategoryScore]) -> int:
    """Share of catalog criteria carrying a valid response."""
    total = sum(s.total_criteria for s in category_scores)
    if total == 0:
        return 0
    answered = sum(s.completed_criteria for s in category_scores)
    return round_half_up(Fraction(answered, total) * 100)


def score_responses(
    catalog: CriteriaCatalog, responses: Mapping[str, Any] | None
) -> ScoringResult:
    """Score a full response map against every category of ``catalog``."""
    responses = _check_responses(responses)
    category_scores = [
        compute_category_score(category, responses) for category in catalog.categories
    ]
    overall = compute_overall_score(category_scores, catalog.categories)
    return ScoringResult(
        catalog_version=catalog.version,
        category_scores=category_scores,
        overall=overall,
        completion_percentage=completion_percentage(category_scores),
    )
