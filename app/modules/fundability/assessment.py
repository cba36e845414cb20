"""Assessment aggregate: responses plus the latest scored snapshot."""

from __future__ import annotations

import enum
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from app.modules.fundability.criteria import CriteriaCatalog
from app.modules.fundability.engine import CategoryScore, OverallScore, ScoringResult
from app.modules.fundability.recommendations import Recommendation


class AssessmentNotFoundError(LookupError):
    pass


class AssessmentFrozenError(Exception):
    """Raised when a completed assessment is asked to change."""


class AssessmentStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ResponseEntry:
    value: Any
    answered_at: datetime


@dataclass
class Assessment:
    id: uuid.UUID
    owner_id: uuid.UUID
    catalog_version: str
    industry: str | None = None
    responses: dict[str, ResponseEntry] = field(default_factory=dict)
    category_scores: list[CategoryScore] = field(default_factory=list)
    overall: OverallScore | None = None
    recommendations: list[Recommendation] = field(default_factory=list)
    completion_percentage: int = 0
    status: AssessmentStatus = AssessmentStatus.IN_PROGRESS
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    scored_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def start(
        cls,
        owner_id: uuid.UUID,
        catalog_version: str,
        industry: str | None = None,
    ) -> Assessment:
        now = _utcnow()
        return cls(
            id=uuid.uuid4(),
            owner_id=owner_id,
            catalog_version=catalog_version,
            industry=industry,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_frozen(self) -> bool:
        return self.status is AssessmentStatus.COMPLETED

    def ensure_mutable(self) -> None:
        if self.is_frozen:
            raise AssessmentFrozenError(
                f"Assessment {self.id} is completed and can no longer change"
            )

    def response_values(self) -> dict[str, Any]:
        return {cid: entry.value for cid, entry in self.responses.items()}

    def effective_industry(self) -> str | None:
        answered = self.responses.get("industry")
        if answered is not None and isinstance(answered.value, str) and answered.value:
            return answered.value
        return self.industry

    def record_responses(
        self, values: Mapping[str, Any], catalog: CriteriaCatalog
    ) -> list[str]:
        """Upsert answers; None clears an answer. Returns ids not in the catalog."""
        self.ensure_mutable()
        now = _utcnow()
        dropped: list[str] = []
        for criterion_id, value in values.items():
            if catalog.criterion(criterion_id) is None:
                dropped.append(criterion_id)
                continue
            if value is None:
                self.responses.pop(criterion_id, None)
            else:
                self.responses[criterion_id] = ResponseEntry(value=value, answered_at=now)
        self.updated_at = now
        return sorted(dropped)

    def apply_score(
        self, result: ScoringResult, recommendations: list[Recommendation]
    ) -> None:
        self.ensure_mutable()
        now = _utcnow()
        self.category_scores = list(result.category_scores)
        self.overall = result.overall
        self.recommendations = list(recommendations)
        self.completion_percentage = result.completion_percentage
        self.scored_at = now
        self.updated_at = now

    def complete(self) -> None:
        self.ensure_mutable()
        now = _utcnow()
        self.status = AssessmentStatus.COMPLETED
        self.completed_at = now
        self.updated_at = now


@dataclass
class ScoreHistoryEntry:
    """One point per owner per day; rescoring the same day replaces it."""

    owner_id: uuid.UUID
    recorded_on: date
    assessment_id: uuid.UUID
    overall_score: int
    grade: str
    category_percentages: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_assessment(cls, assessment: Assessment) -> ScoreHistoryEntry:
        overall = assessment.overall or OverallScore(percentage=0, grade="F")
        return cls(
            owner_id=assessment.owner_id,
            recorded_on=(assessment.scored_at or _utcnow()).date(),
            assessment_id=assessment.id,
            overall_score=overall.percentage,
            grade=overall.grade,
            category_percentages={
                s.category_id: s.percentage for s in assessment.category_scores
            },
        )
