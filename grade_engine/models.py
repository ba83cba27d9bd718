"""
Typed records for the grade engine.

Optional numbers use None for "absent". A score of 0 is a real earned score and
is never used to mean "not graded yet".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

HypotheticalOverlay = Mapping[int, float]


@dataclass(frozen=True, slots=True)
class ScoreStatistics:
    mean: float
    min: float
    max: float
    median: Optional[float] = None
    upper_q: Optional[float] = None
    lower_q: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {"mean": self.mean, "min": self.min, "max": self.max}
        for key in ("median", "upper_q", "lower_q"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out


@dataclass(frozen=True, slots=True)
class Submission:
    workflow_state: str = "unsubmitted"
    score: Optional[float] = None
    late: bool = False
    missing: bool = False


@dataclass(frozen=True, slots=True)
class Assignment:
    id: int
    name: str
    points_possible: float
    due_at: Optional[str] = None
    submission: Optional[Submission] = None
    score_statistics: Optional[ScoreStatistics] = None


@dataclass(frozen=True, slots=True)
class AssignmentGroup:
    """A weighted category. Holds only assignments that count toward the grade."""

    id: int
    name: str
    weight: float = 0.0
    position: int = 0
    drop_lowest: int = 0
    drop_highest: int = 0
    assignments: Tuple[Assignment, ...] = ()


@dataclass(frozen=True, slots=True)
class AssignmentRecord:
    id: int
    name: str
    points_possible: float
    graded: bool
    score: Optional[float] = None
    percentage: Optional[float] = None
    due_at: Optional[str] = None
    late: bool = False
    missing: bool = False
    score_statistics: Optional[ScoreStatistics] = None

    def __post_init__(self):
        if self.graded and self.score is None:
            raise ValueError(f"Graded assignment {self.id} has no score.")
        if not self.graded and (self.score is not None or self.percentage is not None):
            raise ValueError(f"Ungraded assignment {self.id} carries a score.")
        if (self.percentage is not None) != (self.graded and self.points_possible > 0):
            raise ValueError(
                f"Assignment {self.id}: percentage must be present exactly when graded "
                f"with positive points possible."
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "score": self.score,
            "points_possible": self.points_possible,
            "percentage": self.percentage,
            "graded": self.graded,
            "due_at": self.due_at,
            "late": self.late,
            "missing": self.missing,
            "score_statistics": self.score_statistics.to_dict() if self.score_statistics else None,
        }


@dataclass(frozen=True, slots=True)
class GroupBreakdown:
    name: str
    weight: float
    earned_points: float
    possible_points: float
    group_percentage: Optional[float]
    weighted_contribution: Optional[float]
    drop_lowest: int
    drop_highest: int
    graded_count: int
    total_count: int
    assignments: Tuple[AssignmentRecord, ...] = ()
    counted_assignments: Tuple[AssignmentRecord, ...] = field(default=(), repr=False)

    @property
    def exact_percentage(self) -> Optional[float]:
        """Unrounded earned/possible percentage, or None without graded work."""
        if self.possible_points > 0:
            return self.earned_points / self.possible_points * 100
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "weight": self.weight,
            "earned_points": self.earned_points,
            "possible_points": self.possible_points,
            "group_percentage": self.group_percentage,
            "weighted_contribution": self.weighted_contribution,
            "drop_lowest": self.drop_lowest or None,
            "drop_highest": self.drop_highest or None,
            "graded_count": self.graded_count,
            "total_count": self.total_count,
            "assignments": [a.to_dict() for a in self.assignments],
        }
