"""
Course grade breakdown: per-group results plus a short analysis.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from grade_engine.deflation import detect_grade_deflation
from grade_engine.grade_calculator import (
    build_group_breakdown,
    compute_overall_grade,
    get_letter_grade,
    sort_groups,
)
from grade_engine.models import AssignmentGroup, GroupBreakdown
from grade_engine.what_if import project_grade

# Uniform scores assumed on all remaining work for the projections.
SCENARIO_PERCENTAGES = {"grade_if_perfect": 100, "grade_if_80pct": 80, "grade_if_60pct": 60}


def _summary(group: Optional[GroupBreakdown]) -> Optional[Dict[str, Any]]:
    if group is None:
        return None
    return {"name": group.name, "percentage": group.group_percentage}


def find_strongest_group(breakdowns: Sequence[GroupBreakdown]) -> Optional[GroupBreakdown]:
    """Highest group percentage among groups with graded work; the first wins ties."""
    best = None
    for g in breakdowns:
        if g.group_percentage is None:
            continue
        if best is None or g.group_percentage > best.group_percentage:
            best = g
    return best


def find_weakest_group(breakdowns: Sequence[GroupBreakdown]) -> Optional[GroupBreakdown]:
    worst = None
    for g in breakdowns:
        if g.group_percentage is None:
            continue
        if worst is None or g.group_percentage < worst.group_percentage:
            worst = g
    return worst


def ungraded_points_remaining(breakdowns: Sequence[GroupBreakdown]) -> float:
    return sum(r.points_possible for b in breakdowns for r in b.assignments if not r.graded)


def build_grade_breakdown(
    groups: Sequence[AssignmentGroup],
    uses_weights: bool,
    grade_scale: dict = None,
    now: Optional[datetime] = None,
    current_score: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Build the full category breakdown for a course.

    groups: assignment groups, already limited to assignments that count
    uses_weights: whether group weights apply
    grade_scale: {letter: min_percentage}; DEFAULT_GRADE_SCALE when omitted
    now: reference time for future-zero detection; skipped when None
    current_score: the gradebook's own current score, compared with the
        deflation-adjusted score

    Returns:
        uses_weighted_groups, current_grade, letter_grade, groups, analysis
    """
    ordered = sort_groups(groups)
    breakdowns: List[GroupBreakdown] = [build_group_breakdown(g) for g in ordered]
    current_grade = compute_overall_grade(breakdowns, uses_weights)

    analysis: Dict[str, Any] = {
        "strongest_group": _summary(find_strongest_group(breakdowns)),
        "weakest_group": _summary(find_weakest_group(breakdowns)),
        "ungraded_points_remaining": ungraded_points_remaining(breakdowns),
    }
    for key, pct in SCENARIO_PERCENTAGES.items():
        analysis[key] = project_grade(ordered, uses_weights, pct)

    analysis["deflation"] = (
        detect_grade_deflation(ordered, now, current_score) if now is not None else None
    )

    return {
        "uses_weighted_groups": uses_weights,
        "current_grade": current_grade,
        "letter_grade": get_letter_grade(current_grade, grade_scale),
        "groups": [b.to_dict() for b in breakdowns],
        "analysis": analysis,
    }
