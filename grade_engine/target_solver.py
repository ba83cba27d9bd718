"""
Target score solver: the score needed on one assignment to reach an overall grade.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from grade_engine.errors import AssignmentNotFoundError, InvalidTargetError
from grade_engine.grade_calculator import (
    build_group_breakdown,
    compute_overall_grade,
    round_half_up,
    sort_groups,
)
from grade_engine.models import Assignment, AssignmentGroup
from grade_engine.what_if import project_groups

logger = logging.getLogger(__name__)

SOLVER_ITERATIONS = 50
# Search up to 150% of points possible to allow for extra credit.
SEARCH_CEILING_RATIO = 1.5
CEILING_EPSILON = 0.01


def find_assignment(groups: Sequence[AssignmentGroup], assignment_id: int) -> Assignment:
    for group in groups:
        for assignment in group.assignments:
            if assignment.id == assignment_id:
                return assignment
    raise AssignmentNotFoundError(f"Assignment {assignment_id} not found in the course data.")


def _grade_with(groups: Sequence[AssignmentGroup], uses_weights: bool, assignment_id: int, score: float) -> Optional[float]:
    breakdowns, _ = project_groups(groups, {assignment_id: score})
    return compute_overall_grade(breakdowns, uses_weights, exact=True)


def solve_target_score(
    groups: Sequence[AssignmentGroup],
    uses_weights: bool,
    target_grade: float,
    assignment_id: int,
) -> Dict[str, Any]:
    """
    Binary search for the score on assignment_id that brings the overall grade to
    target_grade.

    The overall grade never decreases as the one substituted score rises (given
    non-negative weights), so plain bisection over [0, 1.5 * points_possible]
    works. The loop always runs SOLVER_ITERATIONS times so the output is
    reproducible. After 50 halvings the interval is far narrower than the
    two-decimal result.

    Raises AssignmentNotFoundError or InvalidTargetError for references that
    cannot be solved for.

    Returns:
        assignment_id, assignment_name, target_grade, current_grade, points_possible,
        needed_score, needed_percentage, achievable, requires_extra_credit, note
    """
    try:
        target = float(target_grade)
    except (TypeError, ValueError):
        raise InvalidTargetError(f"Target grade {target_grade!r} is not a number.")
    if not 0 <= target <= 100:
        raise InvalidTargetError(f"Target grade {target:g} must be between 0 and 100.")

    assignment = find_assignment(groups, assignment_id)
    points_possible = assignment.points_possible
    if points_possible <= 0:
        raise InvalidTargetError(
            f'Assignment "{assignment.name}" has 0 points possible; cannot solve for a target score.'
        )

    current_grade = compute_overall_grade(
        [build_group_breakdown(g) for g in sort_groups(groups)], uses_weights
    )

    ceiling = points_possible * SEARCH_CEILING_RATIO
    lo, hi = 0.0, ceiling
    best = None

    for _ in range(SOLVER_ITERATIONS):
        mid = (lo + hi) / 2
        grade = _grade_with(groups, uses_weights, assignment_id, mid)
        if grade is None:
            break
        if grade < target:
            lo = mid
        else:
            hi = mid
            best = mid

    logger.debug("solver for assignment %s converged on [%r, %r]", assignment_id, lo, hi)

    result = {
        "assignment_id": assignment.id,
        "assignment_name": assignment.name,
        "target_grade": target,
        "current_grade": current_grade,
        "points_possible": points_possible,
        "needed_score": None,
        "needed_percentage": None,
        "achievable": False,
        "requires_extra_credit": False,
        "note": None,
    }

    needed_score = round_half_up(best, 2) if best is not None else None
    if needed_score is None or needed_score > ceiling - CEILING_EPSILON:
        logger.info("target %s%% unreachable through assignment %s", target, assignment_id)
        result["note"] = (
            f"A grade of {target:g}% is not achievable with this single assignment alone. "
            f"Even the maximum score (with extra credit) would not be enough."
        )
        return result

    needed_percentage = round_half_up(needed_score / points_possible * 100, 1)
    result["needed_score"] = needed_score
    result["needed_percentage"] = needed_percentage

    if needed_score > points_possible:
        result["requires_extra_credit"] = True
        result["note"] = (
            f"You would need {needed_percentage:g}% on this assignment, which is only "
            f"possible with extra credit."
        )
    else:
        result["achievable"] = True
        if needed_score <= 0:
            result["note"] = "You reach this target even with a score of 0 on this assignment."

    return result
