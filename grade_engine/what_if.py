"""
What-if projections: recompute the grade with hypothetical scores overlaid.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from grade_engine.grade_calculator import (
    aggregate_group,
    build_assignment_record,
    build_group_breakdown,
    compute_overall_grade,
    is_graded,
    round_half_up,
    sort_groups,
)
from grade_engine.models import Assignment, AssignmentGroup, GroupBreakdown, HypotheticalOverlay

logger = logging.getLogger(__name__)

# Ratios of points possible above which a hypothetical score gets flagged.
IMPLAUSIBLE_SCORE_RATIO = 1.5
EXTRA_CREDIT_RATIO = 1.0


def _project_record(assignment: Assignment, overlay: HypotheticalOverlay, assumed_percentage: Optional[float]):
    if assignment.id in overlay:
        return build_assignment_record(assignment, score_override=overlay[assignment.id]), True

    if (
        assumed_percentage is not None
        and not is_graded(assignment)
        and assignment.points_possible > 0
    ):
        hypothetical = assignment.points_possible * assumed_percentage / 100
        return build_assignment_record(assignment, score_override=hypothetical), False

    return build_assignment_record(assignment), False


def project_groups(
    groups: Sequence[AssignmentGroup],
    overlay: Optional[HypotheticalOverlay] = None,
    assumed_percentage: Optional[float] = None,
) -> Tuple[List[GroupBreakdown], List[Dict[str, Any]]]:
    """
    Rebuild every group with hypothetical scores substituted in.

    overlay: {assignment_id: score}. Listed assignments count as graded with that
        score, whether or not they were graded for real.
    assumed_percentage: when set, every other ungraded assignment with positive
        points is treated as graded at this percentage.

    Drop rules run on the combined real and hypothetical graded set, so a low
    hypothetical score can be dropped itself.

    Returns (breakdowns, scenarios_applied). Overlay ids that match no assignment
    are ignored.
    """
    overlay = overlay or {}
    scenarios_applied = []
    breakdowns = []

    for group in sort_groups(groups):
        records = []
        for assignment in group.assignments:
            record, from_overlay = _project_record(assignment, overlay, assumed_percentage)
            if from_overlay:
                scenarios_applied.append({
                    "assignment_id": assignment.id,
                    "assignment": assignment.name,
                    "hypothetical_score": record.score,
                    "points_possible": assignment.points_possible,
                })
            records.append(record)
        breakdowns.append(aggregate_group(group, records))

    return breakdowns, scenarios_applied


def project_grade(groups: Sequence[AssignmentGroup], uses_weights: bool, assumed_percentage: float) -> Optional[float]:
    """Overall grade if every ungraded assignment scored assumed_percentage."""
    breakdowns, _ = project_groups(groups, assumed_percentage=assumed_percentage)
    grade = compute_overall_grade(breakdowns, uses_weights)
    logger.debug("projected grade at %s%% on remaining work: %s", assumed_percentage, grade)
    return grade


def check_hypothetical_scores(groups: Sequence[AssignmentGroup], overlay: HypotheticalOverlay) -> Tuple[List[str], List[str]]:
    """
    Flag hypothetical scores above points possible.

    Returns (warnings, notes). A score over 150% of points possible is a warning
    because it is probably a typo. A score between 100% and 150% is a note
    because it is treated as extra credit.
    """
    lookup = {a.id: a for g in groups for a in g.assignments}
    warnings: List[str] = []
    notes: List[str] = []

    for assignment_id, score in overlay.items():
        assignment = lookup.get(assignment_id)
        if assignment is None or assignment.points_possible <= 0:
            continue

        possible = assignment.points_possible
        if score > possible * IMPLAUSIBLE_SCORE_RATIO:
            warnings.append(
                f'Score {score:g} for "{assignment.name}" exceeds 150% of points possible '
                f"({possible:g}). This seems unusually high."
            )
        elif score > possible * EXTRA_CREDIT_RATIO:
            notes.append(
                f'Score {score:g} for "{assignment.name}" exceeds points possible '
                f"({possible:g}). Treating as extra credit."
            )

    return warnings, notes


def calculate_what_if(groups: Sequence[AssignmentGroup], uses_weights: bool, overlay: HypotheticalOverlay) -> Dict[str, Any]:
    """
    Compare the current grade with the grade after applying hypothetical scores.

    Returns:
        current_grade, projected_grade, change, scenarios_applied, group_impacts,
        warnings, notes
    """
    warnings, notes = check_hypothetical_scores(groups, overlay)

    current = [build_group_breakdown(g) for g in sort_groups(groups)]
    current_grade = compute_overall_grade(current, uses_weights)

    projected, scenarios_applied = project_groups(groups, overlay)
    projected_grade = compute_overall_grade(projected, uses_weights)

    group_impacts = [
        {
            "group": cur.name,
            "current_pct": cur.group_percentage,
            "projected_pct": proj.group_percentage,
        }
        for cur, proj in zip(current, projected)
        if cur.group_percentage != proj.group_percentage
    ]

    change = None
    if current_grade is not None and projected_grade is not None:
        change = round_half_up(projected_grade - current_grade, 1)

    logger.debug(
        "what-if: %d of %d overrides applied, %s -> %s",
        len(scenarios_applied), len(overlay), current_grade, projected_grade,
    )

    return {
        "current_grade": current_grade,
        "projected_grade": projected_grade,
        "change": change,
        "scenarios_applied": scenarios_applied,
        "group_impacts": group_impacts,
        "warnings": warnings,
        "notes": notes,
    }
