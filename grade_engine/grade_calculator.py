"""
Grade calculation engine. Pure logic with no I/O.

The flow for one request:
    Assignment -> AssignmentRecord (normalizer)
    graded records -> counted records (drop rules)
    counted records -> GroupBreakdown (aggregator)
    GroupBreakdowns -> overall percentage (weighted or points based)
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Sequence

from grade_engine.models import (
    Assignment,
    AssignmentGroup,
    AssignmentRecord,
    GroupBreakdown,
)

logger = logging.getLogger(__name__)

DEFAULT_GRADE_SCALE = {"A": 93, "B": 83, "C": 73, "D": 63, "F": 0}


def round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 toward +inf, the way the LMS gradebook does (round() rounds to even)."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def _percent(earned: float, possible: float) -> Optional[float]:
    if possible > 0:
        return round_half_up(earned / possible * 100, 1)
    return None


def is_graded(assignment: Assignment) -> bool:
    sub = assignment.submission
    return sub is not None and sub.workflow_state == "graded" and sub.score is not None


# ── Normalizer ────────────────────────────────────────────────────────────────


def build_assignment_record(assignment: Assignment, score_override: Optional[float] = None) -> AssignmentRecord:
    """
    Convert one assignment and its submission into an AssignmentRecord.

    score_override forces the record to graded with that score; the what-if
    projector uses it for hypothetical scores.
    """
    sub = assignment.submission
    if score_override is not None:
        graded = True
        score = float(score_override)
    else:
        graded = is_graded(assignment)
        score = sub.score if graded else None

    percentage = _percent(score, assignment.points_possible) if graded else None

    return AssignmentRecord(
        id=assignment.id,
        name=assignment.name,
        points_possible=assignment.points_possible,
        graded=graded,
        score=score,
        percentage=percentage,
        due_at=assignment.due_at,
        late=sub.late if sub else False,
        missing=sub.missing if sub else False,
        score_statistics=assignment.score_statistics,
    )


# ── Drop rules ────────────────────────────────────────────────────────────────


def _drop_key(record: AssignmentRecord) -> float:
    if record.points_possible > 0:
        return (record.score or 0) / record.points_possible
    return 0


def apply_drop_rules(graded: Sequence[AssignmentRecord], drop_lowest: int, drop_highest: int) -> Sequence[AssignmentRecord]:
    """
    Remove the N lowest and M highest scoring records from a group's graded work.

    Records are compared by percentage so assignments worth different points are
    dropped fairly. Ties keep list order (the earlier record sorts first). At least
    one record always survives. Returns the survivors in their original order.
    """
    drop_lowest = max(0, int(drop_lowest or 0))
    drop_highest = max(0, int(drop_highest or 0))
    if not graded or (drop_lowest == 0 and drop_highest == 0):
        return graded

    # sorted() is stable, so equal percentages stay in list order
    order = sorted(range(len(graded)), key=lambda i: _drop_key(graded[i]))

    total_to_drop = min(drop_lowest + drop_highest, len(order) - 1)
    actual_lowest = min(drop_lowest, total_to_drop)
    actual_highest = min(drop_highest, total_to_drop - actual_lowest)

    dropped = set(order[:actual_lowest])
    if actual_highest:
        dropped.update(order[-actual_highest:])

    return [r for i, r in enumerate(graded) if i not in dropped]


# ── Group aggregation ─────────────────────────────────────────────────────────


def aggregate_group(group: AssignmentGroup, records: Sequence[AssignmentRecord]) -> GroupBreakdown:
    """
    Aggregate one group's records into a GroupBreakdown.

    Earned and possible points cover only the graded records that survive drop
    rules. graded_count and total_count are taken before drops.
    """
    all_graded = [r for r in records if r.graded]
    counted = apply_drop_rules(all_graded, group.drop_lowest, group.drop_highest)

    earned = sum(r.score for r in counted)
    possible = sum(r.points_possible for r in counted)

    group_pct = _percent(earned, possible)
    weighted_contribution = (
        round_half_up(group_pct * group.weight / 100, 2) if group_pct is not None else None
    )

    logger.debug(
        "group %r: %d/%d graded, %d counted, %s/%s points",
        group.name, len(all_graded), len(records), len(counted), earned, possible,
    )

    return GroupBreakdown(
        name=group.name,
        weight=group.weight,
        earned_points=earned,
        possible_points=possible,
        group_percentage=group_pct,
        weighted_contribution=weighted_contribution,
        drop_lowest=group.drop_lowest,
        drop_highest=group.drop_highest,
        graded_count=len(all_graded),
        total_count=len(records),
        assignments=tuple(records),
        counted_assignments=tuple(counted),
    )


def build_group_breakdown(group: AssignmentGroup) -> GroupBreakdown:
    records = [build_assignment_record(a) for a in group.assignments]
    return aggregate_group(group, records)


def sort_groups(groups: Iterable[AssignmentGroup]) -> List[AssignmentGroup]:
    return sorted(groups, key=lambda g: g.position)


# ── Overall grade ─────────────────────────────────────────────────────────────


def compute_overall_grade(breakdowns: Sequence[GroupBreakdown], uses_weights: bool, exact: bool = False) -> Optional[float]:
    """
    Combine group breakdowns into one overall percentage.

    Weighted: the sum of weighted contributions, normalized by the total weight
    of groups that have graded work. Groups with nothing graded do not pull the
    grade toward zero.
    Unweighted: total earned over total possible across every group.

    exact=True skips all rounding. The target solver uses it so display rounding
    does not move the point where the target is crossed.

    Returns None when there is no gradable work.
    """
    if uses_weights:
        with_grades = [g for g in breakdowns if g.group_percentage is not None and g.weight > 0]
        if not with_grades:
            return None

        total_weight = sum(g.weight for g in with_grades)
        if exact:
            weighted_sum = sum(g.exact_percentage * g.weight for g in with_grades)
            return weighted_sum / total_weight

        weighted_sum = sum(g.weighted_contribution or 0 for g in with_grades)
        return round_half_up(weighted_sum / total_weight * 100, 2)

    total_earned = sum(g.earned_points for g in breakdowns)
    total_possible = sum(g.possible_points for g in breakdowns)
    if total_possible <= 0:
        return None
    if exact:
        return total_earned / total_possible * 100
    return _percent(total_earned, total_possible)


def get_letter_grade(percentage: Optional[float], grade_scale: dict = None) -> str:
    """Map a percentage to a letter grade using the provided scale."""
    scale = grade_scale or DEFAULT_GRADE_SCALE
    if percentage is None:
        return "N/A"

    thresholds = sorted(scale.items(), key=lambda x: x[1], reverse=True)

    for letter, min_pct in thresholds:
        if percentage >= min_pct:
            return letter

    return thresholds[-1][0]
